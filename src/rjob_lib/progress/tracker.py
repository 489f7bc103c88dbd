# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from collections.abc import Callable

from rich.console import Console
from rich.rule import Rule

from rjob_lib.batch.interface import BatchInterface
from rjob_lib.core.config import CFG
from rjob_lib.core.logger import get_logger
from rjob_lib.properties.job_state import JobState
from rjob_lib.remote.session import RemoteSession

logger = get_logger(__name__)


def print_job_output(output: str, console: Console | None = None) -> None:
    """
    Print a chunk of job output framed by start and end rules.
    """
    console = console or Console()
    console.print(
        Rule(title=CFG.presenter.output_start_title, style=CFG.presenter.rule_style)
    )
    console.print(output.rstrip("\n"), markup=False, highlight=False)
    console.print(
        Rule(title=CFG.presenter.output_end_title, style=CFG.presenter.rule_style)
    )


class ProgressTracker:
    """
    Streams the output of a running job in increments.

    On every poll cycle, the current output of the job is materialized into
    the progress file on the remote node, its lines are counted, and the lines
    not yet delivered are extracted and printed. Once the job finishes,
    `flush` prints the rest of the output from the job's final output file.

    Printing is governed by `JobState.pending_print`: a cycle prints the
    range it has just extracted only if the flag is set, and a cycle that
    observes new lines sets the flag for the next cycle. This gives at most
    one print per observed growth. The final flush prints everything after
    the last observed line count unconditionally.
    """

    def __init__(
        self,
        batch: BatchInterface,
        session: RemoteSession,
        printer: Callable[[str], None] = print_job_output,
    ):
        """
        Args:
            batch (BatchInterface): Batch system managing the job.
            session (RemoteSession): Session of the remote node.
            printer (Callable[[str], None]): Sink receiving the extracted output.
        """
        self._batch = batch
        self._session = session
        self._printer = printer
        self._progress_file = CFG.channels.progress_file

    def track(self, state: JobState) -> None:
        """
        Run one poll cycle for a running job.

        A cycle with an unusable line count leaves the state untouched.

        Raises:
            RJobError: If a remote command or transfer fails.
        """
        self._batch.createJobProgressFile(state.handle, self._progress_file)

        if (line_count := self._countLines()) is None:
            return

        self._batch.createFormattedRunningJobOutputFile(
            self._progress_file, state.offset, line_count
        )
        output = self._session.readCommunicationFile()

        if state.pending_print:
            self._printer(output)
            state.pending_print = False

        if state.advance(line_count):
            logger.debug(f"Job output advanced to line {line_count}.")
            state.pending_print = True

    def flush(self, state: JobState) -> None:
        """
        Print the output of a finished job not delivered so far.

        Raises:
            RJobError: If a remote command or transfer fails.
        """
        self._batch.createFinishedJobOutputFile(state.handle, state.offset)
        self._printer(self._session.readCommunicationFile())

    def _countLines(self) -> int | None:
        """
        Return the number of lines in the progress file or None if it cannot be determined.
        """
        output = self._session.probe(f"wc -l {self._progress_file}").split()
        try:
            return int(output[0])
        except (IndexError, ValueError):
            logger.debug(f"Could not count the lines of the job output: '{output}'.")
            return None
