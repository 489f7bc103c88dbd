# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


import re
from pathlib import Path

from rjob_lib.batch.interface import BatchInterface, BatchMeta, batch_system
from rjob_lib.core.common import quote
from rjob_lib.core.config import CFG
from rjob_lib.core.error import RJobError, SubmissionError
from rjob_lib.core.logger import get_logger
from rjob_lib.properties.identity import JobIdentity
from rjob_lib.properties.states import StatusClass
from rjob_lib.remote.session import RemoteSession

logger = get_logger(__name__)


@batch_system
class LSF(BatchInterface, metaclass=BatchMeta):
    """
    Implementation of BatchInterface for IBM Spectrum LSF.
    """

    PENDING_STATES = {"PEND", "PROV", "PSUSP", "USUSP", "SSUSP", "WAIT"}
    RUNNING_STATES = {"RUN"}
    SUCCESS_STATES = {"DONE"}
    FAILURE_STATES = {"EXIT", "ZOMBI"}

    # reported by bjobs if the job is unknown or the output is empty
    UNKNOWN_STATE = "UNKWN"

    DESCRIPTIONS = {
        "PEND": "Job is pending in the queue.",
        "PROV": "Job is waiting for its execution host to be provisioned.",
        "PSUSP": "Job was suspended while pending.",
        "USUSP": "Job was suspended by the user.",
        "SSUSP": "Job was suspended by the batch system.",
        "WAIT": "Job is waiting for its dependencies.",
        "RUN": "Job is running.",
        "DONE": "Job finished successfully.",
        "EXIT": "Job exited with a non-zero exit code.",
        "ZOMBI": "Job was killed but its execution host is unreachable.",
        "UNKWN": "Batch system has lost contact with the execution host.",
        BatchInterface.ABORTED: "Job was aborted.",
    }

    # pattern of the message printed by a successful bsub
    SUBMIT_PATTERN = re.compile(r"Job <(\S+)> is submitted")

    def envName() -> str:
        return "LSF"

    def isAvailable(session: RemoteSession) -> bool:
        try:
            return bool(session.execute("command -v bsub", check=False).strip())
        except RJobError as e:
            logger.debug(f"Could not check availability of LSF: {e}")
            return False

    def jobSubmit(self, identity: JobIdentity, notify: bool, queue: str | None) -> str:
        command = LSF._translateSubmit(
            self._session.getExecutionDirectory(), identity, notify, queue
        )
        logger.debug(command)

        try:
            output = self._session.execute(command)
        except RJobError as e:
            raise SubmissionError(
                f"Failed to submit job script '{identity}': {e}"
            ) from e

        if not (match := LSF.SUBMIT_PATTERN.search(output)):
            raise SubmissionError(
                f"Failed to submit job script '{identity}': could not parse the output of bsub: '{output.strip()}'."
            )

        return match.group(1)

    def getJobStatus(self, job_id: str) -> str:
        command = LSF._translateStatus(job_id)
        logger.debug(command)

        # bjobs fails if the job is no longer known to the batch system
        output = self._session.execute(command, check=False).split()
        return output[0] if output else LSF.UNKNOWN_STATE

    def _classifyToken(self, status: str) -> StatusClass:
        if status in LSF.PENDING_STATES:
            return StatusClass.PENDING
        if status in LSF.RUNNING_STATES:
            return StatusClass.RUNNING
        if status in LSF.SUCCESS_STATES:
            return StatusClass.SUCCESS
        if status in LSF.FAILURE_STATES:
            return StatusClass.FAILURE
        return StatusClass.UNKNOWN

    def describeStatus(self, status: str) -> str | None:
        return LSF.DESCRIPTIONS.get(status.strip())

    def createJobProgressFile(self, job_id: str, target: str) -> None:
        command = LSF._translatePeek(job_id, target)
        logger.debug(command)
        self._session.execute(command)

    def createFormattedRunningJobOutputFile(
        self, source: str, from_line: int, to_line: int
    ) -> None:
        command = LSF._translateRange(
            source, from_line, to_line, CFG.channels.communication_file
        )
        logger.debug(command)
        self._session.execute(command)

    def createFinishedJobOutputFile(self, job_id: str, from_line: int) -> None:
        command = LSF._translateFinishedOutput(
            self._jobFile(job_id, CFG.lsf_options.output_pattern),
            from_line,
            CFG.channels.communication_file,
        )
        logger.debug(command)
        self._session.execute(command)

    def jobKill(self, job_id: str) -> None:
        command = LSF._translateKill(job_id)
        logger.debug(command)

        try:
            self._session.execute(command)
        except RJobError as e:
            # the job has most likely finished already
            logger.warning(f"Failed to kill job '{job_id}': {e}")

    def printErrorLog(self, job_id: str) -> None:
        error_file = self._jobFile(job_id, CFG.lsf_options.error_pattern)
        try:
            content = self._session.execute(f"cat {quote(error_file)}")
        except RJobError as e:
            logger.warning(f"Could not read the error output of job '{job_id}': {e}")
            return

        if content.strip():
            logger.error(f"Error output of job '{job_id}':\n{content.rstrip()}")

    def printExitCode(self, job_id: str) -> None:
        command = LSF._translateExitCode(job_id)
        logger.debug(command)
        try:
            output = self._session.execute(command).split()
        except RJobError as e:
            logger.warning(f"Could not get the exit code of job '{job_id}': {e}")
            return

        # bjobs prints '-' if the job has no exit code
        if output and output[0] != "-":
            logger.error(f"EXIT CODE: {output[0]}")

    def _jobFile(self, job_id: str, pattern: str) -> Path:
        """
        Return the path of a job file named by an LSF `%J` pattern.
        """
        return self._session.execPath(pattern.replace("%J", job_id))

    @staticmethod
    def _translateSubmit(
        exec_dir: Path, identity: JobIdentity, notify: bool, queue: str | None
    ) -> str:
        """
        Generate the LSF submission command for a staged job script.

        Args:
            exec_dir (Path): Directory containing the job script. The job runs there.
            identity (JobIdentity): Name of the job script.
            notify (bool): Send an email when the job completes.
            queue (str | None): Queue to submit to. None means the default queue.

        Returns:
            str: The fully constructed bsub command string.
        """
        command = f"cd {quote(exec_dir)} && bsub "
        if notify:
            command += "-N "
        if queue:
            command += f"-q {quote(queue)} "

        command += f"-J {quote(identity)} "
        command += f"-o {CFG.lsf_options.output_pattern} -e {CFG.lsf_options.error_pattern} "
        command += f"< {quote(identity)}"

        return command

    @staticmethod
    def _translateStatus(job_id: str) -> str:
        return f"bjobs -noheader -o stat {job_id}"

    @staticmethod
    def _translateExitCode(job_id: str) -> str:
        return f"bjobs -noheader -o exit_code {job_id}"

    @staticmethod
    def _translateKill(job_id: str) -> str:
        return f"bkill {job_id}"

    @staticmethod
    def _translatePeek(job_id: str, target: str) -> str:
        """
        Generate the command copying the current output of a running job into `target`.

        bpeek opens its output with a '<< output from stdout >>' banner which is dropped.
        """
        return f"bpeek {job_id} 2>/dev/null | sed '1{{/^<< output from/d}}' > {quote(target)}"

    @staticmethod
    def _translateRange(source: str, from_line: int, to_line: int, target: str) -> str:
        """
        Generate the command extracting lines `[from_line, to_line)` of `source` into `target`.
        """
        if to_line <= from_line:
            # nothing to extract, just truncate the target
            return f": > {quote(target)}"

        return f"sed -n '{from_line + 1},{to_line}p' {quote(source)} > {quote(target)}"

    @staticmethod
    def _translateFinishedOutput(output_file: Path, from_line: int, target: str) -> str:
        """
        Generate the command extracting the output of a finished job from `from_line`
        to its end into `target`.

        LSF encloses the output of the job in a report: the output starts after
        the 'The output (if any) follows:' line and a blank line and ends before
        the 'PS:' line.
        """
        body = (
            "awk 'body && /^PS:$/ {exit} body {print} "
            "/^The output \\(if any\\) follows:$/ {body=1; getline}' "
            f"{quote(output_file)} 2>/dev/null"
        )
        return f"{body} | tail -n +{from_line + 1} > {quote(target)}"
