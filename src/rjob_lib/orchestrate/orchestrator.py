# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from collections.abc import Callable
from pathlib import Path

from rjob_lib.batch.interface import BatchInterface, BatchMeta
from rjob_lib.cleanup.cleaner import Cleaner, CleanupTarget
from rjob_lib.clouds.cloud import Cloud, find_cloud
from rjob_lib.core.cancellation import Cancellation
from rjob_lib.core.config import CFG
from rjob_lib.core.error import JobCancelled, RJobError, SubmissionError
from rjob_lib.core.logger import get_logger
from rjob_lib.progress.tracker import ProgressTracker, print_job_output
from rjob_lib.properties.identity import JobIdentity
from rjob_lib.properties.job_spec import JobSpec
from rjob_lib.properties.job_state import JobState
from rjob_lib.remote.session import RemoteSession
from rjob_lib.staging.stager import Stager
from rjob_lib.uploads.registry import UploadRegistry

logger = get_logger(__name__, show_time=True)


class Orchestrator:
    """
    Drives one job through its whole life on the batch system.

    The job is staged onto the remote node, submitted exactly once, polled
    until it reaches a terminal state while its output is streamed, and its
    requested outputs are downloaded. Cancelling the orchestration kills the
    job. The files the execution leaves behind are removed exactly once,
    however the orchestration ends.
    """

    def __init__(
        self,
        spec: JobSpec,
        session: RemoteSession,
        label: str | None = None,
        batch_system: str | type[BatchInterface] | None = None,
        shared_area: Path | None = None,
        uploads: UploadRegistry | None = None,
        cancellation: Cancellation | None = None,
        printer: Callable[[str], None] = print_job_output,
    ):
        """
        Initialize the Orchestrator.

        Args:
            spec (JobSpec): Specification of the job.
            session (RemoteSession): Session of the remote node.
            label (str | None): Label required by the job. Selects the cloud.
            batch_system (str | type[BatchInterface] | None): Batch system managing the job.
                If not given, the batch system of the cloud is used or, if it defines none,
                the batch system is taken from the environment or guessed.
            shared_area (Path | None): Controller-side staging directory.
                Defaults to the configured shared area.
            uploads (UploadRegistry | None): Previously uploaded files staged with the job.
            cancellation (Cancellation | None): Signal cancelling the orchestration.
            printer (Callable[[str], None]): Sink receiving the output of the job.

        Raises:
            RJobError: If the batch system cannot be determined.
        """
        self._spec = spec
        self._session = session
        self._cloud: Cloud | None = find_cloud(label)
        self._queue = self._cloud.queue_type if self._cloud else None
        self._cancellation = cancellation or Cancellation()
        shared_area = shared_area or CFG.paths.shared_area

        if not isinstance(batch_system, type):
            batch_system = BatchMeta.obtain(
                batch_system or (self._cloud.batch_system if self._cloud else None),
                session,
            )
        logger.debug(f"Batch system: {str(batch_system)}.")

        self._batch = batch_system(session)
        self._stager = Stager(session, shared_area, session.run_dir, uploads)
        self._tracker = ProgressTracker(self._batch, session, printer)
        self._cleaner = Cleaner(session, shared_area)

        self.identity = JobIdentity.generate()
        self.state = JobState()

    def run(self) -> bool:
        """
        Execute the job and wait for it to finish.

        Returns:
            bool: True if the job completed successfully, False otherwise.

        Raises:
            StagingError: If the job could not be staged.
            RJobError: If communication with the remote node fails while the job is polled.
        """
        state = self.state
        target = CleanupTarget(self.identity, names=self._stager.staged_names)

        with self._cleaner.scope(target):
            try:
                self._stage(target)
                self._cancellation.raiseIfCancelled()
            except (JobCancelled, RJobError) as e:
                if not self._cancelledBy(e):
                    raise
                logger.warning(f"Job cancelled before submission: {e}.")
                state.status = BatchInterface.ABORTED
                state.outcome = False
                return False

            try:
                state.handle = self._batch.jobSubmit(
                    self.identity, self._spec.notify, self._queue
                )
            except SubmissionError as e:
                logger.error(e)
                state.outcome = False
                return False

            logger.info(f"Submitted job '{state.handle}' as '{self.identity}'.")

            try:
                self._poll(state)
                self._tracker.flush(state)
                self._stager.retrieveOutputs(self._spec)
            except (JobCancelled, KeyboardInterrupt, RJobError) as e:
                if not self._cancelledBy(e):
                    raise
                logger.warning(f"Job '{state.handle}' cancelled: {str(e) or 'interrupted'}.")
                self._batch.jobKill(state.handle)
                state.status = BatchInterface.ABORTED

            if self._batch.jobExitedWithErrors(state.status):
                self._batch.printErrorLog(state.handle)
                self._batch.printExitCode(state.handle)

            state.outcome = self._batch.jobCompletedSuccessfully(state.status)

        logger.info(
            f"Job '{state.handle}' {'completed successfully' if state.outcome else 'did not complete successfully'}."
        )
        return state.outcome

    def _stage(self, target: CleanupTarget) -> None:
        """
        Stage the inputs and the job script onto the remote node.

        If no working directory is configured, the job works in a directory
        created for this run inside the login directory of the node.
        """
        logger.debug(f"Queue: {self._queue or 'default'}.")

        if self._session.work_dir:
            work_dir = self._session.getWorkingDirectory()
        else:
            work_dir = self._session.createScratchDirectory(f"rjob_{self.identity}")
            target.scratch = True

        self._session.work_dir = work_dir
        target.work_dir = work_dir
        logger.debug(f"Working directory: '{work_dir}'.")

        preamble = self._stager.sendInputs(self._spec, work_dir)
        script = self._stager.writeJobScript(
            self.identity,
            preamble,
            self._spec.script,
            self._spec.downloadList,
            work_dir,
        )
        self._stager.setExecutable(script)

    def _poll(self, state: JobState) -> None:
        """
        Wait for the job to reach a terminal state, streaming its output while it runs.

        Raises:
            JobCancelled: If the orchestration is cancelled.
        """
        seconds = self._spec.interval * CFG.polling.seconds_per_minute

        while not self._batch.isEndStatus(state.status):
            self._cancellation.wait(seconds)

            state.status = self._batch.getJobStatus(state.handle)
            self._cancellation.raiseIfCancelled()

            logger.info(f"JOB STATUS: {state.status}")
            if description := self._batch.describeStatus(state.status):
                logger.info(description)

            if self._batch.isRunningStatus(state.status):
                self._tracker.track(state)
                self._cancellation.raiseIfCancelled()

    def _cancelledBy(self, error: BaseException) -> bool:
        """
        Return True if `error` ends the orchestration because it was cancelled.

        The cancellation signal also terminates a remote command running at
        that moment, so a failed remote call counts as cancellation once
        the cancellation has been requested.
        """
        if isinstance(error, RJobError):
            return self._cancellation.isCancelled()

        return True
