# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


from abc import ABC, abstractmethod

from rjob_lib.core.logger import get_logger
from rjob_lib.properties.identity import JobIdentity
from rjob_lib.properties.states import StatusClass
from rjob_lib.remote.session import RemoteSession

logger = get_logger(__name__)


class BatchInterface(ABC):
    """
    Abstract base class for batch system integrations.

    A batch system is bound to the `RemoteSession` of the node on which its
    commands are available. Concrete batch system classes must implement the
    abstract methods to allow rjob to submit, track and cancel jobs uniformly.

    All scheduler commands are executed on the remote node. Extracted job
    output is written into the communication file in the working directory
    of the session.

    Unless stated otherwise, methods should raise RJobError when encountering an error.
    """

    # status forced onto a job whose orchestration has been cancelled
    ABORTED = "ABORTED"

    def __init__(self, session: RemoteSession):
        self._session = session

    @staticmethod
    def envName() -> str:
        """
        Return the name of the batch system environment.

        Returns:
            str: The batch system name.
        """
        raise NotImplementedError(
            "envName method is not implemented for this batch system implementation"
        )

    @staticmethod
    def isAvailable(session: RemoteSession) -> bool:
        """
        Determine whether the batch system is available on the remote node.

        Implementations typically verify this by checking for the presence
        of required commands on the node.

        Returns:
            bool: True if the batch system is available, False otherwise.
        """
        raise NotImplementedError(
            "isAvailable method is not implemented for this batch system implementation"
        )

    @abstractmethod
    def jobSubmit(self, identity: JobIdentity, notify: bool, queue: str | None) -> str:
        """
        Submit the staged job script to the batch system.

        Args:
            identity (JobIdentity): Name of the job script in the execution directory.
            notify (bool): Ask the batch system to send an email on completion.
            queue (str | None): Queue to submit to. None means the default queue.

        Returns:
            str: Identifier of the submitted job.

        Raises:
            SubmissionError: If the submission command fails.
        """

    @abstractmethod
    def getJobStatus(self, job_id: str) -> str:
        """
        Query the current status of a job.

        Returns:
            str: Scheduler-specific status token.
        """

    def classifyStatus(self, status: str) -> StatusClass:
        """
        Classify a status token.

        An empty token (status never queried) is unknown and thus never terminal.
        The forced `ABORTED` status is classified the same way by all batch systems.
        """
        status = status.strip()
        if not status:
            return StatusClass.UNKNOWN

        if status == BatchInterface.ABORTED:
            return StatusClass.ABORTED

        return self._classifyToken(status)

    @abstractmethod
    def _classifyToken(self, status: str) -> StatusClass:
        """
        Classify a non-empty, scheduler-specific status token.
        """

    def describeStatus(self, status: str) -> str | None:
        """
        Return a human-readable description of a status token, if there is one.
        """
        return None

    def isEndStatus(self, status: str) -> bool:
        """Return True if the job will not change its state anymore."""
        return self.classifyStatus(status).isTerminal()

    def isRunningStatus(self, status: str) -> bool:
        """Return True if the job is producing output."""
        return self.classifyStatus(status) == StatusClass.RUNNING

    def jobExitedWithErrors(self, status: str) -> bool:
        """Return True if the job finished with an error."""
        return self.classifyStatus(status) == StatusClass.FAILURE

    def jobCompletedSuccessfully(self, status: str) -> bool:
        """Return True if the job finished successfully."""
        return self.classifyStatus(status) == StatusClass.SUCCESS

    @abstractmethod
    def createJobProgressFile(self, job_id: str, target: str) -> None:
        """
        Materialize the current output of a running job into `target`
        in the working directory.
        """

    @abstractmethod
    def createFormattedRunningJobOutputFile(
        self, source: str, from_line: int, to_line: int
    ) -> None:
        """
        Extract the lines `[from_line, to_line)` (0-based, half-open) of `source`
        into the communication file.
        """

    @abstractmethod
    def createFinishedJobOutputFile(self, job_id: str, from_line: int) -> None:
        """
        Extract the output of a finished job from line `from_line` (0-based)
        to its end into the communication file.
        """

    @abstractmethod
    def jobKill(self, job_id: str) -> None:
        """
        Request the termination of a job.

        Best-effort: must not raise if the job has already finished.
        """

    @abstractmethod
    def printErrorLog(self, job_id: str) -> None:
        """
        Log the error output of a job. Must not raise.
        """

    @abstractmethod
    def printExitCode(self, job_id: str) -> None:
        """
        Log the exit code of a job, if there is one. Must not raise.
        """
