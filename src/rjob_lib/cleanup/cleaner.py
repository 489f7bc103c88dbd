# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path

from rjob_lib.core.common import quote
from rjob_lib.core.logger import get_logger
from rjob_lib.properties.identity import JobIdentity
from rjob_lib.remote.session import RemoteSession

logger = get_logger(__name__)


@dataclass
class CleanupTarget:
    """
    Files left behind by one execution, filled in as staging proceeds.
    """

    # Name of the staged job script.
    identity: JobIdentity

    # Absolute path of the remote working directory, once resolved.
    work_dir: Path | None = None

    # Names of the per-run input copies placed into the shared area.
    names: list[str] = field(default_factory=list)

    # The working directory was created for this execution only.
    scratch: bool = False


class Cleaner:
    """
    Removes the files an execution leaves on the remote node and in the shared area.

    Every step tolerates failure, so cleaning up never masks the outcome
    of the job and cleaning up twice is harmless.
    """

    def __init__(self, session: RemoteSession, shared_area: Path):
        self._session = session
        self._shared_area = shared_area

    def cleanup(
        self,
        work_dir: Path | None,
        identity: JobIdentity,
        names: list[str],
        scratch: bool = False,
    ) -> None:
        """
        Remove the files of one execution.

        Args:
            work_dir (Path | None): Remote working directory whose content is removed.
                None if it was never resolved.
            identity (JobIdentity): Name of the staged job script.
            names (list[str]): Names of the per-run input copies in the shared area.
            scratch (bool): The working directory was created for this execution
                and is removed as a whole.
        """
        logger.debug(f"Cleaning up after '{identity}'.")

        if work_dir and str(work_dir) != "/":
            command = (
                f"rm -rf {quote(work_dir)}"
                if scratch
                else f"rm -rf {quote(work_dir)}/*"
            )
            self._tolerate(
                f"clear '{work_dir}'", lambda: self._session.execute(command)
            )

        # the execution directory is only resolved once the script is sent
        if self._session.exec_dir and Path(self._session.exec_dir).is_absolute():
            script = Path(self._session.exec_dir) / str(identity)
            self._tolerate(
                f"remove '{script}'",
                lambda: self._session.execute(f"rm -f {quote(script)}"),
            )

        for name in [str(identity), *names]:
            self._tolerate(
                f"remove '{name}' from the shared area",
                lambda: (self._shared_area / name).unlink(missing_ok=True),
            )

    @contextmanager
    def scope(self, target: CleanupTarget) -> Iterator[CleanupTarget]:
        """
        Clean up `target` exactly once when the block is left, however it is left.
        """
        try:
            yield target
        finally:
            self.cleanup(
                target.work_dir, target.identity, target.names, scratch=target.scratch
            )

    @staticmethod
    def _tolerate(description: str, step) -> None:
        try:
            step()
        except Exception as e:
            logger.debug(f"Could not {description}: {e}")
