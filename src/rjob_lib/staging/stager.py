# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import shutil
from pathlib import Path

from rjob_lib.core.common import quote, remote_basename
from rjob_lib.core.error import RJobError, StagingError
from rjob_lib.core.logger import get_logger
from rjob_lib.properties.identity import JobIdentity
from rjob_lib.properties.job_spec import JobSpec
from rjob_lib.remote.session import RemoteSession
from rjob_lib.uploads.registry import UploadRegistry

from .manifest import StagingManifest

logger = get_logger(__name__)


class Stager:
    """
    Moves files between the controller and the remote node.

    Inputs travel in two hops: they are first copied into the shared area
    on the controller and then transferred into the remote working
    directory, from where the job script copies them next to itself.
    Requested outputs travel back the same way in reverse: the job script
    copies them into the working directory and the stager fetches them.
    """

    def __init__(
        self,
        session: RemoteSession,
        shared_area: Path,
        run_dir: Path,
        uploads: UploadRegistry | None = None,
    ):
        """
        Initialize the Stager.

        Args:
            session (RemoteSession): Session of the remote node.
            shared_area (Path): Controller-side staging directory.
            run_dir (Path): The run's own storage directory on the controller.
            uploads (UploadRegistry | None): Previously uploaded files to stage
                with every job. None means no uploads.
        """
        self._session = session
        self._shared_area = shared_area
        self._run_dir = run_dir
        self._uploads = uploads

        # names of the per-run input copies placed into the shared area
        self.staged_names: list[str] = []

    def sendInputs(self, spec: JobSpec, work_dir: Path) -> list[str]:
        """
        Stage the input files of a job into the remote working directory.

        Args:
            spec (JobSpec): Specification of the job.
            work_dir (Path): Absolute path of the remote working directory.

        Returns:
            list[str]: Shell lines copying the staged files next to the job script.

        Raises:
            StagingError: If a file is missing or cannot be copied.
        """
        manifest = StagingManifest()
        for file in spec.sendList:
            manifest.addInput(Path(file).expanduser())

        if self._uploads:
            for path in self._uploads.paths():
                manifest.addUpload(path)

        self._shared_area.mkdir(parents=True, exist_ok=True)

        copies = []
        for local, name in manifest.inputs:
            if not local.is_file():
                raise StagingError(f"Input file '{local}' does not exist.")

            target = self._shared_area / name
            logger.debug(f"Copying '{local}' to '{target}'.")
            try:
                shutil.copy2(local, target)
            except OSError as e:
                raise StagingError(f"Could not copy '{local}' to '{target}': {e}.") from e

            self.staged_names.append(name)
            copies.append(target)

        # per-run inputs are pushed last to override uploads with the same name
        if to_push := manifest.uploads + copies:
            logger.info(f"Sending {len(to_push)} file(s) to the remote node.")
            try:
                self._session.push(to_push, work_dir)
            except RJobError as e:
                raise StagingError(f"Could not send the input files: {e}") from e

        return manifest.preamble(work_dir)

    def writeJobScript(
        self,
        identity: JobIdentity,
        preamble: list[str],
        body: str,
        downloads: list[str],
        work_dir: Path,
    ) -> Path:
        """
        Compose the job script and stage it into the remote execution directory.

        The script consists of the preamble, the body of the job and one line
        per requested output copying it back into the working directory.

        Returns:
            Path: Absolute path of the job script on the remote node.

        Raises:
            StagingError: If the script cannot be written or sent.
        """
        lines = list(preamble)
        lines.append(body.rstrip("\n"))
        lines.extend(
            f"cp {quote(file)} {quote(f'{work_dir}/')} > /dev/null" for file in downloads
        )

        local = self._shared_area / str(identity)
        logger.debug(f"Writing job script '{local}'.")
        try:
            self._shared_area.mkdir(parents=True, exist_ok=True)
            local.write_text("\n".join(lines) + "\n")
        except OSError as e:
            raise StagingError(f"Could not write the job script '{local}': {e}.") from e

        try:
            exec_dir = self._session.getExecutionDirectory()
            self._session.push([local], exec_dir)
        except RJobError as e:
            raise StagingError(f"Could not send the job script '{identity}': {e}") from e

        return exec_dir / str(identity)

    def setExecutable(self, script: Path) -> None:
        """
        Make the staged job script executable.

        Raises:
            StagingError: If the permissions cannot be changed.
        """
        try:
            self._session.execute(f"chmod 755 {quote(script)} > /dev/null")
        except RJobError as e:
            raise StagingError(f"Could not make '{script}' executable: {e}") from e

    def retrieveOutputs(self, spec: JobSpec) -> None:
        """
        Download the requested output files from the remote working directory.

        Files are placed into the requested destination or, if none was
        requested, into the run directory.

        Raises:
            RemoteCommandError: If the transfer fails.
        """
        if not (downloads := spec.downloadList):
            logger.debug("No files to download.")
            return

        destination = spec.downloadDestination(self._run_dir)
        logger.info(f"Downloading {len(downloads)} file(s) into '{destination}'.")
        self._session.fetch(
            [self._session.remotePath(remote_basename(f)) for f in downloads],
            destination,
        )
