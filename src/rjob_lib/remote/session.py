# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import socket
import subprocess
from pathlib import Path

from rjob_lib.core.common import quote
from rjob_lib.core.config import CFG
from rjob_lib.core.error import RemoteCommandError
from rjob_lib.core.logger import get_logger

logger = get_logger(__name__)


class RemoteSession:
    """
    Shell-level access to the remote execution node.

    Commands are executed with `bash` inside the remote working directory,
    either through SSH or, if the node is the current machine, directly.
    Files are transferred between the controller and the node using rsync.

    Results of single-shot commands travel back through the communication
    file: the command writes into it on the node, the file is copied into
    the run directory on the controller and read there. The file is
    overwritten on every use.

    Attributes:
        host (str | None): Hostname of the remote node. None means the current machine.
        work_dir (Path | None): Working directory on the node. None means the login directory.
        run_dir (Path): The run's own storage directory on the controller.
        exec_dir (Path | None): Directory on the node from which jobs are submitted.
            None means the node's home directory.
    """

    # exit code of ssh if connection fails
    SSH_FAIL = 255

    def __init__(
        self,
        host: str | None,
        work_dir: Path | None,
        run_dir: Path,
        exec_dir: Path | None = None,
    ):
        self.host = None if host == socket.gethostname() else host
        self.work_dir = work_dir
        self.run_dir = run_dir
        self.exec_dir = exec_dir
        self._communication_file = CFG.channels.communication_file

    def isLocal(self) -> bool:
        """Return True if the node is the current machine."""
        return self.host is None

    def execute(self, command: str, check: bool = True) -> str:
        """
        Execute a shell command on the remote node inside the working directory.

        Args:
            command (str): The command to execute.
            check (bool): Raise an error if the command exits with a non-zero code.

        Returns:
            str: Standard output of the command.

        Raises:
            RemoteCommandError: If `check` is set and the command fails,
                or if the node cannot be reached.
        """
        script = self._wrap(command)
        logger.debug(f"Executing on '{self._where()}': {command}")

        result = subprocess.run(
            self._shellCommand(),
            input=script,
            text=True,
            check=False,
            capture_output=True,
            errors="replace",
        )

        if not self.isLocal() and result.returncode == RemoteSession.SSH_FAIL:
            raise RemoteCommandError(
                f"Could not reach '{self.host}': {result.stderr.strip()}."
            )

        if check and result.returncode != 0:
            raise RemoteCommandError(
                f"Command '{command}' failed on '{self._where()}': {result.stderr.strip()}."
            )

        return result.stdout

    def capture(self, command: str) -> str:
        """
        Execute a command with its output redirected into the communication
        file and return the content of the file copied to the controller.

        Raises:
            RemoteCommandError: If the command fails or the file cannot be copied.
        """
        self.execute(f"{command} > {quote(self._communication_file)}")
        return self.readCommunicationFile()

    def probe(self, command: str) -> str:
        """
        Like `capture`, but a failure of the command itself is tolerated.

        The communication file is truncated before the command runs, so
        a failed command yields whatever it managed to write (typically nothing).

        Raises:
            RemoteCommandError: If the node cannot be reached or the file cannot be copied.
        """
        self.execute(f"{command} > {quote(self._communication_file)}", check=False)
        return self.readCommunicationFile()

    def readCommunicationFile(self) -> str:
        """
        Copy the communication file from the working directory to the run
        directory and return its content.

        Raises:
            RemoteCommandError: If the file cannot be copied or read.
        """
        remote = self.remotePath(self._communication_file)
        self.fetch([remote], self.run_dir)

        local = self.run_dir / self._communication_file
        try:
            return local.read_text(errors="replace")
        except OSError as e:
            raise RemoteCommandError(
                f"Could not read the communication file '{local}': {e}."
            ) from e

    def getWorkingDirectory(self) -> Path:
        """
        Query the absolute path of the working directory on the remote node.

        Raises:
            RemoteCommandError: If the query fails or returns nothing.
        """
        lines = self.capture("pwd").splitlines()
        if not lines or not lines[0].strip():
            raise RemoteCommandError(
                f"Could not determine the working directory on '{self._where()}'."
            )

        return Path(lines[0].strip())

    def createScratchDirectory(self, name: str) -> Path:
        """
        Create a directory `name` inside the login directory of the remote node
        and return its absolute path.

        Used as the working directory of a run if none was configured,
        so that the run never works in (and never clears) the login directory itself.

        Raises:
            RemoteCommandError: If the directory cannot be created.
        """
        lines = self.execute(
            f"mkdir -p {quote(name)} && cd {quote(name)} && pwd"
        ).splitlines()
        if not lines or not lines[0].strip():
            raise RemoteCommandError(
                f"Could not create the directory '{name}' on '{self._where()}'."
            )

        return Path(lines[0].strip())

    def remotePath(self, name: str | Path) -> Path:
        """
        Return the path of `name` inside the working directory.

        The path is absolute once the working directory has been resolved,
        otherwise it is relative and resolved against the working directory
        by the transfers.
        """
        if self.work_dir and Path(self.work_dir).is_absolute():
            return Path(self.work_dir) / name

        return Path(name)

    def getExecutionDirectory(self) -> Path:
        """
        Return the absolute path of the execution directory on the remote node.

        The directory is resolved on the node on first use (the home directory
        if no execution directory was configured) and cached afterwards.

        Raises:
            RemoteCommandError: If the directory does not exist on the node.
        """
        if self.exec_dir and Path(self.exec_dir).is_absolute():
            return Path(self.exec_dir)

        target = quote(self.exec_dir) if self.exec_dir else "~"
        lines = self.execute(f"cd {target} && pwd").splitlines()
        if not lines or not lines[0].strip():
            raise RemoteCommandError(
                f"Could not determine the execution directory on '{self._where()}'."
            )

        self.exec_dir = Path(lines[0].strip())
        logger.debug(f"Execution directory: '{self.exec_dir}'.")
        return self.exec_dir

    def execPath(self, name: str | Path) -> Path:
        """
        Return the absolute path of `name` inside the execution directory.
        """
        return self.getExecutionDirectory() / name

    def push(self, files: list[Path], remote_dir: Path) -> None:
        """
        Copy local files into a directory on the remote node.

        Raises:
            RemoteCommandError: If the transfer fails or times out.
        """
        if not files:
            return

        command = ["rsync", "-a"]
        command.extend(str(f) for f in files)
        command.append(self._address(remote_dir, directory=True))

        self._runRsync(
            command,
            f"'{', '.join(str(f) for f in files)}' -> '{self._where()}:{remote_dir}'",
        )

    def fetch(self, remote_files: list[Path], local_dir: Path) -> None:
        """
        Copy files from the remote node into a local directory.

        Raises:
            RemoteCommandError: If the transfer fails or times out.
        """
        if not remote_files:
            return

        local_dir.mkdir(parents=True, exist_ok=True)

        command = ["rsync", "-a"]
        command.extend(self._address(f) for f in remote_files)
        command.append(f"{local_dir}/")

        self._runRsync(
            command,
            f"'{self._where()}:{', '.join(str(f) for f in remote_files)}' -> '{local_dir}'",
        )

    def _wrap(self, command: str) -> str:
        """
        Prepend the change into the working directory to a command.
        """
        if self.work_dir:
            return f"cd {quote(self.work_dir)} || exit 1\n{command}\n"

        return f"{command}\n"

    def _shellCommand(self) -> list[str]:
        """
        Return the command reading a script from stdin on the node.
        """
        if self.isLocal():
            return ["bash"]

        return [
            "ssh",
            "-o PasswordAuthentication=no",
            f"-o ConnectTimeout={CFG.timeouts.ssh}",
            "-q",  # suppress some SSH messages
            self.host,
            "bash",
        ]

    def _address(self, path: Path, directory: bool = False) -> str:
        """
        Translate a path on the node into an rsync address.

        Relative paths are resolved against the working directory.
        """
        path_str = str(path)
        if not path_str.startswith("/") and self.work_dir:
            path_str = str(Path(self.work_dir) / path_str)

        if directory and not path_str.endswith("/"):
            path_str += "/"

        return f"{self.host}:{path_str}" if self.host else path_str

    def _runRsync(self, command: list[str], description: str) -> None:
        """
        Execute an rsync command.

        Raises:
            RemoteCommandError: If the command fails or times out.
        """
        logger.debug(f"Rsync command: {command}.")
        try:
            result = subprocess.run(
                command, capture_output=True, text=True, timeout=CFG.timeouts.rsync
            )
        except subprocess.TimeoutExpired as e:
            raise RemoteCommandError(
                f"Could not copy {description}: Connection timed out after {CFG.timeouts.rsync} seconds."
            ) from e

        if result.returncode != 0:
            raise RemoteCommandError(
                f"Could not copy {description}: {result.stderr.strip()}."
            )

    def _where(self) -> str:
        return self.host or socket.gethostname()
