# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from dataclasses import dataclass, field
from pathlib import Path

from rjob_lib.core.common import quote
from rjob_lib.core.error import StagingError


@dataclass
class StagingManifest:
    """
    Input files staged into the remote working directory for one execution.

    Per-run inputs are identified by their basename on the remote node.
    Previously uploaded files are shared by all executions and only
    referenced by the manifest.
    """

    # Ordered (local path, remote name) pairs of the per-run inputs.
    inputs: list[tuple[Path, str]] = field(default_factory=list)

    # Previously uploaded files registered on the controller.
    uploads: list[Path] = field(default_factory=list)

    def addInput(self, local: Path) -> str:
        """
        Register a per-run input file and return its remote name.

        Raises:
            StagingError: If another input with the same name is already registered.
        """
        name = local.name
        if name in self.inputNames():
            raise StagingError(
                f"Cannot send '{local}': another input file is named '{name}'."
            )

        self.inputs.append((local, name))
        return name

    def addUpload(self, path: Path) -> None:
        """Register a previously uploaded file."""
        self.uploads.append(path)

    def inputNames(self) -> list[str]:
        return [name for _, name in self.inputs]

    def remoteNames(self) -> list[str]:
        """
        Return the names of all staged files in the order they are copied.

        An upload shadowed by a per-run input of the same name is listed once.
        """
        names = self.inputNames()
        names.extend(p.name for p in self.uploads if p.name not in names)
        return names

    def preamble(self, work_dir: Path) -> list[str]:
        """
        Return the shell lines copying the staged files from the working
        directory into the directory the job runs in.
        """
        return [f"cp {quote(Path(work_dir) / name)} ." for name in self.remoteNames()]
