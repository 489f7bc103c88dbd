# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import shutil
from pathlib import Path

import yaml

from rjob_lib.core.common import load_yaml_dumper, load_yaml_loader
from rjob_lib.core.config import CFG
from rjob_lib.core.error import RJobError
from rjob_lib.core.logger import get_logger

logger = get_logger(__name__)

Dumper: type[yaml.Dumper] = load_yaml_dumper()
SafeLoader: type[yaml.SafeLoader] = load_yaml_loader()


class UploadRegistry:
    """
    Files uploaded to the controller once and staged with every job.

    Uploaded files are stored in the uploads directory. Their names are
    recorded, in the order of upload, in a YAML index inside the same directory.
    """

    def __init__(self, directory: Path | None = None):
        """
        Args:
            directory (Path | None): Directory holding the uploads.
                Defaults to the configured uploads directory.
        """
        self._directory = directory or CFG.paths.uploads_dir
        self._index = self._directory / CFG.paths.uploads_index

    def names(self) -> list[str]:
        """Return the names of the uploaded files."""
        if not self._index.is_file():
            return []

        try:
            with self._index.open("r") as input:
                data = yaml.load(input, Loader=SafeLoader)
        except (OSError, yaml.YAMLError) as e:
            raise RJobError(f"Could not read the uploads index '{self._index}': {e}.") from e

        if data is None:
            return []

        if not isinstance(data, list):
            raise RJobError(f"Invalid uploads index '{self._index}': expected a list.")

        return [str(x) for x in data]

    def paths(self) -> list[Path]:
        """Return the paths of the uploaded files."""
        return [self._directory / name for name in self.names()]

    def add(self, file: Path) -> str:
        """
        Upload a file. A previous upload with the same name is replaced.

        Returns:
            str: Name of the uploaded file.

        Raises:
            RJobError: If the file does not exist or cannot be copied.
        """
        if not file.is_file():
            raise RJobError(f"File '{file}' does not exist.")

        name = file.name
        if name == CFG.paths.uploads_index:
            raise RJobError(f"Cannot upload a file named '{name}'.")

        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            shutil.copy2(file, self._directory / name)
        except OSError as e:
            raise RJobError(f"Could not upload '{file}': {e}.") from e

        names = self.names()
        if name not in names:
            names.append(name)
            self._write(names)

        logger.debug(f"Uploaded '{file}' as '{name}'.")
        return name

    def remove(self, name: str) -> None:
        """
        Delete an uploaded file.

        Raises:
            RJobError: If no file of the given name has been uploaded.
        """
        names = self.names()
        if name not in names:
            raise RJobError(f"No uploaded file named '{name}'.")

        (self._directory / name).unlink(missing_ok=True)
        names.remove(name)
        self._write(names)
        logger.debug(f"Removed uploaded file '{name}'.")

    def _write(self, names: list[str]) -> None:
        try:
            with self._index.open("w") as output:
                yaml.dump(names, output, Dumper=Dumper, default_flow_style=False)
        except OSError as e:
            raise RJobError(f"Could not write the uploads index '{self._index}': {e}.") from e
