# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Configuration system for rjob.

This module defines dataclasses representing all configurable aspects of rjob,
including environment variables, timeouts, names of the transient files used
to communicate with the remote node, storage locations on the controller,
batch-system options, registered clouds, and global defaults.

The `Config` class loads user configuration from a TOML file (if available)
and provides a globally accessible `CFG` instance.
"""

import os
import tomllib
import typing
from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any, Self


@dataclass
class EnvironmentVariables:
    """Environment variable names used by rjob."""

    # Enables rjob debug mode.
    debug_mode: str = "RJOB_DEBUG"
    # Name of the batch system to use.
    batch_system: str = "RJOB_BATCH_SYSTEM"
    # Explicit path to the rjob configuration file.
    config: str = "RJOB_CONFIG"


@dataclass
class TimeoutSettings:
    """Timeout settings in seconds."""

    # Timeout for SSH in seconds.
    ssh: int = 60
    # Timeout for rsync in seconds.
    rsync: int = 600


@dataclass
class ChannelSettings:
    """Names of the transient files exchanged with the remote node."""

    # File shuttling the output of single-shot commands back to the controller.
    communication_file: str = "output"
    # File holding the materialized output of the running job.
    progress_file: str = "jobProgress"
    # Prefix of the staged job scripts.
    script_prefix: str = "JOB-"


@dataclass
class PathSettings:
    """Storage locations on the controller."""

    # Shared per-installation area for staged job scripts and per-run input copies.
    shared_area: Path = field(
        default_factory=lambda: Path(
            os.getenv("XDG_DATA_HOME", Path.home() / ".local" / "share")
        )
        / "rjob"
        / "shared"
    )
    # Directory holding previously uploaded files.
    uploads_dir: Path = field(
        default_factory=lambda: Path(
            os.getenv("XDG_DATA_HOME", Path.home() / ".local" / "share")
        )
        / "rjob"
        / "uploads"
    )
    # Name of the index file of the uploads directory.
    uploads_index: str = "uploads.yaml"


@dataclass
class PollingSettings:
    """Settings for polling the batch system."""

    # Default interval (in minutes) between successive status checks.
    interval: int = 1
    # Number of seconds in one interval unit.
    seconds_per_minute: int = 60


@dataclass
class LSFOptions:
    """Options associated with LSF."""

    # Pattern of the file collecting standard output of the job (%J is the job id).
    output_pattern: str = "%J.out"
    # Pattern of the file collecting error output of the job (%J is the job id).
    error_pattern: str = "%J.err"


@dataclass
class PresenterSettings:
    """Settings for printing job output."""

    # Title of the rule opening a chunk of job output.
    output_start_title: str = "JOB OUTPUT START"
    # Title of the rule closing a chunk of job output.
    output_end_title: str = "JOB OUTPUT END"
    # Style of the rules.
    rule_style: str = "white"
    # Style used for table headers.
    headers_style: str = "default bold"
    # Style used for table values.
    main_style: str = "white"
    # Style used for the border of the uploads table.
    border_style: str = "white"


@dataclass
class DateFormats:
    """Date and time format strings."""

    # Standard date format used by rjob.
    standard: str = "%Y-%m-%d %H:%M:%S"


@dataclass
class ExitCodes:
    """Exit codes used for various errors."""

    # Returned when the job failed or was aborted.
    job_failed: int = 1
    # Default error code for failures of rjob commands.
    default: int = 91
    # Returned on an unexpected or unhandled error.
    unexpected_error: int = 99


@dataclass
class CloudSettings:
    """A capability provider able to run jobs with matching labels."""

    # Name of the cloud.
    name: str = "default"
    # Labels the cloud can provision. Empty means any label.
    labels: list[str] = field(default_factory=list)
    # Queue used when submitting jobs through this cloud.
    queue_type: str | None = None
    # Name of the batch system available on the cloud.
    batch_system: str | None = None
    # Remote execution node. None means the local machine.
    host: str | None = None
    # Working directory on the remote node.
    work_dir: str | None = None
    # Directory on the remote node from which jobs are submitted.
    exec_dir: str | None = None


@dataclass
class Config:
    """Main configuration for rjob."""

    env_vars: EnvironmentVariables = field(default_factory=EnvironmentVariables)
    timeouts: TimeoutSettings = field(default_factory=TimeoutSettings)
    channels: ChannelSettings = field(default_factory=ChannelSettings)
    paths: PathSettings = field(default_factory=PathSettings)
    polling: PollingSettings = field(default_factory=PollingSettings)
    lsf_options: LSFOptions = field(default_factory=LSFOptions)
    presenter: PresenterSettings = field(default_factory=PresenterSettings)
    date_formats: DateFormats = field(default_factory=DateFormats)
    exit_codes: ExitCodes = field(default_factory=ExitCodes)
    clouds: list[CloudSettings] = field(default_factory=list)

    # Name of the rjob binary.
    binary_name: str = "rjob"

    @classmethod
    def load(cls, config_path: Path | None = None) -> Self:
        """
        Load configuration from TOML file or use defaults.

        Args:
            config_path: Explicit path to config file. If None, searches standard locations.

        Returns:
            Config instance with loaded or default values.
        """
        if config_path is None:
            config_path = Config._get_config_path()

        try:
            if config_path and config_path.exists():
                with config_path.open("rb") as f:
                    config_data = tomllib.load(f)
                return _dict_to_dataclass(cls, config_data)
        except Exception as e:
            raise ValueError(f"Could not read rjob config '{config_path}': {e}.")

        # no config found - use defaults
        return cls()

    @staticmethod
    def _get_config_path() -> Path | None:
        """
        Search for config file in standard locations (XDG compliant).
        Returns the first existing config file, or None.
        """
        config_locations: list[Path | None] = [
            # 1. Explicit environment variable (highest priority)
            Path(env_path) if (env_path := os.getenv("RJOB_CONFIG")) else None,
            # 2. Current working directory (for development/override)
            Path.cwd() / "rjob_config.toml",
            # 3. XDG config home (standard user config location)
            Path(os.getenv("XDG_CONFIG_HOME", Path.home() / ".config"))
            / "rjob"
            / "config.toml",
        ]

        for path in config_locations:
            if path and path.is_file():
                return path

        return None


def _dict_to_dataclass(cls, data: dict[str, Any]):
    """
    Recursively convert a dictionary to a dataclass instance.
    Handles nested dataclasses and lists of dataclasses.
    """
    if not is_dataclass(cls):
        return data

    hints = typing.get_type_hints(cls)
    field_values = {}
    for field_info in fields(cls):
        field_name = field_info.name
        field_type = hints.get(field_name, field_info.type)

        if field_name not in data:
            continue

        value = data[field_name]
        if is_dataclass(field_type) and isinstance(value, dict):
            field_values[field_name] = _dict_to_dataclass(field_type, value)
        elif (item_type := _list_item_type(field_type)) and isinstance(value, list):
            field_values[field_name] = [
                _dict_to_dataclass(item_type, item) if isinstance(item, dict) else item
                for item in value
            ]
        elif field_type is Path and isinstance(value, str):
            field_values[field_name] = Path(value).expanduser()
        else:
            field_values[field_name] = value

    return cls(**field_values)


def _list_item_type(field_type: Any) -> type | None:
    """
    Return the dataclass stored in a `list[...]` annotation, or None.
    """
    if typing.get_origin(field_type) is not list:
        return None

    args = typing.get_args(field_type)
    if args and isinstance(args[0], type) and is_dataclass(args[0]):
        return args[0]

    return None



# Global configuration for rjob.
CFG = Config.load()
