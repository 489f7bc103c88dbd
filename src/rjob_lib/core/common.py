# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
General utility functions for the rjob library.

This module provides helpers for YAML I/O, splitting comma-delimited file
lists, shell quoting of remote paths, and interactive user prompts.
"""

import shlex
from functools import lru_cache
from pathlib import PurePosixPath

import readchar
import yaml
from rich.live import Live
from rich.text import Text

from .logger import get_logger

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def load_yaml_dumper() -> type[yaml.Dumper]:
    """Return the fastest available YAML dumper (CDumper if possible)."""
    try:
        from yaml import CDumper as Dumper  # type: ignore[attr-defined]

        logger.debug("Loaded YAML CDumper.")
    except ImportError:
        from yaml import Dumper

        logger.debug("Loaded default YAML dumper.")
    return Dumper


@lru_cache(maxsize=1)
def load_yaml_loader() -> type[yaml.SafeLoader]:
    """Return the fastest available safe YAML loader (CSafeLoader if possible)."""
    try:
        from yaml import (
            CSafeLoader as SafeLoader,  # ty: ignore[possibly-missing-import]
        )

        logger.debug("Loaded YAML CLoader.")
    except ImportError:
        from yaml import SafeLoader

        logger.debug("Loaded default YAML loader.")

    return SafeLoader


def split_comma_list(string: str | None) -> list[str]:
    """
    Split a comma-delimited list into its stripped, non-empty items.

    Args:
        string (str | None): The comma-delimited string. If None or empty,
            an empty list is returned.

    Returns:
        list[str]: Items of the list in their original order.
    """
    if not string:
        return []

    return [item.strip() for item in string.split(",") if item.strip()]


def remote_basename(path: str) -> str:
    """
    Return the last component of a path as seen by the remote node.

    Args:
        path (str): A POSIX path, absolute or relative.

    Returns:
        str: The file name without the leading directories.
    """
    return PurePosixPath(path).name


def quote(path: object) -> str:
    """Quote a path or a word for safe use in a remote shell command."""
    return shlex.quote(str(path))


def yes_or_no_prompt(prompt: str) -> bool:
    """
    Display an interactive yes/no prompt to the user and return the selection.

    The prompt highlights the pressed key ('y' in green for yes, 'N' in red for no)
    and defaults to 'No' if the user presses any key other than 'y'.

    Args:
        prompt (str): The text to display as the question.

    Returns:
        bool: True if the user selects 'yes' (presses 'y'), False otherwise.
    """
    prompt = f"   {prompt} "
    question = Text("PROMPT", style="magenta") + Text(prompt, style="default")

    with Live(question + Text("[y/N]", style="bold default"), refresh_per_second=1) as live:
        key = readchar.readkey().lower()

        # highlight the pressed key
        if key == "y":
            choice = (
                Text("[", style="bold default")
                + Text("y", style="bold green")
                + Text("/N]", style="bold default")
            )
        else:
            choice = (
                Text("[y/", style="bold default")
                + Text("N", style="bold red")
                + Text("]", style="bold default")
            )

        live.update(question + choice)

    return key == "y"
