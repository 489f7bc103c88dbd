# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import sys
from pathlib import Path
from typing import NoReturn

import click
from rich.console import Console

from rjob_lib.core.click_format import GNUHelpColorsCommand
from rjob_lib.core.common import yes_or_no_prompt
from rjob_lib.core.config import CFG
from rjob_lib.core.error import RJobError
from rjob_lib.core.logger import get_logger

from .presenter import UploadsPresenter
from .registry import UploadRegistry

logger = get_logger(__name__)


@click.command(
    short_help="Upload files staged with every job.",
    help=f"""Upload FILES to the controller.

Uploaded files are sent to the remote node together with every job submitted by `{CFG.binary_name} run`
and copied next to the job script before the job starts. A previously uploaded file with the same name is replaced.""",
    cls=GNUHelpColorsCommand,
    help_options_color="bright_blue",
)
@click.argument(
    "files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
def upload(files: tuple[Path, ...]) -> NoReturn:
    try:
        registry = UploadRegistry()
        for file in files:
            name = registry.add(file)
            logger.info(f"Uploaded '{name}'.")
        sys.exit(0)
    except RJobError as e:
        logger.error(e)
        sys.exit(e.exit_code)
    except Exception as e:
        logger.critical(e, exc_info=True, stack_info=True)
        sys.exit(CFG.exit_codes.unexpected_error)


@click.command(
    short_help="List uploaded files.",
    help="List the files uploaded to the controller.",
    cls=GNUHelpColorsCommand,
    help_options_color="bright_blue",
)
def uploads() -> NoReturn:
    try:
        paths = UploadRegistry().paths()
        if not paths:
            logger.info("No files have been uploaded.")
            sys.exit(0)

        console = Console(record=False, markup=False)
        console.print(UploadsPresenter(paths).createUploadsPanel())
        sys.exit(0)
    except RJobError as e:
        logger.error(e)
        sys.exit(e.exit_code)
    except Exception as e:
        logger.critical(e, exc_info=True, stack_info=True)
        sys.exit(CFG.exit_codes.unexpected_error)


@click.command(
    short_help="Delete uploaded files.",
    help="""Delete the uploaded files called NAMES.

You will be asked for confirmation unless the `--yes` flag is specified.""",
    cls=GNUHelpColorsCommand,
    help_options_color="bright_blue",
)
@click.argument("names", nargs=-1, required=True)
@click.option(
    "-y", "--yes", is_flag=True, help="Delete the files without confirmation."
)
def forget(names: tuple[str, ...], yes: bool) -> NoReturn:
    try:
        registry = UploadRegistry()

        # fail before prompting if any of the files is unknown
        known = registry.names()
        if unknown := [n for n in names if n not in known]:
            raise RJobError(f"No uploaded file named '{', '.join(unknown)}'.")

        if yes or yes_or_no_prompt(f"Do you want to delete {len(names)} uploaded file(s)?"):
            for name in names:
                registry.remove(name)
                logger.info(f"Deleted '{name}'.")
        else:
            logger.info("Operation aborted.")
        sys.exit(0)
    except RJobError as e:
        logger.error(e)
        sys.exit(e.exit_code)
    except Exception as e:
        logger.critical(e, exc_info=True, stack_info=True)
        sys.exit(CFG.exit_codes.unexpected_error)
