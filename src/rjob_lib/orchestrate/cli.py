# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import sys
from datetime import datetime
from pathlib import Path
from typing import NoReturn

import click
from click_option_group import optgroup

from rjob_lib.clouds.cloud import find_cloud
from rjob_lib.core.cancellation import Cancellation
from rjob_lib.core.click_format import GNUHelpColorsCommand
from rjob_lib.core.config import CFG
from rjob_lib.core.error import RJobError
from rjob_lib.core.logger import get_logger
from rjob_lib.properties.job_spec import JobSpec
from rjob_lib.remote.session import RemoteSession
from rjob_lib.uploads.registry import UploadRegistry

from .orchestrator import Orchestrator

logger = get_logger(__name__)


@click.command(
    short_help="Run a job on the batch system and wait for it.",
    help=f"""Run the job described by JOB_FILE on the batch system of a remote node.

The job is staged onto the node, submitted, and polled until it finishes while its output is printed.
Requested output files are then downloaded and all files staged for the job are removed.
Interrupting `{CFG.binary_name} run` kills the job.

The node and its directories are taken from the first configured cloud able to provision LABEL,
unless they are specified explicitly.""",
    cls=GNUHelpColorsCommand,
    help_options_color="bright_blue",
)
@click.argument(
    "job_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    metavar=click.style("JOB_FILE", fg="green"),
)
@optgroup.group(f"{click.style('Remote node', fg='yellow')}")
@optgroup.option("--label", type=str, default=None, help="Label required by the job.")
@optgroup.option("--host", type=str, default=None, help="Hostname of the remote node.")
@optgroup.option(
    "--work-dir",
    type=str,
    default=None,
    help="Working directory on the remote node. Its content is deleted after the job finishes. If not set, a directory created for the run in the login directory is used and removed afterwards.",
)
@optgroup.option(
    "--exec-dir",
    type=str,
    default=None,
    help="Directory on the remote node from which the job is submitted.",
)
@optgroup.option(
    "--batch-system", type=str, default=None, help="Name of the batch system to use."
)
@optgroup.group(f"{click.style('Job settings', fg='yellow')}")
@optgroup.option(
    "--interval",
    type=click.IntRange(min=1),
    default=None,
    help="Interval between status checks in minutes.",
)
@optgroup.option(
    "--notify/--no-notify",
    default=None,
    help="Ask the batch system to send an email when the job completes.",
)
@optgroup.option(
    "--run-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Local directory for the files of this run. Defaults to a new directory in the current directory.",
)
def run(
    job_file: Path,
    label: str | None,
    host: str | None,
    work_dir: str | None,
    exec_dir: str | None,
    run_dir: Path | None,
    batch_system: str | None,
    interval: int | None,
    notify: bool | None,
) -> NoReturn:
    try:
        spec = JobSpec.fromFile(job_file).withOverrides(interval=interval, notify=notify)

        cloud = find_cloud(label)
        host = host or (cloud.host if cloud else None)
        work_dir = work_dir or (cloud.work_dir if cloud else None)
        exec_dir = exec_dir or (cloud.exec_dir if cloud else None)
        run_dir = run_dir or Path.cwd() / f"rjob_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
        run_dir.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Run directory: '{run_dir}'.")

        session = RemoteSession(
            host,
            Path(work_dir) if work_dir else None,
            run_dir,
            Path(exec_dir) if exec_dir else None,
        )

        cancellation = Cancellation()
        cancellation.installSignalHandlers()

        orchestrator = Orchestrator(
            spec,
            session,
            label=label,
            batch_system=batch_system,
            uploads=UploadRegistry(),
            cancellation=cancellation,
        )

        sys.exit(0 if orchestrator.run() else CFG.exit_codes.job_failed)
    except RJobError as e:
        logger.error(e)
        sys.exit(e.exit_code)
    except Exception as e:
        logger.critical(e, exc_info=True, stack_info=True)
        sys.exit(CFG.exit_codes.unexpected_error)
