# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import sys

import click
from click_help_colors import HelpColorsGroup

from rjob_lib.orchestrate.cli import run
from rjob_lib.uploads.cli import forget, upload, uploads

__version__ = "0.1.0"

# support both --help and -h
_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


@click.group(
    cls=HelpColorsGroup,
    help_options_color="bright_blue",
    invoke_without_command=True,
    context_settings=_CONTEXT_SETTINGS,
)
@click.option(
    "--version",
    is_flag=True,
    help="Print the current version of rjob and exit.",
)
@click.pass_context
def cli(ctx: click.Context, version: bool):
    """
    Run any rjob command.

    rjob runs jobs on a batch system of a remote node and streams their output.
    """
    if version:
        print(__version__)
        sys.exit(0)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        sys.exit(0)


cli.add_command(run)
cli.add_command(upload)
cli.add_command(uploads)
cli.add_command(forget)
