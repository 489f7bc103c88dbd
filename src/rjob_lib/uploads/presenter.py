# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from pathlib import Path

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from rjob_lib.core.config import CFG


class UploadsPresenter:
    """
    Presents the files uploaded to the controller.
    """

    def __init__(self, paths: list[Path]):
        self._paths = paths

    def createUploadsPanel(self) -> Panel:
        """
        Create a Rich panel listing the uploaded files with their sizes.
        """
        table = Table(show_header=True, box=None, padding=(0, 1))
        table.add_column(
            header=Text("Name", justify="center", style=CFG.presenter.headers_style),
            justify="left",
        )
        table.add_column(
            header=Text("Size", justify="center", style=CFG.presenter.headers_style),
            justify="right",
        )

        for path in self._paths:
            size = f"{path.stat().st_size} B" if path.is_file() else "missing"
            table.add_row(
                Text(path.name, style=CFG.presenter.main_style),
                Text(size, style=CFG.presenter.main_style),
            )

        return Panel(
            table,
            title=Text("UPLOADED FILES", style="bold", justify="center"),
            border_style=CFG.presenter.border_style,
            padding=(1, 1),
            expand=False,
        )
