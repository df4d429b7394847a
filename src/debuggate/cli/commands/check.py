from pathlib import Path
from typing import List, Optional

import typer

from debuggate.cli.factories import make_app
from debuggate.common import bus, needle
from debuggate.exceptions import ConfigError
from debuggate.needle import L


def check_command(
    paths: Optional[List[Path]] = typer.Argument(
        None, help="Unit files or directories. Defaults to tool.debuggate.scan_paths."
    ),
    marker: Optional[List[str]] = typer.Option(
        None, "--marker", "-m", help=needle.get(L.cli.option.marker.help)
    ),
    jobs: Optional[int] = typer.Option(
        None, "--jobs", "-j", min=1, help=needle.get(L.cli.option.jobs.help)
    ),
):
    try:
        app_instance = make_app()
    except ConfigError as e:
        bus.error(L.cli.error.config, error=e)
        raise typer.Exit(code=2)

    success = app_instance.run_check(paths=paths, markers=marker, jobs=jobs)
    if not success:
        raise typer.Exit(code=1)
