"""
CLI entry point using Typer.

Provides commands for the set log and its analytics:
- add-exercise / list-exercises / rename-exercise / delete-exercise
- log-set / repeat-set / edit-set / toggle-warm-up / delete-set / rest-expired
- history: Sets grouped by day
- status: Today's progress, personal record and best day
- targets: Progressive-overload suggestions
- tags: Today's split across exercise tags
"""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer

from .app import app, state
from .commands import analysis, exercises, sets  # noqa: F401  (registers commands)


@app.callback()
def main_callback(
    data_dir: Annotated[
        Optional[Path],
        typer.Option(
            "--data-dir",
            "-d",
            help="Directory for exercises and sets (default: $LIFT_ANALYTICS_HOME or ~/.lift-analytics)",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log engine and store activity"),
    ] = False,
) -> None:
    """
    Workout set log with personal records, progress and overload targets.
    """
    state["data_dir"] = data_dir
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


if __name__ == "__main__":
    app()
