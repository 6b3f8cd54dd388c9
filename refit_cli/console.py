"""Console helpers for refit_cli."""

from __future__ import annotations

from typing import Optional

import typer

STATUS_COLOR = typer.colors.GREEN
ERROR_COLOR = typer.colors.RED
WARNING_COLOR = typer.colors.YELLOW


def log(message: str) -> None:
    typer.echo(f"[refit_cli] {message}")


def log_error(message: str) -> None:
    typer.echo(f"[refit_cli] {message}", err=True)


def log_status(message: str, color: Optional[str] = STATUS_COLOR, *, err: bool = False) -> None:
    """Print a pipeline status block (may span several lines)."""
    typer.secho(message, fg=color, err=err)
