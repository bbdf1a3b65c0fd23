"""Main CLI entrypoint using Typer."""

from __future__ import annotations

import logging

import typer

from statgate import __version__
from statgate.cli.stats import stats_app

app = typer.Typer(
    name="statgate",
    help="Normality-gated statistical test selection.",
    add_completion=False,
)

app.add_typer(stats_app, name="stats")

# Logging setup
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"statgate {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
):
    """statgate: automatic parametric / nonparametric hypothesis testing."""
    pass


if __name__ == "__main__":
    app()
