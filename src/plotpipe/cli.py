"""CLI entry point for plotpipe."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import NoReturn

import typer

from plotpipe.config import PlotpipeConfig
from plotpipe.errors import PlotpipeError
from plotpipe.plotter import Plotter

app = typer.Typer(
    name="plotpipe",
    help="Drive gnuplot sessions over pipes and replay their scripts.",
    no_args_is_help=True,
)


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _make_plotter(config_file: str | None, command: str | None) -> Plotter:
    config = PlotpipeConfig.load(config_file)
    if command:
        config.command = command
    return Plotter(config)


def _fail(e: PlotpipeError) -> NoReturn:
    typer.echo(f"Error: {e}", err=True)
    raise typer.Exit(1)


_verbose_option = typer.Option(False, "--verbose", "-v", help="Enable debug logging.")
_config_option = typer.Option(None, "--config", "-c", help="Path to config JSON file.")
_command_option = typer.Option(
    None, "--gnuplot", "-g", help="Command line used to start gnuplot."
)


@app.command()
def send(
    text: str = typer.Argument(help="Text to send to gnuplot."),
    capture: bool = typer.Option(
        False, "--capture", help="Wait for the reply and print it."
    ),
    verbose: bool = _verbose_option,
    config_file: str | None = _config_option,
    command: str | None = _command_option,
) -> None:
    """Send raw text to a fresh gnuplot session."""
    setup_logging(verbose)
    with _make_plotter(config_file, command) as gp:
        try:
            reply = gp.send(text, capture=capture)
        except PlotpipeError as e:
            _fail(e)
        for line in reply or []:
            typer.echo(line)


@app.command()
def load(
    script: str = typer.Argument(help="Path to a gnuplot script."),
    verbose: bool = _verbose_option,
    config_file: str | None = _config_option,
    command: str | None = _command_option,
) -> None:
    """Run a script with gnuplot's own ``load`` and print its output."""
    setup_logging(verbose)
    if not Path(script).is_file():
        typer.echo(f"Error: Script not found: {script}", err=True)
        raise typer.Exit(1)

    with _make_plotter(config_file, command) as gp:
        try:
            reply = gp.load(str(Path(script).resolve()))
        except PlotpipeError as e:
            _fail(e)
        for line in reply:
            typer.echo(line)


@app.command()
def terminals(
    verbose: bool = _verbose_option,
    config_file: str | None = _config_option,
    command: str | None = _command_option,
) -> None:
    """Print the current and the available gnuplot terminals."""
    setup_logging(verbose)
    with _make_plotter(config_file, command) as gp:
        try:
            typer.echo(f"Current terminal: {gp.terminal()}")
            typer.echo(f"Available terminals: {gp.terminals()}")
        except PlotpipeError as e:
            _fail(e)


@app.command()
def replay(
    script: str = typer.Argument(help="Path to a gnuplot script."),
    output: str | None = typer.Option(
        None, "--output", "-o", help="Also save the reconstructed script here."
    ),
    verbose: bool = _verbose_option,
    config_file: str | None = _config_option,
    command: str | None = _command_option,
) -> None:
    """Feed a script line by line through a recorded session.

    Every non-blank, non-comment line becomes a session command. The
    reconstruction is printed and, with ``--output``, saved to a file.
    """
    setup_logging(verbose)
    path = Path(script)
    if not path.is_file():
        typer.echo(f"Error: Script not found: {script}", err=True)
        raise typer.Exit(1)

    with _make_plotter(config_file, command) as gp:
        try:
            for line in path.read_text().splitlines():
                if line.strip() and not line.lstrip().startswith("#"):
                    gp.cmd(line)

            if output:
                with open(output, "wb") as f:
                    reconstructed = gp.dump(sink=f)
                typer.echo(f"Saved to: {output}")
            else:
                reconstructed = gp.dump(full=True, dry=True)
            # Round-trip so gnuplot has consumed everything before exit
            gp.send("", capture=True)
        except PlotpipeError as e:
            _fail(e)

    typer.echo(reconstructed)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
