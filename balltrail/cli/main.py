"""Main CLI entry point for balltrail."""

import logging

import typer
from rich.console import Console

from balltrail.cli.commands.reconstruct import reconstruct as reconstruct_command

app = typer.Typer(
    name="balltrail",
    help="Ball trajectory reconstruction CLI",
    no_args_is_help=True,
)

console = Console()

# Register commands
app.command(name="reconstruct")(reconstruct_command)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
) -> None:
    """balltrail - Ball trajectory reconstruction CLI."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
    )
    if verbose:
        console.print("[dim]Verbose mode enabled[/dim]")


if __name__ == "__main__":
    app()
