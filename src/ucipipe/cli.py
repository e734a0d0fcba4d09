"""Command-line interface for ucipipe."""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ucipipe import __version__
from ucipipe.engine import UCIEngine
from ucipipe.errors import UCIEngineError
from ucipipe.utils.config import EngineConfig, load_engine_config
from ucipipe.utils.logging import setup_logging

app = typer.Typer(
    name="ucipipe",
    help="ucipipe: drive UCI engines over pipes",
    add_completion=False,
)
console = Console()


@app.command()
def version() -> None:
    """Print version information."""
    console.print(f"[bold blue]ucipipe[/bold blue] v{__version__}")


@app.command()
def probe(
    engine: str | None = typer.Argument(None, help="Path to the engine executable (or set engine.path in --config)"),
    args: list[str] | None = typer.Argument(None, help="Arguments passed to the engine"),
    timeout: float | None = typer.Option(None, "--timeout", "-t", help="Handshake timeout in seconds"),
    config: Path | None = typer.Option(None, "--config", "-c", help="YAML engine config"),
    ready: bool = typer.Option(True, "--ready/--no-ready", help="Send isready after the handshake"),
    log_level: str = typer.Option("WARNING", "--log-level", help="Log level for stderr"),
) -> None:
    """Launch an engine, perform the UCI handshake and list what it reports."""
    setup_logging(level=log_level)

    engine_config = load_engine_config(config) if config else EngineConfig()
    binary = engine or engine_config.path
    if not binary:
        console.print("[red]No engine given[/red]")
        raise typer.Exit(code=2)
    engine_args = args or engine_config.args

    uci = UCIEngine(binary, engine_args, timeout=timeout, config=engine_config)
    try:
        uci.start()
        if ready:
            uci.is_ready()
    except UCIEngineError as e:
        console.print(f"[red]Engine failed ({e.kind.value})[/red]: {e}")
        raise typer.Exit(code=1) from e

    try:
        table = Table(title=f"{uci.name} (PID {uci.handle.pid})")
        table.add_column("Field", style="cyan")
        table.add_column("Value")
        table.add_row("name", uci.engine_name or "-")
        table.add_row("author", uci.author or "-")
        for line in uci.advertised_options:
            table.add_row("option", line[len("option ") :])
        console.print(table)
    finally:
        uci.close()


if __name__ == "__main__":
    app()
