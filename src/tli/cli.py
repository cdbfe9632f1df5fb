"""Typer-based CLI for tli."""

import logging
import os
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .capture import InteractiveCapture
from .config import CONFIG_ENV_VAR, TliConfig, default_config_path, load_config, save_config
from .delivery import DEFAULT_MAX_ATTEMPTS, DeliveryClient, SmtpTransport
from .errors import ConfigError, CorruptHistoryError, PersistenceError
from .history import HistoryStore, dump_record
from .models.workflow import WorkflowState
from .paths import TliPaths
from .splitter import MAX_SEGMENT_SIZE
from .workflow import NoteWorkflow

app = typer.Typer(
    name="tli",
    help=(
        "tli - send TODOs to the Things 3 inbox from a Linux terminal.\n\n"
        "Every TODO is saved to ~/.tli_history before it is sent, and long "
        "TODOs are split so Things does not silently truncate them."
    ),
    add_completion=False,
)

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging once for the whole process."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="tli: %(asctime)s %(message)s",
        datefmt="%Y/%m/%d %H:%M:%S",
    )


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
):
    setup_logging(verbose)


def _resolve_paths() -> TliPaths:
    try:
        return TliPaths.from_env()
    except RuntimeError as e:
        console.print(f"[red]Error: cannot find home directory: {e}[/red]")
        raise typer.Exit(code=1)


@app.command()
def init():
    """Initialize tli settings.

    Asks for the SMTP account and the Things inbox address, then writes
    them to ~/.tli_config (or to $TLI_CONF when set).
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    config_path = Path(override).expanduser() if override else default_config_path()

    try:
        smtp_host = typer.prompt("SMTP Host Address")
        smtp_port = typer.prompt("SMTP Host Port", type=int, default=587)
        avatar = typer.prompt("Avatar (Your Name)")
        email_addr = typer.prompt("Email (Your Email)")
        username = typer.prompt("Username (Your Email's Username)")
        password = typer.prompt("Password (Your Email's Password)", hide_input=True)
        things_addr = typer.prompt("Things 3 Email Address")
    except typer.Abort:
        console.print()
        console.print("[yellow]init was canceled.[/yellow]")
        raise typer.Exit(code=0)

    try:
        config = TliConfig(
            smtp_host=smtp_host,
            smtp_port=smtp_port,
            avatar=avatar,
            email_addr=email_addr,
            username=username,
            password=password,
            things_addr=things_addr,
        )
    except ValidationError as e:
        console.print(f"[red]Error: invalid settings:[/red]\n{escape(str(e))}")
        raise typer.Exit(code=1)

    try:
        save_config(config, config_path)
    except OSError as e:
        console.print(f"[red]Error: cannot save your settings: {e}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]+[/green] Created config: {config_path}")
    console.print("[bold green]You can start using tli now :)[/bold green]")


@app.command("log")
def log_cmd(
    n: int = typer.Argument(
        0,
        help="Number of recent TODOs to print (0 prints all)",
    ),
    table: bool = typer.Option(
        False,
        "--table",
        help="Show a compact table instead of YAML documents",
    ),
):
    """Print saved TODOs, newest first."""
    if n < 0:
        console.print("[red]Error: invalid argument, please input a non-negative number.[/red]")
        raise typer.Exit(code=1)

    paths = _resolve_paths()
    history = HistoryStore(paths.history_file)

    try:
        records = history.read_tail(n)
    except CorruptHistoryError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)
    except OSError as e:
        console.print(f"[red]Error: cannot read {paths.history_file}: {e}[/red]")
        raise typer.Exit(code=1)

    if not records:
        console.print(
            f"[dim]No TODOs in {paths.history_file}, try store something first.[/dim]",
            soft_wrap=True,
        )
        return

    if table:
        out = Table(title=f"Last {len(records)} TODO(s)")
        out.add_column("Time (UTC)", style="cyan", no_wrap=True)
        out.add_column("Title", style="magenta")
        out.add_column("Body", style="dim")

        for record in records:
            body = record.body.replace("\n", " / ")
            if len(body) > 60:
                body = body[:57] + "..."
            out.add_row(record.time.strftime("%Y-%m-%d %H:%M:%S"), record.title, body)

        console.print(out)
        return

    for record in records:
        console.print(dump_record(record), end="", markup=False, highlight=False, emoji=False)


@app.command()
def todo(
    title: list[str] = typer.Argument(..., help="TODO title (remaining words are joined)"),
    max_attempts: int = typer.Option(
        DEFAULT_MAX_ATTEMPTS,
        "--max-attempts",
        help="Send attempts per email before giving up",
    ),
    retry_delay: float = typer.Option(
        0.0,
        "--retry-delay",
        help="Seconds to wait between send attempts",
    ),
    max_size: int = typer.Option(
        MAX_SEGMENT_SIZE,
        "--max-size",
        help="Maximum body bytes per email; longer TODOs are split",
    ),
):
    """Create a TODO and send it to the Things inbox.

    The body is read line by line; an empty line finishes it.
    The TODO is saved to history before it is sent.
    """
    if max_attempts < 1 or max_size < 1:
        console.print("[red]Error: --max-attempts and --max-size must be positive[/red]")
        raise typer.Exit(code=1)

    note_title = " ".join(title).strip()
    if not note_title:
        console.print("[red]Error: the TODO title must not be empty[/red]")
        raise typer.Exit(code=1)

    paths = _resolve_paths()
    try:
        config = load_config(paths.config_file)
    except ConfigError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    workflow = NoteWorkflow(
        capture=InteractiveCapture(console=console),
        history=HistoryStore(paths.history_file),
        client=DeliveryClient(
            SmtpTransport(config),
            config,
            max_attempts=max_attempts,
            retry_delay=retry_delay,
        ),
        max_segment_size=max_size,
    )

    try:
        result = workflow.run(note_title)
    except PersistenceError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    if result.state is WorkflowState.CANCELED:
        console.print()
        console.print("[yellow]TODO is canceled.[/yellow]")
        return

    for outcome in result.report.failed:
        console.print(
            f"[yellow]Warning: could not send '{escape(outcome.title)}' after "
            f"{outcome.attempts} attempt(s): {escape(outcome.error or 'unknown error')}[/yellow]"
        )
    if result.report.failed:
        console.print(f"[dim]The TODO is saved in {paths.history_file}[/dim]")
    console.print("[bold green]DONE![/bold green]")


@app.command()
def version():
    """Show tli version."""
    from . import __version__
    console.print(f"tli v{__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
