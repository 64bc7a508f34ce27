"""Command-line interface for dotlink."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Iterable

import tomli_w
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .config import DEFAULT_BACKUP_ROOT, DEFAULT_CONFIG_FILENAME, ConfigError, load_config
from .engine import Reconciler, RunReport
from .errors import DotlinkError, PlanningError
from .models import Action, ActionKind, Category, LineStatus, PathKind, VerificationReport
from .planner import Plan

app = typer.Typer(help="Keep system configuration paths linked to their repository copies")
console = Console()

STATUS_STYLES = {
    LineStatus.OK: "green",
    LineStatus.ACTION: "yellow",
    LineStatus.ERROR: "red",
    LineStatus.INFO: "cyan",
}

ACTION_LABELS = {
    ActionKind.MOVE_THEN_LINK: "Backed up, moved, linked",
    ActionKind.CREATE_LINK: "Linked",
    ActionKind.RELINK_FIX: "Relinked (old target logged)",
    ActionKind.BACKUP_REMOVE_LINK: "Backed up, replaced with link",
}

# Paths the macOS git setup keeps linked.
STARTER_LINKS: list[dict[str, object]] = [
    {"system": "~/.gitconfig", "repo": "configs/personal/.gitconfig", "category": Category.IDENTITY_CONFIG},
    {
        "system": "~/.gitconfig-personal",
        "repo": "configs/personal/.gitconfig-personal",
        "category": Category.IDENTITY_CONFIG,
    },
    {"system": "~/.gitconfig-work", "repo": "configs/personal/.gitconfig-work", "category": Category.IDENTITY_CONFIG},
    {
        "system": "~/.ssh/config",
        "repo": "configs/personal/ssh-config",
        "category": Category.IDENTITY_CONFIG,
        "parent_mode": 0o700,
    },
    {
        "system": "~/.ssh/load-github-keys.sh",
        "repo": "scripts/load-github-keys.sh",
        "category": Category.IDENTITY_CONFIG,
        "parent_mode": 0o700,
    },
    {
        "system": "~/.gitattributes_global",
        "repo": "configs/shared/.gitattributes_global",
        "category": Category.SHARED_CONFIG,
    },
    {
        "system": "~/.githooks",
        "repo": "configs/shared/githooks",
        "kind": PathKind.DIRECTORY,
        "category": Category.SHARED_CONFIG,
    },
    {
        "system": "~/.local/bin/nbstripout-safe",
        "repo": "scripts/shared/nbstripout-safe",
        "category": Category.EXECUTABLE_SCRIPT,
    },
]


def _load_reconciler(config: Path | None) -> Reconciler:
    config_obj = load_config(config)
    return Reconciler(config_obj)


def _handle_error(exc: Exception) -> None:
    if isinstance(exc, PermissionError):
        console.print("[red]Permission denied.[/red] Re-run the command with elevated privileges (e.g. `sudo`).")
        raise typer.Exit(code=1)
    if isinstance(exc, OSError):
        console.print(f"[red]ERROR: {escape(str(exc))}[/red]", soft_wrap=True)
        raise typer.Exit(code=1)
    if isinstance(exc, ConfigError):
        message = str(exc)
        console.print(f"[red]{escape(message)}[/red]")
        if "does not exist" in message:
            console.print("[yellow]Use 'dotlink init --config <path>' to create a configuration file.[/yellow]")
        elif "Expected to find" in message:
            console.print(
                "[yellow]Make sure you pointed to the directory containing the config file, or to the file itself.[/yellow]"
            )
        raise typer.Exit(code=1)
    if isinstance(exc, PlanningError):
        console.print()
        for error in exc.errors:
            console.print(f"[red]ERROR: {escape(str(error))}[/red]")
        console.print("[red]Cannot proceed; nothing was changed.[/red]")
        raise typer.Exit(code=1)
    if isinstance(exc, DotlinkError):
        console.print(f"[red]ERROR: {escape(str(exc))}[/red]")
        raise typer.Exit(code=1)
    raise exc


def _status_line(status: LineStatus, name: str, message: str) -> None:
    style = STATUS_STYLES[status]
    console.print(f"  \\[[{style}]{status.value}[/{style}]] {escape(name)} - {escape(message)}", soft_wrap=True)


def _print_plan(plan: Plan) -> None:
    for line in plan.lines:
        _status_line(line.status, line.path.name, line.message)


def _print_applied(actions: Iterable[Action]) -> None:
    for action in actions:
        console.print(f"  [green]{ACTION_LABELS[action.kind]}[/green] {escape(action.path.name)}", soft_wrap=True)


def _print_verification(report: VerificationReport) -> None:
    for entry in report.entries:
        _status_line(entry.status, entry.path.name, entry.details)


def _print_summary(report: RunReport) -> None:
    console.print()
    if report.succeeded:
        console.print("[green]Setup complete![/green]")
    else:
        console.print("[red]Setup completed with errors - please review above.[/red]")
    if report.backup_dir is not None:
        console.print(f"[bright_black]Backup saved to: {escape(str(report.backup_dir))}[/bright_black]", soft_wrap=True)


def _format_status(plan: Plan) -> None:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Entry", overflow="fold")
    table.add_column("State", no_wrap=True)
    table.add_column("Action", no_wrap=True)
    table.add_column("Details", overflow="fold")

    for line in plan.lines:
        style = STATUS_STYLES[line.status]
        table.add_row(
            escape(str(line.path.system_path)),
            line.classification.state.value,
            f"[{style}]{line.action.kind.value if line.action else 'error'}[/{style}]",
            escape(line.message),
        )

    console.print(table)


def _render_init_config(*, repo_root: str, backup_root: str) -> str:
    links = []
    for raw in STARTER_LINKS:
        entry = {key: value.value if isinstance(value, (Category, PathKind)) else value for key, value in raw.items()}
        links.append(entry)

    data = {
        "settings": {"repo_root": repo_root, "backup_root": backup_root},
        "links": links,
    }

    buffer = io.StringIO()
    buffer.write("# dotlink configuration\n\n")
    buffer.write(tomli_w.dumps(data))
    return buffer.getvalue()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every inspection and filesystem change"),
) -> None:
    """Configure logging for all commands."""

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.command()
def init(
    config: Path = typer.Option(
        Path(DEFAULT_CONFIG_FILENAME),
        "--config",
        "-c",
        help="Path to write the configuration file",
        dir_okay=False,
        writable=True,
    ),
    repo_root: str = typer.Option(".", "--repo-root", help="Repository directory holding the canonical copies"),
    backup_root: str = typer.Option(DEFAULT_BACKUP_ROOT, "--backup-root", help="Where run backups are written"),
    force: bool = typer.Option(False, "--force", help="Overwrite existing config if present"),
) -> None:
    """Create a starter dotlink configuration file."""

    if config.exists() and not force:
        console.print(f"[red]Configuration '{escape(str(config))}' already exists. Use --force to overwrite.[/red]")
        raise typer.Exit(code=1)

    config.parent.mkdir(parents=True, exist_ok=True)
    config.write_text(_render_init_config(repo_root=repo_root, backup_root=backup_root))
    console.print(f"[green]Created '{escape(str(config))}'.[/green]")


@app.command()
def reconcile(
    config: Path | None = typer.Option(None, "--config", "-c", help="Path to dotlink.toml"),
) -> None:
    """Link every managed path to its repository copy, backing up anything replaced."""

    try:
        reconciler = _load_reconciler(config)
        console.print("[yellow]\\[Phase 1] Analyzing current state...[/yellow]")
        plan = reconciler.analyze()
        _print_plan(plan)

        if plan.ok and not plan.needs_action:
            console.print()
            console.print("[green]All links are already configured correctly! Nothing to do.[/green]")
            return

        report = reconciler.reconcile(plan)

        console.print()
        console.print(f"[yellow]\\[Phase 2] Executing {len(plan.actions)} action(s)...[/yellow]")
        _print_applied(report.applied)
        if report.failure is not None:
            console.print(f"[red]ERROR: {escape(str(report.failure))}[/red]", soft_wrap=True)

        console.print()
        console.print("[yellow]\\[Phase 3] Verification...[/yellow]")
        _print_verification(report.verification)
        _print_summary(report)

        if not report.succeeded:
            raise typer.Exit(code=1)
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)


@app.command()
def status(
    config: Path | None = typer.Option(None, "--config", "-c", help="Path to dotlink.toml"),
) -> None:
    """Show the classified state and planned action of every managed path."""

    try:
        plan = _load_reconciler(config).analyze()
        _format_status(plan)
        if not plan.ok:
            console.print(
                "[red]Some entries cannot be reconciled automatically. "
                "Resolve them before running 'dotlink reconcile'.[/red]"
            )
            raise typer.Exit(code=1)
        if plan.needs_action:
            console.print("[yellow]Some entries are out of sync. Run 'dotlink reconcile' to fix them.[/yellow]")
            raise typer.Exit(code=1)
        console.print("[green]All managed paths are linked.[/green]")
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)


@app.command()
def verify(
    config: Path | None = typer.Option(None, "--config", "-c", help="Path to dotlink.toml"),
) -> None:
    """Check every managed path is a link to its repository copy."""

    try:
        report = _load_reconciler(config).verify()
        _print_verification(report)
        if not report.passed:
            console.print("[red]Some managed paths are not linked correctly.[/red]")
            raise typer.Exit(code=1)
        console.print("[green]All managed paths are healthy.[/green]")
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)


def run() -> None:
    """Entry point used for console_script bindings."""

    app()
