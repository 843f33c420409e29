"""Main CLI entry point for tinyvcs."""

import os
import socket
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel

from tinyvcs.constants import EXIT_USER_ERROR, TINYVCS_DIR
from tinyvcs.core import Repository, RepositoryConfig
from tinyvcs.errors import RepositoryNotFoundError, VcsError
from tinyvcs.logging_config import configure_logging

console = Console()
app = typer.Typer(
    name="tinyvcs",
    help="Minimal content-addressable version control",
    add_completion=False,
)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging",
    ),
) -> None:
    """Minimal content-addressable version control."""
    configure_logging("DEBUG" if verbose else None)


def _default_author() -> str:
    hostname = socket.gethostname()
    username = os.getenv("USER") or os.getenv("USERNAME") or "unknown"
    return f"{username}@{hostname}"


def _error(message: str) -> None:
    console.print(f"[bold red]Error:[/bold red] {message}", style="red")


def _open_repo() -> Repository:
    """Open the repository in the current directory or exit."""
    workspace_root = Path.cwd()
    try:
        return Repository.open(workspace_root, RepositoryConfig.from_env())
    except RepositoryNotFoundError:
        _error("Not a tinyvcs repository")
        console.print(
            f"  No {TINYVCS_DIR}/ directory found in {workspace_root}",
            style="dim",
        )
        console.print(
            "\nRun [bold]tinyvcs init[/bold] to initialize a repository",
            style="yellow",
        )
        raise typer.Exit(EXIT_USER_ERROR)


@app.command()
def version() -> None:
    """Show tinyvcs version."""
    from tinyvcs import __version__
    typer.echo(f"tinyvcs version {__version__}")


@app.command()
def init(
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress output except errors",
    ),
) -> None:
    """Initialize a tinyvcs repository in the current directory."""
    workspace_root = Path.cwd()
    existed = (workspace_root / TINYVCS_DIR).exists()

    try:
        repo = Repository.init(workspace_root, RepositoryConfig.from_env())
    except VcsError as e:
        _error(f"Failed to initialize repository: {e}")
        raise typer.Exit(EXIT_USER_ERROR)

    if quiet:
        return
    if existed:
        console.print(f"[yellow]tinyvcs repository already exists in {workspace_root}[/yellow]")
        return

    success_message = f"""[bold green]✓[/bold green] Initialized tinyvcs repository

[dim]Repository root:[/dim]  {repo.root}
[dim]Storage location:[/dim] {repo.vcs_dir}
[dim]Root commit:[/dim]      {repo.head_commit()}

[bold]Next steps:[/bold]
  1. Stage files: [cyan]tinyvcs add <paths>[/cyan]
  2. Commit them: [cyan]tinyvcs commit -m "message"[/cyan]
  3. Restore later: [cyan]tinyvcs checkout <commit>[/cyan]
"""
    console.print(Panel(success_message, border_style="green", title="tinyvcs Initialized"))


@app.command()
def add(
    paths: list[str] = typer.Argument(..., help="Files or directories to stage"),
) -> None:
    """Add files or directories to the staging index."""
    repo = _open_repo()

    failed = False
    for path in paths:
        try:
            object_id = repo.stage(path)
        except VcsError as e:
            console.print(f"  [red]x[/red] {path}: {e}")
            failed = True
            continue
        if object_id is None:
            console.print(f"  [dim]-[/dim] {path}  [dim](hidden, skipped)[/dim]")
        else:
            console.print(f"  [green]+[/green] {path}  [dim]{object_id[:8]}[/dim]")

    entries = repo.staged()
    console.print(f"\n[bold green]>[/bold green] Index holds {len(entries)} entries")

    if failed:
        raise typer.Exit(EXIT_USER_ERROR)


@app.command()
def commit(
    message: Optional[str] = typer.Option(
        None,
        "--message",
        "-m",
        help="Commit message (required)",
    ),
    author: Optional[str] = typer.Option(
        None,
        "--author",
        help="Override default author (format: name@host)",
    ),
) -> None:
    """Commit the staged index."""
    repo = _open_repo()

    if not message:
        _error("Commit message is required")
        console.print(
            "  Use [bold]-m \"your message\"[/bold] to provide a commit message",
            style="yellow",
        )
        raise typer.Exit(EXIT_USER_ERROR)

    author = author or _default_author()
    parent_id = repo.head_commit()

    try:
        commit_id = repo.commit(author, message)
    except VcsError as e:
        _error(str(e))
        raise typer.Exit(EXIT_USER_ERROR)

    console.print(f"[bold green]>[/bold green] Committed [bold cyan]{commit_id}[/bold cyan]")
    console.print(f"  [dim]Author:[/dim]  {author}")
    console.print(f"  [dim]Parent:[/dim]  {parent_id[:7] if parent_id else '(root commit)'}")
    console.print(f"\n  {message}")


@app.command()
def checkout(
    commit_id: str = typer.Argument(..., help="Commit fingerprint to restore"),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Do not ask before wiping the working directory",
    ),
) -> None:
    """Wipe the working directory and restore a commit."""
    repo = _open_repo()

    if not yes:
        typer.confirm(
            f"This deletes everything in {repo.root} except {TINYVCS_DIR}/. Continue?",
            abort=True,
        )

    try:
        repo.checkout(commit_id)
    except VcsError as e:
        _error(str(e))
        console.print(f"  Checkout stopped in state: {repo.checkout_engine.state.value}", style="dim")
        raise typer.Exit(EXIT_USER_ERROR)
    except ValueError as e:
        _error(str(e))
        raise typer.Exit(EXIT_USER_ERROR)

    console.print(f"[bold green]✓[/bold green] Checked out {commit_id[:7]}")


@app.command()
def log(
    max_count: Optional[int] = typer.Option(
        None,
        "--max-count",
        "-n",
        help="Limit number of commits shown",
    ),
) -> None:
    """Show the commit chain from HEAD back to the root commit."""
    repo = _open_repo()

    try:
        for count, entry in enumerate(repo.log()):
            if max_count is not None and count >= max_count:
                break
            console.print(f"[bold yellow]commit {entry.fingerprint}[/bold yellow]")
            console.print(f"Author: {entry.author}")
            console.print(f"Date:   {entry.date}")
            console.print(f"\n    {entry.message}\n")
    except VcsError as e:
        _error(str(e))
        raise typer.Exit(EXIT_USER_ERROR)


@app.command("cat-file")
def cat_file(
    object_id: str = typer.Argument(..., help="Object fingerprint"),
) -> None:
    """Print the raw content of a stored object."""
    repo = _open_repo()

    try:
        content = repo.object_store.read(object_id)
    except (VcsError, ValueError) as e:
        _error(str(e))
        raise typer.Exit(EXIT_USER_ERROR)

    typer.echo(content.decode("utf-8", errors="replace"), nl=False)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
