# pyright: reportUnusedCallResult=false
# ruff: noqa: TC003, FBT002  # Path needed at runtime for cyclopts parameter parsing
"""vcsync commands."""

from pathlib import Path
from typing import Annotated

from cyclopts import App, Parameter
from rich.table import Table

from vcsync.repository import CommitResult, Identity

from ._context import CLIContext, OutputFormat
from ._shared import ExitCode, exit_with_error, format_json, handle_errors, sync_to_dict

__all__ = ["register_commands"]

TOKEN_ENV_VAR = "VCSYNC_TOKEN"


def _author(name: str | None, email: str | None) -> Identity | None:
    if name is None and email is None:
        return None
    if not name or not email:
        exit_with_error(
            "--author-name and --author-email must be given together",
            ExitCode.VALIDATION_ERROR,
            console=CLIContext.get_current().error_console,
        )
    return Identity(name=name, email=email)


def _report_commit(ctx: CLIContext, result: CommitResult) -> None:
    if result.no_changes:
        ctx.console.print(f"No changes; HEAD is {result.sha[:8]}", markup=False)
        return
    ctx.console.print(f"Committed {result.sha[:8]}: {', '.join(result.paths)}", markup=False)
    sync = result.sync
    if sync is not None and not sync.ok and not sync.skipped_no_remote:
        ctx.error_console.print(
            f"Warning: saved locally, remote sync failed: {sync.error}",
            markup=False,
            highlight=False,
        )


def _init(entity: str) -> None:
    """Create the entity's repository if it does not exist.

    Args:
        entity: Entity id.
    """
    ctx = CLIContext.get_current()
    with handle_errors(ctx.error_console), ctx.open_store() as store:
        existed = store.exists(entity)
        handle = store.repository(entity)
        state = "Found" if existed else "Initialized"
        ctx.console.print(f"{state} repository for {entity} at {handle.path}", markup=False)


def _save(
    entity: str,
    path: str,
    *,
    message: Annotated[str, Parameter(name=["--message", "-m"], help="Commit message")],
    file: Annotated[
        Path | None, Parameter(name=["--file", "-f"], help="Read content from a file")
    ] = None,
    content: Annotated[
        str | None, Parameter(name=["--content", "-c"], help="Content as text")
    ] = None,
    author_name: Annotated[str | None, Parameter(help="Author name")] = None,
    author_email: Annotated[str | None, Parameter(help="Author email")] = None,
) -> None:
    """Save content for a tracked path and commit it.

    Args:
        entity: Entity id.
        path: Tracked path inside the repository.
        message: Commit message.
        file: File whose bytes become the new content.
        content: Text that becomes the new content.
        author_name: Author name; defaults to the platform identity.
        author_email: Author email; defaults to the platform identity.
    """
    ctx = CLIContext.get_current()
    if (file is None) == (content is None):
        exit_with_error(
            "Give exactly one of --file or --content",
            ExitCode.VALIDATION_ERROR,
            console=ctx.error_console,
        )
    author = _author(author_name, author_email)

    with handle_errors(ctx.error_console):
        data: bytes | str = file.read_bytes() if file is not None else content or ""
        with ctx.open_store() as store:
            result = store.save(entity, path, data, message, author)
    _report_commit(ctx, result)


def _rm(
    entity: str,
    path: str,
    *,
    message: Annotated[str, Parameter(name=["--message", "-m"], help="Commit message")],
    author_name: Annotated[str | None, Parameter(help="Author name")] = None,
    author_email: Annotated[str | None, Parameter(help="Author email")] = None,
) -> None:
    """Delete a tracked path and commit the removal.

    Args:
        entity: Entity id.
        path: Tracked file or directory.
        message: Commit message.
        author_name: Author name; defaults to the platform identity.
        author_email: Author email; defaults to the platform identity.
    """
    ctx = CLIContext.get_current()
    author = _author(author_name, author_email)
    with handle_errors(ctx.error_console), ctx.open_store() as store:
        result = store.remove(entity, path, message, author)
    _report_commit(ctx, result)


def _log(
    entity: str,
    path: str,
    *,
    output_format: Annotated[
        OutputFormat, Parameter(name=["--format"], help="Output format")
    ] = OutputFormat.TABLE,
) -> None:
    """Show the commits that touched a path, newest first.

    Args:
        entity: Entity id.
        path: Tracked path.
        output_format: table or json.
    """
    ctx = CLIContext.get_current()
    with handle_errors(ctx.error_console), ctx.open_store() as store:
        versions = store.versions(entity, path)

    if output_format is OutputFormat.JSON:
        rows = [
            {
                "version": entry.number,
                "sha": entry.commit.sha,
                "message": entry.commit.message,
                "author_name": entry.commit.author_name,
                "author_email": entry.commit.author_email,
                "timestamp": entry.commit.timestamp.isoformat(),
            }
            for entry in versions
        ]
        ctx.console.out(format_json(rows), highlight=False)
        return

    if not versions:
        ctx.console.print(f"No history for {path}", markup=False)
        return

    table = Table(title=f"{entity}: {path}")
    table.add_column("Version", justify="right")
    table.add_column("Commit")
    table.add_column("Date")
    table.add_column("Author")
    table.add_column("Message")
    for entry in versions:
        commit = entry.commit
        table.add_row(
            str(entry.number),
            commit.short_sha,
            commit.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            commit.author_name,
            commit.subject,
        )
    ctx.console.print(table)


def _show(
    entity: str,
    path: str,
    *,
    commit: Annotated[
        str | None, Parameter(name=["--commit"], help="Commit to read (default HEAD)")
    ] = None,
) -> None:
    """Print a path's content at a commit.

    Args:
        entity: Entity id.
        path: Tracked file.
        commit: Commit SHA or revision; HEAD if omitted.
    """
    ctx = CLIContext.get_current()
    with handle_errors(ctx.error_console), ctx.open_store() as store:
        data = store.read(entity, path, commit)
    ctx.console.out(data.decode("utf-8", errors="replace"), highlight=False, end="")


def _diff(entity: str, path: str, from_commit: str, to_commit: str) -> None:
    """Show the unified diff of a path between two commits.

    Args:
        entity: Entity id.
        path: Tracked file.
        from_commit: Older commit.
        to_commit: Newer commit.
    """
    ctx = CLIContext.get_current()
    with handle_errors(ctx.error_console), ctx.open_store() as store:
        text = store.diff(entity, path, from_commit, to_commit)
    if not text:
        ctx.console.print("No differences")
        return
    ctx.console.out(text, highlight=False, end="")


def _sync(
    entity: str,
    *,
    output_format: Annotated[
        OutputFormat, Parameter(name=["--format"], help="Output format")
    ] = OutputFormat.TABLE,
) -> None:
    """Push the entity's commits to its remote.

    Args:
        entity: Entity id.
        output_format: table or json.
    """
    ctx = CLIContext.get_current()
    with handle_errors(ctx.error_console), ctx.open_store() as store:
        result = store.sync(entity)

    if output_format is OutputFormat.JSON:
        ctx.console.out(format_json(sync_to_dict(result)), highlight=False)
        if not result.ok and not result.skipped_no_remote:
            raise SystemExit(ExitCode.REMOTE_ERROR)
        return
    if result.skipped_no_remote:
        ctx.console.print("No remote configured; nothing to sync")
        return
    if not result.ok:
        exit_with_error(
            f"Sync failed: {result.error}",
            ExitCode.REMOTE_ERROR,
            console=ctx.error_console,
        )
    ctx.console.print(f"Synced to {result.branch}", markup=False)


def _attach(
    entity: str,
    *,
    token: Annotated[
        str, Parameter(name=["--token"], env_var=TOKEN_ENV_VAR, help="Provider access token")
    ],
    name: Annotated[str, Parameter(name=["--name"], help="Name for a new hosted repository")],
    url: Annotated[
        str | None, Parameter(name=["--url"], help="Link an existing repository instead")
    ] = None,
) -> None:
    """Create or link a hosted repository and push to it.

    Args:
        entity: Entity id.
        token: Provider access token.
        name: Name of the repository to create.
        url: URL of an existing repository to link.
    """
    ctx = CLIContext.get_current()
    with handle_errors(ctx.error_console), ctx.open_store() as store:
        info = store.attach_remote(entity, token, name, url)

    verb = "Created" if info.created else "Linked"
    ctx.console.print(f"{verb} {info.full_name}", markup=False)
    ctx.console.print(f"Remote: {info.url}", markup=False)
    if not info.sync.ok:
        exit_with_error(
            f"Remote configured but the initial sync failed: {info.sync.error}",
            ExitCode.REMOTE_ERROR,
            console=ctx.error_console,
        )


def _stats(
    entity: str,
    *,
    output_format: Annotated[
        OutputFormat, Parameter(name=["--format"], help="Output format")
    ] = OutputFormat.TABLE,
) -> None:
    """Show a summary of the entity's repository.

    Args:
        entity: Entity id.
        output_format: table or json.
    """
    ctx = CLIContext.get_current()
    with handle_errors(ctx.error_console), ctx.open_store() as store:
        stats = store.stats(entity)

    data = {
        "entity_id": stats.entity_id,
        "path": str(stats.path),
        "head": stats.head,
        "branch": stats.branch,
        "commit_count": stats.commit_count,
        "tracked_files": stats.tracked_files,
        "has_remote": stats.has_remote,
    }
    if output_format is OutputFormat.JSON:
        ctx.console.out(format_json(data), highlight=False)
        return

    table = Table(show_header=False)
    table.add_column("Key")
    table.add_column("Value")
    for key, value in data.items():
        table.add_row(key, "" if value is None else str(value))
    ctx.console.print(table)


def register_commands(app: App) -> None:
    app.command(_init, name="init")
    app.command(_save, name="save")
    app.command(_rm, name="rm")
    app.command(_log, name="log")
    app.command(_show, name="show")
    app.command(_diff, name="diff")
    app.command(_sync, name="sync")
    app.command(_attach, name="attach")
    app.command(_stats, name="stats")
