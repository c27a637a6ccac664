"""Civic CLI: moderation tooling for the public-comment platform."""

import logging

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from civic import __version__

console = Console()

_VISIBILITY_STYLES = {
    "VISIBLE": "green",
    "PENDING_VISIBLE": "yellow",
    "HIDDEN": "red",
    "WITHDRAWN": "dim",
}
_PRIORITY_STYLES = {"high": "red", "medium": "yellow", "low": "green"}


def _visibility(value: str) -> str:
    return f"[{_VISIBILITY_STYLES.get(value, 'white')}]{value}[/]"


def _queue(ctx: click.Context):
    from civic.services import build_queue

    return build_queue(ctx.obj["config"])


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--data-dir",
    envvar="CIVIC_DATA_DIR",
    default=None,
    help="Directory holding comments, settings and audit logs (default: ~/.civic)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, data_dir: str | None, verbose: bool):
    """Civic: public comment moderation.

    Redact personal information, filter profanity, score risk, and work
    through the moderator review queue from the command line.
    """
    from civic.config import load_config

    config = load_config(data_dir)
    logging.basicConfig(
        level=logging.DEBUG if verbose else config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


# ── Moderate ─────────────────────────────────────────────────────────


@main.command()
@click.argument("text")
@click.pass_context
def moderate(ctx: click.Context, text: str):
    """Dry-run the moderation pipeline on TEXT without storing anything."""
    from civic.moderation.engine import moderation_summary
    from civic.services import build_engine

    console.print("\n[bold blue]Civic[/] -- Moderation preview\n")

    engine = build_engine(ctx.obj["config"])
    result = engine.moderate(text)

    console.print(Panel(escape(result.public_body), title="Public text"))
    console.print(f"  Suggested visibility: {_visibility(result.suggested_visibility.value)}")
    console.print(f"  Risk score: {result.risk_flags.score:.2f}")
    console.print(f"  {moderation_summary(result)}")
    if not engine.classifier_enabled:
        console.print("  [dim]Risk classifier not configured; pattern checks only.[/]")
    for note in result.moderation_notes:
        console.print(f"    - {escape(note)}")


# ── Submit ───────────────────────────────────────────────────────────


@main.command()
@click.argument("body")
@click.option("--user", "-u", "user_id", required=True, help="Submitting user id")
@click.option("--meeting", "-m", "meeting_id", required=True, help="Meeting id")
@click.option("--agenda-item", "-a", multiple=True, help="Agenda item id (repeatable)")
@click.option(
    "--stance",
    default="NEUTRAL",
    type=click.Choice(["FOR", "AGAINST", "CONCERNED", "NEUTRAL"], case_sensitive=False),
)
@click.option("--live", is_flag=True, help="Meeting is live: comment starts out visible")
@click.pass_context
def submit(ctx: click.Context, body: str, user_id: str, meeting_id: str, agenda_item: tuple, stance: str, live: bool):
    """Submit a comment and run automated moderation on it."""
    from civic.comments.models import Visibility

    queue = _queue(ctx)
    comment, result = queue.submit(
        user_id=user_id,
        meeting_id=meeting_id,
        body=body,
        stance=stance.upper(),
        initial_visibility=Visibility.VISIBLE if live else Visibility.PENDING_VISIBLE,
        agenda_item_ids=list(agenda_item),
    )

    console.print(f"\n[bold blue]Civic[/] -- Submitted comment [cyan]{comment.id}[/]\n")
    console.print(f"  Visibility: {_visibility(comment.visibility.value)}")
    console.print(f"  Public text: {escape(comment.public_body)}")
    for note in result.moderation_notes:
        console.print(f"    - {escape(note)}")


# ── Queue ────────────────────────────────────────────────────────────


@main.command(name="queue")
@click.option("--limit", "-n", default=20, show_default=True, help="Maximum items to show")
@click.option("--offset", default=0, help="Items to skip")
@click.option("--priority", "-p", default=None, type=click.Choice(["high", "medium", "low"]))
@click.pass_context
def show_queue(ctx: click.Context, limit: int, offset: int, priority: str | None):
    """List comments awaiting review, highest priority first."""
    items = _queue(ctx).list_queue(limit=limit, offset=offset, priority=priority)

    if not items:
        console.print("[green]Moderation queue is empty.[/]")
        return

    table = Table(title=f"Moderation Queue ({len(items)} shown)")
    table.add_column("Priority")
    table.add_column("Comment", style="cyan")
    table.add_column("Risk", justify="right")
    table.add_column("Visibility")
    table.add_column("Text")

    for item in items:
        style = _PRIORITY_STYLES[item.priority.value]
        table.add_row(
            f"[{style}]{item.priority.value}[/]",
            item.comment.id,
            f"{item.risk_score:.2f}",
            _visibility(item.comment.visibility.value),
            escape(item.comment.public_body[:60]),
        )

    console.print(table)


# ── Decisions ────────────────────────────────────────────────────────


@main.command()
@click.argument("comment_id")
@click.option("--moderator", "-m", required=True, help="Moderator id")
@click.option("--notes", default=None, help="Notes recorded with the approval")
@click.option("--expected-version", type=int, default=None, help="Fail if the comment changed since this version")
@click.pass_context
def approve(ctx: click.Context, comment_id: str, moderator: str, notes: str | None, expected_version: int | None):
    """Approve a comment, making it publicly visible."""
    from civic.comments.store import CommentNotFoundError, CommentWithdrawnError, ConcurrentModificationError

    try:
        comment = _queue(ctx).approve(comment_id, moderator, notes, expected_version=expected_version)
    except (CommentNotFoundError, CommentWithdrawnError, ConcurrentModificationError) as e:
        console.print(f"[red]Cannot approve:[/] {escape(str(e))}")
        raise SystemExit(1)
    console.print(f"  [green]Approved[/] {comment.id} ({_visibility(comment.visibility.value)})")


@main.command()
@click.argument("comment_id")
@click.option("--moderator", "-m", required=True, help="Moderator id")
@click.option("--reason", "-r", default="Content violates community guidelines", show_default=True)
@click.option("--expected-version", type=int, default=None, help="Fail if the comment changed since this version")
@click.pass_context
def reject(ctx: click.Context, comment_id: str, moderator: str, reason: str, expected_version: int | None):
    """Reject a comment, hiding it from the public."""
    from civic.comments.store import CommentNotFoundError, CommentWithdrawnError, ConcurrentModificationError

    try:
        comment = _queue(ctx).reject(comment_id, moderator, reason, expected_version=expected_version)
    except (CommentNotFoundError, CommentWithdrawnError, ConcurrentModificationError) as e:
        console.print(f"[red]Cannot reject:[/] {escape(str(e))}")
        raise SystemExit(1)
    console.print(f"  [red]Rejected[/] {comment.id} ({_visibility(comment.visibility.value)})")


@main.command()
@click.argument("action", type=click.Choice(["approve", "reject"]))
@click.argument("comment_ids", nargs=-1, required=True)
@click.option("--moderator", "-m", required=True, help="Moderator id")
@click.option("--reason", "-r", default=None, help="Reason recorded on every entry")
@click.pass_context
def bulk(ctx: click.Context, action: str, comment_ids: tuple, moderator: str, reason: str | None):
    """Approve or reject several comments at once."""
    console.print(f"\n[bold blue]Civic[/] -- Bulk {action}: {len(comment_ids)} comments\n")

    result = _queue(ctx).bulk_moderate(comment_ids, moderator, action, reason=reason)

    console.print(f"  [green]{result.successful}[/] succeeded, [red]{result.failed}[/] failed, {result.total} total")
    for comment_id, error in result.errors.items():
        console.print(f"    [red]x[/] {escape(comment_id)}: {escape(error)}")


# ── Reporting ────────────────────────────────────────────────────────


@main.command()
@click.pass_context
def stats(ctx: click.Context):
    """Show moderation statistics."""
    s = _queue(ctx).stats()

    table = Table(title="Moderation Stats")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Total comments", str(s.total))
    table.add_row("Pending review", str(s.pending))
    table.add_row("Hidden", str(s.hidden))
    table.add_row("Visible", str(s.visible))
    table.add_row("Actions (24h)", str(s.recent_actions))
    table.add_row("Moderated", f"{s.percent_moderated}%")

    console.print(table)


@main.command()
@click.argument("comment_id")
@click.pass_context
def history(ctx: click.Context, comment_id: str):
    """Show the moderation audit trail of a comment."""
    from civic.comments.store import CommentNotFoundError

    try:
        entries = _queue(ctx).history(comment_id)
    except CommentNotFoundError as e:
        console.print(f"[red]{escape(str(e))}[/]")
        raise SystemExit(1)

    if not entries:
        console.print("[yellow]No moderation actions recorded.[/]")
        return

    table = Table(title=f"History for {comment_id}")
    table.add_column("When", style="dim")
    table.add_column("Action")
    table.add_column("Moderator", style="cyan")
    table.add_column("Reason")

    for entry in entries:
        table.add_row(entry.created_at, entry.action.value, escape(entry.moderator_id), escape(entry.reason[:60]))

    console.print(table)


# ── Settings ─────────────────────────────────────────────────────────


@main.group()
def settings():
    """View or change moderation settings."""


@settings.command(name="show")
@click.pass_context
def show_settings(ctx: click.Context):
    """Print the current moderation settings."""
    from civic.moderation.settings_store import SettingsStore

    s = SettingsStore(ctx.obj["config"].data_dir).get()
    console.print(f"  auto_moderate:    {s.auto_moderate}")
    console.print(f"  risk_threshold:   {s.risk_threshold}")
    console.print(f"  review_threshold: {s.review_threshold}")


@settings.command(name="set")
@click.option("--auto-moderate/--no-auto-moderate", default=None, help="Enable the risk classifier step")
@click.option("--risk-threshold", type=float, default=None, help="Score above which comments are hidden")
@click.option("--review-threshold", type=float, default=None, help="Score above which comments are held for review")
@click.pass_context
def set_settings(ctx: click.Context, auto_moderate: bool | None, risk_threshold: float | None, review_threshold: float | None):
    """Update moderation settings."""
    from civic.moderation.settings_store import SettingsStore

    store = SettingsStore(ctx.obj["config"].data_dir)
    try:
        s = store.update(
            auto_moderate=auto_moderate,
            risk_threshold=risk_threshold,
            review_threshold=review_threshold,
        )
    except ValueError as e:
        console.print(f"[red]Invalid settings:[/] {e}")
        raise SystemExit(1)
    console.print(
        f"  [green]Saved[/] auto_moderate={s.auto_moderate} "
        f"risk_threshold={s.risk_threshold} review_threshold={s.review_threshold}"
    )


# ── Audit ────────────────────────────────────────────────────────────


@main.group()
def audit():
    """Inspect the moderation audit log."""


@audit.command(name="export")
@click.option("--format", "fmt", default="json", type=click.Choice(["json", "csv"]))
@click.option("--comment", "comment_id", default=None, help="Only entries for this comment")
@click.option("--moderator", "moderator_id", default=None, help="Only entries by this moderator")
@click.option("--since", default=None, help="Only entries at or after this ISO timestamp")
@click.option("--output", "-o", default=None, type=click.Path(dir_okay=False), help="Write to a file instead of stdout")
@click.pass_context
def export_audit(ctx: click.Context, fmt: str, comment_id: str | None, moderator_id: str | None, since: str | None, output: str | None):
    """Export audit log entries as JSON or CSV."""
    from civic.moderation.audit_log import ModerationLogStore

    store = ModerationLogStore(ctx.obj["config"].logs_dir)
    data = store.export_logs(fmt=fmt, comment_id=comment_id, moderator_id=moderator_id, since=since)

    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(data)
        console.print(f"[green]Audit log written to:[/] {output}")
    else:
        click.echo(data)


if __name__ == "__main__":
    main()
