"""Audit trail commands."""

import click

from finledger.domain.entities import AuditEntity

AUDIT_ENTITIES = [e.value for e in AuditEntity]


def _describe(record) -> str:
    if record is None:
        return "-"
    return f"{record.amount:,.2f} {getattr(record, 'category', '') or record.type.value}".strip()


@click.group()
def audit_group():
    """Inspect the audit trail."""
    pass


@audit_group.command("list")
@click.option("--limit", type=int, default=20, show_default=True, help="Number of entries to show")
@click.option("--entity", type=click.Choice(AUDIT_ENTITIES), help="Only entries for this entity type")
@click.option("--entity-id", help="Only entries for this entity ID")
@click.pass_context
def list_audit(ctx, limit: int, entity: str | None, entity_id: str | None) -> None:
    """List audit entries, most recent first."""
    store = ctx.obj["store"]

    entries = [
        e
        for e in store.audit_trails
        if (entity is None or e.entity_type.value == entity) and (entity_id is None or e.entity_id == entity_id)
    ]
    if not entries:
        click.echo("No audit entries found.")
        return

    for entry in entries[:limit]:
        line = (
            f"{entry.timestamp:%Y-%m-%d %H:%M:%S} | {entry.action.value:6s} | "
            f"{entry.entity_type.value} {entry.entity_id[:8]} | "
            f"{_describe(entry.previous)} => {_describe(entry.current)}"
        )
        if entry.note:
            line += f" | {entry.note}"
        click.echo(line)
    if len(entries) > limit:
        click.echo(f"... {len(entries) - limit} more")


def register_commands(cli):
    """Register audit commands with main CLI."""
    cli.add_command(audit_group, name="audit")
