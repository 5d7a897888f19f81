"""
fedstore CLI Commands

Admin commands over the federated record stores (fedstore).
"""

import asyncio
import json
import sys

import click

from fedstore import __version__
from fedstore.config import load_federation_config
from fedstore.models import RecordFilter, RecordType
from fedstore.storage.registry import build_federation

RECORD_TYPES = [t.value for t in RecordType]

# Scope filter field per record type (--scope)
SCOPE_FIELDS = {
    RecordType.REGISTRATIONS: "event",
    RecordType.CONTACT_FORMS: "source",
    RecordType.EMAIL_SIGNUPS: "source",
}


# ============================================================================
# Helper Functions
# ============================================================================

def get_event_loop():
    """Get or create event loop for async operations."""
    try:
        loop = asyncio.get_event_loop()
        if loop.is_closed():
            raise RuntimeError("event loop is closed")
    except RuntimeError:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
    return loop


def run_async(coro):
    """Run async coroutine and return result."""
    loop = get_event_loop()
    return loop.run_until_complete(coro)


def with_federation(ctx, operation):
    """Build the federation, run one async operation on it, then close it."""
    async def run():
        config = load_federation_config(ctx.obj.get("config_path"))
        federation = build_federation(config)
        try:
            return await operation(federation)
        finally:
            await federation.close()

    return run_async(run())


# ============================================================================
# CLI
# ============================================================================

@click.group()
@click.version_option(version=__version__, prog_name='fedstore')
@click.option('--config', 'config_path', type=click.Path(exists=True), help='Federation YAML (default: $FEDSTORE_CONFIG or bundled)')
@click.pass_context
def cli(ctx, config_path):
    """fedstore - one view over registrations, contact forms and email signups."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@cli.command('list')
@click.argument('record_type', type=click.Choice(RECORD_TYPES))
@click.option('--scope', help='Event id (registrations) or source (contact forms, signups)')
@click.option('--start', help='Start date (YYYY-MM-DD or ISO datetime, inclusive)')
@click.option('--end', help='End date (YYYY-MM-DD covers the whole day)')
@click.option('--search', help='Case-insensitive text search')
@click.option('--limit', type=click.IntRange(min=1), help='Maximum number of records')
@click.option('--format', 'output_format', type=click.Choice(['table', 'json']), default='table', help='Output format')
@click.pass_context
def list_records(ctx, record_type, scope, start, end, search, limit, output_format):
    """List merged records of one type.

    Example:
        fedstore list registrations --scope SATechDay2026 --search acme
    """
    record_type = RecordType(record_type)
    try:
        record_filter = RecordFilter.for_scope(
            SCOPE_FIELDS[record_type], scope,
            start_date=start, end_date=end, search=search, limit=limit,
        )
        records = with_federation(
            ctx, lambda federation: federation.store(record_type).list_records(record_filter)
        )

        if output_format == 'json':
            click.echo(json.dumps([r.to_dict() for r in records], indent=2))
            return

        click.echo("\n" + "="*100)
        click.echo(f"{'ID':<36} {'Email':<32} {'Group':<20} {'Date':<10}")
        click.echo("="*100)
        for record in records:
            timestamp = getattr(record, record.TIME_FIELD) or 'N/A'
            click.echo(f"{record.id:<36} {record.email:<32} {record.group_value():<20} {timestamp[:10]:<10}")
        click.echo("="*100)
        click.echo(f"\nTotal: {len(records)} {record_type.value}")

    except Exception as e:
        click.echo(f"❌ Error listing {record_type.value}: {e}", err=True)
        sys.exit(1)


@cli.command('counts')
@click.argument('record_type', type=click.Choice(RECORD_TYPES))
@click.pass_context
def counts(ctx, record_type):
    """Record counts per event (registrations) or source.

    Example:
        fedstore counts email_signups
    """
    record_type = RecordType(record_type)
    try:
        tally = with_federation(ctx, lambda federation: federation.store(record_type).get_counts())

        for group, count in tally.items():
            click.echo(f"{group:<40} {count:>6}")
        click.echo(f"\nTotal: {sum(tally.values())} {record_type.value}")

    except Exception as e:
        click.echo(f"❌ Error counting {record_type.value}: {e}", err=True)
        sys.exit(1)


@cli.command('export')
@click.argument('record_type', type=click.Choice(RECORD_TYPES))
@click.option('--output', '-o', type=click.Path(), help='Output file (default: stdout)')
@click.pass_context
def export(ctx, record_type, output):
    """Export merged records as CSV.

    Example:
        fedstore export contact_forms -o contacts.csv
    """
    record_type = RecordType(record_type)
    try:
        csv_text = with_federation(ctx, lambda federation: federation.store(record_type).export_csv())

        if output:
            with open(output, 'w', newline='') as f:
                f.write(csv_text + "\n")
            click.echo(f"✅ Exported {record_type.value} to {output}")
        else:
            click.echo(csv_text)

    except Exception as e:
        click.echo(f"❌ Error exporting {record_type.value}: {e}", err=True)
        sys.exit(1)


@cli.command('delete')
@click.argument('record_type', type=click.Choice(RECORD_TYPES))
@click.argument('record_id')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@click.pass_context
def delete(ctx, record_type, record_id, yes):
    """Delete one record from the store that owns it.

    Example:
        fedstore delete registrations techday:abc123
    """
    record_type = RecordType(record_type)
    if not yes:
        click.confirm(f"Delete {record_type.value} record {record_id}?", abort=True)

    try:
        with_federation(ctx, lambda federation: federation.store(record_type).delete_record(record_id))
        click.echo(f"✅ Deleted {record_id}")

    except Exception as e:
        click.echo(f"❌ Error deleting {record_id}: {e}", err=True)
        sys.exit(1)


@cli.command('check-in')
@click.argument('record_id')
@click.option('--undo', is_flag=True, help='Clear the check-in instead')
@click.pass_context
def check_in(ctx, record_id, undo):
    """Check in a registration (or undo a check-in).

    Example:
        fedstore check-in techday:abc123
    """
    try:
        with_federation(ctx, lambda federation: federation.check_in(record_id, checked_in=not undo))
        action = "Check-in cleared for" if undo else "Checked in"
        click.echo(f"✅ {action} {record_id}")

    except Exception as e:
        click.echo(f"❌ Error checking in {record_id}: {e}", err=True)
        sys.exit(1)


@cli.command('health')
@click.pass_context
def health(ctx):
    """Check that every backing store is reachable."""
    try:
        status = with_federation(ctx, lambda federation: federation.health_check())
    except Exception as e:
        click.echo(f"❌ Error checking stores: {e}", err=True)
        sys.exit(1)

    for tag, healthy in status.items():
        click.echo(f"{tag:<20} {'OK' if healthy else 'UNAVAILABLE'}")

    if not all(status.values()):
        sys.exit(1)


if __name__ == '__main__':
    cli()
