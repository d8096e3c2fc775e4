# Overview: Flask CLI command groups for bootstrap, tenant setup, and report maintenance.

# backend/khataplus/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to khataplus (PowerShell: $env:FLASK_APP="khataplus").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (use `flask db upgrade` for migrated deployments).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Organization management (MULTI-TENANT):
# - python -m flask orgs list
#   List all organizations.
# - python -m flask orgs create --name "Sharma Kirana" --slug sharma-kirana --gstin 27AAPFU0939F1ZV
#   Create a new organization (tenant).
#
# Reports:
# - python -m flask reports rebuild-daily --org-id 1 --date 2026-03-01 [--days 7]
#   Rebuild daily reports for a date (and the N-1 days before it).
# - python -m flask reports verify-ledgers --org-id 1
#   Compare every cached customer/supplier balance with its transaction history.
#
# Tax:
# - python -m flask tax lookup 8517
#   Show the GST rate the HSN table resolves for a code.

import click
from datetime import timedelta
from flask.cli import with_appcontext

from .errors import CoreError
from .extensions import db
from .models import Organization, InventoryItem, Customer
from .services import organization_service, reporting_service, tax_service
from .time_utils import parse_iso_date


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Tables created.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask orgs create' to add a tenant.")


@click.group('orgs')
def orgs_group():
    """Organization (tenant) management commands."""


@orgs_group.command('list')
@with_appcontext
def list_orgs():
    """List all organizations."""
    orgs = organization_service.list_organizations()

    if not orgs:
        click.echo("No organizations found.")
        return

    click.echo("\n" + "="*88)
    click.echo(f"{'ID':<5} {'Name':<28} {'Slug':<20} {'GSTIN':<16} {'Active':<8} {'Items':<6} {'Customers'}")
    click.echo("="*88)

    for org in orgs:
        item_count = db.session.query(InventoryItem).filter_by(org_id=org.id).count()
        customer_count = db.session.query(Customer).filter_by(org_id=org.id).count()
        active_str = "Yes" if org.is_active else "No"

        click.echo(
            f"{org.id:<5} {org.name:<28} {org.slug:<20} {org.gstin or '-':<16} "
            f"{active_str:<8} {item_count:<6} {customer_count}"
        )

    click.echo("="*88 + "\n")


@orgs_group.command('create')
@click.option('--name', required=True, help='Organization name')
@click.option('--slug', required=True, help='Short unique identifier (lowercase)')
@click.option('--gstin', default=None, help='Seller GSTIN (sets the state code)')
@click.option('--state-code', default=None, help='2-digit GST state code')
@click.option('--timezone', 'tz_name', default='Asia/Kolkata', show_default=True, help='IANA timezone for business dates')
@click.option('--inclusive', is_flag=True, help='Prices are entered tax-inclusive')
@click.option('--no-gst', is_flag=True, help='Organization is not GST registered')
@with_appcontext
def create_org_cli(name, slug, gstin, state_code, tz_name, inclusive, no_gst):
    """Create a new organization (tenant)."""
    try:
        org = organization_service.create_organization(
            name,
            slug,
            gstin=gstin,
            state_code=state_code,
            timezone=tz_name,
            gst_enabled=not no_gst,
            gst_inclusive=inclusive,
        )
    except CoreError as e:
        click.echo(f"FAIL {e}")
        return

    click.echo(f"PASS Created organization: {org.name} (ID: {org.id}, Slug: {org.slug})")


@click.group('reports')
def reports_group():
    """Report rebuild and ledger audit commands."""


@reports_group.command('rebuild-daily')
@click.option('--org-id', type=int, required=True, help='Organization ID')
@click.option('--date', 'date_str', required=True, help='Last business date to rebuild (YYYY-MM-DD)')
@click.option('--days', type=int, default=1, show_default=True, help='Number of days ending at --date')
@with_appcontext
def rebuild_daily_cli(org_id, date_str, days):
    """Recompute daily reports from sales and expenses."""
    try:
        last = parse_iso_date(date_str)
    except ValueError:
        click.echo("FAIL --date must be YYYY-MM-DD")
        return
    if days < 1:
        click.echo("FAIL --days must be at least 1")
        return

    for offset in range(days - 1, -1, -1):
        day = last - timedelta(days=offset)
        try:
            report = reporting_service.rebuild_daily_report(org_id, day)
        except CoreError as e:
            click.echo(f"FAIL {day.isoformat()}: {e}")
            return
        click.echo(
            f"PASS {day.isoformat()}: sales={report.sale_count} gross={report.total_sale_gross} "
            f"profit={report.total_profit} expenses={report.expenses}"
        )


@reports_group.command('verify-ledgers')
@click.option('--org-id', type=int, required=True, help='Organization ID')
@with_appcontext
def verify_ledgers_cli(org_id):
    """Fold every ledger and compare against cached balances."""
    if not db.session.query(Organization).filter_by(id=org_id).first():
        click.echo(f"FAIL Organization {org_id} not found")
        return

    result = reporting_service.verify_ledgers(org_id)
    if not result["mismatches"]:
        click.echo(f"PASS {result['checked']} ledgers consistent")
        return

    for mismatch in result["mismatches"]:
        click.echo(
            f"FAIL {mismatch['kind']} {mismatch['account_id']}: "
            f"cached={mismatch['cached']} folded={mismatch['folded']}"
        )
    raise SystemExit(1)


@click.group('tax')
def tax_group():
    """GST lookup commands."""


@tax_group.command('lookup')
@click.argument('code')
def tax_lookup_cli(code):
    """Show the GST rate for an HSN/SAC code."""
    try:
        entry = tax_service.lookup_hsn(code)
    except CoreError as e:
        click.echo(f"FAIL {e}")
        return
    click.echo(f"{entry['code']} (heading {entry['heading']}): {entry['rate']}% - {entry['description']}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(orgs_group)  # Multi-tenant organization management
    app.cli.add_command(reports_group)
    app.cli.add_command(tax_group)
