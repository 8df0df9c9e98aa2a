"""
CLI Commands for the loyalty ledger.

Usage:
    flask loyalty catalog                 # List the loaded rewards catalog
    flask loyalty status USER_ID          # Show a member's loyalty status
    flask loyalty verify USER_ID          # Check balance against history
    flask loyalty prune-monthly           # Drop expired monthly spend buckets

Cron (monthly, 1st at 03:00):
0 3 1 * * cd /app && flask loyalty prune-monthly
"""
import click
from flask.cli import with_appcontext

from ..services.points_service import PointsService
from ..services.rewards_catalog import get_catalog


@click.group('loyalty')
def loyalty_cli():
    """Loyalty ledger commands."""
    pass


@loyalty_cli.command('catalog')
@with_appcontext
def show_catalog():
    """List rewards in the loaded catalog."""
    catalog = get_catalog()
    for reward in sorted(catalog, key=lambda r: r.cost):
        value = f"{reward.value}%" if reward.unit.value == 'percent' else f"{reward.value}"
        click.echo(f"{reward.cost:>6} pts  {reward.name:<20} {reward.type.value:<9} {value}")
    click.echo(f"\n{len(catalog)} rewards")


@loyalty_cli.command('status')
@click.argument('user_id')
@with_appcontext
def show_status(user_id):
    """Show a member's loyalty status."""
    status = PointsService().get_status(user_id)
    click.echo(f"User:      {status['user_id']}")
    click.echo(f"Points:    {status['points']}")
    click.echo(f"Purchases: {status['purchase_count']}")
    click.echo(f"Spent:     {status['total_spent']:.2f} (this month {status['monthly_spent']:.2f})")
    click.echo(f"Tier:      {status['tier']}")
    click.echo(f"Card:      {'issued' if status['card_issued'] else 'not issued'}")


@loyalty_cli.command('verify')
@click.argument('user_id')
@with_appcontext
def verify_ledger(user_id):
    """Check that the cached balance matches the points history."""
    report = PointsService().verify_ledger(user_id)
    click.echo(f"Balance {report['points']} / history {report['history_points']}")
    click.echo(f"Purchases {report['purchase_count']} / history {report['history_purchases']}")
    if not report['consistent']:
        raise click.ClickException('Ledger is inconsistent')
    click.echo('Ledger OK')


@loyalty_cli.command('prune-monthly')
@with_appcontext
def prune_monthly():
    """Delete monthly spend buckets older than the retention window."""
    removed = PointsService().prune_all_monthly_spend()
    click.echo(f"Removed {removed} monthly spend buckets")


def init_app(app):
    app.cli.add_command(loyalty_cli)
