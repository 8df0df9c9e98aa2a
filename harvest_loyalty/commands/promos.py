"""
CLI Commands for promo codes.

Usage:
    flask promos create HARVEST10 --name "Harvest 10%" --type Percentage --value 10 --max-discount 500
    flask promos list
"""
from datetime import datetime
from decimal import Decimal

import click
from flask.cli import with_appcontext

from ..extensions import db
from ..models import Promotion, PromotionStatus, PromotionType


@click.group('promos')
def promos_cli():
    """Promo code commands."""
    pass


@promos_cli.command('create')
@click.argument('code')
@click.option('--name', required=True, help='Display name')
@click.option('--type', 'promo_type', type=click.Choice(PromotionType.ALL), required=True)
@click.option('--value', type=str, default='0', help='Percent or amount')
@click.option('--min-spend', type=str, default='0')
@click.option('--max-discount', type=str, default='0', help='Cap for percentage promos (0 = none)')
@click.option('--limit', type=int, default=0, help='Usage limit (0 = unlimited)')
@click.option('--starts-at', type=click.DateTime(), default=None)
@click.option('--ends-at', type=click.DateTime(), default=None)
@with_appcontext
def create_promo(code, name, promo_type, value, min_spend, max_discount, limit, starts_at, ends_at):
    """Create a promo code."""
    if starts_at and ends_at and starts_at >= ends_at:
        raise click.BadParameter('starts-at must be before ends-at')

    value = Decimal(value)
    if promo_type == PromotionType.PERCENTAGE and value > 100:
        value = Decimal('100')

    promo = Promotion(
        code=code,
        name=name,
        promo_type=promo_type,
        value=value,
        min_spend=Decimal(min_spend),
        max_discount=Decimal(max_discount),
        limit=limit,
        status=PromotionStatus.SCHEDULED if starts_at and starts_at > datetime.utcnow() else PromotionStatus.ACTIVE,
        starts_at=starts_at,
        ends_at=ends_at,
    )
    db.session.add(promo)
    db.session.commit()
    click.echo(f"Created promo {promo.code} ({promo.promo_type} {promo.value})")


@promos_cli.command('list')
@with_appcontext
def list_promos():
    """List promo codes."""
    for promo in Promotion.query.order_by(Promotion.code).all():
        limit = promo.limit or 'inf'
        click.echo(f"{promo.code:<20} {promo.promo_type:<14} {promo.value:>8} {promo.status:<9} used {promo.used}/{limit}")


def init_app(app):
    app.cli.add_command(promos_cli)
