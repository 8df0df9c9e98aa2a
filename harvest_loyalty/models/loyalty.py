"""
Loyalty ledger models.

One LoyaltyAccount per user holds the cached balance and counters; the
PointsHistoryEntry rows are the append-only ledger behind them.

Invariants:
- points == sum(history.points)
- purchase_count == number of 'purchase' entries, each with a distinct order_id
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from ..extensions import db


class PointsSource:
    """History entry sources."""
    PURCHASE = 'purchase'
    REDEMPTION = 'redemption'


class LoyaltyAccount(db.Model):
    """
    Per-user loyalty record.

    Writes are serialized per user (see services.points_service) and the
    row carries an optimistic version so that writers in other processes
    cannot overwrite each other's balance changes.
    """
    __tablename__ = 'loyalty_accounts'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False, unique=True, index=True)

    points = db.Column(db.Integer, nullable=False, default=0)
    purchase_count = db.Column(db.Integer, nullable=False, default=0)
    total_spent = db.Column(db.Numeric(14, 2), nullable=False, default=Decimal('0'))

    # Tier as of the last award; reads re-derive it from the current month
    tier = db.Column(db.String(20), nullable=False, default='None')

    member_since = db.Column(db.DateTime)
    version = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    monthly_spend = db.relationship(
        'MonthlySpend',
        backref='account',
        cascade='all, delete-orphan',
        order_by='MonthlySpend.month_key',
    )
    history = db.relationship(
        'PointsHistoryEntry',
        backref='account',
        cascade='all, delete-orphan',
        order_by='PointsHistoryEntry.id',
    )
    card = db.relationship(
        'DigitalCard',
        backref='account',
        uselist=False,
        cascade='all, delete-orphan',
    )
    usable_rewards = db.relationship(
        'UsableReward',
        backref='account',
        cascade='all, delete-orphan',
        order_by='UsableReward.id',
    )

    __mapper_args__ = {'version_id_col': version}

    def __init__(self, **kwargs):
        kwargs.setdefault('points', 0)
        kwargs.setdefault('purchase_count', 0)
        kwargs.setdefault('total_spent', Decimal('0'))
        kwargs.setdefault('tier', 'None')
        super().__init__(**kwargs)

    def __repr__(self):
        return f'<LoyaltyAccount user={self.user_id} pts={self.points} tier={self.tier}>'

    def spend_for_month(self, key: str) -> Decimal:
        for bucket in self.monthly_spend:
            if bucket.month_key == key:
                return Decimal(bucket.amount or 0)
        return Decimal('0')

    def add_monthly_spend(self, key: str, amount: Decimal) -> 'MonthlySpend':
        for bucket in self.monthly_spend:
            if bucket.month_key == key:
                bucket.amount = Decimal(bucket.amount or 0) + amount
                return bucket
        bucket = MonthlySpend(month_key=key, amount=amount)
        self.monthly_spend.append(bucket)
        return bucket

    def to_dict(self) -> Dict[str, Any]:
        return {
            'user_id': self.user_id,
            'points': self.points,
            'purchase_count': self.purchase_count,
            'total_spent': float(self.total_spent or 0),
            'tier': self.tier,
            'card_issued': self.card is not None,
            'member_since': self.member_since.isoformat() if self.member_since else None,
        }


class MonthlySpend(db.Model):
    """Spend accumulated by an account in one calendar month ('YYYY-MM')."""
    __tablename__ = 'loyalty_monthly_spend'

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey('loyalty_accounts.id'), nullable=False)
    month_key = db.Column(db.String(7), nullable=False)
    amount = db.Column(db.Numeric(14, 2), nullable=False, default=Decimal('0'))

    __table_args__ = (
        db.UniqueConstraint('account_id', 'month_key', name='uq_monthly_spend_account_month'),
    )

    def __repr__(self):
        return f'<MonthlySpend {self.month_key}: {self.amount}>'


class PointsHistoryEntry(db.Model):
    """
    Append-only ledger entry.

    Positive points for purchases, negative for redemptions. Rows are
    never updated; primary key order is insertion order.
    """
    __tablename__ = 'loyalty_points_history'

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey('loyalty_accounts.id'), nullable=False, index=True)

    points = db.Column(db.Integer, nullable=False)
    source = db.Column(db.String(30), nullable=False)
    order_id = db.Column(db.String(64))
    reward_name = db.Column(db.String(100))

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    # One purchase award per order; NULL order ids (redemptions) never collide
    __table_args__ = (
        db.UniqueConstraint('account_id', 'source', 'order_id', name='uq_points_history_order'),
    )

    def __repr__(self):
        return f'<PointsHistoryEntry {self.source} {self.points:+d} order={self.order_id}>'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'points': self.points,
            'source': self.source,
            'order_id': self.order_id,
            'reward_name': self.reward_name,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class DigitalCard(db.Model):
    """
    A member's digital loyalty card.

    card_id is generated once and never changes; tier label, theme and
    discount are refreshed in place as the member's tier moves.
    """
    __tablename__ = 'loyalty_digital_cards'

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey('loyalty_accounts.id'), nullable=False, unique=True)
    card_id = db.Column(db.String(32), nullable=False, unique=True)

    card_type = db.Column(db.String(20), nullable=False)  # tier label
    theme = db.Column(db.String(20), nullable=False)
    discount_percentage = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    issued_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    refreshed_at = db.Column(db.DateTime)
    expires_at = db.Column(db.DateTime)

    def __repr__(self):
        return f'<DigitalCard {self.card_id} {self.card_type}>'

    def to_dict(self, member_since: Optional[datetime] = None) -> Dict[str, Any]:
        return {
            'card_id': self.card_id,
            'card_type': self.card_type,
            'theme': self.theme,
            'discount_percentage': self.discount_percentage,
            'is_active': self.is_active,
            'issued_at': self.issued_at.isoformat() if self.issued_at else None,
            'expires_at': self.expires_at.isoformat() if self.expires_at else None,
            'member_since': member_since.isoformat() if member_since else None,
        }
