"""
Redeemed rewards owned by a member.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict

from ..extensions import db


class UsableReward(db.Model):
    """
    Snapshot of a catalog reward taken at redemption time.

    Stays usable until a confirmed checkout consumes it. Composing a
    checkout preview never touches this row.
    """
    __tablename__ = 'loyalty_usable_rewards'

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey('loyalty_accounts.id'), nullable=False, index=True)

    reward_name = db.Column(db.String(100), nullable=False)
    reward_type = db.Column(db.String(20), nullable=False)  # discount, shipping, bonus
    unit = db.Column(db.String(10), nullable=False, default='amount')  # amount, percent
    value = db.Column(db.Numeric(12, 2), nullable=False, default=Decimal('0'))
    points_cost = db.Column(db.Integer, nullable=False)
    icon = db.Column(db.String(16))
    description = db.Column(db.String(255))

    consumed = db.Column(db.Boolean, nullable=False, default=False)
    consumed_at = db.Column(db.DateTime)
    order_id = db.Column(db.String(64), index=True)  # order that consumed it

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def __init__(self, **kwargs):
        kwargs.setdefault('unit', 'amount')
        kwargs.setdefault('consumed', False)
        super().__init__(**kwargs)

    def __repr__(self):
        state = 'used' if self.consumed else 'open'
        return f'<UsableReward {self.id} {self.reward_name} {state}>'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'reward_name': self.reward_name,
            'reward_type': self.reward_type,
            'unit': self.unit,
            'value': float(self.value or 0),
            'points_cost': self.points_cost,
            'icon': self.icon,
            'description': self.description,
            'consumed': self.consumed,
            'consumed_at': self.consumed_at.isoformat() if self.consumed_at else None,
            'order_id': self.order_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
