"""
Promo codes.

Storage for the bundled promo validator. Codes are stored upper-case.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict

from ..extensions import db


class PromotionType:
    PERCENTAGE = 'Percentage'
    FIXED_AMOUNT = 'Fixed Amount'
    FREE_SHIPPING = 'Free Shipping'

    ALL = (PERCENTAGE, FIXED_AMOUNT, FREE_SHIPPING)


class PromotionStatus:
    ACTIVE = 'Active'
    PAUSED = 'Paused'
    SCHEDULED = 'Scheduled'

    ALL = (ACTIVE, PAUSED, SCHEDULED)


class Promotion(db.Model):
    __tablename__ = 'promotions'

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(20), nullable=False, unique=True, index=True)
    name = db.Column(db.String(100), nullable=False)
    promo_type = db.Column(db.String(20), nullable=False)

    value = db.Column(db.Numeric(12, 2), nullable=False, default=Decimal('0'))
    min_spend = db.Column(db.Numeric(12, 2), nullable=False, default=Decimal('0'))
    max_discount = db.Column(db.Numeric(12, 2), nullable=False, default=Decimal('0'))  # 0 = no cap

    used = db.Column(db.Integer, nullable=False, default=0)
    limit = db.Column(db.Integer, nullable=False, default=0)  # 0 = unlimited

    status = db.Column(db.String(20), nullable=False, default=PromotionStatus.ACTIVE)
    starts_at = db.Column(db.DateTime)
    ends_at = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __init__(self, **kwargs):
        if kwargs.get('code'):
            kwargs['code'] = kwargs['code'].strip().upper()
        kwargs.setdefault('used', 0)
        kwargs.setdefault('limit', 0)
        kwargs.setdefault('status', PromotionStatus.ACTIVE)
        kwargs.setdefault('min_spend', Decimal('0'))
        kwargs.setdefault('max_discount', Decimal('0'))
        super().__init__(**kwargs)

    def __repr__(self):
        return f'<Promotion {self.code} {self.promo_type} {self.value}>'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'code': self.code,
            'name': self.name,
            'type': self.promo_type,
            'value': float(self.value or 0),
            'min_spend': float(self.min_spend or 0),
            'max_discount': float(self.max_discount or 0),
            'used': self.used,
            'limit': self.limit,
            'status': self.status,
            'starts_at': self.starts_at.isoformat() if self.starts_at else None,
            'ends_at': self.ends_at.isoformat() if self.ends_at else None,
        }
