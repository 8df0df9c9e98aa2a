"""
Promo Validator.

Checkout asks a validator to check a code against the cart subtotal and
describe the discount it grants. The composer only ever sees the
outcome: a PromoResult or a PromoRejection with a reason to show.

PromotionValidator is the bundled implementation over the promotions
table. Deployments that validate codes elsewhere subclass PromoValidator.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional, Union

from sqlalchemy import or_

from ..extensions import db
from ..models import Promotion, PromotionStatus, PromotionType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PromoResult:
    """A validated code. Set either discount_amount or percentage (or neither)."""
    code: str
    discount_amount: Optional[Decimal] = None
    percentage: Optional[Decimal] = None
    free_shipping: bool = False
    max_discount: Optional[Decimal] = None


@dataclass(frozen=True)
class PromoRejection:
    code: str
    reason: str


PromoOutcome = Union[PromoResult, PromoRejection]


def normalize_code(code: str) -> str:
    return str(code or '').strip().upper()


class PromoValidator:
    """Interface for promo code validation."""

    def validate_and_price(self, code: str, subtotal: Decimal, now: datetime = None) -> PromoOutcome:
        raise NotImplementedError

    def record_usage(self, code: str) -> bool:
        """Count one confirmed use of the code. Returns False if the cap was hit."""
        return True


class PromotionValidator(PromoValidator):
    """Validates codes stored in the promotions table."""

    def validate_and_price(self, code: str, subtotal: Decimal, now: datetime = None) -> PromoOutcome:
        code = normalize_code(code)
        now = now or datetime.utcnow()

        promo = Promotion.query.filter_by(code=code).first()
        if promo is None:
            return PromoRejection(code, 'Invalid code')
        if promo.status == PromotionStatus.PAUSED:
            return PromoRejection(code, 'Promo is paused')
        if promo.starts_at and now < promo.starts_at:
            return PromoRejection(code, 'Promo not started')
        if promo.ends_at and now > promo.ends_at:
            return PromoRejection(code, 'Promo expired')
        if promo.limit and promo.used >= promo.limit:
            return PromoRejection(code, 'Promo usage limit reached')

        min_spend = Decimal(promo.min_spend or 0)
        if Decimal(subtotal) < min_spend:
            return PromoRejection(code, f'Minimum spend is ₱{min_spend:,.2f}')

        value = Decimal(promo.value or 0)
        if promo.promo_type == PromotionType.PERCENTAGE:
            cap = Decimal(promo.max_discount or 0)
            return PromoResult(code, percentage=min(value, Decimal(100)), max_discount=cap if cap > 0 else None)
        if promo.promo_type == PromotionType.FIXED_AMOUNT:
            return PromoResult(code, discount_amount=value)
        if promo.promo_type == PromotionType.FREE_SHIPPING:
            return PromoResult(code, free_shipping=True)

        logger.warning('Promotion %s has unknown type %r', code, promo.promo_type)
        return PromoRejection(code, 'Invalid code')

    def record_usage(self, code: str) -> bool:
        """Atomically increment ``used`` while under the usage limit."""
        updated = Promotion.query.filter(
            Promotion.code == normalize_code(code),
            or_(Promotion.limit == 0, Promotion.used < Promotion.limit),
        ).update(
            {Promotion.used: Promotion.used + 1},
            synchronize_session=False,
        )
        db.session.commit()
        if not updated:
            logger.warning('Promo %s usage not recorded (unknown code or limit reached)', code)
        return bool(updated)
