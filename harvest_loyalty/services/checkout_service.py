"""
Checkout Discount Composer.

compose_discount() merges at most one promo code and at most one redeemed
reward into a single discount:

- fixed amounts contribute their value
- percentages contribute subtotal * pct / 100 rounded half-up to the
  centavo, always taken from the original subtotal (sources add, they
  never compound)
- each part, and the total, never exceeds the subtotal
- free shipping is granted if either source grants it

Composing is a side-effect-free preview. A reward is consumed only by
CheckoutService.confirm_checkout(), called once the order is placed.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from flask import current_app

from ..extensions import db
from ..models import LoyaltyAccount, PointsHistoryEntry, PointsSource, UsableReward
from ..utils.exceptions import RewardAlreadyConsumedError, UsableRewardNotFoundError
from ..utils.locks import account_locks
from ..utils.money import percentage_of, to_amount
from .promo_validator import PromoOutcome, PromoRejection, PromoResult, PromoValidator, PromotionValidator

logger = logging.getLogger(__name__)

ZERO = Decimal('0')


@dataclass(frozen=True)
class CheckoutDiscount:
    subtotal: Decimal
    discount_amount: Decimal
    free_shipping: bool
    promo_discount: Decimal = ZERO
    reward_discount: Decimal = ZERO
    applied_reward_id: Optional[int] = None
    applied_reward_name: Optional[str] = None
    applied_promo_code: Optional[str] = None
    promo_rejected_reason: Optional[str] = None

    @property
    def net_total(self) -> Decimal:
        return max(ZERO, self.subtotal - self.discount_amount)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'subtotal': float(self.subtotal),
            'discount_amount': float(self.discount_amount),
            'net_total': float(self.net_total),
            'free_shipping': self.free_shipping,
            'promo_discount': float(self.promo_discount),
            'reward_discount': float(self.reward_discount),
            'applied_reward_id': self.applied_reward_id,
            'applied_reward_name': self.applied_reward_name,
            'applied_promo_code': self.applied_promo_code,
            'promo_rejected_reason': self.promo_rejected_reason,
        }


def _promo_part(subtotal: Decimal, promo: PromoResult) -> Decimal:
    if promo.percentage is not None:
        amount = percentage_of(subtotal, promo.percentage)
        if promo.max_discount is not None:
            amount = min(amount, Decimal(promo.max_discount))
        return min(amount, subtotal)
    if promo.discount_amount is not None:
        return min(Decimal(promo.discount_amount), subtotal)
    return ZERO


def _reward_part(subtotal: Decimal, reward: UsableReward) -> Decimal:
    if reward.reward_type != 'discount':
        return ZERO
    if reward.unit == 'percent':
        return min(percentage_of(subtotal, reward.value), subtotal)
    return min(Decimal(reward.value or 0), subtotal)


def compose_discount(
    cart_subtotal,
    promo: Optional[PromoOutcome] = None,
    reward: Optional[UsableReward] = None,
) -> CheckoutDiscount:
    """
    Combine one optional promo outcome and one optional usable reward.

    A PromoRejection contributes nothing; its reason is passed through
    for display.

    Raises:
        InvalidAmountError: cart_subtotal is negative or not a number
    """
    subtotal = to_amount(cart_subtotal, 'subtotal')

    promo_discount = ZERO
    free_shipping = False
    applied_code = None
    rejected_reason = None

    if isinstance(promo, PromoRejection):
        rejected_reason = promo.reason
    elif promo is not None:
        promo_discount = _promo_part(subtotal, promo)
        free_shipping = free_shipping or promo.free_shipping
        applied_code = promo.code

    reward_discount = ZERO
    if reward is not None:
        reward_discount = _reward_part(subtotal, reward)
        free_shipping = free_shipping or reward.reward_type == 'shipping'

    return CheckoutDiscount(
        subtotal=subtotal,
        discount_amount=min(promo_discount + reward_discount, subtotal),
        free_shipping=free_shipping,
        promo_discount=promo_discount,
        reward_discount=reward_discount,
        applied_reward_id=reward.id if reward is not None else None,
        applied_reward_name=reward.reward_name if reward is not None else None,
        applied_promo_code=applied_code,
        promo_rejected_reason=rejected_reason,
    )


class CheckoutService:
    """
    Usage:
        service = CheckoutService()
        preview = service.compose_for_user('user-1', '1000', promo_code='SAVE10', reward_id=3)
        service.confirm_checkout('user-1', reward_id=3, order_id='order-9', promo_code='SAVE10')
    """

    def __init__(self, promo_validator: PromoValidator = None):
        self.promo_validator = promo_validator or PromotionValidator()

    def _find_reward(self, user_id: str, reward_id) -> UsableReward:
        reward = UsableReward.query.join(LoyaltyAccount).filter(
            UsableReward.id == reward_id,
            LoyaltyAccount.user_id == str(user_id),
        ).first()
        if reward is None:
            raise UsableRewardNotFoundError(reward_id)
        return reward

    def _warn_if_already_awarded(self, reward: UsableReward, order_id: str) -> bool:
        """Bonus multipliers apply at award time; an order awarded earlier keeps its base points."""
        awarded = PointsHistoryEntry.query.filter_by(
            account_id=reward.account_id,
            source=PointsSource.PURCHASE,
            order_id=order_id,
        ).first() is not None
        if awarded:
            logger.warning(
                'Bonus reward %s consumed on order %s after it was awarded; multiplier not applied',
                reward.id, order_id
            )
        return awarded

    def compose_for_user(
        self,
        user_id: str,
        subtotal,
        promo_code: str = None,
        reward_id: int = None,
        now: datetime = None
    ) -> CheckoutDiscount:
        """
        Preview the discount for a cart. Reads only.

        Raises:
            InvalidAmountError: subtotal is negative or not a number
            UsableRewardNotFoundError: reward_id is not one of this user's rewards
            RewardAlreadyConsumedError: the reward was spent on an earlier order
        """
        amount = to_amount(subtotal, 'subtotal')

        reward = None
        if reward_id is not None:
            reward = self._find_reward(user_id, reward_id)
            if reward.consumed:
                raise RewardAlreadyConsumedError(reward_id)

        promo = None
        if promo_code:
            promo = self.promo_validator.validate_and_price(promo_code, amount, now=now)
            if isinstance(promo, PromoRejection):
                logger.info('Promo %s rejected for user %s: %s', promo.code, user_id, promo.reason)

        return compose_discount(amount, promo, reward)

    def confirm_checkout(
        self,
        user_id: str,
        reward_id: int = None,
        order_id: str = None,
        promo_code: str = None,
        now: datetime = None
    ) -> Dict[str, Any]:
        """
        Consume the reward (and count the promo use) for a placed order.

        Raises:
            UsableRewardNotFoundError: reward_id is not one of this user's rewards
            RewardAlreadyConsumedError: the reward was already consumed
        """
        now = now or datetime.utcnow()
        user_id = str(user_id)
        consumed_reward = None
        bonus_missed = False

        if reward_id is not None:
            with account_locks.hold(user_id):
                reward = self._find_reward(user_id, reward_id)
                # Conditional update: only one confirmation can flip the flag
                updated = UsableReward.query.filter_by(id=reward.id, consumed=False).update(
                    {
                        UsableReward.consumed: True,
                        UsableReward.consumed_at: now,
                        UsableReward.order_id: str(order_id) if order_id is not None else None,
                    },
                    synchronize_session=False,
                )
                if not updated:
                    db.session.rollback()
                    raise RewardAlreadyConsumedError(reward_id)
                db.session.commit()
                consumed_reward = reward.reward_name

                if reward.reward_type == 'bonus' and order_id is not None:
                    bonus_missed = self._warn_if_already_awarded(reward, str(order_id))

        promo_recorded = None
        if promo_code:
            promo_recorded = self.promo_validator.record_usage(promo_code)

        current_app.logger.info(
            f"Checkout confirmed for user {user_id}: order={order_id} "
            f"reward={consumed_reward} promo={promo_code}"
        )

        return {
            'user_id': user_id,
            'order_id': order_id,
            'consumed_reward_id': reward_id,
            'consumed_reward_name': consumed_reward,
            'promo_code': promo_code,
            'promo_usage_recorded': promo_recorded,
            'bonus_missed': bonus_missed,
        }
