"""
Points Ledger.

Owns LoyaltyAccount balances and the append-only points history:
- Awards points once per qualifying order (idempotent on order id)
- Tracks lifetime and per-month spend; the month bucket drives the tier
- Serves loyalty status and history for display

WRITE PATH:
Every mutation of an account goes through ``run_account_write``. It holds
the in-process lock for the user, then applies the mutation and commits.
LoyaltyAccount carries an optimistic version column, so if another
process committed first the commit raises StaleDataError and the whole
read-mutate-commit is replayed against fresh state. A unique-constraint
violation (another process created the account or awarded the same
order) is replayed the same way; the replay sees the winner's row.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_FLOOR
from typing import Any, Callable, Dict, Optional, TypeVar

from flask import current_app
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..models import LoyaltyAccount, PointsHistoryEntry, PointsSource, UsableReward
from ..utils.exceptions import AccountNotFoundError, ConcurrencyError, LoyaltyError
from ..utils.locks import account_locks
from ..utils.money import to_amount
from .tier_policy import Tier, level_for_spend, month_key, months_before, next_level, tier_for

logger = logging.getLogger(__name__)

T = TypeVar('T')

DEFAULT_POINTS_PER_CURRENCY_UNIT = 100


def load_account(user_id: str, create: bool = False) -> Optional[LoyaltyAccount]:
    """
    Fetch a user's account, optionally creating an empty one in the
    current transaction.
    """
    account = LoyaltyAccount.query.filter_by(user_id=user_id).first()
    if account is None and create:
        account = LoyaltyAccount(user_id=user_id)
        db.session.add(account)
        db.session.flush()
        logger.info('Created loyalty account for user %s', user_id)
    return account


def run_account_write(
    user_id: str,
    mutate: Callable[[LoyaltyAccount], T],
    create: bool = True,
    retries: int = None,
) -> T:
    """
    Apply ``mutate`` to the user's account and commit, serialized per user.

    Raises:
        AccountNotFoundError: create is False and the user has no account
        ConcurrencyError: every attempt lost an optimistic-version race
        LoyaltyError: whatever ``mutate`` raises (after rollback)
    """
    if retries is None:
        retries = current_app.config.get('ACCOUNT_WRITE_RETRIES', 3)

    with account_locks.hold(user_id):
        for attempt in range(1, retries + 1):
            try:
                account = load_account(user_id, create=create)
                if account is None:
                    raise AccountNotFoundError(user_id)
                result = mutate(account)
                db.session.commit()
                return result
            except (StaleDataError, IntegrityError) as e:
                db.session.rollback()
                logger.warning(
                    'Concurrent write on loyalty account %s (attempt %d/%d): %s',
                    user_id, attempt, retries, type(e).__name__
                )
            except Exception:
                db.session.rollback()
                raise

    raise ConcurrencyError(user_id)


@dataclass
class AwardResult:
    account: LoyaltyAccount
    awarded: bool
    points_earned: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'awarded': self.awarded,
            'points_earned': self.points_earned,
            'account': {
                'user_id': self.account.user_id,
                'points': self.account.points,
                'purchase_count': self.account.purchase_count,
                'total_spent': float(self.account.total_spent or 0),
                'tier': self.account.tier,
            },
        }


class PointsService:
    """
    Points Ledger operations.

    Usage:
        service = PointsService()
        result = service.award_for_order('user-1', 'order-9', Decimal('1250.00'))
        status = service.get_status('user-1')
    """

    def __init__(self, points_per_unit: int = None, retention_months: int = None):
        config = current_app.config
        self.points_per_unit = points_per_unit or config.get(
            'POINTS_PER_CURRENCY_UNIT', DEFAULT_POINTS_PER_CURRENCY_UNIT
        )
        self.retention_months = retention_months or config.get('MONTHLY_SPEND_RETENTION_MONTHS', 12)

    # ==================== Earning ====================

    def calculate_points(self, order_total: Decimal, multiplier: int = 1) -> int:
        """floor(order_total / points_per_unit) * multiplier."""
        base = (Decimal(order_total) / Decimal(self.points_per_unit)).to_integral_value(rounding=ROUND_FLOOR)
        return int(base) * max(1, int(multiplier))

    def award_for_order(
        self,
        user_id: str,
        order_id: str,
        order_total,
        now: datetime = None
    ) -> AwardResult:
        """
        Award points for a qualifying order.

        Re-delivery of an order already in the history is a silent no-op
        that returns the account unchanged with ``awarded=False``. The
        account is created on first award.

        Raises:
            InvalidAmountError: order_total is negative or not a number
        """
        total = to_amount(order_total, 'order_total')
        if not user_id:
            raise LoyaltyError('user_id is required', 'MISSING_FIELD')
        if order_id is None or str(order_id) == '':
            raise LoyaltyError('order_id is required', 'MISSING_FIELD')
        order_id = str(order_id)
        now = now or datetime.utcnow()

        def apply(account: LoyaltyAccount) -> AwardResult:
            if self._already_awarded(account, order_id):
                return AwardResult(account=account, awarded=False)

            points = self.calculate_points(total, self._bonus_multiplier(account, order_id))
            key = month_key(now)

            account.purchase_count = (account.purchase_count or 0) + 1
            account.total_spent = Decimal(account.total_spent or 0) + total
            bucket = account.add_monthly_spend(key, total)
            account.points = (account.points or 0) + points
            account.history.append(PointsHistoryEntry(
                points=points,
                source=PointsSource.PURCHASE,
                order_id=order_id,
                created_at=now,
            ))
            account.tier = tier_for(bucket.amount)[0].value
            self._prune_monthly_spend(account, key)

            return AwardResult(account=account, awarded=True, points_earned=points)

        result = run_account_write(str(user_id), apply)

        if result.awarded:
            current_app.logger.info(
                f"Points awarded: user {result.account.user_id} +{result.points_earned} pts "
                f"for order {order_id} (total {total}); tier {result.account.tier}"
            )
        else:
            current_app.logger.info(
                f"Order {order_id} already awarded for user {user_id}; ignoring duplicate"
            )
        return result

    def _already_awarded(self, account: LoyaltyAccount, order_id: str) -> bool:
        return PointsHistoryEntry.query.filter_by(
            account_id=account.id,
            source=PointsSource.PURCHASE,
            order_id=order_id,
        ).first() is not None

    def _bonus_multiplier(self, account: LoyaltyAccount, order_id: str) -> int:
        """Multiplier from a bonus reward consumed on this order, if any."""
        bonuses = UsableReward.query.filter_by(
            account_id=account.id,
            reward_type='bonus',
            consumed=True,
            order_id=order_id,
        ).all()
        if not bonuses:
            return 1
        return max(int(Decimal(b.value or 1)) for b in bonuses)

    # ==================== Monthly buckets ====================

    def _prune_monthly_spend(self, account: LoyaltyAccount, current_key: str) -> int:
        cutoff = months_before(current_key, self.retention_months)
        stale = [bucket for bucket in account.monthly_spend if bucket.month_key < cutoff]
        for bucket in stale:
            account.monthly_spend.remove(bucket)
        return len(stale)

    def prune_all_monthly_spend(self, now: datetime = None) -> int:
        """Drop expired monthly buckets for every account. Returns buckets removed."""
        key = month_key(now or datetime.utcnow())
        removed = 0
        user_ids = [row.user_id for row in db.session.query(LoyaltyAccount.user_id).all()]
        for user_id in user_ids:
            removed += run_account_write(
                user_id,
                lambda account: self._prune_monthly_spend(account, key),
                create=False,
            )
        return removed

    # ==================== Reads ====================

    def get_account(self, user_id: str) -> Optional[LoyaltyAccount]:
        return LoyaltyAccount.query.filter_by(user_id=str(user_id)).first()

    def get_status(self, user_id: str, now: datetime = None) -> Dict[str, Any]:
        """
        Loyalty status for display.

        The tier is derived from this month's spend at read time, so a
        member who has not bought anything since the month rolled over
        reads as tier None even before their next award.
        """
        account = self.get_account(user_id)
        key = month_key(now or datetime.utcnow())
        spend = account.spend_for_month(key) if account else Decimal('0')
        level = level_for_spend(spend)
        upcoming = next_level(spend)

        return {
            'user_id': str(user_id),
            'points': account.points if account else 0,
            'purchase_count': account.purchase_count if account else 0,
            'total_spent': float(account.total_spent or 0) if account else 0.0,
            'month': key,
            'monthly_spent': float(spend),
            'tier': level.tier.value,
            'discount_percentage': level.discount_percentage,
            'benefits': list(level.benefits),
            'is_eligible': level.tier != Tier.NONE,
            'card_issued': bool(account and account.card is not None),
            'next_tier': {
                'tier': upcoming[0].tier.value,
                'min_monthly_spend': float(upcoming[0].min_monthly_spend),
                'spend_needed': float(upcoming[1]),
            } if upcoming else None,
        }

    def get_history(self, user_id: str, limit: int = 50, offset: int = 0) -> Dict[str, Any]:
        """Points history newest first."""
        account = self.get_account(user_id)
        if account is None:
            return {'history': [], 'total': 0, 'points': 0}

        query = PointsHistoryEntry.query.filter_by(account_id=account.id)
        total = query.count()
        entries = query.order_by(PointsHistoryEntry.id.desc()).offset(offset).limit(limit).all()

        return {
            'history': [entry.to_dict() for entry in entries],
            'total': total,
            'points': account.points,
        }

    def verify_ledger(self, user_id: str) -> Dict[str, Any]:
        """Compare cached counters with the history they derive from."""
        account = self.get_account(user_id)
        if account is None:
            raise AccountNotFoundError(user_id)

        history_points = sum(entry.points for entry in account.history)
        purchases = [e for e in account.history if e.source == PointsSource.PURCHASE and e.order_id]
        return {
            'user_id': account.user_id,
            'points': account.points,
            'history_points': history_points,
            'purchase_count': account.purchase_count,
            'history_purchases': len(purchases),
            'consistent': history_points == account.points and len(purchases) == account.purchase_count,
        }
