"""
Redemption Manager.

Turns catalog rewards into UsableReward instances owned by the member,
paying for them with points. Redemption is a ledger mutation plus a
catalog lookup; it never calls out to another service.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List

from flask import current_app

from ..models import LoyaltyAccount, PointsHistoryEntry, PointsSource, UsableReward
from ..utils.exceptions import InsufficientPointsError
from .card_service import CardService
from .points_service import run_account_write
from .rewards_catalog import RewardsCatalog, get_catalog

logger = logging.getLogger(__name__)


class RedemptionService:
    """
    Usage:
        service = RedemptionService()
        usable = service.redeem('user-1', 'discount-100')
        open_rewards = service.list_usable_rewards('user-1')
    """

    def __init__(self, catalog: RewardsCatalog = None, card_service: CardService = None):
        self.catalog = catalog or get_catalog()
        self.card_service = card_service or CardService()

    def list_usable_rewards(self, user_id: str) -> List[UsableReward]:
        """Redeemed rewards not yet consumed, oldest first."""
        account = LoyaltyAccount.query.filter_by(user_id=str(user_id)).first()
        if account is None:
            return []
        return UsableReward.query.filter_by(
            account_id=account.id,
            consumed=False,
        ).order_by(UsableReward.id.asc()).all()

    def list_available_rewards(self, user_id: str, affordable_only: bool = False) -> Dict[str, Any]:
        """Catalog entries annotated with affordability against the current balance."""
        account = LoyaltyAccount.query.filter_by(user_id=str(user_id)).first()
        points = account.points if account else 0

        rewards = self.catalog.annotate(points)
        if affordable_only:
            rewards = [r for r in rewards if r['affordable']]
        return {'points': points, 'rewards': rewards}

    def redeem(self, user_id: str, reward_name: str, now: datetime = None) -> UsableReward:
        """
        Spend points on a catalog reward.

        Raises:
            RewardNotFoundError: no catalog entry with that name
            AccountNotFoundError: the user has never earned points
            InsufficientPointsError: balance is below the reward's cost
        """
        reward = self.catalog.get(reward_name)
        now = now or datetime.utcnow()
        user_id = str(user_id)

        def apply(account: LoyaltyAccount) -> UsableReward:
            if account.points < reward.cost:
                logger.warning(
                    'Redemption of %s refused for user %s: %d pts, needs %d',
                    reward.name, user_id, account.points, reward.cost
                )
                raise InsufficientPointsError(account.points, reward.cost)

            account.points -= reward.cost
            account.history.append(PointsHistoryEntry(
                points=-reward.cost,
                source=PointsSource.REDEMPTION,
                reward_name=reward.name,
                created_at=now,
            ))
            usable = UsableReward(
                reward_name=reward.name,
                reward_type=reward.type.value,
                unit=reward.unit.value,
                value=reward.value,
                points_cost=reward.cost,
                icon=reward.icon,
                description=reward.description,
                created_at=now,
            )
            account.usable_rewards.append(usable)
            return usable

        usable = run_account_write(user_id, apply, create=False)

        current_app.logger.info(
            f"Reward redeemed: user {user_id} spent {reward.cost} pts on {reward.name} "
            f"(usable reward {usable.id})"
        )

        # Redemption is a card-issuing touchpoint
        self.card_service.get_or_issue_card(user_id, now=now)
        return usable
