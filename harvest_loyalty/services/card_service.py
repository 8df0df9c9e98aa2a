"""
Digital Card Manager.

A member gets one digital loyalty card, created the first time they hit a
qualifying touchpoint (profile view after login, or a redemption) while
holding a tier. After that the card is only ever refreshed: card_id is
fixed for the life of the account, while tier label, theme, discount and
expiry follow the member's current tier.
"""
import logging
import secrets
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from flask import current_app

from ..models import DigitalCard, LoyaltyAccount
from .points_service import run_account_write
from .tier_policy import Tier, TierLevel, level_for, level_for_spend, month_key

logger = logging.getLogger(__name__)

# Shown to members without a tier
PREVIEW_TIER = Tier.SPROUT


def generate_card_id() -> str:
    return f'LOYAL-{secrets.token_hex(6).upper()}'


def preview_card() -> Dict[str, Any]:
    level = level_for(PREVIEW_TIER)
    return {
        'card_id': None,
        'card_type': level.tier.value,
        'theme': level.card_theme,
        'discount_percentage': level.discount_percentage,
        'is_active': False,
        'issued_at': None,
        'expires_at': None,
        'member_since': None,
    }


class CardService:
    """
    Usage:
        card = CardService().get_or_issue_card('user-1')
    """

    def __init__(self, validity_days: int = None):
        self.validity_days = validity_days or current_app.config.get('CARD_VALIDITY_DAYS', 365)

    def _current_level(self, account: LoyaltyAccount, now: datetime) -> TierLevel:
        return level_for_spend(account.spend_for_month(month_key(now)))

    def _apply_level(self, card: DigitalCard, level: TierLevel, now: datetime) -> None:
        if level.tier == Tier.NONE:
            # Keep the last tier label; the card is dormant until the member qualifies again
            card.discount_percentage = 0
            card.is_active = False
        else:
            card.card_type = level.tier.value
            card.theme = level.card_theme
            card.discount_percentage = level.discount_percentage
            card.is_active = True
            card.expires_at = now + timedelta(days=self.validity_days)
        card.refreshed_at = now

    def get_or_issue_card(
        self,
        user_id: str,
        now: datetime = None,
        member_since: datetime = None
    ) -> Dict[str, Any]:
        """
        Return the member's card, issuing it if they now qualify.

        Safe to call on every profile view; repeated calls never change
        the card_id. Members with no tier and no card get an inactive
        preview that is not stored.
        """
        now = now or datetime.utcnow()
        user_id = str(user_id)

        account = LoyaltyAccount.query.filter_by(user_id=user_id).first()
        if account is None:
            return preview_card()
        if account.card is None and self._current_level(account, now).tier == Tier.NONE:
            return preview_card()

        def apply(account: LoyaltyAccount) -> Dict[str, Any]:
            if member_since and account.member_since is None:
                account.member_since = member_since

            level = self._current_level(account, now)
            card = account.card
            if card is None:
                if level.tier == Tier.NONE:
                    return preview_card()
                card = DigitalCard(
                    card_id=generate_card_id(),
                    card_type=level.tier.value,
                    theme=level.card_theme,
                    discount_percentage=level.discount_percentage,
                    is_active=True,
                    issued_at=now,
                    expires_at=now + timedelta(days=self.validity_days),
                )
                account.card = card
                current_app.logger.info(
                    f"Digital card {card.card_id} issued to user {user_id} ({level.tier.value})"
                )
            else:
                previous = (card.card_type, card.is_active)
                self._apply_level(card, level, now)
                if previous != (card.card_type, card.is_active):
                    current_app.logger.info(
                        f"Digital card {card.card_id} refreshed for user {user_id}: "
                        f"{previous[0]} -> {card.card_type} (active={card.is_active})"
                    )
            return card.to_dict(account.member_since)

        return run_account_write(user_id, apply, create=False)

    def refresh_card(self, user_id: str, now: datetime = None) -> Optional[Dict[str, Any]]:
        """Refresh an existing card after a ledger change. Never issues one."""
        now = now or datetime.utcnow()
        account = LoyaltyAccount.query.filter_by(user_id=str(user_id)).first()
        if account is None or account.card is None:
            return None

        def apply(account: LoyaltyAccount) -> Dict[str, Any]:
            self._apply_level(account.card, self._current_level(account, now), now)
            return account.card.to_dict(account.member_since)

        return run_account_write(str(user_id), apply, create=False)
