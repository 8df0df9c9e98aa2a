"""
Tier Policy.

Maps a member's spend for the current calendar month to a tier. Tiers
are evaluated highest-first with no overlap, so spend resets at each
month boundary and a tier can fall as well as rise.

The discount percentage attached to each tier is shown on the digital
card. Checkout discounts never read it; they come only from promo codes
and redeemed rewards.
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple


class Tier(str, Enum):
    """Reward tiers, lowest to highest."""
    NONE = 'None'
    SPROUT = 'Sprout'
    SEEDLING = 'Seedling'
    CULTIVATOR = 'Cultivator'
    BLOOM = 'Bloom'
    HARVESTER = 'Harvester'


@dataclass(frozen=True)
class TierLevel:
    tier: Tier
    min_monthly_spend: Decimal
    discount_percentage: int
    card_theme: str
    benefits: Tuple[str, ...] = ()

    def to_dict(self):
        return {
            'tier': self.tier.value,
            'min_monthly_spend': float(self.min_monthly_spend),
            'discount_percentage': self.discount_percentage,
            'card_theme': self.card_theme,
            'benefits': list(self.benefits),
        }


# Highest first
TIER_LEVELS: Tuple[TierLevel, ...] = (
    TierLevel(
        Tier.HARVESTER, Decimal('100000'), 20, 'platinum',
        ('20% card discount', 'Dedicated account manager', 'Free shipping on all orders',
         'Exclusive product access', 'VIP customer events'),
    ),
    TierLevel(
        Tier.BLOOM, Decimal('75000'), 15, 'platinum',
        ('15% card discount', 'Priority customer support', 'Free shipping on all orders',
         'Exclusive product access'),
    ),
    TierLevel(
        Tier.CULTIVATOR, Decimal('40000'), 10, 'gold',
        ('10% card discount', 'Priority customer support', 'Early access to sales'),
    ),
    TierLevel(
        Tier.SEEDLING, Decimal('15000'), 5, 'silver',
        ('5% card discount', 'Early access to sales'),
    ),
    TierLevel(
        Tier.SPROUT, Decimal('5000'), 0, 'bronze',
        ('Access to basic rewards',),
    ),
    TierLevel(Tier.NONE, Decimal('0'), 0, 'none'),
)

_LEVELS_BY_TIER = {level.tier: level for level in TIER_LEVELS}


def level_for_spend(monthly_spend) -> TierLevel:
    """Highest tier level whose threshold the spend meets."""
    spend = Decimal(str(monthly_spend or 0))
    for level in TIER_LEVELS:
        if spend >= level.min_monthly_spend:
            return level
    return _LEVELS_BY_TIER[Tier.NONE]


def tier_for(monthly_spend) -> Tuple[Tier, int]:
    """Return (tier, discount_percentage) for a month's spend."""
    level = level_for_spend(monthly_spend)
    return level.tier, level.discount_percentage


def level_for(tier) -> TierLevel:
    """Look up a tier level by Tier or tier name."""
    return _LEVELS_BY_TIER[Tier(tier)]


def discount_percentage_for(tier) -> int:
    return level_for(tier).discount_percentage


def next_level(monthly_spend) -> Optional[Tuple[TierLevel, Decimal]]:
    """
    The next tier above the current one and the spend still needed to
    reach it this month, or None at the top tier.
    """
    spend = Decimal(str(monthly_spend or 0))
    current = level_for_spend(spend)
    index = TIER_LEVELS.index(current)
    if index == 0:
        return None
    upcoming = TIER_LEVELS[index - 1]
    return upcoming, upcoming.min_monthly_spend - spend


def month_key(moment: datetime) -> str:
    """Calendar-month bucket key, e.g. '2026-10'."""
    return moment.strftime('%Y-%m')


def months_before(key: str, months: int) -> str:
    """The month key ``months`` calendar months before ``key``."""
    year, month = (int(part) for part in key.split('-'))
    index = year * 12 + (month - 1) - months
    return f'{index // 12:04d}-{index % 12 + 1:02d}'
