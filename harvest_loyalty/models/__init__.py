"""
Database models for the loyalty engine.
"""
from .loyalty import (
    LoyaltyAccount,
    MonthlySpend,
    PointsHistoryEntry,
    PointsSource,
    DigitalCard,
)
from .rewards import UsableReward
from .promotions import Promotion, PromotionType, PromotionStatus

__all__ = [
    'LoyaltyAccount',
    'MonthlySpend',
    'PointsHistoryEntry',
    'PointsSource',
    'DigitalCard',
    'UsableReward',
    'Promotion',
    'PromotionType',
    'PromotionStatus',
]
