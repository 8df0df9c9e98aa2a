"""
Loyalty engine services.

Leaf first: tier_policy -> points_service -> card_service ->
redemption_service; checkout_service sits on top of redemption and the
promo validator.
"""
from .tier_policy import Tier, TierLevel, tier_for, level_for, level_for_spend
from .rewards_catalog import Reward, RewardType, RewardUnit, RewardsCatalog, get_catalog
from .points_service import PointsService, AwardResult, run_account_write
from .card_service import CardService
from .redemption_service import RedemptionService
from .promo_validator import PromoValidator, PromotionValidator, PromoResult, PromoRejection
from .checkout_service import CheckoutService, CheckoutDiscount, compose_discount
from .order_awards import OrderAwardProcessor, OrderCompleted
