"""
Rewards Catalog.

The list of rewards members can buy with points. It is read-only
configuration: built once at startup (from the defaults below or from
the JSON file named by REWARDS_CATALOG_PATH) and stored on the Flask app
as ``app.extensions['rewards_catalog']``.

JSON file format:
    [
        {"name": "discount-100", "type": "discount", "value": 100,
         "cost": 50, "icon": "💰", "description": "₱100 discount voucher"},
        {"name": "ten-percent", "type": "discount", "unit": "percent",
         "value": 10, "cost": 150}
    ]
"""
import json
import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Tuple

from flask import current_app

from ..utils.exceptions import ConfigurationError, RewardNotFoundError

logger = logging.getLogger(__name__)


class RewardType(str, Enum):
    """Kinds of redeemable reward."""
    DISCOUNT = 'discount'   # money off the order
    SHIPPING = 'shipping'   # free shipping
    BONUS = 'bonus'         # points multiplier on the next awarded order


class RewardUnit(str, Enum):
    """How a discount reward's value is read."""
    AMOUNT = 'amount'
    PERCENT = 'percent'


@dataclass(frozen=True)
class Reward:
    name: str
    type: RewardType
    value: Decimal
    cost: int
    icon: str = ''
    description: str = ''
    unit: RewardUnit = RewardUnit.AMOUNT

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'type': self.type.value,
            'unit': self.unit.value,
            'value': float(self.value),
            'cost': self.cost,
            'icon': self.icon,
            'description': self.description,
        }


DEFAULT_REWARDS: Tuple[Reward, ...] = (
    Reward('discount-100', RewardType.DISCOUNT, Decimal('100'), 50, '💰', '₱100 discount voucher'),
    Reward('discount-200', RewardType.DISCOUNT, Decimal('200'), 100, '💎', '₱200 discount voucher'),
    Reward('discount-300', RewardType.DISCOUNT, Decimal('300'), 200, '🎁', '₱300 discount voucher'),
    Reward('discount-500', RewardType.DISCOUNT, Decimal('500'), 300, '🎉', '₱500 discount voucher'),
    Reward('free-shipping', RewardType.SHIPPING, Decimal('0'), 75, '🚚', 'Free shipping on next order'),
    Reward('bonus-points', RewardType.BONUS, Decimal('2'), 25, '⭐', 'Double points on next purchase'),
)


def reward_from_dict(data: Mapping[str, Any]) -> Reward:
    """
    Build a Reward from a catalog entry.

    Raises:
        ConfigurationError: missing fields or values out of range
    """
    name = data.get('name')
    if not name:
        raise ConfigurationError(f'Reward entry is missing a name: {dict(data)}')

    try:
        reward_type = RewardType(data.get('type'))
        unit = RewardUnit(data.get('unit', RewardUnit.AMOUNT.value))
        value = Decimal(str(data.get('value', 0)))
        cost = int(data['cost'])
    except (KeyError, ValueError, TypeError, InvalidOperation) as e:
        raise ConfigurationError(f'Invalid reward entry {name!r}: {e}')

    if cost <= 0:
        raise ConfigurationError(f'Reward {name!r} must cost a positive number of points')
    if value < 0:
        raise ConfigurationError(f'Reward {name!r} has a negative value')
    if unit is RewardUnit.PERCENT and (reward_type is not RewardType.DISCOUNT or value > 100):
        raise ConfigurationError(f'Reward {name!r}: percent unit needs a discount of at most 100')
    if reward_type is RewardType.BONUS and value < 1:
        raise ConfigurationError(f'Reward {name!r}: bonus multiplier must be at least 1')

    return Reward(
        name=name,
        type=reward_type,
        value=value,
        cost=cost,
        icon=data.get('icon', ''),
        description=data.get('description', ''),
        unit=unit,
    )


class RewardsCatalog:
    """
    Immutable, name-indexed collection of rewards.

    Usage:
        catalog = RewardsCatalog.from_config(app.config)
        reward = catalog.get('discount-100')
        offers = catalog.annotate(points=120)
    """

    def __init__(self, rewards: Iterable[Reward]):
        self._rewards: Tuple[Reward, ...] = tuple(rewards)
        self._by_name: Dict[str, Reward] = {}
        for reward in self._rewards:
            if reward.name in self._by_name:
                raise ConfigurationError(f'Duplicate reward name {reward.name!r}')
            self._by_name[reward.name] = reward

    @classmethod
    def from_file(cls, path: str) -> 'RewardsCatalog':
        try:
            with open(path, encoding='utf-8') as fh:
                entries = json.load(fh)
        except (OSError, ValueError) as e:
            raise ConfigurationError(f'Could not read rewards catalog {path}: {e}')

        if not isinstance(entries, list):
            raise ConfigurationError(f'Rewards catalog {path} must be a JSON list')
        return cls(reward_from_dict(entry) for entry in entries)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> 'RewardsCatalog':
        path = config.get('REWARDS_CATALOG_PATH')
        if path:
            return cls.from_file(path)
        return cls(DEFAULT_REWARDS)

    def __iter__(self) -> Iterator[Reward]:
        return iter(self._rewards)

    def __len__(self) -> int:
        return len(self._rewards)

    def __contains__(self, name: str) -> bool:
        return name in self._by_name

    def get(self, name: str) -> Reward:
        reward = self._by_name.get(name)
        if reward is None:
            raise RewardNotFoundError(name)
        return reward

    def annotate(self, points: int) -> List[Dict[str, Any]]:
        """Every reward with affordability for a given balance, cheapest first."""
        return [
            {
                **reward.to_dict(),
                'affordable': points >= reward.cost,
                'points_needed': max(0, reward.cost - points),
            }
            for reward in sorted(self._rewards, key=lambda r: (r.cost, r.name))
        ]


def init_catalog(app) -> RewardsCatalog:
    """Load the catalog once and attach it to the app."""
    catalog = RewardsCatalog.from_config(app.config)
    app.extensions['rewards_catalog'] = catalog
    logger.info('Rewards catalog loaded with %d rewards', len(catalog))
    return catalog


def get_catalog() -> RewardsCatalog:
    """Catalog for the current app."""
    return current_app.extensions['rewards_catalog']
