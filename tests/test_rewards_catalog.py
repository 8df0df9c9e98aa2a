"""
Tests for the rewards catalog.
"""
import json
from decimal import Decimal

import pytest

from harvest_loyalty.services.rewards_catalog import (
    DEFAULT_REWARDS,
    Reward,
    RewardType,
    RewardUnit,
    RewardsCatalog,
    get_catalog,
    reward_from_dict,
)
from harvest_loyalty.utils.exceptions import ConfigurationError, RewardNotFoundError


class TestDefaultCatalog:

    def test_defaults_loaded(self):
        catalog = RewardsCatalog(DEFAULT_REWARDS)
        assert len(catalog) == 6
        assert 'free-shipping' in catalog

    def test_get_known_reward(self):
        reward = RewardsCatalog(DEFAULT_REWARDS).get('discount-200')
        assert reward.type == RewardType.DISCOUNT
        assert reward.value == Decimal('200')
        assert reward.cost == 100

    def test_get_unknown_reward(self):
        with pytest.raises(RewardNotFoundError):
            RewardsCatalog(DEFAULT_REWARDS).get('free-tractor')

    def test_catalog_attached_to_app(self, app):
        assert len(get_catalog()) == len(DEFAULT_REWARDS)


class TestAnnotate:

    def test_affordability_flags(self):
        offers = RewardsCatalog(DEFAULT_REWARDS).annotate(points=80)
        by_name = {offer['name']: offer for offer in offers}

        assert by_name['bonus-points']['affordable'] is True
        assert by_name['discount-100']['affordable'] is True
        assert by_name['free-shipping']['affordable'] is True
        assert by_name['discount-200']['affordable'] is False
        assert by_name['discount-200']['points_needed'] == 20
        assert by_name['discount-100']['points_needed'] == 0

    def test_sorted_by_cost(self):
        costs = [offer['cost'] for offer in RewardsCatalog(DEFAULT_REWARDS).annotate(points=0)]
        assert costs == sorted(costs)


class TestCatalogFromData:

    def test_percent_reward(self):
        reward = reward_from_dict({
            'name': 'ten-percent', 'type': 'discount', 'unit': 'percent', 'value': 10, 'cost': 150,
        })
        assert reward.unit == RewardUnit.PERCENT
        assert reward.value == Decimal('10')

    @pytest.mark.parametrize('entry', [
        {'type': 'discount', 'value': 10, 'cost': 5},
        {'name': 'x', 'type': 'cashback', 'value': 10, 'cost': 5},
        {'name': 'x', 'type': 'discount', 'value': 10, 'cost': 0},
        {'name': 'x', 'type': 'discount', 'value': -1, 'cost': 5},
        {'name': 'x', 'type': 'discount', 'value': 120, 'unit': 'percent', 'cost': 5},
        {'name': 'x', 'type': 'shipping', 'value': 10, 'unit': 'percent', 'cost': 5},
        {'name': 'x', 'type': 'bonus', 'value': 0, 'cost': 5},
        {'name': 'x', 'type': 'discount', 'value': 10},
    ])
    def test_invalid_entries_rejected(self, entry):
        with pytest.raises(ConfigurationError):
            reward_from_dict(entry)

    def test_duplicate_names_rejected(self):
        reward = Reward('dup', RewardType.DISCOUNT, Decimal('10'), 5)
        with pytest.raises(ConfigurationError):
            RewardsCatalog([reward, reward])

    def test_load_from_file(self, tmp_path):
        path = tmp_path / 'rewards.json'
        path.write_text(json.dumps([
            {'name': 'seed-pack', 'type': 'discount', 'value': 50, 'cost': 10, 'icon': '🌱'},
            {'name': 'ship', 'type': 'shipping', 'cost': 30},
        ]), encoding='utf-8')

        catalog = RewardsCatalog.from_config({'REWARDS_CATALOG_PATH': str(path)})

        assert len(catalog) == 2
        assert catalog.get('seed-pack').icon == '🌱'
        assert catalog.get('ship').value == Decimal('0')

    def test_unreadable_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            RewardsCatalog.from_file(str(tmp_path / 'missing.json'))

    def test_file_must_be_a_list(self, tmp_path):
        path = tmp_path / 'rewards.json'
        path.write_text('{"name": "x"}', encoding='utf-8')
        with pytest.raises(ConfigurationError):
            RewardsCatalog.from_file(str(path))
