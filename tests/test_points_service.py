"""
Tests for the points ledger.
"""
from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy.orm.exc import StaleDataError

from harvest_loyalty.models import LoyaltyAccount, MonthlySpend, PointsHistoryEntry
from harvest_loyalty.services.points_service import PointsService, run_account_write
from harvest_loyalty.utils.exceptions import (
    AccountNotFoundError,
    ConcurrencyError,
    InvalidAmountError,
    LoyaltyError,
)


class TestCalculatePoints:

    def test_one_point_per_hundred(self, app):
        service = PointsService()
        assert service.calculate_points(Decimal('1250')) == 12
        assert service.calculate_points(Decimal('99.99')) == 0
        assert service.calculate_points(Decimal('100')) == 1

    def test_multiplier(self, app):
        assert PointsService().calculate_points(Decimal('1250'), multiplier=2) == 24

    def test_custom_rate(self, app):
        assert PointsService(points_per_unit=50).calculate_points(Decimal('1250')) == 25


class TestAwardForOrder:

    def test_first_award_creates_account(self, award, now):
        result = award('user-1', 'order-1', '1500', now=now)

        assert result.awarded is True
        assert result.points_earned == 15
        account = LoyaltyAccount.query.filter_by(user_id='user-1').one()
        assert account.points == 15
        assert account.purchase_count == 1
        assert account.total_spent == Decimal('1500')
        assert account.tier == 'None'

    def test_reaches_sprout(self, award, now):
        result = award('user-1', 'order-1', '6000', now=now)
        assert result.account.points == 60
        assert result.account.tier == 'Sprout'

    def test_duplicate_order_is_noop(self, award, now):
        award('user-1', 'order-1', '6000', now=now)
        second = award('user-1', 'order-1', '6000', now=now)

        assert second.awarded is False
        assert second.points_earned == 0
        account = LoyaltyAccount.query.filter_by(user_id='user-1').one()
        assert account.points == 60
        assert account.purchase_count == 1
        assert account.total_spent == Decimal('6000')
        assert PointsHistoryEntry.query.count() == 1
        assert account.spend_for_month('2026-10') == Decimal('6000')

    def test_purchase_count_counts_distinct_orders(self, award, now):
        for order_id in ('a', 'b', 'a', 'c', 'b'):
            award('user-1', order_id, '200', now=now)

        account = LoyaltyAccount.query.filter_by(user_id='user-1').one()
        assert account.purchase_count == 3
        assert account.points == 6

    def test_same_order_id_for_different_users(self, award, now):
        award('user-1', 'order-1', '500', now=now)
        result = award('user-2', 'order-1', '500', now=now)
        assert result.awarded is True

    def test_zero_total_still_recorded(self, award, now):
        result = award('user-1', 'order-1', '0', now=now)

        assert result.awarded is True
        assert result.points_earned == 0
        assert result.account.purchase_count == 1
        assert len(result.account.history) == 1

    def test_negative_total_rejected(self, award, now):
        with pytest.raises(InvalidAmountError):
            award('user-1', 'order-1', '-10', now=now)
        assert LoyaltyAccount.query.count() == 0

    def test_missing_order_id(self, app, now):
        with pytest.raises(LoyaltyError) as exc_info:
            PointsService().award_for_order('user-1', '', Decimal('100'), now=now)
        assert exc_info.value.code == 'MISSING_FIELD'

    def test_monthly_spend_accumulates(self, award, now):
        award('user-1', 'order-1', '10000', now=now)
        result = award('user-1', 'order-2', '6000', now=now)

        assert result.account.tier == 'Seedling'
        assert result.account.spend_for_month('2026-10') == Decimal('16000')

    def test_new_month_starts_from_zero(self, award, now):
        award('user-1', 'order-1', '50000', now=now)
        result = award('user-1', 'order-2', '1000', now=datetime(2026, 11, 2))

        assert result.account.tier == 'None'
        assert result.account.total_spent == Decimal('51000')

    def test_old_buckets_pruned(self, award):
        award('user-1', 'order-1', '1000', now=datetime(2025, 9, 10))
        award('user-1', 'order-2', '1000', now=datetime(2025, 10, 10))
        award('user-1', 'order-3', '1000', now=datetime(2026, 10, 10))

        keys = [b.month_key for b in MonthlySpend.query.order_by(MonthlySpend.month_key).all()]
        assert keys == ['2025-10', '2026-10']

    def test_history_sums_to_balance(self, award, now):
        for i, total in enumerate(('1200', '350', '9999', '0')):
            award('user-1', f'order-{i}', total, now=now)

        account = LoyaltyAccount.query.filter_by(user_id='user-1').one()
        assert sum(e.points for e in account.history) == account.points


class TestBonusMultiplier:

    def test_bonus_reward_doubles_points_for_its_order(self, award, sprout_member, now):
        from harvest_loyalty.services.checkout_service import CheckoutService
        from harvest_loyalty.services.redemption_service import RedemptionService

        bonus = RedemptionService().redeem(sprout_member, 'bonus-points', now=now)
        CheckoutService().confirm_checkout(sprout_member, reward_id=bonus.id, order_id='order-200', now=now)

        doubled = award(sprout_member, 'order-200', '3000', now=now)
        plain = award(sprout_member, 'order-201', '3000', now=now)

        assert doubled.points_earned == 60
        assert plain.points_earned == 30


class TestStatus:

    def test_unknown_user(self, app, now):
        status = PointsService().get_status('nobody', now=now)

        assert status['points'] == 0
        assert status['purchase_count'] == 0
        assert status['tier'] == 'None'
        assert status['is_eligible'] is False
        assert status['card_issued'] is False
        assert status['next_tier']['tier'] == 'Sprout'
        assert status['next_tier']['spend_needed'] == 5000.0

    def test_sprout_member(self, sprout_member, now):
        status = PointsService().get_status(sprout_member, now=now)

        assert status['points'] == 60
        assert status['tier'] == 'Sprout'
        assert status['discount_percentage'] == 0
        assert status['monthly_spent'] == 6000.0
        assert status['month'] == '2026-10'
        assert status['next_tier'] == {
            'tier': 'Seedling',
            'min_monthly_spend': 15000.0,
            'spend_needed': 9000.0,
        }

    def test_tier_drops_at_month_boundary(self, sprout_member):
        status = PointsService().get_status(sprout_member, now=datetime(2026, 11, 1, 0, 0, 1))

        assert status['tier'] == 'None'
        assert status['points'] == 60
        assert status['monthly_spent'] == 0.0

    def test_top_tier_has_no_next(self, award, now):
        award('user-1', 'order-1', '120000', now=now)
        status = PointsService().get_status('user-1', now=now)

        assert status['tier'] == 'Harvester'
        assert status['discount_percentage'] == 20
        assert status['next_tier'] is None


class TestHistory:

    def test_newest_first(self, award, now):
        award('user-1', 'order-1', '100', now=now)
        award('user-1', 'order-2', '200', now=now)
        award('user-1', 'order-3', '300', now=now)

        result = PointsService().get_history('user-1')

        assert [e['order_id'] for e in result['history']] == ['order-3', 'order-2', 'order-1']
        assert result['total'] == 3
        assert result['points'] == 6

    def test_pagination(self, award, now):
        for i in range(5):
            award('user-1', f'order-{i}', '100', now=now)

        page = PointsService().get_history('user-1', limit=2, offset=2)

        assert [e['order_id'] for e in page['history']] == ['order-2', 'order-1']
        assert page['total'] == 5

    def test_unknown_user(self, app):
        assert PointsService().get_history('nobody') == {'history': [], 'total': 0, 'points': 0}


class TestVerifyLedger:

    def test_consistent(self, award, now):
        award('user-1', 'order-1', '1500', now=now)
        report = PointsService().verify_ledger('user-1')

        assert report['consistent'] is True
        assert report['history_points'] == 15

    def test_detects_drift(self, award, now, db):
        award('user-1', 'order-1', '1500', now=now)
        account = LoyaltyAccount.query.filter_by(user_id='user-1').one()
        account.points = 999
        db.session.commit()

        assert PointsService().verify_ledger('user-1')['consistent'] is False

    def test_unknown_user(self, app):
        with pytest.raises(AccountNotFoundError):
            PointsService().verify_ledger('nobody')


class TestRunAccountWrite:

    def test_retries_after_stale_write(self, app):
        calls = []

        def mutate(account):
            calls.append(1)
            if len(calls) == 1:
                raise StaleDataError('version mismatch')
            account.points = 5
            return account.points

        assert run_account_write('user-1', mutate) == 5
        assert len(calls) == 2

    def test_gives_up_after_retries(self, app):
        def mutate(account):
            raise StaleDataError('version mismatch')

        with pytest.raises(ConcurrencyError):
            run_account_write('user-1', mutate, retries=2)

    def test_missing_account_without_create(self, app):
        with pytest.raises(AccountNotFoundError):
            run_account_write('nobody', lambda account: None, create=False)

    def test_business_error_rolls_back(self, sprout_member):
        def mutate(account):
            account.points = 0
            raise LoyaltyError('nope')

        with pytest.raises(LoyaltyError):
            run_account_write(sprout_member, mutate)

        assert LoyaltyAccount.query.filter_by(user_id=sprout_member).one().points == 60


class TestPruneAll:

    def test_prunes_every_account(self, award):
        award('user-1', 'order-1', '1000', now=datetime(2025, 1, 5))
        award('user-2', 'order-1', '1000', now=datetime(2025, 2, 5))

        removed = PointsService().prune_all_monthly_spend(now=datetime(2026, 10, 1))

        assert removed == 2
        assert MonthlySpend.query.count() == 0
