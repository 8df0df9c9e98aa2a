"""
Tests for the digital card manager.
"""
import re
from datetime import datetime, timedelta

from harvest_loyalty.models import DigitalCard
from harvest_loyalty.services.card_service import CardService, generate_card_id, preview_card


class TestCardIssuance:

    def test_no_account_gets_preview(self, app, now):
        card = CardService().get_or_issue_card('nobody', now=now)

        assert card == preview_card()
        assert card['card_type'] == 'Sprout'
        assert card['is_active'] is False
        assert DigitalCard.query.count() == 0

    def test_untiered_member_gets_preview(self, award, now):
        award('user-1', 'order-1', '1000', now=now)

        card = CardService().get_or_issue_card('user-1', now=now)

        assert card['card_id'] is None
        assert card['is_active'] is False
        assert DigitalCard.query.count() == 0

    def test_sprout_member_gets_card(self, sprout_member, now):
        card = CardService().get_or_issue_card(sprout_member, now=now)

        assert re.fullmatch(r'LOYAL-[0-9A-F]{12}', card['card_id'])
        assert card['card_type'] == 'Sprout'
        assert card['theme'] == 'bronze'
        assert card['discount_percentage'] == 0
        assert card['is_active'] is True
        assert DigitalCard.query.count() == 1

    def test_repeat_calls_keep_card_id(self, sprout_member, now):
        service = CardService()
        first = service.get_or_issue_card(sprout_member, now=now)
        second = service.get_or_issue_card(sprout_member, now=now + timedelta(hours=1))

        assert first['card_id'] == second['card_id']
        assert DigitalCard.query.count() == 1

    def test_member_since_set_once(self, sprout_member, now):
        service = CardService()
        joined = datetime(2024, 3, 1)
        service.get_or_issue_card(sprout_member, now=now, member_since=joined)
        card = service.get_or_issue_card(sprout_member, now=now, member_since=datetime(2025, 1, 1))

        assert card['member_since'] == joined.isoformat()

    def test_generated_ids_differ(self):
        assert generate_card_id() != generate_card_id()


class TestCardRefresh:

    def test_tier_upgrade_keeps_card_id(self, sprout_member, award, now):
        service = CardService()
        issued = service.get_or_issue_card(sprout_member, now=now)

        award(sprout_member, 'order-101', '70000', now=now)
        refreshed = service.get_or_issue_card(sprout_member, now=now)

        assert refreshed['card_id'] == issued['card_id']
        assert refreshed['card_type'] == 'Bloom'
        assert refreshed['theme'] == 'platinum'
        assert refreshed['discount_percentage'] == 15
        assert DigitalCard.query.count() == 1

    def test_refresh_after_award_keeps_card_id(self, sprout_member, award, now):
        service = CardService()
        issued = service.get_or_issue_card(sprout_member, now=now)

        award(sprout_member, 'order-101', '10000', now=now)
        refreshed = service.refresh_card(sprout_member, now=now)

        assert refreshed['card_id'] == issued['card_id']
        assert refreshed['card_type'] == 'Seedling'

    def test_expiry_extended_on_refresh(self, sprout_member, now):
        service = CardService(validity_days=30)
        service.get_or_issue_card(sprout_member, now=now)

        later = now + timedelta(days=10)
        card = service.refresh_card(sprout_member, now=later)

        assert card['expires_at'] == (later + timedelta(days=30)).isoformat()

    def test_inactive_after_month_rollover(self, sprout_member, now):
        service = CardService()
        service.get_or_issue_card(sprout_member, now=now)

        card = service.get_or_issue_card(sprout_member, now=datetime(2026, 11, 3))

        assert card['card_id'] is not None
        assert card['card_type'] == 'Sprout'
        assert card['discount_percentage'] == 0
        assert card['is_active'] is False

    def test_refresh_never_issues(self, sprout_member, now):
        assert CardService().refresh_card(sprout_member, now=now) is None
        assert DigitalCard.query.count() == 0
