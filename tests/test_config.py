"""
Tests for startup configuration checks.
"""
import pytest

from harvest_loyalty.config import ProductionConfig, TestingConfig, validate_config

STRONG_KEY = 'ab12' * 16


class TestProductionValidation:

    def test_requires_webhook_secret(self, monkeypatch):
        monkeypatch.setattr(ProductionConfig, 'SECRET_KEY', STRONG_KEY)
        monkeypatch.setattr(ProductionConfig, 'ORDER_WEBHOOK_SECRET', None)

        with pytest.raises(RuntimeError, match='ORDER_WEBHOOK_SECRET'):
            validate_config('production')

    def test_accepts_complete_config(self, monkeypatch):
        monkeypatch.setattr(ProductionConfig, 'SECRET_KEY', STRONG_KEY)
        monkeypatch.setattr(ProductionConfig, 'ORDER_WEBHOOK_SECRET', 'whsec-9f8e7d6c')

        validate_config('production')

    def test_rejects_placeholder_secret_key(self, monkeypatch):
        monkeypatch.setattr(ProductionConfig, 'SECRET_KEY', 'dev-secret-key-change-in-production')
        monkeypatch.setattr(ProductionConfig, 'ORDER_WEBHOOK_SECRET', 'whsec-9f8e7d6c')

        with pytest.raises(RuntimeError, match='placeholder'):
            validate_config('production')

    def test_production_requires_signed_webhooks(self):
        assert ProductionConfig.REQUIRE_WEBHOOK_SIGNATURE is True
        assert TestingConfig.REQUIRE_WEBHOOK_SIGNATURE is False

    def test_other_environments_unchecked(self):
        validate_config('testing')
        validate_config('development')
