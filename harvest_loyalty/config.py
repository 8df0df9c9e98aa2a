"""
Configuration for the Harvest loyalty engine.

Values come from the environment (a local ``.env`` is loaded first).
Select a class with ``get_config('development' | 'production' | 'testing')``.
"""
import os
from dotenv import load_dotenv

load_dotenv()

# Substrings that mark a SECRET_KEY copied from an example file
WEAK_SECRET_MARKERS = ('dev', 'change', 'default', 'test', 'secret', 'password')
MIN_SECRET_LENGTH = 32


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


def _database_url() -> str:
    url = os.getenv('DATABASE_URL', '')
    # Heroku-style URLs; SQLAlchemy only accepts the postgresql:// scheme
    if url.startswith('postgres://'):
        url = 'postgresql://' + url[len('postgres://'):]
    return url


class BaseConfig:
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Earning and tiers
    POINTS_PER_CURRENCY_UNIT = _int_env('POINTS_PER_CURRENCY_UNIT', 100)  # 1 point per 100 spent
    MONTHLY_SPEND_RETENTION_MONTHS = _int_env('MONTHLY_SPEND_RETENTION_MONTHS', 12)

    # Digital card
    CARD_VALIDITY_DAYS = _int_env('CARD_VALIDITY_DAYS', 365)

    # Optimistic-version retries for one ledger write
    ACCOUNT_WRITE_RETRIES = _int_env('ACCOUNT_WRITE_RETRIES', 3)

    # Optional JSON file replacing the built-in rewards catalog
    REWARDS_CATALOG_PATH = os.getenv('REWARDS_CATALOG_PATH')

    # Shared secret for order-completed events (HMAC-SHA256)
    ORDER_WEBHOOK_SECRET = os.getenv('ORDER_WEBHOOK_SECRET')

    # Reject unsigned order events when no secret is configured
    REQUIRE_WEBHOOK_SIGNATURE = False

    # Storefront origins allowed by CORS
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.getenv(
            'CORS_ORIGINS',
            'http://localhost:8081,http://localhost:19006,http://127.0.0.1:8081'
        ).split(',')
        if origin.strip()
    ]


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = _database_url() or 'sqlite:///harvest_loyalty_dev.db'


class ProductionConfig(BaseConfig):
    DEBUG = False
    REQUIRE_WEBHOOK_SIGNATURE = True
    SECRET_KEY = os.getenv('SECRET_KEY', '')
    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_size': 5,
        'pool_recycle': 300,
        'pool_pre_ping': True,
    }

    @classmethod
    def validate_secret_key(cls) -> str:
        """
        Refuse to boot production with a missing, short or placeholder key.

        Raises:
            RuntimeError: SECRET_KEY is unusable
        """
        key = cls.SECRET_KEY or ''
        if not key:
            raise RuntimeError(
                "SECRET_KEY is not set. "
                "Generate one with: python -c \"import secrets; print(secrets.token_hex(32))\""
            )

        weak = [marker for marker in WEAK_SECRET_MARKERS if marker in key.lower()]
        if weak:
            raise RuntimeError(f"SECRET_KEY looks like a placeholder (contains '{weak[0]}')")

        if len(key) < MIN_SECRET_LENGTH:
            raise RuntimeError(f"SECRET_KEY must be at least {MIN_SECRET_LENGTH} characters")

        return key

    @classmethod
    def validate_webhook_secret(cls) -> str:
        """
        Order events mint points; production never accepts them unsigned.

        Raises:
            RuntimeError: ORDER_WEBHOOK_SECRET is unset
        """
        if not cls.ORDER_WEBHOOK_SECRET:
            raise RuntimeError("ORDER_WEBHOOK_SECRET must be set in production")
        return cls.ORDER_WEBHOOK_SECRET


class TestingConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    ORDER_WEBHOOK_SECRET = None
    REWARDS_CATALOG_PATH = None


config_map = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
}


def get_config(config_name: str = 'development'):
    return config_map.get(config_name, DevelopmentConfig)


def validate_config(config_name: str = 'development') -> None:
    """Startup checks; only production has any."""
    if config_name == 'production':
        ProductionConfig.validate_secret_key()
        ProductionConfig.validate_webhook_secret()
