"""
Shared fixtures for the loyalty engine test suite.

The ``app`` fixture pushes an application context for the whole test, so
services can be called directly; ``client`` drives the HTTP API.
"""
from datetime import datetime
from decimal import Decimal

import pytest

from harvest_loyalty import create_app
from harvest_loyalty.extensions import db as _db


FIXED_NOW = datetime(2026, 10, 15, 12, 0, 0)


@pytest.fixture
def app():
    """Flask app on an in-memory SQLite database."""
    app = create_app('testing')

    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def user_headers():
    return {
        'X-User-Id': 'user-1',
        'Content-Type': 'application/json',
    }


@pytest.fixture
def award(app):
    """Award helper: award('user-1', 'order-1', '1500', now=...)."""
    from harvest_loyalty.services.points_service import PointsService

    def _award(user_id, order_id, total, now=None):
        return PointsService().award_for_order(user_id, order_id, Decimal(str(total)), now=now)

    return _award


@pytest.fixture
def sprout_member(award, now):
    """A member at Sprout this month with 60 points."""
    award('user-1', 'order-100', '6000', now=now)
    return 'user-1'
