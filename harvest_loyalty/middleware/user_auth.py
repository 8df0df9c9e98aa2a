"""
Caller identity.

Authentication happens in front of this service. The gateway forwards
the authenticated user id in ``X-User-Id`` and, when it knows it, the
account creation time in ``X-User-Created-At`` (ISO 8601).
"""
from datetime import datetime
from functools import wraps
from typing import Optional

from flask import g, request

from ..utils.errors import unauthorized


def get_user_id_from_request() -> Optional[str]:
    user_id = request.headers.get('X-User-Id', '').strip()
    return user_id or None


def get_user_created_at() -> Optional[datetime]:
    raw = request.headers.get('X-User-Created-At')
    if not raw:
        return None
    try:
        parsed = datetime.fromisoformat(raw.replace('Z', '+00:00'))
    except ValueError:
        return None
    # Stored naive UTC like every other timestamp
    if parsed.tzinfo is not None:
        parsed = (parsed - parsed.utcoffset()).replace(tzinfo=None)
    return parsed


def require_user(f):
    """Reject requests without a caller id; expose it as g.user_id."""
    @wraps(f)
    def decorated(*args, **kwargs):
        user_id = get_user_id_from_request()
        if not user_id:
            return unauthorized('X-User-Id header is required')
        g.user_id = user_id
        g.user_created_at = get_user_created_at()
        return f(*args, **kwargs)
    return decorated
