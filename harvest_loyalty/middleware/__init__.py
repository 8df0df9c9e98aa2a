"""
Middleware package for the loyalty engine.
"""
from .user_auth import require_user, get_user_id_from_request
