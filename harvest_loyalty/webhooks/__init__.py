"""
Inbound event handlers.
"""
from .order_events import order_events_bp
