"""
HTTP API blueprints.
"""
from .loyalty import loyalty_bp
from .checkout import checkout_bp
