"""
CLI Commands for the loyalty engine.

Usage:
    flask loyalty catalog
    flask loyalty status USER_ID
    flask loyalty verify USER_ID
    flask loyalty prune-monthly
    flask promos create CODE --name ... --type ...
    flask promos list
"""
from .loyalty import init_app as init_loyalty_commands
from .promos import init_app as init_promo_commands


def init_app(app):
    """Register all CLI commands with the Flask app."""
    init_loyalty_commands(app)
    init_promo_commands(app)
