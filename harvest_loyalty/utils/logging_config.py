"""
Logging setup for the loyalty engine.

Usage:
    from harvest_loyalty.utils.logging_config import setup_logging

    setup_logging()
    logger = logging.getLogger(__name__)

Environment Variables:
    LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default INFO)
"""
import logging
import os
import sys

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'

_configured = False


def setup_logging(level: str = None) -> None:
    """Configure the root logger once per process."""
    global _configured
    if _configured:
        return

    level_name = (level or os.getenv('LOG_LEVEL', 'INFO')).upper()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    root.setLevel(getattr(logging, level_name, logging.INFO))
    root.addHandler(handler)

    # SQLAlchemy echoes every statement at INFO
    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)

    _configured = True
