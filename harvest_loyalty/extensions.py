"""
Flask extension singletons shared by the loyalty engine.
"""
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

# Ledger, card and promotion storage
db = SQLAlchemy()

# Alembic migrations (flask db upgrade)
migrate = Migrate()
