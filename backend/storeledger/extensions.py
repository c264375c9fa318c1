# Overview: Flask extension instances; one SQLAlchemy session per app context and Alembic migrations for the ledger schema.

from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
migrate = Migrate(directory="migrations")
