"""
Database Base Module

Creates the SQLAlchemy database instance that all models inherit from.
This is separate to avoid circular imports.
"""

import uuid
from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy

# Create the SQLAlchemy instance
# This will be initialized with the Flask app in app.py
db = SQLAlchemy()


def new_id():
    """Opaque string primary key for every engine table."""
    return uuid.uuid4().hex


def utcnow():
    return datetime.now(timezone.utc)
