from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy

# Shared handle; OrderDesk.init_app() binds it to the Flask app
db = SQLAlchemy()


def utcnow():
    """Current UTC time as a naive datetime, the form the DateTime columns store"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TimestampMixin:
    """created_at / updated_at columns maintained by the ORM"""
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)


def init_tables():
    """Create all tables registered on the shared metadata (requires app context)"""
    db.create_all()
