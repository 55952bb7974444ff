from datetime import datetime

from denta_crm.extensions import db


class TimestampMixin:
    """Adds created_at / updated_at columns maintained by SQLAlchemy."""
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
