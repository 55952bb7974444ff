"""
Personal calendar events of a staff member.
"""
import uuid

from denta_crm.extensions import db
from .base import TimestampMixin


class Event(db.Model, TimestampMixin):
    """Visible only to the account that created it."""
    __tablename__ = 'events'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = db.Column(db.String(200), nullable=False)
    date = db.Column(db.String(10), nullable=False, index=True)  # YYYY-MM-DD
    time = db.Column(db.String(5))  # HH:MM
    location = db.Column(db.String(200))
    description = db.Column(db.Text)
    # Account email, or the shared admin subject
    created_by_email = db.Column(db.String(120), nullable=False, index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'date': self.date,
            'time': self.time,
            'location': self.location,
            'description': self.description,
            'created_by_email': self.created_by_email,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Event {self.date} {self.title}>"
