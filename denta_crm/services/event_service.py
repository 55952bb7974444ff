"""
Personal calendar events. Every query is filtered by the owner, admins
included, so staff never see each other's events.
"""
import logging
from datetime import datetime

from denta_crm.extensions import db
from denta_crm.models import Event
from .errors import NotFoundError, ValidationError
from .store import commit

logger = logging.getLogger(__name__)

EVENT_FIELDS = ('title', 'date', 'time', 'location', 'description')
TITLE_MAX_LENGTH = 200


def _check_format(value, fmt, label):
    try:
        datetime.strptime(value, fmt)
    except ValueError:
        raise ValidationError(f'{label} has an invalid format')


def _clean(data, creating):
    unknown = set(data) - set(EVENT_FIELDS)
    if unknown:
        raise ValidationError(f'Unknown fields: {", ".join(sorted(unknown))}')

    cleaned = {}
    for key, value in data.items():
        if value is not None and not isinstance(value, str):
            raise ValidationError(f'Field "{key}" must be a string')
        cleaned[key] = (value or '').strip() or None

    for key in ('title', 'date'):
        if (creating or key in cleaned) and not cleaned.get(key):
            raise ValidationError(f'Event {key} is required')
    if cleaned.get('title') and len(cleaned['title']) > TITLE_MAX_LENGTH:
        raise ValidationError(f'Event title must not exceed {TITLE_MAX_LENGTH} characters')
    if cleaned.get('date'):
        _check_format(cleaned['date'], '%Y-%m-%d', 'Date')
    if cleaned.get('time'):
        _check_format(cleaned['time'], '%H:%M', 'Time')
    return cleaned


def _owned(owner, event_id):
    event = Event.query.filter_by(id=event_id, created_by_email=owner).first()
    if event is None:
        raise NotFoundError('Event not found')
    return event


def list_events(owner, date_from=None, date_to=None):
    """Owner's events by date then time; `date_from`/`date_to` are inclusive."""
    query = Event.query.filter_by(created_by_email=owner)
    if date_from:
        query = query.filter(Event.date >= date_from)
    if date_to:
        query = query.filter(Event.date <= date_to)
    return query.order_by(Event.date.asc(), Event.time.asc()).all()


def add_event(owner, data):
    if not owner:
        raise ValidationError('Event owner is required')
    event = Event(created_by_email=owner, **_clean(data, creating=True))
    db.session.add(event)
    commit()
    logger.info("Event %s created by %s", event.id, owner)
    return event


def update_event(owner, event_id, data):
    cleaned = _clean(data, creating=False)
    event = _owned(owner, event_id)
    for key, value in cleaned.items():
        setattr(event, key, value)
    commit()
    return event


def delete_event(owner, event_id):
    event = _owned(owner, event_id)
    db.session.delete(event)
    commit()
    logger.info("Event %s deleted by %s", event_id, owner)
