"""
Merging duplicate client identities and remembering pairs that are not
duplicates.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import or_

from denta_crm.extensions import db
from denta_crm.models import Patient, IgnoredDuplicatePair
from denta_crm.utils.identity import normalize_name
from .audit_service import record_changes, validate_full_name
from .clustering import ClientIdentity, duplicate_pair_id, group_patients, identity_key
from .errors import NotFoundError, ValidationError
from .store import PatientStore, commit

logger = logging.getLogger(__name__)

IDENTITY_FIELDS = ('full_name', 'birth_date', 'emoji', 'notes')


@dataclass
class MergeConflict:
    """Values the user has to choose before two identities can be merged."""
    source: ClientIdentity
    target: ClientIdentity
    chosen_name: str
    chosen_birth_date: Optional[str]
    name_differs: bool
    birth_date_differs: bool

    def to_dict(self):
        return {
            'source': self.source.to_dict(include_records=False),
            'target': self.target.to_dict(include_records=False),
            'chosen_name': self.chosen_name,
            'chosen_birth_date': self.chosen_birth_date,
            'name_differs': self.name_differs,
            'birth_date_differs': self.birth_date_differs,
        }


def load_client_identities(caller):
    """Visible records grouped into identities, with their ignored pair tags."""
    clients = group_patients(PatientStore(caller).find())
    if not clients:
        return clients

    tags_by_key = {}
    for pair in IgnoredDuplicatePair.query.all():
        tags_by_key.setdefault(pair.identity_key_a, []).append(pair.pair_key)
        tags_by_key.setdefault(pair.identity_key_b, []).append(pair.pair_key)
    for client in clients:
        client.ignored_ids = sorted(tags_by_key.get(client.key, []))
    return clients


def find_identity(clients, name, birth_date):
    key = identity_key(name, birth_date or None)
    for client in clients:
        if client.key == key:
            return client
    raise NotFoundError(f'Client "{name}" not found')


def detect_conflict(source, target):
    name_differs = normalize_name(source.name) != normalize_name(target.name)
    birth_date_differs = (source.birth_date or None) != (target.birth_date or None)
    if not name_differs and not birth_date_differs:
        return None
    return MergeConflict(
        source=source,
        target=target,
        chosen_name=target.name,
        chosen_birth_date=target.birth_date,
        name_differs=name_differs,
        birth_date_differs=birth_date_differs,
    )


def start_merge(caller, source, target, changed_by_email=None):
    """
    Return a MergeConflict when names or birth dates differ; otherwise merge
    right away using the target's values and return None.
    """
    conflict = detect_conflict(source, target)
    if conflict is not None:
        return conflict
    confirm_merge(caller, source, target, target.name, target.birth_date, changed_by_email)
    return None


def _merged_notes(target, source):
    notes = (target.notes or '') + ('\n' + source.notes if source.notes else '')
    return notes or None


def confirm_merge(caller, source, target, name, birth_date, changed_by_email=None):
    """Merge `source` into `target` with the user-chosen name and birth date."""
    final = {
        'name': name,
        'birth_date': birth_date,
        'emoji': target.emoji or source.emoji,
        'notes': _merged_notes(target, source),
    }
    record_ids = source.record_ids + target.record_ids
    return merge_identities(caller, record_ids, final, changed_by_email)


def merge_identities(caller, record_ids, final, changed_by_email=None):
    """
    Rewrite name, birth date, emoji and notes on every listed record with
    one bulk UPDATE. Change-log rows for the affected records go into the
    same transaction. Returns the number of updated records.
    """
    name = validate_full_name(final.get('name'))
    birth_date = final.get('birth_date')
    if birth_date is not None and not isinstance(birth_date, str):
        raise ValidationError('Birth date must be a string')
    if not record_ids:
        raise ValidationError('No records to merge')

    patch = {
        'full_name': name,
        'birth_date': birth_date or None,
        'emoji': final.get('emoji') or None,
        'notes': final.get('notes') or None,
    }

    store = PatientStore(caller)
    records = store.find(Patient.id.in_(record_ids))
    changed_at = datetime.utcnow()
    for record in records:
        before = {column: getattr(record, column) for column in IDENTITY_FIELDS}
        record_changes(record.id, before, patch, changed_by_email, changed_at=changed_at)

    updated = store.update_where(dict(patch, updated_at=changed_at), Patient.id.in_(record_ids))
    commit()
    logger.info("Merged %d record(s) into client %r", updated, name)
    return updated


def ignore_duplicate(first, second, changed_by_email=None):
    """Remember that two identities are different people. Idempotent."""
    pair_key = duplicate_pair_id(first, second)
    if IgnoredDuplicatePair.query.filter_by(pair_key=pair_key).first() is not None:
        return pair_key

    key_a, key_b = sorted([first.key, second.key])
    db.session.add(IgnoredDuplicatePair(
        pair_key=pair_key,
        identity_key_a=key_a,
        identity_key_b=key_b,
        created_by_email=changed_by_email,
    ))
    commit()
    logger.info("Ignored duplicate pair %s", pair_key)
    return pair_key


def _birth_date_criterion(birth_date):
    if birth_date:
        return Patient.birth_date == birth_date
    return or_(Patient.birth_date.is_(None), Patient.birth_date == '')


def update_identity_profile(caller, name, birth_date, changed_by_email=None, **fields):
    """Set emoji and/or notes on every visible record of one client."""
    unknown = set(fields) - {'emoji', 'notes'}
    if unknown:
        raise ValidationError(f'Unknown fields: {", ".join(sorted(unknown))}')
    if not fields:
        raise ValidationError('Nothing to update')
    if any(value is not None and not isinstance(value, str) for value in fields.values()):
        raise ValidationError('Emoji and notes must be strings')

    store = PatientStore(caller)
    key = identity_key(name, birth_date or None)
    records = [
        record for record in store.find(_birth_date_criterion(birth_date))
        if identity_key(record.full_name, record.birth_date or None) == key
    ]
    if not records:
        raise NotFoundError(f'Client "{name}" not found')

    patch = {column: (value or None) for column, value in fields.items()}
    changed_at = datetime.utcnow()
    for record in records:
        before = record.data()
        for column, value in patch.items():
            setattr(record, column, value)
        if record_changes(record.id, before, record.data(), changed_by_email, changed_at=changed_at):
            record.updated_at = changed_at
    commit()
    return len(records)
