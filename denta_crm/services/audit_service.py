"""
Patient record writes with a field-level change log, revert of the latest
edit pass, and archive/restore instead of physical deletes.

Every public function here runs as one transaction: the record change and
its change-log rows (or the archive copy and the delete) commit together.
"""
import logging
from datetime import datetime, timedelta

from flask import current_app

from denta_crm.extensions import db
from denta_crm.models import Patient, PatientChange, DeletedPatient
from denta_crm.models.patient import PATIENT_STATUSES, STATUS_WAITING
from .errors import ConflictError, NotFoundError, ValidationError
from .store import PatientStore, commit

logger = logging.getLogger(__name__)

# Audited columns and the labels stored in patient_changes.field_name
TRACKED_FIELDS = {
    'full_name': 'ФИО',
    'phone': 'Телефон',
    'comments': 'Комментарии',
    'appointment_date': 'Дата записи',
    'appointment_time': 'Время записи',
    'status': 'Статус',
    'doctor': 'Доктор',
    'teeth': 'Зубы',
    'nurse': 'Медсестра',
    'birth_date': 'Дата рождения',
    'emoji': 'Смайлик',
    'notes': 'Общие заметки',
}
FIELD_BY_LABEL = {label: column for column, label in TRACKED_FIELDS.items()}

# Columns a staff edit may set
EDITABLE_FIELDS = set(TRACKED_FIELDS)


def _stringify(value):
    if value is None:
        return ''
    return str(value)


def _clean(value):
    """Empty strings are stored as NULL."""
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def validate_full_name(name):
    """Stripped client name; required and at most PATIENT_NAME_MAX_LENGTH characters."""
    if name is not None and not isinstance(name, str):
        raise ValidationError('Patient full name must be a string')
    name = (name or '').strip()
    if not name:
        raise ValidationError('Patient full name is required')
    max_length = current_app.config.get('PATIENT_NAME_MAX_LENGTH', 60)
    if len(name) > max_length:
        raise ValidationError(f'Patient full name must not exceed {max_length} characters')
    return name


def _validate(data, creating):
    if creating or 'full_name' in data:
        data['full_name'] = validate_full_name(data.get('full_name'))
    status = data.get('status')
    if status and status not in PATIENT_STATUSES:
        raise ValidationError(f'Unknown status "{status}"')


def _editable(data):
    unknown = set(data) - EDITABLE_FIELDS
    if unknown:
        raise ValidationError(f'Unknown fields: {", ".join(sorted(unknown))}')
    # Every editable column is text
    not_text = sorted(key for key, value in data.items() if value is not None and not isinstance(value, str))
    if not_text:
        raise ValidationError(f'Fields must be strings: {", ".join(not_text)}')
    return {key: _clean(value) for key, value in data.items()}


def record_changes(patient_id, old_record, new_record, changed_by_email=None, changed_at=None):
    """
    Add one PatientChange per tracked field whose value differs between the
    two snapshots (dicts). Returns the new entries; nothing is committed.
    """
    changed_at = changed_at or datetime.utcnow()
    entries = []
    for column, label in TRACKED_FIELDS.items():
        old_value = old_record.get(column)
        new_value = new_record.get(column)
        if _stringify(old_value) == _stringify(new_value):
            continue
        entries.append(PatientChange(
            patient_id=patient_id,
            field_name=label,
            old_value=_stringify(old_value) or None,
            new_value=_stringify(new_value) or None,
            changed_at=changed_at,
            changed_by_email=changed_by_email,
        ))
    if entries:
        db.session.add_all(entries)
    return entries


def get_patient(caller, patient_id):
    patient = PatientStore(caller).get(patient_id)
    if patient is None:
        raise NotFoundError('Patient not found')
    return patient


def list_patients(caller, appointment_date=None, doctor=None, nurse=None, search=None):
    criteria = []
    if appointment_date:
        criteria.append(Patient.appointment_date == appointment_date)
    if doctor:
        criteria.append(Patient.doctor == doctor)
    if nurse:
        criteria.append(Patient.nurse == nurse)
    if search:
        criteria.append(db.or_(
            Patient.full_name.ilike(f'%{search}%'),
            Patient.phone.ilike(f'%{search}%'),
        ))
    return PatientStore(caller).find(
        *criteria,
        order_by=[Patient.appointment_date.desc(), Patient.appointment_time.asc()],
    )


def add_patient(caller, data, created_by_email=None):
    """Validate and insert a new visit record."""
    data = _editable(data)
    _validate(data, creating=True)
    data['status'] = data.get('status') or STATUS_WAITING
    data['created_by_email'] = created_by_email

    patient, = PatientStore(caller).insert_many([data])
    commit()
    logger.info("Patient record %s created by %s", patient.id, created_by_email)
    return patient


def update_patient(caller, patient_id, new_data, changed_by_email=None):
    """
    Apply the provided fields to a visible record and log every tracked
    field that changed, in a single transaction. Returns the change entries.
    """
    new_data = _editable(new_data)
    _validate(new_data, creating=False)

    store = PatientStore(caller)
    patient = store.get(patient_id)
    if patient is None:
        raise NotFoundError('Patient not found')

    before = patient.data()
    for column, value in new_data.items():
        setattr(patient, column, value)
    after = patient.data()

    if not caller.can_see(after):
        db.session.rollback()
        raise ValidationError('Record would move outside of your doctors and nurses')

    entries = record_changes(patient_id, before, after, changed_by_email)
    if entries:
        patient.updated_at = datetime.utcnow()
    commit()
    return entries


def get_patient_changes(caller, patient_id):
    """Change history of a visible (or archived) record, newest first."""
    visible = PatientStore(caller).get(patient_id) is not None
    if not visible:
        visible = bool(PatientStore(caller, DeletedPatient).find(DeletedPatient.original_id == patient_id))
    if not visible:
        raise NotFoundError('Patient not found')
    return (PatientChange.query
            .filter(PatientChange.patient_id == patient_id)
            .order_by(PatientChange.changed_at.desc(), PatientChange.id.desc())
            .all())


def revert_changes(caller, patient_id, changed_by_email=None):
    """
    Undo the latest edit pass: every change logged within the revert window
    of the newest entry. For each field the most recent entry of that pass
    gives the value to restore. The revert is logged like any other edit.
    """
    changes = get_patient_changes(caller, patient_id)
    if not changes:
        raise ValidationError('Change history is empty')

    window = timedelta(seconds=current_app.config.get('REVERT_WINDOW_SECONDS', 2))
    latest = changes[0].changed_at

    previous = {}
    for change in changes:
        if latest - change.changed_at > window:
            break
        column = FIELD_BY_LABEL.get(change.field_name)
        if column and column not in previous:
            previous[column] = change.old_value

    if not previous:
        raise ValidationError('Could not determine fields to revert')

    logger.info("Reverting %d field(s) of patient %s", len(previous), patient_id)
    return update_patient(caller, patient_id, previous, changed_by_email)


def archive_and_remove(caller, patient_id, deleted_by_email=None):
    """Copy a record into deleted_patients and remove the live row atomically."""
    store = PatientStore(caller)
    patient = store.get(patient_id)
    if patient is None:
        raise NotFoundError('Patient not found')

    archived = DeletedPatient(
        original_id=patient.id,
        original_created_at=patient.created_at,
        deleted_by_email=deleted_by_email,
        deleted_at=datetime.utcnow(),
        **patient.data()
    )
    db.session.add(archived)
    store.delete_where(Patient.id == patient_id)
    commit()
    logger.info("Patient record %s archived by %s", patient_id, deleted_by_email)
    return archived


def list_deleted_patients(caller):
    return PatientStore(caller, DeletedPatient).find(
        order_by=[DeletedPatient.deleted_at.desc(), DeletedPatient.id.desc()]
    )


def restore(caller, patient_id):
    """
    Move the newest archive copy of `patient_id` back into patients with its
    original id. updated_at is set to now so the restore shows as a change.
    """
    archive = PatientStore(caller, DeletedPatient)
    copies = archive.find(
        DeletedPatient.original_id == patient_id,
        order_by=[DeletedPatient.deleted_at.desc(), DeletedPatient.id.desc()],
    )
    if not copies:
        raise NotFoundError('Deleted patient not found')
    if len(copies) > 1:
        logger.warning(
            "Found %d archive rows for patient %s, restoring the newest", len(copies), patient_id
        )

    if db.session.get(Patient, patient_id) is not None:
        raise ConflictError(f'Patient {patient_id} already exists')

    source = copies[0]
    now = datetime.utcnow()
    patient = Patient(id=patient_id, created_at=source.original_created_at or now, updated_at=now, **source.data())
    PatientStore(caller).insert_many([patient])
    archive.delete_where(DeletedPatient.id == source.id)
    commit()
    logger.info("Patient record %s restored", patient_id)
    return patient


def dashboard_stats(caller, today=None):
    today = today or datetime.utcnow().date().isoformat()
    return {
        'is_admin': caller.is_admin,
        'allowed_doctors': list(caller.allowed_doctors),
        'allowed_nurses': list(caller.allowed_nurses),
        'today_count': PatientStore(caller).query(Patient.appointment_date == today).count(),
    }
