"""
Doctors, nurses and the email whitelist that decides which of them a
non-admin user may see.
"""
import logging

from sqlalchemy.exc import IntegrityError

from denta_crm.extensions import db
from denta_crm.models import (
    Doctor, Nurse, WhitelistEmail, WhitelistEmailDoctor, WhitelistEmailNurse,
)
from denta_crm.models.directory import WHITELIST_PROVIDERS
from .errors import ConflictError, NotFoundError, ValidationError
from .scope import CallerIdentity
from .store import commit

logger = logging.getLogger(__name__)


def _normalize_email(email):
    return (email or '').strip().lower()


def _clean_names(names):
    cleaned = []
    for name in names or []:
        name = (name or '').strip()
        if name and name not in cleaned:
            cleaned.append(name)
    return cleaned


# ========== DOCTORS / NURSES ==========

def list_doctors():
    return [d.name for d in Doctor.query.order_by(Doctor.name.asc()).all()]


def list_nurses():
    return [n.name for n in Nurse.query.order_by(Nurse.name.asc()).all()]


def _add_named(model, name, label):
    name = (name or '').strip()
    if not name:
        raise ValidationError(f'{label} name is required')
    if model.query.filter_by(name=name).first():
        raise ConflictError(f'{label} "{name}" already exists')
    db.session.add(model(name=name))
    commit()
    return name


def _delete_named(model, name, label):
    deleted = model.query.filter_by(name=name).delete()
    if not deleted:
        raise NotFoundError(f'{label} "{name}" not found')
    commit()


def add_doctor(name):
    return _add_named(Doctor, name, 'Doctor')


def delete_doctor(name):
    _delete_named(Doctor, name, 'Doctor')


def add_nurse(name):
    return _add_named(Nurse, name, 'Nurse')


def delete_nurse(name):
    _delete_named(Nurse, name, 'Nurse')


# ========== WHITELIST ==========

def get_whitelist_entry(email):
    return WhitelistEmail.query.filter_by(email=_normalize_email(email)).first()


def is_whitelisted(email, provider=None):
    entry = get_whitelist_entry(email)
    if entry is None:
        return False
    return provider is None or entry.provider == provider


def list_whitelist(provider=None):
    query = WhitelistEmail.query.order_by(WhitelistEmail.email.asc())
    if provider:
        query = query.filter_by(provider=provider)
    return query.all()


def add_whitelist_email(email, provider='email', doctor_names=None, nurse_names=None):
    email = _normalize_email(email)
    if not email or '@' not in email:
        raise ValidationError('A valid email is required')
    if provider not in WHITELIST_PROVIDERS:
        raise ValidationError(f'Provider must be one of: {", ".join(WHITELIST_PROVIDERS)}')

    entry = WhitelistEmail(email=email, provider=provider)
    entry.doctors = [WhitelistEmailDoctor(doctor_name=name) for name in _clean_names(doctor_names)]
    entry.nurses = [WhitelistEmailNurse(nurse_name=name) for name in _clean_names(nurse_names)]
    db.session.add(entry)
    try:
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f'Email {email} is already whitelisted')
    commit()
    logger.info("Whitelisted %s (%s)", email, provider)
    return entry


def update_whitelist_staff(email, doctor_names=None, nurse_names=None):
    """Replace the doctors and/or nurses linked to a whitelisted email."""
    entry = get_whitelist_entry(email)
    if entry is None:
        raise NotFoundError('Email not found')
    if doctor_names is not None:
        entry.doctors = [WhitelistEmailDoctor(doctor_name=name) for name in _clean_names(doctor_names)]
    if nurse_names is not None:
        entry.nurses = [WhitelistEmailNurse(nurse_name=name) for name in _clean_names(nurse_names)]
    commit()
    return entry


def delete_whitelist_email(email):
    entry = get_whitelist_entry(email)
    if entry is None:
        raise NotFoundError('Email not found')
    db.session.delete(entry)
    commit()
    logger.info("Removed %s from whitelist", entry.email)


def allowed_doctors(email):
    entry = get_whitelist_entry(email)
    if entry is None:
        return []
    return sorted(d.doctor_name for d in entry.doctors)


def allowed_nurses(email):
    entry = get_whitelist_entry(email)
    if entry is None:
        return []
    return sorted(n.nurse_name for n in entry.nurses)


def build_caller(email, is_admin=False):
    """CallerIdentity with the whitelist scope of `email` resolved."""
    email = _normalize_email(email) or None
    if is_admin:
        return CallerIdentity.admin(email)
    if email is None:
        return CallerIdentity()
    return CallerIdentity(
        email=email,
        allowed_doctors=tuple(allowed_doctors(email)),
        allowed_nurses=tuple(allowed_nurses(email)),
    )
