"""Shared pytest fixtures."""
from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest
from flask_jwt_extended import create_access_token

from denta_crm import create_app
from denta_crm.extensions import db
from denta_crm.models import Patient, PatientChange, User
from denta_crm.models.patient import STATUS_WAITING
from denta_crm.services import whitelist_service
from denta_crm.services.scope import CallerIdentity

ADMIN_EMAIL = 'admin@clinic.test'
STAFF_EMAIL = 'staff@clinic.test'
STAFF_PASSWORD = 'secret1'


@pytest.fixture
def app():
    """Application with a fresh in-memory database."""
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_caller():
    return CallerIdentity.admin(ADMIN_EMAIL)


@pytest.fixture
def make_patient(app):
    """Insert a visit record directly, bypassing services."""
    def _make(**fields):
        data = {'full_name': 'Иванов Иван', 'status': STATUS_WAITING, 'doctor': 'Петров'}
        data.update(fields)
        patient = Patient(**data)
        db.session.add(patient)
        db.session.commit()
        return patient
    return _make


@pytest.fixture
def directory(app):
    """Doctors, nurses and a staff email allowed to see doctor Петров."""
    for name in ('Петров', 'Сидоров'):
        whitelist_service.add_doctor(name)
    whitelist_service.add_nurse('Анна')
    whitelist_service.add_whitelist_email(STAFF_EMAIL, provider='email', doctor_names=['Петров'])


@pytest.fixture
def staff_user(directory):
    user = User(email=STAFF_EMAIL, first_name='Мария')
    user.set_password(STAFF_PASSWORD)
    db.session.add(user)
    db.session.commit()
    return user


def bearer(token):
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def admin_headers(client):
    """Token from the shared admin password login."""
    response = client.post('/api/auth/login', json={'email': '', 'password': 'test-admin-password'})
    assert response.status_code == 200
    return bearer(response.get_json()['access_token'])


def token_headers(email, is_admin=False):
    """Headers with an access token as issued by the login endpoints."""
    token = create_access_token(identity=email, additional_claims={'email': email, 'is_admin': is_admin})
    return bearer(token)


@pytest.fixture
def staff_headers(staff_user):
    return token_headers(staff_user.email)


def age_changes(patient_id, seconds=10):
    """Move a record's change-log entries into the past so the next edit is a separate pass."""
    for change in PatientChange.query.filter_by(patient_id=patient_id).all():
        change.changed_at = change.changed_at - timedelta(seconds=seconds)
    db.session.commit()


def record(full_name, birth_date=None, phone=None, emoji=None, notes=None, record_id=None):
    """Plain visit record for pure clustering tests."""
    fields = dict(
        id=record_id or f'{full_name}-{birth_date}-{phone}',
        full_name=full_name,
        birth_date=birth_date,
        phone=phone,
        emoji=emoji,
        notes=notes,
    )
    return SimpleNamespace(to_dict=lambda: dict(fields), **fields)


PAST = datetime(2020, 1, 1, 12, 0, 0)
