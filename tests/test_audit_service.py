"""Tests for audited patient writes, revert and the archive."""

from datetime import datetime

import pytest

from conftest import PAST, age_changes
from denta_crm.extensions import db
from denta_crm.models import DeletedPatient, Patient, PatientChange
from denta_crm.models.patient import STATUS_CONFIRMED, STATUS_WAITING
from denta_crm.services import audit_service
from denta_crm.services.errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from denta_crm.services.scope import CallerIdentity

PETROV_ONLY = CallerIdentity(email='staff@clinic.test', allowed_doctors=('Петров',))


class TestRecordChanges:
    """Tests for record_changes."""

    def test_one_entry_per_changed_tracked_field(self, app):
        old = {'doctor': 'Петров', 'phone': '79990000000', 'teeth': None}
        new = {'doctor': 'Сидоров', 'phone': '79991111111', 'teeth': ''}
        entries = audit_service.record_changes('p1', old, new, 'a@clinic.test')
        assert sorted(e.field_name for e in entries) == ['Доктор', 'Телефон']

    def test_no_entries_when_nothing_changed(self, app):
        data = {'doctor': 'Петров', 'comments': 'ok'}
        assert audit_service.record_changes('p1', data, dict(data)) == []

    def test_untracked_fields_are_ignored(self, app):
        entries = audit_service.record_changes('p1', {'created_by_email': 'a'}, {'created_by_email': 'b'})
        assert entries == []

    def test_values_are_stringified(self, app):
        entry, = audit_service.record_changes('p1', {'teeth': None}, {'teeth': 11})
        assert entry.old_value is None
        assert entry.new_value == '11'


class TestAddPatient:
    """Tests for add_patient."""

    def test_creates_record_with_defaults(self, app, admin_caller):
        patient = audit_service.add_patient(admin_caller, {'full_name': '  Иванов Иван '}, 'admin@clinic.test')
        stored = db.session.get(Patient, patient.id)
        assert stored.full_name == 'Иванов Иван'
        assert stored.status == STATUS_WAITING
        assert stored.created_by_email == 'admin@clinic.test'

    def test_name_is_required(self, app, admin_caller):
        with pytest.raises(ValidationError):
            audit_service.add_patient(admin_caller, {'full_name': '   '})

    def test_name_length_is_limited(self, app, admin_caller):
        with pytest.raises(ValidationError):
            audit_service.add_patient(admin_caller, {'full_name': 'Я' * 61})

    def test_unknown_status_is_rejected(self, app, admin_caller):
        with pytest.raises(ValidationError):
            audit_service.add_patient(admin_caller, {'full_name': 'Иванов', 'status': 'Done'})

    def test_unknown_field_is_rejected(self, app, admin_caller):
        with pytest.raises(ValidationError):
            audit_service.add_patient(admin_caller, {'full_name': 'Иванов', 'id': 'custom'})

    def test_creator_cannot_be_supplied(self, app, admin_caller):
        with pytest.raises(ValidationError):
            audit_service.add_patient(admin_caller, {'full_name': 'Иванов', 'created_by_email': 'other@clinic.test'})

    @pytest.mark.parametrize('data', [
        {'full_name': 123},
        {'full_name': 'Иванов', 'phone': 79991112233},
        {'full_name': 'Иванов', 'teeth': ['11', '12']},
    ])
    def test_non_text_values_are_rejected(self, app, admin_caller, data):
        with pytest.raises(ValidationError):
            audit_service.add_patient(admin_caller, data)
        assert Patient.query.count() == 0

    def test_record_outside_scope_is_refused(self, app):
        with pytest.raises(PermissionDeniedError):
            audit_service.add_patient(PETROV_ONLY, {'full_name': 'Иванов', 'doctor': 'Сидоров'})
        assert Patient.query.count() == 0


class TestUpdatePatient:
    """Tests for update_patient."""

    def test_doctor_change_logs_single_entry(self, app, admin_caller, make_patient):
        patient = make_patient(doctor='Петров')
        entries = audit_service.update_patient(admin_caller, patient.id, {'doctor': 'Сидоров'}, 'admin@clinic.test')

        assert len(entries) == 1
        change = PatientChange.query.one()
        assert change.field_name == 'Доктор'
        assert change.old_value == 'Петров'
        assert change.new_value == 'Сидоров'
        assert change.changed_by_email == 'admin@clinic.test'
        assert db.session.get(Patient, patient.id).doctor == 'Сидоров'

    def test_k_changed_fields_make_k_entries(self, app, admin_caller, make_patient):
        patient = make_patient()
        patch = {'doctor': 'Сидоров', 'teeth': '11, 12', 'status': STATUS_CONFIRMED}

        assert len(audit_service.update_patient(admin_caller, patient.id, patch)) == 3
        assert len(audit_service.update_patient(admin_caller, patient.id, patch)) == 0
        assert PatientChange.query.count() == 3

    def test_empty_strings_are_stored_as_null(self, app, admin_caller, make_patient):
        patient = make_patient(comments='позвонить')
        audit_service.update_patient(admin_caller, patient.id, {'comments': '  '})
        assert db.session.get(Patient, patient.id).comments is None

    def test_missing_record(self, app, admin_caller):
        with pytest.raises(NotFoundError):
            audit_service.update_patient(admin_caller, 'missing', {'doctor': 'Сидоров'})

    def test_invisible_record_is_not_found(self, app, make_patient):
        patient = make_patient(doctor='Сидоров')
        with pytest.raises(NotFoundError):
            audit_service.update_patient(PETROV_ONLY, patient.id, {'teeth': '11'})

    def test_cannot_move_record_out_of_scope(self, app, make_patient):
        patient = make_patient(doctor='Петров')
        with pytest.raises(ValidationError):
            audit_service.update_patient(PETROV_ONLY, patient.id, {'doctor': 'Сидоров'})
        assert db.session.get(Patient, patient.id).doctor == 'Петров'
        assert PatientChange.query.count() == 0

    def test_invalid_name_is_rejected(self, app, admin_caller, make_patient):
        patient = make_patient()
        with pytest.raises(ValidationError):
            audit_service.update_patient(admin_caller, patient.id, {'full_name': ''})

    def test_creator_is_not_editable(self, app, admin_caller, make_patient):
        patient = make_patient(created_by_email='admin@clinic.test')
        with pytest.raises(ValidationError):
            audit_service.update_patient(admin_caller, patient.id, {'created_by_email': 'other@clinic.test'})
        assert db.session.get(Patient, patient.id).created_by_email == 'admin@clinic.test'


class TestChangesAndRevert:
    """Tests for get_patient_changes and revert_changes."""

    def test_history_newest_first(self, app, admin_caller, make_patient):
        patient = make_patient(doctor='Петров')
        audit_service.update_patient(admin_caller, patient.id, {'doctor': 'Сидоров'})
        age_changes(patient.id)
        audit_service.update_patient(admin_caller, patient.id, {'teeth': '11'})

        history = audit_service.get_patient_changes(admin_caller, patient.id)
        assert [c.field_name for c in history] == ['Зубы', 'Доктор']

    def test_revert_restores_the_latest_edit_pass(self, app, admin_caller, make_patient):
        patient = make_patient(doctor='Петров', phone='79990000000')
        audit_service.update_patient(admin_caller, patient.id, {'doctor': 'Сидоров'})
        age_changes(patient.id)
        audit_service.update_patient(admin_caller, patient.id, {'phone': '79991111111', 'teeth': '11'})

        entries = audit_service.revert_changes(admin_caller, patient.id, 'admin@clinic.test')

        stored = db.session.get(Patient, patient.id)
        assert stored.phone == '79990000000'
        assert stored.teeth is None
        assert stored.doctor == 'Сидоров'
        assert sorted(e.field_name for e in entries) == ['Зубы', 'Телефон']
        assert PatientChange.query.count() == 5

    def test_revert_uses_the_newest_entry_per_field(self, app, admin_caller, make_patient):
        patient = make_patient(doctor='Петров')
        audit_service.update_patient(admin_caller, patient.id, {'doctor': 'Сидоров'})
        audit_service.update_patient(admin_caller, patient.id, {'doctor': 'Кузнецов'})

        audit_service.revert_changes(admin_caller, patient.id)
        assert db.session.get(Patient, patient.id).doctor == 'Сидоров'

    def test_revert_without_history(self, app, admin_caller, make_patient):
        patient = make_patient()
        with pytest.raises(ValidationError):
            audit_service.revert_changes(admin_caller, patient.id)

    def test_history_of_invisible_record(self, app, make_patient):
        patient = make_patient(doctor='Сидоров')
        with pytest.raises(NotFoundError):
            audit_service.get_patient_changes(PETROV_ONLY, patient.id)


class TestArchiveAndRestore:
    """Tests for archive_and_remove, restore and list_deleted_patients."""

    def test_archive_then_restore_round_trip(self, app, admin_caller, make_patient):
        patient = make_patient(
            full_name='Иванов Иван', phone='79991112233', birth_date='1990-01-01',
            appointment_date='2026-10-19', appointment_time='10:30', status=STATUS_CONFIRMED,
            doctor='Петров', nurse='Анна', teeth='11', comments='боль', emoji='😀',
            notes='аллергия', created_by_email='admin@clinic.test',
            created_at=PAST, updated_at=PAST,
        )
        patient_id = patient.id
        before = patient.data()

        audit_service.archive_and_remove(admin_caller, patient_id, 'admin@clinic.test')
        assert db.session.get(Patient, patient_id) is None
        archived = DeletedPatient.query.one()
        assert archived.original_id == patient_id
        assert archived.deleted_by_email == 'admin@clinic.test'

        restored = audit_service.restore(admin_caller, patient_id)
        assert restored.id == patient_id
        assert restored.data() == before
        assert restored.created_at == PAST
        assert restored.updated_at > PAST
        assert DeletedPatient.query.count() == 0

    def test_restore_takes_the_newest_copy(self, app, admin_caller):
        for name, deleted_at in (('Старая копия', datetime(2024, 1, 1)), ('Новая копия', datetime(2025, 1, 1))):
            db.session.add(DeletedPatient(
                original_id='p1', full_name=name, status=STATUS_WAITING, deleted_at=deleted_at,
            ))
        db.session.commit()

        restored = audit_service.restore(admin_caller, 'p1')
        assert restored.full_name == 'Новая копия'
        assert [d.full_name for d in DeletedPatient.query.all()] == ['Старая копия']

    def test_restore_missing(self, app, admin_caller):
        with pytest.raises(NotFoundError):
            audit_service.restore(admin_caller, 'missing')

    def test_restore_over_live_record_conflicts(self, app, admin_caller, make_patient):
        patient = make_patient()
        patient_id = patient.id
        audit_service.archive_and_remove(admin_caller, patient_id)
        make_patient(id=patient_id, full_name='Новый пациент')

        with pytest.raises(ConflictError):
            audit_service.restore(admin_caller, patient_id)
        assert DeletedPatient.query.count() == 1

    def test_archive_missing(self, app, admin_caller):
        with pytest.raises(NotFoundError):
            audit_service.archive_and_remove(admin_caller, 'missing')

    def test_deleted_list_is_scoped(self, app, admin_caller, make_patient):
        mine = make_patient(doctor='Петров')
        other = make_patient(doctor='Сидоров')
        audit_service.archive_and_remove(admin_caller, mine.id)
        audit_service.archive_and_remove(admin_caller, other.id)

        assert len(audit_service.list_deleted_patients(admin_caller)) == 2
        visible = audit_service.list_deleted_patients(PETROV_ONLY)
        assert [d.doctor for d in visible] == ['Петров']

    def test_history_survives_archive(self, app, admin_caller, make_patient):
        patient = make_patient(doctor='Петров')
        patient_id = patient.id
        audit_service.update_patient(admin_caller, patient_id, {'teeth': '11'})
        audit_service.archive_and_remove(admin_caller, patient_id)

        history = audit_service.get_patient_changes(PETROV_ONLY, patient_id)
        assert [c.field_name for c in history] == ['Зубы']


class TestListAndStats:
    """Tests for list_patients and dashboard_stats."""

    def test_filters(self, app, admin_caller, make_patient):
        make_patient(full_name='Иванов Иван', appointment_date='2026-10-19', phone='79991112233')
        make_patient(full_name='Петров Пётр', appointment_date='2026-10-20', doctor='Сидоров')

        assert len(audit_service.list_patients(admin_caller)) == 2
        assert len(audit_service.list_patients(admin_caller, appointment_date='2026-10-19')) == 1
        assert len(audit_service.list_patients(admin_caller, doctor='Сидоров')) == 1
        assert len(audit_service.list_patients(admin_caller, search='1112233')) == 1
        assert len(audit_service.list_patients(PETROV_ONLY)) == 1

    def test_stats_count_today(self, app, make_patient):
        make_patient(appointment_date='2026-10-19')
        make_patient(appointment_date='2026-10-19', doctor='Сидоров')
        make_patient(appointment_date='2026-10-18')

        stats = audit_service.dashboard_stats(PETROV_ONLY, today='2026-10-19')
        assert stats['today_count'] == 1
        assert stats['is_admin'] is False
        assert stats['allowed_doctors'] == ['Петров']
