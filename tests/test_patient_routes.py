"""Tests for the /api/patients endpoints."""

from conftest import STAFF_EMAIL, age_changes, token_headers
from denta_crm.extensions import db
from denta_crm.models import Patient


def _create(client, headers, **fields):
    data = {'full_name': 'Иванов Иван', 'doctor': 'Петров'}
    data.update(fields)
    response = client.post('/api/patients', json=data, headers=headers)
    assert response.status_code == 201, response.get_json()
    return response.get_json()['data']


class TestPatientCrud:
    """Create, read, update and list."""

    def test_requires_authentication(self, client):
        response = client.get('/api/patients')
        assert response.status_code == 401
        assert response.get_json()['success'] is False

    def test_create_and_get(self, client, admin_headers):
        created = _create(client, admin_headers, phone='+7 (999) 111-22-33')
        assert created['phone'] == '79991112233'
        assert created['status'] == 'Ожидает'

        response = client.get(f"/api/patients/{created['id']}", headers=admin_headers)
        assert response.status_code == 200
        assert response.get_json()['data']['full_name'] == 'Иванов Иван'

    def test_create_validation_error(self, client, admin_headers):
        response = client.post('/api/patients', json={'full_name': ''}, headers=admin_headers)
        assert response.status_code == 400
        assert response.get_json()['success'] is False

    def test_create_outside_scope(self, client, staff_headers):
        response = client.post('/api/patients', json={'full_name': 'Иванов', 'doctor': 'Сидоров'}, headers=staff_headers)
        assert response.status_code == 403

    def test_get_missing(self, client, admin_headers):
        response = client.get('/api/patients/missing', headers=admin_headers)
        assert response.status_code == 404
        assert response.get_json() == {'success': False, 'error': 'Patient not found'}

    def test_update_returns_changes(self, client, admin_headers):
        created = _create(client, admin_headers)
        response = client.put(f"/api/patients/{created['id']}", json={'doctor': 'Сидоров'}, headers=admin_headers)
        body = response.get_json()
        assert response.status_code == 200
        assert body['data']['doctor'] == 'Сидоров'
        assert [c['field_name'] for c in body['changes']] == ['Доктор']
        assert body['changes'][0]['old_value'] == 'Петров'

    def test_update_without_body(self, client, admin_headers):
        created = _create(client, admin_headers)
        response = client.put(f"/api/patients/{created['id']}", headers=admin_headers)
        assert response.status_code == 400

    def test_list_is_scoped(self, client, admin_headers, staff_headers):
        _create(client, admin_headers, doctor='Петров', appointment_date='2026-10-19')
        _create(client, admin_headers, doctor='Сидоров', appointment_date='2026-10-19')

        admin_list = client.get('/api/patients', headers=admin_headers).get_json()
        staff_list = client.get('/api/patients', headers=staff_headers).get_json()
        assert admin_list['total'] == 2
        assert staff_list['total'] == 1
        assert staff_list['data'][0]['doctor'] == 'Петров'

        filtered = client.get('/api/patients', query_string={'doctor': 'Сидоров'}, headers=admin_headers).get_json()
        assert filtered['total'] == 1

    def test_stats(self, client, staff_headers, admin_headers):
        _create(client, admin_headers, appointment_date='2026-10-19')
        response = client.get('/api/patients/stats?date=2026-10-19', headers=staff_headers)
        data = response.get_json()['data']
        assert data['today_count'] == 1
        assert data['allowed_doctors'] == ['Петров']

    def test_revoked_admin_flag_applies_to_existing_tokens(self, client, admin_headers, staff_user):
        _create(client, admin_headers, doctor='Сидоров')
        staff_user.is_admin = True
        db.session.commit()
        headers = token_headers(STAFF_EMAIL, is_admin=True)
        assert client.get('/api/patients', headers=headers).get_json()['total'] == 1

        staff_user.is_admin = False
        db.session.commit()

        body = client.get('/api/patients', headers=headers).get_json()
        assert body['total'] == 0
        assert client.get('/api/admin/doctors', headers=headers).status_code == 403

    def test_removed_account_gets_no_admin_scope(self, client, admin_headers, directory):
        _create(client, admin_headers, doctor='Сидоров')
        headers = token_headers('gone@clinic.test', is_admin=True)
        assert client.get('/api/patients', headers=headers).get_json()['total'] == 0

    def test_non_text_values_are_rejected(self, client, admin_headers):
        for data in ({'full_name': 123}, {'full_name': 'Иванов', 'phone': 79991112233}):
            response = client.post('/api/patients', json=data, headers=admin_headers)
            assert response.status_code == 400
            assert response.get_json()['success'] is False
        assert Patient.query.count() == 0

        created = _create(client, admin_headers)
        response = client.put(f"/api/patients/{created['id']}", json={'teeth': 11}, headers=admin_headers)
        assert response.status_code == 400

    def test_creator_cannot_be_rewritten(self, client, admin_headers, staff_headers):
        created = _create(client, staff_headers)
        response = client.put(f"/api/patients/{created['id']}", json={'created_by_email': 'other@clinic.test'},
                              headers=admin_headers)
        assert response.status_code == 400
        assert db.session.get(Patient, created['id']).created_by_email == STAFF_EMAIL


class TestHistoryAndArchive:
    """Change history, revert, delete and restore."""

    def test_changes_and_revert(self, client, admin_headers):
        created = _create(client, admin_headers, teeth='11')
        patient_id = created['id']
        client.put(f'/api/patients/{patient_id}', json={'doctor': 'Сидоров'}, headers=admin_headers)
        age_changes(patient_id)
        client.put(f'/api/patients/{patient_id}', json={'teeth': '12'}, headers=admin_headers)

        history = client.get(f'/api/patients/{patient_id}/changes', headers=admin_headers).get_json()['data']
        assert [c['field_name'] for c in history] == ['Зубы', 'Доктор']

        response = client.post(f'/api/patients/{patient_id}/revert', headers=admin_headers)
        assert response.status_code == 200
        assert response.get_json()['data']['teeth'] == '11'
        assert response.get_json()['data']['doctor'] == 'Сидоров'

    def test_revert_without_history(self, client, admin_headers):
        created = _create(client, admin_headers)
        response = client.post(f"/api/patients/{created['id']}/revert", headers=admin_headers)
        assert response.status_code == 400

    def test_delete_and_restore(self, client, admin_headers):
        created = _create(client, admin_headers, emoji='😀', notes='аллергия')
        patient_id = created['id']

        assert client.delete(f'/api/patients/{patient_id}', headers=admin_headers).status_code == 200
        assert client.get(f'/api/patients/{patient_id}', headers=admin_headers).status_code == 404

        deleted = client.get('/api/patients/deleted', headers=admin_headers).get_json()
        assert deleted['total'] == 1
        assert deleted['data'][0]['original_id'] == patient_id

        response = client.post(f'/api/patients/deleted/{patient_id}/restore', headers=admin_headers)
        restored = response.get_json()['data']
        assert response.status_code == 200
        assert restored['id'] == patient_id
        assert restored['emoji'] == '😀'
        assert restored['notes'] == 'аллергия'
        assert Patient.query.count() == 1

    def test_restore_twice(self, client, admin_headers):
        created = _create(client, admin_headers)
        patient_id = created['id']
        client.delete(f'/api/patients/{patient_id}', headers=admin_headers)
        client.post(f'/api/patients/deleted/{patient_id}/restore', headers=admin_headers)
        response = client.post(f'/api/patients/deleted/{patient_id}/restore', headers=admin_headers)
        assert response.status_code == 404

    def test_staff_cannot_delete_other_doctors_records(self, client, admin_headers, staff_headers):
        created = _create(client, admin_headers, doctor='Сидоров')
        response = client.delete(f"/api/patients/{created['id']}", headers=staff_headers)
        assert response.status_code == 404
