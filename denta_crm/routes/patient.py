from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from denta_crm.services import audit_service
from denta_crm.utils.decorators import get_caller, get_current_email
from denta_crm.utils.identity import phone_to_storage

patient_bp = Blueprint('patient', __name__, url_prefix='/api/patients')


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return None
    return data


def _prepare(data):
    """Store phones as digits starting with 7. Non-string phones are rejected by the service."""
    if data.get('phone') and isinstance(data['phone'], str):
        data['phone'] = phone_to_storage(data['phone']) or None
    return data


@patient_bp.route('', methods=['GET'])
@jwt_required()
def list_patients():
    """
    List visible visit records.
    Query params: date, doctor, nurse, search
    """
    patients = audit_service.list_patients(
        get_caller(),
        appointment_date=request.args.get('date') or None,
        doctor=request.args.get('doctor') or None,
        nurse=request.args.get('nurse') or None,
        search=(request.args.get('search') or '').strip() or None,
    )
    return jsonify({
        'success': True,
        'data': [p.to_dict() for p in patients],
        'total': len(patients),
    }), 200


@patient_bp.route('', methods=['POST'])
@jwt_required()
def create_patient():
    data = _json_body()
    if data is None:
        return jsonify({
            'success': False,
            'error': 'Request body must be JSON'
        }), 400

    patient = audit_service.add_patient(get_caller(), _prepare(data), created_by_email=get_current_email())
    return jsonify({
        'success': True,
        'data': patient.to_dict()
    }), 201


@patient_bp.route('/stats', methods=['GET'])
@jwt_required()
def stats():
    """Today's visit count and the caller's scope."""
    return jsonify({
        'success': True,
        'data': audit_service.dashboard_stats(get_caller(), today=request.args.get('date') or None)
    }), 200


@patient_bp.route('/deleted', methods=['GET'])
@jwt_required()
def list_deleted():
    archived = audit_service.list_deleted_patients(get_caller())
    return jsonify({
        'success': True,
        'data': [p.to_dict() for p in archived],
        'total': len(archived),
    }), 200


@patient_bp.route('/deleted/<patient_id>/restore', methods=['POST'])
@jwt_required()
def restore_patient(patient_id):
    patient = audit_service.restore(get_caller(), patient_id)
    return jsonify({
        'success': True,
        'data': patient.to_dict()
    }), 200


@patient_bp.route('/<patient_id>', methods=['GET'])
@jwt_required()
def get_patient(patient_id):
    patient = audit_service.get_patient(get_caller(), patient_id)
    return jsonify({
        'success': True,
        'data': patient.to_dict()
    }), 200


@patient_bp.route('/<patient_id>', methods=['PUT'])
@jwt_required()
def update_patient(patient_id):
    """Apply the provided fields; returns the record and the logged changes."""
    data = _json_body()
    if not data:
        return jsonify({
            'success': False,
            'error': 'No fields to update'
        }), 400

    caller = get_caller()
    changes = audit_service.update_patient(caller, patient_id, _prepare(data), get_current_email())
    patient = audit_service.get_patient(caller, patient_id)
    return jsonify({
        'success': True,
        'data': patient.to_dict(),
        'changes': [c.to_dict() for c in changes],
    }), 200


@patient_bp.route('/<patient_id>', methods=['DELETE'])
@jwt_required()
def delete_patient(patient_id):
    """Move the record into the archive."""
    audit_service.archive_and_remove(get_caller(), patient_id, get_current_email())
    return jsonify({
        'success': True,
        'message': 'Patient moved to deleted records'
    }), 200


@patient_bp.route('/<patient_id>/changes', methods=['GET'])
@jwt_required()
def patient_changes(patient_id):
    changes = audit_service.get_patient_changes(get_caller(), patient_id)
    return jsonify({
        'success': True,
        'data': [c.to_dict() for c in changes]
    }), 200


@patient_bp.route('/<patient_id>/revert', methods=['POST'])
@jwt_required()
def revert_patient(patient_id):
    """Undo the latest edit pass of a record."""
    caller = get_caller()
    changes = audit_service.revert_changes(caller, patient_id, get_current_email())
    patient = audit_service.get_patient(caller, patient_id)
    return jsonify({
        'success': True,
        'data': patient.to_dict(),
        'changes': [c.to_dict() for c in changes],
    }), 200
