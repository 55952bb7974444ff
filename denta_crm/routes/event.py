from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity

from denta_crm.services import event_service

event_bp = Blueprint('event', __name__, url_prefix='/api/events')


def _owner():
    """Account email, or the shared admin subject."""
    return get_jwt_identity()


@event_bp.route('', methods=['GET'])
@jwt_required()
def list_events():
    """
    Current user's events.
    Query params: from, to (YYYY-MM-DD, inclusive)
    """
    events = event_service.list_events(
        _owner(),
        date_from=request.args.get('from') or None,
        date_to=request.args.get('to') or None,
    )
    return jsonify({
        'success': True,
        'data': [e.to_dict() for e in events],
        'total': len(events),
    }), 200


@event_bp.route('', methods=['POST'])
@jwt_required()
def create_event():
    """Body: { title, date, time?, location?, description? }"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({
            'success': False,
            'error': 'Request body must be JSON'
        }), 400

    event = event_service.add_event(_owner(), data)
    return jsonify({
        'success': True,
        'data': event.to_dict()
    }), 201


@event_bp.route('/<event_id>', methods=['PUT'])
@jwt_required()
def update_event(event_id):
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data:
        return jsonify({
            'success': False,
            'error': 'No fields to update'
        }), 400

    event = event_service.update_event(_owner(), event_id, data)
    return jsonify({
        'success': True,
        'data': event.to_dict()
    }), 200


@event_bp.route('/<event_id>', methods=['DELETE'])
@jwt_required()
def delete_event(event_id):
    event_service.delete_event(_owner(), event_id)
    return jsonify({
        'success': True,
        'message': 'Event deleted'
    }), 200
