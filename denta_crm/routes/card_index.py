"""
Card index: patients grouped into clients, duplicate search, merge and ignore.

Clients are addressed by {"name": ..., "birth_date": ...} since they have no
id of their own.
"""
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required

from denta_crm.services import merge_service
from denta_crm.services.clustering import find_potential_duplicates
from denta_crm.services.errors import ValidationError
from denta_crm.utils.decorators import get_caller, get_current_email

card_index_bp = Blueprint('card_index', __name__, url_prefix='/api/card-index')


def _text(value):
    return value.strip() if isinstance(value, str) else ''


def _client_ref(data, key):
    ref = data.get(key)
    if not isinstance(ref, dict) or not _text(ref.get('name')):
        raise ValidationError(f'Field "{key}" must be an object with a "name"')
    return ref['name'], ref.get('birth_date') or None


def _resolve_pair(data, first_key, second_key):
    clients = merge_service.load_client_identities(get_caller())
    first = merge_service.find_identity(clients, *_client_ref(data, first_key))
    second = merge_service.find_identity(clients, *_client_ref(data, second_key))
    if first.key == second.key:
        raise ValidationError('Cannot pair a client with itself')
    return first, second


@card_index_bp.route('/clients', methods=['GET'])
@jwt_required()
def list_clients():
    """
    Clients built from visible records.
    Query params: search (name or phone substring)
    """
    clients = merge_service.load_client_identities(get_caller())
    search = (request.args.get('search') or '').strip().lower()
    if search:
        clients = [
            c for c in clients
            if search in c.normalized_name or any(search in phone for phone in c.phones)
        ]
    return jsonify({
        'success': True,
        'data': [c.to_dict() for c in clients],
        'total': len(clients),
    }), 200


@card_index_bp.route('/duplicates', methods=['GET'])
@jwt_required()
def list_duplicates():
    clients = merge_service.load_client_identities(get_caller())
    groups = find_potential_duplicates(clients)
    return jsonify({
        'success': True,
        'data': [g.to_dict() for g in groups],
        'total': len(groups),
    }), 200


@card_index_bp.route('/merge', methods=['POST'])
@jwt_required()
def start_merge():
    """
    Body: { "source": {name, birth_date}, "target": {name, birth_date} }
    Returns the conflict to resolve, or merges right away when there is none.
    """
    data = request.get_json(silent=True) or {}
    source, target = _resolve_pair(data, 'source', 'target')

    conflict = merge_service.start_merge(get_caller(), source, target, get_current_email())
    if conflict is not None:
        return jsonify({
            'success': True,
            'merged': False,
            'conflict': conflict.to_dict()
        }), 200

    current_app.logger.info("Merged %r into %r", source.name, target.name)
    return jsonify({
        'success': True,
        'merged': True,
    }), 200


@card_index_bp.route('/merge/confirm', methods=['POST'])
@jwt_required()
def confirm_merge():
    """
    Body: { "source": {...}, "target": {...}, "name": "...", "birth_date": "..." }
    """
    data = request.get_json(silent=True) or {}
    source, target = _resolve_pair(data, 'source', 'target')

    name = data.get('name')
    if name is None or (isinstance(name, str) and not name.strip()):
        name = target.name
    birth_date = data['birth_date'] if 'birth_date' in data else target.birth_date

    updated = merge_service.confirm_merge(get_caller(), source, target, name, birth_date, get_current_email())
    return jsonify({
        'success': True,
        'merged': True,
        'updated_records': updated,
    }), 200


@card_index_bp.route('/ignore', methods=['POST'])
@jwt_required()
def ignore_duplicate():
    """Body: { "first": {name, birth_date}, "second": {name, birth_date} }"""
    data = request.get_json(silent=True) or {}
    first, second = _resolve_pair(data, 'first', 'second')

    pair_key = merge_service.ignore_duplicate(first, second, get_current_email())
    return jsonify({
        'success': True,
        'data': {'pair_key': pair_key}
    }), 200


@card_index_bp.route('/profile', methods=['PUT'])
@jwt_required()
def update_profile():
    """Body: { "name": "...", "birth_date": "...", "emoji"?: "...", "notes"?: "..." }"""
    data = request.get_json(silent=True) or {}
    name = _text(data.get('name'))
    if not name:
        raise ValidationError('Field "name" is required')

    fields = {key: data[key] for key in ('emoji', 'notes') if key in data}
    updated = merge_service.update_identity_profile(
        get_caller(), name, data.get('birth_date') or None, get_current_email(), **fields
    )
    return jsonify({
        'success': True,
        'updated_records': updated,
    }), 200
