import hmac
import re
from datetime import datetime

from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import (
    create_access_token,
    create_refresh_token,
    jwt_required,
    get_jwt_identity,
    get_jwt,
)

from denta_crm.models import User
from denta_crm.extensions import db, limiter
from denta_crm.services import whitelist_service
from denta_crm.services.user_service import PASSWORD_MIN_LENGTH
from denta_crm.utils.decorators import SHARED_ADMIN_IDENTITY, get_current_email

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')

PIN_RE = re.compile(r'^\d{4}$')


def _configured_limit(key):
    """Limit string read from config at request time, e.g. "10 per 15 minutes"."""
    return lambda: current_app.config[key]


def _token_response(identity, email, is_admin, user_data, status=200):
    """JWT pair plus user info; identity is the email or the shared admin subject."""
    additional_claims = {
        "email": email,
        "is_admin": is_admin,
    }
    access_token = create_access_token(identity=identity, additional_claims=additional_claims, fresh=True)
    refresh_token = create_refresh_token(identity=identity, additional_claims=additional_claims)
    expires = current_app.config['JWT_ACCESS_TOKEN_EXPIRES']

    return jsonify({
        'success': True,
        'data': user_data,
        'access_token': access_token,
        'refresh_token': refresh_token,
        'token_type': 'bearer',
        'expires_in': int(expires.total_seconds()) if expires else None,
    }), status


def _login_user(user):
    user.last_login = datetime.utcnow()
    user.login_count = (user.login_count or 0) + 1
    db.session.commit()
    return _token_response(user.email, user.email, user.is_admin, user.to_dict())


def _shared_admin_data():
    return {
        'id': None,
        'email': None,
        'first_name': 'Администратор',
        'last_name': '',
        'is_admin': True,
        'has_pin': False,
    }


@auth_bp.route('/login', methods=['POST'])
@limiter.limit(_configured_limit('LOGIN_RATE_LIMIT'))
def login():
    """
    Email + password login.
    An empty email with the shared ADMIN_PASSWORD logs in as admin.
    """
    data = request.get_json(silent=True)

    if not data:
        return jsonify({
            'success': False,
            'error': 'Request body must be JSON'
        }), 400

    email = (data.get('email') or '').strip().lower()
    password = str(data.get('password') or '')

    if not password:
        return jsonify({
            'success': False,
            'error': 'Password required'
        }), 400

    if not email:
        admin_password = current_app.config.get('ADMIN_PASSWORD')
        if admin_password and hmac.compare_digest(password.encode('utf-8'), admin_password.encode('utf-8')):
            current_app.logger.info("Shared admin password login")
            return _token_response(SHARED_ADMIN_IDENTITY, None, True, _shared_admin_data())
        return jsonify({
            'success': False,
            'error': 'Invalid password'
        }), 401

    user = User.query.filter_by(email=email).first()

    if not user or not user.check_password(password):
        return jsonify({
            'success': False,
            'error': 'Invalid email or password'
        }), 401

    if not user.is_admin and not whitelist_service.is_whitelisted(email):
        return jsonify({
            'success': False,
            'error': 'Email is not whitelisted'
        }), 403

    return _login_user(user)


@auth_bp.route('/register', methods=['POST'])
@limiter.limit(_configured_limit('REGISTER_RATE_LIMIT'))
def register():
    """Create a password account for an email whitelisted with provider 'email'."""
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip().lower()
    password = str(data.get('password') or '')
    confirm_password = data.get('confirm_password')

    if not email or not password:
        return jsonify({
            'success': False,
            'error': 'Fields "email" and "password" are required'
        }), 400

    if confirm_password is not None and confirm_password != password:
        return jsonify({
            'success': False,
            'error': 'Passwords do not match'
        }), 400

    if len(password) < PASSWORD_MIN_LENGTH:
        return jsonify({
            'success': False,
            'error': f'Password must be at least {PASSWORD_MIN_LENGTH} characters'
        }), 400

    if not whitelist_service.is_whitelisted(email, provider='email'):
        return jsonify({
            'success': False,
            'error': 'Email is not whitelisted for password login'
        }), 403

    if User.query.filter_by(email=email).first():
        return jsonify({
            'success': False,
            'error': 'User with this email already exists'
        }), 409

    user = User(
        email=email,
        first_name=(data.get('first_name') or '').strip() or None,
        last_name=(data.get('last_name') or '').strip() or None,
    )
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    current_app.logger.info("Registered user %s", email)

    return _login_user(user)


@auth_bp.route('/pin-login', methods=['POST'])
@limiter.limit(_configured_limit('PIN_RATE_LIMIT'))
def pin_login():
    """Quick login with a 4 digit PIN set up earlier."""
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip().lower()
    pin = str(data.get('pin') or '')

    if not email or not pin:
        return jsonify({
            'success': False,
            'error': 'Fields "email" and "pin" are required'
        }), 400

    user = User.query.filter_by(email=email).first()
    if not user or not user.check_pin(pin):
        return jsonify({
            'success': False,
            'error': 'Invalid email or PIN'
        }), 401

    if not user.is_admin and not whitelist_service.is_whitelisted(email):
        return jsonify({
            'success': False,
            'error': 'Email is not whitelisted'
        }), 403

    return _login_user(user)


def _current_user():
    email = get_current_email()
    if not email:
        return None
    return User.query.filter_by(email=email).first()


@auth_bp.route('/setup-pin', methods=['POST'])
@jwt_required()
def setup_pin():
    data = request.get_json(silent=True) or {}
    pin = str(data.get('pin') or '')

    if not PIN_RE.fullmatch(pin):
        return jsonify({
            'success': False,
            'error': 'PIN must be exactly 4 digits'
        }), 400

    user = _current_user()
    if not user:
        return jsonify({'success': False, 'error': 'User not found'}), 404

    user.set_pin(pin)
    db.session.commit()

    return jsonify({
        'success': True,
        'message': 'PIN set successfully'
    }), 200


@auth_bp.route('/change-password', methods=['POST'])
@jwt_required()
def change_password():
    """
    Body: { "current_password": "...", "new_password": "..." }
    current_password may be omitted when the account has no password yet.
    """
    data = request.get_json(silent=True) or {}
    current_password = data.get('current_password') or ''
    new_password = data.get('new_password') or ''

    if len(new_password) < PASSWORD_MIN_LENGTH:
        return jsonify({
            'success': False,
            'error': f'Password must be at least {PASSWORD_MIN_LENGTH} characters'
        }), 400

    user = _current_user()
    if not user:
        return jsonify({'success': False, 'error': 'User not found'}), 404

    if user.password_hash and not user.check_password(current_password):
        return jsonify({
            'success': False,
            'error': 'Current password is incorrect'
        }), 401

    user.set_password(new_password)
    db.session.commit()

    return jsonify({
        'success': True,
        'message': 'Password changed successfully'
    }), 200


@auth_bp.route('/me', methods=['GET'])
@jwt_required()
def get_current_user():
    """Current user plus the doctors and nurses they may see."""
    claims = get_jwt()
    email = claims.get("email")

    if not email:
        data = _shared_admin_data()
    else:
        user = User.query.filter_by(email=email).first()
        if not user:
            return jsonify({'success': False, 'error': 'User not found'}), 404
        data = user.to_dict()

    data['allowed_doctors'] = whitelist_service.allowed_doctors(email) if email else []
    data['allowed_nurses'] = whitelist_service.allowed_nurses(email) if email else []

    return jsonify({
        'success': True,
        'data': data
    }), 200


@auth_bp.route('/refresh', methods=['POST'])
@jwt_required(refresh=True)
def refresh():
    """Refresh access token using refresh token"""
    identity = get_jwt_identity()
    claims = get_jwt()
    email = claims.get("email")
    is_admin = bool(claims.get("is_admin"))

    if email:
        user = User.query.filter_by(email=email).first()
        if not user:
            return jsonify({
                'success': False,
                'error': 'Could not refresh token'
            }), 401
        is_admin = user.is_admin

    new_access_token = create_access_token(
        identity=identity,
        additional_claims={"email": email, "is_admin": is_admin},
        fresh=False  # refreshed tokens are not fresh
    )
    expires = current_app.config['JWT_ACCESS_TOKEN_EXPIRES']
    return jsonify({
        'success': True,
        'access_token': new_access_token,
        'token_type': 'bearer',
        'expires_in': int(expires.total_seconds()) if expires else None,
    }), 200


@auth_bp.route('/logout', methods=['POST'])
@jwt_required()
def logout():
    """Stateless JWT: the client deletes its tokens."""
    return jsonify({
        'success': True,
        'message': 'Logged out successfully (delete tokens on client)'
    }), 200
