from functools import wraps
from flask import jsonify
from flask_jwt_extended import get_jwt

from denta_crm.models import User
from denta_crm.services.whitelist_service import build_caller

# JWT subject of the shared admin password login, which has no email
SHARED_ADMIN_IDENTITY = 'admin'


def get_current_email():
    """Email from JWT claims, or None for the shared admin login."""
    return get_jwt().get("email") or None


def current_user_is_admin():
    """
    Admin flag of the current request.
    Accounts are re-read from the database so a revoked flag takes effect
    before the token expires; only the shared admin login trusts its claim.
    Returns None when the token names an account that no longer exists.
    """
    claims = get_jwt()
    email = claims.get("email")
    if not email:
        return bool(claims.get("is_admin"))

    user = User.query.filter_by(email=email).first()
    if user is None:
        return None
    return user.is_admin


def get_caller():
    """
    CallerIdentity of the JWT-authenticated request with the whitelist
    scope of its email resolved from the database.
    Must be called inside a @jwt_required() view.
    """
    return build_caller(get_current_email(), is_admin=bool(current_user_is_admin()))


def require_admin(f):
    """
    Require that the current JWT-authenticated user is an admin.
    Must be used together with @jwt_required() on the route.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        is_admin = current_user_is_admin()

        if is_admin is None:
            return jsonify({
                'success': False,
                'error': 'Authentication required'
            }), 401

        if not is_admin:
            return jsonify({
                'success': False,
                'error': 'Permission denied. Admin access required'
            }), 403

        return f(*args, **kwargs)
    return decorated_function
