"""
Staff accounts as seen by an admin: listing, removal and password reset.
"""
import logging

from denta_crm.extensions import db
from denta_crm.models import User
from .errors import NotFoundError, ValidationError
from .store import commit

logger = logging.getLogger(__name__)

PASSWORD_MIN_LENGTH = 6


def validate_new_password(password, confirm_password=None):
    """Raise ValidationError unless the password is usable; `confirm_password` is checked when given."""
    if not isinstance(password, str) or len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(f'Password must be at least {PASSWORD_MIN_LENGTH} characters')
    if confirm_password is not None and confirm_password != password:
        raise ValidationError('Passwords do not match')


def _get_user(email):
    user = User.query.filter_by(email=(email or '').strip().lower()).first()
    if user is None:
        raise NotFoundError('User not found')
    return user


def list_users():
    return User.query.order_by(User.created_at.desc(), User.email.asc()).all()


def delete_user(email, deleted_by_email=None):
    """Remove the account. Whitelist entries and records it created stay."""
    user = _get_user(email)
    if deleted_by_email and user.email == deleted_by_email:
        raise ValidationError('You cannot delete your own account')
    db.session.delete(user)
    commit()
    logger.info("User %s deleted by %s", user.email, deleted_by_email or 'admin')


def reset_password(email, new_password, confirm_password=None):
    """Set a new password chosen by an admin. The PIN is cleared too."""
    validate_new_password(new_password, confirm_password)
    user = _get_user(email)
    user.set_password(new_password)
    user.pin_code_hash = None
    commit()
    logger.info("Password reset for %s", user.email)
    return user
