from .decorators import require_admin, get_caller, get_current_email, current_user_is_admin, SHARED_ADMIN_IDENTITY

from .identity import (
    normalize_name,
    names_are_similar,
    normalize_phone_digits,
    phone_to_storage,
    format_phone,
    birth_date_to_iso,
    iso_to_display,
)

__all__ = [
    # Decorators
    "require_admin",
    "get_caller",
    "get_current_email",
    "current_user_is_admin",
    "SHARED_ADMIN_IDENTITY",
    # Identity
    "normalize_name",
    "names_are_similar",
    "normalize_phone_digits",
    "phone_to_storage",
    "format_phone",
    "birth_date_to_iso",
    "iso_to_display",
]
