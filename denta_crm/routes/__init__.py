from .auth import auth_bp
from .patient import patient_bp
from .card_index import card_index_bp
from .admin import staff_bp, whitelist_bp, users_bp, directory_bp
from .event import event_bp
from .health import health_bp

__all__ = ['auth_bp', 'patient_bp', 'card_index_bp', 'staff_bp', 'whitelist_bp', 'users_bp', 'directory_bp', 'event_bp', 'health_bp']
