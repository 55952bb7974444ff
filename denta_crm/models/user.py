from denta_crm.extensions import db, bcrypt
from .base import TimestampMixin


class User(db.Model, TimestampMixin):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=True)
    pin_code_hash = db.Column(db.String(255), nullable=True)

    first_name = db.Column(db.String(100))
    last_name = db.Column(db.String(100))

    # Admins bypass doctor/nurse whitelists
    is_admin = db.Column(db.Boolean, default=False, nullable=False)

    # Last login tracking
    last_login = db.Column(db.DateTime, nullable=True)
    login_count = db.Column(db.Integer, default=0)

    def set_password(self, password):
        """Hash and set password"""
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        """Check if provided password matches hash"""
        if not self.password_hash:
            return False
        return bcrypt.check_password_hash(self.password_hash, password)

    def set_pin(self, pin):
        self.pin_code_hash = bcrypt.generate_password_hash(pin).decode('utf-8')

    def check_pin(self, pin):
        if not self.pin_code_hash:
            return False
        return bcrypt.check_password_hash(self.pin_code_hash, pin)

    @property
    def display_name(self):
        return self.first_name or self.email.split('@')[0]

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'first_name': self.display_name,
            'last_name': self.last_name or '',
            'is_admin': self.is_admin,
            'has_pin': bool(self.pin_code_hash),
            'last_login': self.last_login.isoformat() if self.last_login else None,
            'login_count': self.login_count,
        }

    def __repr__(self):
        return f"<User {self.email}>"
