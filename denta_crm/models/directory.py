"""
Clinic staff directory and the email whitelist that scopes patient visibility.
"""
from datetime import datetime

from denta_crm.extensions import db

WHITELIST_PROVIDERS = ('google', 'yandex', 'email')


class Doctor(db.Model):
    __tablename__ = 'doctors'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)


class Nurse(db.Model):
    __tablename__ = 'nurses'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)


class WhitelistEmail(db.Model):
    __tablename__ = 'whitelist_emails'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    provider = db.Column(db.String(20), nullable=False, default='email')
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    doctors = db.relationship(
        'WhitelistEmailDoctor', backref='whitelist_email',
        cascade='all, delete-orphan', lazy='selectin',
    )
    nurses = db.relationship(
        'WhitelistEmailNurse', backref='whitelist_email',
        cascade='all, delete-orphan', lazy='selectin',
    )

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'provider': self.provider,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'doctors': sorted(d.doctor_name for d in self.doctors),
            'nurses': sorted(n.nurse_name for n in self.nurses),
        }


class WhitelistEmailDoctor(db.Model):
    __tablename__ = 'whitelist_email_doctors'

    id = db.Column(db.Integer, primary_key=True)
    whitelist_email_id = db.Column(
        db.Integer, db.ForeignKey('whitelist_emails.id', ondelete='CASCADE'), nullable=False, index=True
    )
    doctor_name = db.Column(db.String(100), nullable=False)


class WhitelistEmailNurse(db.Model):
    __tablename__ = 'whitelist_email_nurses'

    id = db.Column(db.Integer, primary_key=True)
    whitelist_email_id = db.Column(
        db.Integer, db.ForeignKey('whitelist_emails.id', ondelete='CASCADE'), nullable=False, index=True
    )
    nurse_name = db.Column(db.String(100), nullable=False)
