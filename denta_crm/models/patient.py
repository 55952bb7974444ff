import uuid

from denta_crm.extensions import db
from .base import TimestampMixin

# Stored status values
STATUS_WAITING = 'Ожидает'
STATUS_CONFIRMED = 'Подтвержден'
STATUS_CANCELLED = 'Отменен'
STATUS_COMPLETED = 'Завершен'

PATIENT_STATUSES = [STATUS_WAITING, STATUS_CONFIRMED, STATUS_CANCELLED, STATUS_COMPLETED]


def generate_patient_id():
    return str(uuid.uuid4())


class PatientRecordMixin:
    """Columns shared by live patient records and their archive copies."""
    full_name = db.Column(db.String(120), nullable=False, index=True)
    phone = db.Column(db.String(32))
    birth_date = db.Column(db.String(20))  # free text, usually YYYY-MM-DD
    appointment_date = db.Column(db.String(20), index=True)
    appointment_time = db.Column(db.String(10))
    status = db.Column(db.String(30), default=STATUS_WAITING, nullable=False)
    doctor = db.Column(db.String(100), index=True)
    nurse = db.Column(db.String(100), index=True)
    teeth = db.Column(db.String(100))
    comments = db.Column(db.Text)
    emoji = db.Column(db.String(16))  # personal reaction tag
    notes = db.Column(db.Text)  # shared notes for all visits of a client
    created_by_email = db.Column(db.String(120))


# Columns copied between the live table and the archive
PATIENT_DATA_COLUMNS = [
    'full_name', 'phone', 'birth_date', 'appointment_date', 'appointment_time',
    'status', 'doctor', 'nurse', 'teeth', 'comments', 'emoji', 'notes',
    'created_by_email',
]


class Patient(db.Model, PatientRecordMixin, TimestampMixin):
    """One row per appointment/visit, not per person."""
    __tablename__ = 'patients'

    id = db.Column(db.String(36), primary_key=True, default=generate_patient_id)

    def data(self):
        return {column: getattr(self, column) for column in PATIENT_DATA_COLUMNS}

    def to_dict(self):
        data = self.data()
        data.update({
            'id': self.id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        })
        return data

    def __repr__(self):
        return f"<Patient {self.full_name} ({self.id})>"
