from datetime import datetime

from denta_crm.extensions import db
from .patient import PatientRecordMixin, PATIENT_DATA_COLUMNS


class DeletedPatient(db.Model, PatientRecordMixin):
    """
    Archive copy of a removed patient record.
    Several rows may share an original_id (deleted, restored, deleted again).
    """
    __tablename__ = 'deleted_patients'

    id = db.Column(db.Integer, primary_key=True)
    original_id = db.Column(db.String(36), nullable=False, index=True)
    original_created_at = db.Column(db.DateTime)
    deleted_by_email = db.Column(db.String(120))
    deleted_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    def data(self):
        return {column: getattr(self, column) for column in PATIENT_DATA_COLUMNS}

    def to_dict(self):
        data = self.data()
        data.update({
            'id': self.id,
            'original_id': self.original_id,
            'deleted_by_email': self.deleted_by_email,
            'deleted_at': self.deleted_at.isoformat() if self.deleted_at else None,
        })
        return data

    def __repr__(self):
        return f"<DeletedPatient {self.full_name} ({self.original_id})>"
