"""
Field-level change history of patient records.
"""
from datetime import datetime

from denta_crm.extensions import db


class PatientChange(db.Model):
    __tablename__ = "patient_changes"

    id = db.Column(db.Integer, primary_key=True)
    patient_id = db.Column(db.String(36), nullable=False, index=True)
    field_name = db.Column(db.String(64), nullable=False)  # human label, e.g. "Доктор"
    old_value = db.Column(db.Text, nullable=True)
    new_value = db.Column(db.Text, nullable=True)
    changed_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    changed_by_email = db.Column(db.String(120), nullable=True)

    def to_dict(self):
        return {
            "id": self.id,
            "patient_id": self.patient_id,
            "field_name": self.field_name,
            "old_value": self.old_value,
            "new_value": self.new_value,
            "changed_at": self.changed_at.isoformat() if self.changed_at else None,
            "changed_by_email": self.changed_by_email,
        }
