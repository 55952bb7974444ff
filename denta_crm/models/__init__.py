from .patient import Patient, PATIENT_STATUSES, PATIENT_DATA_COLUMNS
from .deleted_patient import DeletedPatient
from .patient_change import PatientChange
from .ignored_pair import IgnoredDuplicatePair
from .user import User
from .event import Event
from .directory import Doctor, Nurse, WhitelistEmail, WhitelistEmailDoctor, WhitelistEmailNurse

__all__ = [
    "Patient", "PATIENT_STATUSES", "PATIENT_DATA_COLUMNS", "DeletedPatient", "PatientChange",
    "IgnoredDuplicatePair", "User", "Event", "Doctor", "Nurse", "WhitelistEmail",
    "WhitelistEmailDoctor", "WhitelistEmailNurse",
]
