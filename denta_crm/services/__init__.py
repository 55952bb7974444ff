from .errors import (
    CrmError,
    ValidationError,
    PermissionDeniedError,
    NotFoundError,
    ConflictError,
    StoreError,
)

from .scope import CallerIdentity
from .store import PatientStore

from .clustering import (
    ClientIdentity,
    DuplicateGroup,
    group_patients,
    find_potential_duplicates,
    identity_key,
    duplicate_pair_id,
)

from .audit_service import (
    add_patient,
    get_patient,
    list_patients,
    record_changes,
    update_patient,
    get_patient_changes,
    revert_changes,
    archive_and_remove,
    list_deleted_patients,
    restore,
    dashboard_stats,
)

from .merge_service import (
    MergeConflict,
    load_client_identities,
    find_identity,
    detect_conflict,
    start_merge,
    confirm_merge,
    merge_identities,
    ignore_duplicate,
    update_identity_profile,
)

__all__ = [
    # Errors
    "CrmError",
    "ValidationError",
    "PermissionDeniedError",
    "NotFoundError",
    "ConflictError",
    "StoreError",
    # Scope / store
    "CallerIdentity",
    "PatientStore",
    # Card index
    "ClientIdentity",
    "DuplicateGroup",
    "group_patients",
    "find_potential_duplicates",
    "identity_key",
    "duplicate_pair_id",
    # Patient records
    "add_patient",
    "get_patient",
    "list_patients",
    "record_changes",
    "update_patient",
    "get_patient_changes",
    "revert_changes",
    "archive_and_remove",
    "list_deleted_patients",
    "restore",
    "dashboard_stats",
    # Merge / ignore
    "MergeConflict",
    "load_client_identities",
    "find_identity",
    "detect_conflict",
    "start_merge",
    "confirm_merge",
    "merge_identities",
    "ignore_duplicate",
    "update_identity_profile",
]
