"""
Exceptions raised by the service layer. The app factory maps them to JSON
error responses with the matching status code.
"""


class CrmError(Exception):
    status_code = 400

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(CrmError):
    status_code = 400


class PermissionDeniedError(CrmError):
    status_code = 403


class NotFoundError(CrmError):
    status_code = 404


class ConflictError(CrmError):
    status_code = 409


class StoreError(CrmError):
    """Database failure; carries the driver's message."""
    status_code = 500
