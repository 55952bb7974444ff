from dataclasses import dataclass
from typing import Optional, Tuple

from sqlalchemy import false, or_


@dataclass(frozen=True)
class CallerIdentity:
    """
    Who is calling a service. Admins see every record; everyone else only
    sees records of the doctors and nurses whitelisted for their email.
    """
    email: Optional[str] = None
    is_admin: bool = False
    allowed_doctors: Tuple[str, ...] = ()
    allowed_nurses: Tuple[str, ...] = ()

    @classmethod
    def admin(cls, email=None):
        return cls(email=email, is_admin=True)

    def predicate(self, model):
        """SQL filter limiting `model` rows to this caller, or None for admins."""
        if self.is_admin:
            return None
        clauses = []
        if self.allowed_doctors:
            clauses.append(model.doctor.in_(self.allowed_doctors))
        if self.allowed_nurses:
            clauses.append(model.nurse.in_(self.allowed_nurses))
        if not clauses:
            return false()
        return or_(*clauses)

    def can_see(self, data):
        """Same rule as predicate() applied to a dict of column values."""
        if self.is_admin:
            return True
        return (data.get('doctor') in self.allowed_doctors
                or data.get('nurse') in self.allowed_nurses)
