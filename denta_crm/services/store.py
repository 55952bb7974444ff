"""
Caller-scoped access to patient tables.

The store never commits: services group several store calls into one
transaction and call commit() once.
"""
import logging

from sqlalchemy.exc import SQLAlchemyError

from denta_crm.extensions import db
from denta_crm.models import Patient
from .errors import PermissionDeniedError, StoreError

logger = logging.getLogger(__name__)


class PatientStore:
    """Filtered reads and writes against `patients` (or its archive)."""

    def __init__(self, caller, model=Patient):
        self.caller = caller
        self.model = model

    def query(self, *criteria):
        query = self.model.query
        scope = self.caller.predicate(self.model)
        if scope is not None:
            query = query.filter(scope)
        if criteria:
            query = query.filter(*criteria)
        return query

    def find(self, *criteria, order_by=None):
        query = self.query(*criteria)
        if order_by is not None:
            query = query.order_by(*order_by) if isinstance(order_by, (list, tuple)) else query.order_by(order_by)
        try:
            return query.all()
        except SQLAlchemyError as e:
            raise StoreError(f'Failed to read {self.model.__tablename__}: {e}') from e

    def get(self, record_id):
        rows = self.find(self.model.id == record_id)
        return rows[0] if rows else None

    def insert_many(self, rows):
        """Add row dicts (or model instances) to the session; returns the instances."""
        instances = []
        for row in rows:
            instance = row if isinstance(row, self.model) else self.model(**row)
            values = {'doctor': instance.doctor, 'nurse': instance.nurse}
            if not self.caller.can_see(values):
                raise PermissionDeniedError('Record is outside of your doctors and nurses')
            instances.append(instance)
        try:
            db.session.add_all(instances)
            db.session.flush()
        except SQLAlchemyError as e:
            raise StoreError(f'Failed to insert into {self.model.__tablename__}: {e}') from e
        return instances

    def update_where(self, patch, *criteria):
        """Bulk UPDATE of visible rows; returns the affected row count."""
        if not criteria:
            raise ValueError('update_where requires at least one criterion')
        try:
            return self.query(*criteria).update(patch, synchronize_session='fetch')
        except SQLAlchemyError as e:
            raise StoreError(f'Failed to update {self.model.__tablename__}: {e}') from e

    def delete_where(self, *criteria):
        """Bulk DELETE of visible rows; returns the affected row count."""
        if not criteria:
            raise ValueError('delete_where requires at least one criterion')
        try:
            return self.query(*criteria).delete(synchronize_session='fetch')
        except SQLAlchemyError as e:
            raise StoreError(f'Failed to delete from {self.model.__tablename__}: {e}') from e


def commit():
    """Commit the current transaction, rolling back on failure."""
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Commit failed: %s", e, exc_info=True)
        raise StoreError(f'Database error: {e}') from e
