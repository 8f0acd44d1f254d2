"""
Record store over the SQLAlchemy models.

Exposes the four record kinds the drafting engine persists
(resolutions, templates, clients, users) through one small interface:

    store = Store(session)
    store.get('templates')            # all visible records, newest first
    store.find('clients', client_id)  # one record or None
    store.put('resolutions', record)  # insert or overwrite by id
    store.delete('templates', template_id)

Each put or delete commits on its own; there are no cross-kind
transactions. On a database error the session is rolled back and a
StoreError is raised.
"""

import logging
from typing import Any, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from models import db, ClientProfile, DocumentTemplate, Resolution, User
from services.drafting.exceptions import StoreError
from services.drafting.session import WorkspaceSession

logger = logging.getLogger(__name__)

KINDS = {
    'resolutions': Resolution,
    'templates': DocumentTemplate,
    'clients': ClientProfile,
    'users': User,
}

ORDERING = {
    'resolutions': Resolution.created_at.desc(),
    'templates': DocumentTemplate.created_at.desc(),
    'clients': ClientProfile.company_name.asc(),
    'users': User.created_at.asc(),
}


class Store:
    """
    Persistence gateway scoped to a workspace session.

    Resolutions are private to the user who saved them, except for admins.
    Templates, clients and users are shared across the workspace.
    """

    def __init__(self, session: Optional[WorkspaceSession] = None):
        self.session = session

    @staticmethod
    def _model(kind: str):
        try:
            return KINDS[kind]
        except KeyError:
            raise StoreError(f"Unknown record kind: {kind}", kind=kind)

    def _query(self, kind: str):
        model = self._model(kind)
        query = model.query
        if kind == 'resolutions' and self.session and not self.session.is_admin:
            query = query.filter(Resolution.user_id == self.session.user_id)
        return query

    def get(self, kind: str) -> List[Any]:
        """All records of a kind visible to the session."""
        try:
            rows = self._query(kind).order_by(ORDERING[kind]).all()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Failed to load {kind}: {e}")
            raise StoreError(f"Could not load {kind}", kind=kind) from e
        return [row.to_record() for row in rows]

    def find(self, kind: str, record_id: str) -> Optional[Any]:
        try:
            row = self._query(kind).filter_by(id=record_id).first()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Failed to load {kind} {record_id}: {e}")
            raise StoreError(f"Could not load {kind} record", kind=kind) from e
        return row.to_record() if row else None

    def find_client_by_cin(self, cin: str):
        try:
            row = ClientProfile.query.filter_by(cin=cin).first()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Failed to look up client with CIN {cin!r}: {e}")
            raise StoreError("Could not load client record", kind='clients') from e
        return row.to_record() if row else None

    def put(self, kind: str, record: Any) -> Any:
        """
        Insert or overwrite the record with ``record.id``.

        Returns the stored record, with store-assigned values such as
        ``created_at`` filled in.
        """
        model = self._model(kind)
        try:
            row = db.session.get(model, record.id)
            if row is None:
                if kind == 'users':
                    raise StoreError("Users are created through registration", kind=kind)
                row = model(id=record.id)
                db.session.add(row)
            row.apply(record)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Failed to save {kind} {record.id}: {e}")
            raise StoreError(f"Could not save {kind} record", kind=kind) from e

        logger.debug(f"Saved {kind} {record.id}")
        return row.to_record()

    def delete(self, kind: str, record_id: str) -> bool:
        """Delete one record. Returns False when nothing matched."""
        try:
            row = self._query(kind).filter_by(id=record_id).first()
            if row is None:
                return False
            db.session.delete(row)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Failed to delete {kind} {record_id}: {e}")
            raise StoreError(f"Could not delete {kind} record", kind=kind) from e

        logger.info(f"Deleted {kind} {record_id}")
        return True
