"""
Data access for one agent history table
"""

import logging
from datetime import datetime
from typing import List, Optional
from sqlalchemy import Table, and_, delete, distinct, func, insert, select
from sqlalchemy.engine import Row
from sqlalchemy.orm import Session

from app.services.message_adapter import decode_payload
from app.services.session_ids import session_id_prefix
from app.deps.exceptions import MessageParseError

logger = logging.getLogger(__name__)


class AgentHistoryStore:
    """
    Queries over one agent history table

    The store holds no database session; every call takes the request's
    ``db`` so the routed table never outlives the request that chose it.
    """

    def __init__(self, table: Table):
        self.table = table

    @property
    def name(self) -> str:
        return self.table.name

    def __repr__(self) -> str:
        return f"AgentHistoryStore({self.name!r})"

    def _owned_by(self, user_id: str, agent_type: Optional[str] = None):
        prefix = session_id_prefix(user_id, agent_type)
        session_id = self.table.c.session_id
        # LIKE ignores case on SQLite; the substr comparison keeps the match exact
        return and_(
            session_id.startswith(prefix, autoescape=True),
            func.substr(session_id, 1, len(prefix)) == prefix,
        )

    def insert_message(self, db: Session, session_id: str, payload: str,
                       created_at: Optional[datetime] = None) -> int:
        """Insert a raw message row and return its id"""
        result = db.execute(
            insert(self.table).values(session_id=session_id, message=payload, created_at=created_at)
        )
        return result.inserted_primary_key[0]

    def session_exists(self, db: Session, session_id: str) -> bool:
        stmt = select(self.table.c.id).where(self.table.c.session_id == session_id).limit(1)
        return db.execute(stmt).first() is not None

    def get_messages(self, db: Session, session_id: str) -> List[Row]:
        """Rows of a session in insertion order"""
        stmt = (
            select(self.table)
            .where(self.table.c.session_id == session_id)
            .order_by(self.table.c.id.asc())
        )
        return list(db.execute(stmt).all())

    def get_session_summaries(self, db: Session, user_id: str, agent_type: Optional[str] = None,
                              offset: Optional[int] = None, limit: Optional[int] = None) -> List[Row]:
        """
        One row per session owned by ``user_id``

        Columns: session_id, first_id, last_id, message_count, created_at,
        updated_at. Ordered by most recent message first.
        """
        t = self.table
        stmt = (
            select(
                t.c.session_id,
                func.min(t.c.id).label("first_id"),
                func.max(t.c.id).label("last_id"),
                func.count(t.c.id).label("message_count"),
                func.min(t.c.created_at).label("created_at"),
                func.max(t.c.created_at).label("updated_at"),
            )
            .where(self._owned_by(user_id, agent_type))
            .group_by(t.c.session_id)
            .order_by(func.max(t.c.id).desc())
        )
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(db.execute(stmt).all())

    def count_sessions(self, db: Session, user_id: str, agent_type: Optional[str] = None) -> int:
        stmt = select(func.count(distinct(self.table.c.session_id))).where(self._owned_by(user_id, agent_type))
        return db.execute(stmt).scalar_one()

    def get_first_user_message(self, db: Session, session_id: str) -> Optional[str]:
        """Content of the first decodable human message of a session"""
        for row in self.get_messages(db, session_id):
            try:
                payload = decode_payload(row.message)
            except MessageParseError as e:
                logger.warning(f"Skipping undecodable row {row.id} in {self.name}: {e.message}")
                continue
            if payload.is_user:
                return payload.content
        return None

    def get_user_messages(self, db: Session, user_id: str) -> List[Row]:
        """All rows of every session owned by ``user_id``, newest first"""
        stmt = (
            select(self.table)
            .where(self._owned_by(user_id))
            .order_by(self.table.c.id.desc())
        )
        return list(db.execute(stmt).all())

    def delete_session(self, db: Session, session_id: str) -> int:
        """Bulk delete every row of a session; returns the number of rows removed"""
        result = db.execute(delete(self.table).where(self.table.c.session_id == session_id))
        return result.rowcount
