"""Insight store schema (code-first approach).

Timestamps are stored as UTC ISO-8601 text with microsecond precision and a
trailing "Z" so string comparison in filters is chronological.
"""

import logging

from fairshare.core import db_client
from fairshare.core.config import Constants


logger = logging.getLogger(__name__)


TABLE_SCHEMAS: dict[str, str] = {
    Constants.INSIGHTS_COLLECTION: """CREATE TABLE IF NOT EXISTS insights (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        space_id TEXT NOT NULL,
        member_id TEXT NOT NULL,
        kind TEXT NOT NULL CHECK (kind IN ('prediction', 'anomaly', 'suggestion')),
        title TEXT NOT NULL,
        description TEXT NOT NULL,
        confidence REAL NOT NULL CHECK (confidence >= 0 AND confidence <= 1),
        related_member_id TEXT,
        related_task_id TEXT,
        category TEXT,
        action TEXT CHECK (action IS NULL OR action IN ('create_task', 'remind_user', 'assign_task')),
        status TEXT NOT NULL DEFAULT 'pending'
            CHECK (status IN ('pending', 'accepted', 'rejected', 'snoozed'))
    )""",
}

COLLECTIONS = list(TABLE_SCHEMAS)


async def init_db(*, db_path: str | None = None) -> None:
    """Create all store tables if they do not already exist."""
    conn = await db_client.get_connection(db_path=db_path)
    for ddl in TABLE_SCHEMAS.values():
        await conn.execute(ddl)
    await conn.commit()
    logger.info("Insight store schema ready", extra={"collections": COLLECTIONS})
