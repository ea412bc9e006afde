"""Async Data Access Layer for the CONTENT table.

Provides the create/read/update operations the ingestion pipeline consumes.
Terminal transitions are guarded in SQL: a row whose status is already
`complete` or `failed` is never rewritten.
"""

from __future__ import annotations

import time
from typing import List, Optional, Sequence

from models.content_record import STATUS_PROCESSING, TERMINAL_STATUSES, ContentRecord
from utils.database_init import AsyncDatabaseInitializer


class ContentDAL:
    """Data access layer for CONTENT records."""

    _COLUMNS = (
        "id",
        "owner_id",
        "filename",
        "media_type",
        "storage_path",
        "size_bytes",
        "status",
        "summary",
        "created_at",
        "updated_at",
    )
    _COLUMN_LIST, _INSERT_COLUMNS = ", ".join(_COLUMNS), ", ".join(_COLUMNS[1:])

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def create_content(self, record: ContentRecord) -> ContentRecord:
        """Insert a new CONTENT row and return the record with its id populated."""
        now = int(time.time())
        record.created_at = record.created_at or now
        record.updated_at = record.updated_at or now

        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"INSERT INTO CONTENT ({self._INSERT_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    record.owner_id,
                    record.filename,
                    record.media_type,
                    record.storage_path,
                    record.size_bytes,
                    record.status,
                    record.summary,
                    record.created_at,
                    record.updated_at,
                ),
            )
            await conn.commit()
            record.id = cur.lastrowid
            return record

    async def get_content(self, content_id: int) -> Optional[ContentRecord]:
        """Return ContentRecord for `content_id`, or None if not found."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM CONTENT WHERE id = ?",
                (content_id,),
            )
            row = await cur.fetchone()
            return self._row_to_record(row) if row else None

    async def list_for_owner(self, owner_id: int, limit: int = 100, offset: int = 0) -> List[ContentRecord]:
        """List a user's uploads, newest first."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM CONTENT WHERE owner_id = ? ORDER BY id DESC LIMIT ? OFFSET ?",
                (owner_id, limit, offset),
            )
            rows = await cur.fetchall()
            return [self._row_to_record(r) for r in rows]

    async def finish_processing(self, content_id: int, status: str, summary: Optional[str] = None) -> bool:
        """Move a `processing` row to a terminal state exactly once.

        Returns False if the row was missing or no longer `processing`.
        """
        if status not in TERMINAL_STATUSES:
            raise ValueError(f"{status!r} is not a terminal status")
        async with self._db.connection() as conn:
            await conn.execute(
                "UPDATE CONTENT SET status = ?, summary = ?, updated_at = ? WHERE id = ? AND status = ?",
                (status, summary, int(time.time()), content_id, STATUS_PROCESSING),
            )
            await conn.commit()
            cur = await conn.execute("SELECT changes()")
            changed = await cur.fetchone()
            return bool(changed and changed[0] > 0)

    @staticmethod
    def _row_to_record(row: Sequence[object]) -> ContentRecord:
        """Convert a DB row tuple into a ContentRecord."""
        return ContentRecord(
            id=row[0],
            owner_id=row[1],
            filename=row[2],
            media_type=row[3],
            storage_path=row[4],
            size_bytes=row[5],
            status=row[6],
            summary=row[7],
            created_at=row[8],
            updated_at=row[9],
        )
