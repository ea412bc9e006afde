"""Async Data Access Layer for the MESSAGE table.

`MessageDAL` is the conversation index: it appends direct messages in a
strictly increasing id order, returns the conversation between two users
oldest first, and tracks read state for the recipient side.
"""

from __future__ import annotations

import time
from typing import List, Sequence

from models.message_record import MessageRecord
from utils.database_init import AsyncDatabaseInitializer


class MessageDAL:
    """Data access layer for MESSAGE records."""

    _COLUMNS = ("id", "sender_id", "recipient_id", "content", "sent_at", "read_at")
    _COLUMN_LIST = ", ".join(_COLUMNS)

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def append(self, sender_id: int, recipient_id: int, content: str) -> MessageRecord:
        """Store a new message and return it. No deduplication is performed."""
        sent_at = time.time()
        async with self._db.connection() as conn:
            cur = await conn.execute(
                "INSERT INTO MESSAGE (sender_id, recipient_id, content, sent_at) VALUES (?, ?, ?, ?)",
                (sender_id, recipient_id, content, sent_at),
            )
            await conn.commit()
            return MessageRecord(
                id=cur.lastrowid,
                sender_id=sender_id,
                recipient_id=recipient_id,
                content=content,
                sent_at=sent_at,
            )

    async def fetch(self, participant_a: int, participant_b: int) -> List[MessageRecord]:
        """Return every message exchanged between the pair, oldest first."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM MESSAGE "
                "WHERE (sender_id = ? AND recipient_id = ?) OR (sender_id = ? AND recipient_id = ?) "
                "ORDER BY id ASC",
                (participant_a, participant_b, participant_b, participant_a),
            )
            rows = await cur.fetchall()
            return [self._row_to_record(r) for r in rows]

    async def mark_read(self, reader_id: int, counterpart_id: int) -> int:
        """Mark unread messages sent by `counterpart_id` to `reader_id` as read.

        Already-read messages keep their original `read_at`, so repeated calls
        leave the read state unchanged. Returns the number of rows updated.
        """
        async with self._db.connection() as conn:
            await conn.execute(
                "UPDATE MESSAGE SET read_at = ? "
                "WHERE recipient_id = ? AND sender_id = ? AND read_at IS NULL",
                (time.time(), reader_id, counterpart_id),
            )
            await conn.commit()
            cur = await conn.execute("SELECT changes()")
            changed = await cur.fetchone()
            return int(changed[0]) if changed and changed[0] is not None else 0

    async def list_for_user(self, user_id: int, limit: int = 200) -> List[MessageRecord]:
        """Return the most recent messages sent or received by a user, newest first."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM MESSAGE "
                "WHERE sender_id = ? OR recipient_id = ? ORDER BY id DESC LIMIT ?",
                (user_id, user_id, limit),
            )
            rows = await cur.fetchall()
            return [self._row_to_record(r) for r in rows]

    async def unread_count(self, user_id: int) -> int:
        async with self._db.connection() as conn:
            cur = await conn.execute(
                "SELECT COUNT(*) FROM MESSAGE WHERE recipient_id = ? AND read_at IS NULL",
                (user_id,),
            )
            row = await cur.fetchone()
            return int(row[0]) if row else 0

    @staticmethod
    def _row_to_record(row: Sequence[object]) -> MessageRecord:
        return MessageRecord(
            id=row[0],
            sender_id=row[1],
            recipient_id=row[2],
            content=row[3],
            sent_at=row[4],
            read_at=row[5],
        )
