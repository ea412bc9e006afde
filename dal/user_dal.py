"""Async Data Access Layer for the USERS table."""

from __future__ import annotations

import time
from typing import Optional, Sequence

import aiosqlite

from models.user_record import UserRecord
from utils.database_init import AsyncDatabaseInitializer
from utils.errors import ValidationError


class UserDAL:
    """Data access layer for USERS records."""

    _COLUMNS = ("id", "username", "password_hash", "display_name", "bio", "created_at")
    _COLUMN_LIST, _INSERT_COLUMNS = ", ".join(_COLUMNS), ", ".join(_COLUMNS[1:])

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def create_user(self, record: UserRecord) -> UserRecord:
        """Insert a new user and return it with `id` and `created_at` populated.

        Raises:
            ValidationError: If the username is already taken.
        """
        created_at = record.created_at or int(time.time())
        async with self._db.connection() as conn:
            try:
                cur = await conn.execute(
                    f"INSERT INTO USERS ({self._INSERT_COLUMNS}) VALUES (?, ?, ?, ?, ?)",
                    (record.username, record.password_hash, record.display_name, record.bio, created_at),
                )
            except aiosqlite.IntegrityError as exc:
                raise ValidationError("Username already exists") from exc
            await conn.commit()
            record.id = cur.lastrowid
            record.created_at = created_at
            return record

    async def get_user_by_id(self, user_id: int) -> Optional[UserRecord]:
        async with self._db.connection() as conn:
            cur = await conn.execute(f"SELECT {self._COLUMN_LIST} FROM USERS WHERE id = ?", (user_id,))
            row = await cur.fetchone()
            return self._row_to_record(row) if row else None

    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        async with self._db.connection() as conn:
            cur = await conn.execute(f"SELECT {self._COLUMN_LIST} FROM USERS WHERE username = ?", (username,))
            row = await cur.fetchone()
            return self._row_to_record(row) if row else None

    async def first_user(self) -> Optional[UserRecord]:
        """Return the earliest registered user, or None when the table is empty."""
        async with self._db.connection() as conn:
            cur = await conn.execute(f"SELECT {self._COLUMN_LIST} FROM USERS ORDER BY id ASC LIMIT 1")
            row = await cur.fetchone()
            return self._row_to_record(row) if row else None

    async def update_profile(
        self,
        user_id: int,
        *,
        display_name: Optional[str] = None,
        bio: Optional[str] = None,
    ) -> Optional[UserRecord]:
        """Update profile fields and return the refreshed user (None if absent)."""
        updates = {"display_name": display_name, "bio": bio}
        fields = [f"{col} = ?" for col, val in updates.items() if val is not None]
        if fields:
            params = [val for val in updates.values() if val is not None]
            params.append(user_id)
            async with self._db.connection() as conn:
                await conn.execute(f"UPDATE USERS SET {', '.join(fields)} WHERE id = ?", tuple(params))
                await conn.commit()
        return await self.get_user_by_id(user_id)

    @staticmethod
    def _row_to_record(row: Sequence[object]) -> UserRecord:
        return UserRecord(
            id=row[0],
            username=row[1],
            password_hash=row[2],
            display_name=row[3],
            bio=row[4],
            created_at=row[5],
        )
