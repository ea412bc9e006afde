from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class UserRecord:
    """In-memory representation of a row in the USERS table."""

    id: Optional[int]
    username: str
    password_hash: str
    display_name: Optional[str] = None
    bio: Optional[str] = None
    created_at: Optional[int] = None

    def public_dict(self) -> Dict[str, Any]:
        """Return the user without the password hash."""
        return {
            "id": self.id,
            "username": self.username,
            "display_name": self.display_name,
            "bio": self.bio,
            "created_at": self.created_at,
        }
