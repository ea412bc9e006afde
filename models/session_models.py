"""Session and connection domain models for realtime workflows."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class Session:
	"""Binding of an opaque token to a user identity. Never mutated."""

	token: str
	user_id: int
	username: str
	created_at: float = field(default_factory=lambda: time.time())


@dataclass(eq=False)
class Connection:
	"""One live realtime transport.

	`transport` is anything exposing an async `send_text(str)` (a Starlette
	WebSocket in production). Equality is identity so two connections with
	the same transport object never collide in the registry.
	"""

	identifier: str
	transport: Any
	session_token: Optional[str] = None
	opened_at: float = field(default_factory=lambda: time.time())

	async def send_text(self, text: str) -> None:
		await self.transport.send_text(text)
