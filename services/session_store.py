"""In-memory registry binding session tokens to user identities.

Sessions live only in process memory: they have no expiry and no deletion
path, and all of them are lost on restart.
"""

from __future__ import annotations

import logging
import secrets
from typing import Dict, Optional

from dal.user_dal import UserDAL
from models.session_models import Session

LOGGER = logging.getLogger(__name__)

TOKEN_BYTES = 24


class SessionRegistry:
	"""Create and resolve session tokens for authenticated users."""

	def __init__(self, dev_auto_login: bool = False) -> None:
		self._sessions: Dict[str, Session] = {}
		self.dev_auto_login = dev_auto_login

	def create(self, user_id: int, username: str) -> str:
		"""Create a session for the user and return its opaque token."""
		token = secrets.token_urlsafe(TOKEN_BYTES)
		while token in self._sessions:
			token = secrets.token_urlsafe(TOKEN_BYTES)
		self._sessions[token] = Session(token=token, user_id=user_id, username=username)
		return token

	def resolve(self, token: Optional[str]) -> Optional[Session]:
		"""Return the session for `token`, or None if it is unknown."""
		if not token:
			return None
		return self._sessions.get(token)

	async def ensure_default(self, user_dal: UserDAL) -> Optional[str]:
		"""Synthesize a session for the first stored user when auto-login is enabled.

		Returns None when the flag is off or no user exists yet.
		"""
		if not self.dev_auto_login:
			return None
		user = await user_dal.first_user()
		if user is None:
			return None
		LOGGER.warning("DEV_AUTO_LOGIN: binding tokenless request to user %s", user.username)
		return self.create(user.id, user.username)
