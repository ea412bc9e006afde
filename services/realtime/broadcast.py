"""Fan out inbound realtime chat events to every other connection."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from models.realtime_models import (
	SYSTEM_SENDER_ID,
	SYSTEM_SENDER_NAME,
	ChatMessageEvent,
	RealtimeMessage,
)
from models.session_models import Connection
from services.realtime.connection_registry import ConnectionRegistry
from services.session_store import SessionRegistry

LOGGER = logging.getLogger(__name__)

# Seconds a single recipient may take to accept a frame.
SEND_TIMEOUT = 5.0


class BroadcastEngine:
	"""Route `message` frames from one connection to all the others.

	The channel is fire-and-forget: malformed frames are logged and dropped
	without replying to the sender. Recipients are sent to concurrently; one
	that fails or does not accept the frame within `send_timeout` is
	unregistered without affecting delivery to the rest.
	"""

	def __init__(
		self,
		connections: ConnectionRegistry,
		sessions: SessionRegistry,
		send_timeout: float = SEND_TIMEOUT,
	) -> None:
		self.connections = connections
		self.sessions = sessions
		self.send_timeout = send_timeout

	async def handle(self, connection: Connection, raw: Union[str, bytes]) -> Optional[RealtimeMessage]:
		"""Process one inbound frame and return the broadcast message, if any."""
		payload = self._parse(connection, raw)
		if payload is None:
			return None

		message_type = payload.get("type")
		if message_type != "message":
			LOGGER.debug("Ignoring %r frame from %s", message_type, connection.identifier)
			return None

		try:
			event = ChatMessageEvent.model_validate(payload)
		except PydanticValidationError as exc:
			LOGGER.warning("Dropping malformed message from %s: %s", connection.identifier, exc.errors())
			return None

		sender_id, sender_name = self._resolve_sender(connection, event.session_id)
		message = RealtimeMessage(
			sender_id=sender_id,
			sender_name=sender_name,
			content=event.content,
			timestamp=self.connections.clock.isoformat(),
		)
		wire = message.to_wire()

		async def _deliver(recipient: Connection) -> None:
			try:
				await asyncio.wait_for(recipient.send_text(wire), timeout=self.send_timeout)
			except asyncio.TimeoutError:
				LOGGER.warning(
					"Delivery to %s timed out after %.1fs, dropping connection", recipient.identifier, self.send_timeout
				)
				self.connections.unregister(recipient)
			except Exception as exc:
				LOGGER.warning("Delivery to %s failed, dropping connection: %s", recipient.identifier, exc)
				self.connections.unregister(recipient)

		await self.connections.for_each_other(connection, _deliver)
		return message

	def _parse(self, connection: Connection, raw: Union[str, bytes]) -> Optional[dict]:
		try:
			payload: Any = json.loads(raw)
		except (TypeError, ValueError) as exc:
			LOGGER.warning("Dropping non-JSON frame from %s: %s", connection.identifier, exc)
			return None
		if not isinstance(payload, dict):
			LOGGER.warning("Dropping non-object frame from %s", connection.identifier)
			return None
		return payload

	def _resolve_sender(self, connection: Connection, session_id: Optional[str]) -> Tuple[Union[int, str], str]:
		"""Return `(sender_id, sender_name)`, binding the session to the connection on first use."""
		session = self.sessions.resolve(session_id)
		if session is None:
			return SYSTEM_SENDER_ID, SYSTEM_SENDER_NAME
		if connection.session_token is None:
			connection.session_token = session.token
		return session.user_id, session.username
