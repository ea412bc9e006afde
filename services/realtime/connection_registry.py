"""Track live realtime connections."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Set

from models.realtime_models import SystemEvent
from models.session_models import Connection
from services.realtime.clock import MonotonicClock
from utils.errors import TransportError

LOGGER = logging.getLogger(__name__)

WELCOME_TEXT = "Connected to chat server"


class ConnectionRegistry:
	"""Own the set of live connections.

	Only `register` and `unregister` change membership. Iteration works on a
	snapshot so no send happens while the set itself is being changed.
	"""

	def __init__(self, clock: MonotonicClock | None = None) -> None:
		self._connections: Set[Connection] = set()
		self.clock = clock or MonotonicClock()

	def __len__(self) -> int:
		return len(self._connections)

	def __contains__(self, connection: object) -> bool:
		return connection in self._connections

	async def register(self, connection: Connection) -> None:
		"""Send the welcome event, then add the connection to the live set.

		Raises:
			TransportError: If the welcome frame cannot be delivered; the
				connection is not registered in that case.
		"""
		welcome = SystemEvent(content=WELCOME_TEXT, timestamp=self.clock.isoformat())
		try:
			await connection.send_text(welcome.to_wire())
		except Exception as exc:
			raise TransportError(f"Failed to greet connection {connection.identifier}") from exc
		self._connections.add(connection)
		LOGGER.info("Connection %s registered (%d live)", connection.identifier, len(self._connections))

	def unregister(self, connection: Connection) -> None:
		"""Remove a connection. Unknown connections are ignored."""
		if connection in self._connections:
			self._connections.discard(connection)
			LOGGER.info("Connection %s unregistered (%d live)", connection.identifier, len(self._connections))

	def snapshot(self) -> List[Connection]:
		return list(self._connections)

	async def for_each_other(
		self,
		excluding: Connection,
		fn: Callable[[Connection], Awaitable[None]],
	) -> None:
		"""Run `fn` concurrently for every live connection except `excluding`.

		Order is unspecified. Connections registered or removed while the
		fan-out is running are not reflected in it. An exception raised by
		`fn` for one connection is logged and does not affect the others.
		"""
		targets = [c for c in self.snapshot() if c is not excluding]
		results = await asyncio.gather(*(fn(c) for c in targets), return_exceptions=True)
		for connection, result in zip(targets, results):
			if isinstance(result, Exception):
				LOGGER.warning("Fan-out to %s raised: %s", connection.identifier, result)
