"""WebSocket endpoint for realtime chat broadcast."""

from __future__ import annotations

import logging
from uuid import uuid4

from fastapi import APIRouter, WebSocket

from models.session_models import Connection
from services.realtime.broadcast import BroadcastEngine
from services.realtime.connection_registry import ConnectionRegistry
from utils.errors import TransportError

LOGGER = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/api/ws")
async def realtime_socket(websocket: WebSocket):
	"""Register the connection and broadcast its chat frames until it closes."""
	registry: ConnectionRegistry = websocket.app.state.connection_registry
	engine: BroadcastEngine = websocket.app.state.broadcast_engine

	await websocket.accept()
	connection = Connection(identifier=uuid4().hex, transport=websocket)
	try:
		await registry.register(connection)
	except TransportError as exc:
		LOGGER.warning("%s", exc)
		return

	try:
		while True:
			frame = await websocket.receive()
			if frame["type"] == "websocket.disconnect":
				break
			raw = frame.get("text")
			if raw is None:
				raw = frame.get("bytes") or b""
			await engine.handle(connection, raw)
	except Exception as exc:
		LOGGER.warning("Connection %s failed: %s", connection.identifier, exc)
	finally:
		registry.unregister(connection)
