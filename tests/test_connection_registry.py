import asyncio

import pytest

from conftest import FakeTransport
from models.session_models import Connection
from services.realtime.connection_registry import WELCOME_TEXT, ConnectionRegistry
from utils.errors import TransportError


def _connection(name, fail=False):
    return Connection(identifier=name, transport=FakeTransport(fail=fail))


def test_register_sends_single_welcome_first():
    registry = ConnectionRegistry()
    conn = _connection("a")

    asyncio.run(registry.register(conn))

    assert conn in registry
    assert len(conn.transport.sent) == 1
    welcome = conn.transport.sent[0]
    assert welcome["type"] == "system"
    assert welcome["content"] == WELCOME_TEXT
    assert welcome["timestamp"].endswith("Z")


def test_register_failure_leaves_connection_unregistered():
    registry = ConnectionRegistry()
    conn = _connection("a", fail=True)

    with pytest.raises(TransportError):
        asyncio.run(registry.register(conn))

    assert conn not in registry
    assert len(registry) == 0


def test_unregister_is_idempotent():
    registry = ConnectionRegistry()
    conn = _connection("a")
    asyncio.run(registry.register(conn))

    registry.unregister(conn)
    registry.unregister(conn)
    registry.unregister(_connection("never-registered"))

    assert len(registry) == 0


def test_for_each_other_excludes_only_the_given_connection():
    registry = ConnectionRegistry()
    a, b, c = _connection("a"), _connection("b"), _connection("c")
    seen = []

    async def scenario():
        for conn in (a, b, c):
            await registry.register(conn)

        async def visit(conn):
            seen.append(conn.identifier)

        await registry.for_each_other(a, visit)

    asyncio.run(scenario())

    assert sorted(seen) == ["b", "c"]


def test_for_each_other_tolerates_membership_changes_during_iteration():
    registry = ConnectionRegistry()
    a, b, c = _connection("a"), _connection("b"), _connection("c")
    seen = []

    async def scenario():
        for conn in (a, b, c):
            await registry.register(conn)

        async def visit(conn):
            seen.append(conn.identifier)
            registry.unregister(conn)

        await registry.for_each_other(a, visit)

    asyncio.run(scenario())

    assert sorted(seen) == ["b", "c"]
    assert len(registry) == 1


def test_for_each_other_keeps_going_when_one_visit_raises():
    registry = ConnectionRegistry()
    a, b, c = _connection("a"), _connection("b"), _connection("c")
    seen = []

    async def scenario():
        for conn in (a, b, c):
            await registry.register(conn)

        async def visit(conn):
            if conn is b:
                raise RuntimeError("boom")
            seen.append(conn.identifier)

        await registry.for_each_other(a, visit)

    asyncio.run(scenario())

    assert seen == ["c"]
