import asyncio
import json
import threading

import pytest
from fastapi.testclient import TestClient

from dal.content_dal import ContentDAL
from dal.message_dal import MessageDAL
from dal.user_dal import UserDAL
from main import create_app
from utils.app_config import AppConfig
from utils.database_init import AsyncDatabaseInitializer
from utils.errors import ProcessingError


class FakeTransport:
    """Stand-in for a websocket: records every frame sent to it."""

    def __init__(self, fail: bool = False, fail_after: int | None = None):
        self.fail = fail
        self.fail_after = fail_after
        self.sent = []

    async def send_text(self, text: str) -> None:
        if self.fail or (self.fail_after is not None and len(self.sent) >= self.fail_after):
            raise RuntimeError("socket closed")
        self.sent.append(json.loads(text))


class FakeSummarizer:
    """Summarizer returning a fixed text, optionally failing or waiting on a gate."""

    def __init__(self, result: str = "S", error: Exception | None = None, gate: threading.Event | None = None):
        self.result = result
        self.error = error
        self.gate = gate
        self.calls = []

    async def summarize(self, path: str) -> str:
        self.calls.append(path)
        if self.gate is not None:
            while not self.gate.is_set():
                await asyncio.sleep(0.01)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def app_config(tmp_path):
    return AppConfig(database_dir=tmp_path / "db", upload_dir=tmp_path / "uploads")


@pytest.fixture
def db(tmp_path):
    return AsyncDatabaseInitializer(tmp_path / "db")


@pytest.fixture
def user_dal(db):
    return UserDAL(db)


@pytest.fixture
def message_dal(db):
    return MessageDAL(db)


@pytest.fixture
def content_dal(db):
    return ContentDAL(db)


@pytest.fixture
def summarizer():
    return FakeSummarizer()


@pytest.fixture
def failing_summarizer():
    return FakeSummarizer(error=ProcessingError("provider unavailable"))


@pytest.fixture
def make_client(app_config):
    """Build a TestClient around a fresh app; the caller enters it as a context manager."""

    def _make(summarizer=None, **overrides):
        for key, value in overrides.items():
            setattr(app_config, key, value)
        return TestClient(create_app(config=app_config, summarizer=summarizer or FakeSummarizer()))

    return _make


def register(client, username="alice", password="secret-pass"):
    response = client.post("/api/auth/register", json={"username": username, "password": password})
    assert response.status_code == 201, response.text
    body = response.json()
    return body["user"]["id"], body["sessionId"]
