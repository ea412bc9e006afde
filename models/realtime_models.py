"""Realtime websocket envelope models."""

from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

SYSTEM_SENDER_ID = "system"
SYSTEM_SENDER_NAME = "System"


class ChatMessageEvent(BaseModel):
    """Inbound `message` frame after kind dispatch."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    type: Literal["message"]
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    content: str


class SystemEvent(BaseModel):
    """Server -> client notice, e.g. the welcome frame."""

    type: Literal["system"] = "system"
    content: str
    timestamp: str

    def to_wire(self) -> str:
        return self.model_dump_json()


class RealtimeMessage(BaseModel):
    """Server -> client broadcast of a chat message."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["message"] = "message"
    sender_id: Union[int, str] = Field(alias="senderId")
    sender_name: str = Field(alias="senderName")
    content: str
    timestamp: str

    def to_wire(self) -> str:
        return self.model_dump_json(by_alias=True)
