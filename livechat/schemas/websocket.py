"""
WebSocket 프레임 스키마

클라이언트 → 서버:
- {"type": "join", "room_id": "..."}
- {"type": "leave"}
- {"type": "message", "content": "...", "image_url": "...", "client_token": "..."}
- {"type": "ping"}
"""

from typing import Annotated, Literal, Union
from pydantic import BaseModel, Field, TypeAdapter

from livechat.schemas.message import InboundMessage


class JoinFrame(BaseModel):
    type: Literal["join"]
    room_id: str = Field(..., min_length=1, description="입장할 채팅방 ID")


class LeaveFrame(BaseModel):
    type: Literal["leave"]


class MessageFrame(InboundMessage):
    type: Literal["message"]

    def to_inbound(self) -> InboundMessage:
        return InboundMessage(
            content=self.content,
            image_url=self.image_url,
            client_token=self.client_token,
        )


class PingFrame(BaseModel):
    type: Literal["ping"]


ClientFrame = Annotated[
    Union[JoinFrame, LeaveFrame, MessageFrame, PingFrame],
    Field(discriminator="type"),
]

client_frame_adapter = TypeAdapter(ClientFrame)
