from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, ConfigDict, model_validator


class InboundMessage(BaseModel):
    """클라이언트가 보낸 메시지 페이로드 (저장 전)"""
    content: str = Field(default="", max_length=2000, description="메시지 내용")
    image_url: Optional[str] = Field(None, description="업로드된 이미지 경로")
    client_token: Optional[str] = Field(None, max_length=128, description="재전송 중복 방지 토큰")

    @model_validator(mode="after")
    def strip_content(self) -> "InboundMessage":
        self.content = self.content.strip()
        return self

    @property
    def is_empty(self) -> bool:
        return not self.content and not self.image_url


class ChatMessage(BaseModel):
    """
    저장이 완료된 정식 메시지

    브로드캐스트되는 유일한 메시지 형태입니다. 클라이언트 페이로드는 그대로
    전달되지 않습니다.
    """
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="메시지 ID")
    room_id: str = Field(..., description="채팅방 ID")
    author_id: str = Field(..., description="메시지 발송자 ID")
    content: str = Field(default="", description="메시지 내용")
    image_url: Optional[str] = Field(None, description="이미지 경로")
    client_token: Optional[str] = Field(None, description="클라이언트 토큰")
    created_at: datetime = Field(..., description="생성일시")

    @classmethod
    def from_document(cls, message) -> "ChatMessage":
        """Beanie Message 문서를 정식 메시지로 변환"""
        return cls(
            id=str(message.id),
            room_id=message.room_id,
            author_id=message.author_id,
            content=message.content,
            image_url=message.image_url,
            client_token=message.client_token,
            created_at=message.created_at,
        )

    def to_wire(self) -> Dict[str, Any]:
        """WebSocket으로 전송할 페이로드 (저장된 필드의 상위집합)"""
        data = self.model_dump(mode="json")
        data["type"] = "message"
        return data
