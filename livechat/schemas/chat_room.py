from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict


class ChatRoomSummary(BaseModel):
    """채팅방 목록 항목"""
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="채팅방 ID")
    name: Optional[str] = Field(None, description="채팅방 이름")
    participant_ids: List[str] = Field(default_factory=list, description="참여자 ID 목록")
    last_message: Optional[str] = Field(None, description="마지막 메시지 미리보기")
    last_message_at: Optional[datetime] = Field(None, description="마지막 메시지 시각")
    created_at: datetime = Field(..., description="생성일시")

    @classmethod
    def from_document(cls, room) -> "ChatRoomSummary":
        return cls(
            id=str(room.id),
            name=room.name,
            participant_ids=list(room.participant_ids),
            last_message=room.last_message,
            last_message_at=room.last_message_at,
            created_at=room.created_at,
        )


class ChatRoomList(BaseModel):
    """채팅방 목록 응답"""
    chats: List[ChatRoomSummary] = Field(..., description="채팅방 목록")
    total: int = Field(..., description="전체 채팅방 수")


class RoomStatus(BaseModel):
    """채팅방 실시간 상태"""
    room_id: str
    online_users: List[str]
    online_count: int
    is_active: bool
