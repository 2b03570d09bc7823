from datetime import datetime
from typing import List, Optional
from beanie import Document
from pydantic import Field
from pymongo import ASCENDING, DESCENDING


class ChatRoom(Document):
    name: Optional[str] = Field(None, description="Display name of the chat")
    participant_ids: List[str] = Field(default_factory=list, description="User IDs allowed in this chat")
    last_message: Optional[str] = Field(None, description="Preview of the latest message")
    last_message_at: Optional[datetime] = Field(None, description="When the latest message was stored")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "chat_rooms"
        indexes = [
            [("participant_ids", ASCENDING), ("last_message_at", DESCENDING)],  # For user's chat list
        ]

    def __repr__(self):
        return f"<ChatRoom(id={self.id}, participants={self.participant_ids})>"
