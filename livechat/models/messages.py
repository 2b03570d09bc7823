from datetime import datetime
from typing import Optional
from beanie import Document
from pydantic import Field
from pymongo import ASCENDING, DESCENDING, IndexModel


class Message(Document):
    room_id: str = Field(..., description="Room ID where message was sent")
    author_id: str = Field(..., description="User ID who sent the message")
    content: str = Field(default="", description="Message text (may be empty for image-only messages)")
    image_url: Optional[str] = Field(None, description="Reference to an uploaded chat image")
    client_token: Optional[str] = Field(None, description="Client generated token used to deduplicate retries")
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "messages"
        indexes = [
            [("room_id", ASCENDING), ("created_at", DESCENDING)],  # For room message history
            IndexModel(
                [("room_id", ASCENDING), ("author_id", ASCENDING), ("client_token", ASCENDING)],
                unique=True,
                partialFilterExpression={"client_token": {"$type": "string"}},
                name="uniq_client_token",
            ),
        ]

    def __repr__(self):
        return f"<Message(id={self.id}, author_id={self.author_id}, room_id={self.room_id})>"
