"""
Chat store service layer for MongoDB operations.

Persistence port consumed by the realtime core: appends messages to a chat
room and lists the chats a user takes part in.
"""

import logging
import time
from datetime import datetime
from typing import List, Optional, Protocol

from beanie import PydanticObjectId
from bson.errors import InvalidId
from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError

from livechat.core.logging import log_database_operation
from livechat.models import ChatRoom, Message

logger = logging.getLogger(__name__)

LAST_MESSAGE_PREVIEW_LENGTH = 100


class ChatStore(Protocol):
    """채팅방 / 메시지 영속성 포트"""

    async def append_message(
        self,
        room_id: str,
        author_id: str,
        content: str,
        image_url: Optional[str] = None,
        client_token: Optional[str] = None,
    ) -> Message:
        ...

    async def list_chats_for_user(self, user_id: str) -> List[ChatRoom]:
        ...

    async def get_chat_room(self, room_id: str) -> Optional[ChatRoom]:
        ...

    async def is_participant(self, user_id: str, room_id: str) -> bool:
        ...

    async def create_chat_room(self, name: Optional[str], participant_ids: List[str]) -> ChatRoom:
        ...

    async def get_room_messages(self, room_id: str, limit: int = 50) -> List[Message]:
        ...


def to_object_id(value: str) -> Optional[PydanticObjectId]:
    """문자열 ID를 ObjectId로 변환 (형식이 맞지 않으면 None)"""
    try:
        return PydanticObjectId(value)
    except (InvalidId, TypeError):
        return None


class MongoChatStore:
    """Beanie 기반 ChatStore 구현"""

    # =========================================================================
    # Message Operations
    # =========================================================================

    async def append_message(
        self,
        room_id: str,
        author_id: str,
        content: str,
        image_url: Optional[str] = None,
        client_token: Optional[str] = None,
    ) -> Message:
        """
        메시지를 저장하고 저장된 문서를 반환합니다.

        client_token이 있으면 같은 (room_id, author_id, client_token)으로 이미
        저장된 메시지를 그대로 반환하여 재전송 시 중복 저장을 막습니다.
        """
        started = time.perf_counter()

        if client_token:
            existing = await self._find_by_client_token(room_id, author_id, client_token)
            if existing:
                logger.info(f"Duplicate client_token {client_token} in room {room_id}, returning stored message")
                return existing

        message = Message(
            room_id=room_id,
            author_id=author_id,
            content=content,
            image_url=image_url,
            client_token=client_token,
            created_at=datetime.utcnow(),
        )

        try:
            await message.insert()
        except DuplicateKeyError:
            # 같은 토큰의 동시 재전송
            existing = await self._find_by_client_token(room_id, author_id, client_token)
            if existing is None:
                raise
            return existing

        await self._touch_room(room_id, message)

        log_database_operation(
            logger,
            "insert",
            Message.Settings.name,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
            room_id=room_id,
        )
        return message

    async def get_room_messages(self, room_id: str, limit: int = 50) -> List[Message]:
        """채팅방 메시지 목록 조회 (오래된 것부터)"""
        messages = await Message.find(
            Message.room_id == room_id
        ).sort([("created_at", DESCENDING)]).limit(limit).to_list()

        return list(reversed(messages))

    async def _find_by_client_token(self, room_id: str, author_id: str, client_token: str) -> Optional[Message]:
        return await Message.find_one(
            Message.room_id == room_id,
            Message.author_id == author_id,
            Message.client_token == client_token,
        )

    async def _touch_room(self, room_id: str, message: Message):
        """채팅방의 마지막 메시지 업데이트"""
        object_id = to_object_id(room_id)
        if object_id is None:
            return

        preview = message.content or "[image]"
        if len(preview) > LAST_MESSAGE_PREVIEW_LENGTH:
            preview = preview[:LAST_MESSAGE_PREVIEW_LENGTH] + "..."

        await ChatRoom.find_one(ChatRoom.id == object_id).update({
            "$set": {
                "last_message": preview,
                "last_message_at": message.created_at,
                "updated_at": datetime.utcnow(),
            }
        })

    # =========================================================================
    # Chat Room Operations
    # =========================================================================

    async def create_chat_room(self, name: Optional[str], participant_ids: List[str]) -> ChatRoom:
        """새 채팅방 생성"""
        room = ChatRoom(
            name=name,
            participant_ids=list(dict.fromkeys(participant_ids)),
            created_at=datetime.utcnow(),
            updated_at=datetime.utcnow(),
        )
        await room.insert()
        return room

    async def list_chats_for_user(self, user_id: str) -> List[ChatRoom]:
        """사용자가 참여 중인 채팅방 목록 (최근 메시지 순)"""
        return await ChatRoom.find(
            {"participant_ids": user_id}
        ).sort([("last_message_at", DESCENDING), ("created_at", DESCENDING)]).to_list()

    async def get_chat_room(self, room_id: str) -> Optional[ChatRoom]:
        """채팅방 조회 (없거나 ID 형식이 잘못되면 None)"""
        object_id = to_object_id(room_id)
        if object_id is None:
            return None

        return await ChatRoom.get(object_id)

    async def is_participant(self, user_id: str, room_id: str) -> bool:
        """사용자가 채팅방 참여자인지 확인"""
        object_id = to_object_id(room_id)
        if object_id is None:
            return False

        room = await ChatRoom.find_one({"_id": object_id, "participant_ids": user_id})
        return room is not None
