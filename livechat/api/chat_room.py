import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from livechat.api.dependencies import get_chat_store, get_current_user_id
from livechat.core.errors import AuthorizationException, ResourceNotFoundException
from livechat.schemas.chat_room import ChatRoomList, ChatRoomSummary
from livechat.schemas.message import ChatMessage
from livechat.services.chat_store import ChatStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chats", tags=["Chats"])


class ChatRoomCreate(BaseModel):
    """채팅방 생성 스키마"""
    name: Optional[str] = Field(None, max_length=100, description="채팅방 이름")
    participant_ids: List[str] = Field(..., min_length=1, description="초대할 사용자 ID 목록")


@router.get("", response_model=ChatRoomList)
async def list_chats(
    current_user_id: str = Depends(get_current_user_id),
    store: ChatStore = Depends(get_chat_store),
) -> ChatRoomList:
    """현재 사용자가 참여 중인 채팅방 목록"""
    rooms = await store.list_chats_for_user(current_user_id)
    chats = [ChatRoomSummary.from_document(room) for room in rooms]
    return ChatRoomList(chats=chats, total=len(chats))


@router.post("", response_model=ChatRoomSummary, status_code=status.HTTP_201_CREATED)
async def create_chat(
    body: ChatRoomCreate,
    current_user_id: str = Depends(get_current_user_id),
    store: ChatStore = Depends(get_chat_store),
) -> ChatRoomSummary:
    """채팅방 생성 (생성자는 자동으로 참여자에 포함)"""
    room = await store.create_chat_room(body.name, [current_user_id, *body.participant_ids])
    logger.info(f"Chat room {room.id} created by user {current_user_id}")
    return ChatRoomSummary.from_document(room)


@router.get("/{room_id}/messages", response_model=List[ChatMessage])
async def get_chat_messages(
    room_id: str,
    limit: int = Query(50, ge=1, le=200, description="조회할 메시지 수"),
    current_user_id: str = Depends(get_current_user_id),
    store: ChatStore = Depends(get_chat_store),
) -> List[ChatMessage]:
    """
    저장된 메시지 이력 조회

    실시간 전달을 놓친 메시지는 이 엔드포인트로 다시 가져옵니다.
    """
    room = await store.get_chat_room(room_id)
    if room is None:
        raise ResourceNotFoundException("Chat room")
    if current_user_id not in room.participant_ids:
        raise AuthorizationException("Access denied to this chat room")

    messages = await store.get_room_messages(room_id, limit=limit)
    return [ChatMessage.from_document(message) for message in messages]
