"""
채팅방 입장 권한 판정

RoomLifecycleHandler에 주입되는 `is_authorized_for_room(user_id, room_id)`
predicate를 만듭니다.
"""

from typing import Awaitable, Callable

from livechat.core.config import Settings
from livechat.services.chat_store import ChatStore

RoomAuthorizer = Callable[[str, str], Awaitable[bool]]


async def allow_all(user_id: str, room_id: str) -> bool:
    """모든 인증된 사용자의 입장을 허용"""
    return True


def participant_access(store: ChatStore) -> RoomAuthorizer:
    """채팅방 참여자만 입장을 허용"""

    async def is_authorized_for_room(user_id: str, room_id: str) -> bool:
        return await store.is_participant(user_id, room_id)

    return is_authorized_for_room


def build_room_authorizer(store: ChatStore, config: Settings) -> RoomAuthorizer:
    if config.enforce_room_membership:
        return participant_access(store)
    return allow_all
