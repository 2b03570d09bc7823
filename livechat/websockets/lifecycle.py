import logging
from typing import Optional

from livechat.core.errors import RegistrationAbsent, RoomAccessDenied
from livechat.core.logging import log_security_event, log_websocket_event
from livechat.schemas.message import ChatMessage, InboundMessage
from livechat.services.room_access import RoomAuthorizer, allow_all
from livechat.websockets.broadcast import Broadcaster
from livechat.websockets.connection import Connection
from livechat.websockets.groups import DeliveryGroups
from livechat.websockets.pipeline import MessageIngestionPipeline
from livechat.websockets.registry import ConnectionRegistry

logger = logging.getLogger(__name__)


class RoomLifecycleHandler:
    """
    연결 단위 이벤트(join / leave / message / disconnect) 처리

    ConnectionRegistry와 DeliveryGroups를 항상 같은 상태로 유지합니다.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        groups: DeliveryGroups,
        pipeline: MessageIngestionPipeline,
        broadcaster: Broadcaster,
        is_authorized_for_room: RoomAuthorizer = allow_all,
    ):
        self.registry = registry
        self.groups = groups
        self.pipeline = pipeline
        self.broadcaster = broadcaster
        self._is_authorized_for_room = is_authorized_for_room

    def on_connect(self, connection: Connection):
        log_websocket_event(logger, "connected", connection.user_id, None,
                            connection_id=connection.connection_id)

    async def on_join(self, connection: Connection, room_id: str):
        """
        채팅방 입장

        이전에 다른 채팅방에 있었다면 그 구독을 먼저 해제합니다.

        Raises:
            RoomAccessDenied: 권한이 없는 경우 (상태는 변경되지 않음)
        """
        if not await self._is_authorized_for_room(connection.user_id, room_id):
            log_security_event(logger, "room_access_denied", user_id=connection.user_id, room_id=room_id)
            raise RoomAccessDenied(connection.user_id, room_id)

        connection_id = connection.connection_id
        previous = self.registry.lookup(connection_id)
        if previous is not None and previous != room_id:
            self.groups.unsubscribe(previous, connection_id)
            log_websocket_event(logger, "left", connection.user_id, previous,
                                connection_id=connection_id, reason="rejoin")

        self.groups.subscribe(room_id, connection)
        self.registry.register(connection_id, room_id)
        log_websocket_event(logger, "joined", connection.user_id, room_id,
                            connection_id=connection_id)

    async def on_leave(self, connection: Connection) -> Optional[str]:
        """채팅방 퇴장 (연결은 유지)"""
        room_id = self.registry.remove(connection.connection_id)
        if room_id is None:
            return None

        self.groups.unsubscribe(room_id, connection.connection_id)
        log_websocket_event(logger, "left", connection.user_id, room_id,
                            connection_id=connection.connection_id)
        return room_id

    async def on_message(self, connection: Connection, payload: InboundMessage) -> Optional[ChatMessage]:
        """
        메시지 저장 후 브로드캐스트

        입장한 채팅방이 없으면 저장도 브로드캐스트도 하지 않고 None을 반환합니다.
        저장 실패(PersistenceFailure)는 호출자에게 그대로 전파되며 이 경우
        브로드캐스트하지 않습니다.
        """
        try:
            room_id = self._resolve_room(connection)
        except RegistrationAbsent as e:
            logger.info(f"Dropping message: {e.message}")
            return None

        message = await self.pipeline.ingest(room_id, connection.user_id, payload)
        await self.broadcaster.broadcast(room_id, message)

        logger.info(f"Message {message.id} sent from user {connection.user_id} to room {room_id}")
        return message

    async def on_disconnect(self, connection: Connection) -> Optional[str]:
        """연결 종료: 레지스트리와 모든 구독 그룹에서 제거"""
        room_id = self.registry.remove(connection.connection_id)
        self.groups.discard(connection.connection_id)
        log_websocket_event(logger, "disconnected", connection.user_id, room_id,
                            connection_id=connection.connection_id)
        return room_id

    def _resolve_room(self, connection: Connection) -> str:
        room_id = self.registry.lookup(connection.connection_id)
        if room_id is None:
            raise RegistrationAbsent(connection.connection_id)
        return room_id
