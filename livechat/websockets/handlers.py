import logging
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from livechat.core.errors import InvalidFrame, PersistenceFailure, RealtimeError, RoomAccessDenied
from livechat.schemas.websocket import JoinFrame, LeaveFrame, MessageFrame, PingFrame, client_frame_adapter
from livechat.websockets.connection import Connection
from livechat.websockets.lifecycle import RoomLifecycleHandler

logger = logging.getLogger(__name__)


class WebSocketMessageHandler:
    """WebSocket 프레임 처리 핸들러"""

    def __init__(self, lifecycle: RoomLifecycleHandler):
        self.lifecycle = lifecycle

    async def handle_message(self, connection: Connection, data: Any):
        """
        WebSocket으로 받은 프레임을 처리합니다.

        Args:
            connection: 프레임을 보낸 연결
            data: 클라이언트에서 전송한 JSON 데이터
        """
        try:
            frame = client_frame_adapter.validate_python(data)
        except ValidationError as e:
            logger.warning(f"Invalid frame from user {connection.user_id}: {e.error_count()} error(s)")
            await self._send_error(connection, InvalidFrame(
                "Invalid message format",
                {"errors": [
                    {"loc": list(err["loc"]), "msg": err["msg"]}
                    for err in e.errors(include_url=False, include_context=False, include_input=False)
                ]}
            ))
            return

        if isinstance(frame, JoinFrame):
            await self._handle_join(connection, frame)
        elif isinstance(frame, LeaveFrame):
            await self._handle_leave(connection)
        elif isinstance(frame, MessageFrame):
            await self._handle_chat_message(connection, frame)
        elif isinstance(frame, PingFrame):
            await self._handle_ping(connection)

    async def _handle_join(self, connection: Connection, frame: JoinFrame):
        try:
            await self.lifecycle.on_join(connection, frame.room_id)
        except RoomAccessDenied as e:
            await self._send_error(connection, e)
            return

        online_users = self.lifecycle.groups.user_ids(frame.room_id)
        await connection.send_json({
            "type": "joined",
            "room_id": frame.room_id,
            "online_users": online_users,
            "online_count": len(online_users),
        })

    async def _handle_leave(self, connection: Connection):
        room_id = await self.lifecycle.on_leave(connection)
        await connection.send_json({"type": "left", "room_id": room_id})

    async def _handle_chat_message(self, connection: Connection, frame: MessageFrame):
        """채팅 메시지를 처리합니다."""
        payload = frame.to_inbound()
        if payload.is_empty:
            logger.warning(f"Empty message content from user {connection.user_id}")
            await self._send_error(connection, InvalidFrame("Message content cannot be empty"))
            return

        try:
            await self.lifecycle.on_message(connection, payload)
        except PersistenceFailure as e:
            # 발신자에게만 알림, 브로드캐스트 없음
            await self._send_error(connection, e)

    async def _handle_ping(self, connection: Connection):
        await connection.send_json({
            "type": "pong",
            "timestamp": datetime.utcnow().isoformat()
        })

    async def _send_error(self, connection: Connection, error: RealtimeError):
        try:
            await connection.send_json(error.to_frame())
        except Exception as e:
            logger.debug(f"Could not send error frame to {connection.connection_id}: {e}")
