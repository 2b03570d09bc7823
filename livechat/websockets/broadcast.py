import asyncio
import logging
from typing import Any, Dict, Protocol

from livechat.core.errors import TransportDeliveryFailure
from livechat.schemas.message import ChatMessage
from livechat.websockets.groups import DeliveryGroups

logger = logging.getLogger(__name__)


class Broadcaster(Protocol):
    async def broadcast(self, room_id: str, message: ChatMessage) -> int:
        ...


class BroadcastRouter:
    """
    정식 메시지를 채팅방 구독 그룹 전체(발신자 포함)에게 전달합니다.

    채팅방마다 FIFO 락으로 전달을 직렬화하므로, 구독자들은 저장이 완료된
    순서대로 메시지를 받습니다. 구독자 한 명의 전송 실패는 해당 구독자만
    건너뛰며 재시도하지 않습니다.
    """

    def __init__(self, groups: DeliveryGroups, send_timeout: float = 5.0):
        self._groups = groups
        self._send_timeout = send_timeout
        self._locks: Dict[str, asyncio.Lock] = {}
        self._pending: Dict[str, int] = {}

    async def broadcast(self, room_id: str, message: ChatMessage) -> int:
        return await self.deliver(room_id, message.to_wire())

    async def deliver(self, room_id: str, payload: Dict[str, Any]) -> int:
        """payload를 현재 구독자 전원에게 전송하고 성공한 수를 반환"""
        lock = self._locks.setdefault(room_id, asyncio.Lock())
        self._pending[room_id] = self._pending.get(room_id, 0) + 1

        try:
            async with lock:
                delivered = 0
                for connection in self._groups.members(room_id):
                    try:
                        await asyncio.wait_for(connection.send_json(payload), timeout=self._send_timeout)
                        delivered += 1
                    except asyncio.TimeoutError:
                        failure = TransportDeliveryFailure(connection.connection_id, room_id, "send timed out")
                        logger.warning(failure.message)
                    except Exception as e:
                        failure = TransportDeliveryFailure(connection.connection_id, room_id, repr(e))
                        logger.warning(failure.message)
        finally:
            # 대기 중인 전달이 없을 때만 락을 버림
            self._pending[room_id] -= 1
            if self._pending[room_id] == 0:
                del self._pending[room_id]
                self._locks.pop(room_id, None)

        logger.debug(f"Delivered {payload.get('type')} to {delivered} connection(s) in room {room_id}")
        return delivered
