"""
Redis pub/sub 기반 멀티 인스턴스 팬아웃

각 서버 인스턴스는 자신에게 연결된 WebSocket만 알고 있습니다. 메시지는
`room:channel:{room_id}` 채널로 발행되고, 모든 인스턴스의 리스너가 이를 받아
로컬 BroadcastRouter로 전달합니다.

redis 백엔드에서는 같은 인스턴스의 구독자도 이 리스너를 통해서만 메시지를
받으므로, 리스너는 Redis 오류가 나도 종료하지 않고 backoff 후 다시 구독합니다.
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from livechat.schemas.message import ChatMessage
from livechat.websockets.broadcast import BroadcastRouter

logger = logging.getLogger(__name__)

ROOM_CHANNEL_PREFIX = "room:channel:"
ROOM_CHANNEL_PATTERN = f"{ROOM_CHANNEL_PREFIX}*"

MAX_RECONNECT_DELAY = 30.0


def room_channel(room_id: str) -> str:
    return f"{ROOM_CHANNEL_PREFIX}{room_id}"


class RedisFanout:
    """BroadcastRouter 앞단의 Redis 팬아웃 (Broadcaster 구현)"""

    def __init__(self, redis_client: redis.Redis, router: BroadcastRouter, reconnect_delay: float = 1.0):
        self._redis = redis_client
        self._router = router
        self._publish_lock = asyncio.Lock()
        self._reconnect_delay = reconnect_delay
        self.running = False
        self.subscribed = False
        self.subscriptions = 0
        self.reconnects = 0
        self.task: Optional[asyncio.Task] = None

    @property
    def state(self) -> str:
        """stopped / subscribed / reconnecting"""
        if not self.running:
            return "stopped"
        return "subscribed" if self.subscribed else "reconnecting"

    async def start(self):
        """리스너 시작"""
        if self.running:
            logger.warning("Redis fanout listener is already running")
            return

        self.running = True
        self.task = asyncio.create_task(self._listen())
        logger.info("Redis fanout listener started")

    async def stop(self):
        """리스너 중지"""
        self.running = False
        if self.task:
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass
            self.task = None
        logger.info("Redis fanout listener stopped")

    async def broadcast(self, room_id: str, message: ChatMessage) -> int:
        """
        정식 메시지를 채팅방 채널에 발행합니다.

        발행 순서가 저장 완료 순서와 같도록 발행을 직렬화합니다. 반환값은
        메시지를 받은 인스턴스 수입니다.
        """
        data = json.dumps(message.to_wire())
        async with self._publish_lock:
            try:
                receivers = await self._redis.publish(room_channel(room_id), data)
            except RedisError as e:
                logger.error(f"Failed to publish message {message.id} to room {room_id}: {e}")
                return 0

        logger.debug(f"Published message {message.id} to room {room_id}, {receivers} instance(s)")
        return receivers

    async def _listen(self):
        """running 동안 구독을 유지 (끊기면 backoff 후 재구독)"""
        delay = self._reconnect_delay

        while self.running:
            sessions = self.subscriptions
            try:
                await self._consume()
            except asyncio.CancelledError:
                logger.info("Redis fanout listener cancelled")
                raise
            except RedisError as e:
                logger.error(f"Redis fanout subscription lost: {e}")
            except Exception as e:
                logger.error(f"Error in Redis fanout listener: {e}", exc_info=True)

            if not self.running:
                break
            if self.subscriptions > sessions:
                # 구독에 성공했던 세션이 끊긴 경우 backoff 초기화
                delay = self._reconnect_delay

            self.reconnects += 1
            logger.warning(f"Resubscribing to {ROOM_CHANNEL_PATTERN} in {delay:.1f}s (attempt {self.reconnects})")
            await asyncio.sleep(delay)
            delay = min(delay * 2, MAX_RECONNECT_DELAY)

    async def _consume(self):
        """한 번의 구독 세션: psubscribe 후 listen()이 끝나거나 실패할 때까지 전달"""
        pubsub = self._redis.pubsub()
        try:
            await pubsub.psubscribe(ROOM_CHANNEL_PATTERN)
            self.subscribed = True
            self.subscriptions += 1
            logger.info(f"Subscribed to Redis pattern {ROOM_CHANNEL_PATTERN}")

            async for item in pubsub.listen():
                if not self.running:
                    break
                await self._dispatch(item)
        finally:
            self.subscribed = False
            try:
                await pubsub.punsubscribe()
                await pubsub.aclose()
            except RedisError as e:
                logger.warning(f"Error closing pubsub: {e}")

    async def _dispatch(self, item: Dict[str, Any]):
        if item['type'] != 'pmessage':
            return

        channel = item['channel']
        if isinstance(channel, bytes):
            channel = channel.decode('utf-8')
        room_id = channel[len(ROOM_CHANNEL_PREFIX):]

        try:
            payload = json.loads(item['data'])
        except (TypeError, ValueError):
            logger.warning(f"Dropping malformed fanout payload on {channel}")
            return

        await self._router.deliver(room_id, payload)
