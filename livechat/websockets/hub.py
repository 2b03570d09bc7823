from dataclasses import dataclass
from typing import Optional

import redis.asyncio as redis

from livechat.core.config import Settings
from livechat.services.chat_store import ChatStore
from livechat.services.room_access import build_room_authorizer
from livechat.websockets.broadcast import Broadcaster, BroadcastRouter
from livechat.websockets.fanout import RedisFanout
from livechat.websockets.groups import DeliveryGroups
from livechat.websockets.handlers import WebSocketMessageHandler
from livechat.websockets.lifecycle import RoomLifecycleHandler
from livechat.websockets.pipeline import MessageIngestionPipeline
from livechat.websockets.registry import ConnectionRegistry


@dataclass
class RealtimeHub:
    """프로세스 단위 실시간 전달 구성요소 묶음"""
    registry: ConnectionRegistry
    groups: DeliveryGroups
    router: BroadcastRouter
    broadcaster: Broadcaster
    pipeline: MessageIngestionPipeline
    lifecycle: RoomLifecycleHandler
    handler: WebSocketMessageHandler
    fanout: Optional[RedisFanout] = None

    async def start(self):
        if self.fanout:
            await self.fanout.start()

    async def stop(self):
        if self.fanout:
            await self.fanout.stop()


def build_realtime_hub(
    store: ChatStore,
    config: Settings,
    redis_client: Optional[redis.Redis] = None,
) -> RealtimeHub:
    registry = ConnectionRegistry()
    groups = DeliveryGroups()
    router = BroadcastRouter(groups, send_timeout=config.send_timeout_seconds)

    fanout = None
    broadcaster: Broadcaster = router
    if config.broadcast_backend == "redis":
        if redis_client is None:
            raise RuntimeError("broadcast_backend=redis requires an initialized Redis client")
        fanout = RedisFanout(redis_client, router)
        broadcaster = fanout

    pipeline = MessageIngestionPipeline(store, timeout=config.persistence_timeout_seconds)
    lifecycle = RoomLifecycleHandler(
        registry,
        groups,
        pipeline,
        broadcaster,
        is_authorized_for_room=build_room_authorizer(store, config),
    )

    return RealtimeHub(
        registry=registry,
        groups=groups,
        router=router,
        broadcaster=broadcaster,
        pipeline=pipeline,
        lifecycle=lifecycle,
        handler=WebSocketMessageHandler(lifecycle),
        fanout=fanout,
    )
