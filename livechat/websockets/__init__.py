"""
WebSocket 실시간 채팅 모듈

주요 구성 요소:
- registry: 연결 → 채팅방 매핑
- groups: 채팅방별 브로드캐스트 구독 그룹
- pipeline: 메시지 저장 파이프라인
- broadcast: 채팅방 브로드캐스트 라우터
- fanout: Redis pub/sub 멀티 인스턴스 팬아웃
- lifecycle: join / leave / message / disconnect 처리
- handlers: WebSocket 프레임 처리
- auth: WebSocket 인증 처리
"""

from .connection import Connection
from .registry import ConnectionRegistry
from .groups import DeliveryGroups
from .broadcast import BroadcastRouter
from .fanout import RedisFanout
from .pipeline import MessageIngestionPipeline
from .lifecycle import RoomLifecycleHandler
from .handlers import WebSocketMessageHandler
from .auth import authenticate_websocket
from .hub import RealtimeHub, build_realtime_hub

__all__ = [
    "Connection",
    "ConnectionRegistry",
    "DeliveryGroups",
    "BroadcastRouter",
    "RedisFanout",
    "MessageIngestionPipeline",
    "RoomLifecycleHandler",
    "WebSocketMessageHandler",
    "authenticate_websocket",
    "RealtimeHub",
    "build_realtime_hub",
]
