import asyncio
import uuid
import pytest
import pytest_asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import AsyncGenerator, Dict, List, Optional
from httpx import AsyncClient, ASGITransport

from livechat.core.config import Settings
from livechat.main import create_app
from livechat.utils.auth import create_access_token
from livechat.websockets.broadcast import BroadcastRouter
from livechat.websockets.connection import Connection
from livechat.websockets.groups import DeliveryGroups
from livechat.websockets.handlers import WebSocketMessageHandler
from livechat.websockets.hub import build_realtime_hub
from livechat.websockets.lifecycle import RoomLifecycleHandler
from livechat.websockets.pipeline import MessageIngestionPipeline
from livechat.websockets.registry import ConnectionRegistry


# =============================================================================
# Fake 저장소 / WebSocket
# =============================================================================

@dataclass
class StoredMessage:
    room_id: str
    author_id: str
    content: str
    image_url: Optional[str] = None
    client_token: Optional[str] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class StoredRoom:
    name: Optional[str]
    participant_ids: List[str]
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    last_message: Optional[str] = None
    last_message_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=datetime.utcnow)


class InMemoryChatStore:
    """테스트용 ChatStore"""

    def __init__(self):
        self.rooms: Dict[str, StoredRoom] = {}
        self.messages: List[StoredMessage] = []
        self.append_calls = 0
        self.fail_with: Optional[Exception] = None
        self.delay: Optional[float] = None
        # content별 게이트: 테스트가 저장 완료 순서를 제어
        self.gates: Dict[str, asyncio.Event] = {}

    def add_room(self, room_id: str, participant_ids: List[str], name: Optional[str] = None) -> StoredRoom:
        room = StoredRoom(name=name, participant_ids=list(participant_ids), id=room_id)
        self.rooms[room_id] = room
        return room

    async def append_message(self, room_id, author_id, content, image_url=None, client_token=None):
        self.append_calls += 1
        if self.fail_with:
            raise self.fail_with
        if self.delay:
            await asyncio.sleep(self.delay)
        if content in self.gates:
            await self.gates[content].wait()

        if client_token:
            for message in self.messages:
                if (message.room_id, message.author_id, message.client_token) == (room_id, author_id, client_token):
                    return message

        message = StoredMessage(
            room_id=room_id,
            author_id=author_id,
            content=content,
            image_url=image_url,
            client_token=client_token,
        )
        self.messages.append(message)
        if room_id in self.rooms:
            self.rooms[room_id].last_message = content
            self.rooms[room_id].last_message_at = message.created_at
        return message

    async def list_chats_for_user(self, user_id):
        return [room for room in self.rooms.values() if user_id in room.participant_ids]

    async def get_chat_room(self, room_id):
        return self.rooms.get(room_id)

    async def is_participant(self, user_id, room_id):
        room = self.rooms.get(room_id)
        return room is not None and user_id in room.participant_ids

    async def create_chat_room(self, name, participant_ids):
        room = StoredRoom(name=name, participant_ids=list(dict.fromkeys(participant_ids)))
        self.rooms[room.id] = room
        return room

    async def get_room_messages(self, room_id, limit=50):
        return [m for m in self.messages if m.room_id == room_id][-limit:]


class FakeWebSocket:
    """send_json 호출을 기록하는 WebSocket"""

    def __init__(self, fail: bool = False, delay: Optional[float] = None):
        self.sent: List[dict] = []
        self.fail = fail
        self.delay = delay
        self.closed_code: Optional[int] = None

    async def send_json(self, data):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError("Cannot call send once a close message has been sent")
        self.sent.append(data)

    async def close(self, code: int = 1000):
        self.closed_code = code

    def of_type(self, frame_type: str) -> List[dict]:
        return [frame for frame in self.sent if frame.get("type") == frame_type]


# =============================================================================
# 실시간 구성요소 fixture
# =============================================================================

@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        metrics_enabled=False,
        enforce_room_membership=True,
        broadcast_backend="local",
        persistence_timeout_seconds=1.0,
        send_timeout_seconds=1.0,
    )


@pytest.fixture
def chat_store() -> InMemoryChatStore:
    store = InMemoryChatStore()
    store.add_room("room-1", ["user-a", "user-b"], name="General")
    store.add_room("room-2", ["user-a", "user-b"], name="Random")
    return store


@pytest.fixture
def registry() -> ConnectionRegistry:
    return ConnectionRegistry()


@pytest.fixture
def groups() -> DeliveryGroups:
    return DeliveryGroups()


@pytest.fixture
def router(groups) -> BroadcastRouter:
    return BroadcastRouter(groups, send_timeout=1.0)


@pytest.fixture
def pipeline(chat_store) -> MessageIngestionPipeline:
    return MessageIngestionPipeline(chat_store, timeout=1.0)


@pytest.fixture
def lifecycle(registry, groups, pipeline, router) -> RoomLifecycleHandler:
    return RoomLifecycleHandler(registry, groups, pipeline, router)


@pytest.fixture
def message_handler(lifecycle) -> WebSocketMessageHandler:
    return WebSocketMessageHandler(lifecycle)


@pytest.fixture
def make_connection():
    """Connection(FakeWebSocket) 생성 헬퍼"""
    def _make(user_id: str = "user-a", **websocket_options) -> Connection:
        return Connection(FakeWebSocket(**websocket_options), user_id)
    return _make


# =============================================================================
# API fixture
# =============================================================================

@pytest.fixture
def auth_headers():
    """사용자 ID로 Bearer 헤더 생성"""
    def _headers(user_id: str) -> Dict[str, str]:
        token = create_access_token(data={"sub": user_id})
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def app(test_settings, chat_store):
    return create_app(test_settings, store=chat_store)


@pytest_asyncio.fixture
async def client(app, test_settings, chat_store) -> AsyncGenerator[AsyncClient, None]:
    """테스트용 비동기 HTTP 클라이언트 (lifespan 없이 state 직접 구성)"""
    app.state.chat_store = chat_store
    app.state.realtime = build_realtime_hub(chat_store, test_settings)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
