import pytest

from livechat.core.errors import RoomAccessDenied
from livechat.schemas.message import InboundMessage
from livechat.services.room_access import participant_access
from livechat.websockets.lifecycle import RoomLifecycleHandler


def _text(content: str) -> InboundMessage:
    return InboundMessage(content=content)


class TestRoomJoin:
    """채팅방 입장 / 퇴장 테스트"""

    @pytest.mark.asyncio
    async def test_join_registers_and_subscribes(self, lifecycle: RoomLifecycleHandler, make_connection):
        connection = make_connection("user-a")

        await lifecycle.on_join(connection, "room-1")

        assert lifecycle.registry.lookup(connection.connection_id) == "room-1"
        assert lifecycle.groups.is_member("room-1", connection.connection_id)

    @pytest.mark.asyncio
    async def test_join_same_room_twice(self, lifecycle: RoomLifecycleHandler, make_connection):
        """같은 채팅방 재입장은 idempotent"""
        connection = make_connection("user-a")

        await lifecycle.on_join(connection, "room-1")
        await lifecycle.on_join(connection, "room-1")

        assert lifecycle.groups.count("room-1") == 1
        assert len(lifecycle.registry) == 1

    @pytest.mark.asyncio
    async def test_rejoin_moves_to_new_room(self, lifecycle: RoomLifecycleHandler, make_connection):
        """room-1 → room-2 재입장 시 room-2에만 속함"""
        connection = make_connection("user-a")

        await lifecycle.on_join(connection, "room-1")
        await lifecycle.on_join(connection, "room-2")

        assert lifecycle.registry.lookup(connection.connection_id) == "room-2"
        assert not lifecycle.groups.is_member("room-1", connection.connection_id)
        assert lifecycle.groups.is_member("room-2", connection.connection_id)

    @pytest.mark.asyncio
    async def test_rejoin_only_receives_new_room_messages(self, lifecycle: RoomLifecycleHandler, make_connection):
        mover = make_connection("user-a")
        stayer = make_connection("user-b")
        await lifecycle.on_join(mover, "room-1")
        await lifecycle.on_join(stayer, "room-1")
        await lifecycle.on_join(mover, "room-2")

        await lifecycle.on_message(stayer, _text("only room-1"))

        assert mover.websocket.of_type("message") == []
        assert [m["content"] for m in stayer.websocket.of_type("message")] == ["only room-1"]

    @pytest.mark.asyncio
    async def test_leave_keeps_connection_open(self, lifecycle: RoomLifecycleHandler, make_connection):
        connection = make_connection("user-a")
        await lifecycle.on_join(connection, "room-1")

        assert await lifecycle.on_leave(connection) == "room-1"
        assert lifecycle.registry.lookup(connection.connection_id) is None
        assert lifecycle.groups.count("room-1") == 0
        assert await lifecycle.on_leave(connection) is None

    @pytest.mark.asyncio
    async def test_join_denied_leaves_state_unchanged(self, registry, groups, pipeline, router, chat_store, make_connection):
        """권한 없는 입장은 거절되고 상태를 바꾸지 않음"""
        lifecycle = RoomLifecycleHandler(
            registry, groups, pipeline, router,
            is_authorized_for_room=participant_access(chat_store),
        )
        outsider = make_connection("user-z")

        with pytest.raises(RoomAccessDenied) as exc_info:
            await lifecycle.on_join(outsider, "room-1")

        assert exc_info.value.room_id == "room-1"
        assert registry.lookup(outsider.connection_id) is None
        assert groups.count("room-1") == 0

    @pytest.mark.asyncio
    async def test_denied_rejoin_keeps_previous_room(self, registry, groups, pipeline, router, make_connection):
        async def only_room_1(user_id: str, room_id: str) -> bool:
            return room_id == "room-1"

        lifecycle = RoomLifecycleHandler(registry, groups, pipeline, router, is_authorized_for_room=only_room_1)
        connection = make_connection("user-a")
        await lifecycle.on_join(connection, "room-1")

        with pytest.raises(RoomAccessDenied):
            await lifecycle.on_join(connection, "room-2")

        assert registry.lookup(connection.connection_id) == "room-1"
        assert groups.is_member("room-1", connection.connection_id)


class TestRoomMessage:
    """메시지 전송 테스트"""

    @pytest.mark.asyncio
    async def test_sender_receives_own_message(self, lifecycle: RoomLifecycleHandler, make_connection):
        sender = make_connection("user-a")
        await lifecycle.on_join(sender, "room-1")

        message = await lifecycle.on_message(sender, _text("hello"))

        received = sender.websocket.of_type("message")
        assert len(received) == 1
        assert received[0]["id"] == message.id
        assert received[0]["content"] == "hello"
        assert received[0]["author_id"] == "user-a"
        assert received[0]["room_id"] == "room-1"

    @pytest.mark.asyncio
    async def test_every_member_receives_exactly_one_copy(self, lifecycle: RoomLifecycleHandler, make_connection):
        members = [make_connection(f"user-{i}") for i in range(3)]
        outsider = make_connection("user-x")
        for connection in members:
            await lifecycle.on_join(connection, "room-1")
        await lifecycle.on_join(outsider, "room-2")

        await lifecycle.on_message(members[0], _text("hi all"))

        for connection in members:
            assert len(connection.websocket.of_type("message")) == 1
        assert outsider.websocket.of_type("message") == []

    @pytest.mark.asyncio
    async def test_message_without_join_is_dropped(self, lifecycle: RoomLifecycleHandler, chat_store, make_connection):
        """입장하지 않은 연결의 메시지는 저장/브로드캐스트 없음"""
        connection = make_connection("user-a")

        result = await lifecycle.on_message(connection, _text("nobody hears"))

        assert result is None
        assert chat_store.append_calls == 0
        assert connection.websocket.sent == []

    @pytest.mark.asyncio
    async def test_message_after_disconnect_is_dropped(self, lifecycle: RoomLifecycleHandler, chat_store, make_connection):
        """disconnect 이후 도착한 메시지는 no-op"""
        connection = make_connection("user-a")
        listener = make_connection("user-b")
        await lifecycle.on_join(connection, "room-1")
        await lifecycle.on_join(listener, "room-1")
        await lifecycle.on_disconnect(connection)

        result = await lifecycle.on_message(connection, _text("too late"))

        assert result is None
        assert chat_store.append_calls == 0
        assert listener.websocket.of_type("message") == []


class TestRoomDisconnect:
    """연결 종료 테스트"""

    @pytest.mark.asyncio
    async def test_disconnect_clears_registry_and_groups(self, lifecycle: RoomLifecycleHandler, make_connection):
        connection = make_connection("user-a")
        await lifecycle.on_join(connection, "room-1")

        assert await lifecycle.on_disconnect(connection) == "room-1"
        assert lifecycle.registry.lookup(connection.connection_id) is None
        assert lifecycle.groups.rooms() == []

    @pytest.mark.asyncio
    async def test_disconnect_without_join(self, lifecycle: RoomLifecycleHandler, make_connection):
        connection = make_connection("user-a")

        assert await lifecycle.on_disconnect(connection) is None
        assert len(lifecycle.registry) == 0

    @pytest.mark.asyncio
    async def test_disconnected_connection_gets_no_more_messages(self, lifecycle: RoomLifecycleHandler, make_connection):
        gone = make_connection("user-a")
        sender = make_connection("user-b")
        await lifecycle.on_join(gone, "room-1")
        await lifecycle.on_join(sender, "room-1")
        await lifecycle.on_disconnect(gone)

        await lifecycle.on_message(sender, _text("after"))

        assert gone.websocket.sent == []
        assert len(sender.websocket.of_type("message")) == 1
