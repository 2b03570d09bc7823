import json
import logging

from bson import ObjectId

from livechat.core.errors import (
    AuthorizationException,
    InvalidFrame,
    PersistenceFailure,
    PersistenceTimeout,
    RegistrationAbsent,
    RoomAccessDenied,
)
from livechat.core.logging import StructuredFormatter, clear_connection_context, set_connection_context
from livechat.services.chat_store import to_object_id


class TestRealtimeErrors:
    """실시간 예외 → error 프레임 변환 테스트"""

    def test_room_access_denied_frame(self):
        frame = RoomAccessDenied("user-z", "room-1").to_frame()

        assert frame == {
            "type": "error",
            "error_code": "room_access_denied",
            "message": "Access denied to this chat room",
            "details": {"room_id": "room-1"},
        }

    def test_invalid_frame_without_details(self):
        assert InvalidFrame("Invalid JSON").to_frame()["details"] is None

    def test_timeout_is_persistence_failure(self):
        error = PersistenceTimeout("room-1", 5.0)

        assert isinstance(error, PersistenceFailure)
        assert "5.0s" in error.message

    def test_registration_absent(self):
        error = RegistrationAbsent("conn-1")

        assert error.error_code == "not_joined"
        assert error.connection_id == "conn-1"

    def test_http_exception_body(self):
        error = AuthorizationException("Access denied to this chat room")

        assert error.status_code == 403
        assert error.to_dict()["error"] == "authorization_error"


class TestStructuredFormatter:
    """구조화된 로그 포매터 테스트"""

    def _record(self, **extra) -> logging.LogRecord:
        record = logging.LogRecord("livechat.test", logging.INFO, __file__, 10, "joined %s", ("room-1",), None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_json_output(self):
        data = json.loads(StructuredFormatter().format(self._record(room_id="room-1")))

        assert data["level"] == "INFO"
        assert data["message"] == "joined room-1"
        assert data["extra"] == {"room_id": "room-1"}

    def test_connection_context(self):
        set_connection_context("conn-1", "user-a")
        try:
            data = json.loads(StructuredFormatter().format(self._record()))
        finally:
            clear_connection_context()

        assert data["connection_id"] == "conn-1"
        assert data["user_id"] == "user-a"


class TestObjectIdConversion:
    """문자열 → ObjectId 변환 테스트"""

    def test_valid_object_id(self):
        oid = ObjectId()

        assert to_object_id(str(oid)) == oid

    def test_invalid_object_id(self):
        assert to_object_id("room-1") is None
        assert to_object_id("z" * 24) is None
