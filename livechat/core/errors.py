from typing import Optional, Dict, Any
from fastapi import HTTPException, status
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """표준 에러 응답 모델"""
    error: str
    message: str
    details: Optional[Dict[str, Any]] = None
    status_code: int


# =============================================================================
# HTTP 예외 클래스들
# =============================================================================

class BaseCustomException(HTTPException):
    """기본 커스텀 예외 클래스"""
    def __init__(
        self,
        status_code: int,
        error: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self.error = error
        self.message = message
        self.details = details
        self.status_code = status_code
        super().__init__(status_code=status_code, detail=self.to_dict())

    def to_dict(self) -> Dict[str, Any]:
        """예외를 딕셔너리로 변환"""
        return {
            "error": self.error,
            "message": self.message,
            "details": self.details,
            "status_code": self.status_code
        }


class AuthenticationException(BaseCustomException):
    """인증 실패 예외"""
    def __init__(
        self,
        message: str = "Authentication failed",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            error="authentication_error",
            message=message,
            details=details
        )


class AuthorizationException(BaseCustomException):
    """권한 부족 예외"""
    def __init__(
        self,
        message: str = "Access denied",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            error="authorization_error",
            message=message,
            details=details
        )


class ResourceNotFoundException(BaseCustomException):
    """리소스를 찾을 수 없음 예외"""
    def __init__(
        self,
        resource: str = "Resource",
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if message is None:
            message = f"{resource} not found"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            error="resource_not_found",
            message=message,
            details=details or {"resource": resource}
        )


# =============================================================================
# 실시간 전달 예외 클래스들
# =============================================================================

class RealtimeError(Exception):
    """실시간 전달 계층의 기본 예외"""
    error_code = "realtime_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_frame(self) -> Dict[str, Any]:
        """클라이언트에게 보낼 error 프레임"""
        return {
            "type": "error",
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details or None,
        }


class RegistrationAbsent(RealtimeError):
    """채팅방에 등록되지 않은 연결에서 이벤트가 도착함 (no-op 처리)"""
    error_code = "not_joined"

    def __init__(self, connection_id: str):
        super().__init__(
            f"Connection {connection_id} has not joined a room",
            {"connection_id": connection_id}
        )
        self.connection_id = connection_id


class PersistenceFailure(RealtimeError):
    """메시지 저장 실패"""
    error_code = "persistence_failed"

    def __init__(self, room_id: str, message: str = "Failed to persist message"):
        super().__init__(message, {"room_id": room_id})
        self.room_id = room_id


class PersistenceTimeout(PersistenceFailure):
    """메시지 저장 타임아웃"""
    error_code = "persistence_timeout"

    def __init__(self, room_id: str, timeout: float):
        super().__init__(room_id, f"Message persistence timed out after {timeout}s")
        self.timeout = timeout


class TransportDeliveryFailure(RealtimeError):
    """구독자 1명에게 전송 실패 (브로드캐스트는 계속됨)"""
    error_code = "delivery_failed"

    def __init__(self, connection_id: str, room_id: str, reason: str):
        super().__init__(
            f"Delivery to {connection_id} in room {room_id} failed: {reason}",
            {"connection_id": connection_id, "room_id": room_id}
        )
        self.connection_id = connection_id
        self.room_id = room_id


class RoomAccessDenied(RealtimeError):
    """채팅방 접근 권한 없음"""
    error_code = "room_access_denied"

    def __init__(self, user_id: str, room_id: str):
        super().__init__(
            "Access denied to this chat room",
            {"room_id": room_id}
        )
        self.user_id = user_id
        self.room_id = room_id


class InvalidFrame(RealtimeError):
    """잘못된 WebSocket 프레임"""
    error_code = "invalid_frame"


# =============================================================================
# 에러 헬퍼 함수들
# =============================================================================

def create_error_response(
    error: str,
    message: str,
    status_code: int,
    details: Optional[Dict[str, Any]] = None
) -> ErrorResponse:
    """표준 에러 응답 생성"""
    return ErrorResponse(
        error=error,
        message=message,
        status_code=status_code,
        details=details
    )


def invalid_token_error():
    """잘못된 토큰 에러"""
    return AuthenticationException("Invalid or expired token")
