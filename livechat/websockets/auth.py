import logging
from typing import Optional

from fastapi import WebSocket, status

from livechat.core.logging import log_security_event
from livechat.utils.auth import decode_access_token

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def extract_token(websocket: WebSocket) -> Optional[str]:
    """
    Authorization 헤더 또는 token 쿼리 파라미터에서 토큰을 꺼냅니다.

    브라우저 WebSocket API는 헤더를 지정할 수 없어 쿼리 파라미터도 허용합니다.
    헤더가 있지만 Bearer 형식이 아니면 쿼리 파라미터로 넘어가지 않습니다.
    """
    header = websocket.headers.get("authorization")
    if header is not None:
        return header[len(BEARER_PREFIX):] if header.startswith(BEARER_PREFIX) else None
    return websocket.query_params.get("token")


async def _reject(websocket: WebSocket, reason: str, code: int = status.WS_1008_POLICY_VIOLATION) -> None:
    logger.warning(f"Rejecting WebSocket handshake: {reason}")
    await websocket.close(code=code)


async def authenticate_websocket(websocket: WebSocket) -> Optional[str]:
    """
    핸드셰이크 단계에서 JWT를 검증하고 사용자 ID(sub)를 반환합니다.

    실패하면 accept 전에 연결을 닫고 None을 반환합니다.
    정책 위반은 1008, 예기치 못한 오류는 1011로 닫습니다.
    """
    try:
        token = extract_token(websocket)
        if not token:
            await _reject(websocket, "no bearer token")
            return None

        payload = decode_access_token(token)
        if payload is None:
            log_security_event(logger, "invalid_websocket_token", severity="low",
                               client=str(websocket.client) if websocket.client else None)
            await _reject(websocket, "invalid or expired token")
            return None

        user_id = payload.get("sub")
        if not user_id:
            await _reject(websocket, "token has no subject")
            return None

    except Exception as e:
        logger.error(f"WebSocket authentication error: {e}", exc_info=True)
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
        return None

    logger.debug(f"WebSocket authenticated for user {user_id}")
    return str(user_id)
