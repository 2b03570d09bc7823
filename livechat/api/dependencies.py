"""
API Dependencies

FastAPI dependency functions for authentication and app-scoped services
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer

from livechat.core.config import Settings
from livechat.core.errors import AuthenticationException, invalid_token_error
from livechat.services.chat_store import ChatStore
from livechat.utils.auth import decode_access_token
from livechat.websockets.hub import RealtimeHub

# OAuth2 설정 (토큰 발급은 외부 인증 서비스 담당)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


async def get_current_user_id(token: Optional[str] = Depends(oauth2_scheme)) -> str:
    """
    현재 인증된 사용자 ID를 반환합니다.

    Raises:
        AuthenticationException: 토큰이 없거나 유효하지 않은 경우
    """
    if not token:
        raise AuthenticationException("Not authenticated")

    payload = decode_access_token(token)
    if not payload:
        raise invalid_token_error()

    user_id = payload.get("sub")
    if not user_id:
        raise invalid_token_error()

    return str(user_id)


def get_chat_store(request: Request) -> ChatStore:
    return request.app.state.chat_store


def get_realtime(request: Request) -> RealtimeHub:
    return request.app.state.realtime


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
