from datetime import datetime, timedelta
from typing import Optional, Dict, Any

from jose import JWTError, jwt

from livechat.core.config import settings

ACCESS_TOKEN_EXPIRE = timedelta(hours=2)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """JWT 액세스 토큰 생성 (토큰 발급은 인증 서비스 담당, 테스트/도구용)"""
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or ACCESS_TOKEN_EXPIRE)
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """JWT 액세스 토큰 디코드"""
    try:
        payload = jwt.decode(token, settings.secret_key,
                             algorithms=[settings.algorithm])
        # 액세스 토큰인지 확인
        if payload.get("type") != "access":
            return None
        return payload
    except JWTError:
        return None
