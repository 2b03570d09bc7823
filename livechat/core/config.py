"""
LiveChat 설정

환경 변수와 .env 파일을 통한 설정 관리
"""

from typing import List, Literal
from pydantic import Field
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()  # .env 파일 로드


class Settings(BaseSettings):
    """LiveChat 설정"""

    # Application
    app_name: str = "LiveChat"
    version: str = "1.0.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 3000

    # Database - MongoDB
    mongo_url: str = "mongodb://localhost:27017"
    mongodb_db_name: str = "chat_db"
    mongo_max_pool_size: int = 10

    # Database - Redis (broadcast_backend가 redis일 때만 사용)
    redis_url: str = "redis://localhost:6379"

    # Realtime
    broadcast_backend: Literal["local", "redis"] = Field(
        default="local",
        description="local: 단일 프로세스 브로드캐스트, redis: Redis pub/sub 팬아웃"
    )
    persistence_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="메시지 저장 타임아웃 (초)"
    )
    send_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="구독자 1명에게 전송하는 타임아웃 (초)"
    )
    enforce_room_membership: bool = Field(
        default=True,
        description="채팅방 참여자만 join 허용"
    )

    # JWT
    secret_key: str = "your-secret-key-here"
    algorithm: str = "HS256"

    # CORS
    cors_origins: List[str] = ["http://localhost:3000"]

    # Logging / Metrics
    log_dir: str = "logs"
    metrics_enabled: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"  # 추가 환경변수 무시


settings = Settings()
