import logging
from typing import Dict, Optional

from livechat.core.config import Settings, settings as default_settings
from .mongodb import init_mongodb, close_mongo_connection, check_mongo_connection
from .redis import init_redis, close_redis, check_redis_connection, get_redis

logger = logging.getLogger(__name__)


async def init_databases(config: Optional[Settings] = None):
    """MongoDB 초기화, redis 브로드캐스트 백엔드면 Redis도 초기화"""
    config = config or default_settings

    await init_mongodb(config)
    if config.broadcast_backend == "redis":
        try:
            await init_redis(config)
        except Exception:
            # Redis 실패 시 이미 열린 MongoDB 연결도 정리
            await close_mongo_connection()
            raise

    logger.info(f"Databases ready (broadcast backend: {config.broadcast_backend})")


async def close_databases():
    await close_redis()
    await close_mongo_connection()


async def check_database_health() -> Dict[str, Optional[bool]]:
    """
    연결 상태 점검

    redis 값은 Redis를 사용하지 않는 구성이면 None입니다.
    """
    mongodb = await check_mongo_connection()
    redis = await check_redis_connection() if get_redis() is not None else None

    return {
        "mongodb": mongodb,
        "redis": redis,
        "overall": mongodb and redis is not False,
    }


__all__ = [
    "init_databases",
    "close_databases",
    "check_database_health",
    "get_redis",
]
