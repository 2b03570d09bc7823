"""
Redis 클라이언트 (멀티 인스턴스 팬아웃용)

BROADCAST_BACKEND=redis 일 때만 초기화됩니다. 그 외에는 get_redis()가 None을
반환하고 브로드캐스트는 프로세스 내부에서만 이루어집니다.
"""

import logging
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from livechat.core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

redis_client: Optional[redis.Redis] = None


async def init_redis(config: Optional[Settings] = None) -> redis.Redis:
    """클라이언트 생성 후 PING으로 연결 확인"""
    global redis_client
    config = config or default_settings

    client = redis.from_url(
        config.redis_url,
        encoding="utf-8",
        decode_responses=True,
        health_check_interval=30,
    )
    try:
        await client.ping()
    except RedisError as e:
        logger.error(f"Redis is unreachable at {config.redis_url}: {e}")
        await client.aclose()
        raise

    redis_client = client
    logger.info("Redis client ready for room fan-out")
    return redis_client


async def close_redis():
    global redis_client
    if redis_client is None:
        return

    client, redis_client = redis_client, None
    try:
        await client.aclose()
    except RedisError as e:
        logger.warning(f"Error while closing Redis client: {e}")
    else:
        logger.info("Redis client closed")


def get_redis() -> Optional[redis.Redis]:
    """초기화된 클라이언트, 사용하지 않는 경우 None"""
    return redis_client


async def check_redis_connection() -> bool:
    if redis_client is None:
        return False

    try:
        return bool(await redis_client.ping())
    except RedisError as e:
        logger.warning(f"Redis ping failed: {e}")
        return False
