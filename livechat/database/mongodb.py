"""
MongoDB(Motor) 클라이언트와 Beanie 문서 모델 등록

채팅방과 메시지 문서만 관리합니다. 애플리케이션 lifespan에서 한 번 초기화됩니다.
"""

import logging
from typing import List, Optional

from beanie import Document, init_beanie
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from livechat.core.config import Settings, settings as default_settings
from livechat.models import ChatRoom, Message

logger = logging.getLogger(__name__)

DOCUMENT_MODELS: List[type[Document]] = [ChatRoom, Message]

client: Optional[AsyncIOMotorClient] = None
database: Optional[AsyncIOMotorDatabase] = None


async def connect_to_mongo(config: Optional[Settings] = None) -> AsyncIOMotorDatabase:
    """Motor 클라이언트 생성 후 채팅 DB 핸들 반환"""
    global client, database
    config = config or default_settings

    client = AsyncIOMotorClient(
        config.mongo_url,
        maxPoolSize=config.mongo_max_pool_size,
        minPoolSize=1,
        serverSelectionTimeoutMS=int(config.persistence_timeout_seconds * 1000),
        tz_aware=False,
    )
    database = client[config.mongodb_db_name]
    logger.info(f"MongoDB client created for database '{config.mongodb_db_name}'")
    return database


async def init_mongodb(config: Optional[Settings] = None):
    """연결 후 Beanie 초기화 (인덱스 생성 포함)"""
    db = await connect_to_mongo(config)
    try:
        await init_beanie(database=db, document_models=DOCUMENT_MODELS)
    except Exception as e:
        logger.error(f"Beanie initialization failed: {e}")
        await close_mongo_connection()
        raise

    logger.info(f"Beanie registered {len(DOCUMENT_MODELS)} document model(s)")


async def check_mongo_connection() -> bool:
    if client is None:
        return False

    try:
        await client.admin.command("ping")
    except Exception as e:
        logger.warning(f"MongoDB ping failed: {e}")
        return False
    return True


async def close_mongo_connection():
    global client, database
    if client is None:
        return

    client.close()
    client = None
    database = None
    logger.info("MongoDB client closed")
