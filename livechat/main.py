"""
LiveChat - FastAPI Application

채팅방 실시간 메시지 전달 서비스
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.exceptions import HTTPException as StarletteHTTPException

from livechat import api
from livechat.api import include_routers
from livechat.core.config import Settings, settings as default_settings
from livechat.core.logging import get_logger, setup_logging
from livechat.database import init_databases, close_databases, get_redis
from livechat.middleware.error_handler import ErrorHandlerMiddleware, create_http_exception_handler
from livechat.services.chat_store import ChatStore, MongoChatStore
from livechat.websockets.hub import build_realtime_hub

logger = get_logger(__name__)


def create_app(config: Optional[Settings] = None, store: Optional[ChatStore] = None) -> FastAPI:
    """
    애플리케이션 생성

    store를 넘기면 데이터베이스를 초기화하지 않고 해당 저장소를 사용합니다.
    """
    config = config or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        logger.info(f"{config.app_name} starting up...")
        chat_store = store
        if chat_store is None:
            setup_logging(config)
            await init_databases(config)
            chat_store = MongoChatStore()

        realtime = build_realtime_hub(chat_store, config, redis_client=get_redis())
        app.state.chat_store = chat_store
        app.state.realtime = realtime
        await realtime.start()

        yield

        # Shutdown
        logger.info(f"{config.app_name} shutting down...")
        await realtime.stop()
        if store is None:
            await close_databases()

    app = FastAPI(
        title=config.app_name,
        version=config.version,
        lifespan=lifespan
    )
    app.state.settings = config

    app.add_middleware(ErrorHandlerMiddleware, debug=config.debug)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(StarletteHTTPException, create_http_exception_handler())

    # Include routers
    include_routers(app, "api", api.__path__)

    if config.metrics_enabled:
        # Prometheus metrics
        Instrumentator().instrument(app).expose(app)

    @app.get("/")
    async def root():
        return {
            "service": config.app_name,
            "version": config.version,
            "status": "running"
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "livechat.main:app",
        host=default_settings.host,
        port=default_settings.port,
        reload=default_settings.debug
    )
