"""
구조화된 로깅 시스템

모든 로그를 JSON 한 줄로 기록합니다. WebSocket 연결을 처리하는 동안에는
connection_id / user_id 컨텍스트가 자동으로 포함됩니다.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from livechat.core.config import Settings, settings as default_settings

# 연결별 추적 정보 (WebSocket 엔드포인트 태스크 단위)
connection_id_var: ContextVar[Optional[str]] = ContextVar('connection_id', default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar('user_id', default=None)

# LogRecord 기본 속성 (extra에서 제외)
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}

_NOISY_LOGGERS = ("uvicorn.access", "motor", "pymongo", "beanie")


class StructuredFormatter(logging.Formatter):
    """JSON 로그 포매터"""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        entry.update(self._context())

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": self.formatException(record.exc_info),
            }

        extra = self._extra(record)
        if extra:
            entry["extra"] = extra

        return json.dumps(entry, ensure_ascii=False, default=str)

    @staticmethod
    def _context() -> Dict[str, str]:
        context = {}
        if connection_id_var.get():
            context["connection_id"] = connection_id_var.get()
        if user_id_var.get():
            context["user_id"] = user_id_var.get()
        return context

    @staticmethod
    def _extra(record: logging.LogRecord) -> Dict[str, Any]:
        return {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith('_')
        }


def _build_handlers(config: Settings) -> List[logging.Handler]:
    console = logging.StreamHandler(sys.stdout)
    if config.debug:
        # 개발 환경: 사람이 읽기 쉬운 형식
        console.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
    else:
        console.setFormatter(StructuredFormatter())

    log_dir = Path(config.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers: List[logging.Handler] = [console]
    for filename, level in (("app.log", logging.INFO), ("error.log", logging.ERROR)):
        file_handler = logging.FileHandler(log_dir / filename, encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(StructuredFormatter())
        handlers.append(file_handler)
    return handlers


def setup_logging(config: Optional[Settings] = None):
    """루트 로거 초기화 (콘솔 + app.log + error.log)"""
    config = config or default_settings

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if config.debug else logging.INFO)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
    for handler in _build_handlers(config):
        root_logger.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def set_connection_context(connection_id: str, user_id: Optional[str] = None):
    connection_id_var.set(connection_id)
    if user_id:
        user_id_var.set(user_id)


def clear_connection_context():
    connection_id_var.set(None)
    user_id_var.set(None)


def log_websocket_event(
    logger: logging.Logger,
    event: str,
    user_id: Optional[str],
    room_id: Optional[str],
    **extra
):
    """WebSocket 연결/입장/퇴장 이벤트"""
    logger.info(
        f"WebSocket {event}: user={user_id} room={room_id}",
        extra={"event_type": "websocket", "event": event, "room_id": room_id, **extra}
    )


def log_database_operation(
    logger: logging.Logger,
    operation: str,
    collection: str,
    duration_ms: Optional[float] = None,
    **extra
):
    logger.info(
        f"DB {operation} on {collection}",
        extra={
            "event_type": "database_operation",
            "operation": operation,
            "collection": collection,
            "duration_ms": duration_ms,
            **extra
        }
    )


def log_security_event(
    logger: logging.Logger,
    event: str,
    severity: str = "medium",
    user_id: Optional[str] = None,
    **extra
):
    """보안 이벤트 (권한 거부, 잘못된 토큰 등)"""
    logger.warning(
        f"Security {event} (severity={severity})",
        extra={
            "event_type": "security",
            "event": event,
            "severity": severity,
            "subject_user_id": user_id,
            **extra
        }
    )
