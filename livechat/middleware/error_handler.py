import logging
import traceback
from typing import Any, Callable, Dict, Optional

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from pymongo.errors import ConnectionFailure, OperationFailure, PyMongoError

from livechat.core.errors import BaseCustomException, create_error_response

logger = logging.getLogger(__name__)


def _error_json(error: str, message: str, status_code: int,
                details: Optional[Dict[str, Any]] = None) -> JSONResponse:
    body = create_error_response(error, message, status_code, details)
    return JSONResponse(status_code=status_code, content=body.model_dump())


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    HTTP 요청 예외를 표준 에러 응답으로 변환

    WebSocket 연결은 BaseHTTPMiddleware를 거치지 않으므로 실시간 계층의
    오류는 error 프레임으로 따로 처리됩니다.
    """

    def __init__(self, app, debug: bool = False):
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)

        except BaseCustomException as e:
            return JSONResponse(status_code=e.status_code, content=e.to_dict())

        except ConnectionFailure as e:
            # ServerSelectionTimeoutError 포함
            logger.error(f"MongoDB unavailable during {request.method} {request.url.path}: {e}")
            return _error_json(
                "mongodb_connection_error",
                "Chat storage is temporarily unavailable",
                status.HTTP_503_SERVICE_UNAVAILABLE,
                self._debug_details(e),
            )

        except OperationFailure as e:
            logger.error(f"MongoDB operation failed (code={e.code}): {e}")
            return _error_json(
                "mongodb_operation_error",
                "Chat storage rejected the operation",
                status.HTTP_400_BAD_REQUEST,
                self._debug_details(e),
            )

        except PyMongoError as e:
            logger.error(f"MongoDB error: {type(e).__name__}: {e}")
            return _error_json(
                "mongodb_error",
                "Chat storage error",
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                self._debug_details(e),
            )

        except Exception as e:
            logger.error(f"Unhandled exception on {request.url.path}: {type(e).__name__}: {e}", exc_info=True)
            details = None
            if self.debug:
                details = {
                    "exception": str(e),
                    "type": type(e).__name__,
                    "traceback": traceback.format_exc(),
                }
            return _error_json(
                "internal_server_error",
                "An unexpected error occurred",
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                details,
            )

    def _debug_details(self, error: Exception) -> Optional[Dict[str, Any]]:
        return {"detail": str(error)} if self.debug else None


def create_http_exception_handler():
    """HTTPException → 표준 에러 형식 핸들러"""

    async def http_exception_handler(request: Request, exc):
        if isinstance(exc, BaseCustomException):
            return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

        if isinstance(exc.detail, str):
            return _error_json("http_error", exc.detail, exc.status_code)
        return _error_json("http_error", "HTTP error occurred", exc.status_code, {"detail": exc.detail})

    return http_exception_handler
