import logging
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from livechat.api.dependencies import get_chat_store, get_current_user_id, get_realtime, get_settings
from livechat.core.config import Settings
from livechat.core.errors import AuthorizationException, InvalidFrame
from livechat.core.logging import clear_connection_context, set_connection_context
from livechat.schemas.chat_room import RoomStatus
from livechat.services.chat_store import ChatStore
from livechat.websockets.auth import authenticate_websocket
from livechat.websockets.connection import Connection
from livechat.websockets.hub import RealtimeHub

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ws", tags=["WebSocket"])


@router.websocket("/chat")
async def websocket_endpoint(websocket: WebSocket):
    """
    실시간 채팅 WebSocket 엔드포인트

    연결 후 {"type": "join", "room_id": ...} 프레임으로 채팅방에 입장하고
    {"type": "message", "content": ...} 프레임으로 메시지를 보냅니다.
    """
    realtime: RealtimeHub = websocket.app.state.realtime

    # 1. WebSocket 인증
    user_id = await authenticate_websocket(websocket)
    if not user_id:
        return

    # 2. 연결 등록
    await websocket.accept()
    connection = Connection(websocket, user_id)
    set_connection_context(connection.connection_id, user_id)
    realtime.lifecycle.on_connect(connection)

    try:
        # 3. 연결 환영 메시지
        await connection.send_json({
            "type": "connection_established",
            "connection_id": connection.connection_id,
            "user_id": user_id,
        })

        # 4. 메시지 수신 루프
        while True:
            try:
                data = await websocket.receive_json()
            except ValueError as e:
                # JSON 파싱 오류
                logger.warning(f"Invalid JSON from user {user_id}: {e}")
                await connection.send_json(InvalidFrame("Invalid JSON").to_frame())
                continue

            await realtime.handler.handle_message(connection, data)

    except WebSocketDisconnect:
        # 정상적인 연결 해제
        logger.info(f"WebSocket disconnected for user {user_id}")

    except Exception as e:
        logger.error(f"Unexpected error in WebSocket connection for user {user_id}: {e}", exc_info=True)

    finally:
        # 5. 연결 해제 처리
        await realtime.lifecycle.on_disconnect(connection)
        clear_connection_context()


@router.get("/rooms/{room_id}/status", response_model=RoomStatus)
async def get_room_status(
    room_id: str,
    current_user_id: str = Depends(get_current_user_id),
    store: ChatStore = Depends(get_chat_store),
    realtime: RealtimeHub = Depends(get_realtime),
    config: Settings = Depends(get_settings),
) -> RoomStatus:
    """
    채팅방의 현재 접속 상태를 조회합니다.

    이 인스턴스에 연결된 WebSocket만 집계됩니다.
    """
    if config.enforce_room_membership and not await store.is_participant(current_user_id, room_id):
        raise AuthorizationException("Access denied to this chat room")

    online_users = realtime.groups.user_ids(room_id)
    online_count = realtime.groups.count(room_id)

    return RoomStatus(
        room_id=room_id,
        online_users=online_users,
        online_count=online_count,
        is_active=online_count > 0,
    )
