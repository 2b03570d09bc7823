import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import WebSocket, status


class Connection:
    """WebSocket 1개 = 실시간 세션 1개"""

    def __init__(self, websocket: WebSocket, user_id: str, connection_id: Optional[str] = None):
        self.websocket = websocket
        self.user_id = user_id
        self.connection_id = connection_id or uuid.uuid4().hex
        self.connected_at = datetime.utcnow()

    async def send_json(self, data: Dict[str, Any]):
        await self.websocket.send_json(data)

    async def close(self, code: int = status.WS_1000_NORMAL_CLOSURE):
        await self.websocket.close(code=code)

    def __repr__(self):
        return f"<Connection(id={self.connection_id}, user_id={self.user_id})>"
