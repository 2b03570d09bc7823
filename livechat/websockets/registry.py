from typing import Dict, Optional


class ConnectionRegistry:
    """
    연결 ID → 채팅방 ID 매핑

    연결 하나는 한 번에 하나의 채팅방에만 속합니다. 다시 join 하면 이전 매핑을
    덮어씁니다. 애플리케이션 시작 시 생성되어 핸들러에 주입됩니다.
    """

    def __init__(self):
        self._rooms: Dict[str, str] = {}

    def register(self, connection_id: str, room_id: str):
        """매핑 추가 또는 교체"""
        self._rooms[connection_id] = room_id

    def lookup(self, connection_id: str) -> Optional[str]:
        """현재 입장한 채팅방 ID (없으면 None)"""
        return self._rooms.get(connection_id)

    def remove(self, connection_id: str) -> Optional[str]:
        """매핑 삭제, 삭제된 채팅방 ID를 반환"""
        return self._rooms.pop(connection_id, None)

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)
