from typing import Dict, List

from livechat.websockets.connection import Connection


class DeliveryGroups:
    """채팅방별 브로드캐스트 구독 그룹: {room_id: {connection_id: Connection}}"""

    def __init__(self):
        self._groups: Dict[str, Dict[str, Connection]] = {}

    def subscribe(self, room_id: str, connection: Connection):
        self._groups.setdefault(room_id, {})[connection.connection_id] = connection

    def unsubscribe(self, room_id: str, connection_id: str) -> bool:
        group = self._groups.get(room_id)
        if not group or connection_id not in group:
            return False

        del group[connection_id]
        # 채팅방에 연결이 없으면 그룹 자체를 제거
        if not group:
            del self._groups[room_id]
        return True

    def discard(self, connection_id: str) -> List[str]:
        """모든 그룹에서 연결을 제거하고, 제거된 채팅방 ID 목록을 반환"""
        rooms = [room_id for room_id, group in self._groups.items() if connection_id in group]
        for room_id in rooms:
            self.unsubscribe(room_id, connection_id)
        return rooms

    def members(self, room_id: str) -> List[Connection]:
        """브로드캐스트 대상 스냅샷"""
        return list(self._groups.get(room_id, {}).values())

    def is_member(self, room_id: str, connection_id: str) -> bool:
        return connection_id in self._groups.get(room_id, {})

    def user_ids(self, room_id: str) -> List[str]:
        """채팅방에 연결된 사용자 목록 (중복 제거, 입장 순)"""
        return list(dict.fromkeys(c.user_id for c in self.members(room_id)))

    def count(self, room_id: str) -> int:
        return len(self._groups.get(room_id, {}))

    def rooms(self) -> List[str]:
        return list(self._groups.keys())
