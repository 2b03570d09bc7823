"""
Services layer for data access.

This layer handles:
- Message / chat room persistence (ChatStore)
- Room access decisions for the realtime layer
"""

from .chat_store import ChatStore, MongoChatStore
from .room_access import RoomAuthorizer, allow_all, build_room_authorizer, participant_access

__all__ = [
    "ChatStore",
    "MongoChatStore",
    "RoomAuthorizer",
    "allow_all",
    "build_room_authorizer",
    "participant_access",
]
