from .message import InboundMessage, ChatMessage
from .chat_room import ChatRoomSummary, ChatRoomList, RoomStatus
from .websocket import JoinFrame, LeaveFrame, MessageFrame, PingFrame, client_frame_adapter

__all__ = [
    "InboundMessage",
    "ChatMessage",
    "ChatRoomSummary",
    "ChatRoomList",
    "RoomStatus",
    "JoinFrame",
    "LeaveFrame",
    "MessageFrame",
    "PingFrame",
    "client_frame_adapter",
]
