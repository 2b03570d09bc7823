from .chat_rooms import ChatRoom
from .messages import Message

__all__ = [
    "ChatRoom",
    "Message",
]
