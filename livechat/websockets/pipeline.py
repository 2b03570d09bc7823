import asyncio
import logging

from livechat.core.errors import PersistenceFailure, PersistenceTimeout
from livechat.schemas.message import ChatMessage, InboundMessage
from livechat.services.chat_store import ChatStore

logger = logging.getLogger(__name__)


class MessageIngestionPipeline:
    """
    메시지 저장 파이프라인

    클라이언트 페이로드를 저장소에 기록하고 정식 메시지(ChatMessage)를
    반환합니다. 브로드캐스트는 반드시 반환된 정식 메시지로만 해야 합니다.
    """

    def __init__(self, store: ChatStore, timeout: float = 5.0):
        self._store = store
        self._timeout = timeout

    async def ingest(self, room_id: str, author_id: str, payload: InboundMessage) -> ChatMessage:
        """
        메시지를 저장합니다.

        Raises:
            PersistenceTimeout: 저장이 timeout 안에 끝나지 않은 경우
            PersistenceFailure: 저장소가 실패한 경우 (재시도하지 않음)
        """
        try:
            stored = await asyncio.wait_for(
                self._store.append_message(
                    room_id=room_id,
                    author_id=author_id,
                    content=payload.content,
                    image_url=payload.image_url,
                    client_token=payload.client_token,
                ),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Persistence timed out after {self._timeout}s for room {room_id}")
            raise PersistenceTimeout(room_id, self._timeout) from e
        except Exception as e:
            logger.error(f"Failed to persist message from user {author_id} in room {room_id}: {e}")
            raise PersistenceFailure(room_id) from e

        return ChatMessage.from_document(stored)
