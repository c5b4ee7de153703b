"""Local cache of monitored conversations, fetched messages and summaries.

Each operation runs in its own session. Storage failures surface as
``CacheError``; the duplicate-message skip is the only conflict that is not
an error.
"""

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import date, datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from chat_digest.core.errors import CacheError
from chat_digest.models.conversation import MonitoredConversation
from chat_digest.models.message import CachedMessage
from chat_digest.models.summary import Summary
from chat_digest.services.repositories.conversation_repository import ConversationRepository
from chat_digest.services.repositories.message_repository import MessageRepository
from chat_digest.services.repositories.summary_repository import SummaryRepository

logger = logging.getLogger(__name__)


class MessageCache:
    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    @contextmanager
    def _session(self, action: str) -> Iterator[Session]:
        try:
            with self._session_factory() as session:
                yield session
        except SQLAlchemyError as exc:
            logger.error(f"Cache operation failed ({action}): {exc}", exc_info=True)
            raise CacheError(f"Failed to {action}", details={"cause": type(exc).__name__}) from exc

    # ==================== Conversations ====================

    def register_conversation(
        self,
        chat_id: str,
        chat_name: str | None = None,
        chat_type: str | None = None,
        status: str = "active",
    ) -> MonitoredConversation:
        with self._session("save monitored chat") as session:
            return ConversationRepository(session).upsert(
                chat_id=chat_id,
                chat_name=chat_name,
                chat_type=chat_type,
                status=status,
            )

    def get_conversation(self, chat_id: str) -> MonitoredConversation | None:
        with self._session("get monitored chat") as session:
            return ConversationRepository(session).get_by_chat_id(chat_id)

    def list_conversations(self, include_ignored: bool = False) -> Sequence[MonitoredConversation]:
        with self._session("get monitored chats") as session:
            return ConversationRepository(session).list_active(include_ignored=include_ignored)

    def deactivate_conversation(self, chat_id: str) -> None:
        with self._session("deactivate chat") as session:
            if not ConversationRepository(session).deactivate(chat_id):
                logger.warning(f"Deactivate requested for unknown conversation {chat_id}")

    # ==================== Messages ====================

    def save_message(
        self,
        *,
        message_id: str,
        chat_id: str,
        author: str | None,
        content: str | None,
        created_at: datetime,
    ) -> bool:
        with self._session("save message") as session:
            inserted = MessageRepository(session).add_message(
                message_id=message_id,
                chat_id=chat_id,
                author=author,
                content=content,
                created_at=created_at,
            )
        if not inserted:
            logger.debug(f"Message {message_id} already cached, skipped")
        return inserted

    def get_message(self, message_id: str) -> CachedMessage | None:
        with self._session("get message") as session:
            return MessageRepository(session).get_by_message_id(message_id)

    def get_messages(self, chat_id: str, since: datetime | None = None) -> Sequence[CachedMessage]:
        with self._session("get messages") as session:
            return MessageRepository(session).list_for_chat(chat_id=chat_id, since=since)

    def get_messages_in_range(
        self,
        chat_id: str,
        start_date: date,
        end_date: date,
    ) -> Sequence[CachedMessage]:
        with self._session("get messages by date range") as session:
            return MessageRepository(session).list_in_range(
                chat_id=chat_id,
                start_date=start_date,
                end_date=end_date,
            )

    def get_last_message_time(self, chat_id: str) -> datetime | None:
        with self._session("get last message time") as session:
            return MessageRepository(session).latest_created_at(chat_id)

    # ==================== Summaries ====================

    def save_summary(
        self,
        *,
        chat_id: str,
        period_start: date,
        period_end: date,
        summary_text: str,
        sections: str,
        ai_provider: str | None = None,
    ) -> int:
        with self._session("save summary") as session:
            record = SummaryRepository(session).create_summary(
                chat_id=chat_id,
                period_start=period_start,
                period_end=period_end,
                summary_text=summary_text,
                sections=sections,
                ai_provider=ai_provider,
            )
        logger.info(f"Saved summary {record.id} for {chat_id} ({period_start} - {period_end})")
        return record.id

    def get_summary(self, summary_id: int) -> Summary | None:
        with self._session("get summary") as session:
            return SummaryRepository(session).get(summary_id)

    def list_summaries(self, chat_id: str) -> Sequence[Summary]:
        with self._session("get summaries") as session:
            return SummaryRepository(session).list_for_chat(chat_id)

    def get_latest_summary(self, chat_id: str) -> Summary | None:
        with self._session("get latest summary") as session:
            return SummaryRepository(session).latest_for_chat(chat_id)
