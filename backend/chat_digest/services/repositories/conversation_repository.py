"""Monitored conversation repository"""

import logging
from collections.abc import Sequence

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from chat_digest.models.conversation import MonitoredConversation

logger = logging.getLogger(__name__)


class ConversationRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_chat_id(self, chat_id: str) -> MonitoredConversation | None:
        result = self._session.execute(
            select(MonitoredConversation).where(MonitoredConversation.chat_id == chat_id)
        )
        return result.scalar_one_or_none()

    def upsert(
        self,
        *,
        chat_id: str,
        chat_name: str | None,
        chat_type: str | None,
        status: str,
    ) -> MonitoredConversation:
        """Create or refresh a monitored conversation; re-registering reactivates it."""
        record = self.get_by_chat_id(chat_id)
        if record is None:
            record = MonitoredConversation(
                chat_id=chat_id,
                chat_name=chat_name,
                chat_type=chat_type,
                status=status,
                is_active=True,
            )
            self._session.add(record)
            logger.info(f"Registering conversation {chat_id} ({status})")
        else:
            record.chat_name = chat_name
            record.chat_type = chat_type
            record.status = status
            record.is_active = True
            logger.info(f"Updating conversation {chat_id} ({status})")

        self._session.commit()
        self._session.refresh(record)
        return record

    def list_active(self, *, include_ignored: bool = False) -> Sequence[MonitoredConversation]:
        query = select(MonitoredConversation).where(MonitoredConversation.is_active.is_(True))
        if not include_ignored:
            query = query.where(MonitoredConversation.status != "ignored")
        result = self._session.execute(
            query.order_by(MonitoredConversation.created_at.desc(), MonitoredConversation.id.desc())
        )
        return result.scalars().all()

    def deactivate(self, chat_id: str) -> bool:
        result = self._session.execute(
            update(MonitoredConversation)
            .where(MonitoredConversation.chat_id == chat_id)
            .values(is_active=False)
        )
        self._session.commit()
        return result.rowcount > 0
