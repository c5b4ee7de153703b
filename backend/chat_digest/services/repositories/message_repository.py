from collections.abc import Sequence
from datetime import date, datetime

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from chat_digest.core.timeutils import day_bounds, to_naive_utc, utcnow
from chat_digest.models.message import CachedMessage


class MessageRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def add_message(
        self,
        *,
        message_id: str,
        chat_id: str,
        author: str | None,
        content: str | None,
        created_at: datetime,
    ) -> bool:
        """Insert a message; returns False when ``message_id`` is already cached."""
        message = CachedMessage(
            message_id=message_id,
            chat_id=chat_id,
            author=author,
            content=content,
            created_at=to_naive_utc(created_at),
            fetched_at=utcnow(),
        )
        self._session.add(message)
        try:
            self._session.commit()
        except IntegrityError:
            self._session.rollback()
            # Only the unique message_id is an expected conflict
            if self.get_by_message_id(message_id) is not None:
                return False
            raise
        return True

    def get_by_message_id(self, message_id: str) -> CachedMessage | None:
        result = self._session.execute(
            select(CachedMessage).where(CachedMessage.message_id == message_id)
        )
        return result.scalar_one_or_none()

    def list_for_chat(
        self,
        *,
        chat_id: str,
        since: datetime | None = None,
    ) -> Sequence[CachedMessage]:
        query = select(CachedMessage).where(CachedMessage.chat_id == chat_id)
        if since is not None:
            query = query.where(CachedMessage.created_at > to_naive_utc(since))
        result = self._session.execute(
            query.order_by(CachedMessage.created_at.asc(), CachedMessage.id.asc())
        )
        return result.scalars().all()

    def list_in_range(
        self,
        *,
        chat_id: str,
        start_date: date,
        end_date: date,
    ) -> Sequence[CachedMessage]:
        window_start, window_end = day_bounds(start_date, end_date)
        result = self._session.execute(
            select(CachedMessage)
            .where(CachedMessage.chat_id == chat_id)
            .where(CachedMessage.created_at >= window_start)
            .where(CachedMessage.created_at < window_end)
            .order_by(CachedMessage.created_at.asc(), CachedMessage.id.asc())
        )
        return result.scalars().all()

    def latest_created_at(self, chat_id: str) -> datetime | None:
        result = self._session.execute(
            select(func.max(CachedMessage.created_at)).where(CachedMessage.chat_id == chat_id)
        )
        return result.scalar()
