from collections.abc import Sequence
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from chat_digest.core.timeutils import utcnow
from chat_digest.models.summary import Summary


class SummaryRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create_summary(
        self,
        *,
        chat_id: str,
        period_start: date,
        period_end: date,
        summary_text: str,
        sections: str,
        ai_provider: str | None,
    ) -> Summary:
        record = Summary(
            chat_id=chat_id,
            period_start=period_start,
            period_end=period_end,
            summary_text=summary_text,
            sections=sections,
            ai_provider=ai_provider,
            generated_at=utcnow(),
        )
        self._session.add(record)
        self._session.commit()
        self._session.refresh(record)
        return record

    def get(self, summary_id: int) -> Summary | None:
        return self._session.get(Summary, summary_id)

    def list_for_chat(self, chat_id: str, *, limit: int | None = None) -> Sequence[Summary]:
        query = (
            select(Summary)
            .where(Summary.chat_id == chat_id)
            .order_by(Summary.period_start.desc(), Summary.generated_at.desc(), Summary.id.desc())
        )
        if limit is not None:
            query = query.limit(limit)
        result = self._session.execute(query)
        return result.scalars().all()

    def latest_for_chat(self, chat_id: str) -> Summary | None:
        records = self.list_for_chat(chat_id, limit=1)
        return records[0] if records else None
