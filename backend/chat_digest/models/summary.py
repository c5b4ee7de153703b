from sqlalchemy import Column, Date, DateTime, Index, Integer, String, Text

from chat_digest.core.db import Base
from chat_digest.core.timeutils import utcnow


class Summary(Base):
    __tablename__ = "summaries"
    __table_args__ = (Index("ix_summaries_chat_period", "chat_id", "period_start", "period_end"),)

    id = Column(Integer, primary_key=True, index=True)
    chat_id = Column(String(255), nullable=False)
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)
    summary_text = Column(Text, nullable=False)
    sections = Column(Text, nullable=False)  # JSON-encoded SummaryOutput
    ai_provider = Column(String(50), nullable=True)
    generated_at = Column(DateTime, default=utcnow, nullable=False)
