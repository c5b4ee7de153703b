from sqlalchemy import Column, DateTime, Index, Integer, String, Text

from chat_digest.core.db import Base
from chat_digest.core.timeutils import utcnow


class CachedMessage(Base):
    __tablename__ = "messages"
    __table_args__ = (Index("ix_messages_chat_created", "chat_id", "created_at"),)

    id = Column(Integer, primary_key=True, index=True)
    message_id = Column(String(255), unique=True, nullable=False)
    chat_id = Column(String(255), nullable=False)
    author = Column(String(255), nullable=True)
    content = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False)
    fetched_at = Column(DateTime, default=utcnow, nullable=False)
