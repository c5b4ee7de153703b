"""Monitored conversation model"""

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from chat_digest.core.db import Base
from chat_digest.core.timeutils import utcnow


class MonitoredConversation(Base):
    """A Graph chat the user asked us to track. Deactivated, never deleted."""

    __tablename__ = "monitored_chats"

    id = Column(Integer, primary_key=True, index=True)
    chat_id = Column(String(255), unique=True, nullable=False)
    chat_name = Column(String(255), nullable=True)
    chat_type = Column(String(20), nullable=True)  # oneOnOne, group, meeting
    status = Column(String(20), default="active", nullable=False)  # active, ignored
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
