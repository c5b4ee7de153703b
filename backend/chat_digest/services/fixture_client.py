"""Canned chats and messages for running without Microsoft Graph credentials"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from chat_digest.core.timeutils import to_naive_utc
from chat_digest.schemas.graph import GraphChat, GraphMessage
from chat_digest.services.conversation_client import ConversationClient

logger = logging.getLogger(__name__)


# (chat_id, message_id, minutes ago, author, content)
FIXTURE_MESSAGES: list[tuple[str, str, int, str, str]] = [
    ("chat-1", "msg-1", 120, "Alice Johnson",
     "Hey team, I finished implementing the new authentication flow. Ready for review!"),
    ("chat-1", "msg-2", 90, "Bob Smith",
     "Great work @Alice! I'll take a look this afternoon. Did you update the documentation?"),
    ("chat-1", "msg-3", 60, "Alice Johnson",
     "Yes! Added setup instructions and API documentation. Check out the README."),
    ("chat-1", "msg-4", 45, "Carol White",
     "Quick question - are we still on track for the Friday deployment?"),
    ("chat-1", "msg-5", 30, "Bob Smith",
     "@Carol Yes, all tests are passing. We should be good to go!"),
    ("chat-2", "msg-6", 180, "David Chen",
     "Reviewed the Q2 roadmap. I think we should prioritize the mobile app features."),
    ("chat-2", "msg-7", 150, "Emma Davis",
     "Agreed. Customer feedback has been requesting offline mode. That should be a blocker."),
    ("chat-3", "msg-8", 24 * 60, "Bob Smith",
     "Sprint 12 retrospective: What went well - great team collaboration. "
     "What to improve - need better estimation."),
]

FIXTURE_CHATS: list[dict[str, Any]] = [
    {"id": "chat-1", "topic": "Project Alpha Discussion", "chatType": "group"},
    {"id": "chat-2", "topic": None, "chatType": "oneOnOne"},
    {"id": "chat-3", "topic": "Weekly Standup", "chatType": "group"},
]


class FixtureConversationClient(ConversationClient):
    """Same contract as the Graph client, served from memory."""

    def __init__(self, now: datetime | None = None) -> None:
        self._now = now or datetime.now(timezone.utc)

    def list_conversations(self, days_back: int = 7, max_results: int = 50) -> list[GraphChat]:
        preview = {"createdDateTime": self._now.isoformat()}
        chats = [GraphChat.model_validate({**chat, "lastMessagePreview": preview}) for chat in FIXTURE_CHATS]
        logger.info(f"Serving {min(len(chats), max_results)} fixture chats")
        return chats[:max_results]

    def list_messages(self, chat_id: str, since: datetime | None = None) -> list[GraphMessage]:
        messages = [
            GraphMessage.model_validate(
                {
                    "id": message_id,
                    "from": {"user": {"displayName": author}},
                    "body": {"content": content, "contentType": "text"},
                    "createdDateTime": (self._now - timedelta(minutes=minutes_ago)).isoformat(),
                }
            )
            for owner, message_id, minutes_ago, author, content in FIXTURE_MESSAGES
            if owner == chat_id
        ]
        if since is not None:
            cutoff = to_naive_utc(since)
            messages = [m for m in messages if to_naive_utc(m.created_date_time) > cutoff]
        return messages
