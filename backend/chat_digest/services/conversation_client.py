"""Remote conversation client interface and its composition-root factory"""

from abc import ABC, abstractmethod
from datetime import datetime

from chat_digest.core.config import Settings
from chat_digest.core.errors import ConfigurationError
from chat_digest.schemas.graph import GraphChat, GraphMessage


class ConversationClient(ABC):
    """Read access to the chats and messages of the signed-in user."""

    @abstractmethod
    def list_conversations(self, days_back: int = 7, max_results: int = 50) -> list[GraphChat]:
        """Chats with activity in the last ``days_back`` days, newest first."""

    @abstractmethod
    def list_messages(self, chat_id: str, since: datetime | None = None) -> list[GraphMessage]:
        """Every message of a chat, optionally only those modified after ``since``."""

    def close(self) -> None:
        pass


def build_conversation_client(settings: Settings, access_token: str | None) -> ConversationClient:
    if settings.use_fixture_data:
        from chat_digest.services.fixture_client import FixtureConversationClient

        return FixtureConversationClient()

    if not access_token:
        raise ConfigurationError("An access token is required to call Microsoft Graph")

    from chat_digest.services.graph_client import GraphAPIClient

    return GraphAPIClient(
        access_token,
        base_url=settings.graph_base_url,
        timeout=settings.graph_timeout_seconds,
    )
