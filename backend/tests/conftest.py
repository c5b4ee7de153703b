"""Shared fixtures: in-memory cache, settings, recorded sleeps and test doubles."""

from collections.abc import Sequence
from datetime import datetime

import pytest

from chat_digest.core.config import Settings
from chat_digest.core.db import build_engine, build_sessionmaker, init_models
from chat_digest.models.message import CachedMessage
from chat_digest.schemas.graph import GraphChat, GraphMessage
from chat_digest.services.conversation_client import ConversationClient
from chat_digest.services.message_cache import MessageCache
from chat_digest.services.summarizers.base import SummarizationProvider


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        ai_provider="ollama",
        ollama_base_url="http://ollama.test",
        ollama_model="llama3",
        anthropic_api_key="test-key",
        database_url="sqlite://",
        use_fixture_data=False,
    )


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    init_models(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def cache(engine) -> MessageCache:
    return MessageCache(build_sessionmaker(engine))


@pytest.fixture
def sleeps(monkeypatch) -> list[float]:
    """Record backoff delays instead of sleeping."""
    recorded: list[float] = []
    monkeypatch.setattr("time.sleep", recorded.append)
    return recorded


def graph_message(message_id: str, author: str | None, content: str, created: str) -> GraphMessage:
    return GraphMessage.model_validate(
        {
            "id": message_id,
            "from": {"user": {"displayName": author}} if author else None,
            "body": {"content": content, "contentType": "text"},
            "createdDateTime": created,
        }
    )


class StubConversationClient(ConversationClient):
    def __init__(self, messages: Sequence[GraphMessage] = (), chats: Sequence[GraphChat] = ()) -> None:
        self.messages = list(messages)
        self.chats = list(chats)
        self.since_calls: list[datetime | None] = []
        self.listing_calls: list[tuple[int, int]] = []
        self.closed = False

    def list_conversations(self, days_back: int = 7, max_results: int = 50) -> list[GraphChat]:
        self.listing_calls.append((days_back, max_results))
        return self.chats[:max_results]

    def list_messages(self, chat_id: str, since: datetime | None = None) -> list[GraphMessage]:
        self.since_calls.append(since)
        return list(self.messages)

    def close(self) -> None:
        self.closed = True


class FakeProvider(SummarizationProvider):
    def __init__(self, response: str, name: str = "Fake") -> None:
        self.response = response
        self.name = name
        self.calls: list[tuple[list[CachedMessage], str]] = []

    def generate_summary(self, messages, period_label):
        self.calls.append((list(messages), period_label))
        return self.response


DEPLOYMENT_SUMMARY = """Overview: Alice and Bob agreed on the release plan for the new API.

Key Decisions:
- Deploy to production on Friday after the final test run

Action Items:
- @Bob: Prepare the deployment checklist
- @Alice: Update the release notes

Blockers: None

Resources: https://wiki.example.com/release-plan"""
