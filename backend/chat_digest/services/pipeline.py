"""Fetch → cache → query → summarize → persist, one synchronous pass per call"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import date

from chat_digest.core.config import Settings
from chat_digest.core.errors import ConfigurationError, NoMessagesError
from chat_digest.models.summary import Summary
from chat_digest.schemas.graph import GraphMessage
from chat_digest.schemas.requests import (
    ConversationSelection,
    MessageFetchRequest,
    SummaryRequest,
    parse_request,
)
from chat_digest.schemas.summary import (
    ConversationOverview,
    MonitoredConversationItem,
    SummaryItem,
    SummaryResult,
    SyncResult,
)
from chat_digest.services.conversation_client import ConversationClient
from chat_digest.services.message_cache import MessageCache
from chat_digest.services.summarizers.base import SummarizationProvider
from chat_digest.services.summarizers.factory import get_summarization_provider
from chat_digest.services.summarizers.parsing import parse_summary_response

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[Settings, str | None], SummarizationProvider]


class SummaryPipeline:
    def __init__(
        self,
        client: ConversationClient | None,
        cache: MessageCache,
        settings: Settings,
        provider_factory: ProviderFactory = get_summarization_provider,
    ) -> None:
        self._client = client
        self._cache = cache
        self._settings = settings
        self._provider_factory = provider_factory

    def _remote(self) -> ConversationClient:
        if self._client is None:
            raise ConfigurationError("No conversation client configured for this pipeline")
        return self._client

    # ==================== Conversations ====================

    def list_available_conversations(
        self,
        days_back: int | None = None,
        max_results: int | None = None,
    ) -> ConversationOverview:
        chats = self._remote().list_conversations(
            days_back=self._settings.chat_days_back if days_back is None else days_back,
            max_results=self._settings.chat_max_results if max_results is None else max_results,
        )
        registered = [
            MonitoredConversationItem.model_validate(record)
            for record in self._cache.list_conversations(include_ignored=True)
        ]
        return ConversationOverview(
            chats=chats,
            monitored=[item for item in registered if item.status != "ignored"],
            ignored=[item for item in registered if item.status == "ignored"],
        )

    def register_conversation(
        self,
        chat_id: str,
        chat_name: str | None = None,
        chat_type: str | None = None,
        status: str = "active",
    ) -> MonitoredConversationItem:
        selection = parse_request(
            ConversationSelection,
            {"chat_id": chat_id, "chat_name": chat_name, "chat_type": chat_type, "status": status},
        )
        record = self._cache.register_conversation(
            selection.chat_id,
            chat_name=selection.chat_name,
            chat_type=selection.chat_type,
            status=selection.status,
        )
        return MonitoredConversationItem.model_validate(record)

    def deactivate_conversation(self, chat_id: str) -> None:
        selection = parse_request(ConversationSelection, {"chat_id": chat_id})
        self._cache.deactivate_conversation(selection.chat_id)

    # ==================== Sync ====================

    def sync_messages(self, chat_id: str) -> SyncResult:
        request = parse_request(MessageFetchRequest, {"chat_id": chat_id})
        return self._sync(request.chat_id)

    def _sync(self, chat_id: str) -> SyncResult:
        since = self._cache.get_last_message_time(chat_id)
        if since is None:
            logger.info(f"Chat {chat_id}: nothing cached yet, fetching full history")
        else:
            logger.info(f"Chat {chat_id}: fetching messages modified after {since.isoformat()}")

        fetched: Sequence[GraphMessage] = self._remote().list_messages(chat_id, since=since)

        new_count = 0
        for message in fetched:
            if self._cache.save_message(
                message_id=message.id,
                chat_id=chat_id,
                author=message.author,
                content=message.content,
                created_at=message.created_date_time,
            ):
                new_count += 1

        logger.info(f"Chat {chat_id}: fetched {len(fetched)} messages, {new_count} new")
        return SyncResult(chat_id=chat_id, fetched_count=len(fetched), new_message_count=new_count, since=since)

    # ==================== Summaries ====================

    def summarize(
        self,
        chat_id: str,
        start_date: str | date,
        end_date: str | date,
        provider: str | None = None,
    ) -> SummaryResult:
        """
        Run one full pass for a chat and date range.

        Raises:
            ValidationError: Bad chat id, dates or provider name (nothing is called)
            RemoteAPIError: Graph fetch failed
            CacheError: Storage failure
            NoMessagesError: No cached messages in the range (model is not called)
            SummarizationError: Backend misconfigured (before any fetch) or failed
        """
        request = parse_request(
            SummaryRequest,
            {"chat_id": chat_id, "start_date": start_date, "end_date": end_date, "provider": provider},
        )

        # Backend and its credentials are checked before any remote call
        llm = self._provider_factory(self._settings, request.provider)

        sync = self._sync(request.chat_id)

        messages = self._cache.get_messages_in_range(request.chat_id, request.start_date, request.end_date)
        if not messages:
            raise NoMessagesError(
                "No messages found for this date range",
                details={
                    "chat_id": request.chat_id,
                    "start_date": request.start_date.isoformat(),
                    "end_date": request.end_date.isoformat(),
                },
            )

        logger.info(f"Summarizing {len(messages)} messages for {request.chat_id} with {llm.get_name()}")
        summary_text = llm.generate_summary(messages, request.period_label)
        parsed = llm.parse_summary_response(summary_text)

        summary_id = self._cache.save_summary(
            chat_id=request.chat_id,
            period_start=request.start_date,
            period_end=request.end_date,
            summary_text=summary_text,
            sections=parsed.model_dump_json(),
            ai_provider=llm.get_name(),
        )

        return SummaryResult(
            id=summary_id,
            summary=summary_text,
            parsed=parsed,
            message_count=len(messages),
            new_message_count=sync.new_message_count,
            provider=llm.get_name(),
        )

    def get_latest_summary(self, chat_id: str) -> SummaryItem | None:
        record = self._cache.get_latest_summary(chat_id)
        return self._to_item(record) if record else None

    def list_summaries(self, chat_id: str) -> list[SummaryItem]:
        return [self._to_item(record) for record in self._cache.list_summaries(chat_id)]

    @staticmethod
    def _to_item(record: Summary) -> SummaryItem:
        # Sections are always re-derived from the stored raw text
        return SummaryItem(
            id=record.id,
            chat_id=record.chat_id,
            period_start=record.period_start,
            period_end=record.period_end,
            generated_at=record.generated_at,
            summary=record.summary_text,
            parsed=parse_summary_response(record.summary_text),
            ai_provider=record.ai_provider,
        )

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
