"""Microsoft Graph API client

Follows ``@odata.nextLink`` pagination and retries rate-limit/server errors
with exponential backoff.
"""

import logging
import time
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import TypeVar
from urllib.parse import quote

import httpx

from chat_digest.core.errors import RemoteAPIError
from chat_digest.core.timeutils import isoformat_z, to_naive_utc, utcnow
from chat_digest.schemas.graph import GraphChat, GraphMessage, GraphPage
from chat_digest.services.conversation_client import ConversationClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_ATTEMPTS = 3
RETRIABLE_STATUS = frozenset({429, 500, 503})


class GraphAPIClient(ConversationClient):
    """Microsoft Graph client bound to one user's access token"""

    def __init__(
        self,
        access_token: str,
        *,
        base_url: str = "https://graph.microsoft.com/v1.0",
        timeout: float = 30.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._client = http_client or httpx.Client(base_url=base_url, timeout=timeout)
        self._headers = {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
        }

    def list_conversations(self, days_back: int = 7, max_results: int = 50) -> list[GraphChat]:
        """
        Get chats with activity in the last ``days_back`` days.

        Graph cannot filter chats by last activity, so pages are fetched
        (up to twice ``max_results`` chats) and filtered client-side.

        Args:
            days_back: How many days of activity to look back
            max_results: Maximum number of chats to return

        Returns:
            Chats sorted by most recent activity first
        """
        cutoff = utcnow() - timedelta(days=days_back)
        logger.info(f"Fetching chats with activity since {cutoff:%Y-%m-%d} (last {days_back} days)")

        def is_recent(chat: GraphChat) -> bool:
            last_activity = chat.last_activity
            return last_activity is not None and to_naive_utc(last_activity) >= cutoff

        def fetch() -> list[GraphChat]:
            chats: list[GraphChat] = []
            url: str | None = "/me/chats?$expand=lastMessagePreview"
            while url and len(chats) < max_results * 2:
                page = self._get_page(url)
                chats.extend(GraphChat.model_validate(item) for item in page.value)
                url = page.next_link
                if sum(1 for chat in chats if is_recent(chat)) >= max_results:
                    break
            return chats

        all_chats = self._with_retry("Fetch chats", fetch)
        recent = sorted(
            (chat for chat in all_chats if is_recent(chat)),
            key=lambda chat: to_naive_utc(chat.last_activity),
            reverse=True,
        )[:max_results]
        logger.info(f"Fetched {len(all_chats)} chats, {len(recent)} with activity in the last {days_back} days")
        return recent

    def list_messages(self, chat_id: str, since: datetime | None = None) -> list[GraphMessage]:
        """
        Get every message of a chat, following pagination until exhausted.

        Args:
            chat_id: Graph chat ID
            since: Only messages modified strictly after this instant

        Returns:
            Messages of all pages, in the order the pages were returned
        """
        url = f"/chats/{quote(chat_id, safe='')}/messages"
        if since is not None:
            graph_filter = f"lastModifiedDateTime gt {isoformat_z(since)}"
            url += f"?$filter={quote(graph_filter)}"

        def fetch() -> list[GraphMessage]:
            messages: list[GraphMessage] = []
            next_url: str | None = url
            pages = 0
            while next_url:
                page = self._get_page(next_url)
                messages.extend(GraphMessage.model_validate(item) for item in page.value)
                next_url = page.next_link
                pages += 1
            logger.debug(f"Chat {chat_id}: {len(messages)} messages across {pages} pages")
            return messages

        return self._with_retry(f"Fetch messages for chat {chat_id}", fetch)

    def close(self) -> None:
        self._client.close()

    def _get_page(self, url: str) -> GraphPage:
        response = self._client.get(url, headers=self._headers)
        response.raise_for_status()
        return GraphPage.model_validate(response.json())

    def _with_retry(self, operation: str, fetch: Callable[[], T]) -> T:
        """Run a whole paginated fetch, retrying it on 429/500/503."""
        last_error: Exception | None = None
        last_status: int | None = None

        for attempt in range(MAX_ATTEMPTS):
            try:
                return fetch()
            except httpx.HTTPStatusError as e:
                last_error = e
                last_status = e.response.status_code
                if last_status not in RETRIABLE_STATUS:
                    logger.error(f"{operation}: Graph returned {last_status} - {e.response.text[:200]}")
                    raise RemoteAPIError(
                        f"{operation} failed with HTTP {last_status}",
                        status_code_seen=last_status,
                        attempts=attempt + 1,
                    ) from e
                if attempt == MAX_ATTEMPTS - 1:
                    break
                delay = 2**attempt  # 1s, 2s, 4s
                logger.warning(
                    f"{operation}: HTTP {last_status}, retrying in {delay}s ({attempt + 1}/{MAX_ATTEMPTS})"
                )
                time.sleep(delay)
            except httpx.HTTPError as e:
                logger.error(f"{operation}: request error {e!r}")
                raise RemoteAPIError(
                    f"{operation} failed: {type(e).__name__}",
                    attempts=attempt + 1,
                ) from e
            except ValueError as e:
                logger.error(f"{operation}: unexpected response format: {e}")
                raise RemoteAPIError(
                    f"{operation} returned an unexpected response",
                    attempts=attempt + 1,
                ) from e

        logger.error(f"{operation}: giving up after {MAX_ATTEMPTS} attempts (last status {last_status})")
        raise RemoteAPIError(
            f"{operation} failed after {MAX_ATTEMPTS} attempts",
            status_code_seen=last_status,
            attempts=MAX_ATTEMPTS,
        ) from last_error
