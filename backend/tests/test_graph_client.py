from datetime import datetime, timedelta, timezone

import httpx
import pytest

from chat_digest.core.errors import RemoteAPIError
from chat_digest.services.graph_client import GraphAPIClient

BASE_URL = "https://graph.test/v1.0"


def _client(handler) -> GraphAPIClient:
    http_client = httpx.Client(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    return GraphAPIClient("token-123", base_url=BASE_URL, http_client=http_client)


def _message(message_id: str, minute: int = 0) -> dict:
    return {
        "id": message_id,
        "from": {"user": {"id": "u1", "displayName": "Alice"}},
        "body": {"content": f"message {message_id}", "contentType": "text"},
        "createdDateTime": f"2024-01-15T10:{minute:02d}:00Z",
    }


def _chat(chat_id: str, last_activity: datetime | None, topic: str | None = None) -> dict:
    chat = {"id": chat_id, "topic": topic, "chatType": "group"}
    if last_activity is not None:
        chat["lastMessagePreview"] = {"createdDateTime": last_activity.isoformat()}
    return chat


class TestListMessages:
    def test_follows_next_link_until_exhausted(self, sleeps):
        pages = {
            None: {
                "value": [_message("m1", 1), _message("m2", 2)],
                "@odata.nextLink": f"{BASE_URL}/chats/chat-1/messages?$skiptoken=p2",
            },
            "p2": {
                "value": [_message("m3", 3)],
                "@odata.nextLink": f"{BASE_URL}/chats/chat-1/messages?$skiptoken=p3",
            },
            "p3": {"value": [_message("m4", 4)]},
        }
        requested = []

        def handler(request: httpx.Request) -> httpx.Response:
            token = request.url.params.get("$skiptoken")
            requested.append(token)
            assert request.headers["Authorization"] == "Bearer token-123"
            return httpx.Response(200, json=pages[token])

        messages = _client(handler).list_messages("chat-1")

        assert [m.id for m in messages] == ["m1", "m2", "m3", "m4"]
        assert requested == [None, "p2", "p3"]
        assert messages[0].author == "Alice"
        assert sleeps == []

    def test_since_becomes_last_modified_filter(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url)
            return httpx.Response(200, json={"value": []})

        since = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)
        _client(handler).list_messages("19:abc@thread.v2", since=since)

        url = seen[0]
        assert url.params["$filter"] == "lastModifiedDateTime gt 2024-01-15T10:00:00.000Z"
        assert url.path == "/v1.0/chats/19:abc@thread.v2/messages"

    def test_no_filter_without_since(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url)
            return httpx.Response(200, json={"value": []})

        assert _client(handler).list_messages("chat-1") == []
        assert "$filter" not in seen[0].params

    def test_rate_limit_retried_three_times_then_fails(self, sleeps):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(429, json={"error": {"code": "TooManyRequests"}})

        with pytest.raises(RemoteAPIError) as exc_info:
            _client(handler).list_messages("chat-1")

        assert len(calls) == 3
        assert sleeps == [1, 2]
        assert exc_info.value.attempts == 3
        assert exc_info.value.status_code_seen == 429
        assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)

    def test_server_error_recovers_on_retry(self, sleeps):
        statuses = iter([503, 200])

        def handler(request: httpx.Request) -> httpx.Response:
            status = next(statuses)
            if status != 200:
                return httpx.Response(status)
            return httpx.Response(200, json={"value": [_message("m1")]})

        messages = _client(handler).list_messages("chat-1")

        assert [m.id for m in messages] == ["m1"]
        assert sleeps == [1]

    def test_failure_mid_pagination_restarts_from_first_page(self, sleeps):
        requested = []
        failed = []

        def handler(request: httpx.Request) -> httpx.Response:
            token = request.url.params.get("$skiptoken")
            requested.append(token)
            if token is None:
                return httpx.Response(
                    200,
                    json={
                        "value": [_message("m1")],
                        "@odata.nextLink": f"{BASE_URL}/chats/chat-1/messages?$skiptoken=p2",
                    },
                )
            if not failed:
                failed.append(token)
                return httpx.Response(500)
            return httpx.Response(200, json={"value": [_message("m2")]})

        messages = _client(handler).list_messages("chat-1")

        assert [m.id for m in messages] == ["m1", "m2"]
        assert requested == [None, "p2", None, "p2"]
        assert sleeps == [1]

    @pytest.mark.parametrize("status", [400, 401, 403, 404])
    def test_non_retriable_status_fails_immediately(self, sleeps, status):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(status, json={"error": {"code": "Nope"}})

        with pytest.raises(RemoteAPIError) as exc_info:
            _client(handler).list_messages("chat-1")

        assert len(calls) == 1
        assert sleeps == []
        assert exc_info.value.status_code_seen == status
        assert exc_info.value.attempts == 1

    def test_connection_error_is_wrapped(self, sleeps):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(RemoteAPIError) as exc_info:
            _client(handler).list_messages("chat-1")

        assert exc_info.value.status_code_seen is None
        assert exc_info.value.to_dict()["code"] == "GRAPH_API_ERROR"


class TestListConversations:
    def test_filters_inactive_and_sorts_newest_first(self):
        now = datetime.now(timezone.utc)
        chats = [
            _chat("old", now - timedelta(days=30), topic="Old"),
            _chat("recent", now - timedelta(hours=5), topic="Recent"),
            _chat("newest", now - timedelta(minutes=5), topic="Newest"),
            _chat("silent", None),
        ]

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["$expand"] == "lastMessagePreview"
            return httpx.Response(200, json={"value": chats})

        result = _client(handler).list_conversations(days_back=7, max_results=10)

        assert [chat.id for chat in result] == ["newest", "recent"]
        assert result[0].topic == "Newest"

    def test_truncates_to_max_results(self):
        now = datetime.now(timezone.utc)
        chats = [_chat(f"chat-{i}", now - timedelta(hours=i)) for i in range(5)]

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"value": chats})

        result = _client(handler).list_conversations(days_back=7, max_results=2)

        assert [chat.id for chat in result] == ["chat-0", "chat-1"]

    def test_stops_paging_once_enough_recent_chats(self):
        now = datetime.now(timezone.utc)
        requested = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(request.url.params.get("$skiptoken"))
            return httpx.Response(
                200,
                json={
                    "value": [_chat("a", now), _chat("b", now - timedelta(hours=1))],
                    "@odata.nextLink": f"{BASE_URL}/me/chats?$skiptoken=next",
                },
            )

        result = _client(handler).list_conversations(days_back=7, max_results=2)

        assert len(result) == 2
        assert requested == [None]

    @pytest.mark.parametrize(
        "status, expected_calls, expected_sleeps",
        [(429, 3, [1, 2]), (503, 3, [1, 2]), (400, 1, []), (401, 1, [])],
    )
    def test_same_retry_policy_as_messages(self, sleeps, status, expected_calls, expected_sleeps):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(status, json={"error": {"code": "Nope"}})

        with pytest.raises(RemoteAPIError) as exc_info:
            _client(handler).list_conversations(days_back=7, max_results=10)

        assert len(calls) == expected_calls
        assert sleeps == expected_sleeps
        assert exc_info.value.attempts == expected_calls
        assert exc_info.value.status_code_seen == status
