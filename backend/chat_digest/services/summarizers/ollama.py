"""Self-hosted Ollama summarization backend"""

import logging
import time
from collections.abc import Sequence

import httpx

from chat_digest.core.errors import OllamaError
from chat_digest.models.message import CachedMessage
from chat_digest.services.summarizers.base import SummarizationProvider, build_prompt

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 2
RETRY_DELAY_SECONDS = 1.0


class OllamaProvider(SummarizationProvider):
    name = "Ollama"

    def __init__(
        self,
        *,
        base_url: str = "http://localhost:11434",
        model: str = "llama3",
        timeout: float = 60.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._timeout = timeout
        self._http_client = http_client

    def generate_summary(self, messages: Sequence[CachedMessage], period_label: str) -> str:
        """
        Generate a summary with one ``/api/generate`` call per attempt.

        Timeouts and refused connections are retried once after 1s; any
        HTTP error status fails immediately.

        Raises:
            OllamaError: Empty input, error status, or retries exhausted
        """
        if not messages:
            raise OllamaError("Cannot generate summary from empty message list")

        prompt = build_prompt(messages, period_label)
        payload = {"model": self._model, "prompt": prompt, "stream": False}
        url = f"{self._base_url}/api/generate"

        last_error: Exception | None = None
        for attempt in range(MAX_ATTEMPTS):
            logger.info(f"Calling Ollama at {self._base_url} with model {self._model} ({attempt + 1}/{MAX_ATTEMPTS})")
            logger.debug(f"Prompt length: {len(prompt)} characters")
            try:
                response = self._post(url, payload)
            except (httpx.TimeoutException, httpx.ConnectError) as e:
                last_error = e
                if attempt == MAX_ATTEMPTS - 1:
                    break
                logger.warning(f"Ollama unreachable ({type(e).__name__}), retrying in {RETRY_DELAY_SECONDS:.0f}s")
                time.sleep(RETRY_DELAY_SECONDS)
                continue
            except httpx.HTTPError as e:
                raise OllamaError(f"Ollama request failed: {type(e).__name__}", attempts=attempt + 1) from e

            if response.status_code >= 400:
                logger.error(f"Ollama returned {response.status_code}: {response.text[:200]}")
                raise OllamaError(
                    f"Ollama API returned {response.status_code}: {response.reason_phrase}",
                    attempts=attempt + 1,
                    last_status=response.status_code,
                )

            try:
                result = response.json()
                text = result["response"]
            except (ValueError, KeyError, TypeError) as e:
                raise OllamaError("Ollama returned an unexpected response", attempts=attempt + 1) from e

            duration_s = (result.get("total_duration") or 0) / 1_000_000_000
            logger.info(f"Ollama generated {result.get('eval_count', '?')} tokens in {duration_s:.2f}s")
            logger.debug(f"Ollama response: {text[:200]}")
            return text

        raise OllamaError(
            f"Failed to generate summary after {MAX_ATTEMPTS} attempts",
            attempts=MAX_ATTEMPTS,
        ) from last_error

    def _post(self, url: str, payload: dict) -> httpx.Response:
        if self._http_client is not None:
            return self._http_client.post(url, json=payload, timeout=self._timeout)
        with httpx.Client(timeout=self._timeout) as client:
            return client.post(url, json=payload)
