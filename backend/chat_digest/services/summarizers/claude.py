"""Hosted Claude summarization backend"""

import logging
import time
from collections.abc import Sequence
from typing import Any

import anthropic

from chat_digest.core.errors import ClaudeAPIError
from chat_digest.models.message import CachedMessage
from chat_digest.services.summarizers.base import SummarizationProvider, build_prompt

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
# 529 is Anthropic's "overloaded"
RETRIABLE_STATUS = frozenset({429, 500, 503, 529})


class ClaudeProvider(SummarizationProvider):
    name = "Claude"

    def __init__(
        self,
        *,
        api_key: str | None,
        model: str = "claude-sonnet-4-20250514",
        max_tokens: int = 4096,
        client: Any = None,
    ) -> None:
        if not api_key and client is None:
            raise ClaudeAPIError("ANTHROPIC_API_KEY is not set")
        self._api_key = api_key
        self._model = model
        self._max_tokens = max_tokens
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            # Retries are handled below so the policy stays visible in one place
            self._client = anthropic.Anthropic(api_key=self._api_key, max_retries=0)
        return self._client

    def generate_summary(self, messages: Sequence[CachedMessage], period_label: str) -> str:
        """
        Generate a summary with the Anthropic Messages API.

        Rate limits, overloads and 500/503 are retried with 1s/2s backoff;
        authentication and request errors fail on the first attempt.

        Raises:
            ClaudeAPIError: Empty input, permanent error, or retries exhausted
        """
        if not messages:
            raise ClaudeAPIError("Cannot generate summary from empty message list")

        prompt = build_prompt(messages, period_label)
        client = self._get_client()

        last_error: Exception | None = None
        last_status: int | None = None
        for attempt in range(MAX_ATTEMPTS):
            logger.info(f"Calling Claude with model {self._model} ({attempt + 1}/{MAX_ATTEMPTS})")
            logger.debug(f"Prompt length: {len(prompt)} characters")
            try:
                response = client.messages.create(
                    model=self._model,
                    max_tokens=self._max_tokens,
                    messages=[{"role": "user", "content": prompt}],
                )
            except anthropic.APIStatusError as e:
                last_error = e
                last_status = e.status_code
                if last_status not in RETRIABLE_STATUS:
                    logger.error(f"Claude API error {last_status}: {e.message}")
                    raise ClaudeAPIError(
                        f"Claude API returned {last_status}",
                        attempts=attempt + 1,
                        last_status=last_status,
                    ) from e
            except anthropic.APIConnectionError as e:
                last_error = e
                last_status = None
            else:
                text = "\n".join(block.text for block in response.content if block.type == "text")
                usage = response.usage
                logger.info(f"Claude token usage: {usage.input_tokens} in, {usage.output_tokens} out")
                logger.debug(f"Claude response: {text[:200]}")
                return text

            if attempt == MAX_ATTEMPTS - 1:
                break
            delay = 2**attempt
            logger.warning(f"Claude retriable error ({last_status or type(last_error).__name__}), waiting {delay}s")
            time.sleep(delay)

        raise ClaudeAPIError(
            f"Failed to generate summary after {MAX_ATTEMPTS} attempts",
            attempts=MAX_ATTEMPTS,
            last_status=last_status,
        ) from last_error
