"""Summarization backend interface"""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from chat_digest.models.message import CachedMessage
from chat_digest.schemas.summary import SummaryOutput
from chat_digest.services.summarizers.parsing import parse_summary_response

PROMPT_TEMPLATE = """Summarize the following Teams chat conversation from {period}.

Focus on:
1. Key discussion topics and themes
2. Decisions that were made
3. Action items and who they're assigned to
4. Any blockers or concerns raised
5. Important links or resources mentioned

Messages:
{messages}

Provide a concise summary in the following format:
Overview: (2-3 sentences)

Key Decisions: (bullet points)

Action Items: (bullet points with @mentions)

Blockers: (if any, otherwise "None")

Resources: (links mentioned, otherwise "None")"""


def format_messages(messages: Sequence[CachedMessage]) -> str:
    ordered = sorted(messages, key=lambda message: message.created_at)
    lines = []
    for message in ordered:
        author = message.author or "Unknown"
        timestamp = message.created_at.strftime("%Y-%m-%d %H:%M:%S")
        lines.append(f"[{timestamp}] {author}: {message.content or ''}")
    return "\n".join(lines)


def build_prompt(messages: Sequence[CachedMessage], period_label: str) -> str:
    return PROMPT_TEMPLATE.format(period=period_label, messages=format_messages(messages))


class SummarizationProvider(ABC):
    """One language-model backend.

    Implementations issue exactly one backend call per attempt and apply
    their own retry policy; callers only see the final text or a
    ``SummarizationError`` subclass.
    """

    name: str = ""

    @abstractmethod
    def generate_summary(self, messages: Sequence[CachedMessage], period_label: str) -> str:
        """Return the raw summary text for ``messages``."""

    def parse_summary_response(self, raw_text: str) -> SummaryOutput:
        return parse_summary_response(raw_text)

    def get_name(self) -> str:
        return self.name
