from chat_digest.core.config import Settings
from chat_digest.core.errors import ValidationError
from chat_digest.services.summarizers.base import SummarizationProvider
from chat_digest.services.summarizers.claude import ClaudeProvider
from chat_digest.services.summarizers.ollama import OllamaProvider

PROVIDER_TYPES = ("ollama", "claude")


def get_summarization_provider(settings: Settings, provider_type: str | None = None) -> SummarizationProvider:
    """Build the backend named by ``provider_type`` (default: ``settings.ai_provider``)."""
    provider_type = (provider_type or settings.ai_provider).lower()

    if provider_type == "ollama":
        return OllamaProvider(
            base_url=settings.ollama_base_url,
            model=settings.ollama_model,
            timeout=settings.ollama_timeout_seconds,
        )
    if provider_type == "claude":
        return ClaudeProvider(
            api_key=settings.anthropic_api_key,
            model=settings.claude_model,
            max_tokens=settings.claude_max_tokens,
        )

    raise ValidationError(
        f"Unknown AI provider: {provider_type}",
        details=[{"field": "provider", "message": f"must be one of {', '.join(PROVIDER_TYPES)}"}],
    )
