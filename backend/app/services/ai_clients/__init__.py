"""
AI Clients package for summary providers.

This package provides a unified interface for the supported providers:
- ClaudeClient: Anthropic Claude API (anthropic SDK)
- GeminiClient: Google Gemini generateContent API (httpx)
- PerplexityClient: Perplexity chat completions API (httpx)

Usage:
    from app.services.ai_clients import create_client, BaseAIClient

    # Type hint for any AI client
    async def summarize(client: BaseAIClient, prompt: str) -> str:
        text, _ = await client.generate(prompt)
        return text

    async with create_client(ProviderKey.ANTHROPIC, settings) as client:
        text, usage = await client.chat(messages)
"""

from app.config import Settings
from app.models.schemas import ProviderKey
from app.services.ai_clients.base import (
    AIClientConfig,
    AIClientConnectionError,
    AIClientError,
    AIClientOutputError,
    AIClientResponseError,
    AIClientTimeoutError,
    BaseAIClient,
    BaseAIClientImpl,
    ChatUsage,
)
from app.services.ai_clients.claude_client import ClaudeClient
from app.services.ai_clients.gemini_client import GeminiClient
from app.services.ai_clients.http_client import HTTPAIClient
from app.services.ai_clients.perplexity_client import PerplexityClient

CLIENT_CLASSES: dict[ProviderKey, type] = {
    ProviderKey.ANTHROPIC: ClaudeClient,
    ProviderKey.GOOGLE_GEMINI: GeminiClient,
    ProviderKey.PERPLEXITY: PerplexityClient,
}


def create_client(provider: ProviderKey, settings: Settings) -> BaseAIClientImpl:
    """
    Create the client for a provider from settings.

    Raises:
        ValueError: If the provider's API key is not configured
    """
    return CLIENT_CLASSES[provider].from_settings(settings)


__all__ = [
    # Protocol and base classes
    "BaseAIClient",
    "BaseAIClientImpl",
    "HTTPAIClient",
    "AIClientConfig",
    "ChatUsage",
    # Errors
    "AIClientError",
    "AIClientTimeoutError",
    "AIClientConnectionError",
    "AIClientResponseError",
    "AIClientOutputError",
    # Implementations
    "ClaudeClient",
    "GeminiClient",
    "PerplexityClient",
    # Factory
    "CLIENT_CLASSES",
    "create_client",
]
