"""
Shared pieces of the summary provider clients.

Every client answers chat(messages) with (text, ChatUsage) and raises the
AIClientError family, so SummaryGenerator can treat Anthropic, Gemini and
Perplexity alike and decide retries from the error type alone.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

Message = dict[str, str]


@dataclass
class AIClientConfig:
    """Endpoint, credentials and limits for one provider client."""

    base_url: str
    timeout: float = 120.0
    api_key: str | None = None
    max_retries: int = 3


@dataclass
class ChatUsage:
    """Token counts reported by the provider (zeros when it reports none)."""

    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


@runtime_checkable
class BaseAIClient(Protocol):
    """
    What SummaryGenerator needs from a provider client.

    Example:
        async with create_client(ProviderKey.PERPLEXITY) as client:
            text, usage = await client.chat(messages, temperature=0.3)
    """

    async def generate(
        self,
        prompt: str,
        model: str | None = None,
        max_tokens: int | None = None,
    ) -> tuple[str, ChatUsage]: ...

    async def chat(
        self,
        messages: list[Message],
        model: str | None = None,
        temperature: float = 0.3,
        max_tokens: int | None = None,
    ) -> tuple[str, ChatUsage]: ...

    async def close(self) -> None: ...

    async def __aenter__(self) -> "BaseAIClient": ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None: ...


# ═══════════════════════════════════════════════════════════════════════════
# Errors
# ═══════════════════════════════════════════════════════════════════════════


class AIClientError(Exception):
    """
    A summary request to a provider failed.

    ``message`` is user-facing and ends up in SummaryResult.error; ``str()``
    prefixes it with the provider and model for logs.
    """

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        model: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.model = model
        self.cause = cause

    def __str__(self) -> str:
        origin = "/".join(part for part in (self.provider, self.model) if part)
        return f"[{origin}] {self.message}" if origin else self.message


class AIClientTimeoutError(AIClientError):
    """Provider did not answer within the configured timeout."""


class AIClientConnectionError(AIClientError):
    """Provider endpoint could not be reached."""


class AIClientResponseError(AIClientError):
    """Provider answered with an error status or an empty body."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.status_code = status_code
        self.response_body = response_body

    @property
    def is_transient(self) -> bool:
        """Rate limits and server errors may succeed on retry."""
        return self.status_code is not None and (
            self.status_code == 429 or self.status_code >= 500
        )


class AIClientOutputError(AIClientError):
    """The model answered but the text is not a usable summary."""


def describe_status_error(status_code: int, message: str) -> str:
    """User-facing message for an HTTP error status."""
    if status_code == 429:
        return f"Rate limit exceeded: {message}"
    if status_code in (401, 403):
        return f"Invalid API key: {message}"
    return message


# ═══════════════════════════════════════════════════════════════════════════
# Client base
# ═══════════════════════════════════════════════════════════════════════════


class BaseAIClientImpl(ABC):
    """Async context manager plus generate() on top of a subclass's chat()."""

    def __init__(self, config: AIClientConfig):
        self.config = config

    async def generate(
        self,
        prompt: str,
        model: str | None = None,
        max_tokens: int | None = None,
    ) -> tuple[str, ChatUsage]:
        return await self.chat(
            [{"role": "user", "content": prompt}],
            model=model,
            max_tokens=max_tokens,
        )

    @abstractmethod
    async def chat(
        self,
        messages: list[Message],
        model: str | None = None,
        temperature: float = 0.3,
        max_tokens: int | None = None,
    ) -> tuple[str, ChatUsage]: ...

    @abstractmethod
    async def close(self) -> None: ...

    async def __aenter__(self) -> "BaseAIClientImpl":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def split_system_message(messages: list[Message]) -> tuple[str | None, list[Message]]:
    """Pull the system prompt out of a message list (Anthropic and Gemini take it separately)."""
    system = None
    rest = []
    for msg in messages:
        if msg["role"] == "system":
            system = msg["content"]
        else:
            rest.append({"role": msg["role"], "content": msg["content"]})
    return system, rest
