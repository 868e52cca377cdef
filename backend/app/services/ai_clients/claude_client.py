"""
Claude API client implementation.

Provides async client for Anthropic's Claude API.
Implements BaseAIClient protocol for chat completions; the SDK retries
transient errors itself (max_retries).
"""

import logging

from anthropic import AsyncAnthropic, APIConnectionError, APIStatusError, APITimeoutError

from app.config import Settings, load_provider_config
from app.models.schemas import ProviderKey
from app.services.ai_clients.base import (
    AIClientConfig,
    AIClientConnectionError,
    AIClientResponseError,
    AIClientTimeoutError,
    BaseAIClientImpl,
    ChatUsage,
    describe_status_error,
    split_system_message,
)

logger = logging.getLogger(__name__)

PROVIDER = ProviderKey.ANTHROPIC.value

# Default Claude model (overridden by providers.yaml / ANTHROPIC_MODEL)
DEFAULT_CLAUDE_MODEL = "claude-sonnet-4-5"
DEFAULT_MAX_TOKENS = 4096


class ClaudeClient(BaseAIClientImpl):
    """
    Async client for Anthropic's Claude API.

    System messages are sent as the system parameter; the transcript goes in
    the user message.

    Example:
        async with ClaudeClient.from_settings(settings) as client:
            text, usage = await client.chat([
                {"role": "system", "content": prompt_template},
                {"role": "user", "content": transcript_message},
            ])
    """

    def __init__(
        self,
        config: AIClientConfig,
        default_model: str = DEFAULT_CLAUDE_MODEL,
        default_max_tokens: int = DEFAULT_MAX_TOKENS,
    ):
        """
        Initialize Claude client.

        Args:
            config: AI client configuration with API key
            default_model: Default Claude model to use
            default_max_tokens: max_tokens when the caller passes none

        Raises:
            ValueError: If API key is not provided
        """
        super().__init__(config)
        self.default_model = default_model
        self.default_max_tokens = default_max_tokens

        if not config.api_key:
            raise ValueError(
                "ClaudeClient requires API key. "
                "Set ANTHROPIC_API_KEY environment variable."
            )

        self.client = AsyncAnthropic(
            api_key=config.api_key,
            timeout=config.timeout,
            max_retries=config.max_retries,
        )

        logger.debug(f"ClaudeClient initialized, model: {default_model}")

    @classmethod
    def from_settings(cls, settings: Settings) -> "ClaudeClient":
        """
        Create ClaudeClient from application settings.

        Raises:
            ValueError: If ANTHROPIC_API_KEY not set
        """
        api_key = settings.api_key_for(ProviderKey.ANTHROPIC)
        if not api_key:
            raise ValueError(
                "ANTHROPIC_API_KEY is not configured. Please set it in your .env file."
            )
        if not api_key.startswith("sk-ant-"):
            logger.warning("Anthropic API key format may be invalid, check ANTHROPIC_API_KEY")

        provider_config = load_provider_config(ProviderKey.ANTHROPIC, settings)
        config = AIClientConfig(
            base_url=provider_config.get("base_url", "https://api.anthropic.com"),
            api_key=api_key,
            timeout=settings.llm_timeout,
            max_retries=settings.llm_max_retries,
        )
        return cls(
            config=config,
            default_model=provider_config.get("model", DEFAULT_CLAUDE_MODEL),
            default_max_tokens=provider_config.get("max_output_tokens", DEFAULT_MAX_TOKENS),
        )

    async def close(self) -> None:
        """Close the client and release resources."""
        await self.client.close()
        logger.debug("ClaudeClient closed")

    async def chat(
        self,
        messages: list[dict],
        model: str | None = None,
        temperature: float = 0.3,
        max_tokens: int | None = None,
    ) -> tuple[str, ChatUsage]:
        """
        Chat completion using Claude Messages API.

        Args:
            messages: Chat messages; a "system" message becomes the system parameter
            model: Model name (client default if None)
            temperature: Sampling temperature
            max_tokens: Max tokens to generate (client default if None)

        Returns:
            Tuple of (response_content, ChatUsage)

        Raises:
            AIClientError: If chat completion fails
        """
        model = model or self.default_model
        max_tokens = max_tokens or self.default_max_tokens
        system_content, chat_messages = split_system_message(messages)

        logger.debug(
            f"Claude chat: model={model}, messages={len(chat_messages)}, "
            f"system={'yes' if system_content else 'no'}, max_tokens={max_tokens}"
        )

        try:
            kwargs = {
                "model": model,
                "max_tokens": max_tokens,
                "temperature": temperature,
                "messages": chat_messages,
            }
            if system_content:
                kwargs["system"] = system_content

            response = await self.client.messages.create(**kwargs)

            content = "".join(
                block.text for block in response.content if getattr(block, "type", None) == "text"
            )
            usage = ChatUsage(
                input_tokens=response.usage.input_tokens,
                output_tokens=response.usage.output_tokens,
            )

            # Log usage for cost monitoring
            logger.info(
                f"Claude response: {len(content)} chars, "
                f"tokens: {usage.input_tokens} in / {usage.output_tokens} out"
            )
            return content, usage

        except APITimeoutError as e:
            logger.error(f"Claude timeout: {e}")
            raise AIClientTimeoutError(
                "Claude request timeout",
                provider=PROVIDER,
                model=model,
                cause=e,
            ) from e

        except APIConnectionError as e:
            logger.error(f"Claude connection error: {e}")
            raise AIClientConnectionError(
                f"Cannot connect to Claude API: {e}",
                provider=PROVIDER,
                cause=e,
            ) from e

        except APIStatusError as e:
            logger.error(f"Claude API error: {e.status_code} - {e.message}")
            raise AIClientResponseError(
                describe_status_error(e.status_code, f"Claude API error: {e.message}"),
                provider=PROVIDER,
                model=model,
                status_code=e.status_code,
                response_body=str(e.body) if e.body else None,
                cause=e,
            ) from e
