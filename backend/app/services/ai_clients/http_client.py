"""
Shared httpx plumbing for REST-based AI providers.

Subclasses describe the provider wire format (endpoint, headers, body,
response extraction); this base performs the POST with retry on transient
transport errors and maps failures to AIClientError subclasses.
"""

import logging
from abc import abstractmethod

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from app.services.ai_clients.base import (
    AIClientConfig,
    AIClientConnectionError,
    AIClientResponseError,
    AIClientTimeoutError,
    BaseAIClientImpl,
    ChatUsage,
    describe_status_error,
)

logger = logging.getLogger(__name__)

# Retry configuration for transient errors
RETRY_DECORATOR = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=30),
    retry=retry_if_exception_type((httpx.ConnectError, httpx.TimeoutException)),
    reraise=True,
)


class HTTPAIClient(BaseAIClientImpl):
    """
    Base class for providers called over plain HTTPS.

    Subclasses must implement:
        - provider: Provider key for errors and logs
        - build_request(): (url, headers, body) for a chat call
        - parse_response(): (content, usage) from the JSON response
    """

    provider: str

    def __init__(
        self,
        config: AIClientConfig,
        default_model: str,
        default_max_tokens: int = 4096,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize HTTP client.

        Args:
            config: AI client configuration (base_url, api_key, timeout)
            default_model: Model used when the caller passes none
            default_max_tokens: Max output tokens when the caller passes none
            http_client: Preconfigured httpx client (created if None)
        """
        super().__init__(config)
        if not config.api_key:
            raise ValueError(f"{type(self).__name__} requires API key.")

        self.default_model = default_model
        self.default_max_tokens = default_max_tokens
        self.http_client = http_client or httpx.AsyncClient(timeout=config.timeout)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.http_client.aclose()

    @abstractmethod
    def build_request(
        self,
        messages: list[dict],
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> tuple[str, dict, dict]:
        """Build (url, headers, json body) for a chat call."""
        pass

    @abstractmethod
    def parse_response(self, data: dict) -> tuple[str | None, ChatUsage]:
        """Extract (content, usage) from the response JSON."""
        pass

    async def chat(
        self,
        messages: list[dict],
        model: str | None = None,
        temperature: float = 0.3,
        max_tokens: int | None = None,
    ) -> tuple[str, ChatUsage]:
        """
        Chat completion over HTTP.

        Raises:
            AIClientTimeoutError: Request timed out (after retries)
            AIClientConnectionError: Service unreachable (after retries)
            AIClientResponseError: Error status or response without content
        """
        model = model or self.default_model
        max_tokens = max_tokens or self.default_max_tokens
        url, headers, body = self.build_request(messages, model, temperature, max_tokens)

        logger.debug(f"{self.provider} chat: model={model}, messages={len(messages)}")

        try:
            data = await self._post(url, headers, body)

        except httpx.TimeoutException as e:
            logger.error(f"{self.provider} timeout with {model}: {e}")
            raise AIClientTimeoutError(
                f"{self.provider} request timeout",
                provider=self.provider,
                model=model,
                cause=e,
            ) from e

        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            message = _error_message(e.response) or f"{self.provider} API error: {status}"
            logger.error(f"{self.provider} API error: {status} - {message}")
            raise AIClientResponseError(
                describe_status_error(status, message),
                provider=self.provider,
                model=model,
                status_code=status,
                response_body=e.response.text[:500],
                cause=e,
            ) from e

        except httpx.TransportError as e:
            logger.error(f"Cannot connect to {self.provider}: {e}")
            raise AIClientConnectionError(
                f"Cannot connect to {self.provider} API",
                provider=self.provider,
                cause=e,
            ) from e

        content, usage = self.parse_response(data)
        if not content:
            logger.error(f"No content in {self.provider} response, keys: {list(data.keys())}")
            raise AIClientResponseError(
                f"No content returned from {self.provider} API",
                provider=self.provider,
                model=model,
            )

        logger.info(
            f"{self.provider} response: {len(content)} chars, "
            f"tokens: {usage.input_tokens} in / {usage.output_tokens} out"
        )
        return content, usage

    @RETRY_DECORATOR
    async def _post(self, url: str, headers: dict, body: dict) -> dict:
        response = await self.http_client.post(url, headers=headers, json=body)
        response.raise_for_status()
        return response.json()


def _error_message(response: httpx.Response) -> str | None:
    """error.message from a JSON error body, if present."""
    try:
        data = response.json()
    except ValueError:
        return None
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict):
        return error.get("message")
    return None
