"""
Perplexity API client implementation.

Calls the OpenAI-compatible /chat/completions endpoint with httpx.
"""

import httpx

from app.config import Settings, load_provider_config
from app.models.schemas import ProviderKey
from app.services.ai_clients.base import AIClientConfig, ChatUsage
from app.services.ai_clients.http_client import HTTPAIClient

DEFAULT_PERPLEXITY_URL = "https://api.perplexity.ai"
DEFAULT_PERPLEXITY_MODEL = "sonar"


class PerplexityClient(HTTPAIClient):
    """
    Async client for the Perplexity chat completions API.

    Example:
        async with PerplexityClient.from_settings(settings) as client:
            text, usage = await client.generate(full_prompt)
    """

    provider = ProviderKey.PERPLEXITY.value

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
    ) -> "PerplexityClient":
        """
        Create PerplexityClient from application settings.

        Raises:
            ValueError: If PERPLEXITY_API_KEY not set
        """
        api_key = settings.api_key_for(ProviderKey.PERPLEXITY)
        if not api_key:
            raise ValueError(
                "PERPLEXITY_API_KEY is not configured. Please set it in your .env file."
            )

        provider_config = load_provider_config(ProviderKey.PERPLEXITY, settings)
        config = AIClientConfig(
            base_url=provider_config.get("base_url", DEFAULT_PERPLEXITY_URL),
            api_key=api_key,
            timeout=settings.llm_timeout,
            max_retries=settings.llm_max_retries,
        )
        return cls(
            config=config,
            default_model=provider_config.get("model", DEFAULT_PERPLEXITY_MODEL),
            default_max_tokens=provider_config.get("max_output_tokens", 4096),
            http_client=http_client,
        )

    def build_request(
        self,
        messages: list[dict],
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> tuple[str, dict, dict]:
        url = f"{self.config.base_url}/chat/completions"
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.config.api_key}",
        }
        body = {
            "model": model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        return url, headers, body

    def parse_response(self, data: dict) -> tuple[str | None, ChatUsage]:
        choices = data.get("choices") or []
        content = ((choices[0].get("message") or {}).get("content")) if choices else None

        usage_data = data.get("usage") or {}
        usage = ChatUsage(
            input_tokens=usage_data.get("prompt_tokens", 0),
            output_tokens=usage_data.get("completion_tokens", 0),
        )
        return content, usage
