"""
Google Gemini API client implementation.

Calls the generateContent REST endpoint with httpx.
"""

import httpx

from app.config import Settings, load_provider_config
from app.models.schemas import ProviderKey
from app.services.ai_clients.base import AIClientConfig, ChatUsage
from app.services.ai_clients.http_client import HTTPAIClient

DEFAULT_GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"


class GeminiClient(HTTPAIClient):
    """
    Async client for the Gemini generateContent API.

    System messages are sent as systemInstruction; assistant turns use the
    "model" role.

    Example:
        async with GeminiClient.from_settings(settings) as client:
            text, usage = await client.generate(full_prompt)
    """

    provider = ProviderKey.GOOGLE_GEMINI.value

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
    ) -> "GeminiClient":
        """
        Create GeminiClient from application settings.

        Raises:
            ValueError: If GOOGLE_GEMINI_API_KEY not set
        """
        api_key = settings.api_key_for(ProviderKey.GOOGLE_GEMINI)
        if not api_key:
            raise ValueError(
                "GOOGLE_GEMINI_API_KEY is not configured. Please set it in your .env file."
            )

        provider_config = load_provider_config(ProviderKey.GOOGLE_GEMINI, settings)
        config = AIClientConfig(
            base_url=provider_config.get("base_url", DEFAULT_GEMINI_URL),
            api_key=api_key,
            timeout=settings.llm_timeout,
            max_retries=settings.llm_max_retries,
        )
        return cls(
            config=config,
            default_model=provider_config.get("model", DEFAULT_GEMINI_MODEL),
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
        system_parts = []
        contents = []
        for msg in messages:
            if msg["role"] == "system":
                system_parts.append({"text": msg["content"]})
                continue
            role = "model" if msg["role"] == "assistant" else "user"
            contents.append({"role": role, "parts": [{"text": msg["content"]}]})

        body: dict = {
            "contents": contents,
            "generationConfig": {
                "maxOutputTokens": max_tokens,
                "temperature": temperature,
            },
        }
        if system_parts:
            body["systemInstruction"] = {"parts": system_parts}

        url = f"{self.config.base_url}/models/{model}:generateContent"
        # Key in a header so it never appears in logged URLs
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self.config.api_key,
        }
        return url, headers, body

    def parse_response(self, data: dict) -> tuple[str | None, ChatUsage]:
        parts: list[dict] = []
        candidates = data.get("candidates") or []
        if candidates:
            parts = (candidates[0].get("content") or {}).get("parts") or []
        content = "".join(part.get("text", "") for part in parts) or None

        usage_data = data.get("usageMetadata") or {}
        usage = ChatUsage(
            input_tokens=usage_data.get("promptTokenCount", 0),
            output_tokens=usage_data.get("candidatesTokenCount", 0),
        )
        return content, usage
