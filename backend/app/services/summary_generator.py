"""
Summary generator service.

Turns a transcript into one summary per requested provider. Every provider
call goes through the same workflow: load prompt -> build messages ->
chat with retry -> validate output.
"""

import asyncio
import logging
import re
import time
from typing import Callable

from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from app.config import Settings, get_settings, load_prompt, load_provider_config
from app.models.schemas import (
    ALL,
    ALL_PROVIDERS,
    ProviderKey,
    ProviderSelection,
    SummaryResult,
    SummaryStyle,
)
from app.services.ai_clients import (
    AIClientConnectionError,
    AIClientOutputError,
    AIClientResponseError,
    AIClientTimeoutError,
    BaseAIClientImpl,
    create_client,
)

logger = logging.getLogger(__name__)
perf_logger = logging.getLogger("app.perf")

# Responses that mean the model never looked at the transcript
REFUSAL_PATTERNS = [
    re.compile(r"you haven't.*provided.*transcript", re.IGNORECASE),
    re.compile(r"I need.*transcript", re.IGNORECASE),
    re.compile(r"please (share|provide).*transcript", re.IGNORECASE),
    re.compile(r"I appreciate your.*setup.*but", re.IGNORECASE),
    re.compile(r"I don't have.*transcript", re.IGNORECASE),
    re.compile(r"no transcript.*provided", re.IGNORECASE),
]

MIN_SUMMARY_LENGTH = 50

TECHNICAL_MARKER = "### 1. Tools & Technologies"
TECHNICAL_SECTIONS = [
    re.compile(r"###?\s*1\.\s*Tools", re.IGNORECASE),
    re.compile(r"###?\s*2\.\s*Workflows", re.IGNORECASE),
]

PROVIDER_DISPLAY_NAMES: dict[ProviderKey, str] = {
    ProviderKey.ANTHROPIC: "Anthropic",
    ProviderKey.GOOGLE_GEMINI: "Gemini",
    ProviderKey.PERPLEXITY: "Perplexity",
}

ClientFactory = Callable[[ProviderKey, Settings], BaseAIClientImpl]


def get_configured_providers(settings: Settings | None = None) -> dict[ProviderKey, bool]:
    """Which providers have a non-blank API key."""
    if settings is None:
        settings = get_settings()
    return {provider: settings.api_key_for(provider) is not None for provider in ALL_PROVIDERS}


def build_full_prompt(template: str, transcript: str) -> str:
    """Template and transcript in a single user prompt."""
    return f"{template}\n\n## Transcript\n\n{transcript}\n\nPlease provide your analysis:"


def build_messages(provider: ProviderKey, template: str, transcript: str) -> list[dict]:
    """
    Chat messages for a provider.

    Anthropic gets the template as the system prompt; the others receive
    template and transcript in one user message.
    """
    if provider == ProviderKey.ANTHROPIC:
        return [
            {"role": "system", "content": template},
            {
                "role": "user",
                "content": f"## Transcript\n\n{transcript}\n\nPlease provide your analysis:",
            },
        ]
    return [{"role": "user", "content": build_full_prompt(template, transcript)}]


def validate_output(content: str, provider: ProviderKey, template: str) -> None:
    """
    Reject refusals, truncated output and incomplete technical summaries.

    Raises:
        AIClientOutputError: Output is not a usable summary (retryable)
    """
    name = PROVIDER_DISPLAY_NAMES[provider]

    if any(pattern.search(content) for pattern in REFUSAL_PATTERNS):
        logger.warning(f"{name} returned a refusal response: {content[:200]!r}")
        raise AIClientOutputError(
            f"{name} did not process the transcript. Please try again.",
            provider=provider.value,
        )

    if len(content.strip()) < MIN_SUMMARY_LENGTH:
        logger.warning(f"{name} returned suspiciously short output ({len(content.strip())} chars)")
        raise AIClientOutputError(
            f"{name} returned an incomplete response.",
            provider=provider.value,
        )

    # Perplexity tends to drop the leading sections of the technical template
    if provider == ProviderKey.PERPLEXITY and TECHNICAL_MARKER in template:
        if not all(pattern.search(content) for pattern in TECHNICAL_SECTIONS):
            logger.warning(f"{name} returned incomplete technical summary")
            raise AIClientOutputError(
                f"{name} returned an incomplete summary (missing sections).",
                provider=provider.value,
            )


def is_retryable(error: BaseException) -> bool:
    """Output, timeout and connection errors retry; status errors only if transient."""
    if isinstance(error, (AIClientOutputError, AIClientTimeoutError, AIClientConnectionError)):
        return True
    return isinstance(error, AIClientResponseError) and error.is_transient


class SummaryGenerator:
    """
    Summary generation service.

    Example:
        generator = SummaryGenerator(settings)
        results = await generator.generate(text, "all", SummaryStyle.BULLETS, url)
        for result in results:
            print(result.provider, result.success)
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client_factory: ClientFactory = create_client,
        retry_wait: wait_base | None = None,
    ):
        """
        Initialize summary generator.

        Args:
            settings: Application settings
            client_factory: Builds the AI client for a provider
            retry_wait: Wait strategy between attempts (exponential by default)
        """
        self.settings = settings or get_settings()
        self.client_factory = client_factory
        self.retry_wait = retry_wait or wait_exponential(multiplier=1, min=1, max=8)

    async def generate(
        self,
        transcript: str,
        provider: ProviderSelection,
        style: SummaryStyle | None = None,
        video_url: str | None = None,
    ) -> list[SummaryResult]:
        """
        Generate summaries for one provider or all of them.

        Provider failures never raise; they come back as results with
        success=False so that "all" keeps the other providers' output.

        Args:
            transcript: Transcript text
            provider: Provider key or "all"
            style: Summary style (settings default if None)
            video_url: Source URL for timestamp links

        Returns:
            One result per provider, in provider order

        Raises:
            ValueError: Transcript empty or too long
        """
        if not transcript or not transcript.strip():
            raise ValueError("Transcript is required and must be a non-empty string")
        max_length = self.settings.max_transcript_length
        if len(transcript) > max_length:
            raise ValueError(
                f"Transcript is too long. Maximum length is {max_length:,} characters."
            )

        style = style or self.settings.summary_style
        providers = ALL_PROVIDERS if provider == ALL else [ProviderKey(provider)]
        template = load_prompt(style, video_url, self.settings)

        start_time = time.time()
        logger.info(
            f"Generating summaries: providers={[p.value for p in providers]}, "
            f"style={style.value}, transcript={len(transcript)} chars"
        )

        results = await asyncio.gather(
            *(self.generate_for_provider(p, transcript, template) for p in providers)
        )

        elapsed = time.time() - start_time
        succeeded = sum(1 for r in results if r.success)
        perf_logger.info(
            f"PERF | summary | "
            f"providers={len(results)} | "
            f"succeeded={succeeded} | "
            f"input_chars={len(transcript)} | "
            f"time={elapsed:.1f}s"
        )
        return list(results)

    async def generate_for_provider(
        self,
        provider: ProviderKey,
        transcript: str,
        template: str,
    ) -> SummaryResult:
        """Generate one provider's summary, converting failures into a result."""
        try:
            model_name = load_provider_config(provider, self.settings).get(
                "model_name", provider.value
            )
        except KeyError:
            model_name = provider.value

        try:
            summary = await self._generate_with_retry(provider, transcript, template)
        except Exception as e:
            message = getattr(e, "message", None) or str(e)
            logger.error(f"{provider.value} summary failed: {message}")
            return SummaryResult(
                provider=provider,
                model_name=model_name,
                success=False,
                error=message,
            )

        logger.info(f"{provider.value} summary generated: {len(summary)} chars")
        return SummaryResult(
            provider=provider,
            model_name=model_name,
            summary=summary,
            success=True,
        )

    async def _generate_with_retry(
        self,
        provider: ProviderKey,
        transcript: str,
        template: str,
    ) -> str:
        messages = build_messages(provider, template, transcript)

        async with self.client_factory(provider, self.settings) as client:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.settings.llm_max_retries),
                wait=self.retry_wait,
                retry=retry_if_exception(is_retryable),
                reraise=True,
            ):
                with attempt:
                    number = attempt.retry_state.attempt_number
                    if number > 1:
                        logger.warning(f"{provider.value} attempt {number}")
                    content, _ = await client.chat(
                        messages,
                        temperature=self.settings.llm_temperature,
                    )
                    validate_output(content, provider, template)
        return content
