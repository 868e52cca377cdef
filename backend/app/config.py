"""
Application configuration and settings.
"""

from functools import lru_cache
from pathlib import Path

import yaml
from pydantic_settings import BaseSettings

from app.models.schemas import ProviderKey, SummaryStyle

# backend/config (prompts, providers.yaml)
DEFAULT_CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"

# Hardcoded last-resort prompt if even fallback.md is missing
LAST_RESORT_PROMPT = (
    "You are an expert analyst. Summarize the following podcast transcript "
    "with actionable insights. Only use information explicitly stated in the "
    "transcript."
)

# Prompt templates larger than this are treated as tampered with
MAX_PROMPT_SIZE = 50_000


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # AI providers (a provider is "configured" when its key is set)
    anthropic_api_key: str | None = None
    google_gemini_api_key: str | None = None
    perplexity_api_key: str | None = None

    # Model overrides (None = providers.yaml default)
    anthropic_model: str | None = None
    anthropic_model_name: str | None = None
    google_gemini_model: str | None = None
    google_gemini_model_name: str | None = None
    perplexity_model: str | None = None
    perplexity_model_name: str | None = None

    llm_timeout: int = 120
    llm_max_retries: int = 3
    llm_temperature: float = 0.3
    max_transcript_length: int = 500_000

    # Transcript fetching
    subtitle_language: str = "en"
    fetch_timeout: int = 30

    # Pipeline
    pipeline_auto_close_delay: float = 0.5  # Seconds before auto-dismiss on success
    summary_style: SummaryStyle = SummaryStyle.BULLETS

    # Paths
    config_dir: Path = DEFAULT_CONFIG_DIR
    prompts_dir: Path | None = None  # External prompts directory (overrides built-in)

    # Logging
    log_level: str = "INFO"
    log_format: str = "structured"  # "simple" or "structured"

    # Per-module log levels (optional overrides)
    log_level_pipeline: str | None = None
    log_level_summary: str | None = None
    log_level_fetcher: str | None = None

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    def api_key_for(self, provider: ProviderKey) -> str | None:
        """API key for a provider, or None if not configured."""
        key = getattr(self, f"{_settings_prefix(provider)}_api_key")
        if key and key.strip():
            return key.strip()
        return None


def _settings_prefix(provider: ProviderKey) -> str:
    """Settings field prefix: "google-gemini" -> "google_gemini"."""
    return provider.value.replace("-", "_")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def load_providers_config(settings: Settings | None = None) -> dict:
    """
    Load provider defaults from config/providers.yaml.

    Args:
        settings: Optional settings instance

    Returns:
        Mapping of provider key -> {model, model_name, max_output_tokens, ...}
    """
    if settings is None:
        settings = get_settings()

    providers_path = settings.config_dir / "providers.yaml"
    with open(providers_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f).get("providers", {})


def load_provider_config(provider: ProviderKey, settings: Settings | None = None) -> dict:
    """
    Provider configuration with environment overrides applied.

    Lookup order for model / model_name:
    1. Settings (e.g. ANTHROPIC_MODEL, ANTHROPIC_MODEL_NAME)
    2. providers.yaml defaults

    Args:
        provider: Provider key
        settings: Optional settings instance

    Returns:
        Dict with model, model_name, max_output_tokens

    Raises:
        KeyError: If provider is missing from providers.yaml
    """
    if settings is None:
        settings = get_settings()

    defaults = load_providers_config(settings)
    if provider.value not in defaults:
        raise KeyError(f"Provider configuration not found for: {provider.value}")

    config = dict(defaults[provider.value])
    prefix = _settings_prefix(provider)
    model = getattr(settings, f"{prefix}_model")
    model_name = getattr(settings, f"{prefix}_model_name")
    if model:
        config["model"] = model
    if model_name:
        config["model_name"] = model_name
    return config


def load_prompt(
    style: SummaryStyle = SummaryStyle.BULLETS,
    video_url: str | None = None,
    settings: Settings | None = None,
) -> str:
    """
    Load the summary prompt template for a style.

    Lookup order (first found wins):
    1. prompts_dir/{style}.md (external)
    2. config_dir/prompts/{style}.md (built-in)
    3. fallback.md in the same order
    4. LAST_RESORT_PROMPT

    For the bullets style the video URL is appended so the model can build
    timestamp links.

    Args:
        style: Summary style
        video_url: Source video URL (bullets only)
        settings: Optional settings instance

    Returns:
        Prompt template content
    """
    if settings is None:
        settings = get_settings()

    content = _read_prompt(f"{style.value}.md", settings)
    if content is None:
        content = _read_prompt("fallback.md", settings)
        if content is None:
            return LAST_RESORT_PROMPT
        return content

    if style == SummaryStyle.BULLETS and video_url:
        content += (
            "\n\n## Video URL\n\n"
            f"Use this exact URL for all timestamp links: {video_url}"
        )
    return content


def _read_prompt(filename: str, settings: Settings) -> str | None:
    """Read a prompt file from the external or built-in prompts directory."""
    paths_to_check: list[Path] = []
    if settings.prompts_dir and settings.prompts_dir.exists():
        paths_to_check.append(settings.prompts_dir / filename)
    paths_to_check.append(settings.config_dir / "prompts" / filename)

    for path in paths_to_check:
        if not path.exists():
            continue
        content = path.read_text(encoding="utf-8").strip()
        if len(content) > MAX_PROMPT_SIZE:
            # Skip oversized templates, keep looking
            continue
        return content
    return None
