"""Shared fixtures: fake collaborators and a pipeline wired to them."""

import asyncio

import pytest

from app.config import Settings
from app.models.schemas import (
    ALL,
    ALL_PROVIDERS,
    Episode,
    ProcessedTranscript,
    ProviderKey,
    SummaryResult,
    TranscriptFetchResult,
    TranscriptSegment,
    UrlType,
    VideoMetadata,
)
from app.services.pipeline import InMemorySharedState, PipelineDeps
from app.services.pipeline.orchestrator import SummarizePipeline


def make_segments(*texts: str) -> list[TranscriptSegment]:
    return [
        TranscriptSegment(text=text, start=float(i * 5), duration=5.0)
        for i, text in enumerate(texts)
    ]


class FakeFetcher:
    """Transcript-fetch collaborator returning a canned result."""

    def __init__(self, result: TranscriptFetchResult | None = None):
        self.result = result or TranscriptFetchResult(
            success=True,
            segments=make_segments(
                "Welcome to the show everyone.",
                "Today we talk about building products.",
            ),
            video_id="abc123",
            title="Episode 42",
            channel_title="The Podcast",
        )
        self.calls: list[str] = []
        self.gate: asyncio.Event | None = None

    async def __call__(self, url: str) -> TranscriptFetchResult:
        self.calls.append(url)
        if self.gate is not None:
            await self.gate.wait()
        return self.result


class FakeProcessor:
    """Processing collaborator; returns None when failing."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls = 0

    async def __call__(self, segments, options) -> ProcessedTranscript | None:
        self.calls += 1
        if self.fail:
            return None
        return ProcessedTranscript(
            segments=list(segments),
            word_count=sum(len(s.text.split()) for s in segments),
        )


class FakeProviders:
    def __init__(self, configured: dict[ProviderKey, bool] | None = None):
        self.configured = configured if configured is not None else {
            ProviderKey.ANTHROPIC: True,
            ProviderKey.GOOGLE_GEMINI: False,
            ProviderKey.PERPLEXITY: False,
        }

    async def __call__(self) -> dict[ProviderKey, bool]:
        return dict(self.configured)


class FakeGenerator:
    """Summary-generation collaborator recording every request."""

    def __init__(self):
        self.requests: list[tuple] = []

    async def __call__(self, text, provider, style, url) -> list[SummaryResult]:
        self.requests.append((text, provider, style, url))
        providers = ALL_PROVIDERS if provider == ALL else [provider]
        return [
            SummaryResult(
                provider=p,
                model_name=f"{p.value}-model",
                summary=f"Summary by {p.value}",
                success=True,
            )
            for p in providers
        ]


@pytest.fixture
def settings() -> Settings:
    return Settings(pipeline_auto_close_delay=0.01, _env_file=None)


@pytest.fixture
def episode() -> Episode:
    return Episode(
        url="https://www.youtube.com/watch?v=abc123",
        title="Episode 42",
        video_id="abc123",
    )


@pytest.fixture
def shared() -> InMemorySharedState:
    """Shared state holding a previously loaded video."""
    return InMemorySharedState(
        video_metadata=VideoMetadata(
            id="old999", title="Previous video", url="https://youtu.be/old999"
        ),
        raw_segments=make_segments("Old segment text here."),
        current_url="https://youtu.be/old999",
        url_type=UrlType.VIDEO,
    )


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def processor() -> FakeProcessor:
    return FakeProcessor()


@pytest.fixture
def providers() -> FakeProviders:
    return FakeProviders()


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def deps(fetcher, processor, providers, generator, shared) -> PipelineDeps:
    return PipelineDeps(
        fetch_transcript=fetcher,
        process_transcript=processor,
        provider_config=providers,
        generate_summary=generator,
        shared=shared.accessors(),
    )


@pytest.fixture
def pipeline(deps, settings) -> SummarizePipeline:
    return SummarizePipeline(deps, settings)
