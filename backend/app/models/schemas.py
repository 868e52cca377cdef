"""
Pydantic models for the episode summarize pipeline.
"""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field


class StepStatus(str, Enum):
    """Status of a single pipeline step."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class ProviderKey(str, Enum):
    """Summary-generation backends."""
    ANTHROPIC = "anthropic"
    GOOGLE_GEMINI = "google-gemini"
    PERPLEXITY = "perplexity"


# Order matters: "all" fans out in this order
ALL_PROVIDERS: list[ProviderKey] = [
    ProviderKey.ANTHROPIC,
    ProviderKey.GOOGLE_GEMINI,
    ProviderKey.PERPLEXITY,
]

ALL = "all"

# Either a single provider or every provider at once
ProviderSelection = ProviderKey | Literal["all"]


class SummaryStyle(str, Enum):
    """Prompt style for summary generation."""
    BULLETS = "bullets"
    NARRATIVE = "narrative"
    TECHNICAL = "technical"


class UrlType(str, Enum):
    """Kind of URL currently loaded in the application."""
    VIDEO = "video"
    PLAYLIST = "playlist"
    CHANNEL = "channel"


# ═══════════════════════════════════════════════════════════════════════════
# Transcript Models
# ═══════════════════════════════════════════════════════════════════════════


class TranscriptSegment(BaseModel):
    """Single caption segment."""

    text: str
    start: float
    duration: float
    speaker: str | None = None

    @computed_field
    @property
    def start_time(self) -> str:
        """Formatted start time (HH:MM:SS)."""
        h = int(self.start // 3600)
        m = int((self.start % 3600) // 60)
        s = int(self.start % 60)
        return f"{h:02d}:{m:02d}:{s:02d}"


class ProcessedTranscript(BaseModel):
    """Transcript after normalization, deduplication and speaker detection."""

    segments: list[TranscriptSegment]
    speakers: list[str] = Field(default_factory=list)
    total_duration: float = 0
    word_count: int = 0

    @computed_field
    @property
    def full_text(self) -> str:
        """Segment texts joined one per line."""
        return "\n".join(seg.text for seg in self.segments)


class ProcessingOptions(BaseModel):
    """Options for transcript processing."""

    speaker_detection: bool = True
    deduplication: bool = True
    remove_timestamps: bool = False
    normalize_text: bool = True
    max_segment_length: int = Field(default=1000, ge=1)


class TranscriptFetchResult(BaseModel):
    """Result of fetching captions for a video URL.

    Fetchers never raise; failures come back with success=False and an
    error message suitable for display.
    """

    success: bool
    segments: list[TranscriptSegment] = Field(default_factory=list)
    video_id: str | None = None
    title: str | None = None
    channel_title: str | None = None
    published_at: str | None = None
    duration: float | None = None
    thumbnail: str | None = None
    language: str | None = None
    error: str | None = None


# ═══════════════════════════════════════════════════════════════════════════
# Episode / Video Metadata
# ═══════════════════════════════════════════════════════════════════════════


class Episode(BaseModel):
    """An item selected for summarization (e.g. from a favorite channel)."""

    url: str
    title: str
    video_id: str | None = None
    thumbnail: str | None = None
    channel_title: str | None = None
    published_at: str | None = None
    duration: float | None = None


class VideoMetadata(BaseModel):
    """Metadata of the video currently loaded in the application."""

    id: str
    title: str
    url: str
    thumbnail: str | None = None
    channel_title: str | None = None
    published_at: str | None = None
    duration: float | None = None


# ═══════════════════════════════════════════════════════════════════════════
# AI Summary Models
# ═══════════════════════════════════════════════════════════════════════════


class SummaryResult(BaseModel):
    """Outcome of one provider's summary request."""

    provider: ProviderKey
    model_name: str
    summary: str = ""
    success: bool
    error: str | None = None


class SummaryRequest(BaseModel):
    """Request body for direct summary generation."""

    transcript: str
    provider: ProviderSelection
    summary_style: SummaryStyle = SummaryStyle.BULLETS
    video_url: str | None = None


class SummaryResponse(BaseModel):
    """Response with one result per requested provider."""

    success: bool = True
    summaries: list[SummaryResult]


class ProviderConfigResponse(BaseModel):
    """Which providers have credentials (booleans only)."""

    success: bool = True
    providers: dict[ProviderKey, bool]


# ═══════════════════════════════════════════════════════════════════════════
# Pipeline State
# ═══════════════════════════════════════════════════════════════════════════


StepId = Literal[1, 2, 3, 4, 5]

STEP_LABELS: dict[int, str] = {
    1: "Grabbing the conversation...",
    2: "Processing transcript...",
    3: "Setting up context...",
    4: "Generating AI summary...",
    5: "Finishing up...",
}

# Tab the application shows once the pipeline finishes
SUMMARY_TAB = "ai-summary"


class PipelineStep(BaseModel):
    """One of the five fixed, ordered pipeline steps."""

    model_config = ConfigDict(frozen=True)

    id: StepId
    label: str
    status: StepStatus = StepStatus.PENDING
    error: str | None = None


class StepUpdate(BaseModel):
    """Partial update merged into a step (only set fields are applied)."""

    model_config = ConfigDict(frozen=True)

    status: StepStatus | None = None
    error: str | None = None


def initial_steps() -> tuple[PipelineStep, ...]:
    """Five pending steps with their labels."""
    return tuple(
        PipelineStep(id=step_id, label=label)
        for step_id, label in STEP_LABELS.items()
    )


class PipelineState(BaseModel):
    """Immutable pipeline state, replaced on every reducer action."""

    model_config = ConfigDict(frozen=True)

    is_open: bool = False
    steps: tuple[PipelineStep, ...] = Field(default_factory=initial_steps)
    current_step: StepId | None = None
    summaries: tuple[SummaryResult, ...] | None = None
    navigation_override: str | None = None

    def get_step(self, step_id: int) -> PipelineStep:
        """Step by id (steps are index-stable)."""
        return self.steps[step_id - 1]

    @property
    def failed_step(self) -> PipelineStep | None:
        """First failed step, if any."""
        return next(
            (s for s in self.steps if s.status == StepStatus.FAILED), None
        )

    @property
    def has_failed(self) -> bool:
        return self.failed_step is not None


class PipelineView(BaseModel):
    """Read-only observation of the pipeline exposed to callers."""

    is_open: bool
    steps: list[PipelineStep]
    current_step: StepId | None
    summaries: list[SummaryResult] | None
    navigation_override: str | None
    is_second_failure: bool
