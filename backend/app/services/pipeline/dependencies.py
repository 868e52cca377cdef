"""
Collaborators injected into the pipeline.

The pipeline core never talks to YouTube or an AI provider directly; it
calls these async functions, which the application wires to the default
implementations (see app.services.session).
"""

from dataclasses import dataclass, field
from typing import Awaitable, Callable

from app.models.schemas import (
    ProcessedTranscript,
    ProcessingOptions,
    ProviderKey,
    ProviderSelection,
    SummaryResult,
    SummaryStyle,
    TranscriptFetchResult,
    TranscriptSegment,
)
from app.services.pipeline.shared_state import SharedStateAccessors

# (url) -> fetch result (never raises for expected failures)
FetchTranscript = Callable[[str], Awaitable[TranscriptFetchResult]]

# (segments, options) -> processed transcript, or None on failure
ProcessTranscript = Callable[
    [list[TranscriptSegment], ProcessingOptions],
    Awaitable[ProcessedTranscript | None],
]

# () -> provider key -> has credentials
ProviderConfig = Callable[[], Awaitable[dict[ProviderKey, bool]]]

# (text, provider or "all", style, source url) -> one result per provider
GenerateSummary = Callable[
    [str, ProviderSelection, SummaryStyle, str | None],
    Awaitable[list[SummaryResult]],
]


@dataclass
class PipelineDeps:
    """Collaborators and caller options for one pipeline instance."""

    fetch_transcript: FetchTranscript
    process_transcript: ProcessTranscript
    provider_config: ProviderConfig
    generate_summary: GenerateSummary
    shared: SharedStateAccessors
    processing_options: ProcessingOptions = field(default_factory=ProcessingOptions)
    summary_style: SummaryStyle = SummaryStyle.BULLETS
