"""
Pydantic models for the episode summarize pipeline.

Exports:
    - Transcript models (TranscriptSegment, ProcessedTranscript, etc.)
    - Summary models (SummaryResult, ProviderKey, etc.)
    - Pipeline state models (PipelineState, PipelineStep, etc.)
"""

from app.models.schemas import (
    ALL,
    ALL_PROVIDERS,
    STEP_LABELS,
    SUMMARY_TAB,
    Episode,
    PipelineState,
    PipelineStep,
    PipelineView,
    ProcessedTranscript,
    ProcessingOptions,
    ProviderKey,
    StepId,
    StepStatus,
    StepUpdate,
    SummaryResult,
    SummaryStyle,
    TranscriptFetchResult,
    TranscriptSegment,
    UrlType,
    VideoMetadata,
)

__all__ = [
    # Transcript models
    "TranscriptSegment",
    "ProcessedTranscript",
    "ProcessingOptions",
    "TranscriptFetchResult",
    # Episode / metadata
    "Episode",
    "VideoMetadata",
    "UrlType",
    # Summary models
    "ALL",
    "ALL_PROVIDERS",
    "ProviderKey",
    "SummaryResult",
    "SummaryStyle",
    # Pipeline state
    "STEP_LABELS",
    "SUMMARY_TAB",
    "PipelineState",
    "PipelineStep",
    "PipelineView",
    "StepId",
    "StepStatus",
    "StepUpdate",
]
