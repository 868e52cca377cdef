"""
Shared application state accessed by pipeline stages.

The pipeline does not own this state. Stages read and write it through
SharedStateAccessors (getter/setter pairs injected by the application);
the driver snapshots it before a run and restores the snapshot when a
failed run is abandoned.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Callable

from app.models.schemas import (
    ProcessedTranscript,
    TranscriptSegment,
    UrlType,
    VideoMetadata,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SharedStateSnapshot:
    """Restore point taken before a pipeline run."""

    video_metadata: VideoMetadata | None
    raw_segments: list[TranscriptSegment] | None
    current_url: str | None
    url_type: UrlType | None
    transcript_result: ProcessedTranscript | None


@dataclass(frozen=True)
class SharedStateAccessors:
    """
    Getter/setter pairs for the application state stages touch.

    Example:
        state = InMemorySharedState()
        accessors = state.accessors()
        accessors.set_current_url("https://youtu.be/abc")
        snapshot = accessors.snapshot()
    """

    get_video_metadata: Callable[[], VideoMetadata | None]
    set_video_metadata: Callable[[VideoMetadata | None], None]
    get_raw_segments: Callable[[], list[TranscriptSegment] | None]
    set_raw_segments: Callable[[list[TranscriptSegment] | None], None]
    get_current_url: Callable[[], str | None]
    set_current_url: Callable[[str | None], None]
    get_url_type: Callable[[], UrlType | None]
    set_url_type: Callable[[UrlType | None], None]
    get_transcript_result: Callable[[], ProcessedTranscript | None]
    set_transcript_result: Callable[[ProcessedTranscript | None], None]

    def snapshot(self) -> SharedStateSnapshot:
        """Capture the current values as a restore point."""
        segments = self.get_raw_segments()
        return SharedStateSnapshot(
            video_metadata=self.get_video_metadata(),
            raw_segments=list(segments) if segments is not None else None,
            current_url=self.get_current_url(),
            url_type=self.get_url_type(),
            transcript_result=self.get_transcript_result(),
        )

    def restore(self, snapshot: SharedStateSnapshot) -> None:
        """Write a restore point back, discarding any partial writes."""
        self.set_video_metadata(snapshot.video_metadata)
        self.set_raw_segments(snapshot.raw_segments)
        self.set_url_type(snapshot.url_type)
        self.set_current_url(snapshot.current_url)
        self.set_transcript_result(snapshot.transcript_result)

    def guarded(self, is_active: Callable[[], bool]) -> "SharedStateAccessors":
        """
        Accessors whose setters are dropped once is_active() turns False.

        Used to discard late writes from an abandoned run.

        Args:
            is_active: Returns False once the owning run is stale

        Returns:
            New SharedStateAccessors with guarded setters
        """

        def guard(setter: Callable, name: str) -> Callable:
            def guarded_setter(value) -> None:
                if not is_active():
                    logger.debug(f"Discarding late write to {name} from stale run")
                    return
                setter(value)

            return guarded_setter

        return replace(
            self,
            set_video_metadata=guard(self.set_video_metadata, "video_metadata"),
            set_raw_segments=guard(self.set_raw_segments, "raw_segments"),
            set_current_url=guard(self.set_current_url, "current_url"),
            set_url_type=guard(self.set_url_type, "url_type"),
            set_transcript_result=guard(self.set_transcript_result, "transcript_result"),
        )


@dataclass
class InMemorySharedState:
    """Plain in-process holder for the shared application state."""

    video_metadata: VideoMetadata | None = None
    raw_segments: list[TranscriptSegment] | None = None
    current_url: str | None = None
    url_type: UrlType | None = None
    transcript_result: ProcessedTranscript | None = None
    _listeners: list[Callable[[], None]] = field(default_factory=list, repr=False)

    def on_change(self, listener: Callable[[], None]) -> None:
        """Register a callback fired after every write."""
        self._listeners.append(listener)

    def accessors(self) -> SharedStateAccessors:
        """Getter/setter bundle bound to this holder."""
        return SharedStateAccessors(
            get_video_metadata=lambda: self.video_metadata,
            set_video_metadata=lambda v: self._set("video_metadata", v),
            get_raw_segments=lambda: self.raw_segments,
            set_raw_segments=lambda v: self._set("raw_segments", v),
            get_current_url=lambda: self.current_url,
            set_current_url=lambda v: self._set("current_url", v),
            get_url_type=lambda: self.url_type,
            set_url_type=lambda v: self._set("url_type", v),
            get_transcript_result=lambda: self.transcript_result,
            set_transcript_result=lambda v: self._set("transcript_result", v),
        )

    def _set(self, name: str, value) -> None:
        setattr(self, name, value)
        for listener in self._listeners:
            listener()
