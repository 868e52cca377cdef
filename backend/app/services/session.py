"""
Pipeline session for the API layer.

Owns the in-process shared application state and the summarize pipeline,
and broadcasts every pipeline transition to WebSocket subscribers.
"""

import asyncio
import logging
from datetime import datetime

from app.config import Settings, get_settings
from app.models.schemas import Episode, PipelineState, ProviderKey
from app.services.pipeline import InMemorySharedState, PipelineDeps
from app.services.pipeline.orchestrator import SummarizePipeline
from app.services.summary_generator import SummaryGenerator, get_configured_providers
from app.services.transcript_fetcher import TranscriptFetcher
from app.services.transcript_processor import TranscriptProcessor

logger = logging.getLogger(__name__)


class PipelineSession:
    """
    Single-user pipeline session with WebSocket broadcasting.

    Stores state in-memory. Every reducer transition is pushed to the
    subscribed queues as a serialized PipelineView.

    Example:
        session = PipelineSession(settings)
        queue = session.subscribe()

        await session.summarize(episode)
        message = await queue.get()  # {"type": "pipeline", "state": {...}}
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.shared = InMemorySharedState()
        self.fetcher = TranscriptFetcher(self.settings)
        self.generator = SummaryGenerator(self.settings)
        self._subscribers: list[asyncio.Queue] = []
        self._task: asyncio.Task | None = None

        async def provider_config() -> dict[ProviderKey, bool]:
            return get_configured_providers(self.settings)

        deps = PipelineDeps(
            fetch_transcript=self.fetcher.fetch,
            process_transcript=TranscriptProcessor().process,
            provider_config=provider_config,
            generate_summary=self.generator.generate,
            shared=self.shared.accessors(),
            summary_style=self.settings.summary_style,
        )
        self.pipeline = SummarizePipeline(deps, self.settings)
        self.pipeline.subscribe(self._on_state)

    @property
    def is_busy(self) -> bool:
        """True while a start or retry is executing stages."""
        return self._task is not None and not self._task.done()

    def summarize(self, episode: Episode) -> asyncio.Task:
        """Start a run in the background."""
        self._task = asyncio.create_task(self.pipeline.start(episode))
        return self._task

    def retry(self) -> asyncio.Task:
        """Resume the failed run in the background."""
        self._task = asyncio.create_task(self.pipeline.retry())
        return self._task

    def close_pipeline(self) -> None:
        """Close the pipeline and drop the in-flight stage, if any."""
        self.pipeline.close()
        if self.is_busy:
            self._task.cancel()
        self._task = None

    async def aclose(self) -> None:
        """Release network resources (application shutdown)."""
        if self.is_busy:
            self._task.cancel()
        await self.fetcher.close()

    def shared_state(self) -> dict:
        """Serializable view of the shared application state."""
        shared = self.shared
        return {
            "video_metadata": (
                shared.video_metadata.model_dump(mode="json")
                if shared.video_metadata
                else None
            ),
            "current_url": shared.current_url,
            "url_type": shared.url_type.value if shared.url_type else None,
            "segment_count": len(shared.raw_segments) if shared.raw_segments else 0,
            "transcript": (
                shared.transcript_result.model_dump(mode="json")
                if shared.transcript_result
                else None
            ),
        }

    def subscribe(self) -> asyncio.Queue:
        """
        Subscribe to pipeline updates.

        Returns:
            Queue that will receive state messages
        """
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers.append(queue)
        logger.debug("Client subscribed to pipeline updates")
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        try:
            self._subscribers.remove(queue)
            logger.debug("Client unsubscribed from pipeline updates")
        except ValueError:
            pass

    def state_message(self) -> dict:
        return {
            "type": "pipeline",
            "state": self.pipeline.view().model_dump(mode="json"),
            "timestamp": datetime.now().isoformat(),
        }

    def _on_state(self, state: PipelineState) -> None:
        self._broadcast(self.state_message())

    def _broadcast(self, message: dict) -> None:
        for queue in self._subscribers:
            try:
                queue.put_nowait(message)
            except asyncio.QueueFull as e:
                logger.warning(f"Failed to broadcast to subscriber: {e}")


# Global session instance (created lazily so settings load first)
_session: PipelineSession | None = None


def get_pipeline_session() -> PipelineSession:
    """Get global pipeline session instance."""
    global _session
    if _session is None:
        _session = PipelineSession()
    return _session
