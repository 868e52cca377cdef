"""
Fetch stage for retrieving the episode transcript.

Calls the transcript-fetch collaborator and publishes raw segments and
video metadata to shared application state.
"""

import logging

from app.models.schemas import (
    Episode,
    TranscriptFetchResult,
    TranscriptSegment,
    VideoMetadata,
)
from app.services.stages.base import BaseStage, StageContext, StageError


logger = logging.getLogger(__name__)

NO_CAPTIONS_MESSAGE = "This video doesn't have captions available."

YOUTUBE_THUMBNAIL_URL = "https://i.ytimg.com/vi/{video_id}/hqdefault.jpg"


class FetchStage(BaseStage):
    """Fetch captions for the episode URL.

    Input (from context):
        - episode: Episode (url, fallback metadata)

    Output:
        list[TranscriptSegment] (non-empty)

    Side effects:
        shared.raw_segments, shared.video_metadata
    """

    step_id = 1
    name = "fetch"

    async def execute(self, context: StageContext) -> list[TranscriptSegment]:
        """Fetch transcript segments.

        Raises:
            StageError: If captions are unavailable or empty
        """
        episode = context.episode
        result = await context.deps.fetch_transcript(episode.url)

        if not result.success or not result.segments:
            raise StageError(self.name, result.error or NO_CAPTIONS_MESSAGE)

        context.shared.set_raw_segments(result.segments)
        context.shared.set_video_metadata(build_video_metadata(result, episode))

        logger.info(
            f"Fetched {len(result.segments)} segments for {result.video_id or episode.url}"
        )
        return result.segments


def build_video_metadata(result: TranscriptFetchResult, episode: Episode) -> VideoMetadata:
    """
    Video metadata from a fetch result, defaulting absent fields from the episode.

    Args:
        result: Successful fetch result
        episode: Item being summarized

    Returns:
        VideoMetadata for shared state
    """
    video_id = result.video_id or episode.video_id or ""
    thumbnail = result.thumbnail or episode.thumbnail
    if not thumbnail and video_id:
        thumbnail = YOUTUBE_THUMBNAIL_URL.format(video_id=video_id)

    return VideoMetadata(
        id=video_id,
        title=result.title or episode.title,
        url=episode.url,
        thumbnail=thumbnail,
        channel_title=result.channel_title or episode.channel_title,
        published_at=result.published_at or episode.published_at,
        duration=result.duration if result.duration is not None else episode.duration,
    )
