"""
YouTube transcript fetcher.

Reads video info and subtitle tracks with yt-dlp (no media download), then
downloads the best caption track with httpx and parses it into segments.

Example:
    fetcher = TranscriptFetcher(settings)
    result = await fetcher.fetch("https://www.youtube.com/watch?v=dQw4w9WgXcQ")
    if result.success:
        print(len(result.segments), result.title)
"""

import asyncio
import logging

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from yt_dlp import YoutubeDL
from yt_dlp.utils import DownloadError

from app.config import Settings, get_settings
from app.models.schemas import TranscriptFetchResult
from app.utils.subtitle_utils import SUPPORTED_FORMATS, parse_subtitles

logger = logging.getLogger(__name__)

# Retry configuration for transient errors
RETRY_DECORATOR = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((httpx.ConnectError, httpx.TimeoutException)),
    reraise=True,
)

YDL_OPTIONS = {
    "skip_download": True,
    "quiet": True,
    "no_warnings": True,
}

UNAVAILABLE_MARKERS = (
    "video unavailable",
    "video not found",
    "private video",
    "video is unavailable",
    "this video is not available",
)
RATE_LIMIT_MARKERS = ("rate limit", "429", "too many requests")
NETWORK_MARKERS = (
    "network",
    "connection",
    "timed out",
    "timeout",
    "name resolution",
    "econnrefused",
)
NOT_FOUND_MARKERS = ("not found", "404", "does not exist")


def select_subtitle_track(info: dict, language: str) -> dict | None:
    """
    Pick the caption track to download.

    Manual subtitles win over automatic captions. Within a source, the exact
    language is tried before regional variants ("en" before "en-US"), and
    json3 is preferred over srt.

    Args:
        info: yt-dlp info dict
        language: Preferred language code

    Returns:
        Track dict with "url" and "ext", or None if nothing usable exists
    """
    for source in ("subtitles", "automatic_captions"):
        tracks_by_lang: dict = info.get(source) or {}
        candidates = [language] + sorted(
            lang for lang in tracks_by_lang if lang.startswith(f"{language}-")
        )
        for lang in candidates:
            tracks = tracks_by_lang.get(lang) or []
            for ext in SUPPORTED_FORMATS:
                for track in tracks:
                    if track.get("ext") == ext and track.get("url"):
                        return {**track, "lang": lang, "source": source}
    return None


def format_upload_date(upload_date: str | None) -> str | None:
    """yt-dlp YYYYMMDD -> YYYY-MM-DD, None if malformed."""
    if not upload_date or len(upload_date) != 8 or not upload_date.isdigit():
        return None
    year, month, day = upload_date[:4], upload_date[4:6], upload_date[6:]
    if not (1 <= int(month) <= 12 and 1 <= int(day) <= 31):
        return None
    return f"{year}-{month}-{day}"


def map_fetch_error(error: Exception, video_id: str | None = None) -> str:
    """
    Map a yt-dlp or HTTP error to a user-facing message.

    Args:
        error: Exception raised while fetching
        video_id: Video id for the message, if known

    Returns:
        Message suitable for the pipeline step
    """
    video = video_id or "unknown"
    message = str(error).lower()

    if any(marker in message for marker in UNAVAILABLE_MARKERS):
        return f"Video not found: {video}"
    if any(marker in message for marker in RATE_LIMIT_MARKERS):
        return "Rate limit exceeded"
    if isinstance(error, httpx.TransportError) or any(
        marker in message for marker in NETWORK_MARKERS
    ):
        return "Network request failed"
    if any(marker in message for marker in NOT_FOUND_MARKERS):
        return f"Video not found: {video}"
    return str(error) or "An unexpected error occurred"


class TranscriptFetcher:
    """
    Transcript-fetch collaborator backed by yt-dlp.

    fetch() never raises for expected failures: they come back as
    TranscriptFetchResult(success=False, error=...). A missing caption track
    is reported with error=None.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize fetcher.

        Args:
            settings: Application settings (uses defaults if None)
            http_client: Client for subtitle downloads (created if None)
        """
        self.settings = settings or get_settings()
        self.http_client = http_client or httpx.AsyncClient(
            timeout=self.settings.fetch_timeout,
            follow_redirects=True,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.http_client.aclose()

    async def fetch(self, url: str) -> TranscriptFetchResult:
        """
        Fetch captions and video metadata for a URL.

        Args:
            url: YouTube video URL

        Returns:
            TranscriptFetchResult with segments and metadata on success
        """
        logger.info(f"Fetching transcript: {url}")
        video_id: str | None = None

        try:
            info = await asyncio.to_thread(self._extract_info, url)
            video_id = info.get("id")

            track = select_subtitle_track(info, self.settings.subtitle_language)
            if track is None:
                logger.info(f"No caption track for {video_id}")
                return TranscriptFetchResult(success=False, video_id=video_id)

            logger.debug(
                f"Using {track['source']} track {track['lang']}.{track['ext']} for {video_id}"
            )
            content = await self._download(track["url"])
            segments = parse_subtitles(content, track["ext"])

        except (DownloadError, httpx.HTTPError, ValueError) as e:
            logger.warning(f"Transcript fetch failed for {url}: {e}")
            return TranscriptFetchResult(
                success=False,
                video_id=video_id,
                error=map_fetch_error(e, video_id),
            )

        if not segments:
            logger.info(f"Caption track for {video_id} has no segments")
            return TranscriptFetchResult(success=False, video_id=video_id)

        logger.info(f"Fetched {len(segments)} segments for {video_id}")
        return TranscriptFetchResult(
            success=True,
            segments=segments,
            video_id=video_id,
            title=info.get("title"),
            channel_title=info.get("channel") or info.get("uploader"),
            published_at=format_upload_date(info.get("upload_date")),
            duration=info.get("duration"),
            thumbnail=info.get("thumbnail"),
            language=track["lang"],
        )

    def _extract_info(self, url: str) -> dict:
        """Blocking yt-dlp call; run in a worker thread."""
        with YoutubeDL(YDL_OPTIONS) as ydl:
            info = ydl.extract_info(url, download=False)
            return ydl.sanitize_info(info) if info else {}

    @RETRY_DECORATOR
    async def _download(self, track_url: str) -> str:
        response = await self.http_client.get(track_url)
        response.raise_for_status()
        return response.text
