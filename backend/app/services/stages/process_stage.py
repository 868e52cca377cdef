"""
Process stage for transcript normalization.

Delegates to the transcript-processing collaborator with the caller's
ProcessingOptions and publishes the result to shared state.
"""

import logging

from app.models.schemas import ProcessedTranscript
from app.services.stages.base import BaseStage, StageContext, StageError


logger = logging.getLogger(__name__)

NO_SEGMENTS_MESSAGE = "No transcript segments to process."
PROCESSING_FAILED_MESSAGE = "Transcript processing failed."


class ProcessStage(BaseStage):
    """Process fetched segments.

    Input (from context):
        - fetch: list[TranscriptSegment], or shared raw segments when the
          run resumed at this step

    Output:
        ProcessedTranscript
    """

    step_id = 2
    name = "process"

    async def execute(self, context: StageContext) -> ProcessedTranscript:
        if context.has_result("fetch"):
            segments = context.get_result("fetch")
        else:
            segments = context.shared.get_raw_segments() or []

        if not segments:
            raise StageError(self.name, NO_SEGMENTS_MESSAGE)

        processed = await context.deps.process_transcript(
            segments, context.deps.processing_options
        )
        if processed is None:
            raise StageError(self.name, PROCESSING_FAILED_MESSAGE)

        context.shared.set_transcript_result(processed)
        logger.debug(
            f"Processed {len(segments)} -> {len(processed.segments)} segments, "
            f"{processed.word_count} words"
        )
        return processed
