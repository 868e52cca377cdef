"""
Summarize stage for AI summary generation.

Sends the processed transcript to every configured provider and stores the
results in pipeline state. Per-provider failures are results, not stage
failures: the stage fails only when there is nothing to summarize or no
provider to ask.
"""

import asyncio
import logging

from app.models.schemas import (
    ALL,
    ALL_PROVIDERS,
    ProcessedTranscript,
    ProviderKey,
    SummaryResult,
)
from app.services.pipeline.state import SetSummaries
from app.services.stages.base import BaseStage, StageContext, StageError


logger = logging.getLogger(__name__)

NO_PROVIDERS_MESSAGE = "No AI providers configured. Add an API key to your .env file."
EMPTY_TEXT_MESSAGE = "No transcript text available for summary."


class SummarizeStage(BaseStage):
    """Generate summaries from the processed transcript.

    Input (from context):
        - process: ProcessedTranscript, or the shared processing result when
          the run resumed past step 2

    Output:
        list[SummaryResult] (also dispatched as SET_SUMMARIES)

    Provider selection:
        - every provider configured: one aggregated "all" request
        - one provider configured: one request for it
        - otherwise: one request per configured provider, concurrently
    """

    step_id = 4
    name = "summarize"

    async def execute(self, context: StageContext) -> list[SummaryResult]:
        config = await context.deps.provider_config()
        configured = [key for key in ALL_PROVIDERS if config.get(key)]
        if not configured:
            raise StageError(self.name, NO_PROVIDERS_MESSAGE)

        text = transcript_text(self._processed(context))
        if not text.strip():
            raise StageError(self.name, EMPTY_TEXT_MESSAGE)

        summaries = await self._request(context, text, configured)

        succeeded = sum(1 for s in summaries if s.success)
        logger.info(
            f"Summaries: {succeeded}/{len(summaries)} succeeded "
            f"({', '.join(p.value for p in configured)})"
        )
        context.dispatch(SetSummaries(summaries=tuple(summaries)))
        return summaries

    def _processed(self, context: StageContext) -> ProcessedTranscript | None:
        if context.has_result("process"):
            return context.get_result("process")
        return context.shared.get_transcript_result()

    async def _request(
        self,
        context: StageContext,
        text: str,
        configured: list[ProviderKey],
    ) -> list[SummaryResult]:
        generate = context.deps.generate_summary
        style = context.deps.summary_style
        url = context.episode.url

        if len(configured) == len(ALL_PROVIDERS):
            return list(await generate(text, ALL, style, url))

        if len(configured) == 1:
            return list(await generate(text, configured[0], style, url))

        batches = await asyncio.gather(
            *(generate(text, provider, style, url) for provider in configured),
            return_exceptions=True,
        )

        summaries: list[SummaryResult] = []
        for provider, batch in zip(configured, batches):
            if isinstance(batch, Exception):
                logger.error(f"Summary request for {provider.value} failed: {batch}")
                summaries.append(
                    SummaryResult(
                        provider=provider,
                        model_name="",
                        success=False,
                        error=str(batch) or "Summary generation failed",
                    )
                )
            else:
                summaries.extend(batch)
        return summaries


def transcript_text(processed: ProcessedTranscript | None) -> str:
    """Processed segment texts joined one per line."""
    if processed is None:
        return ""
    return "\n".join(seg.text for seg in processed.segments)
