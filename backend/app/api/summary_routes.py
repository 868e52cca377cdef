"""
Direct AI summary endpoints.

Summaries outside the pipeline, for an already loaded transcript.
"""

import logging

from fastapi import APIRouter, HTTPException

from app.models.schemas import (
    ProviderConfigResponse,
    SummaryRequest,
    SummaryResponse,
)
from app.services.summary_generator import get_configured_providers
from app.services.session import get_pipeline_session

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/ai-summary", tags=["ai-summary"])


@router.get("/config", response_model=ProviderConfigResponse)
async def get_provider_config() -> ProviderConfigResponse:
    """
    Which providers have an API key configured.

    Key values are never returned, only booleans.
    """
    return ProviderConfigResponse(providers=get_configured_providers())


@router.post("", response_model=SummaryResponse)
async def generate_summary(request: SummaryRequest) -> SummaryResponse:
    """
    Generate summaries for a transcript.

    Provider failures are reported per result; the request itself only
    fails on invalid input.

    Raises:
        400: Transcript empty or too long
    """
    generator = get_pipeline_session().generator
    try:
        summaries = await generator.generate(
            request.transcript,
            request.provider,
            request.summary_style,
            request.video_url,
        )
    except ValueError as e:
        logger.warning(f"Rejected summary request: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    return SummaryResponse(summaries=summaries)
