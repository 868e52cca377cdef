"""
HTTP API routes for the summarize pipeline.

Provides endpoints for:
- Starting a summarize run for an episode
- Retrying from the failed step
- Closing (abandoning) the pipeline
- Querying pipeline and shared application state
"""

import logging

from fastapi import APIRouter, HTTPException

from app.models.schemas import Episode, PipelineView
from app.services.session import get_pipeline_session

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/pipeline", tags=["pipeline"])


@router.post("/summarize", response_model=PipelineView, status_code=202)
async def start_summarize(episode: Episode) -> PipelineView:
    """
    Start the summarize pipeline for an episode.

    Stages run in the background. Use WebSocket /ws/pipeline to receive
    every state transition.

    Args:
        episode: Item to summarize

    Returns:
        PipelineView right after the run was opened

    Raises:
        409: Pipeline is already open
    """
    session = get_pipeline_session()
    if session.pipeline.is_open or session.is_busy:
        raise HTTPException(
            status_code=409,
            detail="Pipeline is already running. Close it before starting another episode.",
        )

    session.summarize(episode)
    logger.info(f"Summarize requested: {episode.title}")
    return session.pipeline.view()


@router.post("/retry", response_model=PipelineView, status_code=202)
async def retry_pipeline() -> PipelineView:
    """
    Retry from the failed step.

    No-op (returns the current view) when nothing has failed.

    Raises:
        409: Stages are still executing
    """
    session = get_pipeline_session()
    if session.is_busy:
        raise HTTPException(status_code=409, detail="Pipeline is still running.")

    if session.pipeline.state.has_failed:
        session.retry()
    return session.pipeline.view()


@router.post("/close", response_model=PipelineView)
async def close_pipeline() -> PipelineView:
    """
    Close the pipeline.

    A failed run is rolled back to the shared state captured at start.
    """
    session = get_pipeline_session()
    session.close_pipeline()
    return session.pipeline.view()


@router.get("", response_model=PipelineView)
async def get_pipeline_state() -> PipelineView:
    """Current pipeline view."""
    return get_pipeline_session().pipeline.view()


@router.get("/shared")
async def get_shared_state() -> dict:
    """
    Shared application state written by the stages.

    Returns:
        Loaded video metadata, current URL, URL type and processed transcript
    """
    return get_pipeline_session().shared_state()
