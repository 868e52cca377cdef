"""
Pipeline stages for episode summarization.

Each stage is one of the five fixed, ordered steps of a run. The driver
executes stages in step order and stops at the first failure.

Usage:
    from app.services.stages import StageContext, create_default_stages

    registry = create_default_stages()
    context = StageContext(episode, deps, shared, dispatch)

    for stage in registry.build_pipeline(start_from=1):
        result = await stage.run(context)
        context = context.with_result(stage.name, result)

Adding new stages:
    1. Create a new file: stages/my_stage.py
    2. Subclass BaseStage with a step_id and name, implement execute()
    3. Register it in create_default_stages()
"""

from app.services.stages.base import (
    BaseStage,
    StageContext,
    StageError,
    StageRegistry,
)
from app.services.stages.fetch_stage import FetchStage
from app.services.stages.process_stage import ProcessStage
from app.services.stages.metadata_stage import MetadataStage
from app.services.stages.summarize_stage import SummarizeStage
from app.services.stages.navigate_stage import NavigateStage


__all__ = [
    # Base classes
    "BaseStage",
    "StageContext",
    "StageError",
    "StageRegistry",
    # Stage implementations
    "FetchStage",
    "ProcessStage",
    "MetadataStage",
    "SummarizeStage",
    "NavigateStage",
    # Factory
    "create_default_stages",
]


def create_default_stages() -> StageRegistry:
    """Registry with the five summarize stages.

    Returns:
        StageRegistry ordered fetch -> process -> metadata -> summarize -> navigate
    """
    registry = StageRegistry()
    registry.register(FetchStage())
    registry.register(ProcessStage())
    registry.register(MetadataStage())
    registry.register(SummarizeStage())
    registry.register(NavigateStage())
    return registry
