"""
Pipeline module for episode summarization.

This package contains the pipeline components:
- state: Pipeline state machine (actions + pure reducer)
- shared_state: Accessors for application state touched by stages
- dependencies: Injected collaborators
- failure_classifier: First/consecutive failure messages
- orchestrator: SummarizePipeline driver

The driver depends on app.services.stages, which in turn depends on the
state machine, so it is imported from its module:

Example:
    from app.services.pipeline import InMemorySharedState, PipelineDeps
    from app.services.pipeline.orchestrator import SummarizePipeline

    shared = InMemorySharedState()
    deps = PipelineDeps(fetch, process, providers, generate, shared.accessors())
    pipeline = SummarizePipeline(deps)
    await pipeline.start(episode)
"""

from .state import (
    Close,
    Open,
    PipelineAction,
    ResetAll,
    ResetFrom,
    SetCurrentStep,
    SetSummaries,
    SetTabOverride,
    UpdateStep,
    pipeline_reducer,
)
from .shared_state import (
    InMemorySharedState,
    SharedStateAccessors,
    SharedStateSnapshot,
)
from .dependencies import PipelineDeps

__all__ = [
    # State machine
    "PipelineAction",
    "pipeline_reducer",
    "Open",
    "Close",
    "UpdateStep",
    "SetCurrentStep",
    "SetSummaries",
    "SetTabOverride",
    "ResetFrom",
    "ResetAll",
    # Shared state
    "InMemorySharedState",
    "SharedStateAccessors",
    "SharedStateSnapshot",
    # Collaborators
    "PipelineDeps",
]
