"""
Pipeline state machine.

Pure reducer over PipelineState: every transition is a tagged action,
applied through pipeline_reducer(). No action performs I/O; side effects
live in the driver and the stages.

Example:
    state = PipelineState()
    state = pipeline_reducer(state, Open())
    state = pipeline_reducer(
        state, UpdateStep(step_id=1, update=StepUpdate(status=StepStatus.IN_PROGRESS))
    )
    state = pipeline_reducer(state, SetCurrentStep(step_id=1))
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from app.models.schemas import (
    PipelineState,
    StepId,
    StepStatus,
    StepUpdate,
    SummaryResult,
    initial_steps,
)


class _Action(BaseModel):
    model_config = ConfigDict(frozen=True)


class Open(_Action):
    """Reset all steps to pending and show the pipeline."""
    type: Literal["OPEN"] = "OPEN"


class Close(_Action):
    """Hide the pipeline; step statuses are kept."""
    type: Literal["CLOSE"] = "CLOSE"


class UpdateStep(_Action):
    """Merge a partial update into the step with matching id."""
    type: Literal["UPDATE_STEP"] = "UPDATE_STEP"
    step_id: StepId
    update: StepUpdate


class SetCurrentStep(_Action):
    type: Literal["SET_CURRENT_STEP"] = "SET_CURRENT_STEP"
    step_id: StepId | None


class SetSummaries(_Action):
    type: Literal["SET_SUMMARIES"] = "SET_SUMMARIES"
    summaries: tuple[SummaryResult, ...]


class SetTabOverride(_Action):
    type: Literal["SET_TAB_OVERRIDE"] = "SET_TAB_OVERRIDE"
    tab: str | None


class ResetFrom(_Action):
    """Revert steps with id >= step_id to pending, clearing errors."""
    type: Literal["RESET_FROM"] = "RESET_FROM"
    step_id: StepId


class ResetAll(_Action):
    """Full reinitialization."""
    type: Literal["RESET_ALL"] = "RESET_ALL"


PipelineAction = Annotated[
    Union[
        Open,
        Close,
        UpdateStep,
        SetCurrentStep,
        SetSummaries,
        SetTabOverride,
        ResetFrom,
        ResetAll,
    ],
    Field(discriminator="type"),
]


def pipeline_reducer(state: PipelineState, action: PipelineAction) -> PipelineState:
    """
    Apply an action to the pipeline state.

    Args:
        state: Current state (never modified)
        action: Action to apply

    Returns:
        New PipelineState (or the same instance for unknown actions)
    """
    if action.type == "OPEN":
        return state.model_copy(
            update={
                "is_open": True,
                "steps": initial_steps(),
                "current_step": None,
                "summaries": None,
                "navigation_override": None,
            }
        )

    if action.type == "CLOSE":
        return state.model_copy(update={"is_open": False, "current_step": None})

    if action.type == "UPDATE_STEP":
        changes = action.update.model_dump(exclude_unset=True)
        steps = tuple(
            step.model_copy(update=changes) if step.id == action.step_id else step
            for step in state.steps
        )
        return state.model_copy(update={"steps": steps})

    if action.type == "SET_CURRENT_STEP":
        return state.model_copy(update={"current_step": action.step_id})

    if action.type == "SET_SUMMARIES":
        # Replace, never accumulate: the latest stage-4 result is authoritative
        return state.model_copy(update={"summaries": tuple(action.summaries)})

    if action.type == "SET_TAB_OVERRIDE":
        return state.model_copy(update={"navigation_override": action.tab})

    if action.type == "RESET_FROM":
        steps = tuple(
            step.model_copy(update={"status": StepStatus.PENDING, "error": None})
            if step.id >= action.step_id
            else step
            for step in state.steps
        )
        return state.model_copy(update={"steps": steps})

    if action.type == "RESET_ALL":
        return PipelineState()

    return state
