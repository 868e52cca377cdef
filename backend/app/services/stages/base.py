"""
Stage abstraction for the summarize pipeline.

Each of the five pipeline steps is a stage with:
- A fixed step id (1..5) and a unique name
- An execute() method that performs the work
- A run() template that dispatches step transitions around execute()

Stages fail by raising StageError (or any other exception); the driver
captures the failure and writes it onto the step.

Example:
    class ProcessStage(BaseStage):
        step_id = 2
        name = "process"

        async def execute(self, context: StageContext) -> ProcessedTranscript:
            segments = context.get_result("fetch")
            return await context.deps.process_transcript(segments, options)

    registry = StageRegistry()
    registry.register(ProcessStage())
    stages = registry.build_pipeline(start_from=2)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Any, Callable

from app.models.schemas import STEP_LABELS, Episode, StepId, StepStatus, StepUpdate
from app.services.pipeline.dependencies import PipelineDeps
from app.services.pipeline.shared_state import SharedStateAccessors
from app.services.pipeline.state import PipelineAction, SetCurrentStep, UpdateStep


class StageError(Exception):
    """Error during stage execution.

    Attributes:
        stage_name: Name of the stage that failed
        message: User-facing error description
        cause: Original exception (if any)
    """

    def __init__(
        self,
        stage_name: str,
        message: str,
        cause: Exception | None = None,
    ):
        self.stage_name = stage_name
        self.message = message
        self.cause = cause
        super().__init__(f"[{stage_name}] {message}")


@dataclass(frozen=True)
class StageContext:
    """Context passed between pipeline stages.

    Carries the target episode, the injected collaborators, the shared-state
    accessors and the dispatch function, plus results from previous stages.
    Immutable once created: the driver adds results by building a new context.

    Attributes:
        episode: Item being summarized
        deps: Collaborators and caller options
        shared: Accessors for application state outside the pipeline
        dispatch: Sends an action to the pipeline reducer
        results: stage_name -> result mapping

    Example:
        context = StageContext(episode, deps, shared, dispatch)
        context = context.with_result("fetch", segments)
        segments = context.get_result("fetch")
    """

    episode: Episode
    deps: PipelineDeps
    shared: SharedStateAccessors
    dispatch: Callable[[PipelineAction], None]
    results: dict[str, Any] = field(default_factory=dict)

    def get_result(self, stage_name: str) -> Any:
        """Get result from a completed stage.

        Args:
            stage_name: Name of the stage whose result to retrieve

        Returns:
            Result from the specified stage

        Raises:
            KeyError: If stage result not found
        """
        if stage_name not in self.results:
            raise KeyError(
                f"Stage '{stage_name}' result not found. "
                f"Available: {list(self.results.keys())}"
            )
        return self.results[stage_name]

    def has_result(self, stage_name: str) -> bool:
        return stage_name in self.results

    def with_result(self, stage_name: str, result: Any) -> "StageContext":
        """Create new context with added result."""
        return replace(self, results={**self.results, stage_name: result})


class BaseStage(ABC):
    """Abstract base class for pipeline stages.

    Subclasses must implement:
    - step_id: Position in the pipeline (1..5)
    - name: Unique stage identifier (key for results)
    - execute(): Async method that performs the work

    run() wraps execute() with the step transitions every stage shares:
    SET_CURRENT_STEP and UPDATE_STEP(in_progress) before the work,
    UPDATE_STEP(completed) after it. Failures propagate to the driver.
    """

    step_id: StepId
    name: str

    @property
    def label(self) -> str:
        return STEP_LABELS[self.step_id]

    @abstractmethod
    async def execute(self, context: StageContext) -> Any:
        """Execute the stage.

        Args:
            context: Context with results from previous stages

        Returns:
            Stage result (stored under self.name)

        Raises:
            StageError: If the stage cannot produce its output
        """
        pass

    async def run(self, context: StageContext) -> Any:
        """Execute with step status transitions."""
        # Current step moves first so it never lags the in-progress step
        context.dispatch(SetCurrentStep(step_id=self.step_id))
        context.dispatch(
            UpdateStep(
                step_id=self.step_id,
                update=StepUpdate(status=StepStatus.IN_PROGRESS),
            )
        )

        result = await self.execute(context)

        context.dispatch(
            UpdateStep(
                step_id=self.step_id,
                update=StepUpdate(status=StepStatus.COMPLETED),
            )
        )
        return result


class StageRegistry:
    """Registry of pipeline stages, ordered by step id.

    Example:
        registry = StageRegistry()
        registry.register(FetchStage())
        registry.register(ProcessStage())

        # Resume from step 2
        stages = registry.build_pipeline(start_from=2)
    """

    def __init__(self) -> None:
        self._stages: dict[int, BaseStage] = {}

    def register(self, stage: BaseStage) -> None:
        """Register a stage.

        Raises:
            ValueError: If a stage with the same step id or name is registered
        """
        if stage.step_id in self._stages:
            raise ValueError(f"Step {stage.step_id} already registered")
        if stage.name in {s.name for s in self._stages.values()}:
            raise ValueError(f"Stage '{stage.name}' already registered")
        self._stages[stage.step_id] = stage

    def get(self, name: str) -> BaseStage:
        """Get stage by name.

        Raises:
            KeyError: If stage not found
        """
        for stage in self._stages.values():
            if stage.name == name:
                return stage
        raise KeyError(
            f"Stage '{name}' not found. "
            f"Available: {[s.name for s in self.get_all()]}"
        )

    def get_all(self) -> list[BaseStage]:
        """All registered stages in step order."""
        return [self._stages[k] for k in sorted(self._stages)]

    def build_pipeline(self, start_from: int = 1) -> list[BaseStage]:
        """Stages with step_id >= start_from, in execution order."""
        return [s for s in self.get_all() if s.step_id >= start_from]

    def __contains__(self, name: str) -> bool:
        return any(s.name == name for s in self._stages.values())

    def __len__(self) -> int:
        return len(self._stages)
