"""
Pipeline driver for episode summarization.

Runs the five stages in order, tracks their status through the pipeline
reducer, resumes from the failed stage on retry and rolls shared state back
when a failed run is abandoned.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from app.config import Settings, get_settings
from app.logging_config import RunLogger
from app.models.schemas import (
    Episode,
    PipelineState,
    PipelineView,
    StepStatus,
    StepUpdate,
)
from app.services.stages import StageContext, StageRegistry, create_default_stages

from .dependencies import PipelineDeps
from .failure_classifier import FailureClassifier
from .shared_state import SharedStateSnapshot
from .state import (
    Close,
    Open,
    PipelineAction,
    ResetAll,
    ResetFrom,
    SetCurrentStep,
    UpdateStep,
    pipeline_reducer,
)

logger = logging.getLogger(__name__)

StateListener = Callable[[PipelineState], None]


class PipelineError(Exception):
    """Misuse of the pipeline driver (not a stage failure)."""


@dataclass
class RunContext:
    """
    Driver-private state of one run.

    Attributes:
        episode: Item being summarized
        snapshot: Shared state captured before the run started
        run_id: Generation token; a run is stale once the driver moves on
        results: stage_name -> output of completed stages
    """

    episode: Episode
    snapshot: SharedStateSnapshot
    run_id: int
    results: dict[str, Any] = field(default_factory=dict)


class SummarizePipeline:
    """
    Multi-stage summarize pipeline driver.

    Stage failures never escape start() or retry(): they are written onto the
    failing step and the pipeline pauses there until retry() or close().

    Example:
        pipeline = SummarizePipeline(deps)
        await pipeline.start(episode)

        if pipeline.state.has_failed:
            await pipeline.retry()  # resumes at the failed step
            pipeline.close()        # or abandon and roll back

        view = pipeline.view()
    """

    def __init__(
        self,
        deps: PipelineDeps,
        settings: Settings | None = None,
        registry: StageRegistry | None = None,
    ):
        """
        Initialize pipeline driver.

        Args:
            deps: Collaborators and shared-state accessors
            settings: Application settings (uses defaults if None)
            registry: Stages to run (uses the five default stages if None)
        """
        self.deps = deps
        self.settings = settings or get_settings()
        self.registry = registry or create_default_stages()
        self.classifier = FailureClassifier()

        self._state = PipelineState()
        self._run: RunContext | None = None
        self._run_counter = 0
        self._auto_close_task: asyncio.Task | None = None
        self._listeners: list[StateListener] = []

    # ═══════════════════════════════════════════════════════════════════════════
    # Observation
    # ═══════════════════════════════════════════════════════════════════════════

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state.is_open

    def view(self) -> PipelineView:
        """Read-only snapshot for callers."""
        state = self._state
        return PipelineView(
            is_open=state.is_open,
            steps=list(state.steps),
            current_step=state.current_step,
            summaries=list(state.summaries) if state.summaries is not None else None,
            navigation_override=state.navigation_override,
            is_second_failure=self.classifier.is_second_failure,
        )

    def subscribe(self, listener: StateListener) -> None:
        """Call listener with the new state after every transition."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: StateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def dispatch(self, action: PipelineAction) -> None:
        """Apply an action through the reducer and notify listeners."""
        self._state = pipeline_reducer(self._state, action)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception as e:
                logger.warning(f"Pipeline state listener failed: {e}")

    # ═══════════════════════════════════════════════════════════════════════════
    # Caller API
    # ═══════════════════════════════════════════════════════════════════════════

    async def start(self, episode: Episode) -> None:
        """
        Start a new run for an episode.

        Snapshots shared state, opens the pipeline with all steps pending and
        runs from step 1. A run that is still open is abandoned first (rolled
        back if it had failed).

        Args:
            episode: Item to summarize
        """
        if self._run is not None:
            logger.info(f"Replacing open run for {self._run.episode.url}")
            self._abandon()

        self._run_counter += 1
        self._run = RunContext(
            episode=episode,
            snapshot=self.deps.shared.snapshot(),
            run_id=self._run_counter,
        )
        self.classifier.reset()
        self.dispatch(Open())

        RunLogger(logger, run_id=self._run.run_id).info(
            f"Pipeline started: {episode.title} ({episode.url})"
        )
        await self.run(episode, start_from=1)

    async def run(self, episode: Episode, start_from: int = 1) -> bool:
        """
        Run stages with step id >= start_from, stopping at the first failure.

        Lower-numbered stages are skipped; their outputs are reused from the
        run context or shared state.

        Args:
            episode: Item to summarize
            start_from: First step to execute

        Returns:
            True if every stage succeeded, False on failure or when the run
            went stale while a stage was suspended

        Raises:
            PipelineError: If there is no active run (start() was not called)
        """
        run = self._run
        if run is None:
            raise PipelineError("No active run; call start() first")

        log = RunLogger(logger, run_id=run.run_id)

        def is_active() -> bool:
            return self._run is not None and self._run.run_id == run.run_id

        dispatch = self._guarded_dispatch(is_active)
        context = StageContext(
            episode=episode,
            deps=self.deps,
            shared=self.deps.shared.guarded(is_active),
            dispatch=dispatch,
            results=dict(run.results),
        )

        dispatch(SetCurrentStep(step_id=start_from))

        for stage in self.registry.build_pipeline(start_from):
            step_log = log.bind(step=stage.step_id)
            step_log.debug(f"{stage.name} started")
            try:
                result = await stage.run(context)
            except Exception as e:
                if not is_active():
                    step_log.info(f"Discarding failure of stale run at {stage.name}: {e}")
                    return False

                message = self.classifier.message_for(e)
                step_log.warning(
                    f"{stage.name} failed: {e}"
                    + (" [generic message shown]" if self.classifier.is_second_failure else "")
                )
                dispatch(
                    UpdateStep(
                        step_id=stage.step_id,
                        update=StepUpdate(status=StepStatus.FAILED, error=message),
                    )
                )
                return False

            if not is_active():
                step_log.info(f"Discarding result of stale run at {stage.name}")
                return False

            context = context.with_result(stage.name, result)
            run.results[stage.name] = result
            step_log.debug(f"{stage.name} completed")

        dispatch(SetCurrentStep(step_id=None))
        log.info(f"Pipeline completed: {episode.url}")
        self._schedule_auto_close(run.run_id)
        return True

    async def retry(self) -> None:
        """
        Resume from the failed step.

        No-op when no step has failed. Steps below the failed one keep their
        completed status; steps from it onwards return to pending first.
        """
        failed = self._state.failed_step
        if failed is None or self._run is None:
            logger.debug("Retry ignored: no failed step")
            return

        self.classifier.record_retry()
        RunLogger(logger, run_id=self._run.run_id, step=failed.id).info(
            f"Retrying (attempt {self.classifier.failure_count + 1})"
        )
        self.dispatch(ResetFrom(step_id=failed.id))
        await self.run(self._run.episode, start_from=failed.id)

    def close(self) -> None:
        """
        Close the pipeline.

        If any step failed, shared state is restored to the pre-start
        snapshot. The pipeline is then fully reinitialized.
        """
        self._abandon()
        self.dispatch(ResetAll())

    async def wait_closed(self) -> None:
        """Wait for a pending auto-close to fire."""
        task = self._auto_close_task
        if task is not None and not task.done():
            await task

    # Caller-facing aliases
    handle_summarize = start
    handle_retry = retry
    handle_close = close

    # ═══════════════════════════════════════════════════════════════════════════
    # Internal
    # ═══════════════════════════════════════════════════════════════════════════

    def _abandon(self) -> None:
        """Drop the current run, rolling back shared state if it failed."""
        self._cancel_auto_close()
        run = self._run
        if run is not None and self._state.has_failed:
            self.deps.shared.restore(run.snapshot)
            RunLogger(logger, run_id=run.run_id).info(
                f"Rolled back shared state after failed run: {run.episode.url}"
            )
        self._run = None
        self.classifier.reset()

    def _guarded_dispatch(self, is_active: Callable[[], bool]) -> Callable[[PipelineAction], None]:
        def dispatch(action: PipelineAction) -> None:
            if not is_active():
                logger.debug(f"Discarding {action.type} from stale run")
                return
            self.dispatch(action)

        return dispatch

    def _schedule_auto_close(self, run_id: int) -> None:
        self._cancel_auto_close()
        self._auto_close_task = asyncio.create_task(self._auto_close(run_id))

    def _cancel_auto_close(self) -> None:
        task = self._auto_close_task
        if task is not None and not task.done():
            task.cancel()
        self._auto_close_task = None

    async def _auto_close(self, run_id: int) -> None:
        await asyncio.sleep(self.settings.pipeline_auto_close_delay)
        if self._run is None or self._run.run_id != run_id:
            return
        self.dispatch(Close())
        self._run = None
        self.classifier.reset()
        RunLogger(logger, run_id=run_id).debug("Pipeline auto-closed")
