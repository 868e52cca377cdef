"""Tests for the SummarizePipeline driver."""

import asyncio

import pytest

from conftest import FakeFetcher, FakeProcessor, FakeProviders

from app.models.schemas import (
    SUMMARY_TAB,
    Episode,
    PipelineState,
    ProviderKey,
    StepStatus,
    TranscriptFetchResult,
)
from app.services.pipeline.failure_classifier import GENERIC_FAILURE_MESSAGE
from app.services.pipeline.orchestrator import PipelineError, SummarizePipeline
from app.services.stages.fetch_stage import NO_CAPTIONS_MESSAGE
from app.services.stages.summarize_stage import NO_PROVIDERS_MESSAGE


def statuses(pipeline: SummarizePipeline) -> list[StepStatus]:
    return [step.status for step in pipeline.state.steps]


class StateRecorder:
    """Pipeline listener keeping every state it was shown."""

    def __init__(self, pipeline: SummarizePipeline):
        self.states: list[PipelineState] = []
        pipeline.subscribe(self.states.append)

    def in_progress_ids(self) -> list[int]:
        """Step ids in the order they first became in_progress."""
        seen: list[int] = []
        for state in self.states:
            for step in state.steps:
                if step.status == StepStatus.IN_PROGRESS and step.id not in seen:
                    seen.append(step.id)
        return seen


# ═══════════════════════════════════════════════════════════════════════════
# Full runs
# ═══════════════════════════════════════════════════════════════════════════


async def test_successful_run_completes_and_auto_closes(pipeline, episode):
    await pipeline.start(episode)

    assert statuses(pipeline) == [StepStatus.COMPLETED] * 5
    assert pipeline.state.summaries
    assert pipeline.state.summaries[0].provider == ProviderKey.ANTHROPIC
    assert pipeline.state.navigation_override == SUMMARY_TAB
    assert pipeline.state.current_step is None
    assert pipeline.is_open

    await pipeline.wait_closed()

    assert not pipeline.is_open
    assert statuses(pipeline) == [StepStatus.COMPLETED] * 5


async def test_successful_run_writes_shared_state(pipeline, episode, shared):
    await pipeline.start(episode)
    await pipeline.wait_closed()

    assert shared.video_metadata.id == "abc123"
    assert shared.current_url == episode.url
    assert shared.transcript_result is not None


async def test_close_after_success_keeps_shared_state(pipeline, episode, shared):
    await pipeline.start(episode)
    pipeline.close()

    assert shared.video_metadata.id == "abc123"
    assert shared.current_url == episode.url
    assert pipeline.state == PipelineState()


async def test_stages_run_in_order(pipeline, episode):
    recorder = StateRecorder(pipeline)

    await pipeline.start(episode)

    assert recorder.in_progress_ids() == [1, 2, 3, 4, 5]


async def test_current_step_tracks_in_progress_step(pipeline, episode):
    recorder = StateRecorder(pipeline)

    await pipeline.start(episode)

    for state in recorder.states:
        in_progress = [s.id for s in state.steps if s.status == StepStatus.IN_PROGRESS]
        if in_progress and state.current_step is not None:
            assert state.current_step == min(in_progress)


async def test_current_step_while_stage_is_suspended(pipeline, episode, fetcher):
    fetcher.gate = asyncio.Event()

    task = asyncio.create_task(pipeline.start(episode))
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    assert pipeline.state.current_step == 1
    assert pipeline.state.get_step(1).status == StepStatus.IN_PROGRESS

    fetcher.gate.set()
    await task

    assert pipeline.state.current_step is None


# ═══════════════════════════════════════════════════════════════════════════
# Failures
# ═══════════════════════════════════════════════════════════════════════════


async def test_no_captions_fails_step_one(pipeline, episode, deps):
    deps.fetch_transcript = FakeFetcher(TranscriptFetchResult(success=False))
    recorder = StateRecorder(pipeline)

    await pipeline.start(episode)

    step = pipeline.state.get_step(1)
    assert step.status == StepStatus.FAILED
    assert step.error == NO_CAPTIONS_MESSAGE
    assert statuses(pipeline)[1:] == [StepStatus.PENDING] * 4
    assert pipeline.state.current_step == 1
    assert pipeline.is_open
    assert recorder.in_progress_ids() == [1]


async def test_collaborator_exception_is_captured(pipeline, episode, deps):
    async def exploding_fetch(url):
        raise ConnectionError("connection reset by peer")

    deps.fetch_transcript = exploding_fetch

    await pipeline.start(episode)

    assert pipeline.state.get_step(1).error == "connection reset by peer"


async def test_failure_is_written_to_failing_step(pipeline, episode, providers):
    providers.configured = {p: False for p in ProviderKey}

    await pipeline.start(episode)

    assert statuses(pipeline) == [
        StepStatus.COMPLETED,
        StepStatus.COMPLETED,
        StepStatus.COMPLETED,
        StepStatus.FAILED,
        StepStatus.PENDING,
    ]
    assert pipeline.state.get_step(4).error == NO_PROVIDERS_MESSAGE


async def test_second_failure_shows_generic_message(pipeline, episode, providers):
    providers.configured = {p: False for p in ProviderKey}

    await pipeline.start(episode)
    assert pipeline.state.get_step(4).error == NO_PROVIDERS_MESSAGE
    assert not pipeline.view().is_second_failure

    await pipeline.retry()

    assert pipeline.state.get_step(4).status == StepStatus.FAILED
    assert pipeline.state.get_step(4).error == GENERIC_FAILURE_MESSAGE
    assert pipeline.view().is_second_failure


async def test_single_configured_provider_is_the_only_request(pipeline, episode, generator):
    await pipeline.start(episode)

    assert [request[1] for request in generator.requests] == [ProviderKey.ANTHROPIC]
    assert [s.provider for s in pipeline.state.summaries] == [ProviderKey.ANTHROPIC]


# ═══════════════════════════════════════════════════════════════════════════
# Retry
# ═══════════════════════════════════════════════════════════════════════════


async def test_retry_resumes_from_failed_step(pipeline, episode, providers, fetcher, processor):
    providers.configured = {ProviderKey.ANTHROPIC: False}
    await pipeline.start(episode)

    providers.configured = {ProviderKey.ANTHROPIC: True}
    recorder = StateRecorder(pipeline)
    await pipeline.retry()

    assert statuses(pipeline) == [StepStatus.COMPLETED] * 5
    assert len(fetcher.calls) == 1
    assert processor.calls == 1
    assert recorder.in_progress_ids() == [4, 5]


async def test_retry_resets_later_steps_first(pipeline, episode, deps):
    deps.process_transcript = FakeProcessor(fail=True)
    await pipeline.start(episode)
    recorder = StateRecorder(pipeline)

    await pipeline.retry()

    reset = recorder.states[0]
    assert reset.get_step(1).status == StepStatus.COMPLETED
    assert [s.status for s in reset.steps[1:]] == [StepStatus.PENDING] * 4
    assert reset.get_step(2).error is None


async def test_retry_without_failure_is_noop(pipeline, episode):
    recorder = StateRecorder(pipeline)

    await pipeline.retry()

    assert recorder.states == []
    assert pipeline.state == PipelineState()


async def test_retry_after_success_is_noop(pipeline, episode, fetcher):
    await pipeline.start(episode)
    before = pipeline.state

    await pipeline.retry()

    assert pipeline.state == before
    assert len(fetcher.calls) == 1


async def test_run_without_start_is_misuse(pipeline, episode):
    with pytest.raises(PipelineError):
        await pipeline.run(episode, start_from=1)


# ═══════════════════════════════════════════════════════════════════════════
# Close and rollback
# ═══════════════════════════════════════════════════════════════════════════


async def test_close_after_failure_rolls_back(pipeline, episode, deps, shared):
    before_metadata = shared.video_metadata
    before_segments = list(shared.raw_segments)
    before_url = shared.current_url
    deps.process_transcript = FakeProcessor(fail=True)

    await pipeline.start(episode)
    assert shared.video_metadata.id == "abc123"

    pipeline.close()

    assert shared.video_metadata == before_metadata
    assert shared.raw_segments == before_segments
    assert shared.current_url == before_url
    assert shared.transcript_result is None
    assert pipeline.state == PipelineState()
    assert not pipeline.view().is_second_failure


async def test_start_resets_steps_from_any_state(pipeline, episode, deps):
    deps.process_transcript = FakeProcessor(fail=True)
    await pipeline.start(episode)

    deps.process_transcript = FakeProcessor()
    recorder = StateRecorder(pipeline)
    await pipeline.start(episode)

    opened = recorder.states[0]
    assert opened.is_open
    assert [s.status for s in opened.steps] == [StepStatus.PENDING] * 5


async def test_start_over_failed_run_rolls_back_first(pipeline, episode, deps, shared, fetcher):
    deps.process_transcript = FakeProcessor(fail=True)
    await pipeline.start(episode)

    deps.fetch_transcript = FakeFetcher(TranscriptFetchResult(success=False))
    await pipeline.start(Episode(url="https://youtu.be/other", title="Other"))

    assert shared.video_metadata.id == "old999"


# ═══════════════════════════════════════════════════════════════════════════
# Stale runs
# ═══════════════════════════════════════════════════════════════════════════


async def test_late_result_after_close_is_discarded(pipeline, episode, fetcher, shared):
    fetcher.gate = asyncio.Event()
    task = asyncio.create_task(pipeline.start(episode))
    await asyncio.sleep(0)

    pipeline.close()
    fetcher.gate.set()
    completed = await task

    assert completed is None
    assert pipeline.state == PipelineState()
    assert shared.video_metadata.id == "old999"
    assert shared.current_url == "https://youtu.be/old999"


async def test_late_failure_after_close_is_discarded(pipeline, episode, deps):
    gate = asyncio.Event()

    async def slow_failing_fetch(url):
        await gate.wait()
        raise TimeoutError("late")

    deps.fetch_transcript = slow_failing_fetch
    task = asyncio.create_task(pipeline.start(episode))
    await asyncio.sleep(0)

    pipeline.close()
    gate.set()
    await task

    assert pipeline.state == PipelineState()


async def test_auto_close_of_old_run_does_not_close_new_run(pipeline, episode, deps, fetcher):
    await pipeline.start(episode)

    fetcher.gate = asyncio.Event()
    task = asyncio.create_task(pipeline.start(episode))
    await asyncio.sleep(0.05)

    assert pipeline.is_open
    fetcher.gate.set()
    await task
    await pipeline.wait_closed()
    assert not pipeline.is_open


async def test_listener_errors_do_not_break_pipeline(pipeline, episode):
    def broken(state):
        raise RuntimeError("listener bug")

    pipeline.subscribe(broken)
    await pipeline.start(episode)

    assert statuses(pipeline) == [StepStatus.COMPLETED] * 5
