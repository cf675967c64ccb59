from __future__ import annotations

import pytest

from backend.core.encoding import encode_bytes
from backend.core.state import (
    FileSelected,
    GenerateRequested,
    GenerationFailed,
    GenerationSucceeded,
    ResetRequested,
    SelectedFile,
    WorkflowState,
    WorkflowStatus,
    can_generate,
    reduce,
)
from conftest import sunset_metadata

PHOTO = SelectedFile(filename="photo.jpg", image=encode_bytes(b"\xff\xd8\xff", "image/jpeg"))
OTHER = SelectedFile(filename="other.png", image=encode_bytes(b"\x89PNG", "image/png"))


def _analyzing() -> WorkflowState:
    state = reduce(WorkflowState(), FileSelected(file=PHOTO, preview_id="p1"))
    return reduce(state, GenerateRequested())


def _success() -> WorkflowState:
    state = _analyzing()
    return reduce(state, GenerationSucceeded(generation=state.generation, result=sunset_metadata()))


def _error() -> WorkflowState:
    state = _analyzing()
    return reduce(state, GenerationFailed(generation=state.generation, message="boom"))


def test_initial_state_is_idle_and_empty():
    state = WorkflowState()
    assert state.status is WorkflowStatus.IDLE
    assert state.selected_file is None
    assert state.result is None and state.error_message is None
    assert not can_generate(state)


def test_generate_without_file_is_noop():
    state = WorkflowState()
    assert reduce(state, GenerateRequested()) is state


def test_generate_moves_to_analyzing_and_bumps_generation():
    state = _analyzing()
    assert state.status is WorkflowStatus.ANALYZING
    assert state.generation == 1
    assert not can_generate(state)


def test_generate_while_analyzing_is_ignored():
    state = _analyzing()
    assert reduce(state, GenerateRequested()) is state


def test_success_stores_result():
    state = _success()
    assert state.status is WorkflowStatus.SUCCESS
    assert state.result == sunset_metadata()
    assert state.error_message is None


def test_failure_stores_message_without_result():
    state = _error()
    assert state.status is WorkflowStatus.ERROR
    assert state.error_message == "boom"
    assert state.result is None


@pytest.mark.parametrize("factory", [_success, _error, _analyzing])
def test_new_file_returns_to_idle_and_clears_outcome(factory):
    state = reduce(factory(), FileSelected(file=OTHER, preview_id="p2"))

    assert state.status is WorkflowStatus.IDLE
    assert state.selected_file == OTHER
    assert state.preview_id == "p2"
    assert state.result is None and state.error_message is None

    again = reduce(state, FileSelected(file=OTHER, preview_id="p2"))
    assert again == state


@pytest.mark.parametrize("factory", [_success, _error])
def test_regenerate_from_settled_states(factory):
    settled = factory()
    state = reduce(settled, GenerateRequested())

    assert state.status is WorkflowStatus.ANALYZING
    assert state.generation == settled.generation + 1
    assert state.error_message is None
    assert state.result is None


def test_regenerate_overwrites_previous_result():
    state = reduce(_success(), GenerateRequested())
    newer = sunset_metadata().model_copy(update={"title": "Alpine glow"})
    state = reduce(state, GenerationSucceeded(generation=state.generation, result=newer))

    assert state.result.title == "Alpine glow"


def test_reset_clears_everything():
    state = reduce(_success(), ResetRequested())

    assert state.status is WorkflowStatus.IDLE
    assert state.selected_file is None
    assert state.preview_id is None
    assert state.result is None and state.error_message is None


def test_stale_completion_is_dropped():
    state = _analyzing()
    stale_generation = state.generation
    state = reduce(state, ResetRequested())

    assert reduce(state, GenerationSucceeded(generation=stale_generation, result=sunset_metadata())) is state
    assert reduce(state, GenerationFailed(generation=stale_generation, message="late")) is state


def test_completion_for_superseded_generation_is_dropped():
    first = _analyzing()
    state = reduce(first, FileSelected(file=OTHER, preview_id="p2"))
    state = reduce(state, GenerateRequested())

    assert reduce(state, GenerationSucceeded(generation=first.generation, result=sunset_metadata())) is state


def test_unknown_event_is_rejected():
    with pytest.raises(TypeError):
        reduce(WorkflowState(), object())  # type: ignore[arg-type]
