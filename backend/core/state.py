"""Workflow state machine for the upload, preview, generate and display cycle.

State is an immutable :class:`WorkflowState`; every change goes through the
pure :func:`reduce` function so transitions can be exercised without any
HTTP or rendering layer.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Union

from backend.core.encoding import EncodedImage
from backend.core.schema import StockMetadata


class WorkflowStatus(str, Enum):
    IDLE = "idle"
    ANALYZING = "analyzing"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class SelectedFile:
    """The image currently owned by a workflow."""

    filename: str
    image: EncodedImage

    @property
    def mime_type(self) -> str:
        return self.image.mime_type

    @property
    def size(self) -> int:
        return self.image.byte_length


@dataclass(frozen=True, slots=True)
class WorkflowState:
    status: WorkflowStatus = WorkflowStatus.IDLE
    selected_file: SelectedFile | None = None
    preview_id: str | None = None
    result: StockMetadata | None = None
    error_message: str | None = None
    generation: int = 0


# ----------------------------------------------------------------------
# events
# ----------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class FileSelected:
    file: SelectedFile
    preview_id: str | None = None


@dataclass(frozen=True, slots=True)
class GenerateRequested:
    pass


@dataclass(frozen=True, slots=True)
class GenerationSucceeded:
    generation: int
    result: StockMetadata


@dataclass(frozen=True, slots=True)
class GenerationFailed:
    generation: int
    message: str


@dataclass(frozen=True, slots=True)
class ResetRequested:
    pass


WorkflowEvent = Union[FileSelected, GenerateRequested, GenerationSucceeded, GenerationFailed, ResetRequested]


def can_generate(state: WorkflowState) -> bool:
    """Generation needs a file and no request already in flight."""

    return state.selected_file is not None and state.status is not WorkflowStatus.ANALYZING


def _is_current(state: WorkflowState, generation: int) -> bool:
    return state.status is WorkflowStatus.ANALYZING and state.generation == generation


def reduce(state: WorkflowState, event: WorkflowEvent) -> WorkflowState:
    """Return the state that follows ``event``.

    Rejected events (generate without a file, generate while analyzing,
    completions for a superseded request) return ``state`` itself.
    """

    if isinstance(event, FileSelected):
        return WorkflowState(
            status=WorkflowStatus.IDLE,
            selected_file=event.file,
            preview_id=event.preview_id,
            generation=state.generation,
        )

    if isinstance(event, GenerateRequested):
        if not can_generate(state):
            return state
        return replace(
            state,
            status=WorkflowStatus.ANALYZING,
            result=None,
            error_message=None,
            generation=state.generation + 1,
        )

    if isinstance(event, GenerationSucceeded):
        if not _is_current(state, event.generation):
            return state
        return replace(state, status=WorkflowStatus.SUCCESS, result=event.result, error_message=None)

    if isinstance(event, GenerationFailed):
        if not _is_current(state, event.generation):
            return state
        return replace(state, status=WorkflowStatus.ERROR, result=None, error_message=event.message)

    if isinstance(event, ResetRequested):
        return WorkflowState(generation=state.generation)

    raise TypeError(f"unsupported workflow event: {event!r}")


__all__ = [
    "FileSelected",
    "GenerateRequested",
    "GenerationFailed",
    "GenerationSucceeded",
    "ResetRequested",
    "SelectedFile",
    "WorkflowEvent",
    "WorkflowState",
    "WorkflowStatus",
    "can_generate",
    "reduce",
]
