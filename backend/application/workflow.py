"""Application service driving the upload, generate and reset workflow."""
from __future__ import annotations

import asyncio
import logging
import time
from typing import BinaryIO, Callable

from backend.core.config import DEFAULT_MAX_SESSIONS, DEFAULT_SESSION_TTL_SECONDS
from backend.core.encoding import encode_upload
from backend.core.errors import GenerationError
from backend.core.state import (
    FileSelected,
    GenerateRequested,
    GenerationFailed,
    GenerationSucceeded,
    ResetRequested,
    SelectedFile,
    WorkflowEvent,
    WorkflowState,
    reduce,
)
from backend.domain import Preview
from backend.infrastructure.metadata import MetadataClient
from backend.infrastructure.previews import InMemoryPreviewStore
from backend.infrastructure.sessions import SessionRepository

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Failed to analyze the image. Make sure the API key is valid or try another image."


class SessionNotFoundError(LookupError):
    """Raised when a request names a session that does not exist."""


class WorkflowService:
    """Coordinates one workflow per browser tab session.

    Sessions not seen for ``session_ttl`` seconds are evicted, and at most
    ``max_sessions`` are kept alive; the least recently seen go first.
    """

    def __init__(
        self,
        repository: SessionRepository,
        previews: InMemoryPreviewStore,
        client: MetadataClient,
        *,
        session_ttl: float = DEFAULT_SESSION_TTL_SECONDS,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._repository = repository
        self._previews = previews
        self._client = client
        self._session_ttl = session_ttl
        self._max_sessions = max_sessions
        self._clock = clock

    @property
    def model(self) -> str:
        return self._client.model

    # ------------------------------------------------------------------
    # session lifecycle
    # ------------------------------------------------------------------
    def open_session(self) -> str:
        self.evict_idle_sessions(reserve=1)
        session_id = self._repository.create_session(self._clock())
        logger.info("opened session %s", session_id)
        return session_id

    def close_session(self, session_id: str) -> None:
        record = self._repository.delete_session(session_id)
        if record is None:
            raise SessionNotFoundError(session_id)
        self._previews.release(record.state.preview_id)
        logger.info("closed session %s", session_id)

    def evict_idle_sessions(self, *, reserve: int = 0) -> int:
        """Drop idle sessions and release their previews.

        ``reserve`` leaves room for that many new sessions under the cap.
        """

        evicted = self._repository.evict(
            idle_before=self._clock() - self._session_ttl,
            keep=self._max_sessions - reserve,
        )
        for record in evicted:
            self._previews.release(record.state.preview_id)
        if evicted:
            logger.info("evicted %d idle sessions", len(evicted))
        return len(evicted)

    def session_count(self) -> int:
        return len(self._repository.list_sessions())

    def get_state(self, session_id: str) -> WorkflowState:
        record = self._repository.touch(session_id, self._clock())
        if record is None:
            raise SessionNotFoundError(session_id)
        return record.state

    def get_preview(self, session_id: str, preview_id: str) -> Preview | None:
        """Return the session's live preview, or ``None`` once released."""

        state = self.get_state(session_id)
        if state.preview_id != preview_id:
            return None
        return self._previews.get(preview_id)

    def dispatch(self, session_id: str, event: WorkflowEvent) -> WorkflowState:
        state = reduce(self.get_state(session_id), event)
        self._repository.save_state(session_id, state)
        return state

    # ------------------------------------------------------------------
    # workflow actions
    # ------------------------------------------------------------------
    async def select_file(
        self,
        session_id: str,
        *,
        filename: str,
        mime_type: str,
        source: BinaryIO,
    ) -> WorkflowState:
        """Take ownership of a newly selected image and return to idle.

        Raises :class:`EncodingError` when the upload cannot be read; the
        previous selection is left untouched in that case.
        """

        self.get_state(session_id)
        image = await encode_upload(source, mime_type)

        superseded = self.get_state(session_id).preview_id
        preview = self._previews.create(image.decode(), mime_type)
        selected = SelectedFile(filename=filename, image=image)
        state = self.dispatch(session_id, FileSelected(file=selected, preview_id=preview.preview_id))
        self._previews.release(superseded)

        logger.info("session %s selected %s (%s, %d bytes)", session_id, filename, mime_type, selected.size)
        return state

    async def generate(self, session_id: str) -> tuple[WorkflowState, bool]:
        """Run one metadata request for the selected file.

        Returns the resulting state and whether the request was accepted.
        A request is rejected, leaving state unchanged, when no file is
        selected or another request for the session is still in flight.
        """

        before = self.get_state(session_id)
        state = self.dispatch(session_id, GenerateRequested())
        if state is before:
            logger.info("session %s generate ignored (status=%s)", session_id, state.status.value)
            return state, False

        generation = state.generation
        selected = state.selected_file
        if selected is None:
            raise RuntimeError(f"session {session_id} is analyzing without a selected file")

        event: WorkflowEvent
        try:
            metadata = await asyncio.to_thread(self._client.generate_metadata, selected.image)
        except GenerationError as exc:
            logger.warning("session %s generation %d failed: %s", session_id, generation, exc)
            event = GenerationFailed(generation=generation, message=GENERIC_ERROR_MESSAGE)
        except Exception:
            logger.exception("session %s generation %d failed unexpectedly", session_id, generation)
            event = GenerationFailed(generation=generation, message=GENERIC_ERROR_MESSAGE)
        else:
            event = GenerationSucceeded(generation=generation, result=metadata)

        if self._repository.get_session(session_id) is None:
            logger.info("session %s closed while generation %d was in flight", session_id, generation)
            return state, True

        current = self.get_state(session_id)
        settled = self.dispatch(session_id, event)
        if settled is current:
            logger.info("session %s dropped stale result of generation %d", session_id, generation)
        return settled, True

    def reset(self, session_id: str) -> WorkflowState:
        preview_id = self.get_state(session_id).preview_id
        state = self.dispatch(session_id, ResetRequested())
        self._previews.release(preview_id)
        logger.info("session %s reset", session_id)
        return state


__all__ = ["GENERIC_ERROR_MESSAGE", "SessionNotFoundError", "WorkflowService"]
