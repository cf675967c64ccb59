"""Application services."""

from .workflow import GENERIC_ERROR_MESSAGE, SessionNotFoundError, WorkflowService

__all__ = [
    "GENERIC_ERROR_MESSAGE",
    "SessionNotFoundError",
    "WorkflowService",
]
