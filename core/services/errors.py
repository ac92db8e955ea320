"""Error taxonomy and the uniform result type returned by mutation handlers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


class TrackerError(Exception):
    """Base class for errors surfaced to users by the request handlers."""

    status_code = 400


class UnauthorizedError(TrackerError):
    """Raised when no authenticated user can be resolved from the session."""

    status_code = 401

    def __init__(self, message: str = 'Unauthorized') -> None:
        super().__init__(message)


class ValidationError(TrackerError):
    """Raised for malformed input (bad JSON, no valid standup items, ...)."""


class StoreError(TrackerError):
    """Raised when the datastore or object storage call fails.

    The backend's message is carried through verbatim.  A row that does not
    match ``(id, owner)`` is reported with this error as well.
    """


class UpstreamError(TrackerError):
    """Raised when the AI analysis API fails."""

    status_code = 502


@dataclass
class MutationResult:
    """Outcome of a handler call: either ``data`` or an ``error`` message."""

    data: Any = None
    error: Optional[str] = None
    status_code: int = 200

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, exc: TrackerError) -> 'MutationResult':
        return cls(error=str(exc), status_code=exc.status_code)

    def as_dict(self) -> Dict[str, Any]:
        """Return ``{'success': True, 'data': ...}`` or ``{'error': ...}``."""

        if self.error is not None:
            return {'error': self.error}
        payload: Dict[str, Any] = {'success': True}
        if self.data is not None:
            payload['data'] = _serialise(self.data)
        return payload


def _serialise(value: Any) -> Any:
    if hasattr(value, 'as_dict'):
        return value.as_dict()
    if isinstance(value, (list, tuple)):
        return [_serialise(item) for item in value]
    return value
