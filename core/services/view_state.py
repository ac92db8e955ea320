"""Explicit modal/submission state for the list pages.

Each list page (dashboard, standups) keeps a single ``ViewState`` value in
the session instead of independent flags, so combinations such as two
open modals cannot be represented.  ``ListController`` pairs that state
with the authoritative record list and applies the rows returned by the
mutation handlers.

Transitions::

    idle / create / edit / status --open_*--> create | edit | status
    create | edit | status --begin_submit--> submitting
    submitting --submit_succeeded--> idle
    submitting --submit_failed--> origin modal with error
                                  (status modal: idle, error flashed)
    idle --begin_delete--> deleting --delete_finished--> idle
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional


class Mode(str, Enum):
    IDLE = 'idle'
    CREATE = 'create'
    EDIT = 'edit'
    STATUS = 'status'
    SUBMITTING = 'submitting'
    DELETING = 'deleting'


MODAL_MODES = frozenset({Mode.CREATE, Mode.EDIT, Mode.STATUS})
BUSY_MODES = frozenset({Mode.SUBMITTING, Mode.DELETING})

# A busy state older than this is left over from a request that died and
# is discarded when the state is loaded.
STALE_AFTER_SECONDS = 120


class InvalidTransition(Exception):
    """Raised when an action is not allowed from the current mode."""


class DuplicateSubmission(InvalidTransition):
    """Raised when a submission starts while another one is in flight."""


@dataclass(frozen=True)
class ViewState:
    mode: Mode = Mode.IDLE
    record_id: Optional[int] = None
    error: str = ''
    # Modal to return to when a submission fails.
    origin: Optional[Mode] = None
    started_at: Optional[float] = None

    @property
    def modal(self) -> Optional[Mode]:
        """The open modal, including the one behind an in-flight submit."""

        if self.mode in MODAL_MODES:
            return self.mode
        if self.mode is Mode.SUBMITTING:
            return self.origin
        return None

    @property
    def is_busy(self) -> bool:
        return self.mode in BUSY_MODES

    def as_dict(self) -> Dict[str, Any]:
        return {
            'mode': self.mode.value,
            'record_id': self.record_id,
            'error': self.error,
            'origin': self.origin.value if self.origin else None,
            'started_at': self.started_at,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'ViewState':
        if not data:
            return cls()
        try:
            origin = data.get('origin')
            return cls(
                mode=Mode(data.get('mode', Mode.IDLE.value)),
                record_id=data.get('record_id'),
                error=data.get('error') or '',
                origin=Mode(origin) if origin else None,
                started_at=data.get('started_at'),
            )
        except ValueError:
            return cls()


def _open(state: ViewState, mode: Mode, record_id: Optional[int] = None) -> ViewState:
    if state.is_busy:
        raise InvalidTransition(f'Cannot open {mode.value} while {state.mode.value}.')
    return ViewState(mode=mode, record_id=record_id)


def open_create(state: ViewState) -> ViewState:
    return _open(state, Mode.CREATE)


def open_edit(state: ViewState, record_id: int) -> ViewState:
    return _open(state, Mode.EDIT, record_id)


def open_status(state: ViewState, record_id: int) -> ViewState:
    return _open(state, Mode.STATUS, record_id)


def close(state: ViewState) -> ViewState:
    if state.is_busy:
        raise InvalidTransition(f'Cannot close while {state.mode.value}.')
    return ViewState()


def begin_submit(state: ViewState) -> ViewState:
    if state.mode is Mode.SUBMITTING:
        raise DuplicateSubmission('A submission is already in progress.')
    if state.mode not in MODAL_MODES:
        raise InvalidTransition(f'Cannot submit from {state.mode.value}.')
    return ViewState(mode=Mode.SUBMITTING, record_id=state.record_id, origin=state.mode, started_at=time.time())


def submit_succeeded(state: ViewState) -> ViewState:
    if state.mode is not Mode.SUBMITTING:
        raise InvalidTransition(f'No submission in progress ({state.mode.value}).')
    return ViewState()


def submit_failed(state: ViewState, error: str) -> ViewState:
    """Return to the originating modal carrying ``error``.

    Status changes have no form to show the error in, so they go back to
    ``idle`` and the caller reports the error as a message.
    """

    if state.mode is not Mode.SUBMITTING:
        raise InvalidTransition(f'No submission in progress ({state.mode.value}).')
    if state.origin is Mode.STATUS or state.origin is None:
        return ViewState(error=error)
    return ViewState(mode=state.origin, record_id=state.record_id, error=error)


def begin_delete(state: ViewState, record_id: int) -> ViewState:
    if state.mode is not Mode.IDLE:
        raise InvalidTransition(f'Cannot delete while {state.mode.value}.')
    return ViewState(mode=Mode.DELETING, record_id=record_id, started_at=time.time())


def delete_finished(state: ViewState, error: str = '') -> ViewState:
    if state.mode is not Mode.DELETING:
        raise InvalidTransition(f'No deletion in progress ({state.mode.value}).')
    return ViewState(error=error)


def session_key(view_name: str) -> str:
    return f'view_state:{view_name}'


def load_state(session, view_name: str) -> ViewState:
    state = ViewState.from_dict(session.get(session_key(view_name)))
    if state.is_busy and (state.started_at is None or time.time() - state.started_at > STALE_AFTER_SECONDS):
        return ViewState()
    return state


def save_state(session, view_name: str, state: ViewState) -> None:
    session[session_key(view_name)] = state.as_dict()


class ListController:
    """Authoritative record list plus view state for one list page.

    The list is only ever changed with rows returned by a mutation handler
    (or by a full reload), never by assuming what the server stored.
    """

    def __init__(self, records: List[Any], state: Optional[ViewState] = None) -> None:
        self.records = list(records)
        self.state = state or ViewState()

    def find(self, record_id: Optional[int]) -> Any:
        if record_id is None:
            return None
        for record in self.records:
            if record.pk == record_id:
                return record
        return None

    @property
    def active_record(self) -> Any:
        return self.find(self.state.record_id)

    def apply_created(self, row: Any) -> None:
        self.records.insert(0, row)

    def apply_updated(self, row: Any) -> None:
        self.records = [row if record.pk == row.pk else record for record in self.records]

    def apply_saved(self, row: Any) -> None:
        """Replace ``row`` by id when present, otherwise insert it at the front."""

        if self.find(row.pk) is not None:
            self.apply_updated(row)
        else:
            self.apply_created(row)

    def apply_deleted(self, record_id: int) -> None:
        self.records = [record for record in self.records if record.pk != record_id]

    def reload(self, records: List[Any]) -> None:
        self.records = list(records)

    def transition(self, action, *args) -> ViewState:
        self.state = action(self.state, *args)
        return self.state
