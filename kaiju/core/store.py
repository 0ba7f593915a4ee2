"""
Kaiju Clash - State Store

Single source of truth. All mutation goes through ``dispatch``; observers
register with ``subscribe`` and are told after every state change.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

from kaiju.core.actions import Action
from kaiju.core.reducers import root_reducer
from kaiju.core.state import GameState

logger = logging.getLogger(__name__)

Listener = Callable[[GameState, GameState, Action], None]
Reducer = Callable[[GameState, Action], GameState]


class DispatchError(RuntimeError):
    """Raised when a transition function tries to dispatch."""


class Store:
    """Serialized dispatch over a pure root transition.

    Listeners run after the new state is committed and may dispatch
    follow-up actions. A listener that raises is logged and skipped.

    ``lock`` is re-entrant and held across reduce, commit and notify.
    Callers that need several dispatches to land together (a scheduled
    continuation, a front-end intent) hold it for the whole sequence.
    """

    def __init__(self, initial: GameState | None = None, reducer: Reducer = root_reducer) -> None:
        self._state = initial if initial is not None else GameState()
        self._reducer = reducer
        self._listeners: list[Listener] = []
        self._lock = threading.RLock()
        self._dispatching = False

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def get_state(self) -> GameState:
        return self._state

    def dispatch(self, action: Action) -> GameState:
        """Apply ``action`` and notify listeners if the state changed.

        Other threads wait for the lock; only the thread already running
        the reducer can see ``_dispatching`` set.

        Raises:
            DispatchError: If called from inside a transition function
        """
        with self._lock:
            if self._dispatching:
                raise DispatchError("Reducers may not dispatch actions.")

            previous = self._state
            self._dispatching = True
            try:
                self._state = self._reducer(previous, action)
            finally:
                self._dispatching = False

            if self._state is not previous:
                for listener in list(self._listeners):
                    try:
                        listener(self._state, previous, action)
                    except Exception:
                        logger.exception("Store listener failed on %s", action.type.name)

            return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; returns a function that removes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe
