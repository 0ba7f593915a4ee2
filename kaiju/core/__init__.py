"""
Kaiju Clash State Container.

Immutable state slices, actions, pure slice transitions and the
serialized dispatch store.
"""

from kaiju.core.actions import Action, ActionType
from kaiju.core.reducers import root_reducer
from kaiju.core.state import EffectStatus, GameState
from kaiju.core.store import DispatchError, Store

__all__ = [
    "Action",
    "ActionType",
    "DispatchError",
    "EffectStatus",
    "GameState",
    "Store",
    "root_reducer",
]
