"""
Kaiju Clash - Game Log Events

Event types for the game log, and the classifier that turns committed
store actions into log entries. The log subscribes to the store; it reads
state, never writes it.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable

from kaiju.core import selectors
from kaiju.core.actions import Action, ActionType
from kaiju.core.state import GameState
from kaiju.engine.base import Phase


class GameEvent(Enum):
    """Events that can occur during a game."""

    GAME_STARTED = auto()
    TURN_STARTED = auto()
    DICE_ROLLED = auto()
    TOKYO_ENTERED = auto()
    TOKYO_LEFT = auto()
    YIELD_DECIDED = auto()
    CARD_PURCHASED = auto()
    SHOP_FLUSHED = auto()
    EFFECT_FAILED = auto()
    PLAYER_ELIMINATED = auto()
    GAME_PAUSED = auto()
    GAME_RESUMED = auto()
    GAME_WON = auto()


@dataclass(frozen=True)
class LogEntry:
    """One line of the game log."""

    event: GameEvent
    round: int
    turn: int
    player_id: str | None = None
    data: dict[str, Any] = field(default_factory=dict)


def classify_action(action: Action, previous: GameState, state: GameState) -> LogEntry | None:
    """Determine the log entry for a committed action, if it is worth one."""
    kind = action.type
    event: GameEvent | None = None
    player_id = action.get("player_id")
    data: dict[str, Any] = {}

    if kind == ActionType.PHASE_CHANGED and action["phase"] == Phase.ROLL:
        event = GameEvent.GAME_STARTED if previous.phase == Phase.SETUP else GameEvent.TURN_STARTED
        player_id = selectors.active_player_id(state)
    elif kind == ActionType.DICE_ROLLED:
        event = GameEvent.DICE_ROLLED
        player_id = selectors.active_player_id(state)
        data = {"faces": [d.value.value for d in state.dice.faces]}
    elif kind == ActionType.TOKYO_ENTERED:
        event = GameEvent.TOKYO_ENTERED
        data = {"slot": action["slot"].value}
    elif kind == ActionType.TOKYO_LEFT:
        event = GameEvent.TOKYO_LEFT
    elif kind == ActionType.YIELD_DECIDED:
        event = GameEvent.YIELD_DECIDED
        player_id = action["defender_id"]
        data = {"slot": action["slot"].value, "decision": action["decision"].value}
    elif kind == ActionType.CARD_REMOVED_FROM_SHOP:
        event = GameEvent.CARD_PURCHASED
        player_id = selectors.active_player_id(state)
        data = {"card_id": action["card_id"]}
    elif kind == ActionType.CARDS_SHOP_FLUSHED:
        event = GameEvent.SHOP_FLUSHED
        player_id = selectors.active_player_id(state)
    elif kind == ActionType.EFFECT_FINISHED and action["failed"]:
        event = GameEvent.EFFECT_FAILED
        data = {"entry_id": action["entry_id"], "reason": action["reason"]}
    elif kind in (ActionType.PLAYER_DAMAGED, ActionType.PLAYER_STATS_SET):
        before = previous.players.get(player_id)
        after = state.players.get(player_id)
        if before.alive and not after.alive:
            event = GameEvent.PLAYER_ELIMINATED
    elif kind == ActionType.GAME_PAUSED:
        event = GameEvent.GAME_PAUSED if action["paused"] else GameEvent.GAME_RESUMED
    elif kind == ActionType.WINNER_DECLARED:
        event = GameEvent.GAME_WON

    if event is None:
        return None
    return LogEntry(
        event=event,
        round=state.meta.round,
        turn=state.meta.turn,
        player_id=player_id,
        data=data,
    )


class GameLog:
    """Bounded feed of log entries, fed by a store subscription."""

    def __init__(self, max_entries: int = 500) -> None:
        self._entries: deque[LogEntry] = deque(maxlen=max_entries)
        self._listeners: list[Callable[[LogEntry], None]] = []

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> list[LogEntry]:
        return list(self._entries)

    def on_change(self, state: GameState, previous: GameState, action: Action) -> None:
        """Store listener."""
        entry = classify_action(action, previous, state)
        if entry is not None:
            self._entries.append(entry)
            for listener in list(self._listeners):
                listener(entry)

    def subscribe(self, listener: Callable[[LogEntry], None]) -> None:
        self._listeners.append(listener)

    def of(self, event: GameEvent) -> list[LogEntry]:
        return [e for e in self._entries if e.event == event]


def build_log_tree(entries: list[LogEntry]) -> list[dict[str, Any]]:
    """Group entries as ``[{round, turns: [{turn, entries}]}]`` in arrival order."""
    rounds: dict[int, dict[int, list[LogEntry]]] = {}
    for entry in entries:
        rounds.setdefault(entry.round, {}).setdefault(entry.turn, []).append(entry)
    return [
        {
            "round": number,
            "turns": [{"turn": turn, "entries": items} for turn, items in turns.items()],
        }
        for number, turns in rounds.items()
    ]
