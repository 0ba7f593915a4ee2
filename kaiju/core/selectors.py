"""
Kaiju Clash - Selectors

Derived reads over GameState. Services and the AI go through these rather
than poking at slice internals.
"""

from kaiju.core.state import GameState
from kaiju.engine.base import WINNING_VP, Slot, bay_allowed
from kaiju.engine.player import Player


def player_count(state: GameState) -> int:
    return len(state.players.order)


def active_player_id(state: GameState) -> str | None:
    order = state.players.order
    if not order:
        return None
    return order[state.meta.active_player_index % len(order)]


def active_player(state: GameState) -> Player | None:
    player_id = active_player_id(state)
    return state.players.get(player_id) if player_id else None


def living_players(state: GameState) -> tuple[Player, ...]:
    return tuple(p for p in state.players.ordered() if p.alive)


def living_opponents(state: GameState, player_id: str) -> tuple[Player, ...]:
    return tuple(p for p in living_players(state) if p.id != player_id)


def is_bay_allowed(state: GameState) -> bool:
    return bay_allowed(player_count(state))


def contested_slots(state: GameState) -> tuple[Slot, ...]:
    return (Slot.CITY, Slot.BAY) if is_bay_allowed(state) else (Slot.CITY,)


def first_open_slot(state: GameState) -> Slot | None:
    """City first, then bay when the bay is in play."""
    for slot in contested_slots(state):
        if state.tokyo.occupant(slot) is None:
            return slot
    return None


def tokyo_occupants(state: GameState) -> tuple[Player, ...]:
    return tuple(
        state.players.get(pid)
        for pid in state.tokyo.occupants
        if state.players.get(pid) is not None
    )


def pending_prompts_for(state: GameState, attacker_id: str):
    return tuple(p for p in state.yields.pending() if p.attacker_id == attacker_id)


def effect_queue_busy(state: GameState) -> bool:
    return not state.effect_queue.idle


def find_winner(state: GameState) -> str | None:
    """First living player in seat order with enough VP, else the last one standing."""
    alive = living_players(state)
    for player in alive:
        if player.victory_points >= WINNING_VP:
            return player.id
    if len(alive) == 1:
        return alive[0].id
    return None
