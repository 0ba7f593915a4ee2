"""
Kaiju Clash - Store Actions

Every state change is an Action flowing through Store.dispatch. Actions
are small immutable records; the creator functions below are the only
place payload shapes are spelled out.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Iterable, Mapping

from kaiju.engine.base import Die, Phase, Slot, YieldChoice
from kaiju.engine.cards import Card, Effect
from kaiju.engine.player import Player
from kaiju.engine.validators import validate_amount


class ActionType(Enum):
    """Types of actions understood by the root transition."""

    # Setup
    PLAYERS_JOINED = auto()
    PHASE_CHANGED = auto()

    # Dice
    DICE_ROLL_STARTED = auto()
    DICE_ROLLED = auto()
    DICE_REROLL_USED = auto()
    DICE_KEEP_TOGGLED = auto()
    DICE_RESULTS_ACCEPTED = auto()

    # Players
    PLAYER_DAMAGED = auto()
    PLAYER_HEALED = auto()
    PLAYER_GAINED_ENERGY = auto()
    PLAYER_SPENT_ENERGY = auto()
    PLAYER_VP_CHANGED = auto()
    PLAYER_CARD_ADDED = auto()
    PLAYER_MODIFIERS_RECALCULATED = auto()
    PLAYER_STATS_SET = auto()

    # Tokyo / yield
    TOKYO_ENTERED = auto()
    TOKYO_LEFT = auto()
    YIELD_PROMPTS_CREATED = auto()
    YIELD_DECIDED = auto()

    # Cards
    CARDS_DECK_BUILT = auto()
    CARDS_SHOP_REFILLED = auto()
    CARD_REMOVED_FROM_SHOP = auto()
    CARD_DISCARDED = auto()
    CARDS_SHOP_FLUSHED = auto()
    CARD_PEEKED = auto()

    # Effect queue
    EFFECT_ENQUEUED = auto()
    EFFECT_PROCESSING = auto()
    EFFECT_WAITING_SELECTION = auto()
    EFFECT_TARGETS_SELECTED = auto()
    EFFECT_FINISHED = auto()
    TARGET_SELECTION_STARTED = auto()
    TARGET_SELECTION_CLEARED = auto()

    # Meta
    NEXT_TURN = auto()
    WINNER_DECLARED = auto()
    GAME_PAUSED = auto()
    SETTINGS_UPDATED = auto()


@dataclass(frozen=True)
class Action:
    """A discrete state change request."""

    type: ActionType
    payload: Mapping[str, Any] = field(default_factory=dict)

    def __getitem__(self, key: str) -> Any:
        return self.payload[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self.payload.get(key, default)


def _action(action_type: ActionType, **payload: Any) -> Action:
    return Action(type=action_type, payload=payload)


# -- Setup -----------------------------------------------------------------

def players_joined(players: Iterable[Player]) -> Action:
    return _action(ActionType.PLAYERS_JOINED, players=tuple(players))


def phase_changed(phase: Phase) -> Action:
    return _action(ActionType.PHASE_CHANGED, phase=phase)


# -- Dice ------------------------------------------------------------------

def dice_roll_started(reroll_bonus: int = 0) -> Action:
    return _action(ActionType.DICE_ROLL_STARTED, reroll_bonus=reroll_bonus)


def dice_rolled(faces: Iterable[Die]) -> Action:
    return _action(ActionType.DICE_ROLLED, faces=tuple(faces))


def dice_reroll_used() -> Action:
    return _action(ActionType.DICE_REROLL_USED)


def dice_keep_toggled(index: int) -> Action:
    return _action(ActionType.DICE_KEEP_TOGGLED, index=index)


def dice_results_accepted() -> Action:
    return _action(ActionType.DICE_RESULTS_ACCEPTED)


# -- Players ---------------------------------------------------------------

def player_damaged(player_id: str, amount: int) -> Action:
    return _action(ActionType.PLAYER_DAMAGED, player_id=player_id, amount=validate_amount(amount, "Damage"))


def player_healed(player_id: str, amount: int) -> Action:
    return _action(ActionType.PLAYER_HEALED, player_id=player_id, amount=validate_amount(amount, "Healing"))


def player_gained_energy(player_id: str, amount: int) -> Action:
    return _action(ActionType.PLAYER_GAINED_ENERGY, player_id=player_id, amount=validate_amount(amount, "Energy"))


def player_spent_energy(player_id: str, amount: int) -> Action:
    return _action(ActionType.PLAYER_SPENT_ENERGY, player_id=player_id, amount=validate_amount(amount, "Energy"))


def player_vp_changed(player_id: str, amount: int) -> Action:
    """Positive to gain, negative to lose (floored at zero)."""
    return _action(ActionType.PLAYER_VP_CHANGED, player_id=player_id, amount=amount)


def player_card_added(player_id: str, card: Card) -> Action:
    return _action(ActionType.PLAYER_CARD_ADDED, player_id=player_id, card=card)


def player_modifiers_recalculated(player_id: str) -> Action:
    return _action(ActionType.PLAYER_MODIFIERS_RECALCULATED, player_id=player_id)


def player_stats_set(player_id: str, **stats: Any) -> Action:
    """Overwrite health/energy/victory_points (scenario setup)."""
    return _action(ActionType.PLAYER_STATS_SET, player_id=player_id, stats=stats)


# -- Tokyo / yield ---------------------------------------------------------

def tokyo_entered(player_id: str, slot: Slot) -> Action:
    return _action(ActionType.TOKYO_ENTERED, player_id=player_id, slot=slot)


def tokyo_left(player_id: str) -> Action:
    return _action(ActionType.TOKYO_LEFT, player_id=player_id)


def yield_prompts_created(prompts: Iterable) -> Action:
    return _action(ActionType.YIELD_PROMPTS_CREATED, prompts=tuple(prompts))


def yield_decided(defender_id: str, slot: Slot, decision: YieldChoice) -> Action:
    return _action(ActionType.YIELD_DECIDED, defender_id=defender_id, slot=slot, decision=decision)


# -- Cards -----------------------------------------------------------------

def cards_deck_built(catalog: Iterable[Card], deck: Iterable[Card]) -> Action:
    return _action(ActionType.CARDS_DECK_BUILT, catalog=tuple(catalog), deck=tuple(deck))


def cards_shop_refilled(size: int) -> Action:
    return _action(ActionType.CARDS_SHOP_REFILLED, size=size)


def card_removed_from_shop(card_id: str) -> Action:
    return _action(ActionType.CARD_REMOVED_FROM_SHOP, card_id=card_id)


def card_discarded(card: Card) -> Action:
    return _action(ActionType.CARD_DISCARDED, card=card)


def cards_shop_flushed() -> Action:
    return _action(ActionType.CARDS_SHOP_FLUSHED)


def card_peeked(player_id: str, card: Card) -> Action:
    return _action(ActionType.CARD_PEEKED, player_id=player_id, card=card)


# -- Effect queue ----------------------------------------------------------

def effect_enqueued(card_id: str, player_id: str, effect: Effect, turn_cycle_id: int) -> Action:
    return _action(
        ActionType.EFFECT_ENQUEUED,
        card_id=card_id,
        player_id=player_id,
        effect=effect,
        turn_cycle_id=turn_cycle_id,
    )


def effect_processing(entry_id: str) -> Action:
    return _action(ActionType.EFFECT_PROCESSING, entry_id=entry_id)


def effect_waiting_selection(entry_id: str) -> Action:
    return _action(ActionType.EFFECT_WAITING_SELECTION, entry_id=entry_id)


def effect_targets_selected(entry_id: str, selected_ids: Iterable[str]) -> Action:
    return _action(ActionType.EFFECT_TARGETS_SELECTED, entry_id=entry_id, selected_ids=tuple(selected_ids))


def effect_finished(entry_id: str, failed: bool = False, reason: str | None = None) -> Action:
    return _action(ActionType.EFFECT_FINISHED, entry_id=entry_id, failed=failed, reason=reason)


def target_selection_started(
    entry_id: str,
    player_id: str,
    effect: Effect,
    min_targets: int,
    max_targets: int,
    eligible_ids: Iterable[str],
) -> Action:
    return _action(
        ActionType.TARGET_SELECTION_STARTED,
        entry_id=entry_id,
        player_id=player_id,
        effect=effect,
        min_targets=min_targets,
        max_targets=max_targets,
        eligible_ids=tuple(eligible_ids),
    )


def target_selection_cleared(request_id: str) -> Action:
    return _action(ActionType.TARGET_SELECTION_CLEARED, request_id=request_id)


# -- Meta ------------------------------------------------------------------

def next_turn() -> Action:
    return _action(ActionType.NEXT_TURN)


def winner_declared(player_id: str) -> Action:
    return _action(ActionType.WINNER_DECLARED, player_id=player_id)


def game_paused(paused: bool) -> Action:
    return _action(ActionType.GAME_PAUSED, paused=paused)


def settings_updated(**changes: Any) -> Action:
    return _action(ActionType.SETTINGS_UPDATED, changes=changes)
