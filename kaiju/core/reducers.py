"""
Kaiju Clash - Slice Transitions

One pure transition function per state slice, composed into
``root_reducer``. Every action is validated once, up front, against the
whole state; a rejected action leaves the state object untouched.
Slices never dispatch and never reach outside ``(slice, action, root)``.
"""

import logging
from dataclasses import replace

from kaiju.core.actions import Action, ActionType
from kaiju.core.state import (
    CardsState,
    DiceState,
    EffectEntry,
    EffectQueueState,
    EffectStatus,
    GameState,
    MetaState,
    PeekRecord,
    PlayersState,
    SettingsState,
    TargetSelectionRequest,
    TargetSelectionState,
    TokyoState,
    YieldState,
    frozen_map,
)
from kaiju.engine import player as player_model
from kaiju.engine.base import DicePhase, Phase, Slot, YieldChoice, bay_allowed
from kaiju.engine.cards import draw
from kaiju.engine.dice import DiceEngine
from kaiju.engine.phases import can_transition
from kaiju.engine.validators import validate_player_count

logger = logging.getLogger(__name__)

_PLAYER_ACTIONS = frozenset({
    ActionType.PLAYER_DAMAGED,
    ActionType.PLAYER_HEALED,
    ActionType.PLAYER_GAINED_ENERGY,
    ActionType.PLAYER_SPENT_ENERGY,
    ActionType.PLAYER_VP_CHANGED,
    ActionType.PLAYER_CARD_ADDED,
    ActionType.PLAYER_MODIFIERS_RECALCULATED,
    ActionType.PLAYER_STATS_SET,
    ActionType.TOKYO_ENTERED,
    ActionType.TOKYO_LEFT,
    ActionType.CARD_PEEKED,
})

_STAT_FIELDS = ("health", "energy", "victory_points")


# -- Validation ------------------------------------------------------------

def validate_action(state: GameState, action: Action) -> str | None:
    """Return why ``action`` cannot apply to ``state``, or None if it can."""
    kind = action.type

    if kind in _PLAYER_ACTIONS and state.players.get(action["player_id"]) is None:
        return f"Unknown player {action['player_id']!r}"

    if kind == ActionType.PLAYERS_JOINED:
        if state.phase != Phase.SETUP:
            return "Players can only join during setup"
        try:
            validate_player_count(len(action["players"]))
        except ValueError as exc:
            return str(exc)

    elif kind == ActionType.PHASE_CHANGED:
        if action["phase"] == state.phase:
            return f"Already in {state.phase.value}"
        if not can_transition(state.phase, action["phase"]):
            return f"Illegal transition {state.phase.value} -> {action['phase'].value}"

    elif kind == ActionType.DICE_KEEP_TOGGLED:
        index = action["index"]
        if state.dice.accepted or state.dice.phase == DicePhase.IDLE:
            return "No dice to keep"
        if not isinstance(index, int) or not (0 <= index < len(state.dice.faces)):
            return f"Die index {index!r} out of range"

    elif kind == ActionType.PLAYER_SPENT_ENERGY:
        if state.players.get(action["player_id"]).energy < action["amount"]:
            return "Not enough energy"

    elif kind == ActionType.TOKYO_ENTERED:
        return _validate_tokyo_entry(state, action["player_id"], action["slot"])

    elif kind == ActionType.TOKYO_LEFT:
        if state.tokyo.slot_of(action["player_id"]) is None:
            return "Player is not in Tokyo"

    elif kind == ActionType.YIELD_DECIDED:
        if _find_pending_prompt(state.yields, action["defender_id"], action["slot"]) is None:
            return "No pending yield prompt"

    elif kind == ActionType.CARD_REMOVED_FROM_SHOP:
        if all(card.id != action["card_id"] for card in state.cards.shop):
            return f"Card {action['card_id']!r} is not in the shop"

    elif kind in (
        ActionType.EFFECT_PROCESSING,
        ActionType.EFFECT_WAITING_SELECTION,
        ActionType.EFFECT_TARGETS_SELECTED,
        ActionType.EFFECT_FINISHED,
    ):
        if state.effect_queue.get(action["entry_id"]) is None:
            return f"Unknown effect entry {action['entry_id']!r}"
        processing = state.effect_queue.processing
        if kind == ActionType.EFFECT_PROCESSING and processing not in (None, action["entry_id"]):
            return f"Effect {processing} is already processing"

    elif kind == ActionType.TARGET_SELECTION_STARTED:
        if state.target_selection.active is not None:
            return "A target selection is already active"

    elif kind == ActionType.TARGET_SELECTION_CLEARED:
        active = state.target_selection.active
        if active is None or active.request_id != action["request_id"]:
            return "No matching target selection"

    elif kind == ActionType.NEXT_TURN:
        if not state.players.order:
            return "No players"

    return None


def _validate_tokyo_entry(state: GameState, player_id: str, slot: Slot) -> str | None:
    player = state.players.get(player_id)
    if not player.alive:
        return "Eliminated players cannot enter Tokyo"
    if state.tokyo.slot_of(player_id) is not None:
        return "Player already occupies a Tokyo slot"
    if state.tokyo.occupant(slot) is not None:
        return f"Tokyo {slot.value} is occupied"
    if slot == Slot.BAY:
        if not bay_allowed(len(state.players.order)):
            return "Tokyo Bay needs 5 or more players"
        if state.tokyo.city is None:
            return "Tokyo City fills before Tokyo Bay"
    return None


def _find_pending_prompt(yields: YieldState, defender_id: str, slot: Slot):
    for prompt in yields.prompts:
        if prompt.pending and prompt.defender_id == defender_id and prompt.slot == slot:
            return prompt
    return None


def _eliminated_by(action: Action, root: GameState) -> str | None:
    """Id of the player an action knocks out, if any."""
    if action.type == ActionType.PLAYER_DAMAGED:
        target = root.players.get(action["player_id"])
        if target.alive and action["amount"] >= target.health:
            return target.id
    elif action.type == ActionType.PLAYER_STATS_SET:
        if action["stats"].get("health", 1) <= 0:
            return action["player_id"]
    return None


# -- Slices ----------------------------------------------------------------

def players_reducer(players: PlayersState, action: Action, root: GameState) -> PlayersState:
    kind = action.type

    if kind == ActionType.PLAYERS_JOINED:
        joined = action["players"]
        return PlayersState(
            order=tuple(p.id for p in joined),
            by_id=frozen_map({p.id: p for p in joined}),
        )

    if kind not in _PLAYER_ACTIONS or kind == ActionType.CARD_PEEKED:
        return players

    current = players.get(action["player_id"])
    amount = action.get("amount", 0)

    if kind == ActionType.PLAYER_DAMAGED:
        updated = player_model.apply_damage(current, amount)
        if not updated.alive:
            updated = player_model.leave_tokyo(updated)
    elif kind == ActionType.PLAYER_HEALED:
        updated = player_model.heal(current, amount)
    elif kind == ActionType.PLAYER_GAINED_ENERGY:
        updated = player_model.add_energy(current, amount)
    elif kind == ActionType.PLAYER_SPENT_ENERGY:
        updated = player_model.spend_energy(current, amount)
    elif kind == ActionType.PLAYER_VP_CHANGED:
        updated = player_model.add_victory_points(current, amount)
    elif kind == ActionType.PLAYER_CARD_ADDED:
        updated = player_model.add_card(current, action["card"])
    elif kind == ActionType.PLAYER_MODIFIERS_RECALCULATED:
        updated = player_model.recalc_modifiers(current)
    elif kind == ActionType.PLAYER_STATS_SET:
        updated = _apply_stats(current, action["stats"])
    elif kind == ActionType.TOKYO_ENTERED:
        updated = player_model.enter_tokyo(current)
    else:
        updated = player_model.leave_tokyo(current)

    return players if updated == current else players.with_player(updated)


def _apply_stats(current, stats):
    changes = {k: v for k, v in stats.items() if k in _STAT_FIELDS}
    if "health" in changes:
        changes["health"] = max(0, min(current.max_health, changes["health"]))
    for key in ("energy", "victory_points"):
        if key in changes:
            changes[key] = max(0, changes[key])
    updated = replace(current, **changes)
    if not updated.alive:
        updated = player_model.leave_tokyo(updated)
    return updated


def dice_reducer(dice: DiceState, action: Action, root: GameState) -> DiceState:
    kind = action.type

    if kind == ActionType.PHASE_CHANGED and action["phase"] == Phase.ROLL:
        return DiceState(base_rerolls=dice.base_rerolls)

    if kind == ActionType.DICE_ROLL_STARTED:
        if dice.phase in (DicePhase.IDLE, DicePhase.SEQUENCE_COMPLETE):
            return replace(
                dice,
                rerolls_remaining=dice.base_rerolls + action["reroll_bonus"],
                phase=DicePhase.ROLLING,
            )
        return replace(dice, phase=DicePhase.ROLLING)

    if kind == ActionType.DICE_ROLLED:
        return replace(
            dice,
            faces=action["faces"],
            phase=DicePhase.RESOLVED,
            roll_count=dice.roll_count + 1,
        )

    if kind == ActionType.DICE_REROLL_USED:
        remaining = max(0, dice.rerolls_remaining - 1)
        phase = DicePhase.SEQUENCE_COMPLETE if remaining == 0 else dice.phase
        return replace(dice, rerolls_remaining=remaining, phase=phase)

    if kind == ActionType.DICE_KEEP_TOGGLED:
        return replace(dice, faces=DiceEngine.toggle_keep(dice.faces, action["index"]))

    if kind == ActionType.DICE_RESULTS_ACCEPTED:
        return replace(dice, accepted=True)

    return dice


def tokyo_reducer(tokyo: TokyoState, action: Action, root: GameState) -> TokyoState:
    kind = action.type

    if kind == ActionType.TOKYO_ENTERED:
        if action["slot"] == Slot.CITY:
            return replace(tokyo, city=action["player_id"])
        return replace(tokyo, bay=action["player_id"])

    leaving = action["player_id"] if kind == ActionType.TOKYO_LEFT else _eliminated_by(action, root)
    if leaving is None:
        return tokyo
    if tokyo.city == leaving:
        return replace(tokyo, city=None)
    if tokyo.bay == leaving:
        return replace(tokyo, bay=None)
    return tokyo


def yields_reducer(yields: YieldState, action: Action, root: GameState) -> YieldState:
    kind = action.type

    if kind == ActionType.PHASE_CHANGED and action["phase"] == Phase.ROLL:
        return YieldState() if yields.prompts else yields

    if kind == ActionType.YIELD_PROMPTS_CREATED:
        return YieldState(prompts=yields.prompts + action["prompts"])

    if kind == ActionType.YIELD_DECIDED:
        target = _find_pending_prompt(yields, action["defender_id"], action["slot"])
        return YieldState(prompts=tuple(
            replace(p, decision=action["decision"]) if p is target else p
            for p in yields.prompts
        ))

    # An eliminated defender has nothing left to decide.
    eliminated = _eliminated_by(action, root)
    if eliminated is not None and any(p.pending and p.defender_id == eliminated for p in yields.prompts):
        return YieldState(prompts=tuple(
            replace(p, decision=YieldChoice.YIELD) if p.pending and p.defender_id == eliminated else p
            for p in yields.prompts
        ))

    return yields


def cards_reducer(cards: CardsState, action: Action, root: GameState) -> CardsState:
    kind = action.type

    if kind == ActionType.CARDS_DECK_BUILT:
        return CardsState(catalog=action["catalog"], deck=action["deck"])

    if kind == ActionType.CARDS_SHOP_REFILLED:
        missing = action["size"] - len(cards.shop)
        if missing <= 0 or not cards.deck:
            return cards
        drawn, rest = draw(cards.deck, missing)
        return replace(cards, shop=cards.shop + drawn, deck=rest)

    if kind == ActionType.CARD_REMOVED_FROM_SHOP:
        index = next(i for i, c in enumerate(cards.shop) if c.id == action["card_id"])
        return replace(cards, shop=cards.shop[:index] + cards.shop[index + 1:])

    if kind == ActionType.CARD_DISCARDED:
        return replace(cards, discard=cards.discard + (action["card"],))

    if kind == ActionType.CARDS_SHOP_FLUSHED:
        return replace(cards, shop=(), discard=cards.discard + cards.shop)

    if kind == ActionType.CARD_PEEKED:
        return replace(cards, last_peek=PeekRecord(player_id=action["player_id"], card=action["card"]))

    return cards


def effect_queue_reducer(queue: EffectQueueState, action: Action, root: GameState) -> EffectQueueState:
    kind = action.type

    if kind == ActionType.EFFECT_ENQUEUED:
        entry = EffectEntry(
            id=f"eff_{queue.next_id}",
            card_id=action["card_id"],
            player_id=action["player_id"],
            effect=action["effect"],
            turn_cycle_id=action["turn_cycle_id"],
        )
        return replace(queue, queue=queue.queue + (entry,), next_id=queue.next_id + 1)

    if kind == ActionType.EFFECT_PROCESSING:
        return _update_entry(queue, action["entry_id"], processing=action["entry_id"],
                             status=EffectStatus.PROCESSING)

    if kind == ActionType.EFFECT_WAITING_SELECTION:
        return _update_entry(queue, action["entry_id"], processing=None,
                             status=EffectStatus.WAITING_SELECTION)

    if kind == ActionType.EFFECT_TARGETS_SELECTED:
        entry = queue.get(action["entry_id"])
        status = EffectStatus.QUEUED if entry.status == EffectStatus.WAITING_SELECTION else entry.status
        return _update_entry(queue, entry.id, processing=queue.processing,
                             status=status, selected_ids=action["selected_ids"])

    if kind == ActionType.EFFECT_FINISHED:
        entry = queue.get(action["entry_id"])
        done = replace(
            entry,
            status=EffectStatus.FAILED if action["failed"] else EffectStatus.RESOLVED,
            reason=action["reason"],
        )
        return EffectQueueState(
            queue=tuple(e for e in queue.queue if e.id != entry.id),
            processing=None if queue.processing == entry.id else queue.processing,
            history=queue.history + (done,),
            next_id=queue.next_id,
        )

    return queue


def _update_entry(queue: EffectQueueState, entry_id: str, processing: str | None, **changes) -> EffectQueueState:
    return replace(
        queue,
        processing=processing,
        queue=tuple(replace(e, **changes) if e.id == entry_id else e for e in queue.queue),
    )


def target_selection_reducer(
    selection: TargetSelectionState, action: Action, root: GameState
) -> TargetSelectionState:
    if action.type == ActionType.TARGET_SELECTION_STARTED:
        request = TargetSelectionRequest(
            request_id=f"sel_{selection.next_id}",
            entry_id=action["entry_id"],
            player_id=action["player_id"],
            effect=action["effect"],
            min_targets=action["min_targets"],
            max_targets=action["max_targets"],
            eligible_ids=action["eligible_ids"],
        )
        return TargetSelectionState(active=request, next_id=selection.next_id + 1)

    if action.type == ActionType.TARGET_SELECTION_CLEARED:
        return replace(selection, active=None)

    return selection


def phase_reducer(phase: Phase, action: Action, root: GameState) -> Phase:
    if action.type == ActionType.PHASE_CHANGED:
        return action["phase"]
    return phase


def settings_reducer(settings: SettingsState, action: Action, root: GameState) -> SettingsState:
    if action.type != ActionType.SETTINGS_UPDATED:
        return settings
    changes = {k: v for k, v in action["changes"].items() if hasattr(settings, k) and v is not None}
    return replace(settings, **changes) if changes else settings


def meta_reducer(meta: MetaState, action: Action, root: GameState) -> MetaState:
    kind = action.type

    if kind == ActionType.NEXT_TURN:
        order = root.players.order
        index, round_number = meta.active_player_index, meta.round
        for _ in range(len(order)):
            index += 1
            if index >= len(order):
                index = 0
                round_number += 1
            if root.players.get(order[index]).alive:
                break
        return replace(
            meta,
            active_player_index=index,
            round=round_number,
            turn=meta.turn + 1,
            turn_cycle_id=meta.turn_cycle_id + 1,
        )

    if kind == ActionType.WINNER_DECLARED:
        return replace(meta, winner_id=action["player_id"])

    if kind == ActionType.GAME_PAUSED:
        return replace(meta, paused=bool(action["paused"]))

    return meta


# -- Root ------------------------------------------------------------------

def root_reducer(state: GameState, action: Action) -> GameState:
    """Validate ``action`` and run every slice transition over it."""
    error = validate_action(state, action)
    if error is not None:
        logger.debug("Rejected %s: %s", action.type.name, error)
        return state

    new_state = GameState(
        players=players_reducer(state.players, action, state),
        dice=dice_reducer(state.dice, action, state),
        tokyo=tokyo_reducer(state.tokyo, action, state),
        yields=yields_reducer(state.yields, action, state),
        cards=cards_reducer(state.cards, action, state),
        effect_queue=effect_queue_reducer(state.effect_queue, action, state),
        target_selection=target_selection_reducer(state.target_selection, action, state),
        phase=phase_reducer(state.phase, action, state),
        settings=settings_reducer(state.settings, action, state),
        meta=meta_reducer(state.meta, action, state),
    )
    return state if new_state == state else new_state
