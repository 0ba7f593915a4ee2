"""
Kaiju Clash - Tokyo Occupancy & Yield Protocol

Entry into the two contested slots, start-of-turn rewards, and the
time-boxed stay-or-flee negotiation that follows an attack on an
occupant. Timing is supplied by the caller (scheduler milliseconds); this
module never sleeps or schedules.
"""

import logging

from kaiju.ai.heuristics import YieldAdvisor, default_yield_choice
from kaiju.core import selectors
from kaiju.core.actions import (
    player_vp_changed,
    tokyo_entered,
    tokyo_left,
    yield_decided,
    yield_prompts_created,
)
from kaiju.core.state import YieldPrompt
from kaiju.core.store import Store
from kaiju.engine.base import (
    BAY_START_VP,
    CITY_START_VP,
    ENTRY_VP,
    YIELD_WINDOW_MS,
    Slot,
    YieldChoice,
)

logger = logging.getLogger(__name__)


def enter_first_open_slot(store: Store, player_id: str) -> Slot | None:
    """Move a player into the city, else the bay, granting the entry VP."""
    state = store.state
    player = state.players.get(player_id)
    if player is None or not player.alive or state.tokyo.slot_of(player_id) is not None:
        return None

    slot = selectors.first_open_slot(state)
    if slot is None:
        return None

    store.dispatch(tokyo_entered(player_id, slot))
    if store.state.tokyo.slot_of(player_id) != slot:
        return None

    store.dispatch(player_vp_changed(player_id, ENTRY_VP))
    logger.info("%s enters Tokyo %s", player_id, slot.value)
    return slot


def attempt_takeover(store: Store, attacker_id: str) -> Slot | None:
    """Fill an empty slot once the attacker has no prompts outstanding."""
    state = store.state
    if selectors.pending_prompts_for(state, attacker_id):
        return None
    attacker = state.players.get(attacker_id)
    if attacker is None or not attacker.alive or attacker.in_tokyo:
        return None
    return enter_first_open_slot(store, attacker_id)


def mandatory_entry(store: Store, player_id: str) -> Slot | None:
    """End-of-resolution entry: an empty slot must be taken by the active player."""
    slot = attempt_takeover(store, player_id)
    if slot is not None:
        logger.debug("Mandatory entry: %s took %s", player_id, slot.value)
    return slot


def award_start_of_turn_vp(store: Store, player_id: str) -> int:
    """City occupant gains 2 VP, bay occupant 1 VP, at the start of their turn."""
    state = store.state
    slot = state.tokyo.slot_of(player_id)
    if slot == Slot.CITY:
        points = CITY_START_VP
    elif slot == Slot.BAY and selectors.is_bay_allowed(state):
        points = BAY_START_VP
    else:
        return 0

    store.dispatch(player_vp_changed(player_id, points))
    logger.info("%s holds Tokyo %s: +%d VP", player_id, slot.value, points)
    return points


def vacate_eliminated(store: Store) -> list[str]:
    """Remove any eliminated occupant still listed in a slot."""
    removed = []
    for occupant in selectors.tokyo_occupants(store.state):
        if not occupant.alive:
            store.dispatch(tokyo_left(occupant.id))
            removed.append(occupant.id)
    return removed


def begin_yield_flow(
    store: Store,
    attacker_id: str,
    damaged: dict[str, int],
    now_ms: int = 0,
    window_ms: int = YIELD_WINDOW_MS,
    advisor: type[YieldAdvisor] = YieldAdvisor,
) -> tuple[YieldPrompt, ...]:
    """Open a prompt for every surviving occupant the attacker damaged.

    Computer defenders answer straight away; human prompts stay pending
    until ``decide_yield`` or ``expire_prompts``.

    Args:
        store: Game store
        attacker_id: Player whose claws hit Tokyo
        damaged: Damage dealt, keyed by target id
        now_ms: Current scheduler time
        window_ms: How long a human has to answer

    Returns:
        Prompts created (some may already be decided)
    """
    state = store.state
    prompts = []
    for slot in selectors.contested_slots(state):
        defender_id = state.tokyo.occupant(slot)
        if defender_id is None or defender_id == attacker_id or defender_id not in damaged:
            continue
        if not state.players.get(defender_id).alive:
            continue
        prompts.append(YieldPrompt(
            defender_id=defender_id,
            attacker_id=attacker_id,
            slot=slot,
            expires_at=now_ms + window_ms,
            damage=damaged[defender_id],
        ))

    if not prompts:
        return ()

    store.dispatch(yield_prompts_created(prompts))
    logger.info("Yield prompts for %s", ", ".join(p.defender_id for p in prompts))

    for prompt in prompts:
        defender = store.state.players.get(prompt.defender_id)
        if defender.is_cpu:
            decision = advisor.decide(defender, prompt.slot)
            logger.debug("%s decides to %s (%s)", defender.id, decision.choice.value, decision.rationale)
            decide_yield(store, prompt.defender_id, prompt.slot, decision.choice)

    return tuple(prompts)


def decide_yield(store: Store, defender_id: str, slot: Slot, choice: YieldChoice) -> bool:
    """Record a stay/yield decision and let the attacker move in when free.

    Returns:
        False when there is no matching pending prompt
    """
    prompt = next(
        (p for p in store.state.yields.pending() if p.defender_id == defender_id and p.slot == slot),
        None,
    )
    if prompt is None:
        logger.debug("No pending yield prompt for %s in %s", defender_id, slot.value)
        return False

    store.dispatch(yield_decided(defender_id, slot, choice))
    if choice == YieldChoice.YIELD and store.state.tokyo.slot_of(defender_id) == slot:
        store.dispatch(tokyo_left(defender_id))
        logger.info("%s yields Tokyo %s", defender_id, slot.value)
    else:
        logger.info("%s stays in Tokyo %s", defender_id, slot.value)

    if not selectors.pending_prompts_for(store.state, prompt.attacker_id):
        attempt_takeover(store, prompt.attacker_id)
    return True


def expire_prompts(store: Store, now_ms: int) -> int:
    """Apply the default decision to every prompt whose window has closed."""
    expired = 0
    for prompt in store.state.yields.pending():
        if prompt.expires_at > now_ms:
            continue
        defender = store.state.players.get(prompt.defender_id)
        choice = default_yield_choice(defender.health)
        logger.info("Yield window for %s expired: %s", defender.id, choice.value)
        if decide_yield(store, prompt.defender_id, prompt.slot, choice):
            expired += 1
    return expired
