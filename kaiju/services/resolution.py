"""
Kaiju Clash - Dice Resolution

Turns the active player's final dice into VP, energy, healing and claw
damage, then handles Tokyo entry and yield prompts. A roll is scored at
most once per turn: the dice slice's ``accepted`` flag is set before any
effect is applied.
"""

import logging
from dataclasses import dataclass, field
from typing import Mapping

from kaiju.ai.heuristics import YieldAdvisor
from kaiju.core import selectors
from kaiju.core.actions import (
    dice_results_accepted,
    player_damaged,
    player_gained_energy,
    player_healed,
    player_vp_changed,
)
from kaiju.core.state import GameState, YieldPrompt
from kaiju.core.store import Store
from kaiju.engine.base import YIELD_WINDOW_MS, Face, Slot, Triple
from kaiju.engine.dice import DiceEngine
from kaiju.engine.player import Player
from kaiju.services import tokyo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolutionSummary:
    """
    What one resolution did.

    Attributes:
        player_id: Active player
        triples: Scoring number sets
        vp_gained: VP from triples
        energy_gained: Energy from energy faces
        healed: Health actually restored
        claws: Attack power
        damaged: Damage dealt keyed by target id
        eliminated: Targets knocked out
        entered: Slot entered during combat
        prompts: Yield prompts opened
    """
    player_id: str
    triples: tuple[Triple, ...] = ()
    vp_gained: int = 0
    energy_gained: int = 0
    healed: int = 0
    claws: int = 0
    damaged: Mapping[str, int] = field(default_factory=dict)
    eliminated: tuple[str, ...] = ()
    entered: Slot | None = None
    prompts: tuple[YieldPrompt, ...] = ()


def attack_targets(state: GameState, attacker: Player) -> tuple[Player, ...]:
    """Tokyo attacks everyone outside; everyone outside attacks Tokyo."""
    if attacker.in_tokyo:
        return tuple(
            p for p in selectors.living_opponents(state, attacker.id)
            if not p.in_tokyo
        )
    return tuple(
        p for p in selectors.tokyo_occupants(state)
        if p.alive and p.id != attacker.id
    )


def resolve_dice(
    store: Store,
    now_ms: int = 0,
    window_ms: int = YIELD_WINDOW_MS,
    advisor: type[YieldAdvisor] = YieldAdvisor,
) -> ResolutionSummary | None:
    """Score the active player's dice.

    Args:
        store: Game store
        now_ms: Current scheduler time, used for yield prompt expiry
        window_ms: Yield window length
        advisor: Yield heuristic for computer defenders

    Returns:
        Summary, or None when the roll was already scored or there is
        nothing to score
    """
    state = store.state
    if state.dice.accepted:
        logger.debug("Dice already resolved this turn")
        return None

    attacker = selectors.active_player(state)
    if attacker is None or not attacker.alive or not state.dice.faces:
        return None

    store.dispatch(dice_results_accepted())
    tally = DiceEngine.tally(state.dice.faces)

    # 1. Triples
    triples = DiceEngine.extract_triples(tally)
    vp_gained = sum(t.victory_points for t in triples)
    if vp_gained:
        store.dispatch(player_vp_changed(attacker.id, vp_gained))

    # 2. Energy
    energy_gained = tally[Face.ENERGY]
    if energy_gained:
        store.dispatch(player_gained_energy(attacker.id, energy_gained))

    # 3. Healing, never inside Tokyo
    healed = 0
    if tally[Face.HEART] and not attacker.in_tokyo:
        healed = min(tally[Face.HEART], attacker.max_health - attacker.health)
        if healed:
            store.dispatch(player_healed(attacker.id, healed))

    # 4. Attack
    claws = tally[Face.CLAW]
    damaged: dict[str, int] = {}
    eliminated: list[str] = []
    if claws:
        for target in attack_targets(store.state, attacker):
            store.dispatch(player_damaged(target.id, claws))
            damaged[target.id] = claws
            if not store.state.players.get(target.id).alive:
                eliminated.append(target.id)
                logger.info("%s was eliminated by %s", target.id, attacker.id)

    # 5. Tokyo entry or yield negotiation
    entered = None
    prompts: tuple[YieldPrompt, ...] = ()
    if claws and not attacker.in_tokyo and not store.state.tokyo.occupants:
        entered = tokyo.enter_first_open_slot(store, attacker.id)
    elif damaged:
        prompts = tokyo.begin_yield_flow(store, attacker.id, damaged, now_ms, window_ms, advisor)

    summary = ResolutionSummary(
        player_id=attacker.id,
        triples=triples,
        vp_gained=vp_gained,
        energy_gained=energy_gained,
        healed=healed,
        claws=claws,
        damaged=damaged,
        eliminated=tuple(eliminated),
        entered=entered,
        prompts=prompts,
    )
    logger.info(
        "%s resolved: +%d VP, +%d energy, +%d health, %d claws",
        attacker.id, vp_gained, energy_gained, healed, claws,
    )
    return summary
