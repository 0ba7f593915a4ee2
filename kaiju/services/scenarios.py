"""
Kaiju Clash - Scenario Presets

Named state tweaks for setting up edge cases quickly (near-win, near-death,
Tokyo control...). Each scenario is applied to one player through ordinary
dispatched actions, so the store validates every change.
"""

import logging
from dataclasses import dataclass
from typing import Callable

from kaiju.core.actions import player_card_added, player_stats_set, tokyo_entered
from kaiju.core.store import Store
from kaiju.engine.base import Slot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Scenario:
    id: str
    label: str
    description: str
    apply: Callable[[Store, str], None]


def _almost_win(store: Store, player_id: str) -> None:
    player = store.state.players.get(player_id)
    store.dispatch(player_stats_set(player_id, victory_points=max(player.victory_points, 18)))


def _near_death(store: Store, player_id: str) -> None:
    store.dispatch(player_stats_set(player_id, health=1))


def _energy_bank(store: Store, player_id: str) -> None:
    player = store.state.players.get(player_id)
    store.dispatch(player_stats_set(player_id, energy=max(player.energy, 15)))


def _tokyo_control(store: Store, player_id: str) -> None:
    player = store.state.players.get(player_id)
    store.dispatch(player_stats_set(player_id, victory_points=max(player.victory_points, 12)))
    if store.state.tokyo.city is None:
        store.dispatch(tokyo_entered(player_id, Slot.CITY))


def _power_loaded(store: Store, player_id: str) -> None:
    held = {card.id for card in store.state.players.get(player_id).cards}
    grants = [c for c in store.state.cards.catalog if c.is_keep and c.id not in held][:4]
    for card in grants:
        store.dispatch(player_card_added(player_id, card))


SCENARIOS: dict[str, Scenario] = {
    s.id: s for s in (
        Scenario("almost_win", "On Cusp of Victory", "Victory points raised to at least 18.", _almost_win),
        Scenario("near_death", "On Verge of Death", "Health set to 1.", _near_death),
        Scenario("energy_bank", "Huge Energy Reserve", "Energy raised to at least 15.", _energy_bank),
        Scenario("tokyo_control", "Tokyo King", "At least 12 VP and placed in Tokyo City.", _tokyo_control),
        Scenario("power_loaded", "Loaded With Power Cards", "Up to 4 keep cards from the catalog.", _power_loaded),
    )
}


def list_scenarios() -> list[Scenario]:
    return list(SCENARIOS.values())


def apply_scenario(store: Store, scenario_id: str, player_id: str) -> bool:
    """Apply a named scenario to a player.

    Returns:
        False for an unknown scenario or player
    """
    scenario = SCENARIOS.get(scenario_id)
    if scenario is None or store.state.players.get(player_id) is None:
        logger.info("Cannot apply scenario %r to %r", scenario_id, player_id)
        return False
    scenario.apply(store, player_id)
    logger.info("Applied scenario %s to %s", scenario_id, player_id)
    return True
