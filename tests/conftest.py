"""
Kaiju Clash - Test Configuration and Fixtures

Common fixtures for building stores, dice trays and games.
"""

import random

import pytest

from kaiju.config.settings import Settings
from kaiju.core.actions import dice_roll_started, dice_rolled, phase_changed, players_joined
from kaiju.core.store import Store
from kaiju.engine.base import Die, Face, Phase
from kaiju.engine.cards import build_base_catalog
from kaiju.engine.player import create_player
from kaiju.interface.game import Game
from kaiju.services.cards import init_cards


# Phase paths from SETUP, following the legal transitions
PHASE_PATHS: dict[Phase, tuple[Phase, ...]] = {
    Phase.SETUP: (),
    Phase.ROLL: (Phase.ROLL,),
    Phase.RESOLVE: (Phase.ROLL, Phase.RESOLVE),
    Phase.YIELD_DECISION: (Phase.ROLL, Phase.RESOLVE, Phase.YIELD_DECISION),
    Phase.BUY: (Phase.ROLL, Phase.RESOLVE, Phase.BUY),
    Phase.BUY_WAIT: (Phase.ROLL, Phase.RESOLVE, Phase.BUY, Phase.BUY_WAIT),
    Phase.CLEANUP: (Phase.ROLL, Phase.RESOLVE, Phase.BUY, Phase.CLEANUP),
    Phase.GAME_OVER: (Phase.ROLL, Phase.RESOLVE, Phase.GAME_OVER),
}


def _dice(*symbols: str, kept: tuple[int, ...] = ()) -> tuple[Die, ...]:
    return tuple(Die(Face(s), kept=i in kept) for i, s in enumerate(symbols))


@pytest.fixture
def dice():
    """
    Build a dice tray from face symbols.

    Example:
        dice("1", "1", "1", "claw", "energy", "heart", kept=(0, 1))
    """
    return _dice


@pytest.fixture
def catalog():
    """The base catalog in its declared order."""
    return build_base_catalog()


@pytest.fixture
def make_store():
    """
    Factory for a store with ``count`` players (ids p1..pN) moved to ``phase``.

    Args (of the returned callable):
        count: Number of players
        cpu: Ids of computer-controlled players
        phase: Phase to walk to
        cards: Deal a shop from ``deck`` (or the base catalog, unshuffled)
        deck: Explicit card order for the deck
    """
    def make(count=2, cpu=(), phase=Phase.ROLL, cards=False, deck=None):
        players = [
            create_player(f"p{i + 1}", f"Player {i + 1}", is_cpu=f"p{i + 1}" in cpu)
            for i in range(count)
        ]
        store = Store()
        store.dispatch(players_joined(players))
        if cards or deck is not None:
            pool = tuple(deck) if deck is not None else build_base_catalog()
            # Deal in the given order
            init_cards(store, pool, _NoShuffle())
        for step in PHASE_PATHS[phase]:
            store.dispatch(phase_changed(step))
        return store

    return make


class _NoShuffle(random.Random):
    def shuffle(self, x, *args, **kwargs):
        return None


@pytest.fixture
def put_dice():
    """Place an explicit tray as the active player's first roll."""
    def apply(store, faces, reroll_bonus=0):
        store.dispatch(dice_roll_started(reroll_bonus))
        store.dispatch(dice_rolled(faces))
        return store.state

    return apply


@pytest.fixture
def settings():
    """Deterministic settings that ignore the environment and .env files."""
    return Settings(_env_file=None, cpu_speed="fast", rng_seed=7)


@pytest.fixture
def make_game(settings):
    """Factory for a Game with human and/or computer seats."""
    def make(count=2, cpu=(), seed=7, start=True, **overrides):
        seats = [
            {"id": f"p{i + 1}", "name": f"Player {i + 1}", "is_cpu": f"p{i + 1}" in cpu}
            for i in range(count)
        ]
        game_settings = settings.model_copy(update=overrides) if overrides else settings
        return Game.new(seats, settings=game_settings, rng=random.Random(seed), start=start)

    return make
