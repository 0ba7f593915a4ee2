"""
Kaiju Clash - Game Facade

Wires the store, scheduler, effect queue, game log and turn orchestrator
into one object, and exposes the intent-based API a front end talks to.
Every call returns a fresh GameSnapshot; rejected intents are logged and
leave the game unchanged.
"""

from __future__ import annotations

import logging
import random
import threading
from typing import Callable, Sequence

from pydantic import BaseModel, ValidationError

from kaiju.ai.explain import DecisionTree
from kaiju.config.settings import Settings, get_settings
from kaiju.core.actions import players_joined, settings_updated
from kaiju.core.state import GameState
from kaiju.core.store import Store
from kaiju.engine.base import Phase
from kaiju.engine.cards import Card
from kaiju.engine.player import Player, create_player
from kaiju.engine.validators import validate_player_count
from kaiju.interface.models import GameSnapshot, PlayerSpec, SettingsView, parse_intent
from kaiju.runtime.events import GameLog
from kaiju.runtime.scheduler import Scheduler
from kaiju.runtime.turns import TurnOrchestrator
from kaiju.services import scenarios
from kaiju.services.cards import init_cards
from kaiju.services.effects import EffectEngine

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[GameSnapshot], None]


class Game:
    """One running game."""

    def __init__(
        self,
        store: Store,
        scheduler: Scheduler,
        effects: EffectEngine,
        orchestrator: TurnOrchestrator,
        log: GameLog,
    ) -> None:
        self._store = store
        self._scheduler = scheduler
        self._effects = effects
        self._turns = orchestrator
        self._log = log
        self._handlers: dict[str, Callable[[BaseModel], object]] = {
            "roll": lambda i: self._turns.roll(i.player_id),
            "toggle_keep": lambda i: self._turns.toggle_keep(i.index, i.player_id),
            "purchase_card": lambda i: self._turns.purchase(i.player_id, i.card_id),
            "flush_shop": lambda i: self._turns.flush(i.player_id),
            "confirm_targets": lambda i: self._turns.confirm_targets(i.request_id, i.selected_ids, i.player_id),
            "cancel_targets": lambda i: self._turns.cancel_targets(i.request_id, i.player_id),
            "decide_yield": lambda i: self._turns.decide_yield(i.player_id, i.slot, i.decision),
            "advance_phase": lambda i: self._turns.advance_phase(i.player_id),
            "peek": lambda i: self._turns.peek(i.player_id),
            "set_paused": lambda i: self._turns.set_paused(i.paused),
        }

    @classmethod
    def new(
        cls,
        players: Sequence[PlayerSpec | dict | Player],
        *,
        settings: Settings | None = None,
        rng: random.Random | None = None,
        catalog: Sequence[Card] | None = None,
        start: bool = True,
    ) -> "Game":
        """Build a game for 2-6 players and (by default) start the first turn.

        Args:
            players: Seats in turn order
            settings: Overrides ``get_settings()``
            rng: Shared random source for dice and deck shuffles
            catalog: Card pool (defaults to the base catalog)
            start: Begin the first turn immediately

        Raises:
            ValueError: For a bad player count or duplicate player ids
        """
        settings = settings or get_settings()
        rng = rng or random.Random(settings.rng_seed)

        seats = [_to_player(p) for p in players]
        validate_player_count(len(seats))
        if len({p.id for p in seats}) != len(seats):
            raise ValueError("Player ids must be unique")

        store = Store()
        log = GameLog()
        store.subscribe(log.on_change)
        scheduler = Scheduler(is_paused=lambda: store.state.meta.paused, lock=store.lock)
        effects = EffectEngine(store)

        store.dispatch(players_joined(seats))
        store.dispatch(settings_updated(
            cpu_speed=settings.cpu_speed,
            persist_settings=settings.persist_settings,
            persist_positions=settings.persist_positions,
        ))
        init_cards(store, catalog, rng)

        orchestrator = TurnOrchestrator(
            store,
            scheduler,
            effects,
            settings,
            rng=rng,
            decision_tree=DecisionTree(),
        )
        game = cls(store, scheduler, effects, orchestrator, log)
        if start:
            game.start()
        return game

    # -- Reads -------------------------------------------------------------

    @property
    def state(self) -> GameState:
        return self._store.state

    @property
    def store(self) -> Store:
        return self._store

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    @property
    def effects(self) -> EffectEngine:
        return self._effects

    @property
    def turns(self) -> TurnOrchestrator:
        return self._turns

    @property
    def decision_tree(self) -> DecisionTree:
        return self._turns.decision_tree

    @property
    def log(self) -> GameLog:
        return self._log

    @property
    def is_over(self) -> bool:
        return self.state.phase == Phase.GAME_OVER

    @property
    def winner_id(self) -> str | None:
        return self.state.meta.winner_id

    def snapshot(self) -> GameSnapshot:
        return GameSnapshot.from_state(self.state)

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Call ``listener`` with a new snapshot after every state change."""
        return self._store.subscribe(
            lambda state, previous, action: listener(GameSnapshot.from_state(state))
        )

    # -- Commands ----------------------------------------------------------

    def start(self) -> bool:
        with self._store.lock:
            return self._turns.start_game()

    def dispatch(self, intent: BaseModel | dict) -> GameSnapshot:
        """Apply a front-end intent.

        Invalid payloads and intents that do not fit the current turn are
        logged and ignored.
        """
        try:
            parsed = parse_intent(intent)
        except ValidationError as exc:
            logger.warning("Rejected malformed intent: %s", exc.errors())
            return self.snapshot()

        handler = self._handlers.get(getattr(parsed, "type", None))
        if handler is None:
            logger.warning("Rejected unknown intent %r", parsed)
            return self.snapshot()

        # The scheduler thread runs continuations under the same lock
        with self._store.lock:
            actor = self.state.players.get(parsed.player_id) if parsed.player_id else None
            if parsed.player_id and actor is None:
                logger.warning("Rejected %s from unknown player %r", parsed.type, parsed.player_id)
                return self.snapshot()
            if actor is not None and actor.is_cpu:
                logger.warning("Rejected %s on behalf of computer player %s", parsed.type, actor.id)
                return self.snapshot()

            try:
                result = handler(parsed)
            except ValueError as exc:
                logger.warning("Rejected %s: %s", parsed.type, exc)
                return self.snapshot()

            if result is False:
                logger.debug("Intent %s had no effect", parsed.type)
            return self.snapshot()

    def update_settings(self, **changes) -> GameSnapshot:
        """Change cpu_speed or the persistence toggles. Affects pacing only."""
        current = self.state.settings
        try:
            view = SettingsView(
                cpu_speed=changes.pop("cpu_speed", current.cpu_speed),
                persist_settings=changes.pop("persist_settings", current.persist_settings),
                persist_positions=changes.pop("persist_positions", current.persist_positions),
            )
        except ValidationError as exc:
            logger.warning("Rejected settings update: %s", exc.errors())
            return self.snapshot()
        if changes:
            logger.warning("Ignoring unknown settings: %s", ", ".join(sorted(changes)))

        self._store.dispatch(settings_updated(**view.model_dump()))
        return self.snapshot()

    def apply_scenario(self, scenario_id: str, player_id: str) -> bool:
        with self._store.lock:
            return scenarios.apply_scenario(self._store, scenario_id, player_id)

    # -- Clock -------------------------------------------------------------

    def advance(self, ms: int) -> int:
        return self._scheduler.advance(ms)

    def run_until_idle(self, limit_ms: int = 3_600_000) -> int:
        return self._scheduler.run_until_idle(limit_ms)

    def run_forever(self, stop_event: threading.Event) -> None:
        self._scheduler.run_forever(stop_event)


def _to_player(seat: PlayerSpec | dict | Player) -> Player:
    if isinstance(seat, Player):
        return seat
    spec = seat if isinstance(seat, PlayerSpec) else PlayerSpec.model_validate(seat)
    return create_player(spec.id, spec.name, spec.monster_id, is_cpu=spec.is_cpu)
