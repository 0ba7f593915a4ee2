"""
Kaiju Clash - Turn Orchestrator

Sequences one full turn for human and computer players:

    start-of-turn Tokyo VP -> ROLL -> RESOLVE -> mandatory entry -> win check
    -> (YIELD_DECISION) -> BUY (-> BUY_WAIT) -> CLEANUP -> next living player

Computer turns are paced through the scheduler and guarded by a watchdog
that forces resolution after a stall. Every scheduled continuation carries
the turn-cycle id it was created under and does nothing once a newer turn
has begun.
"""

from __future__ import annotations

import logging
import random
from typing import Callable

from kaiju.ai.explain import DecisionTree
from kaiju.ai.heuristics import REROLL, BuyAdvisor, DiceKeepAdvisor, YieldAdvisor, safe_keep_decision
from kaiju.config.settings import Settings, buy_window_ms, get_settings, pacing_delay_ms
from kaiju.core import selectors
from kaiju.core.actions import (
    dice_keep_toggled,
    dice_reroll_used,
    dice_roll_started,
    dice_rolled,
    game_paused,
    next_turn,
    phase_changed,
    winner_declared,
)
from kaiju.core.store import Store
from kaiju.engine.base import MAX_TOTAL_ROLLS, DicePhase, Phase, Slot, YieldChoice
from kaiju.engine.cards import Card
from kaiju.engine.dice import DiceEngine
from kaiju.engine.phases import after_buy, after_resolve
from kaiju.engine.player import Player
from kaiju.runtime.scheduler import Scheduler, Task
from kaiju.services import cards, tokyo
from kaiju.services.effects import EffectEngine
from kaiju.services.resolution import resolve_dice

logger = logging.getLogger(__name__)

MAX_CPU_PURCHASES = 3


class TurnOrchestrator:
    """Drives the phase machine for every player.

    Human-facing methods (``roll``, ``toggle_keep``, ``end_roll``,
    ``purchase``...) return False when the request does not fit the current
    phase or player; they never raise for game-rule violations.
    """

    def __init__(
        self,
        store: Store,
        scheduler: Scheduler,
        effects: EffectEngine,
        settings: Settings | None = None,
        *,
        rng: random.Random | None = None,
        decision_tree: DecisionTree | None = None,
        keep_advisor: type[DiceKeepAdvisor] = DiceKeepAdvisor,
        buy_advisor: type[BuyAdvisor] = BuyAdvisor,
        yield_advisor: type[YieldAdvisor] = YieldAdvisor,
    ) -> None:
        self._store = store
        self._scheduler = scheduler
        self._effects = effects
        self._settings = settings or get_settings()
        self._rng = rng or random.Random(self._settings.rng_seed)
        self._tree = decision_tree if decision_tree is not None else DecisionTree()
        self._keep_advisor = keep_advisor
        self._buy_advisor = buy_advisor
        self._yield_advisor = yield_advisor

        self._watchdog: Task | None = None
        self._buy_task: Task | None = None
        self._yield_task: Task | None = None
        self._cpu_purchases = 0
        self._flushed = False

    # -- Helpers -----------------------------------------------------------

    @property
    def state(self):
        return self._store.state

    @property
    def decision_tree(self) -> DecisionTree:
        return self._tree

    def pacing_delay(self) -> int:
        return pacing_delay_ms(self.state.settings.cpu_speed)

    def _active(self) -> Player | None:
        return selectors.active_player(self.state)

    def _is_active(self, player_id: str | None) -> bool:
        return player_id is None or player_id == selectors.active_player_id(self.state)

    def _human_turn(self, player_id: str | None) -> bool:
        active = self._active()
        return active is not None and not active.is_cpu and self._is_active(player_id)

    def _later(self, delay_ms: int, fn: Callable[[], object], label: str) -> Task:
        """Schedule ``fn`` for this turn cycle only."""
        cycle = self.state.meta.turn_cycle_id

        def run() -> None:
            if self.state.meta.turn_cycle_id != cycle:
                logger.debug("Ignoring stale %s from turn cycle %d", label, cycle)
                return
            if self.state.phase == Phase.GAME_OVER:
                return
            fn()

        return self._scheduler.call_later(delay_ms, run, label=label)

    def _cancel(self, task: Task | None) -> None:
        if task is not None:
            task.cancel()

    # -- Lifecycle ---------------------------------------------------------

    def start_game(self) -> bool:
        if self.state.phase != Phase.SETUP or not self.state.players.order:
            return False
        self._store.dispatch(phase_changed(Phase.ROLL))
        logger.info("Game started with %d players", selectors.player_count(self.state))
        tokyo.award_start_of_turn_vp(self._store, selectors.active_player_id(self.state))
        self._begin_turn()
        return True

    def _begin_turn(self) -> None:
        active = self._active()
        logger.info(
            "Round %d turn %d: %s",
            self.state.meta.round, self.state.meta.turn, active.id,
        )
        if active.is_cpu:
            self._arm_watchdog()
            self._later(self.pacing_delay(), self._cpu_roll_step, "cpu-roll")

    def _advance_turn(self) -> None:
        if self.state.phase != Phase.CLEANUP:
            return
        self._store.dispatch(next_turn())
        tokyo.award_start_of_turn_vp(self._store, selectors.active_player_id(self.state))
        self._store.dispatch(phase_changed(Phase.ROLL))
        self._begin_turn()

    def set_paused(self, paused: bool) -> None:
        self._store.dispatch(game_paused(paused))
        # Paused time does not count against a stalled computer turn
        if not paused and self._watchdog is not None and self.state.phase == Phase.ROLL:
            self._arm_watchdog()

    # -- Rolling -----------------------------------------------------------

    def _roll(self, active: Player) -> bool:
        dice = self.state.dice
        slots = active.modifiers.dice_slots

        if dice.phase == DicePhase.IDLE:
            self._store.dispatch(dice_roll_started(active.modifiers.reroll_bonus))
            self._store.dispatch(dice_rolled(DiceEngine.roll(slots, (), self._rng)))
        elif dice.rerolls_remaining > 0:
            self._store.dispatch(dice_roll_started())
            self._store.dispatch(dice_rolled(DiceEngine.roll(slots, dice.faces, self._rng)))
            self._store.dispatch(dice_reroll_used())
        else:
            return False
        return True

    def roll(self, player_id: str | None = None) -> bool:
        """Roll (or reroll) for the active human player."""
        if self.state.phase != Phase.ROLL or self.state.dice.accepted or not self._human_turn(player_id):
            return False
        active = self._active()
        if not self._roll(active):
            return False
        if self.state.dice.rerolls_remaining == 0:
            self.resolve()
        return True

    def toggle_keep(self, index: int, player_id: str | None = None) -> bool:
        if self.state.phase != Phase.ROLL or not self._human_turn(player_id):
            return False
        before = self.state
        return self._store.dispatch(dice_keep_toggled(index)) is not before

    def end_roll(self, player_id: str | None = None) -> bool:
        """Stop rolling and resolve the current dice."""
        if self.state.phase != Phase.ROLL or not self._human_turn(player_id):
            return False
        if not self.state.dice.faces:
            return False
        return self.resolve()

    def _cpu_roll_step(self) -> None:
        if self.state.phase != Phase.ROLL:
            return
        active = self._active()
        if not self._roll(active):
            self.resolve()
            return
        self._arm_watchdog()

        state = self.state
        decision = safe_keep_decision(
            state.dice.faces,
            active,
            len(selectors.living_opponents(state, active.id)),
            state.dice.rerolls_remaining,
            self._keep_advisor,
        )
        for index, die in enumerate(state.dice.faces):
            if die.kept != (index in decision.keep_indices):
                self._store.dispatch(dice_keep_toggled(index))

        state = self.state
        self._tree.record_roll(
            state.meta.round,
            state.meta.turn,
            active.id,
            state.dice.roll_count,
            state.dice.faces,
            decision,
        )

        keep_rolling = (
            decision.action == REROLL
            and state.dice.rerolls_remaining > 0
            and state.dice.roll_count < MAX_TOTAL_ROLLS
        )
        if keep_rolling:
            self._later(self.pacing_delay(), self._cpu_roll_step, "cpu-roll")
        else:
            self._later(self.pacing_delay(), self.resolve, "cpu-resolve")

    # -- Watchdog ----------------------------------------------------------

    def _arm_watchdog(self) -> None:
        self._cancel(self._watchdog)
        self._watchdog = self._later(self._settings.watchdog_ms, self._watchdog_fired, "watchdog")

    def _watchdog_fired(self) -> None:
        if self.state.phase != Phase.ROLL:
            return
        active = self._active()
        logger.warning("Watchdog forcing resolution for %s", active.id)
        if not self.state.dice.faces:
            self._roll(active)
        self.resolve()

    # -- Resolution --------------------------------------------------------

    def resolve(self) -> bool:
        """ROLL -> RESOLVE, then route to GAME_OVER, YIELD_DECISION or BUY."""
        if self.state.phase != Phase.ROLL or not self.state.dice.faces:
            return False
        self._cancel(self._watchdog)
        self._watchdog = None

        self._store.dispatch(phase_changed(Phase.RESOLVE))
        resolve_dice(
            self._store,
            now_ms=self._scheduler.now(),
            window_ms=self._settings.yield_window_ms,
            advisor=self._yield_advisor,
        )
        tokyo.vacate_eliminated(self._store)
        active_id = selectors.active_player_id(self.state)
        tokyo.mandatory_entry(self._store, active_id)

        winner = selectors.find_winner(self.state)
        route = after_resolve(winner is not None, bool(self.state.yields.pending()))
        if route == Phase.GAME_OVER:
            self._finish_game(winner)
        elif route == Phase.YIELD_DECISION:
            self._store.dispatch(phase_changed(Phase.YIELD_DECISION))
            self._yield_task = self._later(
                self._settings.yield_window_ms, self._expire_yields, "yield-window"
            )
        else:
            self._open_buy_window()
        return True

    def _finish_game(self, winner_id: str) -> None:
        self._store.dispatch(winner_declared(winner_id))
        self._store.dispatch(phase_changed(Phase.GAME_OVER))
        for task in (self._watchdog, self._buy_task, self._yield_task):
            self._cancel(task)
        logger.info("%s wins the game", winner_id)

    # -- Yield -------------------------------------------------------------

    def decide_yield(self, defender_id: str, slot: Slot, choice: YieldChoice) -> bool:
        if self.state.phase != Phase.YIELD_DECISION:
            return False
        if not tokyo.decide_yield(self._store, defender_id, slot, choice):
            return False
        self._after_yield()
        return True

    def _expire_yields(self) -> None:
        tokyo.expire_prompts(self._store, self._scheduler.now())
        self._after_yield()

    def _after_yield(self) -> None:
        if self.state.phase != Phase.YIELD_DECISION or self.state.yields.pending():
            return
        self._cancel(self._yield_task)
        self._yield_task = None
        tokyo.mandatory_entry(self._store, selectors.active_player_id(self.state))
        self._open_buy_window()

    # -- Buy window --------------------------------------------------------

    def _open_buy_window(self) -> None:
        self._store.dispatch(phase_changed(Phase.BUY))
        self._cpu_purchases = 0
        self._flushed = False

        active = self._active()
        if active.is_cpu:
            window = buy_window_ms(self.pacing_delay())
            self._later(self.pacing_delay(), self._cpu_buy_step, "cpu-buy")
        else:
            window = self._settings.human_buy_window_ms
        self._buy_task = self._later(window, self._close_buy_window, "buy-window")

    def _cpu_buy_step(self) -> None:
        if self.state.phase != Phase.BUY:
            return
        active = self._active()
        decision = self._buy_advisor.decide(
            self.state.cards.shop, active, allow_flush=not self._flushed
        )
        logger.debug("%s buy decision: %s (%s)", active.id, decision.action, decision.rationale)

        if decision.action == "buy" and self._cpu_purchases < MAX_CPU_PURCHASES:
            self._cpu_purchases += 1
            self.purchase(active.id, decision.card_id)
        elif decision.action == "flush":
            self._flushed = True
            self.flush(active.id)
        else:
            return

        if self.state.phase == Phase.BUY:
            self._later(self.pacing_delay(), self._cpu_buy_step, "cpu-buy")

    def purchase(self, player_id: str, card_id: str) -> bool:
        if not cards.purchase_card(self._store, player_id, card_id, self._effects):
            return False
        self._after_effects()
        return True

    def flush(self, player_id: str) -> bool:
        return cards.flush_shop(self._store, player_id)

    def peek(self, player_id: str) -> Card | None:
        if self.state.phase == Phase.GAME_OVER or not self._is_active(player_id):
            return None
        return cards.peek_top_card(self._store, player_id)

    def confirm_targets(self, request_id: str, selected_ids: list[str], player_id: str | None = None) -> bool:
        if not self._effects.confirm_selection(request_id, selected_ids, player_id):
            return False
        self._after_effects()
        return True

    def cancel_targets(self, request_id: str, player_id: str | None = None) -> bool:
        if not self._effects.cancel_selection(request_id, player_id):
            return False
        self._after_effects()
        return True

    def _after_effects(self) -> None:
        busy = selectors.effect_queue_busy(self.state)
        if self.state.phase == Phase.BUY and busy:
            self._store.dispatch(phase_changed(Phase.BUY_WAIT))
        elif self.state.phase == Phase.BUY_WAIT and not busy:
            self._cleanup()

    def _close_buy_window(self) -> None:
        if self.state.phase != Phase.BUY:
            return
        if after_buy(selectors.effect_queue_busy(self.state)) == Phase.BUY_WAIT:
            self._store.dispatch(phase_changed(Phase.BUY_WAIT))
        else:
            self._cleanup()

    def advance_phase(self, player_id: str | None = None) -> bool:
        """Human "done": stop rolling, or close the buy window early."""
        if not self._human_turn(player_id):
            return False
        if self.state.phase == Phase.ROLL:
            return self.end_roll(player_id)
        if self.state.phase == Phase.BUY:
            self._cancel(self._buy_task)
            self._close_buy_window()
            return True
        return False

    # -- Cleanup -----------------------------------------------------------

    def _cleanup(self) -> None:
        self._cancel(self._buy_task)
        self._buy_task = None
        self._store.dispatch(phase_changed(Phase.CLEANUP))
        self._later(self.pacing_delay(), self._advance_turn, "next-turn")
