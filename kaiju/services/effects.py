"""
Kaiju Clash - Card Effect Queue

Applies purchased card effects one at a time. Each effect kind has a
handler in an explicit registry; an unknown kind fails the entry with
``NO_HANDLER`` rather than being skipped. Handlers that need a human to
choose targets park the entry as ``waiting_selection`` and raise a target
selection request; the queue resumes once the request is confirmed or
cancelled.

Failure reason codes:
    NO_HANDLER           no handler registered for the effect kind
    EXCEPTION            the handler raised
    SELECTION_CANCELLED  the owner cancelled target selection
    STALE_TURN           the entry belongs to an earlier turn cycle
"""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from kaiju.ai.heuristics import choose_targets
from kaiju.core import selectors
from kaiju.core.actions import (
    effect_enqueued,
    effect_finished,
    effect_processing,
    effect_targets_selected,
    effect_waiting_selection,
    player_damaged,
    player_gained_energy,
    player_healed,
    player_modifiers_recalculated,
    player_spent_energy,
    player_vp_changed,
    target_selection_cleared,
    target_selection_started,
)
from kaiju.core.state import EffectEntry, EffectStatus, TargetSelectionRequest
from kaiju.core.store import Store
from kaiju.engine.cards import Card, EffectKind
from kaiju.engine.player import Player
from kaiju.engine.validators import validate_selection
from kaiju.services.cards import peek_top_card

logger = logging.getLogger(__name__)

NO_HANDLER = "NO_HANDLER"
EXCEPTION = "EXCEPTION"
SELECTION_CANCELLED = "SELECTION_CANCELLED"
STALE_TURN = "STALE_TURN"

# Returns True when the entry is finished, False when parked for selection.
Handler = Callable[["EffectEngine", EffectEntry], bool]
TargetChooser = Callable[[Sequence[Player], int], Sequence[str]]


class EffectEngine:
    """Serialized effect pipeline over the store's effect queue slice."""

    def __init__(self, store: Store, target_chooser: TargetChooser = choose_targets) -> None:
        self.store = store
        self._choose_targets = target_chooser
        self._handlers: dict[str, Handler] = dict(BASE_HANDLERS)
        self._processing = False

    # -- Registry ----------------------------------------------------------

    def register(self, kind: str, handler: Handler) -> None:
        self._handlers[getattr(kind, "value", kind)] = handler

    def unregister(self, kind: str) -> None:
        self._handlers.pop(getattr(kind, "value", kind), None)

    def has_handler(self, kind: str) -> bool:
        return getattr(kind, "value", kind) in self._handlers

    # -- Queue -------------------------------------------------------------

    def enqueue(self, card: Card, player_id: str) -> EffectEntry:
        cycle = self.store.state.meta.turn_cycle_id
        self.store.dispatch(effect_enqueued(card.id, player_id, card.effect, cycle))
        entry = self.store.state.effect_queue.queue[-1]
        logger.debug("Queued %s (%s) for %s", entry.id, card.effect.kind, player_id)
        return entry

    @property
    def idle(self) -> bool:
        return self.store.state.effect_queue.idle

    def process(self) -> int:
        """Run queued entries until the queue empties or blocks on a selection.

        Returns:
            Number of entries that finished
        """
        if self._processing:
            return 0
        self._processing = True
        finished = 0
        try:
            while True:
                entry = self._next_runnable()
                if entry is None:
                    break
                if self._run(entry):
                    finished += 1
        finally:
            self._processing = False
        return finished

    def _next_runnable(self) -> EffectEntry | None:
        for entry in self.store.state.effect_queue.queue:
            if entry.status == EffectStatus.QUEUED:
                return entry
            # Queue order is strict: a parked entry blocks everything behind it
            return None
        return None

    def _run(self, entry: EffectEntry) -> bool:
        if entry.turn_cycle_id != self.store.state.meta.turn_cycle_id:
            logger.warning("Dropping %s from an earlier turn", entry.id)
            self.store.dispatch(effect_finished(entry.id, failed=True, reason=STALE_TURN))
            return True

        handler = self._handlers.get(entry.effect.kind)
        if handler is None:
            logger.warning("No handler for effect kind %r (%s)", entry.effect.kind, entry.id)
            self.store.dispatch(effect_finished(entry.id, failed=True, reason=NO_HANDLER))
            return True

        self.store.dispatch(effect_processing(entry.id))
        try:
            done = handler(self, self.store.state.effect_queue.get(entry.id))
        except Exception:
            logger.exception("Effect %s (%s) failed", entry.id, entry.effect.kind)
            self.store.dispatch(effect_finished(entry.id, failed=True, reason=EXCEPTION))
            return True

        if done:
            self.store.dispatch(effect_finished(entry.id))
            return True
        return False

    # -- Target selection --------------------------------------------------

    def request_selection(
        self,
        entry: EffectEntry,
        eligible: Sequence[Player],
        max_targets: int,
        min_targets: int = 1,
    ) -> bool:
        """Park ``entry`` for targets; computer owners choose immediately.

        Returns:
            True when targets were chosen on the spot
        """
        owner = self.store.state.players.get(entry.player_id)
        if owner.is_cpu:
            chosen = tuple(self._choose_targets(eligible, max_targets))[:max_targets]
            self.store.dispatch(effect_targets_selected(entry.id, chosen))
            logger.debug("%s targets %s", owner.id, ", ".join(chosen))
            return True

        self.store.dispatch(effect_waiting_selection(entry.id))
        self.store.dispatch(target_selection_started(
            entry.id,
            entry.player_id,
            entry.effect,
            min_targets,
            max_targets,
            tuple(p.id for p in eligible),
        ))
        logger.info("%s must choose %d-%d targets", owner.id, min_targets, max_targets)
        return False

    def confirm_selection(
        self,
        request_id: str,
        selected_ids: Sequence[str],
        player_id: str | None = None,
    ) -> bool:
        """Resolve the parked entry with ``selected_ids``.

        When ``player_id`` is given it must be the player who owns the request.
        """
        active = self._selection_for(request_id, player_id)
        if active is None:
            return False
        try:
            chosen = validate_selection(selected_ids, active.eligible_ids, active.min_targets, active.max_targets)
        except ValueError as exc:
            logger.info("Rejected selection %s: %s", request_id, exc)
            return False

        self.store.dispatch(effect_targets_selected(active.entry_id, chosen))
        self.store.dispatch(target_selection_cleared(request_id))
        self.process()
        return True

    def cancel_selection(self, request_id: str, player_id: str | None = None) -> bool:
        active = self._selection_for(request_id, player_id)
        if active is None:
            return False

        self.store.dispatch(target_selection_cleared(request_id))
        self.store.dispatch(effect_finished(active.entry_id, failed=True, reason=SELECTION_CANCELLED))
        logger.info("Selection %s cancelled", request_id)
        self.process()
        return True

    def _selection_for(self, request_id: str, player_id: str | None) -> TargetSelectionRequest | None:
        active = self.store.state.target_selection.active
        if active is None or active.request_id != request_id:
            logger.info("Ignoring unknown selection %r", request_id)
            return None
        if player_id is not None and player_id != active.player_id:
            logger.info("Selection %s belongs to %s, not %s", request_id, active.player_id, player_id)
            return None
        return active


# =============================================================================
# HANDLERS
# =============================================================================

def _vp_gain(engine: EffectEngine, entry: EffectEntry) -> bool:
    engine.store.dispatch(player_vp_changed(entry.player_id, entry.effect.value))
    return True


def _energy_gain(engine: EffectEngine, entry: EffectEntry) -> bool:
    engine.store.dispatch(player_gained_energy(entry.player_id, entry.effect.value))
    return True


def _heal_all(engine: EffectEngine, entry: EffectEntry) -> bool:
    for player in selectors.living_players(engine.store.state):
        engine.store.dispatch(player_healed(player.id, entry.effect.value))
    return True


def _heal_self(engine: EffectEngine, entry: EffectEntry) -> bool:
    engine.store.dispatch(player_healed(entry.player_id, entry.effect.value))
    return True


def _damage_all(engine: EffectEngine, entry: EffectEntry) -> bool:
    for player in selectors.living_opponents(engine.store.state, entry.player_id):
        engine.store.dispatch(player_damaged(player.id, entry.effect.value))
    return True


def _damage_tokyo_only(engine: EffectEngine, entry: EffectEntry) -> bool:
    for player in selectors.tokyo_occupants(engine.store.state):
        if player.alive and player.id != entry.player_id:
            engine.store.dispatch(player_damaged(player.id, entry.effect.value))
    return True


def _damage_select(engine: EffectEngine, entry: EffectEntry) -> bool:
    if entry.selected_ids is None:
        eligible = selectors.living_opponents(engine.store.state, entry.player_id)
        if not eligible:
            return True
        max_targets = min(entry.effect.max_targets or 1, len(eligible))
        if not engine.request_selection(entry, eligible, max_targets):
            return False
        entry = engine.store.state.effect_queue.get(entry.id)

    for target_id in entry.selected_ids:
        target = engine.store.state.players.get(target_id)
        if target is not None and target.alive:
            engine.store.dispatch(player_damaged(target_id, entry.effect.value))
    return True


def _energy_steal(engine: EffectEngine, entry: EffectEntry) -> bool:
    for opponent in selectors.living_opponents(engine.store.state, entry.player_id):
        taken = min(entry.effect.value, opponent.energy)
        if taken:
            engine.store.dispatch(player_spent_energy(opponent.id, taken))
            engine.store.dispatch(player_gained_energy(entry.player_id, taken))
    return True


def _vp_steal(engine: EffectEngine, entry: EffectEntry) -> bool:
    for opponent in selectors.living_opponents(engine.store.state, entry.player_id):
        taken = min(entry.effect.value, opponent.victory_points)
        if taken:
            engine.store.dispatch(player_vp_changed(opponent.id, -taken))
            engine.store.dispatch(player_vp_changed(entry.player_id, taken))
    return True


def _recalc_modifiers(engine: EffectEngine, entry: EffectEntry) -> bool:
    engine.store.dispatch(player_modifiers_recalculated(entry.player_id))
    return True


def _peek(engine: EffectEngine, entry: EffectEntry) -> bool:
    peek_top_card(engine.store, entry.player_id, require_card=False)
    return True


BASE_HANDLERS: dict[str, Handler] = {
    EffectKind.VP_GAIN.value: _vp_gain,
    EffectKind.ENERGY_GAIN.value: _energy_gain,
    EffectKind.HEAL_ALL.value: _heal_all,
    EffectKind.HEAL_SELF.value: _heal_self,
    EffectKind.DAMAGE_ALL.value: _damage_all,
    EffectKind.DAMAGE_TOKYO_ONLY.value: _damage_tokyo_only,
    EffectKind.DAMAGE_SELECT.value: _damage_select,
    EffectKind.ENERGY_STEAL.value: _energy_steal,
    EffectKind.VP_STEAL.value: _vp_steal,
    EffectKind.DICE_SLOT.value: _recalc_modifiers,
    EffectKind.REROLL_BONUS.value: _recalc_modifiers,
    EffectKind.PEEK.value: _peek,
}
