"""
Kaiju Clash - Card Effect Queue Tests
"""

import logging

import pytest

from kaiju.core.actions import next_turn, player_gained_energy, player_stats_set, tokyo_entered
from kaiju.core.state import EffectStatus
from kaiju.engine.base import Slot
from kaiju.engine.cards import Card, CardType, Effect, EffectKind
from kaiju.services.effects import (
    EXCEPTION,
    NO_HANDLER,
    SELECTION_CANCELLED,
    STALE_TURN,
    EffectEngine,
)


def _card(kind, value=1, max_targets=None, card_id=None):
    return Card(card_id or f"{kind}-card", "Test Card", 0, CardType.DISCARD, Effect(kind, value, max_targets))


@pytest.fixture
def engine(make_store):
    return EffectEngine(make_store(count=3))


class TestProcessing:
    def test_vp_gain(self, engine):
        engine.enqueue(_card("vp_gain", 3), "p1")
        assert engine.process() == 1
        assert engine.store.state.players.get("p1").victory_points == 3
        assert engine.idle

    def test_entries_run_in_order(self, engine):
        engine.enqueue(_card("energy_gain", 2, card_id="a"), "p1")
        engine.enqueue(_card("vp_gain", 1, card_id="b"), "p1")
        engine.process()
        assert [e.card_id for e in engine.store.state.effect_queue.history] == ["a", "b"]

    def test_at_most_one_processing(self, engine):
        counts = []
        engine.store.subscribe(lambda state, prev, action: counts.append(
            sum(1 for e in state.effect_queue.queue if e.status == EffectStatus.PROCESSING)
        ))
        for _ in range(3):
            engine.enqueue(_card("vp_gain"), "p1")
        engine.process()
        assert counts and max(counts) <= 1

    def test_missing_handler_fails_and_queue_continues(self, engine, caplog):
        engine.enqueue(_card("teleport"), "p1")
        engine.enqueue(_card("vp_gain", 2), "p1")

        with caplog.at_level(logging.WARNING, logger="kaiju.services.effects"):
            engine.process()

        first, second = engine.store.state.effect_queue.history
        assert first.status == EffectStatus.FAILED
        assert first.reason == NO_HANDLER
        assert second.status == EffectStatus.RESOLVED
        assert engine.store.state.players.get("p1").victory_points == 2
        assert "No handler" in caplog.text

    def test_unregistered_kind_fails(self, engine):
        engine.unregister(EffectKind.VP_GAIN)
        assert not engine.has_handler("vp_gain")
        engine.enqueue(_card("vp_gain"), "p1")
        engine.process()
        assert engine.store.state.effect_queue.history[0].reason == NO_HANDLER

    def test_handler_exception_fails_entry(self, engine):
        def boom(eng, entry):
            raise RuntimeError("bad handler")

        engine.register("vp_gain", boom)
        engine.enqueue(_card("vp_gain"), "p1")
        engine.enqueue(_card("energy_gain", 4), "p1")
        engine.process()

        first, second = engine.store.state.effect_queue.history
        assert (first.status, first.reason) == (EffectStatus.FAILED, EXCEPTION)
        assert second.status == EffectStatus.RESOLVED
        assert engine.store.state.effect_queue.processing is None

    def test_stale_entry_dropped(self, engine):
        engine.enqueue(_card("vp_gain"), "p1")
        engine.store.dispatch(next_turn())
        engine.process()
        entry = engine.store.state.effect_queue.history[0]
        assert entry.reason == STALE_TURN
        assert engine.store.state.players.get("p1").victory_points == 0

    def test_custom_handler(self, engine):
        engine.register("teleport", lambda eng, entry: True)
        engine.enqueue(_card("teleport"), "p1")
        engine.process()
        assert engine.store.state.effect_queue.history[0].status == EffectStatus.RESOLVED


class TestHandlers:
    def test_damage_all_hits_opponents_only(self, engine):
        engine.enqueue(_card("damage_all", 2), "p1")
        engine.process()
        players = engine.store.state.players
        assert [players.get(p).health for p in ("p1", "p2", "p3")] == [10, 8, 8]

    def test_damage_all_can_eliminate_occupant(self, engine):
        store = engine.store
        store.dispatch(tokyo_entered("p2", Slot.CITY))
        store.dispatch(player_stats_set("p2", health=1))
        engine.enqueue(_card("damage_all", 1), "p1")
        engine.process()
        assert not store.state.players.get("p2").alive
        assert store.state.tokyo.city is None

    def test_damage_tokyo_only(self, engine):
        engine.store.dispatch(tokyo_entered("p2", Slot.CITY))
        engine.enqueue(_card("damage_tokyo_only", 2), "p1")
        engine.process()
        players = engine.store.state.players
        assert players.get("p2").health == 8
        assert players.get("p3").health == 10

    def test_damage_tokyo_only_spares_owner(self, engine):
        engine.store.dispatch(tokyo_entered("p1", Slot.CITY))
        engine.enqueue(_card("damage_tokyo_only", 2), "p1")
        engine.process()
        assert engine.store.state.players.get("p1").health == 10

    def test_heal_all_skips_tokyo(self, engine):
        store = engine.store
        store.dispatch(player_stats_set("p1", health=5))
        store.dispatch(player_stats_set("p2", health=5))
        store.dispatch(tokyo_entered("p2", Slot.CITY))
        engine.enqueue(_card("heal_all", 1), "p3")
        engine.process()
        assert store.state.players.get("p1").health == 6
        assert store.state.players.get("p2").health == 5

    def test_energy_steal_limited_by_holdings(self, engine):
        store = engine.store
        store.dispatch(player_gained_energy("p2", 5))
        store.dispatch(player_gained_energy("p3", 1))
        engine.enqueue(_card("energy_steal", 2), "p1")
        engine.process()
        players = store.state.players
        assert (players.get("p1").energy, players.get("p2").energy, players.get("p3").energy) == (3, 3, 0)

    def test_vp_steal(self, engine):
        store = engine.store
        store.dispatch(player_stats_set("p2", victory_points=4))
        engine.enqueue(_card("vp_steal", 1), "p1")
        engine.process()
        players = store.state.players
        assert players.get("p1").victory_points == 1
        assert players.get("p2").victory_points == 3
        assert players.get("p3").victory_points == 0


class TestTargetSelection:
    def test_human_selection_parks_queue(self, engine):
        engine.enqueue(_card("damage_select", 2, max_targets=2), "p1")
        engine.enqueue(_card("vp_gain", 1), "p1")
        engine.process()

        state = engine.store.state
        request = state.target_selection.active
        assert request.player_id == "p1"
        assert request.eligible_ids == ("p2", "p3")
        assert (request.min_targets, request.max_targets) == (1, 2)
        assert state.effect_queue.queue[0].status == EffectStatus.WAITING_SELECTION
        assert state.effect_queue.queue[1].status == EffectStatus.QUEUED
        assert state.players.get("p1").victory_points == 0
        assert not engine.idle

    def test_confirm_resumes_queue(self, engine):
        engine.enqueue(_card("damage_select", 2, max_targets=2), "p1")
        engine.enqueue(_card("vp_gain", 1), "p1")
        engine.process()
        request_id = engine.store.state.target_selection.active.request_id

        assert engine.confirm_selection(request_id, ["p3"])

        state = engine.store.state
        assert state.players.get("p3").health == 8
        assert state.players.get("p2").health == 10
        assert state.players.get("p1").victory_points == 1
        assert state.target_selection.active is None
        assert engine.idle

    def test_invalid_confirmation_rejected(self, engine):
        engine.enqueue(_card("damage_select", 1, max_targets=1), "p1")
        engine.process()
        request_id = engine.store.state.target_selection.active.request_id

        assert not engine.confirm_selection(request_id, ["p2", "p3"])
        assert not engine.confirm_selection(request_id, ["p1"])
        assert not engine.confirm_selection("sel_99", ["p2"])
        assert engine.store.state.target_selection.active is not None

    def test_cancel_fails_entry_and_continues(self, engine):
        engine.enqueue(_card("damage_select", 1, max_targets=1), "p1")
        engine.enqueue(_card("vp_gain", 2), "p1")
        engine.process()
        request_id = engine.store.state.target_selection.active.request_id

        assert engine.cancel_selection(request_id)

        first, second = engine.store.state.effect_queue.history
        assert (first.status, first.reason) == (EffectStatus.FAILED, SELECTION_CANCELLED)
        assert second.status == EffectStatus.RESOLVED
        assert engine.store.state.target_selection.active is None

    def test_only_owner_may_answer(self, engine):
        engine.enqueue(_card("damage_select", 2, max_targets=1), "p1")
        engine.process()
        request_id = engine.store.state.target_selection.active.request_id

        assert not engine.confirm_selection(request_id, ["p3"], player_id="p2")
        assert not engine.cancel_selection(request_id, player_id="p3")
        assert engine.store.state.target_selection.active is not None
        assert engine.store.state.players.get("p3").health == 10

        assert engine.confirm_selection(request_id, ["p3"], player_id="p1")
        assert engine.store.state.players.get("p3").health == 8

    def test_cpu_chooses_leader(self, make_store):
        store = make_store(count=3, cpu=("p1",))
        store.dispatch(player_stats_set("p3", victory_points=6))
        engine = EffectEngine(store)
        engine.enqueue(_card("damage_select", 3, max_targets=1), "p1")
        engine.process()

        assert store.state.target_selection.active is None
        assert store.state.players.get("p3").health == 7
        assert store.state.players.get("p2").health == 10
        assert store.state.effect_queue.history[0].selected_ids == ("p3",)
