"""
Kaiju Clash - Slice Transition Tests

Validation and per-slice behaviour of the root transition.
"""

import pytest

from kaiju.core.actions import (
    dice_keep_toggled,
    dice_reroll_used,
    dice_roll_started,
    dice_rolled,
    effect_enqueued,
    effect_finished,
    effect_processing,
    effect_targets_selected,
    effect_waiting_selection,
    game_paused,
    next_turn,
    phase_changed,
    player_damaged,
    player_spent_energy,
    player_stats_set,
    player_vp_changed,
    players_joined,
    settings_updated,
    target_selection_cleared,
    target_selection_started,
    tokyo_entered,
    tokyo_left,
    yield_decided,
    yield_prompts_created,
)
from kaiju.core.state import EffectStatus, YieldPrompt
from kaiju.core.store import Store
from kaiju.engine.base import DicePhase, Phase, Slot, YieldChoice
from kaiju.engine.cards import Effect
from kaiju.engine.player import create_player


class TestSetup:
    def test_players_join(self):
        store = Store()
        store.dispatch(players_joined([create_player("a", "A"), create_player("b", "B")]))
        assert store.state.players.order == ("a", "b")

    @pytest.mark.parametrize("count", [1, 7])
    def test_bad_player_count_rejected(self, count):
        store = Store()
        before = store.state
        players = [create_player(f"p{i}", "X") for i in range(count)]
        assert store.dispatch(players_joined(players)) is before

    def test_join_after_setup_rejected(self, make_store):
        store = make_store()
        before = store.state
        assert store.dispatch(players_joined([create_player("z", "Z"), create_player("y", "Y")])) is before

    def test_unknown_player_rejected(self, make_store):
        store = make_store()
        before = store.state
        assert store.dispatch(player_damaged("ghost", 2)) is before


class TestPhase:
    def test_illegal_transition_is_noop(self, make_store):
        store = make_store(phase=Phase.SETUP)
        before = store.state
        assert store.dispatch(phase_changed(Phase.BUY)) is before

    def test_self_transition_is_noop(self, make_store):
        store = make_store(phase=Phase.ROLL)
        before = store.state
        assert store.dispatch(phase_changed(Phase.ROLL)) is before

    def test_game_over_is_terminal(self, make_store):
        store = make_store(phase=Phase.GAME_OVER)
        for target in Phase:
            store.dispatch(phase_changed(target))
            assert store.state.phase == Phase.GAME_OVER

    def test_entering_roll_resets_dice(self, make_store, put_dice, dice):
        store = make_store(phase=Phase.CLEANUP)
        put_dice(store, dice("1", "1", "1", "2", "2", "2"))
        store.dispatch(phase_changed(Phase.ROLL))
        assert store.state.dice.faces == ()
        assert store.state.dice.phase == DicePhase.IDLE
        assert store.state.dice.accepted is False


class TestDice:
    def test_roll_started_sets_budget(self, make_store):
        store = make_store()
        store.dispatch(dice_roll_started(reroll_bonus=1))
        assert store.state.dice.rerolls_remaining == 3
        assert store.state.dice.phase == DicePhase.ROLLING

    def test_rolled_counts_and_resolves(self, make_store, put_dice, dice):
        store = make_store()
        state = put_dice(store, dice("1", "2", "3", "claw", "heart", "energy"))
        assert state.dice.phase == DicePhase.RESOLVED
        assert state.dice.roll_count == 1

    def test_reroll_budget_exhausts(self, make_store, put_dice, dice):
        store = make_store()
        put_dice(store, dice("1", "2", "3", "claw", "heart", "energy"))
        for expected in (1, 0):
            store.dispatch(dice_roll_started())
            store.dispatch(dice_rolled(dice("1", "2", "3", "claw", "heart", "energy")))
            store.dispatch(dice_reroll_used())
            assert store.state.dice.rerolls_remaining == expected
        assert store.state.dice.phase == DicePhase.SEQUENCE_COMPLETE

    def test_rerolls_never_negative(self, make_store):
        store = make_store()
        store.dispatch(dice_reroll_used())
        store.dispatch(dice_reroll_used())
        assert store.state.dice.rerolls_remaining == 0

    def test_keep_before_roll_rejected(self, make_store):
        store = make_store()
        before = store.state
        assert store.dispatch(dice_keep_toggled(0)) is before

    def test_keep_out_of_range_rejected(self, make_store, put_dice, dice):
        store = make_store()
        put_dice(store, dice("1", "2", "3", "claw", "heart", "energy"))
        before = store.state
        assert store.dispatch(dice_keep_toggled(6)) is before

    def test_keep_toggles(self, make_store, put_dice, dice):
        store = make_store()
        put_dice(store, dice("1", "2", "3", "claw", "heart", "energy"))
        store.dispatch(dice_keep_toggled(3))
        assert store.state.dice.faces[3].kept


class TestPlayers:
    def test_elimination_vacates_tokyo(self, make_store):
        store = make_store()
        store.dispatch(tokyo_entered("p2", Slot.CITY))
        store.dispatch(player_damaged("p2", 10))
        p2 = store.state.players.get("p2")
        assert not p2.alive
        assert p2.in_tokyo is False
        assert store.state.tokyo.city is None

    def test_spend_more_than_held_rejected(self, make_store):
        store = make_store()
        before = store.state
        assert store.dispatch(player_spent_energy("p1", 1)) is before

    def test_vp_loss_floors_at_zero(self, make_store):
        store = make_store()
        store.dispatch(player_vp_changed("p1", 2))
        store.dispatch(player_vp_changed("p1", -5))
        assert store.state.players.get("p1").victory_points == 0

    def test_stats_set_clamps(self, make_store):
        store = make_store()
        store.dispatch(player_stats_set("p1", health=15, energy=-3, victory_points=4))
        p1 = store.state.players.get("p1")
        assert (p1.health, p1.energy, p1.victory_points) == (10, 0, 4)

    def test_negative_amounts_refused_at_creation(self):
        with pytest.raises(ValueError, match="Damage cannot be negative"):
            player_damaged("p1", -2)
        with pytest.raises(ValueError, match="Energy"):
            player_spent_energy("p1", -1)


class TestTokyo:
    def test_enter_city(self, make_store):
        store = make_store()
        store.dispatch(tokyo_entered("p1", Slot.CITY))
        assert store.state.tokyo.city == "p1"
        assert store.state.players.get("p1").in_tokyo

    def test_occupied_slot_rejected(self, make_store):
        store = make_store(count=3)
        store.dispatch(tokyo_entered("p1", Slot.CITY))
        before = store.state
        assert store.dispatch(tokyo_entered("p2", Slot.CITY)) is before

    def test_bay_needs_five_players(self, make_store):
        store = make_store(count=4)
        store.dispatch(tokyo_entered("p1", Slot.CITY))
        before = store.state
        assert store.dispatch(tokyo_entered("p2", Slot.BAY)) is before

    def test_bay_fills_after_city(self, make_store):
        store = make_store(count=5)
        before = store.state
        assert store.dispatch(tokyo_entered("p2", Slot.BAY)) is before
        store.dispatch(tokyo_entered("p1", Slot.CITY))
        store.dispatch(tokyo_entered("p2", Slot.BAY))
        assert store.state.tokyo.bay == "p2"

    def test_player_holds_one_slot(self, make_store):
        store = make_store(count=5)
        store.dispatch(tokyo_entered("p1", Slot.CITY))
        before = store.state
        assert store.dispatch(tokyo_entered("p1", Slot.BAY)) is before

    def test_dead_player_cannot_enter(self, make_store):
        store = make_store()
        store.dispatch(player_damaged("p2", 10))
        before = store.state
        assert store.dispatch(tokyo_entered("p2", Slot.CITY)) is before

    def test_leave(self, make_store):
        store = make_store()
        store.dispatch(tokyo_entered("p1", Slot.CITY))
        store.dispatch(tokyo_left("p1"))
        assert store.state.tokyo.city is None
        assert not store.state.players.get("p1").in_tokyo

    def test_leave_when_outside_rejected(self, make_store):
        store = make_store()
        before = store.state
        assert store.dispatch(tokyo_left("p1")) is before


class TestYields:
    def _prompt(self, defender="p2", attacker="p1"):
        return YieldPrompt(defender_id=defender, attacker_id=attacker, slot=Slot.CITY, expires_at=5000)

    def test_decide_pending_prompt(self, make_store):
        store = make_store()
        store.dispatch(tokyo_entered("p2", Slot.CITY))
        store.dispatch(yield_prompts_created([self._prompt()]))
        store.dispatch(yield_decided("p2", Slot.CITY, YieldChoice.STAY))
        assert store.state.yields.prompts[0].decision == YieldChoice.STAY
        assert store.state.yields.pending() == ()

    def test_decide_twice_rejected(self, make_store):
        store = make_store()
        store.dispatch(yield_prompts_created([self._prompt()]))
        store.dispatch(yield_decided("p2", Slot.CITY, YieldChoice.STAY))
        before = store.state
        assert store.dispatch(yield_decided("p2", Slot.CITY, YieldChoice.YIELD)) is before

    def test_eliminated_defender_yields(self, make_store):
        store = make_store()
        store.dispatch(tokyo_entered("p2", Slot.CITY))
        store.dispatch(yield_prompts_created([self._prompt()]))
        store.dispatch(player_damaged("p2", 10))
        assert store.state.yields.prompts[0].decision == YieldChoice.YIELD

    def test_prompts_cleared_on_new_roll_phase(self, make_store):
        store = make_store(phase=Phase.CLEANUP)
        store.dispatch(yield_prompts_created([self._prompt()]))
        store.dispatch(phase_changed(Phase.ROLL))
        assert store.state.yields.prompts == ()


class TestEffectQueue:
    effect = Effect("vp_gain", 2)

    def test_ids_are_sequential(self, make_store):
        store = make_store()
        store.dispatch(effect_enqueued("c1", "p1", self.effect, 0))
        store.dispatch(effect_enqueued("c2", "p1", self.effect, 0))
        assert [e.id for e in store.state.effect_queue.queue] == ["eff_1", "eff_2"]

    def test_only_one_processing(self, make_store):
        store = make_store()
        store.dispatch(effect_enqueued("c1", "p1", self.effect, 0))
        store.dispatch(effect_enqueued("c2", "p1", self.effect, 0))
        store.dispatch(effect_processing("eff_1"))
        before = store.state
        assert store.dispatch(effect_processing("eff_2")) is before

    def test_finished_moves_to_history(self, make_store):
        store = make_store()
        store.dispatch(effect_enqueued("c1", "p1", self.effect, 0))
        store.dispatch(effect_processing("eff_1"))
        store.dispatch(effect_finished("eff_1"))
        queue = store.state.effect_queue
        assert queue.idle
        assert queue.history[0].status == EffectStatus.RESOLVED

    def test_failed_records_reason(self, make_store):
        store = make_store()
        store.dispatch(effect_enqueued("c1", "p1", self.effect, 0))
        store.dispatch(effect_finished("eff_1", failed=True, reason="NO_HANDLER"))
        entry = store.state.effect_queue.history[0]
        assert entry.status == EffectStatus.FAILED
        assert entry.reason == "NO_HANDLER"

    def test_waiting_then_selected_requeues(self, make_store):
        store = make_store()
        store.dispatch(effect_enqueued("c1", "p1", self.effect, 0))
        store.dispatch(effect_processing("eff_1"))
        store.dispatch(effect_waiting_selection("eff_1"))
        assert store.state.effect_queue.processing is None
        store.dispatch(effect_targets_selected("eff_1", ["p2"]))
        entry = store.state.effect_queue.get("eff_1")
        assert entry.status == EffectStatus.QUEUED
        assert entry.selected_ids == ("p2",)

    def test_unknown_entry_rejected(self, make_store):
        store = make_store()
        before = store.state
        assert store.dispatch(effect_finished("eff_9")) is before


class TestTargetSelection:
    def test_single_active_request(self, make_store):
        store = make_store(count=3)
        effect = Effect("damage_select", 1, max_targets=1)
        store.dispatch(target_selection_started("eff_1", "p1", effect, 1, 1, ["p2", "p3"]))
        assert store.state.target_selection.active.request_id == "sel_1"
        before = store.state
        assert store.dispatch(target_selection_started("eff_2", "p1", effect, 1, 1, ["p2"])) is before

    def test_clear_requires_matching_id(self, make_store):
        store = make_store()
        effect = Effect("damage_select", 1, max_targets=1)
        store.dispatch(target_selection_started("eff_1", "p1", effect, 1, 1, ["p2"]))
        before = store.state
        assert store.dispatch(target_selection_cleared("sel_9")) is before
        store.dispatch(target_selection_cleared("sel_1"))
        assert store.state.target_selection.active is None


class TestMeta:
    def test_next_turn_advances(self, make_store):
        store = make_store(count=3)
        store.dispatch(next_turn())
        meta = store.state.meta
        assert meta.active_player_index == 1
        assert meta.turn == 2
        assert meta.turn_cycle_id == 1
        assert meta.round == 1

    def test_wrap_increments_round(self, make_store):
        store = make_store(count=2)
        store.dispatch(next_turn())
        store.dispatch(next_turn())
        assert store.state.meta.active_player_index == 0
        assert store.state.meta.round == 2

    def test_dead_players_skipped(self, make_store):
        store = make_store(count=3)
        store.dispatch(player_damaged("p2", 10))
        store.dispatch(next_turn())
        assert store.state.meta.active_player_index == 2

    def test_pause_flag(self, make_store):
        store = make_store()
        store.dispatch(game_paused(True))
        assert store.state.meta.paused
        store.dispatch(game_paused(False))
        assert not store.state.meta.paused

    def test_settings_update(self, make_store):
        store = make_store()
        store.dispatch(settings_updated(cpu_speed="slow", persist_positions=True))
        assert store.state.settings.cpu_speed == "slow"
        assert store.state.settings.persist_positions is True
        assert store.state.settings.persist_settings is False
