"""
Kaiju Clash - Dice Resolution Tests
"""

from kaiju.core.actions import player_stats_set, tokyo_entered
from kaiju.core.selectors import find_winner
from kaiju.engine.base import Slot, YieldChoice
from kaiju.services.resolution import resolve_dice


class TestScoring:
    def test_triples_energy_and_hearts(self, make_store, put_dice, dice):
        store = make_store()
        store.dispatch(player_stats_set("p1", health=6))
        put_dice(store, dice("2", "2", "2", "energy", "energy", "heart"))

        summary = resolve_dice(store)

        p1 = store.state.players.get("p1")
        assert summary.vp_gained == 2
        assert p1.victory_points == 2
        assert p1.energy == 2
        assert p1.health == 7
        assert summary.healed == 1

    def test_four_of_a_kind(self, make_store, put_dice, dice):
        store = make_store()
        put_dice(store, dice("3", "3", "3", "3", "1", "2"))
        resolve_dice(store)
        assert store.state.players.get("p1").victory_points == 4

    def test_healing_capped_at_max(self, make_store, put_dice, dice):
        store = make_store()
        store.dispatch(player_stats_set("p1", health=9))
        put_dice(store, dice("heart", "heart", "heart", "1", "2", "3"))
        summary = resolve_dice(store)
        assert store.state.players.get("p1").health == 10
        assert summary.healed == 1

    def test_no_healing_in_tokyo(self, make_store, put_dice, dice):
        store = make_store()
        store.dispatch(tokyo_entered("p1", Slot.CITY))
        store.dispatch(player_stats_set("p1", health=5))
        put_dice(store, dice("heart", "heart", "heart", "heart", "1", "2"))
        summary = resolve_dice(store)
        assert store.state.players.get("p1").health == 5
        assert summary.healed == 0

    def test_resolution_is_idempotent(self, make_store, put_dice, dice):
        store = make_store()
        put_dice(store, dice("1", "1", "1", "energy", "claw", "heart"))
        resolve_dice(store)
        after_first = store.state
        assert resolve_dice(store) is None
        assert store.state is after_first

    def test_nothing_to_resolve_without_dice(self, make_store):
        store = make_store()
        before = store.state
        assert resolve_dice(store) is None
        assert store.state is before


class TestAttack:
    def test_claws_enter_empty_tokyo(self, make_store, put_dice, dice):
        store = make_store(count=4)
        put_dice(store, dice("claw", "claw", "1", "2", "3", "energy"))

        summary = resolve_dice(store)

        assert store.state.tokyo.city == "p1"
        assert store.state.players.get("p1").victory_points == 1
        assert summary.entered == Slot.CITY
        assert store.state.yields.prompts == ()
        assert summary.damaged == {}

    def test_no_claws_no_entry(self, make_store, put_dice, dice):
        store = make_store(count=4)
        put_dice(store, dice("1", "2", "3", "energy", "heart", "heart"))
        resolve_dice(store)
        assert store.state.tokyo.city is None

    def test_outsider_hits_only_tokyo(self, make_store, put_dice, dice):
        store = make_store(count=3, cpu=("p2",))
        store.dispatch(tokyo_entered("p2", Slot.CITY))
        put_dice(store, dice("claw", "1", "2", "3", "energy", "heart"))

        resolve_dice(store)

        assert store.state.players.get("p2").health == 9
        assert store.state.players.get("p3").health == 10

    def test_tokyo_hits_everyone_outside(self, make_store, put_dice, dice):
        store = make_store(count=3)
        store.dispatch(tokyo_entered("p1", Slot.CITY))
        put_dice(store, dice("claw", "claw", "1", "2", "3", "energy"))

        summary = resolve_dice(store)

        assert store.state.players.get("p2").health == 8
        assert store.state.players.get("p3").health == 8
        assert summary.damaged == {"p2": 2, "p3": 2}
        assert store.state.yields.prompts == ()

    def test_eliminated_occupant_vacates_and_attacker_enters(self, make_store, put_dice, dice):
        store = make_store(count=3)
        store.dispatch(tokyo_entered("p2", Slot.CITY))
        store.dispatch(player_stats_set("p2", health=2))
        put_dice(store, dice("claw", "claw", "claw", "1", "2", "3"))

        summary = resolve_dice(store)

        assert summary.eliminated == ("p2",)
        assert not store.state.players.get("p2").in_tokyo
        assert store.state.tokyo.city == "p1"
        assert store.state.yields.prompts == ()


class TestYieldScenario:
    def test_cpu_occupant_yields_and_attacker_takes_city(self, make_store, put_dice, dice):
        store = make_store(count=4, cpu=("p2",))
        store.dispatch(tokyo_entered("p2", Slot.CITY))
        store.dispatch(player_stats_set("p2", health=5, victory_points=10))
        put_dice(store, dice("claw", "claw", "claw", "1", "2", "energy"))

        summary = resolve_dice(store, now_ms=1000, window_ms=5000)

        prompt = summary.prompts[0]
        assert prompt.defender_id == "p2"
        assert prompt.expires_at == 6000
        assert store.state.players.get("p2").health == 2
        assert store.state.yields.prompts[0].decision == YieldChoice.YIELD
        assert store.state.tokyo.city == "p1"
        assert store.state.players.get("p1").victory_points == 1

    def test_healthy_cpu_occupant_stays(self, make_store, put_dice, dice):
        store = make_store(count=4, cpu=("p2",))
        store.dispatch(tokyo_entered("p2", Slot.CITY))
        put_dice(store, dice("claw", "1", "2", "3", "energy", "heart"))

        resolve_dice(store)

        assert store.state.yields.prompts[0].decision == YieldChoice.STAY
        assert store.state.tokyo.city == "p2"
        assert not store.state.players.get("p1").in_tokyo

    def test_human_occupant_prompt_stays_pending(self, make_store, put_dice, dice):
        store = make_store(count=4)
        store.dispatch(tokyo_entered("p2", Slot.CITY))
        put_dice(store, dice("claw", "1", "2", "3", "energy", "heart"))

        resolve_dice(store)

        pending = store.state.yields.pending()
        assert len(pending) == 1
        assert pending[0].defender_id == "p2"
        assert store.state.tokyo.city == "p2"


class TestWinner:
    def test_reaching_twenty(self, make_store):
        store = make_store(count=3)
        store.dispatch(player_stats_set("p2", victory_points=20))
        assert find_winner(store.state) == "p2"

    def test_tie_goes_to_earliest_seat(self, make_store):
        store = make_store(count=3)
        store.dispatch(player_stats_set("p3", victory_points=22))
        store.dispatch(player_stats_set("p2", victory_points=20))
        assert find_winner(store.state) == "p2"

    def test_last_player_standing(self, make_store):
        store = make_store(count=3)
        store.dispatch(player_stats_set("p1", health=0))
        store.dispatch(player_stats_set("p3", health=0))
        assert find_winner(store.state) == "p2"

    def test_eliminated_player_cannot_win_on_points(self, make_store):
        store = make_store(count=3)
        store.dispatch(player_stats_set("p2", victory_points=20, health=0))
        assert find_winner(store.state) is None

    def test_no_winner(self, make_store):
        assert find_winner(make_store(count=3).state) is None
