"""
Kaiju Clash - AI Heuristics

Decision rules for computer-controlled monsters: which dice to keep, what
to buy, whether to stay in Tokyo, and whom to target. Every advisor reads
immutable inputs and returns a decision record; none of them touch the
store. ``safe_keep_decision`` guarantees a keep decision even when the
scoring heuristic fails.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Mapping, Sequence

from kaiju.engine.base import (
    FLUSH_COST,
    NUMBER_FACES,
    YIELD_HEALTH_THRESHOLD,
    Die,
    Face,
    Slot,
    YieldChoice,
)
from kaiju.engine.cards import Card, EffectKind
from kaiju.engine.dice import DiceEngine
from kaiju.engine.player import Player

logger = logging.getLogger(__name__)

END_ROLL = "end_roll"
REROLL = "reroll"


# =============================================================================
# DICE RETENTION
# =============================================================================

@dataclass(frozen=True)
class KeepWeights:
    """
    Per-die weights for the retention heuristic.

    A die is kept when its face's per-die score reaches ``keep_threshold``.
    """
    claw: float = 1.0
    claw_per_opponent: float = 0.25
    energy: float = 0.8
    heart: float = 0.6
    low_health: int = 5
    low_health_boost: float = 2.0
    triple_base: float = 1.5
    pair: float = 0.5
    single: float = 0.15
    keep_threshold: float = 0.7


@dataclass(frozen=True)
class KeepDecision:
    """
    Which dice a computer player keeps after a roll.

    Attributes:
        keep_indices: Dice to keep for the next reroll
        action: REROLL while rerolls remain and something is unkept
        score: Summed score of the kept dice
        rationale: Human-readable summary
        face_scores: Group score per face value
        hypotheticals: Alternative keeps and their scores
        fallback: Whether the deterministic fallback produced this
    """
    keep_indices: frozenset[int]
    action: str
    score: float = 0.0
    rationale: str = ""
    face_scores: Mapping[str, float] = field(default_factory=dict)
    hypotheticals: tuple[tuple[str, float], ...] = ()
    fallback: bool = False


class DiceKeepAdvisor:
    """Scores dice faces and recommends which indices to keep."""

    WEIGHTS = KeepWeights()

    @classmethod
    def per_die_scores(
        cls,
        tally: Counter,
        player: Player,
        living_opponents: int,
        rerolls_remaining: int,
    ) -> dict[Face, float]:
        """Score of a single die showing each face."""
        w = cls.WEIGHTS
        scores: dict[Face, float] = {
            Face.CLAW: w.claw * (1 + w.claw_per_opponent * living_opponents),
            Face.ENERGY: w.energy,
        }

        if player.in_tokyo or player.health >= player.max_health:
            scores[Face.HEART] = 0.0
        elif player.health <= w.low_health:
            scores[Face.HEART] = w.heart * w.low_health_boost
        else:
            scores[Face.HEART] = w.heart

        for face in NUMBER_FACES:
            count = tally[face]
            if count >= 3:
                scores[face] = w.triple_base + (face.number + count - 3) / count
            elif count == 2:
                # One die away from a triple; only worth holding with a reroll left
                scores[face] = w.pair * face.number if rerolls_remaining > 0 else 0.0
            else:
                scores[face] = w.single * face.number / 2

        return scores

    @classmethod
    def recommend(
        cls,
        dice: Sequence[Die],
        player: Player,
        living_opponents: int,
        rerolls_remaining: int,
    ) -> KeepDecision:
        tally = DiceEngine.tally(dice)
        scores = cls.per_die_scores(tally, player, living_opponents, rerolls_remaining)

        keep = frozenset(
            i for i, die in enumerate(dice)
            if scores[die.value] >= cls.WEIGHTS.keep_threshold
        )
        kept_score = sum(scores[dice[i].value] for i in keep)
        all_score = sum(scores[d.value] for d in dice)

        face_scores = {
            face.value: round(scores[face] * tally[face], 3)
            for face in DiceEngine.FACES
            if tally[face]
        }
        action = REROLL if rerolls_remaining > 0 and len(keep) < len(dice) else END_ROLL

        return KeepDecision(
            keep_indices=keep,
            action=action,
            score=round(kept_score, 3),
            rationale=_describe_keep(dice, keep, action),
            face_scores=face_scores,
            hypotheticals=(
                ("keep_all", round(all_score, 3)),
                ("keep_none", 0.0),
                ("recommended", round(kept_score, 3)),
            ),
        )


def _describe_keep(dice: Sequence[Die], keep: frozenset[int], action: str) -> str:
    kept = Counter(dice[i].value.value for i in sorted(keep))
    parts = [f"{face} x{count}" for face, count in kept.items()]
    summary = "keep " + ", ".join(parts) if parts else "keep nothing"
    if action == REROLL:
        return f"{summary}; reroll {len(dice) - len(keep)}"
    return f"{summary}; stop rolling"


def fallback_keep(dice: Sequence[Die]) -> frozenset[int]:
    """Keep an existing triple, else the largest pair, else nothing."""
    tally = DiceEngine.tally(dice)
    best: Face | None = None
    for face in NUMBER_FACES:
        if tally[face] < 2:
            continue
        if best is None or (tally[face], face.number) > (tally[best], best.number):
            best = face
    if best is None:
        return frozenset()
    return frozenset(i for i, die in enumerate(dice) if die.value == best)


def safe_keep_decision(
    dice: Sequence[Die],
    player: Player,
    living_opponents: int,
    rerolls_remaining: int,
    advisor: type[DiceKeepAdvisor] = DiceKeepAdvisor,
) -> KeepDecision:
    """Run the keep heuristic, falling back to the deterministic rule on failure."""
    try:
        return advisor.recommend(dice, player, living_opponents, rerolls_remaining)
    except Exception:
        logger.exception("Keep heuristic failed for %s; using fallback", player.id)
        keep = fallback_keep(dice)
        action = REROLL if rerolls_remaining > 0 and len(keep) < len(dice) else END_ROLL
        return KeepDecision(
            keep_indices=keep,
            action=action,
            rationale="fallback: " + _describe_keep(dice, keep, action),
            fallback=True,
        )


# =============================================================================
# PURCHASE / FLUSH
# =============================================================================

@dataclass(frozen=True)
class BuyDecision:
    """
    What a computer player does in the buy window.

    Attributes:
        action: "buy", "flush" or "pass"
        card_id: Card to buy
        score: Score of the chosen card
        rationale: Human-readable summary
    """
    action: str
    card_id: str | None = None
    score: float = 0.0
    rationale: str = ""


class BuyAdvisor:
    """Fixed per-kind weights over cost."""

    KIND_WEIGHTS: dict[str, float] = {
        EffectKind.VP_GAIN.value: 1.2,
        EffectKind.ENERGY_GAIN.value: 0.5,
        EffectKind.HEAL_ALL.value: 0.4,
        EffectKind.HEAL_SELF.value: 0.7,
        EffectKind.DAMAGE_ALL.value: 1.0,
        EffectKind.DAMAGE_TOKYO_ONLY.value: 0.8,
        EffectKind.DAMAGE_SELECT.value: 0.9,
        EffectKind.ENERGY_STEAL.value: 0.8,
        EffectKind.VP_STEAL.value: 1.1,
        EffectKind.DICE_SLOT.value: 4.0,
        EffectKind.REROLL_BONUS.value: 2.5,
        EffectKind.PEEK.value: 0.3,
    }
    DEFAULT_WEIGHT = 0.1
    LOW_SCORE = 0.5

    @classmethod
    def score_card(cls, card: Card) -> float:
        weight = cls.KIND_WEIGHTS.get(card.effect.kind, cls.DEFAULT_WEIGHT)
        return round(weight * max(1, card.effect.value) / max(1, card.cost), 3)

    @classmethod
    def decide(
        cls,
        shop: Sequence[Card],
        player: Player,
        flush_cost: int = FLUSH_COST,
        allow_flush: bool = True,
    ) -> BuyDecision:
        if not shop:
            return BuyDecision(action="pass", rationale="shop is empty")

        scored = sorted(((cls.score_card(c), c) for c in shop), key=lambda sc: sc[0], reverse=True)
        top_scores = [score for score, _ in scored[:3]]

        if allow_flush and player.energy >= flush_cost and all(s < cls.LOW_SCORE for s in top_scores):
            return BuyDecision(action="flush", rationale=f"best offer only {top_scores[0]}")

        for score, card in scored:
            if card.cost <= player.energy:
                return BuyDecision(
                    action="buy",
                    card_id=card.id,
                    score=score,
                    rationale=f"{card.name} scores {score}",
                )

        return BuyDecision(action="pass", rationale="nothing affordable")


# =============================================================================
# YIELD
# =============================================================================

@dataclass(frozen=True)
class YieldDecision:
    choice: YieldChoice
    projected_health: int
    rationale: str = ""


class YieldAdvisor:
    """Stay when healthy or close to winning; the bay is held more reluctantly."""

    STAY_VP = 15
    HEALTHY = YIELD_HEALTH_THRESHOLD
    BAY_MARGIN = 3

    @classmethod
    def decide(cls, player: Player, slot: Slot, incoming_damage: int = 0) -> YieldDecision:
        projected = player.health - incoming_damage

        if projected <= 0:
            return YieldDecision(YieldChoice.YIELD, projected, "would not survive")
        if player.victory_points >= cls.STAY_VP:
            return YieldDecision(YieldChoice.STAY, projected, "close to winning")

        needed = cls.HEALTHY if slot == Slot.CITY else cls.HEALTHY + cls.BAY_MARGIN
        if projected >= needed:
            return YieldDecision(YieldChoice.STAY, projected, f"health {projected} >= {needed}")
        return YieldDecision(YieldChoice.YIELD, projected, f"health {projected} < {needed}")


def default_yield_choice(projected_health: int) -> YieldChoice:
    """Decision applied when a yield window expires unanswered."""
    return YieldChoice.YIELD if projected_health < YIELD_HEALTH_THRESHOLD else YieldChoice.STAY


# =============================================================================
# TARGETING
# =============================================================================

def choose_targets(candidates: Sequence[Player], max_targets: int) -> tuple[str, ...]:
    """Leaders first, then the most wounded."""
    ranked = sorted(candidates, key=lambda p: (-p.victory_points, p.health))
    return tuple(p.id for p in ranked[:max(1, max_targets)])
