"""
Kaiju Clash - Decision Explainability

Write-only record of why computer players kept what they kept. The
orchestrator appends one node per roll; inspection tooling reads the tree.
Nothing here is ever consulted by a heuristic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from kaiju.ai.heuristics import KeepDecision
from kaiju.engine.base import Die


@dataclass(frozen=True)
class RollNode:
    """
    One evaluated roll.

    Attributes:
        round: Game round
        turn: Game turn
        player_id: Roller
        roll_number: 1-based roll within the turn
        faces: Face values after the roll
        kept_indices: Dice the decision keeps
        rationale: Decision summary
        score: Score of the kept dice
        hypotheticals: Alternative keeps and their scores
        fallback: Produced by the deterministic fallback
    """
    round: int
    turn: int
    player_id: str
    roll_number: int
    faces: tuple[str, ...]
    kept_indices: tuple[int, ...]
    rationale: str
    score: float
    hypotheticals: tuple[tuple[str, float], ...] = ()
    fallback: bool = False


@dataclass
class DecisionTree:
    """Roll nodes grouped round -> turn."""

    nodes: list[RollNode] = field(default_factory=list)

    def record_roll(
        self,
        round_number: int,
        turn: int,
        player_id: str,
        roll_number: int,
        dice: tuple[Die, ...],
        decision: KeepDecision,
    ) -> RollNode:
        node = RollNode(
            round=round_number,
            turn=turn,
            player_id=player_id,
            roll_number=roll_number,
            faces=tuple(d.value.value for d in dice),
            kept_indices=tuple(sorted(decision.keep_indices)),
            rationale=decision.rationale,
            score=decision.score,
            hypotheticals=decision.hypotheticals,
            fallback=decision.fallback,
        )
        self.nodes.append(node)
        return node

    def rolls_for(self, round_number: int, turn: int) -> list[RollNode]:
        return [n for n in self.nodes if n.round == round_number and n.turn == turn]

    def as_tree(self) -> list[dict[str, Any]]:
        """Nested ``[{round, turns: [{turn, player_id, rolls: [...]}]}]`` view."""
        rounds: dict[int, dict[int, dict[str, Any]]] = {}
        for node in self.nodes:
            turns = rounds.setdefault(node.round, {})
            turn_node = turns.setdefault(
                node.turn, {"turn": node.turn, "player_id": node.player_id, "rolls": []}
            )
            turn_node["rolls"].append({
                "roll": node.roll_number,
                "faces": list(node.faces),
                "kept": list(node.kept_indices),
                "rationale": node.rationale,
                "score": node.score,
                "hypotheticals": dict(node.hypotheticals),
            })
        return [
            {"round": number, "turns": list(turns.values())}
            for number, turns in rounds.items()
        ]

    def clear(self) -> None:
        self.nodes.clear()
