"""
Kaiju Clash AI.

Heuristics for computer-controlled monsters and the decision tree sink.
"""

from kaiju.ai.explain import DecisionTree, RollNode
from kaiju.ai.heuristics import (
    BuyAdvisor,
    BuyDecision,
    DiceKeepAdvisor,
    KeepDecision,
    YieldAdvisor,
    YieldDecision,
    choose_targets,
    fallback_keep,
    safe_keep_decision,
)

__all__ = [
    "BuyAdvisor",
    "BuyDecision",
    "DecisionTree",
    "DiceKeepAdvisor",
    "KeepDecision",
    "RollNode",
    "YieldAdvisor",
    "YieldDecision",
    "choose_targets",
    "fallback_keep",
    "safe_keep_decision",
]
