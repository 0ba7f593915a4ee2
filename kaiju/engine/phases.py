"""
Kaiju Clash - Phase State Machine

Legal turn phases and the transitions between them. The table is the only
authority: the store's root transition consults it and drops any phase
change it does not list.
"""

from kaiju.engine.base import Phase


TRANSITIONS: dict[Phase, frozenset[Phase]] = {
    Phase.SETUP: frozenset({Phase.ROLL}),
    Phase.ROLL: frozenset({Phase.RESOLVE}),
    Phase.RESOLVE: frozenset({Phase.YIELD_DECISION, Phase.BUY, Phase.GAME_OVER}),
    Phase.YIELD_DECISION: frozenset({Phase.BUY}),
    Phase.BUY: frozenset({Phase.BUY_WAIT, Phase.CLEANUP}),
    Phase.BUY_WAIT: frozenset({Phase.CLEANUP}),
    Phase.CLEANUP: frozenset({Phase.ROLL}),
    Phase.GAME_OVER: frozenset(),
}


def allowed_transitions(current: Phase) -> frozenset[Phase]:
    return TRANSITIONS.get(current, frozenset())


def can_transition(current: Phase, target: Phase) -> bool:
    """Whether ``current -> target`` is a listed transition."""
    return target in allowed_transitions(current)


def is_terminal(phase: Phase) -> bool:
    return not allowed_transitions(phase)


def after_resolve(has_winner: bool, has_pending_prompts: bool) -> Phase:
    """Route out of RESOLVE: winner first, then pending yield prompts."""
    if has_winner:
        return Phase.GAME_OVER
    if has_pending_prompts:
        return Phase.YIELD_DECISION
    return Phase.BUY


def after_buy(queue_busy: bool) -> Phase:
    """Route out of BUY: wait for the effect queue when it is not idle."""
    return Phase.BUY_WAIT if queue_busy else Phase.CLEANUP
