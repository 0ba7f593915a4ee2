"""
Kaiju Clash Runtime.

Scheduler, game log and the turn orchestrator that drives a live game.
"""

from kaiju.runtime.events import GameEvent, GameLog, LogEntry, build_log_tree
from kaiju.runtime.scheduler import Scheduler, Task
from kaiju.runtime.turns import TurnOrchestrator

__all__ = [
    "GameEvent",
    "GameLog",
    "LogEntry",
    "Scheduler",
    "Task",
    "TurnOrchestrator",
    "build_log_tree",
]
