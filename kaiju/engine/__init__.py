"""
Kaiju Clash Game Engine.

Pure Python game logic with zero store/runtime dependencies.
Handles dice, monsters, the card catalog and the phase state machine.
"""

from kaiju.engine.base import (
    Die,
    DicePhase,
    Face,
    Phase,
    Slot,
    Triple,
    YieldChoice,
)
from kaiju.engine.cards import Card, CardType, Effect, EffectKind, build_base_catalog
from kaiju.engine.dice import DiceEngine
from kaiju.engine.player import Modifiers, Player, create_player

__all__ = [
    # Data Classes
    "Card",
    "Die",
    "Effect",
    "Modifiers",
    "Player",
    "Triple",
    # Enums
    "CardType",
    "DicePhase",
    "EffectKind",
    "Face",
    "Phase",
    "Slot",
    "YieldChoice",
    # Engines
    "DiceEngine",
    "build_base_catalog",
    "create_player",
]
