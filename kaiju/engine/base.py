"""
Kaiju Clash - Game Engine Base Classes

This module defines the foundational enums, constants and data structures
used throughout the game engine. All classes are immutable (frozen
dataclasses) so state can be shared between the store, services and AI
without copying.
"""

from dataclasses import dataclass
from enum import Enum


# Board constants
MAX_HEALTH = 10
WINNING_VP = 20
BASE_DICE_SLOTS = 6
BASE_REROLLS = 2
MAX_TOTAL_ROLLS = 3
SHOP_SIZE = 3
FLUSH_COST = 2
PEEK_COST = 1
MIN_PLAYERS = 2
MAX_PLAYERS = 6
BAY_MIN_PLAYERS = 5

# Tokyo rewards
ENTRY_VP = 1
CITY_START_VP = 2
BAY_START_VP = 1

# Yield protocol
YIELD_WINDOW_MS = 5000
YIELD_HEALTH_THRESHOLD = 3


class Face(Enum):
    """The six equally likely faces of a die."""
    ONE = "1"
    TWO = "2"
    THREE = "3"
    CLAW = "claw"
    ENERGY = "energy"
    HEART = "heart"

    @property
    def is_number(self) -> bool:
        return self in (Face.ONE, Face.TWO, Face.THREE)

    @property
    def number(self) -> int:
        """Numeric value of a number face (0 for symbols)."""
        return int(self.value) if self.is_number else 0


ALL_FACES: tuple[Face, ...] = tuple(Face)
NUMBER_FACES: tuple[Face, ...] = (Face.ONE, Face.TWO, Face.THREE)


class DicePhase(Enum):
    """Lifecycle of one roll sequence."""
    IDLE = "idle"
    ROLLING = "rolling"
    RESOLVED = "resolved"
    SEQUENCE_COMPLETE = "sequence-complete"


class Phase(Enum):
    """Turn phases."""
    SETUP = "SETUP"
    ROLL = "ROLL"
    RESOLVE = "RESOLVE"
    YIELD_DECISION = "YIELD_DECISION"
    BUY = "BUY"
    BUY_WAIT = "BUY_WAIT"
    CLEANUP = "CLEANUP"
    GAME_OVER = "GAME_OVER"


class Slot(Enum):
    """The two contested Tokyo slots."""
    CITY = "city"   # always available
    BAY = "bay"     # 5+ players only


class YieldChoice(Enum):
    STAY = "stay"
    YIELD = "yield"


@dataclass(frozen=True)
class Die:
    """
    A single die in the tray.

    Attributes:
        value: Face currently showing
        kept: Whether the die is excluded from the next reroll
    """
    value: Face
    kept: bool = False

    def toggled(self) -> "Die":
        return Die(value=self.value, kept=not self.kept)


@dataclass(frozen=True)
class Triple:
    """
    A scoring set of three or more identical number faces.

    Attributes:
        number: The face number (1-3)
        count: How many dice show it (3-6)
    """
    number: int
    count: int

    @property
    def victory_points(self) -> int:
        """Base number plus one per extra matching die."""
        return self.number + (self.count - 3)


def bay_allowed(player_count: int) -> bool:
    """Whether Tokyo Bay is in play for a game of this size."""
    return player_count >= BAY_MIN_PLAYERS
