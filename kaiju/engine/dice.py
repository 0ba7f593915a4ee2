"""
Kaiju Clash - Dice Engine

Six-faced symbol dice: 1, 2, 3, claw, energy, heart. Rolls leave kept dice
untouched; tallies always report every face so callers never need
defaults.

All methods are stateless class methods operating on immutable data.
"""

import random
from collections import Counter
from typing import Iterable, Sequence

from kaiju.engine.base import ALL_FACES, NUMBER_FACES, Die, Face, Triple
from kaiju.engine.validators import validate_die_index


class DiceEngine:
    """
    Stateless engine for rolling and reading the dice tray.

    State is passed in and returned, never stored. Pass a seeded
    ``random.Random`` for reproducible rolls.
    """

    FACES = ALL_FACES

    @classmethod
    def roll_face(cls, rng: random.Random | None = None) -> Face:
        """Draw one face uniformly at random."""
        return (rng or random).choice(cls.FACES)

    @classmethod
    def roll(
        cls,
        count: int,
        current: Sequence[Die] = (),
        rng: random.Random | None = None,
    ) -> tuple[Die, ...]:
        """Roll a tray of ``count`` dice.

        Args:
            count: Number of dice in the tray (dice slots)
            current: Previous tray; kept dice are carried over unchanged
            rng: Optional random source

        Returns:
            New tray of length ``count``
        """
        tray = []
        for i in range(count):
            existing = current[i] if i < len(current) else None
            if existing is not None and existing.kept:
                tray.append(existing)
            else:
                tray.append(Die(value=cls.roll_face(rng)))
        return tuple(tray)

    @classmethod
    def toggle_keep(cls, dice: Sequence[Die], index: int) -> tuple[Die, ...]:
        """Flip the kept flag of one die.

        Raises:
            ValueError: If index is out of range
        """
        validate_die_index(index, len(dice))
        return tuple(d.toggled() if i == index else d for i, d in enumerate(dice))

    @classmethod
    def tally(cls, faces: Iterable[Die | Face]) -> Counter:
        """Count faces, with every face present (zero when absent)."""
        counts: Counter = Counter({face: 0 for face in cls.FACES})
        for item in faces:
            counts[item.value if isinstance(item, Die) else item] += 1
        return counts

    @classmethod
    def extract_triples(cls, tally: Counter) -> tuple[Triple, ...]:
        """Number faces rolled three or more times."""
        return tuple(
            Triple(number=face.number, count=tally[face])
            for face in NUMBER_FACES
            if tally[face] >= 3
        )
