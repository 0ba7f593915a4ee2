"""
Kaiju Clash - Card Catalog

Card and effect definitions plus deck utilities. The catalog is plain data
and can be swapped wholesale; only the effect kinds are interpreted, by the
effect queue's handler registry.
"""

import random
from dataclasses import dataclass
from enum import Enum
from typing import Sequence


class CardType(Enum):
    KEEP = "keep"        # stays in hand
    DISCARD = "discard"  # applies once


class EffectKind(str, Enum):
    """Effect kinds understood by the base handler registry."""
    VP_GAIN = "vp_gain"
    ENERGY_GAIN = "energy_gain"
    HEAL_ALL = "heal_all"
    HEAL_SELF = "heal_self"
    DAMAGE_ALL = "damage_all"
    DAMAGE_TOKYO_ONLY = "damage_tokyo_only"
    DAMAGE_SELECT = "damage_select"
    ENERGY_STEAL = "energy_steal"
    VP_STEAL = "vp_steal"
    DICE_SLOT = "dice_slot"
    REROLL_BONUS = "reroll_bonus"
    PEEK = "peek"


# Keep cards of these kinds also fire once on purchase.
IMMEDIATE_KINDS = frozenset({
    EffectKind.VP_GAIN.value,
    EffectKind.ENERGY_GAIN.value,
    EffectKind.HEAL_SELF.value,
    EffectKind.DAMAGE_ALL.value,
    EffectKind.VP_STEAL.value,
    EffectKind.ENERGY_STEAL.value,
})


@dataclass(frozen=True)
class Effect:
    """
    What a card does.

    Attributes:
        kind: Effect kind; unknown kinds are allowed and fail at dispatch
        value: Magnitude (VP, energy, damage, slots...)
        max_targets: Upper bound for selection effects
    """
    kind: str
    value: int = 0
    max_targets: int | None = None


@dataclass(frozen=True)
class Card:
    """
    A power card.

    Attributes:
        id: Catalog identifier
        name: Display name
        cost: Energy cost
        type: Keep or discard
        effect: Effect applied when bought (discard) or held (keep)
    """
    id: str
    name: str
    cost: int
    type: CardType
    effect: Effect
    description: str = ""

    def __post_init__(self) -> None:
        if self.cost < 0:
            raise ValueError(f"Card cost cannot be negative, got {self.cost}.")

    @property
    def is_keep(self) -> bool:
        return self.type == CardType.KEEP


def _card(card_id, name, cost, card_type, kind, value, max_targets=None, description=""):
    return Card(
        id=card_id,
        name=name,
        cost=cost,
        type=card_type,
        effect=Effect(kind=kind.value, value=value, max_targets=max_targets),
        description=description,
    )


def build_base_catalog() -> tuple[Card, ...]:
    """The representative card pool shipped with the engine."""
    keep, discard = CardType.KEEP, CardType.DISCARD
    return (
        _card("extra-head", "Extra Head", 7, keep, EffectKind.DICE_SLOT, 1,
              description="You get 1 extra die."),
        _card("giant-brain", "Giant Brain", 5, keep, EffectKind.REROLL_BONUS, 1,
              description="You get 1 extra reroll each turn."),
        _card("nitrous-oxide", "Nitrous Oxide", 3, keep, EffectKind.REROLL_BONUS, 1,
              description="You get 1 extra reroll each turn."),
        _card("clairvoyance", "Clairvoyance", 2, keep, EffectKind.PEEK, 1,
              description="Spend 1 energy to look at the top card of the deck."),
        _card("evacuation-orders", "Evacuation Orders", 7, discard, EffectKind.VP_GAIN, 5,
              description="+5 VP."),
        _card("complete-destruction", "Complete Destruction", 5, discard, EffectKind.VP_GAIN, 3,
              description="+3 VP."),
        _card("energize", "Energize", 2, discard, EffectKind.ENERGY_GAIN, 9,
              description="+9 energy."),
        _card("energy-hoard", "Energy Hoard", 3, discard, EffectKind.ENERGY_GAIN, 3,
              description="+3 energy."),
        _card("healing-ray", "Healing Ray", 4, discard, EffectKind.HEAL_ALL, 1,
              description="All monsters heal 1."),
        _card("adrenaline", "Adrenaline", 4, discard, EffectKind.HEAL_SELF, 2,
              description="Heal 2."),
        _card("national-guard", "National Guard", 2, discard, EffectKind.DAMAGE_TOKYO_ONLY, 2,
              description="Deal 2 damage to each monster in Tokyo."),
        _card("focused-beam", "Focused Beam", 3, discard, EffectKind.DAMAGE_TOKYO_ONLY, 2,
              description="Deal 2 damage to each monster in Tokyo."),
        _card("acid-attack", "Acid Attack", 6, discard, EffectKind.DAMAGE_ALL, 1,
              description="Deal 1 damage to every other monster."),
        _card("seismic-blast", "Seismic Blast", 5, discard, EffectKind.DAMAGE_ALL, 2,
              description="Deal 2 damage to every other monster."),
        _card("surgical-strike", "Surgical Strike", 4, discard, EffectKind.DAMAGE_SELECT, 1,
              max_targets=2, description="Deal 1 damage to up to 2 monsters of your choice."),
        _card("power-siphon", "Power Siphon", 5, discard, EffectKind.ENERGY_STEAL, 2,
              description="Take up to 2 energy from each other monster."),
        _card("fame-heist", "Fame Heist", 6, discard, EffectKind.VP_STEAL, 1,
              description="Take 1 VP from each other monster."),
    )


def shuffle(cards: Sequence[Card], rng: random.Random | None = None) -> tuple[Card, ...]:
    """Return a shuffled copy of ``cards``."""
    pool = list(cards)
    (rng or random).shuffle(pool)
    return tuple(pool)


def build_deck(catalog: Sequence[Card], rng: random.Random | None = None) -> tuple[Card, ...]:
    return shuffle(catalog, rng)


def draw(deck: Sequence[Card], count: int = 1) -> tuple[tuple[Card, ...], tuple[Card, ...]]:
    """Split ``count`` cards off the top of ``deck``.

    Returns:
        Tuple of (drawn, rest)
    """
    return tuple(deck[:count]), tuple(deck[count:])


def find_card(cards: Sequence[Card], card_id: str) -> Card | None:
    for card in cards:
        if card.id == card_id:
            return card
    return None
