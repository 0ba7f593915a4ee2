"""
Kaiju Clash - Player Model

Immutable monster state and the pure transitions that act on it. Every
transition returns a new Player; resources are clamped so health stays in
[0, max_health] and energy/VP never go negative.
"""

from dataclasses import dataclass, field, replace

from kaiju.engine.base import BASE_DICE_SLOTS, MAX_HEALTH
from kaiju.engine.cards import Card, EffectKind


@dataclass(frozen=True)
class Modifiers:
    """
    Bonuses granted by keep cards.

    Attributes:
        dice_slots: Dice in the tray (base 6)
        reroll_bonus: Extra rerolls per sequence
    """
    dice_slots: int = BASE_DICE_SLOTS
    reroll_bonus: int = 0


@dataclass(frozen=True)
class Player:
    """
    A monster in the game.

    Attributes:
        id: Unique player id
        name: Display name
        monster_id: Monster archetype key
        health: Current health (0 = eliminated)
        energy: Energy cubes
        victory_points: VP total
        in_tokyo: Whether the monster occupies a Tokyo slot
        cards: Keep cards in acquisition order
        is_cpu: Controlled by the AI engine
        modifiers: Card-derived bonuses
    """
    id: str
    name: str
    monster_id: str = ""
    health: int = MAX_HEALTH
    max_health: int = MAX_HEALTH
    energy: int = 0
    victory_points: int = 0
    in_tokyo: bool = False
    cards: tuple[Card, ...] = field(default_factory=tuple)
    is_cpu: bool = False
    modifiers: Modifiers = field(default_factory=Modifiers)

    @property
    def alive(self) -> bool:
        return self.health > 0

    def has_effect(self, kind: str) -> bool:
        """Whether any held card carries an effect of ``kind``."""
        return any(card.effect.kind == kind for card in self.cards)


def create_player(
    player_id: str,
    name: str,
    monster_id: str = "",
    is_cpu: bool = False,
) -> Player:
    return Player(id=player_id, name=name, monster_id=monster_id or player_id, is_cpu=is_cpu)


def apply_damage(player: Player, amount: int) -> Player:
    if amount <= 0 or not player.alive:
        return player
    return replace(player, health=max(0, player.health - amount))


def heal(player: Player, amount: int) -> Player:
    """Restore health; healing is blocked while in Tokyo."""
    if amount <= 0 or player.in_tokyo or not player.alive:
        return player
    return replace(player, health=min(player.max_health, player.health + amount))


def add_energy(player: Player, amount: int) -> Player:
    return replace(player, energy=max(0, player.energy + amount))


def spend_energy(player: Player, amount: int) -> Player:
    """Deduct energy; a no-op when the player cannot afford it."""
    if amount < 0 or player.energy < amount:
        return player
    return replace(player, energy=player.energy - amount)


def add_victory_points(player: Player, amount: int) -> Player:
    return replace(player, victory_points=max(0, player.victory_points + amount))


def enter_tokyo(player: Player) -> Player:
    return replace(player, in_tokyo=True)


def leave_tokyo(player: Player) -> Player:
    return replace(player, in_tokyo=False)


def add_card(player: Player, card: Card) -> Player:
    return recalc_modifiers(replace(player, cards=player.cards + (card,)))


def recalc_modifiers(player: Player) -> Player:
    """Rebuild modifiers from held keep cards."""
    dice_slots = BASE_DICE_SLOTS
    reroll_bonus = 0
    for card in player.cards:
        if card.effect.kind == EffectKind.DICE_SLOT:
            dice_slots += card.effect.value
        elif card.effect.kind == EffectKind.REROLL_BONUS:
            reroll_bonus += card.effect.value
    return replace(player, modifiers=Modifiers(dice_slots=dice_slots, reroll_bonus=reroll_bonus))
