"""
Kaiju Clash - State Slices

The whole game lives in one immutable GameState built from per-slice
frozen dataclasses. Transitions never mutate; they return a new slice.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from kaiju.engine.base import BASE_REROLLS, DicePhase, Die, Phase, Slot, YieldChoice
from kaiju.engine.cards import Card, Effect
from kaiju.engine.player import Player


def frozen_map(data: Mapping | None = None) -> Mapping:
    return MappingProxyType(dict(data or {}))


@dataclass(frozen=True)
class PlayersState:
    """
    Players keyed by id plus the seating order.

    Attributes:
        order: Player ids in turn order
        by_id: Read-only mapping of id to Player
    """
    order: tuple[str, ...] = ()
    by_id: Mapping[str, Player] = field(default_factory=frozen_map)

    def get(self, player_id: str) -> Player | None:
        return self.by_id.get(player_id)

    def ordered(self) -> tuple[Player, ...]:
        return tuple(self.by_id[pid] for pid in self.order)

    def with_player(self, player: Player) -> "PlayersState":
        by_id = dict(self.by_id)
        by_id[player.id] = player
        return PlayersState(order=self.order, by_id=frozen_map(by_id))


@dataclass(frozen=True)
class DiceState:
    """
    The dice tray for the current roll sequence.

    Attributes:
        faces: Current dice (empty before the first roll)
        rerolls_remaining: Rerolls left in this sequence
        base_rerolls: Rerolls before card bonuses
        phase: Sequence lifecycle
        accepted: Whether this turn's roll has been scored
        roll_count: Rolls taken this turn
    """
    faces: tuple[Die, ...] = ()
    rerolls_remaining: int = 0
    base_rerolls: int = BASE_REROLLS
    phase: DicePhase = DicePhase.IDLE
    accepted: bool = False
    roll_count: int = 0


@dataclass(frozen=True)
class TokyoState:
    city: str | None = None
    bay: str | None = None

    def occupant(self, slot: Slot) -> str | None:
        return self.city if slot == Slot.CITY else self.bay

    def slot_of(self, player_id: str) -> Slot | None:
        if self.city == player_id:
            return Slot.CITY
        if self.bay == player_id:
            return Slot.BAY
        return None

    @property
    def occupants(self) -> tuple[str, ...]:
        return tuple(pid for pid in (self.city, self.bay) if pid is not None)


@dataclass(frozen=True)
class YieldPrompt:
    """
    A pending stay-or-flee decision for a damaged Tokyo occupant.

    Attributes:
        defender_id: Occupant that took damage
        attacker_id: Player whose attack caused it
        slot: Slot the defender holds
        expires_at: Scheduler time (ms) of the default decision
        damage: Damage taken in the triggering attack
        decision: Stay/yield once decided
    """
    defender_id: str
    attacker_id: str
    slot: Slot
    expires_at: int
    damage: int = 0
    decision: YieldChoice | None = None

    @property
    def pending(self) -> bool:
        return self.decision is None


@dataclass(frozen=True)
class YieldState:
    prompts: tuple[YieldPrompt, ...] = ()

    def pending(self) -> tuple[YieldPrompt, ...]:
        return tuple(p for p in self.prompts if p.pending)


@dataclass(frozen=True)
class PeekRecord:
    player_id: str
    card: Card


@dataclass(frozen=True)
class CardsState:
    """
    Card zones.

    Attributes:
        catalog: Full card pool
        deck: Draw pile, top first
        shop: Face-up offers (up to 3)
        discard: Used discard cards and flushed offers
        last_peek: Most recent deck preview
    """
    catalog: tuple[Card, ...] = ()
    deck: tuple[Card, ...] = ()
    shop: tuple[Card, ...] = ()
    discard: tuple[Card, ...] = ()
    last_peek: PeekRecord | None = None


class EffectStatus(Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    WAITING_SELECTION = "waiting_selection"
    RESOLVED = "resolved"
    FAILED = "failed"


@dataclass(frozen=True)
class EffectEntry:
    """
    One card effect travelling through the queue.

    Attributes:
        id: Queue-unique id ("eff_N")
        card_id: Source card
        player_id: Owner of the effect
        effect: What to apply
        status: Lifecycle status
        selected_ids: Confirmed targets for selection effects
        reason: Failure reason code
        turn_cycle_id: Turn cycle that enqueued the entry
    """
    id: str
    card_id: str
    player_id: str
    effect: Effect
    status: EffectStatus = EffectStatus.QUEUED
    selected_ids: tuple[str, ...] | None = None
    reason: str | None = None
    turn_cycle_id: int = 0


@dataclass(frozen=True)
class EffectQueueState:
    queue: tuple[EffectEntry, ...] = ()
    processing: str | None = None
    history: tuple[EffectEntry, ...] = ()
    next_id: int = 1

    def get(self, entry_id: str) -> EffectEntry | None:
        for entry in self.queue:
            if entry.id == entry_id:
                return entry
        return None

    @property
    def idle(self) -> bool:
        return not self.queue and self.processing is None


@dataclass(frozen=True)
class TargetSelectionRequest:
    """
    A human target choice blocking a queued effect.

    Attributes:
        request_id: Selection id ("sel_N")
        entry_id: Effect queue entry waiting on it
        player_id: Chooser
        effect: Effect being targeted
        min_targets: Lower bound
        max_targets: Upper bound
        eligible_ids: Valid targets
        selected_ids: Confirmed targets
    """
    request_id: str
    entry_id: str
    player_id: str
    effect: Effect
    min_targets: int
    max_targets: int
    eligible_ids: tuple[str, ...]
    selected_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class TargetSelectionState:
    active: TargetSelectionRequest | None = None
    next_id: int = 1


@dataclass(frozen=True)
class SettingsState:
    cpu_speed: str = "normal"
    persist_settings: bool = False
    persist_positions: bool = False


@dataclass(frozen=True)
class MetaState:
    """
    Turn bookkeeping.

    Attributes:
        turn: Current turn number, counted across all players
        round: Current round, incremented on seating wrap-around
        active_player_index: Index into players.order
        turn_cycle_id: Monotonic id guarding scheduled callbacks
        winner_id: Winner once the game is over
        paused: Global pause flag
    """
    turn: int = 1
    round: int = 1
    active_player_index: int = 0
    turn_cycle_id: int = 0
    winner_id: str | None = None
    paused: bool = False


@dataclass(frozen=True)
class GameState:
    players: PlayersState = field(default_factory=PlayersState)
    dice: DiceState = field(default_factory=DiceState)
    tokyo: TokyoState = field(default_factory=TokyoState)
    yields: YieldState = field(default_factory=YieldState)
    cards: CardsState = field(default_factory=CardsState)
    effect_queue: EffectQueueState = field(default_factory=EffectQueueState)
    target_selection: TargetSelectionState = field(default_factory=TargetSelectionState)
    phase: Phase = Phase.SETUP
    settings: SettingsState = field(default_factory=SettingsState)
    meta: MetaState = field(default_factory=MetaState)
