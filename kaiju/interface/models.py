"""
Kaiju Clash - Interface Models

Pydantic models for everything that crosses the engine boundary: the
read-only GameSnapshot handed to observers, and the intents a front end
sends back in.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from kaiju.core.state import EffectEntry, GameState, TargetSelectionRequest, YieldPrompt
from kaiju.engine.base import Slot, YieldChoice
from kaiju.engine.cards import Card
from kaiju.engine.player import Player


class PlayerSpec(BaseModel):
    """A seat at game creation."""

    id: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=30)
    monster_id: str = ""
    is_cpu: bool = False


# =============================================================================
# SNAPSHOT
# =============================================================================

class CardView(BaseModel):
    id: str
    name: str
    cost: int
    type: str
    kind: str
    value: int
    max_targets: int | None = None
    description: str = ""

    @classmethod
    def from_card(cls, card: Card) -> "CardView":
        return cls(
            id=card.id,
            name=card.name,
            cost=card.cost,
            type=card.type.value,
            kind=str(getattr(card.effect.kind, "value", card.effect.kind)),
            value=card.effect.value,
            max_targets=card.effect.max_targets,
            description=card.description,
        )


class PlayerView(BaseModel):
    id: str
    name: str
    monster_id: str = ""
    health: int = Field(ge=0)
    max_health: int
    energy: int = Field(ge=0)
    victory_points: int = Field(ge=0)
    in_tokyo: bool
    alive: bool
    is_cpu: bool
    dice_slots: int
    reroll_bonus: int
    cards: list[CardView] = Field(default_factory=list)

    @classmethod
    def from_player(cls, player: Player) -> "PlayerView":
        return cls(
            id=player.id,
            name=player.name,
            monster_id=player.monster_id,
            health=player.health,
            max_health=player.max_health,
            energy=player.energy,
            victory_points=player.victory_points,
            in_tokyo=player.in_tokyo,
            alive=player.alive,
            is_cpu=player.is_cpu,
            dice_slots=player.modifiers.dice_slots,
            reroll_bonus=player.modifiers.reroll_bonus,
            cards=[CardView.from_card(c) for c in player.cards],
        )


class DieView(BaseModel):
    value: str
    kept: bool = False


class DiceView(BaseModel):
    faces: list[DieView] = Field(default_factory=list)
    rerolls_remaining: int = 0
    base_rerolls: int
    phase: str
    accepted: bool = False
    roll_count: int = 0


class TokyoView(BaseModel):
    city: str | None = None
    bay: str | None = None


class YieldPromptView(BaseModel):
    defender_id: str
    attacker_id: str
    slot: str
    expires_at: int
    damage: int = 0
    decision: str | None = None

    @classmethod
    def from_prompt(cls, prompt: YieldPrompt) -> "YieldPromptView":
        return cls(
            defender_id=prompt.defender_id,
            attacker_id=prompt.attacker_id,
            slot=prompt.slot.value,
            expires_at=prompt.expires_at,
            damage=prompt.damage,
            decision=prompt.decision.value if prompt.decision else None,
        )


class ShopView(BaseModel):
    shop: list[CardView] = Field(default_factory=list)
    deck_size: int = 0
    discard: list[CardView] = Field(default_factory=list)
    last_peek: CardView | None = None


class EffectEntryView(BaseModel):
    id: str
    card_id: str
    player_id: str
    kind: str
    status: str
    selected_ids: list[str] | None = None
    reason: str | None = None

    @classmethod
    def from_entry(cls, entry: EffectEntry) -> "EffectEntryView":
        return cls(
            id=entry.id,
            card_id=entry.card_id,
            player_id=entry.player_id,
            kind=str(getattr(entry.effect.kind, "value", entry.effect.kind)),
            status=entry.status.value,
            selected_ids=list(entry.selected_ids) if entry.selected_ids is not None else None,
            reason=entry.reason,
        )


class EffectQueueView(BaseModel):
    queue: list[EffectEntryView] = Field(default_factory=list)
    processing: str | None = None
    history: list[EffectEntryView] = Field(default_factory=list)


class TargetSelectionView(BaseModel):
    request_id: str
    entry_id: str
    player_id: str
    kind: str
    min_targets: int
    max_targets: int
    eligible_ids: list[str]

    @classmethod
    def from_request(cls, request: TargetSelectionRequest) -> "TargetSelectionView":
        return cls(
            request_id=request.request_id,
            entry_id=request.entry_id,
            player_id=request.player_id,
            kind=str(getattr(request.effect.kind, "value", request.effect.kind)),
            min_targets=request.min_targets,
            max_targets=request.max_targets,
            eligible_ids=list(request.eligible_ids),
        )


class MetaView(BaseModel):
    turn: int
    round: int
    active_player_index: int
    turn_cycle_id: int
    winner_id: str | None = None
    paused: bool = False


class SettingsView(BaseModel):
    cpu_speed: Literal["slow", "normal", "fast"] = "normal"
    persist_settings: bool = False
    persist_positions: bool = False


class GameSnapshot(BaseModel):
    """Read-only, serializable view of the whole game."""

    phase: str
    players: list[PlayerView] = Field(default_factory=list)
    active_player_id: str | None = None
    dice: DiceView
    tokyo: TokyoView
    yield_prompts: list[YieldPromptView] = Field(default_factory=list)
    cards: ShopView
    effect_queue: EffectQueueView
    target_selection: TargetSelectionView | None = None
    meta: MetaView
    settings: SettingsView

    model_config = {"frozen": True}

    @classmethod
    def from_state(cls, state: GameState) -> "GameSnapshot":
        order = state.players.order
        active_id = order[state.meta.active_player_index % len(order)] if order else None
        selection = state.target_selection.active
        cards = state.cards
        return cls(
            phase=state.phase.value,
            players=[PlayerView.from_player(p) for p in state.players.ordered()],
            active_player_id=active_id,
            dice=DiceView(
                faces=[DieView(value=d.value.value, kept=d.kept) for d in state.dice.faces],
                rerolls_remaining=state.dice.rerolls_remaining,
                base_rerolls=state.dice.base_rerolls,
                phase=state.dice.phase.value,
                accepted=state.dice.accepted,
                roll_count=state.dice.roll_count,
            ),
            tokyo=TokyoView(city=state.tokyo.city, bay=state.tokyo.bay),
            yield_prompts=[YieldPromptView.from_prompt(p) for p in state.yields.prompts],
            cards=ShopView(
                shop=[CardView.from_card(c) for c in cards.shop],
                deck_size=len(cards.deck),
                discard=[CardView.from_card(c) for c in cards.discard],
                last_peek=CardView.from_card(cards.last_peek.card) if cards.last_peek else None,
            ),
            effect_queue=EffectQueueView(
                queue=[EffectEntryView.from_entry(e) for e in state.effect_queue.queue],
                processing=state.effect_queue.processing,
                history=[EffectEntryView.from_entry(e) for e in state.effect_queue.history],
            ),
            target_selection=TargetSelectionView.from_request(selection) if selection else None,
            meta=MetaView(
                turn=state.meta.turn,
                round=state.meta.round,
                active_player_index=state.meta.active_player_index,
                turn_cycle_id=state.meta.turn_cycle_id,
                winner_id=state.meta.winner_id,
                paused=state.meta.paused,
            ),
            settings=SettingsView(
                cpu_speed=state.settings.cpu_speed,
                persist_settings=state.settings.persist_settings,
                persist_positions=state.settings.persist_positions,
            ),
        )

    def player(self, player_id: str) -> PlayerView | None:
        return next((p for p in self.players if p.id == player_id), None)


# =============================================================================
# INTENTS
# =============================================================================

class _Intent(BaseModel):
    player_id: str | None = None

    model_config = {"extra": "forbid"}


class RollIntent(_Intent):
    type: Literal["roll"] = "roll"


class ToggleKeepIntent(_Intent):
    type: Literal["toggle_keep"] = "toggle_keep"
    index: int = Field(ge=0)


class PurchaseCardIntent(_Intent):
    type: Literal["purchase_card"] = "purchase_card"
    player_id: str
    card_id: str


class FlushShopIntent(_Intent):
    type: Literal["flush_shop"] = "flush_shop"
    player_id: str


class ConfirmTargetsIntent(_Intent):
    type: Literal["confirm_targets"] = "confirm_targets"
    request_id: str
    selected_ids: list[str]


class CancelTargetsIntent(_Intent):
    type: Literal["cancel_targets"] = "cancel_targets"
    request_id: str


class DecideYieldIntent(_Intent):
    type: Literal["decide_yield"] = "decide_yield"
    player_id: str
    slot: Slot
    decision: YieldChoice


class AdvancePhaseIntent(_Intent):
    type: Literal["advance_phase"] = "advance_phase"


class PeekIntent(_Intent):
    type: Literal["peek"] = "peek"
    player_id: str


class SetPausedIntent(_Intent):
    type: Literal["set_paused"] = "set_paused"
    paused: bool


Intent = Annotated[
    Union[
        RollIntent,
        ToggleKeepIntent,
        PurchaseCardIntent,
        FlushShopIntent,
        ConfirmTargetsIntent,
        CancelTargetsIntent,
        DecideYieldIntent,
        AdvancePhaseIntent,
        PeekIntent,
        SetPausedIntent,
    ],
    Field(discriminator="type"),
]

intent_adapter: TypeAdapter[Intent] = TypeAdapter(Intent)


def parse_intent(data: dict | BaseModel) -> BaseModel:
    """Validate a raw intent dict (or pass a model through).

    Raises:
        pydantic.ValidationError: If the payload does not match any intent
    """
    if isinstance(data, BaseModel):
        return data
    return intent_adapter.validate_python(data)
