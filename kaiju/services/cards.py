"""
Kaiju Clash - Card Shop Service

Deck setup, the three-card shop, purchases, flushing and peeking. Purchases
hand effects to the EffectEngine; this module never applies an effect
itself.
"""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING, Sequence

from kaiju.core import selectors
from kaiju.core.actions import (
    card_discarded,
    card_peeked,
    card_removed_from_shop,
    cards_deck_built,
    cards_shop_flushed,
    cards_shop_refilled,
    player_card_added,
    player_spent_energy,
)
from kaiju.core.store import Store
from kaiju.engine.base import FLUSH_COST, PEEK_COST, SHOP_SIZE, Phase
from kaiju.engine.cards import IMMEDIATE_KINDS, Card, EffectKind, build_base_catalog, build_deck, find_card

if TYPE_CHECKING:
    from kaiju.services.effects import EffectEngine

logger = logging.getLogger(__name__)

BUY_PHASES = frozenset({Phase.BUY, Phase.BUY_WAIT})


def init_cards(
    store: Store,
    catalog: Sequence[Card] | None = None,
    rng: random.Random | None = None,
) -> None:
    """Shuffle the catalog into a deck and deal the shop."""
    pool = tuple(catalog) if catalog is not None else build_base_catalog()
    store.dispatch(cards_deck_built(pool, build_deck(pool, rng)))
    refill_shop(store)


def refill_shop(store: Store) -> None:
    store.dispatch(cards_shop_refilled(SHOP_SIZE))


def _can_shop(store: Store, player_id: str) -> bool:
    state = store.state
    player = state.players.get(player_id)
    if state.phase not in BUY_PHASES:
        logger.info("Rejected shop action by %s outside the buy window", player_id)
        return False
    if player is None or not player.alive or selectors.active_player_id(state) != player_id:
        logger.info("Rejected shop action by %s: not the active player", player_id)
        return False
    return True


def purchase_card(store: Store, player_id: str, card_id: str, effects: EffectEngine) -> bool:
    """Buy a shop card for the active player.

    Keep cards join the hand (immediate kinds also fire once); discard
    cards go to the discard pile and their effect is queued.

    Returns:
        False if the purchase was rejected
    """
    if not _can_shop(store, player_id):
        return False

    state = store.state
    card = find_card(state.cards.shop, card_id)
    if card is None:
        logger.info("Rejected purchase of %r: not in the shop", card_id)
        return False
    if state.players.get(player_id).energy < card.cost:
        logger.info("Rejected purchase of %s by %s: needs %d energy", card_id, player_id, card.cost)
        return False

    store.dispatch(player_spent_energy(player_id, card.cost))
    store.dispatch(card_removed_from_shop(card.id))

    if card.is_keep:
        store.dispatch(player_card_added(player_id, card))
        if card.effect.kind in IMMEDIATE_KINDS:
            effects.enqueue(card, player_id)
    else:
        store.dispatch(card_discarded(card))
        effects.enqueue(card, player_id)

    refill_shop(store)
    logger.info("%s bought %s for %d energy", player_id, card.name, card.cost)

    effects.process()
    return True


def flush_shop(store: Store, player_id: str, cost: int = FLUSH_COST) -> bool:
    """Pay to discard the shop and deal three fresh cards."""
    if not _can_shop(store, player_id):
        return False
    if store.state.players.get(player_id).energy < cost:
        logger.info("Rejected flush by %s: needs %d energy", player_id, cost)
        return False

    store.dispatch(player_spent_energy(player_id, cost))
    store.dispatch(cards_shop_flushed())
    refill_shop(store)
    logger.info("%s flushed the shop", player_id)
    return True


def peek_top_card(
    store: Store,
    player_id: str,
    cost: int = PEEK_COST,
    require_card: bool = True,
) -> Card | None:
    """Spend energy to look at the top of the deck without drawing it.

    Args:
        store: Game store
        player_id: Player peeking
        cost: Energy cost
        require_card: Only allow holders of a peek card

    Returns:
        The top card, or None if the peek was not allowed
    """
    state = store.state
    player = state.players.get(player_id)
    if player is None or not player.alive:
        return None
    if require_card and not player.has_effect(EffectKind.PEEK):
        logger.info("Rejected peek by %s: no peek card", player_id)
        return None
    if not state.cards.deck or player.energy < cost:
        logger.info("Rejected peek by %s", player_id)
        return None

    top = state.cards.deck[0]
    store.dispatch(player_spent_energy(player_id, cost))
    store.dispatch(card_peeked(player_id, top))
    return top
