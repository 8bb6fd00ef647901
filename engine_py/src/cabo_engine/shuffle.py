"""
Card shuffling, dealing and pile utilities.
"""

import logging
import random
from typing import List, Optional

from .constants import JOKER, JOKER_SUITS, RANKS, SUITS
from .models import Card, GameState

logger = logging.getLogger(__name__)


def create_deck() -> List[Card]:
    """Create the 54-card deck: 52 standard cards plus two jokers."""
    deck = []

    # Standard 52 cards
    for suit in SUITS:
        for rank in RANKS:
            deck.append(Card(rank, suit))

    for suit in JOKER_SUITS:
        deck.append(Card(JOKER, suit))

    return deck


def shuffle_deck(deck: List[Card], rng: Optional[random.Random] = None) -> List[Card]:
    """
    Shuffle a deck (Fisher-Yates via random.shuffle).

    Args:
        deck: Cards to shuffle
        rng: Optional Random instance for deterministic shuffling

    Returns:
        Shuffled copy of the deck
    """
    deck_copy = deck.copy()

    if rng is not None:
        rng.shuffle(deck_copy)
    else:
        random.shuffle(deck_copy)

    return deck_copy


def reshuffle_deck(state: GameState, rng: Optional[random.Random] = None) -> bool:
    """
    Move everything but the top discard back into the deck.

    Returns False when the pile has one card or fewer, which leaves the deck empty.
    """
    if len(state.discard_pile) <= 1:
        return False
    top = state.discard_pile.pop()
    state.deck = shuffle_deck(state.discard_pile, rng)
    state.discard_pile = [top]
    state.add_log('Discard pile reshuffled into the deck.')
    logger.debug(f"Reshuffled {len(state.deck)} cards into the deck")
    return True


def draw_from_deck(state: GameState, rng: Optional[random.Random] = None) -> Optional[Card]:
    """Pop the deck tail, reshuffling the discard pile first if the deck is empty."""
    if not state.deck:
        reshuffle_deck(state, rng)
    if not state.deck:
        return None
    return state.deck.pop()


def draw_from_discard(state: GameState) -> Optional[Card]:
    if not state.discard_pile:
        return None
    return state.discard_pile.pop()


def discard_card(state: GameState, card: Card):
    state.discard_pile.append(card)


def deal(state: GameState, hand_size: int):
    """Deal hand_size cards to each player from the deck, then start the discard pile."""
    for player in state.players:
        player.cards = [None] * hand_size
    for player in state.players:
        for slot in range(hand_size):
            player.cards[slot] = state.deck.pop()
    state.discard_pile.append(state.deck.pop())


def no_card_available(state: GameState) -> bool:
    """Deck is empty and the pile cannot be reshuffled."""
    return not state.deck and len(state.discard_pile) <= 1
