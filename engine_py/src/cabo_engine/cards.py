"""
Card value, identity and power lookups.
"""

from typing import Optional

from .constants import (
    BLACK_SUITS, JOKER, POWER_BY_RANK, POWER_DESCRIPTIONS, POWER_SPY_AND_SWAP,
    RED_SUITS, SUIT_SYMBOLS,
)
from .models import Card


def is_red_suit(suit: str) -> bool:
    return suit in RED_SUITS


def is_joker(card: Optional[Card]) -> bool:
    return card is not None and card.rank == JOKER


def is_red_king(card: Optional[Card]) -> bool:
    return card is not None and card.rank == 'K' and is_red_suit(card.suit)


def is_one_eyed_king(card: Optional[Card]) -> bool:
    return card is not None and card.rank == 'K' and card.suit == 'diamonds'


def is_black_king(card: Optional[Card]) -> bool:
    return card is not None and card.rank == 'K' and card.suit in BLACK_SUITS


def is_protected(card: Optional[Card]) -> bool:
    """Cards an AI never gives away, swaps out or matches: Jokers and red Kings."""
    return is_joker(card) or is_red_king(card)


def card_value(card: Optional[Card]) -> int:
    """
    Point value of a card.

    A=1, 2-10 face value, J=11, Q=12, K=13 except red Kings (0),
    Joker=-1. An empty slot counts 0.
    """
    if card is None:
        return 0
    if card.rank == JOKER:
        return -1
    if card.rank == 'A':
        return 1
    if card.rank == 'J':
        return 11
    if card.rank == 'Q':
        return 12
    if card.rank == 'K':
        return 0 if is_red_suit(card.suit) else 13
    return int(card.rank)


def get_power_type(card: Optional[Card]) -> Optional[str]:
    if card is None:
        return None
    if is_black_king(card):
        return POWER_SPY_AND_SWAP
    return POWER_BY_RANK.get(card.rank)


def is_power_card(card: Optional[Card]) -> bool:
    return get_power_type(card) is not None


def get_power_description(card: Optional[Card]) -> str:
    return POWER_DESCRIPTIONS.get(get_power_type(card), '')


def card_name(card: Optional[Card]) -> str:
    if card is None:
        return '?'
    if card.rank == JOKER:
        return 'Joker'
    return card.rank + SUIT_SYMBOLS[card.suit]
