"""
Card movement and power card effects.

Each function mutates the game state in place and keeps every observer's
memory consistent with what that observer could actually see.
"""

import logging
from typing import Optional

from .constants import SOURCE_DISCARD
from .memory import MemoryBank
from .models import Card, GameState, Position
from .shuffle import discard_card

logger = logging.getLogger(__name__)


def apply_hand_swap(
    state: GameState,
    memory: MemoryBank,
    actor: int,
    slot: int,
    drawn: Card,
    drawn_from: str,
) -> Optional[Card]:
    """
    Put the drawn card into one of the actor's slots and discard the old occupant.

    Args:
        state: Current game state
        memory: Observer memories
        actor: Player placing the card
        slot: Actor's slot receiving the card
        drawn: Card placed
        drawn_from: 'deck' or 'discard'

    Returns:
        The card that went to the discard pile, or None if the slot was empty
    """
    pos = Position(actor, slot)
    old = state.card_at(pos)
    if old is None:
        return None

    state.set_card(pos, drawn)
    if drawn_from == SOURCE_DISCARD:
        # Everyone watched it leave the pile
        memory.reveal_to_all(pos, drawn)
    else:
        memory.remember(actor, pos, drawn)
        memory.clear_position(pos, memory.others(actor))

    discard_card(state, old)
    return old


def apply_peek(state: GameState, memory: MemoryBank, actor: int, pos: Position) -> Optional[Card]:
    """
    Reveal one table card to the actor only.

    Returns:
        The peeked card, or None if the slot is empty (power wasted)
    """
    card = state.card_at(pos)
    if card is None:
        return None
    memory.remember(actor, pos, card)
    return card


def apply_blind_swap(state: GameState, memory: MemoryBank, a: Position, b: Position) -> bool:
    """
    Swap any two table cards without anyone seeing them.

    Everyone saw which slots moved, so each observer's beliefs travel with the cards.

    Returns:
        False if either slot is empty or both are the same slot
    """
    if a == b:
        return False
    card_a = state.card_at(a)
    card_b = state.card_at(b)
    if card_a is None or card_b is None:
        return False

    state.set_card(a, card_b)
    state.set_card(b, card_a)
    memory.transpose(a, b)
    logger.debug(f"Blind swap {a} <-> {b}")
    return True


def apply_spy_swap(
    state: GameState,
    memory: MemoryBank,
    actor: int,
    own: Position,
    opponent: Position,
    peeked: Position,
) -> bool:
    """
    Exchange the actor's selected card with the opponent's after a spy peek.

    All other observers lose both slots. The actor keeps only the card it
    peeked at, now sitting in the other slot.

    Returns:
        False if either slot is empty
    """
    own_card = state.card_at(own)
    opp_card = state.card_at(opponent)
    if own_card is None or opp_card is None:
        return False

    seen = memory.recall(actor, peeked)

    state.set_card(own, opp_card)
    state.set_card(opponent, own_card)

    memory.clear_position(own)
    memory.clear_position(opponent)
    if seen is not None:
        moved_to = opponent if peeked == own else own
        memory.remember(actor, moved_to, seen)
    logger.debug(f"Spy swap {own} <-> {opponent} by player {actor}")
    return True
