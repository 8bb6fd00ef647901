"""
Matching: discarding a table card of the same rank as the discard pile top.
"""

import logging
import random
from dataclasses import dataclass
from typing import Optional

from .memory import MemoryBank
from .models import Card, GameState, Position
from .shuffle import discard_card, draw_from_deck

logger = logging.getLogger(__name__)

MATCH_NONE = 'none'          # nothing to do: empty slot or empty pile
MATCH_SELF = 'self'          # own card removed
MATCH_OPPONENT = 'opponent'  # opponent card removed, a give-back is owed
MATCH_WRONG = 'wrong'        # penalty card drawn


@dataclass
class MatchResult:
    outcome: str
    card: Optional[Card] = None
    penalty: Optional[Card] = None

    @property
    def correct(self) -> bool:
        return self.outcome in (MATCH_SELF, MATCH_OPPONENT)


def attempt_match(
    state: GameState,
    memory: MemoryBank,
    matcher: int,
    pos: Position,
    rng: Optional[random.Random] = None,
) -> MatchResult:
    """
    Try to match the card at pos against the discard pile top.

    A correct match discards the card and leaves a permanent gap in its slot.
    A wrong guess appends an unseen penalty card to the matcher's hand (if the
    deck can supply one).

    Args:
        state: Current game state
        memory: Observer memories
        matcher: Player making the attempt
        pos: Slot nominated
        rng: Random source for a reshuffle

    Returns:
        MatchResult describing what happened
    """
    card = state.card_at(pos)
    top = state.top_discard()
    if card is None or top is None:
        return MatchResult(MATCH_NONE)

    if card.rank == top.rank:
        discard_card(state, card)
        state.set_card(pos, None)
        memory.clear_position(pos)
        outcome = MATCH_SELF if pos.player == matcher else MATCH_OPPONENT
        logger.debug(f"Player {matcher} matched {card.id} at {pos}")
        return MatchResult(outcome, card=card)

    penalty = draw_from_deck(state, rng)
    if penalty is not None:
        state.players[matcher].cards.append(penalty)
    logger.debug(f"Player {matcher} mismatched {card.id} against {top.id}")
    return MatchResult(MATCH_WRONG, card=card, penalty=penalty)


def give_card(
    state: GameState,
    memory: MemoryBank,
    giver: int,
    giver_slot: int,
    target: Position,
) -> bool:
    """
    Fill an opponent's emptied slot with one of the giver's cards.

    Nobody sees the replacement, so both slots are cleared for every observer.

    Returns:
        False if the giver's slot is empty or the target slot is occupied
    """
    source = Position(giver, giver_slot)
    card = state.card_at(source)
    if card is None or state.card_at(target) is not None:
        return False
    if not 0 <= target.index < len(state.players[target.player].cards):
        return False

    state.set_card(target, card)
    state.set_card(source, None)
    memory.clear_position(target)
    memory.clear_position(source)
    return True
