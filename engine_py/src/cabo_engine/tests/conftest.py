import pytest

from cabo_engine.engine import GameSession
from cabo_engine.memory import MemoryBank
from cabo_engine.models import Card, Position
from cabo_engine.rules import create_rules
from cabo_engine.shuffle import create_deck

SUIT_LETTERS = {'h': 'hearts', 'd': 'diamonds', 'c': 'clubs', 's': 'spades'}


def parse_card(text):
    """'Qh' -> Q of hearts, 'Joker' / 'Jokers' -> the red / black joker."""
    if text == 'Joker':
        return Card('Joker', 'hearts')
    if text == 'Jokers':
        return Card('Joker', 'spades')
    return Card(text[:-1], SUIT_LETTERS[text[-1]])


def build_session(hands, discard=(), deck_top=(), **overrides):
    """
    A started match with a stacked table.

    hands: one list of card strings (or None for a gap) per player
    deck_top: cards drawn first, in order
    Everyone remembers their slots 2 and 3, as after a real deal.
    """
    hands = [[parse_card(c) if c else None for c in hand] for hand in hands]
    discard = [parse_card(c) for c in discard]
    deck_top = [parse_card(c) for c in deck_top]

    settings = {'num_players': len(hands), 'seed': 11, 'peek_reveal_seconds': 0}
    settings.update(overrides)
    rules = create_rules(**settings)
    session = GameSession(rules)
    session.start_match()

    state = session.state
    used = [c for hand in hands for c in hand if c is not None] + discard + deck_top
    rest = [c for c in create_deck() if c not in used]
    for p, hand in enumerate(hands):
        state.players[p].cards = hand
    state.discard_pile = discard
    state.deck = rest + list(reversed(deck_top))

    session.memory = MemoryBank(len(hands))
    for p, hand in enumerate(hands):
        for slot in rules.initial_peek_slots:
            if slot < len(hand) and hand[slot] is not None:
                session.memory.remember(p, Position(p, slot), hand[slot])
    return session


@pytest.fixture
def card():
    return parse_card


@pytest.fixture
def make_session():
    return build_session
