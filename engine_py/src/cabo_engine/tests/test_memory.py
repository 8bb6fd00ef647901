"""
Tests for observer memory and how card movements update it.
"""

from cabo_engine.constants import SOURCE_DECK, SOURCE_DISCARD
from cabo_engine.effects import apply_blind_swap, apply_hand_swap, apply_peek, apply_spy_swap
from cabo_engine.matching import MATCH_OPPONENT, MATCH_WRONG, attempt_match, give_card
from cabo_engine.memory import MemoryBank
from cabo_engine.models import Position


def test_memories_are_independent(card):
    bank = MemoryBank(3)
    pos = Position(1, 0)
    bank.remember(0, pos, card("5h"))
    assert pos in bank.of(0)
    assert pos not in bank.of(1)
    assert pos not in bank.of(2)

    bank.forget(0, pos)
    assert bank.recall(0, pos) is None


def test_transpose_moves_beliefs_with_cards(card):
    bank = MemoryBank(2)
    a, b = Position(0, 0), Position(1, 2)
    bank.remember(0, a, card("Qs"))
    bank.remember(1, b, card("3d"))

    bank.transpose(a, b)
    assert bank.recall(0, b) == card("Qs")
    assert a not in bank.of(0)
    assert bank.recall(1, a) == card("3d")
    assert b not in bank.of(1)


def test_swap_from_deck_is_private(make_session, card):
    session = make_session([["5h", "9c", "2d", "3d"], ["Ah", "Ac", "4c", "4s"]])
    pos = Position(0, 1)
    session.memory.remember(1, pos, card("9c"))

    old = apply_hand_swap(session.state, session.memory, 0, 1, card("6s"), SOURCE_DECK)

    assert old == card("9c")
    assert session.state.top_discard() == card("9c")
    assert session.memory.recall(0, pos) == card("6s")
    assert pos not in session.memory.of(1)


def test_swap_from_discard_is_public(make_session, card):
    session = make_session([["5h", "9c", "2d", "3d"], ["Ah", "Ac", "4c", "4s"]])
    apply_hand_swap(session.state, session.memory, 0, 0, card("6s"), SOURCE_DISCARD)
    assert session.memory.recall(0, Position(0, 0)) == card("6s")
    assert session.memory.recall(1, Position(0, 0)) == card("6s")


def test_peek_only_teaches_the_actor(make_session, card):
    session = make_session([["5h", "9c", "2d", "3d"], ["Ah", "Ac", "4c", "4s"]])
    assert apply_peek(session.state, session.memory, 0, Position(1, 0)) == card("Ah")
    assert session.memory.recall(0, Position(1, 0)) == card("Ah")
    assert Position(1, 0) not in session.memory.of(1)


def test_blind_swap_rejects_empty_slot(make_session):
    session = make_session([["5h", None, "2d", "3d"], ["Ah", "Ac", "4c", "4s"]])
    assert not apply_blind_swap(session.state, session.memory, Position(0, 1), Position(1, 0))
    assert apply_blind_swap(session.state, session.memory, Position(0, 2), Position(1, 3))
    # Both observers knew their own card; the beliefs followed the cards
    assert session.memory.recall(0, Position(1, 3)).id == "2_diamonds"
    assert session.memory.recall(1, Position(0, 2)).id == "4_spades"


def test_spy_swap_keeps_only_peeked_card(make_session, card):
    session = make_session(
        [["5h", "9c", "2d", "3d"], ["Ah", "Ac", "4c", "4s"], ["6h", "6c", "7c", "7s"]]
    )
    own, opp = Position(0, 2), Position(1, 0)
    session.memory.remember(2, own, card("2d"))
    apply_peek(session.state, session.memory, 0, opp)

    assert apply_spy_swap(session.state, session.memory, 0, own, opp, opp)

    assert session.state.card_at(own) == card("Ah")
    assert session.state.card_at(opp) == card("2d")
    assert session.memory.recall(0, own) == card("Ah")
    assert opp not in session.memory.of(0)
    assert own not in session.memory.of(2)
    assert opp not in session.memory.of(2)


def test_give_back_is_private_to_everyone(make_session, card):
    session = make_session([["5h", "9c", "2d", "3d"], ["5c", "Ac", "4c", "4s"]], discard=["5s"])
    result = attempt_match(session.state, session.memory, 0, Position(1, 0))
    assert result.outcome == MATCH_OPPONENT
    assert result.correct

    assert give_card(session.state, session.memory, 0, 3, Position(1, 0))
    assert session.state.card_at(Position(1, 0)) == card("3d")
    assert session.state.card_at(Position(0, 3)) is None
    for observer in (0, 1):
        assert Position(1, 0) not in session.memory.of(observer)
        assert Position(0, 3) not in session.memory.of(observer)


def test_penalty_card_is_unknown(make_session):
    session = make_session([["5h", "9c", "2d", "3d"], ["5c", "Ac", "4c", "4s"]], discard=["8s"])
    result = attempt_match(session.state, session.memory, 0, Position(0, 0))
    assert result.outcome == MATCH_WRONG
    assert len(session.state.players[0].cards) == 5
    penalty_pos = Position(0, 4)
    assert session.state.card_at(penalty_pos) == result.penalty
    assert penalty_pos not in session.memory.of(0)
    assert penalty_pos not in session.memory.of(1)
