"""
Tests for computer turns, the human match window and the Cabo countdown.
"""

import asyncio

import pytest

from cabo_engine.constants import (
    PHASE_AI_MATCH_PAUSE, PHASE_AI_THINKING, PHASE_BLACK_KING_PEEK_SHOW,
    PHASE_BLACK_KING_SWAP_DECISION, PHASE_MATCH_MODE, PHASE_PEEK_SELF,
    PHASE_PEEK_SHOW, PHASE_ROUND_REVEAL, PHASE_TURN_END, PHASE_TURN_START,
)
from cabo_engine.errors import ACTION_NOT_ALLOWED, GameError
from cabo_engine.models import Position

HUMAN_HAND = [["5h", "9c", "2d", "3d"], ["Ah", "Ac", "4c", "4s"]]


async def wait_for_human(session, timeout=5):
    """Run computer turns, waving through every match window, until the human must act."""
    for _ in range(100):
        await asyncio.wait_for(session.wait_idle(), timeout)
        if session.state.phase == PHASE_AI_MATCH_PAUSE:
            session.continue_ai()
            continue
        return
    raise AssertionError("computer turn never finished")


def test_computer_turn_hands_control_back(make_session):
    async def scenario():
        session = make_session([["5h", "9c", "2d", "3d"], ["Ah", "Ac", "4c", "4s"]],
                               discard=["Kc"], deck_top=["Qc", "Qd"])
        session.ready()
        session.on_deck_click()
        session.discard_drawn()
        session.end_turn()
        assert session.state.phase == PHASE_AI_THINKING
        await wait_for_human(session)
        return session

    session = asyncio.run(scenario())
    state = session.state
    assert state.phase == PHASE_TURN_START
    assert state.current_player_index == 0
    assert not state.ai_processing
    assert state.total_cards() == 54
    assert any(line.startswith("Coco") for line in state.log)


def test_peek_then_opponent_matches_remembered_card(make_session, card):
    async def scenario():
        session = make_session([["2h", "3h", "4h", "5h"], ["10c", "10d", "7c", "Qs"]],
                               discard=["Ac"], deck_top=["7h", "6h"])
        session.ready()
        session.on_deck_click()
        session.use_power()
        session.on_card_click(0, 2)
        assert session.memory.recall(0, Position(0, 2)) == card("4h")
        assert session.state.top_discard() == card("7h")
        session.end_turn()

        # Coco remembers its 7 and matches it before drawing
        await asyncio.wait_for(session.wait_idle(), 5)
        assert session.state.phase == PHASE_AI_MATCH_PAUSE
        assert session.state.players[1].cards[2] is None
        assert session.state.top_discard() == card("7c")

        await wait_for_human(session)
        return session

    session = asyncio.run(scenario())
    state = session.state
    assert state.players[1].card_count() == 3
    assert state.players[1].cards[3] == card("6h")
    assert any("Coco matched" in line for line in state.log)
    assert state.total_cards() == 54


def test_human_matches_during_pause(make_session, card):
    async def scenario():
        session = make_session([["Qh", "9c", "2d", "3d"], ["10c", "10d", "Qc", "Jc"]],
                               discard=["Ac"], deck_top=["5s"])
        session.ready()
        session.on_deck_click()
        session.discard_drawn()
        session.end_turn()

        # Coco takes the 5 and throws away its queen
        await asyncio.wait_for(session.wait_idle(), 5)
        assert session.state.phase == PHASE_AI_MATCH_PAUSE
        assert session.state.top_discard() == card("Qc")

        assert session.on_card_click(0, 0)[0]
        assert session.state.phase == PHASE_MATCH_MODE
        assert session.done_matching()[0]

        await wait_for_human(session)
        return session

    session = asyncio.run(scenario())
    state = session.state
    assert state.phase == PHASE_TURN_START
    assert state.players[0].card_count() == 3
    assert state.players[1].cards[2] == card("5s")
    assert any("Matched your Q♥" in line for line in state.log)


def test_computer_calls_cabo_and_wins(make_session, card):
    async def scenario():
        session = make_session([["5h", "6h", "8h", "Jh"], ["Ac", "2c", "Joker", "Kh"]],
                               discard=["Qs"], deck_top=["9c", "10s", "3d"])
        for i, c in enumerate(["Ac", "2c", "Joker", "Kh"]):
            session.memory.remember(1, Position(1, i), card(c))
        session.ready()
        session.on_deck_click()
        session.discard_drawn()
        session.end_turn()
        await wait_for_human(session)

        assert session.state.cabo_caller_index == 1
        assert session.state.phase == PHASE_TURN_START
        assert "Cabo!" in session.state.message

        # The human's last turn ends the round
        session.on_deck_click()
        session.discard_drawn()
        assert not session.call_cabo()[0]
        session.end_turn()
        return session

    session = asyncio.run(scenario())
    state = session.state
    assert state.phase == PHASE_ROUND_REVEAL
    assert state.scores[0].player_index == 1
    assert state.scores[0].score == 2 - 5
    assert state.scores[0].cabo_bonus == -5
    assert session.match.match_totals[1] == -3


def test_human_cabo_gives_everyone_one_more_turn(make_session):
    async def scenario():
        session = make_session([["Ah", "2h", "3h", "Joker"], ["Qc", "Qd", "Jc", "Jd"]],
                               discard=["Kc"], deck_top=["9c"])
        session.ready()
        session.on_deck_click()
        session.discard_drawn()
        assert session.call_cabo()[0]
        assert session.state.cabo_caller_index == 0
        # The caller sits out the match windows of the final turns
        await asyncio.wait_for(session.wait_idle(), 5)
        return session

    session = asyncio.run(scenario())
    state = session.state
    assert state.phase == PHASE_ROUND_REVEAL
    human = next(s for s in state.scores if s.player_index == 0)
    assert human.score == 5 - 5
    assert human.cabo_bonus == -5
    assert state.scores[0] is human


def test_full_round_with_four_players(make_session):
    async def scenario():
        session = make_session([["5h", "9c", "2d", "3d"], ["Ah", "Ac", "4c", "4s"],
                                ["6h", "6c", "7d", "7s"], ["8h", "8c", "10d", "10s"]],
                               discard=["Kc"])
        session.ready()
        for turn in range(10):
            if session.state.game_over:
                break
            session.on_deck_click()
            session.discard_drawn()
            if not (turn >= 2 and session.call_cabo()[0]):
                session.end_turn()
            await wait_for_human(session)
            assert session.state.total_cards() == 54
        return session

    session = asyncio.run(scenario())
    assert session.state.game_over
    assert session.state.phase == PHASE_ROUND_REVEAL
    assert len(session.state.scores) == 4


def test_taken_discard_is_never_counted_twice(make_session, card):
    totals = []

    async def scenario():
        session = make_session([["Qh", "9c", "2d", "3d"], ["10c", "10d", "Qc", "Jc"]],
                               discard=["Ac"], deck_top=["5s"])
        session.render_callback = lambda s: totals.append(s.state.total_cards())
        session.ready()
        session.on_deck_click()
        session.discard_drawn()
        session.end_turn()
        await asyncio.wait_for(session.wait_idle(), 5)
        return session

    session = asyncio.run(scenario())
    assert session.state.players[1].cards[2] == card("5s")
    assert session.state.drawn_card is None
    assert totals
    assert set(totals) == {54}


def test_peek_reveal_waits_for_timer(make_session, card):
    async def scenario():
        session = make_session(HUMAN_HAND, deck_top=["7h"], peek_reveal_seconds=0.05)
        session.ready()
        session.on_deck_click()
        session.use_power()
        assert session.on_card_click(0, 0)[0]
        assert session.state.phase == PHASE_PEEK_SHOW
        assert session.state.peek_reveal == Position(0, 0)

        await asyncio.sleep(0.2)
        return session

    session = asyncio.run(scenario())
    state = session.state
    assert state.phase == PHASE_TURN_END
    assert state.peek_reveal is None
    assert session.memory.recall(0, Position(0, 0)) == card("5h")


def test_spy_reveal_waits_for_timer(make_session, card):
    async def scenario():
        session = make_session(HUMAN_HAND, deck_top=["Ks"], peek_reveal_seconds=0.05)
        session.ready()
        session.on_deck_click()
        session.use_power()
        session.on_card_click(0, 0)
        session.on_card_click(1, 1)
        session.confirm_spy_selection()
        assert session.spy_peek('opponent')[0]
        assert session.state.phase == PHASE_BLACK_KING_PEEK_SHOW
        assert session.state.peek_reveal == Position(1, 1)

        await asyncio.sleep(0.2)
        return session

    session = asyncio.run(scenario())
    state = session.state
    assert state.phase == PHASE_BLACK_KING_SWAP_DECISION
    assert state.peek_reveal is None
    assert session.memory.recall(0, Position(1, 1)) == card("Ac")


def test_timed_reveal_needs_event_loop(make_session):
    session = make_session(HUMAN_HAND, deck_top=["7h"], peek_reveal_seconds=2.5)
    session.ready()
    session.on_deck_click()
    session.use_power()

    with pytest.raises(GameError) as exc:
        session.on_card_click(0, 0)
    assert exc.value.code == ACTION_NOT_ALLOWED
    assert session.state.phase == PHASE_PEEK_SELF
    assert Position(0, 0) not in session.memory.of(0)


def test_computer_turn_needs_event_loop(make_session):
    session = make_session(HUMAN_HAND)
    session.ready()
    session.on_deck_click()
    session.discard_drawn()

    with pytest.raises(GameError) as exc:
        session.end_turn()
    assert exc.value.code == ACTION_NOT_ALLOWED
    with pytest.raises(GameError):
        session.call_cabo()

    state = session.state
    assert state.phase == PHASE_TURN_END
    assert state.current_player_index == 0
    assert state.cabo_caller_index is None
    assert not state.ai_processing

    async def scenario():
        session.end_turn()
        await wait_for_human(session)

    asyncio.run(scenario())
    assert session.state.phase == PHASE_TURN_START
