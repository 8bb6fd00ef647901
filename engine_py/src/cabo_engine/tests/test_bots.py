"""
Tests for the heuristic computer player.
"""

import random

from cabo_engine.bots import BotAction, HeuristicBot
from cabo_engine.constants import SPY_OPPONENT, SPY_OWN
from cabo_engine.models import GameState, Player, Position, build_table_view
from cabo_engine.rules import create_rules


def table(card, hands, top=None):
    state = GameState(num_players=len(hands))
    state.players = [
        Player(name=str(i), is_human=(i == 0), cards=[card(c) if c else None for c in hand])
        for i, hand in enumerate(hands)
    ]
    if top:
        state.discard_pile = [card(top)]
    state.deck = []
    return build_table_view(state)


def bot(seed=0):
    return HeuristicBot(1, create_rules(), random.Random(seed))


FOUR = ["2h", "3h", "4h", "5h"]


def test_takes_joker_from_discard(card):
    view = table(card, [FOUR, ["9c", "9d", "9h", "9s"]], top="Joker")
    assert bot().should_take_discard({}, view)


def test_takes_low_discard_only_with_known_worse_card(card):
    view = table(card, [FOUR, ["9c", "9d", "Qh", "9s"]], top="3c")
    b = bot()
    assert not b.should_take_discard({}, view)
    assert b.should_take_discard({Position(1, 2): card("Qh")}, view)


def test_ignores_high_discard(card):
    view = table(card, [FOUR, ["9c", "9d", "Qh", "9s"]], top="8c")
    assert not bot().should_take_discard({Position(1, 2): card("Qh")}, view)


def test_discard_swap_target(card):
    view = table(card, [FOUR, ["9c", "9d", "Qh", "Kh"]], top="3c")
    memory = {Position(1, 2): card("Qh"), Position(1, 3): card("Kh")}
    assert bot().find_discard_swap_target(memory, view, card("3c")) == 2


def test_joker_always_kept(card):
    view = table(card, [FOUR, ["9c", "9d", "Qh", "2s"]])
    memory = {Position(1, 2): card("Qh"), Position(1, 3): card("2s")}
    action = bot().decide_action(memory, view, card("Jokers"), True)
    assert action.type == 'swap'
    assert action.card_idx == 2


def test_low_card_replaces_known_worse(card):
    view = table(card, [FOUR, ["9c", "9d", "Jh", "2s"]])
    memory = {Position(1, 0): card("9c"), Position(1, 1): card("9d"),
              Position(1, 2): card("Jh"), Position(1, 3): card("2s")}
    action = bot().decide_action(memory, view, card("3c"), True)
    assert action.type == 'swap'
    assert action.card_idx == 2


def test_high_card_discarded_when_hand_is_known_and_low(card):
    view = table(card, [FOUR, ["Ac", "2c", "3c", "Kh"]])
    memory = {Position(1, i): card(c) for i, c in enumerate(["Ac", "2c", "3c", "Kh"])}
    action = bot().decide_action(memory, view, card("Qc"), False)
    assert action.type == 'discard'


def test_bot_action_repr():
    assert repr(BotAction.swap(2)) == "BotAction(swap, {'card_idx': 2})"
    assert BotAction.discard().card_idx is None


def test_match_targets(card):
    view = table(card, [["5h", "9c", "2d", "3d"], ["5c", "Ac", "4c", "4s"]], top="5s")
    memory = {Position(0, 0): card("5h"), Position(1, 0): card("5c"), Position(1, 3): card("4s")}
    assert bot().find_match_targets(memory, view, card("5s")) == [Position(0, 0), Position(1, 0)]


def test_never_matches_protected_top(card):
    view = table(card, [FOUR, ["Kd", "Ac", "4c", "4s"]], top="Kh")
    memory = {Position(1, 0): card("Kd")}
    assert bot().find_match_targets(memory, view, card("Kh")) == []


def test_give_slot_skips_protected(card):
    view = table(card, [FOUR, ["Joker", "9c", "Kd", "4s"]])
    memory = {Position(1, 0): card("Joker"), Position(1, 1): card("9c"),
              Position(1, 2): card("Kd")}
    assert bot().choose_give_slot(memory, view) == 1


def test_blind_swap_needs_real_gain(card):
    view = table(card, [["2h", "3h", "4h", "5h"], ["9c", "9d", "Qh", "Js"]])
    b = bot()
    memory = {Position(1, 2): card("Qh"), Position(0, 0): card("2h")}
    assert b.choose_blind_swap(memory, view) == (Position(1, 2), Position(0, 0))

    memory = {Position(1, 2): card("Qh"), Position(0, 0): card("Jh")}
    assert b.choose_blind_swap(memory, view) is None


def test_spy_peek_prefers_unknown(card):
    own, opp = Position(1, 0), Position(0, 0)
    b = bot()
    assert b.choose_spy_peek({opp: card("2h")}, own, opp) == SPY_OWN
    assert b.choose_spy_peek({}, own, opp) == SPY_OPPONENT


def test_spy_swap_decision_uses_memory_only(card):
    own, opp = Position(1, 0), Position(0, 0)
    b = bot()
    assert b.should_spy_swap({own: card("10c"), opp: card("3h")}, own, opp)
    assert not b.should_spy_swap({own: card("Joker"), opp: card("Ah")}, own, opp)
    # Unknown own card counts as 7
    assert not b.should_spy_swap({opp: card("6h")}, own, opp)
    assert b.should_spy_swap({opp: card("5h")}, own, opp)


def test_estimate_hand(card):
    view = table(card, [FOUR, ["9c", None, "Qh", "2s"]])
    est = bot().estimate_hand(1, {Position(1, 2): card("Qh")}, view)
    assert est.known_total == 12
    assert est.unknown_count == 2
    assert est.total == 12 + 2 * 6


def test_calls_cabo_with_known_low_hand(card):
    view = table(card, [FOUR, ["Ac", "2c", "Joker", "Kh"]])
    memory = {Position(1, i): card(c) for i, c in enumerate(["Ac", "2c", "Joker", "Kh"])}
    for seed in range(20):
        assert bot(seed).should_call_cabo(memory, view)


def test_no_cabo_with_too_many_unknowns(card):
    view = table(card, [FOUR, ["Ac", "2c", "Joker", "Kh"]])
    memory = {Position(1, 0): card("Ac"), Position(1, 1): card("2c")}
    assert not bot().should_call_cabo(memory, view)


def test_no_cabo_when_an_opponent_is_known_lower(card):
    view = table(card, [["Ah", "Ad", "Joker", "Jokers"], ["5c", "6c", "5s", "6s"]])
    memory = {Position(1, i): card(c) for i, c in enumerate(["5c", "6c", "5s", "6s"])}
    memory.update({Position(0, i): card(c) for i, c in enumerate(["Ah", "Ad", "Joker", "Jokers"])})
    assert not bot().should_call_cabo(memory, view)
