"""
Computer turn sequencing.

A computer turn runs as a coroutine on the session's event loop. It stops at
every public change of the discard pile so the human can match, and gives up
quietly as soon as the round has ended underneath it.
"""

import logging
from typing import TYPE_CHECKING

from .cards import card_name, get_power_type
from .constants import (
    POWER_PEEK_OTHER, POWER_PEEK_SELF, POWER_SPY_AND_SWAP, POWER_SWAP_CARDS,
    SOURCE_DECK, SOURCE_DISCARD, SPY_OWN,
)
from .effects import apply_blind_swap, apply_hand_swap, apply_peek, apply_spy_swap
from .matching import MATCH_OPPONENT, MATCH_WRONG, attempt_match, give_card
from .models import Position
from .serialization import card_pos_desc, own_pos_desc
from .shuffle import discard_card, draw_from_deck, draw_from_discard

if TYPE_CHECKING:
    from .engine import GameSession

logger = logging.getLogger(__name__)


async def run_ai_turn(session: "GameSession", p_idx: int):
    """Play one full turn for computer player p_idx."""
    state = session.state
    bot = session.bots[p_idx]
    name = state.players[p_idx].name
    logger.debug(f"{name} starts a turn")

    await session.ai_delay()
    if state.game_over:
        return

    # Match before drawing
    if await ai_perform_match(session, p_idx):
        await session.human_match_pause()
        if state.game_over:
            return

    view = session.view()
    memory = session.memory.of(p_idx)

    if bot.should_take_discard(memory, view):
        drawn = draw_from_discard(state)
        drawn_from = SOURCE_DISCARD
    else:
        drawn = draw_from_deck(state, session.rng)
        drawn_from = SOURCE_DECK

    if drawn is None:
        session.log(f"{name} cannot draw. Turn skipped.")
        state.ai_processing = False
        session.next_turn()
        return

    state.drawn_card = drawn
    state.drawn_from = drawn_from

    if drawn_from == SOURCE_DISCARD:
        session.log(f"{name} took {card_name(drawn)} from the discard pile.")
        session.render()
        await session.ai_delay()
        if state.game_over:
            return

        slot = bot.find_discard_swap_target(session.memory.of(p_idx), session.view(), drawn)
        if slot is not None:
            old = apply_hand_swap(state, session.memory, p_idx, slot, drawn, SOURCE_DISCARD)
            state.drawn_card = None
            session.dev_log(f"{name} swaps into slot {slot}")
            await session.flash_highlight([Position(p_idx, slot)])
            session.log(f"{name} swapped it into {own_pos_desc(state, Position(p_idx, slot))}, "
                        f"discarding {card_name(old)}.")
        else:
            discard_card(state, drawn)
            state.drawn_card = None
            session.log(f"{name} discarded {card_name(drawn)}.")
        session.render()
        await session.human_match_pause()
        if state.game_over:
            return
    else:
        session.log(f"{name} drew from the deck.")
        session.render()
        await session.ai_delay()
        if state.game_over:
            return

        action = bot.decide_action(session.memory.of(p_idx), session.view(), drawn, True)
        session.dev_log(f"{name} drew {card_name(drawn)} and chose {action!r}")

        if action.type == 'swap' and state.card_at(Position(p_idx, action.card_idx)) is not None:
            pos = Position(p_idx, action.card_idx)
            await session.flash_highlight([pos])
            old = apply_hand_swap(state, session.memory, p_idx, pos.index, drawn, SOURCE_DECK)
            session.log(f"{name} swapped a card into {own_pos_desc(state, pos)}, "
                        f"discarding {card_name(old)}.")
            state.drawn_card = None
        elif action.type == 'power':
            discard_card(state, drawn)
            state.drawn_card = None
            session.log(f"{name} used {card_name(drawn)}'s power.")
            await ai_use_power(session, p_idx, get_power_type(drawn))
        else:
            discard_card(state, drawn)
            state.drawn_card = None
            session.log(f"{name} discarded {card_name(drawn)}.")

        session.render()
        if state.game_over:
            return
        await session.human_match_pause()
        if state.game_over:
            return

    # Match after acting
    if await ai_perform_match(session, p_idx):
        await session.human_match_pause()
        if state.game_over:
            return

    if state.cabo_caller_index is None:
        if bot.should_call_cabo(session.memory.of(p_idx), session.view()):
            session._set_cabo_caller(p_idx)
            session.log(f"{name} called CABO!")
            session.dev_log(f"{name} believes it holds the lowest hand")

    state.ai_processing = False
    session.next_turn()


async def ai_use_power(session: "GameSession", p_idx: int, power: str):
    """Resolve a power for a computer player, entirely from its own memory."""
    state = session.state
    bot = session.bots[p_idx]
    name = state.players[p_idx].name

    if power == POWER_PEEK_SELF:
        slot = bot.choose_peek_self(session.memory.of(p_idx), session.view())
        if slot is None:
            session.log(f"{name} skipped the peek.")
            return
        pos = Position(p_idx, slot)
        await session.flash_highlight([pos])
        apply_peek(state, session.memory, p_idx, pos)
        session.log(f"{name} peeked at {own_pos_desc(state, pos)}.")

    elif power == POWER_PEEK_OTHER:
        target = bot.choose_peek_other(session.memory.of(p_idx), session.view())
        if target is None:
            session.log(f"{name} skipped the peek.")
            return
        await session.flash_highlight([target])
        apply_peek(state, session.memory, p_idx, target)
        session.log(f"{name} peeked at {card_pos_desc(state, target)}.")

    elif power == POWER_SWAP_CARDS:
        choice = bot.choose_blind_swap(session.memory.of(p_idx), session.view())
        if choice is None:
            session.log(f"{name} chose not to swap.")
            return
        a, b = choice
        await session.flash_highlight([a, b])
        if apply_blind_swap(state, session.memory, a, b):
            session.log(f"{name} swapped {own_pos_desc(state, a)} with {card_pos_desc(state, b)}.")

    elif power == POWER_SPY_AND_SWAP:
        targets = bot.choose_spy_targets(session.memory.of(p_idx), session.view())
        if targets is None:
            session.log(f"{name} skipped the spy.")
            return
        own, opponent = targets
        await session.flash_highlight([own, opponent])
        which = bot.choose_spy_peek(session.memory.of(p_idx), own, opponent)
        peeked = own if which == SPY_OWN else opponent
        if apply_peek(state, session.memory, p_idx, peeked) is None:
            session.log(f"{name} wasted the spy on an empty slot.")
            return
        desc = own_pos_desc(state, peeked) if peeked == own else card_pos_desc(state, peeked)
        session.log(f"{name} spied on {desc}.")

        if bot.should_spy_swap(session.memory.of(p_idx), own, opponent):
            apply_spy_swap(state, session.memory, p_idx, own, opponent, peeked)
            session.log(f"{name} swapped {own_pos_desc(state, own)} with {card_pos_desc(state, opponent)}.")
        else:
            session.log(f"{name} kept the cards in place.")


async def ai_perform_match(session: "GameSession", p_idx: int) -> bool:
    """
    Match every remembered card of the discard top's rank.

    Returns True when at least one attempt changed the discard pile or a hand.
    """
    state = session.state
    bot = session.bots[p_idx]
    name = state.players[p_idx].name
    top = state.top_discard()
    if top is None:
        return False

    targets = bot.find_match_targets(session.memory.of(p_idx), session.view(), top)
    acted = False
    for pos in targets:
        if state.game_over:
            break
        top = state.top_discard()
        if top is None or state.card_at(pos) is None:
            continue

        desc = card_pos_desc(state, pos) if pos.player != p_idx else own_pos_desc(state, pos)
        await session.flash_highlight([pos], 0.5)
        result = attempt_match(state, session.memory, p_idx, pos, session.rng)
        if result.correct:
            session.log(f"{name} matched {desc} ({card_name(result.card)})!")
            acted = True
            if result.outcome == MATCH_OPPONENT:
                slot = bot.choose_give_slot(session.memory.of(p_idx), session.view())
                if slot is not None and give_card(state, session.memory, p_idx, slot, pos):
                    session.log(f"{name} gave a card to {state.players[pos.player].name}.")
        elif result.outcome == MATCH_WRONG:
            session.log(f"{name} tried to match {desc} but was wrong. Penalty card!")
            acted = True

        session.render()
        if session.check_round_end():
            session.end_round()
            break

    return acted
