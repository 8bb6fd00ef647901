"""Main game engine: the Cabo session controller and its turn state machine"""

import asyncio
import logging
import random
from typing import Callable, Dict, List, Optional, Tuple

from pydantic import ValidationError

from .bots.heuristic import HeuristicBot
from .cards import card_name, get_power_type, is_power_card
from .constants import (
    AI_NAMES, HUMAN_INDEX, HUMAN_NAME, MATCHABLE_PHASES,
    PHASE_AI_MATCH_PAUSE, PHASE_AI_THINKING, PHASE_BLACK_KING_PEEK_CHOICE,
    PHASE_BLACK_KING_PEEK_SHOW, PHASE_BLACK_KING_SELECT,
    PHASE_BLACK_KING_SWAP_DECISION, PHASE_DRAW_DECISION, PHASE_GAME_OVER,
    PHASE_MATCH_GIVE, PHASE_MATCH_MODE, PHASE_PEEK, PHASE_PEEK_OTHER,
    PHASE_PEEK_SELF, PHASE_PEEK_SHOW, PHASE_ROUND_REVEAL, PHASE_SWAP_CARDS_1,
    PHASE_SWAP_CARDS_2, PHASE_SWAP_SELECT, PHASE_TURN_END, PHASE_TURN_START,
    POWER_PEEK_OTHER, POWER_PEEK_SELF, POWER_SPY_AND_SWAP, POWER_SWAP_CARDS,
    SOURCE_DECK, SOURCE_DISCARD, SPY_OPPONENT, SPY_OWN,
)
from .effects import apply_blind_swap, apply_hand_swap, apply_peek, apply_spy_swap
from .errors import ACTION_NOT_ALLOWED, INVALID_CONFIG, NO_MATCH, GameError, raise_error
from .matching import (
    MATCH_NONE, MATCH_OPPONENT, MATCH_SELF, attempt_match, give_card,
)
from .memory import MemoryBank
from .models import GameState, MatchState, Player, Position, TableView, build_table_view
from .rules import RuleConfig, default_rules
from .scoring import calculate_scores, record_round
from .shuffle import (
    create_deck, deal, discard_card, draw_from_deck, draw_from_discard,
    no_card_available, shuffle_deck,
)

logger = logging.getLogger(__name__)

Result = Tuple[bool, str]

NOT_NOW = "Not allowed in this phase"

SKIPPABLE_PHASES = (
    PHASE_PEEK_SELF,
    PHASE_PEEK_OTHER,
    PHASE_SWAP_CARDS_1,
    PHASE_SWAP_CARDS_2,
    PHASE_BLACK_KING_SELECT,
    PHASE_BLACK_KING_PEEK_CHOICE,
)


class GameSession:
    """
    One human against 1-3 computer players.

    Owns the round state, the match state and every observer's memory. Human
    input arrives through the action methods below, each valid only in certain
    phases (anything else is a no-op returning (False, reason)). Computer turns
    run as asyncio tasks that suspend at each public change so the human can
    try a match before the turn continues.

    Actions that start a computer turn or a timed reveal need a running event
    loop. Called without one they raise GameError(ACTION_NOT_ALLOWED) and leave
    the session unchanged.
    """

    def __init__(self, rules: RuleConfig = default_rules,
                 render: Optional[Callable[['GameSession'], None]] = None):
        self.rules = rules
        self.rng = random.Random(rules.seed)
        self.render_callback = render
        self.state = GameState(log_limit=rules.log_limit)
        self.match: Optional[MatchState] = None
        self.memory = MemoryBank(0)
        self.bots: Dict[int, HeuristicBot] = {}
        self._ai_task: Optional[asyncio.Task] = None
        self._pause: Optional[asyncio.Future] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self._idle = asyncio.Event()

    # ---- Rendering and bookkeeping ----

    def render(self):
        if self.render_callback is not None:
            self.render_callback(self)

    def log(self, msg: str):
        self.state.add_log(msg)

    def dev_log(self, msg: str):
        logger.debug(msg)
        if self.rules.dev_mode:
            self.state.add_log('[DEV] ' + msg)

    def view(self) -> TableView:
        return build_table_view(self.state)

    def player_name(self, p_idx: int) -> str:
        return self.state.players[p_idx].name

    # ---- Match lifecycle ----

    def start_match(self, num_players: Optional[int] = None,
                    total_rounds: Optional[int] = None) -> MatchState:
        """Start a new match, replacing any previous one."""
        overrides = {}
        if num_players is not None:
            overrides['num_players'] = num_players
        if total_rounds is not None:
            overrides['total_rounds'] = total_rounds
        if overrides:
            try:
                self.rules = RuleConfig(**{**self.rules.model_dump(), **overrides})
            except ValidationError as e:
                raise GameError(INVALID_CONFIG, str(e)) from e

        n = self.rules.num_players
        self.match = MatchState(
            num_players=n,
            total_rounds=self.rules.total_rounds,
            current_round=0,
            player_names=[HUMAN_NAME] + AI_NAMES[:n - 1],
            match_totals=[0] * n,
            round_history=[],
        )
        logger.info(f"Match started: {n} players, {self.rules.total_rounds} round(s)")
        self.start_next_round()
        return self.match

    def start_next_round(self):
        if self.match is None:
            raise_error(NO_MATCH, "No match in progress")
        self.match.current_round += 1
        self.init_game()
        self.render()

    def init_game(self):
        """Fresh round: new deck, deal, and everyone memorises their bottom cards."""
        self.cancel_pending()
        n = self.match.num_players if self.match else self.rules.num_players
        names = self.match.player_names if self.match else [HUMAN_NAME] + AI_NAMES[:n - 1]

        state = GameState(num_players=n, log_limit=self.rules.log_limit)
        state.players = [Player(name=names[i], is_human=(i == HUMAN_INDEX)) for i in range(n)]
        state.deck = shuffle_deck(create_deck(), self.rng)
        deal(state, self.rules.hand_size)
        self.state = state

        self.memory = MemoryBank(n)
        self.bots = {i: HeuristicBot(i, self.rules, self.rng) for i in range(n) if i != HUMAN_INDEX}

        for p_idx, player in enumerate(state.players):
            for slot in self.rules.initial_peek_slots:
                card = player.cards[slot]
                if card is not None:
                    self.memory.remember(p_idx, Position(p_idx, slot), card)

        state.phase = PHASE_PEEK
        state.message = 'Memorize your bottom two cards, then click Ready.'
        self.log(f"Game started with {n} players.")
        self.log('Peek at your bottom two cards!')
        logger.info(f"Round {self.match.current_round if self.match else 1} dealt")

    def new_game(self):
        """Throw away the whole match."""
        self.cancel_pending()
        self.state = GameState(log_limit=self.rules.log_limit)
        self.match = None
        self.memory = MemoryBank(0)
        self.bots = {}
        self._idle.set()
        self.render()

    def ready(self) -> Result:
        if self.state.phase != PHASE_PEEK:
            return False, NOT_NOW
        self.state.current_player_index = HUMAN_INDEX
        self.state.phase = PHASE_TURN_START
        self.state.message = 'Your turn! Draw from the deck or discard pile.'
        self.log('You memorized your bottom cards. Game begins!')
        self._idle.set()
        self.render()
        return True, "Ready"

    # ---- Drawing ----

    def on_deck_click(self) -> Result:
        if self.state.phase != PHASE_TURN_START:
            return False, NOT_NOW
        card = draw_from_deck(self.state, self.rng)
        if card is None:
            self.state.message = 'Deck is empty!'
            self.render()
            return False, "Deck is empty"
        self.state.drawn_card = card
        self.state.drawn_from = SOURCE_DECK
        self.state.phase = PHASE_DRAW_DECISION
        self.state.message = f"You drew {card_name(card)}. What will you do?"
        self.log('You drew a card from the deck.')
        self.render()
        return True, "Drew from deck"

    def on_discard_click(self) -> Result:
        if self.state.phase != PHASE_TURN_START:
            return False, NOT_NOW
        card = draw_from_discard(self.state)
        if card is None:
            return False, "Discard pile is empty"
        self.state.drawn_card = card
        self.state.drawn_from = SOURCE_DISCARD
        self.state.phase = PHASE_DRAW_DECISION
        self.state.message = f"You took {card_name(card)} from the discard pile. What will you do?"
        self.log(f"You took {card_name(card)} from the discard pile.")
        self.render()
        return True, "Took discard"

    # ---- Acting on the drawn card ----

    def choose_swap(self) -> Result:
        if self.state.phase != PHASE_DRAW_DECISION:
            return False, NOT_NOW
        self.state.phase = PHASE_SWAP_SELECT
        self.state.message = f"Click one of your cards to swap with {card_name(self.state.drawn_card)}."
        self.render()
        return True, "Choose a card"

    def cancel_swap(self) -> Result:
        if self.state.phase != PHASE_SWAP_SELECT:
            return False, NOT_NOW
        self._return_to_draw_decision()
        return True, "Cancelled"

    def discard_drawn(self) -> Result:
        if self.state.phase != PHASE_DRAW_DECISION:
            return False, NOT_NOW
        card = self.state.drawn_card
        discard_card(self.state, card)
        self.state.drawn_card = None
        self.log(f"You discarded {card_name(card)}.")
        self.finish_human_action('Discarded.')
        return True, "Discarded"

    def use_power(self) -> Result:
        state = self.state
        if state.phase != PHASE_DRAW_DECISION:
            return False, NOT_NOW
        card = state.drawn_card
        if state.drawn_from != SOURCE_DECK or not is_power_card(card):
            return False, "No power to use"

        power = get_power_type(card)
        discard_card(state, card)
        state.drawn_card = None
        self.log(f"You used {card_name(card)}'s power.")

        if power == POWER_PEEK_SELF:
            state.phase = PHASE_PEEK_SELF
            state.message = 'Choose one of your cards to peek at.'
        elif power == POWER_PEEK_OTHER:
            state.phase = PHASE_PEEK_OTHER
            state.message = "Choose an opponent's card to peek at."
        elif power == POWER_SWAP_CARDS:
            state.phase = PHASE_SWAP_CARDS_1
            state.message = 'Choose the first card to swap (any card on the table).'
        elif power == POWER_SPY_AND_SWAP:
            state.spy_own_selection = None
            state.spy_opponent_selection = None
            state.phase = PHASE_BLACK_KING_SELECT
            state.message = "Select one of your cards AND one of an opponent's cards."
        self.render()
        return True, power

    # ---- Card clicks ----

    def on_card_click(self, p_idx: int, c_idx: int) -> Result:
        """Dispatch a click on a table slot according to the current phase."""
        state = self.state
        pos = Position(p_idx, c_idx)
        if state.card_at(pos) is None:
            return False, "Empty slot"

        phase = state.phase
        if phase == PHASE_SWAP_SELECT:
            if p_idx != HUMAN_INDEX:
                return False, "Choose one of your own cards"
            return self._perform_swap(c_idx)

        if phase == PHASE_MATCH_MODE:
            return self._attempt_match(pos)

        if phase == PHASE_AI_MATCH_PAUSE:
            state.match_previous_phase = PHASE_AI_MATCH_PAUSE
            state.phase = PHASE_MATCH_MODE
            return self._attempt_match(pos)

        if phase == PHASE_MATCH_GIVE:
            if p_idx != HUMAN_INDEX:
                return False, "Choose one of your own cards"
            return self._perform_give(c_idx)

        if phase == PHASE_PEEK_SELF:
            if p_idx != HUMAN_INDEX:
                return False, "Choose one of your own cards"
            return self._perform_peek(pos)

        if phase == PHASE_PEEK_OTHER:
            if p_idx == HUMAN_INDEX:
                return False, "Choose an opponent's card"
            return self._perform_peek(pos)

        if phase == PHASE_BLACK_KING_SELECT:
            return self._toggle_spy_selection(pos)

        if phase == PHASE_SWAP_CARDS_1:
            state.power_swap_first = pos
            state.phase = PHASE_SWAP_CARDS_2
            state.message = 'Now choose the second card to swap.'
            self.render()
            return True, "First card chosen"

        if phase == PHASE_SWAP_CARDS_2:
            if pos == state.power_swap_first:
                return False, "Choose a different card"
            return self._perform_power_swap(state.power_swap_first, pos)

        return False, NOT_NOW

    def _perform_swap(self, c_idx: int) -> Result:
        state = self.state
        drawn = state.drawn_card
        old = apply_hand_swap(state, self.memory, HUMAN_INDEX, c_idx, drawn, state.drawn_from)
        if old is None:
            return False, "Empty slot"
        self.log(f"You swapped {card_name(drawn)} into your hand, discarding {card_name(old)}.")
        state.drawn_card = None
        self.finish_human_action('Swapped!')
        return True, "Swapped"

    # ---- Matching ----

    def enter_match_mode(self) -> Result:
        state = self.state
        top = state.top_discard()
        if state.phase not in MATCHABLE_PHASES or top is None:
            return False, NOT_NOW
        state.match_previous_phase = state.phase
        state.phase = PHASE_MATCH_MODE
        state.message = f"Click any card to match against {card_name(top)}. Click Done when finished."
        self.render()
        return True, "Match mode"

    def _attempt_match(self, pos: Position) -> Result:
        state = self.state
        top = state.top_discard()
        result = attempt_match(state, self.memory, HUMAN_INDEX, pos, self.rng)

        if result.outcome == MATCH_NONE:
            return False, "Nothing to match"

        if result.outcome == MATCH_SELF:
            self.log(f"Matched your {card_name(result.card)}! Card discarded.")
            state.message = f"Correct! {card_name(result.card)} removed. Continue matching or click Done."
            if self.check_round_end():
                self.end_round()
                return True, "Matched"
            self.render()
            return True, "Matched"

        if result.outcome == MATCH_OPPONENT:
            owner = self.player_name(pos.player)
            self.log(f"Matched {owner}'s {card_name(result.card)}!")
            if state.players[HUMAN_INDEX].card_count() > 0:
                state.match_give_target = pos
                state.phase = PHASE_MATCH_GIVE
                state.message = f"Choose one of your cards to give to {owner} as a replacement."
            else:
                state.message = f"Correct! {owner}'s card removed. Continue matching or click Done."
                if self.check_round_end():
                    self.end_round()
                    return True, "Matched"
            self.render()
            return True, "Matched"

        # Wrong guess
        self.log(f"Wrong! {card_name(result.card)} is not a {top.rank}. Penalty card!")
        state.message = 'Wrong match! Penalty card added. Continue matching or click Done.'
        self.render()
        return False, "Wrong match"

    def _perform_give(self, c_idx: int) -> Result:
        state = self.state
        target = state.match_give_target
        if target is None:
            return False, NOT_NOW
        if not give_card(state, self.memory, HUMAN_INDEX, c_idx, target):
            return False, "Cannot give that card"
        self.log(f"You gave a card to {self.player_name(target.player)}.")
        state.match_give_target = None
        state.phase = PHASE_MATCH_MODE
        state.message = 'Card given. Continue matching or click Done.'
        if self.check_round_end():
            self.end_round()
            return True, "Given"
        self.render()
        return True, "Given"

    def done_matching(self) -> Result:
        state = self.state
        if state.phase != PHASE_MATCH_MODE:
            return False, NOT_NOW
        prev = state.match_previous_phase or PHASE_TURN_START
        state.match_previous_phase = None
        if prev == PHASE_AI_MATCH_PAUSE:
            self._resume_ai()
            return True, "Resumed"

        state.phase = prev
        if prev == PHASE_TURN_START:
            state.message = 'Your turn! Draw from the deck or discard pile.'
        elif prev == PHASE_DRAW_DECISION:
            state.message = f"You drew {card_name(state.drawn_card)}. What will you do?"
        elif prev == PHASE_TURN_END:
            state.message = 'End your turn.' if state.cabo_caller_index is not None else 'End your turn or call Cabo.'
        elif prev == PHASE_SWAP_SELECT:
            state.message = f"Click one of your cards to swap with {card_name(state.drawn_card)}."
        self.render()
        return True, "Done matching"

    def continue_ai(self) -> Result:
        if self.state.phase != PHASE_AI_MATCH_PAUSE:
            return False, NOT_NOW
        self._resume_ai()
        return True, "Resumed"

    # ---- Powers ----

    def _perform_peek(self, pos: Position) -> Result:
        state = self.state
        loop = self._reveal_loop()
        card = apply_peek(state, self.memory, HUMAN_INDEX, pos)
        if card is None:
            return False, "Empty slot"
        if pos.player == HUMAN_INDEX:
            self.log(f"You peeked at your card: {card_name(card)}.")
            state.message = f"Your card is {card_name(card)}. Memorize it!"
        else:
            owner = self.player_name(pos.player)
            self.log(f"You peeked at {owner}'s card: {card_name(card)}.")
            state.message = f"{owner}'s card is {card_name(card)}. Memorize it!"
        state.phase = PHASE_PEEK_SHOW
        state.peek_reveal = pos
        self.render()
        self._schedule(loop, self._finish_peek_show)
        return True, "Peeked"

    def _finish_peek_show(self):
        if self.state.phase != PHASE_PEEK_SHOW:
            return
        self.state.peek_reveal = None
        self.finish_human_action('Card memorized.')

    def _perform_power_swap(self, a: Position, b: Position) -> Result:
        state = self.state
        if not apply_blind_swap(state, self.memory, a, b):
            return False, "Cannot swap those cards"
        self.log(f"You swapped {self._owner_word(a)} card with {self._owner_word(b)} card.")
        state.power_swap_first = None
        self.finish_human_action('Cards swapped!')
        return True, "Swapped"

    def _owner_word(self, pos: Position) -> str:
        return 'your' if pos.player == HUMAN_INDEX else f"{self.player_name(pos.player)}'s"

    def skip_power(self) -> Result:
        state = self.state
        if state.phase not in SKIPPABLE_PHASES:
            return False, NOT_NOW
        state.power_swap_first = None
        state.spy_own_selection = None
        state.spy_opponent_selection = None
        self.log('You skipped the power.')
        self.finish_human_action('Power skipped.')
        return True, "Skipped"

    def reselect_first(self) -> Result:
        if self.state.phase != PHASE_SWAP_CARDS_2:
            return False, NOT_NOW
        self.state.phase = PHASE_SWAP_CARDS_1
        self.state.power_swap_first = None
        self.state.message = 'Choose the first card to swap.'
        self.render()
        return True, "Reselect"

    def _toggle_spy_selection(self, pos: Position) -> Result:
        state = self.state
        if pos.player == HUMAN_INDEX:
            state.spy_own_selection = None if state.spy_own_selection == pos else pos
        else:
            state.spy_opponent_selection = None if state.spy_opponent_selection == pos else pos

        own_selected = state.spy_own_selection is not None
        opp_selected = state.spy_opponent_selection is not None
        if own_selected and opp_selected:
            state.message = 'Both cards selected. Click Confirm to proceed.'
        elif own_selected:
            state.message = "Now select one of an opponent's cards."
        elif opp_selected:
            state.message = 'Now select one of your own cards.'
        else:
            state.message = "Select one of your cards AND one of an opponent's cards."
        self.render()
        return True, "Selection updated"

    def confirm_spy_selection(self) -> Result:
        state = self.state
        if state.phase != PHASE_BLACK_KING_SELECT:
            return False, NOT_NOW
        if state.spy_own_selection is None or state.spy_opponent_selection is None:
            return False, "Select two cards first"
        state.phase = PHASE_BLACK_KING_PEEK_CHOICE
        state.message = 'Which card do you want to peek at?'
        self.render()
        return True, "Confirmed"

    def back_to_spy_selection(self) -> Result:
        if self.state.phase != PHASE_BLACK_KING_PEEK_CHOICE:
            return False, NOT_NOW
        self.state.phase = PHASE_BLACK_KING_SELECT
        self.state.message = 'Reselect your cards, or confirm to proceed.'
        self.render()
        return True, "Back"

    def spy_peek(self, which: str) -> Result:
        state = self.state
        if state.phase != PHASE_BLACK_KING_PEEK_CHOICE or which not in (SPY_OWN, SPY_OPPONENT):
            return False, NOT_NOW
        loop = self._reveal_loop()
        target = state.spy_own_selection if which == SPY_OWN else state.spy_opponent_selection
        card = apply_peek(state, self.memory, HUMAN_INDEX, target)
        if card is None:
            state.spy_own_selection = None
            state.spy_opponent_selection = None
            self.finish_human_action('That card slot is empty. Power wasted.')
            return False, "Empty slot"

        owner = 'Your' if target.player == HUMAN_INDEX else f"{self.player_name(target.player)}'s"
        self.log(f"You peeked at {owner.lower()} card: {card_name(card)}.")
        state.message = f"{owner} card is {card_name(card)}. Now decide: swap or keep?"
        state.spy_peeked = target
        state.peek_reveal = target
        state.phase = PHASE_BLACK_KING_PEEK_SHOW
        self.render()
        self._schedule(loop, self._finish_spy_peek_show)
        return True, "Peeked"

    def _finish_spy_peek_show(self):
        state = self.state
        if state.phase != PHASE_BLACK_KING_PEEK_SHOW:
            return
        state.peek_reveal = None
        state.phase = PHASE_BLACK_KING_SWAP_DECISION
        opp_name = self.player_name(state.spy_opponent_selection.player)
        state.message = f"Swap your card with {opp_name}'s card, or keep them?"
        self.render()

    def spy_swap_decision(self, do_swap: bool) -> Result:
        state = self.state
        if state.phase != PHASE_BLACK_KING_SWAP_DECISION:
            return False, NOT_NOW
        own, opp = state.spy_own_selection, state.spy_opponent_selection
        if do_swap and apply_spy_swap(state, self.memory, HUMAN_INDEX, own, opp, state.spy_peeked):
            self.log(f"You swapped your card with {self.player_name(opp.player)}'s card.")
            msg = 'Cards swapped!'
        else:
            self.log('You chose to keep the cards in place.')
            msg = 'Cards kept.'
        state.spy_own_selection = None
        state.spy_opponent_selection = None
        state.spy_peeked = None
        self.finish_human_action(msg)
        return True, msg

    # ---- Ending a turn ----

    def finish_human_action(self, msg: str = ''):
        state = self.state
        state.phase = PHASE_TURN_END
        if state.cabo_caller_index is not None:
            suffix = 'Match or end your turn.'
        else:
            suffix = 'End your turn or call Cabo.'
        state.message = f"{msg} {suffix}" if msg else suffix
        self.render()

    def end_turn(self) -> Result:
        if self.state.phase != PHASE_TURN_END:
            return False, NOT_NOW
        self.next_turn()
        return True, "Turn ended"

    def call_cabo(self) -> Result:
        state = self.state
        if state.phase != PHASE_TURN_END or state.cabo_caller_index is not None:
            return False, NOT_NOW
        if not self.check_round_end():
            # A computer seat plays next
            self._event_loop()
        self._set_cabo_caller(HUMAN_INDEX)
        state.message = 'You called CABO! Everyone else gets one more turn.'
        self.log('You called CABO!')
        self.render()
        self.next_turn()
        return True, "Cabo"

    def _set_cabo_caller(self, p_idx: int):
        self.state.cabo_caller_index = p_idx
        self.state.turns_until_end = self.state.num_players
        logger.info(f"{self.player_name(p_idx)} called Cabo")

    def _return_to_draw_decision(self, msg: Optional[str] = None):
        self.state.phase = PHASE_DRAW_DECISION
        self.state.message = msg or f"You drew {card_name(self.state.drawn_card)}. What will you do?"
        self.render()

    def check_round_end(self) -> bool:
        """A hand is empty, or nothing is left to draw."""
        if any(p.card_count() == 0 for p in self.state.players):
            return True
        return no_card_available(self.state)

    def next_turn(self):
        """Advance to the next player, counting down after a Cabo call."""
        state = self.state
        if state.game_over:
            return
        if self.check_round_end():
            self.end_round()
            return

        caller = state.cabo_caller_index
        turns = state.turns_until_end
        if caller is not None:
            turns -= 1
            if turns <= 0:
                state.turns_until_end = turns
                self.end_round()
                return

        nxt = (state.current_player_index + 1) % state.num_players

        # The caller sits out the countdown
        if caller is not None and nxt == caller:
            nxt = (nxt + 1) % state.num_players
            turns -= 1
            if turns <= 0:
                state.turns_until_end = turns
                self.end_round()
                return

        player = state.players[nxt]
        # Refuse before the turn moves
        loop = None if player.is_human else self._event_loop()
        state.current_player_index = nxt
        state.turns_until_end = turns
        state.clear_turn_state()
        if player.is_human:
            state.phase = PHASE_TURN_START
            state.message = 'Your turn! Draw from the deck or discard pile.'
            if state.cabo_caller_index is not None:
                state.message += f" (Cabo! {state.turns_until_end} turn(s) left)"
            self._idle.set()
            self.render()
        else:
            state.phase = PHASE_AI_THINKING
            state.ai_processing = True
            self.render()
            self._start_ai_turn(loop, nxt)

    def end_round(self):
        """Reveal everything, score the round and fold it into the match."""
        state = self.state
        if state.game_over:
            return
        state.game_over = True
        state.ai_processing = False
        state.phase = PHASE_ROUND_REVEAL
        state.peek_reveal = None
        state.ai_highlights = set()
        scores = calculate_scores(state, self.rules.cabo_bonus)

        if self.match is not None:
            record_round(self.match, scores)
            if self.match.is_multi_round:
                state.message = (f"Round {self.match.current_round} of {self.match.total_rounds} "
                                 f"complete! All cards revealed.")
                self.log(f"Round {self.match.current_round} of {self.match.total_rounds} complete!")
            else:
                state.message = 'Game Over! All cards revealed.'
                self.log('Game Over!')

        if state.cabo_caller_index is not None:
            caller = next(s for s in scores if s.player_index == state.cabo_caller_index)
            if caller.cabo_bonus < 0:
                self.log(f"{caller.name} called Cabo with the lowest score! -{self.rules.cabo_bonus} bonus.")
            elif caller.cabo_bonus > 0:
                self.log(f"{caller.name} was back-doored! +{self.rules.cabo_bonus} penalty.")
            else:
                self.log(f"{caller.name} called Cabo but tied. No bonus.")

        logger.info("Round over: " + ", ".join(f"{s.name}={s.score}" for s in scores))
        self._release_pause()
        self._idle.set()
        self.render()

    def show_scores(self) -> Result:
        if self.state.phase != PHASE_ROUND_REVEAL:
            return False, NOT_NOW
        self.state.phase = PHASE_GAME_OVER
        self.render()
        return True, "Scores"

    def next_round(self) -> Result:
        if self.state.phase != PHASE_GAME_OVER or self.match is None or self.match.is_match_over:
            return False, NOT_NOW
        self.start_next_round()
        return True, "Next round"

    # ---- Computer turns ----

    def _event_loop(self) -> asyncio.AbstractEventLoop:
        try:
            return asyncio.get_running_loop()
        except RuntimeError as e:
            raise GameError(ACTION_NOT_ALLOWED,
                            "Computer turns and timed reveals need a running event loop") from e

    def _start_ai_turn(self, loop: asyncio.AbstractEventLoop, p_idx: int):
        from .ai_turn import run_ai_turn

        self._idle.clear()
        self._ai_task = loop.create_task(run_ai_turn(self, p_idx))

    async def ai_delay(self, factor: float = 1.0):
        await asyncio.sleep(self.rules.ai_step_delay * factor)

    async def flash_highlight(self, positions: List[Position], factor: float = 1.0):
        self.state.ai_highlights = set(positions)
        self.render()
        await self.ai_delay(factor)
        self.state.ai_highlights = set()

    async def human_match_pause(self):
        """
        Let the human try a match against the new discard top.

        Waits without timeout until continue_ai() or done_matching() resumes.
        Skipped once the human has called Cabo.
        """
        state = self.state
        if state.game_over or state.cabo_caller_index == HUMAN_INDEX:
            return
        top = state.top_discard()
        if top is None:
            return
        state.phase = PHASE_AI_MATCH_PAUSE
        state.match_previous_phase = PHASE_AI_MATCH_PAUSE
        state.message = f"{card_name(top)} on discard pile. Match against it or continue."
        self._pause = asyncio.get_running_loop().create_future()
        self._idle.set()
        self.render()
        await self._pause

    def _resume_ai(self):
        self.state.phase = PHASE_AI_THINKING
        self.state.match_previous_phase = None
        self._idle.clear()
        self._release_pause()
        self.render()

    def _release_pause(self):
        pause, self._pause = self._pause, None
        if pause is not None and not pause.done():
            pause.set_result(None)

    async def wait_idle(self):
        """Wait until the session needs the human (their turn, a pause, or round end)."""
        await self._idle.wait()

    # ---- Timers ----

    def _reveal_loop(self) -> Optional[asyncio.AbstractEventLoop]:
        """The loop a timed reveal will run on, or None when reveals are instant."""
        if self.rules.peek_reveal_seconds <= 0:
            return None
        return self._event_loop()

    def _schedule(self, loop: Optional[asyncio.AbstractEventLoop], callback: Callable[[], None]):
        if loop is None:
            callback()
            return
        self._timer = loop.call_later(self.rules.peek_reveal_seconds, callback)

    def cancel_pending(self):
        """Drop any running computer turn, pause or reveal timer."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._pause is not None and not self._pause.done():
            self._pause.cancel()
        self._pause = None
        if self._ai_task is not None and not self._ai_task.done():
            self._ai_task.cancel()
        self._ai_task = None
