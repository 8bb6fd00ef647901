"""
Heuristic bot implementation.
"""

import logging
from typing import List, Optional, Tuple

from .base import BaseBot, BotAction
from ..cards import (
    card_value, get_power_type, is_joker, is_one_eyed_king, is_power_card,
    is_protected,
)
from ..constants import (
    POWER_PEEK_OTHER, POWER_PEEK_SELF, POWER_SPY_AND_SWAP, POWER_SWAP_CARDS,
    SPY_OPPONENT, SPY_OWN,
)
from ..models import Card, MemoryMap, Position, TableView

logger = logging.getLogger(__name__)

# Value assumed for a single unseen card when ranking candidates
UNKNOWN_RANK_VALUE = 7


class HeuristicBot(BaseBot):
    """
    Rule-cascade bot working from its own memory only.

    Strategy:
    - Take the discard top when it is a Joker, or low and a known worse card exists
    - Always keep Jokers and one-eyed Kings, swap low cards opportunistically
    - Use powers when they can reveal something new
    - Match only cards it remembers, never Jokers or red Kings
    - Call Cabo once it is fairly sure of holding the lowest hand
    """

    def should_take_discard(self, memory: MemoryMap, view: TableView) -> bool:
        top = view.top_discard
        if top is None:
            return False
        if is_joker(top):
            return True

        value = card_value(top)
        if value > self.rules.discard_take_threshold and not is_one_eyed_king(top):
            return False

        for c in self.own_slots(view):
            known = memory.get(self.own_position(c))
            if known is not None and card_value(known) > value:
                return True
        return False

    def find_discard_swap_target(self, memory: MemoryMap, view: TableView, card: Card) -> Optional[int]:
        """Slot for a card taken from the discard pile: worst known worse card, else a random unknown."""
        value = card_value(card)
        worst_idx, worst_val = -1, -1
        for c in self.own_slots(view):
            known = memory.get(self.own_position(c))
            if known is None or is_protected(known):
                continue
            val = card_value(known)
            if val > value and val > worst_val:
                worst_idx, worst_val = c, val
        if worst_idx >= 0:
            return worst_idx

        unknowns = self.unknown_own_slots(memory, view)
        if unknowns:
            return self.pick(unknowns)
        return None

    def decide_action(self, memory: MemoryMap, view: TableView, drawn: Card,
                      from_deck: bool) -> BotAction:
        drawn_value = card_value(drawn)
        worst_idx, worst_val = self.worst_known_own(memory, view)
        unknowns = self.unknown_own_slots(memory, view)

        # Joker: always keep
        if is_joker(drawn):
            if worst_idx >= 0 and worst_val > -1:
                return BotAction.swap(worst_idx)
            if unknowns:
                return BotAction.swap(self.pick(unknowns))
            slots = self.own_slots(view)
            if slots:
                return BotAction.swap(slots[0])

        # One-eyed King: always keep
        if is_one_eyed_king(drawn):
            if worst_idx >= 0 and worst_val > 0:
                return BotAction.swap(worst_idx)
            if unknowns:
                return BotAction.swap(self.pick(unknowns))

        # Low cards: swap if anything known is worse, else a coin flip on an unknown
        if drawn_value <= 4:
            if worst_idx >= 0 and worst_val > drawn_value:
                return BotAction.swap(worst_idx)
            if unknowns and self.rng.random() < 0.5:
                return BotAction.swap(self.pick(unknowns))

        # Medium cards: only against a clearly worse known card
        if drawn_value <= 6 and worst_idx >= 0 and worst_val > drawn_value + 2:
            return BotAction.swap(worst_idx)

        if from_deck and is_power_card(drawn) and self._wants_power(memory, view, drawn, unknowns, worst_val):
            return BotAction.power()

        # High cards: discard unless a much worse card is known
        if worst_idx >= 0 and worst_val > drawn_value + 3:
            return BotAction.swap(worst_idx)

        return BotAction.discard()

    def _wants_power(self, memory: MemoryMap, view: TableView, drawn: Card,
                     unknowns: List[int], worst_val: int) -> bool:
        power = get_power_type(drawn)
        if power == POWER_PEEK_SELF:
            return bool(unknowns)
        if power == POWER_PEEK_OTHER:
            return any(pos not in memory for pos in view.opponent_positions(self.player_index))
        if power == POWER_SWAP_CARDS:
            return self.rng.random() < 0.4
        if power == POWER_SPY_AND_SWAP:
            if unknowns or worst_val >= 7:
                return True
            return self.rng.random() < 0.3
        return False

    def find_match_targets(self, memory: MemoryMap, view: TableView,
                           top: Card) -> List[Position]:
        # Removing a Joker or red King never lowers a score
        if is_protected(top):
            return []
        targets = []
        for p in range(view.num_players):
            for c in view.occupied_indices(p):
                known = memory.get(Position(p, c))
                if known is not None and known.rank == top.rank:
                    targets.append(Position(p, c))
        return targets

    def choose_give_slot(self, memory: MemoryMap, view: TableView) -> Optional[int]:
        """Own card to hand over after matching an opponent: the worst one, never a protected card."""
        slots = self.own_slots(view)
        if not slots:
            return None
        worst_idx, worst_val = slots[0], float('-inf')
        for c in slots:
            known = memory.get(self.own_position(c))
            if is_protected(known):
                continue
            val = card_value(known) if known is not None else UNKNOWN_RANK_VALUE
            if val > worst_val:
                worst_idx, worst_val = c, val
        return worst_idx

    def choose_peek_self(self, memory: MemoryMap, view: TableView) -> Optional[int]:
        unknowns = self.unknown_own_slots(memory, view)
        return self.pick(unknowns) if unknowns else None

    def choose_peek_other(self, memory: MemoryMap, view: TableView) -> Optional[Position]:
        targets = [pos for pos in view.opponent_positions(self.player_index) if pos not in memory]
        return self.pick(targets) if targets else None

    def choose_blind_swap(self, memory: MemoryMap, view: TableView) -> Optional[Tuple[Position, Position]]:
        """Trade a known high own card for a known lower opponent card, if it saves at least 2."""
        best, best_benefit = None, 0
        for c in self.own_slots(view):
            own_pos = self.own_position(c)
            own_known = memory.get(own_pos)
            if own_known is None or is_protected(own_known):
                continue
            own_val = card_value(own_known)
            for opp_pos in view.opponent_positions(self.player_index):
                other = memory.get(opp_pos)
                if other is None:
                    continue
                benefit = own_val - card_value(other)
                if benefit > best_benefit:
                    best, best_benefit = (own_pos, opp_pos), benefit
        if best is not None and best_benefit >= 2:
            return best
        return None

    def choose_spy_targets(self, memory: MemoryMap, view: TableView) -> Optional[Tuple[Position, Position]]:
        """
        Own card: an unknown one, else the highest known unprotected.
        Opponent card: an unknown one, else the lowest known.
        """
        own_slots = self.own_slots(view)
        opp_positions = view.opponent_positions(self.player_index)
        if not own_slots or not opp_positions:
            return None

        own_unknowns = self.unknown_own_slots(memory, view)
        if own_unknowns:
            own_idx = self.pick(own_unknowns)
        else:
            own_idx, best_val = own_slots[0], float('-inf')
            for c in own_slots:
                known = memory.get(self.own_position(c))
                if is_protected(known):
                    continue
                val = card_value(known) if known is not None else 0
                if val > best_val:
                    own_idx, best_val = c, val

        opp_unknowns = [pos for pos in opp_positions if pos not in memory]
        if opp_unknowns:
            opp_target = self.pick(opp_unknowns)
        else:
            opp_target, best_val = opp_positions[0], float('inf')
            for pos in opp_positions:
                known = memory.get(pos)
                val = card_value(known) if known is not None else UNKNOWN_RANK_VALUE
                if val < best_val:
                    opp_target, best_val = pos, val

        return self.own_position(own_idx), opp_target

    def choose_spy_peek(self, memory: MemoryMap, own: Position, opponent: Position) -> str:
        """Peek at whichever card is unknown; the opponent's when that does not decide it."""
        if own not in memory and opponent in memory:
            return SPY_OWN
        return SPY_OPPONENT

    def should_spy_swap(self, memory: MemoryMap, own: Position, opponent: Position) -> bool:
        own_known = memory.get(own)
        opp_known = memory.get(opponent)
        if is_protected(own_known):
            return False
        own_val = card_value(own_known) if own_known is not None else UNKNOWN_RANK_VALUE
        opp_val = card_value(opp_known) if opp_known is not None else UNKNOWN_RANK_VALUE
        return opp_val < own_val - 1

    def should_call_cabo(self, memory: MemoryMap, view: TableView) -> bool:
        mine = self.estimate_hand(self.player_index, memory, view)
        if mine.unknown_count > self.rules.cabo_max_unknown:
            return False

        lowest_opponent = min(
            (self.estimate_hand(p, memory, view).total
             for p in range(view.num_players) if p != self.player_index),
            default=float('inf'),
        )

        margin = self.rng.random() * self.rules.cabo_slack
        believes_lowest = mine.total <= lowest_opponent + margin

        ceiling = self.rules.cabo_ceiling_min + self.rng.random() * self.rules.cabo_ceiling_spread
        logger.debug(
            f"Player {self.player_index} cabo check: est={mine.total} "
            f"lowest_opp={lowest_opponent} margin={margin:.2f} ceiling={ceiling:.2f}"
        )
        return believes_lowest and mine.total <= ceiling
