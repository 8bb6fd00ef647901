"""Game models and data structures"""

from dataclasses import dataclass, field
from typing import Dict, List, NamedTuple, Optional, Set, Tuple

from .constants import PHASE_START


@dataclass(frozen=True)
class Card:
    rank: str  # 'A', '2'..'10', 'J', 'Q', 'K' or 'Joker'
    suit: str  # hearts|diamonds|clubs|spades

    @property
    def id(self) -> str:
        return f"{self.rank}_{self.suit}"


class Position(NamedTuple):
    """A table slot: which player, which card index."""
    player: int
    index: int


@dataclass
class Player:
    name: str
    is_human: bool = False
    cards: List[Optional[Card]] = field(default_factory=list)  # fixed slots, None = gap

    def card_count(self) -> int:
        return sum(1 for c in self.cards if c is not None)

    def occupied_indices(self) -> List[int]:
        return [i for i, c in enumerate(self.cards) if c is not None]


@dataclass
class ScoreEntry:
    player_index: int
    name: str
    score: int
    cabo_bonus: int = 0
    cards: List[Card] = field(default_factory=list)


@dataclass
class GameState:
    phase: str = PHASE_START
    num_players: int = 2
    deck: List[Card] = field(default_factory=list)
    discard_pile: List[Card] = field(default_factory=list)
    players: List[Player] = field(default_factory=list)
    current_player_index: int = 0
    drawn_card: Optional[Card] = None
    drawn_from: Optional[str] = None  # deck|discard
    cabo_caller_index: Optional[int] = None
    turns_until_end: Optional[int] = None
    # In-progress power selections
    power_swap_first: Optional[Position] = None
    spy_own_selection: Optional[Position] = None
    spy_opponent_selection: Optional[Position] = None
    spy_peeked: Optional[Position] = None
    peek_reveal: Optional[Position] = None
    ai_highlights: Set[Position] = field(default_factory=set)
    # Matching
    match_previous_phase: Optional[str] = None
    match_give_target: Optional[Position] = None
    message: str = ''
    log: List[str] = field(default_factory=list)
    log_limit: int = 80
    game_over: bool = False
    scores: List[ScoreEntry] = field(default_factory=list)
    ai_processing: bool = False

    def add_log(self, msg: str):
        self.log.append(msg)
        if len(self.log) > self.log_limit:
            del self.log[:len(self.log) - self.log_limit]

    def top_discard(self) -> Optional[Card]:
        return self.discard_pile[-1] if self.discard_pile else None

    def card_at(self, pos: Position) -> Optional[Card]:
        if not 0 <= pos.player < len(self.players):
            return None
        cards = self.players[pos.player].cards
        if not 0 <= pos.index < len(cards):
            return None
        return cards[pos.index]

    def set_card(self, pos: Position, card: Optional[Card]):
        self.players[pos.player].cards[pos.index] = card

    def clear_turn_state(self):
        self.drawn_card = None
        self.drawn_from = None
        self.power_swap_first = None
        self.spy_own_selection = None
        self.spy_opponent_selection = None
        self.spy_peeked = None
        self.peek_reveal = None
        self.ai_highlights = set()
        self.match_previous_phase = None
        self.match_give_target = None

    def total_cards(self) -> int:
        """Every physical card in play: deck, pile, table and a card in hand."""
        on_table = sum(p.card_count() for p in self.players)
        in_hand = 1 if self.drawn_card is not None else 0
        return len(self.deck) + len(self.discard_pile) + on_table + in_hand


@dataclass
class MatchState:
    num_players: int = 2
    total_rounds: int = 1
    current_round: int = 0
    player_names: List[str] = field(default_factory=list)
    match_totals: List[int] = field(default_factory=list)
    round_history: List[List[ScoreEntry]] = field(default_factory=list)

    @property
    def is_multi_round(self) -> bool:
        return self.total_rounds > 1

    @property
    def is_match_over(self) -> bool:
        return self.current_round >= self.total_rounds

    def match_winner(self) -> Optional[int]:
        if not self.match_totals:
            return None
        return min(range(len(self.match_totals)), key=lambda i: self.match_totals[i])


@dataclass(frozen=True)
class TableView:
    """What every player can see: slot occupancy, the discard top and pile sizes."""
    num_players: int
    occupied: Tuple[Tuple[bool, ...], ...]
    top_discard: Optional[Card]
    deck_size: int
    cabo_caller_index: Optional[int] = None

    def occupied_indices(self, player: int) -> List[int]:
        return [i for i, filled in enumerate(self.occupied[player]) if filled]

    def opponent_positions(self, player: int) -> List[Position]:
        return [
            Position(p, c)
            for p in range(self.num_players) if p != player
            for c in self.occupied_indices(p)
        ]


def build_table_view(state: GameState) -> TableView:
    return TableView(
        num_players=state.num_players,
        occupied=tuple(tuple(c is not None for c in p.cards) for p in state.players),
        top_discard=state.top_discard(),
        deck_size=len(state.deck),
        cabo_caller_index=state.cabo_caller_index,
    )


MemoryMap = Dict[Position, Card]
