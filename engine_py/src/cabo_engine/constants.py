"""Game constants and utilities"""

SUITS = ['hearts', 'diamonds', 'clubs', 'spades']
RANKS = ['A', '2', '3', '4', '5', '6', '7', '8', '9', '10', 'J', 'Q', 'K']
JOKER = 'Joker'
RED_SUITS = {'hearts', 'diamonds'}
BLACK_SUITS = {'clubs', 'spades'}
SUIT_SYMBOLS = {'hearts': '♥', 'diamonds': '♦', 'clubs': '♣', 'spades': '♠'}

# Jokers only carry a suit to tell the red one from the black one
JOKER_SUITS = ['hearts', 'spades']

HUMAN_INDEX = 0
HUMAN_NAME = 'You'
AI_NAMES = ['Coco', 'Tashi', 'Ricky Baker', 'Jeff']

# Phases
PHASE_START = 'start'
PHASE_PEEK = 'peek'
PHASE_TURN_START = 'turn_start'
PHASE_DRAW_DECISION = 'draw_decision'
PHASE_SWAP_SELECT = 'swap_select'
PHASE_TURN_END = 'turn_end'
PHASE_MATCH_MODE = 'match_mode'
PHASE_MATCH_GIVE = 'match_give'
PHASE_PEEK_SELF = 'peek_self'
PHASE_PEEK_OTHER = 'peek_other'
PHASE_PEEK_SHOW = 'peek_show'
PHASE_SWAP_CARDS_1 = 'swap_cards_1'
PHASE_SWAP_CARDS_2 = 'swap_cards_2'
PHASE_BLACK_KING_SELECT = 'black_king_select'
PHASE_BLACK_KING_PEEK_CHOICE = 'black_king_peek_choice'
PHASE_BLACK_KING_PEEK_SHOW = 'black_king_peek_show'
PHASE_BLACK_KING_SWAP_DECISION = 'black_king_swap_decision'
PHASE_AI_THINKING = 'ai_thinking'
PHASE_AI_MATCH_PAUSE = 'ai_match_pause'
PHASE_ROUND_REVEAL = 'round_reveal'
PHASE_GAME_OVER = 'game_over'

# Phases from which the human may open match mode
MATCHABLE_PHASES = (
    PHASE_TURN_START,
    PHASE_DRAW_DECISION,
    PHASE_SWAP_SELECT,
    PHASE_TURN_END,
    PHASE_AI_MATCH_PAUSE,
)

# Power types
POWER_PEEK_SELF = 'peek_self'
POWER_PEEK_OTHER = 'peek_other'
POWER_SWAP_CARDS = 'swap_cards'
POWER_SPY_AND_SWAP = 'spy_and_swap'

POWER_BY_RANK = {
    '7': POWER_PEEK_SELF,
    '8': POWER_PEEK_SELF,
    '9': POWER_PEEK_OTHER,
    '10': POWER_PEEK_OTHER,
    'J': POWER_SWAP_CARDS,
    'Q': POWER_SWAP_CARDS,
}

POWER_DESCRIPTIONS = {
    POWER_PEEK_SELF: 'Peek at one of your own cards',
    POWER_PEEK_OTHER: "Peek at an opponent's card",
    POWER_SWAP_CARDS: 'Swap any two cards on the table',
    POWER_SPY_AND_SWAP: 'Spy & Swap: peek at one, then swap or keep',
}

# Draw sources
SOURCE_DECK = 'deck'
SOURCE_DISCARD = 'discard'

# Spy & Swap peek choices
SPY_OWN = 'own'
SPY_OPPONENT = 'opponent'
