"""
State serialization and sanitization utilities.
"""

from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .cards import card_name, card_value, get_power_description
from .constants import (
    HUMAN_INDEX, PHASE_GAME_OVER, PHASE_ROUND_REVEAL, SOURCE_DISCARD,
)
from .models import Card, GameState, Position, ScoreEntry

if TYPE_CHECKING:
    from .engine import GameSession

POSITION_NAMES = ['top-left', 'top-right', 'bottom-left', 'bottom-right']


def position_label(card_count: int, idx: int) -> str:
    """Human-readable slot name: corners for a 4-card layout, numbers otherwise."""
    if card_count == 4 and idx < len(POSITION_NAMES):
        return POSITION_NAMES[idx]
    return f"position {idx + 1}"


def card_pos_desc(state: GameState, pos: Position) -> str:
    """e.g. "your top-left card" or "Coco's bottom-right card" from the human's point of view."""
    player = state.players[pos.player]
    label = position_label(len(player.cards), pos.index)
    owner = 'your' if player.is_human else f"{player.name}'s"
    return f"{owner} {label} card"


def own_pos_desc(state: GameState, pos: Position) -> str:
    """e.g. "their top-left card", for a player describing its own slot."""
    label = position_label(len(state.players[pos.player].cards), pos.index)
    return f"their {label} card"


def serialize_card(card: Optional[Card]) -> Optional[Dict[str, Any]]:
    if card is None:
        return None
    return {
        "id": card.id,
        "rank": card.rank,
        "suit": card.suit,
        "name": card_name(card),
        "value": card_value(card),
    }


def serialize_scores(scores: List[ScoreEntry]) -> List[Dict[str, Any]]:
    return [
        {
            "player_index": s.player_index,
            "name": s.name,
            "score": s.score,
            "cabo_bonus": s.cabo_bonus,
            "cards": [serialize_card(c) for c in s.cards],
        }
        for s in scores
    ]


def sanitize_state(session: "GameSession", viewer: int = HUMAN_INDEX) -> Dict[str, Any]:
    """
    Sanitize session state for a renderer.

    Args:
        session: Session to snapshot
        viewer: Player index whose view is produced

    Returns:
        JSON-safe dict; the deck's contents and cards the viewer cannot see are omitted
    """
    state = session.state
    match = session.match
    reveal_all = state.phase in (PHASE_ROUND_REVEAL, PHASE_GAME_OVER)
    memory = session.memory.of(viewer) if viewer < session.memory.num_observers else {}
    show_memory = session.rules.memory_aids

    players = []
    for p_idx, player in enumerate(state.players):
        slots = []
        for c_idx, card in enumerate(player.cards):
            if card is None:
                slots.append(None)
                continue
            pos = Position(p_idx, c_idx)
            face_up = reveal_all or (viewer == HUMAN_INDEX and state.peek_reveal == pos)
            remembered = memory.get(pos) if show_memory else None
            slots.append({
                "face_up": face_up,
                "card": serialize_card(card) if face_up else None,
                "remembered": serialize_card(remembered),
                "highlight": pos in state.ai_highlights,
            })
        players.append({
            "index": p_idx,
            "name": player.name,
            "is_human": player.is_human,
            "card_count": player.card_count(),
            "slots": slots,
        })

    drawn_visible = state.drawn_card is not None and (
        state.drawn_from == SOURCE_DISCARD or state.current_player_index == viewer
    )

    sanitized = {
        "phase": state.phase,
        "message": state.message,
        "log": list(state.log),
        "current_player": state.current_player_index,
        "drawn_card": serialize_card(state.drawn_card) if drawn_visible else None,
        "drawn_from": state.drawn_from,
        "drawn_power": get_power_description(state.drawn_card) if drawn_visible else "",
        "top_discard": serialize_card(state.top_discard()),
        "deck_size": len(state.deck),
        "discard_size": len(state.discard_pile),
        "cabo_caller": state.cabo_caller_index,
        "turns_until_end": state.turns_until_end,
        "players": players,
        "scores": serialize_scores(state.scores) if reveal_all else [],
        "match": None,
    }

    if match is not None:
        sanitized["match"] = {
            "current_round": match.current_round,
            "total_rounds": match.total_rounds,
            "player_names": list(match.player_names),
            "match_totals": list(match.match_totals),
            "is_match_over": match.is_match_over,
            "winner": match.match_winner() if match.is_match_over and reveal_all else None,
        }

    return sanitized
