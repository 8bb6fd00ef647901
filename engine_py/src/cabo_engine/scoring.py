# engine_py/src/cabo_engine/scoring.py

from typing import List, Optional

from .cards import card_value
from .models import GameState, MatchState, Player, ScoreEntry


def hand_value(player: Player) -> int:
    return sum(card_value(c) for c in player.cards if c is not None)


def apply_cabo_adjustment(scores: List[ScoreEntry], caller_index: Optional[int], bonus: int = 5):
    """
    Adjusts the Cabo caller's score in place.

    The caller gets -bonus for a strictly lowest score, +bonus if any opponent
    is strictly lower, and nothing on a tie with the lowest opponent.
    """
    if caller_index is None:
        return
    caller = next((s for s in scores if s.player_index == caller_index), None)
    opponents = [s.score for s in scores if s.player_index != caller_index]
    if caller is None or not opponents:
        return

    lowest_opponent = min(opponents)
    if caller.score < lowest_opponent:
        caller.cabo_bonus = -bonus
    elif caller.score > lowest_opponent:
        caller.cabo_bonus = bonus
    caller.score += caller.cabo_bonus


def calculate_scores(state: GameState, bonus: int = 5) -> List[ScoreEntry]:
    """
    Totals every hand, applies the Cabo adjustment and sorts lowest first.

    Args:
        state: The GameState at round end.
        bonus: Size of the Cabo bonus/penalty.
    """
    scores = []
    for i, player in enumerate(state.players):
        cards = [c for c in player.cards if c is not None]
        scores.append(ScoreEntry(
            player_index=i,
            name=player.name,
            score=hand_value(player),
            cards=cards,
        ))

    apply_cabo_adjustment(scores, state.cabo_caller_index, bonus)
    scores.sort(key=lambda s: s.score)
    state.scores = scores
    return scores


def record_round(match: MatchState, scores: List[ScoreEntry]):
    """Accumulates a finished round into the match totals."""
    for s in scores:
        match.match_totals[s.player_index] += s.score
    match.round_history.append([
        ScoreEntry(s.player_index, s.name, s.score, s.cabo_bonus, list(s.cards))
        for s in scores
    ])
