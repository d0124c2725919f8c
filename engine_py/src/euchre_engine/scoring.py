# engine_py/src/euchre_engine/scoring.py

from typing import Dict, Tuple

from .constants import TRICKS_PER_HAND, team_of
from .models import GameState

MAKERS_POINTS = 1
MARCH_POINTS = 2
LONER_MARCH_POINTS = 4
EUCHRE_POINTS = 2


def team_key(seat: int) -> str:
    return f"team{team_of(seat)}"


def team_tricks(state: GameState) -> Tuple[int, int]:
    """Tricks taken this hand by team 1 (seats 0 & 2) and team 2 (seats 1 & 3)."""
    won = [state.tricks_won.get(p.id, 0) for p in state.players]
    return won[0] + won[2], won[1] + won[3]


def hand_points(caller_tricks: int, is_loner: bool) -> Tuple[int, int]:
    """
    Points for (calling team, defending team).

    3-4 tricks score 1, a march of 5 scores 2 (4 alone); fewer than 3 is a
    euchre worth 2 to the defenders.
    """
    if caller_tricks >= 3:
        if caller_tricks == TRICKS_PER_HAND:
            return (LONER_MARCH_POINTS if is_loner else MARCH_POINTS), 0
        return MAKERS_POINTS, 0
    return 0, EUCHRE_POINTS


def compute_hand_points(state: GameState) -> Dict[str, int]:
    t1_tricks, t2_tricks = team_tricks(state)
    caller_team = team_of(state.trump_caller_index)
    caller_tricks = t1_tricks if caller_team == 1 else t2_tricks
    caller_points, defender_points = hand_points(caller_tricks, state.is_loner)
    if caller_team == 1:
        return {'team1': caller_points, 'team2': defender_points}
    return {'team1': defender_points, 'team2': caller_points}


def hand_summary(state: GameState, points: Dict[str, int]) -> str:
    """One-line result shown in the overlay once the fifth trick is cleared."""
    t1_tricks, t2_tricks = team_tricks(state)
    team1_won = points['team1'] > points['team2']
    winner = state.team_names['team1'] if team1_won else state.team_names['team2']
    loser = state.team_names['team2'] if team1_won else state.team_names['team1']
    pts = max(points['team1'], points['team2'])
    caller_won = (team_of(state.trump_caller_index) == 1) == team1_won

    if pts == LONER_MARCH_POINTS:
        return f"{winner} swept all tricks! (+{pts})"
    if not caller_won:
        return f"{winner} EUCHRED {loser}! (+{pts})"
    return f"{winner} won the hand {max(t1_tricks, t2_tricks)} tricks to {min(t1_tricks, t2_tricks)} (+{pts})"
