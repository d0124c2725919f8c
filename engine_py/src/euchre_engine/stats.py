"""
Per-player statistics.

Counters only ever grow. In-game counters live on each Player and are reset
when a match starts; at game over they become a delta that the stat sink adds
to the player's lifetime totals. Totals from two sources are merged by taking
the larger value of every counter.
"""

from dataclasses import asdict, replace
from typing import Dict, List, Optional, Sequence

from .constants import TRICKS_PER_HAND, partner_of, team_of
from .models import GameState, Player, PlayerStats, TrickPlay


def stats_from_dict(data: Optional[Dict[str, int]]) -> PlayerStats:
    """Build stats from a stored dict, ignoring unknown keys and filling missing ones with 0."""
    data = data or {}
    return PlayerStats(**{name: int(data.get(name, 0) or 0) for name in PlayerStats.counter_names()})


def add_stats(base: PlayerStats, delta: PlayerStats) -> PlayerStats:
    return PlayerStats(**{
        name: getattr(base, name) + getattr(delta, name)
        for name in PlayerStats.counter_names()
    })


def merge_player_stats(local: PlayerStats, cloud: PlayerStats) -> PlayerStats:
    """Element-wise maximum of two stat records for the same player."""
    return PlayerStats(**{
        name: max(getattr(local, name), getattr(cloud, name))
        for name in PlayerStats.counter_names()
    })


def merge_all_stats(local: Dict[str, PlayerStats], cloud: Dict[str, PlayerStats]) -> Dict[str, PlayerStats]:
    merged = dict(cloud)
    for name, stats in local.items():
        if name in merged:
            merged[name] = merge_player_stats(stats, merged[name])
        else:
            merged[name] = stats
    return merged


def record_call(player: Player, is_loner: bool) -> Player:
    stats = replace(
        player.stats,
        calls_made=player.stats.calls_made + 1,
        loners_attempted=player.stats.loners_attempted + (1 if is_loner else 0),
    )
    return replace(player, stats=stats)


def record_trick(players: Sequence[Player], trick: Sequence[TrickPlay], winner_index: int) -> List[Player]:
    """Trick counters for everyone who played in the trick."""
    played = {play.player_id for play in trick}
    updated = []
    for i, p in enumerate(players):
        if p.id not in played:
            updated.append(p)
            continue
        is_winner = i == winner_index
        on_winning_team = is_winner or i == partner_of(winner_index)
        stats = replace(
            p.stats,
            tricks_played=p.stats.tricks_played + 1,
            tricks_taken=p.stats.tricks_taken + (1 if is_winner else 0),
            tricks_won_team=p.stats.tricks_won_team + (1 if on_winning_team else 0),
        )
        updated.append(replace(p, stats=stats))
    return updated


def record_hand(state: GameState, points: Dict[str, int], t1_tricks: int, t2_tricks: int) -> List[Player]:
    """Hand-level counters once a hand is scored."""
    caller_team = team_of(state.trump_caller_index)
    caller_tricks = t1_tricks if caller_team == 1 else t2_tricks
    updated = []
    for i, p in enumerate(state.players):
        team = team_of(i)
        won = points[f"team{team}"] > 0
        is_caller = i == state.trump_caller_index
        on_calling_team = team == caller_team
        own_tricks = t1_tricks if team == 1 else t2_tricks
        their_tricks = t2_tricks if team == 1 else t1_tricks
        s = p.stats
        stats = replace(
            s,
            hands_played=s.hands_played + 1,
            hands_won=s.hands_won + (1 if won else 0),
            calls_won=s.calls_won + (1 if is_caller and won else 0),
            loners_converted=s.loners_converted + (
                1 if is_caller and state.is_loner and caller_tricks == TRICKS_PER_HAND else 0
            ),
            euchres_made=s.euchres_made + (1 if not on_calling_team and won else 0),
            euchred=s.euchred + (1 if on_calling_team and not won else 0),
            sweeps=s.sweeps + (1 if won and own_tricks == TRICKS_PER_HAND else 0),
            swept=s.swept + (1 if not won and their_tricks == TRICKS_PER_HAND else 0),
        )
        updated.append(replace(p, stats=stats))
    return updated


def game_stat_deltas(state: GameState, winning_score: int = 10) -> Dict[str, PlayerStats]:
    """
    The stats each seated player earned in a finished game, keyed by name.

    The in-game counters plus one game played and, for the winning team, one game won.
    """
    deltas: Dict[str, PlayerStats] = {}
    team1_won = state.scores['team1'] >= winning_score
    for i, p in enumerate(state.players):
        if not p.name:
            continue
        won_game = (team_of(i) == 1) == team1_won
        deltas[p.name] = replace(p.stats, games_played=1, games_won=1 if won_game else 0)
    return deltas


def stats_as_dict(stats: PlayerStats) -> Dict[str, int]:
    return asdict(stats)
