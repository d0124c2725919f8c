from euchre_engine.actions import LoadGlobalStatsAction
from euchre_engine.engine import apply_action, create_game
from euchre_engine.models import Player, PlayerStats, TrickPlay
from euchre_engine.stats import (
    add_stats, merge_all_stats, merge_player_stats, record_call, record_trick,
    stats_as_dict, stats_from_dict,
)
from euchre_engine.tests.tables import cards


def test_stats_from_dict_is_tolerant():
    stats = stats_from_dict({'games_won': 3, 'tricks_taken': '7', 'favourite_suit': 'hearts'})
    assert stats.games_won == 3
    assert stats.tricks_taken == 7
    assert stats.calls_made == 0
    assert stats_from_dict(None) == PlayerStats()


def test_add_stats():
    total = add_stats(PlayerStats(games_played=2, sweeps=1), PlayerStats(games_played=1, euchred=1))
    assert total.games_played == 3
    assert total.sweeps == 1
    assert total.euchred == 1


def test_merge_takes_the_larger_counter():
    local = PlayerStats(games_won=5, tricks_taken=10)
    cloud = PlayerStats(games_won=3, tricks_taken=12, calls_made=4)
    merged = merge_player_stats(local, cloud)
    assert merged == PlayerStats(games_won=5, tricks_taken=12, calls_made=4)


def test_merge_all_stats_keeps_everyone():
    local = {'Alice': PlayerStats(games_won=2), 'Josh': PlayerStats(sweeps=1)}
    cloud = {'Alice': PlayerStats(games_won=1, games_played=6), 'Jake': PlayerStats(calls_made=2)}
    merged = merge_all_stats(local, cloud)
    assert set(merged) == {'Alice', 'Josh', 'Jake'}
    assert merged['Alice'] == PlayerStats(games_won=2, games_played=6)


def test_record_call_counts_loners():
    player = Player(id='player-0', name='Alice')
    player = record_call(player, is_loner=False)
    player = record_call(player, is_loner=True)
    assert player.stats.calls_made == 2
    assert player.stats.loners_attempted == 1


def test_record_trick_skips_players_not_in_trick():
    """Seat 2 sat out a lone hand and gets no trick counters."""
    players = [Player(id=f"player-{i}", name=f"P{i}") for i in range(4)]
    trick = [
        TrickPlay(player_id='player-0', card=cards('A-hearts')[0]),
        TrickPlay(player_id='player-1', card=cards('9-hearts')[0]),
        TrickPlay(player_id='player-3', card=cards('K-hearts')[0]),
    ]
    updated = record_trick(players, trick, winner_index=0)
    assert updated[0].stats.tricks_taken == 1
    assert updated[0].stats.tricks_won_team == 1
    assert updated[1].stats.tricks_played == 1
    assert updated[1].stats.tricks_won_team == 0
    assert updated[2].stats == PlayerStats()
    assert updated[3].stats.tricks_taken == 0
    # Inputs are left alone
    assert players[0].stats == PlayerStats()


def test_load_global_stats_merges_into_state():
    state = create_game()
    state.global_stats = {'Alice': PlayerStats(games_won=4)}
    action = LoadGlobalStatsAction(stats={
        'Alice': stats_as_dict(PlayerStats(games_won=2, games_played=9)),
        'Josh': {'sweeps': 3},
    })
    new_state = apply_action(state, action).state
    assert new_state.global_stats['Alice'] == PlayerStats(games_won=4, games_played=9)
    assert new_state.global_stats['Josh'].sweeps == 3
    assert state.global_stats == {'Alice': PlayerStats(games_won=4)}
