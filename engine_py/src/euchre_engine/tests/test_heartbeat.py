"""
Tests for freeze detection, remedies and the state diagnosis.
"""

import pytest

from euchre_engine.actions import (
    ClearOverlayAction, DealHandAction, FinishHandAction, ForceNextPlayerAction,
    MakeBidAction, PassBidAction, PlayCardAction,
)
from euchre_engine.engine import apply_action
from euchre_engine.heartbeat import (
    RECOVERY_AUTO_DISCARD, RECOVERY_CLEAR_OVERLAY, RECOVERY_CLEAR_TRICK,
    RECOVERY_FINISH_HAND, RECOVERY_FORCE_BOT_PLAY, RECOVERY_FORCE_DEAL,
    RECOVERY_FORCE_NEXT_PLAYER, RECOVERY_PASS_BID, Recovery,
    build_recovery_action, create_heartbeat_snapshot, detect_freeze,
    diagnose_game_state,
)
from euchre_engine.models import Card, GameState, Player
from euchre_engine.shuffle import is_valid_deal
from euchre_engine.tests.tables import bidding_state, ok, round_two_state


def seated(state, bots=(1, 2, 3)):
    state.players = [
        Player(id=f"player-{i}", name=f"P{i}", is_computer=i in bots) for i in range(4)
    ]
    return state


def check(state, now, previous_state=None):
    """Detect a freeze between two heartbeats of the same (or an earlier) state."""
    previous = create_heartbeat_snapshot(previous_state or state, now - 10)
    return detect_freeze(create_heartbeat_snapshot(state, now), previous, now)


def test_first_snapshot_never_freezes():
    state = seated(GameState(phase='waiting_for_trick', last_active=0.0))
    snapshot = create_heartbeat_snapshot(state, 100.0)
    assert detect_freeze(snapshot, None, 100.0) is None


def test_recent_activity_is_not_a_freeze():
    state = seated(GameState(phase='waiting_for_trick', last_active=90.0))
    assert check(state, 100.0) is None


def test_moving_table_is_not_a_freeze():
    state = seated(GameState(phase='playing', current_player_index=2, last_active=10.0))
    earlier = seated(GameState(phase='playing', current_player_index=1, last_active=10.0))
    assert check(state, 100.0, earlier) is None


def test_never_active_table_counts_as_active_now():
    snapshot = create_heartbeat_snapshot(GameState(), 42.0)
    assert snapshot.last_active == 42.0


@pytest.mark.parametrize("phase,expected", [
    ('waiting_for_next_deal', RECOVERY_FORCE_DEAL),
    ('waiting_for_trick', RECOVERY_CLEAR_TRICK),
    ('scoring', RECOVERY_FINISH_HAND),
])
def test_phase_remedies(phase, expected):
    state = seated(GameState(phase=phase, current_player_index=0, last_active=50.0))
    recovery = check(state, 100.0)
    assert recovery.type == expected


def test_partner_of_lone_caller_is_skipped():
    state = seated(GameState(
        phase='playing', current_player_index=2, trump='hearts',
        trump_caller_index=0, is_loner=True, last_active=50.0,
    ))
    recovery = check(state, 100.0)
    assert recovery.type == RECOVERY_FORCE_NEXT_PLAYER
    assert recovery.payload == {'next_player_index': 3}
    action = build_recovery_action(recovery, state, timestamp=100.0)
    assert isinstance(action, ForceNextPlayerAction)
    assert action.next_player_index == 3


def test_stuck_bot_bidding_passes():
    state = seated(GameState(phase='bidding', current_player_index=1, last_active=50.0))
    recovery = check(state, 100.0)
    assert recovery.type == RECOVERY_PASS_BID
    action = build_recovery_action(recovery, state, timestamp=100.0)
    assert isinstance(action, PassBidAction)
    assert action.player_index == 1


def test_stuck_bot_discard():
    state = seated(GameState(phase='discard', current_player_index=3, dealer_index=3, last_active=50.0))
    state.players[3].hand = [Card(suit='hearts', rank='9'), Card(suit='spades', rank='A')]
    recovery = check(state, 100.0)
    assert recovery.type == RECOVERY_AUTO_DISCARD
    action = build_recovery_action(recovery, state, timestamp=100.0)
    assert action.player_index == 3
    assert action.card_id == '9-hearts'


def test_dealer_sitting_out_still_discards():
    """Partner of the dealer goes alone in round one: the human dealer's discard is forced."""
    state = ok(bidding_state(), PassBidAction(player_index=0, timestamp=7.0))
    state = ok(state, MakeBidAction(suit='spades', caller_index=1, is_loner=True, timestamp=8.0))
    state.players[3].is_computer = False
    assert state.phase == 'discard'
    assert state.current_player_index == state.sitting_out_index == 3

    recovery = check(state, 110.0)
    assert recovery.type == RECOVERY_AUTO_DISCARD
    result = apply_action(state, build_recovery_action(recovery, state, timestamp=110.0))
    assert result.success, result.error_code
    assert [c.id for c in result.state.discards] == ['9-diamonds']
    assert result.state.phase == 'playing'
    assert result.state.current_player_index == 0


def test_overlay_blocking_human():
    state = seated(GameState(
        phase='playing', current_player_index=0, overlay_message='Hello', last_active=50.0,
    ))
    recovery = check(state, 100.0)
    assert recovery.type == RECOVERY_CLEAR_OVERLAY
    assert isinstance(build_recovery_action(recovery, state), ClearOverlayAction)


def test_waiting_human_is_left_alone():
    state = seated(GameState(phase='playing', current_player_index=0, last_active=50.0))
    assert check(state, 100.0) is None


def test_force_deal_builds_valid_deal():
    state = seated(GameState(phase='waiting_for_next_deal', dealer_index=0))
    action = build_recovery_action(Recovery(RECOVERY_FORCE_DEAL, 'test'), state, timestamp=7.0)
    assert isinstance(action, DealHandAction)
    assert action.timestamp == 7.0
    hands = [[c.to_card() for c in hand] for hand in action.hands]
    kitty = [c.to_card() for c in action.kitty]
    assert is_valid_deal(hands, kitty)


def test_finish_hand_remedy():
    state = seated(GameState(phase='scoring'))
    action = build_recovery_action(Recovery(RECOVERY_FINISH_HAND, 'test'), state)
    assert isinstance(action, FinishHandAction)


def test_stuck_bot_play_recovers_game():
    """Josh is to play and nothing happens: the detector makes him play and the reducer accepts it."""
    state = apply_action(round_two_state(), MakeBidAction(suit='hearts', caller_index=0, timestamp=8.0)).state
    state = apply_action(state, PlayCardAction(player_index=0, card_id='J-hearts', timestamp=9.0)).state
    assert state.current_player_index == 1

    recovery = check(state, 60.0)
    assert recovery.type == RECOVERY_FORCE_BOT_PLAY

    action = build_recovery_action(recovery, state, timestamp=60.0)
    assert isinstance(action, PlayCardAction)
    assert action.player_index == 1
    assert action.card_id == '9-hearts'

    result = apply_action(state, action)
    assert result.success
    assert result.state.current_player_index == 2


def test_diagnose_reports_bad_discard():
    state = seated(GameState(phase='discard', current_player_index=3, dealer_index=3, last_active=50.0))
    state.players[3].hand = [Card(suit='hearts', rank='9')] * 5
    report = diagnose_game_state(state, 100.0)
    assert report.startswith('=== GAME STATE ===')
    assert 'Phase: discard' in report
    assert 'Potential freeze causes:' in report
    assert 'expected 6' in report


def test_diagnose_overlay_waiting_on_human():
    state = seated(GameState(
        phase='scoring', current_player_index=1, overlay_message='Team A won the hand', last_active=50.0,
    ))
    report = diagnose_game_state(state, 100.0)
    assert 'waiting for: P0' in report
    assert 'current player is a bot' in report


def test_diagnose_reports_missing_trump():
    state = seated(GameState(phase='waiting_for_trick', current_player_index=0, last_active=50.0))
    report = diagnose_game_state(state, 100.0)
    assert 'In waiting_for_trick but no trump suit is set' in report
