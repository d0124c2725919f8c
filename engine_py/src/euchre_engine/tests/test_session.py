"""
Tests for the table session: timers, bot turns, persistence and freeze recovery.
"""

import asyncio

import pytest

from euchre_engine.actions import (
    AcknowledgeOverlayAction, AddLogAction, AutofillBotsAction, CreateTableAction,
    MakeBidAction, PlayCardAction, SetDealerAction, StartMatchAction, deal_payload,
)
from euchre_engine.engine import apply_action
from euchre_engine.models import GameState, PlayerStats
from euchre_engine.rules import create_rules
from euchre_engine.session import TableSession
from euchre_engine.store import MemoryFreezeIncidentLog, MemoryGameStore, MemoryStatSink
from euchre_engine.tests.tables import HANDS, KITTY, lobby_state, ok, play_out_hand, round_two_state

FAST_RULES = create_rules(
    bot_think_seconds=0,
    trick_clear_seconds=0,
    next_deal_seconds=0,
    scoring_ack_seconds=0,
)


async def wait_until(session, predicate, timeout=10.0):
    """Wait for a broadcast state that satisfies ``predicate``."""
    if predicate(session.state):
        return session.state
    done = asyncio.Event()

    async def listener(state):
        if predicate(state):
            done.set()

    unsubscribe = session.subscribe(listener)
    try:
        await asyncio.wait_for(done.wait(), timeout)
    finally:
        unsubscribe()
    return session.state


@pytest.mark.asyncio
async def test_all_bot_game_plays_to_the_end():
    store = MemoryGameStore()
    stat_sink = MemoryStatSink()
    session = TableSession(rules=FAST_RULES, store=store, stat_sink=stat_sink, seed=7)

    await session.dispatch(CreateTableAction(user_name='Host', table_code='555-555', timestamp=1.0))
    await session.dispatch(AutofillBotsAction(timestamp=2.0))
    assert store.codes() == ['555-555']
    await session.dispatch(StartMatchAction(timestamp=3.0))

    state = await wait_until(session, lambda s: s.phase == 'game_over', timeout=30.0)
    await session.close()

    assert max(state.scores.values()) >= 10
    assert state.overlay_message == 'GAME OVER!'
    assert store.codes() == []
    assert sorted(stat_sink.totals) == ['Brien', 'Jake', 'Jordan', 'Josh']
    assert all(s.games_played == 1 for s in stat_sink.totals.values())
    assert sum(s.games_won for s in stat_sink.totals.values()) == 2


@pytest.mark.asyncio
async def test_rejected_action_changes_nothing():
    session = TableSession(state=round_two_state(), rules=FAST_RULES)
    before = session.state
    result = await session.dispatch(PlayCardAction(player_index=0, card_id='J-hearts', timestamp=8.0))
    assert not result.success
    assert result.error_code == 'WRONG_PHASE'
    assert session.state is before
    await session.close()


@pytest.mark.asyncio
async def test_listeners_get_every_accepted_state():
    session = TableSession(state=lobby_state(), rules=FAST_RULES)
    seen = []

    async def listener(state):
        seen.append(state.version)

    unsubscribe = session.subscribe(listener)
    await session.dispatch(AddLogAction(message='one', timestamp=5.0))
    await session.dispatch(AddLogAction(message='two', timestamp=6.0))
    unsubscribe()
    await session.dispatch(AddLogAction(message='three', timestamp=7.0))

    assert seen == [5, 6]
    assert session.state.logs[0] == 'three'
    await session.close()


@pytest.mark.asyncio
async def test_new_state_cancels_pending_timer():
    """Dealing by hand supersedes the dealer timer armed for the previous state."""
    rules = create_rules(next_deal_seconds=0.05)
    session = TableSession(state=lobby_state(), rules=rules, seed=1)
    await session.dispatch(StartMatchAction(timestamp=5.0))
    assert session._timer is not None

    await session.dispatch(SetDealerAction(dealer_index=3, timestamp=6.0, **deal_payload(HANDS, KITTY)))
    await asyncio.sleep(0.1)

    # Alice is first to bid, so nothing is scheduled
    assert session._timer is None
    assert session.state.phase == 'bidding'
    assert [p.hand for p in session.state.players] == HANDS
    await session.close()


@pytest.mark.asyncio
async def test_scoring_waits_for_human_acknowledgement():
    state = ok(round_two_state(), MakeBidAction(suit='hearts', caller_index=0, timestamp=8.0))
    state = play_out_hand(state)
    session = TableSession(state=state, rules=FAST_RULES, seed=3)

    await session.dispatch(AddLogAction(message='still here', timestamp=21.0))
    await asyncio.sleep(0.05)
    assert session.state.phase == 'scoring'
    assert session._timer is None

    await session.dispatch(AcknowledgeOverlayAction(player_name='Alice', timestamp=22.0))
    state = await wait_until(session, lambda s: s.hands_played == 1)
    await session.close()

    assert state.scores == {'team1': 2, 'team2': 0}
    assert state.history[0].winning_team == 1


@pytest.mark.asyncio
async def test_refresh_global_stats():
    stat_sink = MemoryStatSink()
    await stat_sink.accumulate({'Alice': PlayerStats(games_played=3, games_won=2)})
    session = TableSession(state=lobby_state(), rules=FAST_RULES, stat_sink=stat_sink)

    await session.refresh_global_stats()
    assert session.state.global_stats['Alice'].games_won == 2
    await session.close()


@pytest.mark.asyncio
async def test_heartbeat_forces_stuck_bot():
    state = ok(round_two_state(), MakeBidAction(suit='hearts', caller_index=0, timestamp=8.0))
    state = ok(state, PlayCardAction(player_index=0, card_id='J-hearts', timestamp=9.0))
    incidents = MemoryFreezeIncidentLog()
    rules = create_rules(bot_think_seconds=60)
    session = TableSession(state=state, rules=rules, incident_log=incidents)

    assert await session.check_heartbeat(now=20.0) is None
    recovery = await session.check_heartbeat(now=40.0)
    await session.close()

    assert recovery.type == 'FORCE_BOT_PLAY'
    assert len(session.state.current_trick) == 2
    assert session.state.current_player_index == 2
    assert incidents.incidents[0].recovered is True
    assert incidents.incidents[0].recovery_action == 'PLAY_CARD'
    assert incidents.incidents[0].is_bot is True


@pytest.mark.asyncio
async def test_recovery_attempts_are_bounded():
    """A remedy that keeps failing is tried three times, then reported once."""
    broken = GameState(phase='scoring', table_code='999-999', current_player_index=0, last_active=100.0)
    incidents = MemoryFreezeIncidentLog()
    rules = create_rules(scoring_ack_seconds=60)
    session = TableSession(state=broken, rules=rules, incident_log=incidents)

    assert await session.check_heartbeat(now=105.0) is None
    for now in (130.0, 140.0, 150.0):
        recovery = await session.check_heartbeat(now=now)
        assert recovery.type == 'FINISH_HAND'
    assert await session.check_heartbeat(now=160.0) is None
    assert await session.check_heartbeat(now=170.0) is None

    assert len(incidents.incidents) == 4
    assert [i.recovery_action for i in incidents.incidents] == ['FINISH_HAND'] * 3 + [None]
    assert not any(i.recovered for i in incidents.incidents)
    assert incidents.incidents[0].game_code == '999-999'

    # Any accepted action resets the attempt count
    await session.dispatch(AddLogAction(message='poke', timestamp=190.0))
    assert await session.check_heartbeat(now=215.0) is not None
    assert len(incidents.incidents) == 5
    await session.close()


@pytest.mark.asyncio
async def test_heartbeat_ignores_lobby():
    session = TableSession(state=lobby_state(), rules=FAST_RULES)
    assert await session.check_heartbeat(now=1000.0) is None
    assert await session.check_heartbeat(now=2000.0) is None
    await session.close()


def test_apply_action_is_what_the_session_uses():
    """The session's state after a dispatch equals the reducer's answer."""
    async def run():
        session = TableSession(state=round_two_state(), rules=create_rules(bot_think_seconds=60))
        action = MakeBidAction(suit='hearts', caller_index=0, timestamp=8.0)
        await session.dispatch(action)
        await session.close()
        return session.state

    expected = apply_action(round_two_state(), MakeBidAction(suit='hearts', caller_index=0, timestamp=8.0)).state
    assert asyncio.run(run()) == expected
