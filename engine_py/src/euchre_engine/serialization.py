"""
State serialization and sanitization utilities.
"""

from dataclasses import asdict
from typing import Any, Dict, List, Optional

import orjson

from .comparator import sort_hand
from .constants import EVENT_BID
from .models import (
    BotPersonality, Card, GameEvent, GameState, HandResult, Player, TrickPlay,
)
from .stats import stats_from_dict

# Bid event fields that reveal the dealer's cards after the pick up
DEALER_BID_FIELDS = ('hand_after_discard', 'discarded')


def state_to_dict(state: GameState) -> Dict[str, Any]:
    """Full state as plain JSON-ready data (hands included)."""
    return asdict(state)


def _card(data: Optional[Dict[str, Any]]) -> Optional[Card]:
    if not data:
        return None
    return Card(suit=data['suit'], rank=data['rank'])


def _cards(items: Optional[List[Dict[str, Any]]]) -> List[Card]:
    return [_card(c) for c in items or []]


def _trick(plays: Optional[List[Dict[str, Any]]]) -> List[TrickPlay]:
    return [TrickPlay(player_id=p['player_id'], card=_card(p['card'])) for p in plays or []]


def _player(data: Dict[str, Any]) -> Player:
    personality = data.get('personality')
    return Player(
        id=data['id'],
        name=data.get('name'),
        is_computer=data.get('is_computer', False),
        hand=_cards(data.get('hand')),
        stats=stats_from_dict(data.get('stats')),
        personality=BotPersonality(**personality) if personality else None,
    )


def state_from_dict(data: Dict[str, Any]) -> GameState:
    """
    Rebuild a state from ``state_to_dict`` output.

    Missing fields take their defaults, so states saved by older versions still load.
    """
    state = GameState()
    simple_fields = [
        'table_id', 'table_name', 'table_code', 'current_view_player_name',
        'current_user', 'phase', 'current_player_index', 'dealer_index',
        'bidding_round', 'turned_down_suit', 'trump', 'trump_caller_index',
        'is_loner', 'hands_played', 'overlay_message', 'last_active', 'version',
    ]
    for name in simple_fields:
        if name in data:
            setattr(state, name, data[name])

    if data.get('players'):
        state.players = [_player(p) for p in data['players']]
    state.upcard = _card(data.get('upcard'))
    state.kitty = _cards(data.get('kitty'))
    state.discards = _cards(data.get('discards'))
    state.current_trick = _trick(data.get('current_trick'))
    state.completed_tricks = [_trick(t) for t in data.get('completed_tricks') or []]
    if data.get('tricks_won'):
        state.tricks_won = dict(data['tricks_won'])
    if data.get('scores'):
        state.scores = dict(data['scores'])
    if data.get('team_names'):
        state.team_names = dict(data['team_names'])
    state.history = [HandResult(**h) for h in data.get('history') or []]
    state.event_log = [GameEvent(**e) for e in data.get('event_log') or []]
    if 'logs' in data:
        state.logs = list(data['logs'])
    state.overlay_acknowledged = dict(data.get('overlay_acknowledged') or {})
    state.global_stats = {
        name: stats_from_dict(s) for name, s in (data.get('global_stats') or {}).items()
    }
    return state


def dumps(state: GameState) -> bytes:
    return orjson.dumps(state_to_dict(state))


def loads(raw: bytes) -> GameState:
    return state_from_dict(orjson.loads(raw))


def sanitize_state(state: GameState, viewer_name: Optional[str] = None) -> Dict[str, Any]:
    """
    Sanitize game state for transmission to one client.

    Args:
        state: Game state to sanitize
        viewer_name: Name of the seated player viewing the state (to show their cards)

    Returns:
        State dict with other players' hands and the hidden kitty reduced to counts
    """
    sanitized = state_to_dict(state)
    sanitized['players'] = []
    for player in state.players:
        sanitized_player = {
            "id": player.id,
            "name": player.name,
            "is_computer": player.is_computer,
            "hand_count": len(player.hand),
            "stats": asdict(player.stats),
            "personality": asdict(player.personality) if player.personality else None,
        }
        # Show full hand only to the viewer
        if viewer_name is not None and player.name == viewer_name:
            sanitized_player["hand"] = [asdict(c) for c in sort_hand(player.hand, state.trump)]
        sanitized['players'].append(sanitized_player)

    sanitized['kitty'] = None
    sanitized['kitty_count'] = len(state.kitty)
    sanitized['discards'] = None
    sanitized['discard_count'] = len(state.discards)
    sanitized['event_log'] = [_sanitize_event(event, state, viewer_name) for event in sanitized['event_log']]
    return sanitized


def _sanitize_event(event: Dict[str, Any], state: GameState, viewer_name: Optional[str]) -> Dict[str, Any]:
    """
    Strip card ids from a bid event for viewers who do not own them.

    The caller sees the hand they called with, the dealer sees their own discard.
    """
    if event['type'] != EVENT_BID:
        return event
    data = event['data']
    caller = data.get('player_index')
    dealer = data.get('dealer_index', caller)
    hidden = []
    if not _is_viewer(state, caller, viewer_name):
        hidden.append('hand')
    if not _is_viewer(state, dealer, viewer_name):
        hidden.extend(DEALER_BID_FIELDS)
    if not any(key in data for key in hidden):
        return event
    return {**event, 'data': {key: value for key, value in data.items() if key not in hidden}}


def _is_viewer(state: GameState, seat: Optional[int], viewer_name: Optional[str]) -> bool:
    if viewer_name is None or seat is None or not 0 <= seat < len(state.players):
        return False
    return state.players[seat].name == viewer_name
