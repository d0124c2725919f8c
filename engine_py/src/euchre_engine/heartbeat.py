"""
Freeze detection and recovery.

The session takes a snapshot of the table every heartbeat interval. When two
consecutive snapshots show the same phase and current player and the table has
been inactive for longer than the freeze threshold, ``detect_freeze`` picks a
remedy. The first matching rule wins:

1. waiting_for_next_deal -> FORCE_DEAL
2. waiting_for_trick -> CLEAR_TRICK
3. scoring -> FINISH_HAND
4. playing, current player is the partner of a lone caller -> FORCE_NEXT_PLAYER
5. discard, the dealer is that sitting-out partner -> AUTO_DISCARD
6. bot to act in bidding -> PASS_BID
7. bot to act in discard -> AUTO_DISCARD
8. bot to act in playing -> FORCE_BOT_PLAY
9. overlay still showing -> CLEAR_OVERLAY
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .actions import (
    BaseAction, ClearOverlayAction, ClearTrickAction, DealHandAction,
    FinishHandAction, ForceNextPlayerAction, PassBidAction, deal_payload,
)
from .bots.heuristic import fallback_action, safe_bot_action
from .constants import (
    NUM_SEATS, PHASE_BIDDING, PHASE_DISCARD, PHASE_PLAYING, PHASE_SCORING,
    PHASE_WAITING_FOR_NEXT_DEAL, PHASE_WAITING_FOR_TRICK, TRUMP_PHASES, partner_of,
)
from .models import GameState
from .shuffle import deal_for_table

logger = logging.getLogger(__name__)

FREEZE_THRESHOLD_SECONDS = 20.0

RECOVERY_FORCE_DEAL = 'FORCE_DEAL'
RECOVERY_CLEAR_TRICK = 'CLEAR_TRICK'
RECOVERY_FINISH_HAND = 'FINISH_HAND'
RECOVERY_FORCE_NEXT_PLAYER = 'FORCE_NEXT_PLAYER'
RECOVERY_PASS_BID = 'PASS_BID'
RECOVERY_AUTO_DISCARD = 'AUTO_DISCARD'
RECOVERY_FORCE_BOT_PLAY = 'FORCE_BOT_PLAY'
RECOVERY_CLEAR_OVERLAY = 'CLEAR_OVERLAY'


@dataclass
class HeartbeatSnapshot:
    phase: str
    current_player_index: int
    current_player_is_bot: bool
    last_active: float
    is_loner: bool
    trump_caller_index: Optional[int]
    overlay_message: Optional[str]
    trick_length: int
    version: int = 0


@dataclass
class Recovery:
    type: str
    reason: str
    payload: Dict[str, Any] = field(default_factory=dict)


def create_heartbeat_snapshot(state: GameState, now: float) -> HeartbeatSnapshot:
    """Snapshot of the fields the freeze detector compares. A table never active counts as active now."""
    current = state.current_player
    return HeartbeatSnapshot(
        phase=state.phase,
        current_player_index=state.current_player_index,
        current_player_is_bot=bool(current and current.is_computer),
        last_active=state.last_active or now,
        is_loner=state.is_loner,
        trump_caller_index=state.trump_caller_index,
        overlay_message=state.overlay_message,
        trick_length=len(state.current_trick),
        version=state.version,
    )


def detect_freeze(
    current: HeartbeatSnapshot,
    previous: Optional[HeartbeatSnapshot],
    now: float,
    threshold: float = FREEZE_THRESHOLD_SECONDS,
) -> Optional[Recovery]:
    """
    Decide whether the table is frozen and how to unstick it.

    Args:
        current: Latest snapshot
        previous: Snapshot from the previous heartbeat (None on the first check)
        now: Current time in seconds
        threshold: Seconds of inactivity that count as a freeze

    Returns:
        The remedy to apply, or None if the table is progressing
    """
    if previous is None:
        return None

    idle = now - current.last_active
    unchanged = (
        current.phase == previous.phase
        and current.current_player_index == previous.current_player_index
    )
    if not unchanged or idle < threshold:
        return None

    logger.warning(
        f"Potential freeze: phase={current.phase} player={current.current_player_index} idle={idle:.0f}s"
    )

    if current.phase == PHASE_WAITING_FOR_NEXT_DEAL:
        return Recovery(RECOVERY_FORCE_DEAL, 'Stuck in waiting_for_next_deal, forcing a deal')
    if current.phase == PHASE_WAITING_FOR_TRICK:
        return Recovery(RECOVERY_CLEAR_TRICK, 'Stuck in waiting_for_trick, clearing the trick')
    if current.phase == PHASE_SCORING:
        return Recovery(RECOVERY_FINISH_HAND, 'Stuck in scoring, finishing the hand')

    sitting_out = None
    if current.is_loner and current.trump_caller_index is not None:
        sitting_out = partner_of(current.trump_caller_index)

    if current.phase == PHASE_PLAYING and current.current_player_index == sitting_out:
        return Recovery(
            RECOVERY_FORCE_NEXT_PLAYER,
            'Current player is the partner of a lone caller, skipping',
            {'next_player_index': (sitting_out + 1) % NUM_SEATS},
        )

    # The dealer still drops a card when their partner goes alone
    if current.phase == PHASE_DISCARD and current.current_player_index == sitting_out:
        return Recovery(RECOVERY_AUTO_DISCARD, 'Dealer sitting out a lone hand, discarding automatically')

    if current.current_player_is_bot:
        if current.phase == PHASE_BIDDING:
            return Recovery(
                RECOVERY_PASS_BID, 'Bot stuck in bidding, forcing a pass',
                {'player_index': current.current_player_index},
            )
        if current.phase == PHASE_DISCARD:
            return Recovery(RECOVERY_AUTO_DISCARD, 'Bot stuck in discard, discarding automatically')
        if current.phase == PHASE_PLAYING:
            return Recovery(RECOVERY_FORCE_BOT_PLAY, 'Bot stuck in playing, forcing its move')

    if current.overlay_message:
        return Recovery(RECOVERY_CLEAR_OVERLAY, 'Overlay blocking progress')

    logger.error(f"Freeze detected but no recovery available: {current}")
    return None


def build_recovery_action(
    recovery: Recovery,
    state: GameState,
    default_aggressiveness: int = 5,
    timestamp: Optional[float] = None,
) -> Optional[BaseAction]:
    """Turn a remedy into the reducer action that applies it."""
    stamp = {} if timestamp is None else {'timestamp': timestamp}

    if recovery.type == RECOVERY_FORCE_DEAL:
        return DealHandAction(**deal_payload(*deal_for_table()), **stamp)
    if recovery.type == RECOVERY_CLEAR_TRICK:
        return ClearTrickAction(**stamp)
    if recovery.type == RECOVERY_FINISH_HAND:
        return FinishHandAction(**stamp)
    if recovery.type == RECOVERY_FORCE_NEXT_PLAYER:
        return ForceNextPlayerAction(next_player_index=recovery.payload['next_player_index'], **stamp)
    if recovery.type == RECOVERY_PASS_BID:
        return PassBidAction(player_index=recovery.payload['player_index'], **stamp)
    if recovery.type == RECOVERY_AUTO_DISCARD:
        return fallback_action(state, state.dealer_index, timestamp)
    if recovery.type == RECOVERY_FORCE_BOT_PLAY:
        return safe_bot_action(state, state.current_player_index, default_aggressiveness, timestamp)
    if recovery.type == RECOVERY_CLEAR_OVERLAY:
        return ClearOverlayAction(**stamp)

    logger.error(f"Unknown recovery type {recovery.type}")
    return None


def _unacknowledged(state: GameState) -> List[str]:
    return [name for name in state.human_names() if not state.overlay_acknowledged.get(name)]


def diagnose_game_state(state: GameState, now: float) -> str:
    """Human-readable dump of the fields that usually explain a stuck table."""
    current = state.current_player
    lines = ['=== GAME STATE ===', f"Phase: {state.phase}"]
    lines.append(
        f"Current player: #{state.current_player_index} ({current.name if current and current.name else 'unnamed'})"
    )
    if current is not None:
        lines.append(f"  bot: {current.is_computer}")
        lines.append(f"  hand size: {len(current.hand)}")

    if state.overlay_message:
        acked = [name for name, done in state.overlay_acknowledged.items() if done]
        lines.append(f"Overlay: \"{state.overlay_message}\"")
        lines.append(f"  acknowledged by: {', '.join(acked)}")
        waiting = _unacknowledged(state)
        if waiting:
            lines.append(f"  waiting for: {', '.join(waiting)}")

    if state.phase == PHASE_BIDDING:
        lines.append(f"Bidding round: {state.bidding_round}")
        upcard = f"{state.upcard.rank} of {state.upcard.suit}" if state.upcard else 'none'
        lines.append(f"Upcard: {upcard}")

    if state.phase == PHASE_PLAYING:
        lines.append(f"Trump: {state.trump}")
        lines.append(f"Current trick: {len(state.current_trick)} cards played")
        if state.is_loner:
            lines.append(f"Loner by #{state.trump_caller_index}")
            if state.current_player_index == state.sitting_out_index:
                lines.append('  CRITICAL: current player is the partner sitting out')

    if state.phase == PHASE_WAITING_FOR_TRICK:
        lines.append('Waiting for the trick to clear')

    reasons = []
    if current is None:
        reasons.append('Current player is not set')
    elif current.is_computer and state.phase == PHASE_PLAYING and not state.overlay_message:
        idle = now - (state.last_active or now)
        if idle > 10:
            reasons.append(f"Bot hasn't played for {idle:.0f}s")
    if state.overlay_message and current is not None and current.is_computer and _unacknowledged(state):
        reasons.append('Waiting for a human to acknowledge the overlay, but the current player is a bot')
    if state.phase == PHASE_DISCARD:
        dealer_hand = len(state.players[state.dealer_index].hand)
        if dealer_hand != 6:
            reasons.append(f"In discard but the dealer holds {dealer_hand} cards (expected 6)")
    if state.phase in TRUMP_PHASES and state.trump is None:
        reasons.append(f"In {state.phase} but no trump suit is set")

    if reasons:
        lines.append('')
        lines.append('Potential freeze causes:')
        lines.extend(f"  - {reason}" for reason in reasons)
    return '\n'.join(lines)
