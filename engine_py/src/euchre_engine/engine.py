"""
Game state machine.

``apply_action`` is the single entry point: it copies the state, runs the
handler for the action type and returns an ``ActionResult``. Handlers raise
``GameError`` for actions that are illegal in the current state; the caller
then gets the original state back untouched, so a duplicated or stale action
delivered over the broadcast channel is a harmless no-op.

The reducer is pure. Time comes from ``action.timestamp`` and every random
choice travels in the action; when a deal is missing or malformed a local deal
seeded from the table code and hand number is used instead.
"""

import copy
import logging
import random
from typing import Callable, Dict, List, Optional

from . import actions as a
from .bidding import count_bowers, count_trump
from .comparator import determine_winner, get_lead_suit, is_valid_play
from .constants import (
    BOT_ARCHETYPES, BOT_NAMES_POOL, ERROR_CARD_NOT_IN_HAND, ERROR_INTERNAL,
    ERROR_INVALID_BID, ERROR_INVALID_SEAT, ERROR_MUST_FOLLOW_SUIT,
    ERROR_NO_BOTS_AVAILABLE, ERROR_NOT_YOUR_TURN, ERROR_SEAT_TAKEN,
    ERROR_TABLE_NOT_READY, ERROR_WRONG_PHASE, EVENT_BID, EVENT_DEALER,
    EVENT_GAME_OVER, EVENT_HAND_RESULT, EVENT_PASS, EVENT_PLAY,
    GAME_OVER_MESSAGE, NUM_SEATS, PHASE_BIDDING, PHASE_DISCARD,
    PHASE_GAME_OVER, PHASE_LANDING, PHASE_LOBBY, PHASE_LOGIN, PHASE_PLAYING,
    PHASE_RANDOMIZING_DEALER, PHASE_SCORING, PHASE_WAITING_FOR_NEXT_DEAL,
    PHASE_WAITING_FOR_TRICK, SUIT_SYMBOLS, TRICKS_PER_HAND,
)
from .errors import GameError
from .models import (
    BotPersonality, Card, GameState, HandResult, Player, PlayerStats, TrickPlay,
    create_empty_player,
)
from .rules import RuleConfig, default_rules
from .scoring import compute_hand_points, hand_summary, team_tricks
from .shuffle import deal_for_table, is_valid_deal
from .stats import merge_all_stats, record_call, record_hand, record_trick, stats_from_dict

logger = logging.getLogger(__name__)


class ActionResult:
    """Result of applying an action."""

    def __init__(
        self,
        success: bool,
        state: GameState,
        error_code: Optional[str] = None,
        error_message: Optional[str] = None,
    ):
        self.success = success
        self.state = state
        self.error_code = error_code
        self.error_message = error_message

    @classmethod
    def ok(cls, state: GameState) -> 'ActionResult':
        return cls(success=True, state=state)

    @classmethod
    def error(cls, state: GameState, error_code: str, error_message: str) -> 'ActionResult':
        return cls(success=False, state=state, error_code=error_code, error_message=error_message)


def create_game() -> GameState:
    """A fresh state on the login screen."""
    return GameState()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _require_phase(state: GameState, *phases: str) -> None:
    if state.phase not in phases:
        raise GameError(ERROR_WRONG_PHASE, f"Action not allowed during {state.phase}")


def _require_turn(state: GameState, seat: int) -> None:
    if seat != state.current_player_index:
        raise GameError(ERROR_NOT_YOUR_TURN, f"Seat {seat} acted out of turn (current {state.current_player_index})")


def _seat_name(state: GameState, seat: int) -> str:
    return state.players[seat].name or f"Seat {seat + 1}"


def _next_active_seat(state: GameState, seat: int) -> int:
    """The seat after ``seat``, skipping the partner of a lone caller."""
    nxt = (seat + 1) % NUM_SEATS
    if nxt == state.sitting_out_index:
        nxt = (nxt + 1) % NUM_SEATS
    return nxt


def _find_card(hand: List[Card], card_id: str) -> Card:
    for card in hand:
        if card.id == card_id:
            return card
    raise GameError(ERROR_CARD_NOT_IN_HAND, f"Card {card_id} is not in hand")


def _resolve_deal(state: GameState, action, dealer_index: int):
    """Cards from the action, or a seeded local deal when they are missing or malformed."""
    if action.hands is not None and action.kitty is not None:
        hands = [[p.to_card() for p in hand] for hand in action.hands]
        kitty = [p.to_card() for p in action.kitty]
        if is_valid_deal(hands, kitty):
            return hands, kitty
        logger.warning(f"Table {state.table_code}: rejected malformed deal, dealing locally")
    seed = f"{state.table_code}:{state.hands_played}:{dealer_index}:{action.timestamp}"
    return deal_for_table(seed)


def _start_hand(state: GameState, dealer_index: int, hands, kitty, timestamp: float, rules: RuleConfig) -> GameState:
    state.dealer_index = dealer_index
    for player, hand in zip(state.players, hands):
        player.hand = list(hand)
    state.upcard = kitty[0]
    state.kitty = list(kitty[1:])
    state.discards = []
    state.bidding_round = 1
    state.turned_down_suit = None
    state.trump = None
    state.trump_caller_index = None
    state.is_loner = False
    state.current_trick = []
    state.completed_tricks = []
    state.tricks_won = {p.id: 0 for p in state.players}
    state.current_player_index = (dealer_index + 1) % NUM_SEATS
    state.overlay_message = None
    state.overlay_acknowledged = {}
    state.phase = PHASE_BIDDING

    state.add_event(EVENT_DEALER, timestamp, dealer_index=dealer_index, hand_number=state.hands_played + 1)
    state.add_log(
        f"{_seat_name(state, dealer_index)} deals. Upcard is {state.upcard.rank}{SUIT_SYMBOLS[state.upcard.suit]}",
        rules.log_limit,
    )
    return state


def _call_trump(
    state: GameState,
    suit: str,
    caller_index: int,
    is_loner: bool,
    timestamp: float,
    rules: RuleConfig,
    reasoning: Optional[str] = None,
    forced: bool = False,
) -> GameState:
    caller = state.players[caller_index]
    state.add_event(
        EVENT_BID, timestamp,
        player_index=caller_index,
        suit=suit,
        round=state.bidding_round,
        is_loner=is_loner,
        forced=forced,
        bower_count=count_bowers(caller.hand, suit),
        trump_count=count_trump(caller.hand, suit),
        hand=[c.id for c in caller.hand],
        reasoning=reasoning,
    )
    state.players[caller_index] = record_call(caller, is_loner)
    state.trump = suit
    state.trump_caller_index = caller_index
    state.is_loner = is_loner

    alone = " alone" if is_loner else ""
    state.add_log(f"{_seat_name(state, caller_index)} called {suit}{alone}", rules.log_limit)

    if state.bidding_round == 1:
        dealer = state.players[state.dealer_index]
        dealer.hand = dealer.hand + [state.upcard]
        state.upcard = None
        state.phase = PHASE_DISCARD
        state.current_player_index = state.dealer_index
    else:
        state.phase = PHASE_PLAYING
        state.current_player_index = _next_active_seat(state, state.dealer_index)
    return state


# ---------------------------------------------------------------------------
# Session and lobby handlers
# ---------------------------------------------------------------------------

def _login(state: GameState, action: a.LoginAction, rules: RuleConfig) -> GameState:
    _require_phase(state, PHASE_LOGIN, PHASE_LANDING)
    state.current_user = action.user_name
    state.phase = PHASE_LANDING
    return state


def _logout(state: GameState, action: a.LogoutAction, rules: RuleConfig) -> GameState:
    return create_game()


def _create_table(state: GameState, action: a.CreateTableAction, rules: RuleConfig) -> GameState:
    _require_phase(state, PHASE_LOGIN, PHASE_LANDING)
    fresh = GameState(
        table_id=action.table_id,
        table_name=action.table_name,
        table_code=action.table_code,
        current_view_player_name=action.user_name,
        current_user=state.current_user or action.user_name,
        phase=PHASE_LOBBY,
        global_stats=state.global_stats,
    )
    fresh.add_log(f"Table {action.table_name} created. Code {action.table_code}", rules.log_limit)
    return fresh


def _join_table(state: GameState, action: a.JoinTableAction, rules: RuleConfig) -> GameState:
    _require_phase(state, PHASE_LOGIN, PHASE_LANDING)
    fresh = GameState(
        table_code=action.code,
        table_name='The Royal Table',
        current_view_player_name=action.user_name,
        current_user=state.current_user or action.user_name,
        phase=PHASE_LOBBY,
        global_stats=state.global_stats,
    )
    fresh.add_log(f"{action.user_name} joined table {action.code}", rules.log_limit)
    return fresh


def _load_existing_game(state: GameState, action: a.LoadExistingGameAction, rules: RuleConfig) -> GameState:
    from .serialization import state_from_dict

    loaded = state_from_dict(action.game_state)
    user = state.current_user
    if user:
        loaded.current_user = user
        if user in [p.name for p in loaded.players]:
            loaded.current_view_player_name = user
    loaded.add_log(f"Resumed game at {loaded.table_name or loaded.table_code}", rules.log_limit)
    return loaded


def _exit_to_landing(state: GameState, action: a.ExitToLandingAction, rules: RuleConfig) -> GameState:
    return GameState(
        current_user=state.current_user,
        phase=PHASE_LANDING if state.current_user else PHASE_LOGIN,
        global_stats=state.global_stats,
    )


def _sit_player(state: GameState, action: a.SitPlayerAction, rules: RuleConfig) -> GameState:
    _require_phase(state, PHASE_LOBBY)
    seat = state.players[action.seat_index]
    if seat.name and seat.name != action.name:
        raise GameError(ERROR_SEAT_TAKEN, f"Seat {action.seat_index + 1} is taken by {seat.name}")

    # A person sits in one seat at a time
    for i, p in enumerate(state.players):
        if i != action.seat_index and p.name == action.name:
            state.players[i] = create_empty_player(i)

    state.players[action.seat_index] = Player(id=seat.id, name=action.name, is_computer=False)
    state.add_log(f"{action.name} sat in seat {action.seat_index + 1}", rules.log_limit)
    return state


def _seat_bot(state: GameState, seat_index: int, bot_name: Optional[str]) -> str:
    taken = {p.name for p in state.players if p.name}
    if bot_name is None:
        available = [name for name in BOT_NAMES_POOL if name not in taken]
        if not available:
            raise GameError(ERROR_NO_BOTS_AVAILABLE, "No bots available")
        bot_name = available[0]
    elif bot_name in taken:
        raise GameError(ERROR_SEAT_TAKEN, f"{bot_name} is already seated")

    profile = BOT_ARCHETYPES.get(bot_name)
    personality = BotPersonality(**profile) if profile else BotPersonality()
    state.players[seat_index] = Player(
        id=state.players[seat_index].id,
        name=bot_name,
        is_computer=True,
        personality=personality,
    )
    return bot_name


def _add_bot(state: GameState, action: a.AddBotAction, rules: RuleConfig) -> GameState:
    _require_phase(state, PHASE_LOBBY)
    if state.players[action.seat_index].name:
        raise GameError(ERROR_SEAT_TAKEN, f"Seat {action.seat_index + 1} is taken")
    name = _seat_bot(state, action.seat_index, action.bot_name)
    state.add_log(f"{name} (bot) joined seat {action.seat_index + 1}", rules.log_limit)
    return state


def _remove_player(state: GameState, action: a.RemovePlayerAction, rules: RuleConfig) -> GameState:
    _require_phase(state, PHASE_LOBBY)
    name = state.players[action.seat_index].name
    if not name:
        raise GameError(ERROR_INVALID_SEAT, f"Seat {action.seat_index + 1} is already empty")
    state.players[action.seat_index] = create_empty_player(action.seat_index)
    state.add_log(f"{name} left seat {action.seat_index + 1}", rules.log_limit)
    return state


def _autofill_bots(state: GameState, action: a.AutofillBotsAction, rules: RuleConfig) -> GameState:
    _require_phase(state, PHASE_LOBBY)
    for i, p in enumerate(state.players):
        if not p.name:
            _seat_bot(state, i, None)
    state.add_log("Empty seats filled with bots", rules.log_limit)
    return state


def _start_match(state: GameState, action: a.StartMatchAction, rules: RuleConfig) -> GameState:
    _require_phase(state, PHASE_LOBBY, PHASE_GAME_OVER)
    if any(not p.name for p in state.players):
        raise GameError(ERROR_TABLE_NOT_READY, "All four seats must be filled to start")

    for p in state.players:
        p.hand = []
        p.stats = PlayerStats()
    names = [p.name for p in state.players]
    state.team_names = {
        'team1': " & ".join(sorted([names[0], names[2]])),
        'team2': " & ".join(sorted([names[1], names[3]])),
    }
    state.scores = {'team1': 0, 'team2': 0}
    state.history = []
    state.event_log = []
    state.hands_played = 0
    state.dealer_index = -1
    state.current_player_index = -1
    state.trump = None
    state.trump_caller_index = None
    state.is_loner = False
    state.upcard = None
    state.kitty = []
    state.discards = []
    state.current_trick = []
    state.completed_tricks = []
    state.overlay_message = None
    state.overlay_acknowledged = {}
    state.phase = PHASE_RANDOMIZING_DEALER
    state.add_log(f"Match started: {state.team_names['team1']} vs {state.team_names['team2']}", rules.log_limit)
    return state


def _load_global_stats(state: GameState, action: a.LoadGlobalStatsAction, rules: RuleConfig) -> GameState:
    loaded = {name: stats_from_dict(data) for name, data in action.stats.items()}
    state.global_stats = merge_all_stats(state.global_stats, loaded)
    return state


# ---------------------------------------------------------------------------
# Hand handlers
# ---------------------------------------------------------------------------

def _set_dealer(state: GameState, action: a.SetDealerAction, rules: RuleConfig) -> GameState:
    _require_phase(state, PHASE_RANDOMIZING_DEALER)
    dealer_index = action.dealer_index
    if dealer_index is None or not 0 <= dealer_index < NUM_SEATS:
        dealer_index = random.Random(f"{state.table_code}:{action.timestamp}").randrange(NUM_SEATS)
    hands, kitty = _resolve_deal(state, action, dealer_index)
    return _start_hand(state, dealer_index, hands, kitty, action.timestamp, rules)


def _deal_hand(state: GameState, action: a.DealHandAction, rules: RuleConfig) -> GameState:
    _require_phase(state, PHASE_WAITING_FOR_NEXT_DEAL)
    hands, kitty = _resolve_deal(state, action, state.dealer_index)
    return _start_hand(state, state.dealer_index, hands, kitty, action.timestamp, rules)


def _make_bid(state: GameState, action: a.MakeBidAction, rules: RuleConfig) -> GameState:
    _require_phase(state, PHASE_BIDDING)
    _require_turn(state, action.caller_index)
    if state.bidding_round == 1 and action.suit != state.upcard.suit:
        raise GameError(ERROR_INVALID_BID, f"Round 1 bid must be {state.upcard.suit}")
    if state.bidding_round == 2 and action.suit == state.turned_down_suit:
        raise GameError(ERROR_INVALID_BID, f"{action.suit} was turned down")
    return _call_trump(
        state, action.suit, action.caller_index, action.is_loner,
        action.timestamp, rules, reasoning=action.reasoning,
    )


def _pass_bid(state: GameState, action: a.PassBidAction, rules: RuleConfig) -> GameState:
    _require_phase(state, PHASE_BIDDING)
    _require_turn(state, action.player_index)
    state.add_event(EVENT_PASS, action.timestamp, player_index=action.player_index, round=state.bidding_round)
    state.add_log(f"{_seat_name(state, action.player_index)} passed", rules.log_limit)

    if action.player_index != state.dealer_index:
        state.current_player_index = (action.player_index + 1) % NUM_SEATS
        return state

    if state.bidding_round == 1:
        state.bidding_round = 2
        state.turned_down_suit = state.upcard.suit
        state.current_player_index = (state.dealer_index + 1) % NUM_SEATS
        state.add_log(f"{state.upcard.suit} turned down", rules.log_limit)
        return state

    # Everyone passed twice: stick the dealer
    suit = rules.stick_the_dealer_suit
    state.add_log(f"Stick the dealer! {_seat_name(state, state.dealer_index)} must call {suit}", rules.log_limit)
    return _call_trump(
        state, suit, state.dealer_index, False, action.timestamp, rules,
        reasoning="stick the dealer", forced=True,
    )


def _discard_card(state: GameState, action: a.DiscardCardAction, rules: RuleConfig) -> GameState:
    _require_phase(state, PHASE_DISCARD)
    if action.player_index != state.dealer_index:
        raise GameError(ERROR_NOT_YOUR_TURN, "Only the dealer discards")
    dealer = state.players[state.dealer_index]
    card = _find_card(dealer.hand, action.card_id)
    dealer.hand = [c for c in dealer.hand if c.id != card.id]
    state.discards = state.discards + [card]
    for event in reversed(state.event_log):
        if event.type == EVENT_BID:
            event.data['dealer_index'] = state.dealer_index
            event.data['hand_after_discard'] = [c.id for c in dealer.hand]
            event.data['discarded'] = card.id
            break
    state.phase = PHASE_PLAYING
    state.current_player_index = _next_active_seat(state, state.dealer_index)
    state.add_log(f"{_seat_name(state, state.dealer_index)} discarded", rules.log_limit)
    return state


def _play_card(state: GameState, action: a.PlayCardAction, rules: RuleConfig) -> GameState:
    _require_phase(state, PHASE_PLAYING)
    _require_turn(state, action.player_index)
    if action.player_index == state.sitting_out_index:
        raise GameError(ERROR_NOT_YOUR_TURN, "Partner of a lone caller sits out")

    player = state.players[action.player_index]
    card = _find_card(player.hand, action.card_id)
    lead_suit = get_lead_suit(state.current_trick, state.trump)
    if not is_valid_play(card, player.hand, lead_suit, state.trump):
        raise GameError(ERROR_MUST_FOLLOW_SUIT, f"Must follow {lead_suit}")

    player.hand = [c for c in player.hand if c.id != card.id]
    state.current_trick = state.current_trick + [TrickPlay(player_id=player.id, card=card)]
    state.add_event(
        EVENT_PLAY, action.timestamp,
        player_index=action.player_index,
        card=card.id,
        trick_index=len(state.completed_tricks),
    )

    trick_size = NUM_SEATS - 1 if state.is_loner else NUM_SEATS
    if len(state.current_trick) < trick_size:
        state.current_player_index = _next_active_seat(state, action.player_index)
        return state

    lead_suit = get_lead_suit(state.current_trick, state.trump)
    winner_id = determine_winner(state.current_trick, state.trump, lead_suit)
    winner_index = state.player_index(winner_id)
    state.tricks_won[winner_id] = state.tricks_won.get(winner_id, 0) + 1
    state.players = record_trick(state.players, state.current_trick, winner_index)
    state.current_player_index = winner_index
    state.phase = PHASE_WAITING_FOR_TRICK
    state.add_log(f"{_seat_name(state, winner_index)} took the trick", rules.log_limit)
    return state


def _clear_trick(state: GameState, action: a.ClearTrickAction, rules: RuleConfig) -> GameState:
    _require_phase(state, PHASE_WAITING_FOR_TRICK)
    state.completed_tricks = state.completed_tricks + [state.current_trick]
    state.current_trick = []

    if state.tricks_played >= TRICKS_PER_HAND:
        points = compute_hand_points(state)
        summary = hand_summary(state, points)
        state.overlay_message = summary
        state.overlay_acknowledged = {}
        state.phase = PHASE_SCORING
        state.add_log(summary, rules.log_limit)
        return state

    state.phase = PHASE_PLAYING
    if state.current_player_index == state.sitting_out_index:
        state.current_player_index = _next_active_seat(state, state.current_player_index)
    return state


def _finish_hand(state: GameState, action: a.FinishHandAction, rules: RuleConfig) -> GameState:
    _require_phase(state, PHASE_SCORING)
    points = compute_hand_points(state)
    t1_tricks, t2_tricks = team_tricks(state)
    winning_team = 1 if points['team1'] > points['team2'] else 2

    result = HandResult(
        dealer_index=state.dealer_index,
        trump=state.trump,
        trump_caller_index=state.trump_caller_index,
        tricks_won={'team1': t1_tricks, 'team2': t2_tricks},
        points_scored=dict(points),
        winning_team=winning_team,
        is_loner=state.is_loner,
        timestamp=action.timestamp,
    )
    state.scores = {
        'team1': state.scores['team1'] + points['team1'],
        'team2': state.scores['team2'] + points['team2'],
    }
    state.history = [result] + state.history[:rules.history_limit - 1]
    state.add_event(
        EVENT_HAND_RESULT, action.timestamp,
        hand_number=state.hands_played + 1,
        trump=state.trump,
        caller_index=state.trump_caller_index,
        is_loner=state.is_loner,
        tricks={'team1': t1_tricks, 'team2': t2_tricks},
        points=dict(points),
        scores=dict(state.scores),
    )
    state.players = record_hand(state, points, t1_tricks, t2_tricks)

    state.hands_played += 1
    state.dealer_index = (state.dealer_index + 1) % NUM_SEATS
    state.current_player_index = state.dealer_index
    state.trump = None
    state.is_loner = False
    state.overlay_acknowledged = {}

    winner_key = next(
        (key for key in ('team1', 'team2') if state.scores[key] >= rules.winning_score),
        None,
    )
    if winner_key is not None:
        state.phase = PHASE_GAME_OVER
        state.overlay_message = GAME_OVER_MESSAGE
        state.add_event(
            EVENT_GAME_OVER, action.timestamp,
            winning_team=int(winner_key[-1]),
            team_name=state.team_names[winner_key],
            scores=dict(state.scores),
        )
        state.add_log(f"{state.team_names[winner_key]} win the game!", rules.log_limit)
        logger.info(f"Table {state.table_code}: game over, {state.team_names[winner_key]} won {state.scores}")
    else:
        state.phase = PHASE_WAITING_FOR_NEXT_DEAL
        state.overlay_message = None
    return state


def _force_next_player(state: GameState, action: a.ForceNextPlayerAction, rules: RuleConfig) -> GameState:
    _require_phase(state, PHASE_PLAYING)
    seat = action.next_player_index
    if seat == state.sitting_out_index:
        seat = _next_active_seat(state, seat)
    state.current_player_index = seat
    state.add_log(f"Turn moved to {_seat_name(state, seat)}", rules.log_limit)
    return state


def _acknowledge_overlay(state: GameState, action: a.AcknowledgeOverlayAction, rules: RuleConfig) -> GameState:
    if state.overlay_message is None:
        raise GameError(ERROR_WRONG_PHASE, "Nothing to acknowledge")
    state.overlay_acknowledged = {**state.overlay_acknowledged, action.player_name: True}
    return state


def _clear_overlay(state: GameState, action: a.ClearOverlayAction, rules: RuleConfig) -> GameState:
    state.overlay_message = None
    state.overlay_acknowledged = {}
    return state


def _add_log(state: GameState, action: a.AddLogAction, rules: RuleConfig) -> GameState:
    state.add_log(action.message, rules.log_limit)
    return state


ACTION_HANDLERS: Dict[type, Callable[[GameState, a.BaseAction, RuleConfig], GameState]] = {
    a.LoginAction: _login,
    a.LogoutAction: _logout,
    a.CreateTableAction: _create_table,
    a.JoinTableAction: _join_table,
    a.LoadExistingGameAction: _load_existing_game,
    a.ExitToLandingAction: _exit_to_landing,
    a.SitPlayerAction: _sit_player,
    a.AddBotAction: _add_bot,
    a.RemovePlayerAction: _remove_player,
    a.AutofillBotsAction: _autofill_bots,
    a.StartMatchAction: _start_match,
    a.LoadGlobalStatsAction: _load_global_stats,
    a.SetDealerAction: _set_dealer,
    a.DealHandAction: _deal_hand,
    a.MakeBidAction: _make_bid,
    a.PassBidAction: _pass_bid,
    a.DiscardCardAction: _discard_card,
    a.PlayCardAction: _play_card,
    a.ClearTrickAction: _clear_trick,
    a.FinishHandAction: _finish_hand,
    a.ForceNextPlayerAction: _force_next_player,
    a.AcknowledgeOverlayAction: _acknowledge_overlay,
    a.ClearOverlayAction: _clear_overlay,
    a.AddLogAction: _add_log,
}


def apply_action(state: GameState, action: a.BaseAction, rules: RuleConfig = default_rules) -> ActionResult:
    """
    Apply an action to a game state.

    Args:
        state: Current state (never mutated)
        action: Parsed action
        rules: Table rules

    Returns:
        ActionResult holding the new state, or the unchanged state and an error
    """
    handler = ACTION_HANDLERS.get(type(action))
    if handler is None:
        logger.debug(f"Ignoring unknown action {type(action).__name__}")
        return ActionResult.ok(state)

    new_state = copy.deepcopy(state)
    try:
        new_state = handler(new_state, action, rules)
    except GameError as e:
        logger.warning(f"Rejected {getattr(action, 'type', '?')} in {state.phase}: {e.message}")
        return ActionResult.error(state, e.code, e.message)
    except Exception as e:
        logger.exception(f"Reducer failed on {getattr(action, 'type', '?')}")
        return ActionResult.error(state, ERROR_INTERNAL, str(e))

    new_state.last_active = max(state.last_active, action.timestamp)
    new_state.version = state.version
    new_state.increment_version()
    return ActionResult.ok(new_state)


def reduce(state: GameState, action: a.BaseAction, rules: RuleConfig = default_rules) -> GameState:
    """Next state for an action; illegal actions leave the state as it was."""
    return apply_action(state, action, rules).state
