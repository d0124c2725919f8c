"""
Heuristic bot implementation.
"""

import logging
from collections import Counter
from typing import List, Optional

from .base import BaseBot
from ..actions import BaseAction
from ..bidding import evaluate_bid, get_best_bid, seat_position
from ..comparator import (
    current_winner, get_card_value, get_effective_suit, get_valid_cards, is_trump,
)
from ..constants import (
    NUM_SEATS, PHASE_BIDDING, PHASE_DISCARD, PHASE_PLAYING, RANK_VALUES,
    TRUMP_BONUS,
)
from ..models import Card, GameState

logger = logging.getLogger(__name__)

# Trump below the King is too weak to spend drawing out opposing trump
STRONG_TRUMP_VALUE = TRUMP_BONUS + RANK_VALUES['K']
WEAK_LEAD_RANK = RANK_VALUES['Q']


class HeuristicBot(BaseBot):
    """
    Bot that bids on hand strength and plays with table-position heuristics.

    Strategy:
    - Round 1: order up the upcard when the hand clears the calling threshold
    - Round 2: name the strongest other suit that clears its threshold
    - Discard the lowest-ranked card
    - Makers lead strong trump, then off-suit Aces
    - Second hand low, sluff under a winning partner, otherwise win as cheaply as possible
    """

    def choose_action(self, state: GameState, timestamp: Optional[float] = None) -> Optional[BaseAction]:
        if not self.is_my_turn(state):
            return None

        if state.phase == PHASE_BIDDING:
            return self._choose_bid(state, timestamp)
        if state.phase == PHASE_DISCARD:
            return self.discard(self.choose_discard(state), timestamp)
        if state.phase == PHASE_PLAYING:
            return self.play(self.choose_card(state), timestamp)
        return None

    def _choose_bid(self, state: GameState, timestamp: Optional[float]) -> BaseAction:
        hand = self.get_player_hand(state)
        position = seat_position(self.seat_index, state.dealer_index)

        if state.bidding_round == 1:
            evaluation = evaluate_bid(
                hand, state.upcard.suit, self.aggressiveness,
                is_dealer=position.is_dealer,
                is_assist=position.is_assist,
            )
            logger.debug(f"Seat {self.seat_index} round 1: {evaluation.reasoning}")
            if evaluation.should_call:
                return self.bid(evaluation.suit, evaluation.reasoning, timestamp)
            return self.pass_bid(timestamp)

        best = get_best_bid(
            hand,
            excluded_suit=state.turned_down_suit,
            aggressiveness=self.aggressiveness,
            position=position,
            turned_down_suit=state.turned_down_suit,
        )
        if best is not None:
            logger.debug(f"Seat {self.seat_index} round 2: {best.reasoning}")
            return self.bid(best.suit, best.reasoning, timestamp)
        return self.pass_bid(timestamp)

    def choose_discard(self, state: GameState) -> Card:
        """Lowest card by rank alone."""
        return min(self.get_player_hand(state), key=lambda c: RANK_VALUES[c.rank])

    def choose_card(self, state: GameState) -> Card:
        valid = self.get_valid_cards(state)
        if not valid:
            # Stale state; the caller replaces this with a legal card
            return self.get_player_hand(state)[0]

        if not state.current_trick:
            return self._choose_lead(state, valid)

        lead_suit = self.lead_suit(state)

        def value(card: Card) -> int:
            return get_card_value(card, state.trump, lead_suit)

        if len(state.current_trick) == 1 and self._second_hand_low(state, valid):
            return min(valid, key=value)

        if self.partner_is_winning(state):
            return min(valid, key=value)

        best = current_winner(state.current_trick, state.trump)
        high = get_card_value(best.card, state.trump, lead_suit)
        winners = [c for c in valid if value(c) > high]
        if winners:
            return min(winners, key=value)

        return self._throw_off(state, valid)

    def _choose_lead(self, state: GameState, valid: List[Card]) -> Card:
        trump = state.trump

        def value(card: Card) -> int:
            return get_card_value(card, trump, None)

        if self.is_maker(state):
            trumps = [c for c in valid if is_trump(c, trump)]
            if trumps:
                best_trump = max(trumps, key=value)
                if value(best_trump) >= STRONG_TRUMP_VALUE:
                    return best_trump

        aces = [c for c in valid if c.rank == 'A' and not is_trump(c, trump)]
        if aces:
            return aces[0]

        sits_before_maker = (
            state.trump_caller_index is not None
            and not self.is_maker(state)
            and (self.seat_index + 1) % NUM_SEATS == state.trump_caller_index
        )
        if sits_before_maker:
            off_suit = [c for c in valid if not is_trump(c, trump)]
            if off_suit:
                return min(off_suit, key=value)

        return max(valid, key=value)

    def _second_hand_low(self, state: GameState, valid: List[Card]) -> bool:
        """Defenders following a weak non-trump lead keep their high cards."""
        if self.is_maker(state):
            return False
        lead = state.lead_card
        if is_trump(lead, state.trump) or RANK_VALUES[lead.rank] > WEAK_LEAD_RANK:
            return False
        lead_suit = self.lead_suit(state)
        return any(get_effective_suit(c, state.trump) == lead_suit for c in valid)

    def _throw_off(self, state: GameState, valid: List[Card]) -> Card:
        """Can't win: shed from the longest suit, lowest rank first."""
        hand = self.get_player_hand(state)
        suit_counts = Counter(get_effective_suit(c, state.trump) for c in hand)
        return min(
            valid,
            key=lambda c: (-suit_counts[get_effective_suit(c, state.trump)], RANK_VALUES[c.rank]),
        )


def create_bot(state: GameState, seat_index: int, default_aggressiveness: int = 5) -> HeuristicBot:
    """Bot for a seat, using the seated player's personality when it has one."""
    personality = state.players[seat_index].personality
    aggressiveness = personality.aggressiveness if personality else default_aggressiveness
    return HeuristicBot(seat_index, aggressiveness)


def fallback_action(state: GameState, seat_index: int, timestamp: Optional[float] = None) -> Optional[BaseAction]:
    """The simplest legal move for a seat: pass, drop the lowest card, or play the first legal card."""
    bot = HeuristicBot(seat_index)
    hand = bot.get_player_hand(state)
    if state.phase == PHASE_BIDDING:
        return bot.pass_bid(timestamp)
    if state.phase == PHASE_DISCARD and hand:
        return bot.discard(bot.choose_discard(state), timestamp)
    if state.phase == PHASE_PLAYING and hand:
        valid = get_valid_cards(hand, state.current_trick, state.trump)
        return bot.play(valid[0] if valid else hand[0], timestamp)
    return None


def safe_bot_action(
    state: GameState,
    seat_index: int,
    default_aggressiveness: int = 5,
    timestamp: Optional[float] = None,
) -> Optional[BaseAction]:
    """
    The bot's chosen action, replaced by ``fallback_action`` if move selection
    fails or picks a card that is not legal in the current state.
    """
    bot = create_bot(state, seat_index, default_aggressiveness)
    try:
        action = bot.choose_action(state, timestamp)
    except Exception:
        logger.exception(f"Bot at seat {seat_index} failed in {state.phase}, using fallback move")
        return fallback_action(state, seat_index, timestamp)

    card_id = getattr(action, 'card_id', None)
    if card_id is not None:
        hand = bot.get_player_hand(state)
        legal = hand if state.phase == PHASE_DISCARD else bot.get_valid_cards(state)
        if card_id not in [c.id for c in legal]:
            logger.warning(f"Bot at seat {seat_index} chose unplayable card {card_id}, using fallback move")
            return fallback_action(state, seat_index, timestamp)
    return action
