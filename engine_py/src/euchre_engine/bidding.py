"""
Bid evaluation: hand strength, calling thresholds and best-suit selection.

Strength is scored per candidate trump suit:

- right bower 3.0, left bower 2.5, trump Ace 2.0, trump King 1.0, other trump 0.5
- off-suit Ace 1.0
- 0.8 for each non-trump suit the hand is void in (the left bower is trump, so
  it never fills its face suit)

A bot calls when strength clears ``7.0 + (5 - aggressiveness) * 0.4`` minus one
positional discount (dealer 0.5, assist 1.0, next call 1.5). When several
discounts apply only the last one computed is used.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from .comparator import card_color, get_effective_suit, is_left_bower, is_right_bower
from .constants import NUM_SEATS, SUITS, partner_of
from .models import Card

BASE_THRESHOLD = 7.0
AGGRESSIVENESS_STEP = 0.4
DEALER_DISCOUNT = 0.5
ASSIST_DISCOUNT = 1.0
NEXT_CALL_DISCOUNT = 1.5
MIN_TRUMP_CARDS = 2
POWERHOUSE_STRENGTH = 8.5

RIGHT_BOWER_POINTS = 3.0
LEFT_BOWER_POINTS = 2.5
TRUMP_ACE_POINTS = 2.0
TRUMP_KING_POINTS = 1.0
TRUMP_OTHER_POINTS = 0.5
OFF_ACE_POINTS = 1.0
VOID_POINTS = 0.8


@dataclass
class BidEvaluation:
    suit: str
    strength: float
    threshold: float
    trump_count: int
    should_call: bool
    reasoning: str


@dataclass
class SeatPosition:
    is_dealer: bool = False
    is_assist: bool = False
    is_first_bidder: bool = False


def seat_position(seat: int, dealer_index: int) -> SeatPosition:
    """Where a seat sits relative to the dealer."""
    return SeatPosition(
        is_dealer=seat == dealer_index,
        is_assist=seat == partner_of(dealer_index),
        is_first_bidder=seat == (dealer_index + 1) % NUM_SEATS,
    )


def count_trump(hand: Sequence[Card], trump: str) -> int:
    """Number of trump cards, bowers included."""
    return sum(1 for c in hand if get_effective_suit(c, trump) == trump)


def count_bowers(hand: Sequence[Card], trump: str) -> int:
    return sum(1 for c in hand if is_right_bower(c, trump) or is_left_bower(c, trump))


def hand_strength(hand: Sequence[Card], trump: str) -> float:
    strength = 0.0
    for card in hand:
        if is_right_bower(card, trump):
            strength += RIGHT_BOWER_POINTS
        elif is_left_bower(card, trump):
            strength += LEFT_BOWER_POINTS
        elif card.suit == trump:
            if card.rank == 'A':
                strength += TRUMP_ACE_POINTS
            elif card.rank == 'K':
                strength += TRUMP_KING_POINTS
            else:
                strength += TRUMP_OTHER_POINTS
        elif card.rank == 'A':
            strength += OFF_ACE_POINTS

    held_suits = {get_effective_suit(c, trump) for c in hand}
    for suit in SUITS:
        if suit != trump and suit not in held_suits:
            strength += VOID_POINTS
    return strength


def is_next_call(suit: str, turned_down_suit: Optional[str]) -> bool:
    """Calling the same colour as the turned-down upcard ("next")."""
    return (
        turned_down_suit is not None
        and suit != turned_down_suit
        and card_color(suit) == card_color(turned_down_suit)
    )


def call_threshold(
    aggressiveness: int = 5,
    is_dealer: bool = False,
    is_assist: bool = False,
    next_call: bool = False,
) -> float:
    """Strength needed to call; a single positional discount applies, the last one computed wins."""
    base = BASE_THRESHOLD + (5 - aggressiveness) * AGGRESSIVENESS_STEP
    discount = 0.0
    if is_dealer:
        discount = DEALER_DISCOUNT
    if is_assist:
        discount = ASSIST_DISCOUNT
    if next_call:
        discount = NEXT_CALL_DISCOUNT
    return base - discount


def evaluate_bid(
    hand: Sequence[Card],
    suit: str,
    aggressiveness: int = 5,
    is_dealer: bool = False,
    is_assist: bool = False,
    next_call: bool = False,
) -> BidEvaluation:
    strength = hand_strength(hand, suit)
    threshold = call_threshold(aggressiveness, is_dealer, is_assist, next_call)
    trump_count = count_trump(hand, suit)
    has_right = any(is_right_bower(c, suit) for c in hand)

    should_call = strength >= threshold
    notes: List[str] = [f"{suit}: strength {strength:.1f} vs threshold {threshold:.1f}"]
    if is_dealer:
        notes.append("dealer")
    if is_assist:
        notes.append("assist")
    if next_call:
        notes.append("next call")
    notes.append(f"{trump_count} trump")

    if should_call and trump_count < MIN_TRUMP_CARDS:
        if has_right and strength >= POWERHOUSE_STRENGTH:
            notes.append("powerhouse override")
        else:
            should_call = False
            notes.append("too few trump")

    notes.append("CALL" if should_call else "PASS")
    return BidEvaluation(
        suit=suit,
        strength=strength,
        threshold=threshold,
        trump_count=trump_count,
        should_call=should_call,
        reasoning=", ".join(notes),
    )


def should_call_trump(
    hand: Sequence[Card],
    suit: str,
    aggressiveness: int = 5,
    is_dealer: bool = False,
    is_assist: bool = False,
    next_call: bool = False,
) -> bool:
    return evaluate_bid(hand, suit, aggressiveness, is_dealer, is_assist, next_call).should_call


def get_best_bid(
    hand: Sequence[Card],
    excluded_suit: Optional[str] = None,
    aggressiveness: int = 5,
    position: Optional[SeatPosition] = None,
    turned_down_suit: Optional[str] = None,
) -> Optional[BidEvaluation]:
    """
    Evaluate every suit and return the strongest one that clears its threshold.

    Args:
        hand: Cards held
        excluded_suit: Suit that may not be named (the turned-down upcard in round 2)
        aggressiveness: Bot aggressiveness 1-10
        position: Seat relative to the dealer
        turned_down_suit: Suit of the turned-down upcard, enables the next-call discount

    Returns:
        The winning BidEvaluation, or None for no call
    """
    position = position or SeatPosition()
    best: Optional[BidEvaluation] = None
    for suit in SUITS:
        if suit == excluded_suit:
            continue
        next_call = position.is_first_bidder and is_next_call(suit, turned_down_suit)
        evaluation = evaluate_bid(
            hand, suit, aggressiveness,
            is_dealer=position.is_dealer,
            is_assist=position.is_assist,
            next_call=next_call,
        )
        if not evaluation.should_call:
            continue
        if best is None or evaluation.strength > best.strength:
            best = evaluation
    return best
