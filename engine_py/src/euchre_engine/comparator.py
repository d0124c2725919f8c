"""
Card ranking under trump: bowers, effective suit, legal play and trick winners.
"""

from typing import List, Optional, Sequence

from .constants import (
    LEAD_BONUS, LEFT_BOWER_VALUE, RANK_VALUES, RIGHT_BOWER_VALUE,
    SUIT_COLORS, SUIT_SORT_ORDER, TRUMP_BONUS,
)
from .models import Card, TrickPlay


def card_color(suit: str) -> str:
    return SUIT_COLORS[suit]


def same_color_suit(suit: str) -> str:
    """The other suit of the same colour (the left bower's face suit)."""
    for other, color in SUIT_COLORS.items():
        if other != suit and color == SUIT_COLORS[suit]:
            return other
    raise ValueError(f"Invalid suit: {suit}")


def is_right_bower(card: Card, trump: Optional[str]) -> bool:
    return trump is not None and card.rank == 'J' and card.suit == trump


def is_left_bower(card: Card, trump: Optional[str]) -> bool:
    return (
        trump is not None
        and card.rank == 'J'
        and card.suit != trump
        and card_color(card.suit) == card_color(trump)
    )


def get_effective_suit(card: Card, trump: Optional[str]) -> str:
    """The suit a card follows: the left bower counts as trump."""
    if is_left_bower(card, trump):
        return trump
    return card.suit


def is_trump(card: Card, trump: Optional[str]) -> bool:
    return trump is not None and get_effective_suit(card, trump) == trump


def get_card_value(card: Card, trump: Optional[str], lead_suit: Optional[str]) -> int:
    """
    Value of a card in a trick.

    Right bower 1000, left bower 900, other trump rank+500, lead suit rank+100,
    anything else the bare rank value.
    """
    rank_value = RANK_VALUES[card.rank]

    if not trump:
        if lead_suit and card.suit == lead_suit:
            return rank_value + LEAD_BONUS
        return rank_value

    if is_right_bower(card, trump):
        return RIGHT_BOWER_VALUE
    if is_left_bower(card, trump):
        return LEFT_BOWER_VALUE
    if card.suit == trump:
        return rank_value + TRUMP_BONUS
    if lead_suit and card.suit == lead_suit:
        return rank_value + LEAD_BONUS
    return rank_value


def is_valid_play(card: Card, hand: Sequence[Card], lead_suit: Optional[str], trump: Optional[str]) -> bool:
    """A card is legal if it follows the (effective) lead suit or the hand cannot follow."""
    if not lead_suit:
        return True

    if get_effective_suit(card, trump) == lead_suit:
        return True

    return not any(get_effective_suit(c, trump) == lead_suit for c in hand)


def get_lead_suit(trick: Sequence[TrickPlay], trump: Optional[str]) -> Optional[str]:
    if not trick:
        return None
    return get_effective_suit(trick[0].card, trump)


def get_valid_cards(hand: Sequence[Card], trick: Sequence[TrickPlay], trump: Optional[str]) -> List[Card]:
    lead_suit = get_lead_suit(trick, trump)
    return [c for c in hand if is_valid_play(c, hand, lead_suit, trump)]


def determine_winner(trick: Sequence[TrickPlay], trump: str, lead_suit: str) -> str:
    """Return the player id owning the highest-valued card of the trick."""
    if not trick:
        raise ValueError("Cannot determine winner of an empty trick")
    best = max(trick, key=lambda play: get_card_value(play.card, trump, lead_suit))
    return best.player_id


def current_winner(trick: Sequence[TrickPlay], trump: Optional[str]) -> Optional[TrickPlay]:
    """The play currently holding a partially played trick."""
    if not trick:
        return None
    lead_suit = get_lead_suit(trick, trump)
    return max(trick, key=lambda play: get_card_value(play.card, trump, lead_suit))


def sort_hand(hand: Sequence[Card], trump: Optional[str]) -> List[Card]:
    """Trump first (bowers on top), then spades, hearts, clubs, diamonds; high to low."""
    def sort_key(card: Card):
        suit = get_effective_suit(card, trump)
        suit_rank = -1 if trump and suit == trump else SUIT_SORT_ORDER[suit]
        return suit_rank, -get_card_value(card, trump, None)

    return sorted(hand, key=sort_key)
