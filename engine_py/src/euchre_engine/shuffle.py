"""
Card shuffling and dealing utilities.
"""

import logging
import random
from typing import List, Optional, Sequence, Tuple, Union

from .constants import DECK_SIZE, HAND_SIZE, NUM_SEATS, RANKS, SUITS
from .errors import DeckSizeError
from .models import Card

logger = logging.getLogger(__name__)


def create_deck() -> List[Card]:
    """Create the 24-card euchre deck (9 through Ace in four suits)."""
    deck = []
    for suit in SUITS:
        for rank in RANKS:
            deck.append(Card(suit=suit, rank=rank))
    logger.debug(f"Created new deck with {len(deck)} cards.")
    return deck


def shuffle_deck(deck: List[Card], seed: Optional[Union[int, str]] = None) -> List[Card]:
    """
    Shuffle a deck deterministically if seed is provided.

    Args:
        deck: Cards to shuffle (left untouched)
        seed: Optional seed for deterministic shuffling

    Returns:
        Shuffled copy of the deck
    """
    deck_copy = deck.copy()

    if seed is not None:
        rng = random.Random(seed)
        rng.shuffle(deck_copy)
    else:
        random.shuffle(deck_copy)

    return deck_copy


def deal_hands(deck: List[Card]) -> Tuple[List[List[Card]], List[Card]]:
    """
    Deal 5 cards to each of 4 hands round-robin; the last 4 cards form the kitty.

    Args:
        deck: A full 24-card deck

    Returns:
        Tuple of (hands, kitty); kitty[0] is the upcard

    Raises:
        DeckSizeError: If the deck does not hold exactly 24 cards
    """
    if len(deck) != DECK_SIZE:
        logger.error(f"Attempted to deal with an invalid deck size: {len(deck)}")
        raise DeckSizeError(len(deck))

    hands: List[List[Card]] = [[] for _ in range(NUM_SEATS)]
    card_index = 0
    for _ in range(HAND_SIZE):
        for seat in range(NUM_SEATS):
            hands[seat].append(deck[card_index])
            card_index += 1

    kitty = deck[card_index:]
    logger.info(f"Dealt {NUM_SEATS} hands of {HAND_SIZE} cards. Kitty has {len(kitty)} cards.")
    return hands, kitty


def is_valid_deal(hands: Optional[Sequence[Sequence[Card]]], kitty: Optional[Sequence[Card]]) -> bool:
    """Check that a supplied deal has 4 hands of 5, a kitty with an upcard, and 24 distinct cards."""
    if not hands or not kitty:
        return False
    if len(hands) != NUM_SEATS or any(len(hand) != HAND_SIZE for hand in hands):
        return False
    if len(kitty) != DECK_SIZE - NUM_SEATS * HAND_SIZE:
        return False
    ids = [card.id for hand in hands for card in hand] + [card.id for card in kitty]
    return len(set(ids)) == DECK_SIZE


def deal_for_table(seed: Union[int, str, None] = None) -> Tuple[List[List[Card]], List[Card]]:
    """Shuffle a fresh deck and deal it."""
    return deal_hands(shuffle_deck(create_deck(), seed))
