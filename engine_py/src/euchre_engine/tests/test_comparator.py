"""
Tests for card ranking, legality and trick winners under trump.
"""

from euchre_engine.comparator import (
    current_winner, determine_winner, get_card_value, get_effective_suit,
    get_valid_cards, is_left_bower, is_right_bower, is_valid_play, same_color_suit,
    sort_hand,
)
from euchre_engine.models import Card, TrickPlay


def card(rank, suit):
    return Card(suit=suit, rank=rank)


def test_bowers():
    """Right bower is the trump Jack, left bower the Jack of the same colour."""
    assert is_right_bower(card('J', 'hearts'), 'hearts')
    assert is_left_bower(card('J', 'diamonds'), 'hearts')
    assert not is_left_bower(card('J', 'clubs'), 'hearts')
    assert not is_left_bower(card('J', 'hearts'), 'hearts')
    assert same_color_suit('spades') == 'clubs'


def test_left_bower_counts_as_trump():
    """The left bower follows trump, not its face suit."""
    assert get_effective_suit(card('J', 'diamonds'), 'hearts') == 'hearts'
    assert get_effective_suit(card('Q', 'diamonds'), 'hearts') == 'diamonds'
    assert get_effective_suit(card('J', 'diamonds'), None) == 'diamonds'


def test_card_values():
    """Right 1000, left 900, trump rank+500, lead rank+100, otherwise the rank."""
    assert get_card_value(card('J', 'hearts'), 'hearts', 'clubs') == 1000
    assert get_card_value(card('J', 'diamonds'), 'hearts', 'clubs') == 900
    assert get_card_value(card('A', 'hearts'), 'hearts', 'clubs') == 514
    assert get_card_value(card('K', 'clubs'), 'hearts', 'clubs') == 113
    assert get_card_value(card('A', 'spades'), 'hearts', 'clubs') == 14
    assert get_card_value(card('K', 'clubs'), None, 'clubs') == 113


def test_must_follow_effective_suit():
    """A hand holding the lead suit must follow it; the left bower does not count as its face suit."""
    hand = [card('J', 'diamonds'), card('9', 'diamonds'), card('A', 'spades')]
    # Diamonds led, hearts trump: the J of diamonds is trump, the 9 must be played
    assert is_valid_play(card('9', 'diamonds'), hand, 'diamonds', 'hearts')
    assert not is_valid_play(card('J', 'diamonds'), hand, 'diamonds', 'hearts')
    assert not is_valid_play(card('A', 'spades'), hand, 'diamonds', 'hearts')
    # Trump led: the left bower follows
    assert is_valid_play(card('J', 'diamonds'), hand, 'hearts', 'hearts')
    assert is_valid_play(card('A', 'spades'), [card('A', 'spades')], 'hearts', 'hearts')
    # Leading: anything goes
    assert is_valid_play(card('A', 'spades'), hand, None, 'hearts')


def test_get_valid_cards_when_void():
    """A hand void in the lead suit may play anything."""
    hand = [card('A', 'spades'), card('K', 'clubs')]
    trick = [TrickPlay('player-0', card('9', 'hearts'))]
    assert get_valid_cards(hand, trick, 'diamonds') == hand


def test_left_bower_beats_trump_ace():
    trick = [
        TrickPlay('player-0', card('A', 'hearts')),
        TrickPlay('player-1', card('J', 'diamonds')),
        TrickPlay('player-2', card('K', 'hearts')),
        TrickPlay('player-3', card('9', 'hearts')),
    ]
    assert determine_winner(trick, 'hearts', 'hearts') == 'player-1'


def test_lowest_trump_beats_lead_ace():
    """Any trump beats the lead suit; off-suit cards never win."""
    trick = [
        TrickPlay('player-0', card('A', 'clubs')),
        TrickPlay('player-1', card('A', 'spades')),
        TrickPlay('player-2', card('9', 'hearts')),
        TrickPlay('player-3', card('K', 'clubs')),
    ]
    assert determine_winner(trick, 'hearts', 'clubs') == 'player-2'


def test_current_winner_of_partial_trick():
    trick = [
        TrickPlay('player-0', card('10', 'clubs')),
        TrickPlay('player-1', card('Q', 'clubs')),
    ]
    assert current_winner(trick, 'hearts').player_id == 'player-1'
    assert current_winner([], 'hearts') is None


def test_sort_hand_puts_trump_first():
    """Trump first with bowers on top, then spades, hearts, clubs, diamonds."""
    hand = [
        card('9', 'spades'), card('A', 'clubs'), card('J', 'diamonds'),
        card('J', 'hearts'), card('K', 'hearts'),
    ]
    assert [c.id for c in sort_hand(hand, 'hearts')] == [
        'J-hearts', 'J-diamonds', 'K-hearts', '9-spades', 'A-clubs',
    ]
