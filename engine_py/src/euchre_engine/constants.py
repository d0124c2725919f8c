"""Game constants and utilities"""

from typing import Dict, List

SUITS = ['hearts', 'diamonds', 'clubs', 'spades']
RANKS = ['9', '10', 'J', 'Q', 'K', 'A']

RANK_VALUES: Dict[str, int] = {
    '9': 9,
    '10': 10,
    'J': 11,
    'Q': 12,
    'K': 13,
    'A': 14,
}

SUIT_COLORS: Dict[str, str] = {
    'hearts': 'red',
    'diamonds': 'red',
    'clubs': 'black',
    'spades': 'black',
}

# Display order for hand sorting (trump always goes first)
SUIT_SORT_ORDER: Dict[str, int] = {
    'spades': 0,
    'hearts': 1,
    'clubs': 2,
    'diamonds': 3,
}

SUIT_SYMBOLS: Dict[str, str] = {
    'hearts': '♥',
    'diamonds': '♦',
    'clubs': '♣',
    'spades': '♠',
}

DECK_SIZE = 24
HAND_SIZE = 5
NUM_SEATS = 4
TRICKS_PER_HAND = 5

# Card values under trump
RIGHT_BOWER_VALUE = 1000
LEFT_BOWER_VALUE = 900
TRUMP_BONUS = 500
LEAD_BONUS = 100

# Game phases
PHASE_LOGIN = 'login'
PHASE_LANDING = 'landing'
PHASE_LOBBY = 'lobby'
PHASE_RANDOMIZING_DEALER = 'randomizing_dealer'
PHASE_BIDDING = 'bidding'
PHASE_DISCARD = 'discard'
PHASE_PLAYING = 'playing'
PHASE_WAITING_FOR_TRICK = 'waiting_for_trick'
PHASE_SCORING = 'scoring'
PHASE_WAITING_FOR_NEXT_DEAL = 'waiting_for_next_deal'
PHASE_GAME_OVER = 'game_over'

TRUMP_PHASES = [PHASE_DISCARD, PHASE_PLAYING, PHASE_WAITING_FOR_TRICK, PHASE_SCORING]

# Event log entry types
EVENT_DEALER = 'dealer'
EVENT_BID = 'bid'
EVENT_PASS = 'pass'
EVENT_PLAY = 'play'
EVENT_HAND_RESULT = 'hand_result'
EVENT_GAME_OVER = 'game_over'

# Error codes
ERROR_NOT_YOUR_TURN = 'NOT_YOUR_TURN'
ERROR_WRONG_PHASE = 'WRONG_PHASE'
ERROR_CARD_NOT_IN_HAND = 'CARD_NOT_IN_HAND'
ERROR_MUST_FOLLOW_SUIT = 'MUST_FOLLOW_SUIT'
ERROR_INVALID_BID = 'INVALID_BID'
ERROR_SEAT_TAKEN = 'SEAT_TAKEN'
ERROR_INVALID_SEAT = 'INVALID_SEAT'
ERROR_TABLE_NOT_READY = 'TABLE_NOT_READY'
ERROR_DECK_SIZE = 'DECK_SIZE'
ERROR_NO_BOTS_AVAILABLE = 'NO_BOTS_AVAILABLE'
ERROR_INTERNAL = 'INTERNAL_ERROR'

# Bot roster: name -> archetype
BOT_NAMES_POOL: List[str] = ['Josh', 'Jake', 'Jordan', 'Brien', 'Michael', 'Evan']

BOT_ARCHETYPES: Dict[str, Dict] = {
    'Josh': {'archetype': 'Gambler', 'aggressiveness': 8, 'risk_tolerance': 8, 'consistency': 4},
    'Jake': {'archetype': 'Rock', 'aggressiveness': 3, 'risk_tolerance': 3, 'consistency': 8},
    'Jordan': {'archetype': 'Balanced', 'aggressiveness': 5, 'risk_tolerance': 5, 'consistency': 6},
    'Brien': {'archetype': 'Caller', 'aggressiveness': 7, 'risk_tolerance': 6, 'consistency': 5},
    'Michael': {'archetype': 'Professor', 'aggressiveness': 5, 'risk_tolerance': 4, 'consistency': 9},
    'Evan': {'archetype': 'Wildcard', 'aggressiveness': 6, 'risk_tolerance': 9, 'consistency': 2},
}

TABLE_NAME_ADJECTIVES = ['Midnight', 'Emerald', 'Golden', 'Royal', 'Crimson', 'Azure', 'Silent', 'Dancing']
TABLE_NAME_NOUNS = ['Bower', 'Trump', 'Dealer', 'Ace', 'Table', 'Lounge', 'Deck', 'Circle']

WELCOME_LOG = 'Welcome to Euchre. Create or join a table to begin.'
GAME_OVER_MESSAGE = 'GAME OVER!'


def card_id(rank: str, suit: str) -> str:
    return f"{rank}-{suit}"


def partner_of(seat: int) -> int:
    return (seat + 2) % NUM_SEATS


def team_of(seat: int) -> int:
    """Seats 0 & 2 are team 1, seats 1 & 3 are team 2."""
    return 1 if seat % 2 == 0 else 2
