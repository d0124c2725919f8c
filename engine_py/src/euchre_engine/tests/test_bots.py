"""
Tests for the heuristic bot's bidding, discarding and card play.
"""

from euchre_engine.actions import DiscardCardAction, MakeBidAction, PassBidAction, PlayCardAction
from euchre_engine.bots.heuristic import HeuristicBot, create_bot, fallback_action, safe_bot_action
from euchre_engine.models import BotPersonality, GameState, Player, TrickPlay
from euchre_engine.tests.tables import cards


def table(phase='playing', trump='spades', caller=0, dealer=3, current=0, hands=None, trick=()):
    """A four-bot table with the given hands and the current trick as (seat, card id) pairs."""
    hands = hands or {}
    state = GameState(phase=phase, trump=trump, trump_caller_index=caller, dealer_index=dealer)
    state.players = [
        Player(id=f"player-{i}", name=f"Bot{i}", is_computer=True, hand=cards(*hands.get(i, ())))
        for i in range(4)
    ]
    state.current_trick = [
        TrickPlay(player_id=f"player-{seat}", card=cards(card_id)[0]) for seat, card_id in trick
    ]
    state.current_player_index = current
    return state


def test_bot_waits_for_its_turn():
    state = table(current=1, hands={0: ['A-hearts']})
    assert HeuristicBot(0).choose_action(state) is None


def test_round_one_orders_up_strong_hand():
    state = table(phase='bidding', trump=None, caller=None, hands={
        0: ['J-spades', 'J-clubs', 'A-spades', '9-hearts', '10-hearts'],
    })
    state.upcard = cards('10-spades')[0]
    action = HeuristicBot(0).choose_action(state, timestamp=5.0)
    assert isinstance(action, MakeBidAction)
    assert action.suit == 'spades'
    assert action.caller_index == 0
    assert action.is_loner is False
    assert action.timestamp == 5.0
    assert 'CALL' in action.reasoning


def test_round_one_passes_weak_hand():
    state = table(phase='bidding', trump=None, caller=None, hands={
        0: ['9-hearts', '10-diamonds', 'Q-clubs', 'K-diamonds', '9-clubs'],
    })
    state.upcard = cards('10-spades')[0]
    action = HeuristicBot(0).choose_action(state)
    assert isinstance(action, PassBidAction)
    assert action.player_index == 0


def test_round_two_names_best_other_suit():
    state = table(phase='bidding', trump=None, caller=None, hands={
        0: ['J-hearts', 'J-diamonds', 'A-hearts', '9-clubs', '10-clubs'],
    })
    state.bidding_round = 2
    state.turned_down_suit = 'spades'
    action = HeuristicBot(0).choose_action(state)
    assert isinstance(action, MakeBidAction)
    assert action.suit == 'hearts'


def test_dealer_discards_lowest_rank():
    state = table(phase='discard', dealer=3, current=3, hands={
        3: ['J-spades', 'A-hearts', '10-clubs', 'K-spades', 'Q-diamonds', '9-hearts'],
    })
    action = HeuristicBot(3).choose_action(state)
    assert isinstance(action, DiscardCardAction)
    assert action.card_id == '9-hearts'


def test_sluffs_low_under_winning_partner():
    state = table(current=3, hands={3: ['K-hearts', 'Q-hearts', 'A-clubs']}, trick=[
        (0, '9-hearts'), (1, 'A-hearts'), (2, '10-hearts'),
    ])
    assert HeuristicBot(3).choose_card(state).id == 'Q-hearts'


def test_wins_as_cheaply_as_possible():
    state = table(current=3, hands={3: ['A-hearts', 'K-hearts', '9-clubs']}, trick=[
        (0, '9-hearts'), (1, '10-hearts'), (2, 'Q-hearts'),
    ])
    assert HeuristicBot(3).choose_card(state).id == 'K-hearts'


def test_throws_off_from_longest_suit():
    state = table(current=2, hands={2: ['K-diamonds', 'Q-diamonds', '9-clubs']}, trick=[
        (0, '9-hearts'), (1, 'A-hearts'),
    ])
    assert HeuristicBot(2).choose_card(state).id == 'Q-diamonds'


def test_second_hand_low_on_weak_lead():
    """A defender right after a low non-trump lead keeps the Ace back."""
    state = table(current=1, hands={1: ['A-hearts', '9-hearts', 'K-clubs']}, trick=[
        (0, '10-hearts'),
    ])
    assert HeuristicBot(1).choose_card(state).id == '9-hearts'


def test_maker_leads_strong_trump():
    state = table(hands={0: ['9-hearts', 'J-spades', '9-spades', 'A-hearts']})
    assert HeuristicBot(0).choose_card(state).id == 'J-spades'


def test_maker_with_weak_trump_leads_off_ace():
    state = table(hands={0: ['9-spades', 'A-hearts', '10-clubs']})
    assert HeuristicBot(0).choose_card(state).id == 'A-hearts'


def test_defender_before_maker_leads_low():
    state = table(caller=0, current=3, hands={3: ['K-diamonds', '9-clubs', 'Q-spades']})
    assert HeuristicBot(3).choose_card(state).id == '9-clubs'


def test_create_bot_uses_personality():
    state = table()
    state.players[1].personality = BotPersonality(aggressiveness=8, archetype='Gambler')
    assert create_bot(state, 1).aggressiveness == 8
    assert create_bot(state, 2, default_aggressiveness=3).aggressiveness == 3


def test_fallback_action():
    bidding = table(phase='bidding', hands={0: ['9-hearts']})
    assert isinstance(fallback_action(bidding, 0), PassBidAction)

    playing = table(current=1, hands={1: ['A-clubs', '9-hearts', 'K-hearts']}, trick=[(0, '10-hearts')])
    action = fallback_action(playing, 1, timestamp=3.0)
    assert isinstance(action, PlayCardAction)
    assert action.card_id == '9-hearts'
    assert action.timestamp == 3.0


def test_safe_bot_action_recovers_from_crash(monkeypatch):
    def boom(self, state):
        raise RuntimeError("bad heuristic")

    monkeypatch.setattr(HeuristicBot, 'choose_card', boom)
    state = table(current=1, hands={1: ['A-clubs', 'K-hearts', '9-hearts']}, trick=[(0, '10-hearts')])
    action = safe_bot_action(state, 1)
    assert isinstance(action, PlayCardAction)
    assert action.card_id == 'K-hearts'


def test_safe_bot_action_replaces_illegal_card(monkeypatch):
    monkeypatch.setattr(HeuristicBot, 'choose_card', lambda self, state: self.get_player_hand(state)[0])
    state = table(current=1, hands={1: ['A-clubs', 'K-hearts', '9-hearts']}, trick=[(0, '10-hearts')])
    action = safe_bot_action(state, 1)
    assert action.card_id == 'K-hearts'
