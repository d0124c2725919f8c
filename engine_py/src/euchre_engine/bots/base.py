"""
Base bot interface and utilities.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..actions import BaseAction, DiscardCardAction, MakeBidAction, PassBidAction, PlayCardAction
from ..comparator import current_winner, get_lead_suit, get_valid_cards
from ..constants import PHASE_BIDDING, PHASE_DISCARD, PHASE_PLAYING, partner_of, team_of
from ..models import Card, GameState


class BaseBot(ABC):
    """Abstract base class for computer players. A bot is bound to one seat."""

    def __init__(self, seat_index: int, aggressiveness: int = 5):
        self.seat_index = seat_index
        self.aggressiveness = aggressiveness

    @abstractmethod
    def choose_action(self, state: GameState, timestamp: Optional[float] = None) -> Optional[BaseAction]:
        """
        Choose an action based on the current game state.

        Args:
            state: Current game state
            timestamp: Timestamp to stamp on the action (defaults to now)

        Returns:
            Reducer action to dispatch, or None if the bot has nothing to do
        """
        pass

    def _stamp(self, timestamp: Optional[float]) -> Dict[str, Any]:
        return {} if timestamp is None else {'timestamp': timestamp}

    def bid(self, suit: str, reasoning: str, timestamp: Optional[float] = None) -> MakeBidAction:
        # Bots never go alone
        return MakeBidAction(
            suit=suit, caller_index=self.seat_index, is_loner=False,
            reasoning=reasoning, **self._stamp(timestamp),
        )

    def pass_bid(self, timestamp: Optional[float] = None) -> PassBidAction:
        return PassBidAction(player_index=self.seat_index, **self._stamp(timestamp))

    def discard(self, card: Card, timestamp: Optional[float] = None) -> DiscardCardAction:
        return DiscardCardAction(player_index=self.seat_index, card_id=card.id, **self._stamp(timestamp))

    def play(self, card: Card, timestamp: Optional[float] = None) -> PlayCardAction:
        return PlayCardAction(player_index=self.seat_index, card_id=card.id, **self._stamp(timestamp))

    def get_player_hand(self, state: GameState) -> List[Card]:
        """Get this bot's current hand."""
        return state.players[self.seat_index].hand

    def is_my_turn(self, state: GameState) -> bool:
        """Check if it's this bot's turn."""
        if state.phase == PHASE_DISCARD:
            return state.dealer_index == self.seat_index
        return state.phase in (PHASE_BIDDING, PHASE_PLAYING) and state.current_player_index == self.seat_index

    def get_valid_cards(self, state: GameState) -> List[Card]:
        return get_valid_cards(self.get_player_hand(state), state.current_trick, state.trump)

    def lead_suit(self, state: GameState) -> Optional[str]:
        return get_lead_suit(state.current_trick, state.trump)

    def is_maker(self, state: GameState) -> bool:
        """Whether this bot's team called trump."""
        return (
            state.trump_caller_index is not None
            and team_of(self.seat_index) == team_of(state.trump_caller_index)
        )

    def partner_is_winning(self, state: GameState) -> bool:
        best = current_winner(state.current_trick, state.trump)
        if best is None:
            return False
        return state.player_index(best.player_id) == partner_of(self.seat_index)
