"""
Reducer action models.

Every state transition is one of these actions. They travel over the table's
broadcast channel as JSON, so each carries its own timestamp and every random
choice (table code, deal) is made when the action is built, never inside the
reducer.
"""

import random
import time
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator

from .constants import NUM_SEATS, RANKS, SUITS, TABLE_NAME_ADJECTIVES, TABLE_NAME_NOUNS
from .models import Card


def generate_table_code() -> str:
    part1 = random.randint(100, 999)
    part2 = random.randint(100, 999)
    return f"{part1}-{part2}"


def generate_table_name() -> str:
    return f"The {random.choice(TABLE_NAME_ADJECTIVES)} {random.choice(TABLE_NAME_NOUNS)}"


def generate_table_id() -> str:
    return ''.join(random.choice('abcdefghijklmnopqrstuvwxyz0123456789') for _ in range(9))


class CardPayload(BaseModel):
    """A card on the wire."""
    suit: str
    rank: str

    @field_validator('suit')
    @classmethod
    def validate_suit(cls, v):
        if v not in SUITS:
            raise ValueError(f'Unknown suit: {v}')
        return v

    @field_validator('rank')
    @classmethod
    def validate_rank(cls, v):
        if v not in RANKS:
            raise ValueError(f'Unknown rank: {v}')
        return v

    @classmethod
    def from_card(cls, card: Card) -> 'CardPayload':
        return cls(suit=card.suit, rank=card.rank)

    def to_card(self) -> Card:
        return Card(suit=self.suit, rank=self.rank)


class BaseAction(BaseModel):
    """Base action model."""
    timestamp: float = Field(default_factory=time.time)


class LoginAction(BaseAction):
    type: Literal['LOGIN'] = 'LOGIN'
    user_name: str = Field(..., min_length=1, max_length=30)


class LogoutAction(BaseAction):
    type: Literal['LOGOUT'] = 'LOGOUT'


class CreateTableAction(BaseAction):
    type: Literal['CREATE_TABLE'] = 'CREATE_TABLE'
    user_name: str = Field(..., min_length=1, max_length=30)
    table_id: str = Field(default_factory=generate_table_id)
    table_code: str = Field(default_factory=generate_table_code)
    table_name: str = Field(default_factory=generate_table_name)


class JoinTableAction(BaseAction):
    type: Literal['JOIN_TABLE'] = 'JOIN_TABLE'
    code: str = Field(..., min_length=1, max_length=20)
    user_name: str = Field(..., min_length=1, max_length=30)


class LoadExistingGameAction(BaseAction):
    type: Literal['LOAD_EXISTING_GAME'] = 'LOAD_EXISTING_GAME'
    game_state: Dict[str, Any]


class ExitToLandingAction(BaseAction):
    type: Literal['EXIT_TO_LANDING'] = 'EXIT_TO_LANDING'


class SitPlayerAction(BaseAction):
    type: Literal['SIT_PLAYER'] = 'SIT_PLAYER'
    seat_index: int = Field(..., ge=0, lt=NUM_SEATS)
    name: str = Field(..., min_length=1, max_length=30)


class AddBotAction(BaseAction):
    type: Literal['ADD_BOT'] = 'ADD_BOT'
    seat_index: int = Field(..., ge=0, lt=NUM_SEATS)
    bot_name: Optional[str] = None


class RemovePlayerAction(BaseAction):
    type: Literal['REMOVE_PLAYER'] = 'REMOVE_PLAYER'
    seat_index: int = Field(..., ge=0, lt=NUM_SEATS)


class AutofillBotsAction(BaseAction):
    type: Literal['AUTOFILL_BOTS'] = 'AUTOFILL_BOTS'


class StartMatchAction(BaseAction):
    type: Literal['START_MATCH'] = 'START_MATCH'


class LoadGlobalStatsAction(BaseAction):
    type: Literal['LOAD_GLOBAL_STATS'] = 'LOAD_GLOBAL_STATS'
    stats: Dict[str, Dict[str, int]]


class SetDealerAction(BaseAction):
    """Pick the dealer and deal. Missing or malformed deals are replaced by a local deal."""
    type: Literal['SET_DEALER'] = 'SET_DEALER'
    dealer_index: Optional[int] = None
    hands: Optional[List[List[CardPayload]]] = None
    kitty: Optional[List[CardPayload]] = None


class DealHandAction(BaseAction):
    """Deal the next hand after a finished one."""
    type: Literal['DEAL_HAND'] = 'DEAL_HAND'
    hands: Optional[List[List[CardPayload]]] = None
    kitty: Optional[List[CardPayload]] = None


class MakeBidAction(BaseAction):
    type: Literal['MAKE_BID'] = 'MAKE_BID'
    suit: str
    caller_index: int = Field(..., ge=0, lt=NUM_SEATS)
    is_loner: bool = False
    reasoning: Optional[str] = None

    @field_validator('suit')
    @classmethod
    def validate_suit(cls, v):
        if v not in SUITS:
            raise ValueError(f'Unknown suit: {v}')
        return v


class PassBidAction(BaseAction):
    type: Literal['PASS_BID'] = 'PASS_BID'
    player_index: int = Field(..., ge=0, lt=NUM_SEATS)


class DiscardCardAction(BaseAction):
    type: Literal['DISCARD_CARD'] = 'DISCARD_CARD'
    player_index: int = Field(..., ge=0, lt=NUM_SEATS)
    card_id: str


class PlayCardAction(BaseAction):
    type: Literal['PLAY_CARD'] = 'PLAY_CARD'
    player_index: int = Field(..., ge=0, lt=NUM_SEATS)
    card_id: str


class ClearTrickAction(BaseAction):
    type: Literal['CLEAR_TRICK'] = 'CLEAR_TRICK'


class FinishHandAction(BaseAction):
    type: Literal['FINISH_HAND'] = 'FINISH_HAND'


class ForceNextPlayerAction(BaseAction):
    type: Literal['FORCE_NEXT_PLAYER'] = 'FORCE_NEXT_PLAYER'
    next_player_index: int = Field(..., ge=0, lt=NUM_SEATS)


class AcknowledgeOverlayAction(BaseAction):
    type: Literal['ACKNOWLEDGE_OVERLAY'] = 'ACKNOWLEDGE_OVERLAY'
    player_name: str


class ClearOverlayAction(BaseAction):
    type: Literal['CLEAR_OVERLAY'] = 'CLEAR_OVERLAY'


class AddLogAction(BaseAction):
    type: Literal['ADD_LOG'] = 'ADD_LOG'
    message: str = Field(..., min_length=1, max_length=200)


# Union type for all actions
Action = Annotated[
    Union[
        LoginAction,
        LogoutAction,
        CreateTableAction,
        JoinTableAction,
        LoadExistingGameAction,
        ExitToLandingAction,
        SitPlayerAction,
        AddBotAction,
        RemovePlayerAction,
        AutofillBotsAction,
        StartMatchAction,
        LoadGlobalStatsAction,
        SetDealerAction,
        DealHandAction,
        MakeBidAction,
        PassBidAction,
        DiscardCardAction,
        PlayCardAction,
        ClearTrickAction,
        FinishHandAction,
        ForceNextPlayerAction,
        AcknowledgeOverlayAction,
        ClearOverlayAction,
        AddLogAction,
    ],
    Field(discriminator='type'),
]

_action_adapter = TypeAdapter(Action)


def parse_action(data: Dict[str, Any]) -> BaseAction:
    """
    Parse raw action data into the matching action model.

    Raises:
        ValueError: If the action type is unknown or the payload is malformed
    """
    if not data.get("type"):
        raise ValueError("Missing action type")
    try:
        return _action_adapter.validate_python(data)
    except Exception as e:
        raise ValueError(f"Invalid action data: {str(e)}")


def deal_payload(hands: List[List[Card]], kitty: List[Card]) -> Dict[str, Any]:
    """Build the hands/kitty fields of SET_DEALER or DEAL_HAND from dealt cards."""
    return {
        'hands': [[CardPayload.from_card(c) for c in hand] for hand in hands],
        'kitty': [CardPayload.from_card(c) for c in kitty],
    }
