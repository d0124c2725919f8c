"""Game models and data structures"""

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

from .constants import (
    NUM_SEATS, PHASE_LOGIN, RANKS, SUITS, WELCOME_LOG, card_id, partner_of,
)


@dataclass(frozen=True)
class Card:
    suit: str
    rank: str
    id: str = ''

    def __post_init__(self) -> None:
        if self.suit not in SUITS:
            raise ValueError(f"Unknown suit: {self.suit}")
        if self.rank not in RANKS:
            raise ValueError(f"Unknown rank: {self.rank}")
        if not self.id:
            object.__setattr__(self, 'id', card_id(self.rank, self.suit))

    def __str__(self) -> str:
        return self.id


@dataclass
class BotPersonality:
    aggressiveness: int = 5  # 1-10
    risk_tolerance: int = 5  # 1-10
    consistency: int = 5  # 1-10
    archetype: str = 'Balanced'


@dataclass
class PlayerStats:
    games_won: int = 0
    games_played: int = 0
    hands_won: int = 0
    hands_played: int = 0
    tricks_played: int = 0
    tricks_taken: int = 0  # Individual won trick
    tricks_won_team: int = 0  # Team won trick
    calls_made: int = 0
    calls_won: int = 0
    loners_attempted: int = 0
    loners_converted: int = 0
    euchres_made: int = 0  # Euchred opponent
    euchred: int = 0  # Been euchred
    sweeps: int = 0  # Team took all 5
    swept: int = 0  # Opponent took all 5

    @classmethod
    def counter_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]


@dataclass
class Player:
    id: str
    name: Optional[str] = None  # None if seat is empty
    is_computer: bool = False
    hand: List[Card] = field(default_factory=list)
    stats: PlayerStats = field(default_factory=PlayerStats)
    personality: Optional[BotPersonality] = None


@dataclass
class TrickPlay:
    player_id: str
    card: Card


@dataclass
class HandResult:
    dealer_index: int
    trump: str
    trump_caller_index: int
    tricks_won: Dict[str, int]
    points_scored: Dict[str, int]
    winning_team: int  # 1 or 2
    is_loner: bool
    timestamp: float


@dataclass
class GameEvent:
    type: str  # dealer|bid|pass|play|hand_result|game_over
    timestamp: float
    data: Dict[str, Any] = field(default_factory=dict)


def create_empty_player(index: int) -> Player:
    return Player(id=f"player-{index}")


@dataclass
class GameState:
    table_id: Optional[str] = None
    table_name: Optional[str] = None
    table_code: Optional[str] = None
    current_view_player_name: Optional[str] = None
    current_user: Optional[str] = None
    phase: str = PHASE_LOGIN  # login|landing|lobby|randomizing_dealer|bidding|discard|playing|waiting_for_trick|scoring|waiting_for_next_deal|game_over
    players: List[Player] = field(default_factory=lambda: [create_empty_player(i) for i in range(NUM_SEATS)])
    current_player_index: int = -1
    dealer_index: int = -1
    upcard: Optional[Card] = None  # The card turned up at start
    kitty: List[Card] = field(default_factory=list)  # Hidden remainder of the kitty
    discards: List[Card] = field(default_factory=list)
    bidding_round: int = 1  # Round 1: bid upcard suit, Round 2: bid any other suit
    turned_down_suit: Optional[str] = None
    trump: Optional[str] = None
    trump_caller_index: Optional[int] = None
    is_loner: bool = False
    current_trick: List[TrickPlay] = field(default_factory=list)
    completed_tricks: List[List[TrickPlay]] = field(default_factory=list)
    tricks_won: Dict[str, int] = field(default_factory=lambda: {f"player-{i}": 0 for i in range(NUM_SEATS)})
    hands_played: int = 0
    scores: Dict[str, int] = field(default_factory=lambda: {'team1': 0, 'team2': 0})
    team_names: Dict[str, str] = field(default_factory=lambda: {'team1': 'Team A', 'team2': 'Team B'})
    history: List[HandResult] = field(default_factory=list)  # Most recent first
    event_log: List[GameEvent] = field(default_factory=list)  # Normalized event history
    logs: List[str] = field(default_factory=lambda: [WELCOME_LOG])
    overlay_message: Optional[str] = None
    overlay_acknowledged: Dict[str, bool] = field(default_factory=dict)
    global_stats: Dict[str, PlayerStats] = field(default_factory=dict)  # lifetime totals by name
    last_active: float = 0.0
    version: int = 0

    def player_index(self, player_id: str) -> int:
        for i, player in enumerate(self.players):
            if player.id == player_id:
                return i
        raise ValueError(f"Unknown player id: {player_id}")

    @property
    def current_player(self) -> Optional[Player]:
        if 0 <= self.current_player_index < len(self.players):
            return self.players[self.current_player_index]
        return None

    @property
    def sitting_out_index(self) -> Optional[int]:
        """Seat of the lone caller's partner, who sits the hand out."""
        if self.is_loner and self.trump_caller_index is not None:
            return partner_of(self.trump_caller_index)
        return None

    @property
    def lead_card(self) -> Optional[Card]:
        return self.current_trick[0].card if self.current_trick else None

    @property
    def tricks_played(self) -> int:
        return sum(self.tricks_won.values())

    def increment_version(self) -> None:
        self.version += 1

    def add_log(self, message: str, limit: int = 50) -> None:
        self.logs = [message] + self.logs[:limit - 1]

    def add_event(self, event_type: str, timestamp: float, **data) -> None:
        self.event_log.append(GameEvent(type=event_type, timestamp=timestamp, data=data))

    def human_names(self) -> List[str]:
        return [p.name for p in self.players if p.name and not p.is_computer]
