"""
Persistence seams: active games, lifetime stats and freeze incidents.

The session only talks to these interfaces. The in-memory versions back the
server by default and are what the tests use; a database-backed store plugs in
by subclassing.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional

from .models import GameState, PlayerStats
from .serialization import dumps, loads
from .stats import add_stats

logger = logging.getLogger(__name__)


@dataclass
class FreezeIncident:
    game_code: Optional[str]
    freeze_type: str
    phase: str
    current_player_index: int
    is_bot: bool
    time_since_active: float  # seconds
    recovery_action: Optional[str]
    recovered: bool
    timestamp: float


class GameStore(ABC):
    """Active games keyed by table code."""

    @abstractmethod
    async def save(self, state: GameState) -> None:
        pass

    @abstractmethod
    async def load(self, table_code: str) -> Optional[GameState]:
        pass

    @abstractmethod
    async def delete(self, table_code: str) -> None:
        pass


class StatSink(ABC):
    """Lifetime stats keyed by player name."""

    @abstractmethod
    async def accumulate(self, deltas: Dict[str, PlayerStats]) -> None:
        pass

    @abstractmethod
    async def load_all(self) -> Dict[str, PlayerStats]:
        pass


class FreezeIncidentLog(ABC):
    @abstractmethod
    async def record(self, incident: FreezeIncident) -> None:
        pass


class MemoryGameStore(GameStore):
    """Keeps serialized snapshots so a loaded game never aliases the live one."""

    def __init__(self):
        self._games: Dict[str, bytes] = {}

    async def save(self, state: GameState) -> None:
        if not state.table_code:
            return
        self._games[state.table_code] = dumps(state)

    async def load(self, table_code: str) -> Optional[GameState]:
        raw = self._games.get(table_code)
        return loads(raw) if raw is not None else None

    async def delete(self, table_code: str) -> None:
        self._games.pop(table_code, None)

    def codes(self) -> List[str]:
        return list(self._games)


class MemoryStatSink(StatSink):
    def __init__(self):
        self.totals: Dict[str, PlayerStats] = {}

    async def accumulate(self, deltas: Dict[str, PlayerStats]) -> None:
        for name, delta in deltas.items():
            self.totals[name] = add_stats(self.totals.get(name, PlayerStats()), delta)
        logger.info(f"Accumulated stats for {', '.join(sorted(deltas))}")

    async def load_all(self) -> Dict[str, PlayerStats]:
        return dict(self.totals)


class MemoryFreezeIncidentLog(FreezeIncidentLog):
    def __init__(self):
        self.incidents: List[FreezeIncident] = []

    async def record(self, incident: FreezeIncident) -> None:
        self.incidents.append(incident)
