"""
Table session: owns one table's state and drives everything that is not a
player decision.

Every change goes through ``dispatch``, which applies the action with the
reducer, persists and broadcasts the new state, and then reschedules the
single pending timer. The timer is keyed on the state version it was armed
for, so a timer that fires after the state moved on does nothing. Timers cover
bot moves, clearing a finished trick, finishing an acknowledged hand and
dealing the next one. A separate heartbeat task watches for stalls and applies
the freeze detector's remedies, at most ``max_recovery_attempts`` times for
the same stall.
"""

import asyncio
import logging
import random
import time
from typing import Awaitable, Callable, List, Optional

from .actions import (
    BaseAction, ClearTrickAction, DealHandAction, FinishHandAction,
    LoadGlobalStatsAction, SetDealerAction, deal_payload,
)
from .bots.heuristic import safe_bot_action
from .constants import (
    NUM_SEATS, PHASE_BIDDING, PHASE_DISCARD, PHASE_GAME_OVER, PHASE_PLAYING,
    PHASE_RANDOMIZING_DEALER, PHASE_SCORING, PHASE_WAITING_FOR_NEXT_DEAL,
    PHASE_WAITING_FOR_TRICK,
)
from .engine import ActionResult, apply_action, create_game
from .heartbeat import (
    HeartbeatSnapshot, Recovery, build_recovery_action, create_heartbeat_snapshot,
    detect_freeze, diagnose_game_state,
)
from .models import GameState
from .rules import RuleConfig, default_rules
from .shuffle import deal_for_table
from .stats import game_stat_deltas, stats_as_dict
from .store import (
    FreezeIncident, FreezeIncidentLog, GameStore, MemoryFreezeIncidentLog,
    MemoryGameStore, MemoryStatSink, StatSink,
)

logger = logging.getLogger(__name__)

StateListener = Callable[[GameState], Awaitable[None]]

BOT_PHASES = [PHASE_BIDDING, PHASE_DISCARD, PHASE_PLAYING]
WATCHED_PHASES = [
    PHASE_BIDDING, PHASE_DISCARD, PHASE_PLAYING, PHASE_WAITING_FOR_TRICK,
    PHASE_SCORING, PHASE_WAITING_FOR_NEXT_DEAL,
]


class TableSession:
    """One live table."""

    def __init__(
        self,
        state: Optional[GameState] = None,
        rules: RuleConfig = default_rules,
        store: Optional[GameStore] = None,
        stat_sink: Optional[StatSink] = None,
        incident_log: Optional[FreezeIncidentLog] = None,
        clock: Callable[[], float] = time.time,
        seed: Optional[int] = None,
    ):
        self.state = state or create_game()
        self.rules = rules
        self.store = store or MemoryGameStore()
        self.stat_sink = stat_sink or MemoryStatSink()
        self.incident_log = incident_log or MemoryFreezeIncidentLog()
        self.clock = clock
        self._rng = random.Random(seed)
        self._listeners: List[StateListener] = []
        self._lock = asyncio.Lock()
        self._timer: Optional[asyncio.Task] = None
        self._heartbeat_task: Optional[asyncio.Task] = None
        self._last_snapshot: Optional[HeartbeatSnapshot] = None
        self._recovery_attempts = 0
        self._gave_up = False

    @property
    def table_code(self) -> Optional[str]:
        return self.state.table_code

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a coroutine called with every new state. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def dispatch(self, action: BaseAction) -> ActionResult:
        """Apply an action and, if it was accepted, persist, broadcast and reschedule."""
        async with self._lock:
            previous = self.state
            result = apply_action(previous, action, self.rules)
            if not result.success:
                logger.debug(f"Table {self.table_code}: {action.type} rejected ({result.error_code})")
                return result
            self.state = result.state
            await self._persist(previous)

        await self._broadcast()
        self._schedule()
        return result

    async def refresh_global_stats(self) -> None:
        """Load lifetime totals from the stat sink into the table state."""
        totals = await self.stat_sink.load_all()
        if totals:
            stats = {name: stats_as_dict(s) for name, s in totals.items()}
            await self.dispatch(LoadGlobalStatsAction(stats=stats, timestamp=self.clock()))

    async def _persist(self, previous: GameState) -> None:
        state = self.state
        if not state.table_code:
            return
        if state.phase == PHASE_GAME_OVER:
            if previous.phase != PHASE_GAME_OVER:
                await self._finish_game(state)
            return
        try:
            await self.store.save(state)
        except Exception:
            logger.exception(f"Table {state.table_code}: failed to save game")

    async def _finish_game(self, state: GameState) -> None:
        deltas = game_stat_deltas(state, self.rules.winning_score)
        try:
            await self.stat_sink.accumulate(deltas)
            await self.store.delete(state.table_code)
        except Exception:
            logger.exception(f"Table {state.table_code}: failed to record finished game")
        logger.info(f"Table {state.table_code}: game over {state.scores}")

    async def _broadcast(self) -> None:
        state = self.state
        for listener in list(self._listeners):
            try:
                await listener(state)
            except Exception as e:
                logger.error(f"Table {self.table_code}: listener failed: {e}")

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    def _schedule(self) -> None:
        """Arm the one timer the current state needs, replacing any older one."""
        self._cancel_timer()
        state = self.state
        delay_and_builder = self._next_automatic_step(state)
        if delay_and_builder is None:
            return
        delay, builder = delay_and_builder
        self._timer = asyncio.create_task(self._run_timer(delay, state.version, builder))

    def _next_automatic_step(self, state: GameState):
        phase = state.phase
        rules = self.rules

        if phase in BOT_PHASES:
            seat = state.dealer_index if phase == PHASE_DISCARD else state.current_player_index
            player = state.players[seat] if 0 <= seat < NUM_SEATS else None
            if player is not None and player.is_computer:
                return rules.bot_think_seconds, lambda s: self._bot_move(s, seat)
            return None

        if phase == PHASE_WAITING_FOR_TRICK:
            return rules.trick_clear_seconds, lambda s: ClearTrickAction(timestamp=self.clock())

        if phase == PHASE_SCORING:
            waiting = [n for n in state.human_names() if not state.overlay_acknowledged.get(n)]
            if waiting:
                return None
            return rules.scoring_ack_seconds, lambda s: FinishHandAction(timestamp=self.clock())

        if phase == PHASE_WAITING_FOR_NEXT_DEAL:
            return rules.next_deal_seconds, lambda s: DealHandAction(
                timestamp=self.clock(), **deal_payload(*self._deal())
            )

        if phase == PHASE_RANDOMIZING_DEALER:
            return rules.next_deal_seconds, lambda s: SetDealerAction(
                timestamp=self.clock(),
                dealer_index=self._rng.randrange(NUM_SEATS),
                **deal_payload(*self._deal()),
            )
        return None

    def _deal(self):
        return deal_for_table(self._rng.randrange(2 ** 32))

    def _bot_move(self, state: GameState, seat: int) -> Optional[BaseAction]:
        action = safe_bot_action(state, seat, self.rules.default_aggressiveness, timestamp=self.clock())
        if action is not None:
            logger.info(f"🤖 {state.players[seat].name} ({seat}): {action.type}")
        return action

    async def _run_timer(self, delay: float, version: int, builder) -> None:
        await asyncio.sleep(delay)
        if self.state.version != version:
            return
        # Detach first so the dispatch below does not cancel this task
        self._timer = None
        action = builder(self.state)
        if action is not None:
            await self.dispatch(action)

    # ------------------------------------------------------------------
    # Heartbeat
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the heartbeat watchdog and arm the timer for the current state."""
        if self._heartbeat_task is None or self._heartbeat_task.done():
            self._heartbeat_task = asyncio.create_task(self._heartbeat_loop())
        self._schedule()

    async def close(self) -> None:
        self._cancel_timer()
        if self._heartbeat_task is not None:
            self._heartbeat_task.cancel()
            try:
                await self._heartbeat_task
            except asyncio.CancelledError:
                pass
            self._heartbeat_task = None

    async def _heartbeat_loop(self) -> None:
        while True:
            await asyncio.sleep(self.rules.heartbeat_interval_seconds)
            try:
                await self.check_heartbeat()
            except Exception:
                logger.exception(f"Table {self.table_code}: heartbeat check failed")

    async def check_heartbeat(self, now: Optional[float] = None) -> Optional[Recovery]:
        """
        Take a snapshot and apply a remedy if the table is frozen.

        Returns:
            The remedy that was applied, or None
        """
        now = self.clock() if now is None else now
        state = self.state
        if state.phase not in WATCHED_PHASES:
            self._last_snapshot = None
            return None

        snapshot = create_heartbeat_snapshot(state, now)
        previous, self._last_snapshot = self._last_snapshot, snapshot
        if previous is not None and previous.version != snapshot.version:
            self._recovery_attempts = 0
            self._gave_up = False

        recovery = detect_freeze(snapshot, previous, now, self.rules.freeze_threshold_seconds)
        if recovery is None:
            return None

        if self._recovery_attempts >= self.rules.max_recovery_attempts:
            if not self._gave_up:
                self._gave_up = True
                logger.error(
                    f"Table {self.table_code}: giving up on {recovery.type} after "
                    f"{self._recovery_attempts} attempts\n{diagnose_game_state(state, now)}"
                )
                await self._record_incident(snapshot, recovery, now, None, False)
            return None

        self._recovery_attempts += 1
        action = build_recovery_action(recovery, state, self.rules.default_aggressiveness, timestamp=now)
        recovered = False
        if action is not None:
            result = await self.dispatch(action)
            recovered = result.success
        logger.warning(
            f"Table {self.table_code}: {recovery.reason} "
            f"(attempt {self._recovery_attempts}, {'recovered' if recovered else 'no effect'})"
        )
        await self._record_incident(snapshot, recovery, now, action.type if action else None, recovered)
        return recovery

    async def _record_incident(
        self,
        snapshot: HeartbeatSnapshot,
        recovery: Recovery,
        now: float,
        action_type: Optional[str],
        recovered: bool,
    ) -> None:
        incident = FreezeIncident(
            game_code=self.table_code,
            freeze_type=recovery.type,
            phase=snapshot.phase,
            current_player_index=snapshot.current_player_index,
            is_bot=snapshot.current_player_is_bot,
            time_since_active=now - snapshot.last_active,
            recovery_action=action_type,
            recovered=recovered,
            timestamp=now,
        )
        try:
            await self.incident_log.record(incident)
        except Exception:
            logger.exception(f"Table {self.table_code}: failed to record freeze incident")
