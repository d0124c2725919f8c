"""
FastAPI WebSocket server for Euchre tables.

Each table code maps to one ``TableSession``. Clients connect to
``/ws/{table_code}``, identify themselves with a ``join`` event and then send
reducer actions wrapped in ``action`` events. Every accepted action is
broadcast as a full state, sanitized for each connection's viewer.
"""

import asyncio
import json
import logging
from collections import defaultdict
from typing import Dict, Optional, Set

import orjson
from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from ..actions import AutofillBotsAction, CreateTableAction, SitPlayerAction, parse_action
from ..constants import PHASE_GAME_OVER
from ..models import GameState
from ..rules import RuleConfig, default_rules
from ..serialization import sanitize_state
from ..session import TableSession
from ..stats import stats_as_dict
from ..store import MemoryFreezeIncidentLog, MemoryGameStore, MemoryStatSink
from .events import (
    ActionEvent, ErrorCode, JoinEvent, RequestStateEvent, create_error_event,
    create_join_success_event, create_state_full_event, parse_inbound_event,
)

logger = logging.getLogger(__name__)

# FastAPI app
app = FastAPI(title="Euchre Game Engine", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global state
rules: RuleConfig = default_rules
game_store = MemoryGameStore()
stat_sink = MemoryStatSink()
incident_log = MemoryFreezeIncidentLog()
sessions: Dict[str, TableSession] = {}
closing_tasks: Set[asyncio.Task] = set()
table_connections: Dict[str, Set[WebSocket]] = defaultdict(set)
connection_names: Dict[WebSocket, Optional[str]] = {}


class ConnectionManager:
    """Manages WebSocket connections and broadcasting."""

    def connect(self, websocket: WebSocket, table_code: str):
        table_connections[table_code].add(websocket)
        connection_names[websocket] = None

    def identify(self, websocket: WebSocket, name: str):
        connection_names[websocket] = name

    def disconnect(self, websocket: WebSocket, table_code: str):
        table_connections[table_code].discard(websocket)
        name = connection_names.pop(websocket, None)
        if not table_connections[table_code]:
            del table_connections[table_code]
        logger.info(f"{name or 'Anonymous'} disconnected from table {table_code}")

    async def send_state(self, websocket: WebSocket, state: GameState):
        viewer = connection_names.get(websocket)
        event = create_state_full_event(sanitize_state(state, viewer))
        await websocket.send_text(orjson.dumps(event.model_dump()).decode())

    async def broadcast_state(self, table_code: str, state: GameState):
        """Send each connection at the table its own view of the state."""
        for websocket in list(table_connections.get(table_code, ())):
            try:
                await self.send_state(websocket, state)
            except Exception as e:
                logger.error(f"Error broadcasting to table {table_code}: {e}")
                self.disconnect(websocket, table_code)


manager = ConnectionManager()


def _register(session: TableSession) -> TableSession:
    code = session.table_code

    async def on_state(state: GameState):
        if state.phase == PHASE_GAME_OVER and sessions.get(code) is session:
            _release(code)
        await manager.broadcast_state(code, state)

    session.subscribe(on_state)
    sessions[code] = session
    session.start()
    return session


def _release(table_code: str) -> None:
    """Forget a finished table and stop its timers and watchdog in the background."""
    session = sessions.pop(table_code)
    task = asyncio.create_task(session.close())
    closing_tasks.add(task)
    task.add_done_callback(closing_tasks.discard)
    logger.info(f"Table {table_code} finished, session released")


async def get_session(table_code: str) -> Optional[TableSession]:
    """Live session for a table, resuming a saved game if the table is not loaded."""
    session = sessions.get(table_code)
    if session is not None:
        return session
    saved = await game_store.load(table_code)
    if saved is None:
        return None
    logger.info(f"Resuming saved game {table_code} in phase {saved.phase}")
    return _register(TableSession(
        state=saved, rules=rules, store=game_store,
        stat_sink=stat_sink, incident_log=incident_log,
    ))


class CreateTableRequest(BaseModel):
    user_name: str = Field(..., min_length=1, max_length=30)
    seat_index: int = Field(default=0, ge=0, lt=4)
    fill_with_bots: bool = False


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "tables": len(sessions),
        "connections": sum(len(conns) for conns in table_connections.values()),
    }


@app.post("/tables")
async def create_table(request: CreateTableRequest):
    """Open a table, seat its creator and optionally fill the other seats with bots."""
    session = TableSession(rules=rules, store=game_store, stat_sink=stat_sink, incident_log=incident_log)
    await session.dispatch(CreateTableAction(user_name=request.user_name))
    _register(session)
    await session.dispatch(SitPlayerAction(seat_index=request.seat_index, name=request.user_name))
    if request.fill_with_bots:
        await session.dispatch(AutofillBotsAction())
    await session.refresh_global_stats()
    state = session.state
    logger.info(f"Table {state.table_code} created by {request.user_name}")
    return {"table_code": state.table_code, "table_id": state.table_id, "table_name": state.table_name}


@app.get("/tables/{table_code}")
async def get_table(table_code: str, viewer: Optional[str] = None):
    session = await get_session(table_code)
    if session is None:
        raise HTTPException(status_code=404, detail="Table not found")
    return sanitize_state(session.state, viewer)


@app.get("/stats")
async def get_stats():
    """Lifetime stats by player name."""
    totals = await stat_sink.load_all()
    return {name: stats_as_dict(s) for name, s in totals.items()}


@app.websocket("/ws/{table_code}")
async def websocket_endpoint(websocket: WebSocket, table_code: str):
    """Main WebSocket endpoint."""
    await websocket.accept()
    session = await get_session(table_code)
    if session is None:
        error_event = create_error_event(ErrorCode.TABLE_NOT_FOUND, f"No table {table_code}")
        await websocket.send_text(error_event.model_dump_json())
        await websocket.close()
        return

    manager.connect(websocket, table_code)
    logger.info(f"WebSocket connection accepted for table {table_code}")
    try:
        while True:
            raw_data = await websocket.receive_text()
            try:
                event = parse_inbound_event(json.loads(raw_data))
                await handle_event(websocket, session, event)
            except ValueError as e:
                error_event = create_error_event(ErrorCode.INVALID_EVENT, str(e))
                await websocket.send_text(error_event.model_dump_json())
            except WebSocketDisconnect:
                raise
            except Exception as e:
                logger.error(f"Error handling event: {e}")
                error_event = create_error_event(ErrorCode.INTERNAL, "Internal server error")
                await websocket.send_text(error_event.model_dump_json())
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected from table {table_code}")
    finally:
        manager.disconnect(websocket, table_code)


async def handle_event(websocket: WebSocket, session: TableSession, event) -> None:
    """Handle an inbound event."""
    if isinstance(event, JoinEvent):
        manager.identify(websocket, event.name)
        join_event = create_join_success_event(session.table_code, event.name)
        await websocket.send_text(join_event.model_dump_json())
        await manager.send_state(websocket, session.state)
    elif isinstance(event, ActionEvent):
        action = parse_action(event.action)
        result = await session.dispatch(action)
        if not result.success:
            error_event = create_error_event(
                ErrorCode.ACTION_REJECTED, result.error_message, detail=result.error_code
            )
            await websocket.send_text(error_event.model_dump_json())
    elif isinstance(event, RequestStateEvent):
        await manager.send_state(websocket, session.state)
    else:
        raise ValueError(f"Unhandled event type: {type(event)}")
