"""
WebSocket event models and validation.
"""

import time
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """Inbound event types."""
    JOIN = "join"
    ACTION = "action"
    REQUEST_STATE = "request_state"


class OutboundEventType(str, Enum):
    """Outbound event types."""
    JOIN_SUCCESS = "join_success"
    STATE_FULL = "state_full"
    ERROR = "error"


class ErrorCode(str, Enum):
    """Error codes for client events."""
    INVALID_EVENT = "INVALID_EVENT"
    TABLE_NOT_FOUND = "TABLE_NOT_FOUND"
    ACTION_REJECTED = "ACTION_REJECTED"
    INTERNAL = "INTERNAL"


# Inbound event models

class BaseEvent(BaseModel):
    """Base event model."""
    type: EventType


class JoinEvent(BaseEvent):
    """Identify the connection; the name decides whose hand is visible."""
    type: EventType = EventType.JOIN
    name: str = Field(..., min_length=1, max_length=30)


class ActionEvent(BaseEvent):
    """A reducer action to dispatch at the table."""
    type: EventType = EventType.ACTION
    action: Dict[str, Any]


class RequestStateEvent(BaseEvent):
    """Request full state event."""
    type: EventType = EventType.REQUEST_STATE


InboundEvent = Union[JoinEvent, ActionEvent, RequestStateEvent]


# Outbound event models

class JoinSuccessEvent(BaseModel):
    type: OutboundEventType = OutboundEventType.JOIN_SUCCESS
    table_code: str
    name: str
    timestamp: float


class StateFullEvent(BaseModel):
    type: OutboundEventType = OutboundEventType.STATE_FULL
    state: Dict[str, Any]
    timestamp: float


class ErrorEvent(BaseModel):
    type: OutboundEventType = OutboundEventType.ERROR
    code: ErrorCode
    message: str
    detail: Optional[str] = None  # reducer error code for rejected actions
    timestamp: float


def parse_inbound_event(data: Dict[str, Any]) -> InboundEvent:
    """
    Parse raw event data into appropriate event model.

    Args:
        data: Raw event data from WebSocket

    Returns:
        Parsed event model

    Raises:
        ValueError: If event type is invalid or data is malformed
    """
    event_type = data.get("type")
    if not event_type:
        raise ValueError("Missing event type")

    try:
        event_type = EventType(event_type)
    except ValueError:
        raise ValueError(f"Invalid event type: {event_type}")

    event_map = {
        EventType.JOIN: JoinEvent,
        EventType.ACTION: ActionEvent,
        EventType.REQUEST_STATE: RequestStateEvent,
    }

    try:
        return event_map[event_type](**data)
    except Exception as e:
        raise ValueError(f"Invalid event data: {str(e)}")


def create_error_event(code: ErrorCode, message: str, detail: Optional[str] = None) -> ErrorEvent:
    return ErrorEvent(code=code, message=message, detail=detail, timestamp=time.time())


def create_join_success_event(table_code: str, name: str) -> JoinSuccessEvent:
    return JoinSuccessEvent(table_code=table_code, name=name, timestamp=time.time())


def create_state_full_event(state: Dict[str, Any]) -> StateFullEvent:
    return StateFullEvent(state=state, timestamp=time.time())
