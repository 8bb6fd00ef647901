"""
WebSocket event models and validation.
"""

import time
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """Inbound event types."""
    START_MATCH = "start_match"
    READY = "ready"
    DRAW_DECK = "draw_deck"
    DRAW_DISCARD = "draw_discard"
    CARD_CLICK = "card_click"
    ACTION = "action"
    NEW_GAME = "new_game"


class OutboundEventType(str, Enum):
    """Outbound event types."""
    STATE = "state"
    ERROR = "error"


class ErrorCode(str, Enum):
    """Error codes for client events."""
    INVALID_EVENT = "INVALID_EVENT"
    INVALID_CONFIG = "INVALID_CONFIG"
    NO_MATCH = "NO_MATCH"
    ACTION_NOT_ALLOWED = "ACTION_NOT_ALLOWED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ActionName(str, Enum):
    """Button-style actions that take no card argument (or a single flag)."""
    CHOOSE_SWAP = "choose_swap"
    CANCEL_SWAP = "cancel_swap"
    DISCARD_DRAWN = "discard_drawn"
    USE_POWER = "use_power"
    ENTER_MATCH_MODE = "enter_match_mode"
    DONE_MATCHING = "done_matching"
    CONTINUE_AI = "continue_ai"
    SKIP_POWER = "skip_power"
    RESELECT_FIRST = "reselect_first"
    CONFIRM_SPY_SELECTION = "confirm_spy_selection"
    BACK_TO_SPY_SELECTION = "back_to_spy_selection"
    SPY_PEEK_OWN = "spy_peek_own"
    SPY_PEEK_OPPONENT = "spy_peek_opponent"
    SPY_SWAP = "spy_swap"
    SPY_KEEP = "spy_keep"
    END_TURN = "end_turn"
    CALL_CABO = "call_cabo"
    SHOW_SCORES = "show_scores"
    NEXT_ROUND = "next_round"


# Inbound event models
class BaseEvent(BaseModel):
    """Base event model."""
    type: EventType


class StartMatchEvent(BaseEvent):
    """Start a match against the computer."""
    type: EventType = EventType.START_MATCH
    num_players: int = Field(2, ge=2, le=4)
    total_rounds: int = Field(1, ge=1, le=99)
    memory_aids: bool = False
    seed: Optional[int] = None


class ReadyEvent(BaseEvent):
    """Initial peek finished."""
    type: EventType = EventType.READY


class DrawDeckEvent(BaseEvent):
    type: EventType = EventType.DRAW_DECK


class DrawDiscardEvent(BaseEvent):
    type: EventType = EventType.DRAW_DISCARD


class CardClickEvent(BaseEvent):
    """Click on a table slot."""
    type: EventType = EventType.CARD_CLICK
    player: int = Field(..., ge=0, le=3)
    index: int = Field(..., ge=0)


class ActionEvent(BaseEvent):
    """Named button action."""
    type: EventType = EventType.ACTION
    name: ActionName


class NewGameEvent(BaseEvent):
    """Abandon the current match."""
    type: EventType = EventType.NEW_GAME


# Union type for all inbound events
InboundEvent = Union[
    StartMatchEvent,
    ReadyEvent,
    DrawDeckEvent,
    DrawDiscardEvent,
    CardClickEvent,
    ActionEvent,
    NewGameEvent,
]


# Outbound event models
class StateEvent(BaseModel):
    """Full sanitized state snapshot."""
    type: OutboundEventType = OutboundEventType.STATE
    state: Dict[str, Any]
    timestamp: float


class ErrorEvent(BaseModel):
    """Error event."""
    type: OutboundEventType = OutboundEventType.ERROR
    code: ErrorCode
    message: str
    timestamp: float


OutboundEvent = Union[StateEvent, ErrorEvent]


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
        EventType.START_MATCH: StartMatchEvent,
        EventType.READY: ReadyEvent,
        EventType.DRAW_DECK: DrawDeckEvent,
        EventType.DRAW_DISCARD: DrawDiscardEvent,
        EventType.CARD_CLICK: CardClickEvent,
        EventType.ACTION: ActionEvent,
        EventType.NEW_GAME: NewGameEvent,
    }

    event_class = event_map[event_type]
    try:
        return event_class(**data)
    except Exception as e:
        raise ValueError(f"Invalid event data: {str(e)}")


def create_state_event(state: Dict[str, Any]) -> StateEvent:
    """Create a full state event."""
    return StateEvent(state=state, timestamp=time.time())


def create_error_event(code: ErrorCode, message: str) -> ErrorEvent:
    """Create an error event."""
    return ErrorEvent(code=code, message=message, timestamp=time.time())
