"""
FastAPI WebSocket endpoint for the Cabo game.

Each connection gets its own GameSession. Every render of the session pushes a
sanitized snapshot onto the connection's outbox, which a sender task drains.
"""

import asyncio
import logging

import orjson
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, ValidationError

from ..engine import GameSession
from ..errors import INVALID_CONFIG, GameError
from ..rules import create_rules
from ..serialization import sanitize_state
from .events import (
    ActionEvent, ActionName, CardClickEvent, DrawDeckEvent, DrawDiscardEvent,
    ErrorCode, NewGameEvent, ReadyEvent, StartMatchEvent, create_error_event,
    create_state_event, parse_inbound_event,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# Active connections, for /health
connections: set = set()


class CaboConnection:
    """One websocket client playing one game."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket
        self.outbox: "asyncio.Queue[BaseModel]" = asyncio.Queue()
        self.session = GameSession(render=self.push_state)

    def push_state(self, session: GameSession):
        self.outbox.put_nowait(create_state_event(sanitize_state(session)))

    def push_error(self, code: ErrorCode, message: str):
        self.outbox.put_nowait(create_error_event(code, message))

    async def sender(self):
        while True:
            event = await self.outbox.get()
            await self.websocket.send_text(orjson.dumps(event.model_dump(mode="json")).decode())

    def close(self):
        self.session.cancel_pending()

    def handle_event(self, event):
        """Apply one inbound event to the session."""
        if isinstance(event, StartMatchEvent):
            self._start_match(event)
            return
        if isinstance(event, NewGameEvent):
            self.session.new_game()
            return

        session = self.session
        if isinstance(event, ReadyEvent):
            ok, msg = session.ready()
        elif isinstance(event, DrawDeckEvent):
            ok, msg = session.on_deck_click()
        elif isinstance(event, DrawDiscardEvent):
            ok, msg = session.on_discard_click()
        elif isinstance(event, CardClickEvent):
            ok, msg = session.on_card_click(event.player, event.index)
        elif isinstance(event, ActionEvent):
            ok, msg = self._dispatch_action(event.name)
        else:
            raise ValueError(f"Unhandled event type: {type(event)}")

        # Out-of-phase input is ignored, not reported
        if not ok:
            logger.debug(f"Ignored {event.type.value}: {msg}")

    def _start_match(self, event: StartMatchEvent):
        try:
            rules = create_rules(
                num_players=event.num_players,
                total_rounds=event.total_rounds,
                memory_aids=event.memory_aids,
                seed=event.seed,
            )
        except ValidationError as e:
            raise GameError(INVALID_CONFIG, str(e)) from e
        self.session.cancel_pending()
        self.session = GameSession(rules, render=self.push_state)
        self.session.start_match()

    def _dispatch_action(self, name: ActionName):
        session = self.session
        handlers = {
            ActionName.CHOOSE_SWAP: session.choose_swap,
            ActionName.CANCEL_SWAP: session.cancel_swap,
            ActionName.DISCARD_DRAWN: session.discard_drawn,
            ActionName.USE_POWER: session.use_power,
            ActionName.ENTER_MATCH_MODE: session.enter_match_mode,
            ActionName.DONE_MATCHING: session.done_matching,
            ActionName.CONTINUE_AI: session.continue_ai,
            ActionName.SKIP_POWER: session.skip_power,
            ActionName.RESELECT_FIRST: session.reselect_first,
            ActionName.CONFIRM_SPY_SELECTION: session.confirm_spy_selection,
            ActionName.BACK_TO_SPY_SELECTION: session.back_to_spy_selection,
            ActionName.SPY_PEEK_OWN: lambda: session.spy_peek('own'),
            ActionName.SPY_PEEK_OPPONENT: lambda: session.spy_peek('opponent'),
            ActionName.SPY_SWAP: lambda: session.spy_swap_decision(True),
            ActionName.SPY_KEEP: lambda: session.spy_swap_decision(False),
            ActionName.END_TURN: session.end_turn,
            ActionName.CALL_CABO: session.call_cabo,
            ActionName.SHOW_SCORES: session.show_scores,
            ActionName.NEXT_ROUND: session.next_round,
        }
        return handlers[name]()


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """Main WebSocket endpoint."""
    await websocket.accept()
    logger.info("WebSocket connection accepted")

    conn = CaboConnection(websocket)
    connections.add(conn)
    sender = asyncio.create_task(conn.sender())

    try:
        while True:
            raw_data = await websocket.receive_text()

            try:
                data = orjson.loads(raw_data)
                if not isinstance(data, dict):
                    raise ValueError("Event must be a JSON object")
                event = parse_inbound_event(data)
                conn.handle_event(event)
            except GameError as e:
                conn.push_error(ErrorCode(e.code), e.message)
            except (ValueError, orjson.JSONDecodeError) as e:
                conn.push_error(ErrorCode.INVALID_EVENT, str(e))
            except Exception as e:
                logger.error(f"Error handling event: {e}")
                conn.push_error(ErrorCode.INTERNAL_ERROR, "Internal server error")

    except WebSocketDisconnect:
        logger.info("WebSocket disconnected")
    except Exception as e:
        logger.error(f"WebSocket error: {e}")
    finally:
        conn.close()
        connections.discard(conn)
        sender.cancel()
