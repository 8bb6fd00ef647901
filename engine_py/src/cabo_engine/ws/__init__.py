"""
WebSocket server and event handling for the Cabo game.
"""

from .events import *
from .server import router

__all__ = ["router"]
