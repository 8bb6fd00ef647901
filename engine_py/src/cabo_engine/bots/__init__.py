"""
Computer players for Cabo.
"""

from .base import BaseBot, BotAction, HandEstimate
from .heuristic import HeuristicBot

__all__ = ["BaseBot", "BotAction", "HandEstimate", "HeuristicBot"]
