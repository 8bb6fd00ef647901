"""
Cabo: a memory-and-bluff card game engine with computer opponents.
"""

from .engine import GameSession
from .errors import GameError
from .rules import RuleConfig, create_rules, default_rules

__all__ = ["GameSession", "GameError", "RuleConfig", "create_rules", "default_rules"]
