"""
Per-observer card memory.

Every player keeps a private map of table position -> the card they believe is
there. Maps are independent: writing one observer's belief never touches
another's, and a belief may go stale until the action that moves the card
updates or clears it.
"""

from typing import Dict, Iterable, List, Optional

from .models import Card, MemoryMap, Position


class MemoryBank:
    """Independent belief maps, one per observer (player index)."""

    def __init__(self, num_observers: int):
        self._maps: List[Dict[Position, Card]] = [{} for _ in range(num_observers)]

    @property
    def num_observers(self) -> int:
        return len(self._maps)

    def observers(self) -> range:
        return range(len(self._maps))

    def of(self, observer: int) -> MemoryMap:
        """Read-only use: the belief map of one observer."""
        return self._maps[observer]

    def recall(self, observer: int, pos: Position) -> Optional[Card]:
        return self._maps[observer].get(pos)

    def remember(self, observer: int, pos: Position, card: Card):
        self._maps[observer][pos] = card

    def forget(self, observer: int, pos: Position):
        self._maps[observer].pop(pos, None)

    def reveal_to_all(self, pos: Position, card: Card):
        for mem in self._maps:
            mem[pos] = card

    def clear_position(self, pos: Position, observers: Optional[Iterable[int]] = None):
        targets = self.observers() if observers is None else observers
        for observer in targets:
            self._maps[observer].pop(pos, None)

    def transpose(self, a: Position, b: Position, observers: Optional[Iterable[int]] = None):
        """
        Follow two cards that changed places.

        An observer who believed X at a now believes X at b (and vice versa);
        an observer who knew neither slot is left knowing neither.
        """
        targets = self.observers() if observers is None else observers
        for observer in targets:
            mem = self._maps[observer]
            card_a = mem.pop(a, None)
            card_b = mem.pop(b, None)
            if card_a is not None:
                mem[b] = card_a
            if card_b is not None:
                mem[a] = card_b

    def others(self, observer: int) -> List[int]:
        return [o for o in self.observers() if o != observer]
