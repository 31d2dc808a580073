from typing import List, Optional, Set, Tuple
from engine.model import Event

class EventLog:
    """Append-only event storage for game replay and streaming."""

    def __init__(self):
        self._log: List[Event] = []

    def __len__(self) -> int:
        return len(self._log)

    def append_many(self, evts: List[Event]) -> Tuple[int, int]:
        """Append events and return (start_offset, end_offset)."""
        start = len(self._log)
        self._log.extend(evts)
        end = len(self._log) - 1
        return start, end

    def since(self, offset: int, limit: int = 1000,
              kinds: Optional[Set[str]] = None) -> tuple[list[Event], int]:
        """Return events starting from offset, up to limit.

        With kinds, only matching events are returned but the offset still
        advances past everything scanned.
        """
        offset = max(0, offset)
        chunk = self._log[offset: offset + limit]
        next_offset = offset + len(chunk)
        if kinds is not None:
            chunk = [e for e in chunk if e.kind in kinds]
        return chunk, next_offset
