"""
Session lifecycle telemetry
"""
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field
import time


@dataclass
class Event:
    """Event record"""
    name: str
    timestamp: float = field(default_factory=time.time)
    metadata: Dict[str, Any] = field(default_factory=dict)


class Telemetry:
    """In-process event collector"""

    def __init__(self, max_events: int = 1000):
        self._events: List[Event] = []
        self._max_events = max_events

    def record_event(self, name: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        """Record an event, dropping the oldest once full"""
        self._events.append(Event(name=name, metadata=metadata or {}))
        if len(self._events) > self._max_events:
            del self._events[0]

    def get_events(self, name: Optional[str] = None) -> List[Event]:
        """Get recorded events, optionally filtered by name"""
        if name is None:
            return self._events.copy()
        return [e for e in self._events if e.name == name]

    def count(self, name: str) -> int:
        return sum(1 for e in self._events if e.name == name)

    def clear(self) -> None:
        """Clear all events"""
        self._events.clear()
