"""
History store: the boundary to the persistence layer.

The pipeline performs exactly three kinds of external call, all through
this protocol. Deadlines and retries are the implementer's concern.
"""

from typing import Any, List, Optional, Protocol, Sequence

from ebb.models import CheckIn, Event, PatternStatistic


class HistoryStore(Protocol):
    def recent_events(
        self,
        user_id: Any,
        limit: int,
        event_type: Optional[str] = None,
    ) -> Sequence[Event]:
        """Most recent events for the user, newest first."""
        ...

    def recent_check_ins(self, user_id: Any, limit: int) -> Sequence[CheckIn]:
        """Most recent check-ins for the user, newest first."""
        ...

    def save_pattern_statistics(self, records: Sequence[PatternStatistic]) -> None:
        ...


class InMemoryHistoryStore:
    """List-backed HistoryStore for the CLI and tests."""

    def __init__(
        self,
        events: Sequence[Event] = (),
        check_ins: Sequence[CheckIn] = (),
    ):
        self.events: List[Event] = list(events)
        self.check_ins: List[CheckIn] = list(check_ins)
        self.pattern_statistics: List[PatternStatistic] = []

    def recent_events(self, user_id, limit, event_type=None):
        rows = [
            e for e in self.events
            if e.user_id == user_id and (event_type is None or e.event_type == event_type)
        ]
        rows.sort(key=lambda e: e.date, reverse=True)
        return rows[:limit]

    def recent_check_ins(self, user_id, limit):
        rows = [c for c in self.check_ins if c.user_id == user_id]
        rows.sort(key=lambda c: c.created_at, reverse=True)
        return rows[:limit]

    def save_pattern_statistics(self, records):
        self.pattern_statistics.extend(records)
