"""
Ordered log of governance events.

Every committed transition appends exactly one entry (``Propose``, ``Vote``
or ``Finalize``). Sequence numbers start at 1 and never repeat, so observers
can poll with ``since()`` and never miss or double-count an entry. When a
path is configured each entry is also appended to a JSON-lines file; a
failed write is logged and counted in ``persist_failures``, the in-memory
entry stays.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

PROPOSE = "Propose"
VOTE = "Vote"
FINALIZE = "Finalize"


@dataclass(frozen=True)
class GovernanceEvent:
    sequence: int
    name: str
    args: Dict[str, Any]
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


EventListener = Callable[[GovernanceEvent], None]


class EventLog:
    def __init__(self, path: Optional[str] = None):
        self._events: List[GovernanceEvent] = []
        self._listeners: List[EventListener] = []
        self._lock = threading.RLock()
        self.path = Path(path) if path else None
        self.persist_failures = 0
        if self.path:
            self.path.parent.mkdir(parents=True, exist_ok=True)

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def append(self, name: str, **args: Any) -> GovernanceEvent:
        """Record an event and notify observers."""
        with self._lock:
            event = GovernanceEvent(sequence=len(self._events) + 1, name=name, args=args)
            self._events.append(event)
            if self.path:
                self._persist(event)
            listeners = list(self._listeners)

        logger.debug(
            "Governance event recorded",
            extra={"event": "dao.event", "sequence": event.sequence, "event_name": name},
        )
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception(
                    "Event listener failed",
                    extra={"event": "dao.listener_error", "sequence": event.sequence},
                )
        return event

    def _persist(self, event: GovernanceEvent) -> None:
        # Runs after the transition committed: write errors are logged, not raised.
        try:
            with self.path.open("a", encoding="utf-8") as fh:
                fh.write(json.dumps(event.to_dict(), sort_keys=True) + "\n")
        except OSError:
            self.persist_failures += 1
            logger.exception(
                "Failed to persist governance event",
                extra={
                    "event": "dao.event_persist_failed",
                    "sequence": event.sequence,
                    "path": str(self.path),
                },
            )

    def since(self, sequence: int = 0) -> List[GovernanceEvent]:
        """Return events with a sequence number greater than ``sequence``."""
        with self._lock:
            return [e for e in self._events if e.sequence > sequence]

    def all(self) -> List[GovernanceEvent]:
        return self.since(0)

    def subscribe(self, listener: EventListener) -> Callable[[], None]:
        """Register an observer; returns a callable that removes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    @staticmethod
    def load(path: str) -> List[GovernanceEvent]:
        """Read back events persisted to a JSON-lines file."""
        events = []
        with open(path, encoding="utf-8") as fh:
            for line in fh:
                line = line.strip()
                if line:
                    events.append(GovernanceEvent(**json.loads(line)))
        return events
