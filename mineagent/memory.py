"""Persistent companion memory: key/value facts plus a short event log."""

import json
import logging
from collections import OrderedDict, deque
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Union

_log = logging.getLogger(__name__)

MAX_FACTS = 100
MAX_EVENTS = 50


class CompanionMemory:
    """Fact store the mining tasks use to remember mines across sessions.

    Facts are kept in insertion order; once ``MAX_FACTS`` is reached the
    oldest fact is evicted to make room for a new key. Events are a FIFO
    ring of ``MAX_EVENTS`` timestamped strings.
    """

    def __init__(self, path: Union[str, Path, None] = None):
        self.path = Path(path).expanduser() if path else None
        self._facts: "OrderedDict[str, str]" = OrderedDict()
        self._events: deque[str] = deque(maxlen=MAX_EVENTS)

    # ── Facts ─────────────────────────────────────────────────

    def get_fact(self, key: str) -> Optional[str]:
        return self._facts.get(key)

    def set_fact(self, key: str, value: str) -> None:
        if key not in self._facts and len(self._facts) >= MAX_FACTS:
            oldest, _ = self._facts.popitem(last=False)
            _log.debug("Memory full, forgetting fact %s", oldest)
        self._facts[key] = value

    def remove_fact(self, key: str) -> bool:
        return self._facts.pop(key, None) is not None

    def get_all_facts(self) -> Dict[str, str]:
        return dict(self._facts)

    # ── Events ────────────────────────────────────────────────

    def add_event(self, event: str) -> None:
        stamp = datetime.now().strftime("%Y-%m-%d %H:%M")
        self._events.append(f"[{stamp}] {event}")

    def get_events(self) -> List[str]:
        return list(self._events)

    def get_recent_events(self, count: int = 10) -> List[str]:
        if count <= 0:
            return []
        return list(self._events)[-count:]

    # ── Persistence ───────────────────────────────────────────

    def to_dict(self) -> dict:
        return {"facts": dict(self._facts), "events": list(self._events)}

    def save(self, path: Union[str, Path, None] = None) -> Path:
        target = Path(path).expanduser() if path else self.path
        if target is None:
            raise ValueError("No memory file path configured")
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, ensure_ascii=False, indent=2)
        return target

    @classmethod
    def load(cls, path: Union[str, Path]) -> "CompanionMemory":
        """Load memory from ``path``; a missing or corrupt file yields empty memory."""
        memory = cls(path)
        if memory.path is None or not memory.path.exists():
            return memory
        try:
            with open(memory.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            _log.warning("Could not read memory file %s: %s", memory.path, e)
            return memory
        if not isinstance(data, dict):
            _log.warning("Could not read memory file %s: expected an object, got %s",
                         memory.path, type(data).__name__)
            return memory
        facts = data.get("facts")
        events = data.get("events")
        if not isinstance(facts, dict):
            facts = {}
        if not isinstance(events, list):
            events = []
        for key, value in facts.items():
            memory.set_fact(str(key), str(value))
        for event in events[-MAX_EVENTS:]:
            memory._events.append(str(event))
        return memory
