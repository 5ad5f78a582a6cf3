"""Companion chat: narrated status lines with per-category cooldowns."""

import logging
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from rich.console import Console
from rich.markup import escape

from .theme import ACCENT, ERROR, WARN

_log = logging.getLogger(__name__)


class ChatCategory(Enum):
    """Message categories; the value is the cooldown in ticks."""
    STATUS = 0              # task started / finished, never throttled
    TASK = 100              # 5 sec between task narration lines
    STUCK = 400             # 20 sec between stuck notices
    INVENTORY_FULL = 600    # 30 sec
    GENERAL = 200           # 10 sec

    @property
    def cooldown_ticks(self) -> int:
        return self.value


class ChatLevel(Enum):
    INFO = "info"
    WARN = "warn"
    URGENT = "urgent"


@dataclass
class ChatLine:
    text: str
    category: Optional[ChatCategory]
    level: ChatLevel = ChatLevel.INFO
    timestamp: float = field(default_factory=time.time)


# Maximum number of delivered lines kept in history (ring buffer)
_MAX_HISTORY = 200

_LEVEL_COLOR = {
    ChatLevel.INFO: ACCENT,
    ChatLevel.WARN: WARN,
    ChatLevel.URGENT: ERROR,
}


class CompanionChat:
    """Announcement sink that prints ``[Name] message`` lines to a rich console."""

    def __init__(self, name: str, console: Optional[Console] = None, echo: bool = True):
        self.name = name
        self.console = console or Console()
        self.echo = echo
        self._cooldowns: Dict[ChatCategory, int] = {}
        self._history: deque[ChatLine] = deque(maxlen=_MAX_HISTORY)

    # ── Sending ───────────────────────────────────────────────

    def say(self, message: str, category: ChatCategory = ChatCategory.GENERAL) -> bool:
        """Send a message unless ``category`` is cooling down. Returns ``True`` if sent."""
        return self._send(message, category, ChatLevel.INFO)

    def warn(self, message: str, category: ChatCategory = ChatCategory.GENERAL) -> bool:
        return self._send(message, category, ChatLevel.WARN)

    def urgent(self, message: str) -> None:
        """Danger message; ignores cooldowns."""
        self._deliver(ChatLine(message, None, ChatLevel.URGENT))

    def _send(self, message: str, category: ChatCategory, level: ChatLevel) -> bool:
        if self._cooldowns.get(category, 0) > 0:
            _log.debug("Chat suppressed (%s cooldown): %s", category.name, message)
            return False
        if category.cooldown_ticks > 0:
            self._cooldowns[category] = category.cooldown_ticks
        self._deliver(ChatLine(message, category, level))
        return True

    def _deliver(self, line: ChatLine) -> None:
        self._history.append(line)
        _log.info("[%s] %s", self.name, line.text)
        if self.echo:
            color = _LEVEL_COLOR[line.level]
            self.console.print(f"[bold {color}]\\[{escape(self.name)}][/bold {color}] {escape(line.text)}")

    # ── Ticking ───────────────────────────────────────────────

    def tick(self) -> None:
        """Count every cooldown down by one tick."""
        for category in list(self._cooldowns):
            remaining = self._cooldowns[category] - 1
            if remaining <= 0:
                del self._cooldowns[category]
            else:
                self._cooldowns[category] = remaining

    def is_cooling_down(self, category: ChatCategory) -> bool:
        return self._cooldowns.get(category, 0) > 0

    # ── History ───────────────────────────────────────────────

    @property
    def history(self) -> List[ChatLine]:
        return list(self._history)

    def messages(self) -> List[str]:
        return [line.text for line in self._history]

    def clear_history(self) -> None:
        self._history.clear()
