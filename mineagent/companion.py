"""Companion: the bundle of collaborators every task is handed."""

import logging
from typing import Optional

from .chat import ChatCategory, CompanionChat
from .config import MineAgentConfig
from .geometry import BlockPos
from .memory import CompanionMemory
from .tasks.manager import TaskManager
from .world import Actor, Inventory, World

_log = logging.getLogger(__name__)


class Companion:
    """One autonomous character: world view, body, bag, voice, memory, and task queue."""

    def __init__(
        self,
        name: str,
        world: World,
        actor: Actor,
        inventory: Inventory,
        chat: CompanionChat,
        memory: CompanionMemory,
        config: Optional[MineAgentConfig] = None,
        owner_id: Optional[str] = None,
    ):
        self.name = name
        self.world = world
        self.actor = actor
        self.inventory = inventory
        self.chat = chat
        self.memory = memory
        self.config = config or MineAgentConfig()
        self.owner_id = owner_id
        self.task_manager = TaskManager(
            self,
            announce_interval=self.config.progress_announce_ticks,
        )

    @property
    def position(self) -> BlockPos:
        return self.actor.position

    def tick(self) -> None:
        """One simulation step: cool chat down, then advance the task queue."""
        self.chat.tick()
        self.task_manager.tick()

    # ── Helpers used by tasks ─────────────────────────────────

    def navigate_to(self, pos: BlockPos, speed: float = 1.0) -> bool:
        return self.actor.navigate_to(pos, speed)

    def is_in_reach(self, pos: BlockPos, reach: float) -> bool:
        return self.actor.position.dist_sqr(pos) < reach * reach

    def say(self, message: str, category: ChatCategory = ChatCategory.TASK) -> bool:
        return self.chat.say(message, category)

    def __repr__(self) -> str:
        return f"Companion({self.name!r} at {self.position})"
