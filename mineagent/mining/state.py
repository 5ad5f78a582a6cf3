"""Shared context of one mining operation, passed by reference to every mining task."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from ..geometry import BlockPos, Direction
from ..ores import Ore, is_ore

_log = logging.getLogger(__name__)

# Hub room dimensions: length along the heading, width across it, height.
HUB_LENGTH = 7
HUB_WIDTH = 5
HUB_HEIGHT = 4

MINE_KEY_PREFIX = "mine_"


class MinePhase(Enum):
    INITIALIZING = "initializing"
    DIGGING_SHAFT = "digging_shaft"
    CREATING_HUB = "creating_hub"
    BRANCH_MINING = "branch_mining"
    DEPOSITING = "depositing"
    DEEPENING = "deepening"
    PAUSED = "paused"
    COMPLETED = "completed"

    @property
    def is_active(self) -> bool:
        return self not in (MinePhase.COMPLETED, MinePhase.PAUSED)

    @property
    def is_terminal(self) -> bool:
        return self is MinePhase.COMPLETED


class BranchStatus(Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    BLOCKED = "blocked"


# BLOCKED counts as finished for scheduling.
_FINISHED_BRANCH = frozenset({BranchStatus.COMPLETED, BranchStatus.BLOCKED})


class MineBranch:
    """One 1x2 tunnel leaving the corridor.

    ``start_pos`` is the branch mouth, the cell beside the corridor. The cell
    returned by :meth:`get_current_end` is the last one excavated; the dig
    face is one step further along ``direction``.
    """

    def __init__(self, direction: Direction, start_pos: BlockPos, max_length: int,
                 corridor_offset: int):
        if max_length < 0:
            raise ValueError("max_length must be non-negative")
        self.direction = direction
        self.start_pos = start_pos
        self.max_length = max_length
        self.corridor_offset = corridor_offset
        self.status = BranchStatus.NOT_STARTED
        self._current_length = 0

    @property
    def current_length(self) -> int:
        return self._current_length

    @current_length.setter
    def current_length(self, value: int) -> None:
        self._current_length = max(0, min(self.max_length, value))

    def get_current_end(self) -> BlockPos:
        return self.start_pos.relative(self.direction, self._current_length)

    def dig_face(self) -> BlockPos:
        return self.start_pos.relative(self.direction, self._current_length + 1)

    def is_finished(self) -> bool:
        return self.status in _FINISHED_BRANCH

    @property
    def remaining(self) -> int:
        return self.max_length - self._current_length

    def __repr__(self) -> str:
        return (
            f"MineBranch({self.direction.label} @{self.corridor_offset}, "
            f"{self._current_length}/{self.max_length}, {self.status.value})"
        )


@dataclass
class MineLevel:
    """One depth's hub room and branch set."""
    depth: int
    hub_center: BlockPos
    hub_built: bool = False
    branches: List[MineBranch] = field(default_factory=list)
    furniture_positions: List[BlockPos] = field(default_factory=list)

    def get_next_incomplete_branch(self) -> Optional[MineBranch]:
        for branch in self.branches:
            if not branch.is_finished():
                return branch
        return None

    def is_fully_mined(self) -> bool:
        return bool(self.branches) and all(
            b.status is BranchStatus.COMPLETED for b in self.branches
        )

    def count_branches(self, status: BranchStatus) -> int:
        return sum(1 for b in self.branches if b.status is status)


def hub_center_for(shaft_bottom: BlockPos, heading: Direction) -> BlockPos:
    """Center of the hub room: half a room plus one cell past the shaft bottom."""
    return shaft_bottom.relative(heading, HUB_LENGTH // 2 + 1)


def shaft_bottom_for(entrance: BlockPos, heading: Direction, target_y: int) -> BlockPos:
    """Where a staircase from ``entrance`` lands: two cells forward per level down."""
    depth = max(0, entrance.y - target_y)
    return entrance.relative(heading, depth * 2).at_y(min(entrance.y, target_y))


def layout_branches(hub_center: BlockPos, heading: Direction, per_side: int,
                    spacing: int, length: int) -> List[MineBranch]:
    """Branch pairs at corridor offsets ``spacing, 2*spacing, ...``; left branch first."""
    left = heading.counter_clockwise()
    right = heading.clockwise()
    branches: List[MineBranch] = []
    for i in range(per_side):
        offset = (i + 1) * spacing
        corridor = hub_center.relative(heading, offset)
        branches.append(MineBranch(left, corridor.relative(left), length, offset))
        branches.append(MineBranch(right, corridor.relative(right), length, offset))
    return branches


class MineState:
    """Plan and progress of one mine, shared by reference between its tasks.

    Field ownership:
      target_ore, target_y, entrance, shaft_direction, branch_length,
      branches_per_side, branch_spacing
          set once by the planner; read-only afterwards.
      shaft_bottom
          written by DigShaftTask when the staircase ends (or the planner
          on resume).
      levels, active_level_index
          appended through :meth:`add_level` by CreateHubTask (or the
          planner on resume). BranchMineTask fills ``branches``.
      phase, resume_phase, phase_history
          changed only through :meth:`set_phase`, :meth:`pause`,
          :meth:`resume`; each worker sets its own phase on start.
      total_* counters
          incremented by every worker through :meth:`add_stats`.
    """

    def __init__(
        self,
        target_ore: Optional[Ore],
        target_y: int,
        entrance: BlockPos,
        shaft_direction: Direction,
        branch_length: int = 20,
        branches_per_side: int = 4,
        branch_spacing: int = 4,
    ):
        if not shaft_direction.is_horizontal:
            raise ValueError("Shaft direction must be horizontal")
        self.target_ore = target_ore
        self.target_y = target_y
        self.entrance = entrance
        self.shaft_direction = shaft_direction
        self.branch_length = branch_length
        self.branches_per_side = branches_per_side
        self.branch_spacing = branch_spacing

        self.shaft_bottom: Optional[BlockPos] = None
        self.levels: List[MineLevel] = []
        self.active_level_index = -1

        self.phase = MinePhase.INITIALIZING
        self.resume_phase: Optional[MinePhase] = None
        self.phase_history: List[Tuple[MinePhase, MinePhase]] = []

        self.total_ores_mined = 0
        self.total_blocks_broken = 0
        self.total_torches_placed = 0

    # ── Phase ─────────────────────────────────────────────────

    def set_phase(self, phase: MinePhase) -> None:
        if phase is self.phase:
            return
        self.phase_history.append((self.phase, phase))
        _log.info("Mine %s: %s -> %s", self.ore_label, self.phase.name, phase.name)
        self.phase = phase

    def pause(self) -> bool:
        if not self.phase.is_active:
            return False
        self.resume_phase = self.phase
        self.set_phase(MinePhase.PAUSED)
        return True

    def resume(self) -> bool:
        if self.phase is not MinePhase.PAUSED:
            return False
        self.set_phase(self.resume_phase or MinePhase.INITIALIZING)
        self.resume_phase = None
        return True

    # ── Levels ────────────────────────────────────────────────

    def add_level(self, depth: int, hub_center: BlockPos) -> MineLevel:
        """Register a new level and make it the active one."""
        level = MineLevel(depth=depth, hub_center=hub_center)
        self.levels.append(level)
        self.active_level_index = len(self.levels) - 1
        return level

    def get_active_level(self) -> Optional[MineLevel]:
        if 0 <= self.active_level_index < len(self.levels):
            return self.levels[self.active_level_index]
        return None

    def level_at(self, depth: int) -> Optional[MineLevel]:
        return next((lvl for lvl in self.levels if lvl.depth == depth), None)

    # ── Statistics ────────────────────────────────────────────

    def add_stats(self, ores: int = 0, blocks: int = 0, torches: int = 0) -> None:
        self.total_ores_mined += ores
        self.total_blocks_broken += blocks
        self.total_torches_placed += torches

    # ── Descriptions ──────────────────────────────────────────

    @property
    def ore_label(self) -> str:
        return self.target_ore.name if self.target_ore else "general"

    @property
    def memory_key(self) -> str:
        return mine_memory_key(self.target_ore)

    def is_target_ore(self, block: str) -> bool:
        """Matches the configured ore, or any ore when none was requested."""
        if self.target_ore is not None:
            return self.target_ore.matches(block)
        return is_ore(block)

    def get_summary(self) -> str:
        ore = self.target_ore.name if self.target_ore else "any ore"
        return (
            f"Mine: {ore} at Y={self.target_y} | Phase: {self.phase.name} | "
            f"Levels: {len(self.levels)} | Ores mined: {self.total_ores_mined} | "
            f"Blocks broken: {self.total_blocks_broken}"
        )


def mine_memory_key(ore: Optional[Ore]) -> str:
    return MINE_KEY_PREFIX + (ore.key if ore else "general")


@dataclass(frozen=True)
class MineRecord:
    """Remembered form of a mine: ``x,y,z|targetY|direction|branchLength|branchesPerSide[|hx,hy,hz]``."""
    entrance: BlockPos
    target_y: int
    direction: Direction
    branch_length: int
    branches_per_side: int
    hub_center: Optional[BlockPos] = None

    @classmethod
    def from_state(cls, state: MineState) -> "MineRecord":
        level = state.get_active_level()
        return cls(
            entrance=state.entrance,
            target_y=state.target_y,
            direction=state.shaft_direction,
            branch_length=state.branch_length,
            branches_per_side=state.branches_per_side,
            hub_center=level.hub_center if level and level.hub_built else None,
        )

    def with_hub(self, hub_center: BlockPos) -> "MineRecord":
        return MineRecord(
            self.entrance, self.target_y, self.direction,
            self.branch_length, self.branches_per_side, hub_center,
        )

    def encode(self) -> str:
        parts = [
            self.entrance.to_key(),
            str(self.target_y),
            self.direction.label,
            str(self.branch_length),
            str(self.branches_per_side),
        ]
        if self.hub_center is not None:
            parts.append(self.hub_center.to_key())
        return "|".join(parts)

    @classmethod
    def parse(cls, text: Optional[str]) -> Optional["MineRecord"]:
        """Decode a stored record; ``None`` for anything malformed."""
        if not text:
            return None
        parts = text.split("|")
        if len(parts) not in (5, 6):
            return None
        entrance = BlockPos.parse(parts[0])
        direction = Direction.from_name(parts[2])
        if entrance is None or direction is None or not direction.is_horizontal:
            return None
        try:
            target_y = int(parts[1])
            branch_length = int(parts[3])
            per_side = int(parts[4])
        except ValueError:
            return None
        hub = None
        if len(parts) == 6:
            hub = BlockPos.parse(parts[5])
            if hub is None:
                return None
        return cls(entrance, target_y, direction, branch_length, per_side, hub)
