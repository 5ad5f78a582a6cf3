"""Turn a "make me a mine" request into queued tasks, resuming remembered mines."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Tuple

from ..errors import MineAgentError, UnknownOreError
from ..geometry import Direction
from ..ores import Ore, all_ore_names, find_by_name
from ..tasks.base import Task
from .branch import BranchMineTask
from .orchestrator import CreateMineTask
from .state import (
    MINE_KEY_PREFIX,
    MineRecord,
    MineState,
    hub_center_for,
    mine_memory_key,
    shaft_bottom_for,
)

if TYPE_CHECKING:
    from ..companion import Companion
    from ..memory import CompanionMemory

_log = logging.getLogger(__name__)

MIN_BRANCH_LENGTH = 8
MAX_BRANCH_LENGTH = 40
MIN_BRANCHES_PER_SIDE = 1
MAX_BRANCHES_PER_SIDE = 8
# Lowest target is this many blocks above the world floor
BEDROCK_MARGIN = 5
# Depth below the companion for a mine without a target ore
GENERAL_MINE_DEPTH = 20


@dataclass
class MinePlan:
    """What :func:`create_mine` queued."""
    task: Task
    mine_state: MineState
    resumed: bool
    message: str

    @property
    def target_y(self) -> int:
        return self.mine_state.target_y


def _clamp(value: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, value))


def _resolve_ore(name: Optional[str]) -> Optional[Ore]:
    if name is None or not name.strip():
        return None
    ore = find_by_name(name)
    if ore is None:
        raise UnknownOreError(name.strip(), all_ore_names())
    return ore


def _resolve_direction(name: Optional[str], companion: "Companion") -> Direction:
    if name:
        direction = Direction.from_name(name)
        if direction is None or not direction.is_horizontal:
            raise MineAgentError(
                f"Unknown direction '{name}'. Use north, south, east or west."
            )
        return direction
    facing = companion.actor.facing
    return facing if facing.is_horizontal else Direction.NORTH


def create_mine(
    companion: "Companion",
    ore: Optional[str] = None,
    branch_length: Optional[int] = None,
    branches_per_side: Optional[int] = None,
    direction: Optional[str] = None,
    new_mine: bool = False,
) -> MinePlan:
    """Queue a full mine for ``ore`` (or a general mine), or resume a remembered one.

    Unless ``new_mine`` is set, a mine already remembered for the same ore is
    resumed: only branch mining is queued, starting from its hub.

    Raises:
        UnknownOreError: ``ore`` matches nothing in the ore guide.
        MineAgentError: ``direction`` is not a horizontal direction name.
    """
    target_ore = _resolve_ore(ore)

    if not new_mine:
        record = MineRecord.parse(companion.memory.get_fact(mine_memory_key(target_ore)))
        if record is not None:
            return _resume(companion, target_ore, record)

    cfg = companion.config.mining
    world_floor = companion.world.min_build_height + BEDROCK_MARGIN
    here = companion.position
    if target_ore is not None:
        target_y = max(target_ore.best_y, world_floor)
    else:
        target_y = max(here.y - GENERAL_MINE_DEPTH, world_floor)

    length = _clamp(
        cfg.branch_length if branch_length is None else branch_length,
        MIN_BRANCH_LENGTH, MAX_BRANCH_LENGTH,
    )
    per_side = _clamp(
        cfg.branches_per_side if branches_per_side is None else branches_per_side,
        MIN_BRANCHES_PER_SIDE, MAX_BRANCHES_PER_SIDE,
    )
    heading = _resolve_direction(direction, companion)

    state = MineState(
        target_ore=target_ore,
        target_y=target_y,
        entrance=here,
        shaft_direction=heading,
        branch_length=length,
        branches_per_side=per_side,
        branch_spacing=cfg.branch_spacing,
    )
    task = CreateMineTask(companion, state)
    companion.task_manager.queue_task(task)

    label = f"{target_ore.name} " if target_ore else ""
    message = (
        f"Creating {label}mine: staircase shaft from Y={here.y} to Y={target_y} "
        f"heading {heading.label}, hub room with chests and furnace, then "
        f"{per_side * 2} branch tunnels ({length} blocks each)."
    )
    if target_ore is not None:
        message += f" {target_ore.tip}"
    _log.info("Planned new mine: %s", state.get_summary())
    return MinePlan(task, state, resumed=False, message=message)


def _resume(companion: "Companion", target_ore: Optional[Ore], record: MineRecord) -> MinePlan:
    cfg = companion.config.mining
    state = MineState(
        target_ore=target_ore,
        target_y=record.target_y,
        entrance=record.entrance,
        shaft_direction=record.direction,
        branch_length=record.branch_length,
        branches_per_side=record.branches_per_side,
        branch_spacing=cfg.branch_spacing,
    )
    bottom = shaft_bottom_for(record.entrance, record.direction, record.target_y)
    state.shaft_bottom = bottom
    hub = record.hub_center or hub_center_for(bottom, record.direction)
    level = state.add_level(hub.y, hub)
    level.hub_built = True

    task = BranchMineTask(companion, state)
    companion.task_manager.queue_task(task)
    companion.memory.add_event(f"Resumed {state.ore_label} mine at {record.entrance}")

    message = (
        f"Returning to the existing {state.ore_label} mine at {record.entrance} "
        f"(Y={record.target_y}, heading {record.direction.label}) to continue branch mining."
    )
    _log.info("Resuming mine: %s", state.get_summary())
    return MinePlan(task, state, resumed=True, message=message)


def list_mines(memory: "CompanionMemory") -> List[Tuple[str, MineRecord]]:
    """Every remembered mine as ``(ore key, record)``; malformed entries are skipped."""
    mines = []
    for key, value in memory.get_all_facts().items():
        if not key.startswith(MINE_KEY_PREFIX):
            continue
        record = MineRecord.parse(value)
        if record is None:
            _log.debug("Skipping malformed mine record %s=%r", key, value)
            continue
        mines.append((key[len(MINE_KEY_PREFIX):], record))
    return mines
