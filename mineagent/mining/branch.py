"""BranchMineTask: corridor and perpendicular branch tunnels off the hub.

Layout, seen from above with the hub at the bottom and the heading up::

    B4L ── corridor ── B4R
    B3L ── corridor ── B3R
    B2L ── corridor ── B2R
    B1L ── corridor ── B1R
              hub

Branch pairs sit ``branch-spacing`` cells apart along the corridor. Each
branch is a 1x2 tunnel; ores spotted in its walls are queued as short side
trips, every few cells a poke hole is dug into both walls, and a torch goes
up every ``torch-interval`` cells.
"""

from __future__ import annotations

import logging
from collections import deque
from enum import Enum
from typing import TYPE_CHECKING, Deque, Optional, Set

from .. import actions
from .. import world as blocks
from ..chat import ChatCategory
from ..errors import PreconditionError
from ..geometry import BlockPos
from ..tasks.base import PhasedTask
from .state import BranchStatus, MineBranch, MineLevel, MinePhase, MineState, layout_branches

if TYPE_CHECKING:
    from ..companion import Companion

_log = logging.getLogger(__name__)

HUB_REACH = 4.0
BRANCH_REACH = 3.0
ORE_REACH = 4.5
# Squared distance to the dig face beyond which the companion walks up first
FACE_DISTANCE_SQR = 4
DEPOSIT_RETRY_COOLDOWN = 200
MID_MINE_TORCH_BATCHES = 8


class BranchPhase(Enum):
    NAVIGATE_HUB = "navigate_hub"
    SELECT_BRANCH = "select_branch"
    DIG_CORRIDOR = "dig_corridor"
    NAVIGATE_BRANCH = "navigate_branch"
    DIG_BRANCH = "dig_branch"
    MINE_ORE_DETOUR = "mine_ore_detour"
    POKE_HOLE = "poke_hole"
    DEPOSIT_ITEMS = "deposit_items"
    DONE = "done"


# Phases in which a full inventory does not interrupt work
_GUARD_EXEMPT = frozenset({BranchPhase.NAVIGATE_HUB, BranchPhase.DEPOSIT_ITEMS, BranchPhase.DONE})


class BranchMineTask(PhasedTask):
    """Mine every branch of the active level, returning to the hub to unload."""

    task_name = "BranchMine"
    # Runs as long as there are branches left.
    has_timeout = False

    def __init__(self, companion: "Companion", mine_state: MineState):
        self.mine_state = mine_state
        label = f" for {mine_state.target_ore.name}" if mine_state.target_ore else ""
        super().__init__(companion, f"Branch mining{label}", BranchPhase.NAVIGATE_HUB)

        cfg = companion.config.mining
        self.stuck_timeout = cfg.stuck_timeout
        self.torch_interval = cfg.torch_interval
        self.poke_hole_interval = cfg.poke_hole_interval
        self.ore_scan_radius = cfg.ore_scan_radius
        self.max_ore_detour = cfg.max_ore_detour
        self.inventory_full_threshold = cfg.inventory_full_threshold

        self.level: Optional[MineLevel] = None
        self.active_branch: Optional[MineBranch] = None
        self.corridor_dug = 0
        self.branches_completed = 0
        self.ores_mined = 0
        self.blocks_broken = 0
        self.blocks_since_torch = 0
        self.ore_queue: Deque[BlockPos] = deque()
        self._queued: Set[BlockPos] = set()
        self.current_ore_target: Optional[BlockPos] = None
        self.deposit_cooldown = 0

    def progress(self) -> int:
        total = self.mine_state.branches_per_side * 2
        if total <= 0:
            return 0
        return min(100, self.branches_completed * 100 // total)

    def start(self) -> None:
        level = self.mine_state.get_active_level()
        if level is None or not level.hub_built:
            raise PreconditionError("No hub available — hub must be created first.")
        self.level = level
        self.mine_state.set_phase(MinePhase.BRANCH_MINING)
        if not level.branches:
            self.initialize_branches(level)

        ore = self.mine_state.target_ore
        label = f" for {ore.name} ore" if ore else ""
        self.say(
            f"Starting branch mining{label}. "
            f"{self.mine_state.branches_per_side * 2} branches planned, "
            f"{self.mine_state.branch_length} blocks each."
        )

    def initialize_branches(self, level: MineLevel) -> None:
        state = self.mine_state
        level.branches.extend(layout_branches(
            level.hub_center,
            state.shaft_direction,
            state.branches_per_side,
            state.branch_spacing,
            state.branch_length,
        ))
        _log.info("Initialized %d branches for level Y=%d", len(level.branches), level.depth)

    def tick(self) -> None:
        if self.deposit_cooldown > 0:
            self.deposit_cooldown -= 1
        elif self.phase not in _GUARD_EXEMPT and actions.is_inventory_nearly_full(
            self.inventory, self.inventory_full_threshold
        ):
            self.companion.chat.say(
                f"Inventory {round(self.inventory_full_threshold * 100)}% full — heading back to deposit.",
                ChatCategory.INVENTORY_FULL,
            )
            self.mine_state.set_phase(MinePhase.DEPOSITING)
            self.transition(BranchPhase.DEPOSIT_ITEMS)
            return
        super().tick()

    def cleanup(self) -> None:
        self.ore_queue.clear()
        self._queued.clear()
        _log.info(
            "BranchMine cleanup: %d branches, %d ores, %d blocks broken",
            self.branches_completed, self.ores_mined, self.blocks_broken,
        )

    # ── Phases ────────────────────────────────────────────────

    def _tick_navigate_hub(self) -> BranchPhase:
        hub = self.level.hub_center
        if self.is_in_reach(hub, HUB_REACH):
            return BranchPhase.SELECT_BRANCH
        self.navigate_to(hub)
        if self.bump_stuck(self.stuck_timeout):
            _log.warning("BranchMine: stuck navigating to hub, proceeding")
            return BranchPhase.SELECT_BRANCH
        return BranchPhase.NAVIGATE_HUB

    def _tick_select_branch(self) -> BranchPhase:
        branch = self.level.get_next_incomplete_branch()
        if branch is None:
            return BranchPhase.DONE
        branch.status = BranchStatus.IN_PROGRESS
        self.active_branch = branch
        self.blocks_since_torch = 0
        return BranchPhase.DIG_CORRIDOR

    def _tick_dig_corridor(self) -> BranchPhase:
        branch = self.active_branch
        if branch is None:
            return BranchPhase.SELECT_BRANCH
        heading = self.mine_state.shaft_direction
        hub = self.level.hub_center

        for offset in range(self.corridor_dug + 1, branch.corridor_offset + 1):
            feet = hub.relative(heading, offset)
            if not (actions.is_safe_to_mine(self.world, feet)
                    and actions.is_safe_to_mine(self.world, feet.above())):
                self.warn(f"Lava in the corridor! Skipping the branches past {offset - 1} blocks.")
                return self._end_branch(BranchStatus.BLOCKED, BranchPhase.NAVIGATE_HUB)
            self._break(feet)
            self._break(feet.above())
            self.corridor_dug = offset

        mouth = branch.start_pos
        if not (actions.is_safe_to_mine(self.world, mouth)
                and actions.is_safe_to_mine(self.world, mouth.above())):
            self.warn("Lava at the branch entrance! Skipping this branch.")
            return self._end_branch(BranchStatus.BLOCKED, BranchPhase.NAVIGATE_HUB)
        self._break(mouth)
        self._break(mouth.above())

        self.navigate_to(hub.relative(heading, branch.corridor_offset))
        return BranchPhase.NAVIGATE_BRANCH

    def _tick_navigate_branch(self) -> BranchPhase:
        branch = self.active_branch
        if branch is None:
            return BranchPhase.SELECT_BRANCH
        end = branch.get_current_end()
        if self.is_in_reach(end, BRANCH_REACH):
            return BranchPhase.DIG_BRANCH
        self.navigate_to(end)
        if self.bump_stuck(self.stuck_timeout):
            _log.warning("BranchMine: stuck reaching branch %r, skipping", branch)
            return self._end_branch(BranchStatus.BLOCKED, BranchPhase.SELECT_BRANCH)
        return BranchPhase.NAVIGATE_BRANCH

    def _tick_dig_branch(self) -> BranchPhase:
        branch = self.active_branch
        if branch is None:
            return BranchPhase.SELECT_BRANCH

        progress = branch.current_length
        if progress >= branch.max_length:
            _log.info("Branch completed: %s, %d blocks", branch.direction.label, progress)
            return self._end_branch(BranchStatus.COMPLETED, BranchPhase.NAVIGATE_HUB)

        if self.ore_queue:
            self.current_ore_target = self.ore_queue.popleft()
            return BranchPhase.MINE_ORE_DETOUR

        end = branch.get_current_end()
        next_feet = branch.dig_face()
        next_head = next_feet.above()
        if not (actions.is_safe_to_mine(self.world, next_feet)
                and actions.is_safe_to_mine(self.world, next_head)):
            self.warn(f"Lava in branch! Stopping this branch at {progress} blocks.")
            return self._end_branch(BranchStatus.BLOCKED, BranchPhase.NAVIGATE_HUB)

        if self.position.dist_sqr(next_feet) > FACE_DISTANCE_SQR:
            self.navigate_to(end)
            if self.bump_stuck(self.stuck_timeout):
                self.warn("Stuck in branch tunnel. Ending this branch.")
                return self._end_branch(BranchStatus.BLOCKED, BranchPhase.NAVIGATE_HUB)
            return BranchPhase.DIG_BRANCH
        self.stuck_ticks = 0

        self._break(next_feet)
        self._break(next_head)
        broken = actions.clear_falling_blocks(self.companion, next_head.above())
        if broken:
            self.blocks_broken += broken
            self.mine_state.add_stats(blocks=broken)
        actions.ensure_floor(self.companion, next_feet.below())
        self._scan_tunnel_walls(next_feet)

        branch.current_length = progress + 1

        self.blocks_since_torch += 1
        if self.blocks_since_torch >= self.torch_interval:
            if self.inventory.count(blocks.TORCH) <= 0:
                self._craft_torches_mid_mine()
            if actions.place_torch(self.companion, end.above()):
                self.blocks_since_torch = 0
                self.mine_state.add_stats(torches=1)

        if progress > 0 and progress % self.poke_hole_interval == 0:
            return BranchPhase.POKE_HOLE
        self.navigate_to(next_feet)
        return BranchPhase.DIG_BRANCH

    def _tick_poke_hole(self) -> BranchPhase:
        branch = self.active_branch
        if branch is None:
            return BranchPhase.DIG_BRANCH
        end = branch.get_current_end()
        for side in (branch.direction.counter_clockwise(), branch.direction.clockwise()):
            hole = end.relative(side)
            if blocks.is_air(self.world.get_block(hole)):
                continue
            if actions.is_safe_to_mine(self.world, hole):
                self._break(hole)
        return BranchPhase.DIG_BRANCH

    def _tick_mine_ore_detour(self) -> BranchPhase:
        target = self.current_ore_target
        if target is None:
            return BranchPhase.DIG_BRANCH
        block = self.world.get_block(target)
        if not self.mine_state.is_target_ore(block):
            self.current_ore_target = None
            return BranchPhase.DIG_BRANCH

        if self.is_in_reach(target, ORE_REACH):
            if actions.is_safe_to_mine(self.world, target) and self._break(target):
                _log.debug("BranchMine: mined %s at %s", block, target)
            self.current_ore_target = None
            return BranchPhase.DIG_BRANCH

        self.navigate_to(target)
        if self.bump_stuck(self.stuck_timeout // 2):
            _log.debug("BranchMine: gave up on ore at %s", target)
            self.current_ore_target = None
            return BranchPhase.DIG_BRANCH
        return BranchPhase.MINE_ORE_DETOUR

    def _tick_deposit_items(self) -> BranchPhase:
        hub = self.level.hub_center
        if not self.is_in_reach(hub, HUB_REACH):
            self.navigate_to(hub)
            if self.bump_stuck(self.stuck_timeout * 2):
                _log.warning("BranchMine: stuck returning to hub for deposit")
                self.deposit_cooldown = DEPOSIT_RETRY_COOLDOWN
                return self._resume_after_deposit()
            return BranchPhase.DEPOSIT_ITEMS

        deposited = actions.deposit_inventory(self.companion, self.level.furniture_positions)
        if deposited > 0:
            self.say(f"Deposited {deposited} items at hub. Continuing mining...")
        else:
            self.deposit_cooldown = DEPOSIT_RETRY_COOLDOWN
            self.companion.chat.warn(
                "Nowhere to put anything at the hub. Mining on with a full bag.",
                ChatCategory.INVENTORY_FULL,
            )
        return self._resume_after_deposit()

    def _tick_done(self) -> BranchPhase:
        self.mine_state.set_phase(MinePhase.COMPLETED)
        self.say(
            f"Branch mining complete! Mined {self.ores_mined} ores across "
            f"{self.branches_completed} branches."
        )
        self.companion.memory.add_event(
            f"Finished branch mining {self.mine_state.ore_label} at Y={self.level.depth}: "
            f"{self.ores_mined} ores"
        )
        self.complete()
        return BranchPhase.DONE

    # ── Helpers ───────────────────────────────────────────────

    def _end_branch(self, status: BranchStatus, next_phase: BranchPhase) -> BranchPhase:
        if self.active_branch is not None:
            self.active_branch.status = status
            self.branches_completed += 1
        self.active_branch = None
        self.current_ore_target = None
        return next_phase

    def _resume_after_deposit(self) -> BranchPhase:
        self.mine_state.set_phase(MinePhase.BRANCH_MINING)
        if self.active_branch is not None:
            return BranchPhase.NAVIGATE_BRANCH
        return BranchPhase.SELECT_BRANCH

    def _break(self, pos: BlockPos) -> bool:
        """Break a non-air block, counting it (and target ore) in the mine statistics."""
        block = self.world.get_block(pos)
        if not actions.break_block(self.companion, pos):
            return False
        ore = self.mine_state.is_target_ore(block)
        self.blocks_broken += 1
        if ore:
            self.ores_mined += 1
        self.mine_state.add_stats(ores=int(ore), blocks=1)
        return True

    def _scan_tunnel_walls(self, tunnel_pos: BlockPos) -> None:
        """Queue target ore around ``tunnel_pos`` within detour distance."""
        radius = self.ore_scan_radius
        limit = self.max_ore_detour * self.max_ore_detour
        for dx in range(-radius, radius + 1):
            for dy in range(-1, 3):
                for dz in range(-radius, radius + 1):
                    if dx == 0 and dz == 0 and dy in (0, 1):
                        continue
                    pos = tunnel_pos.offset(dx, dy, dz)
                    if pos in self._queued or pos.dist_sqr(tunnel_pos) > limit:
                        continue
                    if self.mine_state.is_target_ore(self.world.get_block(pos)):
                        self._queued.add(pos)
                        self.ore_queue.append(pos)

    def _craft_torches_mid_mine(self) -> None:
        crafted = actions.craft_torches(
            self.inventory,
            actions.TORCHES_PER_BATCH * MID_MINE_TORCH_BATCHES,
            max_batches=MID_MINE_TORCH_BATCHES,
        )
        if crafted:
            self.say(f"Crafted {crafted} torches from what I dug up.")
