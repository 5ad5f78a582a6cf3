"""DigShaftTask: staircase shaft from the entrance down to the target depth."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from .. import actions
from .. import world as blocks
from ..chat import ChatCategory
from ..geometry import BlockPos, Direction
from ..ores import is_ore
from ..tasks.base import PhasedTask
from .state import MinePhase, MineState

if TYPE_CHECKING:
    from ..companion import Companion

_log = logging.getLogger(__name__)

ENTRANCE_REACH = 3.0
ORE_REACH = 4.5
ORE_SCAN_RADIUS = 1
FULL_INVENTORY_WARNING = 0.9

_SCAN_DIRECTIONS = tuple(d for d in Direction if d is not Direction.DOWN)


class ShaftPhase(Enum):
    NAVIGATE_START = "navigate_start"
    DIG_FORWARD = "dig_forward"
    DIG_DOWN = "dig_down"
    SCAN_ORES = "scan_ores"
    DONE = "done"


class DigShaftTask(PhasedTask):
    """Dig a 1-wide, 2-tall staircase along the mine heading.

    Each step clears the two cells ahead (feet and head), then the pair one
    further ahead and one level down, so the shaft descends one block for
    every two it advances. The task keeps its own cursor (the landing it is
    working from) so the geometry never depends on where navigation actually
    left the companion.
    """

    task_name = "DigShaft"

    def __init__(self, companion: "Companion", mine_state: MineState):
        self.mine_state = mine_state
        self.direction = mine_state.shaft_direction
        self.target_y = mine_state.target_y
        super().__init__(
            companion,
            f"Dig shaft to Y={self.target_y} heading {self.direction.label}",
            ShaftPhase.NAVIGATE_START,
        )
        cfg = companion.config.mining
        self.stuck_timeout = cfg.stuck_timeout
        self.torch_interval = cfg.torch_interval
        self.cursor: BlockPos = mine_state.entrance
        self.total_steps = max(0, mine_state.entrance.y - self.target_y)
        self.steps_descended = 0
        self.blocks_since_torch = 0
        self.ores_mined = 0
        self.blocks_broken = 0

    def progress(self) -> int:
        if self.phase is ShaftPhase.NAVIGATE_START:
            return 0
        if self.total_steps <= 0:
            return 100
        return min(100, self.steps_descended * 100 // self.total_steps)

    def start(self) -> None:
        self.mine_state.set_phase(MinePhase.DIGGING_SHAFT)
        here = self.position
        if here.y <= self.target_y:
            self.say(f"Already at Y={here.y}. No shaft needed.")
            self.mine_state.shaft_bottom = here
            self.complete()
            return
        self.say(
            f"Digging staircase shaft to Y={self.target_y} heading {self.direction.label}. "
            f"That's {self.total_steps} blocks down."
        )

    # ── Phases ────────────────────────────────────────────────

    def _tick_navigate_start(self) -> ShaftPhase:
        entrance = self.mine_state.entrance
        if self.is_in_reach(entrance, ENTRANCE_REACH):
            self.cursor = entrance
            return ShaftPhase.DIG_FORWARD
        self.navigate_to(entrance)
        if self.bump_stuck(self.stuck_timeout):
            _log.warning("DigShaft: couldn't reach entrance, starting from current position")
            self.cursor = self.position
            # nothing dug yet, so the estimate can still move
            self.total_steps = max(0, self.cursor.y - self.target_y)
            return ShaftPhase.DIG_FORWARD
        return ShaftPhase.NAVIGATE_START

    def _tick_dig_forward(self) -> ShaftPhase:
        here = self.cursor
        if here.y <= self.target_y:
            self.say(
                f"Reached Y={here.y}! Shaft complete. "
                f"Mined {self.ores_mined} ores along the way."
            )
            return ShaftPhase.DONE

        ahead = here.relative(self.direction)
        ahead_head = ahead.above()
        if not (actions.is_safe_to_mine(self.world, ahead)
                and actions.is_safe_to_mine(self.world, ahead_head)):
            self.warn(f"Lava detected ahead! Stopping shaft at Y={here.y}.")
            return ShaftPhase.DONE
        if ahead.y <= self.world.min_build_height + 1:
            self.warn(f"Near bedrock! Stopping shaft at Y={here.y}.")
            return ShaftPhase.DONE

        self._break(ahead)
        self._break(ahead_head)
        self._clear_falling(ahead_head.above())
        self.navigate_to(ahead)

        self.blocks_since_torch += 1
        if self.blocks_since_torch >= self.torch_interval:
            if actions.place_torch(self.companion, here.above()):
                self.blocks_since_torch = 0
                self.mine_state.add_stats(torches=1)
        return ShaftPhase.DIG_DOWN

    def _tick_dig_down(self) -> ShaftPhase:
        landing = self.cursor.relative(self.direction)
        lower_feet = landing.relative(self.direction).below()
        lower_head = lower_feet.above()

        unsafe = not (actions.is_safe_to_mine(self.world, lower_feet)
                      and actions.is_safe_to_mine(self.world, lower_head))
        if unsafe and not self._seal_lava(lower_feet, lower_head):
            self.warn(f"Lava below and nothing to seal it with. Stopping shaft at Y={self.cursor.y}.")
            return ShaftPhase.DONE

        self._break(lower_feet)
        self._break(lower_head)
        actions.ensure_floor(self.companion, lower_feet.below())
        self._clear_falling(lower_head.above())

        self.cursor = lower_feet
        self.navigate_to(lower_feet)
        self.steps_descended += 1
        return ShaftPhase.SCAN_ORES

    def _tick_scan_ores(self) -> ShaftPhase:
        here = self.cursor
        for direction in _SCAN_DIRECTIONS:
            for distance in range(1, ORE_SCAN_RADIUS + 2):
                pos = here.relative(direction, distance)
                block = self.world.get_block(pos)
                if not is_ore(block) or not actions.is_safe_to_mine(self.world, pos):
                    continue
                if pos.dist_sqr(here) < ORE_REACH * ORE_REACH and self._break(pos):
                    _log.debug("DigShaft: bonus ore %s at %s", block, pos)

        if actions.is_inventory_nearly_full(self.inventory, FULL_INVENTORY_WARNING):
            self.companion.chat.say(
                "Inventory getting full! May need to deposit soon.",
                ChatCategory.INVENTORY_FULL,
            )
        return ShaftPhase.DIG_FORWARD

    def _tick_done(self) -> ShaftPhase:
        self.mine_state.shaft_bottom = self.cursor
        _log.info("Shaft bottom at %s after %d steps", self.cursor, self.steps_descended)
        self.complete()
        return ShaftPhase.DONE

    # ── Helpers ───────────────────────────────────────────────

    def _break(self, pos: BlockPos) -> bool:
        block = self.world.get_block(pos)
        if not actions.break_block(self.companion, pos):
            return False
        ore = is_ore(block)
        self.blocks_broken += 1
        if ore:
            self.ores_mined += 1
        self.mine_state.add_stats(ores=int(ore), blocks=1)
        return True

    def _clear_falling(self, start: BlockPos) -> None:
        broken = actions.clear_falling_blocks(self.companion, start)
        if broken:
            self.blocks_broken += broken
            self.mine_state.add_stats(blocks=broken)

    def _seal_lava(self, *cells: BlockPos) -> bool:
        """Replace lava in and around ``cells`` with cobblestone."""
        sealed = True
        for cell in cells:
            for pos in (cell, *cell.neighbors()):
                if blocks.is_hazardous_fluid(self.world.get_block(pos)):
                    sealed = actions.place_block(self.companion, pos, blocks.COBBLESTONE) and sealed
        if not sealed or not all(actions.is_safe_to_mine(self.world, c) for c in cells):
            return False
        self.say("Sealed lava below with cobblestone. Continuing...")
        return True
