"""CreateHubTask: the underground room at the bottom of the shaft."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Iterator, List, Optional, Tuple

from .. import actions
from .. import world as blocks
from ..errors import PreconditionError
from ..geometry import BlockPos
from ..ores import is_ore
from ..tasks.base import PhasedTask
from .state import (
    HUB_HEIGHT,
    HUB_LENGTH,
    HUB_WIDTH,
    MinePhase,
    MineLevel,
    MineRecord,
    MineState,
    hub_center_for,
)

if TYPE_CHECKING:
    from ..companion import Companion

_log = logging.getLogger(__name__)

CELLS_PER_TICK = 4
HUB_REACH = 5.0

# (heading offset from center, lateral offset (+ is right), block)
FURNITURE_LAYOUT: Tuple[Tuple[int, int, str], ...] = (
    (-1, -2, blocks.CHEST),
    (1, -2, blocks.CHEST),
    (0, -2, blocks.FURNACE),
    (0, 2, blocks.CRAFTING_TABLE),
)


class HubPhase(Enum):
    NAVIGATE = "navigate"
    CLEAR_ROOM = "clear_room"
    PLACE_FLOOR = "place_floor"
    PLACE_FURNITURE = "place_furniture"
    PLACE_TORCHES = "place_torches"
    DONE = "done"


class HubLayout:
    """Room geometry in local axes: ``lx`` along the heading, ``lz`` to the right, ``ly`` up.

    The room is HUB_LENGTH x HUB_WIDTH x HUB_HEIGHT with its floor level at the
    hub center's y; its near wall sits right against the shaft bottom.
    """

    def __init__(self, center: BlockPos, heading):
        self.center = center
        self.heading = heading
        self.right = heading.clockwise()
        self.left = heading.counter_clockwise()
        self.corner = center.relative(heading, -(HUB_LENGTH // 2)).relative(self.left, HUB_WIDTH // 2)

    @property
    def total_cells(self) -> int:
        return HUB_LENGTH * HUB_WIDTH * HUB_HEIGHT

    def local(self, lx: int, lz: int, ly: int) -> BlockPos:
        return self.corner.relative(self.heading, lx).relative(self.right, lz).above(ly)

    def cell(self, index: int) -> BlockPos:
        """Cell ``index`` in clearing order: along the heading fastest, then across, then up."""
        lx = index % HUB_LENGTH
        lz = (index // HUB_LENGTH) % HUB_WIDTH
        ly = index // (HUB_LENGTH * HUB_WIDTH)
        return self.local(lx, lz, ly)

    def floor_cells(self) -> Iterator[BlockPos]:
        for lx in range(HUB_LENGTH):
            for lz in range(HUB_WIDTH):
                yield self.local(lx, lz, 0).below()

    def furniture(self) -> List[Tuple[BlockPos, str]]:
        return [
            (self.center.relative(self.heading, along).relative(self.right, lateral), block)
            for along, lateral, block in FURNITURE_LAYOUT
        ]

    def torch_spots(self) -> List[BlockPos]:
        return [
            self.local(lx, lz, 1)
            for lx in (0, HUB_LENGTH - 1)
            for lz in (0, HUB_WIDTH - 1)
        ]


class CreateHubTask(PhasedTask):
    """Carve the hub room, floor it, and furnish it with storage and light."""

    task_name = "CreateHub"

    def __init__(self, companion: "Companion", mine_state: MineState):
        self.mine_state = mine_state
        super().__init__(companion, "Create mine hub", HubPhase.NAVIGATE)
        self.stuck_timeout = companion.config.mining.stuck_timeout
        self.level: Optional[MineLevel] = None
        self.layout: Optional[HubLayout] = None
        self.visited = 0
        self.cleared = 0
        self.skipped_cells = 0
        self.furniture_placed = 0
        self.torches_placed = 0

    def progress(self) -> int:
        if self.phase is HubPhase.NAVIGATE or self.layout is None:
            return 0
        if self.phase is HubPhase.CLEAR_ROOM:
            return min(50, self.visited * 50 // self.layout.total_cells)
        return {
            HubPhase.PLACE_FLOOR: 60,
            HubPhase.PLACE_FURNITURE: 80,
            HubPhase.PLACE_TORCHES: 90,
        }.get(self.phase, 99)

    def start(self) -> None:
        bottom = self.mine_state.shaft_bottom
        if bottom is None:
            raise PreconditionError("No shaft bottom position — shaft must be dug first.")
        self.mine_state.set_phase(MinePhase.CREATING_HUB)
        level = self.mine_state.level_at(bottom.y)
        if level is None:
            level = self.mine_state.add_level(
                bottom.y, hub_center_for(bottom, self.mine_state.shaft_direction)
            )
        self.level = level
        self.layout = HubLayout(level.hub_center, self.mine_state.shaft_direction)
        if level.hub_built:
            _log.info("Hub at %s already built", level.hub_center)
            self.complete()
            return
        self.say(f"Building the mine hub at {level.hub_center}.")

    # ── Phases ────────────────────────────────────────────────

    def _tick_navigate(self) -> HubPhase:
        if self.is_in_reach(self.layout.center, HUB_REACH):
            return HubPhase.CLEAR_ROOM
        self.navigate_to(self.mine_state.shaft_bottom)
        if self.bump_stuck(self.stuck_timeout):
            _log.warning("CreateHub: couldn't reach shaft bottom, clearing from here")
            return HubPhase.CLEAR_ROOM
        return HubPhase.NAVIGATE

    def _tick_clear_room(self) -> HubPhase:
        layout = self.layout
        for _ in range(CELLS_PER_TICK):
            if self.visited >= layout.total_cells:
                break
            pos = layout.cell(self.visited)
            self.visited += 1
            block = self.world.get_block(pos)
            if blocks.is_air(block) or block in blocks.INDESTRUCTIBLE:
                continue
            if not actions.is_safe_to_mine(self.world, pos):
                self.skipped_cells += 1
                _log.warning("CreateHub: leaving %s at %s next to lava", block, pos)
                continue
            if actions.break_block(self.companion, pos):
                self.cleared += 1
                self.mine_state.add_stats(ores=int(is_ore(block)), blocks=1)

        if self.visited < layout.total_cells:
            return HubPhase.CLEAR_ROOM
        _log.info("CreateHub: cleared %d blocks (%d skipped)", self.cleared, self.skipped_cells)
        self.navigate_to(layout.center)
        return HubPhase.PLACE_FLOOR

    def _tick_place_floor(self) -> HubPhase:
        filled = sum(1 for pos in self.layout.floor_cells() if actions.ensure_floor(self.companion, pos))
        if filled:
            _log.debug("CreateHub: patched %d floor cells", filled)
        return HubPhase.PLACE_FURNITURE

    def _tick_place_furniture(self) -> HubPhase:
        for pos, block in self.layout.furniture():
            if self.inventory.count(block) < 1:
                _log.info("CreateHub: no %s to place", block)
                continue
            if actions.place_block(self.companion, pos, block):
                self.furniture_placed += 1
                self.level.furniture_positions.append(pos)
        if not any(self.world.get_block(p) == blocks.CHEST for p in self.level.furniture_positions):
            self.say("No chests for the hub. I'll have to carry everything.")
        return HubPhase.PLACE_TORCHES

    def _tick_place_torches(self) -> HubPhase:
        spots = self.layout.torch_spots()
        if self.inventory.count(blocks.TORCH) < len(spots):
            actions.craft_torches(self.inventory, len(spots))
        for pos in spots:
            if actions.place_torch(self.companion, pos):
                self.torches_placed += 1
        if self.torches_placed:
            self.mine_state.add_stats(torches=self.torches_placed)
        return HubPhase.DONE

    def _tick_done(self) -> HubPhase:
        level = self.level
        level.hub_built = True
        self._remember_hub(level.hub_center)
        self.say(
            f"Hub ready: cleared {self.cleared} blocks, {self.furniture_placed} furnishings and "
            f"{self.torches_placed} torches."
        )
        self.complete()
        return HubPhase.DONE

    def _remember_hub(self, center: BlockPos) -> None:
        memory = self.companion.memory
        key = self.mine_state.memory_key
        record = MineRecord.parse(memory.get_fact(key))
        if record is None or record.hub_center is not None:
            return
        memory.set_fact(key, record.with_hub(center).encode())
