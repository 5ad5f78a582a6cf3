"""In-memory voxel world, companion body, and slot inventory.

Used by the ``simulate`` CLI command and by the test suite. The world is a
flat layered terrain (grass over stone over deepslate over bedrock) with a
sparse override map for every edited or generated block.
"""

import logging
import random
from typing import Dict, Iterable, List, Optional, Tuple

from rich.console import Console

from .chat import CompanionChat
from .companion import Companion
from .config import MineAgentConfig
from .geometry import BlockPos, Direction
from .memory import CompanionMemory
from . import ores, world as blocks

_log = logging.getLogger(__name__)

UNSTACKABLE_SUFFIXES = ("_pickaxe", "_shovel", "_axe", "_sword", "_hoe")
CONTAINER_SLOTS = 27

STARTER_KIT: Tuple[Tuple[str, int], ...] = (
    ("iron_pickaxe", 1),
    (blocks.TORCH, 64),
    (blocks.CHEST, 2),
    (blocks.FURNACE, 1),
    (blocks.CRAFTING_TABLE, 1),
)


class SlotInventory:
    """Fixed number of slots; each holds one item type up to its stack limit."""

    def __init__(self, size: int = 36, stack_size: int = 64):
        self._size = size
        self.stack_size = stack_size
        self._slots: List[Optional[List]] = [None] * size  # [item, count]

    @property
    def size(self) -> int:
        return self._size

    def max_stack(self, item: str) -> int:
        return 1 if item.endswith(UNSTACKABLE_SUFFIXES) else self.stack_size

    def count(self, item: str) -> int:
        return sum(slot[1] for slot in self._slots if slot and slot[0] == item)

    def add(self, item: str, amount: int = 1) -> int:
        remaining = amount
        limit = self.max_stack(item)
        for slot in self._slots:
            if remaining <= 0:
                break
            if slot and slot[0] == item and slot[1] < limit:
                moved = min(limit - slot[1], remaining)
                slot[1] += moved
                remaining -= moved
        for i, slot in enumerate(self._slots):
            if remaining <= 0:
                break
            if slot is None:
                moved = min(limit, remaining)
                self._slots[i] = [item, moved]
                remaining -= moved
        return remaining

    def remove(self, item: str, amount: int = 1) -> int:
        removed = 0
        for i in range(len(self._slots) - 1, -1, -1):
            slot = self._slots[i]
            if removed >= amount:
                break
            if slot and slot[0] == item:
                taken = min(slot[1], amount - removed)
                slot[1] -= taken
                removed += taken
                if slot[1] == 0:
                    self._slots[i] = None
        return removed

    def used_slots(self) -> int:
        return sum(1 for slot in self._slots if slot)

    def fullness(self) -> float:
        return self.used_slots() / self._size if self._size else 1.0

    def items(self) -> Dict[str, int]:
        totals: Dict[str, int] = {}
        for slot in self._slots:
            if slot:
                totals[slot[0]] = totals.get(slot[0], 0) + slot[1]
        return totals

    def is_empty(self) -> bool:
        return self.used_slots() == 0

    def transfer_to(self, other, keep: Iterable[str] = ()) -> int:
        kept = set(keep)
        moved = 0
        for i, slot in enumerate(self._slots):
            if not slot or slot[0] in kept:
                continue
            leftover = other.add(slot[0], slot[1])
            moved += slot[1] - leftover
            if leftover:
                slot[1] = leftover
            else:
                self._slots[i] = None
        return moved


class VoxelWorld:
    """Layered terrain with sparse edits and chest contents."""

    def __init__(self, surface_y: int = 64, min_y: int = -64, max_y: int = 320):
        self.surface_y = surface_y
        self._min_y = min_y
        self._max_y = max_y
        self._blocks: Dict[BlockPos, str] = {}
        self._containers: Dict[BlockPos, SlotInventory] = {}
        self.blocks_broken = 0

    @property
    def min_build_height(self) -> int:
        return self._min_y

    @property
    def max_build_height(self) -> int:
        return self._max_y

    def base_block(self, pos: BlockPos) -> str:
        if pos.y <= self._min_y:
            return blocks.BEDROCK
        if pos.y >= self.surface_y:
            return blocks.AIR
        if pos.y == self.surface_y - 1:
            return blocks.GRASS_BLOCK
        if pos.y < 0:
            return blocks.DEEPSLATE
        return blocks.STONE

    def get_block(self, pos: BlockPos) -> str:
        return self._blocks.get(pos) or self.base_block(pos)

    def set_block(self, pos: BlockPos, block: str) -> None:
        self._blocks[pos] = block
        if block in blocks.STORAGE_BLOCKS:
            self._containers.setdefault(pos, SlotInventory(CONTAINER_SLOTS))
        else:
            self._containers.pop(pos, None)

    def break_block(self, pos: BlockPos) -> List[Tuple[str, int]]:
        block = self.get_block(pos)
        if blocks.is_air(block) or block in blocks.INDESTRUCTIBLE or block in blocks.FLUIDS:
            return []
        drops = [self.drop_for(block)]
        container = self._containers.pop(pos, None)
        if container is not None:
            drops.extend(container.items().items())
        self._blocks[pos] = blocks.AIR
        self.blocks_broken += 1
        return drops

    @staticmethod
    def drop_for(block: str) -> Tuple[str, int]:
        ore = ores.identify_ore(block)
        if ore is not None:
            return ore.drop, 1
        if block == blocks.STONE:
            return blocks.COBBLESTONE, 1
        if block == blocks.DEEPSLATE:
            return blocks.COBBLED_DEEPSLATE, 1
        if block == blocks.GRASS_BLOCK:
            return blocks.DIRT, 1
        if block == blocks.WALL_TORCH:
            return blocks.TORCH, 1
        return block, 1

    def container_at(self, pos: BlockPos) -> Optional[SlotInventory]:
        return self._containers.get(pos)

    def fill(self, corner_a: BlockPos, corner_b: BlockPos, block: str) -> int:
        """Set every block in the inclusive box; returns the number of cells."""
        n = 0
        for x in range(min(corner_a.x, corner_b.x), max(corner_a.x, corner_b.x) + 1):
            for y in range(min(corner_a.y, corner_b.y), max(corner_a.y, corner_b.y) + 1):
                for z in range(min(corner_a.z, corner_b.z), max(corner_a.z, corner_b.z) + 1):
                    self.set_block(BlockPos(x, y, z), block)
                    n += 1
        return n

    def scatter(self, block: str, count: int, center: BlockPos, radius: int,
                rng: random.Random, y_range: Optional[Tuple[int, int]] = None) -> int:
        """Replace random stone cells near ``center`` with ``block``."""
        placed = 0
        lo, hi = y_range or (center.y - radius, center.y + radius)
        for _ in range(count * 4):
            if placed >= count:
                break
            pos = BlockPos(
                center.x + rng.randint(-radius, radius),
                rng.randint(lo, hi),
                center.z + rng.randint(-radius, radius),
            )
            if self.get_block(pos) in (blocks.STONE, blocks.DEEPSLATE):
                self._blocks[pos] = block
                placed += 1
        return placed

    def count_blocks(self, block: str) -> int:
        return sum(1 for b in self._blocks.values() if b == block)


class SimulatedActor:
    """Companion body that walks one block per axis per tick, through anything."""

    def __init__(self, position: BlockPos, inventory: SlotInventory,
                 facing: Direction = Direction.NORTH):
        self._position = position
        self._facing = facing
        self.inventory = inventory
        self.main_hand: Optional[str] = None
        self.looking_at: Optional[BlockPos] = None
        self.frozen = False
        self._target: Optional[BlockPos] = None
        self._speed = 1.0

    @property
    def position(self) -> BlockPos:
        return self._position

    @property
    def facing(self) -> Direction:
        return self._facing

    @property
    def target(self) -> Optional[BlockPos]:
        return self._target

    def teleport(self, pos: BlockPos) -> None:
        self._position = pos
        self._target = None

    def navigate_to(self, pos: BlockPos, speed: float = 1.0) -> bool:
        self._target = pos
        self._speed = speed
        return True

    def is_navigating(self) -> bool:
        return self._target is not None

    def stop(self) -> None:
        self._target = None

    def look_at(self, pos: BlockPos) -> None:
        self.looking_at = pos

    def equip_best_tool(self, block: str) -> None:
        best, best_tier = None, -1
        for item in self.inventory.items():
            tier = blocks.PICKAXES.get(item, -1)
            if tier > best_tier:
                best, best_tier = item, tier
        if best is not None:
            self.main_hand = best

    def update(self) -> None:
        """Advance movement by one tick."""
        if self._target is None or self.frozen:
            return
        pos, target = self._position, self._target
        dx, dy, dz = _sign(target.x - pos.x), _sign(target.y - pos.y), _sign(target.z - pos.z)
        self._position = pos.offset(dx, dy, dz)
        for direction in Direction.horizontal():
            if (direction.dx, direction.dz) == (dx, dz):
                self._facing = direction
                break
        if self._position == target:
            self._target = None


def _sign(n: int) -> int:
    return (n > 0) - (n < 0)


class Simulation:
    """Drives a companion and its body one tick at a time."""

    def __init__(self, companion: Companion, world: VoxelWorld, actor: SimulatedActor,
                 inventory: SlotInventory):
        self.companion = companion
        self.world = world
        self.actor = actor
        self.inventory = inventory
        self.ticks = 0

    @classmethod
    def create(
        cls,
        name: str = "Miner",
        position: BlockPos = BlockPos(0, 64, 0),
        facing: Direction = Direction.NORTH,
        config: Optional[MineAgentConfig] = None,
        console: Optional[Console] = None,
        memory: Optional[CompanionMemory] = None,
        world: Optional[VoxelWorld] = None,
        inventory_size: int = 36,
        starter_kit: bool = True,
        echo: bool = True,
    ) -> "Simulation":
        world = world or VoxelWorld()
        inventory = SlotInventory(inventory_size)
        if starter_kit:
            for item, amount in STARTER_KIT:
                inventory.add(item, amount)
        actor = SimulatedActor(position, inventory, facing)
        companion = Companion(
            name=name,
            world=world,
            actor=actor,
            inventory=inventory,
            chat=CompanionChat(name, console, echo=echo),
            memory=memory or CompanionMemory(),
            config=config or MineAgentConfig(),
        )
        return cls(companion, world, actor, inventory)

    def step(self) -> None:
        self.companion.tick()
        self.actor.update()
        self.ticks += 1

    def run(self, max_ticks: int = 100_000, until_idle: bool = True) -> int:
        """Tick until the companion has no tasks (or ``max_ticks``). Returns ticks run."""
        start = self.ticks
        while self.ticks - start < max_ticks:
            self.step()
            if until_idle and self.companion.task_manager.is_idle():
                break
        ran = self.ticks - start
        _log.info("Simulation ran %d ticks", ran)
        return ran


def populate_ores(world: VoxelWorld, center: BlockPos, seed: Optional[int] = None,
                  veins: int = 40, lava_pockets: int = 0, radius: int = 40) -> Dict[str, int]:
    """Sprinkle ore veins and optional lava within ``radius`` of ``center``.

    Veins are only placed where an ore's generation range overlaps the band
    ``center.y ± 8``, so a mine dug at that depth actually meets them.
    """
    rng = random.Random(seed)
    placed: Dict[str, int] = {}
    band_lo = max(center.y - 8, world.min_build_height + 1)
    band_hi = min(center.y + 8, world.surface_y - 2)
    candidates = [o for o in ores.vanilla_ores()
                  if not o.nether and o.min_y <= band_hi and o.max_y >= band_lo]
    for _ in range(veins if candidates else 0):
        ore = rng.choice(candidates)
        vein_center = BlockPos(
            center.x + rng.randint(-radius, radius),
            rng.randint(max(ore.min_y, band_lo), min(ore.max_y, band_hi)),
            center.z + rng.randint(-radius, radius),
        )
        block = ore.blocks[1] if vein_center.y < 0 else ore.blocks[0]
        placed[ore.name] = placed.get(ore.name, 0) + world.scatter(
            block, rng.randint(2, 6), vein_center, 2, rng
        )
    if lava_pockets:
        placed["lava"] = world.scatter(
            blocks.LAVA, lava_pockets, center, radius, rng, (band_lo, band_hi)
        )
    return placed
