"""Block vocabulary and the collaborator interfaces tasks are written against.

Tasks never touch a concrete world. They see the narrow protocols below,
implemented by :mod:`mineagent.sim` for the CLI and tests, or by a game
bridge in production.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Protocol, Tuple

from .geometry import BlockPos, Direction

# ── Block names ───────────────────────────────────────────────

AIR = "air"
CAVE_AIR = "cave_air"
STONE = "stone"
DEEPSLATE = "deepslate"
COBBLESTONE = "cobblestone"
COBBLED_DEEPSLATE = "cobbled_deepslate"
DIRT = "dirt"
GRASS_BLOCK = "grass_block"
GRAVEL = "gravel"
SAND = "sand"
BEDROCK = "bedrock"
LAVA = "lava"
WATER = "water"
TORCH = "torch"
WALL_TORCH = "wall_torch"
CHEST = "chest"
FURNACE = "furnace"
CRAFTING_TABLE = "crafting_table"

# ── Item names ────────────────────────────────────────────────

STICK = "stick"
COAL = "coal"
CHARCOAL = "charcoal"
PLANK_SUFFIX = "_planks"
LOG_SUFFIX = "_log"

PICKAXES: Dict[str, int] = {
    "wooden_pickaxe": 0,
    "golden_pickaxe": 0,
    "stone_pickaxe": 1,
    "iron_pickaxe": 2,
    "diamond_pickaxe": 3,
    "netherite_pickaxe": 4,
}

# ── Classification ────────────────────────────────────────────

AIR_BLOCKS = frozenset({AIR, CAVE_AIR})
FALLING_BLOCKS = frozenset({GRAVEL, SAND, "red_sand", "suspicious_sand", "suspicious_gravel"})
HAZARDOUS_FLUIDS = frozenset({LAVA})
FLUIDS = frozenset({LAVA, WATER})
INDESTRUCTIBLE = frozenset({BEDROCK, "barrier", "end_portal_frame"})
NON_SOLID = AIR_BLOCKS | FLUIDS | frozenset({TORCH, WALL_TORCH})
REPLACEABLE = AIR_BLOCKS | FLUIDS
STORAGE_BLOCKS = frozenset({CHEST, "barrel", "trapped_chest"})


def is_air(block: str) -> bool:
    return block in AIR_BLOCKS


def is_solid(block: str) -> bool:
    return block not in NON_SOLID


def is_falling(block: str) -> bool:
    return block in FALLING_BLOCKS


def is_hazardous_fluid(block: str) -> bool:
    return block in HAZARDOUS_FLUIDS


def is_replaceable(block: str) -> bool:
    return block in REPLACEABLE


def is_plank(item: str) -> bool:
    return item.endswith(PLANK_SUFFIX)


def is_log(item: str) -> bool:
    return item.endswith(LOG_SUFFIX)


# ── Collaborator protocols ────────────────────────────────────


class Inventory(Protocol):
    """Item storage: the companion's own bag or a placed container."""

    @property
    def size(self) -> int: ...

    def count(self, item: str) -> int: ...

    def add(self, item: str, amount: int = 1) -> int:
        """Insert items; return how many did not fit."""
        ...

    def remove(self, item: str, amount: int = 1) -> int:
        """Take items out; return how many were actually removed."""
        ...

    def fullness(self) -> float:
        """Occupied slots divided by total slots."""
        ...

    def items(self) -> Dict[str, int]: ...

    def transfer_to(self, other: "Inventory", keep: Iterable[str] = ()) -> int:
        """Move every stack not named in ``keep``; return items moved."""
        ...


class World(Protocol):
    """Voxel world accessor."""

    @property
    def min_build_height(self) -> int: ...

    @property
    def max_build_height(self) -> int: ...

    def get_block(self, pos: BlockPos) -> str: ...

    def set_block(self, pos: BlockPos, block: str) -> None: ...

    def break_block(self, pos: BlockPos) -> List[Tuple[str, int]]:
        """Remove the block and return its drops as ``(item, count)`` pairs."""
        ...

    def container_at(self, pos: BlockPos) -> Optional[Inventory]: ...


class Actor(Protocol):
    """Movement and hand primitives of the companion body."""

    @property
    def position(self) -> BlockPos:
        """Block the companion's feet occupy."""
        ...

    @property
    def facing(self) -> Direction: ...

    main_hand: Optional[str]

    def navigate_to(self, pos: BlockPos, speed: float = 1.0) -> bool:
        """Request movement; ``False`` when no path could be planned."""
        ...

    def is_navigating(self) -> bool: ...

    def stop(self) -> None: ...

    def look_at(self, pos: BlockPos) -> None: ...

    def equip_best_tool(self, block: str) -> None: ...


class Announcer(Protocol):
    def say(self, message: str) -> bool: ...


class FactStore(Protocol):
    def get_fact(self, key: str) -> Optional[str]: ...

    def set_fact(self, key: str, value: str) -> None: ...
