"""Block and inventory actions shared by the mining tasks."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, Optional

from . import world as blocks
from .geometry import BlockPos, Direction
from .world import Inventory, World

if TYPE_CHECKING:
    from .companion import Companion

_log = logging.getLogger(__name__)

TORCHES_PER_BATCH = 4
STICKS_PER_CRAFT = 4
PLANKS_PER_STICK_CRAFT = 2
PLANKS_PER_LOG = 4
FUELS = (blocks.COAL, blocks.CHARCOAL)


def break_block(companion: "Companion", pos: BlockPos) -> bool:
    """Break ``pos`` with the best tool and collect its drops.

    Refuses air, fluids, and indestructible blocks. Drops that do not fit in
    the inventory are lost.
    """
    world = companion.world
    block = world.get_block(pos)
    if blocks.is_air(block) or block in blocks.FLUIDS or block in blocks.INDESTRUCTIBLE:
        return False
    companion.actor.equip_best_tool(block)
    companion.actor.look_at(pos)
    for item, amount in world.break_block(pos):
        leftover = companion.inventory.add(item, amount)
        if leftover:
            _log.debug("Inventory full, dropped %d %s at %s", leftover, item, pos)
    return True


def is_safe_to_mine(world: World, pos: BlockPos) -> bool:
    """``False`` for lava cells, cells touching lava, and the world floor."""
    if pos.y <= world.min_build_height:
        return False
    if blocks.is_hazardous_fluid(world.get_block(pos)):
        return False
    return not any(blocks.is_hazardous_fluid(world.get_block(n)) for n in pos.neighbors())


def is_falling_block(world: World, pos: BlockPos) -> bool:
    return blocks.is_falling(world.get_block(pos))


def clear_falling_blocks(companion: "Companion", start: BlockPos, limit: int = 10) -> int:
    """Break a column of gravity blocks starting at ``start`` going up."""
    broken = 0
    pos = start
    while broken < limit and is_falling_block(companion.world, pos):
        if not break_block(companion, pos):
            break
        broken += 1
        pos = pos.above()
    return broken


def place_block(companion: "Companion", pos: BlockPos, block: str) -> bool:
    """Place ``block`` from the inventory into a replaceable cell."""
    world = companion.world
    if not blocks.is_replaceable(world.get_block(pos)):
        return False
    if companion.inventory.remove(block, 1) < 1:
        return False
    world.set_block(pos, block)
    return True


def ensure_floor(companion: "Companion", pos: BlockPos, filler: str = blocks.COBBLESTONE) -> bool:
    """Fill ``pos`` when it is air or a hazardous fluid. ``True`` if a block was placed."""
    current = companion.world.get_block(pos)
    if blocks.is_air(current) or blocks.is_hazardous_fluid(current):
        return place_block(companion, pos, filler)
    return False


def place_torch(companion: "Companion", pos: BlockPos) -> bool:
    """Standing torch on a solid floor, else a wall torch against a solid side."""
    world = companion.world
    if not blocks.is_air(world.get_block(pos)):
        return False
    if companion.inventory.count(blocks.TORCH) < 1:
        return False
    if blocks.is_solid(world.get_block(pos.below())):
        placed = blocks.TORCH
    elif any(blocks.is_solid(world.get_block(pos.relative(d))) for d in Direction.horizontal()):
        placed = blocks.WALL_TORCH
    else:
        return False
    companion.inventory.remove(blocks.TORCH, 1)
    world.set_block(pos, placed)
    return True


def is_inventory_nearly_full(inventory: Inventory, threshold: float = 0.8) -> bool:
    return inventory.fullness() >= threshold


def count_matching(inventory: Inventory, predicate) -> int:
    return sum(n for item, n in inventory.items().items() if predicate(item))


def has_pickaxe(companion: "Companion") -> bool:
    if companion.actor.main_hand in blocks.PICKAXES:
        return True
    return any(companion.inventory.count(p) for p in blocks.PICKAXES)


def best_pickaxe_tier(companion: "Companion") -> int:
    tiers = [tier for name, tier in blocks.PICKAXES.items() if companion.inventory.count(name)]
    if companion.actor.main_hand in blocks.PICKAXES:
        tiers.append(blocks.PICKAXES[companion.actor.main_hand])
    return max(tiers, default=-1)


def _first_matching(inventory: Inventory, predicate) -> Optional[str]:
    for item, n in inventory.items().items():
        if n > 0 and predicate(item):
            return item
    return None


def _ensure_stick(inventory: Inventory) -> bool:
    if inventory.count(blocks.STICK) > 0:
        return True
    plank = _first_matching(inventory, blocks.is_plank)
    if plank is None or inventory.count(plank) < PLANKS_PER_STICK_CRAFT:
        log = _first_matching(inventory, blocks.is_log)
        if log is None:
            return False
        inventory.remove(log, 1)
        plank = log[: -len(blocks.LOG_SUFFIX)] + blocks.PLANK_SUFFIX
        inventory.add(plank, PLANKS_PER_LOG)
    inventory.remove(plank, PLANKS_PER_STICK_CRAFT)
    inventory.add(blocks.STICK, STICKS_PER_CRAFT)
    return True


def craft_torches(inventory: Inventory, wanted: int, max_batches: int = 8) -> int:
    """Craft up to ``wanted`` torches (rounded up to batches of 4) from coal or charcoal.

    Sticks are made from planks, and planks from logs, when needed. Returns
    the number of torches added.
    """
    crafted = 0
    batches = 0
    while crafted < wanted and batches < max_batches:
        fuel = next((f for f in FUELS if inventory.count(f) > 0), None)
        if fuel is None or not _ensure_stick(inventory):
            break
        inventory.remove(fuel, 1)
        inventory.remove(blocks.STICK, 1)
        inventory.add(blocks.TORCH, TORCHES_PER_BATCH)
        crafted += TORCHES_PER_BATCH
        batches += 1
    if crafted:
        _log.info("Crafted %d torches", crafted)
    return crafted


def _keep_on_deposit(item: str) -> bool:
    return (
        item in blocks.PICKAXES
        or item in (blocks.TORCH, blocks.STICK)
        or item in FUELS
        or blocks.is_plank(item)
        or blocks.is_log(item)
    )


def deposit_inventory(companion: "Companion", container_positions: Iterable[BlockPos]) -> int:
    """Move everything except tools and torch materials into the given containers."""
    keep = [item for item in companion.inventory.items() if _keep_on_deposit(item)]
    moved = 0
    for pos in container_positions:
        container = companion.world.container_at(pos)
        if container is None:
            continue
        moved += companion.inventory.transfer_to(container, keep)
    if moved:
        _log.info("Deposited %d items", moved)
    return moved
