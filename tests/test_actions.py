"""Tests for block and inventory actions against the simulated world."""

from mineagent import actions
from mineagent import world as blocks
from mineagent.geometry import BlockPos
from mineagent.sim import SlotInventory, VoxelWorld


class TestCraftTorches:

    def test_from_coal_and_logs(self):
        inv = SlotInventory()
        inv.add(blocks.COAL, 2)
        inv.add("oak_log", 1)
        assert actions.craft_torches(inv, 8) == 8
        assert inv.count(blocks.TORCH) == 8
        assert inv.count(blocks.COAL) == 0
        assert inv.count(blocks.STICK) == 2
        assert inv.count("oak_planks") == 2
        assert inv.count("oak_log") == 0

    def test_rounds_up_to_batches(self):
        inv = SlotInventory()
        inv.add(blocks.CHARCOAL, 5)
        inv.add(blocks.STICK, 5)
        assert actions.craft_torches(inv, 5) == 8
        assert inv.count(blocks.CHARCOAL) == 3

    def test_batch_limit(self):
        inv = SlotInventory()
        inv.add(blocks.COAL, 10)
        inv.add(blocks.STICK, 10)
        assert actions.craft_torches(inv, 100, max_batches=3) == 12

    def test_nothing_without_fuel(self):
        inv = SlotInventory()
        inv.add(blocks.STICK, 4)
        assert actions.craft_torches(inv, 4) == 0

    def test_nothing_without_wood(self):
        inv = SlotInventory()
        inv.add(blocks.COAL, 4)
        assert actions.craft_torches(inv, 4) == 0
        assert inv.count(blocks.COAL) == 4


class TestBlockActions:

    def test_break_collects_drop(self, sim):
        pos = BlockPos(0, 50, 0)
        assert actions.break_block(sim.companion, pos)
        assert sim.world.get_block(pos) == blocks.AIR
        assert sim.inventory.count(blocks.COBBLESTONE) == 1
        assert sim.actor.main_hand == "iron_pickaxe"

    def test_break_refuses_bedrock_air_and_lava(self, sim):
        lava = BlockPos(0, 50, 0)
        sim.world.set_block(lava, blocks.LAVA)
        assert not actions.break_block(sim.companion, BlockPos(0, -64, 0))
        assert not actions.break_block(sim.companion, BlockPos(0, 80, 0))
        assert not actions.break_block(sim.companion, lava)

    def test_is_safe_to_mine(self):
        world = VoxelWorld()
        pos = BlockPos(0, 20, 0)
        assert actions.is_safe_to_mine(world, pos)
        world.set_block(pos.above(), blocks.LAVA)
        assert not actions.is_safe_to_mine(world, pos)
        assert not actions.is_safe_to_mine(world, pos.above())
        assert not actions.is_safe_to_mine(world, BlockPos(0, world.min_build_height, 0))

    def test_clear_falling_column(self, sim):
        base = BlockPos(3, 30, 3)
        for i in range(3):
            sim.world.set_block(base.above(i), blocks.GRAVEL)
        assert actions.clear_falling_blocks(sim.companion, base) == 3
        assert sim.world.get_block(base.above(2)) == blocks.AIR
        assert sim.inventory.count(blocks.GRAVEL) == 3

    def test_ensure_floor_fills_air(self, sim):
        hole = BlockPos(0, 30, 0)
        sim.world.set_block(hole, blocks.AIR)
        sim.inventory.add(blocks.COBBLESTONE, 1)
        assert actions.ensure_floor(sim.companion, hole)
        assert sim.world.get_block(hole) == blocks.COBBLESTONE
        assert not actions.ensure_floor(sim.companion, hole)


class TestPlaceTorch:

    def test_standing_torch_on_floor(self, sim):
        pos = BlockPos(0, 64, 5)
        assert actions.place_torch(sim.companion, pos)
        assert sim.world.get_block(pos) == blocks.TORCH
        assert sim.inventory.count(blocks.TORCH) == 63

    def test_wall_torch_in_tunnel_ceiling(self, sim):
        feet = BlockPos(0, 30, 0)
        sim.world.set_block(feet, blocks.AIR)
        sim.world.set_block(feet.above(), blocks.AIR)
        assert actions.place_torch(sim.companion, feet.above())
        assert sim.world.get_block(feet.above()) == blocks.WALL_TORCH

    def test_nothing_to_attach_to(self, sim):
        assert not actions.place_torch(sim.companion, BlockPos(0, 100, 0))
        assert sim.inventory.count(blocks.TORCH) == 64

    def test_occupied_cell(self, sim):
        assert not actions.place_torch(sim.companion, BlockPos(0, 30, 0))

    def test_no_torches(self, sim):
        sim.inventory.remove(blocks.TORCH, 64)
        assert not actions.place_torch(sim.companion, BlockPos(0, 64, 5))


class TestInventoryActions:

    def test_pickaxe_checks(self, sim):
        assert actions.has_pickaxe(sim.companion)
        assert actions.best_pickaxe_tier(sim.companion) == 2
        sim.inventory.add("diamond_pickaxe", 1)
        assert actions.best_pickaxe_tier(sim.companion) == 3
        sim.inventory.remove("iron_pickaxe", 1)
        sim.inventory.remove("diamond_pickaxe", 1)
        assert not actions.has_pickaxe(sim.companion)
        assert actions.best_pickaxe_tier(sim.companion) == -1

    def test_nearly_full(self):
        inv = SlotInventory(size=5)
        for item in ("a", "b", "c", "d"):
            inv.add(item, 1)
        assert actions.is_inventory_nearly_full(inv)
        assert not actions.is_inventory_nearly_full(inv, threshold=0.9)

    def test_deposit_keeps_tools_and_torch_materials(self, sim):
        chest = BlockPos(0, 40, 0)
        sim.world.set_block(chest, blocks.CHEST)
        sim.inventory.add(blocks.COBBLESTONE, 70)
        sim.inventory.add(blocks.COAL, 3)
        sim.inventory.add("raw_iron", 4)

        moved = actions.deposit_inventory(sim.companion, [chest, BlockPos(9, 9, 9)])

        container = sim.world.container_at(chest)
        assert container.count(blocks.COBBLESTONE) == 70
        assert container.count("raw_iron") == 4
        assert sim.inventory.count(blocks.COAL) == 3
        assert sim.inventory.count(blocks.TORCH) == 64
        assert sim.inventory.count("iron_pickaxe") == 1
        # starter chests, furnace and crafting table go too
        assert moved == 70 + 4 + 2 + 1 + 1

    def test_count_matching(self, sim):
        sim.inventory.add("raw_iron", 3)
        sim.inventory.add("raw_gold", 2)
        assert actions.count_matching(sim.inventory, lambda item: item.startswith("raw_")) == 5


class TestSlotInventory:

    def test_stacks_and_overflow(self):
        inv = SlotInventory(size=2)
        assert inv.add(blocks.COBBLESTONE, 100) == 0
        assert inv.used_slots() == 2
        assert inv.add(blocks.COBBLESTONE, 40) == 12
        assert inv.fullness() == 1.0

    def test_tools_do_not_stack(self):
        inv = SlotInventory(size=3)
        inv.add("iron_pickaxe", 2)
        assert inv.used_slots() == 2

    def test_remove_and_items(self):
        inv = SlotInventory()
        inv.add(blocks.DIRT, 10)
        assert inv.remove(blocks.DIRT, 4) == 4
        assert inv.remove(blocks.DIRT, 10) == 6
        assert inv.is_empty()
        assert inv.items() == {}
