"""Tests for BranchMineTask: branch digging, hazards and deposit trips."""

import pytest

from mineagent import world as blocks
from mineagent.geometry import BlockPos, Direction
from mineagent.mining import BranchMineTask, BranchPhase, BranchStatus, MinePhase, MineState
from mineagent.mining.branch import DEPOSIT_RETRY_COOLDOWN
from mineagent.sim import Simulation

HUB = BlockPos(0, 40, -52)


def _built_state(per_side=1, length=20):
    state = MineState(
        None, 40, BlockPos(0, 64, 0), Direction.NORTH,
        branch_length=length, branches_per_side=per_side, branch_spacing=4,
    )
    state.shaft_bottom = BlockPos(0, 40, -48)
    level = state.add_level(40, HUB)
    level.hub_built = True
    return state


@pytest.fixture
def hub_sim(mock_console):
    """Companion standing at the hub center."""
    return Simulation.create(position=HUB, console=mock_console, echo=False)


class TestBranchMineStart:

    def test_fails_without_hub(self, sim, mine_state):
        task = BranchMineTask(sim.companion, mine_state)
        sim.companion.task_manager.queue_task(task)
        sim.step()
        assert task.is_failed()
        assert task.fail_reason == "No hub available — hub must be created first."

    def test_fails_when_hub_not_built(self, sim, mine_state):
        mine_state.add_level(40, HUB)
        task = BranchMineTask(sim.companion, mine_state)
        task.begin()
        assert task.is_failed()

    def test_lays_out_branches(self, hub_sim):
        state = _built_state(per_side=3)
        task = BranchMineTask(hub_sim.companion, state)
        task.begin()
        assert len(state.get_active_level().branches) == 6
        assert state.phase is MinePhase.BRANCH_MINING

    def test_keeps_existing_branches(self, hub_sim):
        state = _built_state(per_side=2)
        level = state.get_active_level()
        BranchMineTask(hub_sim.companion, state).begin()
        first_layout = list(level.branches)
        BranchMineTask(hub_sim.companion, state).begin()
        assert level.branches == first_layout

    def test_has_no_timeout(self, hub_sim):
        assert BranchMineTask(hub_sim.companion, _built_state()).max_ticks is None


class TestBranchDigging:

    def test_digs_both_branches(self, hub_sim):
        state = _built_state(per_side=1)
        task = BranchMineTask(hub_sim.companion, state)
        hub_sim.companion.task_manager.queue_task(task)
        hub_sim.run(max_ticks=2000)

        assert task.is_complete()
        left, right = state.get_active_level().branches
        assert left.status is BranchStatus.COMPLETED
        assert right.status is BranchStatus.COMPLETED
        assert left.current_length == right.current_length == 20
        assert task.branches_completed == 2
        assert state.phase is MinePhase.COMPLETED
        assert state.get_active_level().is_fully_mined()

        world = hub_sim.world
        for step in range(1, 21):
            feet = left.start_pos.relative(Direction.WEST, step)
            assert world.get_block(feet) == blocks.AIR
        assert world.get_block(BlockPos(0, 40, -56)) == blocks.AIR
        assert world.get_block(BlockPos(0, 41, -56)) == blocks.AIR

    def test_torches_and_poke_holes(self, hub_sim):
        state = _built_state(per_side=1)
        hub_sim.companion.task_manager.queue_task(BranchMineTask(hub_sim.companion, state))
        hub_sim.run(max_ticks=2000)

        assert state.total_torches_placed == 4
        left = state.get_active_level().branches[0]
        assert hub_sim.world.get_block(left.start_pos.relative(Direction.WEST, 7).above()) == blocks.WALL_TORCH
        hole_row = left.start_pos.relative(Direction.WEST, 5)
        assert hub_sim.world.get_block(hole_row.relative(Direction.NORTH)) == blocks.AIR
        assert hub_sim.world.get_block(hole_row.relative(Direction.SOUTH)) == blocks.AIR

    def test_lava_blocks_branch(self, hub_sim):
        state = _built_state(per_side=1)
        left_start = BlockPos(-1, 40, -56)
        hub_sim.world.set_block(left_start.relative(Direction.WEST, 14), blocks.LAVA)
        task = BranchMineTask(hub_sim.companion, state)
        hub_sim.companion.task_manager.queue_task(task)
        hub_sim.run(max_ticks=2000)

        left, right = state.get_active_level().branches
        assert left.status is BranchStatus.BLOCKED
        assert left.current_length == 12
        assert right.status is BranchStatus.COMPLETED
        assert task.branches_completed == 2
        assert task.is_complete()
        assert not state.get_active_level().is_fully_mined()
        assert "Lava in branch! Stopping this branch at 12 blocks." in hub_sim.companion.chat.messages()

    def test_mines_spotted_ore(self, hub_sim):
        state = _built_state(per_side=1)
        ore_pos = BlockPos(-4, 40, -57)
        hub_sim.world.set_block(ore_pos, "iron_ore")
        task = BranchMineTask(hub_sim.companion, state)
        hub_sim.companion.task_manager.queue_task(task)
        hub_sim.run(max_ticks=2000)

        assert hub_sim.world.get_block(ore_pos) == blocks.AIR
        assert hub_sim.inventory.count("raw_iron") == 1
        assert task.ores_mined == 1
        assert state.total_ores_mined == 1

    def test_progress_counts_finished_branches(self, hub_sim):
        state = _built_state(per_side=2)
        task = BranchMineTask(hub_sim.companion, state)
        task.begin()
        task.branches_completed = 1
        assert task.get_progress_percent() == 25


class TestDepositTrip:

    def _fill(self, inventory):
        # starter kit takes five slots of ten
        for item in ("dirt", "gravel", "andesite"):
            inventory.add(item, 1)

    def _small_sim(self, mock_console):
        return Simulation.create(position=HUB, inventory_size=10, console=mock_console, echo=False)

    def test_full_inventory_interrupts_mining(self, mock_console):
        sim = self._small_sim(mock_console)
        state = _built_state()
        task = BranchMineTask(sim.companion, state)
        sim.companion.task_manager.queue_task(task)
        self._fill(sim.inventory)

        sim.step()
        assert task.phase is BranchPhase.SELECT_BRANCH
        sim.step()

        assert task.phase is BranchPhase.DEPOSIT_ITEMS
        assert state.phase is MinePhase.DEPOSITING
        assert "Inventory 80% full — heading back to deposit." in sim.companion.chat.messages()

    def test_deposits_into_hub_chest(self, mock_console):
        sim = self._small_sim(mock_console)
        state = _built_state()
        chest = BlockPos(-2, 40, -51)
        sim.world.set_block(chest, blocks.CHEST)
        state.get_active_level().furniture_positions.append(chest)
        task = BranchMineTask(sim.companion, state)
        sim.companion.task_manager.queue_task(task)
        self._fill(sim.inventory)

        for _ in range(3):
            sim.step()

        container = sim.world.container_at(chest)
        assert container.count("dirt") == 1
        assert container.count("andesite") == 1
        assert sim.inventory.count("iron_pickaxe") == 1
        assert sim.inventory.count(blocks.TORCH) == 64
        assert sim.inventory.fullness() < 0.8
        assert state.phase is MinePhase.BRANCH_MINING
        assert task.phase is BranchPhase.SELECT_BRANCH

    def test_full_bag_mid_branch_returns_to_branch(self, mock_console):
        sim = self._small_sim(mock_console)
        state = _built_state()
        chest = BlockPos(-2, 40, -51)
        sim.world.set_block(chest, blocks.CHEST)
        state.get_active_level().furniture_positions.append(chest)
        task = BranchMineTask(sim.companion, state)
        sim.companion.task_manager.queue_task(task)

        for _ in range(200):
            sim.step()
            branch = task.active_branch
            if task.phase is BranchPhase.DIG_BRANCH and branch is not None and branch.current_length > 2:
                break
        assert task.phase is BranchPhase.DIG_BRANCH
        assert sim.inventory.fullness() < 0.8
        dug = branch.current_length

        self._fill(sim.inventory)
        sim.step()
        assert task.phase is BranchPhase.DEPOSIT_ITEMS
        assert state.phase is MinePhase.DEPOSITING

        for _ in range(200):
            sim.step()
            if task.phase is not BranchPhase.DEPOSIT_ITEMS:
                break
        assert task.phase is BranchPhase.NAVIGATE_BRANCH
        assert task.active_branch is branch
        assert branch.status is BranchStatus.IN_PROGRESS
        assert branch.current_length == dug
        assert state.phase is MinePhase.BRANCH_MINING
        assert sim.world.container_at(chest).count("dirt") == 1

    def test_nowhere_to_deposit_mutes_guard(self, mock_console):
        sim = self._small_sim(mock_console)
        state = _built_state()
        task = BranchMineTask(sim.companion, state)
        sim.companion.task_manager.queue_task(task)
        self._fill(sim.inventory)

        for _ in range(3):
            sim.step()
        assert task.deposit_cooldown == DEPOSIT_RETRY_COOLDOWN
        assert task.phase is BranchPhase.SELECT_BRANCH

        sim.step()
        assert task.phase is BranchPhase.DIG_CORRIDOR
        assert state.phase is MinePhase.BRANCH_MINING

    def test_cleanup_clears_ore_queue(self, hub_sim):
        task = BranchMineTask(hub_sim.companion, _built_state())
        task.begin()
        task.ore_queue.append(BlockPos(1, 2, 3))
        task.cancel()
        task.finish()
        assert not task.ore_queue
