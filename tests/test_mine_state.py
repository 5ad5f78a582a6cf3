"""Tests for mine geometry, branch layout, shared state and the memory record."""

import pytest

from mineagent.geometry import BlockPos, Direction
from mineagent.mining import (
    BranchStatus,
    MineBranch,
    MineLevel,
    MinePhase,
    MineRecord,
    MineState,
    hub_center_for,
    layout_branches,
    shaft_bottom_for,
)
from mineagent.ores import find_by_name


class TestDirection:

    def test_rotation(self):
        assert Direction.NORTH.clockwise() is Direction.EAST
        assert Direction.NORTH.counter_clockwise() is Direction.WEST
        assert Direction.WEST.clockwise() is Direction.NORTH
        assert Direction.EAST.opposite() is Direction.WEST

    def test_vertical_has_no_rotation(self):
        with pytest.raises(ValueError):
            Direction.UP.clockwise()

    def test_from_name(self):
        assert Direction.from_name("North") is Direction.NORTH
        assert Direction.from_name(" s ") is Direction.SOUTH
        assert Direction.from_name("sideways") is None
        assert Direction.from_name(None) is None


class TestBlockPos:

    def test_relative(self):
        origin = BlockPos(0, 64, 0)
        assert origin.relative(Direction.NORTH, 3) == BlockPos(0, 64, -3)
        assert origin.relative(Direction.EAST, -2) == BlockPos(-2, 64, 0)
        assert origin.above(2) == BlockPos(0, 66, 0)

    def test_key_parse(self):
        pos = BlockPos(-5, 12, 300)
        assert pos.to_key() == "-5,12,300"
        assert BlockPos.parse("-5, 12, 300") == pos
        assert BlockPos.parse("1,2") is None
        assert BlockPos.parse("a,b,c") is None

    def test_neighbors(self):
        assert len(set(BlockPos(0, 0, 0).neighbors())) == 6


class TestMineGeometry:

    def test_shaft_bottom_descends_two_forward_per_level(self):
        bottom = shaft_bottom_for(BlockPos(0, 64, 0), Direction.NORTH, 40)
        assert bottom == BlockPos(0, 40, -48)

    def test_shaft_bottom_when_already_deep(self):
        assert shaft_bottom_for(BlockPos(3, 20, 3), Direction.EAST, 40) == BlockPos(3, 20, 3)

    def test_hub_center(self):
        assert hub_center_for(BlockPos(0, 40, -48), Direction.NORTH) == BlockPos(0, 40, -52)
        assert hub_center_for(BlockPos(10, 12, 0), Direction.EAST) == BlockPos(14, 12, 0)


class TestBranchLayout:

    def test_two_branches_per_pair(self):
        branches = layout_branches(BlockPos(0, 40, -52), Direction.NORTH, 4, 4, 20)
        assert len(branches) == 8
        assert [b.corridor_offset for b in branches] == [4, 4, 8, 8, 12, 12, 16, 16]

    def test_left_branch_first(self):
        left, right = layout_branches(BlockPos(0, 40, -52), Direction.NORTH, 1, 4, 20)
        assert left.direction is Direction.WEST
        assert left.start_pos == BlockPos(-1, 40, -56)
        assert right.direction is Direction.EAST
        assert right.start_pos == BlockPos(1, 40, -56)

    def test_new_branches_not_started(self):
        branches = layout_branches(BlockPos(0, 0, 0), Direction.SOUTH, 2, 3, 10)
        assert all(b.status is BranchStatus.NOT_STARTED for b in branches)
        assert all(b.current_length == 0 and b.max_length == 10 for b in branches)


class TestMineBranch:

    def test_length_is_clamped(self):
        branch = MineBranch(Direction.EAST, BlockPos(1, 40, 0), 20, 4)
        branch.current_length = 25
        assert branch.current_length == 20
        branch.current_length = -3
        assert branch.current_length == 0

    def test_end_and_face(self):
        branch = MineBranch(Direction.EAST, BlockPos(1, 40, 0), 20, 4)
        branch.current_length = 5
        assert branch.get_current_end() == BlockPos(6, 40, 0)
        assert branch.dig_face() == BlockPos(7, 40, 0)
        assert branch.remaining == 15

    def test_negative_max_length_rejected(self):
        with pytest.raises(ValueError):
            MineBranch(Direction.EAST, BlockPos(0, 0, 0), -1, 4)


class TestMineLevel:

    def _level(self, *statuses):
        level = MineLevel(depth=40, hub_center=BlockPos(0, 40, 0))
        for status in statuses:
            branch = MineBranch(Direction.EAST, BlockPos(1, 40, 0), 10, 4)
            branch.status = status
            level.branches.append(branch)
        return level

    def test_empty_level_is_not_fully_mined(self):
        assert self._level().is_fully_mined() is False

    def test_fully_mined_requires_all_completed(self):
        assert self._level(BranchStatus.COMPLETED, BranchStatus.COMPLETED).is_fully_mined()
        assert not self._level(BranchStatus.COMPLETED, BranchStatus.BLOCKED).is_fully_mined()

    def test_next_incomplete_skips_blocked(self):
        level = self._level(BranchStatus.BLOCKED, BranchStatus.COMPLETED, BranchStatus.NOT_STARTED)
        assert level.get_next_incomplete_branch() is level.branches[2]
        assert level.count_branches(BranchStatus.BLOCKED) == 1


class TestMineState:

    def test_horizontal_heading_required(self):
        with pytest.raises(ValueError):
            MineState(None, 40, BlockPos(0, 64, 0), Direction.DOWN)

    def test_phase_history(self, mine_state):
        mine_state.set_phase(MinePhase.DIGGING_SHAFT)
        mine_state.set_phase(MinePhase.DIGGING_SHAFT)
        mine_state.set_phase(MinePhase.CREATING_HUB)
        assert mine_state.phase_history == [
            (MinePhase.INITIALIZING, MinePhase.DIGGING_SHAFT),
            (MinePhase.DIGGING_SHAFT, MinePhase.CREATING_HUB),
        ]

    def test_pause_and_resume(self, mine_state):
        mine_state.set_phase(MinePhase.BRANCH_MINING)
        assert mine_state.pause()
        assert mine_state.phase is MinePhase.PAUSED
        assert not mine_state.pause()
        assert mine_state.resume()
        assert mine_state.phase is MinePhase.BRANCH_MINING

    def test_levels(self, mine_state):
        assert mine_state.get_active_level() is None
        level = mine_state.add_level(40, BlockPos(0, 40, -52))
        assert mine_state.get_active_level() is level
        assert mine_state.level_at(40) is level
        assert mine_state.level_at(12) is None

    def test_stats_accumulate(self, mine_state):
        mine_state.add_stats(ores=1, blocks=3)
        mine_state.add_stats(blocks=2, torches=1)
        assert (mine_state.total_ores_mined, mine_state.total_blocks_broken,
                mine_state.total_torches_placed) == (1, 5, 1)

    def test_target_ore_matching(self, mine_state):
        assert mine_state.is_target_ore("iron_ore")
        assert not mine_state.is_target_ore("stone")
        iron = MineState(find_by_name("iron"), 16, BlockPos(0, 64, 0), Direction.NORTH)
        assert iron.is_target_ore("deepslate_iron_ore")
        assert not iron.is_target_ore("coal_ore")

    def test_memory_key(self, mine_state):
        assert mine_state.memory_key == "mine_general"
        quartz = MineState(find_by_name("certus"), 16, BlockPos(0, 64, 0), Direction.NORTH)
        assert quartz.memory_key == "mine_certus_quartz"

    def test_summary(self, mine_state):
        assert mine_state.get_summary().startswith("Mine: any ore at Y=40 | Phase: INITIALIZING")


class TestMineRecord:

    def test_encode(self):
        record = MineRecord(BlockPos(0, 64, 0), 40, Direction.NORTH, 20, 4)
        assert record.encode() == "0,64,0|40|north|20|4"
        assert record.with_hub(BlockPos(0, 40, -52)).encode() == "0,64,0|40|north|20|4|0,40,-52"

    def test_parse_with_hub(self):
        record = MineRecord.parse("10,70,-3|16|east|24|3|22,16,-3")
        assert record.entrance == BlockPos(10, 70, -3)
        assert record.target_y == 16
        assert record.direction is Direction.EAST
        assert record.branch_length == 24
        assert record.branches_per_side == 3
        assert record.hub_center == BlockPos(22, 16, -3)

    @pytest.mark.parametrize("text", [
        None,
        "",
        "0,64,0|40",
        "0,64|40|north|20|4",
        "0,64,0|forty|north|20|4",
        "0,64,0|40|up|20|4",
        "0,64,0|40|north|20|4|nowhere",
    ])
    def test_parse_malformed(self, text):
        assert MineRecord.parse(text) is None

    def test_from_state_includes_built_hub_only(self, mine_state):
        level = mine_state.add_level(40, BlockPos(0, 40, -52))
        assert MineRecord.from_state(mine_state).hub_center is None
        level.hub_built = True
        assert MineRecord.from_state(mine_state).hub_center == BlockPos(0, 40, -52)
