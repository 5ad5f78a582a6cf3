"""Automated mine: shaft, hub room, and branch mining tasks sharing one MineState."""

from .branch import BranchMineTask, BranchPhase
from .hub import CreateHubTask, HubLayout, HubPhase
from .orchestrator import CreateMineTask, MineSetupPhase
from .planner import MinePlan, create_mine, list_mines
from .shaft import DigShaftTask, ShaftPhase
from .state import (
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

__all__ = [
    "BranchMineTask",
    "BranchPhase",
    "BranchStatus",
    "CreateHubTask",
    "CreateMineTask",
    "DigShaftTask",
    "HubLayout",
    "HubPhase",
    "MineBranch",
    "MineLevel",
    "MinePhase",
    "MinePlan",
    "MineRecord",
    "MineSetupPhase",
    "MineState",
    "ShaftPhase",
    "create_mine",
    "hub_center_for",
    "layout_branches",
    "list_mines",
    "shaft_bottom_for",
]
