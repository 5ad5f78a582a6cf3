"""CreateMineTask: validates a mine plan and queues the three workers."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from .. import actions
from .. import world as blocks
from ..tasks.base import PhasedTask
from .branch import BranchMineTask
from .hub import CreateHubTask
from .shaft import DigShaftTask
from .state import MinePhase, MineRecord, MineState

if TYPE_CHECKING:
    from ..companion import Companion

_log = logging.getLogger(__name__)

# Spare torches on top of one per shaft torch interval
EXTRA_TORCHES = 8
TORCH_SPACING = 8


class MineSetupPhase(Enum):
    VALIDATE = "validate"
    ENQUEUE = "enqueue"
    DONE = "done"


def estimate_torches(current_y: int, target_y: int) -> int:
    return max(0, current_y - target_y) // TORCH_SPACING + EXTRA_TORCHES


class CreateMineTask(PhasedTask):
    """Check tools and supplies, then hand the mine to DigShaft, CreateHub and BranchMine.

    The workers share this task's :class:`MineState` and are put at the head
    of the queue, so they run back to back right after this task completes.
    All checks are advisory; this task never fails on its own.
    """

    task_name = "CreateMine"

    def __init__(self, companion: "Companion", mine_state: MineState):
        self.mine_state = mine_state
        ore = mine_state.target_ore
        label = f"{ore.name} " if ore else ""
        super().__init__(
            companion,
            f"Create {label}mine at Y={mine_state.target_y}",
            MineSetupPhase.VALIDATE,
        )

    def get_mine_state(self) -> MineState:
        return self.mine_state

    def progress(self) -> int:
        return {MineSetupPhase.VALIDATE: 0, MineSetupPhase.ENQUEUE: 10}.get(self.phase, 99)

    def start(self) -> None:
        state = self.mine_state
        ore = state.target_ore
        label = f"{ore.name} " if ore else ""
        self.say(
            f"Setting up {label}mine. Entrance at {state.entrance}, digging to "
            f"Y={state.target_y} heading {state.shaft_direction.label}."
        )

    # ── Phases ────────────────────────────────────────────────

    def _tick_validate(self) -> MineSetupPhase:
        state = self.mine_state
        current_y = self.position.y
        world_min = self.world.min_build_height

        if state.target_y <= world_min + 1:
            self.warn(f"Target Y={state.target_y} is too close to bedrock. The shaft will stop short.")

        has_pick = actions.has_pickaxe(self.companion)
        if not has_pick:
            self.warn("I don't have a pickaxe! Mining will be slow. Consider crafting one first.")
        elif state.target_ore is not None:
            tier = actions.best_pickaxe_tier(self.companion)
            if tier < state.target_ore.min_tier:
                self.warn(
                    f"{state.target_ore.name.capitalize()} needs a "
                    f"{state.target_ore.tier_name} pickaxe or better. I can't mine it yet."
                )

        needed = estimate_torches(current_y, state.target_y)
        torches = self.inventory.count(blocks.TORCH)
        if torches < needed:
            torches += actions.craft_torches(self.inventory, needed - torches)
        if torches < needed:
            self.say(
                f"Have {torches} torches, might need ~{needed}. "
                f"I'll craft more from coal I find while mining."
            )

        _log.info(
            "CreateMine: validated. currentY=%d, targetY=%d, hasPickaxe=%s, torches=%d",
            current_y, state.target_y, has_pick, torches,
        )
        return MineSetupPhase.ENQUEUE

    def _tick_enqueue(self) -> MineSetupPhase:
        state = self.mine_state
        manager = self.companion.task_manager
        manager.queue_task(DigShaftTask(self.companion, state))
        manager.queue_task(CreateHubTask(self.companion, state))
        manager.queue_task(BranchMineTask(self.companion, state))
        state.set_phase(MinePhase.DIGGING_SHAFT)

        memory = self.companion.memory
        memory.set_fact(state.memory_key, MineRecord.from_state(state).encode())
        memory.add_event(
            f"Created {state.ore_label} mine at {state.entrance}, Y={state.target_y} "
            f"heading {state.shaft_direction.label}"
        )
        self.complete()
        return MineSetupPhase.DONE

    def _tick_done(self) -> MineSetupPhase:
        self.complete()
        return MineSetupPhase.DONE
