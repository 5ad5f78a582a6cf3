"""Rich tables and panels for the CLI."""

from typing import Iterable, List, Tuple

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import MineAgentConfig
from .mining.state import BranchStatus, MineRecord, MineState
from .ores import Ore
from .tasks import TaskManager, TaskStatus
from .theme import ACCENT, BORDER, DIM, ERROR, INFO, SUCCESS, TEXT, WARN

__all__ = [
    "render_config",
    "render_mine_summary",
    "render_branches",
    "render_mines",
    "render_ore_guide",
    "render_task_history",
]

# Status display: (icon_char, color, label)
_STATUS_DISPLAY = {
    TaskStatus.PENDING:   ("○", DIM,     "queued"),
    TaskStatus.RUNNING:   ("▸", INFO,    "running"),
    TaskStatus.COMPLETED: ("✓", SUCCESS, "done"),
    TaskStatus.FAILED:    ("✗", ERROR,   "failed"),
    TaskStatus.CANCELLED: ("–", DIM,     "cancelled"),
}

_BRANCH_DISPLAY = {
    BranchStatus.NOT_STARTED: ("○", DIM,     "not started"),
    BranchStatus.IN_PROGRESS: ("▸", INFO,    "digging"),
    BranchStatus.COMPLETED:   ("✓", SUCCESS, "completed"),
    BranchStatus.BLOCKED:     ("✗", WARN,    "blocked"),
}


def _panel(console: Console, body, title: str) -> None:
    console.print(Panel(body, title=f"[bold {ACCENT}] {title} [/bold {ACCENT}]",
                        title_align="left", border_style=BORDER, padding=(0, 1)))


def _key_value_table() -> Table:
    table = Table(show_header=False, border_style=BORDER, padding=(0, 2), box=None)
    table.add_column("Key", style=f"bold {ACCENT}", min_width=14)
    table.add_column("Value", style=TEXT)
    return table


def render_config(console: Console, config: MineAgentConfig) -> None:
    table = _key_value_table()
    table.add_row("source", config.source)
    for key, value in config.to_dict().items():
        if isinstance(value, dict):
            for sub_key, sub_value in value.items():
                table.add_row(f"{key}.{sub_key}", str(sub_value))
        else:
            table.add_row(key, str(value))
    _panel(console, table, "Configuration")


def render_mine_summary(console: Console, state: MineState, ticks: int) -> None:
    level = state.get_active_level()
    table = _key_value_table()
    table.add_row("ore", state.ore_label)
    table.add_row("entrance", str(state.entrance))
    table.add_row("heading", state.shaft_direction.label)
    table.add_row("target Y", str(state.target_y))
    table.add_row("shaft bottom", str(state.shaft_bottom) if state.shaft_bottom else "-")
    table.add_row("hub", str(level.hub_center) if level and level.hub_built else "-")
    table.add_row("phase", state.phase.name)
    table.add_row("ores mined", str(state.total_ores_mined))
    table.add_row("blocks broken", str(state.total_blocks_broken))
    table.add_row("torches placed", str(state.total_torches_placed))
    table.add_row("ticks", f"{ticks:,}")
    _panel(console, table, "Mine")


def render_branches(console: Console, state: MineState) -> None:
    level = state.get_active_level()
    if level is None or not level.branches:
        console.print(f"  [{DIM}]No branches laid out.[/{DIM}]")
        return
    table = Table(border_style=BORDER, header_style=f"bold {ACCENT}")
    table.add_column("#", justify="right", style=DIM)
    table.add_column("Offset", justify="right")
    table.add_column("Side")
    table.add_column("Length", justify="right")
    table.add_column("Status")
    for i, branch in enumerate(level.branches, 1):
        icon, color, label = _BRANCH_DISPLAY[branch.status]
        table.add_row(
            str(i),
            str(branch.corridor_offset),
            branch.direction.label,
            f"{branch.current_length}/{branch.max_length}",
            f"[{color}]{icon} {label}[/{color}]",
        )
    console.print(table)


def render_task_history(console: Console, manager: TaskManager) -> None:
    rows: List[Tuple[str, TaskStatus, str]] = [
        (desc, status, reason or "") for desc, status, reason in manager.finished_tasks()
    ]
    active = manager.peek_active_task()
    if active is not None:
        rows.append((active.description, active.status, f"{active.get_progress_percent()}%"))
    rows.extend((task.description, task.status, "") for task in manager.queued_tasks())
    if not rows:
        return
    table = Table(border_style=BORDER, header_style=f"bold {ACCENT}")
    table.add_column("Task")
    table.add_column("Status")
    table.add_column("Detail", style=DIM)
    for desc, status, detail in rows:
        icon, color, label = _STATUS_DISPLAY[status]
        table.add_row(desc, f"[{color}]{icon} {label}[/{color}]", detail)
    console.print(table)


def render_mines(console: Console, mines: Iterable[Tuple[str, MineRecord]]) -> None:
    mines = list(mines)
    if not mines:
        console.print(f"  [{DIM}]No mines remembered yet.[/{DIM}]")
        return
    table = Table(border_style=BORDER, header_style=f"bold {ACCENT}")
    table.add_column("Ore")
    table.add_column("Entrance")
    table.add_column("Y", justify="right")
    table.add_column("Heading")
    table.add_column("Branches")
    table.add_column("Hub")
    for ore_key, record in mines:
        table.add_row(
            ore_key.replace("_", " ").capitalize(),
            str(record.entrance),
            str(record.target_y),
            record.direction.label,
            f"{record.branches_per_side * 2} × {record.branch_length}",
            str(record.hub_center) if record.hub_center else f"[{DIM}]-[/{DIM}]",
        )
    console.print(table)


def render_ore_guide(console: Console, ores: Iterable[Ore]) -> None:
    table = Table(border_style=BORDER, header_style=f"bold {ACCENT}")
    table.add_column("Ore", style="bold")
    table.add_column("Y range", justify="right")
    table.add_column("Best Y", justify="right")
    table.add_column("Pickaxe")
    table.add_column("Where")
    table.add_column("Tip", style=DIM)
    for ore in ores:
        where = "nether" if ore.nether else ("modded" if ore.modded else "overworld")
        table.add_row(
            ore.name,
            f"{ore.min_y}..{ore.max_y}",
            str(ore.best_y),
            ore.tier_name,
            where,
            ore.tip,
        )
    console.print(table)
