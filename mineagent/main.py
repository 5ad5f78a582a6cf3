"""
mineagent v1.0.0 — tick-driven companion tasks and automated mines.

Command: mineagent simulate
"""

import sys
from pathlib import Path

import click
from rich.console import Console

from . import __version__
from .config import MineAgentConfig
from .errors import MineAgentError
from .geometry import BlockPos
from .logger import setup_logger
from .memory import CompanionMemory
from .mining import MineState, create_mine, hub_center_for, list_mines, shaft_bottom_for
from .ores import ORES
from .rendering import (
    render_branches,
    render_config,
    render_mine_summary,
    render_mines,
    render_ore_guide,
    render_task_history,
)
from .sim import Simulation, populate_ores

console = Console()
BANNER = (
    f"[bold #7FA6D9]mineagent[/bold #7FA6D9] "
    f"[dim]v{__version__} · automated mining companion[/dim]"
)


@click.group(invoke_without_command=True)
@click.pass_context
def cli(ctx):
    """mineagent — tick-driven companion tasks and automated mines."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(simulate)


@cli.command()
@click.option("--ore", "-o", default=None, help="Target ore (omit for a general mine)")
@click.option("--direction", "-D", default=None, help="Heading: north, south, east or west")
@click.option("--branch-length", "-l", type=int, default=None, help="Blocks per branch (8-40)")
@click.option("--branches-per-side", "-n", type=int, default=None, help="Branch pairs (1-8)")
@click.option("--seed", type=int, default=None, help="Random seed for ore placement")
@click.option("--lava", type=int, default=0, help="Number of lava pockets near the mine")
@click.option("--max-ticks", type=int, default=100_000, help="Stop after this many ticks")
@click.option("--memory", "-m", "memory_path", default=None, help="Memory file to load and save")
@click.option("--new-mine", is_flag=True, help="Build a new mine even if one is remembered")
@click.option("--project-dir", "-d", default=".", help="Project directory")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.option("--quiet", "-q", is_flag=True, help="Hide companion chat")
def simulate(ore, direction, branch_length, branches_per_side, seed, lava, max_ticks,
             memory_path, new_mine, project_dir, verbose, quiet):
    """Build a mine in a simulated world and run it to completion."""
    console.print(BANNER)
    config = _load_config(project_dir)
    if verbose:
        config.verbose = True
    setup_logger(verbose=config.verbose, log_file=config.log_file)

    memory = CompanionMemory.load(memory_path) if memory_path else CompanionMemory()
    sim = Simulation.create(config=config, console=console, memory=memory, echo=not quiet)

    try:
        plan = create_mine(
            sim.companion,
            ore=ore,
            branch_length=branch_length,
            branches_per_side=branches_per_side,
            direction=direction,
            new_mine=new_mine,
        )
    except MineAgentError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    console.print(f"  [dim]{plan.message}[/dim]")
    placed = populate_ores(
        sim.world,
        _ore_field_center(plan.mine_state),
        seed=seed,
        lava_pockets=lava,
    )
    if verbose and placed:
        console.print(f"  [dim]World: {', '.join(f'{k} {v}' for k, v in sorted(placed.items()))}[/dim]")

    try:
        ticks = sim.run(max_ticks=max_ticks)
    except KeyboardInterrupt:
        cancelled = sim.companion.task_manager.cancel_all()
        console.print(f"\n[yellow]  Interrupted. Cancelled {cancelled} task(s).[/yellow]")
        ticks = sim.ticks

    if sim.companion.task_manager.has_tasks():
        console.print(f"[yellow]  Stopped after {ticks:,} ticks: "
                      f"{sim.companion.task_manager.get_status_summary()}[/yellow]")

    console.print()
    render_task_history(console, sim.companion.task_manager)
    render_mine_summary(console, plan.mine_state, ticks)
    render_branches(console, plan.mine_state)

    if memory_path:
        saved = memory.save(memory_path)
        console.print(f"  [dim]Memory saved to {saved}[/dim]")


@cli.command()
@click.option("--memory", "-m", "memory_path", required=True, help="Memory file to read")
def mines(memory_path):
    """List remembered mines."""
    if not Path(memory_path).exists():
        console.print(f"[red]Error: '{memory_path}' does not exist.[/red]")
        sys.exit(1)
    render_mines(console, list_mines(CompanionMemory.load(memory_path)))


@cli.command()
@click.option("--all", "show_all", is_flag=True, help="Include nether and modded ores")
def ores(show_all):
    """Show the ore guide."""
    shown = ORES if show_all else [o for o in ORES if not o.modded and not o.nether]
    render_ore_guide(console, shown)


@cli.command("config")
@click.option("--project-dir", "-d", default=".", help="Project directory")
def config_cmd(project_dir):
    """Show configuration."""
    render_config(console, _load_config(project_dir))


def _ore_field_center(state: MineState) -> BlockPos:
    """Middle of the planned corridor, at mining depth."""
    bottom = shaft_bottom_for(state.entrance, state.shaft_direction, state.target_y)
    hub = hub_center_for(bottom, state.shaft_direction)
    return hub.relative(state.shaft_direction, state.branches_per_side * state.branch_spacing // 2)


def _load_config(project_dir: str) -> MineAgentConfig:
    try:
        return MineAgentConfig.load(project_dir)
    except MineAgentError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    cli()
