"""Shared fixtures for mineagent tests."""

import logging
import os
from unittest.mock import MagicMock

import pytest

from mineagent import config as config_module
from mineagent import logger as logger_module
from mineagent.config import MineAgentConfig
from mineagent.geometry import BlockPos, Direction
from mineagent.mining import MineState
from mineagent.sim import Simulation


@pytest.fixture
def tmp_dir(tmp_path):
    """Provide a temporary directory and cd into it."""
    orig = os.getcwd()
    os.chdir(tmp_path)
    yield tmp_path
    os.chdir(orig)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep global config, .env and log files out of the real home directory."""
    home = tmp_path / "home"
    monkeypatch.setattr(config_module, "CONFIG_DIR", home)
    monkeypatch.setattr(config_module, "CONFIG_FILE", home / "config.yml")
    monkeypatch.setattr(logger_module, "DEFAULT_LOG_FILE", home / "logs" / "mineagent.log")
    monkeypatch.delenv("MINEAGENT_VERBOSE", raising=False)
    monkeypatch.delenv("MINEAGENT_LOG_FILE", raising=False)
    return home


@pytest.fixture
def sample_config_data():
    """Minimal .mine.conf.yml data dict."""
    return {
        "verbose": False,
        "log-file": "off",
        "task-timeout-ticks": 1200,
        "progress-announce-ticks": 100,
        "mining": {
            "branch-length": 16,
            "branches-per-side": 2,
            "branch-spacing": 3,
            "torch-interval": 6,
            "inventory-full-threshold": 0.75,
        },
    }


@pytest.fixture
def mock_console():
    """A mock Rich Console that silently accepts all print calls."""
    c = MagicMock()
    c.print = MagicMock()
    return c


@pytest.fixture
def sim(mock_console):
    """Companion standing on the surface at the origin, facing north, with the starter kit."""
    return Simulation.create(console=mock_console, echo=False)


@pytest.fixture
def short_timeout_sim(mock_console):
    """Simulation whose tasks time out after three ticks."""
    config = MineAgentConfig(task_timeout_ticks=3)
    return Simulation.create(config=config, console=mock_console, echo=False)


@pytest.fixture
def mine_state():
    """General mine from the origin heading north down to Y=40."""
    return MineState(
        target_ore=None,
        target_y=40,
        entrance=BlockPos(0, 64, 0),
        shaft_direction=Direction.NORTH,
        branch_length=20,
        branches_per_side=4,
        branch_spacing=4,
    )


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo setup_logger() calls made by CLI tests."""
    yield
    logger = logging.getLogger("mineagent")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
