"""
Configuration — mining defaults and runtime knobs from YAML.

Loading priority:
  1. Project dir .mine.conf.yml
  2. Global ~/.mineagent/config.yml

Environment (.env files are loaded first, existing variables win):
  MINEAGENT_VERBOSE, MINEAGENT_LOG_FILE
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import yaml
from dotenv import load_dotenv

from .errors import ConfigError

_log = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".mineagent"
CONFIG_FILE = CONFIG_DIR / "config.yml"
PROJECT_CONFIG_NAME = ".mine.conf.yml"

DEFAULT_TASK_TIMEOUT_TICKS = 20 * 60 * 5  # 5 minutes at 20 tps


# ── Field metadata and validation ──


@dataclass
class ConfigFieldSpec:
    """Configuration field specification with validation rules."""
    key: str
    field_name: str
    description: str
    default: Any
    validator: Optional[Callable[[Any], tuple[bool, Any, str]]] = None  # (valid, coerced_value or None, error_msg)


def _validate_int_range(value: Any, min_val: int, max_val: int) -> tuple[bool, Optional[int], str]:
    """Validate integer within range."""
    if isinstance(value, bool):
        return False, None, "Must be an integer"
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return False, None, "Must be an integer"
    if parsed < min_val or parsed > max_val:
        return False, max(min_val, min(max_val, parsed)), f"Must be between {min_val} and {max_val}"
    return True, parsed, ""


def _validate_float_range(value: Any, min_val: float, max_val: float) -> tuple[bool, Optional[float], str]:
    """Validate float within range."""
    if isinstance(value, bool):
        return False, None, "Must be a number"
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return False, None, "Must be a number"
    if parsed < min_val or parsed > max_val:
        return False, max(min_val, min(max_val, parsed)), f"Must be between {min_val} and {max_val}"
    return True, parsed, ""


def _validate_bool(value: Any) -> tuple[bool, Optional[bool], str]:
    """Validate boolean value."""
    if isinstance(value, bool):
        return True, value, ""
    if isinstance(value, str):
        val_lower = value.strip().lower()
        if val_lower in ("1", "true", "yes", "on"):
            return True, True, ""
        if val_lower in ("0", "false", "no", "off"):
            return True, False, ""
    return False, None, "Must be true/false, yes/no, on/off, or 1/0"


def _int_field(key: str, description: str, default: int, lo: int, hi: int) -> ConfigFieldSpec:
    return ConfigFieldSpec(
        key=key,
        field_name=key.replace("-", "_"),
        description=description,
        default=default,
        validator=lambda v: _validate_int_range(v, lo, hi),
    )


# mining: section of the YAML file
MINING_FIELDS: Dict[str, ConfigFieldSpec] = {
    spec.key: spec for spec in (
        _int_field("branch-length", "Blocks dug per branch tunnel", 20, 8, 40),
        _int_field("branches-per-side", "Branches on each side of the corridor", 4, 1, 8),
        _int_field("branch-spacing", "Corridor blocks between branch pairs", 4, 2, 8),
        _int_field("torch-interval", "Blocks between torches in shafts and branches", 8, 1, 32),
        _int_field("poke-hole-interval", "Blocks between sidewall poke holes", 4, 1, 16),
        _int_field("ore-scan-radius", "Radius scanned around each new branch cell", 2, 0, 4),
        _int_field("max-ore-detour", "Maximum detour distance to a spotted ore", 3, 0, 6),
        _int_field("stuck-timeout", "Ticks before abandoning a navigation goal", 80, 20, 1200),
        ConfigFieldSpec(
            key="inventory-full-threshold",
            field_name="inventory_full_threshold",
            description="Inventory fullness that triggers a deposit trip",
            default=0.80,
            validator=lambda v: _validate_float_range(v, 0.1, 1.0),
        ),
    )
}

# top-level keys
CONFIG_FIELDS: Dict[str, ConfigFieldSpec] = {
    "verbose": ConfigFieldSpec(
        key="verbose",
        field_name="verbose",
        description="Log INFO messages to the console",
        default=False,
        validator=_validate_bool,
    ),
    "task-timeout-ticks": _int_field(
        "task-timeout-ticks", "Tick budget for tasks that have a timeout",
        DEFAULT_TASK_TIMEOUT_TICKS, 100, 20 * 60 * 60,
    ),
    "progress-announce-ticks": _int_field(
        "progress-announce-ticks", "Ticks between progress announcements", 200, 20, 12000,
    ),
}


def _coerce(spec: ConfigFieldSpec, value: Any) -> Any:
    if spec.validator is None:
        return value
    valid, coerced, error = spec.validator(value)
    if valid:
        return coerced
    # Range errors carry a clamped value; unusable values come back as None.
    fallback = spec.default if coerced is None else coerced
    _log.warning("Config %s=%r is invalid (%s); using %r", spec.key, value, error, fallback)
    return fallback


@dataclass
class MiningConfig:
    """Tunables shared by the mining tasks."""
    branch_length: int = 20
    branches_per_side: int = 4
    branch_spacing: int = 4
    torch_interval: int = 8
    poke_hole_interval: int = 4
    ore_scan_radius: int = 2
    max_ore_detour: int = 3
    stuck_timeout: int = 80
    inventory_full_threshold: float = 0.80

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "MiningConfig":
        """Parse the YAML ``mining:`` section; unknown keys are ignored."""
        if not data:
            return cls()
        values = {}
        for key, spec in MINING_FIELDS.items():
            if key in data:
                values[spec.field_name] = _coerce(spec, data[key])
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return {spec.key: getattr(self, spec.field_name) for spec in MINING_FIELDS.values()}


@dataclass
class MineAgentConfig:
    verbose: bool = False
    log_file: Any = None  # None → default path, False → disabled, str → custom path
    task_timeout_ticks: int = DEFAULT_TASK_TIMEOUT_TICKS
    progress_announce_ticks: int = 200
    mining: MiningConfig = field(default_factory=MiningConfig)
    _config_source: str = ""

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "MineAgentConfig":
        config = cls()
        if not data:
            return config
        for key, spec in CONFIG_FIELDS.items():
            if key in data:
                setattr(config, spec.field_name, _coerce(spec, data[key]))
        if "log-file" in data:
            config.log_file = _parse_log_file(data["log-file"])
        config.mining = MiningConfig.from_dict(data.get("mining"))
        return config

    @classmethod
    def load(cls, project_dir: str = ".") -> "MineAgentConfig":
        project_path = Path(project_dir).resolve()

        for env_path in [CONFIG_DIR / ".env", project_path / ".env"]:
            if env_path.exists():
                load_dotenv(env_path, override=False)

        config = cls()
        for candidate in [project_path / PROJECT_CONFIG_NAME, CONFIG_FILE]:
            if candidate.exists():
                config = cls.from_dict(cls._read_yaml(candidate))
                config._config_source = str(candidate)
                break

        config._apply_env()
        return config

    @staticmethod
    def _read_yaml(filepath: Path) -> dict:
        try:
            with open(filepath) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(str(filepath), f"cannot read config: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(str(filepath), "top level must be a mapping")
        return data

    def _apply_env(self) -> None:
        verbose = os.environ.get("MINEAGENT_VERBOSE")
        if verbose is not None:
            valid, value, _ = _validate_bool(verbose)
            if valid:
                self.verbose = value
        log_file = os.environ.get("MINEAGENT_LOG_FILE")
        if log_file:
            self.log_file = _parse_log_file(log_file)

    @property
    def source(self) -> str:
        return self._config_source or "(defaults)"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            spec.key: getattr(self, spec.field_name) for spec in CONFIG_FIELDS.values()
        }
        if self.log_file is not None:
            data["log-file"] = self.log_file
        data["mining"] = self.mining.to_dict()
        return data

    def save(self, filepath: Optional[str] = None) -> Path:
        path = Path(filepath) if filepath else CONFIG_FILE
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False, allow_unicode=True)
        return path


def _parse_log_file(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    text = str(value).strip()
    if text.lower() in ("off", "false", "no", "none", ""):
        return False
    return text


