"""
vehiclesim configuration loader

This module centralizes *all* configuration handling for vehiclesim.

Design goals:
- Provide sensible defaults if no config exists.
- Allow per-machine config without committing personal settings:
    ~/.config/vehiclesim/config.toml
- Allow repo-local config:
    <repo_root>/config/config.toml
- Allow environment variable overrides for automation.

Precedence (highest to lowest) for any given value:
1) Keyword overrides passed to load_config()
2) Environment variables (VEHICLESIM_*)
3) User config: ~/.config/vehiclesim/config.toml
4) Repo config: <repo_root>/config/config.toml
5) Hard defaults

All values live under a single [simulation] table:

    [simulation]
    base_speed_mps = 10.0
    speed_multiplier = 1.0
    tick_interval_s = 0.016666
    debug = false
    log_prefix = "[VehicleSim]"

This module uses Python's built-in tomllib on Python 3.11+, or `tomli` if installed.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Optional

from vehiclesim.errors import ConfigError

# ---------------------------------------------------------------------------
# TOML loading helpers
# ---------------------------------------------------------------------------
def _load_toml(path: Path) -> dict[str, Any]:
    """
    Parse a TOML file at `path`.

    Behavior:
    - If the file does not exist, return an empty dict (non-fatal).
    - If the file exists but is invalid TOML, raise ConfigError
      with a clear, user-facing message.

    Rationale:
    - Missing config files are normal and expected.
    - Malformed config files indicate user intent and should fail loudly.
    """
    if not path.is_file():
        return {}

    try:
        try:
            # Python 3.11+ standard library
            import tomllib
            return tomllib.loads(path.read_text(encoding="utf-8")) or {}
        except ModuleNotFoundError:
            import tomli
            return tomli.loads(path.read_text(encoding="utf-8")) or {}
    except Exception as e:
        # Wrap parsing errors with file context for usability
        raise ConfigError(f"Failed to parse TOML config: {path} ({e})") from e


# ---------------------------------------------------------------------------
# Generic coercion helpers
# ---------------------------------------------------------------------------
def _deep_get(d: dict[str, Any], dotted_key: str) -> Any:
    """
    Fetch nested dictionary values using dot-separated keys.

    Example:
        _deep_get(cfg, "simulation.base_speed_mps")

    Returns None if any part of the path is missing.
    """
    cur: Any = d
    for part in dotted_key.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return None
        cur = cur[part]
    return cur


def _as_bool(v: Any, default: bool) -> bool:
    """
    Coerce loosely-typed config values into booleans.

    Accepts common truthy / falsy representations so that TOML,
    environment variables and keyword overrides all behave consistently.
    """
    if v is None:
        return default
    if isinstance(v, bool):
        return v
    if isinstance(v, (int, float)):
        return bool(v)
    if isinstance(v, str):
        s = v.strip().lower()
        if s in ("true", "yes", "y", "1", "on"):
            return True
        if s in ("false", "no", "n", "0", "off"):
            return False
    return default


def _as_str(v: Any, default: str) -> str:
    if v is None:
        return default
    return str(v)


def _as_float(v: Any, key: str, *, minimum: float = 0.0, strict: bool = False) -> float:
    """
    Coerce a config value into a float, rejecting garbage and values below
    `minimum` (or equal to it when `strict`).

    Unlike the bool/str helpers this one raises: a typo in a speed setting
    should not silently fall back to a default.
    """
    if isinstance(v, bool):
        raise ConfigError(f"{key}: expected a number, got {v!r}")
    try:
        f = float(v)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{key}: expected a number, got {v!r}") from e
    if not math.isfinite(f):
        raise ConfigError(f"{key}: must be a finite number, got {f}")
    if f < minimum or (strict and f == minimum):
        op = ">" if strict else ">="
        raise ConfigError(f"{key}: must be {op} {minimum}, got {f}")
    return f


# ---------------------------------------------------------------------------
# Repo discovery
# ---------------------------------------------------------------------------
def find_repo_root(start: Path) -> Optional[Path]:
    """
    Walk upward from `start` looking for the vehiclesim repo root.

    Heuristic:
    - The presence of a `config/` directory marks the repo root
    """
    start = start.resolve()
    for p in [start] + list(start.parents):
        if (p / "config").is_dir():
            return p
    return None


# ---------------------------------------------------------------------------
# Typed config
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class SimulationConfig:
    """
    Fully merged simulation configuration.

    Attributes:
    - base_speed_mps: distance covered per second at multiplier 1.0
    - speed_multiplier: initial multiplier for new engines
    - tick_interval_s: target cadence for the bundled tick driver
    - debug: enable lifecycle log lines
    - log_prefix: prefix for every log line
    - source: provenance map showing where each value came from
    """

    base_speed_mps: float = 10.0
    speed_multiplier: float = 1.0
    tick_interval_s: float = 1.0 / 60.0
    debug: bool = False
    log_prefix: str = "[VehicleSim]"
    source: dict[str, str] = field(default_factory=dict, compare=False)


# (key, kind) in precedence-merge order
_KEYS = (
    ("base_speed_mps", "float"),
    ("speed_multiplier", "float"),
    ("tick_interval_s", "float+"),
    ("debug", "bool"),
    ("log_prefix", "str"),
)

_ENV_MAP = {
    "VEHICLESIM_BASE_SPEED_MPS": "base_speed_mps",
    "VEHICLESIM_SPEED_MULTIPLIER": "speed_multiplier",
    "VEHICLESIM_TICK_INTERVAL_S": "tick_interval_s",
    "VEHICLESIM_DEBUG": "debug",
    "VEHICLESIM_LOG_PREFIX": "log_prefix",
}


def _coerce(key: str, kind: str, v: Any, default: Any) -> Any:
    if kind == "float":
        return _as_float(v, key)
    if kind == "float+":
        return _as_float(v, key, strict=True)
    if kind == "bool":
        return _as_bool(v, default)
    return _as_str(v, default)


def load_config(
    repo_root: Optional[Path] = None,
    repo_config_path: Optional[Path] = None,
    user_config_path: Optional[Path] = None,
    **overrides: Any,
) -> SimulationConfig:
    """
    Load, merge, and normalize all vehiclesim configuration.

    This function is the single authoritative entry point
    for configuration access.
    """
    unknown = set(overrides) - {k for k, _ in _KEYS}
    if unknown:
        raise ConfigError(f"Unknown config override(s): {', '.join(sorted(unknown))}")

    # Locate repo and config files
    if repo_root is None:
        repo_root = find_repo_root(Path(__file__).resolve())
    if repo_config_path is None and repo_root is not None:
        repo_config_path = repo_root / "config" / "config.toml"
    if user_config_path is None:
        user_config_path = Path.home() / ".config" / "vehiclesim" / "config.toml"

    repo_cfg = _load_toml(repo_config_path) if repo_config_path else {}
    user_cfg = _load_toml(user_config_path) if user_config_path else {}

    defaults = SimulationConfig()
    values: dict[str, Any] = {k: getattr(defaults, k) for k, _ in _KEYS}
    src: dict[str, str] = {f"simulation.{k}": "default" for k, _ in _KEYS}
    kinds = dict(_KEYS)

    # Repo, then user (user overrides repo)
    for cfg, label, path in ((repo_cfg, "repo", repo_config_path), (user_cfg, "user", user_config_path)):
        for key, kind in _KEYS:
            v = _deep_get(cfg, f"simulation.{key}")
            if v is None:
                continue
            values[key] = _coerce(f"simulation.{key}", kind, v, values[key])
            src[f"simulation.{key}"] = f"{label}:{path}"

    # Environment variable overrides
    for env, key in _ENV_MAP.items():
        v = os.environ.get(env)
        if v is None or v == "":
            continue
        values[key] = _coerce(env, kinds[key], v, values[key])
        src[f"simulation.{key}"] = f"env:{env}"

    # Explicit keyword overrides (highest precedence)
    for key, v in overrides.items():
        values[key] = _coerce(key, kinds[key], v, values[key])
        src[f"simulation.{key}"] = "override"

    return replace(defaults, source=src, **values)
