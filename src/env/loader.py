from __future__ import annotations

import dataclasses
import os
from pathlib import Path
from typing import Any, Dict, Optional, Type, TypeVar

import yaml

from llm_stack.config import ModelConfig

from .schema import (
    BehaviorConfig,
    CompanionConfig,
    DashboardConfig,
    GameConfig,
    LoggingConfig,
)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).resolve().parents[2]
CONFIG_ROOT = PROJECT_ROOT / "config"
DEFAULT_CONFIG_PATH = CONFIG_ROOT / "companion.yaml"

# Environment variables that override single values after the YAML is read.
ENV_OVERRIDES = {
    "MC_HOST": ("game", "host", str),
    "MC_PORT": ("game", "port", int),
    "MC_VERSION": ("game", "version", str),
    "BOT_NAME": ("game", "bot_name", str),
    "TARGET_PLAYER": ("game", "target_player", str),
    "BRIDGE_HOST": ("game", "bridge_host", str),
    "BRIDGE_PORT": ("game", "bridge_port", int),
    "PORT": ("dashboard", "port", int),
    "MODEL_PATH": ("model", "model_path", str),
    "LOG_LEVEL": ("logging", "level", str),
}

T = TypeVar("T")


def _load_yaml(path: Path) -> Dict[str, Any]:
    """Load a YAML config file, requiring a mapping at the top."""
    if not path.exists():
        raise FileNotFoundError(f"Missing config file: {path}")
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected mapping at top of {path}, got {type(data)}")
    return data


def _section(cls: Type[T], raw: Any, name: str) -> T:
    """Build one section dataclass, rejecting unknown keys (typos)."""
    if raw is None:
        return cls()
    if not isinstance(raw, dict):
        raise ValueError(f"Config section '{name}' must be a mapping, got {type(raw)}")
    known = {f.name for f in dataclasses.fields(cls)}
    unknown = set(raw) - known
    if unknown:
        raise ValueError(f"Unknown keys in config section '{name}': {sorted(unknown)}")
    return cls(**raw)


def _apply_env_overrides(config: CompanionConfig, environ: Dict[str, str]) -> None:
    for var, (section, key, cast) in ENV_OVERRIDES.items():
        value = environ.get(var)
        if value is None or value == "":
            continue
        try:
            setattr(getattr(config, section), key, cast(value))
        except ValueError as exc:
            raise ValueError(f"Invalid value for {var}: {value!r}") from exc


def _validate(config: CompanionConfig) -> None:
    """Minimal sanity checks for the tuning values."""
    b = config.behavior
    for name in ("reaction_probability", "chatter_probability"):
        value = getattr(b, name)
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"behavior.{name} must be within [0, 1], got {value}")
    if b.tick_interval_s <= 0:
        raise ValueError("behavior.tick_interval_s must be positive")
    if b.reply_delay_min_s > b.reply_delay_max_s:
        raise ValueError("behavior.reply_delay_min_s must not exceed reply_delay_max_s")
    if b.resource_radius > b.threat_radius:
        # Mining is scanned in a tighter ring than threats.
        raise ValueError("behavior.resource_radius must not exceed threat_radius")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    path: Optional[Path] = None,
    *,
    environ: Optional[Dict[str, str]] = None,
) -> CompanionConfig:
    """
    Main entry point: returns a fully resolved CompanionConfig.

    Resolution order: `path` argument, then $COMPANION_CONFIG, then
    config/companion.yaml. Environment overrides are applied last.
    """
    env = dict(os.environ) if environ is None else environ
    if path is None:
        path = Path(env["COMPANION_CONFIG"]) if env.get("COMPANION_CONFIG") else DEFAULT_CONFIG_PATH

    raw = _load_yaml(path)

    model_raw = raw.get("model") or {}
    if not isinstance(model_raw, dict):
        raise ValueError("Config section 'model' must be a mapping")

    config = CompanionConfig(
        game=_section(GameConfig, raw.get("game"), "game"),
        dashboard=_section(DashboardConfig, raw.get("dashboard"), "dashboard"),
        model=ModelConfig.from_dict(model_raw),
        behavior=_section(BehaviorConfig, raw.get("behavior"), "behavior"),
        logging=_section(LoggingConfig, raw.get("logging"), "logging"),
    )

    _apply_env_overrides(config, env)
    _validate(config)
    return config
