"""config.py - configuration management.

layered config: defaults -> global (~/.kairos/config.json) ->
project (.kairos.json) -> environment (KAIROS_*).
engine mode, thresholds, rate limits, logger persistence.

in the world: the dials on the side of the machine. each deployment
can turn them, but the factory settings are always underneath.
"""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional

from kairos import paths
from kairos.io import read_json, write_json


_PROJECT_CONFIG_NAME = ".kairos.json"


# ============================================================
# DEFAULTS
# ============================================================

DEFAULTS = {
    "mode": "enhanced",
    "agent_id": "kairos",
    "seed": None,
    "log_level": "info",
    # engine
    "frustration_threshold": 5.0,
    "paradox_retention_seconds": 3600.0,
    "coherence_threshold": 0.3,
    "green_ceiling": 0.80,
    "red_floor": 0.90,
    "stuck_threshold": 0.85,
    "stuck_checks": 10,
    "emergency_cooldown_seconds": 5.0,
    "coherence_recovery_rate": 0.001,
    # rate limiter
    "max_posts_per_hour": 10,
    "max_posts_per_day": 120,
    "burst_limit": 3,
    "burst_window_seconds": 300.0,
    # logger
    "persist_sessions": False,
    "stream_to_console": False,
    "event_buffer_size": 1000,
    "data_dir": None,
}

# per-mode engine caps. enhanced is production; base is the conservative
# engine, capped at the YELLOW boundary and paused once it gets close.
MODE_PRESETS = {
    "enhanced": {
        "max_confusion": 0.97,
        "absolute_ceiling": 0.98,
        "emergency_threshold": 0.95,
        "auto_pause_threshold": None,
    },
    "base": {
        "max_confusion": 0.80,
        "absolute_ceiling": 0.95,
        "emergency_threshold": 0.95,
        "auto_pause_threshold": 0.75,
    },
}


@dataclass
class Config:
    """merged configuration from all layers."""
    values: dict = field(default_factory=dict)
    source: str = ""  # which layer provided the final values

    def get(self, key: str, default=None):
        return self.values.get(key, DEFAULTS.get(key, default))

    def set(self, key: str, value):
        self.values[key] = value

    def __getitem__(self, key: str):
        return self.get(key)

    def __contains__(self, key: str):
        return key in self.values or key in DEFAULTS

    def to_dict(self) -> dict:
        merged = dict(DEFAULTS)
        merged.update(self.values)
        return merged


# ============================================================
# TYPED VIEWS
# ============================================================

@dataclass
class EngineConfig:
    """Everything the confusion engine reads at construction."""
    mode: str = "enhanced"
    agent_id: str = "kairos"
    max_confusion: float = 0.97
    absolute_ceiling: float = 0.98
    emergency_threshold: float = 0.95
    auto_pause_threshold: Optional[float] = None
    frustration_threshold: float = 5.0
    paradox_retention_seconds: float = 3600.0
    coherence_threshold: float = 0.3
    green_ceiling: float = 0.80
    red_floor: float = 0.90
    stuck_threshold: float = 0.85
    stuck_checks: int = 10
    emergency_cooldown_seconds: float = 5.0
    coherence_recovery_rate: float = 0.001

    @classmethod
    def for_mode(cls, mode: str = "enhanced", **overrides) -> "EngineConfig":
        """build from a mode preset. unknown modes raise ValueError."""
        if mode not in MODE_PRESETS:
            raise ValueError(f"unknown engine mode: {mode}")
        values = dict(MODE_PRESETS[mode])
        values.update(overrides)
        return cls(mode=mode, **values)

    @classmethod
    def from_config(cls, config: Config) -> "EngineConfig":
        mode = config.get("mode", "enhanced")
        names = {f.name for f in fields(cls)} - {"mode"}
        overrides = {k: config.values[k] for k in names if k in config.values}
        return cls.for_mode(mode, **overrides)

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class RateLimitConfig:
    max_posts_per_hour: int = 10
    max_posts_per_day: int = 120
    burst_limit: int = 3
    burst_window_seconds: float = 300.0

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if value <= 0:
                raise ValueError(f"{f.name} must be positive, got {value}")

    @classmethod
    def from_config(cls, config: Config) -> "RateLimitConfig":
        return cls(**{f.name: config.get(f.name) for f in fields(cls)})


@dataclass
class LoggerConfig:
    persist_to_disk: bool = False
    stream_to_console: bool = False
    event_buffer_size: int = 1000
    data_dir: Optional[Path] = None

    def __post_init__(self):
        if self.data_dir is not None:
            self.data_dir = Path(self.data_dir)

    @property
    def sessions_dir(self) -> Path:
        return self.data_dir or paths.SESSIONS_DIR

    @classmethod
    def from_config(cls, config: Config) -> "LoggerConfig":
        return cls(
            persist_to_disk=bool(config.get("persist_sessions")),
            stream_to_console=bool(config.get("stream_to_console")),
            event_buffer_size=int(config.get("event_buffer_size")),
            data_dir=config.get("data_dir"),
        )


# ============================================================
# CONFIG LOADING
# ============================================================

def load_global() -> dict:
    """load global config from ~/.kairos/config.json."""
    data = read_json(paths.GLOBAL_CONFIG, default={})
    return data if isinstance(data, dict) else {}


def save_global(config: dict):
    """save global config."""
    write_json(paths.GLOBAL_CONFIG, config)


def load_project(root: str = ".") -> dict:
    """load project config from .kairos.json in project root."""
    data = read_json(Path(root) / _PROJECT_CONFIG_NAME, default={})
    return data if isinstance(data, dict) else {}


def save_project(config: dict, root: str = "."):
    """save project config to .kairos.json."""
    write_json(Path(root) / _PROJECT_CONFIG_NAME, config)


def _layers(root: str = ".") -> list[tuple[str, dict]]:
    """(name, values) for every layer above the defaults, lowest first."""
    return [
        ("global", load_global()),
        ("project", load_project(root)),
        ("env", _env_overrides()),
    ]


def load_config(root: str = ".") -> Config:
    """load merged config: defaults -> global -> project -> env."""
    merged = dict(DEFAULTS)
    source = "defaults"
    for name, values in _layers(root):
        if values:
            merged.update(values)
            source = name
    return Config(values=merged, source=source)


def _flag(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes", "on")


# env var -> (config key, cast). a value the cast rejects is ignored.
_ENV = {
    "KAIROS_MODE": ("mode", str),
    "KAIROS_MAX_CONFUSION": ("max_confusion", float),
    "KAIROS_FRUSTRATION_THRESHOLD": ("frustration_threshold", float),
    "KAIROS_SEED": ("seed", int),
    "KAIROS_AGENT_ID": ("agent_id", str),
    "KAIROS_PERSIST_SESSIONS": ("persist_sessions", _flag),
    "KAIROS_LOG_LEVEL": ("log_level", str),
}


def _env_overrides() -> dict:
    overrides = {}
    for env_key, (config_key, cast) in _ENV.items():
        raw = os.environ.get(env_key)
        if raw is None:
            continue
        try:
            overrides[config_key] = cast(raw)
        except ValueError:
            continue
    return overrides


# ============================================================
# CONFIG HELPERS
# ============================================================

def set_global_value(key: str, value):
    """set one key in ~/.kairos/config.json."""
    save_global({**load_global(), key: value})


def set_project_value(key: str, value, root: str = "."):
    """set one key in .kairos.json."""
    save_project({**load_project(root), key: value}, root)


def list_config(root: str = ".") -> dict:
    """every known key with its effective value and the layer it came from."""
    layers = _layers(root)
    result = {}
    for key, default in DEFAULTS.items():
        entry = {"value": default, "source": "default"}
        for name, values in layers:
            if key in values:
                entry = {"value": values[key], "source": name}
        result[key] = entry
    return result
