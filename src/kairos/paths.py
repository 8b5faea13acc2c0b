"""paths.py - one place for all kairos paths.

every file that touches ~/.kairos/ imports from here.
the logger's session store and the global config both live under it.
"""

from pathlib import Path


def kairos_home() -> Path:
    """~/.kairos/ - the root of all kairos state."""
    return Path.home() / ".kairos"


def ensure_dir(path: Path) -> Path:
    """mkdir -p. returns the path for chaining."""
    path.mkdir(parents=True, exist_ok=True)
    return path


# -- ~/.kairos/ paths --
GLOBAL_CONFIG = kairos_home() / "config.json"
SESSIONS_DIR = kairos_home() / "sessions"
SESSIONS_INDEX_NAME = "sessions.json"
