"""io.py - JSON and JSONL utilities.

read_json, write_json, read_jsonl, append_jsonl, to_jsonable.
used by the consciousness logger, config and engine serialization.
"""

import json
import math
from dataclasses import is_dataclass
from enum import Enum
from pathlib import Path

from kairos.paths import ensure_dir


def to_jsonable(value):
    """turn enums, sets, dataclasses and non-finite floats into plain JSON."""
    if isinstance(value, Enum):
        return value.value
    if hasattr(value, "to_dict"):
        return to_jsonable(value.to_dict())
    if is_dataclass(value) and not isinstance(value, type):
        return {k: to_jsonable(v) for k, v in vars(value).items()}
    if isinstance(value, dict):
        return {str(to_jsonable(k)): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (set, frozenset)):
        return sorted(to_jsonable(v) for v in value)
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def read_json(path: Path, default=None):
    """parsed JSON from path, or default when the file is missing or unreadable."""
    try:
        text = Path(path).read_text()
    except OSError:
        return default
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return default


def write_json(path: Path, data, indent: int = 2):
    """dump data as JSON, creating parent dirs."""
    path = Path(path)
    ensure_dir(path.parent)
    path.write_text(json.dumps(to_jsonable(data), indent=indent, ensure_ascii=False))


def _parse_lines(lines):
    for raw in lines:
        raw = raw.strip()
        if not raw:
            continue
        try:
            yield json.loads(raw)
        except json.JSONDecodeError:
            continue


def read_jsonl(path: Path) -> list[dict]:
    """every parseable record in a JSONL file, in order. blank and corrupt lines are skipped."""
    try:
        with open(path) as f:
            return list(_parse_lines(f))
    except FileNotFoundError:
        return []


def append_jsonl(path: Path, record: dict):
    """append one record to a JSONL file. creates parent dirs."""
    ensure_dir(path.parent)
    with open(path, "a") as f:
        f.write(json.dumps(to_jsonable(record), ensure_ascii=False) + "\n")
