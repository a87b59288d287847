"""Server settings.

Resolution order: built-in defaults, then an optional YAML file named by
``APPBERRY_CONFIG``, then individual environment variables.

Example file::

    cors_origin: http://localhost:5173
    db_path: data/demo.db
    minesweeper_rows: 8
    minesweeper_cols: 8
    minesweeper_bombs: 10
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml


FIELD_TYPES = {
    "cors_origin": str,
    "db_path": str,
    "state_event_log_path": str,
    "notepad_store_path": str,
    "host": str,
    "port": int,
    "minesweeper_rows": int,
    "minesweeper_cols": int,
    "minesweeper_bombs": int,
}

ENV_VARS = {
    "CORS_ORIGIN": "cors_origin",
    "APPBERRY_DB_PATH": "db_path",
    "APPBERRY_STATE_EVENT_LOG_PATH": "state_event_log_path",
    "APPBERRY_NOTEPAD_STORE": "notepad_store_path",
    "APPBERRY_HOST": "host",
    "APPBERRY_PORT": "port",
}


@dataclass
class Settings:
    cors_origin: str = "http://localhost:5173"
    db_path: str = "data/demo.db"
    state_event_log_path: str = "logs/state/events.ndjson"
    # empty = notepad text lives in memory only
    notepad_store_path: str = ""
    host: str = "127.0.0.1"
    port: int = 8787
    minesweeper_rows: int = 5
    minesweeper_cols: int = 5
    minesweeper_bombs: int = 5


def validate_settings(raw: Mapping[str, Any]) -> List[str]:
    """Validate a settings mapping. Returns list of error strings."""
    errors = []

    unknown = set(raw) - set(FIELD_TYPES)
    if unknown:
        errors.append(f"Unknown settings: {', '.join(sorted(unknown))}")

    for key, expected_type in FIELD_TYPES.items():
        value = raw.get(key)
        if key in raw and (not isinstance(value, expected_type) or isinstance(value, bool)):
            errors.append(
                f"Setting '{key}' must be {expected_type.__name__}, "
                f"got {type(value).__name__}"
            )

    port = raw.get("port")
    if isinstance(port, int) and not (1 <= port <= 65535):
        errors.append(f"port must be 1-65535, got {port}")

    rows = raw.get("minesweeper_rows", Settings.minesweeper_rows)
    cols = raw.get("minesweeper_cols", Settings.minesweeper_cols)
    bombs = raw.get("minesweeper_bombs", Settings.minesweeper_bombs)
    if all(isinstance(v, int) for v in (rows, cols, bombs)):
        if rows < 1 or cols < 1:
            errors.append(f"minesweeper grid must be at least 1x1, got {rows}x{cols}")
        elif not 0 <= bombs < rows * cols:
            errors.append(f"minesweeper_bombs must be in [0, {rows * cols}), got {bombs}")

    return errors


def load_settings_file(path: Path) -> Dict[str, Any]:
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must be a YAML mapping")
    return data


def _env_overrides(environ: Mapping[str, str]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for var, key in ENV_VARS.items():
        if var not in environ:
            continue
        value = environ[var]
        if FIELD_TYPES[key] is int:
            try:
                out[key] = int(value)
            except ValueError:
                raise ValueError(f"{var} must be an integer, got {value!r}")
        else:
            out[key] = value
    return out


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from defaults, the optional YAML file and the environment."""
    environ = os.environ if environ is None else environ
    raw: Dict[str, Any] = {}
    config_path = environ.get("APPBERRY_CONFIG")
    if config_path:
        raw.update(load_settings_file(Path(config_path)))
    raw.update(_env_overrides(environ))

    errors = validate_settings(raw)
    if errors:
        raise ValueError("Invalid settings:\n" + "\n".join(f"  - {e}" for e in errors))

    known = {f.name for f in fields(Settings)}
    return Settings(**{k: v for k, v in raw.items() if k in known})
