# Copyright (C) 2026 StableLlama
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
# Purpose: Defines the config unit so this responsibility stays isolated, testable, and easy to evolve.

"""
Configuration loading utilities for the JSON body parser.

Conventions:
- Parser config lives in a flat JSON file (e.g. config/parser.json).
- Environment variables override JSON values.
- JSON values can reference environment variables using ${VAR_NAME} placeholders.

Only the serializable options (limit, inflate, strict, type) can come from a
file or the environment; callables (reviver, verify, type predicates) are
passed in code.
"""

from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

DEFAULT_LIMIT = "100kb"
DEFAULT_TYPE = "application/json"
DEFAULT_SEGMENT_SIZE = 16 * 1024

_SIZE_UNITS = {
    "b": 1,
    "kb": 1 << 10,
    "mb": 1 << 20,
    "gb": 1 << 30,
    "tb": 1 << 40,
    "pb": 1 << 50,
}
_SIZE_PATTERN = re.compile(
    r"^\s*((?:-|\+)?(?:\d+(?:\.\d*)?|\.\d+))\s*(kb|mb|gb|tb|pb|b)?\s*$", re.IGNORECASE
)


def parse_size(value: int | float | str) -> int:
    """Convert a byte count or a human string such as ``"1.5mb"`` to bytes.

    Units are 1024-based. A bare number string is taken as bytes.
    Raises ValueError for strings that do not describe a size.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid size: {value!r}")
    if isinstance(value, (int, float)):
        return int(value)
    match = _SIZE_PATTERN.match(str(value))
    if not match:
        raise ValueError(f"Invalid size: {value!r}")
    number = float(match.group(1))
    unit = (match.group(2) or "b").lower()
    return int(number * _SIZE_UNITS[unit])


_ENV_PATTERN = re.compile(r"\$\{([A-Z0-9_]+)\}")


def _interpolate_env(value: Any) -> Any:
    """Interpolate ${VAR} placeholders within strings using environment variables.

    Non-string types are returned unchanged.
    """
    if isinstance(value, str):

        def replace(match: re.Match[str]) -> str:
            var = match.group(1)
            return os.getenv(var, match.group(0))  # leave placeholder if unset

        return _ENV_PATTERN.sub(replace, value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(v) for v in value]
    return value


def load_json_file(path: os.PathLike[str] | str | None) -> Dict[str, Any]:
    """Load JSON from path if it exists; return empty dict if missing.

    Raises ValueError for malformed JSON.
    """
    if path is None:
        return {}
    p = Path(path)
    if not p.exists():
        return {}
    try:
        with p.open("r", encoding="utf-8") as f:
            data = json.load(f)
        return data if isinstance(data, dict) else {}
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON at {p}: {e}") from e


def _parse_bool(raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"Invalid boolean value: {raw!r}")


def _env_overrides() -> Dict[str, Any]:
    """Collect JSONBODY_* environment variables into option overrides.

    Supported variables:
    - JSONBODY_LIMIT -> limit (int if parseable, else kept as a size string)
    - JSONBODY_INFLATE -> inflate
    - JSONBODY_STRICT -> strict
    - JSONBODY_TYPE -> type (comma separated media types)
    """
    result: Dict[str, Any] = {}
    limit = os.getenv("JSONBODY_LIMIT")
    inflate = os.getenv("JSONBODY_INFLATE")
    strict = os.getenv("JSONBODY_STRICT")
    media_types = os.getenv("JSONBODY_TYPE")

    if limit is not None:
        try:
            result["limit"] = int(limit)
        except ValueError:
            result["limit"] = limit
    if inflate is not None:
        result["inflate"] = _parse_bool(inflate)
    if strict is not None:
        result["strict"] = _parse_bool(strict)
    if media_types is not None:
        result["type"] = [t.strip() for t in media_types.split(",") if t.strip()]
    return result


def load_parser_config(
    path: os.PathLike[str] | str | None = "config/parser.json",
    defaults: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """Load parser options applying precedence and interpolation.

    Precedence: env overrides > JSON file > defaults
    """
    merged = dict(defaults or {})
    json_config = _interpolate_env(load_json_file(path))
    merged.update(json_config)
    merged.update(_env_overrides())
    return merged
