"""Utility helpers for JSON IO."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any


def stable_json_dumps(obj: object) -> str:
    """Serialize JSON in a stable, human-readable way with a trailing newline."""
    return json.dumps(obj, ensure_ascii=False, indent=2) + "\n"


def compact_json_dumps(obj: object) -> str:
    """Serialize JSON without any insignificant whitespace."""
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":"))


def write_json_stable(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(stable_json_dumps(data), encoding="utf-8")


__all__ = ["compact_json_dumps", "stable_json_dumps", "write_json_stable"]
