"""Shared filesystem and text helpers for TODO endpoints."""

from __future__ import annotations

import os
import tempfile
from datetime import date
from pathlib import Path


def current_date() -> date:
    """Today's local date; endpoints inject it into the settlement core."""
    return date.today()


def split_lines(content: str) -> list[str]:
    return content.split("\n")


def join_lines(lines: list[str]) -> str:
    return "\n".join(lines)


def _atomic_write(target_path: Path, content: str) -> None:
    target_path.parent.mkdir(parents=True, exist_ok=True)
    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", dir=target_path.parent, delete=False, newline=""
        ) as temp_file:
            temp_path = Path(temp_file.name)
            temp_file.write(content)
            temp_file.flush()
            os.fsync(temp_file.fileno())
        os.replace(temp_path, target_path)
    finally:
        if temp_path is not None and temp_path.exists():
            try:
                temp_path.unlink()
            except OSError:
                pass
