"""Persist generated code."""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .console import log_status
from .constants import DEFAULT_OUTPUT_FILENAME


@dataclass(frozen=True)
class WrittenOutput:
    path: Path
    length: int


def normalize_line_endings(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def resolve_output_path(output: Optional[str]) -> Path:
    value = (output or "").strip() or DEFAULT_OUTPUT_FILENAME
    return Path(os.path.abspath(os.path.expanduser(value)))


def _write_text(path: Path, text: str) -> None:
    with open(path, "w", encoding="utf-8", newline="") as handle:
        handle.write(text)


async def write_output(text: str, output: Optional[str]) -> WrittenOutput:
    """Normalize, report and write `text`, replacing any existing file."""
    code = normalize_line_endings(text)
    length = len(code.encode("utf-8"))
    log_status(f"Length: {length} bytes")

    path = resolve_output_path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    log_status(f"Output: {path}")
    await asyncio.to_thread(_write_text, path, code)
    return WrittenOutput(path=path, length=length)
