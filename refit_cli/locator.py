"""Classify specification references as remote URLs or local files."""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path

import httpx

REMOTE_SCHEMES = ("http", "https")


class SpecLocation(str, Enum):
    REMOTE = "remote"
    LOCAL = "local"


def classify(reference: str) -> SpecLocation:
    """Remote iff `reference` is an absolute http(s) URI with a host."""
    value = (reference or "").strip()
    if not value:
        return SpecLocation.LOCAL
    try:
        parsed = httpx.URL(value)
    except (httpx.InvalidURL, TypeError, ValueError):
        return SpecLocation.LOCAL
    if parsed.scheme in REMOTE_SCHEMES and parsed.host:
        return SpecLocation.REMOTE
    return SpecLocation.LOCAL


def is_url(reference: str) -> bool:
    return classify(reference) is SpecLocation.REMOTE


def resolve_local_path(reference: str) -> Path:
    return Path(os.path.abspath(os.path.expanduser(reference)))
