"""Version strings reported in banners, generated headers and HTTP requests."""

from __future__ import annotations

from . import __version__
from .constants import PACKAGE_NAME


def cli_version() -> str:
    return __version__


USER_AGENT = f"{PACKAGE_NAME}/{__version__}"
