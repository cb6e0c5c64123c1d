"""Version metadata for the BasicChat client.

This module is import-safe and exposes version identifiers for the CLI boot
log and the HTTP User-Agent header.
"""

from __future__ import annotations

PROJECT_NAME = "BasicChat Client"
VERSION = "0.3.0"
LICENSE = "MIT"

__all__ = [
    "PROJECT_NAME",
    "VERSION",
    "LICENSE",
    "as_string",
    "user_agent",
]


def as_string() -> str:
    return f"{PROJECT_NAME} {VERSION}"


def user_agent() -> str:
    return f"basicchat-client/{VERSION}"
