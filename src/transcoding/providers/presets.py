"""Helpers shared by the canonical-to-native preset translations."""

from __future__ import annotations

from typing import Mapping


def to_kbps(bitrate: str | int) -> str:
    """Convert a bits/second value to kilobits/second, discarding the remainder.

    Blank or non-numeric values translate to ``"0"``.
    """

    try:
        value = int(str(bitrate).strip() or 0)
    except ValueError:
        value = 0
    return str(value // 1000)


def to_bps(bitrate: str | int) -> str:
    try:
        return str(int(str(bitrate).strip() or 0))
    except ValueError:
        return "0"


def alias(token: str, table: Mapping[str, str]) -> str:
    """Translate a canonical token; unknown tokens pass through unchanged."""

    return table.get(token, token)
