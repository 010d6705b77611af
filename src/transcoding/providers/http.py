"""HTTP client construction for REST-based vendors."""

from __future__ import annotations

from typing import Any

import httpx

from ..config import ServiceSettings


def http_client(base_url: str, service: ServiceSettings, **kwargs: Any) -> httpx.Client:
    """Return a client bound to ``base_url``.

    ``httpx.Client`` is safe to share between threads, so one client serves
    every concurrent call made through an adapter. Without a configured
    timeout requests block until the vendor answers.
    """

    return httpx.Client(
        base_url=base_url,
        timeout=service.http_timeout_seconds,
        **kwargs,
    )
