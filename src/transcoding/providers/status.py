"""Normalisation of vendor job states into :class:`Status`."""

from __future__ import annotations

from typing import Mapping

from ..domain import Status


def normalize_status(vocabulary: Mapping[str, Status], vendor_status: str | None) -> Status:
    """Map ``vendor_status`` through ``vocabulary``.

    Keys are spelled exactly as the vendor reports them. Anything outside the
    vocabulary, including a differently cased token, is reported as
    :attr:`Status.FAILED`; an unrecognised state must never look like progress.
    """

    return vocabulary.get(vendor_status or "", Status.FAILED)
