"""Error kinds raised by the provider layer.

Vendor transport and API failures (``botocore.exceptions.ClientError``,
``httpx.HTTPError``) are not wrapped: adapters let them reach the caller
unchanged. The classes below cover the conditions detected locally.
"""

from __future__ import annotations

from typing import Sequence

__all__ = [
    "TranscodingError",
    "ProviderNotFoundError",
    "InvalidConfigError",
    "PresetMapNotFoundError",
    "MisconfiguredPresetError",
    "ProviderAPIError",
    "RegistryFrozenError",
]


class TranscodingError(Exception):
    """Base class for provider layer errors."""


class ProviderNotFoundError(TranscodingError):
    """Raised when a provider name was never registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"provider '{name}' not found")
        self.name = name


class InvalidConfigError(TranscodingError):
    """Raised by factories when required settings are missing."""

    def __init__(self, provider_name: str, missing: Sequence[str] = ()) -> None:
        message = f"invalid {provider_name} config"
        if missing:
            message += f": missing {', '.join(missing)}"
        super().__init__(message)
        self.provider_name = provider_name
        self.missing = tuple(missing)


class PresetMapNotFoundError(TranscodingError):
    """Raised when a preset map has no entry for the active provider."""

    def __init__(self, preset_name: str, provider_name: str) -> None:
        super().__init__(
            f"preset map '{preset_name}' has no preset for provider '{provider_name}'"
        )
        self.preset_name = preset_name
        self.provider_name = provider_name


class MisconfiguredPresetError(TranscodingError):
    """Raised when a native preset lacks a required field."""

    def __init__(self, preset_id: str) -> None:
        super().__init__(f"misconfigured preset: {preset_id}")
        self.preset_id = preset_id


class ProviderAPIError(TranscodingError):
    """Raised when a vendor reports a failure inside a successful response."""

    def __init__(self, provider_name: str, message: str) -> None:
        super().__init__(f"{provider_name}: {message}")
        self.provider_name = provider_name
        self.message = message


class RegistryFrozenError(TranscodingError):
    """Raised when registering a provider after initialisation completed."""
