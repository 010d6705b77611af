"""Registry of provider factories keyed by provider name.

The registry is built once at process start (see
:func:`build_default_registry`) and passed to every call site that resolves
providers. After :meth:`ProviderRegistry.freeze` no further registrations are
accepted; lookups remain safe from any thread.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict, Mapping

import structlog

from ..config import Config
from ..domain import Capabilities, Health, ProviderDescription
from ..errors import InvalidConfigError, ProviderNotFoundError, RegistryFrozenError
from . import elastictranscoder, elementalconductor, encodingcom, hybrik
from .base import Provider, ProviderFactory

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class ProviderRegistry:
    """Name-keyed table of provider factories."""

    factories: Dict[str, ProviderFactory] = field(default_factory=dict)
    frozen: bool = False
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def register(self, name: str, factory: ProviderFactory) -> None:
        """Register ``factory`` under ``name``, replacing any earlier entry."""

        with self._lock:
            if self.frozen:
                raise RegistryFrozenError(f"cannot register '{name}': registry is frozen")
            self.factories[name] = factory

    def freeze(self) -> None:
        with self._lock:
            self.frozen = True

    def get_factory(self, name: str) -> ProviderFactory:
        """Return the factory registered for ``name``."""

        with self._lock:
            factory = self.factories.get(name)
        if factory is None:
            raise ProviderNotFoundError(name)
        return factory

    def create(self, name: str, config: Config) -> Provider:
        """Build the ``name`` provider from ``config``."""

        return self.get_factory(name)(config)

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self.factories)

    def snapshot(self) -> Mapping[str, ProviderFactory]:
        """Immutable copy of the registered factories."""

        with self._lock:
            return dict(self.factories)

    def available(self, config: Config) -> list[str]:
        """Names of providers whose factories accept ``config``."""

        enabled = []
        for name, factory in sorted(self.snapshot().items()):
            try:
                provider = factory(config)
            except InvalidConfigError:
                continue
            provider.close()
            enabled.append(name)
        return enabled

    def describe(self, name: str, config: Config) -> ProviderDescription:
        """Report capabilities and health of ``name`` under ``config``.

        A provider whose configuration is incomplete is reported as disabled
        instead of raising; an unknown name still raises
        :class:`ProviderNotFoundError`.
        """

        factory = self.get_factory(name)
        try:
            provider = factory(config)
        except InvalidConfigError as exc:
            return ProviderDescription(
                name=name,
                capabilities=Capabilities(),
                health=Health(ok=False, message=str(exc)),
                enabled=False,
            )

        with provider:
            health = Health(ok=True)
            try:
                provider.healthcheck()
            except Exception as exc:  # any vendor failure is reported, not raised
                logger.warning("provider.healthcheck.failed", provider=name, error=str(exc))
                health = Health(ok=False, message=str(exc))
            return ProviderDescription(
                name=name,
                capabilities=provider.capabilities(),
                health=health,
                enabled=True,
            )


def build_default_registry() -> ProviderRegistry:
    """Return a frozen registry holding every bundled provider."""

    registry = ProviderRegistry()
    registry.register(elastictranscoder.NAME, elastictranscoder.elastic_transcoder_factory)
    registry.register(encodingcom.NAME, encodingcom.encoding_com_factory)
    registry.register(elementalconductor.NAME, elementalconductor.elemental_conductor_factory)
    registry.register(hybrik.NAME, hybrik.hybrik_factory)
    registry.freeze()
    return registry
