"""Process start-up wiring for the provider layer."""

from __future__ import annotations

import structlog

from .config import Config, load_config
from .logging import configure_logging
from .providers.registry import ProviderRegistry, build_default_registry

logger = structlog.get_logger(__name__)


def bootstrap(config: Config | None = None) -> tuple[Config, ProviderRegistry]:
    """Load configuration, configure logging and build the provider registry.

    The returned registry is frozen; hand it to every component that needs
    to resolve providers by name.
    """

    config = config or load_config()
    configure_logging(config.service.log_level, json=config.service.log_json)
    registry = build_default_registry()
    logger.info(
        "transcoding.bootstrap.ready",
        providers=registry.names(),
        enabled=registry.available(config),
    )
    return config, registry
