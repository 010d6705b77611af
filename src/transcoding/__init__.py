"""Canonical video transcoding model backed by interchangeable cloud providers.

Callers build a :class:`~src.transcoding.providers.ProviderRegistry` once
(usually through :func:`~src.transcoding.bootstrap.bootstrap`), resolve a
provider by name and submit :class:`~src.transcoding.domain.TranscodeProfile`
instances to it.
"""

from .bootstrap import bootstrap
from .config import Config, load_config
from .providers.registry import ProviderRegistry, build_default_registry

__all__ = [
    "Config",
    "ProviderRegistry",
    "bootstrap",
    "build_default_registry",
    "load_config",
]
