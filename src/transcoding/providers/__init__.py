"""Provider adapters translating canonical jobs into vendor calls."""

from .base import OutputPlan, PlannedOutput, PlannedPlaylist, Provider, ProviderFactory
from .elastictranscoder import ElasticTranscoderProvider, elastic_transcoder_factory
from .elementalconductor import ElementalConductorProvider, elemental_conductor_factory
from .encodingcom import EncodingComProvider, encoding_com_factory
from .hybrik import HybrikProvider, hybrik_factory
from .registry import ProviderRegistry, build_default_registry

__all__ = [
    "ElasticTranscoderProvider",
    "ElementalConductorProvider",
    "EncodingComProvider",
    "HybrikProvider",
    "OutputPlan",
    "PlannedOutput",
    "PlannedPlaylist",
    "Provider",
    "ProviderFactory",
    "ProviderRegistry",
    "build_default_registry",
    "elastic_transcoder_factory",
    "elemental_conductor_factory",
    "encoding_com_factory",
    "hybrik_factory",
]
