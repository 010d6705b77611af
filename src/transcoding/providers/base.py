"""Base interfaces for transcoding provider adapters.

Every vendor integration implements :class:`Provider`. Adapters translate
canonical requests into vendor calls and vendor responses back into the
canonical model; they hold only a client handle and static settings, so a
single instance may serve concurrent callers.

The submission steps shared by all vendors (preset map lookup, native preset
inspection, output naming and playlist grouping) live in
:meth:`Provider.plan_outputs`. Adapters only decide how the resulting plan is
expressed in their vendor's job format.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar, FrozenSet, Protocol, runtime_checkable

from ..domain import (
    Capabilities,
    Job,
    JobStatus,
    NativePreset,
    Preset,
    PresetMap,
    TranscodeProfile,
)
from ..errors import MisconfiguredPresetError, PresetMapNotFoundError
from .outputs import output_key, playlist_name, source_key

if TYPE_CHECKING:
    from ..config import Config


@dataclass(frozen=True, slots=True)
class PlannedOutput:
    """One output of a job, resolved against the active provider."""

    preset_map: PresetMap
    preset_id: str
    native_preset: NativePreset
    key: str
    adaptive_streaming: bool


@dataclass(frozen=True, slots=True)
class PlannedPlaylist:
    name: str
    output_keys: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class OutputPlan:
    """Everything an adapter needs to express a job in its vendor format."""

    source: str
    outputs: tuple[PlannedOutput, ...]
    playlist: PlannedPlaylist | None

    @property
    def adaptive_outputs(self) -> tuple[PlannedOutput, ...]:
        return tuple(output for output in self.outputs if output.adaptive_streaming)

    @property
    def file_outputs(self) -> tuple[PlannedOutput, ...]:
        return tuple(output for output in self.outputs if not output.adaptive_streaming)


class Provider(ABC):
    """Abstract adapter hiding a vendor transcoding service."""

    name: ClassVar[str]
    segmented_containers: ClassVar[FrozenSet[str]] = frozenset()

    @abstractmethod
    def transcode(self, job: Job, profile: TranscodeProfile) -> JobStatus:
        """Submit ``profile`` as one vendor job and report it as queued."""

    @abstractmethod
    def create_preset(self, preset: Preset) -> str:
        """Create a native preset and return its vendor identifier."""

    @abstractmethod
    def get_preset(self, preset_id: str) -> NativePreset:
        """Fetch a native preset."""

    @abstractmethod
    def delete_preset(self, preset_id: str) -> None:
        """Delete a native preset."""

    @abstractmethod
    def job_status(self, provider_job_id: str) -> JobStatus:
        """Poll the vendor for the current state of a job."""

    @abstractmethod
    def healthcheck(self) -> None:
        """Raise if the vendor cannot be reached with the current settings."""

    @abstractmethod
    def capabilities(self) -> Capabilities:
        """Describe supported input formats, output formats and destinations."""

    def close(self) -> None:
        """Release the vendor client held by the adapter."""

    def __enter__(self) -> Provider:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def is_segmented(self, container: str) -> bool:
        return container.strip().lower() in self.segmented_containers

    def plan_outputs(self, job: Job, profile: TranscodeProfile) -> OutputPlan:
        """Resolve every preset map of ``profile`` against this provider.

        Preset map entries are checked before any vendor call, so a missing
        mapping never leaves a partially submitted job behind.
        """

        preset_ids = []
        for preset_map in profile.presets:
            preset_id = preset_map.provider_mapping.get(self.name)
            if not preset_id:
                raise PresetMapNotFoundError(preset_map.name, self.name)
            preset_ids.append(preset_id)

        source = source_key(profile.source_media)
        outputs = []
        for preset_map, preset_id in zip(profile.presets, preset_ids):
            native = self.get_preset(preset_id)
            if not native.container:
                raise MisconfiguredPresetError(preset_id)
            adaptive = self.is_segmented(native.container)
            outputs.append(
                PlannedOutput(
                    preset_map=preset_map,
                    preset_id=preset_id,
                    native_preset=native,
                    key=output_key(
                        job.id,
                        preset_map.output_options,
                        source,
                        preset_map.name,
                        adaptive,
                    ),
                    adaptive_streaming=adaptive,
                )
            )

        adaptive_keys = tuple(output.key for output in outputs if output.adaptive_streaming)
        playlist = None
        if adaptive_keys:
            playlist = PlannedPlaylist(
                name=playlist_name(job.id, source),
                output_keys=adaptive_keys,
            )
        return OutputPlan(source=source, outputs=tuple(outputs), playlist=playlist)


@runtime_checkable
class ProviderFactory(Protocol):
    """Builds a provider from configuration or raises ``InvalidConfigError``."""

    def __call__(self, config: Config) -> Provider:
        ...
