"""Canonical domain model shared by every provider adapter.

The dataclasses below describe a transcoding request and its outcome in
vendor-neutral terms. Adapters consume :class:`TranscodeProfile` and
:class:`Preset` and produce :class:`JobStatus`, :class:`NativePreset` and
:class:`Capabilities`. Nothing here performs I/O; instances live for a single
request/response cycle.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Tuple

DiagnosticBag = Tuple[Tuple[str, str], ...]
"""Ordered ``(key, value)`` pairs carrying vendor-specific status details."""


class Status(str, Enum):
    """Canonical job states reported by every provider."""

    QUEUED = "queued"
    STARTED = "started"
    FINISHED = "finished"
    FAILED = "failed"
    CANCELED = "canceled"


@dataclass(frozen=True, slots=True)
class Job:
    """Transcoding job identified by a caller-assigned ``id``.

    The identifier prefixes every output artifact produced for the job.
    """

    id: str


@dataclass(frozen=True, slots=True)
class VideoPreset:
    codec: str = ""
    bitrate: str = ""
    gop_size: str = ""
    gop_mode: str = ""
    interlace_mode: str = ""
    width: str = ""
    height: str = ""


@dataclass(frozen=True, slots=True)
class AudioPreset:
    codec: str = ""
    bitrate: str = ""


@dataclass(frozen=True, slots=True)
class Preset:
    """Canonical encoding target.

    Bitrates are expressed in bits per second; adapters convert them to the
    unit their vendor expects.
    """

    name: str
    description: str = ""
    container: str = ""
    profile: str = ""
    profile_level: str = ""
    rate_control: str = ""
    video: VideoPreset = field(default_factory=VideoPreset)
    audio: AudioPreset = field(default_factory=AudioPreset)


@dataclass(frozen=True, slots=True)
class OutputOptions:
    extension: str

    def __post_init__(self) -> None:
        if not self.extension.strip(". "):
            raise ValueError("output options require a file extension")


@dataclass(frozen=True, slots=True)
class PresetMap:
    """Canonical preset name bound to native preset ids per provider."""

    name: str
    output_options: OutputOptions
    provider_mapping: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class StreamingParams:
    segment_duration: int = 0
    protocol: str = "hls"


@dataclass(frozen=True, slots=True)
class TranscodeProfile:
    """Unit of work for a single ``transcode`` call."""

    source_media: str
    presets: Tuple[PresetMap, ...] = ()
    streaming_params: StreamingParams = field(default_factory=StreamingParams)


@dataclass(slots=True)
class JobStatus:
    """Provider-stamped snapshot of a job, built fresh on every query."""

    provider_name: str
    provider_job_id: str
    status: Status
    provider_status: DiagnosticBag = ()
    output_destination: str = ""
    progress: float = 0.0

    def diagnostic(self, key: str) -> str | None:
        """Return the first diagnostic value stored under ``key``."""

        for name, value in self.provider_status:
            if name == key:
                return value
        return None


@dataclass(frozen=True, slots=True)
class Capabilities:
    input_formats: Tuple[str, ...] = ()
    output_formats: Tuple[str, ...] = ()
    destinations: Tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class NativePreset:
    """Vendor preset wrapped with the provider that owns it.

    ``payload`` keeps the vendor representation for diagnostics; ``container``
    is extracted by the adapter so callers never inspect the payload to learn
    the output format.
    """

    provider_name: str
    preset_id: str
    container: str
    payload: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Health:
    ok: bool
    message: str = ""


@dataclass(frozen=True, slots=True)
class ProviderDescription:
    """Summary of a registered provider under the current configuration."""

    name: str
    capabilities: Capabilities
    health: Health
    enabled: bool


__all__ = [
    "AudioPreset",
    "Capabilities",
    "DiagnosticBag",
    "Health",
    "Job",
    "JobStatus",
    "NativePreset",
    "OutputOptions",
    "Preset",
    "PresetMap",
    "ProviderDescription",
    "Status",
    "StreamingParams",
    "TranscodeProfile",
    "VideoPreset",
]
