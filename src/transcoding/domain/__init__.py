"""Canonical vocabulary spoken by every transcoding provider."""

from .models import (
    AudioPreset,
    Capabilities,
    DiagnosticBag,
    Health,
    Job,
    JobStatus,
    NativePreset,
    OutputOptions,
    Preset,
    PresetMap,
    ProviderDescription,
    Status,
    StreamingParams,
    TranscodeProfile,
    VideoPreset,
)

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
