"""Encoding.com provider.

Every Encoding.com call is a form POST carrying a ``json`` field with a
``{"query": {...}}`` document; the ``action`` key selects the operation.
Failures are reported with HTTP 200 and an ``errors`` entry, which the
adapter raises as :class:`ProviderAPIError`.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping

import httpx
import structlog

from ..config import Config, EncodingComSettings, missing_settings
from ..domain import (
    Capabilities,
    Job,
    JobStatus,
    NativePreset,
    Preset,
    Status,
    TranscodeProfile,
)
from ..errors import InvalidConfigError, ProviderAPIError
from .base import OutputPlan, PlannedOutput, PlannedPlaylist, Provider
from .http import http_client
from .outputs import job_destination, join_location
from .presets import alias, to_kbps
from .status import normalize_status

NAME = "encodingcom"

HLS_OUTPUT = "advanced_hls"

_VIDEO_CODECS = {"h264": "libx264", "vp8": "libvpx", "vp9": "libvpx-vp9"}
_AUDIO_CODECS = {"aac": "dolby_aac", "vorbis": "libvorbis"}
_CONTAINERS = {"m3u8": HLS_OUTPUT}

_STATUSES = {
    "New": Status.QUEUED,
    "Downloading": Status.STARTED,
    "Ready to process": Status.STARTED,
    "Waiting for encoder": Status.STARTED,
    "Processing": Status.STARTED,
    "Saving": Status.STARTED,
    "Saved": Status.STARTED,
    "Finished": Status.FINISHED,
    "Error": Status.FAILED,
    "Deleted": Status.CANCELED,
}

# Keys of a saved preset's format that describe the preset itself rather
# than the encoding parameters.
_FORMAT_ENVELOPE = ("output", "destination")

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class EncodingComProvider(Provider):
    """Call the Encoding.com media API."""

    client: httpx.Client
    settings: EncodingComSettings
    log: Any = field(default_factory=lambda: logger)

    name = NAME
    segmented_containers = frozenset({HLS_OUTPUT})

    def _call(self, action: str, **params: Any) -> dict[str, Any]:
        query = {
            "userid": self.settings.user_id,
            "userkey": self.settings.user_key,
            "action": action,
            **params,
        }
        response = self.client.post("/", data={"json": json.dumps({"query": query})})
        response.raise_for_status()
        body = response.json().get("response") or {}
        errors = body.get("errors")
        if errors:
            raise ProviderAPIError(NAME, _error_message(errors))
        return body

    def transcode(self, job: Job, profile: TranscodeProfile) -> JobStatus:
        plan = self.plan_outputs(job, profile)
        formats = [self._file_format(output) for output in plan.file_outputs]
        if plan.playlist is not None:
            formats.append(self._playlist_format(plan, plan.playlist, profile))

        params: dict[str, Any] = {"source": [profile.source_media], "format": formats}
        if self.settings.region:
            params["region"] = self.settings.region
        body = self._call("AddMedia", **params)
        media_id = str(body["MediaID"])
        self.log.info("encodingcom.job.created", job_id=job.id, provider_job_id=media_id)
        return JobStatus(provider_name=NAME, provider_job_id=media_id, status=Status.QUEUED)

    def _file_format(self, output: PlannedOutput) -> dict[str, Any]:
        fmt = _encoding_params(output.native_preset.payload)
        fmt["output"] = output.native_preset.container
        fmt["destination"] = [join_location(self.settings.destination, output.key)]
        return fmt

    def _playlist_format(
        self, plan: OutputPlan, playlist: PlannedPlaylist, profile: TranscodeProfile
    ) -> dict[str, Any]:
        playlist_dir = playlist.name.rsplit("/", 1)[0]
        streams = []
        for output in plan.adaptive_outputs:
            stream = _encoding_params(output.native_preset.payload)
            stream["sub_path"] = output.key[len(playlist_dir) + 1:]
            streams.append(stream)
        return {
            "output": HLS_OUTPUT,
            "destination": [
                join_location(self.settings.destination, f"{playlist.name}.m3u8")
            ],
            "segment_duration": str(profile.streaming_params.segment_duration),
            "stream": streams,
        }

    def create_preset(self, preset: Preset) -> str:
        body = self._call("SavePreset", name=preset.name, format=self._preset_format(preset))
        saved = str(body.get("SavedPreset") or preset.name)
        self.log.info("encodingcom.preset.created", name=preset.name, preset_id=saved)
        return saved

    def _preset_format(self, preset: Preset) -> dict[str, str]:
        video = preset.video
        fmt = {
            "output": alias(preset.container, _CONTAINERS),
            "video_codec": alias(video.codec, _VIDEO_CODECS),
            "bitrate": f"{to_kbps(video.bitrate)}k",
            "size": f"{video.width or '0'}x{video.height or '0'}",
            "keyframe": video.gop_size,
            "profile": preset.profile.lower(),
            "level": preset.profile_level,
            "audio_codec": alias(preset.audio.codec, _AUDIO_CODECS),
            "audio_bitrate": f"{to_kbps(preset.audio.bitrate)}k",
        }
        if video.gop_mode == "fixed":
            fmt["closed_gop"] = "yes"
        if preset.rate_control.lower() == "cbr":
            fmt["cbr"] = "yes"
        return {key: value for key, value in fmt.items() if value}

    def get_preset(self, preset_id: str) -> NativePreset:
        body = self._call("GetPreset", name=preset_id, type="user")
        container = (body.get("format") or {}).get("output") or body.get("output") or ""
        return NativePreset(
            provider_name=NAME,
            preset_id=str(body.get("name") or preset_id),
            container=container,
            payload=body,
        )

    def delete_preset(self, preset_id: str) -> None:
        self._call("DeletePreset", name=preset_id)

    def job_status(self, provider_job_id: str) -> JobStatus:
        body = self._call("GetStatus", mediaid=provider_job_id, extended="yes")
        job = body.get("job") or body
        if isinstance(job, list):
            job = job[0] if job else {}
        formats = job.get("format") or []
        if isinstance(formats, dict):
            formats = [formats]

        vendor_status = str(job.get("status") or "")
        diagnostics = [("status", vendor_status), ("sourcefile", str(job.get("sourcefile") or ""))]
        for fmt in formats:
            diagnostics.append((f"format:{fmt.get('id', '')}", str(fmt.get("status") or "")))
        return JobStatus(
            provider_name=NAME,
            provider_job_id=str(job.get("id") or provider_job_id),
            status=normalize_status(_STATUSES, vendor_status),
            provider_status=tuple(diagnostics),
            output_destination=_output_destination(formats),
            progress=_progress(job.get("progress")),
        )

    def healthcheck(self) -> None:
        self._call("GetMediaList")

    def close(self) -> None:
        self.client.close()

    def capabilities(self) -> Capabilities:
        return Capabilities(
            input_formats=("prores", "h264"),
            output_formats=("mp4", "hls", "webm"),
            destinations=("akamai", "s3"),
        )


def _encoding_params(preset_payload: Mapping[str, Any]) -> dict[str, Any]:
    fmt = dict(preset_payload.get("format") or {})
    for key in _FORMAT_ENVELOPE:
        fmt.pop(key, None)
    return fmt


def _error_message(errors: Any) -> str:
    if isinstance(errors, Mapping):
        errors = errors.get("error", errors)
    if isinstance(errors, (list, tuple)):
        return "; ".join(str(error) for error in errors)
    return str(errors)


def _output_destination(formats: list[Mapping[str, Any]]) -> str:
    for fmt in formats:
        destination = fmt.get("destination")
        if isinstance(destination, list):
            destination = destination[0] if destination else ""
        if destination:
            return job_destination(str(destination))
    return ""


def _progress(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def encoding_com_factory(config: Config) -> EncodingComProvider:
    """Build an adapter from ``config.encodingcom``."""

    settings = config.encodingcom
    missing = missing_settings(settings, "user_id", "user_key", "destination")
    if missing:
        raise InvalidConfigError(NAME, missing)
    return EncodingComProvider(
        client=http_client(settings.endpoint, config.service),
        settings=settings,
    )


__all__ = ["NAME", "EncodingComProvider", "encoding_com_factory"]
