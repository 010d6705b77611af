"""Elemental Conductor provider.

Conductor exposes an XML REST API under ``/api``. Requests are signed with
the ``X-Auth-User``/``X-Auth-Expires``/``X-Auth-Key`` headers derived from the
user login and API key. Inputs and outputs live in S3 and are accessed with
the AWS credentials from the provider settings.

Regular outputs are written by one file group per preset; adaptive
renditions share a single Apple Live (HLS) group whose destination is the
job's master playlist.
"""

from __future__ import annotations

import hashlib
import time
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog

from ..config import Config, ElementalConductorSettings, missing_settings
from ..domain import (
    Capabilities,
    Job,
    JobStatus,
    NativePreset,
    Preset,
    Status,
    TranscodeProfile,
)
from ..errors import InvalidConfigError
from .base import OutputPlan, PlannedPlaylist, Provider
from .http import http_client
from .outputs import job_destination, join_location, strip_extension
from .presets import alias, to_bps
from .status import normalize_status

NAME = "elementalconductor"

DEFAULT_PRIORITY = "50"

_VIDEO_CODECS = {"h264": "h.264", "mpeg2": "mpeg-2"}
_STATUSES = {
    "Pending": Status.QUEUED,
    "Preprocessing": Status.STARTED,
    "Running": Status.STARTED,
    "Postprocessing": Status.STARTED,
    "Complete": Status.FINISHED,
    "Cancelled": Status.CANCELED,
    "Error": Status.FAILED,
}

logger = structlog.get_logger(__name__)


def _sub(parent: ET.Element, tag: str, text: Any = None) -> ET.Element:
    child = ET.SubElement(parent, tag)
    if text is not None:
        child.text = str(text)
    return child


def _to_dict(element: ET.Element) -> dict[str, Any]:
    """Flatten an XML element into nested dicts; repeated tags become lists."""

    result: dict[str, Any] = {}
    for child in element:
        value: Any = _to_dict(child) if len(child) else (child.text or "")
        if child.tag in result:
            if not isinstance(result[child.tag], list):
                result[child.tag] = [result[child.tag]]
            result[child.tag].append(value)
        else:
            result[child.tag] = value
    return result


@dataclass(slots=True)
class ElementalConductorProvider(Provider):
    """Submit jobs and presets to an Elemental Conductor cluster."""

    client: httpx.Client
    settings: ElementalConductorSettings
    log: Any = field(default_factory=lambda: logger)

    name = NAME
    segmented_containers = frozenset({"m3u8"})

    def _auth_headers(self, path: str) -> dict[str, str]:
        expires = str(int(time.time()) + self.settings.auth_expires * 60)
        api_key = self.settings.api_key
        inner = hashlib.md5(
            f"{path}{self.settings.user_login}{api_key}{expires}".encode()
        ).hexdigest()
        key = hashlib.md5(f"{api_key}{inner}".encode()).hexdigest()
        return {
            "X-Auth-User": self.settings.user_login,
            "X-Auth-Expires": expires,
            "X-Auth-Key": key,
            "Accept": "application/xml",
            "Content-Type": "application/xml",
        }

    def _request(self, method: str, path: str, body: ET.Element | None = None) -> ET.Element | None:
        content = ET.tostring(body, encoding="unicode") if body is not None else None
        response = self.client.request(
            method,
            f"/api{path}",
            headers=self._auth_headers(path),
            content=content,
        )
        response.raise_for_status()
        if not response.content.strip():
            return None
        return ET.fromstring(response.content)

    def transcode(self, job: Job, profile: TranscodeProfile) -> JobStatus:
        plan = self.plan_outputs(job, profile)
        document = self._job_document(plan, profile)
        created = self._request("POST", "/jobs", document)
        provider_job_id = _element_id(created)
        self.log.info(
            "elementalconductor.job.created",
            job_id=job.id,
            provider_job_id=provider_job_id,
        )
        return JobStatus(provider_name=NAME, provider_job_id=provider_job_id, status=Status.QUEUED)

    def _job_document(self, plan: OutputPlan, profile: TranscodeProfile) -> ET.Element:
        root = ET.Element("job")
        file_input = _sub(_sub(root, "input"), "file_input")
        _sub(file_input, "uri", profile.source_media)
        _sub(file_input, "username", self.settings.access_key_id)
        _sub(file_input, "password", self.settings.secret_access_key)
        _sub(root, "priority", DEFAULT_PRIORITY)

        order = 0
        for output in plan.file_outputs:
            order += 1
            destination = join_location(self.settings.destination, strip_extension(output.key))
            group = self._output_group(root, order, "file_group_settings", destination)
            element = _sub(group, "output")
            _sub(element, "order", 1)
            _sub(element, "preset", output.preset_id)
            _sub(element, "extension", output.preset_map.output_options.extension.strip(". "))

        if plan.playlist is not None:
            self._playlist_group(root, order + 1, plan, plan.playlist, profile)
        return root

    def _output_group(self, root: ET.Element, order: int, kind: str, destination: str) -> ET.Element:
        group = _sub(root, "output_group")
        _sub(group, "order", order)
        _sub(group, "type", kind)
        location = _sub(_sub(group, kind), "destination")
        _sub(location, "uri", destination)
        _sub(location, "username", self.settings.access_key_id)
        _sub(location, "password", self.settings.secret_access_key)
        return group

    def _playlist_group(
        self,
        root: ET.Element,
        order: int,
        plan: OutputPlan,
        playlist: PlannedPlaylist,
        profile: TranscodeProfile,
    ) -> None:
        destination = join_location(self.settings.destination, playlist.name)
        group = self._output_group(root, order, "apple_live_group_settings", destination)
        _sub(group.find("apple_live_group_settings"), "segment_length", profile.streaming_params.segment_duration)
        for index, output in enumerate(plan.adaptive_outputs, start=1):
            element = _sub(group, "output")
            _sub(element, "order", index)
            _sub(element, "preset", output.preset_id)
            _sub(element, "name_modifier", f"_{output.preset_map.name}")
            _sub(element, "extension", "m3u8")

    def create_preset(self, preset: Preset) -> str:
        created = self._request("POST", "/presets", self._preset_document(preset))
        preset_id = _element_id(created)
        self.log.info("elementalconductor.preset.created", name=preset.name, preset_id=preset_id)
        return preset_id

    def _preset_document(self, preset: Preset) -> ET.Element:
        video = preset.video
        root = ET.Element("preset")
        _sub(root, "name", preset.name)
        _sub(root, "description", preset.description)
        _sub(root, "container", preset.container)

        video_element = _sub(root, "video_description")
        _sub(video_element, "codec", alias(video.codec, _VIDEO_CODECS))
        # Without explicit dimensions Conductor keeps the source resolution.
        if video.width:
            _sub(video_element, "width", video.width)
        if video.height:
            _sub(video_element, "height", video.height)
        codec_settings = _sub(video_element, f"{video.codec.replace('.', '') or 'video'}_settings")
        _sub(codec_settings, "bitrate", to_bps(video.bitrate))
        if video.gop_size:
            _sub(codec_settings, "gop_size", video.gop_size)
        if video.gop_mode == "fixed":
            _sub(codec_settings, "fixed_gop", "true")
        if preset.profile:
            _sub(codec_settings, "profile", preset.profile)
        if preset.profile_level:
            _sub(codec_settings, "level", preset.profile_level)
        if preset.rate_control:
            _sub(codec_settings, "rate_control_mode", preset.rate_control.upper())
        if video.interlace_mode:
            _sub(codec_settings, "interlace_mode", video.interlace_mode)

        audio_element = _sub(root, "audio_description")
        _sub(audio_element, "codec", preset.audio.codec)
        audio_settings = _sub(audio_element, f"{preset.audio.codec or 'audio'}_settings")
        _sub(audio_settings, "bitrate", to_bps(preset.audio.bitrate))
        return root

    def get_preset(self, preset_id: str) -> NativePreset:
        element = self._request("GET", f"/presets/{preset_id}")
        payload = _to_dict(element) if element is not None else {}
        return NativePreset(
            provider_name=NAME,
            preset_id=str(payload.get("id") or preset_id),
            container=str(payload.get("container") or ""),
            payload=payload,
        )

    def delete_preset(self, preset_id: str) -> None:
        self._request("DELETE", f"/presets/{preset_id}")

    def job_status(self, provider_job_id: str) -> JobStatus:
        element = self._request("GET", f"/jobs/{provider_job_id}")
        if element is None:
            element = ET.Element("job")
        vendor_status = element.findtext("status") or ""
        progress = element.findtext("pct_complete") or "0"
        errors = [message.text or "" for message in element.iterfind("error_messages/error/message")]
        diagnostics = [("status", vendor_status), ("pct_complete", progress)]
        if errors:
            diagnostics.append(("errors", "; ".join(errors)))

        destination = element.findtext("output_group/*/destination/uri") or ""
        return JobStatus(
            provider_name=NAME,
            provider_job_id=element.findtext("id") or provider_job_id,
            status=normalize_status(_STATUSES, vendor_status),
            provider_status=tuple(diagnostics),
            output_destination=job_destination(destination) if destination else "",
            progress=_progress(progress),
        )

    def healthcheck(self) -> None:
        self._request("GET", "/nodes")

    def close(self) -> None:
        self.client.close()

    def capabilities(self) -> Capabilities:
        return Capabilities(
            input_formats=("prores", "h264"),
            output_formats=("mp4", "hls"),
            destinations=("akamai", "s3"),
        )


def _element_id(element: ET.Element | None) -> str:
    if element is None:
        return ""
    identifier = element.findtext("id")
    if identifier:
        return identifier
    return element.get("href", "").rstrip("/").rsplit("/", 1)[-1]


def _progress(value: str) -> float:
    try:
        return float(value)
    except ValueError:
        return 0.0


def elemental_conductor_factory(config: Config) -> ElementalConductorProvider:
    """Build an adapter from ``config.elementalconductor``."""

    settings = config.elementalconductor
    missing = missing_settings(
        settings,
        "host",
        "user_login",
        "api_key",
        "access_key_id",
        "secret_access_key",
        "destination",
    )
    if missing:
        raise InvalidConfigError(NAME, missing)
    return ElementalConductorProvider(
        client=http_client(settings.host, config.service),
        settings=settings,
    )


__all__ = ["NAME", "ElementalConductorProvider", "elemental_conductor_factory"]
