"""Hybrik provider.

Hybrik jobs are JSON graphs of elements (source, transcode, package) linked
by connections. Every call is authenticated twice: HTTP basic auth with the
OAPI key pair, plus an ``X-Hybrik-Sapiauth`` token obtained from ``/login``.
The token is requested per operation so the adapter keeps no session state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog

from ..config import Config, HybrikSettings, missing_settings
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
from .outputs import job_destination, join_location
from .presets import alias, to_kbps
from .status import normalize_status

NAME = "hybrik"

SEGMENTED_CONTAINER = "mpegts"
SOURCE_UID = "source_file"
PACKAGE_UID = "hls_package"

_VIDEO_CODECS = {"h265": "hevc"}
_AUDIO_CODECS = {"aac": "aac_lc"}
_CONTAINERS = {"m3u8": SEGMENTED_CONTAINER}

_STATUSES = {
    "queued": Status.QUEUED,
    "active": Status.STARTED,
    "running": Status.STARTED,
    "completed": Status.FINISHED,
    "canceled": Status.CANCELED,
    "failed": Status.FAILED,
}

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class HybrikProvider(Provider):
    """Translate canonical jobs into Hybrik job graphs."""

    client: httpx.Client
    settings: HybrikSettings
    log: Any = field(default_factory=lambda: logger)

    name = NAME
    segmented_containers = frozenset({SEGMENTED_CONTAINER})

    def _session_headers(self) -> dict[str, str]:
        compliance = {"X-Hybrik-Compliance": self.settings.compliance_date}
        response = self.client.post(
            "/login",
            json={"auth_key": self.settings.auth_key, "auth_secret": self.settings.auth_secret},
            headers=compliance,
        )
        response.raise_for_status()
        return {**compliance, "X-Hybrik-Sapiauth": response.json()["token"]}

    def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> dict[str, Any]:
        response = self.client.request(
            method,
            path,
            json=payload,
            headers=self._session_headers(),
        )
        response.raise_for_status()
        if not response.content:
            return {}
        return response.json()

    def transcode(self, job: Job, profile: TranscodeProfile) -> JobStatus:
        plan = self.plan_outputs(job, profile)
        body = {"name": job.id, "payload": self._job_graph(plan, profile)}
        created = self._request("POST", "/jobs", body)
        provider_job_id = str(created["id"])
        self.log.info("hybrik.job.created", job_id=job.id, provider_job_id=provider_job_id)
        return JobStatus(provider_name=NAME, provider_job_id=provider_job_id, status=Status.QUEUED)

    def _location(self, key: str) -> dict[str, str]:
        return {"storage_provider": "s3", "path": join_location(self.settings.destination, key)}

    def _job_graph(self, plan: OutputPlan, profile: TranscodeProfile) -> dict[str, Any]:
        segment_duration = profile.streaming_params.segment_duration
        elements: list[dict[str, Any]] = [
            {
                "uid": SOURCE_UID,
                "kind": "source",
                "payload": {
                    "kind": "asset_url",
                    "payload": {"storage_provider": "s3", "url": profile.source_media},
                },
            }
        ]
        transcode_uids = []
        adaptive_uids = []
        for index, output in enumerate(plan.outputs):
            uid = f"transcode_task_{index}"
            directory, filename = output.key.rsplit("/", 1)
            target: dict[str, Any] = {"file_pattern": filename, "existing_files": "replace"}
            if output.adaptive_streaming:
                target["container"] = {
                    "kind": SEGMENTED_CONTAINER,
                    "segment_duration": segment_duration,
                }
                adaptive_uids.append(uid)
            elements.append(
                {
                    "uid": uid,
                    "kind": "transcode",
                    "preset": {"key": output.preset_id},
                    "payload": {"location": self._location(directory), "targets": [target]},
                }
            )
            transcode_uids.append(uid)

        connections = [
            {
                "from": [{"element": SOURCE_UID}],
                "to": {"success": [{"element": uid} for uid in transcode_uids]},
            }
        ]
        if plan.playlist is not None:
            elements.append(self._package_element(plan.playlist, segment_duration))
            connections.append(
                {
                    "from": [{"element": uid} for uid in adaptive_uids],
                    "to": {"success": [{"element": PACKAGE_UID}]},
                }
            )
        return {"elements": elements, "connections": connections}

    def _package_element(self, playlist: PlannedPlaylist, segment_duration: int) -> dict[str, Any]:
        directory, filename = playlist.name.rsplit("/", 1)
        return {
            "uid": PACKAGE_UID,
            "kind": "package",
            "payload": {
                "kind": "hls",
                "location": self._location(directory),
                "file_pattern": f"{filename}.m3u8",
                "segmentation_mode": "segmented_ts",
                "segment_duration_sec": segment_duration,
                "output_keys": list(playlist.output_keys),
            },
        }

    def create_preset(self, preset: Preset) -> str:
        body = {
            "name": preset.name,
            "description": preset.description,
            "kind": "transcode",
            "path": self.settings.preset_path,
            "payload": {"targets": [self._preset_target(preset)]},
        }
        created = self._request("POST", "/presets", body)
        preset_id = str(created["id"])
        self.log.info("hybrik.preset.created", name=preset.name, preset_id=preset_id)
        return preset_id

    def _preset_target(self, preset: Preset) -> dict[str, Any]:
        video = preset.video
        video_params: dict[str, Any] = {
            "codec": alias(video.codec, _VIDEO_CODECS),
            "bitrate_kb": int(to_kbps(video.bitrate)),
        }
        if video.width:
            video_params["width"] = int(video.width)
        if video.height:
            video_params["height"] = int(video.height)
        if video.gop_size:
            video_params["gop_size"] = int(video.gop_size)
        if video.gop_mode == "fixed":
            video_params["use_closed_gop"] = True
        if preset.profile:
            video_params["profile"] = preset.profile.lower()
        if preset.profile_level:
            video_params["level"] = preset.profile_level
        if preset.rate_control:
            video_params["bitrate_mode"] = preset.rate_control.lower()
        if video.interlace_mode:
            video_params["interlace_mode"] = video.interlace_mode
        return {
            "file_pattern": "{source_basename}",
            "existing_files": "replace",
            "container": {"kind": alias(preset.container, _CONTAINERS)},
            "video": video_params,
            "audio": [
                {
                    "codec": alias(preset.audio.codec, _AUDIO_CODECS),
                    "bitrate_kb": int(to_kbps(preset.audio.bitrate)),
                }
            ],
        }

    def get_preset(self, preset_id: str) -> NativePreset:
        payload = self._request("GET", f"/presets/{preset_id}")
        targets = (payload.get("payload") or {}).get("targets") or [{}]
        container = (targets[0].get("container") or {}).get("kind") or ""
        return NativePreset(
            provider_name=NAME,
            preset_id=str(payload.get("id") or preset_id),
            container=container,
            payload=payload,
        )

    def delete_preset(self, preset_id: str) -> None:
        self._request("DELETE", f"/presets/{preset_id}")

    def job_status(self, provider_job_id: str) -> JobStatus:
        info = self._request("GET", f"/jobs/{provider_job_id}/info")
        vendor_status = str(info.get("status") or "")
        progress = info.get("progress") or 0
        diagnostics = [("status", vendor_status), ("progress", str(progress))]
        if info.get("name"):
            diagnostics.append(("name", str(info["name"])))
        try:
            destination = self._output_destination(provider_job_id)
        except httpx.HTTPError as exc:
            self.log.warning(
                "hybrik.destination.unresolved",
                provider_job_id=provider_job_id,
                error=str(exc),
            )
            destination = str(exc)
        return JobStatus(
            provider_name=NAME,
            provider_job_id=str(info.get("id") or provider_job_id),
            status=normalize_status(_STATUSES, vendor_status),
            provider_status=tuple(diagnostics),
            output_destination=destination,
            progress=float(progress),
        )

    def _output_destination(self, provider_job_id: str) -> str:
        definition = self._request("GET", f"/jobs/{provider_job_id}/definition")
        for element in (definition.get("payload") or {}).get("elements") or []:
            if element.get("kind") != "transcode":
                continue
            payload = element.get("payload") or {}
            location = (payload.get("location") or {}).get("path") or ""
            targets = payload.get("targets") or [{}]
            return job_destination(join_location(location, targets[0].get("file_pattern") or ""))
        return ""

    def healthcheck(self) -> None:
        self._session_headers()

    def close(self) -> None:
        self.client.close()

    def capabilities(self) -> Capabilities:
        return Capabilities(
            input_formats=("prores", "h264"),
            output_formats=("mp4", "hls"),
            destinations=("s3",),
        )


def hybrik_factory(config: Config) -> HybrikProvider:
    """Build an adapter from ``config.hybrik``."""

    settings = config.hybrik
    missing = missing_settings(
        settings, "oapi_key", "oapi_secret", "auth_key", "auth_secret", "destination"
    )
    if missing:
        raise InvalidConfigError(NAME, missing)
    return HybrikProvider(
        client=http_client(
            settings.url,
            config.service,
            auth=(settings.oapi_key, settings.oapi_secret),
        ),
        settings=settings,
    )


__all__ = ["NAME", "HybrikProvider", "hybrik_factory"]
