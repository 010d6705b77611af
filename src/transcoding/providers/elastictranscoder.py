"""AWS Elastic Transcoder provider.

Jobs are submitted through a pre-provisioned pipeline whose input and output
buckets are configured on the AWS side, so job inputs and outputs are
addressed by object key only. Use :func:`elastic_transcoder_factory` (or the
default registry) to obtain an instance.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from ..config import Config, ElasticTranscoderSettings, missing_settings
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
from .base import OutputPlan, Provider
from .outputs import job_destination
from .presets import alias, to_kbps
from .status import normalize_status

NAME = "elastictranscoder"

PLAYLIST_FORMAT = "HLSv3"

_VIDEO_CODECS = {"h264": "H.264"}
_AUDIO_CODECS = {"aac": "AAC"}
_CONTAINERS = {"m3u8": "ts"}

_STATUSES = {
    "Submitted": Status.QUEUED,
    "Progressing": Status.STARTED,
    "Complete": Status.FINISHED,
    "Canceled": Status.CANCELED,
    "Error": Status.FAILED,
}

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class ElasticTranscoderProvider(Provider):
    """Translate canonical jobs and presets into Elastic Transcoder calls."""

    client: Any
    settings: ElasticTranscoderSettings
    log: Any = field(default_factory=lambda: logger)

    name = NAME
    segmented_containers = frozenset({"ts"})

    def transcode(self, job: Job, profile: TranscodeProfile) -> JobStatus:
        plan = self.plan_outputs(job, profile)
        params = self._job_params(plan, profile)
        response = self.client.create_job(**params)
        provider_job_id = response["Job"]["Id"]
        self.log.info(
            "elastictranscoder.job.created",
            job_id=job.id,
            provider_job_id=provider_job_id,
            outputs=len(plan.outputs),
        )
        return JobStatus(
            provider_name=NAME,
            provider_job_id=provider_job_id,
            status=Status.QUEUED,
        )

    def _job_params(self, plan: OutputPlan, profile: TranscodeProfile) -> dict[str, Any]:
        outputs = []
        for output in plan.outputs:
            descriptor = {"Key": output.key, "PresetId": output.preset_id}
            if output.adaptive_streaming:
                descriptor["SegmentDuration"] = str(
                    profile.streaming_params.segment_duration
                )
            outputs.append(descriptor)

        params: dict[str, Any] = {
            "PipelineId": self.settings.pipeline_id,
            "Input": {"Key": plan.source},
            "Outputs": outputs,
        }
        if plan.playlist is not None:
            params["Playlists"] = [
                {
                    "Format": PLAYLIST_FORMAT,
                    "Name": plan.playlist.name,
                    "OutputKeys": list(plan.playlist.output_keys),
                }
            ]
        return params

    def create_preset(self, preset: Preset) -> str:
        response = self.client.create_preset(
            Name=preset.name,
            Description=preset.description,
            Container=alias(preset.container, _CONTAINERS),
            Video=self._video_params(preset),
            Audio=self._audio_params(preset),
            Thumbnails=self._thumbnail_params(),
        )
        preset_id = response["Preset"]["Id"]
        self.log.info("elastictranscoder.preset.created", name=preset.name, preset_id=preset_id)
        return preset_id

    def _video_params(self, preset: Preset) -> dict[str, Any]:
        video = preset.video
        params: dict[str, Any] = {
            "Codec": alias(video.codec, _VIDEO_CODECS),
            "CodecOptions": {
                "Profile": preset.profile.lower(),
                "Level": preset.profile_level,
                "MaxReferenceFrames": "2",
            },
            "KeyframesMaxDist": video.gop_size,
            "BitRate": to_kbps(video.bitrate),
            "FrameRate": "auto",
            "MaxWidth": video.width or "auto",
            "MaxHeight": video.height or "auto",
            "DisplayAspectRatio": "auto",
            "SizingPolicy": "Fill",
            "PaddingPolicy": "Pad",
        }
        if video.gop_mode == "fixed":
            params["FixedGOP"] = "true"
        return params

    def _audio_params(self, preset: Preset) -> dict[str, Any]:
        return {
            "Codec": alias(preset.audio.codec, _AUDIO_CODECS),
            "BitRate": to_kbps(preset.audio.bitrate),
            "Channels": "auto",
            "SampleRate": "auto",
        }

    def _thumbnail_params(self) -> dict[str, Any]:
        return {
            "Format": "png",
            "Interval": "1",
            "MaxWidth": "auto",
            "MaxHeight": "auto",
            "SizingPolicy": "Fill",
            "PaddingPolicy": "Pad",
        }

    def get_preset(self, preset_id: str) -> NativePreset:
        response = self.client.read_preset(Id=preset_id)
        preset = response.get("Preset") or {}
        return NativePreset(
            provider_name=NAME,
            preset_id=preset.get("Id", preset_id),
            container=preset.get("Container") or "",
            payload=preset,
        )

    def delete_preset(self, preset_id: str) -> None:
        self.client.delete_preset(Id=preset_id)

    def job_status(self, provider_job_id: str) -> JobStatus:
        job = self.client.read_job(Id=provider_job_id)["Job"]
        diagnostics = [("status", job.get("Status", ""))]
        for output in job.get("Outputs") or []:
            diagnostics.append((output.get("Key", ""), output.get("StatusDetail", "")))
        try:
            destination = self._output_destination(job)
        except (BotoCoreError, ClientError) as exc:
            self.log.warning(
                "elastictranscoder.destination.unresolved",
                provider_job_id=provider_job_id,
                error=str(exc),
            )
            destination = str(exc)
        return JobStatus(
            provider_name=NAME,
            provider_job_id=job.get("Id", provider_job_id),
            status=normalize_status(_STATUSES, job.get("Status")),
            provider_status=tuple(diagnostics),
            output_destination=destination,
        )

    def _output_destination(self, job: dict[str, Any]) -> str:
        pipeline_id = job.get("PipelineId") or self.settings.pipeline_id
        pipeline = self.client.read_pipeline(Id=pipeline_id).get("Pipeline") or {}
        # Pipelines configured with ContentConfig carry no OutputBucket.
        bucket = pipeline.get("OutputBucket") or (pipeline.get("ContentConfig") or {}).get("Bucket")
        if not bucket:
            return f"pipeline {pipeline_id} has no output bucket"
        prefix = job.get("OutputKeyPrefix") or ""
        for output in job.get("Outputs") or []:
            return job_destination(f"s3://{bucket}/{prefix}{output.get('Key', '')}")
        return ""

    def healthcheck(self) -> None:
        self.client.read_pipeline(Id=self.settings.pipeline_id)

    def close(self) -> None:
        self.client.close()

    def capabilities(self) -> Capabilities:
        return Capabilities(
            input_formats=("h264",),
            output_formats=("mp4", "hls", "webm"),
            destinations=("s3",),
        )


def elastic_transcoder_factory(config: Config) -> ElasticTranscoderProvider:
    """Build an adapter from ``config.elastictranscoder``."""

    settings = config.elastictranscoder
    missing = missing_settings(settings, "access_key_id", "secret_access_key", "pipeline_id")
    if missing:
        raise InvalidConfigError(NAME, missing)
    client = boto3.client(
        "elastictranscoder",
        region_name=settings.region or "us-east-1",
        aws_access_key_id=settings.access_key_id,
        aws_secret_access_key=settings.secret_access_key,
    )
    return ElasticTranscoderProvider(client=client, settings=settings)


__all__ = ["NAME", "ElasticTranscoderProvider", "elastic_transcoder_factory"]
