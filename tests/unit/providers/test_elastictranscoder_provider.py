from __future__ import annotations

from typing import Any

import pytest
from botocore.exceptions import ClientError

from src.transcoding.config import Config, ElasticTranscoderSettings
from src.transcoding.domain import AudioPreset, Job, Preset, Status, VideoPreset
from src.transcoding.errors import (
    InvalidConfigError,
    MisconfiguredPresetError,
    PresetMapNotFoundError,
)
from src.transcoding.providers import elastictranscoder
from src.transcoding.providers.elastictranscoder import (
    ElasticTranscoderProvider,
    elastic_transcoder_factory,
)
from tests.mocks.providers import (
    FakeElasticTranscoderClient,
    client_error,
    make_preset_map,
    make_profile,
)

PIPELINE_ID = "1490000000000-pipeline"


def make_settings(**overrides: Any) -> ElasticTranscoderSettings:
    values = {
        "access_key_id": "AKIAEXAMPLE",
        "secret_access_key": "secret",
        "region": "sa-east-1",
        "pipeline_id": PIPELINE_ID,
    }
    values.update(overrides)
    return ElasticTranscoderSettings(**values)


def make_provider(client: FakeElasticTranscoderClient) -> ElasticTranscoderProvider:
    return ElasticTranscoderProvider(client=client, settings=make_settings())


@pytest.fixture
def client() -> FakeElasticTranscoderClient:
    return FakeElasticTranscoderClient(
        presets={
            "preset-mp4": {"Id": "preset-mp4", "Container": "mp4"},
            "preset-webm": {"Id": "preset-webm", "Container": "webm"},
            "preset-hls-360": {"Id": "preset-hls-360", "Container": "ts"},
            "preset-hls-720": {"Id": "preset-hls-720", "Container": "ts"},
            "preset-broken": {"Id": "preset-broken"},
        },
        pipelines={PIPELINE_ID: {"Id": PIPELINE_ID, "OutputBucket": "output-bucket"}},
    )


def test_transcode_regular_outputs(client: FakeElasticTranscoderClient, job: Job) -> None:
    profile = make_profile(
        "s3://bucket/path/video.mp4",
        [
            make_preset_map("hd", "mp4", elastictranscoder="preset-mp4"),
            make_preset_map("webm_hd", "webm", elastictranscoder="preset-webm"),
        ],
    )

    status = make_provider(client).transcode(job, profile)

    assert status.provider_name == "elastictranscoder"
    assert status.provider_job_id == "1490000000000-abcdef"
    assert status.status == Status.QUEUED
    [params] = client.calls_to("create_job")
    assert params == {
        "PipelineId": PIPELINE_ID,
        "Input": {"Key": "path/video.mp4"},
        "Outputs": [
            {"Key": "abc/path/hd/video.mp4", "PresetId": "preset-mp4"},
            {"Key": "abc/path/webm_hd/video.webm", "PresetId": "preset-webm"},
        ],
    }


def test_transcode_adaptive_streaming_outputs(client: FakeElasticTranscoderClient, job: Job) -> None:
    profile = make_profile(
        "s3://bucket/video.mp4",
        [
            make_preset_map("hls_360p", "m3u8", elastictranscoder="preset-hls-360"),
            make_preset_map("hd", "mp4", elastictranscoder="preset-mp4"),
            make_preset_map("hls_720p", "m3u8", elastictranscoder="preset-hls-720"),
        ],
        segment_duration=3,
    )

    make_provider(client).transcode(job, profile)

    [params] = client.calls_to("create_job")
    assert params["Outputs"] == [
        {"Key": "abc/video/hls_360p/video", "PresetId": "preset-hls-360", "SegmentDuration": "3"},
        {"Key": "abc/hd/video.mp4", "PresetId": "preset-mp4"},
        {"Key": "abc/video/hls_720p/video", "PresetId": "preset-hls-720", "SegmentDuration": "3"},
    ]
    assert params["Playlists"] == [
        {
            "Format": "HLSv3",
            "Name": "abc/video/master",
            "OutputKeys": ["abc/video/hls_360p/video", "abc/video/hls_720p/video"],
        }
    ]


def test_transcode_without_mapping_submits_nothing(client: FakeElasticTranscoderClient, job: Job) -> None:
    profile = make_profile(
        "video.mp4",
        [
            make_preset_map("hd", "mp4", elastictranscoder="preset-mp4"),
            make_preset_map("sd", "mp4", encodingcom="sd_preset"),
        ],
    )

    with pytest.raises(PresetMapNotFoundError, match="sd"):
        make_provider(client).transcode(job, profile)

    assert client.calls == []


def test_transcode_misconfigured_preset(client: FakeElasticTranscoderClient, job: Job) -> None:
    profile = make_profile("video.mp4", [make_preset_map("hd", "mp4", elastictranscoder="preset-broken")])

    with pytest.raises(MisconfiguredPresetError, match="preset-broken"):
        make_provider(client).transcode(job, profile)

    assert client.calls_to("create_job") == []


def test_transcode_propagates_vendor_errors(job: Job) -> None:
    error = client_error("ValidationException", "pipeline is paused", "CreateJob")
    client = FakeElasticTranscoderClient(
        presets={"preset-mp4": {"Id": "preset-mp4", "Container": "mp4"}},
        create_job_error=error,
    )
    profile = make_profile("video.mp4", [make_preset_map("hd", "mp4", elastictranscoder="preset-mp4")])

    with pytest.raises(ClientError) as excinfo:
        make_provider(client).transcode(job, profile)

    assert excinfo.value is error
    assert len(client.calls_to("create_job")) == 1


def test_create_preset_translates_canonical_fields(client: FakeElasticTranscoderClient) -> None:
    preset = Preset(
        name="hls_720p",
        description="720p HLS rendition",
        container="m3u8",
        profile="Main",
        profile_level="3.1",
        video=VideoPreset(codec="h264", bitrate="1000000", gop_size="90", gop_mode="fixed"),
        audio=AudioPreset(codec="aac", bitrate="128000"),
    )

    preset_id = make_provider(client).create_preset(preset)

    assert preset_id == "1490000000000-preset"
    [params] = client.calls_to("create_preset")
    assert params["Name"] == "hls_720p"
    assert params["Description"] == "720p HLS rendition"
    assert params["Container"] == "ts"
    assert params["Video"] == {
        "Codec": "H.264",
        "CodecOptions": {"Profile": "main", "Level": "3.1", "MaxReferenceFrames": "2"},
        "KeyframesMaxDist": "90",
        "BitRate": "1000",
        "FrameRate": "auto",
        "MaxWidth": "auto",
        "MaxHeight": "auto",
        "DisplayAspectRatio": "auto",
        "SizingPolicy": "Fill",
        "PaddingPolicy": "Pad",
        "FixedGOP": "true",
    }
    assert params["Audio"] == {
        "Codec": "AAC",
        "BitRate": "128",
        "Channels": "auto",
        "SampleRate": "auto",
    }
    assert params["Thumbnails"] == {
        "Format": "png",
        "Interval": "1",
        "MaxWidth": "auto",
        "MaxHeight": "auto",
        "SizingPolicy": "Fill",
        "PaddingPolicy": "Pad",
    }


def test_create_preset_passes_unknown_tokens_through(client: FakeElasticTranscoderClient) -> None:
    preset = Preset(
        name="webm_hd",
        container="webm",
        video=VideoPreset(codec="vp8", bitrate="0", width="1280", gop_mode="variable"),
        audio=AudioPreset(codec="vorbis", bitrate="64000"),
    )

    make_provider(client).create_preset(preset)

    [params] = client.calls_to("create_preset")
    assert params["Container"] == "webm"
    assert params["Video"]["Codec"] == "vp8"
    assert params["Video"]["BitRate"] == "0"
    assert params["Video"]["MaxWidth"] == "1280"
    assert params["Video"]["MaxHeight"] == "auto"
    assert "FixedGOP" not in params["Video"]
    assert params["Audio"]["Codec"] == "vorbis"


def test_get_and_delete_preset(client: FakeElasticTranscoderClient) -> None:
    provider = make_provider(client)

    native = provider.get_preset("preset-hls-360")
    provider.delete_preset("preset-hls-360")

    assert native.provider_name == "elastictranscoder"
    assert native.preset_id == "preset-hls-360"
    assert native.container == "ts"
    assert client.calls_to("delete_preset") == [{"Id": "preset-hls-360"}]


def _job(status: str) -> dict[str, Any]:
    return {
        "Id": "job-1",
        "PipelineId": PIPELINE_ID,
        "Status": status,
        "Outputs": [
            {"Key": "abc/path/hd/video.mp4", "Status": status, "StatusDetail": "encoding"},
            {"Key": "abc/path/sd/video.mp4", "Status": status, "StatusDetail": ""},
        ],
    }


def test_job_status(client: FakeElasticTranscoderClient) -> None:
    client.jobs["job-1"] = _job("Progressing")

    status = make_provider(client).job_status("job-1")

    assert status.provider_name == "elastictranscoder"
    assert status.provider_job_id == "job-1"
    assert status.status == Status.STARTED
    assert status.output_destination == "s3://output-bucket/abc/path"
    assert status.provider_status == (
        ("status", "Progressing"),
        ("abc/path/hd/video.mp4", "encoding"),
        ("abc/path/sd/video.mp4", ""),
    )


def test_job_status_with_output_key_prefix(client: FakeElasticTranscoderClient) -> None:
    job = _job("Complete")
    job["OutputKeyPrefix"] = "encoded/"
    client.jobs["job-1"] = job

    status = make_provider(client).job_status("job-1")

    assert status.status == Status.FINISHED
    assert status.output_destination == "s3://output-bucket/encoded/abc/path"


@pytest.mark.parametrize(
    ("vendor_status", "expected"),
    [
        ("Submitted", Status.QUEUED),
        ("Progressing", Status.STARTED),
        ("Complete", Status.FINISHED),
        ("Canceled", Status.CANCELED),
        ("Error", Status.FAILED),
        ("Paused", Status.FAILED),
        ("COMPLETE", Status.FAILED),
        ("complete", Status.FAILED),
    ],
)
def test_job_status_mapping(client: FakeElasticTranscoderClient, vendor_status: str, expected: Status) -> None:
    client.jobs["job-1"] = _job(vendor_status)

    assert make_provider(client).job_status("job-1").status == expected


def test_job_status_keeps_destination_error_text() -> None:
    error = client_error("AccessDeniedException", "not allowed to read pipelines", "ReadPipeline")
    client = FakeElasticTranscoderClient(jobs={"job-1": _job("Complete")}, pipeline_error=error)

    status = make_provider(client).job_status("job-1")

    assert status.output_destination == str(error)
    assert status.status == Status.FINISHED
    assert status.provider_job_id == "job-1"
    assert status.diagnostic("status") == "Complete"


def test_job_status_reads_bucket_from_content_config() -> None:
    client = FakeElasticTranscoderClient(
        jobs={"job-1": _job("Complete")},
        pipelines={PIPELINE_ID: {"Id": PIPELINE_ID, "ContentConfig": {"Bucket": "content-bucket"}}},
    )

    status = make_provider(client).job_status("job-1")

    assert status.status == Status.FINISHED
    assert status.output_destination == "s3://content-bucket/abc/path"


def test_job_status_without_output_bucket() -> None:
    job = _job("Progressing")
    del job["PipelineId"]
    client = FakeElasticTranscoderClient(
        jobs={"job-1": job},
        pipelines={PIPELINE_ID: {"Id": PIPELINE_ID}},
    )

    status = make_provider(client).job_status("job-1")

    assert status.status == Status.STARTED
    assert status.output_destination == f"pipeline {PIPELINE_ID} has no output bucket"
    assert client.calls_to("read_pipeline") == [{"Id": PIPELINE_ID}]


def test_job_status_propagates_read_job_errors(client: FakeElasticTranscoderClient) -> None:
    with pytest.raises(ClientError):
        make_provider(client).job_status("unknown")


def test_healthcheck_reads_configured_pipeline(client: FakeElasticTranscoderClient) -> None:
    make_provider(client).healthcheck()

    assert client.calls_to("read_pipeline") == [{"Id": PIPELINE_ID}]


def test_healthcheck_fails_without_pipeline() -> None:
    with pytest.raises(ClientError):
        make_provider(FakeElasticTranscoderClient()).healthcheck()


def test_capabilities(client: FakeElasticTranscoderClient) -> None:
    capabilities = make_provider(client).capabilities()

    assert capabilities.input_formats == ("h264",)
    assert capabilities.output_formats == ("mp4", "hls", "webm")
    assert capabilities.destinations == ("s3",)


@pytest.mark.parametrize("missing", ["access_key_id", "secret_access_key", "pipeline_id"])
def test_factory_rejects_incomplete_config(missing: str) -> None:
    config = Config(elastictranscoder=make_settings(**{missing: ""}))

    with pytest.raises(InvalidConfigError) as excinfo:
        elastic_transcoder_factory(config)

    assert excinfo.value.provider_name == "elastictranscoder"
    assert excinfo.value.missing == (missing,)
    assert "elastictranscoder" in str(excinfo.value)


def test_factory_builds_boto3_client(monkeypatch) -> None:
    created: dict[str, Any] = {}
    fake = FakeElasticTranscoderClient()

    def fake_client(service_name: str, **kwargs: Any) -> FakeElasticTranscoderClient:
        created.update(kwargs, service_name=service_name)
        return fake

    monkeypatch.setattr(elastictranscoder.boto3, "client", fake_client)

    provider = elastic_transcoder_factory(Config(elastictranscoder=make_settings(region="")))

    assert provider.client is fake
    assert provider.settings.pipeline_id == PIPELINE_ID
    assert created == {
        "service_name": "elastictranscoder",
        "region_name": "us-east-1",
        "aws_access_key_id": "AKIAEXAMPLE",
        "aws_secret_access_key": "secret",
    }


def test_close_releases_client(client: FakeElasticTranscoderClient) -> None:
    with make_provider(client):
        pass

    assert client.closed is True
