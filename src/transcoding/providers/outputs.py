"""Deterministic naming of job outputs and adaptive-streaming playlists.

Downstream systems locate finished outputs by recomputing these keys, so
every function here is pure: identical inputs always yield identical keys.
"""

from __future__ import annotations

import posixpath
from urllib.parse import urlsplit

from ..domain import OutputOptions

ADAPTIVE_SEGMENT_NAME = "video"
PLAYLIST_NAME = "master"


def source_key(source: str) -> str:
    """Reduce ``source`` to the object key used for output naming.

    URIs that carry a bucket or host (``s3://bucket/dir/file.mp4``) lose the
    scheme and that component; plain keys are returned without leading
    slashes.
    """

    parsed = urlsplit(source)
    if parsed.scheme and parsed.netloc:
        return parsed.path.lstrip("/")
    return source.lstrip("/")


def strip_extension(path: str) -> str:
    return posixpath.splitext(path)[0]


def output_key(
    job_id: str,
    options: OutputOptions,
    source: str,
    preset_name: str,
    adaptive_streaming: bool,
) -> str:
    """Build the storage key of one output.

    Regular outputs land in ``<job>/<dirs>/<preset>/<basename>.<ext>``.
    Adaptive-streaming renditions use ``<job>/<dirs>/<basename>/<preset>/video``
    as a prefix under which the vendor writes the segment files.
    """

    parts = [job_id, *source.strip("/").split("/")]
    stem = strip_extension(parts.pop())
    if adaptive_streaming:
        parts.extend([stem, preset_name, ADAPTIVE_SEGMENT_NAME])
    else:
        parts.extend([preset_name, f"{stem}.{options.extension.strip('. ')}"])
    return "/".join(parts)


def playlist_name(job_id: str, source: str) -> str:
    """Name of the master playlist grouping a job's adaptive renditions."""

    return f"{job_id}/{strip_extension(source.strip('/'))}/{PLAYLIST_NAME}"


def join_location(base: str, key: str) -> str:
    """Append ``key`` to a destination base such as ``s3://bucket/prefix``."""

    if not base:
        return key
    return f"{base.rstrip('/')}/{key.lstrip('/')}"


def job_destination(output_location: str) -> str:
    """Drop the preset and file segments from one output's location.

    The result is the directory shared by every output of the job.
    """

    return "/".join(output_location.split("/")[:-2])
