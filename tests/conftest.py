from __future__ import annotations

import pytest

from src.transcoding.domain import Job


@pytest.fixture
def job() -> Job:
    return Job(id="abc")
