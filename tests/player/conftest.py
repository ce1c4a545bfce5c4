"""Fixtures for player tests: a manual clock and a recording writer."""

from uuid import UUID

import pytest

from edutrack.player.sync import ProgressSample


class FakeClock:
    """Wall clock advanced by hand."""

    def __init__(self, start: float = 1_000.0):
        self.t = start

    def __call__(self) -> float:
        return self.t

    def advance(self, seconds: float) -> None:
        self.t += seconds


class RecordingWriter:
    """Progress writer that keeps every sample; can be told to fail."""

    def __init__(self):
        self.samples: list[ProgressSample] = []
        self.fail = False
        self.completed: list[UUID] = []
        self.reset: list[UUID] = []

    async def write_progress(self, sample: ProgressSample) -> None:
        if self.fail:
            raise ConnectionError("network down")
        self.samples.append(sample)

    async def mark_complete(self, video_id: UUID) -> dict:
        if self.fail:
            raise ConnectionError("network down")
        self.completed.append(video_id)
        return {"video_id": str(video_id), "completed": True}

    async def mark_incomplete(self, video_id: UUID) -> dict:
        if self.fail:
            raise ConnectionError("network down")
        self.reset.append(video_id)
        return {"video_id": str(video_id), "completed": False}


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def writer() -> RecordingWriter:
    return RecordingWriter()
