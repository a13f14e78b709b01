import os
from pathlib import Path
from typing import List, Optional, Sequence

import pytest

from video_analyzer.feishu.types import DeliveryResult
from video_analyzer.media.types import ProcessExited, ProcessResult

MB = 1024 * 1024


def make_sparse_file(path: Path, size: int) -> Path:
    """Creates a file reporting ``size`` bytes without writing them."""
    with open(path, "wb") as f:
        f.truncate(size)
    return path


class FakeRunner:
    """Records ffmpeg invocations and optionally writes the output file."""

    def __init__(
        self,
        available: bool = True,
        result: Optional[ProcessResult] = None,
        output_size: Optional[int] = 10 * MB,
    ):
        self.available = available
        self.result = result or ProcessExited(exit_code=0)
        self.output_size = output_size
        self.calls: List[dict] = []
        self.probes: List[str] = []

    async def is_available(self, executable: str, flag: str = "-version", timeout: float = 10) -> bool:
        self.probes.append(executable)
        return self.available

    async def run(self, executable: str, args: Sequence[str], timeout=None) -> ProcessResult:
        self.calls.append({"executable": executable, "args": list(args), "timeout": timeout})
        if isinstance(self.result, ProcessExited) and self.result.exit_code == 0 and self.output_size is not None:
            make_sparse_file(Path(args[-1]), self.output_size)
        return self.result


class RecordingSink:
    def __init__(self):
        self.successes: List[tuple] = []
        self.failures: List[tuple] = []

    def deliver_success(self, record_id: str, report: str) -> DeliveryResult:
        self.successes.append((record_id, report))
        return DeliveryResult(delivered=True, message="record updated")

    def deliver_failure(self, record_id: str, reason: str) -> DeliveryResult:
        self.failures.append((record_id, reason))
        return DeliveryResult(delivered=True, message="record updated")


@pytest.fixture
def video_dir(tmp_path):
    directory = tmp_path / "videos"
    directory.mkdir()
    return directory


@pytest.fixture
def instruction_file(tmp_path):
    path = tmp_path / "prompt1.txt"
    path.write_text("Describe the video as a Markdown report.", encoding="utf-8")
    return str(path)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith(("FEISHU_", "AI_", "VIDEO_DIR", "FFMPEG_PATH", "MAX_CONCURRENT")):
            monkeypatch.delenv(key, raising=False)
