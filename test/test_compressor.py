import os

import pytest

from video_analyzer.errors import ErrorKind
from video_analyzer.media.compressor import VideoCompressor, build_ffmpeg_args, build_output_path
from video_analyzer.media.planner import plan_compression
from video_analyzer.media.types import (
    CompressionCompressed,
    CompressionFailed,
    CompressionSkipped,
    ProcessExited,
    ProcessLaunchFailed,
    ProcessTimedOut,
)

from conftest import MB, FakeRunner, make_sparse_file


def test_output_path_names_resolution_and_frame_rate(tmp_path):
    plan = plan_compression(500 * MB)
    source = str(tmp_path / "demo.mov")

    assert build_output_path(source, plan) == str(tmp_path / "demo_compressed_1280x720_24fps-release.mp4")


def test_ffmpeg_args_follow_plan():
    plan = plan_compression(4000 * MB)
    args = build_ffmpeg_args("/in/a.mkv", "/in/a_out.mp4", plan)

    assert args[:2] == ["-i", "/in/a.mkv"]
    assert args[args.index("-r") + 1] == "20"
    assert args[args.index("-crf") + 1] == "25"
    assert args[args.index("-c:v") + 1] == "libx264"
    assert args[args.index("-vf") + 1].startswith("scale=1280:720:force_original_aspect_ratio=decrease")
    assert args[-2:] == ["-y", "/in/a_out.mp4"]


@pytest.mark.asyncio
async def test_small_video_is_skipped_without_ffmpeg(video_dir):
    make_sparse_file(video_dir / "clip.mp4", 50 * MB)
    runner = FakeRunner()

    outcome = await VideoCompressor(str(video_dir), runner=runner).run("clip")

    assert isinstance(outcome, CompressionSkipped)
    assert outcome.path == os.path.abspath(video_dir / "clip.mp4")
    assert outcome.original_size == 50 * MB
    assert runner.calls == [] and runner.probes == []


@pytest.mark.asyncio
async def test_large_video_is_compressed(video_dir):
    make_sparse_file(video_dir / "big.mov", 500 * MB)
    runner = FakeRunner(output_size=40 * MB)

    outcome = await VideoCompressor(str(video_dir), ffmpeg_path="/opt/ffmpeg", runner=runner).run("big.mp4")

    assert isinstance(outcome, CompressionCompressed)
    assert outcome.path.endswith("big_compressed_1280x720_24fps-release.mp4")
    assert outcome.original_size == 500 * MB
    assert outcome.output_size == 40 * MB
    assert outcome.over_limit is False
    assert runner.probes == ["/opt/ffmpeg"]
    assert runner.calls[0]["executable"] == "/opt/ffmpeg"
    assert runner.calls[0]["timeout"] == 2400
    assert runner.calls[0]["args"][-1] == outcome.path


@pytest.mark.asyncio
async def test_oversized_output_is_flagged_but_accepted(video_dir):
    make_sparse_file(video_dir / "huge.mp4", 8000 * MB)
    runner = FakeRunner(output_size=150 * MB)

    outcome = await VideoCompressor(str(video_dir), runner=runner).run("huge")

    assert isinstance(outcome, CompressionCompressed)
    assert outcome.over_limit is True
    assert outcome.plan.frame_rate == 18


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "name, expected",
    [("", ErrorKind.FILE_NOT_FOUND), ("   ", ErrorKind.FILE_NOT_FOUND), ("absent", ErrorKind.FILE_NOT_FOUND)],
)
async def test_lookup_failures(video_dir, name, expected):
    outcome = await VideoCompressor(str(video_dir), runner=FakeRunner()).run(name)

    assert isinstance(outcome, CompressionFailed)
    assert outcome.error == expected


@pytest.mark.asyncio
async def test_missing_directory(tmp_path):
    outcome = await VideoCompressor(str(tmp_path / "nope"), runner=FakeRunner()).run("clip")

    assert isinstance(outcome, CompressionFailed)
    assert outcome.error == ErrorKind.DIRECTORY_NOT_FOUND


@pytest.mark.asyncio
async def test_unavailable_ffmpeg_never_runs(video_dir):
    make_sparse_file(video_dir / "big.mp4", 300 * MB)
    runner = FakeRunner(available=False)

    outcome = await VideoCompressor(str(video_dir), runner=runner).run("big")

    assert isinstance(outcome, CompressionFailed)
    assert outcome.error == ErrorKind.TOOL_UNAVAILABLE
    assert runner.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "result, expected",
    [
        (ProcessTimedOut(timeout=2400, output=""), ErrorKind.COMPRESSION_TIMED_OUT),
        (ProcessExited(exit_code=1, output="Invalid data"), ErrorKind.COMPRESSION_FAILED),
        (ProcessLaunchFailed(reason="cannot launch ffmpeg"), ErrorKind.COMPRESSION_FAILED),
    ],
)
async def test_transcode_failures(video_dir, result, expected):
    make_sparse_file(video_dir / "big.mp4", 300 * MB)

    outcome = await VideoCompressor(str(video_dir), runner=FakeRunner(result=result)).run("big")

    assert isinstance(outcome, CompressionFailed)
    assert outcome.error == expected


@pytest.mark.asyncio
@pytest.mark.parametrize("output_size", [None, 0])
async def test_missing_or_empty_output_fails_verification(video_dir, output_size):
    make_sparse_file(video_dir / "big.mp4", 300 * MB)

    outcome = await VideoCompressor(str(video_dir), runner=FakeRunner(output_size=output_size)).run("big")

    assert isinstance(outcome, CompressionFailed)
    assert outcome.error == ErrorKind.OUTPUT_VERIFICATION_FAILED
