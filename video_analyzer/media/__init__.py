from .compressor import VideoCompressor, build_ffmpeg_args, build_output_path
from .locator import VIDEO_EXTENSIONS, locate_video, strip_extension
from .planner import MAX_MODEL_INPUT_SIZE, SKIP_COMPRESSION_THRESHOLD, needs_compression, plan_compression
from .process import ProcessRunner

__all__ = [
    "VideoCompressor",
    "build_ffmpeg_args",
    "build_output_path",
    "VIDEO_EXTENSIONS",
    "locate_video",
    "strip_extension",
    "MAX_MODEL_INPUT_SIZE",
    "SKIP_COMPRESSION_THRESHOLD",
    "needs_compression",
    "plan_compression",
    "ProcessRunner",
]
