"""
VideoCompressor - find a video by name and bring it under the model's input limit.

Flow: locate -> (skip | plan -> probe ffmpeg -> transcode -> verify).
Every failure is terminal for the run and returned as CompressionFailed; a
failed transcode is never retried here.

ffmpeg 参数说明：
-vf: 视频滤镜（缩放并保持宽高比，宽高取偶数，libx264 要求）
-r: 帧率
-c:v libx264 / -preset slow / -crf: H.264 编码，CRF 越小质量越高、文件越大
-pix_fmt yuv420p: 兼容性最好的像素格式
-movflags +faststart: 支持在线播放边下边播
-y: 覆盖已存在的输出文件
"""

import os
from typing import List, Optional

from ..errors import DirectoryNotFound, ErrorKind
from ..logger import logger
from .locator import locate_video, strip_extension
from .planner import MAX_MODEL_INPUT_SIZE, MB, needs_compression, plan_compression
from .process import ProcessRunner
from .types import (
    CompressionCompressed,
    CompressionFailed,
    CompressionOutcome,
    CompressionPlan,
    CompressionSkipped,
    ProcessLaunchFailed,
    ProcessTimedOut,
)


def build_output_path(input_path: str, plan: CompressionPlan) -> str:
    """video.mov -> video_compressed_1280x720_24fps-release.mp4, in the same directory"""
    parent_dir = os.path.dirname(input_path)
    base_name = strip_extension(os.path.basename(input_path))
    file_name = f"{base_name}_compressed_{plan.resolution}_{plan.frame_rate}fps-release.mp4"
    return os.path.join(parent_dir, file_name)


def build_ffmpeg_args(input_path: str, output_path: str, plan: CompressionPlan) -> List[str]:
    video_filter = (
        f"scale={plan.scale}:force_original_aspect_ratio=decrease,"
        "scale='trunc(iw/2)*2':'trunc(ih/2)*2'"
    )
    return [
        "-i", input_path,
        "-vf", video_filter,
        "-r", str(plan.frame_rate),
        "-c:v", "libx264",
        "-preset", "slow",
        "-crf", str(plan.crf),
        "-pix_fmt", "yuv420p",
        "-profile:v", "high",
        "-level", "4.2",
        "-movflags", "+faststart",
        "-c:a", "aac",
        "-b:a", "128k",
        "-y",
        output_path,
    ]


def _mb(size: int) -> str:
    return f"{size / MB:.2f}"


class VideoCompressor:
    def __init__(
        self,
        video_dir: str,
        ffmpeg_path: str = "ffmpeg",
        runner: Optional[ProcessRunner] = None,
    ):
        self.video_dir = video_dir
        self.ffmpeg_path = ffmpeg_path
        self.runner = runner or ProcessRunner()

    async def run(self, video_name: str) -> CompressionOutcome:
        """Locates ``video_name`` in the video directory and compresses it if needed.

        Returns:
            CompressionSkipped when the source is already small enough,
            CompressionCompressed with the new path and sizes, or
            CompressionFailed carrying the error kind and a readable reason.
        """
        if not video_name or not video_name.strip():
            logger.warning("视频名称为空")
            return CompressionFailed(error=ErrorKind.FILE_NOT_FOUND, reason="video name is empty")

        try:
            video_path = locate_video(self.video_dir, video_name)
        except DirectoryNotFound as e:
            logger.warning(f"⚠ {e}")
            return CompressionFailed(error=ErrorKind.DIRECTORY_NOT_FOUND, reason=str(e))

        if video_path is None:
            logger.warning(f"⚠ 未找到视频文件: videoName={video_name}, 目录={self.video_dir}")
            return CompressionFailed(error=ErrorKind.FILE_NOT_FOUND, reason="no matching file")

        original_size = os.path.getsize(video_path)
        logger.info(f"原视频文件大小: {_mb(original_size)} MB")

        if not needs_compression(original_size):
            logger.info(f"视频小于99MB，无需压缩，直接使用原文件: {video_path}")
            return CompressionSkipped(path=video_path, original_size=original_size)

        plan = plan_compression(original_size)
        logger.info(
            f"视频需要压缩，使用配置：分辨率={plan.scale}, 帧率={plan.frame_rate}, "
            f"CRF={plan.crf}, 超时={plan.timeout}秒"
        )

        if not await self.runner.is_available(self.ffmpeg_path):
            logger.warning(f"⚠ FFmpeg 不可用，请检查配置路径: {self.ffmpeg_path}")
            return CompressionFailed(error=ErrorKind.TOOL_UNAVAILABLE, reason="tool unavailable")

        output_path = build_output_path(video_path, plan)
        logger.info(f"开始压缩视频: {video_path} -> {output_path}")

        result = await self.runner.run(
            self.ffmpeg_path,
            build_ffmpeg_args(video_path, output_path, plan),
            timeout=plan.timeout,
        )

        if isinstance(result, ProcessTimedOut):
            return CompressionFailed(
                error=ErrorKind.COMPRESSION_TIMED_OUT,
                reason=f"compression timed out after {plan.timeout}s",
            )
        if isinstance(result, ProcessLaunchFailed):
            return CompressionFailed(error=ErrorKind.COMPRESSION_FAILED, reason=result.reason)
        if result.exit_code != 0:
            logger.error(f"✗ 视频压缩失败，退出码: {result.exit_code}")
            return CompressionFailed(
                error=ErrorKind.COMPRESSION_FAILED,
                reason=f"ffmpeg exited with code {result.exit_code}",
            )

        return self._verify(video_path, output_path, original_size, plan)

    def _verify(
        self,
        video_path: str,
        output_path: str,
        original_size: int,
        plan: CompressionPlan,
    ) -> CompressionOutcome:
        if not os.path.isfile(output_path):
            logger.error(f"✗ 压缩后的视频文件不存在: {output_path}")
            return CompressionFailed(
                error=ErrorKind.OUTPUT_VERIFICATION_FAILED,
                reason=f"compressed file was not produced: {output_path}",
            )

        output_size = os.path.getsize(output_path)
        if output_size == 0:
            logger.error(f"✗ 压缩后的视频文件为空: {output_path}")
            return CompressionFailed(
                error=ErrorKind.OUTPUT_VERIFICATION_FAILED,
                reason=f"compressed file is empty: {output_path}",
            )

        ratio = (1.0 - output_size / original_size) * 100
        logger.info(f"✓ 视频压缩成功: {output_path}")
        logger.info(f"压缩后文件大小: {_mb(output_size)} MB, 压缩率: {ratio:.2f}%")

        # best effort: keep going, but surface it
        over_limit = output_size > MAX_MODEL_INPUT_SIZE
        if over_limit:
            logger.bind(event="compression_over_limit").warning(
                f"⚠ 压缩后文件大小 {_mb(output_size)} MB 仍超过100MB限制: {video_path}"
            )

        return CompressionCompressed(
            path=output_path,
            original_size=original_size,
            output_size=output_size,
            plan=plan,
            over_limit=over_limit,
        )
