"""
Compression planning: maps an original file size to transcode parameters that
keep the output under the multimodal model's input limit.

Tiers are based on measured runs, e.g.
- 5.78GB -> 219MB at 1920:1080 / 24fps / CRF 23
- 5.78GB -> 80.37MB at 1280:720 / 24fps / CRF 25
"""

from typing import Optional

from .types import CompressionPlan

MB = 1024 * 1024

# AI模型限制：只能接收100M以内的视频
MAX_MODEL_INPUT_SIZE = 100 * MB
# 小于此值不压缩
SKIP_COMPRESSION_THRESHOLD = 99 * MB

# (upper bound in MB, exclusive) -> (width, height, fps, crf, timeout seconds)
_TIERS = (
    (200, (1920, 1080, 24, 23, 1800)),
    (1000, (1280, 720, 24, 25, 2400)),
    (3000, (1280, 720, 24, 25, 3600)),
    (6000, (1280, 720, 20, 25, 3600)),
    (None, (1280, 720, 18, 25, 3600)),
)


def needs_compression(original_size: int) -> bool:
    return original_size >= SKIP_COMPRESSION_THRESHOLD


def plan_compression(original_size: int) -> Optional[CompressionPlan]:
    """Chooses transcode parameters for a source of ``original_size`` bytes.

    Tiers are half-open ranges, so a size exactly on a boundary resolves to
    the upper tier. Sizes below the skip threshold return None: those files
    are sent to the model as-is.
    """
    if not needs_compression(original_size):
        return None

    for upper_mb, (width, height, fps, crf, timeout) in _TIERS:
        if upper_mb is None or original_size < upper_mb * MB:
            return CompressionPlan(
                width=width,
                height=height,
                frame_rate=fps,
                crf=crf,
                timeout=timeout,
                target_ceiling=SKIP_COMPRESSION_THRESHOLD,
            )
    raise AssertionError("unreachable: last tier is unbounded")
