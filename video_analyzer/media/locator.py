import os
from typing import Optional

from ..errors import DirectoryNotFound
from ..logger import logger

# 支持的视频格式
VIDEO_EXTENSIONS = frozenset({".mp4", ".avi", ".mov", ".mkv", ".flv", ".wmv", ".m4v"})


def strip_extension(file_name: str) -> str:
    """Drop the last extension; dot-files such as ".mp4" keep their name."""
    if not file_name:
        return file_name
    dot_index = file_name.rfind(".")
    if dot_index > 0:
        return file_name[:dot_index]
    return file_name


def get_extension(file_name: str) -> str:
    """Lower-cased extension including the dot, or "" when there is none."""
    if not file_name:
        return ""
    dot_index = file_name.rfind(".")
    if 0 < dot_index < len(file_name) - 1:
        return file_name[dot_index:].lower()
    return ""


def locate_video(directory: str, base_name: str) -> Optional[str]:
    """Finds a video in ``directory`` whose name without extension equals ``base_name``.

    Only direct children are scanned, in lexical order of file name, so when
    several allowed extensions share a basename the lexically first one wins.
    The basename comparison is case-sensitive; the extension check is not.

    Args:
        directory: Directory to scan (non-recursive).
        base_name: Requested video name, with or without extension.

    Returns:
        Absolute path of the first match, or None when nothing matches.

    Raises:
        DirectoryNotFound: If ``directory`` does not exist or is not a directory.
    """
    if not os.path.exists(directory):
        raise DirectoryNotFound(f"video directory does not exist: {directory}")
    if not os.path.isdir(directory):
        raise DirectoryNotFound(f"video path is not a directory: {directory}")

    wanted = strip_extension(base_name)

    for file_name in sorted(os.listdir(directory)):
        full_path = os.path.join(directory, file_name)
        if not os.path.isfile(full_path):
            continue
        if strip_extension(file_name) != wanted:
            continue
        if get_extension(file_name) in VIDEO_EXTENSIONS:
            return os.path.abspath(full_path)
        logger.debug(f"Skip {file_name}: extension not in video allow-list")

    return None
