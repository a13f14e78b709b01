import asyncio
import base64
import mimetypes
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import openai
from litellm import acompletion

from ...errors import ErrorKind
from ...logger import logger
from ..types import AnalysisFailed, AnalysisOutcome, AnalysisSucceeded

MB = 1024 * 1024
REPORT_EXTENSION = ".md"

# litellm maps every provider failure onto an openai.APIError subclass
PROVIDER_ERRORS = (openai.APIError,)


class VideoReportClient:
    """Asks a multimodal model for a Markdown report about one video."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: str = "dashscope/qwen-vl-max",
        inline_limit: int = 20 * MB,
    ):
        """Initializes the report client.

        Args:
            api_key: API key, defaults to AI_API_KEY environment variable.
            base_url: OpenAI-compatible endpoint, defaults to AI_BASE_URL.
            model: Default model used when analyze() gets none.
            inline_limit: Files below this size are embedded as base64; larger
                files are only described by path and size.
        """
        self.api_key = api_key or os.getenv("AI_API_KEY")
        self.base_url = base_url or os.getenv("AI_BASE_URL")
        self.model = model
        self.inline_limit = inline_limit

        if not self.api_key:
            raise ValueError("API key not set. Please set AI_API_KEY")

    async def analyze(
        self,
        file_path: str,
        instruction_path: str,
        model: Optional[str] = None,
    ) -> AnalysisOutcome:
        """Analyzes a video and saves the report next to it.

        Args:
            file_path: Video to analyze.
            instruction_path: Text file used verbatim as the system message.
            model: Model name, defaults to the client's model.

        Returns:
            AnalysisSucceeded with the report text, or AnalysisFailed with one of
            AnalysisFileMissing, AnalysisEmptyResponse or AnalysisRemoteError.
        """
        model = model or self.model

        if not os.path.isfile(file_path):
            logger.error(f"✗ 视频文件不存在: {file_path}")
            return AnalysisFailed(error=ErrorKind.ANALYSIS_FILE_MISSING, reason=f"video file not found: {file_path}")
        if not os.path.isfile(instruction_path):
            logger.error(f"✗ Prompt 文件不存在: {instruction_path}")
            return AnalysisFailed(
                error=ErrorKind.ANALYSIS_FILE_MISSING,
                reason=f"instruction document not found: {instruction_path}",
            )

        file_size = os.path.getsize(file_path)
        logger.info(f"开始分析视频: {file_path}, 大小: {file_size / MB:.2f} MB, 模型: {model}")

        try:
            instruction = Path(instruction_path).read_text(encoding="utf-8")
            user_content = await self.build_user_content(file_path, file_size)
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"✗ 读取分析输入失败: {e}")
            return AnalysisFailed(error=ErrorKind.ANALYSIS_FILE_MISSING, reason=f"cannot read analysis input: {e}")
        messages = [
            {"role": "system", "content": instruction},
            {"role": "user", "content": user_content},
        ]

        try:
            response = await acompletion(
                model=model,
                messages=messages,
                api_base=self.base_url,
                api_key=self.api_key,
            )
        except PROVIDER_ERRORS as e:
            logger.error(f"✗ 模型调用失败: {type(e).__name__}: {e}")
            return AnalysisFailed(error=ErrorKind.ANALYSIS_REMOTE_ERROR, reason=f"model call failed: {e}")

        report = _first_content(response)
        if not report or not report.strip():
            logger.error("✗ AI模型返回内容为空")
            return AnalysisFailed(error=ErrorKind.ANALYSIS_EMPTY_RESPONSE, reason="model returned empty content")

        try:
            report_path = self.save_report(file_path, report)
        except OSError as e:
            logger.error(f"✗ 保存分析报告失败: {e}")
            return AnalysisFailed(error=ErrorKind.ANALYSIS_FILE_MISSING, reason=f"cannot save report: {e}")
        logger.info(f"✓ 分析报告已保存: {report_path}")
        return AnalysisSucceeded(report=report, report_path=report_path)

    async def build_user_content(self, file_path: str, file_size: int) -> List[Dict[str, Any]]:
        text = (
            "视频文件信息：\n"
            f"- 文件路径：{os.path.abspath(file_path)}\n"
            f"- 文件大小：{file_size / MB:.2f} MB\n\n"
            "请分析这个视频，并按照要求输出分析报告。"
        )
        content: List[Dict[str, Any]] = [{"type": "text", "text": text}]

        if file_size < self.inline_limit:
            loop = asyncio.get_running_loop()
            data = await loop.run_in_executor(None, Path(file_path).read_bytes)
            mime_type = mimetypes.guess_type(file_path)[0] or "video/mp4"
            encoded = base64.b64encode(data).decode("ascii")
            content.append({"type": "video_url", "video_url": {"url": f"data:{mime_type};base64,{encoded}"}})
            logger.debug(f"视频文件已编码为base64，大小: {file_size / MB:.2f} MB")
        else:
            logger.warning(f"⚠ 视频文件较大（{file_size / MB:.2f} MB），仅以路径描述发送")

        return content

    @staticmethod
    def save_report(file_path: str, report: str) -> str:
        video = Path(file_path)
        report_path = video.with_name(video.stem + REPORT_EXTENSION)
        report_path.write_text(report, encoding="utf-8")
        return str(report_path)


def _first_content(response) -> Optional[str]:
    choices = getattr(response, "choices", None) or []
    if not choices:
        return None
    message = getattr(choices[0], "message", None)
    return getattr(message, "content", None)
