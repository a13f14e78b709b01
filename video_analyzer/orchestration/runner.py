import asyncio
from functools import partial
from typing import Optional, Set

from ..config import load_ai_config, load_feishu_config, load_ffmpeg_config, load_server_config
from ..feishu.bitable import BitableResultSink
from ..feishu.credential import TenantTokenCache
from ..feishu.types import DeliveryResult
from ..logger import logger
from ..media.compressor import VideoCompressor
from ..media.types import CompressionFailed
from ..model.types import AnalysisFailed
from ..model.vlm.video_report import VideoReportClient
from .types import AnalysisAck, AnalysisRequest


class AnalysisOrchestrator:
    """Runs compress -> analyze -> write back as one background task per request.

    handle_analysis() only schedules the work and returns an ack. Each run
    delivers at most one terminal update (report or failure note) to the
    bitable; anything that escapes a stage is turned into a failure delivery.
    """

    def __init__(
        self,
        compressor: VideoCompressor,
        report_client: VideoReportClient,
        sink: BitableResultSink,
        instruction_path: str,
        model: Optional[str] = None,
        max_concurrent: int = 2,
    ):
        self.compressor = compressor
        self.report_client = report_client
        self.sink = sink
        self.instruction_path = instruction_path
        self.model = model
        self._semaphore = asyncio.Semaphore(max(1, max_concurrent))
        self._tasks: Set[asyncio.Task] = set()

    @classmethod
    def from_config(cls, token_cache: Optional[TenantTokenCache] = None) -> "AnalysisOrchestrator":
        """Wires every stage from environment configuration."""
        ffmpeg_config = load_ffmpeg_config()
        ai_config = load_ai_config()
        server_config = load_server_config()

        compressor = VideoCompressor(ffmpeg_config["video_dir"], ffmpeg_path=ffmpeg_config["ffmpeg_path"])
        report_client = VideoReportClient(
            api_key=ai_config["api_key"],
            base_url=ai_config["base_url"],
            model=ai_config["model"],
            inline_limit=int(ai_config["inline_limit_mb"] * 1024 * 1024),
        )
        sink = BitableResultSink.from_config(load_feishu_config(), token_cache or TenantTokenCache())
        return cls(
            compressor=compressor,
            report_client=report_client,
            sink=sink,
            instruction_path=ai_config["prompt_path"],
            model=ai_config["model"],
            max_concurrent=server_config["max_concurrent"],
        )

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def handle_analysis(self, request: AnalysisRequest) -> AnalysisAck:
        logger.info(f"收到视频分析请求: videoName={request.video_name}, recordId={request.record_id}")

        # 立即返回，异步处理
        task = asyncio.create_task(self._run_bounded(request), name=f"analysis-{request.record_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return AnalysisAck()

    async def wait_idle(self) -> None:
        """Waits for every scheduled run, used by the CLI and on shutdown."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _run_bounded(self, request: AnalysisRequest) -> Optional[DeliveryResult]:
        async with self._semaphore:
            with logger.contextualize(record_id=request.record_id):
                return await self.process(request)

    async def process(self, request: AnalysisRequest) -> Optional[DeliveryResult]:
        """The pipeline body. Never raises except on cancellation."""
        record_id = request.record_id
        delivered = False
        try:
            logger.info(f"开始异步处理视频分析: videoName={request.video_name}, recordId={record_id}")

            if not request.video_name or not request.video_name.strip():
                delivered = True
                return await self._deliver_failure(record_id, "video name is empty")

            # 1. 视频查找和压缩
            compression = await self.compressor.run(request.video_name)
            if isinstance(compression, CompressionFailed):
                logger.error(f"✗ 视频压缩失败: [{compression.error.value}] {compression.reason}")
                delivered = True
                return await self._deliver_failure(record_id, compression.reason)

            # 2. 调用AI分析
            analysis = await self.report_client.analyze(compression.path, self.instruction_path, self.model)
            if isinstance(analysis, AnalysisFailed):
                logger.error(f"✗ AI分析失败: [{analysis.error.value}] {analysis.reason}")
                delivered = True
                return await self._deliver_failure(record_id, analysis.reason)

            # 3. 更新飞书多维表格
            delivered = True
            result = await self._deliver_success(record_id, analysis.report)
            logger.info(f"视频分析完成: recordId={record_id}, delivered={result.delivered}")
            return result
        except Exception as e:
            logger.exception(f"✗ 异步处理视频分析时发生异常: recordId={record_id}")
            if delivered:
                return None
            try:
                return await self._deliver_failure(record_id, f"处理失败: {e}")
            except Exception:
                logger.exception(f"✗ 写回失败信息时发生异常: recordId={record_id}")
                return None

    async def _deliver_success(self, record_id: str, report: str) -> DeliveryResult:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(self.sink.deliver_success, record_id, report))

    async def _deliver_failure(self, record_id: str, reason: str) -> DeliveryResult:
        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, partial(self.sink.deliver_failure, record_id, reason))
        if not result.delivered:
            logger.warning(f"⚠ 失败信息未写回: recordId={record_id}, {result.message}")
        return result
