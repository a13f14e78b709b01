from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI, Header, Request
from fastapi.responses import JSONResponse

from ..config import load_server_config
from ..logger import LogConfig, logger
from ..orchestration.runner import AnalysisOrchestrator
from ..orchestration.types import AnalysisRequest


def create_app(
    orchestrator: Optional[AnalysisOrchestrator] = None,
    verify_token: Optional[str] = None,
    orchestrator_factory: Callable[[], AnalysisOrchestrator] = AnalysisOrchestrator.from_config,
    init_logger: bool = False,
) -> FastAPI:
    """Builds the HTTP trigger.

    Args:
        orchestrator: Pipeline to schedule runs on; built lazily from
            configuration on first request when omitted.
        verify_token: Expected X-Feishu-Token value, defaults to FEISHU_VERIFY_TOKEN.
        orchestrator_factory: Used to build the orchestrator lazily.
        init_logger: Configure loguru sinks on creation.
    """
    if init_logger:
        LogConfig.init_logger()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        # 关闭前等待后台分析任务写回结果
        if app.state.orchestrator is not None:
            logger.info(f"等待后台分析任务完成: pending={app.state.orchestrator.pending}")
            await app.state.orchestrator.wait_idle()

    app = FastAPI(title="video-analyzer", lifespan=lifespan)
    app.state.orchestrator = orchestrator
    app.state.verify_token = verify_token if verify_token is not None else load_server_config()["verify_token"]

    def get_orchestrator() -> AnalysisOrchestrator:
        if app.state.orchestrator is None:
            app.state.orchestrator = orchestrator_factory()
        return app.state.orchestrator

    @app.get("/")
    async def root():
        return {"status": "ok", "service": "video-analyzer"}

    @app.post("/video/analyze")
    async def analyze(
        body: AnalysisRequest,
        request: Request,
        x_feishu_token: Optional[str] = Header(None),
    ):
        client_host = request.client.host if request.client else "-"
        logger.info(f"======== 收到分析请求 ======== ip={client_host}")
        logger.info(f"请求体: videoName={body.video_name}, recordId={body.record_id}")

        expected = app.state.verify_token
        if not expected or not x_feishu_token or x_feishu_token != expected:
            logger.warning(f"Token 校验失败: {x_feishu_token}")
            return JSONResponse(status_code=401, content={"code": 401, "message": "invalid token"})

        ack = await get_orchestrator().handle_analysis(body)
        return {"code": 200, "message": "success", "data": {"statusCode": ack.model_dump()}}

    return app
