import argparse
import asyncio

from loguru import logger

from video_analyzer.logger import LogConfig
from video_analyzer.orchestration import AnalysisOrchestrator, AnalysisRequest


async def run_once(video_name: str, record_id: str) -> None:
    orchestrator = AnalysisOrchestrator.from_config()

    ack = await orchestrator.handle_analysis(AnalysisRequest(video_name=video_name, record_id=record_id))
    logger.info(f"Ack: {ack.model_dump()}")

    # 命令行模式下等待后台任务完成
    await orchestrator.wait_idle()


def serve(host: str, port: int) -> None:
    import uvicorn

    from video_analyzer.api import create_app

    uvicorn.run(create_app(), host=host, port=port)


def main():
    parser = argparse.ArgumentParser(description="Compress a video, analyze it and write the report to Feishu bitable")
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser("analyze", help="run one analysis and wait for it")
    analyze_parser.add_argument("video_name")
    analyze_parser.add_argument("--record-id", default="")

    serve_parser = subparsers.add_parser("serve", help="start the HTTP trigger")
    serve_parser.add_argument("--host", default="0.0.0.0")
    serve_parser.add_argument("--port", type=int, default=8080)

    args = parser.parse_args()
    LogConfig.init_logger()

    if args.command == "analyze":
        asyncio.run(run_once(args.video_name, args.record_id))
    else:
        serve(args.host, args.port)


if __name__ == "__main__":
    main()
