from .video_report import VideoReportClient

__all__ = ["VideoReportClient"]
