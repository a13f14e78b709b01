from .runner import AnalysisOrchestrator
from .types import AnalysisAck, AnalysisRequest

__all__ = ["AnalysisOrchestrator", "AnalysisAck", "AnalysisRequest"]
