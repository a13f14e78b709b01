from .types import AnalysisFailed, AnalysisOutcome, AnalysisSucceeded

__all__ = ["AnalysisFailed", "AnalysisOutcome", "AnalysisSucceeded"]
