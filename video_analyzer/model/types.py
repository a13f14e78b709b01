from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from ..errors import ErrorKind


class AnalysisSucceeded(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["succeeded"] = "succeeded"
    report: str = Field(..., description="Markdown report returned by the model")
    report_path: str = Field(..., description="Where the report was saved next to the video")


class AnalysisFailed(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["failed"] = "failed"
    error: ErrorKind
    reason: str


AnalysisOutcome = Union[AnalysisSucceeded, AnalysisFailed]
