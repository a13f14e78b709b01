from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AnalysisRequest(BaseModel):
    """One trigger: which video to analyze and which bitable record to update"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    video_name: str = Field(..., alias="videoName", description="Video name, extension optional")
    record_id: str = Field("", alias="recordId", description="Bitable record to update")
    question: Optional[str] = Field(None, description="Free-form question from the caller")
    prompt: Optional[str] = Field(None, description="Caller supplied prompt")


class AnalysisAck(BaseModel):
    code: int = 200
    message: str = "request accepted, processing"
