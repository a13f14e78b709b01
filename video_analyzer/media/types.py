from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from ..errors import ErrorKind


class CompressionPlan(BaseModel):
    """Transcode parameters chosen for one source size tier"""
    model_config = ConfigDict(frozen=True)

    width: int = Field(..., gt=0, description="Target width bound")
    height: int = Field(..., gt=0, description="Target height bound")
    frame_rate: int = Field(..., gt=0, description="Output frames per second")
    crf: int = Field(..., ge=0, le=51, description="x264 constant rate factor")
    timeout: int = Field(..., gt=0, description="Transcode timeout budget in seconds")
    target_ceiling: int = Field(..., gt=0, description="Output size the plan aims to stay under, in bytes")

    @property
    def resolution(self) -> str:
        """Resolution as used in file names, e.g. 1280x720"""
        return f"{self.width}x{self.height}"

    @property
    def scale(self) -> str:
        """Resolution as used by the ffmpeg scale filter, e.g. 1280:720"""
        return f"{self.width}:{self.height}"


class CompressionSkipped(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["skipped"] = "skipped"
    path: str
    original_size: int


class CompressionCompressed(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["compressed"] = "compressed"
    path: str
    original_size: int
    output_size: int
    plan: CompressionPlan
    over_limit: bool = Field(False, description="Output still above the model's hard input limit")


class CompressionFailed(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["failed"] = "failed"
    error: ErrorKind
    reason: str


CompressionOutcome = Union[CompressionSkipped, CompressionCompressed, CompressionFailed]


class ProcessExited(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["exited"] = "exited"
    exit_code: int
    output: str = ""


class ProcessTimedOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["timed_out"] = "timed_out"
    timeout: float
    output: str = ""


class ProcessLaunchFailed(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["launch_failed"] = "launch_failed"
    reason: str


ProcessResult = Union[ProcessExited, ProcessTimedOut, ProcessLaunchFailed]
