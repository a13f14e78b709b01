"""
Error taxonomy for the video analysis pipeline.

Stages report failures as typed outcomes carrying an ErrorKind; the exception
classes below are only raised at the few boundaries that do raise (directory
lookup, credential issuance, Feishu OpenAPI calls).
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    DIRECTORY_NOT_FOUND = "DirectoryNotFound"
    FILE_NOT_FOUND = "FileNotFound"
    TOOL_UNAVAILABLE = "ToolUnavailable"
    COMPRESSION_TIMED_OUT = "CompressionTimedOut"
    COMPRESSION_FAILED = "CompressionFailed"
    OUTPUT_VERIFICATION_FAILED = "OutputVerificationFailed"
    ANALYSIS_FILE_MISSING = "AnalysisFileMissing"
    ANALYSIS_EMPTY_RESPONSE = "AnalysisEmptyResponse"
    ANALYSIS_REMOTE_ERROR = "AnalysisRemoteError"
    CREDENTIAL_ERROR = "CredentialError"
    REMOTE_API_ERROR = "RemoteApiError"
    DELIVERY_TRANSPORT_ERROR = "DeliveryTransportError"


class VideoAnalyzerError(Exception):
    """Base class for all pipeline exceptions"""

    kind: Optional[ErrorKind] = None


class DirectoryNotFound(VideoAnalyzerError):
    kind = ErrorKind.DIRECTORY_NOT_FOUND


class CredentialError(VideoAnalyzerError):
    kind = ErrorKind.CREDENTIAL_ERROR


class RemoteApiError(VideoAnalyzerError):
    """Feishu OpenAPI answered with a non-zero business code."""

    kind = ErrorKind.REMOTE_API_ERROR

    def __init__(self, code: Optional[int], message: str):
        super().__init__(f"code={code}, msg={message}")
        self.code = code
        self.message = message


class DeliveryTransportError(VideoAnalyzerError):
    kind = ErrorKind.DELIVERY_TRANSPORT_ERROR
