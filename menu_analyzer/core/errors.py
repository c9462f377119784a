# menu_analyzer/core/errors.py
"""Error taxonomy for the menu pipeline. Each error knows its HTTP status."""

from enum import Enum
from typing import Optional

from menu_analyzer.models.domain import ValidationVerdict


class MenuAnalyzerError(Exception):
    """Base error rendered to the caller as {"error": message}."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, *, code: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code


class ExtractionFailure(str, Enum):
    EMPTY_FILE = "EMPTY_FILE"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    INVALID_PDF = "INVALID_PDF"
    UNSUPPORTED_FILE_TYPE = "UNSUPPORTED_FILE_TYPE"
    UNREADABLE_FILE = "UNREADABLE_FILE"
    INVALID_URL = "INVALID_URL"
    FETCH_FAILED = "FETCH_FAILED"
    INSUFFICIENT_CONTENT = "INSUFFICIENT_CONTENT"
    NO_TEXT = "NO_TEXT"
    MODEL_EXTRACTION_FAILED = "MODEL_EXTRACTION_FAILED"
    MODEL_UNAVAILABLE = "MODEL_UNAVAILABLE"


_EXTRACTION_STATUS = {
    ExtractionFailure.FILE_TOO_LARGE: 413,
    ExtractionFailure.MODEL_UNAVAILABLE: 429,
}


class ExtractionError(MenuAnalyzerError):
    """The menu source could not be turned into text."""

    def __init__(self, failure: ExtractionFailure, message: str):
        super().__init__(
            message,
            code=failure.value,
            status_code=_EXTRACTION_STATUS.get(failure, 400),
        )
        self.failure = failure


class ValidationRejection(MenuAnalyzerError):
    """Extracted text does not look like a real menu."""

    status_code = 400

    def __init__(self, verdict: ValidationVerdict):
        super().__init__(verdict.human_message, code=verdict.reason_code.value)
        self.verdict = verdict


class QuotaExceeded(MenuAnalyzerError):
    status_code = 429
    code = "DAILY_LIMIT_REACHED"


class AnalysisNotFound(MenuAnalyzerError):
    status_code = 404
    code = "NOT_FOUND"


class AnalysisForbidden(MenuAnalyzerError):
    status_code = 403
    code = "FORBIDDEN"


class BadRequest(MenuAnalyzerError):
    """Malformed request body."""

    status_code = 400
    code = "BAD_REQUEST"
