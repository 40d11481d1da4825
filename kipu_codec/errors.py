"""
Exceptions raised by the evaluation codec.

The codec degrades gracefully on unexpected-but-valid clinical data (empty
fields, unknown field types). These exceptions are reserved for contract
violations by the caller and for failures of the EMR itself.
"""

from typing import Any, Optional


class CodecError(Exception):
    """Base class for all codec errors."""


class InvalidEvaluationError(CodecError, TypeError):
    """An evaluation or item argument was missing or not a mapping."""


class InvalidSubmissionError(CodecError, TypeError):
    """The categorizer was handed something other than a list of fields."""


class InvalidPatientIdError(CodecError, ValueError):
    """A patient id was not in ``<chartId>:<patientMasterId>`` form."""


class KipuApiError(CodecError):
    """The KIPU API answered with an error or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None, details: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details

    def __str__(self) -> str:
        if self.status_code:
            return f"KIPU API error ({self.status_code}): {self.message}"
        return f"KIPU API error: {self.message}"
