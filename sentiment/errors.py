# SPDX-License-Identifier: AGPL-3.0-only

"""
Error types raised by the sentiment response normalizer.

Both error kinds are terminal: the normalizer works on a single immutable
completion, so a retry has to re-invoke the generative call one layer up.
"""

from typing import Any, Dict, Optional


class NormalizerError(Exception):
    """Base class for normalizer failures."""

    error_type = "normalizer_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Serialize through the ErrorResponse model."""
        from .models import ErrorResponse
        return ErrorResponse(
            error_type=self.error_type,
            message=self.message,
            details=self.details or None,
        ).to_dict()


class MalformedCompletion(NormalizerError):
    """The completion could not be coerced into JSON, even by the field scrape."""

    error_type = "malformed_completion"

    def __init__(self, parse_error: str, excerpt: str = ""):
        super().__init__(
            f"Invalid JSON response from AI: {parse_error}",
            {"parse_error": parse_error, "excerpt": excerpt[:200]},
        )
        self.parse_error = parse_error


class InvalidReportShape(NormalizerError):
    """Valid JSON was obtained but it lacks the required score fields."""

    error_type = "invalid_report_shape"

    def __init__(self, message: str, keys: Optional[list] = None):
        super().__init__(message, {"keys": sorted(keys or [])})
        self.keys = list(keys or [])
