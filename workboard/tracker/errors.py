"""
Error taxonomy for Workboard services.

Services raise these; the API layer maps them to the response envelope
using ``status_code``.
"""

from typing import Any, Dict, Optional


class WorkboardError(Exception):
    """Base class for errors reported to callers."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": False,
            "error": self.message,
            "code": self.code,
        }


class ValidationError(WorkboardError):
    """Missing or malformed input. Raised before anything is written."""

    status_code = 400
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.field:
            data["field"] = self.field
        return data


class FieldShapeError(ValidationError):
    """A field definition's type/options combination is not allowed."""

    code = "FIELD_SHAPE_ERROR"


class FieldValueError(ValidationError):
    """A custom field value does not match its definition."""

    code = "FIELD_VALUE_ERROR"


class NotFoundError(WorkboardError):
    """No record matches the given identifiers within the caller's scope."""

    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, kind: str, object_id: Optional[str] = None):
        self.kind = kind
        self.object_id = object_id
        super().__init__(f"{kind} not found")


class InternalError(WorkboardError):
    """Unexpected store or blob failure."""


class CascadeDeleteError(InternalError):
    """A list cascade stopped part way. ``result`` tells which steps ran."""

    def __init__(self, message: str, result: Any):
        self.result = result
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["completed"] = self.result.completed_steps()
        return data
