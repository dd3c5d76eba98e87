"""Domain layer: errors, schemas, document registry."""

from .constants import AFTERCARE_FIELD_KEYS, REQUIRED_FIELDS
from .documents import DOCUMENTS, get_document, parse_inputs, parse_tool_id
from .errors import ErrorCodes, PolicyRejectError
from .schemas import (
    Draft,
    GeneratedField,
    LibraryDoc,
    RenderOutput,
    ToolId,
    ValidationItem,
    ValidationResult,
)

__all__ = [
    "AFTERCARE_FIELD_KEYS",
    "REQUIRED_FIELDS",
    "DOCUMENTS",
    "get_document",
    "parse_inputs",
    "parse_tool_id",
    "ErrorCodes",
    "PolicyRejectError",
    "Draft",
    "GeneratedField",
    "LibraryDoc",
    "RenderOutput",
    "ToolId",
    "ValidationItem",
    "ValidationResult",
]
