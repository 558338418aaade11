"""
Error taxonomy shared by services and API handlers.

Every error knows its HTTP status and renders itself in the response envelope.
"""
import logging
from contextlib import contextmanager
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

logger = logging.getLogger(__name__)


class ScholarPortError(Exception):
    """Base API error."""

    status_code: int = 500
    default_message: str = "Server Error"

    def __init__(self, message: Optional[str] = None, errors: Optional[List] = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert to response envelope."""
        body = {
            "success": False,
            "message": self.message
        }
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationError(ScholarPortError):
    """Malformed or out-of-range input. `errors` holds field-level messages."""

    status_code = 400
    default_message = "Validation failed"


class InvalidIdentifierError(ScholarPortError):
    status_code = 400
    default_message = "Invalid ID format"


class BadRequestError(ScholarPortError):
    status_code = 400
    default_message = "Bad request"


class NotFoundError(ScholarPortError):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(ScholarPortError):
    status_code = 409
    default_message = "Resource already exists"


class InternalError(ScholarPortError):
    """Unexpected storage/runtime failure. `detail` is only shown in development."""

    status_code = 500
    default_message = "Server Error"

    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None):
        super().__init__(message)
        self.detail = detail

    def to_dict(self, include_detail: bool = False) -> dict:
        body = super().to_dict()
        if include_detail and self.detail:
            body["error"] = self.detail
        return body


def field_errors(errors: List[dict]) -> List[dict]:
    """
    Flatten pydantic error dicts into `{field, message}` pairs.

    The request section ("body", "query", "path") is dropped from the location.
    """
    result = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())]
        if loc and loc[0] in ("body", "query", "path"):
            loc = loc[1:]
        message = str(error.get("msg", "Invalid value"))
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        result.append({
            "field": ".".join(loc) or None,
            "message": message
        })
    return result


@contextmanager
def storage_errors(action: str, conflict_message: str = ConflictError.default_message):
    """
    Map storage-layer faults raised inside the block to the API taxonomy.

    IntegrityError becomes ConflictError; any other SQLAlchemyError becomes InternalError.
    """
    try:
        yield
    except IntegrityError as e:
        logger.warning(f"Integrity error while {action}: {e.orig if hasattr(e, 'orig') else e}")
        raise ConflictError(conflict_message)
    except SQLAlchemyError as e:
        logger.exception(f"Storage error while {action}")
        raise InternalError(f"Error {action}", detail=str(e))
