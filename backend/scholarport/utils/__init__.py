"""
Utils package - shared utility functions.
"""
import math
import re
import uuid
from typing import Any, Optional

from scholarport.exceptions import InvalidIdentifierError


DOI_PATTERN = re.compile(r'^10\.\d{4,}/\S+')


def parse_id(value: str, message: str = "Invalid ID format") -> uuid.UUID:
    """
    Parse a public record id.

    Raises:
        InvalidIdentifierError: if `value` is not a well-formed UUID
    """
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError, AttributeError):
        raise InvalidIdentifierError(message)


def escape_like(term: str, escape: str = "\\") -> str:
    r"""
    Escape LIKE wildcards so a search term matches literally.

    Examples:
        >>> escape_like("50%_off")
        '50\\%\\_off'
    """
    return (
        term.replace(escape, escape * 2)
        .replace("%", f"{escape}%")
        .replace("_", f"{escape}_")
    )


def clamp(value: int, lower: int, upper: int) -> int:
    return max(lower, min(upper, value))


def build_pagination(page: int, limit: int, total_items: int) -> dict:
    """
    Pagination metadata for the response envelope.

    Examples:
        >>> build_pagination(1, 10, 25)["total"]
        3
    """
    total_pages = math.ceil(total_items / limit) if limit else 0
    return {
        "current": page,
        "total": total_pages,
        "limit": limit,
        "totalItems": total_items,
        "hasNext": page < total_pages,
        "hasPrev": page > 1
    }


def parse_year(value: Any) -> Optional[int]:
    """
    Lenient year parsing for bulk payloads: ints, integral floats and numeric strings.

    Returns None when no integer year can be read.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        match = re.match(r'^\s*([+-]?\d+)', value)
        if match:
            return int(match.group(1))
    return None


__all__ = [
    'DOI_PATTERN',
    'parse_id',
    'escape_like',
    'clamp',
    'build_pagination',
    'parse_year'
]
