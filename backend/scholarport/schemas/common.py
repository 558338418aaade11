"""
Shared schema configuration.

Requests and responses use camelCase on the wire; Python code uses snake_case.
"""
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from scholarport.utils import DOI_PATTERN


MIN_CITATION_YEAR = 1800


class CamelModel(BaseModel):
    """Base schema: camelCase aliases, trimmed strings, unknown fields ignored."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore"
    )


def blank_to_none(value):
    """Forms send "" for untouched optional inputs."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


def check_doi(value: Optional[str]) -> Optional[str]:
    if value is not None and not DOI_PATTERN.match(value):
        raise ValueError("DOI must be in valid format (e.g., 10.1000/182)")
    return value


def check_url(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc or " " in value:
        raise ValueError("URL must be a valid URL")
    return value


def max_citation_year() -> int:
    return datetime.now(timezone.utc).year + 1


def check_citation_year(value: Optional[int]) -> Optional[int]:
    if value is not None and not (MIN_CITATION_YEAR <= value <= max_citation_year()):
        raise ValueError("Year must be a valid integer between 1800 and next year")
    return value
