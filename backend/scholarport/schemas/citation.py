"""
Pydantic schemas for the Citations API.
"""
from typing import Any, List, Literal, Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from scholarport.schemas.common import (
    CamelModel,
    blank_to_none,
    check_doi,
    check_url,
    check_citation_year,
)


CitationType = Literal["direct", "indirect", "supporting", "contrasting", "methodological"]
CitationSortField = Literal["title", "year", "createdAt", "publicationDate", "citationType"]

OPTIONAL_TEXT_FIELDS = ("journal", "volume", "issue", "pages", "doi", "url", "context", "notes")


class CitationFields(CamelModel):
    """Validators shared by create and update payloads."""

    @field_validator(*OPTIONAL_TEXT_FIELDS, mode="before", check_fields=False)
    @classmethod
    def empty_optional_text(cls, value):
        return blank_to_none(value)

    @field_validator("year", check_fields=False)
    @classmethod
    def validate_year(cls, value: Optional[int]) -> Optional[int]:
        return check_citation_year(value)

    @field_validator("doi", check_fields=False)
    @classmethod
    def validate_doi(cls, value: Optional[str]) -> Optional[str]:
        return check_doi(value)

    @field_validator("url", check_fields=False)
    @classmethod
    def validate_url(cls, value: Optional[str]) -> Optional[str]:
        return check_url(value)


class CitationCreate(CitationFields):
    """Schema for creating a citation under an article."""
    title: str = Field(..., min_length=1, max_length=500)
    authors: str = Field(..., min_length=1, max_length=300)
    year: int
    journal: Optional[str] = Field(None, max_length=200)
    volume: Optional[str] = Field(None, max_length=20)
    issue: Optional[str] = Field(None, max_length=20)
    pages: Optional[str] = Field(None, max_length=50)
    doi: Optional[str] = None
    url: Optional[str] = None
    citation_type: CitationType = "direct"
    context: Optional[str] = Field(None, max_length=1000)
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("citation_type", mode="before")
    @classmethod
    def default_citation_type(cls, value):
        return "direct" if value is None or value == "" else value


class CitationUpdate(CitationFields):
    """Schema for a partial citation update."""
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    authors: Optional[str] = Field(None, min_length=1, max_length=300)
    year: Optional[int] = None
    journal: Optional[str] = Field(None, max_length=200)
    volume: Optional[str] = Field(None, max_length=20)
    issue: Optional[str] = Field(None, max_length=20)
    pages: Optional[str] = Field(None, max_length=50)
    doi: Optional[str] = None
    url: Optional[str] = None
    citation_type: Optional[CitationType] = None
    context: Optional[str] = Field(None, max_length=1000)
    notes: Optional[str] = Field(None, max_length=500)
    is_verified: Optional[bool] = None

    @model_validator(mode="after")
    def required_fields_not_null(self) -> "CitationUpdate":
        for name in ("title", "authors", "year", "citation_type", "is_verified"):
            if name in self.model_fields_set and getattr(self, name) is None:
                alias = type(self).model_fields[name].alias or name
                raise ValueError(f"{alias} cannot be null")
        return self


class BulkImportRequest(BaseModel):
    """
    Bulk import payload.

    Entries are kept as raw objects: the per-entry shape check reports
    every failing entry by position instead of stopping at the first one.
    """
    citations: List[Any] = Field(default_factory=list)
