"""
Pydantic schemas for the Articles API.
"""
from datetime import date, datetime, timezone
from typing import List, Literal, Optional
from pydantic import Field, field_validator, model_validator

from scholarport.schemas.common import CamelModel, blank_to_none, check_doi


ArticleStatus = Literal["draft", "published", "in-review", "accepted"]
ArticleSortField = Literal["title", "publicationDate", "createdAt", "citations"]
SortOrder = Literal["asc", "desc"]

OPTIONAL_TEXT_FIELDS = ("journal", "volume", "issue", "pages")
REQUIRED_FIELDS = ("title", "authors", "abstract", "publication_date", "doi")


class ArticleFields(CamelModel):
    """Validators shared by create and update payloads."""

    @field_validator(*OPTIONAL_TEXT_FIELDS, mode="before", check_fields=False)
    @classmethod
    def empty_optional_text(cls, value):
        return blank_to_none(value)

    @field_validator("authors", check_fields=False)
    @classmethod
    def validate_authors(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return value
        if not value:
            raise ValueError("At least one author is required")
        for author in value:
            if len(author) < 2:
                raise ValueError("Each author must be a string with at least 2 characters")
            if len(author) > 100:
                raise ValueError("Author name cannot exceed 100 characters")
        return value

    @field_validator("publication_date", check_fields=False)
    @classmethod
    def validate_publication_date(cls, value: Optional[date]) -> Optional[date]:
        if value is not None and value > datetime.now(timezone.utc).date():
            raise ValueError("Publication date cannot be in the future")
        return value

    @field_validator("doi", check_fields=False)
    @classmethod
    def validate_doi(cls, value: Optional[str]) -> Optional[str]:
        return check_doi(value)

    @field_validator("keywords", check_fields=False)
    @classmethod
    def validate_keywords(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return value
        if any(len(keyword) > 50 for keyword in value):
            raise ValueError("Each keyword cannot exceed 50 characters")
        return [keyword for keyword in value if keyword]


class ArticleCreate(ArticleFields):
    """Schema for creating a new article."""
    title: str = Field(..., min_length=3, max_length=500)
    authors: List[str] = Field(..., min_length=1)
    abstract: str = Field(..., min_length=50, max_length=5000)
    publication_date: date
    doi: str = Field(..., min_length=1)
    keywords: List[str] = Field(default_factory=list)
    journal: Optional[str] = Field(None, max_length=200)
    volume: Optional[str] = Field(None, max_length=20)
    issue: Optional[str] = Field(None, max_length=20)
    pages: Optional[str] = Field(None, max_length=50)
    citation_count: int = Field(0, ge=0)
    status: ArticleStatus = "published"


class ArticleUpdate(ArticleFields):
    """Schema for a partial article update. Only provided fields are validated and applied."""
    title: Optional[str] = Field(None, min_length=3, max_length=500)
    authors: Optional[List[str]] = None
    abstract: Optional[str] = Field(None, min_length=50, max_length=5000)
    publication_date: Optional[date] = None
    doi: Optional[str] = None
    keywords: Optional[List[str]] = None
    journal: Optional[str] = Field(None, max_length=200)
    volume: Optional[str] = Field(None, max_length=20)
    issue: Optional[str] = Field(None, max_length=20)
    pages: Optional[str] = Field(None, max_length=50)
    citation_count: Optional[int] = Field(None, ge=0)
    status: Optional[ArticleStatus] = None

    @model_validator(mode="after")
    def required_fields_not_null(self) -> "ArticleUpdate":
        """Required article fields may be omitted, but not cleared."""
        for name in REQUIRED_FIELDS + ("keywords", "citation_count", "status"):
            if name in self.model_fields_set and getattr(self, name) is None:
                alias = type(self).model_fields[name].alias or name
                raise ValueError(f"{alias} cannot be null")
        return self
