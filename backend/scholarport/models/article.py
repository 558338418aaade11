"""
Article Model
Represents a published work managed in ScholarPort
"""
import uuid
from datetime import date, datetime, timezone
from typing import Optional, List
from sqlalchemy import String, Integer, Text, Date, DateTime, JSON, Uuid, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import JSONB

from scholarport.database import Base


ARTICLE_STATUSES = ("draft", "published", "in-review", "accepted")

JSONList = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Article(Base):
    """Academic article entity."""

    __tablename__ = "articles"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )

    # Metadata
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    authors: Mapped[List[str]] = mapped_column(JSONList, nullable=False, default=list)
    abstract: Mapped[str] = mapped_column(Text, nullable=False)
    publication_date: Mapped[date] = mapped_column(Date, nullable=False)
    doi: Mapped[str] = mapped_column(String(255), nullable=False)
    keywords: Mapped[List[str]] = mapped_column(JSONList, nullable=False, default=list)

    # Publication info
    journal: Mapped[Optional[str]] = mapped_column(String(200))
    volume: Mapped[Optional[str]] = mapped_column(String(20))
    issue: Mapped[Optional[str]] = mapped_column(String(20))
    pages: Mapped[Optional[str]] = mapped_column(String(50))

    # Metrics
    citation_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="published")

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index('idx_articles_doi', 'doi', unique=True),
        Index('idx_articles_title', 'title'),
        Index('idx_articles_publication_date', 'publication_date'),
        CheckConstraint('citation_count >= 0', name='ck_articles_citation_count_non_negative'),
    )

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        return {
            "id": str(self.id),
            "title": self.title,
            "authors": list(self.authors or []),
            "abstract": self.abstract,
            "publicationDate": self.publication_date.isoformat() if self.publication_date else None,
            "doi": self.doi,
            "keywords": list(self.keywords or []),
            "journal": self.journal,
            "volume": self.volume,
            "issue": self.issue,
            "pages": self.pages,
            "citationCount": self.citation_count,
            "status": self.status,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None
        }

    def to_summary(self) -> dict:
        """Short form embedded in citation responses."""
        return {
            "id": str(self.id),
            "title": self.title,
            "authors": list(self.authors or [])
        }
