"""
Citation Model
A reference made from within an article, scoped to exactly one parent article
"""
import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy import String, Integer, Text, Boolean, DateTime, ForeignKey, Uuid, Index
from sqlalchemy.orm import Mapped, mapped_column

from scholarport.database import Base
from scholarport.models.article import utcnow


CITATION_TYPES = ("direct", "indirect", "supporting", "contrasting", "methodological")


class Citation(Base):
    """Citation entity."""

    __tablename__ = "citations"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )

    article_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("articles.id", ondelete="CASCADE"),
        nullable=False
    )

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    authors: Mapped[str] = mapped_column(String(300), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)

    # Publication info
    journal: Mapped[Optional[str]] = mapped_column(String(200))
    volume: Mapped[Optional[str]] = mapped_column(String(20))
    issue: Mapped[Optional[str]] = mapped_column(String(20))
    pages: Mapped[Optional[str]] = mapped_column(String(50))
    doi: Mapped[Optional[str]] = mapped_column(String(255))
    url: Mapped[Optional[str]] = mapped_column(Text)

    # Annotations
    citation_type: Mapped[str] = mapped_column(String(20), nullable=False, default="direct")
    context: Mapped[Optional[str]] = mapped_column(Text)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index(
            'idx_citations_article_title_year',
            'article_id',
            'title',
            'year',
            unique=True
        ),
        Index('idx_citations_article_id', 'article_id'),
    )

    def to_dict(self, article: Optional[dict] = None) -> dict:
        """Convert to dictionary for API response."""
        result = {
            "id": str(self.id),
            "articleId": str(self.article_id),
            "title": self.title,
            "authors": self.authors,
            "year": self.year,
            "journal": self.journal,
            "volume": self.volume,
            "issue": self.issue,
            "pages": self.pages,
            "doi": self.doi,
            "url": self.url,
            "citationType": self.citation_type,
            "context": self.context,
            "notes": self.notes,
            "isVerified": self.is_verified,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None
        }

        if article is not None:
            result["article"] = article

        return result
