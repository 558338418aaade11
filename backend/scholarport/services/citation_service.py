"""
Citation Service
Citation CRUD, duplicate detection, statistics and bulk import.

A citation is unique on (article, title, year). The pre-check here gives a
readable 409; the unique index on the citations table catches races.
"""
import logging
import uuid
from typing import Any, List, Optional, Tuple

from pydantic import ValidationError as SchemaValidationError
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from scholarport.exceptions import (
    BadRequestError,
    ConflictError,
    NotFoundError,
    ValidationError,
    field_errors,
    storage_errors,
)
from scholarport.models.article import Article
from scholarport.models.citation import Citation
from scholarport.schemas.citation import CitationCreate, CitationUpdate
from scholarport.services.citation_formatter import CitationStyle, format_citation
from scholarport.utils import clamp, escape_like, parse_id, parse_year

logger = logging.getLogger(__name__)


SORT_COLUMNS = {
    "title": Citation.title,
    "year": Citation.year,
    "publicationDate": Citation.year,
    "createdAt": Citation.created_at,
    "citationType": Citation.citation_type,
}

MAX_PAGE_SIZE = 50
MAX_BULK_SIZE = 100
DUPLICATE_MESSAGE = "Citation with this title and year already exists for this article"


def bulk_shape_errors(entries: List[Any]) -> List[str]:
    """
    Up-front check of a bulk payload: every entry needs a title, authors and a year.

    Messages use the 1-based position of the entry.
    """
    errors = []
    for index, entry in enumerate(entries, 1):
        if not isinstance(entry, dict):
            entry = {}

        title = entry.get("title")
        if not isinstance(title, str) or not title.strip():
            errors.append(f"Citation {index}: Title is required")

        authors = entry.get("authors")
        if not isinstance(authors, str) or not authors.strip():
            errors.append(f"Citation {index}: Authors are required")

        if not parse_year(entry.get("year")):
            errors.append(f"Citation {index}: Valid year is required")

    return errors


class CitationService:
    """Service for citations scoped to an article."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_article(self, article_id: str) -> Article:
        article_uuid = parse_id(article_id, "Invalid article ID format")

        with storage_errors("fetching article"):
            article = await self.db.get(Article, article_uuid)

        if article is None:
            raise NotFoundError("Article not found")

        return article

    async def _get_citation(self, citation_id: str) -> Citation:
        citation_uuid = parse_id(citation_id, "Invalid citation ID format")

        with storage_errors("fetching citation"):
            citation = await self.db.get(Citation, citation_uuid)

        if citation is None:
            raise NotFoundError("Citation not found")

        return citation

    async def _find_duplicate(
        self,
        article_id: uuid.UUID,
        title: str,
        year: int,
        exclude_id: Optional[uuid.UUID] = None
    ) -> Optional[Citation]:
        query = select(Citation).where(
            Citation.article_id == article_id,
            Citation.title == title.strip(),
            Citation.year == int(year)
        )
        if exclude_id is not None:
            query = query.where(Citation.id != exclude_id)

        with storage_errors("checking for duplicate citation"):
            result = await self.db.execute(query.limit(1))

        return result.scalars().first()

    async def list_citations(
        self,
        article_id: str,
        page: int = 1,
        limit: int = 20,
        sort_by: str = "createdAt",
        sort_order: str = "desc",
        year: Optional[int] = None,
        citation_type: Optional[str] = None,
        is_verified: Optional[bool] = None
    ) -> Tuple[List[Citation], int, int, int]:
        """
        Page of an article's citations.

        `page` is floored at 1 and `limit` clamped to 1-50 rather than rejected.
        Returns (citations, total, page, limit) with the effective page and limit.
        """
        article = await self._get_article(article_id)

        page = max(1, page)
        limit = clamp(limit, 1, MAX_PAGE_SIZE)

        conditions = [Citation.article_id == article.id]
        if year is not None:
            conditions.append(Citation.year == year)
        if citation_type:
            conditions.append(Citation.citation_type == citation_type)
        if is_verified is not None:
            conditions.append(Citation.is_verified.is_(is_verified))

        column = SORT_COLUMNS.get(sort_by, Citation.created_at)
        order = column.asc() if sort_order == "asc" else column.desc()

        query = (
            select(Citation)
            .where(*conditions)
            .order_by(order, Citation.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        count_query = select(func.count()).select_from(Citation).where(*conditions)

        with storage_errors("fetching citations"):
            total = (await self.db.execute(count_query)).scalar_one()
            citations = (await self.db.execute(query)).scalars().all()

        return list(citations), total, page, limit

    async def get_citation(self, citation_id: str) -> Tuple[Citation, Optional[Article]]:
        """Fetch a citation with its parent article."""
        citation = await self._get_citation(citation_id)

        with storage_errors("fetching citation"):
            article = await self.db.get(Article, citation.article_id)

        return citation, article

    async def create_citation(self, article_id: str, data: CitationCreate) -> Citation:
        article = await self._get_article(article_id)

        if await self._find_duplicate(article.id, data.title, data.year):
            raise ConflictError(DUPLICATE_MESSAGE)

        citation = Citation(article_id=article.id, **data.model_dump())
        self.db.add(citation)

        with storage_errors("creating citation", DUPLICATE_MESSAGE):
            await self.db.commit()
            await self.db.refresh(citation)

        logger.info(f"Created citation {citation.id} for article {article.id}")
        return citation

    async def update_citation(self, citation_id: str, data: CitationUpdate) -> Citation:
        """
        Partial update. The duplicate check only runs when title or year actually changes.
        """
        citation = await self._get_citation(citation_id)
        update_data = data.model_dump(exclude_unset=True)

        title_changed = "title" in update_data and update_data["title"] != citation.title
        year_changed = "year" in update_data and update_data["year"] != citation.year

        if title_changed or year_changed:
            duplicate = await self._find_duplicate(
                citation.article_id,
                update_data.get("title", citation.title),
                update_data.get("year", citation.year),
                exclude_id=citation.id
            )
            if duplicate:
                raise ConflictError(DUPLICATE_MESSAGE)

        for field, value in update_data.items():
            setattr(citation, field, value)

        with storage_errors("updating citation", DUPLICATE_MESSAGE):
            await self.db.commit()
            await self.db.refresh(citation)

        logger.info(f"Updated citation {citation.id}")
        return citation

    async def delete_citation(self, citation_id: str) -> None:
        citation = await self._get_citation(citation_id)

        with storage_errors("deleting citation"):
            await self.db.delete(citation)
            await self.db.commit()

        logger.info(f"Deleted citation {citation.id}")

    async def toggle_verification(self, citation_id: str) -> Citation:
        """Flip isVerified and persist it."""
        citation = await self._get_citation(citation_id)
        citation.is_verified = not citation.is_verified

        with storage_errors("verifying citation"):
            await self.db.commit()
            await self.db.refresh(citation)

        logger.info(f"Citation {citation.id} verified={citation.is_verified}")
        return citation

    async def get_statistics(self, article_id: str) -> dict:
        """Breakdown of an article's citations by year and by type, plus totals."""
        article = await self._get_article(article_id)

        summary_query = (
            select(
                func.count(Citation.id),
                func.count(Citation.id).filter(Citation.is_verified.is_(True))
            )
            .where(Citation.article_id == article.id)
        )
        year_query = (
            select(Citation.year, func.count())
            .where(Citation.article_id == article.id)
            .group_by(Citation.year)
            .order_by(Citation.year.asc())
        )
        type_query = (
            select(Citation.citation_type, func.count())
            .where(Citation.article_id == article.id)
            .group_by(Citation.citation_type)
            .order_by(Citation.citation_type)
        )

        with storage_errors("fetching citation statistics"):
            total, verified = (await self.db.execute(summary_query)).one()
            by_year = [{"year": year, "count": count} for year, count in await self.db.execute(year_query)]
            by_type = [{"type": ctype, "count": count} for ctype, count in await self.db.execute(type_query)]

        return {
            "totalCitations": total,
            "verifiedCitations": verified,
            "unverifiedCitations": total - verified,
            "uniqueYears": len(by_year),
            "earliestYear": by_year[0]["year"] if by_year else None,
            "latestYear": by_year[-1]["year"] if by_year else None,
            "yearDistribution": by_year,
            "typeDistribution": by_type
        }

    async def bulk_import(self, article_id: str, entries: List[Any]) -> dict:
        """
        Import up to 100 citations for one article.

        The whole batch is rejected if any entry fails the shape check.
        Past that, each entry is reported as successful, failed or duplicate;
        per-entry problems never fail the request.
        """
        if not isinstance(entries, list) or not entries:
            raise ValidationError("Citations array is required and cannot be empty")

        if len(entries) > MAX_BULK_SIZE:
            raise ValidationError(f"Cannot import more than {MAX_BULK_SIZE} citations at once")

        article = await self._get_article(article_id)

        shape_errors = bulk_shape_errors(entries)
        if shape_errors:
            raise ValidationError("Validation failed", errors=shape_errors)

        successful, failed, duplicates = [], [], []
        seen = set()

        for index, entry in enumerate(entries, 1):
            payload = dict(entry)
            payload["year"] = parse_year(payload.get("year"))

            try:
                data = CitationCreate.model_validate(payload)
            except SchemaValidationError as e:
                failed.append({
                    "index": index,
                    "title": str(entry.get("title", "")).strip(),
                    "errors": field_errors(e.errors())
                })
                continue

            key = (data.title, data.year)
            duplicate_info = {"index": index, "title": data.title, "year": data.year}

            if key in seen or await self._find_duplicate(article.id, data.title, data.year):
                duplicates.append(duplicate_info)
                continue

            citation = Citation(article_id=article.id, **data.model_dump())
            try:
                with storage_errors("importing citation"):
                    async with self.db.begin_nested():
                        self.db.add(citation)
            except ConflictError:
                duplicates.append(duplicate_info)
                continue

            seen.add(key)
            successful.append(citation)

        with storage_errors("importing citations"):
            await self.db.commit()

        logger.info(
            f"Bulk import for article {article.id}: {len(successful)} created, "
            f"{len(failed)} failed, {len(duplicates)} duplicates"
        )

        return {
            "successful": [c.to_dict() for c in successful],
            "failed": failed,
            "duplicates": duplicates
        }

    async def search_citations(self, query: str, limit: int = 20) -> List[Tuple[Citation, Article]]:
        """Case-insensitive search on citation title or authors across all articles, newest first."""
        term = (query or "").strip()
        if not term:
            raise BadRequestError("Search query is required")

        pattern = f"%{escape_like(term)}%"
        statement = (
            select(Citation, Article)
            .join(Article, Citation.article_id == Article.id)
            .where(
                Citation.title.ilike(pattern, escape="\\")
                | Citation.authors.ilike(pattern, escape="\\")
            )
            .order_by(Citation.created_at.desc(), Citation.id)
            .limit(clamp(limit, 1, MAX_PAGE_SIZE))
        )

        with storage_errors("searching citations"):
            result = await self.db.execute(statement)

        return [(citation, article) for citation, article in result.all()]

    async def get_formatted(self, citation_id: str, style: Optional[str] = None) -> dict:
        citation = await self._get_citation(citation_id)
        resolved = CitationStyle.resolve(style)

        return {
            "id": str(citation.id),
            "style": resolved.value.upper(),
            "formatted": format_citation(citation, resolved.value),
            "raw": citation.to_dict()
        }
