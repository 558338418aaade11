"""
Article Service
Query, validation and consistency rules for articles.
"""
import logging
import uuid
from datetime import date, datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import select, func, or_, delete
from sqlalchemy.ext.asyncio import AsyncSession

from scholarport.exceptions import BadRequestError, ConflictError, NotFoundError, storage_errors
from scholarport.models.article import Article
from scholarport.models.citation import Citation
from scholarport.schemas.article import ArticleCreate, ArticleUpdate
from scholarport.utils import escape_like, parse_id

logger = logging.getLogger(__name__)


SORT_COLUMNS = {
    "title": Article.title,
    "publicationDate": Article.publication_date,
    "createdAt": Article.created_at,
    "citations": Article.citation_count,
}

DUPLICATE_DOI_MESSAGE = "Article with this DOI already exists"


def element_condition(column, pattern: str, dialect: str):
    """Any string element of a JSON array column matches the LIKE pattern."""
    if dialect == "postgresql":
        elements = func.jsonb_array_elements_text(column).table_valued("value")
    else:
        elements = func.json_each(column).table_valued("value")

    return (
        select(1)
        .select_from(elements)
        .where(elements.c.value.ilike(pattern, escape="\\"))
        .exists()
    )


def search_condition(term: str, dialect: str):
    """Case-insensitive substring match on title, abstract or any author."""
    pattern = f"%{escape_like(term)}%"
    return or_(
        Article.title.ilike(pattern, escape="\\"),
        Article.abstract.ilike(pattern, escape="\\"),
        element_condition(Article.authors, pattern, dialect)
    )


def year_condition(year: int):
    """Publication date within the calendar year, both ends inclusive."""
    return Article.publication_date.between(date(year, 1, 1), date(year, 12, 31))


class ArticleService:
    """Service for reading and writing articles."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @property
    def dialect(self) -> str:
        return self.db.bind.dialect.name

    async def get_article_or_404(self, article_id: uuid.UUID) -> Article:
        with storage_errors("fetching article"):
            article = await self.db.get(Article, article_id)

        if article is None:
            raise NotFoundError("Article not found")

        return article

    async def list_articles(
        self,
        page: int = 1,
        limit: int = 10,
        sort_by: str = "publicationDate",
        sort_order: str = "desc",
        search: Optional[str] = None,
        year: Optional[int] = None
    ) -> Tuple[List[Article], int]:
        """
        Page of articles matching the filters, plus the total match count.

        Pagination is offset-based: skip = (page - 1) * limit.
        """
        conditions = []
        if search and search.strip():
            conditions.append(search_condition(search.strip(), self.dialect))
        if year is not None:
            conditions.append(year_condition(year))

        column = SORT_COLUMNS.get(sort_by, Article.publication_date)
        order = column.asc() if sort_order == "asc" else column.desc()

        query = (
            select(Article)
            .where(*conditions)
            .order_by(order, Article.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        count_query = select(func.count()).select_from(Article).where(*conditions)

        with storage_errors("fetching articles"):
            total = (await self.db.execute(count_query)).scalar_one()
            articles = (await self.db.execute(query)).scalars().all()

        return list(articles), total

    async def search_articles(self, query: str, limit: int = 10) -> List[Article]:
        """Free-text search over title, abstract, authors and keywords, newest publications first."""
        term = (query or "").strip()
        if not term:
            raise BadRequestError("Search query is required")

        pattern = f"%{escape_like(term)}%"
        statement = (
            select(Article)
            .where(or_(
                search_condition(term, self.dialect),
                element_condition(Article.keywords, pattern, self.dialect)
            ))
            .order_by(Article.publication_date.desc(), Article.id)
            .limit(limit)
        )

        with storage_errors("searching articles"):
            result = await self.db.execute(statement)

        return list(result.scalars().all())

    async def get_article(self, article_id: str) -> Tuple[Article, List[Citation]]:
        """Fetch one article together with every citation that references it."""
        article = await self.get_article_or_404(parse_id(article_id))

        query = (
            select(Citation)
            .where(Citation.article_id == article.id)
            .order_by(Citation.created_at.desc())
        )
        with storage_errors("fetching article"):
            citations = (await self.db.execute(query)).scalars().all()

        return article, list(citations)

    async def _doi_taken(self, doi: str, exclude_id: Optional[uuid.UUID] = None) -> bool:
        query = select(Article.id).where(Article.doi == doi)
        if exclude_id is not None:
            query = query.where(Article.id != exclude_id)

        with storage_errors("checking DOI"):
            result = await self.db.execute(query.limit(1))

        return result.first() is not None

    async def create_article(self, data: ArticleCreate) -> Article:
        """Insert a validated article. Raises ConflictError on a duplicate DOI."""
        if await self._doi_taken(data.doi):
            raise ConflictError(DUPLICATE_DOI_MESSAGE)

        article = Article(**data.model_dump())
        self.db.add(article)

        with storage_errors("creating article", DUPLICATE_DOI_MESSAGE):
            await self.db.commit()
            await self.db.refresh(article)

        logger.info(f"Created article {article.id} ({article.doi})")
        return article

    async def update_article(self, article_id: str, data: ArticleUpdate) -> Article:
        """Apply only the fields present in the payload."""
        article = await self.get_article_or_404(parse_id(article_id))

        update_data = data.model_dump(exclude_unset=True)

        new_doi = update_data.get("doi")
        if new_doi and new_doi != article.doi and await self._doi_taken(new_doi, exclude_id=article.id):
            raise ConflictError(DUPLICATE_DOI_MESSAGE)

        for field, value in update_data.items():
            setattr(article, field, value)

        with storage_errors("updating article", DUPLICATE_DOI_MESSAGE):
            await self.db.commit()
            await self.db.refresh(article)

        logger.info(f"Updated article {article.id}: {', '.join(sorted(update_data)) or 'no changes'}")
        return article

    async def delete_article(self, article_id: str) -> int:
        """
        Delete an article and every citation referencing it in one transaction.

        Returns the number of citations removed.
        """
        article = await self.get_article_or_404(parse_id(article_id))

        with storage_errors("deleting article"):
            result = await self.db.execute(
                delete(Citation).where(Citation.article_id == article.id)
            )
            await self.db.delete(article)
            await self.db.commit()

        removed = result.rowcount or 0
        logger.info(f"Deleted article {article.id} and {removed} citations")
        return removed

    async def get_article_stats(self, article_id: str) -> dict:
        """Summary figures for one article and its citations."""
        article = await self.get_article_or_404(parse_id(article_id))

        type_query = (
            select(Citation.citation_type, func.count())
            .where(Citation.article_id == article.id)
            .group_by(Citation.citation_type)
            .order_by(Citation.citation_type)
        )
        summary_query = (
            select(
                func.count(Citation.id),
                func.count(Citation.id).filter(Citation.is_verified.is_(True)),
                func.min(Citation.year),
                func.max(Citation.year)
            )
            .where(Citation.article_id == article.id)
        )

        with storage_errors("fetching article statistics"):
            types = {ctype: count for ctype, count in await self.db.execute(type_query)}
            total, verified, earliest, latest = (await self.db.execute(summary_query)).one()

        today = datetime.now(timezone.utc).date()

        return {
            "articleId": str(article.id),
            "title": article.title,
            "citationCount": article.citation_count,
            "totalCitations": total,
            "verifiedCitations": verified,
            "unverifiedCitations": total - verified,
            "verificationRate": round(verified / total, 4) if total else 0,
            "citationTypes": types,
            "yearRange": {"earliest": earliest, "latest": latest},
            "authorCount": len(article.authors or []),
            "keywordCount": len(article.keywords or []),
            "ageInDays": (today - article.publication_date).days
        }
