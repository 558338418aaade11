"""
Articles API endpoints.

Provides CRUD, search and statistics for articles, plus the citation
endpoints nested under an article (list, create, stats, bulk import).
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from scholarport.config import settings
from scholarport.database import get_db
from scholarport.schemas.article import ArticleCreate, ArticleUpdate, ArticleSortField, SortOrder
from scholarport.schemas.citation import BulkImportRequest, CitationCreate, CitationSortField, CitationType
from scholarport.services.article_service import ArticleService
from scholarport.services.citation_service import CitationService
from scholarport.utils import build_pagination

router = APIRouter()


# --- Article CRUD Operations ---

@router.get("")
async def list_articles(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size, description="Items per page"),
    sort_by: ArticleSortField = Query("publicationDate", alias="sortBy"),
    sort_order: SortOrder = Query("desc", alias="sortOrder"),
    search: Optional[str] = Query(None, max_length=100, description="Match title, abstract or authors"),
    year: Optional[int] = Query(None, ge=1, le=9999, description="Publication year"),
    db: AsyncSession = Depends(get_db)
):
    """
    List articles with filtering, sorting and pagination.

    - **search**: case-insensitive substring of title, abstract or any author
    - **year**: calendar year of the publication date
    - **sortBy**: title, publicationDate, createdAt, citations
    """
    service = ArticleService(db)
    articles, total = await service.list_articles(
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
        search=search,
        year=year
    )

    return {
        "success": True,
        "count": len(articles),
        "pagination": build_pagination(page, limit, total),
        "data": [a.to_dict() for a in articles]
    }


@router.get("/search")
async def search_articles(
    q: str = Query(..., min_length=1, max_length=100, description="Search query"),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    db: AsyncSession = Depends(get_db)
):
    """
    Search articles by title, abstract, authors or keywords.

    Results are ordered by publication date, newest first.
    """
    articles = await ArticleService(db).search_articles(q, limit)

    return {
        "success": True,
        "count": len(articles),
        "query": q,
        "data": [a.to_dict() for a in articles]
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_article(
    article_data: ArticleCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    Create a new article.

    Returns 409 if an article with the same DOI already exists.
    """
    article = await ArticleService(db).create_article(article_data)

    return {
        "success": True,
        "message": "Article created successfully",
        "data": article.to_dict()
    }


@router.get("/{article_id}")
async def get_article(
    article_id: str,
    db: AsyncSession = Depends(get_db)
):
    """
    Get an article with all of its citations embedded.
    """
    article, citations = await ArticleService(db).get_article(article_id)

    data = article.to_dict()
    data["citations"] = [c.to_dict() for c in citations]

    return {"success": True, "data": data}


@router.put("/{article_id}")
async def update_article(
    article_id: str,
    article_update: ArticleUpdate,
    db: AsyncSession = Depends(get_db)
):
    """
    Update an article.

    Only updates fields that are provided. All fields are optional.
    """
    article = await ArticleService(db).update_article(article_id, article_update)

    return {
        "success": True,
        "message": "Article updated successfully",
        "data": article.to_dict()
    }


@router.delete("/{article_id}")
async def delete_article(
    article_id: str,
    db: AsyncSession = Depends(get_db)
):
    """
    Delete an article and all its citations.

    This operation is irreversible.
    """
    removed = await ArticleService(db).delete_article(article_id)

    return {
        "success": True,
        "message": f"Article and {removed} citations deleted"
    }


@router.get("/{article_id}/stats")
async def get_article_stats(
    article_id: str,
    db: AsyncSession = Depends(get_db)
):
    """Article statistics: citation totals, verification rate, type breakdown."""
    stats = await ArticleService(db).get_article_stats(article_id)
    return {"success": True, "data": stats}


# --- Citations nested under an article ---

@router.get("/{article_id}/citations")
async def list_article_citations(
    article_id: str,
    page: int = Query(1, description="Page number, floored at 1"),
    limit: int = Query(20, description="Items per page, clamped to 1-50"),
    sort_by: CitationSortField = Query("createdAt", alias="sortBy"),
    sort_order: SortOrder = Query("desc", alias="sortOrder"),
    year: Optional[int] = Query(None),
    citation_type: Optional[CitationType] = Query(None, alias="citationType"),
    is_verified: Optional[bool] = Query(None, alias="isVerified"),
    db: AsyncSession = Depends(get_db)
):
    """
    List citations for an article.

    Filters: exact **year**, **citationType**, **isVerified**.
    """
    citations, total, page, limit = await CitationService(db).list_citations(
        article_id,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
        year=year,
        citation_type=citation_type,
        is_verified=is_verified
    )

    return {
        "success": True,
        "count": len(citations),
        "pagination": build_pagination(page, limit, total),
        "data": [c.to_dict() for c in citations]
    }


@router.post("/{article_id}/citations", status_code=status.HTTP_201_CREATED)
async def create_citation(
    article_id: str,
    citation_data: CitationCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    Create a citation for an article.

    Returns 409 if the article already has a citation with the same title and year.
    """
    citation = await CitationService(db).create_citation(article_id, citation_data)

    return {
        "success": True,
        "message": "Citation created successfully",
        "data": citation.to_dict()
    }


@router.get("/{article_id}/citations/stats")
async def get_citation_stats(
    article_id: str,
    db: AsyncSession = Depends(get_db)
):
    """Citation counts for an article grouped by year and by type."""
    stats = await CitationService(db).get_statistics(article_id)
    return {"success": True, "data": stats}


@router.post("/{article_id}/citations/bulk", status_code=status.HTTP_201_CREATED)
async def bulk_import_citations(
    article_id: str,
    request: BulkImportRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Bulk import 1-100 citations for an article.

    Every entry needs a title, authors and a year, otherwise nothing is
    imported. Entries that pass are reported as successful, failed or duplicate.
    """
    results = await CitationService(db).bulk_import(article_id, request.citations)

    return {
        "success": True,
        "message": "Bulk import completed",
        "data": {
            "successful": len(results["successful"]),
            "failed": len(results["failed"]),
            "duplicates": len(results["duplicates"]),
            "details": results
        }
    }
