"""
Citations API endpoints.

Direct citation endpoints, not nested under an article.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from scholarport.database import get_db
from scholarport.schemas.citation import CitationUpdate
from scholarport.services.citation_service import CitationService

router = APIRouter()


@router.get("/search")
async def search_citations(
    q: str = Query("", max_length=100, description="Search query"),
    limit: int = Query(20, description="Maximum results, clamped to 1-50"),
    db: AsyncSession = Depends(get_db)
):
    """
    Search citations across all articles by title or authors.
    """
    results = await CitationService(db).search_citations(q, limit)

    return {
        "success": True,
        "count": len(results),
        "query": q,
        "data": [citation.to_dict(article=article.to_summary()) for citation, article in results]
    }


@router.get("/{citation_id}")
async def get_citation(
    citation_id: str,
    db: AsyncSession = Depends(get_db)
):
    """Get a citation with its article's title and authors."""
    citation, article = await CitationService(db).get_citation(citation_id)

    return {
        "success": True,
        "data": citation.to_dict(article=article.to_summary() if article else None)
    }


@router.put("/{citation_id}")
async def update_citation(
    citation_id: str,
    citation_update: CitationUpdate,
    db: AsyncSession = Depends(get_db)
):
    """
    Update a citation.

    Returns 409 if the new title/year collides with another citation of the same article.
    """
    citation = await CitationService(db).update_citation(citation_id, citation_update)

    return {
        "success": True,
        "message": "Citation updated successfully",
        "data": citation.to_dict()
    }


@router.delete("/{citation_id}")
async def delete_citation(
    citation_id: str,
    db: AsyncSession = Depends(get_db)
):
    await CitationService(db).delete_citation(citation_id)

    return {
        "success": True,
        "message": "Citation deleted successfully"
    }


@router.patch("/{citation_id}/verify")
async def verify_citation(
    citation_id: str,
    db: AsyncSession = Depends(get_db)
):
    """Toggle the verification flag."""
    citation = await CitationService(db).toggle_verification(citation_id)
    state = "verified" if citation.is_verified else "unverified"

    return {
        "success": True,
        "message": f"Citation {state} successfully",
        "data": citation.to_dict()
    }


@router.get("/{citation_id}/formatted")
async def get_formatted_citation(
    citation_id: str,
    style: Optional[str] = Query("apa", description="apa, mla or chicago; anything else renders as APA"),
    db: AsyncSession = Depends(get_db)
):
    """Render a citation as a bibliographic string."""
    formatted = await CitationService(db).get_formatted(citation_id, style)
    return {"success": True, "data": formatted}
