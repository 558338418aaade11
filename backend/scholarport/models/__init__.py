"""Models package"""
from scholarport.models.article import Article, ARTICLE_STATUSES
from scholarport.models.citation import Citation, CITATION_TYPES

__all__ = [
    "Article",
    "Citation",
    "ARTICLE_STATUSES",
    "CITATION_TYPES"
]
