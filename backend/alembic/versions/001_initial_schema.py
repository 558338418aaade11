"""Initial schema: articles and citations

Revision ID: 001
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create articles table
    op.create_table(
        'articles',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('authors', postgresql.JSONB(), nullable=False, server_default='[]'),
        sa.Column('abstract', sa.Text(), nullable=False),
        sa.Column('publication_date', sa.Date(), nullable=False),
        sa.Column('doi', sa.String(255), nullable=False),
        sa.Column('keywords', postgresql.JSONB(), nullable=False, server_default='[]'),
        sa.Column('journal', sa.String(200), nullable=True),
        sa.Column('volume', sa.String(20), nullable=True),
        sa.Column('issue', sa.String(20), nullable=True),
        sa.Column('pages', sa.String(50), nullable=True),
        sa.Column('citation_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(20), nullable=False, server_default='published'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.CheckConstraint('citation_count >= 0', name='ck_articles_citation_count_non_negative'),
    )

    # Indexes for articles
    op.create_index('idx_articles_doi', 'articles', ['doi'], unique=True)
    op.create_index('idx_articles_title', 'articles', ['title'])
    op.create_index('idx_articles_publication_date', 'articles', ['publication_date'])

    # Create citations table
    op.create_table(
        'citations',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('article_id', sa.Uuid(), sa.ForeignKey('articles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('authors', sa.String(300), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('journal', sa.String(200), nullable=True),
        sa.Column('volume', sa.String(20), nullable=True),
        sa.Column('issue', sa.String(20), nullable=True),
        sa.Column('pages', sa.String(50), nullable=True),
        sa.Column('doi', sa.String(255), nullable=True),
        sa.Column('url', sa.Text(), nullable=True),
        sa.Column('citation_type', sa.String(20), nullable=False, server_default='direct'),
        sa.Column('context', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_verified', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    )

    # Duplicate detection: one citation per (article, title, year)
    op.create_index(
        'idx_citations_article_title_year',
        'citations',
        ['article_id', 'title', 'year'],
        unique=True
    )
    op.create_index('idx_citations_article_id', 'citations', ['article_id'])


def downgrade() -> None:
    op.drop_index('idx_citations_article_id', table_name='citations')
    op.drop_index('idx_citations_article_title_year', table_name='citations')
    op.drop_table('citations')
    op.drop_index('idx_articles_publication_date', table_name='articles')
    op.drop_index('idx_articles_title', table_name='articles')
    op.drop_index('idx_articles_doi', table_name='articles')
    op.drop_table('articles')
