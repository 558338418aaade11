"""
Shared fixtures: a fresh SQLite database per test, wired into the app through get_db.
"""
import os

os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"

import itertools  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine, select, func  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from scholarport import models  # noqa: E402,F401
from scholarport.database import Base, get_db  # noqa: E402
from scholarport.main import app  # noqa: E402
from scholarport.models.article import Article  # noqa: E402
from scholarport.models.citation import Citation  # noqa: E402


_doi_counter = itertools.count(1000)

ABSTRACT = (
    "This study examines how citation networks evolve over time and what "
    "their structure reveals about the diffusion of scientific ideas."
)


def make_article(**overrides) -> dict:
    """Valid article payload with a unique DOI."""
    payload = {
        "title": "Citation Networks in Practice",
        "authors": ["Marie Curie", "Alan Turing"],
        "abstract": ABSTRACT,
        "publicationDate": "2020-05-17",
        "doi": f"10.{next(_doi_counter)}/scholarport.test",
        "keywords": ["citations", "networks"],
        "journal": "Nature",
        "volume": "12",
        "issue": "3",
        "pages": "100-120",
    }
    payload.update(overrides)
    return payload


def make_citation(**overrides) -> dict:
    payload = {
        "title": "Attention Is All You Need",
        "authors": "Vaswani, A., Shazeer, N.",
        "year": 2017,
        "journal": "NeurIPS",
    }
    payload.update(overrides)
    return payload


class Store:
    """Direct read access to the test database, bypassing the API."""

    def __init__(self, url: str):
        self.engine = create_engine(url)

    def count_articles(self) -> int:
        with self.engine.connect() as conn:
            return conn.execute(select(func.count()).select_from(Article)).scalar_one()

    def count_citations(self, article_id=None) -> int:
        query = select(func.count()).select_from(Citation)
        if article_id is not None:
            query = query.where(Citation.article_id == article_id)
        with self.engine.connect() as conn:
            return conn.execute(query).scalar_one()


@pytest.fixture
def store(tmp_path):
    db_path = tmp_path / "scholarport.db"
    store = Store(f"sqlite:///{db_path}")
    Base.metadata.create_all(store.engine)

    async_engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    session_factory = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    yield store
    app.dependency_overrides.clear()
    store.engine.dispose()


@pytest.fixture
def client(store):
    # Not used as a context manager: the lifespan hook would initialise the real database
    return TestClient(app)


@pytest.fixture
def article(client):
    """A stored article."""
    response = client.post("/api/articles", json=make_article())
    assert response.status_code == 201
    return response.json()["data"]
