"""
Citations API: nested CRUD, duplicate detection, verification, formatting and bulk import.
"""
import uuid

import pytest

from conftest import make_article, make_citation


DUPLICATE_MESSAGE = "Citation with this title and year already exists for this article"


@pytest.fixture
def citations_url(article):
    return f"/api/articles/{article['id']}/citations"


@pytest.fixture
def citation(client, citations_url):
    response = client.post(citations_url, json=make_citation())
    assert response.status_code == 201
    return response.json()["data"]


class TestCreateCitation:

    def test_create(self, client, article, citations_url):
        response = client.post(citations_url, json=make_citation(citationType="supporting", year="2019"))
        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Citation created successfully"
        data = body["data"]
        assert data["articleId"] == article["id"]
        assert data["year"] == 2019
        assert data["citationType"] == "supporting"
        assert data["isVerified"] is False

    def test_duplicate_title_and_year(self, client, store, article, citations_url, citation):
        response = client.post(citations_url, json=make_citation())
        assert response.status_code == 409
        assert response.json()["message"] == DUPLICATE_MESSAGE
        assert store.count_citations(uuid.UUID(article["id"])) == 1

        response = client.post(citations_url, json=make_citation(year=2021))
        assert response.status_code == 201
        assert store.count_citations(uuid.UUID(article["id"])) == 2

    def test_same_citation_on_another_article(self, client, citation):
        other = client.post("/api/articles", json=make_article()).json()["data"]
        response = client.post(f"/api/articles/{other['id']}/citations", json=make_citation())
        assert response.status_code == 201

    def test_validation(self, client, store, citations_url):
        response = client.post(citations_url, json=make_citation(year=1700, url="nope"))
        assert response.status_code == 400
        fields = {error["field"] for error in response.json()["errors"]}
        assert {"year", "url"} <= fields
        assert store.count_citations() == 0

    def test_unknown_article(self, client):
        response = client.post(f"/api/articles/{uuid.uuid4()}/citations", json=make_citation())
        assert response.status_code == 404
        assert response.json()["message"] == "Article not found"

    def test_invalid_article_id(self, client):
        response = client.post("/api/articles/abc/citations", json=make_citation())
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid article ID format"


class TestListCitations:

    def test_filters(self, client, citations_url):
        client.post(citations_url, json=make_citation(year=2015))
        client.post(citations_url, json=make_citation(year=2016, citationType="contrasting"))
        verified = client.post(citations_url, json=make_citation(year=2017)).json()["data"]
        client.patch(f"/api/citations/{verified['id']}/verify")

        def years(**params):
            data = client.get(citations_url, params=params).json()["data"]
            return sorted(c["year"] for c in data)

        assert years() == [2015, 2016, 2017]
        assert years(year=2016) == [2016]
        assert years(citationType="contrasting") == [2016]
        assert years(isVerified="true") == [2017]
        assert years(isVerified="false") == [2015, 2016]

    def test_sort_by_year(self, client, citations_url):
        for year in (2012, 2020, 2001):
            client.post(citations_url, json=make_citation(year=year))

        data = client.get(citations_url, params={"sortBy": "year", "sortOrder": "asc"}).json()["data"]
        assert [c["year"] for c in data] == [2001, 2012, 2020]

    def test_limit_is_clamped(self, client, citations_url):
        for year in range(2000, 2003):
            client.post(citations_url, json=make_citation(year=year))

        body = client.get(citations_url, params={"limit": 500}).json()
        assert body["pagination"]["limit"] == 50
        assert body["count"] == 3

        body = client.get(citations_url, params={"limit": 0, "page": -2}).json()
        assert body["pagination"]["limit"] == 1
        assert body["pagination"]["current"] == 1
        assert body["pagination"]["totalItems"] == 3
        assert body["count"] == 1

    def test_unknown_article(self, client):
        assert client.get(f"/api/articles/{uuid.uuid4()}/citations").status_code == 404


class TestGetCitation:

    def test_article_embedded(self, client, article, citation):
        response = client.get(f"/api/citations/{citation['id']}")
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["title"] == citation["title"]
        assert data["article"] == {
            "id": article["id"],
            "title": article["title"],
            "authors": article["authors"]
        }

    def test_invalid_id(self, client):
        response = client.get("/api/citations/xyz")
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid citation ID format"

    def test_not_found(self, client):
        response = client.get(f"/api/citations/{uuid.uuid4()}")
        assert response.status_code == 404
        assert response.json()["message"] == "Citation not found"


class TestUpdateCitation:

    def test_partial_update(self, client, citation):
        response = client.put(f"/api/citations/{citation['id']}", json={"notes": "Key reference", "year": 2018})
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["notes"] == "Key reference"
        assert data["year"] == 2018
        assert data["title"] == citation["title"]

    def test_update_into_duplicate(self, client, citations_url, citation):
        other = client.post(citations_url, json=make_citation(year=2019)).json()["data"]
        response = client.put(f"/api/citations/{other['id']}", json={"year": citation["year"]})
        assert response.status_code == 409
        assert response.json()["message"] == DUPLICATE_MESSAGE

    def test_unchanged_title_and_year_allowed(self, client, citation):
        response = client.put(
            f"/api/citations/{citation['id']}",
            json={"title": citation["title"], "year": citation["year"], "context": "Introduction"}
        )
        assert response.status_code == 200

    def test_invalid_update(self, client, citation):
        response = client.put(f"/api/citations/{citation['id']}", json={"citationType": "random"})
        assert response.status_code == 400


class TestVerification:

    def test_toggle_twice_restores(self, client, citation):
        url = f"/api/citations/{citation['id']}/verify"

        first = client.patch(url).json()
        assert first["data"]["isVerified"] is True
        assert first["message"] == "Citation verified successfully"

        second = client.patch(url).json()
        assert second["data"]["isVerified"] is False
        assert second["message"] == "Citation unverified successfully"

        assert client.get(f"/api/citations/{citation['id']}").json()["data"]["isVerified"] is False

    def test_unknown_citation(self, client):
        assert client.patch(f"/api/citations/{uuid.uuid4()}/verify").status_code == 404


class TestFormattedCitation:

    def test_single_letter_title(self, client, citations_url):
        created = client.post(
            citations_url,
            json={"authors": "Smith, J.", "title": "X", "year": 2020, "journal": "Nature"}
        )
        assert created.status_code == 201

        url = f"/api/citations/{created.json()['data']['id']}/formatted"
        data = client.get(url, params={"style": "mla"}).json()["data"]
        assert data["formatted"] == 'Smith, J.. "X." Nature, 2020.'

    def test_mla(self, client, citation):
        response = client.get(f"/api/citations/{citation['id']}/formatted", params={"style": "mla"})
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["style"] == "MLA"
        assert data["formatted"] == 'Vaswani, A., Shazeer, N.. "Attention Is All You Need." NeurIPS, 2017.'
        assert data["raw"]["id"] == citation["id"]

    def test_default_is_apa(self, client, citation):
        data = client.get(f"/api/citations/{citation['id']}/formatted").json()["data"]
        assert data["style"] == "APA"
        assert data["formatted"] == "Vaswani, A., Shazeer, N. (2017). Attention Is All You Need. NeurIPS."

    def test_unknown_style_renders_apa(self, client, citation):
        data = client.get(f"/api/citations/{citation['id']}/formatted", params={"style": "harvard"}).json()["data"]
        assert data["style"] == "APA"


class TestDeleteCitation:

    def test_delete(self, client, store, citation):
        response = client.delete(f"/api/citations/{citation['id']}")
        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Citation deleted successfully"}
        assert store.count_citations() == 0
        assert client.get(f"/api/citations/{citation['id']}").status_code == 404


class TestSearchCitations:

    def test_search_by_title_and_authors(self, client, article, citations_url):
        client.post(citations_url, json=make_citation())
        client.post(citations_url, json=make_citation(title="Deep Residual Learning", authors="He, K.", year=2016))

        body = client.get("/api/citations/search", params={"q": "attention"}).json()
        assert body["count"] == 1
        assert body["data"][0]["article"]["id"] == article["id"]

        body = client.get("/api/citations/search", params={"q": "he, k"}).json()
        assert [c["title"] for c in body["data"]] == ["Deep Residual Learning"]

    def test_blank_query(self, client):
        response = client.get("/api/citations/search", params={"q": "  "})
        assert response.status_code == 400
        assert response.json()["message"] == "Search query is required"


class TestCitationStats:

    def test_distribution(self, client, citations_url):
        client.post(citations_url, json=make_citation(year=2015))
        client.post(citations_url, json=make_citation(year=2015, title="Another Paper"))
        client.post(citations_url, json=make_citation(year=2020, citationType="indirect"))

        stats = client.get(f"{citations_url}/stats").json()["data"]
        assert stats["totalCitations"] == 3
        assert stats["verifiedCitations"] == 0
        assert stats["uniqueYears"] == 2
        assert stats["earliestYear"] == 2015
        assert stats["latestYear"] == 2020
        assert stats["yearDistribution"] == [{"year": 2015, "count": 2}, {"year": 2020, "count": 1}]
        assert stats["typeDistribution"] == [{"type": "direct", "count": 2}, {"type": "indirect", "count": 1}]

    def test_empty(self, client, citations_url):
        stats = client.get(f"{citations_url}/stats").json()["data"]
        assert stats["totalCitations"] == 0
        assert stats["earliestYear"] is None


class TestBulkImport:

    def test_missing_title_rejects_batch(self, client, store, citations_url):
        entries = [
            make_citation(),
            {"authors": "Doe, J.", "year": 2019},
            make_citation(title="Deep Residual Learning", year=2016),
        ]

        response = client.post(f"{citations_url}/bulk", json={"citations": entries})
        assert response.status_code == 400
        body = response.json()
        assert body["errors"] == ["Citation 2: Title is required"]
        assert store.count_citations() == 0

    def test_shape_errors_listed(self, client, citations_url):
        response = client.post(f"{citations_url}/bulk", json={"citations": [{"title": "Only a title"}]})
        assert response.json()["errors"] == [
            "Citation 1: Authors are required",
            "Citation 1: Valid year is required"
        ]

    def test_mixed_outcomes(self, client, store, citations_url, citation):
        entries = [
            make_citation(title="Fresh Paper", year=2018),
            make_citation(title="Too Old", year=1700),
            make_citation(),
            make_citation(title="Fresh Paper", year="2018"),
        ]

        response = client.post(f"{citations_url}/bulk", json={"citations": entries})
        assert response.status_code == 201
        data = response.json()["data"]
        assert (data["successful"], data["failed"], data["duplicates"]) == (1, 1, 2)

        details = data["details"]
        assert details["successful"][0]["title"] == "Fresh Paper"
        assert details["failed"][0]["index"] == 2
        assert details["failed"][0]["title"] == "Too Old"
        assert details["failed"][0]["errors"][0]["field"] == "year"
        assert [d["index"] for d in details["duplicates"]] == [3, 4]

        assert store.count_citations() == 2

    def test_empty_list_rejected(self, client, citations_url):
        response = client.post(f"{citations_url}/bulk", json={"citations": []})
        assert response.status_code == 400
        assert response.json()["message"] == "Citations array is required and cannot be empty"

    def test_too_many_rejected(self, client, store, citations_url):
        entries = [make_citation(year=1900 + i) for i in range(101)]
        response = client.post(f"{citations_url}/bulk", json={"citations": entries})
        assert response.status_code == 400
        assert response.json()["message"] == "Cannot import more than 100 citations at once"
        assert store.count_citations() == 0

    def test_unknown_article(self, client):
        response = client.post(
            f"/api/articles/{uuid.uuid4()}/citations/bulk",
            json={"citations": [make_citation()]}
        )
        assert response.status_code == 404
