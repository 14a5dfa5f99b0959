"""
Router tests for /api/v1/search.
"""

import uuid

from docflow.models.search import SearchResult

USER_HEADERS = {"X-User-Id": "user-1"}


def test_search(client, mock_search_service):
    document_id = uuid.uuid4()
    mock_search_service.search.return_value = [
        SearchResult(
            document_id=document_id,
            document_title="Machine Learning Guide",
            relevance_score=0.9,
            excerpt="Machine Learning Guide",
            match_type="title",
        )
    ]

    response = client.get(
        "/api/v1/search", params={"q": "machine learning", "limit": 5}, headers=USER_HEADERS
    )

    assert response.status_code == 200
    data = response.json()
    assert data["query"] == "machine learning"
    assert data["total"] == 1
    assert data["results"][0]["documentId"] == str(document_id)
    assert data["results"][0]["matchType"] == "title"
    mock_search_service.search.assert_awaited_once_with("machine learning", "user-1", 5)


def test_search_requires_query(client):
    response = client.get("/api/v1/search", headers=USER_HEADERS)

    assert response.status_code == 422


def test_search_no_results(client, mock_search_service):
    mock_search_service.search.return_value = []

    response = client.get("/api/v1/search", params={"q": "xyz"}, headers=USER_HEADERS)

    assert response.json() == {"query": "xyz", "results": [], "total": 0}
