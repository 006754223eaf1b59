from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import BODY_STRUCTURE, CLINICAL_FINDING, HEART_STRUCTURE, MYOCARDIAL_INFARCTION, ROOT
from snomed_query.server import app, get_service


@pytest.fixture
def client(service):
    app.dependency_overrides[get_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_root_message(client) -> None:
    response = client.get("/")
    assert response.status_code == 200
    assert "running" in response.json()["message"]


def test_stats(client) -> None:
    body = client.get("/api/stats").json()
    assert body["root"] == ROOT
    assert body["concepts"] == 10


def test_find_concepts(client) -> None:
    response = client.get("/api/concepts", params={"ecQuery": f"<<{BODY_STRUCTURE}"})
    assert response.status_code == 200
    assert response.json() == {
        "query": f"<<{BODY_STRUCTURE}",
        "count": 2,
        "concepts": [
            {"id": BODY_STRUCTURE, "fsn": "Body structure (body structure)"},
            {"id": HEART_STRUCTURE, "fsn": "Heart structure (body structure)"},
        ],
    }


def test_find_concepts_without_query(client) -> None:
    body = client.get("/api/concepts").json()
    assert body["count"] == 0
    assert body["concepts"] == []


@pytest.mark.parametrize(
    "ec_query, status, detail",
    [
        ("^700043003", 400, "memberOf is not currently supported."),
        ("<1 AND <2", 400, "This expression is not currently supported"),
        ("not-a-number", 400, "Invalid concept id"),
        ("<999999999", 404, "Concept with id 999999999 could not be found."),
    ],
)
def test_find_concepts_errors(client, ec_query: str, status: int, detail: str) -> None:
    response = client.get("/api/concepts", params={"ecQuery": ec_query})
    assert response.status_code == status
    assert detail in response.json()["detail"]


def test_get_concept(client) -> None:
    response = client.get(f"/api/concepts/{MYOCARDIAL_INFARCTION}")
    assert response.json() == {"id": MYOCARDIAL_INFARCTION, "fsn": "Myocardial infarction (disorder)"}
    assert client.get("/api/concepts/1").status_code == 404


def test_ancestors_and_descendants(client) -> None:
    ancestors = client.get(f"/api/concepts/{HEART_STRUCTURE}/ancestors").json()
    assert [c["id"] for c in ancestors["concepts"]] == [BODY_STRUCTURE, ROOT]
    assert ancestors["query"] is None

    descendants = client.get(f"/api/concepts/{CLINICAL_FINDING}/descendants").json()
    assert descendants["count"] == 4
    assert client.get("/api/concepts/1/descendants").status_code == 404
