from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from main import app
from services import export_service


@pytest.fixture()
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture()
def tree_json() -> dict:
    return {
        "name": "Test family",
        "ownerPersonId": "R",
        "persons": [
            {"id": "F", "firstName": "Frank", "gender": "male", "birthYear": 1955},
            {"id": "M", "firstName": "Mary", "gender": "female", "birthYear": 1957},
            {"id": "R", "firstName": "Rose", "gender": "female", "birthYear": 1985},
            {"id": "X", "firstName": "Xavier", "gender": "male", "birthYear": 1983},
        ],
        "relationships": [
            {"category": "couple", "person1Id": "F", "person2Id": "M", "coupleStatus": "married"},
            {"category": "couple", "person1Id": "R", "person2Id": "X", "coupleStatus": "divorced"},
            {"category": "parent_child", "person1Id": "F", "person2Id": "R"},
            {"category": "parent_child", "person1Id": "M", "person2Id": "R"},
        ],
    }


def test_health(client) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_layout_returns_camel_case_nodes(client, tree_json) -> None:
    response = client.post("/api/tree/layout", json={"tree": tree_json})

    assert response.status_code == 200
    body = response.json()
    assert body["rootPersonId"] == "R"
    assert {node["id"] for node in body["nodes"]} == {"F", "M", "R", "X"}
    assert all("hasSubTree" in node for node in body["nodes"])
    assert body["canvas"]["width"] > 0
    assert len(body["dashed"]) == 1


def test_layout_with_explicit_root(client, tree_json) -> None:
    response = client.post("/api/tree/layout",
                           json={"tree": tree_json, "options": {"rootPersonId": "F"}})

    assert response.status_code == 200
    assert response.json()["rootPersonId"] == "F"


def test_layout_unknown_root_is_404(client, tree_json) -> None:
    response = client.post("/api/tree/layout",
                           json={"tree": tree_json, "options": {"rootPersonId": "nobody"}})

    assert response.status_code == 404
    assert response.json()["detail"] == "Root person not found"


def test_layout_rejects_invalid_options(client, tree_json) -> None:
    response = client.post("/api/tree/layout",
                           json={"tree": tree_json, "options": {"nodeSpan": 0}})

    assert response.status_code == 422


def test_generations(client, tree_json) -> None:
    response = client.post("/api/tree/generations", json=tree_json)

    assert response.status_code == 200
    groups = response.json()
    assert [g["offset"] for g in groups] == [-1, 0]
    assert set(groups[1]["personIds"]) == {"R", "X"}
    assert groups[0]["label"] == "Parents"


def test_export_png(client, tree_json, tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(export_service, "EXPORTS_DIR", tmp_path)

    response = client.post("/api/tree/export", json={
        "tree": tree_json,
        "options": {"format": "png", "width": 400, "height": 300},
    })

    assert response.status_code == 200
    assert response.content[:8] == b"\x89PNG\r\n\x1a\n"
    assert len(list(Path(tmp_path).glob("*.png"))) == 1
