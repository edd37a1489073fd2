import pytest
from fastapi.testclient import TestClient

from recursive_stack.app.dependencies import get_workspace_service
from recursive_stack.app.main import app
from recursive_stack.services.workspace import WorkspaceService

from conftest import FailingStateStore


@pytest.fixture
def client(service: WorkspaceService):
    app.dependency_overrides[get_workspace_service] = lambda: service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_get_workspace_shows_root(client: TestClient) -> None:
    response = client.get("/workspace")
    assert response.status_code == 200
    body = response.json()
    assert body["node"]["question"] == "Root"
    assert body["path"] == [0]
    assert body["can_go_back"] is False
    assert body["tokens"] == []


def test_save_then_dive_then_back(client: TestClient) -> None:
    saved = client.put("/workspace/node", json={"question": "Why?", "answer": "Because gravity"})
    assert saved.json()["tokens"] == ["Because", "gravity"]

    dived = client.post("/workspace/dive", json={"token": "gravity"})
    assert dived.json()["transition"] == "PUSH"
    assert dived.json()["workspace"]["node"]["question"] == "gravity"
    assert [c["label"] for c in dived.json()["workspace"]["breadcrumbs"]] == ["Why?", "gravity"]

    back = client.post("/workspace/back", json={"draft": {"question": "", "answer": "A force"}})
    assert back.json()["transition"] == "POP"
    resolved = back.json()["workspace"]["resolved_children"]
    assert [child["answer"] for child in resolved] == ["A force"]


def test_back_at_root_reports_disallowed(client: TestClient) -> None:
    response = client.post("/workspace/back", json={})
    assert response.status_code == 200
    assert response.json()["transition"] == "DISALLOWED"


def test_jump_and_open(client: TestClient) -> None:
    client.post("/workspace/dive", json={"token": "a"})
    client.post("/workspace/dive", json={"token": "b"})

    jumped = client.post("/workspace/jump", json={"index": 0})
    assert jumped.json()["workspace"]["path"] == [0]

    opened = client.post("/workspace/open", json={"child_id": 1})
    assert opened.json()["workspace"]["path"] == [0, 1]

    assert client.post("/workspace/open", json={"child_id": 0}).status_code == 409
    assert client.post("/workspace/open", json={"child_id": 42}).status_code == 404


def test_session_endpoints(client: TestClient, service: WorkspaceService) -> None:
    first_id = service.current_session.id
    created = client.post("/sessions")
    assert created.status_code == 201
    second_id = created.json()["session_id"]

    listed = client.get("/sessions").json()
    assert {row["session_id"] for row in listed} == {first_id, second_id}

    assert client.put("/sessions/current", json={"session_id": first_id}).json()["session_id"] == first_id
    assert client.put("/sessions/current", json={"session_id": "missing"}).status_code == 404

    assert client.delete(f"/sessions/{second_id}").status_code == 204
    assert client.delete(f"/sessions/{second_id}").status_code == 404
    reset = client.post(f"/sessions/{first_id}/reset").json()
    assert len(reset["path"]) == 1
    assert reset["node"]["depth"] == 0


def test_outline_and_graph_endpoints(client: TestClient) -> None:
    client.put("/workspace/node", json={"question": "", "answer": "x"})
    client.post("/workspace/dive", json={"token": "x"})

    outline = client.get("/workspace/outline")
    assert outline.headers["content-type"].startswith("text/plain")
    assert outline.text.splitlines() == ["- Root", "  x", "  - x"]

    graph = client.get("/workspace/graph").json()
    assert graph["edges"] == [[0, 1]]
    assert [node["id"] for node in graph["nodes"]] == [0, 1]


def test_storage_failure_maps_to_507(client: TestClient, store: FailingStateStore) -> None:
    store.reject_writes = True
    response = client.post("/workspace/dive", json={"token": "lost"})
    assert response.status_code == 507
    assert "quota" in response.json()["detail"]
