from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

TASK_ID = "123e4567-e89b-12d3-a456-426614174000"


def test_rpc_create_and_list(client: TestClient) -> None:
    created = client.post("/rpc", json={"method": "createTask", "params": {"title": "via rpc"}})

    assert created.status_code == 200
    body = created.json()
    assert body["success"] is True
    assert body["result"]["task"]["title"] == "via rpc"

    listed = client.post("/rpc", json={"method": "listTasks", "params": None}).json()
    assert [t["title"] for t in listed["result"]["tasks"]] == ["via rpc"]


def test_rpc_params_may_be_omitted(client: TestClient) -> None:
    resp = client.post("/rpc", json={"method": "listTasks"})

    assert resp.status_code == 200
    assert resp.json()["result"]["tasks"] == []


def test_rpc_validation_failure_carries_details(client: TestClient) -> None:
    resp = client.post("/rpc", json={"method": "runAnalysis", "params": {"taskId": "nope"}})

    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert [d["path"] for d in body["details"]] == [["taskId"]]


def test_rpc_malformed_envelope(client: TestClient) -> None:
    resp = client.post("/rpc", json={"params": {}})

    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["details"][0]["path"] == ["method"]


@pytest.mark.parametrize(
    ("path", "payload"),
    [
        ("/rpc", {"method": "doesNotExist", "params": {}}),
        ("/mcp/execute", {"tool": "doesNotExist", "params": {}}),
    ],
)
def test_unknown_operation_on_envelope_surfaces(
    client: TestClient, path: str, payload: dict[str, object]
) -> None:
    resp = client.post(path, json=payload)

    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "Unknown method: doesNotExist"}


def test_tools_listing_covers_every_operation(client: TestClient) -> None:
    resp = client.get("/mcp/tools")

    assert resp.status_code == 200
    tools = {t["name"]: t for t in resp.json()["tools"]}
    assert set(tools) == {"createTask", "listTasks", "runAnalysis"}
    assert tools["createTask"]["schema"]["required"] == ["title"]
    depth = tools["runAnalysis"]["schema"]["properties"]["depth"]
    assert (depth["minimum"], depth["maximum"], depth["default"]) == (1, 5, 1)
    assert all(t["description"] for t in tools.values())


def test_tool_execute(client: TestClient) -> None:
    resp = client.post("/mcp/execute", json={"tool": "runAnalysis", "params": {"taskId": TASK_ID}})

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["result"]["report"]["taskId"] == TASK_ID


@pytest.mark.parametrize(
    "payload",
    [
        {"tool": "listTasks"},
        {"params": {}},
        {"tool": 7, "params": {}},
        ["listTasks", {}],
    ],
)
def test_tool_execute_rejects_malformed_envelope(
    client: TestClient, payload: object
) -> None:
    resp = client.post("/mcp/execute", json=payload)

    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["error"] == "Invalid ToolExecuteRequest envelope"
    assert body["details"]


def test_tool_execute_validation_failure_is_not_an_envelope_error(client: TestClient) -> None:
    resp = client.post("/mcp/execute", json={"tool": "createTask", "params": {"title": ""}})

    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "Invalid params for createTask"
    assert body["details"][0]["path"] == ["title"]
