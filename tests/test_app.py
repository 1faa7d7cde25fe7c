from __future__ import annotations

import asyncio
import json
import threading
from importlib.metadata import version
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from starlette.testclient import TestClient

from nyaya_vault.asgi import create_app
from nyaya_vault.deeplink import DeepLinkRequest
from nyaya_vault.mcp_server import AppContext, create_mcp_server, open_vault
from nyaya_vault.settings import Settings
from nyaya_vault.store import JsonFileStore


def _settings(monkeypatch, tmp_path: Path) -> Settings:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("VAULT_STORE_PATH", str(tmp_path / "vault.json"))
    return Settings()


def test_health(monkeypatch, tmp_path: Path) -> None:
    app = create_app(_settings(monkeypatch, tmp_path))
    with TestClient(app) as client:
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json() == {"ok": True}


def test_open_vault_seeds_configured_store(monkeypatch, tmp_path: Path) -> None:
    settings = _settings(monkeypatch, tmp_path)

    vault = open_vault(settings)

    assert [node.id for node in vault.list_current()] == ["root-1", "root-2", "root-3", "root-4"]
    assert JsonFileStore(tmp_path / "vault.json").load() == vault.snapshot()


def test_tool_catalogue(monkeypatch, tmp_path: Path) -> None:
    mcp = create_mcp_server(_settings(monkeypatch, tmp_path))

    tools = asyncio.run(mcp.list_tools())

    assert {tool.name for tool in tools} == {
        "vault_list",
        "vault_navigate_into",
        "vault_navigate_up",
        "vault_navigate_breadcrumb",
        "vault_navigate_root",
        "vault_request_folder",
        "vault_open_folder",
        "vault_create_folder",
        "vault_add_file",
        "vault_delete",
        "vault_rename",
        "vault_move",
        "vault_usage",
        "vault_tree",
    }


MCP_HEADERS = {"Accept": "application/json, text/event-stream"}


def _rpc(client: TestClient, method: str, params: dict[str, Any]) -> dict[str, Any]:
    r = client.post(
        "/mcp",
        json={"jsonrpc": "2.0", "id": 1, "method": method, "params": params},
        headers=MCP_HEADERS,
    )
    assert r.status_code == 200
    return r.json()["result"]


def _call_tool(client: TestClient, name: str, /, **arguments: Any) -> dict[str, Any]:
    return _rpc(client, "tools/call", {"name": name, "arguments": arguments})


def _payload(result: dict[str, Any]) -> dict[str, Any]:
    assert result["isError"] is False
    return json.loads(result["content"][0]["text"])


def _path_ids(listing: dict[str, Any]) -> list[str]:
    return [node["id"] for node in listing["path"]]


@pytest.fixture
def mcp_client(monkeypatch, tmp_path: Path) -> Iterator[TestClient]:
    app = create_app(_settings(monkeypatch, tmp_path))
    with TestClient(app, base_url="http://127.0.0.1:5005") as client:
        _rpc(
            client,
            "initialize",
            {
                "protocolVersion": "2025-03-26",
                "capabilities": {},
                "clientInfo": {"name": "pytest", "version": "0"},
            },
        )
        yield client


def test_requested_folder_opens_on_next_list_only(mcp_client: TestClient) -> None:
    queued = _call_tool(mcp_client, "vault_request_folder", folder_id="client-C002")
    assert queued["isError"] is False

    first = _payload(_call_tool(mcp_client, "vault_list"))
    assert _path_ids(first) == ["root-1", "client-C002"]

    _call_tool(mcp_client, "vault_navigate_root")
    second = _payload(_call_tool(mcp_client, "vault_list"))
    assert _path_ids(second) == []
    assert [item["id"] for item in second["items"]] == ["root-1", "root-2", "root-3", "root-4"]


def test_vault_errors_come_back_as_tool_errors(mcp_client: TestClient) -> None:
    missing = _call_tool(mcp_client, "vault_navigate_into", folder_id="nope")
    assert missing["isError"] is True
    assert "No folder with id 'nope'" in missing["content"][0]["text"]

    out_of_range = _call_tool(mcp_client, "vault_navigate_breadcrumb", index=3)
    assert out_of_range["isError"] is True

    assert _path_ids(_payload(_call_tool(mcp_client, "vault_list"))) == []


def test_mutating_tools_persist(mcp_client: TestClient, tmp_path: Path) -> None:
    _call_tool(mcp_client, "vault_navigate_into", folder_id="root-2")
    created = _payload(_call_tool(mcp_client, "vault_create_folder", name="Supreme Court"))

    assert created["name"] == "Supreme Court"
    saved = JsonFileStore(tmp_path / "vault.json").load()
    assert created["id"] in [node.id for node in saved]

    removed = _payload(_call_tool(mcp_client, "vault_delete", node_id=created["id"]))
    assert removed["removed"] == [created["id"]]
    assert created["id"] not in [node.id for node in JsonFileStore(tmp_path / "vault.json").load()]


def test_app_context_write_runs_off_the_event_loop(monkeypatch, tmp_path: Path) -> None:
    settings = _settings(monkeypatch, tmp_path)
    app = AppContext(
        settings=settings,
        vault=open_vault(settings),
        deep_links=DeepLinkRequest(),
        lock=asyncio.Lock(),
    )
    threads: list[int] = []

    def create(name: str):
        threads.append(threading.get_ident())
        return app.vault.create_folder(name)

    async def scenario():
        created = await app.write(create, "Litigation")
        return threading.get_ident(), created

    loop_thread, created = asyncio.run(scenario())

    assert threads and threads[0] != loop_thread
    assert created.id in app.vault
    assert app.lock.locked() is False


def test_installed_mcp_provides_fastmcp() -> None:
    # mcp 2.x drops mcp.server.fastmcp
    assert int(version("mcp").split(".")[0]) == 1
