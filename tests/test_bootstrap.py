from __future__ import annotations

import pytest

from nyaya_vault.bootstrap import (
    CLIENTS_FOLDER_ID,
    DEFAULT_CLIENTS,
    add_client_folder,
    seed_nodes,
)
from nyaya_vault.errors import InvalidArgumentError
from nyaya_vault.models import ClientRef, MediaType, NodeKind
from nyaya_vault.tree import VaultTree


def test_seed_topology() -> None:
    nodes = seed_nodes()

    roots = [node for node in nodes if node.parent_id is None]
    assert [(node.id, node.name) for node in roots] == [
        ("root-1", "Clients"),
        ("root-2", "Judgments Library"),
        ("root-3", "Bare Acts"),
        ("root-4", "Draft Templates"),
    ]
    clients = [node for node in nodes if node.parent_id == CLIENTS_FOLDER_ID]
    assert [node.name for node in clients] == [client.name for client in DEFAULT_CLIENTS]
    assert all(node.kind is NodeKind.FOLDER for node in clients)

    files = [node for node in nodes if node.kind is NodeKind.FILE]
    assert {node.parent_id for node in files} == {"client-C001"}
    assert [(node.name, node.media_type, node.size_label) for node in files] == [
        ("Vakalatnama.pdf", MediaType.PDF, "1.2 MB"),
        ("Case_Brief.docx", MediaType.DOC, "24 KB"),
        ("Evidence_Photos.jpg", MediaType.IMAGE, "4.5 MB"),
    ]


def test_seed_uses_existing_folder_ids_and_skips_duplicates() -> None:
    clients = [
        ClientRef(id="C9", name="Kulkarni & Sons", folder_id="vault-kulkarni"),
        ClientRef(id="C10", name="Kulkarni Holdings", folder_id="vault-kulkarni"),
        ClientRef(id="C11", name="Deshmukh"),
    ]

    nodes = seed_nodes(clients)

    client_folders = [node for node in nodes if node.parent_id == CLIENTS_FOLDER_ID]
    assert [(node.id, node.name) for node in client_folders] == [
        ("vault-kulkarni", "Kulkarni & Sons"),
        ("client-C11", "Deshmukh"),
    ]
    assert VaultTree(nodes).pruned == []


def test_seed_without_clients() -> None:
    assert [node.id for node in seed_nodes([])] == ["root-1", "root-2", "root-3", "root-4"]


def test_add_client_folder(vault: VaultTree) -> None:
    created = add_client_folder(vault, ClientRef(id="C005", name="Meera Joshi"))

    assert created.id == "client-C005"
    assert created.parent_id == CLIENTS_FOLDER_ID
    assert created.created_label == "Just now"
    assert vault.children(CLIENTS_FOLDER_ID)[-1] == created

    with pytest.raises(InvalidArgumentError, match="already in use"):
        add_client_folder(vault, ClientRef(id="C005", name="Meera Joshi"))


def test_add_client_folder_requires_clients_folder() -> None:
    vault = VaultTree()
    with pytest.raises(LookupError):
        add_client_folder(vault, ClientRef(id="C1", name="Anyone"))
