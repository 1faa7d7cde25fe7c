"""Default vault topology for a fresh install."""

from __future__ import annotations

from collections.abc import Iterable

from .models import ClientRef, MediaType, Node, NodeKind
from .tree import JUST_NOW, VaultTree

CLIENTS_FOLDER_ID = "root-1"

ROOT_FOLDERS: tuple[Node, ...] = (
    Node(id=CLIENTS_FOLDER_ID, name="Clients", kind=NodeKind.FOLDER, created_label="Today"),
    Node(id="root-2", name="Judgments Library", kind=NodeKind.FOLDER, created_label="Yesterday"),
    Node(id="root-3", name="Bare Acts", kind=NodeKind.FOLDER, created_label="Last Week"),
    Node(id="root-4", name="Draft Templates", kind=NodeKind.FOLDER, created_label="Last Week"),
)

DEFAULT_CLIENTS: tuple[ClientRef, ...] = (
    ClientRef(id="C001", name="Dream Infrastructure & Developers"),
    ClientRef(id="C002", name="Rahul Naresh Puglia"),
    ClientRef(id="C003", name="Amarsingh Rathod"),
    ClientRef(id="C004", name="TechSolutions Pvt Ltd"),
)


def client_folder_id(client: ClientRef) -> str:
    return client.folder_id or f"client-{client.id}"


def _demo_files(folder_id: str) -> list[Node]:
    # (id, name, media type, size label, created label)
    demo = [
        ("f1", "Vakalatnama.pdf", MediaType.PDF, "1.2 MB", "Today"),
        ("f2", "Case_Brief.docx", MediaType.DOC, "24 KB", "Yesterday"),
        ("f3", "Evidence_Photos.jpg", MediaType.IMAGE, "4.5 MB", "2 days ago"),
    ]
    return [
        Node(
            id=file_id,
            parent_id=folder_id,
            name=name,
            kind=NodeKind.FILE,
            media_type=media_type,
            size_label=size_label,
            created_label=created_label,
        )
        for file_id, name, media_type, size_label, created_label in demo
    ]


def seed_nodes(clients: Iterable[ClientRef] = DEFAULT_CLIENTS) -> list[Node]:
    """Four fixed top-level folders plus one folder per client under Clients.

    The first client's folder is populated with a few demo documents.
    """
    nodes = list(ROOT_FOLDERS)
    seen = {node.id for node in nodes}
    for index, client in enumerate(clients):
        folder_id = client_folder_id(client)
        if folder_id in seen:
            continue
        seen.add(folder_id)
        nodes.append(
            Node(
                id=folder_id,
                parent_id=CLIENTS_FOLDER_ID,
                name=client.name,
                kind=NodeKind.FOLDER,
                created_label="Today",
            )
        )
        if index == 0:
            nodes.extend(_demo_files(folder_id))
    return nodes


def add_client_folder(tree: VaultTree, client: ClientRef) -> Node:
    """Create the vault folder for a newly registered client."""
    return tree.add_folder(
        client.name,
        parent_id=CLIENTS_FOLDER_ID,
        node_id=client_folder_id(client),
        created_label=JUST_NOW,
    )
