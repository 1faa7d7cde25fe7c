"""The vault's folder/file tree.

Nodes live in one flat, insertion-ordered arena keyed by id and reference
their folder through ``parent_id`` (``None`` for the root). A children index
keyed by parent id is maintained alongside the arena so listings, subtree
walks and deletes never scan the whole collection.

Navigation state is a breadcrumb of folder ids from the root down to the
active folder; an empty breadcrumb means the root is active.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable, Iterator

from .errors import InvalidArgumentError, NodeNotFoundError
from .models import FolderNode, MediaType, Node, NodeKind, StorageUsage
from .sizes import classify_media_type, format_bytes, parse_size
from .store import Store

logger = logging.getLogger(__name__)

JUST_NOW = "Just now"


def _check_name(name: str, argument: str = "name") -> None:
    if not name or not name.strip():
        raise InvalidArgumentError(argument, "must not be empty")


class VaultTree:
    """Owns the node collection and exposes tree-shaped operations over it.

    When a :class:`~nyaya_vault.store.Store` is attached, every mutation
    saves the full snapshot. A failed save is logged and the in-memory state
    stays authoritative for the session.
    """

    def __init__(
        self,
        nodes: Iterable[Node] = (),
        *,
        store: Store | None = None,
        unique_sibling_names: bool = False,
    ) -> None:
        self._nodes: dict[str, Node] = {}
        self._children: dict[str | None, dict[str, None]] = {None: {}}
        self._path: list[str] = []
        self._store = store
        self.unique_sibling_names = unique_sibling_names
        self.pruned: list[str] = self._load(nodes)

    @classmethod
    def open(
        cls,
        store: Store,
        *,
        seed: Callable[[], Iterable[Node]] | None = None,
        unique_sibling_names: bool = False,
    ) -> VaultTree:
        """Load the vault from ``store``, seeding it when nothing was saved yet."""
        saved = store.load()
        if saved is None:
            tree = cls(
                seed() if seed is not None else (),
                store=store,
                unique_sibling_names=unique_sibling_names,
            )
            logger.info("Seeded empty vault store with %d nodes", len(tree))
            tree._persist()
            return tree

        tree = cls(saved, store=store, unique_sibling_names=unique_sibling_names)
        if tree.pruned:
            tree._persist()
        return tree

    def _load(self, nodes: Iterable[Node]) -> list[str]:
        staged: dict[str, Node] = {}
        for node in nodes:
            if node.id in staged:
                raise InvalidArgumentError("nodes", f"duplicate node id {node.id!r}")
            staged[node.id] = node

        rooted: dict[str, bool] = {}

        def reaches_root(node_id: str) -> bool:
            trail: list[str] = []
            current: str | None = node_id
            verdict = True
            while current is not None:
                if current in rooted:
                    verdict = rooted[current]
                    break
                if current in trail:
                    verdict = False
                    break
                trail.append(current)
                parent_id = staged[current].parent_id
                if parent_id is not None and (
                    parent_id not in staged or not staged[parent_id].is_folder
                ):
                    verdict = False
                    break
                current = parent_id
            for visited in trail:
                rooted[visited] = verdict
            return verdict

        pruned = []
        for node in staged.values():
            if reaches_root(node.id):
                self._insert(node)
            else:
                pruned.append(node.id)
        if pruned:
            logger.warning(
                "Dropped %d vault nodes whose parent chain does not reach the root: %s",
                len(pruned),
                ", ".join(pruned),
            )
        return pruned

    # --- arena bookkeeping ---

    def _insert(self, node: Node) -> None:
        self._nodes[node.id] = node
        self._children.setdefault(node.parent_id, {})[node.id] = None
        if node.is_folder:
            self._children.setdefault(node.id, {})

    def _remove(self, node_id: str) -> None:
        node = self._nodes.pop(node_id)
        self._children.get(node.parent_id, {}).pop(node_id, None)
        self._children.pop(node_id, None)

    def _subtree_ids(self, node_id: str) -> list[str]:
        ids: list[str] = []
        stack = [node_id]
        while stack:
            current = stack.pop()
            ids.append(current)
            stack.extend(reversed(self._children.get(current, {})))
        return ids

    def _new_id(self, prefix: str) -> str:
        while True:
            candidate = f"{prefix}-{uuid.uuid4().hex[:12]}"
            if candidate not in self._nodes:
                return candidate

    def _check_sibling_name(
        self, parent_id: str | None, name: str, *, exclude: str | None = None
    ) -> None:
        if not self.unique_sibling_names:
            return
        folded = name.strip().lower()
        for sibling in self.children(parent_id):
            if sibling.id != exclude and sibling.name.strip().lower() == folded:
                raise InvalidArgumentError("name", f"{name!r} already exists in this folder")

    def _persist(self) -> None:
        if self._store is None:
            return
        if not self._store.save(self.snapshot()):
            logger.warning("Vault store rejected the write; changes are held in memory only")

    # --- queries ---

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __iter__(self) -> Iterator[Node]:
        return iter(list(self._nodes.values()))

    def __repr__(self) -> str:
        return f"VaultTree(nodes={len(self._nodes)}, path={self._path!r})"

    @property
    def nodes(self) -> list[Node]:
        return list(self._nodes.values())

    def snapshot(self) -> list[Node]:
        """The collection in the order it is persisted."""
        return list(self._nodes.values())

    def get(self, node_id: str) -> Node:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise NodeNotFoundError(node_id) from None

    def get_folder(self, folder_id: str) -> Node:
        node = self._nodes.get(folder_id)
        if node is None or not node.is_folder:
            raise NodeNotFoundError(folder_id, expected="folder")
        return node

    def children(self, parent_id: str | None) -> list[Node]:
        return [self._nodes[child_id] for child_id in self._children.get(parent_id, {})]

    def ancestors(self, node_id: str) -> list[Node]:
        """Folders above ``node_id``, from the top level down to its parent."""
        chain: list[Node] = []
        parent_id = self.get(node_id).parent_id
        while parent_id is not None:
            parent = self._nodes[parent_id]
            chain.append(parent)
            parent_id = parent.parent_id
        chain.reverse()
        return chain

    @property
    def current_folder_id(self) -> str | None:
        return self._path[-1] if self._path else None

    @property
    def current_path(self) -> list[Node]:
        return [self._nodes[folder_id] for folder_id in self._path]

    def list_current(self, query: str | None = None) -> list[Node]:
        """List the active folder, or search the whole vault when ``query`` is set.

        Search is a case-insensitive substring match on names and ignores the
        active folder. Both modes keep collection order.
        """
        if query:
            needle = query.lower()
            return [node for node in self._nodes.values() if needle in node.name.lower()]
        return self.children(self.current_folder_id)

    def tree(self) -> list[FolderNode]:
        def build(parent_id: str | None) -> list[FolderNode]:
            return [
                FolderNode(
                    id=node.id,
                    name=node.name,
                    kind=node.kind,
                    children=build(node.id) if node.is_folder else [],
                )
                for node in self.children(parent_id)
            ]

        return build(None)

    def compute_usage(self, limit_bytes: int) -> StorageUsage:
        if limit_bytes <= 0:
            raise InvalidArgumentError("limit_bytes", "must be positive")
        used = sum(parse_size(node.size_label) for node in self._nodes.values() if node.is_file)
        percent = min(used / limit_bytes * 100, 100.0)
        return StorageUsage(
            used_bytes=used,
            used_label=format_bytes(used),
            limit_bytes=limit_bytes,
            limit_label=format_bytes(limit_bytes),
            percent_of_limit=round(percent, 1),
        )

    # --- navigation ---

    def navigate_into(self, folder_id: str) -> list[Node]:
        """Enter ``folder_id``.

        A child of the active folder is pushed onto the breadcrumb. Any other
        folder (a search hit, say) replaces the breadcrumb with its full chain.
        """
        folder = self.get_folder(folder_id)
        if folder.parent_id == self.current_folder_id:
            self._path.append(folder.id)
        else:
            self._path = [node.id for node in self.ancestors(folder.id)] + [folder.id]
        return self.current_path

    def navigate_up(self) -> list[Node]:
        if self._path:
            self._path.pop()
        return self.current_path

    def navigate_to_breadcrumb(self, index: int) -> list[Node]:
        if not 0 <= index < len(self._path):
            raise InvalidArgumentError(
                "index", f"breadcrumb {index} is outside a path of depth {len(self._path)}"
            )
        del self._path[index + 1 :]
        return self.current_path

    def navigate_to_root(self) -> list[Node]:
        self._path.clear()
        return self.current_path

    def open_by_id_deep_link(self, folder_id: str) -> list[Node]:
        """Jump straight to ``folder_id`` and rebuild the breadcrumb from the root."""
        folder = self.get_folder(folder_id)
        self._path = [node.id for node in self.ancestors(folder.id)] + [folder.id]
        logger.debug("Opened vault folder %s at depth %d", folder_id, len(self._path))
        return self.current_path

    # --- mutation ---

    def create_folder(self, name: str) -> Node:
        return self.add_folder(name, parent_id=self.current_folder_id)

    def add_folder(
        self,
        name: str,
        *,
        parent_id: str | None,
        node_id: str | None = None,
        created_label: str = JUST_NOW,
    ) -> Node:
        """Create a folder under an explicit parent (``None`` for the root)."""
        _check_name(name)
        if parent_id is not None:
            self.get_folder(parent_id)
        if node_id is not None and node_id in self._nodes:
            raise InvalidArgumentError("node_id", f"{node_id!r} is already in use")
        self._check_sibling_name(parent_id, name)

        folder = Node(
            id=node_id or self._new_id("folder"),
            parent_id=parent_id,
            name=name,
            kind=NodeKind.FOLDER,
            created_label=created_label,
        )
        self._insert(folder)
        logger.debug("Created folder %s (%r) under %s", folder.id, name, parent_id)
        self._persist()
        return folder

    def add_file(
        self,
        name: str,
        size_bytes: int,
        content_ref: str | None = None,
        media_type: MediaType | str | None = None,
    ) -> Node:
        """Register a file under the active folder.

        The media type is classified from the extension unless one is given;
        the size is stored as a human-readable label.
        """
        _check_name(name)
        if size_bytes < 0:
            raise InvalidArgumentError("size_bytes", "must not be negative")
        if media_type is None:
            resolved = classify_media_type(name)
        else:
            try:
                resolved = MediaType(media_type)
            except ValueError:
                raise InvalidArgumentError(
                    "media_type", f"unknown media type {media_type!r}"
                ) from None
        parent_id = self.current_folder_id
        self._check_sibling_name(parent_id, name)

        file = Node(
            id=self._new_id("file"),
            parent_id=parent_id,
            name=name,
            kind=NodeKind.FILE,
            media_type=resolved,
            size_label=format_bytes(size_bytes),
            content_ref=content_ref or None,
            created_label=JUST_NOW,
        )
        self._insert(file)
        logger.debug("Added file %s (%r, %s) under %s", file.id, name, file.size_label, parent_id)
        self._persist()
        return file

    def delete_node(self, node_id: str) -> list[Node]:
        """Remove ``node_id`` together with everything beneath it.

        Unknown ids are ignored. Returns the removed nodes in collection order.
        """
        if node_id not in self._nodes:
            logger.debug("Ignoring delete of unknown vault node %r", node_id)
            return []

        doomed = set(self._subtree_ids(node_id))
        removed = [node for node in self._nodes.values() if node.id in doomed]
        for node in reversed(removed):
            self._remove(node.id)

        for depth, folder_id in enumerate(self._path):
            if folder_id in doomed:
                del self._path[depth:]
                break

        logger.debug("Deleted vault node %s and %d descendants", node_id, len(removed) - 1)
        self._persist()
        return removed

    def rename_node(self, node_id: str, name: str) -> Node:
        node = self.get(node_id)
        _check_name(name)
        self._check_sibling_name(node.parent_id, name, exclude=node_id)
        renamed = node.model_copy(update={"name": name})
        self._nodes[node_id] = renamed
        self._persist()
        return renamed

    def move_node(self, node_id: str, new_parent_id: str | None) -> Node:
        """Re-parent ``node_id``; the moved node goes to the end of the collection."""
        node = self.get(node_id)
        if new_parent_id is not None:
            self.get_folder(new_parent_id)
            above = {folder.id for folder in self.ancestors(new_parent_id)}
            if new_parent_id == node_id or node_id in above:
                raise InvalidArgumentError(
                    "new_parent_id",
                    f"moving {node_id!r} under {new_parent_id!r} would create a cycle",
                )
        if node.parent_id == new_parent_id:
            return node
        self._check_sibling_name(new_parent_id, node.name)

        moved = node.model_copy(update={"parent_id": new_parent_id})
        del self._children[node.parent_id][node_id]
        del self._nodes[node_id]
        self._nodes[node_id] = moved
        self._children.setdefault(new_parent_id, {})[node_id] = None

        if node_id in self._path:
            below = self._path[self._path.index(node_id) :]
            self._path = [folder.id for folder in self.ancestors(node_id)] + below

        logger.debug("Moved vault node %s from %s to %s", node_id, node.parent_id, new_parent_id)
        self._persist()
        return moved
