from __future__ import annotations

import pytest

from nyaya_vault.bootstrap import seed_nodes
from nyaya_vault.store import MemoryStore
from nyaya_vault.tree import VaultTree


@pytest.fixture
def vault() -> VaultTree:
    """A vault holding the default topology, with no store attached."""
    return VaultTree(seed_nodes())


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


def _assert_well_formed(tree: VaultTree) -> None:
    ids = [node.id for node in tree.nodes]
    assert len(ids) == len(set(ids))
    for node in tree.nodes:
        if node.parent_id is not None:
            assert node.parent_id in tree
            assert tree.get(node.parent_id).is_folder
        # ancestors() terminates only on an acyclic chain
        assert len(tree.ancestors(node.id)) < len(ids)
    previous = None
    for folder in tree.current_path:
        assert folder.is_folder
        assert folder.parent_id == previous
        previous = folder.id


@pytest.fixture
def assert_well_formed():
    """Check parent links, acyclicity, id uniqueness and breadcrumb consistency."""
    return _assert_well_formed
