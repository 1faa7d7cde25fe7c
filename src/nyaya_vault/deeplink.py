"""Pending "open this folder" requests raised from outside the vault.

The host (client directory, intake form...) records a folder id; whoever
drives the vault serves the request once and the request is cleared, so a
re-render or a repeated poll never navigates twice.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from .models import Node
from .tree import VaultTree

logger = logging.getLogger(__name__)


class DeepLinkRequest:
    def __init__(self, on_served: Callable[[str], None] | None = None) -> None:
        self._pending: str | None = None
        self._on_served = on_served

    @property
    def pending(self) -> str | None:
        return self._pending

    def request(self, folder_id: str) -> None:
        if self._pending is not None and self._pending != folder_id:
            logger.debug("Deep link to %s replaces pending %s", folder_id, self._pending)
        self._pending = folder_id

    def serve(self, tree: VaultTree) -> list[Node] | None:
        """Open the pending folder in ``tree`` and clear the request.

        Returns the new breadcrumb, or ``None`` when nothing was pending. The
        request is cleared even when the folder no longer exists; the
        :class:`~nyaya_vault.errors.NodeNotFoundError` is then re-raised.
        """
        folder_id = self._pending
        if folder_id is None:
            return None
        self._pending = None
        try:
            return tree.open_by_id_deep_link(folder_id)
        finally:
            if self._on_served is not None:
                self._on_served(folder_id)
