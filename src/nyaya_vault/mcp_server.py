"""FastMCP server definition (tools + resources)."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, TypeVar

from mcp.server.fastmcp import Context, FastMCP

from .bootstrap import seed_nodes
from .deeplink import DeepLinkRequest
from .models import FolderNode, MediaType, Node, StorageUsage, VaultListing
from .settings import Settings
from .store import JsonFileStore
from .tree import VaultTree

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class AppContext:
    settings: Settings
    vault: VaultTree
    deep_links: DeepLinkRequest
    lock: asyncio.Lock

    async def write(self, operation: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run a persisting vault operation off the event loop, one at a time."""
        async with self.lock:
            return await asyncio.to_thread(operation, *args, **kwargs)


def open_vault(settings: Settings) -> VaultTree:
    store = JsonFileStore(settings.store_path, key=settings.store_key)
    return VaultTree.open(
        store,
        seed=seed_nodes,
        unique_sibling_names=settings.unique_sibling_names,
    )


def _listing(vault: VaultTree, query: str | None = None) -> VaultListing:
    return VaultListing(
        path=vault.current_path,
        items=vault.list_current(query),
        query=query or None,
    )


def create_mcp_server(settings: Settings, vault: VaultTree | None = None) -> FastMCP:
    # One vault per process: the stateless transport enters the lifespan per request.
    vault = vault if vault is not None else open_vault(settings)
    deep_links = DeepLinkRequest(
        on_served=lambda folder_id: logger.debug("Served deep link to %s", folder_id)
    )
    lock = asyncio.Lock()

    @asynccontextmanager
    async def lifespan(_: FastMCP) -> AsyncIterator[AppContext]:
        yield AppContext(settings=settings, vault=vault, deep_links=deep_links, lock=lock)

    mcp = FastMCP(
        "Nyaya Vault",
        instructions=(
            "Browse and organise the practice's Digital Vault: a tree of folders and "
            "document references. Navigation is stateful; use vault_list to see the "
            "active folder and vault_navigate_* tools to move around."
        ),
        lifespan=lifespan,
        stateless_http=True,
        json_response=True,
    )

    @mcp.resource("vault://tree")
    async def read_tree_resource(ctx: Context) -> list[FolderNode]:
        """Return the full folder tree."""
        app: AppContext = ctx.request_context.lifespan_context
        async with app.lock:
            return app.vault.tree()

    @mcp.resource("vault://usage")
    async def read_usage_resource(ctx: Context) -> StorageUsage:
        """Return storage usage against the configured limit."""
        app: AppContext = ctx.request_context.lifespan_context
        async with app.lock:
            return app.vault.compute_usage(app.settings.storage_limit_bytes)

    @mcp.tool()
    async def vault_list(ctx: Context, query: str | None = None) -> VaultListing:
        """List the active folder, or search every name when a query is given."""
        app: AppContext = ctx.request_context.lifespan_context
        async with app.lock:
            app.deep_links.serve(app.vault)
            return _listing(app.vault, query)

    @mcp.tool()
    async def vault_navigate_into(folder_id: str, ctx: Context) -> VaultListing:
        """Enter a folder."""
        app: AppContext = ctx.request_context.lifespan_context
        async with app.lock:
            app.vault.navigate_into(folder_id)
            return _listing(app.vault)

    @mcp.tool()
    async def vault_navigate_up(ctx: Context) -> VaultListing:
        """Go to the parent folder (no-op at the root)."""
        app: AppContext = ctx.request_context.lifespan_context
        async with app.lock:
            app.vault.navigate_up()
            return _listing(app.vault)

    @mcp.tool()
    async def vault_navigate_breadcrumb(index: int, ctx: Context) -> VaultListing:
        """Jump back to the breadcrumb entry at ``index`` (0 is the top-level folder)."""
        app: AppContext = ctx.request_context.lifespan_context
        async with app.lock:
            app.vault.navigate_to_breadcrumb(index)
            return _listing(app.vault)

    @mcp.tool()
    async def vault_navigate_root(ctx: Context) -> VaultListing:
        """Go back to the root."""
        app: AppContext = ctx.request_context.lifespan_context
        async with app.lock:
            app.vault.navigate_to_root()
            return _listing(app.vault)

    @mcp.tool()
    async def vault_request_folder(folder_id: str, ctx: Context) -> dict[str, str]:
        """Queue a folder to be opened on the next vault_list (e.g. from a client record)."""
        app: AppContext = ctx.request_context.lifespan_context
        app.deep_links.request(folder_id)
        return {"pending": folder_id}

    @mcp.tool()
    async def vault_open_folder(folder_id: str, ctx: Context) -> VaultListing:
        """Open any folder by id, rebuilding the breadcrumb from the root."""
        app: AppContext = ctx.request_context.lifespan_context
        async with app.lock:
            app.vault.open_by_id_deep_link(folder_id)
            return _listing(app.vault)

    @mcp.tool()
    async def vault_create_folder(name: str, ctx: Context) -> Node:
        """Create a folder in the active folder."""
        app: AppContext = ctx.request_context.lifespan_context
        return await app.write(app.vault.create_folder, name)

    @mcp.tool()
    async def vault_add_file(
        name: str,
        size_bytes: int,
        ctx: Context,
        content_ref: str | None = None,
        media_type: MediaType | None = None,
    ) -> Node:
        """Register a document reference in the active folder."""
        app: AppContext = ctx.request_context.lifespan_context
        return await app.write(
            app.vault.add_file, name, size_bytes, content_ref=content_ref, media_type=media_type
        )

    @mcp.tool()
    async def vault_delete(node_id: str, ctx: Context) -> dict[str, object]:
        """Delete a file, or a folder with everything inside it."""
        app: AppContext = ctx.request_context.lifespan_context
        removed = await app.write(app.vault.delete_node, node_id)
        return {"deleted": bool(removed), "id": node_id, "removed": [node.id for node in removed]}

    @mcp.tool()
    async def vault_rename(node_id: str, name: str, ctx: Context) -> Node:
        """Rename a file or folder."""
        app: AppContext = ctx.request_context.lifespan_context
        return await app.write(app.vault.rename_node, node_id, name)

    @mcp.tool()
    async def vault_move(node_id: str, ctx: Context, parent_id: str | None = None) -> Node:
        """Move a file or folder under another folder (omit parent_id for the root)."""
        app: AppContext = ctx.request_context.lifespan_context
        return await app.write(app.vault.move_node, node_id, parent_id)

    @mcp.tool()
    async def vault_usage(ctx: Context) -> StorageUsage:
        """Report storage used by files against the configured limit."""
        app: AppContext = ctx.request_context.lifespan_context
        async with app.lock:
            return app.vault.compute_usage(app.settings.storage_limit_bytes)

    @mcp.tool()
    async def vault_tree(ctx: Context) -> list[FolderNode]:
        """Return the folder tree."""
        app: AppContext = ctx.request_context.lifespan_context
        async with app.lock:
            return app.vault.tree()

    return mcp
