"""Key-value persistence for the vault's node collection.

The vault is persisted as one JSON array under a single key, the way the
desktop app mirrors its state into local storage. Every save writes the full
snapshot; there is no incremental log.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from pydantic import TypeAdapter, ValidationError

from .errors import StoreError
from .models import Node

logger = logging.getLogger(__name__)

DEFAULT_KEY = "nyaya_vault"

_NODE_LIST = TypeAdapter(list[Node])


def dump_nodes(nodes: Iterable[Node]) -> list[dict[str, Any]]:
    """Convert nodes to the persisted layout (camelCase keys, absent file attributes omitted)."""
    return _NODE_LIST.dump_python(list(nodes), mode="json", by_alias=True)


def parse_nodes(raw: Any, *, location: str) -> list[Node]:
    try:
        return _NODE_LIST.validate_python(raw)
    except ValidationError as exc:
        raise StoreError(location=location, reason=f"invalid node collection: {exc}") from exc


@runtime_checkable
class Store(Protocol):
    def load(self) -> list[Node] | None:
        """Return the persisted collection, or ``None`` when nothing was saved yet."""
        ...

    def save(self, nodes: Iterable[Node]) -> bool:
        """Persist the full collection. Returns ``False`` when the write failed."""
        ...


class MemoryStore:
    """Keeps the serialized collection in memory. Useful for tests and embedding."""

    def __init__(self, nodes: Iterable[Node] | None = None) -> None:
        self.raw: str | None = None
        if nodes is not None:
            self.save(nodes)

    def load(self) -> list[Node] | None:
        if self.raw is None:
            return None
        return parse_nodes(json.loads(self.raw), location="memory")

    def save(self, nodes: Iterable[Node]) -> bool:
        self.raw = json.dumps(dump_nodes(nodes))
        return True


class JsonFileStore:
    """A JSON object on disk mapping keys to values; the vault owns one key.

    Other keys found in the file are left as they are.
    """

    def __init__(self, path: Path | str, *, key: str = DEFAULT_KEY) -> None:
        self.path = Path(path).expanduser()
        self.key = key

    def __repr__(self) -> str:
        return f"JsonFileStore({str(self.path)!r}, key={self.key!r})"

    def _read_document(self) -> dict[str, Any] | None:
        if not self.path.exists():
            return None
        try:
            document = json.loads(self.path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise StoreError(location=str(self.path), reason=f"unreadable: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise StoreError(location=str(self.path), reason=f"invalid JSON: {exc}") from exc
        if not isinstance(document, dict):
            raise StoreError(
                location=str(self.path),
                reason=f"expected a JSON object, got {type(document).__name__}",
            )
        return document

    def load(self) -> list[Node] | None:
        document = self._read_document()
        if document is None or self.key not in document:
            logger.debug("No vault state under %r in %s", self.key, self.path)
            return None
        nodes = parse_nodes(document[self.key], location=f"{self.path}#{self.key}")
        logger.info("Loaded %d vault nodes from %s", len(nodes), self.path)
        return nodes

    def save(self, nodes: Iterable[Node]) -> bool:
        try:
            document = self._read_document() or {}
        except StoreError as exc:
            logger.warning("Discarding unreadable store content: %s", exc)
            document = {}
        document[self.key] = dump_nodes(nodes)

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(document, fh, ensure_ascii=False, indent=2)
                os.replace(tmp_name, self.path)
            except BaseException:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
                raise
        except OSError as exc:
            logger.warning("Failed to save vault state to %s: %s", self.path, exc)
            return False
        return True
