"""Vault entities and derived views."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SerializerFunctionWrapHandler,
    model_serializer,
    model_validator,
)
from pydantic.alias_generators import to_camel


class NodeKind(str, Enum):
    FOLDER = "folder"
    FILE = "file"


class MediaType(str, Enum):
    PDF = "pdf"
    DOC = "doc"
    SPREADSHEET = "spreadsheet"
    IMAGE = "image"
    UNKNOWN = "unknown"


_FILE_ONLY_KEYS = (
    "media_type",
    "size_label",
    "content_ref",
    "mediaType",
    "sizeLabel",
    "contentRef",
)


# Every model on the wire uses the camelCase keys the store persists.
_WIRE_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Node(BaseModel):
    """A folder or file entry in the vault's flat collection.

    Serialized with camelCase keys (``parentId``, ``sizeLabel``...) and with
    unset file attributes omitted, which is the layout the store persists.
    A ``parent_id`` of ``None`` means the node sits at the root.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str = Field(min_length=1)
    parent_id: str | None = None
    name: str
    kind: NodeKind
    media_type: MediaType | None = None
    size_label: str | None = None
    content_ref: str | None = None
    created_label: str = "Just now"

    @model_validator(mode="before")
    @classmethod
    def _default_file_media_type(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("kind") == NodeKind.FILE:
            key = "mediaType" if "mediaType" in data else "media_type"
            if data.get(key) is None:
                data = {**data, key: MediaType.UNKNOWN}
        return data

    @model_validator(mode="after")
    def _check_kind_attributes(self) -> Node:
        if self.kind is NodeKind.FOLDER:
            carried = [
                name
                for name in ("media_type", "size_label", "content_ref")
                if getattr(self, name) is not None
            ]
            if carried:
                raise ValueError(f"folder {self.id!r} cannot carry {', '.join(carried)}")
        return self

    @model_serializer(mode="wrap")
    def _omit_absent_file_attributes(
        self, handler: SerializerFunctionWrapHandler
    ) -> dict[str, Any]:
        data = handler(self)
        for key in _FILE_ONLY_KEYS:
            if key in data and data[key] is None:
                del data[key]
        return data

    @property
    def is_folder(self) -> bool:
        return self.kind is NodeKind.FOLDER

    @property
    def is_file(self) -> bool:
        return self.kind is NodeKind.FILE


class StorageUsage(BaseModel):
    model_config = _WIRE_CONFIG

    used_bytes: float = Field(ge=0)
    used_label: str
    limit_bytes: int = Field(gt=0)
    limit_label: str
    percent_of_limit: float = Field(ge=0, le=100)


class FolderNode(BaseModel):
    model_config = _WIRE_CONFIG

    id: str
    name: str
    kind: NodeKind
    children: list[FolderNode] = Field(default_factory=list)


class ClientRef(BaseModel):
    """A client known to the practice; each one owns a folder under Clients."""

    model_config = _WIRE_CONFIG

    id: str
    name: str
    folder_id: str | None = None


class VaultListing(BaseModel):
    """What the host renders: the breadcrumb plus the visible entries."""

    model_config = _WIRE_CONFIG

    path: list[Node]
    items: list[Node]
    query: str | None = None
