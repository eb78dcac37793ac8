"""Patch data model for rewriting rendered manifests.

A Patch targets every resource of a kind (or one named resource) and carries
RFC 6902 style operations addressed by RFC 6901 JSON pointers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class PatchOp(str, Enum):
    """Operations a patch may perform."""

    ADD = "add"
    REPLACE = "replace"
    REMOVE = "remove"


_MISSING: Any = object()


def escape_segment(segment: str) -> str:
    """Escape one JSON pointer segment (``~`` then ``/``)."""
    return segment.replace("~", "~0").replace("/", "~1")


def unescape_segment(segment: str) -> str:
    """Unescape one JSON pointer segment.

    ``~1`` is decoded before ``~0`` so that ``~01`` becomes ``~1``.
    """
    return segment.replace("~1", "/").replace("~0", "~")


def split_pointer(path: str) -> list[str]:
    """Split a JSON pointer into unescaped segments."""
    trimmed = path[1:] if path.startswith("/") else path
    if not trimmed:
        return []
    return [unescape_segment(part) for part in trimmed.split("/")]


@dataclass(frozen=True)
class PatchTarget:
    """Resources a patch applies to.

    An empty ``name`` matches every resource of ``kind``.
    """

    kind: str
    name: str = ""


@dataclass(frozen=True)
class PatchOperation:
    """A single add/replace/remove operation.

    ``value`` is required for add and replace and forbidden for remove.
    """

    op: PatchOp
    path: str
    value: Any = _MISSING

    def __post_init__(self) -> None:
        op = PatchOp(self.op)
        object.__setattr__(self, "op", op)
        if not self.path.startswith("/"):
            raise ValueError(f"Patch path must be a JSON pointer, got '{self.path}'")
        if op is PatchOp.REMOVE and self.has_value:
            raise ValueError(f"remove operation on '{self.path}' must not carry a value")
        if op is not PatchOp.REMOVE and not self.has_value:
            raise ValueError(f"{op.value} operation on '{self.path}' requires a value")

    @property
    def has_value(self) -> bool:
        return self.value is not _MISSING

    def to_json_patch(self) -> dict[str, Any]:
        entry: dict[str, Any] = {"op": self.op.value, "path": self.path}
        if self.op is not PatchOp.REMOVE:
            entry["value"] = self.value
        return entry

    @classmethod
    def add(cls, path: str, value: Any) -> PatchOperation:
        return cls(PatchOp.ADD, path, value)

    @classmethod
    def replace(cls, path: str, value: Any) -> PatchOperation:
        return cls(PatchOp.REPLACE, path, value)

    @classmethod
    def remove(cls, path: str) -> PatchOperation:
        return cls(PatchOp.REMOVE, path)


@dataclass(frozen=True)
class Patch:
    """Operations applied to every resource matching ``target``."""

    target: PatchTarget
    operations: list[PatchOperation] = field(default_factory=list)
