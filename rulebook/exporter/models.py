"""Shared dataclasses used by the artifact export pipeline."""

from __future__ import annotations

import dataclasses as dc
import typing as typ
from pathlib import PurePosixPath


@dc.dataclass(frozen=True, slots=True)
class Artifact:
    """One structured file to write beneath the destination root.

    Attributes
    ----------
    path : PurePosixPath
        Location relative to the destination root.
    payload : dict[str, Any]
        JSON-serializable content of the artifact.
    """

    path: PurePosixPath
    payload: dict[str, typ.Any]


@dc.dataclass(frozen=True, slots=True)
class NodePointer:
    """Table-of-contents entry pointing at a child artifact.

    Attributes
    ----------
    id : str
        Child identifier.
    path : PurePosixPath
        Child artifact location relative to the destination root.
    title : Any
        Child display title.
    descendant_count : int
        Number of nodes strictly beneath the child.
    """

    id: str
    path: PurePosixPath
    title: typ.Any
    descendant_count: int

    def as_dict(self) -> dict[str, typ.Any]:
        """Return the JSON form embedded in parent artifacts."""
        return {
            "id": self.id,
            "path": str(self.path),
            "title": self.title,
            "descendant_count": self.descendant_count,
        }


__all__ = ["Artifact", "NodePointer"]
