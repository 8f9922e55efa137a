"""Typed, immutable dataclasses describing a compiled rules library.

The resolver produces an untyped tree of mappings, sequences, and scalars.
:func:`build_library` validates that tree once and turns it into the
:class:`Library` value that the glossary builder, link compiler, and exporter
pass along. Stages never mutate a library; they return a new one with
``dataclasses.replace``.

Example
-------
>>> from rulebook.models import build_library
>>> library = build_library({"title": "Rules", "documents": [{"id": "core"}]})
>>> library.documents[0].id
'core'
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import typing as typ

from rulebook._constants import DEFAULT_GLOSSARY_ID, DEFAULT_GLOSSARY_TITLE

if typ.TYPE_CHECKING:
    import re

    from rulebook.resolver import TreeValue

UNSAFE_ID_CHARACTERS = ("/", "\\", "\x00")


class LibraryFormatError(ValueError):
    """Raised when the resolved library tree has an invalid shape."""


@dc.dataclass(frozen=True, slots=True)
class Section:
    """A titled block of rules with its own nested sections.

    Attributes
    ----------
    id : str
        Identifier unique among the section's siblings.
    title : TreeValue
        Display title, normally a string.
    description : TreeValue
        Prose body; only string values are link-compiled.
    reference : TreeValue
        Optional external-reference id, passed through untouched.
    sections : tuple[Section, ...]
        Child sections in authored order.
    """

    id: str
    title: TreeValue = None
    description: TreeValue = None
    reference: TreeValue = None
    sections: tuple[Section, ...] = ()


@dc.dataclass(frozen=True, slots=True)
class Document:
    """A top-level rules document owned by the library."""

    id: str
    title: TreeValue = None
    description: TreeValue = None
    reference: TreeValue = None
    sections: tuple[Section, ...] = ()


@dc.dataclass(frozen=True, slots=True)
class GlossaryEntry:
    """A defined term that other prose can link to.

    Attributes
    ----------
    id : str
        Stable cross-reference key written into link markers.
    title : str
        Canonical term.
    aliases : tuple[str, ...]
        Alternative spellings recognized in prose.
    description : TreeValue
        Definition prose.
    reference : TreeValue
        Optional source metadata, passed through untouched.
    matcher : re.Pattern[str] or None
        Compiled term matcher, attached by the glossary builder.
    conflicts : tuple[str, ...]
        Ids of other entries whose own title or aliases this entry's matcher
        also matches.
    """

    id: str
    title: str
    aliases: tuple[str, ...] = ()
    description: TreeValue = None
    reference: TreeValue = None
    matcher: re.Pattern[str] | None = None
    conflicts: tuple[str, ...] = ()

    @property
    def terms(self) -> tuple[str, ...]:
        """Return the title followed by every alias."""
        return (self.title, *self.aliases)


@dc.dataclass(frozen=True, slots=True)
class Glossary:
    """Glossary entries in the order they are applied to prose.

    ``cycles`` lists groups of entry ids whose overlaps could not be ordered
    without breaking a cycle; it is empty for well-formed glossaries.
    """

    id: str = DEFAULT_GLOSSARY_ID
    title: TreeValue = DEFAULT_GLOSSARY_TITLE
    entries: tuple[GlossaryEntry, ...] = ()
    cycles: tuple[tuple[str, ...], ...] = ()


@dc.dataclass(frozen=True, slots=True)
class Library:
    """Root of a rules library; exactly one per compilation run."""

    title: TreeValue = None
    description: TreeValue = None
    reference: TreeValue = None
    documents: tuple[Document, ...] = ()
    appendices: TreeValue = None
    glossary: Glossary = dc.field(default_factory=Glossary)


def build_library(tree: TreeValue) -> Library:
    """Build a :class:`Library` from a resolved tree.

    The glossary is returned in authored order without matchers; pass the
    library through :func:`rulebook.glossary.build_glossary` to decorate and
    order it.

    Raises
    ------
    LibraryFormatError
        If the root is not a mapping, a collection has the wrong shape, an id
        is missing or unusable as a path component, or sibling ids repeat.
    """
    if tree is None:
        return Library()
    if not isinstance(tree, cabc.Mapping):
        msg = "Library root must be a mapping."
        raise LibraryFormatError(msg)
    documents = tuple(
        _build_document(payload)
        for payload in _mapping_items(tree.get("documents"), "documents")
    )
    _require_unique((document.id for document in documents), "document")
    return Library(
        title=tree.get("title"),
        description=tree.get("description"),
        reference=tree.get("reference"),
        documents=documents,
        appendices=tree.get("appendices"),
        glossary=_build_raw_glossary(tree.get("glossary")),
    )


def _mapping_items(
    value: TreeValue, label: str
) -> list[cabc.Mapping[str, TreeValue]]:
    """Return ``value`` as a list of mappings, treating ``None`` as empty."""
    if value is None:
        return []
    if not isinstance(value, list):
        msg = f"'{label}' must be a list."
        raise LibraryFormatError(msg)
    items: list[cabc.Mapping[str, TreeValue]] = []
    for index, item in enumerate(value):
        if not isinstance(item, cabc.Mapping):
            msg = f"'{label}[{index}]' must be a mapping."
            raise LibraryFormatError(msg)
        items.append(item)
    return items


def _node_id(payload: cabc.Mapping[str, TreeValue], label: str) -> str:
    """Return a validated node id usable as a single path component."""
    raw = payload.get("id")
    if isinstance(raw, bool) or not isinstance(raw, (str, int)):
        msg = f"Every {label} needs a string 'id', got {raw!r}."
        raise LibraryFormatError(msg)
    node_id = str(raw)
    if (
        not node_id.strip()
        or node_id in {".", ".."}
        or any(char in node_id for char in UNSAFE_ID_CHARACTERS)
    ):
        msg = f"The {label} id {node_id!r} cannot be used as a path component."
        raise LibraryFormatError(msg)
    return node_id


def _require_unique(ids: cabc.Iterable[str], label: str) -> None:
    seen: set[str] = set()
    for node_id in ids:
        if node_id in seen:
            msg = f"Duplicate {label} id '{node_id}'."
            raise LibraryFormatError(msg)
        seen.add(node_id)


def _build_sections(value: TreeValue, label: str) -> tuple[Section, ...]:
    sections = tuple(
        _build_section(payload, label) for payload in _mapping_items(value, label)
    )
    _require_unique((section.id for section in sections), f"section in {label}")
    return sections


def _build_section(payload: cabc.Mapping[str, TreeValue], parent: str) -> Section:
    section_id = _node_id(payload, f"section in {parent}")
    return Section(
        id=section_id,
        title=payload.get("title"),
        description=payload.get("description"),
        reference=payload.get("reference"),
        sections=_build_sections(payload.get("sections"), f"{parent}/{section_id}"),
    )


def _build_document(payload: cabc.Mapping[str, TreeValue]) -> Document:
    document_id = _node_id(payload, "document")
    return Document(
        id=document_id,
        title=payload.get("title"),
        description=payload.get("description"),
        reference=payload.get("reference"),
        sections=_build_sections(payload.get("sections"), document_id),
    )


def _build_raw_glossary(value: TreeValue) -> Glossary:
    """Build an undecorated glossary in authored order."""
    if value is None:
        return Glossary()
    if not isinstance(value, cabc.Mapping):
        msg = "'glossary' must be a mapping."
        raise LibraryFormatError(msg)
    entries = tuple(
        build_entry(payload)
        for payload in _mapping_items(value.get("entries"), "glossary.entries")
    )
    _require_unique((entry.id for entry in entries), "glossary entry")
    glossary_id = (
        _node_id(value, "glossary") if value.get("id") is not None else DEFAULT_GLOSSARY_ID
    )
    return Glossary(
        id=glossary_id,
        title=value.get("title", DEFAULT_GLOSSARY_TITLE),
        entries=entries,
    )


def build_entry(payload: cabc.Mapping[str, TreeValue]) -> GlossaryEntry:
    """Build a glossary entry from one raw term definition."""
    entry_id = _node_id(payload, "glossary entry")
    title = payload.get("title")
    if not isinstance(title, str) or not title.strip():
        msg = f"Glossary entry '{entry_id}' needs a non-empty string 'title'."
        raise LibraryFormatError(msg)
    aliases_raw = payload.get("aliases") or []
    if not isinstance(aliases_raw, list) or not all(
        isinstance(alias, str) for alias in aliases_raw
    ):
        msg = f"Glossary entry '{entry_id}' has non-string 'aliases'."
        raise LibraryFormatError(msg)
    return GlossaryEntry(
        id=entry_id,
        title=title,
        aliases=tuple(alias for alias in aliases_raw if alias.strip()),
        description=payload.get("description"),
        reference=payload.get("reference"),
    )


__all__ = [
    "Document",
    "Glossary",
    "GlossaryEntry",
    "Library",
    "LibraryFormatError",
    "Section",
    "build_entry",
    "build_library",
]
