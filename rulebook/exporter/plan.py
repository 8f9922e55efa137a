"""Materialize a compiled library into a flat list of per-node artifacts.

Each document, section, and glossary entry becomes its own artifact holding
its own prose plus pointers to its immediate children. Index artifacts at the
library, documents, glossary, and appendices levels list their children with
titles and descendant counts so a viewer can render a table of contents and
fetch nodes one at a time.

Descendant counts are computed bottom-up while planning: a node's pointer is
only built after all of its children have been planned.

Layout
------
::

    index.json
    documents/index.json
    documents/<doc>/index.json
    documents/<doc>/sections/<section>/index.json
    documents/<doc>/sections/<section>/sections/<child>/index.json
    glossary/index.json
    glossary/entries/<entry>.json
    appendices/index.json
"""

from __future__ import annotations

import typing as typ
from pathlib import PurePosixPath

from rulebook._constants import (
    APPENDICES_DIR,
    DOCUMENTS_DIR,
    ENTRY_FILE_TEMPLATE,
    GLOSSARY_DIR,
    GLOSSARY_ENTRIES_DIR,
    INDEX_FILENAME,
    SECTIONS_DIR,
)

from .models import Artifact, NodePointer

if typ.TYPE_CHECKING:
    from rulebook.models import Document, Glossary, GlossaryEntry, Library, Section

ROOT_INDEX = PurePosixPath(INDEX_FILENAME)
DOCUMENTS_INDEX = PurePosixPath(DOCUMENTS_DIR, INDEX_FILENAME)
GLOSSARY_INDEX = PurePosixPath(GLOSSARY_DIR, INDEX_FILENAME)
APPENDICES_INDEX = PurePosixPath(APPENDICES_DIR, INDEX_FILENAME)


def descendant_count(node: Document | Section) -> int:
    """Return the number of sections strictly beneath ``node``."""
    return sum(1 + descendant_count(child) for child in node.sections)


def collection_count(pointers: typ.Iterable[NodePointer]) -> int:
    """Return the descendant count of a node whose children are ``pointers``."""
    return sum(1 + pointer.descendant_count for pointer in pointers)


def plan_artifacts(library: Library) -> list[Artifact]:
    """Return every artifact needed to represent ``library`` on disk.

    Children are always planned before their parents, so the returned list is
    in post-order and ends with the root ``index.json``.

    Examples
    --------
    >>> from rulebook.models import build_library
    >>> library = build_library({"documents": [{"id": "core"}]})
    >>> [str(artifact.path) for artifact in plan_artifacts(library)][-1]
    'index.json'
    """
    artifacts: list[Artifact] = []
    documents = _plan_documents(library.documents, artifacts)
    glossary = _plan_glossary(library.glossary, artifacts)
    appendices = _plan_appendices(library, artifacts)
    artifacts.append(
        Artifact(
            ROOT_INDEX,
            {
                "title": library.title,
                "description": library.description,
                "reference": library.reference,
                "descendant_count": collection_count(
                    (documents, appendices, glossary)
                ),
                "documents": documents.as_dict(),
                "appendices": appendices.as_dict(),
                "glossary": glossary.as_dict(),
            },
        )
    )
    return artifacts


def _plan_section(
    section: Section,
    directory: PurePosixPath,
    parent: PurePosixPath,
    artifacts: list[Artifact],
) -> NodePointer:
    path = directory / INDEX_FILENAME
    children = [
        _plan_section(child, directory / SECTIONS_DIR / child.id, path, artifacts)
        for child in section.sections
    ]
    count = collection_count(children)
    artifacts.append(
        Artifact(
            path,
            {
                "id": section.id,
                "title": section.title,
                "description": section.description,
                "reference": section.reference,
                "descendant_count": count,
                "parent": str(parent),
                "sections": [child.as_dict() for child in children],
            },
        )
    )
    return NodePointer(section.id, path, section.title, count)


def _plan_document(document: Document, artifacts: list[Artifact]) -> NodePointer:
    directory = PurePosixPath(DOCUMENTS_DIR, document.id)
    path = directory / INDEX_FILENAME
    children = [
        _plan_section(child, directory / SECTIONS_DIR / child.id, path, artifacts)
        for child in document.sections
    ]
    count = collection_count(children)
    artifacts.append(
        Artifact(
            path,
            {
                "id": document.id,
                "title": document.title,
                "description": document.description,
                "reference": document.reference,
                "descendant_count": count,
                "parent": str(DOCUMENTS_INDEX),
                "sections": [child.as_dict() for child in children],
            },
        )
    )
    return NodePointer(document.id, path, document.title, count)


def _plan_documents(
    documents: typ.Sequence[Document], artifacts: list[Artifact]
) -> NodePointer:
    pointers = [_plan_document(document, artifacts) for document in documents]
    count = collection_count(pointers)
    artifacts.append(
        Artifact(
            DOCUMENTS_INDEX,
            {
                "id": DOCUMENTS_DIR,
                "descendant_count": count,
                "parent": str(ROOT_INDEX),
                "documents": [pointer.as_dict() for pointer in pointers],
            },
        )
    )
    return NodePointer(DOCUMENTS_DIR, DOCUMENTS_INDEX, "Documents", count)


def _entry_payload(entry: GlossaryEntry) -> dict[str, typ.Any]:
    return {
        "id": entry.id,
        "title": entry.title,
        "aliases": list(entry.aliases),
        "description": entry.description,
        "reference": entry.reference,
        "matcher": entry.matcher.pattern if entry.matcher is not None else None,
        "conflicts": list(entry.conflicts),
        "parent": str(GLOSSARY_INDEX),
    }


def _plan_glossary(glossary: Glossary, artifacts: list[Artifact]) -> NodePointer:
    pointers: list[NodePointer] = []
    for entry in glossary.entries:
        path = PurePosixPath(
            GLOSSARY_DIR,
            GLOSSARY_ENTRIES_DIR,
            ENTRY_FILE_TEMPLATE.format(entry_id=entry.id),
        )
        artifacts.append(Artifact(path, _entry_payload(entry)))
        pointers.append(NodePointer(entry.id, path, entry.title, 0))
    count = len(pointers)
    artifacts.append(
        Artifact(
            GLOSSARY_INDEX,
            {
                "id": glossary.id,
                "title": glossary.title,
                "descendant_count": count,
                "parent": str(ROOT_INDEX),
                "cycles": [list(cycle) for cycle in glossary.cycles],
                "entries": [pointer.as_dict() for pointer in pointers],
            },
        )
    )
    return NodePointer(glossary.id, GLOSSARY_INDEX, glossary.title, count)


def _plan_appendices(library: Library, artifacts: list[Artifact]) -> NodePointer:
    artifacts.append(
        Artifact(
            APPENDICES_INDEX,
            {
                "id": APPENDICES_DIR,
                "descendant_count": 0,
                "parent": str(ROOT_INDEX),
                "appendices": library.appendices,
            },
        )
    )
    return NodePointer(APPENDICES_DIR, APPENDICES_INDEX, "Appendices", 0)


__all__ = [
    "APPENDICES_INDEX",
    "DOCUMENTS_INDEX",
    "GLOSSARY_INDEX",
    "ROOT_INDEX",
    "collection_count",
    "descendant_count",
    "plan_artifacts",
]
