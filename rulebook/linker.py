"""Rewrite library prose so glossary terms carry cross-reference markers.

Every recognized term occurrence is wrapped as ``$<matched text>:<entry id>$``.
Entries are applied one after another in glossary order over the current
text. Markers written by an earlier entry are skipped whole by later entries,
so markers never nest and a second pass over compiled text changes nothing.

The ``$`` sentinel is reserved. Authored prose holding a span shaped like a
marker, such as ``$5 per Jammer: $``, is taken for an existing marker and the
terms inside it are left unlinked.

Example
-------
>>> from rulebook.glossary import build_glossary
>>> from rulebook.linker import link_text
>>> from rulebook.models import Glossary, GlossaryEntry
>>> glossary = build_glossary(Glossary(entries=(
...     GlossaryEntry(id="pack", title="Pack"),
...     GlossaryEntry(id="pack-skater", title="Pack Skater"),
... )))
>>> link_text("The Pack Skater joined the Pack.", glossary.entries)
'The $Pack Skater:pack-skater$ joined the $Pack:pack$.'
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import re
import typing as typ

from rulebook._constants import MARKER_SENTINEL, MARKER_TEMPLATE
from rulebook.glossary import build_matcher

if typ.TYPE_CHECKING:
    from rulebook.models import Document, GlossaryEntry, Library, Section
    from rulebook.resolver import TreeValue

_SENTINEL = re.escape(MARKER_SENTINEL)
MARKER_PATTERN = re.compile(
    rf"{_SENTINEL}(?P<text>[^{_SENTINEL}]+):(?P<entry_id>[^{_SENTINEL}:]+){_SENTINEL}"
)


def format_marker(text: str, entry_id: str) -> str:
    """Return the cross-reference marker for ``text`` linked to ``entry_id``."""
    return MARKER_TEMPLATE.format(text=text, entry_id=entry_id)


def _entry_scanner(entry: GlossaryEntry) -> re.Pattern[str]:
    """Combine existing-marker skipping with the entry's term matcher.

    Alternation is tried left to right at each position, so a marker starting
    at the scan position is consumed whole before the term can match inside it.
    """
    matcher = entry.matcher or build_matcher(entry.title, entry.aliases)
    return re.compile(
        f"(?P<marker>{MARKER_PATTERN.pattern})|(?P<term>{matcher.pattern})",
        matcher.flags,
    )


def _substitute(text: str, entry_id: str, scanner: re.Pattern[str]) -> str:
    def replace(match: re.Match[str]) -> str:
        term = match.group("term")
        if term is None:
            return match.group(0)
        return format_marker(term, entry_id)

    return scanner.sub(replace, text)


def link_text(text: str, entries: cabc.Sequence[GlossaryEntry]) -> str:
    """Link every glossary term in ``text``, applying ``entries`` in order."""
    for entry in entries:
        text = _substitute(text, entry.id, _entry_scanner(entry))
    return text


class _FieldLinker:
    """Apply a fixed glossary to description fields, reusing compiled scanners."""

    def __init__(self, entries: cabc.Sequence[GlossaryEntry]) -> None:
        self.scanners = [(entry.id, _entry_scanner(entry)) for entry in entries]

    def __call__(self, value: TreeValue) -> TreeValue:
        if not isinstance(value, str):
            return value
        for entry_id, scanner in self.scanners:
            value = _substitute(value, entry_id, scanner)
        return value

    def section(self, section: Section) -> Section:
        return dc.replace(
            section,
            description=self(section.description),
            sections=tuple(self.section(child) for child in section.sections),
        )

    def document(self, document: Document) -> Document:
        return dc.replace(
            document,
            description=self(document.description),
            sections=tuple(self.section(child) for child in document.sections),
        )


def compile_links(library: Library) -> Library:
    """Return ``library`` with every description field link-compiled.

    The library description is rewritten first, then each document and its
    sections depth-first in pre-order, then each glossary entry's own
    description. A library without glossary entries or without documents is
    returned unchanged.
    """
    entries = library.glossary.entries
    if not entries or not library.documents:
        return library
    link = _FieldLinker(entries)
    description = link(library.description)
    documents = tuple(link.document(document) for document in library.documents)
    linked_entries = tuple(
        dc.replace(entry, description=link(entry.description)) for entry in entries
    )
    return dc.replace(
        library,
        description=description,
        documents=documents,
        glossary=dc.replace(library.glossary, entries=linked_entries),
    )


__all__ = ["MARKER_PATTERN", "compile_links", "format_marker", "link_text"]
