"""Build term matchers and a conflict-aware application order for a glossary.

Glossary terms are linked into prose one entry at a time, so the order in
which entries are applied matters. A generic term such as "Pack" also matches
inside the name of a more specific term such as "Pack Skater"; applying
"Pack" first would split "Pack Skater" before it could be linked whole.

The builder records those overlaps as *conflicts* and turns them into a
partial order: an entry whose matcher fires on another entry's own title or
aliases is applied after that entry. Entries with no ordering constraint
between them fall back to id order so the result is deterministic.

Example
-------
>>> from rulebook.glossary import build_glossary
>>> from rulebook.models import Glossary, GlossaryEntry
>>> raw = Glossary(entries=(
...     GlossaryEntry(id="pack", title="Pack"),
...     GlossaryEntry(id="pack-skater", title="Pack Skater"),
... ))
>>> [entry.id for entry in build_glossary(raw).entries]
['pack-skater', 'pack']
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import heapq
import logging
import re

from rulebook._constants import MARKER_SENTINEL
from rulebook.models import Glossary, GlossaryEntry, LibraryFormatError

logger = logging.getLogger(__name__)

_NOT_BOUNDARY = rf"[\w{re.escape(MARKER_SENTINEL)}]"
TERM_START = rf"(?<!{_NOT_BOUNDARY})"
TERM_END = rf"(?!{_NOT_BOUNDARY})"


class GlossaryCycleError(LibraryFormatError):
    """Raised in strict mode when glossary overlaps form a cycle."""

    def __init__(self, cycle: tuple[str, ...]) -> None:
        super().__init__(
            "Glossary entries overlap in a cycle: " + ", ".join(cycle)
        )
        self.cycle = cycle


def build_matcher(title: str, aliases: cabc.Iterable[str] = ()) -> re.Pattern[str]:
    """Return a case-insensitive whole-word matcher for a term and its aliases.

    Terms are escaped so they match literally. Longer terms come first in the
    alternation so one entry's longer alias wins over its shorter title at the
    same position. A match must be bounded by start/end of text or by a
    non-word character other than the marker sentinel, so ``Pack`` does not
    match inside ``Packaging`` or directly after a ``$``.
    """
    terms = sorted({title, *aliases}, key=lambda term: (-len(term), term))
    alternation = "|".join(re.escape(term) for term in terms if term)
    return re.compile(f"{TERM_START}(?:{alternation}){TERM_END}", re.IGNORECASE)


def attach_matchers(entries: cabc.Iterable[GlossaryEntry]) -> list[GlossaryEntry]:
    """Return copies of ``entries`` carrying their compiled matchers."""
    return [
        dc.replace(entry, matcher=build_matcher(entry.title, entry.aliases))
        for entry in entries
    ]


def detect_conflicts(entries: cabc.Sequence[GlossaryEntry]) -> list[GlossaryEntry]:
    """Return copies of ``entries`` with their ``conflicts`` filled in.

    Entry E lists F when E's matcher matches F's title or any of F's aliases.
    Conflict ids are sorted for stable output.
    """
    decorated: list[GlossaryEntry] = []
    for entry in entries:
        matcher = entry.matcher or build_matcher(entry.title, entry.aliases)
        conflicts = sorted(
            other.id
            for other in entries
            if other.id != entry.id
            and any(matcher.search(term) for term in other.terms)
        )
        decorated.append(
            dc.replace(entry, matcher=matcher, conflicts=tuple(conflicts))
        )
    return decorated


def _components(
    nodes: cabc.Set[str], successors: cabc.Mapping[str, set[str]]
) -> list[frozenset[str]]:
    """Return the strongly connected components of the graph induced on ``nodes``.

    Iterative Tarjan; nodes and edges are visited in id order so the result is
    deterministic.
    """
    index: dict[str, int] = {}
    low: dict[str, int] = {}
    stack: list[str] = []
    on_stack: set[str] = set()
    components: list[frozenset[str]] = []

    def visit(node: str) -> cabc.Iterator[str]:
        index[node] = low[node] = len(index)
        stack.append(node)
        on_stack.add(node)
        return iter(sorted(successors[node] & nodes))

    for root in sorted(nodes):
        if root in index:
            continue
        work = [(root, visit(root))]
        while work:
            node, children = work[-1]
            for child in children:
                if child not in index:
                    work.append((child, visit(child)))
                    break
                if child in on_stack:
                    low[node] = min(low[node], index[child])
            else:
                work.pop()
                if work:
                    parent = work[-1][0]
                    low[parent] = min(low[parent], low[node])
                if low[node] == index[node]:
                    component: set[str] = set()
                    while True:
                        member = stack.pop()
                        on_stack.discard(member)
                        component.add(member)
                        if member == node:
                            break
                    components.append(frozenset(component))
    return components


def _source_cycle(
    remaining: cabc.Set[str],
    successors: cabc.Mapping[str, set[str]],
    blockers: cabc.Mapping[str, set[str]],
) -> frozenset[str]:
    """Return the cycle that must be broken when no entry is ready.

    Only a component blocked by nothing outside itself can be broken without
    violating a satisfiable constraint. When several qualify, the one holding
    the smallest id wins.
    """
    sources = [
        component
        for component in _components(remaining, successors)
        if all(blockers[member] <= component for member in component)
    ]
    return min(sources, key=min)


def order_entries(
    entries: cabc.Sequence[GlossaryEntry], *, strict: bool = False
) -> tuple[list[GlossaryEntry], list[tuple[str, ...]]]:
    """Order entries so that overlapped terms are applied before overlapping ones.

    Every conflict ``F in E.conflicts`` adds the constraint "F before E". The
    constraints are resolved with a topological sort that always releases the
    smallest ready id, so unconstrained entries keep plain id order.

    When every remaining entry is blocked, the entries that block each other
    form a cycle. The cycle chosen is a strongly connected component that
    nothing outside it blocks; its smallest id is released, and entries merely
    downstream of the cycle keep their constraints.

    Parameters
    ----------
    entries : Sequence[GlossaryEntry]
        Entries with ``conflicts`` already detected.
    strict : bool, optional
        Raise :class:`GlossaryCycleError` instead of breaking cycles.

    Returns
    -------
    tuple[list[GlossaryEntry], list[tuple[str, ...]]]
        The ordered entries and the cycles that had to be broken. Each cycle
        is reported once, as the sorted ids of its component.
    """
    by_id = {entry.id: entry for entry in entries}
    successors: dict[str, set[str]] = {entry_id: set() for entry_id in by_id}
    blockers: dict[str, set[str]] = {entry_id: set() for entry_id in by_id}
    for entry in entries:
        for other_id in entry.conflicts:
            if other_id in by_id:
                successors[other_id].add(entry.id)
                blockers[entry.id].add(other_id)

    ready = [entry_id for entry_id, pending in blockers.items() if not pending]
    heapq.heapify(ready)
    remaining = set(by_id)
    ordered: list[GlossaryEntry] = []
    cycles: list[tuple[str, ...]] = []
    broken: list[frozenset[str]] = []

    while remaining:
        if ready:
            entry_id = heapq.heappop(ready)
        else:
            component = _source_cycle(remaining, successors, blockers)
            entry_id = min(component)
            if not any(component <= seen for seen in broken):
                cycle = tuple(sorted(component))
                if strict:
                    raise GlossaryCycleError(cycle)
                logger.warning(
                    "glossary entries overlap in a cycle, applying %s first: %s",
                    entry_id,
                    ", ".join(cycle),
                )
                cycles.append(cycle)
                broken.append(component)
            blockers[entry_id].clear()
        remaining.discard(entry_id)
        ordered.append(by_id[entry_id])
        for successor in sorted(successors[entry_id]):
            pending = blockers[successor]
            if entry_id not in pending:
                continue
            pending.discard(entry_id)
            if not pending and successor in remaining:
                heapq.heappush(ready, successor)
    return ordered, cycles


def build_glossary(glossary: Glossary, *, strict: bool = False) -> Glossary:
    """Decorate ``glossary`` entries with matchers and conflicts, then order them.

    Raises
    ------
    GlossaryCycleError
        When ``strict`` is set and the entries overlap in a cycle.
    """
    decorated = detect_conflicts(attach_matchers(glossary.entries))
    ordered, cycles = order_entries(decorated, strict=strict)
    return dc.replace(glossary, entries=tuple(ordered), cycles=tuple(cycles))


__all__ = [
    "GlossaryCycleError",
    "TERM_END",
    "TERM_START",
    "attach_matchers",
    "build_glossary",
    "build_matcher",
    "detect_conflicts",
    "order_entries",
]
