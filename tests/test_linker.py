"""Unit tests for glossary link compilation."""

from __future__ import annotations

import random

import pytest

from rulebook.glossary import build_glossary
from rulebook.linker import MARKER_PATTERN, compile_links, link_text
from rulebook.models import (
    Document,
    Glossary,
    GlossaryEntry,
    Library,
    Section,
)


def _entries(*entries: GlossaryEntry) -> tuple[GlossaryEntry, ...]:
    return build_glossary(Glossary(entries=entries)).entries


@pytest.fixture
def derby_entries() -> tuple[GlossaryEntry, ...]:
    """Return an ordered glossary with an overlapping generic/specific pair."""
    return _entries(
        GlossaryEntry(id="pack", title="Pack"),
        GlossaryEntry(id="pack-skater", title="Pack Skater"),
        GlossaryEntry(id="jammer", title="Jammer", aliases=["Jammers"]),
    )


def test_specific_term_is_linked_before_generic_term(
    derby_entries: tuple[GlossaryEntry, ...],
) -> None:
    """'Pack Skater' links whole; the standalone 'Pack' links to pack."""
    linked = link_text("The Pack Skater joined the Pack.", derby_entries)
    assert linked == "The $Pack Skater:pack-skater$ joined the $Pack:pack$.", (
        f"unexpected link output: {linked!r}"
    )


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Pack", "$Pack:pack$"),
        ("(pack)", "($pack:pack$)"),
        ("the pack, then", "the $pack:pack$, then"),
        ('"Pack"', '"$Pack:pack$"'),
        ("Packaging", "Packaging"),
        ("Pack Pack", "$Pack:pack$ $Pack:pack$"),
        ("Jammers score", "$Jammers:jammer$ score"),
    ],
)
def test_boundaries_and_case_are_preserved(
    derby_entries: tuple[GlossaryEntry, ...], text: str, expected: str
) -> None:
    """Only the term text is wrapped; surrounding characters stay put."""
    assert link_text(text, derby_entries) == expected


def test_single_occurrence_yields_one_marker(
    derby_entries: tuple[GlossaryEntry, ...],
) -> None:
    """A standalone term produces exactly one marker for its entry."""
    linked = link_text("Only the Jammer may score.", derby_entries)
    markers = [
        (match.group("text"), match.group("entry_id"))
        for match in MARKER_PATTERN.finditer(linked)
    ]
    assert markers == [("Jammer", "jammer")]
    assert linked.startswith("Only the ") and linked.endswith(" may score.")


def test_second_pass_is_a_no_op(derby_entries: tuple[GlossaryEntry, ...]) -> None:
    """Marker syntax never satisfies a later term match."""
    once = link_text("A Pack Skater and a Jammer leave the pack.", derby_entries)
    assert link_text(once, derby_entries) == once, (
        "expected link compilation to be idempotent on compiled text"
    )


def test_inner_words_of_markers_are_not_relinked() -> None:
    """A generic term inside an earlier multi-word marker is left alone."""
    entries = _entries(
        GlossaryEntry(id="red", title="Red"),
        GlossaryEntry(id="big-red-pack", title="Big Red Pack"),
    )
    linked = link_text("A Big Red Pack and red.", entries)
    assert linked == "A $Big Red Pack:big-red-pack$ and $red:red$.", (
        f"expected markers not to nest, got {linked!r}"
    )


def test_empty_entries_leave_text_unchanged() -> None:
    """No glossary entries means no substitution."""
    assert link_text("The Pack.", ()) == "The Pack."


def _library(entries: tuple[GlossaryEntry, ...]) -> Library:
    return Library(
        title="Rules",
        description="Every Jammer skates.",
        documents=(
            Document(
                id="core",
                description="The Pack Skater blocks.",
                sections=(
                    Section(
                        id="1",
                        description="Pack rules.",
                        sections=(
                            Section(id="1.1", description="Jammers lap the Pack."),
                            Section(id="1.2", description=42),
                            Section(id="1.3"),
                        ),
                    ),
                ),
            ),
        ),
        glossary=Glossary(entries=entries),
    )


def test_compile_links_rewrites_every_description(
    derby_entries: tuple[GlossaryEntry, ...],
) -> None:
    """Library, documents, nested sections, and entries are all rewritten."""
    entries = tuple(
        GlossaryEntry(
            id=entry.id,
            title=entry.title,
            aliases=entry.aliases,
            description=f"A {entry.title} is part of the Pack.",
            matcher=entry.matcher,
            conflicts=entry.conflicts,
        )
        for entry in derby_entries
    )
    compiled = compile_links(_library(entries))

    assert compiled.description == "Every $Jammer:jammer$ skates."
    document = compiled.documents[0]
    assert document.description == "The $Pack Skater:pack-skater$ blocks."
    section = document.sections[0]
    assert section.description == "$Pack:pack$ rules."
    assert section.sections[0].description == "$Jammers:jammer$ lap the $Pack:pack$."
    assert section.sections[1].description == 42, "non-string fields are skipped"
    assert section.sections[2].description is None, "absent fields stay absent"
    pack = next(entry for entry in compiled.glossary.entries if entry.id == "pack")
    assert pack.description == "A $Pack:pack$ is part of the $Pack:pack$.", (
        "expected glossary entries to link to themselves"
    )
    assert [entry.id for entry in compiled.glossary.entries] == [
        entry.id for entry in derby_entries
    ], "expected glossary order to be preserved"


def test_compile_links_without_glossary_is_a_no_op() -> None:
    """An empty glossary short-circuits the pass."""
    library = _library(())
    assert compile_links(library) is library


def test_compile_links_without_documents_is_a_no_op(
    derby_entries: tuple[GlossaryEntry, ...],
) -> None:
    """A library with no documents is returned untouched, glossary included."""
    library = Library(
        description="The Pack.", glossary=Glossary(entries=derby_entries)
    )
    assert compile_links(library) is library


def test_marker_shaped_prose_is_left_alone(
    derby_entries: tuple[GlossaryEntry, ...],
) -> None:
    """A literal '$...:...$' span reads as a marker, so its terms stay unlinked."""
    text = "Fee: $5 per Jammer: $10"
    assert link_text(text, derby_entries) == text


_VOCABULARY = (
    "Pack",
    "pack",
    "Skater",
    "Jam",
    "Jammer",
    "jammers",
    "Lead",
    "Star",
    "Pivot",
    "R+",
    "Rule (1.2)",
)
_SEPARATORS = (" ", ", ", ": ", "-", " (", ") ", ". ")


def _random_term(rng: random.Random) -> str:
    return " ".join(rng.choices(_VOCABULARY, k=rng.randint(1, 3)))


def _random_glossary(rng: random.Random) -> tuple[GlossaryEntry, ...]:
    return _entries(
        *(
            GlossaryEntry(
                id=f"e{index}",
                title=_random_term(rng),
                aliases=[_random_term(rng) for _ in range(rng.randint(0, 2))],
            )
            for index in range(rng.randint(1, 8))
        )
    )


def _random_prose(rng: random.Random) -> str:
    words = rng.choices(_VOCABULARY, k=rng.randint(5, 30))
    return "".join(word + rng.choice(_SEPARATORS) for word in words)


@pytest.mark.parametrize("seed", range(40))
def test_linking_random_overlapping_glossaries(seed: int) -> None:
    """Overlapping terms never nest markers, lose text, or relink on a second pass."""
    rng = random.Random(seed)
    entries = _random_glossary(rng)
    text = _random_prose(rng)

    once = link_text(text, entries)

    assert link_text(once, entries) == once, (
        f"expected a second pass to be a no-op for {text!r} with seed {seed}"
    )
    assert "$" not in MARKER_PATTERN.sub("", once), (
        f"expected every sentinel to belong to a whole marker, got {once!r}"
    )
    assert MARKER_PATTERN.sub(lambda match: match.group("text"), once) == text, (
        f"expected unwrapping markers to restore the prose, got {once!r}"
    )
