"""Unit tests for building typed libraries from resolved trees."""

from __future__ import annotations

import pytest

from rulebook.models import Glossary, Library, LibraryFormatError, build_library


def test_absent_root_builds_empty_library() -> None:
    """``None`` is the explicit empty library."""
    assert build_library(None) == Library()


def test_library_fields_and_nested_sections() -> None:
    """Documents, nested sections, and the glossary keep authored order."""
    library = build_library(
        {
            "title": "Rules",
            "description": "All the rules.",
            "reference": {"version": "2024"},
            "appendices": {"tables": [1, 2]},
            "documents": [
                {
                    "id": "core",
                    "title": "Core",
                    "sections": [
                        {"id": "1", "sections": [{"id": "1.1"}, {"id": "1.2"}]},
                        {"id": 2, "reference": "R-2"},
                    ],
                }
            ],
            "glossary": {
                "title": "Terms",
                "entries": [
                    {"id": "pack", "title": "Pack", "aliases": ["the pack", "  "]}
                ],
            },
        }
    )

    document = library.documents[0]
    assert [section.id for section in document.sections] == ["1", "2"], (
        "expected integer ids to be stringified and order kept"
    )
    assert [child.id for child in document.sections[0].sections] == ["1.1", "1.2"]
    assert document.sections[1].reference == "R-2"
    assert library.appendices == {"tables": [1, 2]}
    assert library.glossary.title == "Terms"
    assert library.glossary.id == "glossary"
    assert library.glossary.entries[0].aliases == ("the pack",), (
        "expected blank aliases to be dropped"
    )


def test_missing_glossary_is_empty() -> None:
    """A library without a glossary gets an empty default one."""
    assert build_library({"documents": []}).glossary == Glossary()


def test_section_ids_only_need_to_be_unique_among_siblings() -> None:
    """The same id may appear under different parents."""
    library = build_library(
        {
            "documents": [
                {
                    "id": "core",
                    "sections": [
                        {"id": "a", "sections": [{"id": "intro"}]},
                        {"id": "b", "sections": [{"id": "intro"}]},
                    ],
                }
            ]
        }
    )
    assert len(library.documents[0].sections) == 2


@pytest.mark.parametrize(
    ("tree", "fragment"),
    [
        ({"documents": [{"id": "a"}, {"id": "a"}]}, "Duplicate document id 'a'"),
        (
            {"documents": [{"id": "a", "sections": [{"id": "s"}, {"id": "s"}]}]},
            "Duplicate section in a id 's'",
        ),
        (
            {"glossary": {"entries": [{"id": "x", "title": "X"}] * 2}},
            "Duplicate glossary entry id 'x'",
        ),
        ({"documents": [{"title": "No id"}]}, "needs a string 'id'"),
        ({"documents": [{"id": "../escape"}]}, "cannot be used as a path component"),
        ({"documents": [{"id": ".."}]}, "cannot be used as a path component"),
        ({"documents": {"id": "a"}}, "'documents' must be a list"),
        ({"documents": ["json:a.json"]}, "'documents[0]' must be a mapping"),
        ({"glossary": {"entries": [{"id": "x"}]}}, "needs a non-empty string 'title'"),
        (
            {"glossary": {"entries": [{"id": "x", "title": "X", "aliases": "y"}]}},
            "non-string 'aliases'",
        ),
        ([], "Library root must be a mapping"),
    ],
)
def test_malformed_trees_are_rejected(tree: object, fragment: str) -> None:
    """Shape problems raise LibraryFormatError with a descriptive message."""
    with pytest.raises(LibraryFormatError) as excinfo:
        build_library(tree)  # type: ignore[arg-type]
    assert fragment in str(excinfo.value), (
        f"expected {fragment!r} in error message, got {excinfo.value!s}"
    )
