"""Unit tests for compiler configuration loading."""

from __future__ import annotations

import typing as typ
from textwrap import dedent

import pytest

from rulebook.config import CompilerConfig, CompilerConfigError, load_compiler_config

if typ.TYPE_CHECKING:
    from pathlib import Path


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "rulebook.yaml"
    path.write_text(dedent(text).lstrip(), encoding="utf-8")
    return path


def test_no_path_returns_defaults() -> None:
    """Omitting the config file yields the default settings."""
    config = load_compiler_config(None)
    assert config == CompilerConfig()
    assert config.output.indent == 4
    assert config.schemes.structured["json"] == "json"
    assert "markdown" in config.schemes.text


def test_values_override_defaults(tmp_path: Path) -> None:
    """Every documented key is read from YAML."""
    path = _write(
        tmp_path,
        """
        encoding: utf-16
        glossary:
          strict: true
        output:
          indent: 2
          ensure_ascii: true
        schemes:
          structured:
            json: json
            frag: yaml
          text: [md]
        """,
    )
    config = load_compiler_config(path)
    assert config.encoding == "utf-16"
    assert config.strict_glossary is True
    assert config.output.indent == 2
    assert config.output.ensure_ascii is True
    assert config.schemes.structured == {"json": "json", "frag": "yaml"}
    assert config.schemes.text == ("md",)


def test_empty_file_returns_defaults(tmp_path: Path) -> None:
    """An empty YAML document behaves like no overrides."""
    assert load_compiler_config(_write(tmp_path, "")) == CompilerConfig()


def test_missing_file_is_reported(tmp_path: Path) -> None:
    """An explicit but missing path raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError):
        load_compiler_config(tmp_path / "absent.yaml")


def test_top_level_must_be_mapping(tmp_path: Path) -> None:
    """A YAML list at the top level is rejected."""
    with pytest.raises(TypeError):
        load_compiler_config(_write(tmp_path, "- a\n- b\n"))


@pytest.mark.parametrize(
    ("text", "fragment"),
    [
        ("output:\n  indent: -1\n", "output.indent"),
        ("output:\n  indent: true\n", "output.indent"),
        ("output:\n  ensure_ascii: maybe\n", "output.ensure_ascii"),
        ("glossary:\n  strict: 1\n", "glossary.strict"),
        ("encoding: klingon-8\n", "Unknown encoding"),
        ("schemes:\n  structured:\n    json: toml\n", "unknown format"),
        ("schemes:\n  structured:\n    a1: json\n", "alphabetic"),
        ("schemes:\n  text: markdown\n", "list of scheme names"),
        ("schemes:\n  text: [json]\n", "both structured and text"),
        ("output: 3\n", "'output' must be a mapping"),
    ],
)
def test_invalid_values_are_rejected(tmp_path: Path, text: str, fragment: str) -> None:
    """Bad settings raise CompilerConfigError naming the offending key."""
    with pytest.raises(CompilerConfigError) as excinfo:
        load_compiler_config(_write(tmp_path, text))
    assert fragment in str(excinfo.value), (
        f"expected {fragment!r} in error message, got {excinfo.value!s}"
    )
