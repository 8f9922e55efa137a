"""Typed dataclasses describing rulebook compiler configuration."""

from __future__ import annotations

import dataclasses as dc

from rulebook._constants import DEFAULT_STRUCTURED_SCHEMES, DEFAULT_TEXT_SCHEMES

STRUCTURED_FORMATS = ("json", "yaml")


class CompilerConfigError(ValueError):
    """Raised when the compiler configuration is invalid or incomplete."""


@dc.dataclass(slots=True)
class SchemeConfig:
    """Reference schemes recognized by the resolver.

    Attributes
    ----------
    structured : dict[str, str]
        Scheme token mapped to the structured format used to parse the target
        (``"json"`` or ``"yaml"``).
    text : tuple[str, ...]
        Scheme tokens whose targets are inlined verbatim as text.
    """

    structured: dict[str, str] = dc.field(
        default_factory=lambda: dict(DEFAULT_STRUCTURED_SCHEMES)
    )
    text: tuple[str, ...] = DEFAULT_TEXT_SCHEMES

    def is_reference(self, scheme: str) -> bool:
        """Return True when ``scheme`` names any configured reference scheme."""
        return scheme in self.structured or scheme in self.text


@dc.dataclass(slots=True)
class OutputConfig:
    """JSON formatting applied to written artifacts."""

    indent: int = 4
    ensure_ascii: bool = False


@dc.dataclass(slots=True)
class CompilerConfig:
    """Settings shared by every stage of a compilation run."""

    encoding: str = "utf-8"
    strict_glossary: bool = False
    output: OutputConfig = dc.field(default_factory=OutputConfig)
    schemes: SchemeConfig = dc.field(default_factory=SchemeConfig)


__all__ = [
    "STRUCTURED_FORMATS",
    "CompilerConfig",
    "CompilerConfigError",
    "OutputConfig",
    "SchemeConfig",
]
