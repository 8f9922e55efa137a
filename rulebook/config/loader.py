"""Load compiler configuration YAML into typed dataclasses."""

from __future__ import annotations

import codecs
import collections.abc as cabc
import typing as typ

from ruamel.yaml import YAML

from .models import (
    STRUCTURED_FORMATS,
    CompilerConfig,
    CompilerConfigError,
    OutputConfig,
    SchemeConfig,
)

if typ.TYPE_CHECKING:
    from pathlib import Path


def load_compiler_config(path: Path | None) -> CompilerConfig:
    """Load the YAML file describing compiler settings.

    Parameters
    ----------
    path : Path or None
        Filesystem path to the configuration file (for example,
        ``rulebook.yaml``). ``None`` returns the defaults.

    Returns
    -------
    CompilerConfig
        Parsed configuration with defaults applied for omitted keys.

    Raises
    ------
    FileNotFoundError
        If ``path`` is given but does not exist.
    TypeError
        If the top-level YAML structure is not a mapping.
    CompilerConfigError
        If a value has the wrong type or an unsupported setting.
    YAMLError
        If the YAML content cannot be parsed by the underlying loader.

    Examples
    --------
    >>> from rulebook.config import load_compiler_config
    >>> load_compiler_config(None).output.indent
    4
    """
    if path is None:
        return CompilerConfig()
    if not path.exists():
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        loaded = loader.load(handle) or {}
    if not isinstance(loaded, dict):
        msg = "Top-level YAML structure must be a mapping."
        raise TypeError(msg)
    raw: dict[str, typ.Any] = dict(loaded)

    base = CompilerConfig()
    encoding = raw.get("encoding", base.encoding)
    _require_encoding(encoding)
    glossary_raw = _section(raw, "glossary")
    strict_glossary = glossary_raw.get("strict", base.strict_glossary)
    if not isinstance(strict_glossary, bool):
        msg = "'glossary.strict' must be a boolean."
        raise CompilerConfigError(msg)

    return CompilerConfig(
        encoding=encoding,
        strict_glossary=strict_glossary,
        output=_build_output_config(_section(raw, "output")),
        schemes=_build_scheme_config(_section(raw, "schemes")),
    )


def _section(raw: typ.Mapping[str, typ.Any], key: str) -> typ.Mapping[str, typ.Any]:
    """Return the mapping stored under ``key`` or an empty mapping."""
    value = raw.get(key) or {}
    if not isinstance(value, cabc.Mapping):
        msg = f"'{key}' must be a mapping."
        raise CompilerConfigError(msg)
    return value


def _require_encoding(value: object) -> None:
    """Reject encodings Python does not know about."""
    if not isinstance(value, str):
        msg = "'encoding' must be a string."
        raise CompilerConfigError(msg)
    try:
        codecs.lookup(value)
    except LookupError as exc:
        msg = f"Unknown encoding '{value}'."
        raise CompilerConfigError(msg) from exc


def _build_output_config(payload: typ.Mapping[str, typ.Any]) -> OutputConfig:
    """Build an OutputConfig from the ``output`` mapping."""
    base = OutputConfig()
    indent = payload.get("indent", base.indent)
    # bool is an int subclass; "indent: true" is a typo, not a width
    if isinstance(indent, bool) or not isinstance(indent, int) or indent < 0:
        msg = "'output.indent' must be a non-negative integer."
        raise CompilerConfigError(msg)
    ensure_ascii = payload.get("ensure_ascii", base.ensure_ascii)
    if not isinstance(ensure_ascii, bool):
        msg = "'output.ensure_ascii' must be a boolean."
        raise CompilerConfigError(msg)
    return OutputConfig(indent=indent, ensure_ascii=ensure_ascii)


def _build_scheme_config(payload: typ.Mapping[str, typ.Any]) -> SchemeConfig:
    """Build a SchemeConfig, validating scheme tokens and formats."""
    base = SchemeConfig()
    structured_raw = payload.get("structured")
    structured = dict(base.structured)
    if structured_raw is not None:
        if not isinstance(structured_raw, cabc.Mapping):
            msg = "'schemes.structured' must map scheme names to formats."
            raise CompilerConfigError(msg)
        structured = {}
        for scheme, fmt in structured_raw.items():
            _require_scheme(scheme)
            if fmt not in STRUCTURED_FORMATS:
                allowed = ", ".join(STRUCTURED_FORMATS)
                msg = f"Scheme '{scheme}' uses unknown format '{fmt}' (expected {allowed})."
                raise CompilerConfigError(msg)
            structured[scheme] = fmt

    text_raw = payload.get("text")
    text = base.text
    if text_raw is not None:
        if isinstance(text_raw, str) or not isinstance(text_raw, cabc.Sequence):
            msg = "'schemes.text' must be a list of scheme names."
            raise CompilerConfigError(msg)
        for scheme in text_raw:
            _require_scheme(scheme)
        text = tuple(text_raw)

    overlap = sorted(set(structured) & set(text))
    if overlap:
        msg = f"Schemes cannot be both structured and text: {', '.join(overlap)}."
        raise CompilerConfigError(msg)
    return SchemeConfig(structured=structured, text=text)


def _require_scheme(value: object) -> None:
    """Scheme tokens are purely alphabetic, matching how paths are extracted."""
    if not isinstance(value, str) or not value.isascii() or not value.isalpha():
        msg = f"Scheme names must be alphabetic, got {value!r}."
        raise CompilerConfigError(msg)


__all__ = ["load_compiler_config"]
