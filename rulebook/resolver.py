r"""Inline externally stored fragments into one in-memory library tree.

Authors split large rule documents across files and point at them with
scheme-prefixed string scalars. ``"json:./appendix-a.json"`` (or ``yaml:``)
is replaced by the parsed and recursively resolved content of that file;
``"markdown:./intro.md"`` (or ``text:``) is replaced by the file's raw text.
Paths are resolved against the directory of the file holding the scalar.

Example
-------
>>> from pathlib import Path
>>> from rulebook.resolver import ReferenceResolver
>>> from rulebook.storage import FileSystemStorage
>>> resolver = ReferenceResolver(FileSystemStorage())
>>> tree = resolver.load(Path("rules/library.json"))  # doctest: +SKIP
"""

from __future__ import annotations

import json
import logging
import os
import re
import typing as typ
from pathlib import Path

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from rulebook.config import CompilerConfig

if typ.TYPE_CHECKING:
    from rulebook.storage import Storage

logger = logging.getLogger(__name__)

TreeValue: typ.TypeAlias = (
    str | int | float | bool | None | list["TreeValue"] | dict[str, "TreeValue"]
)

SCHEME_PATTERN = re.compile(r"^(?P<scheme>[A-Za-z]+):")
YAML_SUFFIXES = (".yaml", ".yml")


class ReferenceResolutionError(RuntimeError):
    """Raised when a reference target cannot be inlined."""


class ReferenceParseError(ReferenceResolutionError):
    """Raised when a reference target cannot be decoded or parsed."""

    def __init__(self, path: Path, detail: str) -> None:
        super().__init__(f"Could not parse '{path}': {detail}")
        self.path = path


class CyclicReferenceError(ReferenceResolutionError):
    """Raised when a structured reference points back into its own chain."""

    def __init__(self, chain: tuple[Path, ...]) -> None:
        rendered = " -> ".join(str(path) for path in chain)
        super().__init__(f"Cyclic reference detected: {rendered}")
        self.chain = chain


def parse_structured(data: bytes, fmt: str, *, path: Path, encoding: str) -> TreeValue:
    """Parse ``data`` as ``fmt`` (``"json"`` or ``"yaml"``).

    Empty or whitespace-only content parses to ``None`` so a blank fragment
    inlines as an absent value rather than failing the run.
    """
    try:
        text = data.decode(encoding)
    except UnicodeDecodeError as exc:
        raise ReferenceParseError(path, str(exc)) from exc
    if not text.strip():
        return None
    if fmt == "yaml":
        loader = YAML(typ="safe")
        loader.version = (1, 2)
        try:
            return loader.load(text)
        except YAMLError as exc:
            raise ReferenceParseError(path, str(exc)) from exc
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ReferenceParseError(path, str(exc)) from exc


def _format_for_path(path: Path) -> str:
    """Pick the structured format of a root file from its suffix."""
    return "yaml" if path.suffix.lower() in YAML_SUFFIXES else "json"


def _join(origin: Path, target: str) -> Path:
    """Resolve ``target`` against the directory holding ``origin``.

    Leading separators are dropped, so ``json:/appendix.json`` still names a
    file beside ``origin`` rather than one at the filesystem root.
    """
    relative = target.lstrip("/" + os.sep)
    return Path(os.path.normpath(origin.parent / relative))


class ReferenceResolver:
    """Resolve reference scalars transitively through a :class:`Storage`."""

    def __init__(self, storage: Storage, config: CompilerConfig | None = None) -> None:
        self.storage = storage
        self.config = config or CompilerConfig()

    def load(self, path: Path) -> TreeValue:
        """Read the root file at ``path`` and return its fully inlined tree.

        Returns
        -------
        TreeValue
            The resolved tree; an empty or ``null`` root yields ``{}``.

        Raises
        ------
        OSError
            If the root or any referenced file cannot be read.
        ReferenceParseError
            If structured content is malformed.
        CyclicReferenceError
            If a structured reference re-enters a file already in flight.
        """
        root = Path(os.path.normpath(path))
        tree = self._load_structured(root, _format_for_path(root), in_flight=())
        return {} if tree is None else tree

    def resolve(
        self,
        value: TreeValue,
        *,
        origin: Path,
        in_flight: tuple[Path, ...] = (),
    ) -> TreeValue:
        """Return ``value`` with every reference scalar replaced by its target.

        Parameters
        ----------
        value : TreeValue
            Tree to resolve; it is not mutated.
        origin : Path
            File that ``value`` was read from; relative targets resolve
            against its directory.
        in_flight : tuple[Path, ...]
            Structured files currently being resolved, outermost first.
        """
        match value:
            case dict():
                return {
                    key: self.resolve(item, origin=origin, in_flight=in_flight)
                    for key, item in value.items()
                }
            case list():
                return [
                    self.resolve(item, origin=origin, in_flight=in_flight)
                    for item in value
                ]
            case str():
                return self._resolve_scalar(value, origin=origin, in_flight=in_flight)
            case _:
                return value

    def _resolve_scalar(
        self, value: str, *, origin: Path, in_flight: tuple[Path, ...]
    ) -> TreeValue:
        match_ = SCHEME_PATTERN.match(value)
        if match_ is None:
            return value
        scheme = match_.group("scheme")
        schemes = self.config.schemes
        if not schemes.is_reference(scheme):
            return value
        target = _join(origin, value[match_.end() :])
        if scheme in schemes.structured:
            logger.debug("inlining %s reference %s from %s", scheme, target, origin)
            return self._load_structured(
                target, schemes.structured[scheme], in_flight=in_flight
            )
        logger.debug("inlining text reference %s from %s", target, origin)
        data = self.storage.read_bytes(target)
        try:
            return data.decode(self.config.encoding)
        except UnicodeDecodeError as exc:
            raise ReferenceParseError(target, str(exc)) from exc

    def _load_structured(
        self, path: Path, fmt: str, *, in_flight: tuple[Path, ...]
    ) -> TreeValue:
        if path in in_flight:
            raise CyclicReferenceError((*in_flight, path))
        data = self.storage.read_bytes(path)
        tree = parse_structured(data, fmt, path=path, encoding=self.config.encoding)
        return self.resolve(tree, origin=path, in_flight=(*in_flight, path))


__all__ = [
    "CyclicReferenceError",
    "ReferenceParseError",
    "ReferenceResolutionError",
    "ReferenceResolver",
    "TreeValue",
    "parse_structured",
]
