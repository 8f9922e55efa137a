"""High-level orchestration for compiling a rules library.

The pipeline reads the root library file, inlines references, builds the
typed library, orders the glossary, link-compiles prose, and exports the
artifact tree. Each stage is a plain function of the previous stage's result;
nothing is shared between stages except the values passed along.

Example
-------
>>> from pathlib import Path
>>> from rulebook.pipeline import compile_library
>>> result = compile_library(Path("rules/library.json"), Path("public/rules"))  # doctest: +SKIP
>>> result.written[-1]  # doctest: +SKIP
PosixPath('public/rules/index.json')
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from rulebook.config import CompilerConfig
from rulebook.exporter import LibraryExporter
from rulebook.glossary import build_glossary
from rulebook.linker import compile_links
from rulebook.models import Library, build_library
from rulebook.resolver import ReferenceResolver
from rulebook.storage import FileSystemStorage

if typ.TYPE_CHECKING:
    from pathlib import Path

    from rulebook.storage import Storage


@dc.dataclass(frozen=True, slots=True)
class CompilationResult:
    """Outcome of a successful compilation run.

    Attributes
    ----------
    library : Library
        The resolved, glossary-ordered, link-compiled library.
    written : list[Path]
        Every artifact written, in write order.
    """

    library: Library
    written: list[Path]

    @property
    def glossary_cycles(self) -> tuple[tuple[str, ...], ...]:
        """Return glossary overlap cycles that were broken by id order."""
        return self.library.glossary.cycles


def load_library(
    source: Path,
    *,
    config: CompilerConfig | None = None,
    storage: Storage | None = None,
) -> Library:
    """Resolve ``source`` and return the library with an ordered glossary.

    The returned library is not link-compiled; :func:`compile_library` does that.
    """
    config = config or CompilerConfig()
    resolver = ReferenceResolver(storage or FileSystemStorage(), config)
    library = build_library(resolver.load(source))
    glossary = build_glossary(library.glossary, strict=config.strict_glossary)
    return dc.replace(library, glossary=glossary)


def compile_library(
    source: Path,
    destination: Path,
    *,
    config: CompilerConfig | None = None,
    storage: Storage | None = None,
    on_stage: typ.Callable[[str], None] | None = None,
) -> CompilationResult:
    """Compile the library at ``source`` into an artifact tree at ``destination``.

    Parameters
    ----------
    source : Path
        Root library file (JSON, or YAML when the suffix is ``.yaml``/``.yml``).
    destination : Path
        Output directory; it is cleared before anything is written.
    config : CompilerConfig, optional
        Compiler settings; defaults apply when omitted.
    storage : Storage, optional
        Storage used for reads and writes; the local filesystem by default.
    on_stage : Callable[[str], None], optional
        Called with a short progress label before each stage.

    Returns
    -------
    CompilationResult
        The compiled library and the written artifact paths.

    Raises
    ------
    OSError
        If a file cannot be read or the destination cannot be written.
    ReferenceResolutionError
        If a reference target is malformed or references form a cycle.
    LibraryFormatError
        If the library tree is malformed, or the glossary overlaps in a
        cycle while ``strict_glossary`` is enabled.
    """
    config = config or CompilerConfig()
    storage = storage or FileSystemStorage()
    notify = on_stage or (lambda _label: None)

    notify("Reading...")
    library = load_library(source, config=config, storage=storage)
    notify("Generating glossary links...")
    library = compile_links(library)
    notify("Writing to output...")
    written = LibraryExporter(storage, config).export(library, destination)
    return CompilationResult(library=library, written=written)


__all__ = ["CompilationResult", "compile_library", "load_library"]
