"""Cyclopts CLI entrypoint for compiling rules libraries.

The ``rulebook`` console script defined here compiles a hand-authored library
file into a lazily loadable JSON artifact tree, and can print the resolved
glossary order when term overlaps need debugging. Typical usage involves
running ``rulebook compile`` locally or in CI whenever the rules change.

Examples
--------
Compile a library into ``public/rules``:

>>> from rulebook.cli import app
>>> app(["compile", "rules/library.json", "public/rules"])  # doctest: +SKIP

Inspect the glossary order:

>>> app(["glossary", "rules/library.json"])  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from .config import load_compiler_config
from .pipeline import compile_library, load_library

app = App(name="rulebook", config=cyclopts.config.Env("INPUT_", command=False))  # type: ignore[unknown-argument]


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


@app.command(
    name="compile", help="Compile a rules library into a file-per-node artifact tree."
)
def compile_command(
    source: typ.Annotated[Path, Parameter(help="Root library file")],
    destination: typ.Annotated[
        Path, Parameter(help="Output directory (cleared before writing)")
    ],
    /,
    *,
    config: typ.Annotated[
        Path | None,
        Parameter(help="Path to compiler config", env_var="INPUT_CONFIG"),
    ] = None,
    strict_glossary: typ.Annotated[
        bool,
        Parameter(
            help="Fail when glossary terms overlap in a cycle",
            env_var="INPUT_STRICT_GLOSSARY",
        ),
    ] = False,
    verbose: typ.Annotated[
        bool, Parameter(help="Log every reference and artifact")
    ] = False,
) -> None:
    """Compile ``source`` into ``destination``.

    Parameters
    ----------
    source : Path
        Root library file; JSON, or YAML for ``.yaml``/``.yml`` suffixes.
    destination : Path
        Directory receiving the artifact tree. Existing content is removed.
    config : Path or None, optional
        Compiler configuration YAML (overridable via ``INPUT_CONFIG``).
    strict_glossary : bool, optional
        Turn glossary overlap cycles into an error instead of a warning.
    verbose : bool, optional
        Enable debug logging.

    Returns
    -------
    None
        Writes artifacts and prints progress to stdout.
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG)
    compiler_config = load_compiler_config(config)
    if strict_glossary:
        compiler_config.strict_glossary = True

    result = compile_library(
        source, destination, config=compiler_config, on_stage=print
    )
    for cycle in result.glossary_cycles:
        print(f"warning: glossary terms overlap in a cycle: {', '.join(cycle)}")
    print(f"wrote {len(result.written)} artifacts to {_format_path(destination)}")


@app.command(help="Print the glossary application order and term conflicts.")
def glossary(
    source: typ.Annotated[Path, Parameter(help="Root library file")],
    /,
    *,
    config: typ.Annotated[
        Path | None,
        Parameter(help="Path to compiler config", env_var="INPUT_CONFIG"),
    ] = None,
) -> None:
    """Print one ``id: conflicts`` line per glossary entry, in application order."""
    library = load_library(source, config=load_compiler_config(config))
    for entry in library.glossary.entries:
        conflicts = ", ".join(entry.conflicts) or "-"
        print(f"{entry.id}: {conflicts}")
    for cycle in library.glossary.cycles:
        print(f"warning: glossary terms overlap in a cycle: {', '.join(cycle)}")


def main() -> None:
    """Invoke the Cyclopts application that powers the ``rulebook`` command.

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
