"""Compile hand-authored rules libraries into lazily loadable artifact trees.

This package exposes the CLI entry points used by the ``rulebook`` console
script together with :func:`compile_library`, which runs the full pipeline:
reference resolution, glossary ordering, link compilation, and export.

Exports
-------
- ``app``: Cyclopts application entry for subcommands.
- ``main``: Convenience function that invokes the Cyclopts app.
- ``compile_library``: Programmatic entry point for a compilation run.

Examples
--------
>>> from rulebook import compile_library
>>> from pathlib import Path
>>> compile_library(Path("rules/library.json"), Path("public/rules"))  # doctest: +SKIP
CompilationResult(...)
"""

from __future__ import annotations

from .cli import app, main
from .pipeline import CompilationResult, compile_library

__all__ = ["CompilationResult", "app", "compile_library", "main"]
