"""Load and validate compiler configuration YAML for rulebook builds.

This subpackage parses an optional ``rulebook.yaml`` file, applies defaults
for omitted settings, and produces the :class:`CompilerConfig` dataclass that
the resolver, glossary builder, and exporter consume. The primary entry point
is :func:`load_compiler_config`.

Examples
--------
>>> from pathlib import Path
>>> from rulebook.config import load_compiler_config
>>> config = load_compiler_config(Path("rulebook.yaml"))  # doctest: +SKIP
>>> config.output.indent  # doctest: +SKIP
4
"""

from .loader import load_compiler_config
from .models import (
    CompilerConfig,
    CompilerConfigError,
    OutputConfig,
    SchemeConfig,
)

__all__ = [
    "CompilerConfig",
    "CompilerConfigError",
    "OutputConfig",
    "SchemeConfig",
    "load_compiler_config",
]
