"""Write planned artifacts beneath a freshly cleared destination directory."""

from __future__ import annotations

import json
import logging
import typing as typ

from rulebook.config import CompilerConfig

from .plan import plan_artifacts

if typ.TYPE_CHECKING:
    from pathlib import Path

    from rulebook.models import Library
    from rulebook.storage import Storage

    from .models import Artifact

logger = logging.getLogger(__name__)


class LibraryExporter:
    """Persist a compiled library as a tree of JSON artifacts."""

    def __init__(self, storage: Storage, config: CompilerConfig | None = None) -> None:
        """Initialize the exporter.

        Parameters
        ----------
        storage : Storage
            Byte-oriented storage used for every directory and file operation.
        config : CompilerConfig, optional
            Encoding and JSON formatting settings; defaults apply when omitted.
        """
        self.storage = storage
        self.config = config or CompilerConfig()

    def export(self, library: Library, destination: Path) -> list[Path]:
        """Clear ``destination`` and write every artifact for ``library``.

        Returns
        -------
        list[Path]
            Paths of the written artifacts, in write order.

        Notes
        -----
        Anything previously stored at ``destination`` is removed first, so
        artifacts from earlier runs never survive. Concurrent exports to the
        same destination are not safe.
        """
        return self.write(plan_artifacts(library), destination)

    def write(self, artifacts: typ.Iterable[Artifact], destination: Path) -> list[Path]:
        """Clear ``destination`` and write ``artifacts`` beneath it."""
        self.storage.remove_tree(destination)
        self.storage.make_dirs(destination)
        written: list[Path] = []
        for artifact in artifacts:
            path = destination.joinpath(*artifact.path.parts)
            self.storage.make_dirs(path.parent)
            self.storage.write_bytes(path, self.encode(artifact.payload))
            logger.debug("wrote %s", path)
            written.append(path)
        return written

    def encode(self, payload: dict[str, typ.Any]) -> bytes:
        """Serialize ``payload`` using the configured JSON formatting."""
        output = self.config.output
        text = json.dumps(
            payload,
            indent=output.indent,
            ensure_ascii=output.ensure_ascii,
            default=str,
        )
        return (text + "\n").encode(self.config.encoding)


__all__ = ["LibraryExporter"]
