"""Utilities for materializing and writing compiled rules libraries."""

from .models import Artifact, NodePointer
from .plan import collection_count, descendant_count, plan_artifacts
from .writer import LibraryExporter

__all__ = [
    "Artifact",
    "LibraryExporter",
    "NodePointer",
    "collection_count",
    "descendant_count",
    "plan_artifacts",
]
