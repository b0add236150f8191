"""Adapter registry — maps type strings to adapter classes."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from news_aggregator.ingestion.adapter import SourceAdapter

logger = logging.getLogger(__name__)

_REGISTRY: dict[str, type[SourceAdapter]] = {}


def register_adapter(type_name: str, cls: type[SourceAdapter]) -> None:
    """Register an adapter class for a given type name."""
    _REGISTRY[type_name] = cls


def get_adapter_class(type_name: str) -> type[SourceAdapter] | None:
    """Look up an adapter class by type name. Returns None if not found."""
    return _REGISTRY.get(type_name)


def registered_types() -> list[str]:
    """Return a sorted list of all registered adapter type names."""
    return sorted(_REGISTRY)


def build_sources(sources_config_path: str | Path) -> list[SourceAdapter]:
    """Instantiate and configure every enabled source in a sources file.

    Expected format:
    {
        "sources": [
            {"type": "lentaru", "enabled": true},
            {"type": "rss", "name": "...", "url": "..."},
            ...
        ]
    }

    Raises ValueError for an unknown adapter type or a duplicate source name.
    Both are configuration errors and are fatal at startup.
    """
    with open(sources_config_path, encoding="utf-8") as f:
        config = json.load(f)

    sources: list[SourceAdapter] = []
    names: set[str] = set()
    for source_config in config.get("sources", []):
        if not source_config.get("enabled", True):
            continue

        type_name = source_config.get("type", "")
        cls = get_adapter_class(type_name)
        if cls is None:
            raise ValueError(
                f"Unknown source type '{type_name}'; "
                f"must be one of: {', '.join(registered_types())}"
            )

        adapter = cls()
        adapter.configure(source_config)
        if adapter.name in names:
            raise ValueError(f"Duplicate source name '{adapter.name}'")
        names.add(adapter.name)
        sources.append(adapter)

    logger.info("Configured %d source(s): %s", len(sources), ", ".join(sorted(names)))
    return sources
