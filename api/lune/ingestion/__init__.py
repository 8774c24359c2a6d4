"""Connector registry for upstream media sources."""

from __future__ import annotations

from typing import Dict

from lune.ingestion.base import BaseConnector
from lune.ingestion.gutendex import GutendexConnector
from lune.ingestion.openlibrary import OpenLibraryConnector
from lune.ingestion.tmdb import TMDBConnector

_CONNECTORS: Dict[str, BaseConnector] = {}


def get_connector(source: str) -> BaseConnector:
    """Return a connector instance for the given source name."""
    key = source.lower()
    if key not in _CONNECTORS:
        if key == "tmdb":
            _CONNECTORS[key] = TMDBConnector()
        elif key == "openlibrary":
            _CONNECTORS[key] = OpenLibraryConnector()
        elif key == "gutendex":
            _CONNECTORS[key] = GutendexConnector()
        else:
            raise ValueError(f"Unsupported source {source}")
    return _CONNECTORS[key]


def reset_connectors() -> None:
    """Drop cached connectors so new credentials are picked up."""
    _CONNECTORS.clear()
