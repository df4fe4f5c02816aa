"""Ingestion layer.

This package turns the raw feed payload into validated vehicle records and
enriches them with trip metadata. Nothing here touches the display.
"""

__all__: list[str] = []
