"""Ingestion adapters for Pressure-Sieve.

This module contains ingestion adapters that implement the IngestionPort interface
for reading the raw snapshot.
"""

from pathlib import Path

from pressure_sieve.adapters.ingesters.json_ingester import JSONIngester
from pressure_sieve.domain.ports import IngestionPort, UnsupportedSourceError

__all__ = ["JSONIngester", "get_adapter"]


def get_adapter(source: str, **kwargs) -> IngestionPort:
    """Factory function to get the appropriate ingestion adapter for a source.

    Parameters:
        source: Source identifier (file path)
        **kwargs: Additional arguments passed to the adapter constructor

    Returns:
        IngestionPort: Appropriate adapter instance

    Raises:
        UnsupportedSourceError: If no adapter can handle the source
    """
    adapters = [
        ("json", JSONIngester),
    ]

    extension = Path(source).suffix.lower()
    for ext, adapter_class in adapters:
        if extension == f".{ext}":
            return adapter_class(**kwargs)

    raise UnsupportedSourceError(
        f"No adapter found for source: {source}. Supported formats: JSON",
        source=source
    )
