"""Export adapters for the cleaned snapshot."""

from pressure_sieve.adapters.exporters.json_exporter import JSONExporter

__all__ = ["JSONExporter"]
