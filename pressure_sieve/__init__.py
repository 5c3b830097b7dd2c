"""Pressure-Sieve: cleaning, validation and anonymization of a clinical blood-pressure dataset."""

__version__ = "1.0.0"
