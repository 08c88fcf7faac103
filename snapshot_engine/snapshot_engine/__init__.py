"""Host snapshot ingestion, indexing, and structural JSON differencing."""

__version__ = "0.1.0"
