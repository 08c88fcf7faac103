"""HTTP surface for the host snapshot service."""

__version__ = "0.1.0"
