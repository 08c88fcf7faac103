"""HTTP middleware for the snapshot API."""
