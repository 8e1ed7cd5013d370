"""HTTP API, persistence and job services."""
