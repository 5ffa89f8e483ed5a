"""HTTP API for the authentication service."""
