"""Infrastructure layer: persistence, auth primitives, providers and the HTTP API."""
