"""Domain layer: entities and services implementing the auth flows."""
