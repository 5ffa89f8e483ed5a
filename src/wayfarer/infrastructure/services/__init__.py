"""Outbound services used by the auth flows."""
