"""Wayfarer - authentication backend for the Wayfarer travel planner.

Handles accounts, JWT sessions, email verification, password resets,
login lockout and OAuth sign-in for the trip and luggage planning API.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
