"""Configuration utilities for VESTA.

This module centralizes small helpers and constants related to application
configuration.
"""

import os

DB_URL_ENV_VAR = "VESTA_DB_URL"  # pragma: no mutate
DEFAULT_DB_URL = "sqlite+aiosqlite:///:memory:"  # pragma: no mutate


class DatabaseUrlNotSetError(Exception):
    """Raised when the VESTA_DB_URL environment variable is not set."""


def get_db_url() -> str:
    """Get the database URL from the environment.

    Returns:
        The value of the `VESTA_DB_URL` environment variable.

    Raises:
        DatabaseUrlNotSetError: If `VESTA_DB_URL` is not set.
    """
    if not (url := os.environ.get(DB_URL_ENV_VAR)):
        raise DatabaseUrlNotSetError
    return url


def get_db_url_or_default() -> str:
    """Return `VESTA_DB_URL`, or an in-memory SQLite URL if it is unset."""
    try:
        return get_db_url()
    except DatabaseUrlNotSetError:
        return DEFAULT_DB_URL
