"""Database URL helpers for CLI output.

`sanitize_url` renders a database URL with any password redacted (as ``***``)
so it is safe to show in logs and messages. It uses SQLAlchemy's URL parser
and performs no I/O.

Examples:
    >>> sanitize_url("sqlite+aiosqlite:///tmp/test.db")
    'sqlite+aiosqlite:///tmp/test.db'
    >>> describe_target("sqlite", "sqlite+aiosqlite:///:memory:")
    'sqlite (sqlite+aiosqlite:///:memory:)'
    >>> describe_target("memory", None)
    'memory'

Caveats:
    - Only the URL password field is redacted; secrets embedded in query
      parameters are not scrubbed.
"""

from sqlalchemy.engine import URL, make_url


def sanitize_url(url: str | URL) -> str:
    """Render *url* for display with its password redacted, if any."""
    return make_url(url).render_as_string(hide_password=True)


def describe_target(backend: str, url: str | URL | None) -> str:
    """Describe the backend under test for messages: ``name`` or ``name (url)``."""
    if url is None:
        return backend
    return f"{backend} ({sanitize_url(url)})"
