"""Public origin resolution for the current request."""

from __future__ import annotations

from collections.abc import Mapping

DEFAULT_HOST = "localhost:3000"


def resolve_proxy_origin(base_url: str | None, headers: Mapping[str, str]) -> str:
    """Return the ``scheme://host[:port]`` the client sees this proxy under.

    An explicit ``base_url`` always wins. Without one the ``Host`` header is
    used and plain HTTP is assumed.
    """
    if base_url is not None:
        return base_url.rstrip("/")

    host = headers.get("Host") or DEFAULT_HOST
    return f"http://{host}"


def is_secure_origin(origin: str) -> bool:
    """Whether browsers treat ``origin`` as a secure context (HTTPS or localhost)."""
    return (
        origin.startswith("https://")
        or "://localhost" in origin
        or "://127.0.0.1" in origin
    )
