"""Upstream target selection.

The ``MODE`` setting picks which site is mirrored. Each target carries the
canonical base URL requests are forwarded to, plus every literal URL form
(scheme / ``www`` permutations) that refers to it inside proxied content.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from urllib.parse import urlsplit

import structlog

log = structlog.get_logger()


class ConfigurationError(ValueError):
    """Raised at startup when the configured upstream cannot be used."""


class Mode(enum.Enum):
    SPSEJECNA = "spsejecna"
    JIDELNA = "jidelna"
    CUSTOM = "custom"


@dataclass(frozen=True)
class UpstreamTarget:
    """Immutable description of the mirrored origin."""

    mode: Mode
    url: str
    variants: tuple[str, ...]

    def target_for(self, path_qs: str) -> str:
        """Forwarding URL for a raw inbound path (query string included)."""
        if not path_qs.startswith("/"):
            path_qs = "/" + path_qs
        return f"{self.url}{path_qs}"


SPSEJECNA = UpstreamTarget(
    mode=Mode.SPSEJECNA,
    url="https://spsejecna.cz",
    variants=(
        "https://www.spsejecna.cz",
        "https://spsejecna.cz",
        "http://www.spsejecna.cz",
        "http://spsejecna.cz",
    ),
)

JIDELNA = UpstreamTarget(
    mode=Mode.JIDELNA,
    url="https://strav.nasejidelna.cz",
    variants=(
        "https://strav.nasejidelna.cz",
        "http://strav.nasejidelna.cz",
    ),
)

_BUILTIN = {
    Mode.SPSEJECNA.value: SPSEJECNA,
    Mode.JIDELNA.value: JIDELNA,
}


def custom_target(url: str) -> UpstreamTarget:
    """Build a target for an operator-supplied base URL.

    Raises:
        ConfigurationError: If ``url`` is not an absolute http(s) URL.
    """
    url = url.strip().rstrip("/")
    try:
        parts = urlsplit(url)
        parts.port  # noqa: B018 - validates the port component
    except ValueError as exc:
        raise ConfigurationError(f"invalid upstream URL {url!r}: {exc}") from exc

    if parts.scheme not in ("http", "https") or not parts.hostname:
        raise ConfigurationError(
            f"custom MODE must be an absolute http(s) URL, got {url!r}"
        )

    variants = [url]
    if parts.scheme == "https":
        variants.append("http://" + url[len("https://"):])
    return UpstreamTarget(mode=Mode.CUSTOM, url=url, variants=tuple(variants))


def resolve_upstream(value: str | None) -> UpstreamTarget:
    """Resolve the ``MODE`` setting into an upstream target.

    Empty or unset selects the school site. Known names are matched
    case-insensitively; anything else is treated as a custom base URL.
    """
    selector = (value or "").strip()
    if not selector:
        return SPSEJECNA

    builtin = _BUILTIN.get(selector.lower())
    if builtin is not None:
        return builtin

    target = custom_target(selector)
    log.info("custom_upstream_selected", url=target.url, variants=list(target.variants))
    return target
