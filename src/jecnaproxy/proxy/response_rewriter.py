"""Rewrite upstream responses so the mirror looks self-contained.

Every reference to the upstream host is replaced with the proxy's own
origin, both in the Location / Set-Cookie headers and in textual bodies.
Binary bodies are left alone and streamed through.
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog
from multidict import CIMultiDict

from jecnaproxy.proxy.header_rewrite import HeaderRewrite, is_valid_header_value
from jecnaproxy.upstream import UpstreamTarget

log = structlog.get_logger()

# Content types whose bodies are buffered and rewritten.
REWRITABLE_CONTENT_TYPES = (
    "text/html",
    "application/javascript",
    "application/json",
    "text/css",
)

# No longer valid once a body has been rewritten.
BUFFERED_STRIP_HEADERS = ("content-length", "transfer-encoding", "content-encoding")

# Framing is recomputed by the server.
_HOP_BY_HOP = frozenset({"connection", "keep-alive", "transfer-encoding"})


def rewrite_content_urls(content: str, proxy_origin: str, upstream: UpstreamTarget) -> str:
    """Replace every upstream URL variant in ``content`` with ``proxy_origin``.

    Variants are applied one after another in declared order, each pass
    working on the output of the previous one.
    """
    for variant in upstream.variants:
        content = content.replace(variant, proxy_origin)
    return content


def rewrite_cookie(cookie: str, is_secure: bool) -> str:
    """Re-scope a Set-Cookie value to the proxy host.

    Domain is dropped, SameSite is recomputed and Secure is kept only in a
    secure context (browsers refuse Secure cookies over plain HTTP).
    """
    segments = [s.strip() for s in cookie.split(";")]
    pair, attributes = segments[0], segments[1:]

    parts = [pair] if pair else []
    has_secure = False
    for attr in attributes:
        if not attr:
            continue
        name = attr.split("=", 1)[0].strip().lower()
        if name in ("domain", "samesite"):
            continue
        if name == "secure":
            if not is_secure or has_secure:
                continue
            has_secure = True
        parts.append(attr)

    if is_secure:
        parts.append("SameSite=None")
        if not has_secure:
            parts.append("Secure")
    else:
        parts.append("SameSite=Lax")

    return "; ".join(parts)


def rewrite_location(value: str, proxy_origin: str, upstream: UpstreamTarget) -> HeaderRewrite:
    """Point a redirect target at the proxy. Never returns an empty target."""
    rewritten = rewrite_content_urls(value, proxy_origin, upstream) or "/"
    if not is_valid_header_value(rewritten):
        return HeaderRewrite.passthrough(value)
    return HeaderRewrite.ok(rewritten)


def _rewrite_set_cookie(value: str, is_secure: bool) -> HeaderRewrite:
    if not is_valid_header_value(value):
        return HeaderRewrite.passthrough(value)
    rewritten = rewrite_cookie(value, is_secure)
    if not is_valid_header_value(rewritten):
        return HeaderRewrite.passthrough(value)
    return HeaderRewrite.ok(rewritten)


def rewrite_response_headers(
    headers: Iterable[tuple[str, str]],
    proxy_origin: str,
    is_secure: bool,
    upstream: UpstreamTarget,
) -> CIMultiDict[str]:
    """Copy upstream headers, rewriting Set-Cookie and Location.

    Repeated headers (several Set-Cookie lines, for example) are kept and
    each occurrence is rewritten on its own.
    """
    out: CIMultiDict[str] = CIMultiDict()
    for key, value in headers:
        lower_key = key.lower()
        if lower_key in _HOP_BY_HOP:
            continue

        if lower_key == "set-cookie":
            result = _rewrite_set_cookie(value, is_secure)
        elif lower_key == "location":
            result = rewrite_location(value, proxy_origin, upstream)
        else:
            out.add(key, value)
            continue

        if not result.rewritten:
            log.warning("header_rewrite_skipped", header=lower_key)
        out.add(key, result.value)
    return out


def should_rewrite_body(content_type: str) -> bool:
    return any(kind in content_type for kind in REWRITABLE_CONTENT_TYPES)


def is_html(content_type: str) -> bool:
    return "text/html" in content_type


def strip_length_headers(headers: CIMultiDict[str]) -> None:
    """Drop headers describing the upstream body once it has been rewritten."""
    for name in BUFFERED_STRIP_HEADERS:
        headers.popall(name, None)
