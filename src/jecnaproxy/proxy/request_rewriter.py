"""Sanitize inbound request headers before they are forwarded upstream.

Host and Content-Length are recomputed by the HTTP client. Accept-Encoding
is dropped so the upstream answers uncompressed and bodies can be rewritten
as plain text. Origin and Referer are made to look same-origin to the
upstream.
"""

from __future__ import annotations

from collections.abc import Mapping
from urllib.parse import urlsplit, urlunsplit

import structlog
from multidict import CIMultiDict

from jecnaproxy.proxy.header_rewrite import HeaderRewrite
from jecnaproxy.upstream import UpstreamTarget

log = structlog.get_logger()

_STRIPPED_HEADERS = (
    "host",
    "content-length",
    "accept-encoding",
    # hop-by-hop, never relayed
    "connection",
    "keep-alive",
    "proxy-connection",
    "proxy-authorization",
    "te",
    "trailer",
    "transfer-encoding",
    "upgrade",
)


def rewrite_referer(value: str, upstream: UpstreamTarget) -> HeaderRewrite:
    """Move a Referer onto the upstream's scheme and host, keeping the rest.

    Unparseable values are passed through untouched.
    """
    try:
        referer = urlsplit(value)
        referer.port  # noqa: B018 - raises on a malformed port
        target = urlsplit(upstream.url)
    except ValueError as exc:
        log.warning("referer_unparseable", referer=value, error=str(exc))
        return HeaderRewrite.passthrough(value)

    if not referer.scheme or not referer.netloc:
        log.warning("referer_not_absolute", referer=value)
        return HeaderRewrite.passthrough(value)

    rewritten = urlunsplit((
        target.scheme,
        target.netloc,
        referer.path,
        referer.query,
        referer.fragment,
    ))
    return HeaderRewrite.ok(rewritten)


def prepare_request_headers(
    headers: Mapping[str, str],
    upstream: UpstreamTarget,
) -> CIMultiDict[str]:
    """Return a sanitized copy of the inbound headers for the upstream request.

    Repeated headers keep every value.
    """
    prepared: CIMultiDict[str] = CIMultiDict(headers.items())

    for name in _STRIPPED_HEADERS:
        prepared.popall(name, None)

    if "origin" in prepared:
        prepared["Origin"] = upstream.url

    if "referer" in prepared:
        prepared["Referer"] = rewrite_referer(prepared["Referer"], upstream).value

    return prepared
