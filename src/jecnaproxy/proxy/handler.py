"""Catch-all proxy handler, the central request orchestrator.

Resolves the public origin, forwards the sanitized request to the upstream
and rewrites the response. Textual bodies are buffered and rewritten,
everything else is streamed through as received.
"""

from __future__ import annotations

import aiohttp
import httpx
import structlog
from aiohttp import web
from multidict import CIMultiDict

from jecnaproxy.config import ProxyConfig
from jecnaproxy.origin import is_secure_origin, resolve_proxy_origin
from jecnaproxy.proxy.banner import inject_banner, render_banner
from jecnaproxy.proxy.request_rewriter import prepare_request_headers
from jecnaproxy.proxy.response_rewriter import (
    is_html,
    rewrite_content_urls,
    rewrite_response_headers,
    should_rewrite_body,
    strip_length_headers,
)
from jecnaproxy.upstream import UpstreamTarget

log = structlog.get_logger()


class ProxyHandler:
    """Mirrors one upstream site under the proxy's own origin."""

    def __init__(
        self,
        config: ProxyConfig,
        upstream: UpstreamTarget,
        http_client: httpx.AsyncClient,
    ) -> None:
        self.config = config
        self.upstream = upstream
        self.http_client = http_client
        self.banner = render_banner(upstream)

    async def handle(self, request: web.Request) -> web.StreamResponse:
        """Handle any request that is not served locally."""
        proxy_origin = resolve_proxy_origin(self.config.base_url, request.headers)
        is_secure = is_secure_origin(proxy_origin)
        target_url = self.upstream.target_for(request.raw_path)

        try:
            body = await request.read()
        except (aiohttp.ClientPayloadError, ConnectionError) as exc:
            log.error("request_body_read_error", path=request.raw_path, error=str(exc))
            return web.Response(status=400, text="Failed to read body")

        headers = prepare_request_headers(request.headers, self.upstream)

        upstream_request = self.http_client.build_request(
            method=request.method,
            url=target_url,
            headers=list(headers.items()),
            content=body if body else None,
        )
        # httpx adds its own default; the upstream must answer uncompressed.
        upstream_request.headers.pop("accept-encoding", None)

        try:
            upstream_response = await self.http_client.send(upstream_request, stream=True)
        except httpx.HTTPError as exc:
            log.error("upstream_request_failed", target=target_url, error=str(exc))
            return web.Response(status=502, text=f"Proxy Error: {exc}")

        try:
            response_headers = rewrite_response_headers(
                upstream_response.headers.multi_items(),
                proxy_origin,
                is_secure,
                self.upstream,
            )
            content_type = response_headers.get("Content-Type", "")

            if should_rewrite_body(content_type):
                response = await self._rewrite_body(
                    upstream_response, response_headers, proxy_origin, content_type,
                )
                delivery = "rewritten"
            else:
                response = await self._stream_body(
                    request, upstream_response, response_headers,
                )
                delivery = "streamed"
        finally:
            await upstream_response.aclose()

        log.info(
            "request_proxied",
            method=request.method,
            path=request.raw_path,
            target=target_url,
            status=upstream_response.status_code,
            delivery=delivery,
        )
        return response

    async def _rewrite_body(
        self,
        upstream_response: httpx.Response,
        headers: CIMultiDict[str],
        proxy_origin: str,
        content_type: str,
    ) -> web.Response:
        """Buffer a textual body and point every upstream URL at the proxy."""
        try:
            raw = await upstream_response.aread()
        except httpx.HTTPError as exc:
            log.error("upstream_body_read_error", url=str(upstream_response.url), error=str(exc))
            return web.Response(status=502, text="Failed to read body")

        text = raw.decode("utf-8", errors="replace")
        text = rewrite_content_urls(text, proxy_origin, self.upstream)
        if is_html(content_type) and self.config.banner_enabled:
            text = inject_banner(text, self.banner)

        strip_length_headers(headers)
        return web.Response(
            status=upstream_response.status_code,
            headers=headers,
            body=text.encode("utf-8"),
        )

    async def _stream_body(
        self,
        request: web.Request,
        upstream_response: httpx.Response,
        headers: CIMultiDict[str],
    ) -> web.StreamResponse:
        """Relay an opaque body chunk by chunk without inspecting it."""
        response = web.StreamResponse(status=upstream_response.status_code, headers=headers)
        await response.prepare(request)

        total_bytes = 0
        try:
            async for chunk in upstream_response.aiter_raw():
                await response.write(chunk)
                total_bytes += len(chunk)
        except ConnectionResetError as exc:
            # Client went away; stop reading from upstream.
            log.info("client_disconnected", path=request.raw_path, bytes=total_bytes, error=str(exc))
            return response
        except httpx.HTTPError as exc:
            # Status is already sent; drop the connection so the client
            # sees a truncated body instead of a complete one.
            log.error("upstream_stream_error", path=request.raw_path, bytes=total_bytes, error=str(exc))
            if request.transport is not None:
                request.transport.close()
            raise

        await response.write_eof()
        return response
