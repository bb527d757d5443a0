"""aiohttp application factory, routes, and CORS handling."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import httpx
import structlog
from aiohttp import web

from .config import ProxyConfig
from .proxy.handler import ProxyHandler
from .upstream import UpstreamTarget, resolve_upstream

log = structlog.get_logger()

ROBOTS_TXT = "User-agent: *\nDisallow: /\n"

CORS_ALLOW_METHODS = "GET, POST, PUT, DELETE, PATCH, HEAD, OPTIONS"

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


def create_http_client(config: ProxyConfig) -> httpx.AsyncClient:
    """Shared upstream client. Redirects are relayed to the browser, not followed."""
    return httpx.AsyncClient(
        http2=True,
        follow_redirects=False,
        timeout=httpx.Timeout(config.upstream_timeout),
    )


async def create_app(
    config: ProxyConfig | None = None,
    http_client: httpx.AsyncClient | None = None,
    upstream: UpstreamTarget | None = None,
) -> web.Application:
    """Create and configure the aiohttp application.

    Args:
        config: Proxy configuration. Defaults to ProxyConfig().
        http_client: Optional pre-configured httpx client (for testing).
        upstream: Already-resolved upstream. Resolved from config.mode when omitted.

    Raises:
        ConfigurationError: If the configured MODE cannot be resolved.
    """
    if config is None:
        config = ProxyConfig()

    if upstream is None:
        upstream = resolve_upstream(config.mode)

    # Inbound bodies are forwarded whole, without a size cap.
    app = web.Application(client_max_size=0, middlewares=[cors_preflight_middleware])
    app["config"] = config
    app["upstream"] = upstream
    app["http_client"] = http_client if http_client is not None else create_http_client(config)
    app["proxy_handler"] = ProxyHandler(
        config=config,
        upstream=upstream,
        http_client=app["http_client"],
    )

    app.router.add_get("/robots.txt", handle_robots)
    app.router.add_route("*", "/{path:.*}", handle_proxy)

    app.on_response_prepare.append(add_cors_headers)
    app.on_startup.append(on_startup)
    app.on_cleanup.append(on_cleanup)

    return app


async def on_startup(app: web.Application) -> None:
    """Log the effective configuration."""
    log.info(
        "server_started",
        config=app["config"].model_dump(),
        upstream=app["upstream"].url,
        mode=app["upstream"].mode.value,
    )


async def on_cleanup(app: web.Application) -> None:
    """Clean up resources on shutdown."""
    await app["http_client"].aclose()
    log.info("server_stopped")


async def handle_robots(request: web.Request) -> web.Response:
    """GET /robots.txt: keep crawlers off the mirror."""
    return web.Response(text=ROBOTS_TXT, content_type="text/plain")


async def handle_proxy(request: web.Request) -> web.StreamResponse:
    """Everything else is mirrored from the upstream."""
    handler: ProxyHandler = request.app["proxy_handler"]
    return await handler.handle(request)


@web.middleware
async def cors_preflight_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Answer CORS preflight requests locally instead of proxying them."""
    if (
        request.method == "OPTIONS"
        and "Origin" in request.headers
        and "Access-Control-Request-Method" in request.headers
    ):
        headers = {
            "Access-Control-Allow-Methods": CORS_ALLOW_METHODS,
            "Access-Control-Max-Age": "86400",
        }
        requested = request.headers.get("Access-Control-Request-Headers")
        if requested:
            headers["Access-Control-Allow-Headers"] = requested
        return web.Response(status=204, headers=headers)
    return await handler(request)


async def add_cors_headers(request: web.Request, response: web.StreamResponse) -> None:
    """Mirror the request Origin and allow credentials on every response."""
    origin = request.headers.get("Origin")
    if not origin:
        return
    response.headers["Access-Control-Allow-Origin"] = origin
    response.headers["Access-Control-Allow-Credentials"] = "true"
    vary = response.headers.get("Vary")
    if vary is None:
        response.headers["Vary"] = "Origin"
    elif "origin" not in vary.lower():
        response.headers["Vary"] = f"{vary}, Origin"


def run_server(config: ProxyConfig | None = None, upstream: UpstreamTarget | None = None) -> None:
    """Run the proxy server (blocking)."""
    import asyncio

    if config is None:
        config = ProxyConfig()

    async def _run() -> None:
        app = await create_app(config, upstream=upstream)

        runner = web.AppRunner(app)
        await runner.setup()
        site = web.TCPSite(runner, host=config.bind_host, port=config.port)
        await site.start()
        log.info("server_listening", host=config.bind_host, port=config.port)
        if config.base_url:
            log.info("public_base_url_configured", base_url=config.base_url)

        # Run forever
        try:
            await asyncio.Event().wait()
        finally:
            await runner.cleanup()

    asyncio.run(_run())
