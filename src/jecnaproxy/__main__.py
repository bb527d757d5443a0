"""Entry point: python -m jecnaproxy"""

from __future__ import annotations

import argparse
import sys

from pydantic import ValidationError

from .config import ProxyConfig
from .logging_config import setup_logging
from .upstream import ConfigurationError, resolve_upstream


def main() -> None:
    parser = argparse.ArgumentParser(description="Mirroring reverse proxy")
    parser.add_argument("--host", default=None, help="Bind host (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=None, help="Bind port (default: 3000)")
    parser.add_argument("--mode", default=None, help="spsejecna, jidelna, or a custom upstream URL")
    parser.add_argument("--base-url", default=None, help="Public URL of this proxy")
    parser.add_argument("--log-level", default=None, help="Log level (default: INFO)")
    args = parser.parse_args()

    overrides = {
        "bind_host": args.host,
        "port": args.port,
        "mode": args.mode,
        "base_url": args.base_url,
        "log_level": args.log_level,
    }
    try:
        config = ProxyConfig(**{k: v for k, v in overrides.items() if v is not None})
    except ValidationError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config.log_level, config.log_dir)

    # Resolved once, before the socket is bound.
    try:
        upstream = resolve_upstream(config.mode)
    except ConfigurationError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        sys.exit(1)

    from .server import run_server
    run_server(config, upstream=upstream)


if __name__ == "__main__":
    main()
