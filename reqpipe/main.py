"""Command-line entrypoint performing a single request."""

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence

from reqpipe.adapters.driven.config.settings import load_settings
from reqpipe.adapters.driven.http.client import NetworkClient
from reqpipe.adapters.driven.logging.logging_config import configure_logs
from reqpipe.adapters.driven.metrics.http_metrics import InMemoryMetricsCollector
from reqpipe.ports.errors import NetworkError
from reqpipe.ports.http import Endpoint, HttpMethod

__all__ = ["build_endpoint", "main", "parse_args", "run"]

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_REQUEST_FAILED = 1
EXIT_CONFIG_ERROR = 2


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Arguments without the program name; ``sys.argv[1:]`` if None.

    Returns:
        Parsed namespace with ``path``, ``method``, ``query``, ``data`` and
        ``verbose``.
    """
    parser = argparse.ArgumentParser(
        prog="reqpipe",
        description="Send one request to API_BASE_URL through the reqpipe pipeline.",
    )
    parser.add_argument("path", help="Endpoint path, appended to API_BASE_URL.")
    parser.add_argument(
        "-X",
        "--method",
        default=HttpMethod.GET.value,
        choices=[m.value for m in HttpMethod],
        type=str.upper,
    )
    parser.add_argument(
        "-q",
        "--query",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Query parameter; may be repeated, order is kept.",
    )
    parser.add_argument("-d", "--data", default=None, help="Request body (sent as UTF-8).")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log headers, bodies, retry decisions and per-call metrics.",
    )
    return parser.parse_args(argv)


def build_endpoint(base_url: str, args: argparse.Namespace) -> Endpoint:
    """Translate parsed arguments into an endpoint."""
    query_items = []
    for item in args.query:
        name, sep, value = item.partition("=")
        query_items.append((name, value if sep else None))

    return Endpoint(
        base_url=base_url,
        path=args.path,
        method=HttpMethod(args.method),
        query_items=tuple(query_items) or None,
        body=args.data.encode("utf-8") if args.data is not None else None,
    )


async def main(argv: Sequence[str] | None = None) -> int:
    """Run one request and write its body (as UTF-8 text) to stdout.

    Startup sequence:
    1. Configure logging.
    2. Load and validate configuration.
    3. Build the client from settings.
    4. Perform the request and report metrics.

    Args:
        argv: Command-line arguments without the program name.

    Returns:
        0 on success, 1 if the request failed, 2 on configuration errors.
    """
    args = parse_args(argv)
    configure_logs(verbose=args.verbose)

    try:
        settings = load_settings()
    except (RuntimeError, ValueError) as exc:
        logger.error(
            "Configuration error: %s\n"
            "Hint: check API_BASE_URL and the RETRY_*/LOG_* variables.",
            exc,
        )
        return EXIT_CONFIG_ERROR

    metrics = InMemoryMetricsCollector()
    endpoint = build_endpoint(settings.api_base_url, args)

    async with NetworkClient.from_settings(settings, metrics=metrics) as client:
        try:
            body = await client.request_data(endpoint)
        except NetworkError as e:
            logger.error(f"Request {endpoint.method.value} {endpoint.path} failed: {e}")
            return EXIT_REQUEST_FAILED
        finally:
            logger.info(f"HTTP metrics: {metrics}")

    sys.stdout.write(body.decode("utf-8", errors="replace"))
    sys.stdout.flush()
    return EXIT_OK


def run() -> None:
    """Console-script entrypoint."""
    try:
        raise SystemExit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Interrupted by user (Ctrl+C).")


if __name__ == "__main__":
    run()
