"""Console logging setup for the reqpipe command line."""

import logging

__all__ = ["configure_logs"]

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%d/%m/%y %H:%M:%S"


def configure_logs(verbose: bool = False) -> None:
    """Configure console logging.

    Request/response lines from the HTTP logging steps are emitted at INFO;
    header and body details, retry decisions and per-call metrics at DEBUG.

    Args:
        verbose: Let reqpipe's DEBUG records through (headers, bodies, retries).
    """
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))

    root = logging.getLogger()
    root.setLevel(logging.INFO)
    root.addHandler(handler)

    # Framework loggers
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    logging.getLogger("reqpipe").setLevel(logging.DEBUG if verbose else logging.INFO)
