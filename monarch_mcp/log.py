"""
Logging setup for Monarch MCP.

The MCP transport owns stdout, so everything is rendered to stderr.

Environment variables:
- MONARCH_LOG_LEVEL: stdlib level name (default: INFO)
"""

import logging
import os
import sys
from typing import Optional

import structlog


# Third-party loggers that are chatty at INFO
_NOISY_LOGGERS = ("aiohttp", "gql", "gql.transport", "monarchmoney")


def configure_logging(level: Optional[str] = None) -> None:
    """Route stdlib logging and structlog to stderr."""
    level_name = (level or os.environ.get("MONARCH_LOG_LEVEL", "INFO")).upper()
    numeric_level = getattr(logging, level_name, logging.INFO)

    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.ERROR)
