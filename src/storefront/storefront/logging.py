"""Loguru logging configuration.

Call setup_logging() once at startup to configure sinks.
All other modules simply do `from loguru import logger` and log normally.

Order dispatches are also written to a separate order log. The order
endpoint never confirms anything, so that file is the storefront's only
record of what was sent; staff reconcile it against the orders they
actually received.
"""

import sys
from pathlib import Path

from loguru import logger

LOG_DIR = Path(__file__).resolve().parents[3] / "logs"

ORDER_LOG_NAME = "orders.log"


def order_logger():
    """Logger whose records also land in the order log."""
    return logger.bind(order_audit=True)


def _is_order_record(record) -> bool:
    return bool(record["extra"].get("order_audit"))


def setup_logging(level: str = "INFO", log_dir: Path = LOG_DIR) -> None:
    """Configure loguru with stderr, rotating file and order log sinks.

    Args:
        level: Minimum log level (default INFO).
        log_dir: Directory for the log files.
    """
    logger.remove()

    logger.add(
        sys.stderr,
        level=level,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
    )

    log_dir.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_dir / "storefront.log",
        level=level,
        rotation="1 day",
        retention="7 days",
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}",
    )

    # Kept longer than the general log; it backs manual order reconciliation
    logger.add(
        log_dir / ORDER_LOG_NAME,
        level="INFO",
        filter=_is_order_record,
        rotation="1 week",
        retention="90 days",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}",
    )
