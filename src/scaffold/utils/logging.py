"""Logging utilities."""

import logging
import sys


def setup_logging(level: str = "WARNING"):
    """Setup logging configuration."""
    log_level = getattr(logging, level.upper(), logging.WARNING)

    # Configure root logger; stdout is reserved for command output
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        handlers=[
            logging.StreamHandler(sys.stderr)
        ],
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("asyncio").setLevel(logging.WARNING)
