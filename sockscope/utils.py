"""Utility helpers shared across modules."""

from __future__ import annotations

import contextlib
import logging
from typing import Iterator

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@contextlib.contextmanager
def section(name: str) -> Iterator[None]:
    """Context manager that logs entry and exit of a correlation stage."""
    logging.getLogger(__name__).info("Starting %s", name)
    try:
        yield
    finally:
        logging.getLogger(__name__).info("Finished %s", name)


def configure_logging(verbose: bool = False) -> None:
    """Configure root logging for command-line runs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
    )
