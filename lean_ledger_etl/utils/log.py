"""Logger lookup shared by flows, tasks and plain library code."""

import logging

from prefect import get_run_logger
from prefect.exceptions import MissingContextError


def get_logger(name: str):
    """Get logger - Prefect if available, otherwise standard logging."""
    try:
        return get_run_logger()
    except MissingContextError:
        return logging.getLogger(name)
