"""Observability infrastructure for the harness.

Quick start::

    from bdd_harness.observability import configure_logging, get_logger

    configure_logging()
    logger = get_logger(__name__)
"""

from .logging import configure_logging, get_logger, scenario_ctx

__all__ = [
    'configure_logging',
    'get_logger',
    'scenario_ctx',
]
