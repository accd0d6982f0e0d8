"""
Observability: structured log lines carrying a correlation ID and the key
of the support record being derived.

    import logging
    from carebook.observability import RequestContext

    logger = logging.getLogger(__name__)

    with RequestContext(prefix="drv", record_id="2025-06-02_U1"):
        logger.info("Support record created", extra={"status": "AfterSchool"})
"""

from .context import RequestContext, generate_request_id, get_record_id, get_request_id
from .logging import (
    CorrelationIdMiddleware,
    HumanFormatter,
    JSONFormatter,
    configure_logging,
)

__all__ = [
    # Logging
    "configure_logging",
    "JSONFormatter",
    "HumanFormatter",
    "CorrelationIdMiddleware",
    # Context
    "RequestContext",
    "generate_request_id",
    "get_record_id",
    "get_request_id",
]
