"""
Centralized logging configuration for the FlowScan engine.

This module provides standardized logging configuration using structlog
for all components. Scoring decisions, risk gates and paper position
transitions each get a bound logger so their entries can be filtered into
an audit trail.
"""
import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import FilteringBoundLogger


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list] = None
) -> None:
    """
    Configure structlog for the entire application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: If True, output JSON format; otherwise human-readable
        include_timestamp: Include timestamp in log output
        include_caller: Include caller information (filename, line number)
        extra_processors: Additional structlog processors to include
    """
    log_level = getattr(logging, level.upper())

    logging.basicConfig(
        level=log_level,
        stream=sys.stdout,
        format="%(message)s"  # structlog will handle formatting
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder(
            parameters=[structlog.processors.CallsiteParameter.FILENAME,
                       structlog.processors.CallsiteParameter.LINENO]
        ))

    if extra_processors:
        processors.extend(extra_processors)

    if format_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def get_scoring_logger(name: str) -> FilteringBoundLogger:
    """Get a logger bound for heat-score and recommendation decisions."""
    return get_logger(name).bind(
        subsystem="scoring",
        audit_trail=True
    )


def get_position_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger specifically configured for paper position transitions.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for the paper trading state machine
    """
    return get_logger(name).bind(
        subsystem="paper_trading",
        audit_trail=True
    )


def log_risk_decision(
    logger: FilteringBoundLogger,
    gate_name: str,
    passed: bool,
    ticker: str,
    reason: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a risk gate decision with standardized format.

    Args:
        logger: Structlog logger instance
        gate_name: Name of the gate being evaluated
        passed: Whether the gate passed or failed
        ticker: Ticker the decision applies to
        reason: Detailed reason for the decision
        context: Additional context data
    """
    bound_logger = logger.bind(
        gate_name=gate_name,
        gate_result="PASS" if passed else "FAIL",
        ticker=ticker,
        reason=reason,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    # Rejections are an expected path, so they stay at info.
    if passed:
        bound_logger.debug("Risk gate passed")
    else:
        bound_logger.info("Risk gate rejected")


def log_position_transition(
    logger: FilteringBoundLogger,
    position_id: str,
    ticker: str,
    from_state: str,
    to_state: str,
    trigger: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a paper position state transition with standardized format.

    Args:
        logger: Structlog logger instance
        position_id: ID of the position transitioning
        ticker: Position ticker
        from_state: Current state
        to_state: Target state
        trigger: What triggered the transition
        context: Additional context data
    """
    bound_logger = logger.bind(
        position_id=position_id,
        ticker=ticker,
        from_state=from_state,
        to_state=to_state,
        trigger=trigger,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.info("Position transition")
