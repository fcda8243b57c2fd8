"""Observability helpers for instrumenting calls to external services."""

from __future__ import annotations

import inspect
import logging
import time
from functools import wraps
from typing import Any, Callable, TypeVar

from wardrobe_app.logging_config import ensure_correlation_id, get_logger, log_event

LOGGER = get_logger(__name__)
F = TypeVar("F", bound=Callable[..., Any])


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


def instrument_call(service: str, operation: str) -> Callable[[F], F]:
    """Wrap a sync or async callable to emit started/completed/failed events.

    Arguments are never logged; they carry images, prompts and keys.
    """

    def decorator(func: F) -> F:
        if inspect.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                correlation_id = ensure_correlation_id()
                start = time.perf_counter()
                log_event(
                    LOGGER,
                    logging.INFO,
                    "service_call_started",
                    service=service,
                    operation=operation,
                    correlation_id=correlation_id,
                )
                try:
                    result = await func(*args, **kwargs)
                except Exception:
                    log_event(
                        LOGGER,
                        logging.ERROR,
                        "service_call_failed",
                        service=service,
                        operation=operation,
                        correlation_id=correlation_id,
                        duration_ms=_elapsed_ms(start),
                        exc_info=True,
                    )
                    raise
                log_event(
                    LOGGER,
                    logging.INFO,
                    "service_call_completed",
                    service=service,
                    operation=operation,
                    correlation_id=correlation_id,
                    duration_ms=_elapsed_ms(start),
                )
                return result

            return async_wrapper  # type: ignore[return-value]

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            correlation_id = ensure_correlation_id()
            start = time.perf_counter()
            log_event(
                LOGGER,
                logging.INFO,
                "service_call_started",
                service=service,
                operation=operation,
                correlation_id=correlation_id,
            )
            try:
                result = func(*args, **kwargs)
            except Exception:
                log_event(
                    LOGGER,
                    logging.ERROR,
                    "service_call_failed",
                    service=service,
                    operation=operation,
                    correlation_id=correlation_id,
                    duration_ms=_elapsed_ms(start),
                    exc_info=True,
                )
                raise
            log_event(
                LOGGER,
                logging.INFO,
                "service_call_completed",
                service=service,
                operation=operation,
                correlation_id=correlation_id,
                duration_ms=_elapsed_ms(start),
            )
            return result

        return wrapper  # type: ignore[return-value]

    return decorator


__all__ = ["instrument_call"]
