"""Composable instrumentation for public API methods.

``public_api_instrumented`` wraps one public method (sync or ``async``) and
dispatches invocation/completion events to a set of concerns. The logging
concern is the default; tests and future observability layers add their own
by implementing ``PublicApiInstrumentationConcern``.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from functools import wraps
from time import perf_counter
from typing import Any, Callable, Mapping, Protocol, Sequence

from packages.blobvault_shared.errors import BlobVaultError

from . import fields
from .context import log_context


@dataclass(frozen=True)
class InvocationContext:
    """Structured metadata describing one public API invocation."""

    component_id: str
    api_name: str
    references: Mapping[str, str]


@dataclass(frozen=True)
class CompletionContext:
    """Structured metadata describing one completed public API invocation."""

    invocation: InvocationContext
    success: bool
    duration_ms: float
    errors: list[str]
    error_code: str | None = None


class PublicApiInstrumentationConcern(Protocol):
    """Hook contract for one public API instrumentation concern."""

    def on_invocation(self, context: InvocationContext) -> None:
        """Handle invocation-start event for one method call."""

    def on_completion(self, context: CompletionContext) -> None:
        """Handle completion event for one method call."""


class PublicApiLoggingConcern:
    """Logging concern emitting structured invocation/completion lines."""

    def __init__(self, *, logger: Any) -> None:
        self._logger = logger

    def on_invocation(self, context: InvocationContext) -> None:
        """Emit the invocation-start log line at DEBUG."""
        with log_context(_invocation_log_context(context)):
            self._logger.debug("Public API invocation")

    def on_completion(self, context: CompletionContext) -> None:
        """Emit the completion log line; failures are warnings."""
        payload = _invocation_log_context(context.invocation)
        payload.update(
            {
                fields.EVENT: fields.PUBLIC_API_COMPLETION_EVENT,
                fields.SUCCESS: context.success,
                fields.DURATION_MS: context.duration_ms,
                fields.ERRORS: context.errors,
                fields.ERROR_CODE: context.error_code,
            }
        )
        with log_context(payload):
            if context.success:
                self._logger.info("Public API completion")
            else:
                self._logger.warning("Public API completion")


def public_api_instrumented(
    *,
    component_id: str,
    api_name: str | None = None,
    id_fields: tuple[str, ...] = (),
    concerns: Sequence[PublicApiInstrumentationConcern] | None = None,
    logger: Any | None = None,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorate one public API method with instrumentation concerns.

    ``id_fields`` names keyword arguments whose values are attached to every
    event as references (for example ``position``). Secret-bearing arguments
    must never be listed there.
    """
    resolved: tuple[PublicApiInstrumentationConcern, ...] = tuple(concerns or ())
    if logger is not None:
        resolved = (PublicApiLoggingConcern(logger=logger), *resolved)
    if len(resolved) == 0:
        raise ValueError("public_api_instrumented requires at least one concern")

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        method_name = api_name or func.__name__

        def start(kwargs: Mapping[str, Any]) -> InvocationContext:
            invocation = InvocationContext(
                component_id=component_id,
                api_name=method_name,
                references={
                    name: str(kwargs[name])
                    for name in id_fields
                    if kwargs.get(name) not in (None, "")
                },
            )
            _emit_invocation(concerns=resolved, context=invocation, logger=logger)
            return invocation

        def finish(
            invocation: InvocationContext,
            started: float,
            exc: BaseException | None,
        ) -> None:
            completion = CompletionContext(
                invocation=invocation,
                success=exc is None,
                duration_ms=round((perf_counter() - started) * 1000.0, 3),
                errors=[] if exc is None else [_summarize(exc)],
                error_code=_error_code(exc),
            )
            _emit_completion(concerns=resolved, context=completion, logger=logger)

        if inspect.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                invocation = start(kwargs)
                started = perf_counter()
                try:
                    result = await func(*args, **kwargs)
                except Exception as exc:
                    finish(invocation, started, exc)
                    raise
                finish(invocation, started, None)
                return result

            return async_wrapper

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            invocation = start(kwargs)
            started = perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as exc:
                finish(invocation, started, exc)
                raise
            finish(invocation, started, None)
            return result

        return wrapper

    return decorator


def _summarize(exc: BaseException) -> str:
    """Return a safe one-line summary of one failure."""
    if isinstance(exc, BlobVaultError):
        return f"{exc.code}: {exc.message}"
    return f"{type(exc).__name__}: {exc}"


def _error_code(exc: BaseException | None) -> str | None:
    """Return the typed error code of one failure when it has one."""
    if isinstance(exc, BlobVaultError):
        return exc.code
    return None


def _invocation_log_context(context: InvocationContext) -> dict[str, object]:
    """Build common structured fields for one invocation event."""
    return {
        fields.EVENT: fields.PUBLIC_API_INVOCATION_EVENT,
        fields.COMPONENT_ID: context.component_id,
        fields.API_NAME: context.api_name,
        **context.references,
    }


def _emit_invocation(
    *,
    concerns: Sequence[PublicApiInstrumentationConcern],
    context: InvocationContext,
    logger: Any | None,
) -> None:
    """Dispatch the invocation event to concerns with failure isolation."""
    for concern in concerns:
        try:
            concern.on_invocation(context)
        except Exception as exc:  # noqa: BLE001
            _log_concern_failure(
                logger=logger,
                stage="invocation",
                concern=type(concern).__name__,
                exc=exc,
                invocation=context,
            )


def _emit_completion(
    *,
    concerns: Sequence[PublicApiInstrumentationConcern],
    context: CompletionContext,
    logger: Any | None,
) -> None:
    """Dispatch the completion event to concerns with failure isolation."""
    for concern in concerns:
        try:
            concern.on_completion(context)
        except Exception as exc:  # noqa: BLE001
            _log_concern_failure(
                logger=logger,
                stage="completion",
                concern=type(concern).__name__,
                exc=exc,
                invocation=context.invocation,
            )


def _log_concern_failure(
    *,
    logger: Any | None,
    stage: str,
    concern: str,
    exc: Exception,
    invocation: InvocationContext,
) -> None:
    """Best-effort warning for a concern hook that raised."""
    if logger is None:
        return
    with log_context(
        {
            fields.EVENT: fields.PUBLIC_API_INSTRUMENTATION_FAILURE_EVENT,
            fields.COMPONENT_ID: invocation.component_id,
            fields.API_NAME: invocation.api_name,
            fields.STAGE: stage,
            fields.CONCERN: concern,
            fields.ERRORS: [f"{type(exc).__name__}: {exc}"],
        }
    ):
        logger.warning("Public API instrumentation concern failed")
