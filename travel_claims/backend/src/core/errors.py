"""Error taxonomy and the explicit result envelope returned by core services."""

from __future__ import annotations

import functools
from enum import Enum
from typing import Any, Awaitable, Callable

import structlog
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError

LOGGER = structlog.get_logger(__name__)

GENERIC_DEPENDENCY_MESSAGE = "The service is temporarily unavailable. Please try again shortly."


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    STALE_STATE = "stale_state"
    NOT_FOUND = "not_found"
    DEPENDENCY = "dependency"
    AUTHORIZATION = "authorization"


class ClaimFlowError(Exception):
    """Base class for failures surfaced to callers as a failed result."""

    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ClaimFlowError):
    """Input is missing or malformed; nothing was mutated."""

    kind = ErrorKind.VALIDATION


class StaleStateError(ClaimFlowError):
    """The claim is no longer in the state the action expected."""

    kind = ErrorKind.STALE_STATE


class NotFoundError(ClaimFlowError):
    kind = ErrorKind.NOT_FOUND


class AuthorizationError(ClaimFlowError):
    """The authenticated caller may not perform the action."""

    kind = ErrorKind.AUTHORIZATION


class DependencyError(ClaimFlowError):
    """Persistence or directory is unavailable. Safe to retry with backoff."""

    kind = ErrorKind.DEPENDENCY

    def __init__(self, message: str = GENERIC_DEPENDENCY_MESSAGE) -> None:
        super().__init__(message)


class ServiceResult(BaseModel):
    """Outcome of a core operation; failures never raise across the boundary."""

    success: bool
    data: Any = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    warnings: list[str] = Field(default_factory=list)

    @classmethod
    def ok(cls, data: Any = None, warnings: list[str] | None = None) -> "ServiceResult":
        return cls(success=True, data=data, warnings=list(warnings or []))

    @classmethod
    def fail(cls, exc: ClaimFlowError) -> "ServiceResult":
        return cls(success=False, error=exc.message, error_kind=exc.kind)


def service_result(
    operation: str,
) -> Callable[[Callable[..., Awaitable[Any]]], Callable[..., Awaitable[ServiceResult]]]:
    """Wrap a coroutine so domain and storage failures become a failed result.

    The wrapped coroutine returns either a :class:`ServiceResult` (passed
    through) or a plain payload, which is wrapped with :meth:`ServiceResult.ok`.
    Exceptions outside the taxonomy are programming errors and propagate.
    """

    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[ServiceResult]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> ServiceResult:
            try:
                outcome = await func(*args, **kwargs)
            except DependencyError as exc:
                LOGGER.warning("dependency_unavailable", operation=operation, error=exc.message)
                return ServiceResult.fail(DependencyError())
            except ClaimFlowError as exc:
                LOGGER.info(
                    "operation_refused",
                    operation=operation,
                    kind=exc.kind.value,
                    error=exc.message,
                )
                return ServiceResult.fail(exc)
            except SQLAlchemyError as exc:
                LOGGER.error("persistence_failure", operation=operation, error=str(exc))
                return ServiceResult.fail(DependencyError())
            if isinstance(outcome, ServiceResult):
                return outcome
            return ServiceResult.ok(outcome)

        return wrapper

    return decorator


__all__ = [
    "AuthorizationError",
    "ClaimFlowError",
    "DependencyError",
    "ErrorKind",
    "NotFoundError",
    "ServiceResult",
    "StaleStateError",
    "ValidationError",
    "service_result",
]
