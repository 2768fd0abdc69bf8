"""Uniform operation result and the operation boundary decorator."""

import functools
import logging
from typing import Any, Callable, Optional, TypeVar

from pydantic import BaseModel, ConfigDict

from bhub_api.approvals.errors import ApprovalError, ErrorKind
from bhub_api.context import actor_id_var, operation_var

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., "OperationResult"])


class OperationResult(BaseModel):
    """{success, error, error_kind, **extra} returned by every operation."""

    model_config = ConfigDict(extra="allow", use_enum_values=True)

    success: bool
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    @classmethod
    def ok(cls, **extra: Any) -> "OperationResult":
        return cls(success=True, **extra)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str) -> "OperationResult":
        return cls(success=False, error=message, error_kind=kind)

    @property
    def extra(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


def operation(name: str) -> Callable[[F], F]:
    """Wrap an orchestrator method so no exception crosses the boundary.

    On failure the method's DB session (``self.db``) is rolled back.
    Domain errors are logged at warning, anything else at error with the
    traceback. The operation name and resolved actor are stamped into logs
    through context variables for the duration of the call.
    """

    def decorator(fn: F) -> F:
        @functools.wraps(fn)
        def wrapper(self, *args: Any, **kwargs: Any) -> OperationResult:
            op_token = operation_var.set(name)
            actor_token = actor_id_var.set("")
            try:
                return fn(self, *args, **kwargs)
            except ApprovalError as e:
                self.db.rollback()
                logger.warning(
                    f"{name} refused: {e.message}",
                    extra={"event": f"{name}.refused", "error_kind": e.kind.value},
                )
                return OperationResult.fail(e.kind, e.message)
            except Exception:
                self.db.rollback()
                logger.error(
                    f"{name} failed unexpectedly",
                    extra={"event": f"{name}.error"},
                    exc_info=True,
                )
                return OperationResult.fail(ErrorKind.UNEXPECTED, "An unexpected error occurred")
            finally:
                actor_id_var.reset(actor_token)
                operation_var.reset(op_token)

        return wrapper  # type: ignore[return-value]

    return decorator
