"""Request context management for observability.

Context variables carry request-scoped identifiers into log records only.
They are never read to make authorization decisions: operations receive an
explicit SessionContext instead.
"""

from contextvars import ContextVar

# Request ID - unique per HTTP request
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Actor ID - the authenticated profile performing the current operation
actor_id_var: ContextVar[str] = ContextVar("actor_id", default="")

# Operation - name of the orchestrator operation being executed
operation_var: ContextVar[str] = ContextVar("operation", default="")
