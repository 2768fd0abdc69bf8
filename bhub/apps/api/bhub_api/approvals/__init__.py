"""Approval orchestrator: donation review, verification, matching, applications."""

from bhub_api.approvals.errors import ErrorKind
from bhub_api.approvals.orchestrator import ApprovalOrchestrator
from bhub_api.approvals.results import OperationResult

__all__ = ["ApprovalOrchestrator", "ErrorKind", "OperationResult"]
