"""Approval orchestrator facade.

One instance per unit of work (HTTP request, script run). Every public
operation takes an explicit SessionContext, resolves the actor from it,
and returns an OperationResult.
"""

from typing import Optional

from sqlalchemy.orm import Session

from bhub_api.approvals.applications import ApplicationWorkflow
from bhub_api.approvals.donations import DonationApprovals
from bhub_api.approvals.matches import MatchWorkflow
from bhub_api.approvals.school_settings import SchoolSettingsWorkflow
from bhub_api.approvals.verification import VerificationApprovals
from bhub_api.auth.identity import IdentityProvider
from bhub_api.config.env import DonationApprovalMode, get_donation_approval_mode
from bhub_api.matching.recommender import MatchRecommender
from bhub_api.notifications.dispatcher import EmailDispatcher


class ApprovalOrchestrator(
    DonationApprovals,
    VerificationApprovals,
    MatchWorkflow,
    ApplicationWorkflow,
    SchoolSettingsWorkflow,
):
    def __init__(
        self,
        db: Session,
        identity: IdentityProvider,
        dispatcher: EmailDispatcher,
        recommender: Optional[MatchRecommender] = None,
        approval_mode: Optional[DonationApprovalMode] = None,
    ):
        super().__init__(db, identity, dispatcher)
        self.recommender = recommender
        self.approval_mode = approval_mode or get_donation_approval_mode()
