"""Beneficiary Hub API: donor/school onboarding, donation approvals and matching."""

__version__ = "0.3.0"
