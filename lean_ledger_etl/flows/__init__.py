"""Prefect flows for the organization refresh and the candidate sweep."""

from lean_ledger_etl.flows.candidate_flow import CandidateRunController, candidate_sweep_flow
from lean_ledger_etl.flows.organization_flow import OrganizationRunner, organization_refresh_flow

__all__ = [
    # Organizations
    "OrganizationRunner",
    "organization_refresh_flow",
    # Candidates
    "CandidateRunController",
    "candidate_sweep_flow",
]
