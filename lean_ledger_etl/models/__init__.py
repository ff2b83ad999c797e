"""Models package."""

from lean_ledger_etl.models.records import (
    CandidateRecord,
    Category,
    DonorAggregate,
    DonorType,
    EntityOutcome,
    EntityStatus,
    JurisdictionState,
    OrganizationRecord,
    PartisanSplit,
    RunSummary,
)

__all__ = [
    "DonorType",
    "DonorAggregate",
    "Category",
    "PartisanSplit",
    "OrganizationRecord",
    "CandidateRecord",
    "EntityStatus",
    "EntityOutcome",
    "JurisdictionState",
    "RunSummary",
]
