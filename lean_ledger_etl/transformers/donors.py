"""Fold validated contributions into per-donor aggregates."""

from collections.abc import Iterable

from lean_ledger_etl.models.fec import Contribution
from lean_ledger_etl.models.records import DonorAggregate, DonorType


def normalize_donor_name(name: str) -> str:
    return name.strip().upper()


class DonorAggregator:
    """
    Reduce contributions into ``DonorAggregate`` rows keyed by
    ``(donor type, normalized name)``.

    Non-positive amounts are skipped entirely. Totals and counts do not
    depend on input order; employer and state keep the last non-empty value
    seen, so those two fields do.
    """

    def __init__(self) -> None:
        self._donors: dict[tuple[DonorType, str], DonorAggregate] = {}
        self.skipped = 0

    def add(self, contribution: Contribution) -> None:
        if contribution.amount <= 0:
            self.skipped += 1
            return

        name = normalize_donor_name(contribution.contributor_name)
        key = (contribution.kind, name)

        donor = self._donors.get(key)
        if donor is None:
            donor = DonorAggregate(name=name, type=contribution.kind)
            self._donors[key] = donor

        donor.total_amount += contribution.amount
        donor.contribution_count += 1
        if contribution.employer:
            donor.employer = contribution.employer
        if contribution.state:
            donor.state = contribution.state

    def add_all(self, contributions: Iterable[Contribution]) -> "DonorAggregator":
        for contribution in contributions:
            self.add(contribution)
        return self

    def donors(self) -> list[DonorAggregate]:
        """Aggregates by descending amount; ties keep first-encounter order."""
        return sorted(self._donors.values(), key=lambda d: d.total_amount, reverse=True)

    def total_for(self, donor_type: DonorType) -> float:
        return sum(
            donor.total_amount for (kind, _), donor in self._donors.items() if kind == donor_type
        )

    def __len__(self) -> int:
        return len(self._donors)


def aggregate_donors(contributions: Iterable[Contribution]) -> list[DonorAggregate]:
    """Aggregate contributions and return donors sorted by descending total."""
    return DonorAggregator().add_all(contributions).donors()
