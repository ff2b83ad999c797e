"""Unit tests for contribution parsing and donor aggregation."""

import itertools

import pytest
from pydantic import ValidationError

from lean_ledger_etl.models.fec import (
    IndividualContribution,
    OrganizationContribution,
    OtherContribution,
    classify_counterparty,
    parse_contribution,
)
from lean_ledger_etl.models.records import DonorType
from lean_ledger_etl.transformers.donors import DonorAggregator, aggregate_donors


def raw(name, amount, entity_type=None, **extra):
    return {
        "contributor_name": name,
        "contribution_receipt_amount": amount,
        "entity_type": entity_type,
        **extra,
    }


class TestClassification:
    """Counterparty precedence: committee marker, org code, individual, other."""

    def test_committee_type_marker_wins(self):
        assert classify_counterparty({"contributor_committee_type": "Q", "entity_type": "IND"}) == (
            DonorType.ORGANIZATION
        )

    @pytest.mark.parametrize("entity_type", ["COM", "PAC", "ORG"])
    def test_organization_codes(self, entity_type):
        assert classify_counterparty({"entity_type": entity_type}) == DonorType.ORGANIZATION

    @pytest.mark.parametrize("entity_type", ["IND", None, ""])
    def test_individual_or_missing(self, entity_type):
        assert classify_counterparty({"entity_type": entity_type}) == DonorType.INDIVIDUAL

    def test_anything_else_is_other(self):
        assert classify_counterparty({"entity_type": "CCM"}) == DonorType.OTHER

    def test_parse_builds_tagged_variant(self):
        assert isinstance(parse_contribution(raw("ACME PAC", 5, "COM")), OrganizationContribution)
        assert isinstance(parse_contribution(raw("JANE", 5, "IND")), IndividualContribution)
        assert isinstance(parse_contribution(raw("X", 5, "CAN")), OtherContribution)

    def test_missing_names_fall_back(self):
        assert parse_contribution(raw(None, 5, "PAC")).contributor_name == "Unknown PAC"
        assert parse_contribution(raw("", 5, "IND")).contributor_name == "Unknown Individual"
        assert parse_contribution(raw(None, 5, "CAN")).contributor_name == "Unknown"

    def test_committee_name_used_for_organizations(self):
        contribution = parse_contribution(raw(None, 5, "PAC", committee_name="GLOBEX PAC"))
        assert contribution.contributor_name == "GLOBEX PAC"

    def test_malformed_amount_rejected(self):
        with pytest.raises(ValidationError):
            parse_contribution(raw("JANE", "lots", "IND"))

    def test_blank_amount_is_zero(self):
        assert parse_contribution(raw("JANE", None, "IND")).amount == 0.0


class TestDonorAggregator:
    def test_end_to_end_totals(self):
        contributions = [
            parse_contribution(raw("acme pac", 500, "COM")),
            parse_contribution(raw("acme pac", -10, "COM")),
            parse_contribution(raw("jane doe", 300, "IND")),
        ]

        aggregator = DonorAggregator().add_all(contributions)
        donors = aggregator.donors()

        assert aggregator.total_for(DonorType.ORGANIZATION) == 500
        assert aggregator.total_for(DonorType.INDIVIDUAL) == 300
        assert aggregator.skipped == 1
        assert [(d.name, d.type, d.total_amount, d.contribution_count) for d in donors] == [
            ("ACME PAC", "pac", 500, 1),
            ("JANE DOE", "individual", 300, 1),
        ]

    def test_zero_amounts_excluded_from_counts(self):
        donors = aggregate_donors([parse_contribution(raw("JANE DOE", 0, "IND"))])
        assert donors == []

    def test_same_name_different_type_kept_apart(self):
        donors = aggregate_donors(
            [
                parse_contribution(raw("SMITH", 100, "IND")),
                parse_contribution(raw("SMITH", 50, "PAC")),
            ]
        )
        assert len(donors) == 2

    def test_names_normalized(self):
        donors = aggregate_donors(
            [
                parse_contribution(raw("  Jane Doe ", 100, "IND")),
                parse_contribution(raw("JANE DOE", 50, "IND")),
            ]
        )
        assert len(donors) == 1
        assert donors[0].total_amount == 150
        assert donors[0].contribution_count == 2

    def test_totals_independent_of_order(self):
        contributions = [
            parse_contribution(raw("A", 10, "IND")),
            parse_contribution(raw("B", 20.5, "PAC")),
            parse_contribution(raw("A", 5, "IND")),
            parse_contribution(raw("C", -3, "IND")),
        ]

        expected = {
            (d.type, d.name): (d.total_amount, d.contribution_count)
            for d in aggregate_donors(contributions)
        }
        for permutation in itertools.permutations(contributions):
            result = {
                (d.type, d.name): (d.total_amount, d.contribution_count)
                for d in aggregate_donors(permutation)
            }
            assert result == expected

    def test_ties_keep_first_encounter_order(self):
        donors = aggregate_donors(
            [
                parse_contribution(raw("FIRST", 100, "IND")),
                parse_contribution(raw("SECOND", 100, "IND")),
                parse_contribution(raw("BIG", 500, "IND")),
            ]
        )
        assert [d.name for d in donors] == ["BIG", "FIRST", "SECOND"]

    def test_last_non_empty_employer_kept(self):
        donors = aggregate_donors(
            [
                parse_contribution(raw("JANE", 10, "IND", contributor_employer="ACME")),
                parse_contribution(raw("JANE", 10, "IND", contributor_employer="")),
            ]
        )
        assert donors[0].employer == "ACME"
