"""
Unit tests for the candidate sweep controller.

Extractors are mocks; publishing goes to the in-memory Firestore fake.
"""

from unittest.mock import Mock

import pytest

from lean_ledger_etl.exceptions import DocumentStoreError, FECAPIError, RateLimitExhaustedError
from lean_ledger_etl.flows.candidate_flow import CandidateRunController, sweep_partitions
from lean_ledger_etl.loaders.firestore import (
    CANDIDATE_METADATA_DOC,
    CANDIDATES_COLLECTION,
    METADATA_COLLECTION,
    FirestorePublisher,
)
from lean_ledger_etl.models.fec import CandidateTotals, FECCandidate, FECCommittee, parse_contribution
from lean_ledger_etl.models.jurisdictions import PRESIDENTIAL_PARTITION
from lean_ledger_etl.models.records import EntityStatus, JurisdictionState
from lean_ledger_etl.utils.checkpoint import CheckpointStore, RunProgress


def fec_candidate(candidate_id, name, office="S", state="CA", district=None):
    return FECCandidate(
        candidate_id=candidate_id,
        name=name,
        party="DEM",
        office=office,
        state=state,
        district=district,
        incumbent_challenge="C",
    )


def senate_searches(extractor: Mock) -> list[str]:
    return [
        c.kwargs["state"] for c in extractor.extract.call_args_list if c.args == ("S",)
    ]


def presidential_searches(extractor: Mock) -> int:
    return sum(1 for c in extractor.extract.call_args_list if c.args == ("P",))


@pytest.fixture
def candidates():
    extractor = Mock()
    extractor.extract.return_value = []
    extractor.get_principal_committee.return_value = None
    extractor.get_totals.return_value = None
    return extractor


@pytest.fixture
def contributions():
    extractor = Mock()
    extractor.extract.return_value = []
    return extractor


@pytest.fixture
def checkpoint(tmp_path):
    return CheckpointStore(tmp_path / "candidate-progress.json")


def test_sweep_partitions():
    full = sweep_partitions()
    assert len(full) == 53
    assert full[-1] == PRESIDENTIAL_PARTITION
    assert sweep_partitions(["CA", "NY"]) == ["CA", "NY"]
    assert sweep_partitions(["CA"], presidential_only=True) == [PRESIDENTIAL_PARTITION]


class TestResume:
    def test_resume_skips_completed_states(self, candidates, contributions, checkpoint):
        saved = RunProgress()
        saved.mark_completed("CA", 40)
        saved.mark_completed("NY", 25)
        checkpoint.save(saved)

        controller = CandidateRunController(candidates, contributions, checkpoint=checkpoint)
        controller.run(resume=True)

        states = senate_searches(candidates)
        assert len(states) == 50
        assert "CA" not in states and "NY" not in states
        assert presidential_searches(candidates) == 1
        # Every partition finished, so the checkpoint is gone
        assert checkpoint.load() is None

    def test_resume_skips_completed_presidential(self, candidates, contributions, checkpoint):
        saved = RunProgress()
        saved.mark_completed(PRESIDENTIAL_PARTITION, 9)
        checkpoint.save(saved)

        controller = CandidateRunController(candidates, contributions, checkpoint=checkpoint)
        controller.run(resume=True)

        assert len(senate_searches(candidates)) == 52
        assert presidential_searches(candidates) == 0

    def test_without_resume_checkpoint_ignored(self, candidates, contributions, checkpoint):
        saved = RunProgress()
        saved.mark_completed("CA", 40)
        checkpoint.save(saved)

        controller = CandidateRunController(candidates, contributions, checkpoint=checkpoint)
        controller.run(states=["CA"])

        assert senate_searches(candidates) == ["CA"]

    def test_house_searched_per_district(self, candidates, contributions):
        controller = CandidateRunController(candidates, contributions)
        controller.run(states=["WY"])

        house = [c.kwargs for c in candidates.extract.call_args_list if c.args == ("H",)]
        assert house == [{"state": "WY", "district": "00"}]


class TestRateLimitStop:
    def test_stops_and_saves_progress(self, candidates, contributions, checkpoint):
        def extract(office, state=None, district=None):
            if state == "AK":
                raise RateLimitExhaustedError(8)
            return []

        candidates.extract.side_effect = extract
        controller = CandidateRunController(
            candidates, contributions, publisher=Mock(), checkpoint=checkpoint
        )

        summary = controller.run()

        assert summary.rate_limit_hit is True
        assert summary.exit_code == 1
        saved = checkpoint.load()
        assert saved.completed == ["AL"]
        assert saved.state_of("AK") == JurisdictionState.RATE_LIMITED
        assert presidential_searches(candidates) == 0

    def test_resume_continues_where_it_stopped(self, candidates, contributions, checkpoint):
        saved = RunProgress()
        saved.mark_completed("AL", 3)
        saved.mark_rate_limited("AK")
        checkpoint.save(saved)

        controller = CandidateRunController(candidates, contributions, checkpoint=checkpoint)
        summary = controller.run(resume=True)

        assert senate_searches(candidates)[0] == "AK"
        assert summary.rate_limit_hit is False

    def test_rate_limit_inside_candidate_propagates(self, candidates, contributions, checkpoint):
        candidates.extract.side_effect = lambda office, state=None, district=None: (
            [fec_candidate("S0CA1", "DOE, JANE")] if office == "S" else []
        )
        candidates.get_principal_committee.side_effect = RateLimitExhaustedError(8)

        controller = CandidateRunController(candidates, contributions, checkpoint=checkpoint)
        summary = controller.run(states=["CA"])

        assert summary.rate_limit_hit is True
        assert summary.errored == 0
        assert checkpoint.load().completed == []

    def test_partition_cut_short_is_not_counted(self, candidates, contributions):
        candidates.extract.side_effect = lambda office, state=None, district=None: (
            [fec_candidate("S0CA1", "DOE, JANE"), fec_candidate("S0CA2", "ROE, RICHARD")]
            if office == "S"
            else []
        )
        candidates.get_principal_committee.side_effect = [None, RateLimitExhaustedError(8)]
        publisher = Mock()

        controller = CandidateRunController(candidates, contributions, publisher=publisher)
        summary = controller.run(states=["CA"])

        assert summary.rate_limit_hit is True
        assert summary.processed == 0
        assert summary.degraded == 0
        publisher.publish_partition.assert_not_called()


class TestPartitionProcessing:
    @pytest.fixture
    def publisher(self, fake_store, fixed_clock):
        return FirestorePublisher(fake_store, clock=fixed_clock)

    def test_publishes_records_counts_and_rollup(
        self, candidates, contributions, publisher, fake_store, checkpoint, tmp_path
    ):
        jane = fec_candidate("S0CA1", "DOE, JANE")
        john = fec_candidate("S0CA2", "ROE, JOHN")
        candidates.extract.side_effect = lambda office, state=None, district=None: (
            [jane, john] if office == "S" else []
        )
        committee = FECCommittee(committee_id="C100", name="DOE FOR SENATE")
        candidates.get_principal_committee.side_effect = lambda cid: committee if cid == "S0CA1" else None
        candidates.get_totals.return_value = CandidateTotals(receipts=12345.678)
        contributions.extract.return_value = [
            parse_contribution(
                {"contributor_name": "ACME PAC", "entity_type": "PAC", "contribution_receipt_amount": 500}
            ),
            parse_contribution(
                {"contributor_name": "JANE SMITH", "entity_type": "IND", "contribution_receipt_amount": 250}
            ),
        ]
        fake_store.seed(CANDIDATES_COLLECTION, "s0ca9", {"partition": {"stringValue": "CA"}})

        controller = CandidateRunController(
            candidates, contributions, publisher=publisher, checkpoint=checkpoint, logs_dir=tmp_path
        )
        summary = controller.run(states=["CA"])

        assert summary.processed == 2
        assert summary.succeeded == 1
        assert summary.degraded == 1
        assert summary.published == 2
        assert summary.exit_code == 0
        assert fake_store.ids(CANDIDATES_COLLECTION) == {"s0ca1", "s0ca2"}

        jane_doc = fake_store.collections[CANDIDATES_COLLECTION]["s0ca1"]
        assert jane_doc["name"] == {"stringValue": "Jane Doe"}
        assert jane_doc["totalRaised"] == {"doubleValue": 12345.68}
        assert jane_doc["totalFromPacs"] == {"doubleValue": 500.0}
        assert jane_doc["donorCount"] == {"integerValue": "2"}

        metadata = fake_store.collections[METADATA_COLLECTION][CANDIDATE_METADATA_DOC]
        assert metadata["candidateCount"] == {"integerValue": "2"}
        assert (tmp_path / "candidate-count.txt").read_text() == "2"

    def test_name_filter_skips_cleanup_and_counts(
        self, candidates, contributions, publisher, fake_store, checkpoint
    ):
        candidates.extract.side_effect = lambda office, state=None, district=None: (
            [fec_candidate("S0CA1", "DOE, JANE"), fec_candidate("S0CA2", "ROE, JOHN")]
            if office == "S"
            else []
        )
        fake_store.seed(CANDIDATES_COLLECTION, "s0ca9", {"partition": {"stringValue": "CA"}})

        controller = CandidateRunController(
            candidates, contributions, publisher=publisher, checkpoint=checkpoint
        )
        summary = controller.run(states=["CA"], name_filter="jane")

        assert summary.processed == 1
        assert fake_store.ids(CANDIDATES_COLLECTION) == {"s0ca1", "s0ca9"}
        assert CANDIDATE_METADATA_DOC not in fake_store.collections.get(METADATA_COLLECTION, {})
        assert checkpoint.load() is None

    def test_duplicate_names_collapsed(self, candidates, contributions, publisher, fake_store):
        candidates.extract.side_effect = lambda office, state=None, district=None: (
            [fec_candidate("S0CA1", "DOE, JANE"), fec_candidate("S0CA3", "DOE, JANE")]
            if office == "S"
            else []
        )

        controller = CandidateRunController(candidates, contributions, publisher=publisher)
        controller.run(states=["CA"])

        assert fake_store.ids(CANDIDATES_COLLECTION) == {"s0ca1"}

    def test_candidate_error_recorded_and_sweep_continues(self, candidates, contributions):
        candidates.extract.side_effect = lambda office, state=None, district=None: (
            [fec_candidate("S0CA1", "DOE, JANE")] if office == "S" else []
        )
        candidates.get_principal_committee.side_effect = FECAPIError("boom", status_code=500)

        controller = CandidateRunController(candidates, contributions, publisher=Mock())
        summary = controller.run(states=["CA", "NY"])

        assert summary.errored == 2
        assert summary.errors[0].status == EntityStatus.ERROR
        assert summary.exit_code == 1
        assert senate_searches(candidates) == ["CA", "NY"]

    def test_discovery_failure_leaves_partition_pending(self, candidates, contributions, checkpoint):
        def extract(office, state=None, district=None):
            if state == "CA":
                raise FECAPIError("boom", status_code=502)
            return []

        candidates.extract.side_effect = extract
        controller = CandidateRunController(candidates, contributions, checkpoint=checkpoint)
        summary = controller.run(states=["CA", "NY"])

        assert summary.errored == 1
        assert checkpoint.load().completed == ["NY"]

    def test_publish_failure_counts_only_the_partition(self, candidates, contributions):
        candidates.extract.side_effect = lambda office, state=None, district=None: (
            [fec_candidate("S0CA1", "DOE, JANE")] if office == "S" else []
        )
        publisher = Mock()
        publisher.publish_partition.side_effect = DocumentStoreError("unavailable", status_code=503)

        controller = CandidateRunController(candidates, contributions, publisher=publisher)
        summary = controller.run(states=["CA"])

        assert summary.processed == 1
        assert summary.errored == 1
        assert summary.errors[0].name == "CA"
        assert summary.published == 0

    def test_dry_run_always_exits_zero(self, candidates, contributions):
        candidates.extract.side_effect = lambda office, state=None, district=None: (
            [fec_candidate("S0CA1", "DOE, JANE")] if office == "S" else []
        )
        candidates.get_principal_committee.side_effect = FECAPIError("boom")

        summary = CandidateRunController(candidates, contributions).run(states=["CA"])

        assert summary.dry_run is True
        assert summary.errored == 1
        assert summary.exit_code == 0
