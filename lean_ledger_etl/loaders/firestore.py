"""
Publish organization and candidate records to Firestore.

The consuming app decodes documents with strict field types, so numbers are
tagged explicitly through ``FIELD_NUMERIC_KINDS`` instead of being inferred
from the Python value: a total of ``1000`` must arrive as a double, a rank
of ``3`` as an integer. Empty lists are left out of documents entirely.
"""

from collections.abc import Callable
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel

from lean_ledger_etl.clients.firestore import FirestoreClient
from lean_ledger_etl.models.jurisdictions import PRESIDENTIAL_PARTITION
from lean_ledger_etl.models.records import CandidateRecord, OrganizationRecord
from lean_ledger_etl.utils.log import get_logger

ORGANIZATIONS_COLLECTION = "companies"
CANDIDATES_COLLECTION = "candidates"
METADATA_COLLECTION = "metadata"

ORGANIZATION_METADATA_DOC = "lastUpdate"
CANDIDATE_METADATA_DOC = "candidateLastUpdate"


class NumericKind(str, Enum):
    DOUBLE = "doubleValue"
    INTEGER = "integerValue"


FIELD_NUMERIC_KINDS: dict[str, NumericKind] = {
    # Money and percentages
    "totalDemocrat": NumericKind.DOUBLE,
    "totalRepublican": NumericKind.DOUBLE,
    "totalOther": NumericKind.DOUBLE,
    "totalContributions": NumericKind.DOUBLE,
    "percentDemocrat": NumericKind.DOUBLE,
    "percentRepublican": NumericKind.DOUBLE,
    "totalRaised": NumericKind.DOUBLE,
    "totalFromPacs": NumericKind.DOUBLE,
    "totalFromIndividuals": NumericKind.DOUBLE,
    "totalAmount": NumericKind.DOUBLE,
    # Ranks and counts
    "rank": NumericKind.INTEGER,
    "disbursementCount": NumericKind.INTEGER,
    "donorCount": NumericKind.INTEGER,
    "contributionCount": NumericKind.INTEGER,
    "companyCount": NumericKind.INTEGER,
    "candidateCount": NumericKind.INTEGER,
    "presidentialCount": NumericKind.INTEGER,
}


def _numeric_value(kind: NumericKind, value: int | float) -> dict[str, Any]:
    if kind == NumericKind.DOUBLE:
        return {"doubleValue": float(value)}
    return {"integerValue": str(int(value))}


def to_firestore_value(value: Any, field: str | None = None) -> dict[str, Any]:
    """
    Convert a Python value to a typed Firestore value.

    Args:
        value: Value to convert
        field: Name of the field holding it, consulted against
            ``FIELD_NUMERIC_KINDS`` for numbers
    """
    if value is None:
        return {"nullValue": None}
    # bool first: it is an int subclass
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, int | float):
        kind = FIELD_NUMERIC_KINDS.get(field) if field else None
        if kind is None:
            kind = NumericKind.INTEGER if isinstance(value, int) else NumericKind.DOUBLE
        return _numeric_value(kind, value)
    if isinstance(value, str):
        return {"stringValue": value}
    if isinstance(value, datetime):
        return {"timestampValue": to_iso(value)}
    if isinstance(value, BaseModel):
        value = value.model_dump(by_alias=True)
    if isinstance(value, dict):
        return {"mapValue": {"fields": to_firestore_fields(value)}}
    if isinstance(value, list | tuple):
        return {"arrayValue": {"values": [to_firestore_value(item) for item in value]}}
    return {"stringValue": str(value)}


def to_firestore_fields(data: dict[str, Any]) -> dict[str, Any]:
    """Convert a flat or nested dict to a Firestore ``fields`` map, dropping empty lists."""
    return {
        key: to_firestore_value(value, key)
        for key, value in data.items()
        if not (isinstance(value, list | tuple) and len(value) == 0)
    }


def from_firestore_value(value: dict[str, Any]) -> Any:
    """Inverse of ``to_firestore_value`` for the kinds this pipeline reads back."""
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "mapValue" in value:
        fields = value["mapValue"].get("fields", {})
        return {key: from_firestore_value(item) for key, item in fields.items()}
    if "arrayValue" in value:
        return [from_firestore_value(item) for item in value["arrayValue"].get("values", [])]
    if "nullValue" in value:
        return None
    for kind in ("stringValue", "booleanValue", "timestampValue"):
        if kind in value:
            return value[kind]
    return None


def to_iso(moment: datetime) -> str:
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class FirestorePublisher:
    """
    Writes records and run metadata.

    Organizations are written one document at a time as they are produced.
    Candidates are written per partition (a jurisdiction code, or the
    presidential pseudo-partition) together with the removal of documents
    from that partition that the current run no longer produced.
    """

    def __init__(self, store: FirestoreClient, clock: Callable[[], datetime] | None = None):
        self.store = store
        self._clock = clock or (lambda: datetime.now(UTC))

    def _now(self) -> datetime:
        return self._clock()

    def publish_organization(self, record: OrganizationRecord) -> str:
        """
        Replace an organization's document.

        Returns:
            The document id (the organization's slug)
        """
        logger = get_logger(__name__)
        document = {**record.to_document(), "lastUpdated": self._now()}
        self.store.patch_document(ORGANIZATIONS_COLLECTION, record.slug, to_firestore_fields(document))
        logger.info(f"Pushed {record.name} to Firestore ({record.slug})")
        return record.slug

    def existing_partition_ids(self, partition: str) -> set[str]:
        return set(self.store.run_query(CANDIDATES_COLLECTION, "partition", {"stringValue": partition}))

    def publish_partition(
        self, partition: str, records: list[CandidateRecord], remove_stale: bool = True
    ) -> list[str]:
        """
        Write a partition's candidates and delete its stale documents.

        Stale ids are those found in the partition before the write and
        missing from ``records``. Deletes are ordered after all updates.

        Args:
            partition: Jurisdiction code or the presidential partition
            records: Candidates for that partition
            remove_stale: False when ``records`` is knowingly incomplete

        Returns:
            Ids of the deleted stale documents
        """
        logger = get_logger(__name__)
        existing = self.existing_partition_ids(partition) if remove_stale else set()

        writes = []
        fresh_ids = []
        for record in records:
            document = {**record.to_document(), "partition": partition}
            writes.append(
                self._update_write(
                    CANDIDATES_COLLECTION,
                    record.slug,
                    to_firestore_fields(document),
                    server_timestamp="lastUpdated",
                )
            )
            fresh_ids.append(record.slug)

        stale = sorted(existing.difference(fresh_ids))
        for document_id in stale:
            logger.info(f"  Deleting stale candidate: {document_id}")
            writes.append({"delete": self.store.document_name(CANDIDATES_COLLECTION, document_id)})

        batches = self.store.commit(writes) if writes else 0
        logger.info(
            f"Pushed {len(records)} candidates for {partition} in {batches} batch(es), "
            f"removed {len(stale)} stale"
        )
        return stale

    def _update_write(
        self,
        collection: str,
        document_id: str,
        fields: dict[str, Any],
        update_mask: list[str] | None = None,
        server_timestamp: str | None = None,
    ) -> dict[str, Any]:
        write: dict[str, Any] = {
            "update": {"name": self.store.document_name(collection, document_id), "fields": fields}
        }
        if update_mask is not None:
            write["updateMask"] = {"fieldPaths": update_mask}
        if server_timestamp:
            write["updateTransforms"] = [
                {"fieldPath": server_timestamp, "setToServerValue": "REQUEST_TIME"}
            ]
        return write

    def _merge_metadata(self, document_id: str, data: dict[str, Any], field_paths: list[str]) -> None:
        """Merge fields into a metadata doc, stamping ``timestamp`` and ``updatedAt``."""
        fields = to_firestore_fields({**data, "updatedAt": to_iso(self._now())})
        write = self._update_write(
            METADATA_COLLECTION,
            document_id,
            fields,
            update_mask=[*field_paths, "updatedAt"],
            server_timestamp="timestamp",
        )
        self.store.commit([write])

    def update_organization_metadata(self, company_count: int) -> None:
        self._merge_metadata(
            ORGANIZATION_METADATA_DOC, {"companyCount": company_count}, ["companyCount"]
        )
        get_logger(__name__).info(f"Organization metadata updated (companyCount={company_count})")

    def update_partition_count(self, partition: str, count: int) -> None:
        """
        Record one partition's candidate count without touching the others.

        Jurisdictions go to ``stateCounts.<code>``; the presidential
        partition goes to ``presidentialCount``.
        """
        if partition == PRESIDENTIAL_PARTITION:
            self._merge_metadata(
                CANDIDATE_METADATA_DOC, {"presidentialCount": count}, ["presidentialCount"]
            )
        else:
            self._merge_metadata(
                CANDIDATE_METADATA_DOC,
                {"stateCounts": {partition: count}},
                [f"stateCounts.{partition}"],
            )

    def rollup_candidate_count(self) -> int:
        """
        Recompute ``candidateCount`` from the per-partition counts.

        Returns:
            The new total
        """
        fields = self.store.get_document(METADATA_COLLECTION, CANDIDATE_METADATA_DOC) or {}
        state_counts = from_firestore_value(fields.get("stateCounts", {"mapValue": {}})) or {}
        presidential = from_firestore_value(fields.get("presidentialCount", {"integerValue": "0"}))

        total = sum(int(count or 0) for count in state_counts.values()) + int(presidential or 0)
        self._merge_metadata(CANDIDATE_METADATA_DOC, {"candidateCount": total}, ["candidateCount"])
        get_logger(__name__).info(f"Candidate metadata updated (candidateCount={total})")
        return total
