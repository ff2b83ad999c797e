"""Document-store loaders."""

from lean_ledger_etl.loaders.firestore import (
    FIELD_NUMERIC_KINDS,
    FirestorePublisher,
    to_firestore_fields,
    to_firestore_value,
)

__all__ = [
    "FirestorePublisher",
    "FIELD_NUMERIC_KINDS",
    "to_firestore_fields",
    "to_firestore_value",
]
