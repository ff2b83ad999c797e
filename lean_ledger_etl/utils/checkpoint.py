"""Persisted progress of a candidate sweep, used to resume after an interruption."""

import json
import os
import tempfile
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from lean_ledger_etl.models.records import JurisdictionState
from lean_ledger_etl.utils.log import get_logger


def _utc_now() -> datetime:
    return datetime.now(UTC)


class RunProgress(BaseModel):
    """
    Completed partitions of a sweep plus their candidate counts.

    Partitions move ``pending -> in_progress -> completed | rate_limited``;
    anything not recorded here is pending.
    """

    completed: list[str] = Field(default_factory=list)
    counts: dict[str, int] = Field(default_factory=dict)
    states: dict[str, JurisdictionState] = Field(default_factory=dict)
    started_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime | None = None

    def state_of(self, partition: str) -> JurisdictionState:
        return self.states.get(partition, JurisdictionState.PENDING)

    def is_completed(self, partition: str) -> bool:
        return partition in self.completed

    def mark_in_progress(self, partition: str) -> None:
        self.states[partition] = JurisdictionState.IN_PROGRESS

    def mark_completed(self, partition: str, count: int) -> None:
        if partition not in self.completed:
            self.completed.append(partition)
        self.counts[partition] = count
        self.states[partition] = JurisdictionState.COMPLETED

    def mark_rate_limited(self, partition: str) -> None:
        self.states[partition] = JurisdictionState.RATE_LIMITED


class CheckpointStore:
    """JSON file holding a ``RunProgress``."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def load(self) -> RunProgress | None:
        """
        Load saved progress.

        Returns:
            The saved progress, or None if there is no usable checkpoint
        """
        logger = get_logger(__name__)
        if not self.path.exists():
            return None

        try:
            return RunProgress.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (ValidationError, ValueError) as e:
            logger.warning(f"Ignoring unreadable checkpoint {self.path}: {e}")
            return None

    def save(self, progress: RunProgress) -> None:
        """
        Write progress atomically: temp file in the same directory, fsync,
        then rename over the checkpoint.
        """
        progress.updated_at = _utc_now()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(progress.model_dump(mode="json"), indent=2)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
