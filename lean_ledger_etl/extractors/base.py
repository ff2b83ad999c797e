"""Base extractor class for FEC data."""

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from typing import Any, TypeVar

from pydantic import ValidationError

from lean_ledger_etl.clients.fec import FECAPIClient
from lean_ledger_etl.utils.log import get_logger

T = TypeVar("T")


class BaseExtractor(ABC):
    """Abstract base class for extractors."""

    def __init__(self, api_client: FECAPIClient):
        self.api_client = api_client

    @abstractmethod
    def extract(self, **kwargs) -> list:
        """
        Extract data from source.

        Returns:
            Validated records
        """
        pass

    def validate_rows(
        self,
        rows: Iterable[dict[str, Any]],
        parse: Callable[[dict[str, Any]], T],
        label: str,
    ) -> list[T]:
        """
        Validate raw API rows, dropping malformed ones with a warning.

        Args:
            rows: Raw result dictionaries
            parse: Model validator (e.g. ``Model.model_validate``)
            label: What the rows are, for log messages
        """
        logger = get_logger(__name__)
        valid: list[T] = []

        for row in rows:
            try:
                valid.append(parse(row))
            except ValidationError as e:
                logger.warning(
                    f"Skipping malformed {label} record {row.get('sub_id', '')}: "
                    f"{e.error_count()} validation error(s)"
                )

        return valid
