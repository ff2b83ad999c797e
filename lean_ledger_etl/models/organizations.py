"""Static table of tracked organizations (consumer-facing brands and their PACs)."""

import json
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from lean_ledger_etl.utils.names import comparison_key, slugify

TRACKED_ORGANIZATIONS_PATH = Path(__file__).parent.parent / "data" / "tracked_organizations.json"

UNKNOWN_INDUSTRY = "Unknown"


class TrackedOrganization(BaseModel):
    """One row of the tracked-organization table."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    industry: str = UNKNOWN_INDUSTRY
    committee_id: str | None = Field(default=None, alias="committeeId")
    search_terms: tuple[str, ...] = Field(default=(), alias="searchTerms")
    rank: int | None = None

    @property
    def slug(self) -> str:
        return slugify(self.name)


def validate_tracked_organizations(organizations: list[TrackedOrganization]) -> None:
    """
    Reject a table in which two entries would publish to the same document
    or read as the same entity.

    Raises:
        ValueError: Listing every colliding pair
    """
    problems = []
    seen_slugs: dict[str, str] = {}
    seen_keys: dict[str, str] = {}

    for organization in organizations:
        slug = organization.slug
        if slug in seen_slugs:
            problems.append(f"slug '{slug}': {seen_slugs[slug]!r} / {organization.name!r}")
        seen_slugs.setdefault(slug, organization.name)

        key = comparison_key(organization.name)
        if key in seen_keys:
            problems.append(f"name '{key}': {seen_keys[key]!r} / {organization.name!r}")
        seen_keys.setdefault(key, organization.name)

    if problems:
        raise ValueError("Duplicate tracked organizations: " + "; ".join(problems))


@lru_cache
def load_tracked_organizations(path: Path = TRACKED_ORGANIZATIONS_PATH) -> tuple[TrackedOrganization, ...]:
    """Load and validate the tracked-organization table."""
    with open(path, encoding="utf-8") as f:
        rows = json.load(f)

    organizations = [TrackedOrganization.model_validate(row) for row in rows]
    validate_tracked_organizations(organizations)
    return tuple(organizations)
