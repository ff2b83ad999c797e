"""US states and DC/Puerto Rico reference data for the candidate sweep."""

from typing import NamedTuple

# FEC district code used for single-seat (at-large) House delegations
AT_LARGE_DISTRICT = "00"

# Pseudo-jurisdiction tracking the presidential sweep in run progress
PRESIDENTIAL_PARTITION = "_presidential"


class Jurisdiction(NamedTuple):
    code: str
    name: str
    house_districts: int


# House seat counts from the 2020 Census apportionment
JURISDICTIONS: tuple[Jurisdiction, ...] = (
    Jurisdiction("AL", "Alabama", 7),
    Jurisdiction("AK", "Alaska", 1),
    Jurisdiction("AZ", "Arizona", 9),
    Jurisdiction("AR", "Arkansas", 4),
    Jurisdiction("CA", "California", 52),
    Jurisdiction("CO", "Colorado", 8),
    Jurisdiction("CT", "Connecticut", 5),
    Jurisdiction("DE", "Delaware", 1),
    Jurisdiction("FL", "Florida", 28),
    Jurisdiction("GA", "Georgia", 14),
    Jurisdiction("HI", "Hawaii", 2),
    Jurisdiction("ID", "Idaho", 2),
    Jurisdiction("IL", "Illinois", 17),
    Jurisdiction("IN", "Indiana", 9),
    Jurisdiction("IA", "Iowa", 4),
    Jurisdiction("KS", "Kansas", 4),
    Jurisdiction("KY", "Kentucky", 6),
    Jurisdiction("LA", "Louisiana", 6),
    Jurisdiction("ME", "Maine", 2),
    Jurisdiction("MD", "Maryland", 8),
    Jurisdiction("MA", "Massachusetts", 9),
    Jurisdiction("MI", "Michigan", 13),
    Jurisdiction("MN", "Minnesota", 8),
    Jurisdiction("MS", "Mississippi", 4),
    Jurisdiction("MO", "Missouri", 8),
    Jurisdiction("MT", "Montana", 2),
    Jurisdiction("NE", "Nebraska", 3),
    Jurisdiction("NV", "Nevada", 4),
    Jurisdiction("NH", "New Hampshire", 2),
    Jurisdiction("NJ", "New Jersey", 12),
    Jurisdiction("NM", "New Mexico", 3),
    Jurisdiction("NY", "New York", 26),
    Jurisdiction("NC", "North Carolina", 14),
    Jurisdiction("ND", "North Dakota", 1),
    Jurisdiction("OH", "Ohio", 15),
    Jurisdiction("OK", "Oklahoma", 5),
    Jurisdiction("OR", "Oregon", 6),
    Jurisdiction("PA", "Pennsylvania", 17),
    Jurisdiction("RI", "Rhode Island", 2),
    Jurisdiction("SC", "South Carolina", 7),
    Jurisdiction("SD", "South Dakota", 1),
    Jurisdiction("TN", "Tennessee", 9),
    Jurisdiction("TX", "Texas", 38),
    Jurisdiction("UT", "Utah", 4),
    Jurisdiction("VT", "Vermont", 1),
    Jurisdiction("VA", "Virginia", 11),
    Jurisdiction("WA", "Washington", 10),
    Jurisdiction("WV", "West Virginia", 2),
    Jurisdiction("WI", "Wisconsin", 8),
    Jurisdiction("WY", "Wyoming", 1),
    Jurisdiction("DC", "District of Columbia", 1),
    Jurisdiction("PR", "Puerto Rico", 1),
)

_BY_CODE = {jurisdiction.code: jurisdiction for jurisdiction in JURISDICTIONS}


def get_all_jurisdictions() -> list[Jurisdiction]:
    """All 52 jurisdictions in sweep order."""
    return list(JURISDICTIONS)


def get_jurisdiction(code: str) -> Jurisdiction | None:
    return _BY_CODE.get(code.upper())


def get_districts(code: str) -> list[str]:
    """
    Zero-padded House district codes for a jurisdiction.

    Single-seat jurisdictions yield the at-large code ``"00"`` only.
    Unknown codes yield an empty list.
    """
    jurisdiction = get_jurisdiction(code)
    if jurisdiction is None:
        return []

    if jurisdiction.house_districts == 1:
        return [AT_LARGE_DISTRICT]

    return [f"{number:02d}" for number in range(1, jurisdiction.house_districts + 1)]


def get_jurisdiction_name(code: str) -> str:
    """Display name for a code, or the code itself when unknown."""
    jurisdiction = get_jurisdiction(code)
    return jurisdiction.name if jurisdiction else code


def parse_jurisdiction_codes(raw: str) -> list[str]:
    """
    Parse a comma-separated code filter ("ca, NY") into known codes.

    Raises:
        ValueError: If any code is unknown
    """
    codes = [code.strip().upper() for code in raw.split(",") if code.strip()]
    unknown = [code for code in codes if code not in _BY_CODE]
    if unknown:
        raise ValueError(
            f"Unknown jurisdiction code(s): {', '.join(unknown)}. "
            f"Valid codes: {', '.join(_BY_CODE)}"
        )
    return list(dict.fromkeys(codes))
