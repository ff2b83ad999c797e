"""
Name normalization.

Two strengths are kept deliberately separate:

- ``slugify`` produces persisted document keys and must stay stable across
  runs. It is idempotent and insensitive to a trailing legal suffix.
- ``comparison_key`` is a looser, transient signal for spotting the same
  entity across runs or sources. It is never stored as a key.

Candidate names from the FEC registry ("LAST, FIRST MIDDLE JR") are handled
by ``format_candidate_name``.
"""

import re

# Trailing legal/corporate designators, optionally preceded by "&" ("Deere & Company")
_CORPORATE_SUFFIX = re.compile(
    r"[\s,]+(?:&\s*)?"
    r"(?:incorporated|inc|corporation|corp|company|co|llc|l\.l\.c|ltd|limited|lp|llp|plc"
    r"|holdings|holding|group|international|intl)\.?$",
    re.IGNORECASE,
)
_LEADING_ARTICLE = re.compile(r"^the\s+", re.IGNORECASE)

_HONORIFICS = re.compile(
    r"\b(?:MR|MRS|MS|MISS|DR|HON|REV|SGT|CPT|MAJ|COL|GEN|SEN|REP)\b\.?\s*",
    re.IGNORECASE,
)
_GENERATIONAL_SUFFIX = re.compile(r"\b(JR|SR|III|II|IV)\b\.?$", re.IGNORECASE)
_ROMAN_NUMERAL = re.compile(r"^[IVX]+$", re.IGNORECASE)


def strip_corporate_suffixes(name: str) -> str:
    """
    Remove trailing corporate suffixes ("Acme Holdings Inc." -> "Acme").

    Stripping repeats until nothing changes but never empties the name.
    """
    while True:
        stripped = _CORPORATE_SUFFIX.sub("", name)
        if stripped == name or not stripped.strip():
            return name
        name = stripped


def slugify(name: str) -> str:
    """
    Convert a free-text name to a stable, URL-friendly document key.

    >>> slugify("Procter & Gamble Co.")
    'procter-and-gamble'
    """
    slug = strip_corporate_suffixes(str(name).lower().strip())
    slug = re.sub(r"\s+", "-", slug)
    slug = slug.replace("&", "-and-")
    slug = re.sub(r"[^a-z0-9-]+", "", slug)
    slug = re.sub(r"-{2,}", "-", slug)
    return slug.strip("-")


def comparison_key(name: str | None) -> str:
    """
    Loose dedup key: lowercase, no punctuation, no suffixes, no leading "the".

    >>> comparison_key("The Home Depot, Inc.")
    'home depot'
    """
    key = (name or "").lower()
    key = re.sub(r"[^\w\s&]", "", key)
    key = re.sub(r"\s+", " ", key).strip()
    key = strip_corporate_suffixes(key)
    key = _LEADING_ARTICLE.sub("", key)
    key = key.replace("&", " ")
    return re.sub(r"\s+", " ", key).strip()


def strip_titles(name_part: str) -> str:
    """Strip honorifics such as MR., DR., HON. or SEN. from a name part."""
    stripped = _HONORIFICS.sub("", name_part)
    return re.sub(r"\s{2,}", " ", stripped).strip()


def title_case(text: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in text.lower().split())


def _format_suffix(suffix: str) -> str:
    # Roman numerals read wrong title-cased ("Iii"); Jr/Sr are title-cased
    if _ROMAN_NUMERAL.match(suffix):
        return suffix.upper()
    return title_case(suffix)


def _split_suffix(name_part: str) -> tuple[str, str]:
    match = _GENERATIONAL_SUFFIX.search(name_part)
    if not match:
        return name_part, ""
    return name_part[: match.start()].strip().rstrip(","), _format_suffix(match.group(1))


def format_candidate_name(fec_name: str | None) -> str:
    """
    Format an FEC candidate name from "LAST, FIRST MIDDLE" to "First Middle Last".

    Honorifics are dropped and a generational suffix found at the end of
    either part is moved to the end of the formatted name.

    >>> format_candidate_name("SMITH, JOHN A JR.")
    'John A Smith Jr'
    """
    if not fec_name or not fec_name.strip():
        return "Unknown"

    if "," not in fec_name:
        # Not in registry order, title case what we have
        given, suffix = _split_suffix(strip_titles(fec_name.strip()))
        return " ".join(part for part in (title_case(given), suffix) if part) or "Unknown"

    last_part, given_part = fec_name.split(",", 1)
    last_name, last_suffix = _split_suffix(strip_titles(last_part.strip()))
    given_names, given_suffix = _split_suffix(strip_titles(given_part.strip()))
    suffix = given_suffix or last_suffix

    parts = [title_case(given_names), title_case(last_name), suffix]
    return " ".join(part for part in parts if part) or "Unknown"
