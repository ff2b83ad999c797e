"""Unit tests for slugs, comparison keys and candidate name formatting."""

import pytest

from lean_ledger_etl.utils.names import comparison_key, format_candidate_name, slugify


class TestSlugify:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("Walmart", "walmart"),
            ("Procter & Gamble Co.", "procter-and-gamble"),
            ("AT&T", "at-and-t"),
            ("Bank of America", "bank-of-america"),
            ("  Home   Depot  ", "home-depot"),
            ("Ben & Jerry's", "ben-and-jerrys"),
        ],
    )
    def test_examples(self, name, expected):
        assert slugify(name) == expected

    def test_suffix_insensitive(self):
        assert slugify("Acme Inc") == slugify("Acme Inc.") == slugify("Acme") == "acme"
        assert slugify("Acme Incorporated") == "acme"
        assert slugify("Acme Holdings, LLC") == "acme"

    @pytest.mark.parametrize(
        "name",
        ["Walmart", "Procter & Gamble Co.", "AT&T", "Acme Holdings, LLC", "3M", "Coca-Cola"],
    )
    def test_idempotent(self, name):
        once = slugify(name)
        assert slugify(once) == once

    def test_never_empties_a_suffix_only_name(self):
        assert slugify("Group") == "group"


class TestComparisonKey:
    def test_strips_article_punctuation_and_suffix(self):
        assert comparison_key("The Home Depot, Inc.") == "home depot"

    def test_variants_compare_equal(self):
        assert comparison_key("Deere & Company") == comparison_key("DEERE")
        assert comparison_key("Smith, John") == comparison_key("smith john")

    def test_empty(self):
        assert comparison_key(None) == ""
        assert comparison_key("") == ""


class TestFormatCandidateName:
    @pytest.mark.parametrize(
        "fec_name, expected",
        [
            ("SMITH, JOHN", "John Smith"),
            ("SMITH, JOHN A JR.", "John A Smith Jr"),
            ("SMITH JR, JOHN", "John Smith Jr"),
            ("DOE, JANE III", "Jane Doe III"),
            ("JONES, DR. MARY", "Mary Jones"),
            ("PELOSI, NANCY MRS", "Nancy Pelosi"),
            ("JANE DOE", "Jane Doe"),
        ],
    )
    def test_registry_names(self, fec_name, expected):
        assert format_candidate_name(fec_name) == expected

    @pytest.mark.parametrize("fec_name", [None, "", "   "])
    def test_missing_name(self, fec_name):
        assert format_candidate_name(fec_name) == "Unknown"
