"""
Name Similarity Tests

Validates the payer/customer name heuristic:
1. Corporate suffixes are ignored
2. Containment scores 0.9
3. Token overlap with the long-token substring rule
4. Neutral score when a name has nothing to compare
"""

import pytest

from reconciliation.name_similarity import (
    CONTAINMENT_SCORE,
    NEUTRAL_SCORE,
    clean_name,
    name_similarity,
    significant_tokens,
)


class TestCleanName:
    """Suffix stripping and lowercasing."""

    @pytest.mark.parametrize("raw,expected", [
        ("Gamma LLC", "gamma"),
        ("Acme Corp.", "acme"),
        ("Beta Inc", "beta"),
        ("Omega Ltd.", "omega"),
        ("Delta Co", "delta"),
        ("ACME CORP", "acme"),
    ])
    def test_strips_trailing_suffix(self, raw, expected):
        assert clean_name(raw) == expected

    def test_suffix_only_removed_at_end(self):
        """A suffix word in the middle of the name is kept."""
        assert clean_name("Inc Solutions") == "inc solutions"
        assert clean_name("Delta Company") == "delta company"

    def test_only_one_suffix_removed(self):
        assert clean_name("Acme Co Inc") == "acme co"

    def test_empty_name(self):
        assert clean_name("") == ""


class TestSignificantTokens:
    def test_short_tokens_dropped(self):
        assert significant_tokens("acme of the west") == ["acme", "the", "west"]

    def test_splits_on_punctuation(self):
        assert significant_tokens("acme corp - west division") == ["acme", "corp", "west", "division"]


class TestNameSimilarity:
    """Scores for representative name pairs."""

    def test_identical_names(self):
        assert name_similarity("Acme Corp", "Acme Corp") == 1.0

    def test_suffix_difference_is_exact(self):
        assert name_similarity("Beta International Inc", "Beta International") == 1.0

    def test_case_insensitive(self):
        assert name_similarity("ACME CORP.", "acme") == 1.0

    def test_containment(self):
        assert name_similarity("Delta Company", "Delta Co") == CONTAINMENT_SCORE
        assert name_similarity("Gamma Group", "Gamma Group Holdings") == CONTAINMENT_SCORE

    def test_partial_token_overlap(self):
        score = name_similarity("Acme Holdings", "Acme Corp Holdings")
        assert score == pytest.approx(2 / 3)

    def test_no_overlap(self):
        assert name_similarity("Unknown Entity", "Epsilon Partners") == 0.0

    def test_long_token_substring_match(self):
        """Tokens over five characters may match inside a longer token."""
        # northwind ⊂ northwinds counts; trade (5 chars) does not match traders
        score = name_similarity("Northwind Traders", "Northwinds Trade Group")
        assert score == pytest.approx(1 / 3)

    def test_no_comparable_tokens_is_neutral(self):
        assert name_similarity("AB", "XY Z") == NEUTRAL_SCORE
        assert name_similarity("J & K", "Johnson Supply") == NEUTRAL_SCORE

    def test_empty_name_counts_as_contained(self):
        assert name_similarity("", "Acme Corp") == CONTAINMENT_SCORE
        assert name_similarity("Acme Corp", "J K") == NEUTRAL_SCORE

    def test_symmetric_for_simple_cases(self):
        assert name_similarity("Acme Corp", "Acme Corp West") == name_similarity("Acme Corp West", "Acme Corp")

    def test_score_range(self):
        pairs = [
            ("Acme Corp", "Beta Inc"),
            ("Delta Logistics Services", "Delta Logistics"),
            ("Beta Subsidiaries", "Beta Subsidiaries LLC"),
        ]
        for a, b in pairs:
            assert 0.0 <= name_similarity(a, b) <= 1.0
