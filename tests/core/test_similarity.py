"""
Set Similarity Tests
"""

import pytest

from moment_engine.core.similarity import jaccard, normalize_tokens, union_tokens


class TestNormalizeTokens:

    def test_lowercases_trims_and_dedupes(self):
        assert normalize_tokens([" Summer", "summer ", "DESK"]) == frozenset({"summer", "desk"})

    def test_drops_blank_and_non_string_entries(self):
        assert normalize_tokens(["", "   ", None, 3, "desk"]) == frozenset({"desk"})

    @pytest.mark.parametrize("raw", [None, "summer", 42, {"k": "v"}])
    def test_non_collection_is_empty(self, raw):
        assert normalize_tokens(raw) == frozenset()

    def test_union_of_groups(self):
        assert union_tokens([["A"], ("b", "a"), None]) == frozenset({"a", "b"})


class TestJaccard:

    def test_both_empty_is_full_agreement(self):
        assert jaccard(frozenset(), frozenset()) == 1.0

    def test_one_side_empty_is_zero(self):
        assert jaccard(frozenset({"a"}), frozenset()) == 0.0
        assert jaccard(frozenset(), frozenset({"a"})) == 0.0

    def test_partial_overlap(self):
        assert jaccard({"a", "b", "c"}, {"b", "c", "d"}) == pytest.approx(0.5)

    def test_symmetric(self):
        a, b = {"summer", "desk"}, {"desk", "office", "slack"}
        assert jaccard(a, b) == jaccard(b, a)
