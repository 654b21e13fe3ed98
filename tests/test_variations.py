# tests/test_variations.py
"""Tests for banned-term variations and the evasion-tolerant matcher."""

from curation.text.variations import (
    contains_term_variation,
    generate_variations,
    matches_vowel_stripped,
    strip_vowels,
)


class TestGenerateVariations:
    """Test single-axis substitutions and truncations."""

    def test_one_axis_at_a_time(self):
        """Each letter is replaced everywhere, but never combined with another letter."""
        assert generate_variations("bomb") == ["8om8", "b0mb", "bom"]

    def test_multiple_substitutes_per_letter(self):
        assert generate_variations("test") == ["7es7", "t3st", "te$t", "te5t", "tes"]

    def test_two_truncations_for_long_terms(self):
        """Terms over 4 characters lose one and two trailing characters."""
        variations = generate_variations("hello")
        assert "hell" in variations
        assert "hel" in variations

    def test_no_truncation_for_short_terms(self):
        assert generate_variations("xyz") == []
        assert generate_variations("jab") == ["j@b", "j4b", "ja8"]

    def test_never_includes_term(self):
        assert "spam" not in generate_variations("spam")

    def test_case_insensitive(self):
        assert generate_variations("SPAM") == generate_variations("spam")


class TestVowelStripped:
    """Test the vowel-stripped predicate in isolation."""

    def test_strip_vowels(self):
        assert strip_vowels("fork") == "frk"

    def test_matches_stripped_form(self):
        assert matches_vowel_stripped("fork", "buy frk now") is True

    def test_short_terms_ignored(self):
        """Terms under 4 characters never use the stripped form."""
        assert matches_vowel_stripped("fox", "fx") is False

    def test_stripped_form_too_short(self):
        """A stripped form under 2 characters never matches."""
        assert matches_vowel_stripped("aloe", "l") is False

    def test_checks_every_text(self):
        assert matches_vowel_stripped("bear", "nothing", "brick") is True


class TestContainsTermVariation:
    """Test the four matching rules."""

    def test_literal_raw_match(self):
        assert contains_term_variation("SPAM offer", "spam") is True

    def test_normalised_match(self):
        """Spaced-out and leet spellings are caught by normalisation."""
        assert contains_term_variation("s p a m", "spam") is True
        assert contains_term_variation("$P4M", "spam") is True

    def test_variation_match(self):
        """Truncations catch partial spellings."""
        assert contains_term_variation("spa day", "spam") is True

    def test_vowel_stripped_match(self):
        assert contains_term_variation("spm deal", "spam") is True

    def test_vowel_stripped_can_be_disabled(self):
        assert contains_term_variation("spm deal", "spam", vowel_stripped=False) is False

    def test_no_match(self):
        assert contains_term_variation("lovely garden", "spam") is False

    def test_uses_precomputed_inputs(self):
        assert contains_term_variation(
            "anything",
            "spam",
            normalised_text="xxspamxx",
            variations=[],
        ) is True
