"""
Unit tests for head-word matching.
"""
from models.vocabulary_models import Headword
from services.indexing.matcher import HeadwordMatcher, contains_headword


class TestContainsHeadword:
    """Test word-boundary matching of single words and phrases."""

    def test_single_word_boundaries(self):
        assert contains_headword("reo", "te reo Māori") is True
        assert contains_headword("reo", "reo.") is True
        assert contains_headword("reo", "(reo)") is True
        assert contains_headword("reo", "reo") is True

    def test_single_word_inside_longer_word(self):
        assert contains_headword("reo", "reorder") is False
        assert contains_headword("reo", "whakareo") is False

    def test_case_insensitive(self):
        assert contains_headword("reo", "te Reo") is True
        assert contains_headword("Reo", "TE REO") is True
        assert contains_headword("māori", "MĀORI") is True

    def test_macrons_are_distinct(self):
        assert contains_headword("maori", "māori") is False
        assert contains_headword("māori", "maori") is False

    def test_macronised_letters_are_not_boundaries(self):
        """A macron vowel is a letter, so it cannot delimit a word."""
        assert contains_headword("kor", "kōrero") is False
        assert contains_headword("rero", "kōrero") is False

    def test_digits_are_boundaries(self):
        assert contains_headword("reo", "reo2") is True

    def test_phrase(self):
        assert contains_headword("te ao", "ki te ao mārama") is True
        assert contains_headword("te ao", "Te Ao") is True
        assert contains_headword("te ao", "te-ao") is True
        assert contains_headword("te ao", "te,  ao") is True

    def test_phrase_boundaries(self):
        assert contains_headword("te ao", "ate aorta") is False
        assert contains_headword("te ao", "te aorta") is False
        assert contains_headword("te ao", "teao") is False

    def test_phrase_later_in_text(self):
        """A failed first candidate does not stop the scan."""
        assert contains_headword("te ao", "te aorta me te ao") is True

    def test_blank_headword_never_matches(self):
        assert contains_headword("", "te reo") is False
        assert contains_headword("   ", "te reo") is False

    def test_blank_text(self):
        assert contains_headword("reo", "") is False


class TestHeadwordMatcher:
    """Test matching a line against a corpus."""

    def test_returns_hits_in_corpus_order(self):
        corpus = [
            Headword(maori="reo", english="language", description="n."),
            Headword(maori="aroha", english="love", description="n."),
            Headword(maori="te ao", english="the world", description="phr."),
        ]
        matcher = HeadwordMatcher(corpus)

        hits = matcher.find("Ko te ao, ko te reo, ko te aroha")

        assert [h.maori for h in hits] == ["reo", "aroha", "te ao"]

    def test_no_hits(self):
        matcher = HeadwordMatcher([Headword(maori="reo", english="language", description="n.")])
        assert matcher.find("reorder the list") == []
        assert matcher.find("") == []

    def test_blank_headwords_are_ignored(self):
        matcher = HeadwordMatcher([
            Headword(maori="  ", english="blank", description=""),
            Headword(maori="reo", english="language", description="n."),
        ])
        assert len(matcher) == 1
