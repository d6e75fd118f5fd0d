"""
Head-word matching against transcript text.

A head-word (single word or multi-word phrase) matches a line when its
whitespace-separated tokens appear in order, separated by one or more
non-letter characters, with a non-letter (or the text edge) on both sides.
Matching is case-insensitive under full Unicode case folding. A "letter" is
any code point in Unicode general category L, which is exactly what
str.isalpha() tests, so macronised vowels are letters and never act as
boundaries. No other normalisation is applied: "māori" and "maori" differ.
"""
from typing import Iterable, List, Sequence

from models.vocabulary_models import Headword


def fold(text: str) -> str:
    """Full Unicode case folding."""
    return text.casefold()


def headword_tokens(headword: str) -> List[str]:
    """Case-folded tokens of a head-word; empty for blank input."""
    return fold(headword).split()


def _is_letter(ch: str) -> bool:
    return ch.isalpha()


def _match_rest(haystack: str, tokens: Sequence[str], index: int, pos: int) -> bool:
    """True if tokens[index] placed at ``pos`` completes a match."""
    end = pos + len(tokens[index])
    if index == len(tokens) - 1:
        return end == len(haystack) or not _is_letter(haystack[end])

    # The next token must follow a run of one or more non-letters. A token
    # may itself begin with a non-letter, so try each split of the run.
    following = tokens[index + 1]
    cursor = end
    while cursor < len(haystack) and not _is_letter(haystack[cursor]):
        cursor += 1
        if haystack.startswith(following, cursor) and _match_rest(haystack, tokens, index + 1, cursor):
            return True
    return False


def tokens_in_text(tokens: Sequence[str], haystack: str) -> bool:
    """Match pre-folded tokens against pre-folded text."""
    if not tokens or not haystack:
        return False

    first = tokens[0]
    start = haystack.find(first)
    while start != -1:
        preceded_ok = start == 0 or not _is_letter(haystack[start - 1])
        if preceded_ok and _match_rest(haystack, tokens, 0, start):
            return True
        start = haystack.find(first, start + 1)
    return False


def contains_headword(headword: str, text: str) -> bool:
    """
    Check whether a head-word occurs in text under word-boundary semantics.

    >>> contains_headword("reo", "te reo Māori")
    True
    >>> contains_headword("reo", "reorder")
    False
    >>> contains_headword("te ao", "ate aorta")
    False
    """
    return tokens_in_text(headword_tokens(headword), fold(text))


class HeadwordMatcher:
    """Matches one transcript line against a whole vocabulary corpus."""

    def __init__(self, headwords: Iterable[Headword]):
        # Fold every head-word once rather than once per line
        self._entries = []
        for headword in headwords:
            tokens = headword_tokens(headword.maori)
            if tokens:
                self._entries.append((headword, tokens))

    def __len__(self) -> int:
        return len(self._entries)

    def find(self, text: str) -> List[Headword]:
        """All head-words occurring in ``text``, in corpus order."""
        haystack = fold(text)
        if not haystack:
            return []
        return [
            headword
            for headword, tokens in self._entries
            if tokens_in_text(tokens, haystack)
        ]
