"""Keyword extraction and casing-preserving keyword substitution.

The keyword is the canonical (lowercase, punctuation-free) form of the last
word of a punchline frame.  Every substitution helper matches the keyword as
a whole word, case-insensitively, and carries a trailing possessive ``'s``
and trailing strong punctuation through to the replacement.
"""

import re
from functools import lru_cache

from cinepippin.errors import EmptyKeywordError

BLANK = "_____"
PLACEHOLDER = "[keyword]"

_POSSESSIVE_RE = re.compile(r"['’][sS](?=[^\w]*$)")
_NON_KEYWORD_CHARS_RE = re.compile(r"[^\w-]|[\d_]")


def extract_keyword(text: str, strict: bool = True) -> str:
    """Return the canonical keyword carried by the last word of *text*.

    ``"It was your father's."`` gives ``"father"``; ``"Haydée."`` gives
    ``"haydée"``.  Inner hyphens survive (``"self-aware"``) while dangling
    ones from cut-off speech (``"to-"``) are dropped.

    When the last word has no letters, strict mode raises
    :class:`EmptyKeywordError` and lenient mode returns ``""``.
    """
    words = text.split()
    last = words[-1] if words else ""
    last = _POSSESSIVE_RE.sub("", last)
    keyword = _NON_KEYWORD_CHARS_RE.sub("", last).strip("-").lower()

    if not any(ch.isalpha() for ch in keyword):
        if strict:
            raise EmptyKeywordError(text)
        return ""
    return keyword


def apply_casing(source: str, target: str) -> str:
    """Copy the casing shape of *source* (ALL CAPS, Title, lower) onto *target*."""
    if not source or not target:
        return target
    if source == source.upper() and source != source.lower():
        return target.upper()
    if source[0] == source[0].upper() and source[1:] == source[1:].lower():
        return target[0].upper() + target[1:].lower()
    return target.lower()


@lru_cache(maxsize=256)
def keyword_pattern(keyword: str) -> re.Pattern:
    """Whole-word pattern for *keyword* with ``possessive`` and ``punct`` groups."""
    return re.compile(
        rf"(?<!\w)(?P<word>{re.escape(keyword)})"
        rf"(?P<possessive>['’][sS])?"
        rf"(?P<punct>[.!?]*)"
        rf"(?!\w)",
        re.IGNORECASE,
    )


def replace_keyword_with_blank(text: str, keyword: str) -> str:
    """``"I love bananas."`` with ``"bananas"`` gives ``"I love _____."``."""
    pattern = keyword_pattern(keyword)
    return pattern.sub(
        lambda m: BLANK + (m.group("possessive") or "") + m.group("punct"),
        text,
    )


def replace_keyword_with_brackets(text: str, keyword: str) -> str:
    """Swap every occurrence for the literal ``[keyword]`` placeholder."""
    pattern = keyword_pattern(keyword)
    return pattern.sub(
        lambda m: PLACEHOLDER + (m.group("possessive") or "") + m.group("punct"),
        text,
    )


def replace_keyword_with_word(text: str, keyword: str, replacement: str) -> str:
    """Swap every occurrence for *replacement*, cased like the occurrence."""
    pattern = keyword_pattern(keyword)
    return pattern.sub(
        lambda m: apply_casing(m.group("word"), replacement)
        + (m.group("possessive") or "")
        + m.group("punct"),
        text,
    )


def replace_placeholder_with_word(text: str, replacement: str, original_keyword: str) -> str:
    """Swap ``[keyword]`` placeholders for *replacement* cased like *original_keyword*."""
    return text.replace(PLACEHOLDER, apply_casing(original_keyword, replacement))


def fill_blanks_with_casing(text: str, replacement: str, original_keyword: str) -> str:
    """Fill each ``_____`` with *replacement*, keeping that blank's original casing.

    The casings are recovered by putting *original_keyword* back into every
    blank and reading the whole-word matches left to right.  Blanks beyond
    the recovered casings fall back to *original_keyword* itself.
    """
    restored = text.replace(BLANK, original_keyword)
    word_re = re.compile(rf"(?<!\w){re.escape(original_keyword)}(?!\w)", re.IGNORECASE)
    casings = [m.group(0) for m in word_re.finditer(restored)]

    position = 0

    def _fill(_match: re.Match) -> str:
        nonlocal position
        casing = casings[position] if position < len(casings) else original_keyword
        position += 1
        return apply_casing(casing, replacement)

    return re.sub(re.escape(BLANK), _fill, text)
