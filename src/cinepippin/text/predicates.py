"""Pure classifiers over subtitle frame text and timestamps.

"Ends with" checks look at the last non-whitespace character, so multi-line
frames are judged by their final line.  Word tokens are runs of Unicode
letters and apostrophes.
"""

import math
import re
from typing import Iterable

PUNCTUATION = frozenset(".!?-;,")
STRONG_PUNCTUATION = frozenset(".!?")
PUNCTUATION_OR_BRACKET = frozenset(".!?-;)]")

# Punchline words too generic to make a fill-in-the-blank answer.
EXCLUDED_WORDS: frozenset[str] = frozenset({
    "the", "yes", "no", "why", "how", "when", "where", "me", "i", "you",
    "good", "bad", "yep", "yeah", "nah", "nope", "one", "two", "three",
    "none", "nada", "nothing",
})

_WORD_RE = re.compile(r"(?:[^\W\d_]|')+")
_SINGLE_WORD_RE = re.compile(r"^(?:[^\W\d_]|')+[.!?\-;\"']$")
_TRAILING_PUNCT_RE = re.compile(r"[.!?\-;,]+$")
_SINGLE_TRAILING_RE = re.compile(r"[.!?\-;]$")
_TIMESTAMP_RE = re.compile(r"^(\d+):(\d{1,2}):(\d{1,2})(?:[,.](\d{1,3}))?$")


def _last_char(text: str) -> str:
    stripped = text.rstrip()
    return stripped[-1] if stripped else ""


def ends_with_punctuation(text: str) -> bool:
    return _last_char(text) in PUNCTUATION


def ends_with_strong_punctuation(text: str) -> bool:
    return _last_char(text) in STRONG_PUNCTUATION


def ends_with_punctuation_or_bracket(text: str) -> bool:
    return _last_char(text) in PUNCTUATION_OR_BRACKET


def ends_with_question_mark(text: str) -> bool:
    return _last_char(text) == "?"


def is_single_word_with_punctuation(text: str) -> bool:
    """True for e.g. ``"Bananas!"``: one word followed by exactly one mark."""
    return _SINGLE_WORD_RE.match(text.strip()) is not None


def extract_word_from_single_word(text: str) -> str:
    return _SINGLE_TRAILING_RE.sub("", text.strip()).lower()


def extract_first_word(text: str) -> str:
    words = text.split()
    if not words:
        return ""
    return _TRAILING_PUNCT_RE.sub("", words[0]).lower()


def extract_last_word(text: str) -> str:
    words = text.split()
    if not words:
        return ""
    return _TRAILING_PUNCT_RE.sub("", words[-1]).lower()


def count_words(text: str) -> int:
    return len(text.split())


def contains_word(text: str, word: str) -> bool:
    """Whole-word, case-insensitive search for *word* in *text*."""
    word = word.strip()
    if not word:
        return False
    pattern = re.compile(rf"(?<!\w){re.escape(word)}(?!\w)", re.IGNORECASE)
    return pattern.search(text) is not None


def has_non_alpha_before_last_word(text: str) -> bool:
    """Detect a hard separator (``:``, ``--``, ``...``) before the last word.

    Returns False when the text has no whitespace at all, so a hyphenated or
    run-together phrase counts as a single token.  Otherwise the gap between
    the last two word tokens must contain only whitespace, letters or commas.
    """
    stripped = text.strip()
    if not re.search(r"\s", stripped):
        return False

    matches = list(_WORD_RE.finditer(stripped))
    if len(matches) < 2:
        return False

    gap = stripped[matches[-2].end():matches[-1].start()]
    return any(not (ch.isspace() or ch.isalpha() or ch == ",") for ch in gap)


def is_excluded_word(word: str) -> bool:
    return word.strip().lower() in EXCLUDED_WORDS


def is_valid_t1_frame3(text: str) -> bool:
    """A punchline frame must be non-empty text that does not trail off on a comma."""
    stripped = text.strip()
    if not stripped or stripped.endswith(","):
        return False
    return len(stripped.split()) >= 1


# ---------------------------------------------------------------------------
# Timestamps and intervals
# ---------------------------------------------------------------------------

def timestamp_to_seconds(timestamp: str) -> float:
    """Convert ``HH:MM:SS,mmm`` (``.`` also accepted) to seconds."""
    match = _TIMESTAMP_RE.match(timestamp.strip())
    if match is None:
        raise ValueError(f"Invalid SRT timestamp: {timestamp!r}")
    hours, minutes, seconds, millis = match.groups()
    ms = int(millis.ljust(3, "0")) if millis else 0
    return int(hours) * 3600 + int(minutes) * 60 + int(seconds) + ms / 1000.0


def format_timestamp(seconds: float) -> str:
    """Format seconds as ``HH:MM:SS,mmm``; negative values clamp to zero."""
    total_ms = max(0, int(round(seconds * 1000)))
    hours, rem = divmod(total_ms, 3_600_000)
    minutes, rem = divmod(rem, 60_000)
    secs, ms = divmod(rem, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d},{ms:03d}"


def get_duration_seconds(first, last) -> int:
    """Whole seconds from *first*'s start to *last*'s end (floored)."""
    return math.floor(
        timestamp_to_seconds(last.end_time) - timestamp_to_seconds(first.start_time)
    )


def has_time_overlap(
    candidate: tuple[float, float],
    existing: Iterable[tuple[float, float]],
) -> bool:
    """Half-open interval test: touching boundaries do not overlap."""
    c_start, c_end = candidate
    return any(c_start < e_end and c_end > e_start for e_start, e_end in existing)
