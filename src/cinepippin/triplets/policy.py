"""Acceptance rules for candidate triplets.

The finders only walk positions; whether a (setup, punchline) pair makes a
usable triplet is decided by a :class:`TripletPolicy` evaluated against a
:class:`FrameView`.  Views hide how frame data is looked up so that the
optimized finder can swap in precomputed tables without changing any rule.
"""

import logging
import math
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from cinepippin.errors import EmptyKeywordError
from cinepippin.models import Frame
from cinepippin.text.keywords import extract_keyword
from cinepippin.text.predicates import (
    contains_word,
    count_words,
    ends_with_punctuation,
    ends_with_punctuation_or_bracket,
    ends_with_strong_punctuation,
    has_non_alpha_before_last_word,
    is_excluded_word,
    is_valid_t1_frame3,
)

logger = logging.getLogger(__name__)

OPENING_SLOT = 1


class FrameView:
    """Straightforward lookups over an ordered frame list, recomputed on every call."""

    def __init__(self, frames: Sequence[Frame]) -> None:
        self.frames = list(frames)

    def __len__(self) -> int:
        return len(self.frames)

    def text(self, i: int) -> str:
        return self.frames[i].text

    def keyword(self, i: int) -> str:
        """Keyword of frame *i*, or ``""`` when its last word has no letters."""
        try:
            return extract_keyword(self.frames[i].text)
        except EmptyKeywordError:
            logger.debug("frame %d: no keyword in %r", self.frames[i].index, self.frames[i].text)
            return ""

    def start_s(self, i: int) -> float:
        return self.frames[i].start_s

    def end_s(self, i: int) -> float:
        return self.frames[i].end_s

    def duration(self, first: int, last: int) -> int:
        return math.floor(self.end_s(last) - self.start_s(first))

    def mentions(self, word: str, lo: int, hi: int) -> bool:
        """True when *word* appears as a whole word in frames ``lo..hi`` inclusive."""
        return any(contains_word(self.frames[k].text, word) for k in range(max(lo, 0), hi + 1))


class TripletPolicy(ABC):
    """Decides whether frames ``setup..punchline`` form an acceptable triplet.

    ``slot`` is the triplet's place in the sequence being built (1, 2 or 3)
    and ``opening_keyword`` is the keyword of slot 1 once it is known.
    """

    @abstractmethod
    def punchline_ok(self, view: FrameView, punchline: int, slot: int) -> bool:
        """Checks that depend on the punchline frame alone."""

    @abstractmethod
    def accepts(
        self,
        view: FrameView,
        setup: int,
        punchline: int,
        slot: int,
        opening_keyword: Optional[str],
    ) -> bool:
        """Full check for the span; implies :meth:`punchline_ok`."""

    def keyword_for(self, view: FrameView, punchline: int, slot: int, opening_keyword: Optional[str]) -> str:
        return view.keyword(punchline)


class PunchlinePolicy(TripletPolicy):
    """The punchline must end on a single, specific, unambiguous word.

    Every slot uses the same rule:

    - the frame is non-empty and does not trail off on a comma;
    - its keyword is non-empty and not a stoplisted word;
    - no hard separator (``:``, ``--``, ``...``) precedes the last word.
    """

    def punchline_ok(self, view: FrameView, punchline: int, slot: int) -> bool:
        text = view.text(punchline)
        if not is_valid_t1_frame3(text):
            return False
        keyword = view.keyword(punchline)
        if not keyword or is_excluded_word(keyword):
            return False
        return not has_non_alpha_before_last_word(text)

    def accepts(self, view, setup, punchline, slot, opening_keyword) -> bool:
        return self.punchline_ok(view, punchline, slot)


class KeywordChainPolicy(PunchlinePolicy):
    """Game rules: the opening keyword must recur in the two follow-up triplets.

    The opening triplet additionally needs a strongly punctuated punchline,
    a keyword that is not given away earlier in the triplet, and a clean cut
    from the frame before it.  Follow-up triplets must mention the opening
    keyword somewhere and end on a complete sentence of ``min_words`` words.
    All triplets must last between ``min_duration_s`` and ``max_duration_s``.
    """

    def __init__(
        self,
        min_duration_s: int = 5,
        max_duration_s: int = 20,
        min_words: tuple[int, int] = (2, 3),
    ) -> None:
        self.min_duration_s = min_duration_s
        self.max_duration_s = max_duration_s
        self.min_words = min_words

    def punchline_ok(self, view: FrameView, punchline: int, slot: int) -> bool:
        text = view.text(punchline)
        if not ends_with_strong_punctuation(text):
            return False
        if slot == OPENING_SLOT:
            return super().punchline_ok(view, punchline, slot)
        return is_valid_t1_frame3(text) and count_words(text) >= self.min_words[min(slot, 3) - 2]

    def accepts(self, view, setup, punchline, slot, opening_keyword) -> bool:
        if not self.punchline_ok(view, punchline, slot):
            return False
        # A clean cut needs a previous frame that finished its sentence.
        if setup < 1 or not ends_with_punctuation_or_bracket(view.text(setup - 1)):
            return False
        if not self.min_duration_s <= view.duration(setup, punchline) <= self.max_duration_s:
            return False

        if slot == OPENING_SLOT:
            keyword = view.keyword(punchline)
            if view.mentions(keyword, setup, punchline - 1):
                return False
            head = view.text(punchline).rsplit(maxsplit=1)[0] if count_words(view.text(punchline)) > 1 else ""
            return not contains_word(head, keyword)

        if not opening_keyword or not view.mentions(opening_keyword, setup, punchline):
            return False
        return ends_with_punctuation(view.text(punchline - 1))

    def keyword_for(self, view, punchline, slot, opening_keyword) -> str:
        if slot != OPENING_SLOT and opening_keyword:
            return opening_keyword
        return view.keyword(punchline)


_POLICIES = {
    "punchline": PunchlinePolicy,
    "keyword-chain": KeywordChainPolicy,
}


def get_policy(name: str) -> TripletPolicy:
    """Return a policy instance by its CLI name."""
    try:
        return _POLICIES[name]()
    except KeyError:
        raise ValueError(
            f"Unknown triplet policy {name!r}. Choose one of: {', '.join(sorted(_POLICIES))}"
        ) from None


POLICY_NAMES = tuple(sorted(_POLICIES))

