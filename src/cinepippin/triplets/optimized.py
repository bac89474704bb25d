"""Optimized triplet finder.

Same acceptance rules as :class:`~cinepippin.triplets.finder.TripletFinder`,
but every per-frame quantity the policies ask for is computed once:

- frame start/end seconds are parsed up front into flat lists;
- keywords are extracted lazily and memoized per frame;
- whole-word mentions are answered from a word -> sorted positions index
  with :mod:`bisect` instead of re-running a regex over each frame;
- the punchline-only part of a policy is memoized per (frame, slot), so a
  frame rejected as a punchline is never re-examined from another setup.
"""

import logging
import re
from bisect import bisect_left
from collections import defaultdict
from typing import Optional, Sequence

from cinepippin.models import Frame, Triplet
from cinepippin.triplets.finder import MAX_SPAN, MIN_SPAN, TripletFinder
from cinepippin.triplets.policy import OPENING_SLOT, FrameView

logger = logging.getLogger(__name__)

_INDEX_WORD_RE = re.compile(r"[^\W\d_]+(?:-[^\W\d_]+)*")


class IndexedFrameView(FrameView):
    """FrameView backed by precomputed tables."""

    def __init__(self, frames: Sequence[Frame]) -> None:
        super().__init__(frames)
        self._starts = [f.start_s for f in self.frames]
        self._ends = [f.end_s for f in self.frames]
        self._keywords: dict[int, str] = {}
        self.punchline_memo: dict[tuple[int, int], bool] = {}
        self._positions: dict[str, list[int]] = defaultdict(list)
        for pos, frame in enumerate(self.frames):
            for word in set(_INDEX_WORD_RE.findall(frame.text.lower())):
                self._positions[word].append(pos)

    def keyword(self, i: int) -> str:
        if i not in self._keywords:
            self._keywords[i] = super().keyword(i)
        return self._keywords[i]

    def start_s(self, i: int) -> float:
        return self._starts[i]

    def end_s(self, i: int) -> float:
        return self._ends[i]

    @property
    def vocabulary_size(self) -> int:
        return len(self._positions)

    def positions(self, word: str) -> list[int]:
        """Sorted frame positions whose text contains *word*."""
        return self._positions.get(word.lower(), [])

    def mentions(self, word: str, lo: int, hi: int) -> bool:
        positions = self.positions(word)
        k = bisect_left(positions, max(lo, 0))
        return k < len(positions) and positions[k] <= hi


class OptimizedTripletFinder(TripletFinder):
    """TripletFinder over an :class:`IndexedFrameView` with memoized punchline checks."""

    def view(self, frames: Sequence[Frame]) -> IndexedFrameView:
        view = IndexedFrameView(frames)
        logger.debug("indexed %d frames, %d distinct words", len(view), view.vocabulary_size)
        return view

    def candidate_at(
        self,
        view: IndexedFrameView,
        setup: int,
        slot: int = OPENING_SLOT,
        opening_keyword: Optional[str] = None,
    ) -> Optional[Triplet]:
        memo = view.punchline_memo
        for span in range(MIN_SPAN, MAX_SPAN + 1):
            punchline = setup + span
            if punchline >= len(view):
                break
            key = (punchline, slot)
            if key not in memo:
                memo[key] = self.policy.punchline_ok(view, punchline, slot)
            if not memo[key]:
                continue
            if self.policy.accepts(view, setup, punchline, slot, opening_keyword):
                return self._build(view, setup, punchline, slot, opening_keyword)
        return None
