"""Standard triplet finder: a plain forward scan with no precomputation."""

import logging
from typing import Optional, Sequence

from cinepippin.models import Frame, Triplet
from cinepippin.triplets.policy import OPENING_SLOT, FrameView, PunchlinePolicy, TripletPolicy

logger = logging.getLogger(__name__)

# Punchline offsets probed from the setup frame: 0, 1 or 2 fillers.
MIN_SPAN = 2
MAX_SPAN = 4


class TripletFinder:
    """Scan an ordered frame list for triplets accepted by *policy*.

    For a setup frame at position ``i`` the punchline is probed at ``i+2``,
    ``i+3`` and ``i+4`` in that order; the first accepted span wins and any
    frames between the setup and the continuation become fillers.
    """

    def __init__(self, policy: Optional[TripletPolicy] = None) -> None:
        self.policy = policy or PunchlinePolicy()

    def view(self, frames: Sequence[Frame]) -> FrameView:
        return FrameView(frames)

    def candidate_at(
        self,
        view: FrameView,
        setup: int,
        slot: int = OPENING_SLOT,
        opening_keyword: Optional[str] = None,
    ) -> Optional[Triplet]:
        """Return the triplet whose setup is at *setup*, or None."""
        for span in range(MIN_SPAN, MAX_SPAN + 1):
            punchline = setup + span
            if punchline >= len(view):
                break
            if self.policy.accepts(view, setup, punchline, slot, opening_keyword):
                return self._build(view, setup, punchline, slot, opening_keyword)
        return None

    def _build(self, view, setup, punchline, slot, opening_keyword) -> Triplet:
        keyword = self.policy.keyword_for(view, punchline, slot, opening_keyword)
        triplet = Triplet(
            frames=tuple(view.frames[setup:punchline + 1]),
            keyword=keyword,
            position=setup,
        )
        logger.debug(
            "slot %d candidate at frames %d-%d, keyword %r",
            slot, triplet.setup.index, triplet.punchline.index, keyword,
        )
        return triplet

    def find(self, frames: Sequence[Frame]) -> list[Triplet]:
        """Return the maximal list of frame-disjoint opening triplets, in order."""
        view = self.view(frames)
        found: list[Triplet] = []
        i = 0
        while i < len(view):
            triplet = self.candidate_at(view, i)
            if triplet is None:
                i += 1
                continue
            found.append(triplet)
            i = triplet.end_position + 1
        return found
