"""Group triplets into three-member, pairwise time-disjoint sequences."""

import logging
from typing import Iterator, Optional, Sequence as SequenceType

from cinepippin.models import Frame, Sequence, Triplet
from cinepippin.text.predicates import has_time_overlap
from cinepippin.triplets.finder import TripletFinder
from cinepippin.triplets.policy import OPENING_SLOT, FrameView

logger = logging.getLogger(__name__)

SEQUENCE_SIZE = 3


class SequenceAssembler:
    """Assemble sequences from the candidates produced by *finder*.

    A candidate joins the sequence being built only when its time range does
    not overlap any triplet already accepted into it.  An overlapping
    candidate is skipped and the scan moves on to the next frame; it is never
    reconsidered.
    """

    def __init__(self, finder: Optional[TripletFinder] = None) -> None:
        self.finder = finder or TripletFinder()

    def assemble(self, frames: SequenceType[Frame]) -> list[Sequence]:
        """Single forward scan emitting a sequence every three accepted triplets."""
        view = self.finder.view(frames)
        sequences: list[Sequence] = []
        current: list[Triplet] = []
        i = 0
        while i < len(view):
            accepted, i = self._next_member(view, i, current)
            if accepted is None:
                continue
            current.append(accepted)
            if len(current) == SEQUENCE_SIZE:
                sequences.append(Sequence(triplets=tuple(current)))
                logger.debug("sequence %d complete, keyword %r", len(sequences), current[0].keyword)
                current = []

        if current:
            logger.debug("discarding incomplete sequence of %d triplet(s) at end of scan", len(current))
        return sequences

    def assemble_per_opening(self, frames: SequenceType[Frame]) -> list[Sequence]:
        """Try every opening triplet and complete it with a forward scan.

        Produces at most one sequence per opening candidate; for repeated
        keywords only the sequence with the most dialogue is kept.
        """
        view = self.finder.view(frames)
        best: dict[str, tuple[int, Sequence]] = {}
        for opening in self._openings(view):
            current = [opening]
            i = opening.end_position + 1
            while i < len(view) and len(current) < SEQUENCE_SIZE:
                accepted, i = self._next_member(view, i, current)
                if accepted is not None:
                    current.append(accepted)
            if len(current) < SEQUENCE_SIZE:
                continue

            sequence = Sequence(triplets=tuple(current))
            density = dialogue_letters(sequence)
            kept = best.get(opening.keyword)
            if kept is None or density > kept[0]:
                best[opening.keyword] = (density, sequence)

        sequences = [seq for _, seq in best.values()]
        sequences.sort(key=lambda s: s.triplets[0].position)
        logger.info("assembled %d sequence(s) from distinct opening keywords", len(sequences))
        return sequences

    # -- internals ---------------------------------------------------------

    def _openings(self, view: FrameView) -> Iterator[Triplet]:
        for i in range(len(view)):
            triplet = self.finder.candidate_at(view, i, OPENING_SLOT)
            if triplet is not None:
                yield triplet

    def _next_member(
        self,
        view: FrameView,
        i: int,
        current: list[Triplet],
    ) -> tuple[Optional[Triplet], int]:
        """Probe position *i* for the next slot; return (accepted, next position)."""
        slot = len(current) + 1
        opening_keyword = current[0].keyword if current else None
        candidate = self.finder.candidate_at(view, i, slot, opening_keyword)
        if candidate is None:
            return None, i + 1
        if has_time_overlap(candidate.time_range, [t.time_range for t in current]):
            logger.debug(
                "skipping slot %d candidate at frame %d: overlaps the sequence in progress",
                slot, candidate.setup.index,
            )
            return None, i + 1
        return candidate, candidate.end_position + 1


def dialogue_letters(sequence: Sequence) -> int:
    """Count alphabetic characters across every frame of *sequence*."""
    return sum(
        ch.isalpha()
        for triplet in sequence.triplets
        for frame in triplet.frames
        for ch in frame.text
    )
