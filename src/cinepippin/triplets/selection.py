"""Pick a varied, well-paced subset of assembled sequences.

Sequences are grouped by opening keyword and only the best-scoring one per
keyword is considered.  Selection is greedy: each round takes the keyword
whose best sequence has the highest quality minus a heavy penalty for
overlapping, in film time, the sequences already selected.

Quality (0-20 points):

- pacing: up to 10 points, losing one per second away from a 12 s span;
- rarity: up to 5 points for keywords that are rare in the word list;
- density: up to 5 points, one per 100 letters of dialogue.
"""

import logging
from typing import Callable, Optional

from cinepippin.models import Sequence
from cinepippin.triplets.assembler import dialogue_letters

logger = logging.getLogger(__name__)

TARGET_SEQUENCES = 18
COMMON_WORD_FREQUENCY = 10_000
IDEAL_SPAN_S = 12.0
OVERLAP_PENALTY_WEIGHT = 50.0
QUALITY_WEIGHT = 1.0


def overlap_fraction(a: tuple[float, float], b: tuple[float, float]) -> float:
    """Overlap of two ranges as a fraction of the shorter one."""
    overlap = max(0.0, min(a[1], b[1]) - max(a[0], b[0]))
    shorter = min(a[1] - a[0], b[1] - b[0])
    return overlap / shorter if shorter > 0 else 0.0


def quality_score(sequence: Sequence, frequency: int) -> float:
    span = sequence.end_s - sequence.start_s
    score = max(0.0, 10.0 - abs(span - IDEAL_SPAN_S))
    score += (1.0 - min(frequency, COMMON_WORD_FREQUENCY) / COMMON_WORD_FREQUENCY) * 5.0
    score += min(dialogue_letters(sequence) / 100.0, 5.0)
    return score


def select_sequences(
    sequences: list[Sequence],
    word_frequency: Optional[Callable[[str], int]] = None,
    target: int = TARGET_SEQUENCES,
) -> list[Sequence]:
    """Return up to *target* sequences, one per keyword, in film order.

    Keywords more common than ``COMMON_WORD_FREQUENCY`` are dropped unless
    that would leave fewer than *target* keywords, in which case the rarest
    *target* keywords are kept.
    """
    lookup = word_frequency or (lambda _word: 0)

    by_keyword: dict[str, list[Sequence]] = {}
    for seq in sequences:
        by_keyword.setdefault(seq.keyword, []).append(seq)

    frequencies = {kw: lookup(kw) for kw in by_keyword}
    keywords = [kw for kw in by_keyword if frequencies[kw] <= COMMON_WORD_FREQUENCY]
    if len(keywords) < target:
        keywords = sorted(by_keyword, key=lambda kw: frequencies[kw])[:target]
    dropped = len(by_keyword) - len(keywords)
    if dropped:
        logger.debug("dropped %d common keyword(s)", dropped)

    best: dict[str, tuple[float, Sequence]] = {}
    for kw in keywords:
        scored = [(quality_score(seq, frequencies[kw]), seq) for seq in by_keyword[kw]]
        best[kw] = max(scored, key=lambda item: item[0])

    selected: list[Sequence] = []
    while best and len(selected) < target:
        ranges = [(s.start_s, s.end_s) for s in selected]
        pick, pick_score = None, float("-inf")
        for kw, (quality, seq) in best.items():
            penalty = sum(overlap_fraction((seq.start_s, seq.end_s), r) for r in ranges)
            score = quality * QUALITY_WEIGHT - penalty * OVERLAP_PENALTY_WEIGHT
            if score > pick_score:
                pick, pick_score = kw, score
        _, seq = best.pop(pick)
        selected.append(seq)
        logger.debug("selected %r (score %.1f)", pick, pick_score)

    selected.sort(key=lambda s: s.start_s)
    logger.info("Selected %d of %d sequence(s)", len(selected), len(sequences))
    return selected
