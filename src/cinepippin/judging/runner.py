"""Judge many sequences concurrently.

Sequences share nothing but the (read-only) pipeline, so each one runs as
an independent task on a thread pool.  A sequence whose judging fails is
logged and reported; the others carry on.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from cinepippin.errors import PippinError
from cinepippin.judging.pipeline import JudgingPipeline
from cinepippin.judging.schema import JudgingResult
from cinepippin.models import Sequence

logger = logging.getLogger(__name__)


@dataclass
class SequenceOutcome:
    label: str
    sequence: Sequence
    result: Optional[JudgingResult] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.result is not None


def judge_sequences(
    pipeline: JudgingPipeline,
    sequences: list[tuple[str, Sequence]],
    max_workers: int = 1,
    seed: Optional[int] = None,
    progress_callback: Optional[Callable[[SequenceOutcome], None]] = None,
) -> list[SequenceOutcome]:
    """Judge labelled *sequences*; successes first, by descending quality score.

    Each sequence gets its own random generator spawned from *seed*, so a
    fixed seed reproduces constraint draws and shuffles regardless of
    scheduling order.
    """
    children = np.random.SeedSequence(seed).spawn(len(sequences))

    def _run(label: str, sequence: Sequence, child: np.random.SeedSequence) -> SequenceOutcome:
        try:
            result = pipeline.judge(sequence, rng=np.random.default_rng(child))
        except PippinError as exc:
            logger.warning("Skipping %s: %s", label, exc)
            return SequenceOutcome(label=label, sequence=sequence, error=exc)
        except Exception as exc:
            logger.exception("Unexpected error while judging %s", label)
            return SequenceOutcome(label=label, sequence=sequence, error=exc)
        return SequenceOutcome(label=label, sequence=sequence, result=result)

    outcomes: list[SequenceOutcome] = []
    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
        futures = [
            pool.submit(_run, label, sequence, child)
            for (label, sequence), child in zip(sequences, children)
        ]
        for future in as_completed(futures):
            outcome = future.result()
            outcomes.append(outcome)
            if progress_callback is not None:
                progress_callback(outcome)

    order = {label: n for n, (label, _) in enumerate(sequences)}
    outcomes.sort(key=lambda o: (
        not o.ok,
        -(o.result.quality_score if o.result else 0),
        order[o.label],
    ))
    return outcomes
