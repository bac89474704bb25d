"""Cinema Pippin judging package: three-round generate/judge/substitute pipeline."""
from cinepippin.judging.constraints import ConstraintPool
from cinepippin.judging.pipeline import DEFAULT_RETRY_POLICY, JudgingPipeline
from cinepippin.judging.runner import SequenceOutcome, judge_sequences
from cinepippin.judging.schema import JudgingResult, RoundResult
from cinepippin.judging.writer import ComedyWriter

__all__ = [
    "ConstraintPool",
    "DEFAULT_RETRY_POLICY",
    "JudgingPipeline",
    "SequenceOutcome",
    "judge_sequences",
    "JudgingResult",
    "RoundResult",
    "ComedyWriter",
]
