"""Three-round judging of one sequence.

Rounds run strictly in order because each one needs the previous winner:

- T1 (word round): the opening punchline's keyword is blanked and the
  writer proposes one replacement word per constraint.  Words that still
  contain the keyword are rejected.  The judge's favourite becomes
  ``best_word``.
- T2 (phrase round): the writer sees the keyword as a ``[keyword]``
  placeholder with the last line blanked.  The judge and the players see
  ``best_word`` in its place, including any placeholder the phrase repeats.
- T3 (escalated phrase round): same as T2 but the writer sees the literal
  keyword.  Every case variant of the keyword is then replaced by
  ``best_word``, including any the winning phrase brought in.
- Quality gate: the critic answers ten yes/no questions about the three
  finished scenes.  The score is the number of "yes" answers.

Every model call goes through a :class:`~cinepippin.retry.RetryHandler`.
Running out of attempts raises :class:`~cinepippin.errors.StageExhaustedError`,
which abandons this sequence only.
"""

import logging
import time
from dataclasses import replace
from typing import Callable, Optional, TypeVar

import numpy as np

from cinepippin.errors import InferenceError, MalformedResponseError, StageExhaustedError
from cinepippin.judging.constraints import ConstraintPool
from cinepippin.judging.schema import JudgingResult, RoundResult
from cinepippin.judging.writer import ComedyWriter
from cinepippin.models import Sequence, Triplet
from cinepippin.retry import RetryHandler, RetryPolicy
from cinepippin.text.blanking import blank_last_frame, replace_blanked_text
from cinepippin.text.keywords import (
    extract_keyword,
    fill_blanks_with_casing,
    keyword_pattern,
    replace_keyword_with_blank,
    replace_keyword_with_brackets,
    replace_keyword_with_word,
    replace_placeholder_with_word,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

CANDIDATES_PER_ROUND = 5


def is_retryable(error: BaseException) -> bool:
    """Model-side failures are worth another attempt; programming errors are not."""
    return isinstance(error, (MalformedResponseError, InferenceError))


DEFAULT_RETRY_POLICY = RetryPolicy(
    max_retries=4,
    initial_delay_ms=1000,
    strategy="linear",
    is_retryable=is_retryable,
)


def surface_keyword(text: str, keyword: str) -> str:
    """The keyword as actually written at the end of *text* (e.g. ``"BANANAS"``)."""
    matches = list(keyword_pattern(keyword).finditer(text))
    return matches[-1].group("word") if matches else keyword


class JudgingPipeline:
    def __init__(
        self,
        writer: ComedyWriter,
        constraint_pool: ConstraintPool,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        sleep: Callable[[float], None] = time.sleep,
        candidates: int = CANDIDATES_PER_ROUND,
    ) -> None:
        self.writer = writer
        self.pool = constraint_pool
        self.retry_policy = retry_policy
        self.candidates = candidates
        self._sleep = sleep

    # -- retry plumbing ----------------------------------------------------

    def _call(self, stage: str, fn: Callable[[], T]) -> T:
        user_hook = self.retry_policy.on_retry

        def _on_retry(error: BaseException, attempt: int, delay_ms: float) -> None:
            logger.warning("%s: attempt %d failed (%s); retrying in %.0f ms", stage, attempt, error, delay_ms)
            if user_hook is not None:
                user_hook(error, attempt, delay_ms)

        handler = RetryHandler(replace(self.retry_policy, on_retry=_on_retry), sleep=self._sleep)
        try:
            return handler.execute(fn)
        except (MalformedResponseError, InferenceError) as exc:
            if not self.retry_policy.is_retryable(exc):
                raise
            raise StageExhaustedError(stage, self.retry_policy.max_retries + 1, exc) from exc

    # -- rounds -------------------------------------------------------------

    def judge(self, sequence: Sequence, rng: Optional[np.random.Generator] = None) -> JudgingResult:
        """Run T1, T2, T3 and the quality gate over *sequence*."""
        rng = rng if rng is not None else np.random.default_rng()
        t1, t2, t3 = sequence.triplets

        first = self._word_round(t1, rng)
        keyword, best_word = first.keyword, first.best_candidate
        logger.info("T1: %r -> %r", keyword, best_word)

        second = self._placeholder_round(t2, keyword, best_word, rng)
        logger.info("T2: best phrase %r", second.best_candidate)

        third = self._literal_round(t3, keyword, best_word, rng)
        logger.info("T3: best phrase %r", third.best_candidate)

        scenes = [first.finalized_scene, second.finalized_scene, third.finalized_scene]
        answers = self._call("quality judging", lambda: self.writer.evaluate(scenes))
        score = sum(1 for _, answer in answers if answer)
        logger.info("quality score for %r: %d/10", keyword, score)

        return JudgingResult(
            keyword=keyword,
            best_word=best_word,
            rounds={"T1": first, "T2": second, "T3": third},
            quality_answers=answers,
            quality_score=score,
        )

    def _compete(
        self,
        stage: str,
        constraints: list[str],
        scene: str,
        mode: str,
        render: Callable[[str], str],
        rng: np.random.Generator,
        keyword: Optional[str] = None,
    ) -> tuple[list[str], list[str], list[int]]:
        """Generate candidates, shuffle them and have the judge rank the rendered versions."""
        pairs = self._call(
            f"{stage} {mode} generation",
            lambda: self.writer.generate(
                constraints, scene, mode, stage=f"{stage} {mode} generation", keyword=keyword
            ),
        )
        generated = [candidate for _, candidate in pairs]
        shuffled = [generated[int(i)] for i in rng.permutation(len(generated))]
        versions = [render(candidate) for candidate in shuffled]
        ranking = self._call(
            f"{stage} {mode} judging",
            lambda: self.writer.judge(versions, stage=f"{stage} {mode} judging"),
        )
        return generated, shuffled, ranking

    def _word_round(self, triplet: Triplet, rng: np.random.Generator) -> RoundResult:
        original = triplet.to_srt()
        keyword = extract_keyword(triplet.punchline.text)
        surface = surface_keyword(triplet.punchline.text, keyword)
        blanked = replace_keyword_with_blank(original, keyword)
        constraints = self.pool.sample(self.candidates, rng)

        generated, shuffled, ranking = self._compete(
            "T1", constraints, blanked, "word",
            lambda word: fill_blanks_with_casing(blanked, word, surface),
            rng,
            keyword=keyword,
        )
        best = shuffled[ranking[0]]
        return RoundResult(
            keyword=keyword,
            original_scene=original,
            blanked_scene=blanked,
            scene_with_word=fill_blanks_with_casing(blanked, best, surface),
            constraints=constraints,
            generated_candidates=generated,
            shuffled_candidates=shuffled,
            ranking=ranking,
            best_candidate=best,
            best_index=ranking[0],
            finalized_scene=replace_keyword_with_word(original, keyword, best),
        )

    def _placeholder_round(
        self, triplet: Triplet, keyword: str, best_word: str, rng: np.random.Generator
    ) -> RoundResult:
        original = triplet.to_srt()
        question = blank_last_frame(replace_keyword_with_brackets(original, keyword))
        with_word = replace_keyword_with_word(original, keyword, best_word)
        answer_scene = blank_last_frame(with_word)
        constraints = self.pool.sample_phrases(self.candidates, rng)

        def _fill(phrase: str, split_long: bool = False) -> str:
            filled = replace_blanked_text(answer_scene, phrase, split_long=split_long)
            return replace_placeholder_with_word(filled, best_word, keyword)

        generated, shuffled, ranking = self._compete("T2", constraints, question, "phrase", _fill, rng)
        best = shuffled[ranking[0]]
        finalized = _fill(best, split_long=True)
        return RoundResult(
            keyword=keyword,
            original_scene=original,
            blanked_scene=question,
            scene_with_word=with_word,
            constraints=constraints,
            generated_candidates=generated,
            shuffled_candidates=shuffled,
            ranking=ranking,
            best_candidate=best,
            best_index=ranking[0],
            finalized_scene=finalized,
        )

    def _literal_round(
        self, triplet: Triplet, keyword: str, best_word: str, rng: np.random.Generator
    ) -> RoundResult:
        original = triplet.to_srt()
        question = blank_last_frame(original)
        constraints = self.pool.sample_phrases(self.candidates, rng)

        def _fill(phrase: str, split_long: bool = False) -> str:
            filled = replace_blanked_text(question, phrase, split_long=split_long)
            return replace_placeholder_with_word(filled, keyword, keyword)

        generated, shuffled, ranking = self._compete("T3", constraints, question, "phrase", _fill, rng)
        best = shuffled[ranking[0]]
        finalized = replace_keyword_with_word(_fill(best, split_long=True), keyword, best_word)
        return RoundResult(
            keyword=keyword,
            original_scene=original,
            blanked_scene=question,
            scene_with_word=replace_keyword_with_word(original, keyword, best_word),
            constraints=constraints,
            generated_candidates=generated,
            shuffled_candidates=shuffled,
            ranking=ranking,
            best_candidate=best,
            best_index=ranking[0],
            finalized_scene=finalized,
        )
