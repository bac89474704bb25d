"""The language-model roles of the game: writer, judge and critic.

:class:`ComedyWriter` turns each role into one prompt/parse exchange with an
:class:`~cinepippin.inference.ollama.LLMClient`.  It never retries; every
failure is raised as a typed error for the pipeline's retry handler.
"""

import logging
import re
from typing import Optional

from cinepippin.errors import ConstraintMismatchError, MalformedResponseError
from cinepippin.inference.ollama import LLMClient
from cinepippin.inference.parsing import parse_bool_couplets, parse_ranking, parse_string_couplets
from cinepippin.inference.prompts import (
    CRITIC_SYSTEM,
    GENERATE_TEMPERATURE,
    JUDGE_SYSTEM,
    JUDGE_TEMPERATURE,
    QUALITY_QUESTIONS,
    WRITER_SYSTEM,
    generate_prompt,
    judge_prompt,
    quality_prompt,
)
from cinepippin.judging.constraints import same_constraint
from cinepippin.text.predicates import contains_word

logger = logging.getLogger(__name__)

_WORD_JUNK_RE = re.compile(r"[^\w-]|_")


def clean_word(text: str) -> str:
    """First token of *text* with everything but letters, digits and hyphens removed."""
    tokens = text.split()
    if not tokens:
        return ""
    return _WORD_JUNK_RE.sub("", tokens[0]).strip("-")


def clean_phrase(text: str) -> str:
    """Collapse whitespace and drop wrapping quotes."""
    phrase = " ".join(text.split())
    if len(phrase) >= 2 and phrase[0] == phrase[-1] and phrase[0] in "\"'":
        phrase = phrase[1:-1].strip()
    return phrase


class ComedyWriter:
    def __init__(self, client: LLMClient) -> None:
        self.client = client

    def generate(
        self,
        constraints: list[str],
        scene_text: str,
        mode: str,
        stage: str = "generation",
        keyword: Optional[str] = None,
    ) -> list[tuple[str, str]]:
        """Ask for one candidate per constraint, in constraint order.

        Raises
        ------
        ConstraintMismatchError
            If the answer reorders or renames a constraint.
        MalformedResponseError
            If the answer is not a usable list of pairs, a candidate is empty,
            or a word candidate still contains *keyword*.
        """
        if mode not in ("word", "phrase"):
            raise ValueError(f"mode must be 'word' or 'phrase', got {mode!r}")

        raw = self.client.complete(
            generate_prompt(constraints, scene_text, mode),
            system=WRITER_SYSTEM,
            temperature=GENERATE_TEMPERATURE,
        )
        logger.debug("%s raw response: %s", stage, raw)
        couplets = parse_string_couplets(raw, stage, expected=len(constraints))

        pairs: list[tuple[str, str]] = []
        for position, (expected, (got, candidate)) in enumerate(zip(constraints, couplets), start=1):
            if not same_constraint(expected, got):
                raise ConstraintMismatchError(stage, position, expected, got, raw)
            cleaned = clean_word(candidate) if mode == "word" else clean_phrase(candidate)
            if not cleaned:
                raise MalformedResponseError(stage, f"candidate #{position} is empty after cleanup", raw)
            if mode == "word" and keyword and contains_word(cleaned, keyword):
                raise MalformedResponseError(
                    stage, f"candidate #{position} {cleaned!r} still contains the keyword {keyword!r}", raw
                )
            pairs.append((expected, cleaned))
        return pairs

    def judge(self, versions: list[str], stage: str = "judging") -> list[int]:
        """Return a best-first ranking (0-based) of *versions*."""
        raw = self.client.complete(
            judge_prompt(versions),
            system=JUDGE_SYSTEM,
            temperature=JUDGE_TEMPERATURE,
        )
        logger.debug("%s raw response: %s", stage, raw)
        try:
            return parse_ranking(raw, len(versions))
        except MalformedResponseError as exc:
            raise MalformedResponseError(stage, exc.detail, raw) from exc

    def evaluate(self, scenes: list[str], stage: str = "quality judging") -> list[tuple[str, bool]]:
        """Answer the fixed quality rubric for the three finished scenes."""
        raw = self.client.complete(
            quality_prompt(scenes),
            system=CRITIC_SYSTEM,
            temperature=JUDGE_TEMPERATURE,
        )
        logger.debug("%s raw response: %s", stage, raw)
        answers = parse_bool_couplets(raw, stage, expected=len(QUALITY_QUESTIONS))
        return [(question, answer) for question, (_, answer) in zip(QUALITY_QUESTIONS, answers)]
