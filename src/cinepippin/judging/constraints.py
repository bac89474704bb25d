"""Creative-writing constraints handed to the writer with each candidate slot.

The constraints file holds one constraint per non-blank line, written as
``Name -- description`` (e.g. ``Foodie -- this punchline should be
food-related.``).  Lines starting with ``#`` are comments.
"""

from pathlib import Path

import numpy as np

from cinepippin.errors import ConstraintsFileError

NAME_SEPARATOR = " -- "

# Phrase rounds ask for a word count drawn around this median.
PHRASE_WORDS_MEDIAN = 6
PHRASE_WORDS_SD = 2
PHRASE_WORDS_RANGE = (1, 12)


def constraint_name(constraint: str) -> str:
    """The part before ``" -- "``, stripped and lowercased."""
    return constraint.split(NAME_SEPARATOR, 1)[0].strip().lower()


def same_constraint(expected: str, got: str) -> bool:
    """True when *got* names the same constraint as *expected*.

    Models often echo only the name, or the name plus a paraphrased
    description, so names are compared case-insensitively and either may
    be a prefix of the other.
    """
    a, b = constraint_name(expected), constraint_name(got)
    if not a or not b:
        return False
    return a == b or a.startswith(b) or b.startswith(a)


def phrase_word_count(rng: np.random.Generator) -> int:
    lo, hi = PHRASE_WORDS_RANGE
    return int(np.clip(round(rng.normal(PHRASE_WORDS_MEDIAN, PHRASE_WORDS_SD)), lo, hi))


def with_word_count(constraint: str, words: int) -> str:
    """``"Name -- desc"`` becomes ``"Name (N words) -- desc"``."""
    name, sep, description = constraint.partition(NAME_SEPARATOR)
    label = "word" if words == 1 else "words"
    return f"{name.strip()} ({words} {label}){sep}{description}"


class ConstraintPool:
    def __init__(self, constraints: list[str]) -> None:
        self.constraints = [c.strip() for c in constraints if c.strip()]
        if not self.constraints:
            raise ValueError("a constraint pool needs at least one constraint")

    @classmethod
    def from_file(cls, path: Path) -> "ConstraintPool":
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConstraintsFileError(path, str(exc)) from exc
        lines = [
            line.strip() for line in text.splitlines()
            if line.strip() and not line.lstrip().startswith("#")
        ]
        if not lines:
            raise ConstraintsFileError(path, "the file holds no constraints")
        return cls(lines)

    def __len__(self) -> int:
        return len(self.constraints)

    def sample(self, k: int, rng: np.random.Generator) -> list[str]:
        """Draw *k* constraints, distinct whenever the pool is large enough."""
        replace = len(self.constraints) < k
        picks = rng.choice(len(self.constraints), size=k, replace=replace)
        return [self.constraints[int(i)] for i in picks]

    def sample_phrases(self, k: int, rng: np.random.Generator) -> list[str]:
        """Like :meth:`sample`, with a target word count attached to each constraint."""
        return [with_word_count(c, phrase_word_count(rng)) for c in self.sample(k, rng)]
