from typing import Literal

from pydantic import BaseModel, Field, model_validator

RoundName = Literal["T1", "T2", "T3"]
ROUNDS: tuple[RoundName, ...] = ("T1", "T2", "T3")


class RoundResult(BaseModel):
    """Everything one generate/judge/substitute round produced."""

    keyword: str
    original_scene: str
    blanked_scene: str
    scene_with_word: str = ""
    constraints: list[str]
    generated_candidates: list[str] = Field(min_length=1)    # writer order
    shuffled_candidates: list[str] = Field(min_length=1)     # display order shown to the judge
    ranking: list[int] = Field(min_length=1)                 # 0-based into shuffled_candidates, best first
    best_candidate: str
    best_index: int = Field(ge=0)
    finalized_scene: str

    @model_validator(mode="after")
    def _check_consistency(self) -> "RoundResult":
        if sorted(self.generated_candidates) != sorted(self.shuffled_candidates):
            raise ValueError("shuffled_candidates must be a permutation of generated_candidates")
        if self.best_index != self.ranking[0]:
            raise ValueError("best_index must be the first entry of ranking")
        if self.shuffled_candidates[self.best_index] != self.best_candidate:
            raise ValueError("best_candidate must be shuffled_candidates[best_index]")
        return self

    def top_candidates(self, n: int = 3) -> list[str]:
        return [self.shuffled_candidates[i] for i in self.ranking[:n]]


class JudgingResult(BaseModel):
    """Outcome of judging one sequence: three rounds plus the quality gate."""

    keyword: str
    best_word: str
    rounds: dict[RoundName, RoundResult]
    quality_answers: list[tuple[str, bool]] = Field(min_length=10, max_length=10)
    quality_score: int = Field(ge=0, le=10)

    @model_validator(mode="after")
    def _check_score(self) -> "JudgingResult":
        if set(self.rounds) != set(ROUNDS):
            raise ValueError(f"rounds must be exactly {ROUNDS}")
        if self.quality_score != sum(answer for _, answer in self.quality_answers):
            raise ValueError("quality_score must count the true quality answers")
        return self

    @property
    def final_scenes(self) -> list[str]:
        return [self.rounds[name].finalized_scene for name in ROUNDS]
