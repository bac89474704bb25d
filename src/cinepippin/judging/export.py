"""Export judged sequences as playable SRT sets.

The top half of the judged sequences (at most six) are written to numbered
rank directories.  Each rank holds nine SRT files,
``<label>-<scene>-{original,question,cpu}.srt`` for scenes 1 to 3, with
timestamps rebased so every scene starts at ``padding_s``, plus an
``answers.json`` listing the judge's top three answers for each round.
"""

import json
import logging
import math
from pathlib import Path

from cinepippin.judging.runner import SequenceOutcome
from cinepippin.judging.schema import ROUNDS, JudgingResult
from cinepippin.models import Frame
from cinepippin.text.keywords import replace_keyword_with_brackets
from cinepippin.text.predicates import format_timestamp, timestamp_to_seconds
from cinepippin.triplets.export import parse_stanzas

logger = logging.getLogger(__name__)

MAX_RANKS = 6
DEFAULT_PADDING_S = 1.0


def rebase_scene(scene: str, padding_s: float = DEFAULT_PADDING_S) -> str:
    """Shift a scene so its first frame starts at *padding_s*; renumber from 1."""
    frames = parse_stanzas(scene)
    if not frames:
        return scene
    offset = timestamp_to_seconds(frames[0].start_time) - padding_s
    shifted = [
        Frame.from_lines(
            index=n,
            start_time=format_timestamp(timestamp_to_seconds(f.start_time) - offset),
            end_time=format_timestamp(timestamp_to_seconds(f.end_time) - offset),
            lines=list(f.raw_lines),
        )
        for n, f in enumerate(frames, start=1)
    ]
    return "\n\n".join(f.to_srt() for f in shifted) + "\n"


def question_scenes(result: JudgingResult) -> list[str]:
    """Scenes as shown to players: keyword hidden, last line blanked for 2 and 3."""
    scenes = []
    for name in ROUNDS:
        round_ = result.rounds[name]
        scene = round_.blanked_scene
        if name != "T1":
            scene = replace_keyword_with_brackets(scene, result.keyword)
        scenes.append(scene)
    return scenes


def rank_count(judged: int) -> int:
    return min(math.ceil(judged / 2), MAX_RANKS)


def export_judged(
    outcomes: list[SequenceOutcome],
    out_dir: Path,
    padding_s: float = DEFAULT_PADDING_S,
) -> list[Path]:
    """Write rank directories ``1/`` .. ``N/`` under *out_dir*; return them."""
    judged = sorted(
        (o for o in outcomes if o.result is not None),
        key=lambda o: -o.result.quality_score,
    )
    written: list[Path] = []
    for rank, outcome in enumerate(judged[:rank_count(len(judged))], start=1):
        result = outcome.result
        rank_dir = out_dir / str(rank)
        rank_dir.mkdir(parents=True, exist_ok=True)

        variants = {
            "original": [result.rounds[name].original_scene for name in ROUNDS],
            "question": question_scenes(result),
            "cpu": result.final_scenes,
        }
        for kind, scenes in variants.items():
            for n, scene in enumerate(scenes, start=1):
                path = rank_dir / f"{outcome.label}-{n}-{kind}.srt"
                path.write_text(rebase_scene(scene, padding_s), encoding="utf-8")

        answers = {"answers": [result.rounds[name].top_candidates(3) for name in ROUNDS]}
        (rank_dir / "answers.json").write_text(json.dumps(answers, indent=2, ensure_ascii=False), encoding="utf-8")
        logger.info("rank %d: %s (score %d/10)", rank, outcome.label, result.quality_score)
        written.append(rank_dir)
    return written


def write_results(outcomes: list[SequenceOutcome], path: Path) -> Path:
    """Dump every outcome (result or error message) as one JSON document."""
    payload = [
        {
            "label": o.label,
            "result": o.result.model_dump(mode="json") if o.result else None,
            "error": str(o.error) if o.error else None,
        }
        for o in outcomes
    ]
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    return path
