"""Sequence artifact I/O.

A sequence file holds three scene blocks separated by a line containing
exactly ``---``.  Each scene block is one or more SRT stanzas
(``index``, ``start --> end``, text lines) joined by blank lines.
"""

import logging
import re
from pathlib import Path

from cinepippin.errors import SequenceFileError
from cinepippin.models import Frame, Sequence, Triplet
from cinepippin.text.keywords import extract_keyword

logger = logging.getLogger(__name__)

SCENE_SEPARATOR = "---"
_STANZA_SPLIT_RE = re.compile(r"\n\s*\n")
_TIMING_RE = re.compile(r"^(\S+)\s+-->\s+(\S+)")


def format_sequence(sequence: Sequence) -> str:
    return sequence.to_text()


def split_scenes(text: str) -> list[str]:
    """Split an artifact into its scene blocks on ``---`` lines."""
    scenes: list[list[str]] = [[]]
    for line in text.replace("\r\n", "\n").split("\n"):
        if line.strip() == SCENE_SEPARATOR:
            scenes.append([])
        else:
            scenes[-1].append(line)
    return ["\n".join(lines).strip() for lines in scenes]


def parse_stanzas(scene: str) -> list[Frame]:
    """Parse the SRT stanzas of one scene block.  Malformed stanzas are skipped."""
    frames: list[Frame] = []
    for block in _STANZA_SPLIT_RE.split(scene.strip()):
        lines = [line.rstrip() for line in block.strip().split("\n")]
        if len(lines) < 3:
            continue
        timing = _TIMING_RE.match(lines[1].strip())
        if timing is None or not lines[0].strip().isdigit():
            continue
        frames.append(
            Frame.from_lines(
                index=int(lines[0].strip()),
                start_time=timing.group(1),
                end_time=timing.group(2),
                lines=lines[2:],
            )
        )
    return frames


def write_sequences(sequences: list[Sequence], out_dir: Path, base_name: str) -> list[Path]:
    """Write ``<base_name>.<n>.txt`` for each sequence, numbered from 1."""
    out_dir.mkdir(parents=True, exist_ok=True)
    paths: list[Path] = []
    for n, sequence in enumerate(sequences, start=1):
        path = out_dir / f"{base_name}.{n}.txt"
        path.write_text(format_sequence(sequence), encoding="utf-8")
        paths.append(path)
    logger.info("Wrote %d sequence file(s) to %s", len(paths), out_dir)
    return paths


def read_sequence_file(path: Path) -> Sequence:
    """Load a sequence artifact back into a :class:`Sequence`.

    The keyword is re-extracted from the first scene's punchline and shared
    by all three triplets.

    Raises
    ------
    SequenceFileError
        If the file does not hold three well-formed, time-disjoint scenes.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SequenceFileError(path, str(exc)) from exc

    scenes = split_scenes(text)
    if len(scenes) != 3:
        raise SequenceFileError(path, f"expected 3 scenes, found {len(scenes)}")

    scene_frames = [parse_stanzas(scene) for scene in scenes]
    for n, frames in enumerate(scene_frames, start=1):
        if not 3 <= len(frames) <= 5:
            raise SequenceFileError(path, f"scene {n} has {len(frames)} frames, expected 3 to 5")

    keyword = extract_keyword(scene_frames[0][-1].text, strict=False)
    if not keyword:
        raise SequenceFileError(path, "the first scene's last frame carries no keyword")

    try:
        return Sequence(
            triplets=tuple(Triplet(frames=tuple(frames), keyword=keyword) for frames in scene_frames)
        )
    except ValueError as exc:
        raise SequenceFileError(path, str(exc)) from exc
