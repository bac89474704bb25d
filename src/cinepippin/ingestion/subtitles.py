"""SRT subtitle parser producing :class:`~cinepippin.models.Frame` lists.

Parsing goes through pysubs2, which also strips ``<i>``/``<b>`` and font
tags.  Non-UTF-8 files are detected with charset-normalizer before a second
parse attempt; if encoding detection also fails, ``SubtitleParseError`` is
raised with a human-readable message rather than silently dropping events.

Frames are numbered from 1 in file order.  Comment events and events whose
text is empty after tag-stripping are skipped and do not consume a number.
"""

from __future__ import annotations

from pathlib import Path

import pysubs2
from charset_normalizer import from_path

from cinepippin.errors import SubtitleParseError
from cinepippin.models import Frame
from cinepippin.text.predicates import format_timestamp


def parse_srt_text(raw: str, source: Path | None = None) -> list[Frame]:
    """Parse SRT text already held in memory.

    Raises
    ------
    SubtitleParseError
        If pysubs2 rejects the text.
    """
    try:
        subs = pysubs2.SSAFile.from_string(raw, format_="srt")
    except Exception as exc:
        raise SubtitleParseError(source or Path("<string>"), str(exc)) from exc
    return _to_frames(subs)


def parse_subtitles(subtitle_path: Path) -> list[Frame]:
    """Parse an SRT file into a list of :class:`Frame`.

    Parameters
    ----------
    subtitle_path:
        Path to a ``.srt`` file.

    Returns
    -------
    list[Frame]
        Frames in file order with ``HH:MM:SS,mmm`` timestamps.

    Raises
    ------
    SubtitleParseError
        If the file cannot be loaded (including unresolvable encoding).
    """
    return _to_frames(_load_with_encoding_fallback(subtitle_path))


def _to_frames(subs) -> list[Frame]:
    frames: list[Frame] = []
    for event in subs:
        if event.is_comment:
            continue
        text = event.plaintext.strip()
        if not text:
            continue
        lines = [line.strip() for line in text.split("\n") if line.strip()]
        frames.append(
            Frame.from_lines(
                index=len(frames) + 1,
                start_time=format_timestamp(event.start / 1000.0),
                end_time=format_timestamp(event.end / 1000.0),
                lines=lines,
            )
        )
    return frames


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _load_with_encoding_fallback(subtitle_path: Path):  # type: ignore[return]
    """Load *subtitle_path* with UTF-8, falling back to charset-normalizer.

    Raises ``SubtitleParseError`` if encoding cannot be determined or the
    file is not valid SRT syntax.
    """
    try:
        return pysubs2.load(str(subtitle_path), encoding="utf-8", format_="srt")
    except UnicodeDecodeError:
        pass
    except Exception as exc:
        raise SubtitleParseError(subtitle_path, str(exc)) from exc

    # UTF-8 failed, try charset-normalizer
    best = from_path(subtitle_path).best()
    if best is None:
        raise SubtitleParseError(
            subtitle_path,
            "Could not determine file encoding. Re-save as UTF-8.",
        )
    try:
        return pysubs2.load(str(subtitle_path), encoding=best.encoding, format_="srt")
    except Exception as exc:
        raise SubtitleParseError(subtitle_path, str(exc)) from exc
