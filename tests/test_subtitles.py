"""Unit tests for cinepippin.ingestion.subtitles.

All tests are self-contained: subtitle content is written inline to
``tmp_path``.  No real media files are required.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from cinepippin.errors import SubtitleParseError
from cinepippin.ingestion.subtitles import parse_srt_text, parse_subtitles
from cinepippin.models import Frame


# ---------------------------------------------------------------------------
# Minimal SRT fixture
# ---------------------------------------------------------------------------
_SRT_CONTENT = """\
1
00:00:01,000 --> 00:00:03,000
Hello, world!

2
00:00:04,000 --> 00:00:06,500
<i>I love</i>
bananas.

3
01:02:03,456 --> 01:02:05,000
Haydée.

"""


class TestParseSrt:
    def test_parse_srt_basic(self, tmp_path: Path) -> None:
        """Events become Frames with SRT timestamps."""
        p = tmp_path / "film.srt"
        p.write_text(_SRT_CONTENT, encoding="utf-8")

        frames = parse_subtitles(p)

        assert len(frames) == 3
        first = frames[0]
        assert isinstance(first, Frame)
        assert first.index == 1
        assert first.start_time == "00:00:01,000"
        assert first.end_time == "00:00:03,000"
        assert first.text == "Hello, world!"

    def test_multiline_and_tags(self, tmp_path: Path) -> None:
        """Italic tags are stripped and lines are kept separately."""
        p = tmp_path / "film.srt"
        p.write_text(_SRT_CONTENT, encoding="utf-8")

        second = parse_subtitles(p)[1]

        assert second.raw_lines == ("I love", "bananas.")
        assert second.text == "I love\nbananas."
        assert second.end_s == pytest.approx(6.5)

    def test_numbering_is_sequential(self, tmp_path: Path) -> None:
        """Frames are numbered from 1 in file order."""
        p = tmp_path / "film.srt"
        p.write_text(_SRT_CONTENT, encoding="utf-8")

        frames = parse_subtitles(p)

        assert [f.index for f in frames] == [1, 2, 3]
        assert frames[2].start_time == "01:02:03,456"
        assert frames[2].text == "Haydée."

    def test_parse_from_string(self) -> None:
        frames = parse_srt_text(_SRT_CONTENT)
        assert len(frames) == 3


class TestEncodingFallback:
    def test_latin1_file(self, tmp_path: Path) -> None:
        """A Latin-1 file is decoded through charset-normalizer."""
        p = tmp_path / "latin1.srt"
        content = (
            "1\n00:00:01,000 --> 00:00:02,000\n"
            "Où est le café? Très bien, Haydée, très très bien. Déjà vu, señor.\n\n"
        )
        p.write_bytes(content.encode("latin-1"))

        frames = parse_subtitles(p)

        assert len(frames) == 1
        assert "café" in frames[0].text

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(SubtitleParseError) as exc_info:
            parse_subtitles(tmp_path / "missing.srt")
        assert "missing.srt" in str(exc_info.value)
