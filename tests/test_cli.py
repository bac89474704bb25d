"""Tests for the cinepippin CLI.

Input validation checks the extension before existence so that
wrong-extension files (even if non-existent) produce our Rich error panels
rather than Typer/Click's plain errors.  The ``judge`` command runs against
a scripted client patched in place of the Ollama client.
"""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from cinepippin.cli import app
from cinepippin.errors import InferenceError
from cinepippin.triplets.export import write_sequences
from test_judging import CONSTRAINTS, ScriptedClient, make_sequence

runner = CliRunner()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_CHAIN_SRT = """\
1
00:00:00,000 --> 00:00:03,000
Good evening;

2
00:00:03,000 --> 00:00:06,000
The chef has a surprise,

3
00:00:06,000 --> 00:00:09,000
tonight we serve

4
00:00:09,000 --> 00:00:12,000
a fresh pineapple.

5
00:00:12,000 --> 00:00:15,000
Nobody wants it;

6
00:00:15,000 --> 00:00:18,000
they all left,

7
00:00:18,000 --> 00:00:21,000
the pineapple is still here.

8
00:00:21,000 --> 00:00:24,000
Then the dog ate it;

9
00:00:24,000 --> 00:00:27,000
everyone cheered,

10
00:00:27,000 --> 00:00:30,000
long live the pineapple king!
"""


def write_srt(tmp_path: Path, content: str = _CHAIN_SRT) -> Path:
    path = tmp_path / "film.srt"
    path.write_text(content, encoding="utf-8")
    return path


def write_constraints(tmp_path: Path) -> Path:
    path = tmp_path / "constraints.txt"
    path.write_text("\n".join(CONSTRAINTS) + "\n", encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------

def test_find_invalid_extension_nonexistent_file():
    """Wrong extension + file missing: 'Unsupported subtitle format' panel fires first."""
    result = runner.invoke(app, ["find", "nonexistent_movie.pdf"])
    assert result.exit_code == 1
    assert "Unsupported subtitle format" in result.output
    assert "does not exist" not in result.output


def test_find_valid_extension_nonexistent_file():
    result = runner.invoke(app, ["find", "nonexistent_movie.srt"])
    assert result.exit_code == 1
    assert "File not found" in result.output


def test_find_unknown_policy(tmp_path):
    result = runner.invoke(app, ["find", str(write_srt(tmp_path)), "--policy", "bogus"])
    assert result.exit_code == 1
    assert "Unknown triplet policy" in result.output


def test_judge_invalid_extension(tmp_path):
    srt = write_srt(tmp_path)
    result = runner.invoke(app, ["judge", str(srt)])
    assert result.exit_code == 1
    assert "Unsupported sequence file format" in result.output


# ---------------------------------------------------------------------------
# find
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("finder_flag", ["--optimized", "--standard"])
def test_find_writes_sequence_files(tmp_path, finder_flag):
    out = tmp_path / "out"
    result = runner.invoke(app, ["find", str(write_srt(tmp_path)), "--out", str(out), finder_flag])

    assert result.exit_code == 0, result.output
    assert "Wrote 1 sequence file(s)" in result.output
    written = out / "film.1.txt"
    assert written.exists()
    assert written.read_text(encoding="utf-8").count("\n---\n") == 2


def test_find_nothing_found(tmp_path):
    srt = write_srt(tmp_path, "1\n00:00:01,000 --> 00:00:02,000\nHello,\n\n2\n00:00:03,000 --> 00:00:04,000\nGoodbye,\n")
    result = runner.invoke(app, ["find", str(srt), "--out", str(tmp_path / "out")])
    assert result.exit_code == 0
    assert "Nothing Found" in result.output


# ---------------------------------------------------------------------------
# judge
# ---------------------------------------------------------------------------

def test_judge_and_export(tmp_path):
    paths = write_sequences([make_sequence(0), make_sequence(100)], tmp_path / "seqs", "film")
    export = tmp_path / "export"

    with patch("cinepippin.cli.OllamaClient", return_value=ScriptedClient()):
        result = runner.invoke(app, [
            "judge", *map(str, paths),
            "--constraints", str(write_constraints(tmp_path)),
            "--seed", "1",
            "--export", str(export),
        ])

    assert result.exit_code == 0, result.output
    assert "Judged sequences" in result.output
    assert "llama" in result.output
    assert sorted(p.name for p in export.iterdir()) == ["1", "results.json"]
    assert len(list((export / "1").glob("*.srt"))) == 9

    results = json.loads((export / "results.json").read_text(encoding="utf-8"))
    assert [r["result"]["best_word"] for r in results] == ["llama", "llama"]


def test_judge_all_failed_exits_nonzero(tmp_path):
    paths = write_sequences([make_sequence(0)], tmp_path / "seqs", "film")

    with patch("cinepippin.cli.OllamaClient", return_value=ScriptedClient(generate_failures=1000)):
        result = runner.invoke(app, [
            "judge", str(paths[0]),
            "--constraints", str(write_constraints(tmp_path)),
            "--max-retries", "0",
        ])

    assert result.exit_code == 1
    assert "film.1 skipped" in result.output


def test_judge_missing_constraints(tmp_path):
    paths = write_sequences([make_sequence(0)], tmp_path / "seqs", "film")
    result = runner.invoke(app, ["judge", str(paths[0]), "--constraints", str(tmp_path / "none.txt")])
    assert result.exit_code == 1
    assert "Pipeline Error" in result.output


def test_judge_server_not_ready(tmp_path):
    paths = write_sequences([make_sequence(0)], tmp_path / "seqs", "film")
    client = ScriptedClient()

    def _not_ready(timeout_s: float = 30.0, poll_s: float = 1.0) -> None:
        raise InferenceError("Ollama at http://localhost:11434 did not respond within 30.0s")

    client.wait_until_ready = _not_ready
    with patch("cinepippin.cli.OllamaClient", return_value=client):
        result = runner.invoke(app, ["judge", str(paths[0]), "--constraints", str(write_constraints(tmp_path))])

    assert result.exit_code == 1
    assert "Pipeline Error" in result.output
    assert client.calls == []
