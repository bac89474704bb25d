"""Unit tests for cinepippin.config.PipelineConfig."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from cinepippin.config import PipelineConfig


def test_defaults():
    config = PipelineConfig.from_env(environ={})
    assert config.ollama_url == "http://localhost:11434"
    assert config.model == "qwen-fast"
    assert config.max_retries == 4
    assert config.retry_delay_ms == 1000
    assert config.workers == 1
    assert config.wordlist is None
    assert config.output_dir == Path("outputs")


def test_environment_variables():
    """CINEPIPPIN_<FIELD> variables are coerced to the field types."""
    config = PipelineConfig.from_env(environ={
        "CINEPIPPIN_MODEL": "llama3",
        "CINEPIPPIN_WORKERS": "4",
        "CINEPIPPIN_WORDLIST": "/data/words.txt",
        "UNRELATED": "x",
    })
    assert config.model == "llama3"
    assert config.workers == 4
    assert config.wordlist == Path("/data/words.txt")


def test_overrides_beat_environment():
    config = PipelineConfig.from_env(environ={"CINEPIPPIN_MODEL": "llama3"}, model="mistral")
    assert config.model == "mistral"


def test_none_override_falls_through():
    """Options the user did not give do not mask the environment."""
    config = PipelineConfig.from_env(environ={"CINEPIPPIN_MAX_RETRIES": "2"}, max_retries=None)
    assert config.max_retries == 2


def test_empty_variable_ignored():
    assert PipelineConfig.from_env(environ={"CINEPIPPIN_MODEL": ""}).model == "qwen-fast"


@pytest.mark.parametrize("name,value", [
    ("CINEPIPPIN_WORKERS", "0"),
    ("CINEPIPPIN_MAX_RETRIES", "-1"),
    ("CINEPIPPIN_WORKERS", "many"),
])
def test_invalid_values(name, value):
    with pytest.raises(ValidationError):
        PipelineConfig.from_env(environ={name: value})
