"""Runtime configuration.

Defaults can be overridden with ``CINEPIPPIN_*`` environment variables, and
CLI options override both.  Invalid values fail early with a pydantic
``ValidationError`` naming the offending field.
"""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from cinepippin.inference.ollama import DEFAULT_MODEL, DEFAULT_OLLAMA_URL

ENV_PREFIX = "CINEPIPPIN_"


class PipelineConfig(BaseModel):
    ollama_url: str = DEFAULT_OLLAMA_URL
    model: str = DEFAULT_MODEL
    constraints_file: Path = Path("constraints.txt")
    wordlist: Optional[Path] = None
    max_retries: int = Field(default=4, ge=0)
    retry_delay_ms: int = Field(default=1000, ge=0)
    workers: int = Field(default=1, ge=1)
    output_dir: Path = Path("outputs")
    request_timeout_s: float = Field(default=120.0, gt=0)

    @classmethod
    def from_env(cls, environ: Optional[dict[str, str]] = None, **overrides) -> "PipelineConfig":
        """Build a config from ``CINEPIPPIN_<FIELD>`` variables, then *overrides*.

        Overrides whose value is None are ignored so CLI options that were
        not given fall through to the environment.
        """
        env = os.environ if environ is None else environ
        values: dict = {}
        for name in cls.model_fields:
            raw = env.get(ENV_PREFIX + name.upper())
            if raw is not None and raw != "":
                values[name] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.model_validate(values)
