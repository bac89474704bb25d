"""Ollama text-generation client.

Talks to a running Ollama server over HTTP.  ``/api/generate`` streams one
JSON object per line; the ``response`` fields are concatenated until a line
reports ``"done": true``.
"""

import json
import logging
import time
from typing import Optional, Protocol

import requests

from cinepippin.errors import InferenceError

logger = logging.getLogger(__name__)

DEFAULT_OLLAMA_URL = "http://localhost:11434"
DEFAULT_MODEL = "qwen-fast"


class LLMClient(Protocol):
    """Anything that turns a prompt into text."""

    def complete(self, prompt: str, *, system: Optional[str] = None, temperature: float = 0.7) -> str:
        ...


class OllamaClient:
    """Blocking client for ``POST /api/generate`` with streamed responses.

    Transport errors, non-2xx statuses and undecodable stream lines all
    surface as :class:`InferenceError` so callers can retry them.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_OLLAMA_URL,
        model: str = DEFAULT_MODEL,
        timeout_s: float = 120.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout_s = timeout_s

    def complete(self, prompt: str, *, system: Optional[str] = None, temperature: float = 0.7) -> str:
        payload: dict = {
            "model": self.model,
            "prompt": prompt,
            "stream": True,
            "options": {"temperature": temperature},
        }
        if system:
            payload["system"] = system

        try:
            with requests.post(
                f"{self.base_url}/api/generate",
                json=payload,
                stream=True,
                timeout=self.timeout_s,
            ) as r:
                r.raise_for_status()
                text = self._read_stream(r)
        except requests.RequestException as exc:
            raise InferenceError(str(exc)) from exc

        logger.debug("ollama %s returned %d chars", self.model, len(text))
        return text.strip()

    @staticmethod
    def _read_stream(response: requests.Response) -> str:
        chunks: list[str] = []
        for line in response.iter_lines(decode_unicode=True):
            if not line:
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError as exc:
                raise InferenceError(f"undecodable stream line: {line[:80]!r}") from exc
            if not isinstance(data, dict):
                raise InferenceError(f"unexpected stream line: {line[:80]!r}")
            if "error" in data:
                raise InferenceError(str(data["error"]))
            chunks.append(data.get("response", ""))
            if data.get("done"):
                break
        return "".join(chunks)

    def wait_until_ready(self, timeout_s: float = 30.0, poll_s: float = 1.0) -> None:
        """Poll ``/api/tags`` until the server answers or *timeout_s* elapses."""
        deadline = time.monotonic() + timeout_s
        while time.monotonic() < deadline:
            try:
                r = requests.get(f"{self.base_url}/api/tags", timeout=2)
                if r.status_code == 200:
                    return
            except requests.RequestException:
                pass
            time.sleep(poll_s)
        raise InferenceError(f"Ollama at {self.base_url} did not respond within {timeout_s}s")
