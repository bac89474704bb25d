from pathlib import Path
from typing import Optional


class PippinError(Exception):
    """Base class for all Cinema Pippin errors."""


class SubtitleParseError(PippinError):
    def __init__(self, path: Path, detail: str) -> None:
        super().__init__(
            f"Cannot parse subtitle file '{path.name}'.\n"
            f"  Cause: {detail}\n"
            f"  Check: Is the file valid SRT format?\n"
            f"  Tip: Try re-saving the file as UTF-8 in a text editor."
        )
        self.path = path
        self.detail = detail


class EmptyKeywordError(PippinError):
    def __init__(self, text: str) -> None:
        last = text.split()[-1] if text.split() else text
        super().__init__(
            f'Cannot extract keyword: last word "{last}" contains no letters.\n'
            f"  Cause: the punchline frame ends in digits or punctuation only."
        )
        self.text = text
        self.last_word = last


class MalformedResponseError(PippinError):
    def __init__(self, stage: str, detail: str, raw: str = "") -> None:
        preview = raw if len(raw) <= 200 else raw[:200] + "..."
        super().__init__(
            f"{stage}: the language model returned an unusable response.\n"
            f"  Cause: {detail}\n"
            f"  Raw: {preview!r}"
        )
        self.stage = stage
        self.detail = detail
        self.raw = raw


class ConstraintMismatchError(MalformedResponseError):
    def __init__(self, stage: str, position: int, expected: str, got: str, raw: str = "") -> None:
        super().__init__(
            stage,
            f'constraint #{position} should be "{expected}" but the response used "{got}"',
            raw,
        )
        self.position = position
        self.expected = expected
        self.got = got


class InferenceError(PippinError):
    def __init__(self, detail: str) -> None:
        super().__init__(
            f"Request to the language model server failed.\n"
            f"  Cause: {detail}\n"
            f"  Check: Is Ollama running? Is the model pulled?\n"
            f"  Tip: Run `ollama list` to see the installed models."
        )
        self.detail = detail


class StageExhaustedError(PippinError):
    def __init__(self, stage: str, attempts: int, last_error: Optional[BaseException] = None) -> None:
        message = f"{stage} failed after {attempts} attempts"
        if last_error is not None:
            message += f". Last error: {last_error}"
        super().__init__(message)
        self.stage = stage
        self.attempts = attempts
        self.last_error = last_error


class ConstraintsFileError(PippinError):
    def __init__(self, path: Path, detail: str) -> None:
        super().__init__(
            f"Cannot load constraints from '{path.name}'.\n"
            f"  Cause: {detail}\n"
            f"  Check: The file should hold one constraint per line, e.g. 'Alliteration -- starts with S'."
        )
        self.path = path
        self.detail = detail


class SequenceFileError(PippinError):
    def __init__(self, path: Path, detail: str) -> None:
        super().__init__(
            f"Cannot read sequence file '{path.name}'.\n"
            f"  Cause: {detail}\n"
            f"  Check: Was the file written by `cinepippin find`? "
            f"It must hold three scenes separated by '---' lines."
        )
        self.path = path
        self.detail = detail
