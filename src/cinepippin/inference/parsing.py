"""Tolerant parsing of language-model answers.

Models asked for a JSON array of pairs often answer almost-JSON.  Parsing
runs a fixed pipeline and stops at the first step that yields a list:

1. strict ``json.loads`` of the bracketed span of the answer;
2. bracket-wrap repair, when the span matches :data:`FLAT_COUPLET_GRAMMAR`
   (``[a, b], [c, d], ...`` missing its outer brackets);
3. single-quoted strings rewritten as JSON strings, then 1 and 2 again.

If every step fails, :class:`~cinepippin.errors.MalformedResponseError` is
raised; callers treat it as a retryable failure.
"""

import json
import re
from dataclasses import dataclass

from pydantic import StrictBool, TypeAdapter, ValidationError

from cinepippin.errors import MalformedResponseError


@dataclass(frozen=True)
class FlatCoupletGrammar:
    """``item (, item)+`` where an item is ``[string, string]`` or ``[string, boolean]``.

    Strings may use double or single quotes.  Booleans are the JSON literals.
    """

    quoted: str = r"""(?:"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')"""
    boolean: str = r"(?:true|false)"

    @property
    def item(self) -> str:
        return rf"\[\s*{self.quoted}\s*,\s*(?:{self.quoted}|{self.boolean})\s*\]"

    @property
    def pattern(self) -> re.Pattern:
        return re.compile(rf"^\s*{self.item}(?:\s*,\s*{self.item})+\s*,?\s*$", re.DOTALL)

    def matches(self, text: str) -> bool:
        return self.pattern.match(text) is not None


FLAT_COUPLET_GRAMMAR = FlatCoupletGrammar()
_FLAT_RE = FLAT_COUPLET_GRAMMAR.pattern

_STRING_COUPLETS: TypeAdapter[list[tuple[str, str]]] = TypeAdapter(list[tuple[str, str]])
_BOOL_COUPLETS: TypeAdapter[list[tuple[str, StrictBool]]] = TypeAdapter(list[tuple[str, StrictBool]])

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
_INT_RE = re.compile(r"\b\d+\b")


def _bracketed_span(raw: str) -> str:
    text = _FENCE_RE.sub("", raw)
    start, end = text.find("["), text.rfind("]")
    if start == -1 or end <= start:
        return ""
    return text[start:end + 1]


def _single_to_double_quotes(text: str) -> str:
    """Rewrite single-quoted strings outside double-quoted ones as JSON strings."""
    out: list[str] = []
    i, n = 0, len(text)
    while i < n:
        ch = text[i]
        if ch == '"':
            j = i + 1
            while j < n and text[j] != '"':
                j += 2 if text[j] == "\\" else 1
            out.append(text[i:j + 1])
            i = j + 1
        elif ch == "'":
            j = i + 1
            while j < n and text[j] != "'":
                j += 2 if text[j] == "\\" else 1
            out.append(json.dumps(text[i + 1:j].replace("\\'", "'")))
            i = j + 1
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def _try_parse(span: str):
    try:
        value = json.loads(span)
    except json.JSONDecodeError:
        value = None
    if isinstance(value, list):
        return value
    if _FLAT_RE.match(span):
        try:
            value = json.loads(f"[{span.strip().rstrip(',')}]")
        except json.JSONDecodeError:
            return None
        if isinstance(value, list):
            return value
    return None


def parse_json_array(raw: str, stage: str) -> list:
    """Extract a JSON array from *raw*, repairing the known malformations."""
    span = _bracketed_span(raw)
    if not span:
        raise MalformedResponseError(stage, "no JSON array in the response", raw)

    value = _try_parse(span)
    if value is None and "'" in span:
        value = _try_parse(_single_to_double_quotes(span))
    if value is None:
        raise MalformedResponseError(stage, "response is not a valid JSON array", raw)
    return value


def parse_string_couplets(raw: str, stage: str, expected: int) -> list[tuple[str, str]]:
    """Parse ``[[label, text], ...]`` and keep the first *expected* pairs."""
    try:
        couplets = _STRING_COUPLETS.validate_python(parse_json_array(raw, stage))
    except ValidationError as exc:
        raise MalformedResponseError(stage, f"expected [string, string] pairs: {exc.errors()[0]['msg']}", raw) from exc
    if len(couplets) < expected:
        raise MalformedResponseError(stage, f"expected {expected} pairs, got {len(couplets)}", raw)
    return [(a.strip(), b.strip()) for a, b in couplets[:expected]]


def parse_bool_couplets(raw: str, stage: str, expected: int) -> list[tuple[str, bool]]:
    """Parse ``[[question, true|false], ...]``; answers must be real booleans."""
    try:
        couplets = _BOOL_COUPLETS.validate_python(parse_json_array(raw, stage))
    except ValidationError as exc:
        raise MalformedResponseError(stage, f"expected [string, boolean] pairs: {exc.errors()[0]['msg']}", raw) from exc
    if len(couplets) < expected:
        raise MalformedResponseError(stage, f"expected {expected} answers, got {len(couplets)}", raw)
    return [(q.strip(), a) for q, a in couplets[:expected]]


def parse_ranking(raw: str, count: int, top: int = 3) -> list[int]:
    """Read a best-first ranking of 1-based options from *raw*.

    Returns 0-based indices.  Out-of-range and repeated numbers are ignored;
    when fewer than *top* valid numbers are found the ranking is padded with
    the unused options in display order.  At least one valid number is
    required.
    """
    ranking: list[int] = []
    for match in _INT_RE.finditer(raw):
        value = int(match.group(0))
        if 1 <= value <= count and value - 1 not in ranking:
            ranking.append(value - 1)
    if not ranking:
        raise MalformedResponseError("judge", f"no option number between 1 and {count}", raw)

    wanted = min(top, count)
    for index in range(count):
        if len(ranking) >= wanted:
            break
        if index not in ranking:
            ranking.append(index)
    return ranking[:max(wanted, 1)]
