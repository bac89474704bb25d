"""Underscore blanking of answer text and the inverse fill-in."""

import re

MAX_BLANK_RUN = 4
MAX_BLANK_TOKENS = 8
LONG_LINE_LIMIT = 60
_SPLIT_WINDOW = 10

_BLANKED_REGION_RE = re.compile(r"(?:_+\s*)+_+")
_LONG_RUN_RE = re.compile(r"_{5,}")


def blank_with_spaces(text: str) -> str:
    """Hide every visible character, keeping whitespace and a coarse length.

    Runs of five or more underscores collapse to exactly four, so short words
    keep their length while long ones all look alike.
    """
    blanked = re.sub(r"\S", "_", text)
    return _LONG_RUN_RE.sub("_" * MAX_BLANK_RUN, blanked)


def condense_and_blank(lines: list[str]) -> str:
    """Blank a multi-line frame onto one line of at most eight tokens."""
    blanked = blank_with_spaces(" ".join(lines).strip())
    tokens = blanked.split()
    if len(tokens) > MAX_BLANK_TOKENS:
        return " ".join(tokens[:MAX_BLANK_TOKENS])
    return blanked


def split_long_line(text: str, limit: int = LONG_LINE_LIMIT) -> str:
    """Break *text* onto two lines near its middle when longer than *limit*.

    Prefers a ``.``, ``,`` or ``?`` within ten characters of the midpoint,
    then the closest space, and falls back to the midpoint itself.
    """
    if len(text) <= limit:
        return text

    mid = len(text) // 2
    lo = max(0, mid - _SPLIT_WINDOW)
    hi = min(len(text) - 1, mid + _SPLIT_WINDOW)
    window = range(lo, hi + 1)

    punct = [i for i in window if text[i] in ".,?"]
    if punct:
        i = min(punct, key=lambda p: abs(p - mid))
        return text[: i + 1].rstrip() + "\n" + text[i + 1:].lstrip()

    spaces = [i for i in window if text[i] == " "]
    if spaces:
        i = min(spaces, key=lambda p: abs(p - mid))
        return text[:i] + "\n" + text[i + 1:]

    return text[:mid] + "\n" + text[mid:]


def replace_blanked_text(scene: str, replacement: str, split_long: bool = False) -> str:
    """Replace only the FIRST blanked region of *scene* with *replacement*."""
    if split_long:
        replacement = split_long_line(replacement)
    return _BLANKED_REGION_RE.sub(lambda _m: replacement, scene, count=1)


def blank_last_frame(scene: str) -> str:
    """Blank the text of the final SRT stanza of *scene*.

    A stanza is ``index``, ``start --> end`` and one or more text lines;
    the text lines are replaced by a single :func:`condense_and_blank` line.
    """
    stanzas = re.split(r"\n\s*\n", scene.strip())
    lines = stanzas[-1].split("\n")
    if len(lines) < 3:
        return scene.strip()
    stanzas[-1] = "\n".join(lines[:2] + [condense_and_blank(lines[2:])])
    return "\n\n".join(stanzas)
