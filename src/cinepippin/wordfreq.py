"""Word-frequency oracle backed by a ``WORD;COUNT`` word list.

The table is a shared, read-only service: it is loaded on first lookup and
served from memory afterwards.  Loading happens exactly once even when many
threads hit an unloaded table at the same moment (double-checked
``threading.Lock``).

Parsing a large word list is slow, so the parsed table is cached beside the
list as ``<wordlist>.msgpack``.  The cache carries the list's mtime and size
and is ignored when either differs, or when it cannot be read at all.
"""

import logging
import os
import re
import tempfile
import threading
from pathlib import Path
from typing import Optional

import msgpack

logger = logging.getLogger(__name__)

_NON_LETTERS_RE = re.compile(r"[^\w]|[\d_]")


def _normalize(word: str) -> str:
    return _NON_LETTERS_RE.sub("", word).upper()


class WordFrequencyTable:
    """Case-insensitive, punctuation-stripped word -> corpus count lookup."""

    def __init__(self, path: Optional[Path], use_cache: bool = True) -> None:
        self.path = path
        self.use_cache = use_cache
        self._table: Optional[dict[str, int]] = None
        self._lock = threading.Lock()
        self.load_count = 0

    @classmethod
    def from_mapping(cls, counts: dict[str, int]) -> "WordFrequencyTable":
        """Build an already-loaded table, mainly for tests."""
        table = cls(path=None, use_cache=False)
        table._table = {_normalize(w): int(c) for w, c in counts.items()}
        return table

    def lookup(self, word: str) -> int:
        """Return the corpus count for *word*, or 0 when unknown or letter-free."""
        key = _normalize(word)
        if not key:
            return 0
        return self._ensure_loaded().get(key, 0)

    __call__ = lookup

    def __len__(self) -> int:
        return len(self._ensure_loaded())

    @property
    def loaded(self) -> bool:
        return self._table is not None

    def clear(self) -> None:
        """Forget the loaded table so the next lookup reloads it."""
        with self._lock:
            self._table = None

    # -- loading -----------------------------------------------------------

    def _ensure_loaded(self) -> dict[str, int]:
        table = self._table
        if table is not None:
            return table
        with self._lock:
            if self._table is None:
                self._table = self._load()
                self.load_count += 1
            return self._table

    def _load(self) -> dict[str, int]:
        if self.path is None or not self.path.exists():
            logger.warning(
                "Word list %s not found; every word frequency will read as 0",
                self.path,
            )
            return {}

        if self.use_cache:
            cached = load_table_cache(self.path)
            if cached is not None:
                logger.debug("word frequencies: cache hit for %s", self.path.name)
                return cached

        table = parse_wordlist(self.path.read_text(encoding="utf-8", errors="replace"))
        logger.info("Loaded %d word frequencies from %s", len(table), self.path.name)

        if self.use_cache:
            try:
                save_table_cache(table, self.path)
            except OSError as exc:
                logger.warning("Could not write word-frequency cache: %s", exc)
        return table


def parse_wordlist(text: str) -> dict[str, int]:
    """Parse ``WORD;COUNT`` lines; malformed lines are skipped."""
    table: dict[str, int] = {}
    for line in text.splitlines():
        word, sep, count = line.strip().partition(";")
        if not sep:
            continue
        key = _normalize(word)
        try:
            value = int(count.strip())
        except ValueError:
            continue
        if key:
            table[key] = value
    return table


# ---------------------------------------------------------------------------
# msgpack cache
# ---------------------------------------------------------------------------

def _cache_path(wordlist: Path) -> Path:
    return wordlist.with_name(wordlist.name + ".msgpack")


def save_table_cache(table: dict[str, int], wordlist: Path) -> Path:
    """Atomically write *table* next to *wordlist* with its mtime and size."""
    stat = wordlist.stat()
    payload = {
        "metadata": {"source_file": str(wordlist), "mtime": stat.st_mtime, "size": stat.st_size},
        "table": table,
    }
    data = msgpack.packb(payload, use_bin_type=True)

    dest = _cache_path(wordlist)
    fd, tmp_path = tempfile.mkstemp(dir=wordlist.parent, suffix=".cache.tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, dest)
    except Exception:
        Path(tmp_path).unlink(missing_ok=True)
        raise
    return dest


def load_table_cache(wordlist: Path) -> Optional[dict[str, int]]:
    """Return the cached table, or None on a miss, a stale stat or a corrupt file."""
    cache_file = _cache_path(wordlist)
    if not cache_file.exists():
        return None
    try:
        payload = msgpack.unpackb(cache_file.read_bytes(), raw=False, strict_map_key=False)
        meta = payload["metadata"]
        stat = wordlist.stat()
        if meta["mtime"] != stat.st_mtime or meta["size"] != stat.st_size:
            return None
        return {str(k): int(v) for k, v in payload["table"].items()}
    except Exception:
        # Corrupt file, missing keys, type errors: all treated as a miss
        return None
