#!/usr/bin/env python3
"""Exactly-once bookkeeping for emitted facts."""

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path


def dedup_key(location: str, name: str, destination: str | Path, variant: str | None = None) -> str:
    """Composite identity of one logical fact: `<location>+<name>+<destination>[+<variant>]`."""
    key = f"{location}+{name}+{destination}"
    if variant is not None:
        key += f"+{variant}"
    return key


class FactTransaction:
    """Operations available while holding the index lock."""

    def __init__(self, index: "DedupIndex"):
        self._index = index

    def check_and_insert(self, key: str) -> bool:
        return self._index.check_and_insert(key)

    def append(self, destination: str | Path, line: str) -> None:
        """Append one newline-terminated line; the file is closed before returning."""
        with open(destination, "a", encoding="utf-8") as f:
            f.write(line + "\n")
            f.flush()


class DedupIndex:
    """Set of fact keys seen so far, plus the lock that serializes all output.

    One lock covers every destination file, so a dedup check and the write
    that follows it can never interleave with another thread's.
    """

    def __init__(self):
        self._keys: set[str] = set()
        self._lock = threading.RLock()

    def check_and_insert(self, key: str) -> bool:
        """Insert `key`; return False if it was already present."""
        with self._lock:
            if key in self._keys:
                return False
            self._keys.add(key)
            return True

    @contextmanager
    def transaction(self) -> Iterator[FactTransaction]:
        with self._lock:
            yield FactTransaction(self)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._keys

    def __len__(self) -> int:
        with self._lock:
            return len(self._keys)
