"""Count lines, words and bytes in files or standard input."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from functools import partial
from typing import BinaryIO, Optional, Sequence

_CHUNK = 512
# The terminating NUL of the separator set counts as a separator too.
_SEPARATORS = frozenset(b" \r\t\n\v\0")
_NEWLINE = ord("\n")


@dataclass(frozen=True)
class Counts:
    """Line, word and byte totals."""

    lines: int
    words: int
    chars: int


class _Tally:
    def __init__(self) -> None:
        self.lines = 0
        self.words = 0
        self.chars = 0
        self.in_word = False

    def feed(self, chunk: bytes) -> None:
        for byte in chunk:
            self.chars += 1
            if byte == _NEWLINE:
                self.lines += 1
            if byte in _SEPARATORS:
                self.in_word = False
            elif not self.in_word:
                self.words += 1
                self.in_word = True

    def counts(self) -> Counts:
        return Counts(self.lines, self.words, self.chars)


def count(data: bytes) -> Counts:
    """Count the lines, words and bytes of ``data``."""
    tally = _Tally()
    tally.feed(data)
    return tally.counts()


def _count_stream(stream: BinaryIO) -> Counts:
    tally = _Tally()
    for chunk in iter(partial(stream.read, _CHUNK), b""):
        tally.feed(chunk)
    return tally.counts()


def _report(counts: Counts, name: str) -> None:
    print(f"{counts.lines} {counts.words} {counts.chars} {name}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Print counts for each named file, or for standard input if none are named."""
    names = list(sys.argv[1:] if argv is None else argv)
    if not names:
        try:
            counts = _count_stream(sys.stdin.buffer)
        except OSError:
            print("wc: read error")
            return 1
        _report(counts, "")
        return 0
    for name in names:
        try:
            stream = open(name, "rb")
        except OSError:
            print(f"wc: cannot open {name}")
            return 1
        with stream:
            try:
                counts = _count_stream(stream)
            except OSError:
                print("wc: read error")
                return 1
        _report(counts, name)
    return 0