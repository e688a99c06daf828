"""
Overlap Matcher
===============

Pure functions that find where an accumulated buffer and the next fragment
abut or repeat. Each strategy returns NO_MATCH or a MatchAt describing how
to splice the two texts:

    merged = accumulated[:keep] + joiner + fragment[resume:]

Strategies run in order and the first match wins (see find_overlap).
"""

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple, Union

MAX_LINE_OVERLAP = 5
PARTIAL_HEAD_LINES = 5
MIN_SHARED_PREFIX = 3
MAX_WORD_WINDOW = 20
MIN_WORD_OVERLAP = 2

_WORD = re.compile(r"\S+")


@dataclass(frozen=True)
class NoMatch:
    strategy: Optional[str] = None


@dataclass(frozen=True)
class MatchAt:
    """
    A successful overlap.

    Attributes:
        length: Overlap size in the strategy's unit (lines or words)
        keep: Number of leading characters of the accumulated text to keep
        resume: Offset in the fragment where the appended text starts
        joiner: Separator inserted between the two parts
        strategy: Name of the strategy that matched
    """
    length: int
    keep: int
    resume: int
    joiner: str = ""
    strategy: str = ""


OverlapResult = Union[NoMatch, MatchAt]
NO_MATCH = NoMatch()


def _line_starts(text: str) -> List[int]:
    starts = [0]
    for i, ch in enumerate(text):
        if ch == "\n":
            starts.append(i + 1)
    return starts


def _common_prefix_length(a: str, b: str) -> int:
    n = 0
    for x, y in zip(a, b):
        if x != y:
            break
        n += 1
    return n


def exact_line_overlap(accumulated: str, fragment: str) -> OverlapResult:
    """
    Last 1..5 lines of the buffer equal (trimmed) the first 1..5 lines of
    the fragment. Longest run wins.
    """
    tail = [line.strip() for line in accumulated.rstrip().split("\n")]
    head = [line.strip() for line in fragment.split("\n")]
    if not tail[-1]:
        return NO_MATCH

    for n in range(min(MAX_LINE_OVERLAP, len(tail), len(head)), 0, -1):
        if tail[-n:] != head[:n]:
            continue
        if n == len(head):
            # Fragment is entirely a repeat of the buffer's tail
            return MatchAt(length=n, keep=len(accumulated), resume=len(fragment), strategy="exact_line")
        joiner = "" if accumulated.endswith("\n") else "\n"
        return MatchAt(
            length=n,
            keep=len(accumulated),
            resume=_line_starts(fragment)[n],
            joiner=joiner,
            strategy="exact_line",
        )
    return NO_MATCH


def partial_completion_overlap(accumulated: str, fragment: str) -> OverlapResult:
    """
    The buffer's last line was cut mid-token and the fragment restates it
    in completed form.

    (a) A fragment line (among the first few) starts with the trimmed last
        line of the buffer and is strictly longer: the truncated line is
        replaced from its first non-blank character, indentation kept.
    (b) The buffer's last word and the fragment's first word share a prefix
        of at least MIN_SHARED_PREFIX characters: the truncated word is
        replaced by the fragment.
    """
    # A trailing newline or space means nothing was cut mid-token.
    if not accumulated or accumulated[-1].isspace():
        return NO_MATCH

    line_start = accumulated.rfind("\n") + 1
    last_line = accumulated[line_start:]
    content = last_line.strip()
    if not content:
        return NO_MATCH
    content_start = line_start + (len(last_line) - len(last_line.lstrip()))

    starts = _line_starts(fragment)
    lines = fragment.split("\n")
    for i, line in enumerate(lines[:PARTIAL_HEAD_LINES]):
        candidate = line.strip()
        if len(candidate) > len(content) and candidate.startswith(content):
            offset = starts[i] + (len(line) - len(line.lstrip()))
            return MatchAt(length=1, keep=content_start, resume=offset, strategy="partial_completion")

    last_word = accumulated.split()[-1]
    first = _WORD.match(fragment)
    if first is None:
        return NO_MATCH
    first_word = first.group(0)
    # The replacement must not be shorter than what it replaces
    if (_common_prefix_length(last_word, first_word) >= MIN_SHARED_PREFIX
            and len(first_word) >= len(last_word)):
        return MatchAt(
            length=1,
            keep=len(accumulated) - len(last_word),
            resume=first.start(),
            strategy="partial_completion",
        )
    return NO_MATCH


def word_overlap(accumulated: str, fragment: str) -> OverlapResult:
    """
    Last words of the buffer against first words of the fragment,
    case-insensitive, within a window of MAX_WORD_WINDOW words.
    Longest suffix/prefix run of at least MIN_WORD_OVERLAP words wins.
    """
    tail = [w.lower() for w in accumulated.split()[-MAX_WORD_WINDOW:]]
    head_matches = []
    for m in _WORD.finditer(fragment):
        head_matches.append(m)
        if len(head_matches) >= MAX_WORD_WINDOW:
            break
    head = [m.group(0).lower() for m in head_matches]

    for k in range(min(len(tail), len(head)), MIN_WORD_OVERLAP - 1, -1):
        if tail[-k:] == head[:k]:
            resume = head_matches[k - 1].end()
            rest = fragment[resume:]
            if not rest.strip():
                resume = len(fragment)
            elif accumulated[-1].isspace():
                resume += len(rest) - len(rest.lstrip())
            return MatchAt(length=k, keep=len(accumulated), resume=resume, strategy="word")
    return NO_MATCH


Strategy = Callable[[str, str], OverlapResult]

STRATEGIES: Tuple[Strategy, ...] = (
    exact_line_overlap,
    partial_completion_overlap,
    word_overlap,
)


def find_overlap(accumulated: str, fragment: str, strategies=STRATEGIES) -> OverlapResult:
    """Run the strategies in order and return the first match (NO_MATCH if none)."""
    if not accumulated or not fragment:
        return NO_MATCH
    for strategy in strategies:
        result = strategy(accumulated, fragment)
        if isinstance(result, MatchAt):
            return result
    return NO_MATCH
