"""
Completeness Oracle
===================

Decides whether an artifact is finished, from the backend's finish signal
and from structural inspection of the merged text.
"""

import logging
from enum import Enum
from typing import Dict

from core.schemas import BackendResult, ContentClass, FinishSignal

logger = logging.getLogger(__name__)

DEFAULT_REASONABLE_RATIO = 0.9

INDENT_CONTINUATION_ENDINGS = (":", "\\", ",", "(", "[", "{")
FREEFORM_ABRUPT_ENDINGS = set(",(+*/-=&|<")

BRACKET_PAIRS = {"{": "}", "(": ")", "[": "]"}
_CLOSERS = {close: open_ for open_, close in BRACKET_PAIRS.items()}


class ScanState(str, Enum):
    NORMAL = "normal"
    IN_SINGLE_QUOTE = "in_single_quote"
    IN_DOUBLE_QUOTE = "in_double_quote"
    IN_BACKTICK = "in_backtick"


_QUOTE_STATES = {
    "'": ScanState.IN_SINGLE_QUOTE,
    '"': ScanState.IN_DOUBLE_QUOTE,
    "`": ScanState.IN_BACKTICK,
}
_STATE_QUOTES = {state: quote for quote, state in _QUOTE_STATES.items()}


class BalanceScanner:
    """
    Bracket counter that ignores brackets inside string literals.

    States:
        NORMAL: brackets are counted, a quote character opens a literal
        IN_*_QUOTE / IN_BACKTICK: only the matching unescaped quote returns to NORMAL

    A backslash inside a literal escapes the next character.

    Example:
        >>> scanner = BalanceScanner()
        >>> scanner.feed('f("{")')
        >>> scanner.balanced
        True
    """

    def __init__(self):
        self.state = ScanState.NORMAL
        self.escaped = False
        self.depth: Dict[str, int] = {open_: 0 for open_ in BRACKET_PAIRS}

    def step(self, ch: str) -> ScanState:
        """Consume one character and return the resulting state."""
        if self.state == ScanState.NORMAL:
            if ch in _QUOTE_STATES:
                self.state = _QUOTE_STATES[ch]
            elif ch in BRACKET_PAIRS:
                self.depth[ch] += 1
            elif ch in _CLOSERS:
                self.depth[_CLOSERS[ch]] -= 1
            return self.state

        if self.escaped:
            self.escaped = False
        elif ch == "\\":
            self.escaped = True
        elif ch == _STATE_QUOTES[self.state]:
            self.state = ScanState.NORMAL
        return self.state

    def feed(self, text: str):
        for ch in text:
            self.step(ch)

    @property
    def balanced(self) -> bool:
        return all(count == 0 for count in self.depth.values())


def braces_balanced(text: str) -> bool:
    scanner = BalanceScanner()
    scanner.feed(text)
    return scanner.balanced


def tags_balanced(text: str) -> bool:
    # Coarse heuristic, not a parser
    return text.count("<") == text.count(">")


def indentation_settled(text: str) -> bool:
    """Last non-empty line must not demand a continuation."""
    for line in reversed(text.split("\n")):
        stripped = line.rstrip()
        if stripped:
            return not stripped.endswith(INDENT_CONTINUATION_ENDINGS)
    return False


def freeform_settled(text: str) -> bool:
    stripped = text.rstrip()
    return bool(stripped) and stripped[-1] not in FREEFORM_ABRUPT_ENDINGS


STRUCTURE_CHECKS = {
    ContentClass.BRACE: braces_balanced,
    ContentClass.TAG: tags_balanced,
    ContentClass.INDENT: indentation_settled,
    ContentClass.FREEFORM: freeform_settled,
}


def structure_ok(text: str, content_class: ContentClass) -> bool:
    check = STRUCTURE_CHECKS.get(ContentClass(content_class), freeform_settled)
    return check(text)


def is_complete(result: BackendResult) -> bool:
    """
    True unless the backend reported a length cut-off.

    A missing or unrecognised finish signal is treated as complete.
    """
    return result.finish_signal != FinishSignal.LENGTH_LIMIT


def looks_reasonably_complete(
    merged_text: str,
    original_text: str,
    content_class: ContentClass,
    ratio: float = DEFAULT_REASONABLE_RATIO
) -> bool:
    """
    Secondary acceptance check for rounds after the first.

    True when the merged text is at least as long as the original, or at
    least `ratio` of it and structurally balanced for its content class.
    Without an original to measure against there is no length evidence and
    the answer is False. Never raises.
    """
    try:
        if not original_text:
            return False
        if len(merged_text) >= len(original_text):
            return True
        if len(merged_text) < ratio * len(original_text):
            return False
        return structure_ok(merged_text, content_class)
    except Exception as e:
        logger.warning(f"[CompletenessOracle] Check failed, assuming incomplete: {e}")
        return False
