"""
Test Completeness Oracle
========================

Covers the balance scanner state machine, the per-class structure checks,
and the two public decisions.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from core.schemas import BackendResult, ContentClass, FinishSignal
from reassembly.oracle import (
    BalanceScanner,
    ScanState,
    braces_balanced,
    freeform_settled,
    indentation_settled,
    is_complete,
    looks_reasonably_complete,
    tags_balanced,
)


# --- Scanner transitions ----------------------------------------------------

@pytest.mark.parametrize("quote,state", [
    ("'", ScanState.IN_SINGLE_QUOTE),
    ('"', ScanState.IN_DOUBLE_QUOTE),
    ("`", ScanState.IN_BACKTICK),
])
def test_scanner_quote_opens_and_closes_literal(quote, state):
    scanner = BalanceScanner()

    assert scanner.step(quote) == state
    assert scanner.step("x") == state
    assert scanner.step(quote) == ScanState.NORMAL


def test_scanner_other_quotes_do_not_close_literal():
    scanner = BalanceScanner()
    scanner.step('"')

    assert scanner.step("'") == ScanState.IN_DOUBLE_QUOTE
    assert scanner.step("`") == ScanState.IN_DOUBLE_QUOTE


def test_scanner_escaped_quote_stays_in_literal():
    scanner = BalanceScanner()
    scanner.step("'")

    assert scanner.step("\\") == ScanState.IN_SINGLE_QUOTE
    assert scanner.step("'") == ScanState.IN_SINGLE_QUOTE, "Escaped quote must not close"
    assert scanner.step("'") == ScanState.NORMAL


def test_scanner_escaped_backslash_then_quote_closes():
    scanner = BalanceScanner()
    scanner.feed('"\\\\')

    assert scanner.state == ScanState.IN_DOUBLE_QUOTE
    assert scanner.step('"') == ScanState.NORMAL


def test_scanner_counts_brackets_only_in_normal_state():
    scanner = BalanceScanner()
    scanner.feed('{ "(" [')

    assert scanner.depth == {"{": 1, "(": 0, "[": 1}
    scanner.feed("] }")
    assert scanner.balanced


# --- Structure checks -------------------------------------------------------

def test_braces_balanced():
    assert braces_balanced("{ a(); }")
    assert braces_balanced('x = "}"; if (a) { b[0]; }')
    assert not braces_balanced("{ a();")
    assert not braces_balanced("f(a, b")


def test_tags_balanced():
    assert tags_balanced("<a><b/></a>")
    assert not tags_balanced("<a><b")


@pytest.mark.parametrize("text,expected", [
    ("def f():\n    return 1\n", True),
    ("def f():", False),
    ("x = foo(a,\n\n", False),
    ("x = [", False),
    ("a = 1 + \\", False),
    ("", False),
])
def test_indentation_settled(text, expected):
    assert indentation_settled(text) == expected


@pytest.mark.parametrize("text,expected", [
    ("Done.", True),
    ("and then,", False),
    ("x =", False),
    ("a | ", False),
    ("", False),
])
def test_freeform_settled(text, expected):
    assert freeform_settled(text) == expected


# --- Decisions --------------------------------------------------------------

@pytest.mark.parametrize("signal,expected", [
    (FinishSignal.NATURAL_STOP, True),
    (FinishSignal.UNKNOWN, True),
    (FinishSignal.LENGTH_LIMIT, False),
])
def test_is_complete(signal, expected):
    assert is_complete(BackendResult(text="x", finish_signal=signal)) == expected


def test_looks_complete_when_as_long_as_original():
    assert looks_reasonably_complete("{ a();", "{ a", ContentClass.BRACE)


def test_brace_text_accepted_at_ninety_percent_when_balanced():
    merged = "{ a(); b(); c(); }"  # 18 chars
    original = "y" * 20

    assert looks_reasonably_complete(merged, original, ContentClass.BRACE)


def test_brace_text_rejected_when_unbalanced_even_at_ninety_five_percent():
    merged = "{ a(); b(); c(); x;"  # 19 chars
    original = "y" * 20

    assert not looks_reasonably_complete(merged, original, ContentClass.BRACE)


def test_short_text_rejected_even_if_balanced():
    assert not looks_reasonably_complete("{}", "y" * 10, ContentClass.BRACE)


def test_tag_and_indentation_classes():
    assert looks_reasonably_complete("<div></div>", "y" * 12, ContentClass.TAG)
    assert not looks_reasonably_complete("<div></div><", "y" * 13, ContentClass.TAG)
    assert looks_reasonably_complete("def f():\n    pass", "y" * 18, ContentClass.INDENT)
    assert not looks_reasonably_complete("def f():\n    x = (", "y" * 19, ContentClass.INDENT)


def test_content_class_accepts_plain_string():
    assert looks_reasonably_complete("{ a(); b(); c(); }", "y" * 20, "brace-delimited")


def test_without_original_nothing_looks_complete():
    assert not looks_reasonably_complete("anything at all.", "", ContentClass.FREEFORM)


def test_never_raises_on_unknown_class():
    assert looks_reasonably_complete("abcdefghi", "abcdefghij", "nonsense") is False
