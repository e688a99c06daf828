"""
Fragment Merger
===============

Combines the accumulated text with a new fragment using the overlap
strategies, falling back to a line-break concatenation.
"""

import logging
from typing import Tuple

from reassembly.overlap import NO_MATCH, MatchAt, OverlapResult, find_overlap

logger = logging.getLogger(__name__)


def splice(accumulated: str, fragment: str, match: MatchAt) -> str:
    return accumulated[:match.keep] + match.joiner + fragment[match.resume:]


def merge_with_report(accumulated: str, fragment: str) -> Tuple[str, OverlapResult]:
    """
    Merge and report which overlap (if any) was used.

    Returns:
        (merged text, MatchAt or NoMatch)
    """
    fragment = fragment.strip()
    if not fragment:
        return accumulated, NO_MATCH

    overlap = find_overlap(accumulated, fragment)
    if isinstance(overlap, MatchAt):
        merged = splice(accumulated, fragment, overlap)
        logger.debug(
            f"[FragmentMerger] {overlap.strategy} overlap of {overlap.length}, "
            f"kept {overlap.keep}/{len(accumulated)} chars"
        )
        return merged, overlap

    logger.debug("[FragmentMerger] No overlap found, concatenating")
    return accumulated + "\n" + fragment, overlap


def merge(accumulated: str, fragment: str) -> str:
    """
    Merge a continuation fragment into the accumulated text.

    Deterministic; the overlapping text never appears twice. Without an
    overlap the result is accumulated + "\\n" + fragment.

    Example:
        >>> merge("A\\nB\\nC", "B\\nC\\nD")
        'A\\nB\\nC\\nD'
    """
    merged, _ = merge_with_report(accumulated, fragment)
    return merged
