"""
Incremental completion reassembly: merge truncated backend output into one artifact.
"""
from .driver import CompletionDriver, reassemble
from .merger import merge
from .oracle import is_complete, looks_reasonably_complete
from .batch import BatchReassembler

__all__ = ["CompletionDriver", "reassemble", "merge", "is_complete", "looks_reasonably_complete", "BatchReassembler"]
