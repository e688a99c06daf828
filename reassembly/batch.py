"""
Batch Reassembly
================

Runs one reassembly operation per request on a bounded worker pool.
Operations share nothing but the driver (stateless) and the shutdown
signal; a failure in one never affects the others.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from core.errors import ReassemblyCancelled
from core.schemas import GenerationRequest, ReassemblyOutcome
from reassembly.driver import CompletionDriver

logger = logging.getLogger(__name__)


class BatchItemResult(BaseModel):
    """Outcome of one request in a batch (either outcome or error is set)"""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    index: int
    file_name: Optional[str] = None
    outcome: Optional[ReassemblyOutcome] = None
    error: Optional[Exception] = None

    @property
    def success(self) -> bool:
        return self.outcome is not None


class BatchReassembler:
    """
    Bounded concurrent runner around a CompletionDriver.

    Example:
        >>> runner = BatchReassembler(driver, max_workers=3)
        >>> results = runner.run(requests)
        >>> runner.shutdown()  # from another thread: cancels remaining work
    """

    def __init__(self, driver: CompletionDriver, max_workers: Optional[int] = None):
        self.driver = driver
        self.max_workers = max_workers or driver.config.max_workers
        self.shutdown_event = threading.Event()

    def shutdown(self):
        """Cancel pending and in-flight operations."""
        logger.info("[BatchReassembler] Shutdown requested")
        self.shutdown_event.set()

    def _run_one(self, index: int, request: GenerationRequest) -> BatchItemResult:
        item = BatchItemResult(index=index, file_name=request.file_name)
        try:
            item.outcome = self.driver.reassemble(request, cancel_event=self.shutdown_event)
        except ReassemblyCancelled as e:
            logger.info(f"[BatchReassembler] {request.file_name or index}: cancelled")
            item.error = e
        except Exception as e:
            logger.error(f"[BatchReassembler] {request.file_name or index}: failed: {e}")
            item.error = e
            return item

        if item.outcome is not None and item.outcome.truncated:
            logger.warning(
                f"[BatchReassembler] {request.file_name or index} may be incomplete "
                f"after {item.outcome.rounds} round(s)"
            )
        return item

    def run(self, requests: Sequence[GenerationRequest]) -> List[BatchItemResult]:
        """
        Reassemble every request; results come back in input order.
        """
        results: List[Optional[BatchItemResult]] = [None] * len(requests)
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = {
                pool.submit(self._run_one, i, request): i
                for i, request in enumerate(requests)
            }
            completed = 0
            for future in as_completed(futures):
                results[futures[future]] = future.result()
                completed += 1
                logger.info(f"[BatchReassembler] Progress: {completed}/{len(requests)} completed")

        succeeded = sum(1 for r in results if r.success)
        logger.info(f"[BatchReassembler] Done: {succeeded}/{len(requests)} succeeded")
        return results
