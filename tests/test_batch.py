"""
Test Batch Reassembly
=====================

Concurrent operations stay independent: ordering, per-item failures,
truncation warnings and shutdown.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import logging
import threading

from core.config import ReassemblyConfig
from core.errors import ReassemblyCancelled, TransportError
from core.schemas import BackendResult, ContentClass, ExitReason, FinishSignal, GenerationRequest
from providers.base import BackendClient
from reassembly.batch import BatchReassembler
from reassembly.driver import CompletionDriver


class PerFileBackend(BackendClient):
    """Answers by file name; thread-safe because it only reads its table."""

    def __init__(self, answers):
        self.answers = answers

    def send(self, request):
        answer = self.answers[request.file_name]
        if isinstance(answer, Exception):
            raise answer
        return answer


def _request(file_name):
    return GenerationRequest(prompt="Tidy up.", content="c" * 500, file_name=file_name)


def test_results_in_input_order_and_failures_isolated():
    backend = PerFileBackend({
        "a.txt": BackendResult(text="alpha", finish_signal=FinishSignal.NATURAL_STOP),
        "b.txt": TransportError("API returned status 500", status_code=500),
        "c.txt": BackendResult(text="gamma", finish_signal=FinishSignal.NATURAL_STOP),
    })
    runner = BatchReassembler(CompletionDriver(backend), max_workers=3)

    results = runner.run([_request("a.txt"), _request("b.txt"), _request("c.txt")])

    assert [r.index for r in results] == [0, 1, 2]
    assert [r.file_name for r in results] == ["a.txt", "b.txt", "c.txt"]
    assert results[0].outcome.text == "alpha"
    assert results[2].outcome.text == "gamma"
    assert not results[1].success
    assert isinstance(results[1].error, TransportError)


def test_default_worker_count_comes_from_config():
    driver = CompletionDriver(PerFileBackend({}), ReassemblyConfig(max_workers=4))

    assert BatchReassembler(driver).max_workers == 4


def test_truncated_outcome_logs_warning(caplog):
    backend = PerFileBackend({
        "long.txt": BackendResult(text="more", finish_signal=FinishSignal.LENGTH_LIMIT),
    })
    runner = BatchReassembler(CompletionDriver(backend, ReassemblyConfig(max_rounds=2)))

    with caplog.at_level(logging.WARNING):
        results = runner.run([_request("long.txt")])

    assert results[0].outcome.truncated
    assert "may be incomplete" in caplog.text


def test_shutdown_cancels_remaining_work():
    started = threading.Event()
    release = threading.Event()

    class SlowBackend(BackendClient):
        def send(self, request):
            started.set()
            release.wait(5.0)
            return BackendResult(text="late", finish_signal=FinishSignal.NATURAL_STOP)

    runner = BatchReassembler(
        CompletionDriver(SlowBackend(), ReassemblyConfig(cancel_poll_interval=0.01)),
        max_workers=1,
    )

    def stop_when_started():
        started.wait(5.0)
        runner.shutdown()

    stopper = threading.Thread(target=stop_when_started)
    stopper.start()
    try:
        results = runner.run([_request("one.txt"), _request("two.txt")])
    finally:
        release.set()
        stopper.join()

    assert all(isinstance(r.error, ReassemblyCancelled) for r in results)
    assert not any(r.success for r in results)


def test_structurally_accepted_outcome_logs_no_warning(caplog):
    class TwoPartBackend(BackendClient):
        def send(self, request):
            if "cut short" in request.prompt:
                return BackendResult(text="b(); }", finish_signal=FinishSignal.LENGTH_LIMIT)
            return BackendResult(text="{ a();", finish_signal=FinishSignal.LENGTH_LIMIT)

    request = GenerationRequest(
        prompt="Tidy up.",
        content="{ a(); b(); }",
        content_class=ContentClass.BRACE,
        file_name="main.go",
    )
    runner = BatchReassembler(CompletionDriver(TwoPartBackend()))

    with caplog.at_level(logging.WARNING):
        results = runner.run([request])

    assert results[0].outcome.exit_reason == ExitReason.LOOKS_COMPLETE
    assert not results[0].outcome.truncated
    assert "may be incomplete" not in caplog.text
