"""
Completion Driver
=================

Runs the round-trip loop of one reassembly operation:

    START -> AWAITING_RESULT -> COMPLETE
                             -> CONTINUING -> AWAITING_RESULT ...
                                           -> ABORTED (continuation prompt failed)
                             -> ABORTED (backend error or cancellation)

Each operation owns its AccumulatedArtifact; a driver instance holds no
per-operation state and can serve concurrent operations.
"""

import logging
import threading
from typing import Optional

from core.cancellation import run_cancellable
from core.config import ReassemblyConfig
from core.schemas import (
    AccumulatedArtifact,
    BackendResult,
    ExitReason,
    FinishSignal,
    GenerationMode,
    GenerationRequest,
    ReassemblyOutcome,
)
from core.transitions import DriverState, TransitionValidator
from providers.base import BackendClient
from reassembly import continuation, oracle
from reassembly.merger import merge_with_report

logger = logging.getLogger(__name__)

TERMINAL_STATES = {DriverState.COMPLETE, DriverState.ABORTED}


class CompletionDriver:
    """
    Reassembles a complete artifact from possibly truncated backend output.

    Example:
        >>> driver = CompletionDriver(OpenRouterBackend(), ReassemblyConfig(round_timeout=60.0))
        >>> outcome = driver.reassemble(request)
        >>> if outcome.truncated:
        ...     logger.warning("output may be incomplete")
    """

    def __init__(self, backend: BackendClient, config: Optional[ReassemblyConfig] = None):
        """
        Args:
            backend: Backend client used for every round
            config: Round budget, timeouts and acceptance ratio
        """
        self.backend = backend
        self.config = (config or ReassemblyConfig()).check()

    def reassemble(
        self,
        request: GenerationRequest,
        cancel_event: Optional[threading.Event] = None
    ) -> ReassemblyOutcome:
        """
        Run rounds until the artifact is complete or the budget is spent.

        Args:
            request: The original request
            cancel_event: Optional signal that aborts the operation when set

        Returns:
            ReassemblyOutcome (truncated=True is a soft warning)

        Raises:
            TransportError: Backend failure in any round; no partial text is returned
            ReassemblyCancelled: cancel_event was set
        """
        label = request.file_name or "<request>"
        artifact = AccumulatedArtifact()
        current = request
        exit_reason = None
        state = DriverState.START

        while state not in TERMINAL_STATES:
            if state == DriverState.START:
                state = self._transition(state, DriverState.AWAITING_RESULT)

            elif state == DriverState.AWAITING_RESULT:
                round_no = artifact.rounds + 1
                if round_no > 1:
                    logger.info(
                        f"[CompletionDriver] {label}: continuation {round_no - 1}/{self.config.max_rounds - 1}"
                    )
                try:
                    result = run_cancellable(
                        self.backend.send,
                        current,
                        cancel_event=cancel_event,
                        timeout=self.config.round_timeout,
                        poll_interval=self.config.cancel_poll_interval
                    )
                except Exception as e:
                    state = self._transition(state, DriverState.ABORTED)
                    logger.error(f"[CompletionDriver] {label}: aborted in round {round_no}: {e}")
                    raise

                self._absorb(artifact, result)
                exit_reason = self._exit_reason(request, artifact, result)
                if exit_reason is not None:
                    state = self._transition(state, DriverState.COMPLETE)
                else:
                    state = self._transition(state, DriverState.CONTINUING)

            elif state == DriverState.CONTINUING:
                try:
                    prompt = continuation.build(
                        artifact.text,
                        request.original_text,
                        request,
                        context_lines=self.config.context_lines
                    )
                    current = request.model_copy(update={"prompt": prompt})
                except Exception as e:
                    state = self._transition(state, DriverState.ABORTED)
                    logger.error(
                        f"[CompletionDriver] {label}: could not build continuation "
                        f"after round {artifact.rounds}: {e}"
                    )
                    raise
                state = self._transition(state, DriverState.AWAITING_RESULT)

        # A structurally accepted artifact is not truncated even though its last round was cut off
        truncated = exit_reason == ExitReason.BUDGET_EXHAUSTED or (
            exit_reason == ExitReason.SINGLE_SHOT
            and artifact.last_signal == FinishSignal.LENGTH_LIMIT
        )
        logger.info(
            f"[CompletionDriver] {label}: {exit_reason.value} after {artifact.rounds} round(s), "
            f"{artifact.tokens} tokens, truncated={truncated}"
        )
        return ReassemblyOutcome(
            text=artifact.text,
            tokens=artifact.tokens,
            finish_signal=artifact.last_signal,
            truncated=truncated,
            rounds=artifact.rounds,
            exit_reason=exit_reason
        )

    def _absorb(self, artifact: AccumulatedArtifact, result: BackendResult):
        """Fold one round's fragment into the artifact."""
        if artifact.rounds == 0:
            artifact.text = result.text
        else:
            artifact.text, overlap = merge_with_report(artifact.text, result.text)
            logger.debug(f"[CompletionDriver] merge result: {overlap}")
        artifact.rounds += 1
        artifact.tokens += result.tokens_used
        artifact.last_signal = result.finish_signal

    def _exit_reason(
        self,
        request: GenerationRequest,
        artifact: AccumulatedArtifact,
        result: BackendResult
    ) -> Optional[ExitReason]:
        """Return why the loop should stop now, or None to continue."""
        if oracle.is_complete(result):
            return ExitReason.FINISHED
        if request.mode == GenerationMode.GENERATE:
            return ExitReason.SINGLE_SHOT
        if artifact.rounds > 1 and oracle.looks_reasonably_complete(
            artifact.text,
            request.original_text,
            request.content_class,
            ratio=self.config.reasonable_ratio
        ):
            return ExitReason.LOOKS_COMPLETE
        if artifact.rounds >= self.config.max_rounds:
            return ExitReason.BUDGET_EXHAUSTED
        return None

    @staticmethod
    def _transition(from_state: DriverState, to_state: DriverState) -> DriverState:
        TransitionValidator.validate_or_raise(from_state, to_state)
        logger.debug(f"[CompletionDriver] {from_state.value} -> {to_state.value}")
        return to_state


def reassemble(
    request: GenerationRequest,
    backend: BackendClient,
    config: Optional[ReassemblyConfig] = None,
    cancel_event: Optional[threading.Event] = None
) -> ReassemblyOutcome:
    """Convenience wrapper: one operation with a throwaway driver."""
    return CompletionDriver(backend, config).reassemble(request, cancel_event=cancel_event)
