from abc import ABC, abstractmethod

from core.schemas import BackendResult, GenerationRequest

# Output-format rules shared by the initial request and every continuation
OUTPUT_FORMAT_INSTRUCTIONS = """OUTPUT FORMAT:
- Return ONLY the content itself - no explanations, no markdown code fences, no commentary
- Do not wrap the output in quotes or add any preamble
- The response is written directly to a file, so it must be valid content"""


class BackendClient(ABC):
    """Interface for text-generation backends used by the completion driver."""

    @abstractmethod
    def send(self, request: GenerationRequest) -> BackendResult:
        """
        Send one request and return the produced fragment.

        Raises:
            TransportError: On network, auth, status or payload failures
        """
        pass
