from .schemas import (
    AccumulatedArtifact,
    BackendResult,
    ContentClass,
    ExitReason,
    FinishSignal,
    GenerationMode,
    GenerationRequest,
    ReassemblyOutcome,
)
from .errors import (
    ConfigurationError,
    ReassemblyCancelled,
    ReassemblyError,
    RoundTimeoutError,
    TransportError,
)
from .config import MAX_ROUNDS, BackendConfig, ReassemblyConfig

__all__ = [
    "AccumulatedArtifact", "BackendResult", "ContentClass", "ExitReason", "FinishSignal",
    "GenerationMode", "GenerationRequest", "ReassemblyOutcome",
    "ConfigurationError", "ReassemblyCancelled", "ReassemblyError", "RoundTimeoutError", "TransportError",
    "MAX_ROUNDS", "BackendConfig", "ReassemblyConfig",
]
