from typing import Optional, Tuple
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field


class ContentClass(str, Enum):
    """Coarse structural category used to pick a completeness heuristic"""
    BRACE = "brace-delimited"
    INDENT = "indentation-delimited"
    TAG = "tag-delimited"
    FREEFORM = "freeform"


class GenerationMode(str, Enum):
    TRANSFORM = "transform"  # Rewrite existing content
    GENERATE = "generate"  # Produce new content, single shot


class FinishSignal(str, Enum):
    """Why the backend stopped producing text"""
    NATURAL_STOP = "natural-stop"
    LENGTH_LIMIT = "length-limit"
    UNKNOWN = "unknown"

    @classmethod
    def from_vendor(cls, reason: Optional[str]) -> "FinishSignal":
        """Map a vendor finish_reason string onto a FinishSignal."""
        normalized = (reason or "").strip().lower()
        if normalized in _NATURAL_STOP_REASONS:
            return cls.NATURAL_STOP
        if normalized in _LENGTH_LIMIT_REASONS:
            return cls.LENGTH_LIMIT
        return cls.UNKNOWN


_NATURAL_STOP_REASONS = {"stop", "end_turn", "stop_sequence", "eos"}
_LENGTH_LIMIT_REASONS = {"length", "max_tokens"}


class ExitReason(str, Enum):
    """Which condition ended the reassembly loop"""
    FINISHED = "finished"  # Backend signalled completion
    SINGLE_SHOT = "single_shot"  # Generate mode never continues
    LOOKS_COMPLETE = "looks_complete"  # Accepted by the structural check
    BUDGET_EXHAUSTED = "budget_exhausted"  # Round budget used up


class ContextFile(BaseModel):
    """A reference file shown to the backend alongside the task"""
    model_config = ConfigDict(frozen=True)

    label: str = Field(..., description="Name shown in the prompt, usually a relative path")
    content: str = Field(..., description="File text")
    language: Optional[str] = Field(default=None, description="Language label")


class GenerationRequest(BaseModel):
    """
    One request to the backend.

    Frozen: the driver derives a new request per round with model_copy().
    """
    model_config = ConfigDict(frozen=True)

    prompt: str = Field(..., description="Instruction text for the backend")
    content: Optional[str] = Field(default=None, description="Target content being transformed")
    content_class: ContentClass = Field(default=ContentClass.FREEFORM, description="Selects the balance rules")
    max_tokens: Optional[int] = Field(default=None, gt=0, description="Per-round output token limit")
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0, description="Sampling temperature")
    mode: GenerationMode = Field(default=GenerationMode.TRANSFORM, description="transform or generate")
    file_name: Optional[str] = Field(default=None, description="Identifier of the file being processed")
    language: Optional[str] = Field(default=None, description="Language label shown to the backend")
    context_files: Tuple[ContextFile, ...] = Field(default=(), description="Reference files resent with every round")

    @property
    def original_text(self) -> str:
        return self.content or ""


class BackendResult(BaseModel):
    """Fragment produced by a single round"""
    text: str = ""
    tokens_used: int = Field(default=0, ge=0)
    finish_signal: FinishSignal = FinishSignal.UNKNOWN
    model: Optional[str] = None


class AccumulatedArtifact(BaseModel):
    """Running state of one reassembly operation. Owned by a single driver run."""
    text: str = ""
    tokens: int = 0
    last_signal: FinishSignal = FinishSignal.UNKNOWN
    rounds: int = 0


class ReassemblyOutcome(BaseModel):
    """Final artifact returned across the subsystem boundary"""
    text: str
    tokens: int = 0
    finish_signal: FinishSignal = FinishSignal.UNKNOWN
    truncated: bool = False
    rounds: int = 0
    exit_reason: Optional[ExitReason] = None
