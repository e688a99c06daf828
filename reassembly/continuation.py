"""
Continuation Prompt Builder
===========================

Builds the follow-up prompt sent when the backend's output was cut short.
Stateless and side-effect free.
"""

from core.schemas import GenerationRequest
from providers.base import OUTPUT_FORMAT_INSTRUCTIONS

DEFAULT_CONTEXT_LINES = 10


def tail_lines(text: str, count: int = DEFAULT_CONTEXT_LINES) -> str:
    lines = text.rstrip("\n").split("\n")
    return "\n".join(lines[-count:])


def completion_estimate(merged_so_far: str, original_content: str) -> str:
    if not original_content:
        return f"Produced so far: {len(merged_so_far)} characters (no original to compare against)."
    percent = 100.0 * len(merged_so_far) / len(original_content)
    return (
        f"Original content: {len(original_content)} characters. "
        f"Produced so far: {len(merged_so_far)} characters (~{percent:.0f}% of the original size)."
    )


def build(
    merged_so_far: str,
    original_content: str,
    request: GenerationRequest,
    context_lines: int = DEFAULT_CONTEXT_LINES
) -> str:
    """
    Build the continuation prompt.

    Args:
        merged_so_far: Text accumulated over the previous rounds
        original_content: Content being transformed ("" in generate mode)
        request: The original request (its task is restated)
        context_lines: Trailing lines of merged_so_far included as anchor

    Returns:
        Prompt text for the next round
    """
    return f"""Your previous response was cut short because it reached the output length limit.

CONTINUE exactly from where the previous response stopped:
- Do NOT repeat any content that was already produced
- Do NOT start over or summarize
- Start with the very next character after the cutoff

ORIGINAL TASK:
{request.prompt}

PROGRESS:
{completion_estimate(merged_so_far, original_content)}

LAST LINES PRODUCED (continue right after these):
```
{tail_lines(merged_so_far, context_lines)}
```

{OUTPUT_FORMAT_INSTRUCTIONS}"""
