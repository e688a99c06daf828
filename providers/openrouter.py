"""
OpenRouter Backend - text-generation backend using the OpenRouter API

Sends one chat completion per round and reports the finish reason so the
completion driver can tell a natural stop from a length cut-off.
"""
import logging
import requests
from typing import List, Dict, Optional

from core.config import BackendConfig
from core.errors import ConfigurationError, TransportError
from core.schemas import BackendResult, FinishSignal, GenerationMode, GenerationRequest
from providers.base import BackendClient, OUTPUT_FORMAT_INSTRUCTIONS

logger = logging.getLogger(__name__)

TRANSFORM_SYSTEM_PROMPT = f"""You are a helpful assistant that transforms files according to specific instructions.
Follow the user's prompt exactly and return only the processed content.
When context files are provided, use them to understand coding patterns and maintain consistency.

CRITICAL INSTRUCTIONS:
- You must return the COMPLETE file content with your changes applied
- Do not truncate or summarize - include every line of the original file
- Apply the requested changes but preserve all other content exactly

{OUTPUT_FORMAT_INSTRUCTIONS}"""

GENERATE_SYSTEM_PROMPT = """You are a helpful assistant that generates new files based on prompts.
Generate complete, working content.
Return only the generated content unless specifically asked to include explanations."""


class OpenRouterBackend(BackendClient):
    """
    Backend client using OpenRouter API

    Supports:
    - Chat completion (non-streaming)
    - Finish-reason and token usage reporting
    """

    def __init__(
        self,
        config: Optional[BackendConfig] = None,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize OpenRouter backend

        Args:
            config: Backend settings (defaults to BackendConfig())
            api_key: OpenRouter API key (or set the env var named by config.api_key_env)
            session: Optional requests session (connection reuse, testing)
        """
        self.config = config or BackendConfig()
        self.api_key = api_key or self.config.get_api_key()
        if not self.api_key:
            raise ConfigurationError(
                f"OpenRouter API key required. Set {self.config.api_key_env} env var or pass api_key parameter."
            )

        self.base_url = self.config.base_url.rstrip('/')
        self.session = session or requests.Session()

    def build_messages(self, request: GenerationRequest) -> List[Dict[str, str]]:
        """Compose the system and user messages for a request"""
        if request.mode == GenerationMode.GENERATE:
            system_prompt = GENERATE_SYSTEM_PROMPT
        else:
            system_prompt = TRANSFORM_SYSTEM_PROMPT

        parts = []
        if request.context_files:
            parts.extend([
                "CONTEXT FILES:",
                "The following files provide context about the codebase, patterns, and requirements:",
                "",
            ])
            for i, ctx in enumerate(request.context_files, 1):
                parts.extend([
                    f"[Context {i}: {ctx.label} ({ctx.language or 'unknown'})]",
                    "```", ctx.content, "```", "",
                ])
            parts.extend(["END CONTEXT", ""])

        parts.extend(["TASK:", request.prompt, ""])

        if request.mode == GenerationMode.TRANSFORM and request.content:
            if request.language and request.language != "unknown":
                parts.append(f"TARGET FILE ({request.language}):")
            else:
                parts.append("TARGET FILE:")
            parts.extend(["```", request.content, "```", ""])

        if request.mode == GenerationMode.GENERATE:
            parts.append("Please generate the new file content based on the requirements above.")
        else:
            parts.append("Please process the target file according to the task above.")

        if request.context_files:
            parts.append("Use the context files to understand patterns, style, and architecture.")

        return [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": "\n".join(parts)},
        ]

    def send(self, request: GenerationRequest) -> BackendResult:
        """
        Send chat completion request

        Raises:
            TransportError: On request failure, non-2xx status, API error or empty choices
        """
        payload = {
            "model": self.config.model,
            "messages": self.build_messages(request),
            "max_tokens": request.max_tokens or self.config.max_tokens,
            "temperature": request.temperature if request.temperature is not None else self.config.temperature,
            "stream": False
        }

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "X-Title": "Presto - AI File Processor"
        }

        try:
            response = self.session.post(
                f"{self.base_url}/chat/completions",
                json=payload,
                headers=headers,
                timeout=self.config.timeout
            )
        except requests.RequestException as e:
            logger.error(f"[OpenRouter] Request failed: {e}")
            raise TransportError(f"request failed: {e}") from e

        if not response.ok:
            logger.error(f"[OpenRouter] Error {response.status_code}: {response.text}")
            raise TransportError(
                f"API returned status {response.status_code}: {response.text}",
                status_code=response.status_code
            )

        try:
            data = response.json()
        except ValueError as e:
            raise TransportError(f"failed to decode response: {e}") from e

        return self._parse(data)

    def _parse(self, data: Dict) -> BackendResult:
        if not isinstance(data, dict):
            raise TransportError(f"malformed response: expected a JSON object, got {type(data).__name__}")

        if data.get("error"):
            error = data["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise TransportError(f"API error: {message}")

        choices = data.get("choices") or []
        if not isinstance(choices, list):
            raise TransportError(f"malformed response: choices is a {type(choices).__name__}")
        if not choices:
            raise TransportError("no response choices returned")

        choice = choices[0]
        if not isinstance(choice, dict):
            raise TransportError(f"malformed response: choice is a {type(choice).__name__}")
        message = choice.get("message") or {}
        if not isinstance(message, dict):
            raise TransportError(f"malformed response: message is a {type(message).__name__}")
        content = message.get("content") or ""
        if not isinstance(content, str):
            raise TransportError(f"malformed response: content is a {type(content).__name__}")

        usage = data.get("usage") or {}
        tokens = usage.get("total_tokens") if isinstance(usage, dict) else None
        finish_reason = choice.get("finish_reason")
        model = data.get("model")
        return BackendResult(
            text=content,
            tokens_used=tokens if isinstance(tokens, int) and tokens >= 0 else 0,
            finish_signal=FinishSignal.from_vendor(finish_reason if isinstance(finish_reason, str) else None),
            model=model if isinstance(model, str) else None
        )
