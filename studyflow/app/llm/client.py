"""Text generation client with structured output parsing.

Security: Reads API key from settings only, never hardcoded.
Retries are not attempted here; whether to rerun is the orchestrator's call.
"""

import logging
import time
from typing import Any, Protocol

import openai
from openai import AsyncOpenAI
from pydantic import TypeAdapter, ValidationError

from studyflow.app.config import Settings, get_settings
from studyflow.app.parsing.sanitizer import MalformedOutputError, parse_structured
from studyflow.app.utils.metrics import generation_latency_ms

logger = logging.getLogger(__name__)


class GenerationError(Exception):
    """Text generation service call failed."""

    pass


class AuthenticationFailedError(GenerationError):
    """Credentials for the generation service are missing or rejected."""

    pass


class ServiceUnavailableError(GenerationError):
    """Generation service unreachable, overloaded or erroring."""

    pass


class TextGenerator(Protocol):
    """Protocol for raw text generation backends."""

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        max_tokens: int,
        model: str,
    ) -> str:
        """Generate raw text for a system/user prompt pair.

        Raises:
            AuthenticationFailedError: Credentials missing or rejected
            ServiceUnavailableError: Service failed to answer
        """
        ...


class OpenAITextGenerator:
    """OpenAI-backed text generator."""

    def __init__(self, api_key: str | None, timeout: float = 120.0) -> None:
        """Initialize generator.

        Args:
            api_key: OpenAI API key (read from settings); None defers the
                failure to the first call
            timeout: Per-request timeout in seconds
        """
        self._api_key = api_key
        self._timeout = timeout
        self._client: AsyncOpenAI | None = None

    def _get_client(self) -> AsyncOpenAI:
        if not self._api_key:
            raise AuthenticationFailedError(
                "Missing OPENAI_API_KEY. Set it in the environment or .env file."
            )
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key, timeout=self._timeout)
        return self._client

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        max_tokens: int,
        model: str,
    ) -> str:
        """Call chat completions and return the text content."""
        client = self._get_client()

        try:
            response = await client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                max_tokens=max_tokens,
            )
        except (openai.AuthenticationError, openai.PermissionDeniedError) as e:
            # Drop the cached client so corrected credentials are picked up
            self._client = None
            raise AuthenticationFailedError(
                "OpenAI authentication failed - the configured OPENAI_API_KEY is invalid"
            ) from e
        except (openai.APIConnectionError, openai.RateLimitError, openai.InternalServerError) as e:
            raise ServiceUnavailableError(f"OpenAI request failed: {type(e).__name__}") from e
        except openai.APIStatusError as e:
            raise ServiceUnavailableError(f"OpenAI request failed with status {e.status_code}") from e

        choice = response.choices[0]
        if choice.finish_reason == "length":
            logger.warning(f"Generation hit max_tokens={max_tokens}; output is likely truncated")

        return choice.message.content or ""


class StructuredGenerationClient:
    """Single generation call followed by resilient structured parsing."""

    def __init__(
        self,
        generator: TextGenerator,
        *,
        model: str = "gpt-4o-mini",
        max_tokens: int = 8192,
    ) -> None:
        self._generator = generator
        self._model = model
        self._max_tokens = max_tokens

    async def generate_structured(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        max_tokens: int | None = None,
        model: str | None = None,
        response_type: Any = None,
        purpose: str = "generic",
    ) -> Any:
        """Generate and parse structured output.

        Args:
            system_prompt: System instructions
            user_prompt: User message
            max_tokens: Output cap (defaults to client setting)
            model: Model name (defaults to client setting)
            response_type: Optional type to validate the parsed value against
            purpose: Label for latency metrics

        Returns:
            Parsed value, validated into response_type when given

        Raises:
            MalformedOutputError: Output unparseable or of the wrong shape
            AuthenticationFailedError: Propagated from the generator
            ServiceUnavailableError: Propagated from the generator
        """
        start_time = time.monotonic()
        outcome = "error"
        try:
            raw = await self._generator.generate(
                system_prompt,
                user_prompt,
                max_tokens=max_tokens or self._max_tokens,
                model=model or self._model,
            )
            outcome = "success"
        except AuthenticationFailedError:
            outcome = "auth_failed"
            raise
        except ServiceUnavailableError:
            outcome = "unavailable"
            raise
        finally:
            elapsed_ms = (time.monotonic() - start_time) * 1000
            generation_latency_ms.labels(purpose=purpose, outcome=outcome).observe(elapsed_ms)

        value = parse_structured(raw)
        if response_type is None:
            return value

        try:
            return TypeAdapter(response_type).validate_python(value)
        except ValidationError as e:
            raise MalformedOutputError(
                f"Structured output for '{purpose}' has an unexpected shape",
                position=0,
                context=str(e)[:160],
            ) from e


def get_structured_client(settings: Settings | None = None) -> StructuredGenerationClient:
    """Build the structured client from settings."""
    settings = settings or get_settings()
    api_key = settings.openai_api_key.get_secret_value() if settings.openai_api_key else None

    if not api_key:
        logger.warning("No OpenAI API key configured; generation calls will fail authentication")

    generator = OpenAITextGenerator(api_key=api_key, timeout=settings.generation_timeout_seconds)
    return StructuredGenerationClient(
        generator,
        model=settings.openai_model,
        max_tokens=settings.generation_max_tokens,
    )
