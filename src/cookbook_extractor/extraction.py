"""LLM-backed recipe extraction.

``ExtractionClient`` sends cleaned page content to the OpenAI Responses API
with ``ExtractionResponse`` as the structured output format and maps the
answer to an ``ExtractionEnvelope``. It never raises for transport or parsing
problems: those come back as a failure envelope (not a recipe, confidence
0.0), which the adaptive loop treats as a definitive stop.

Example:
    >>> client = ExtractionClient(OpenAI(), model="gpt-5-mini")
    >>> envelope = client.extract(cleaned_html, "https://example.com/pie")
    >>> envelope.is_recipe, envelope.confidence
    (True, 0.95)
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date
from typing import TYPE_CHECKING, Any

from openai import (
    APIConnectionError,
    APITimeoutError,
    InternalServerError,
    OpenAIError,
    RateLimitError,
)
from openai.types.responses import EasyInputMessageParam

from .exceptions import ExtractionError
from .models import ExtractionEnvelope, ExtractionResponse, Recipe
from .prompts import build_extraction_prompt, build_feedback_prompt
from .retry import RetryConfig, with_retry

if TYPE_CHECKING:
    from openai import OpenAI

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS: tuple[type[Exception], ...] = (
    RateLimitError,
    APIConnectionError,
    APITimeoutError,
    InternalServerError,
)


class ExtractionClient:
    """Extracts recipes from cleaned HTML with an OpenAI model.

    Args:
        client: OpenAI client (shared, see ``ServiceFactory``)
        model: Model name
        retry_attempts: Attempts per call for rate limits and connection errors
        initial_retry_delay: First backoff delay in seconds
        today: Clock used for the date mentioned in prompts
    """

    def __init__(
        self,
        client: OpenAI,
        model: str = "gpt-5-mini",
        retry_attempts: int = 3,
        initial_retry_delay: float = 1.0,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.client = client
        self.model = model
        self.today = today
        retry = RetryConfig(max_attempts=retry_attempts, initial_delay=initial_retry_delay)
        self._parse = with_retry(**retry.to_kwargs(), retryable=TRANSIENT_ERRORS)(self._parse_once)

    def extract(self, cleaned_html: str, source_url: str) -> ExtractionEnvelope:
        """Extract all recipes from a cleaned payload."""
        prompt = build_extraction_prompt(cleaned_html, source_url, self.today())
        return self._request(prompt, source_url)

    def extract_with_feedback(
        self,
        cleaned_html: str,
        previous_recipe: Recipe,
        validation_error: str,
        source_url: str = "",
    ) -> ExtractionEnvelope:
        """Re-extract after a validation failure.

        The prompt carries the recipe that failed, rendered as JSON, and the
        validation error so the model can correct itself.
        """
        prompt = build_feedback_prompt(
            cleaned_html,
            previous_recipe.model_dump_json(indent=2, exclude_none=True),
            validation_error,
            source_url,
            self.today(),
        )
        return self._request(prompt, source_url)

    def _parse_once(self, prompt: str) -> Any:
        return self.client.responses.parse(
            model=self.model,
            input=[EasyInputMessageParam(role="user", content=prompt)],
            text_format=ExtractionResponse,
        )

    def _request(self, prompt: str, source_url: str) -> ExtractionEnvelope:
        try:
            response = self._parse(prompt)
            envelope = self._to_envelope(response)
        except (OpenAIError, ExtractionError, ValueError) as e:
            # pydantic.ValidationError is a ValueError
            logger.warning(f"Extraction failed for {source_url or '<content>'}: {e}")
            return ExtractionEnvelope.failure(str(e))

        logger.info(
            f"Extracted {len(envelope.recipes)} recipe(s) from {source_url or '<content>'} "
            f"(is_recipe={envelope.is_recipe}, confidence={envelope.confidence:.2f})"
        )
        if envelope.internal_reasoning:
            logger.debug(f"Model reasoning: {envelope.internal_reasoning}")
        return envelope

    def _to_envelope(self, response: Any) -> ExtractionEnvelope:
        if getattr(response, "status", None) == "incomplete":
            details = getattr(response, "incomplete_details", None)
            raise ExtractionError(
                "Response incomplete",
                reason=str(getattr(details, "reason", None) or "unknown"),
            )

        parsed = response.output_parsed
        if parsed is None:
            raise ExtractionError("Response has no structured output (refused or filtered)")
        if not isinstance(parsed, ExtractionResponse):
            raise ExtractionError(
                "Unexpected structured output type", type=type(parsed).__name__
            )
        return ExtractionEnvelope.from_response(parsed)
