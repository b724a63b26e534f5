"""Custom exceptions for cookbook_extractor.

This module defines the exception hierarchy used throughout the extraction
pipeline. Every exception carries an optional set of context values that are
rendered into the error message for easier debugging.

Only URL errors are meant to reach the caller of the pipeline. Everything else
is handled internally: extraction failures become failure envelopes, cache
failures become cache misses.

Example:
    >>> try:
    ...     raise CacheUnavailableError("Cache read failed", content_hash="ab12")
    ... except CookbookExtractorError as e:
    ...     print(e)
    Cache read failed (content_hash='ab12')
"""


class CookbookExtractorError(Exception):
    """Base exception for all cookbook_extractor errors.

    Attributes:
        message: Human-readable error description
        context: Additional context about where/when the error occurred
    """

    def __init__(self, message: str, **context: str | int | float | bool | None) -> None:
        """Initialize the exception with a message and optional context.

        Args:
            message: Human-readable error description
            **context: Additional context (e.g., url="https://...", attempt=2)
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        """Format error message with context."""
        if self.context:
            context_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


class MalformedUrlError(CookbookExtractorError, ValueError):
    """The source URL cannot be parsed.

    Raised when:
    - The URL contains whitespace
    - The scheme or host is missing
    - The port or IPv6 literal is invalid

    Example:
        >>> raise MalformedUrlError("URL has no host", url="https:///recipe")
    """

    pass


class InvalidArgumentError(CookbookExtractorError, ValueError):
    """A required argument is missing or blank.

    Raised when:
    - The URL to hash is None or only whitespace
    """

    pass


class ConfigurationError(CookbookExtractorError):
    """Invalid or unloadable configuration.

    Raised when:
    - A configuration value is out of range
    - A TOML configuration file cannot be read
    - An unknown configuration key is supplied

    Example:
        >>> raise ConfigurationError(
        ...     "confidence_threshold must be between 0.0 and 1.0",
        ...     confidence_threshold=1.5,
        ... )
    """

    pass


class ExtractionError(CookbookExtractorError):
    """The LLM call failed or returned an unusable response.

    Raised when:
    - The API call fails after all transport retries
    - The response was refused, filtered or incomplete
    - The structured output cannot be parsed

    The extraction client converts this error into a failure envelope, so it
    never escapes the pipeline.
    """

    pass


class RecipeValidationError(CookbookExtractorError):
    """A recipe does not satisfy the structural rules.

    Raised when:
    - Callers ask for a strict check via ``RecipeValidator.ensure_valid``
    """

    pass


class CacheUnavailableError(CookbookExtractorError):
    """The recipe cache cannot be read or written.

    Raised when:
    - The cache directory cannot be created or accessed
    - A stored entry is corrupted
    """

    pass


class SerializationError(CookbookExtractorError):
    """A cache payload cannot be encoded or decoded.

    Raised when:
    - A YAML document is not a mapping
    - A payload array is not valid JSON
    - Decoded data does not match the recipe model
    """

    pass
