"""Configuration management for cookbook_extractor.

The whole pipeline is driven by a single immutable ``ExtractionConfig`` that
is passed explicitly into every component. Values come from:

1. Keyword overrides (``with_overrides``)
2. Environment variables (COOKBOOK_EXTRACTOR_*)
3. Project config file (.cookbook-extractor.toml)
4. User config file (~/.config/cookbook-extractor/config.toml)
5. Default values

Example:
    >>> config = ExtractionConfig.load()
    >>> strict = config.with_overrides(validation_max_retries=0)
"""

from __future__ import annotations

import dataclasses
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .exceptions import ConfigurationError

DEFAULT_SECTION_KEYWORDS: tuple[str, ...] = (
    "ingredients",
    "instructions",
    "directions",
    "preparation",
    "method",
    "recipe",
    "steps",
    "cook",
    "bake",
)

# A trailing "*" marks a prefix match.
DEFAULT_TRACKING_PARAMETERS: tuple[str, ...] = (
    "utm_*",
    "fbclid",
    "gclid",
    "dclid",
    "msclkid",
    "twclid",
    "ref",
    "source",
)

ENV_PREFIX = "COOKBOOK_EXTRACTOR_"
CONFIG_SECTION = "cookbook-extractor"

# Annotations are strings under postponed evaluation
SCALAR_TYPES: dict[str, type] = {"str": str, "int": int, "float": float, "bool": bool}
TRUE_VALUES = ("true", "yes", "1", "on")
FALSE_VALUES = ("false", "no", "0", "off")


@dataclass(frozen=True)
class ExtractionConfig:
    """Configuration for the recipe extraction pipeline.

    Attributes:
        Model Settings:
            model: OpenAI model used for extraction
            request_timeout: Per-request timeout in seconds
            api_retry_attempts: Transport attempts per extraction call
            initial_retry_delay: First backoff delay for transport retries

        Cleaning Settings:
            cleanup_enabled: Master switch for HTML reduction
            structured_data_enabled: Try JSON-LD recipe blocks first
            min_completeness: Minimum JSON-LD completeness score (0-100)
            section_based_enabled: Try the best scoring recipe section
            min_section_confidence: Minimum section score (0-100)
            section_text_threshold: Text length that earns the size bonus
            section_keywords: Keywords counted by the section scorer
            content_filter_enabled: Try boilerplate removal on the body
            min_output_size: Minimum size of a usable cleaned fragment

        Retry Settings:
            adaptive_cleaning_enabled: Escalate cleaning on low-yield results
            confidence_threshold: Confidence needed to try the next strategy
            validation_max_retries: Feedback retries after failed validation

        Output Settings:
            schema_version: Schema version stamped on every recipe
            cache_dir: Directory for the file cache (None keeps it in memory)
            tracking_parameters: Query parameters dropped before hashing
    """

    # Model settings
    model: str = "gpt-5-mini"
    request_timeout: float = 60.0
    api_retry_attempts: int = 3
    initial_retry_delay: float = 1.0

    # Cleaning settings
    cleanup_enabled: bool = True
    structured_data_enabled: bool = True
    min_completeness: int = 70
    section_based_enabled: bool = True
    min_section_confidence: int = 70
    section_text_threshold: int = 1000
    section_keywords: tuple[str, ...] = DEFAULT_SECTION_KEYWORDS
    content_filter_enabled: bool = True
    min_output_size: int = 100

    # Retry settings
    adaptive_cleaning_enabled: bool = True
    confidence_threshold: float = 0.5
    validation_max_retries: int = 1

    # Output settings
    schema_version: str = "1.0.0"
    cache_dir: Path | None = None
    tracking_parameters: tuple[str, ...] = field(default=DEFAULT_TRACKING_PARAMETERS)

    def __post_init__(self) -> None:
        """Normalize collection types and validate values."""
        # TOML and env values arrive as lists or strings
        for name in ("section_keywords", "tracking_parameters"):
            value = getattr(self, name)
            if isinstance(value, str):
                value = value.split(",")
            object.__setattr__(
                self, name, tuple(str(v).strip().lower() for v in value if str(v).strip())
            )
        if self.cache_dir is not None and not isinstance(self.cache_dir, Path):
            object.__setattr__(self, "cache_dir", Path(self.cache_dir).expanduser())
        self._validate()

    def _validate(self) -> None:
        """Validate configuration values.

        Raises:
            ConfigurationError: If any configuration value is invalid
        """
        self._check_types()

        if not self.model.strip():
            raise ConfigurationError("model must not be empty", model=self.model)

        if self.request_timeout <= 0:
            raise ConfigurationError(
                "request_timeout must be positive",
                request_timeout=self.request_timeout,
            )

        if self.api_retry_attempts < 1:
            raise ConfigurationError(
                "api_retry_attempts must be at least 1",
                api_retry_attempts=self.api_retry_attempts,
            )

        if self.initial_retry_delay <= 0:
            raise ConfigurationError(
                "initial_retry_delay must be positive",
                initial_retry_delay=self.initial_retry_delay,
            )

        for name in ("min_completeness", "min_section_confidence"):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                raise ConfigurationError(f"{name} must be between 0 and 100", **{name: value})

        if self.section_text_threshold < 0:
            raise ConfigurationError(
                "section_text_threshold must be non-negative",
                section_text_threshold=self.section_text_threshold,
            )

        if self.min_output_size < 0:
            raise ConfigurationError(
                "min_output_size must be non-negative",
                min_output_size=self.min_output_size,
            )

        if not 0.0 <= self.confidence_threshold <= 1.0:
            raise ConfigurationError(
                "confidence_threshold must be between 0.0 and 1.0",
                confidence_threshold=self.confidence_threshold,
            )

        if self.validation_max_retries < 0:
            raise ConfigurationError(
                "validation_max_retries must be non-negative",
                validation_max_retries=self.validation_max_retries,
            )

        if not self.schema_version.strip():
            raise ConfigurationError("schema_version must not be empty")

    @classmethod
    def load(
        cls,
        config_path: str | Path | None = None,
        load_user_config: bool = True,
        load_env: bool = True,
    ) -> ExtractionConfig:
        """Load configuration from file(s) and environment variables.

        Args:
            config_path: Path to project config file (optional)
            load_user_config: Whether to load the user config file
            load_env: Whether to load environment variables

        Returns:
            Loaded and validated configuration

        Raises:
            ConfigurationError: If configuration is invalid
        """
        config_dict: dict[str, Any] = {}

        if load_user_config:
            user_config_path = Path.home() / ".config" / "cookbook-extractor" / "config.toml"
            if user_config_path.exists():
                config_dict.update(cls._load_toml(user_config_path))

        if config_path:
            project_path = Path(config_path)
            if not project_path.exists():
                raise ConfigurationError("Config file not found", path=str(project_path))
            config_dict.update(cls._load_toml(project_path))
        else:
            default_path = Path(".cookbook-extractor.toml")
            if default_path.exists():
                config_dict.update(cls._load_toml(default_path))

        if load_env:
            config_dict.update(cls._load_env())

        cls._check_keys(config_dict)
        return cls(**config_dict)

    @staticmethod
    def _load_toml(path: Path) -> dict[str, Any]:
        """Load configuration from a TOML file.

        A ``[cookbook-extractor]`` table is used when present, otherwise the
        top level of the document.

        Raises:
            ConfigurationError: If the TOML file is invalid
        """
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigurationError(
                f"Failed to load configuration from {path}",
                path=str(path),
                error=str(e),
            ) from e

        if CONFIG_SECTION in data:
            return dict(data[CONFIG_SECTION])
        return data

    def _check_types(self) -> None:
        for f in dataclasses.fields(self):
            expected = SCALAR_TYPES.get(str(f.type))
            if expected is None:
                continue
            value = getattr(self, f.name)
            # bool is an int subclass; an int is fine where a float is expected
            if expected is not bool and isinstance(value, bool):
                ok = False
            elif expected is float:
                ok = isinstance(value, int | float)
            else:
                ok = isinstance(value, expected)
            if not ok:
                raise ConfigurationError(
                    f"{f.name} must be of type {f.type}",
                    **{f.name: value},
                )

    @staticmethod
    def _convert_env(name: str, value: str, type_name: str) -> Any:
        """Convert an environment string to the type of the target field."""
        expected = SCALAR_TYPES.get(type_name)
        if expected is bool:
            if value.lower() in TRUE_VALUES:
                return True
            if value.lower() in FALSE_VALUES:
                return False
            raise ConfigurationError(f"{name} must be a boolean", **{name: value})
        if expected in (int, float):
            try:
                return expected(value)
            except ValueError as e:
                raise ConfigurationError(
                    f"{name} must be of type {type_name}", **{name: value}
                ) from e
        # str, tuple and path fields are normalized in __post_init__
        return value

    @classmethod
    def _load_env(cls) -> dict[str, Any]:
        """Load configuration from COOKBOOK_EXTRACTOR_* environment variables.

        For example:
        - COOKBOOK_EXTRACTOR_MODEL=gpt-5-nano
        - COOKBOOK_EXTRACTOR_VALIDATION_MAX_RETRIES=2
        - COOKBOOK_EXTRACTOR_SECTION_KEYWORDS=ingredients,method
        """
        field_types = {f.name: str(f.type) for f in dataclasses.fields(cls)}
        config: dict[str, Any] = {}

        for key, value in os.environ.items():
            if not key.startswith(ENV_PREFIX):
                continue

            config_key = key[len(ENV_PREFIX) :].lower()
            # Unknown keys are kept as text and rejected by _check_keys
            type_name = field_types.get(config_key, "str")
            config[config_key] = cls._convert_env(config_key, value, type_name)

        return config

    @classmethod
    def _check_keys(cls, values: dict[str, Any]) -> None:
        valid_keys = {f.name for f in dataclasses.fields(cls)}
        for key in values:
            if key not in valid_keys:
                raise ConfigurationError(
                    f"Unknown configuration key: {key}",
                    key=key,
                    valid_keys=", ".join(sorted(valid_keys)),
                )

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a plain dictionary.

        Paths become strings and tuples become lists, so the result can be
        dumped as TOML or JSON.
        """
        result: dict[str, Any] = {}
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Path):
                value = str(value)
            elif isinstance(value, tuple):
                value = list(value)
            result[f.name] = value
        return result

    def with_overrides(self, **kwargs: Any) -> ExtractionConfig:
        """Return a copy with the given values replaced.

        Raises:
            ConfigurationError: If a key is unknown or a value is invalid

        Example:
            >>> config = ExtractionConfig().with_overrides(cleanup_enabled=False)
        """
        self._check_keys(kwargs)
        return dataclasses.replace(self, **kwargs)
