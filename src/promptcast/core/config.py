"""Process-wide settings for model selection and retry behaviour."""

from __future__ import annotations

import os
import typing

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import PreconditionError

ENV_PREFIX = "PROMPTCAST_"

_ENVIRONMENT_FIELDS = {
    "MODEL": "model",
    "HIGH_CAPABILITY_MODEL": "high_capability_model",
    "MAX_ATTEMPTS": "max_attempts",
    "INITIAL_DELAY": "initial_delay",
    "TIMEOUT": "timeout",
}


class PromptSettings(BaseModel):
    """Immutable configuration shared by every parser call.

    The OpenAI credential is not part of the settings; the SDK reads
    ``OPENAI_API_KEY`` itself when the first request is made.
    """

    model_config = ConfigDict(frozen=True)

    model: str = Field(default="gpt-4o-mini", min_length=1)
    high_capability_model: str = Field(default="gpt-4o", min_length=1)
    temperature: float = Field(default=0.0, ge=0.0, le=2.0)
    max_attempts: int = Field(default=10, ge=1)
    initial_delay: float = Field(default=0.5, ge=0.0)
    timeout: float = Field(default=60.0, gt=0.0)

    def select_model(self, *, high_capability_model: bool = False) -> str:
        """Return the model name for the requested capability tier."""
        return self.high_capability_model if high_capability_model else self.model

    @classmethod
    def from_environment(cls, env: typing.Mapping[str, str] | None = None) -> PromptSettings:
        """Build settings from ``PROMPTCAST_*`` variables in *env* (default: ``os.environ``)."""
        environment = os.environ if env is None else env
        overrides: dict[str, str] = {}
        for suffix, field_name in _ENVIRONMENT_FIELDS.items():
            raw_value = environment.get(f"{ENV_PREFIX}{suffix}")
            if raw_value is not None and raw_value.strip():
                overrides[field_name] = raw_value.strip()
        try:
            return cls.model_validate(overrides)
        except ValidationError as error:
            message = f"Invalid {ENV_PREFIX}* configuration: {error}"
            raise PreconditionError(message) from error


__all__ = ["ENV_PREFIX", "PromptSettings"]
