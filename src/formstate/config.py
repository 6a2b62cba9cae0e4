"""
Form configuration.

FormConfig carries the switches that decide how strictly submitted data is
treated. A process-wide default is kept here so that applications can set it
once at startup; every FormFactory may also be given its own instance.

STRICTNESS SWITCHES:
- ignore_missing_fields: view keys without a matching object field are skipped
  instead of raising FieldNotFoundError
- throw_on_missing_fields: an expected field absent from a valid postback
  raises MissingFieldError instead of leaving the field's validity unknown
- throw_on_invalid_postback: an unknown instance token raises
  InvalidPostBackError instead of silently re-rendering the form
"""

from dataclasses import dataclass, replace
from typing import Any


@dataclass(frozen=True)
class FormConfig:
    """Immutable switches for one form factory."""
    ignore_missing_fields: bool = False
    throw_on_missing_fields: bool = False
    throw_on_invalid_postback: bool = False
    instance_field_name: str = "instance"
    object_field_name: str = "object"

    def with_overrides(self, **overrides: Any) -> 'FormConfig':
        """Return a copy with the given fields replaced."""
        return replace(self, **overrides)


_default_config: FormConfig = FormConfig()


def set_default_config(config: FormConfig) -> None:
    """Set the process-wide default config.

    Called once at application startup, before any factory is built.
    Factories created earlier keep the config they were given.
    """
    global _default_config
    _default_config = config


def get_default_config() -> FormConfig:
    """Get the process-wide default config."""
    return _default_config


def reset_default_config() -> None:
    """Restore the built-in defaults. For testing."""
    set_default_config(FormConfig())
