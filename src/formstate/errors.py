"""formstate exception hierarchy.

Nothing in the validation core raises on its own: unknown rules fail open
and bad group references are logged. These types exist for callers that
choose to escalate (``FormConfig(strict_rules=True)`` or
``FieldCheck.raise_for_unknown()``).
"""

from dataclasses import dataclass


class FormStateError(Exception):
    """Base for all formstate-specific errors."""


@dataclass(frozen=True, slots=True)
class UnknownRuleError(FormStateError):
    """A rule set named a rule the engine does not know."""

    rule: str

    def __str__(self) -> str:
        return f"Unknown validator type '{self.rule}'"
