"""formstate configuration.

FormConfig is a frozen dataclass, immutable after creation. It is handed to
a ``ValidityCoordinator``; forms and bindings read it from there.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class FormConfig:
    """Coordinator configuration. Immutable after creation.

    Override what you need::

        config = FormConfig(strict_rules=True)
        coordinator = ValidityCoordinator(config=config)
    """

    # Raise UnknownRuleError instead of treating unknown rules as passing
    strict_rules: bool = False

    # Drop per-field entries for removed fields during a bulk recompute
    prune_stale_fields: bool = True
