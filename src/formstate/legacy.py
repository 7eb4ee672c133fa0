"""Submit-time bulk validation, kept for older callers.

Deprecated: use ``validation()`` / ``update_form_validity()`` instead. The
function only logs what failed; it returns nothing.
"""

import logging
import warnings
from collections.abc import Mapping
from typing import Any

from formstate.rules import RuleSet, check_rule

logger = logging.getLogger("formstate.legacy")


def validate(obj: Mapping[str, Mapping[str, Any]], rules: Mapping[str, RuleSet]) -> None:
    """Check ``obj[field]["value"]`` against ``rules[field]`` and log failures.

    Args:
        obj: ``{field_id: {"value": ...}}``.
        rules: ``{field_id: {"minLength": 3, ...}}``.
    """
    warnings.warn(
        "formstate.legacy.validate() is deprecated; bind fields with validation() instead",
        DeprecationWarning,
        stacklevel=2,
    )
    errors: dict[str, list[str]] = {}
    for field_id, field_rules in rules.items():
        if field_id not in obj:
            logger.warning("No '%s' in form", field_id)
            continue
        value = obj[field_id].get("value")
        for rule, param in field_rules.items():
            if not check_rule(value, rule, param):
                errors.setdefault(field_id, []).append(rule)

    if errors:
        logger.error("Validation errors: %s", errors)
