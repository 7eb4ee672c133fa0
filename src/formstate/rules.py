"""Rule engine: evaluate structural rules against a single value.

A rule set is a plain mapping from rule name to parameter::

    {"minLength": 3, "maxLength": 20}
    {"email": True}

Every value is coerced to ``str`` before a length rule is applied. The rule
set is fixed: ``email``, ``minLength``, ``maxLength`` and ``length``
(``min_length``/``max_length`` are accepted as aliases).

Unknown rules never block validity. They are logged and reported on the
returned ``RuleCheck`` so a caller can escalate::

    check = check_rule("abc", "notEmpty", None)
    assert check  # fail-open
    assert check.error is RuleErrorKind.UNKNOWN_RULE
"""

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from formstate.errors import UnknownRuleError

logger = logging.getLogger("formstate.rules")

type RuleSet = Mapping[str, Any]


class RuleErrorKind(Enum):
    """Why a rule check could not be applied as written."""

    UNKNOWN_RULE = "unknown_rule"


@dataclass(frozen=True, slots=True)
class RuleCheck:
    """Outcome of one rule against one value. Truthy when it passed."""

    rule: str
    passed: bool
    error: RuleErrorKind | None = None

    def __bool__(self) -> bool:
        return self.passed


@dataclass(frozen=True, slots=True)
class FieldCheck:
    """Outcome of a whole rule set against one value.

    ``failed`` lists the rules that rejected the value, in rule-set order.
    ``unknown`` lists rule names the engine skipped.
    """

    failed: tuple[str, ...] = ()
    unknown: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.failed

    def __bool__(self) -> bool:
        return self.is_valid

    def raise_for_unknown(self) -> None:
        """Raise ``UnknownRuleError`` for the first unknown rule, if any."""
        if self.unknown:
            raise UnknownRuleError(self.unknown[0])


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------

# local-part @ (bracketed IPv4 | labels + alphabetic TLD)
_EMAIL_RE = re.compile(
    r"(([^<>()\[\]\\.,;:\s@\"]+(\.[^<>()\[\]\\.,;:\s@\"]+)*)|(\".+\"))"
    r"@((\[[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\])"
    r"|(([a-zA-Z\-0-9]+\.)+[a-zA-Z]{2,}))"
)


def _email(value: Any, _param: Any) -> bool:
    if not value or not isinstance(value, str):
        return False
    return _EMAIL_RE.fullmatch(value) is not None


def _min_length(value: Any, param: Any) -> bool:
    return bool(value) and len(str(value)) >= param


def _max_length(value: Any, param: Any) -> bool:
    # Falsy values measure as empty, so they always fit.
    text = str(value) if value else ""
    return len(text) <= param


def _length(value: Any, param: Any) -> bool:
    return bool(value) and len(str(value)) == param


_CHECKS = {
    "email": _email,
    "minLength": _min_length,
    "maxLength": _max_length,
    "length": _length,
}

_ALIASES = {
    "min_length": "minLength",
    "max_length": "maxLength",
}


def known_rules() -> frozenset[str]:
    """Rule names accepted by ``check_rule``, aliases included."""
    return frozenset(_CHECKS) | frozenset(_ALIASES)


def check_rule(value: Any, rule: str, param: Any = None, *, strict: bool = False) -> RuleCheck:
    """Evaluate one rule against *value*.

    Unknown rules are logged at error level and pass. With ``strict=True``
    they raise ``UnknownRuleError`` instead.
    """
    check = _CHECKS.get(_ALIASES.get(rule, rule))
    if check is None:
        if strict:
            raise UnknownRuleError(rule)
        logger.error("Unknown validator type '%s'", rule)
        return RuleCheck(rule=rule, passed=True, error=RuleErrorKind.UNKNOWN_RULE)
    return RuleCheck(rule=rule, passed=check(value, param))


def validate_field(value: Any, rules: RuleSet | None, *, strict: bool = False) -> bool:
    """True iff every rule in *rules* passes. Stops at the first failure.

    An empty (or missing) rule set is always valid.
    """
    if not rules:
        return True
    for rule, param in rules.items():
        if not check_rule(value, rule, param, strict=strict):
            return False
    return True


def evaluate(value: Any, rules: RuleSet | None, *, strict: bool = False) -> FieldCheck:
    """Run every rule in *rules* and report which failed or were unknown.

    Unlike ``validate_field`` this does not short-circuit, so the result
    lists every failing rule.
    """
    failed: list[str] = []
    unknown: list[str] = []
    for rule, param in (rules or {}).items():
        result = check_rule(value, rule, param, strict=strict)
        if result.error is RuleErrorKind.UNKNOWN_RULE:
            unknown.append(rule)
        elif not result:
            failed.append(rule)
    return FieldCheck(failed=tuple(failed), unknown=tuple(unknown))
