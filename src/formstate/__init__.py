"""formstate: reactive form state and field validation.

Tracks named fields grouped under forms, validates each field when its value
changes, and keeps per-form validity in an observable store.

Basic usage::

    from formstate import Form, InputSource, ValidityCoordinator, validation

    coordinator = ValidityCoordinator()
    form = Form("signup", {
        "username": {"value": "ab", "validation": {"minLength": 3}},
    }, coordinator=coordinator)

    source = InputSource("ab")
    binding = validation(source, form["username"], form)
    coordinator.get("signup").is_valid   # False
    source.set("alice")
    coordinator.get("signup").is_valid   # True
    binding.destroy()

Template filters for kida live in ``formstate.templating``.
"""

from formstate.binding import (
    Binding,
    InputSource,
    ValueSource,
    component_validation,
    update_form_validity,
    validation,
)
from formstate.config import FormConfig
from formstate.coordinator import FieldValidity, FormValidity, ValidityCoordinator
from formstate.errors import FormStateError, UnknownRuleError
from formstate.fields import Field, GroupField
from formstate.form import FieldPath, Form, GroupRemoval
from formstate.legacy import validate
from formstate.rules import (
    FieldCheck,
    RuleCheck,
    RuleErrorKind,
    check_rule,
    evaluate,
    validate_field,
)
from formstate.store import Store

__version__ = "0.1.0"
__all__ = [
    "Binding",
    "Field",
    "FieldCheck",
    "FieldPath",
    "FieldValidity",
    "Form",
    "FormConfig",
    "FormStateError",
    "FormValidity",
    "GroupField",
    "GroupRemoval",
    "InputSource",
    "RuleCheck",
    "RuleErrorKind",
    "Store",
    "UnknownRuleError",
    "ValidityCoordinator",
    "ValueSource",
    "check_rule",
    "component_validation",
    "evaluate",
    "update_form_validity",
    "validate",
    "validate_field",
    "validation",
]
