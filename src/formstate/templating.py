"""kida template filters for validity snapshots.

Register them once on your environment and pass the coordinator's snapshot
into the template context::

    env = Environment(loader=FileSystemLoader("templates"))
    register_filters(env)
    template.render({"validity": coordinator.snapshot()})

In the template::

    <input name="username" class="{{ validity | error_class("signup", "username") }}">
    <button {{ "" if validity | form_valid("signup") else "disabled" }}>Save</button>

Every filter tolerates a missing snapshot, form or field.
"""

from collections.abc import Mapping
from typing import Any

from kida import Environment

from formstate.coordinator import FieldValidity, FormValidity


def _form(snapshot: Any, form_id: str) -> FormValidity | None:
    if not isinstance(snapshot, Mapping):
        return None
    entry = snapshot.get(form_id)
    return entry if isinstance(entry, FormValidity) else None


def field_validity(snapshot: Any, form_id: str, field_id: str) -> FieldValidity | None:
    """The recorded flags for one field, or None."""
    entry = _form(snapshot, form_id)
    if entry is None:
        return None
    return entry.fields.get(field_id)


def form_valid(snapshot: Any, form_id: str) -> bool:
    entry = _form(snapshot, form_id)
    return entry is not None and entry.is_valid


def show_error(snapshot: Any, form_id: str, field_id: str) -> bool:
    flags = field_validity(snapshot, form_id, field_id)
    return flags is not None and flags.show_error


def error_class(snapshot: Any, form_id: str, field_id: str, cls: str = "is-invalid") -> str:
    """*cls* when the field should show its error, else an empty string."""
    return cls if show_error(snapshot, form_id, field_id) else ""


FILTERS = {
    "field_validity": field_validity,
    "form_valid": form_valid,
    "show_error": show_error,
    "error_class": error_class,
}


def register_filters(env: Environment) -> Environment:
    """Add the formstate filters to *env* and return it."""
    env.update_filters(FILTERS)
    return env
