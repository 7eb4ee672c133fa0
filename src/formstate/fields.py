"""Field values: immutable plain fields and repeatable group fields.

A ``Field`` never changes in place. Validation and value changes return a
new instance; the owning ``Form`` swaps it in and the coordinator records
its validity::

    field = Field("username", form="signup", value="ab", validation={"minLength": 3})
    checked = field.with_validity(is_valid=False, is_dirty=True, show_error=True)

A ``GroupField`` holds rows of sub-fields. Each row is a tuple of ``Field``;
sub-field ids are unique within a row only.

Specs are the plain mappings callers pass to ``Form``::

    {"value": "ab", "validation": {"minLength": 3}, "validation_message": "Too short"}
    {"value": "ab", "validationMessage": "Too short", "isDirty": True}
    {"groups": [[{"name": {"value": "x"}}, {"qty": {"value": 1}}]]}
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

from formstate.rules import RuleSet

logger = logging.getLogger("formstate.fields")

_EMPTY_RULES: Mapping[str, Any] = MappingProxyType({})


@dataclass(frozen=True, slots=True)
class Field:
    """A single validated value with its rules and derived flags.

    ``is_valid`` is ``None`` until the field has been checked once.
    """

    field_id: str
    form: str
    value: Any = None
    validation: RuleSet = field(default=_EMPTY_RULES)
    validation_message: str | None = None
    is_valid: bool | None = None
    is_dirty: bool = False
    show_error: bool = False

    def with_value(self, value: Any) -> Field:
        return replace(self, value=value)

    def with_validity(self, *, is_valid: bool, is_dirty: bool, show_error: bool) -> Field:
        return replace(self, is_valid=is_valid, is_dirty=is_dirty, show_error=show_error)


type Group = tuple[Field, ...]


@dataclass(frozen=True, slots=True)
class GroupField:
    """A repeatable block of sub-fields.

    ``groups`` is normally a tuple of rows. ``Form.add_field`` on an existing
    group set appends a tuple of rows as a single entry, so an entry may
    also be a tuple of rows.
    """

    field_id: str
    form: str
    groups: tuple[Any, ...] = ()

    def rows(self) -> Iterator[Group]:
        """Yield every row, descending into nested entries."""
        for entry in self.groups:
            if _is_nested(entry):
                yield from entry
            else:
                yield entry

    def with_groups(self, groups: tuple[Any, ...]) -> GroupField:
        return replace(self, groups=groups)


def _is_nested(entry: tuple[Any, ...]) -> bool:
    return bool(entry) and isinstance(entry[0], tuple)


def row_value(row: Group) -> dict[str, Any]:
    """Map each sub-field id in *row* to its value."""
    return {sub.field_id: sub.value for sub in row}


def group_value(group_field: GroupField) -> list[Any]:
    """Ordered list of row dicts; a nested entry becomes a nested list."""
    values: list[Any] = []
    for entry in group_field.groups:
        if _is_nested(entry):
            values.append([row_value(row) for row in entry])
        else:
            values.append(row_value(entry))
    return values


# ---------------------------------------------------------------------------
# Building from specs
# ---------------------------------------------------------------------------


# camelCase spellings of the attribute keys
_ATTR_ALIASES = {
    "validation_message": "validationMessage",
    "is_valid": "isValid",
    "is_dirty": "isDirty",
    "show_error": "showError",
}


def _attr(attrs: Mapping[str, Any], name: str, default: Any = None) -> Any:
    if name in attrs:
        return attrs[name]
    return attrs.get(_ATTR_ALIASES.get(name, name), default)


def split_spec(spec: Mapping[str, Any]) -> tuple[str, Mapping[str, Any]] | None:
    """Unpack a single-key ``{field_id: attrs}`` mapping.

    An empty mapping is logged and yields None.
    """
    if not spec:
        logger.error("Empty field spec; expected {field_id: attrs}")
        return None
    field_id = next(iter(spec))
    return field_id, spec[field_id] or {}


def make_field(field_id: str, form_id: str, attrs: Mapping[str, Any]) -> Field:
    """Build a ``Field`` from *attrs*, stamped with its id and form."""
    return Field(
        field_id=field_id,
        form=form_id,
        value=attrs.get("value"),
        validation=attrs.get("validation") or _EMPTY_RULES,
        validation_message=_attr(attrs, "validation_message"),
        is_valid=_attr(attrs, "is_valid"),
        is_dirty=bool(_attr(attrs, "is_dirty", False)),
        show_error=bool(_attr(attrs, "show_error", False)),
    )


def make_row(form_id: str, row_spec: Sequence[Mapping[str, Any]]) -> Group:
    """Build one group row from a sequence of single-key specs.

    Empty sub-field specs are skipped.
    """
    subs = [split for split in map(split_spec, row_spec) if split is not None]
    return tuple(make_field(field_id, form_id, attrs) for field_id, attrs in subs)


def make_rows(form_id: str, groups_spec: Sequence[Sequence[Mapping[str, Any]]]) -> tuple[Group, ...]:
    return tuple(make_row(form_id, row) for row in groups_spec)


def make_group_field(field_id: str, form_id: str, attrs: Mapping[str, Any]) -> GroupField:
    return GroupField(field_id=field_id, form=form_id, groups=make_rows(form_id, attrs["groups"]))


def is_group_spec(attrs: Mapping[str, Any]) -> bool:
    return "groups" in attrs
