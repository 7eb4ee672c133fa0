"""Form model: a named collection of fields and repeatable field groups.

``Form.fields`` is the only record of what the form contains. Fields are
looked up through it (``form["username"]``, ``form.get("username")``);
nothing is mirrored onto attributes.

Example::

    coordinator = ValidityCoordinator()
    form = Form("signup", {
        "username": {"value": "", "validation": {"minLength": 3}},
        "email": {"value": "", "validation": {"email": True}},
    }, coordinator=coordinator)

    form.append_group("phones", [{"number": {"value": "555-0100"}}])
    form.get_value()
    # {"username": "", "email": "", "phones": [{"number": "555-0100"}]}

Structural changes (add/remove) only touch the form. The coordinator's
entry changes on the next validity write (a binding, ``component_validation``
or ``update_form_validity``).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from formstate.coordinator import FormValidity, ValidityCoordinator
from formstate.fields import (
    Field,
    GroupField,
    group_value,
    is_group_spec,
    make_field,
    make_group_field,
    make_row,
    make_rows,
    split_spec,
)

logger = logging.getLogger("formstate.form")

type FieldSpec = Mapping[str, Mapping[str, Any]]


@dataclass(frozen=True, slots=True)
class FieldPath:
    """Where a field sits in a form.

    ``position`` is empty for a top-level field. For a sub-field it indexes
    into the group set's ``groups``: ``(row, column)``, or
    ``(entry, row, column)`` inside a nested entry.
    """

    field_id: str
    position: tuple[int, ...] = ()


class GroupRemoval(Enum):
    """Outcome of ``Form.remove_group``."""

    REMOVED_ROW = "removed_row"
    REMOVED_GROUP_SET = "removed_group_set"
    INVALID_GROUP_SET = "invalid_group_set"
    INDEX_OUT_OF_RANGE = "index_out_of_range"

    def __bool__(self) -> bool:
        return self in (GroupRemoval.REMOVED_ROW, GroupRemoval.REMOVED_GROUP_SET)


class Form:
    """A form instance owning its fields.

    Constructing a form registers (or resets) its entry with *coordinator*.

    Args:
        form_id: Unique id for the form.
        fields: ``{field_id: attrs}``. Attrs with a ``groups`` key build a
            ``GroupField``; anything else builds a plain ``Field``.
        coordinator: Where validity for this form is recorded.
    """

    __slots__ = ("coordinator", "fields", "form_id")

    def __init__(
        self,
        form_id: str,
        fields: Mapping[str, Mapping[str, Any]] | None = None,
        *,
        coordinator: ValidityCoordinator,
    ) -> None:
        self.form_id = form_id
        self.coordinator = coordinator
        self.fields: dict[str, Field | GroupField] = {}
        coordinator.register_form(form_id)
        for field_id, attrs in (fields or {}).items():
            self._put_new(field_id, attrs or {})

    def __repr__(self) -> str:
        return f"Form({self.form_id!r}, fields={list(self.fields)!r})"

    # -- lookup ---------------------------------------------------------------

    def __getitem__(self, field_id: str) -> Field | GroupField:
        return self.fields[field_id]

    def __contains__(self, field_id: object) -> bool:
        return field_id in self.fields

    def __iter__(self) -> Iterator[str]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def get(self, field_id: str, default: Any = None) -> Field | GroupField | Any:
        return self.fields.get(field_id, default)

    @property
    def validity(self) -> FormValidity | None:
        """This form's current entry in the coordinator's snapshot."""
        return self.coordinator.get(self.form_id)

    def get_value(self) -> dict[str, Any]:
        """Current values keyed by field id.

        A group field yields a list with one ``{sub_id: value}`` dict per row.
        """
        values: dict[str, Any] = {}
        for field_id, fld in self.fields.items():
            if isinstance(fld, GroupField):
                values[field_id] = group_value(fld)
            else:
                values[field_id] = fld.value
        return values

    # -- structure ------------------------------------------------------------

    def _put_new(self, field_id: str, attrs: Mapping[str, Any]) -> None:
        if is_group_spec(attrs):
            self.fields[field_id] = make_group_field(field_id, self.form_id, attrs)
        else:
            self.fields[field_id] = make_field(field_id, self.form_id, attrs)

    def add_field(self, spec: FieldSpec) -> None:
        """Add one field from a single-key ``{field_id: attrs}`` spec.

        If *attrs* carries ``groups`` and a group field with that id exists,
        the new rows are appended together as one nested entry rather than
        row by row.
        """
        split = split_spec(spec)
        if split is None:
            return
        field_id, attrs = split
        existing = self.fields.get(field_id)
        if is_group_spec(attrs) and isinstance(existing, GroupField):
            nested = make_rows(self.form_id, attrs["groups"])
            self.fields[field_id] = existing.with_groups((*existing.groups, nested))
            return
        self._put_new(field_id, attrs)

    def add_fields(self, specs: Iterable[FieldSpec]) -> None:
        for spec in specs:
            self.add_field(spec)

    def append_group(self, group_set: str, row_spec: Sequence[FieldSpec]) -> GroupField:
        """Append one row to *group_set*, creating the group field if needed."""
        existing = self.fields.get(group_set)
        if not isinstance(existing, GroupField):
            existing = GroupField(field_id=group_set, form=self.form_id)
        updated = existing.with_groups((*existing.groups, make_row(self.form_id, row_spec)))
        self.fields[group_set] = updated
        return updated

    def remove_field(self, field_id: str) -> bool:
        """Remove *field_id*. Returns False (silently) if it was absent."""
        return self.fields.pop(field_id, None) is not None

    def remove_fields(self, field_ids: Iterable[str]) -> None:
        for field_id in field_ids:
            self.remove_field(field_id)

    def remove_group(self, group_set: str, index: int | None = None) -> GroupRemoval:
        """Remove row *index* from *group_set*, or the whole set.

        A falsy *index* removes the entire group set. That includes ``0``:
        the first row cannot be removed on its own.
        """
        existing = self.fields.get(group_set)
        if not index:
            if existing is None:
                logger.error("No group set '%s' in form '%s'", group_set, self.form_id)
                return GroupRemoval.INVALID_GROUP_SET
            del self.fields[group_set]
            return GroupRemoval.REMOVED_GROUP_SET

        if not isinstance(existing, GroupField):
            logger.error("'%s' is not a group set in form '%s'", group_set, self.form_id)
            return GroupRemoval.INVALID_GROUP_SET
        if not isinstance(index, int) or not 0 <= index < len(existing.groups):
            logger.error(
                "Invalid index %r for group set '%s' (%d rows)",
                index,
                group_set,
                len(existing.groups),
            )
            return GroupRemoval.INDEX_OUT_OF_RANGE

        groups = existing.groups[:index] + existing.groups[index + 1 :]
        self.fields[group_set] = existing.with_groups(groups)
        return GroupRemoval.REMOVED_ROW

    # -- values ---------------------------------------------------------------

    def set_value(self, field_id: str, value: Any) -> bool:
        """Replace a plain field's value without validating it.

        Follow programmatic changes with ``update_form_validity(form)``.
        """
        fld = self.fields.get(field_id)
        if not isinstance(fld, Field):
            logger.warning("Cannot set value of '%s' in form '%s'", field_id, self.form_id)
            return False
        self.fields[field_id] = fld.with_value(value)
        return True

    def set_values(self, values: Mapping[str, Any]) -> None:
        """Apply ``set_value`` for every key, e.g. from parsed request data."""
        for field_id, value in values.items():
            self.set_value(field_id, value)

    def locate(self, fld: Field) -> FieldPath | None:
        """Find where *fld* sits in this form.

        The exact object is searched for first, at the top level and in every
        group row. Failing that, a top-level plain field with the same id
        matches. Sub-fields are only found by identity since their ids repeat
        across rows.
        """
        top = self.fields.get(fld.field_id)
        if top is fld:
            return FieldPath(fld.field_id)
        for group_set, entry in self.fields.items():
            if isinstance(entry, GroupField):
                position = _position_in(entry.groups, fld)
                if position is not None:
                    return FieldPath(group_set, position)
        if isinstance(top, Field):
            return FieldPath(fld.field_id)
        return None

    def field_at(self, path: FieldPath) -> Field | None:
        """The field currently at *path*, or None if nothing is there."""
        entry = self.fields.get(path.field_id)
        if not path.position:
            return entry if isinstance(entry, Field) else None
        if not isinstance(entry, GroupField):
            return None
        node: Any = entry.groups
        for index in path.position:
            if isinstance(node, Field) or not 0 <= index < len(node):
                return None
            node = node[index]
        return node if isinstance(node, Field) else None

    def put(self, path: FieldPath, new: Field) -> bool:
        """Write *new* at *path*.

        Returns False when *path* no longer holds a field with ``new``'s id,
        e.g. after the field or its row was removed.
        """
        current = self.field_at(path)
        if current is None or current.field_id != new.field_id:
            return False
        if not path.position:
            self.fields[path.field_id] = new
            return True
        group_field = self.fields[path.field_id]
        groups = _put_at(group_field.groups, path.position, new)
        self.fields[path.field_id] = group_field.with_groups(groups)
        return True

    def replace(self, old: Field, new: Field) -> bool:
        """Swap *old* for *new*, wherever ``locate(old)`` finds it."""
        path = self.locate(old)
        return path is not None and self.put(path, new)


def _position_in(entries: tuple[Any, ...], fld: Field) -> tuple[int, ...] | None:
    for index, entry in enumerate(entries):
        if entry is fld:
            return (index,)
        if isinstance(entry, tuple):
            inner = _position_in(entry, fld)
            if inner is not None:
                return (index, *inner)
    return None


def _put_at(entries: tuple[Any, ...], position: tuple[int, ...], new: Field) -> tuple[Any, ...]:
    index, rest = position[0], position[1:]
    item = _put_at(entries[index], rest, new) if rest else new
    return (*entries[:index], item, *entries[index + 1 :])
