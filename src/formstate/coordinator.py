"""Validity store coordinator.

Keeps one ``FormValidity`` per form id in an observable ``Store`` and makes
sure the form-level ``is_valid`` is always the AND of its per-field flags.
Every write is a single transform on the store, so subscribers only ever
see consistent snapshots.

Example::

    coordinator = ValidityCoordinator()
    coordinator.register_form("signup")
    coordinator.register_field("signup", "username", FieldValidity(False, False, False))
    coordinator.get("signup").is_valid   # False

The coordinator owns no global state. Create one per application (or per
test) and hand it to every ``Form``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING

from formstate.config import FormConfig
from formstate.fields import Field, GroupField
from formstate.rules import validate_field
from formstate.store import Store

if TYPE_CHECKING:
    from formstate.form import Form

logger = logging.getLogger("formstate.coordinator")


@dataclass(frozen=True, slots=True)
class FieldValidity:
    """Per-field flags as recorded in the store."""

    is_valid: bool
    is_dirty: bool = False
    show_error: bool = False

    @classmethod
    def of(cls, fld: Field) -> FieldValidity:
        return cls(is_valid=bool(fld.is_valid), is_dirty=fld.is_dirty, show_error=fld.show_error)


@dataclass(frozen=True, slots=True)
class FormValidity:
    """Aggregated validity of one form."""

    fields: Mapping[str, FieldValidity] = field(default_factory=lambda: MappingProxyType({}))
    is_valid: bool = False
    is_dirty: bool = False


type Snapshot = Mapping[str, FormValidity]


def _aggregate(fields: Mapping[str, FieldValidity]) -> bool:
    return all(entry.is_valid for entry in fields.values())


def _freeze(fields: dict[str, FieldValidity]) -> Mapping[str, FieldValidity]:
    return MappingProxyType(fields)


class ValidityCoordinator:
    """Read-modify-write access to the process's validity snapshot.

    Args:
        store: Observable container to write to. A fresh one holding an
            empty snapshot is created when omitted.
        config: Behaviour switches shared with forms and bindings.
    """

    __slots__ = ("config", "store")

    def __init__(self, store: Store[Snapshot] | None = None, *, config: FormConfig | None = None) -> None:
        self.store: Store[Snapshot] = store if store is not None else Store(MappingProxyType({}))
        self.config = config or FormConfig()

    # -- reading --------------------------------------------------------------

    def snapshot(self) -> Snapshot:
        return self.store.get()

    def get(self, form_id: str) -> FormValidity | None:
        return self.store.get().get(form_id)

    def subscribe(self, listener: Callable[[Snapshot], None]) -> Callable[[], None]:
        """Listen for snapshot changes. Returns the unsubscribe function."""
        return self.store.subscribe(listener)

    # -- writing --------------------------------------------------------------

    def _write(self, form_id: str, change: Callable[[FormValidity], FormValidity]) -> FormValidity:
        def transform(snapshot: Snapshot) -> Snapshot:
            current = snapshot.get(form_id)
            if current is None:
                logger.warning("Form '%s' was not registered; creating its entry", form_id)
                current = FormValidity()
            return MappingProxyType({**snapshot, form_id: change(current)})

        return self.store.update(transform)[form_id]

    def register_form(self, form_id: str) -> None:
        """Create (or reset) the entry for *form_id*."""
        self.store.update(lambda snapshot: MappingProxyType({**snapshot, form_id: FormValidity()}))

    def register_field(
        self,
        form_id: str,
        field_id: str,
        validity: FieldValidity,
        *,
        is_dirty: bool | None = None,
    ) -> FormValidity:
        """Write one field's flags and recompute the form aggregate.

        When *is_dirty* is given the form-level dirty flag is set to it.
        """

        def change(current: FormValidity) -> FormValidity:
            fields = _freeze({**current.fields, field_id: validity})
            return FormValidity(
                fields=fields,
                is_valid=_aggregate(fields),
                is_dirty=current.is_dirty if is_dirty is None else is_dirty,
            )

        return self._write(form_id, change)

    def recompute_form_validity(self, form: Form) -> FormValidity:
        """Re-validate every field of *form* against its current value.

        Used after values were changed programmatically. Each field keeps
        its dirty and show-error flags. A group field is valid when every
        sub-field in every row passes its rules. An entry recorded under a
        sub-field id is valid when that sub-field passes in every row that
        has it.
        """
        strict = self.config.strict_rules
        checked: dict[str, bool] = {}
        sub_checked: dict[str, bool] = {}
        for field_id, fld in form.fields.items():
            if isinstance(fld, GroupField):
                group_valid = True
                for row in fld.rows():
                    for sub in row:
                        sub_valid = validate_field(sub.value, sub.validation, strict=strict)
                        sub_checked[sub.field_id] = sub_checked.get(sub.field_id, True) and sub_valid
                        group_valid = group_valid and sub_valid
                checked[field_id] = group_valid
            else:
                checked[field_id] = validate_field(fld.value, fld.validation, strict=strict)

        prune = self.config.prune_stale_fields

        def change(current: FormValidity) -> FormValidity:
            fields: dict[str, FieldValidity] = {}
            for field_id, entry in current.fields.items():
                if field_id in checked:
                    fields[field_id] = replace(entry, is_valid=checked[field_id])
                elif field_id in sub_checked:
                    fields[field_id] = replace(entry, is_valid=sub_checked[field_id])
                elif not prune:
                    fields[field_id] = entry
            for field_id, is_valid in checked.items():
                fields.setdefault(field_id, FieldValidity(is_valid=is_valid))
            return replace(current, fields=_freeze(fields), is_valid=_aggregate(fields))

        return self._write(form.form_id, change)
