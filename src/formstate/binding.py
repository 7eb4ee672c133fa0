"""Field binding: connect a value source to the rule engine and coordinator.

``validation()`` checks the field once, then re-checks on every change the
source reports::

    source = InputSource("ab")
    binding = validation(source, form["username"], form)
    source.set("alice")          # field re-validated, store updated
    binding.destroy()            # no further updates from this binding

``component_validation()`` is the stateless variant for callers that
re-render on every change and track dirtiness themselves.

Each check produces a new immutable ``Field``. It is written back into the
form at the spot it came from (``Form.put``) and its flags are sent to the
coordinator.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from formstate.coordinator import FieldValidity, FormValidity
from formstate.fields import Field
from formstate.form import FieldPath, Form
from formstate.rules import validate_field

logger = logging.getLogger("formstate.binding")

type ChangeCallback = Callable[[Any], None]


@runtime_checkable
class ValueSource(Protocol):
    """Anything that reports value changes to attached callbacks.

    Callbacks receive the value current at the time of the change.
    """

    def attach(self, callback: ChangeCallback) -> None: ...

    def detach(self, callback: ChangeCallback) -> None: ...


class InputSource:
    """In-memory value source, e.g. one input of a submitted form.

    ``set()`` stores the value and notifies attached callbacks synchronously.
    """

    __slots__ = ("_callbacks", "value")

    def __init__(self, value: Any = None) -> None:
        self.value = value
        self._callbacks: list[ChangeCallback] = []

    def attach(self, callback: ChangeCallback) -> None:
        self._callbacks.append(callback)

    def detach(self, callback: ChangeCallback) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def set(self, value: Any) -> None:
        self.value = value
        for callback in list(self._callbacks):
            callback(value)

    @property
    def attached(self) -> int:
        return len(self._callbacks)


def _commit(form: Form, path: FieldPath | None, new: Field, *, is_dirty: bool | None) -> FormValidity:
    if path is None or not form.put(path, new):
        logger.warning("Field '%s' is no longer part of form '%s'", new.field_id, form.form_id)
    return form.coordinator.register_field(
        new.form,
        new.field_id,
        FieldValidity.of(new),
        is_dirty=is_dirty,
    )


class Binding:
    """A live connection between a value source and one field.

    The binding remembers where its field sits in the form. Each change
    starts from the field currently at that spot, so values written with
    ``Form.set_value`` in between are picked up. ``field`` is the most
    recent version the binding produced.
    """

    __slots__ = ("_destroyed", "field", "form", "path", "source")

    def __init__(self, source: ValueSource, field: Field, form: Form) -> None:
        self.source = source
        self.form = form
        self.path = form.locate(field)
        self._destroyed = False
        strict = form.coordinator.config.strict_rules
        is_valid = validate_field(field.value, field.validation, strict=strict)
        self.field = field.with_validity(is_valid=is_valid, is_dirty=False, show_error=False)
        _commit(form, self.path, self.field, is_dirty=None)
        source.attach(self._on_change)

    def _current(self) -> Field:
        if self.path is not None:
            current = self.form.field_at(self.path)
            if current is not None and current.field_id == self.field.field_id:
                return current
        return self.field

    def _on_change(self, value: Any) -> None:
        if self._destroyed:
            return
        current = self._current()
        strict = self.form.coordinator.config.strict_rules
        is_valid = validate_field(value, current.validation, strict=strict)
        self.field = current.with_value(value).with_validity(
            is_valid=is_valid,
            is_dirty=True,
            show_error=not is_valid,
        )
        _commit(self.form, self.path, self.field, is_dirty=True)

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def destroy(self) -> None:
        """Detach from the source. Later calls do nothing."""
        if self._destroyed:
            return
        self._destroyed = True
        self.source.detach(self._on_change)


def validation(source: ValueSource, field: Field, form: Form) -> Binding:
    """Validate *field* now and on every change reported by *source*.

    Call ``destroy()`` on the returned binding when its UI element goes away.
    """
    return Binding(source, field, form)


def component_validation(field: Field, form: Form, *, path: FieldPath | None = None) -> Field:
    """Re-validate *field* as it stands and record the result.

    *field* may carry a new value or dirty flag; it is written back to the
    top-level field with the same id. A changed sub-field cannot be found by
    id, so pass its *path* (``form.locate(original)``).

    ``field.is_dirty`` must already reflect whether the user changed the
    value; the form-level dirty flag is set to it. Returns the new field.
    """
    strict = form.coordinator.config.strict_rules
    is_valid = validate_field(field.value, field.validation, strict=strict)
    checked = field.with_validity(
        is_valid=is_valid,
        is_dirty=field.is_dirty,
        show_error=field.is_dirty and not is_valid,
    )
    _commit(form, path or form.locate(field), checked, is_dirty=field.is_dirty)
    return checked


def update_form_validity(form: Form) -> FormValidity:
    """Re-check every field of *form* after programmatic value changes."""
    return form.coordinator.recompute_form_validity(form)
