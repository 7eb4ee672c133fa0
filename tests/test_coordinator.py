"""Tests for formstate.coordinator: per-field writes and the form aggregate."""

import logging
import random

import pytest

from formstate.config import FormConfig
from formstate.coordinator import FieldValidity, FormValidity, ValidityCoordinator
from formstate.form import Form
from formstate.store import Store


@pytest.fixture
def coordinator() -> ValidityCoordinator:
    return ValidityCoordinator()


def _flags(is_valid: bool, is_dirty: bool = False, show_error: bool = False) -> FieldValidity:
    return FieldValidity(is_valid=is_valid, is_dirty=is_dirty, show_error=show_error)


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


class TestRegisterForm:
    def test_starts_invalid_and_clean(self, coordinator: ValidityCoordinator) -> None:
        coordinator.register_form("f1")
        entry = coordinator.get("f1")
        assert entry == FormValidity()
        assert entry.is_valid is False
        assert entry.is_dirty is False
        assert dict(entry.fields) == {}

    def test_reregistering_resets(self, coordinator: ValidityCoordinator) -> None:
        coordinator.register_form("f1")
        coordinator.register_field("f1", "a", _flags(True), is_dirty=True)
        coordinator.register_form("f1")
        assert coordinator.get("f1") == FormValidity()

    def test_injected_store_is_used(self) -> None:
        store = Store({})
        coordinator = ValidityCoordinator(store)
        coordinator.register_form("f1")
        assert "f1" in store.get()

    def test_unknown_form_is_none(self, coordinator: ValidityCoordinator) -> None:
        assert coordinator.get("missing") is None


class TestRegisterField:
    def test_single_invalid_field(self, coordinator: ValidityCoordinator) -> None:
        coordinator.register_form("f1")
        entry = coordinator.register_field("f1", "username", _flags(False))
        assert entry.fields["username"].is_valid is False
        assert entry.is_valid is False

    def test_all_valid(self, coordinator: ValidityCoordinator) -> None:
        coordinator.register_form("f1")
        coordinator.register_field("f1", "a", _flags(True))
        entry = coordinator.register_field("f1", "b", _flags(True))
        assert entry.is_valid is True

    def test_overwrite_entry(self, coordinator: ValidityCoordinator) -> None:
        coordinator.register_form("f1")
        coordinator.register_field("f1", "a", _flags(False))
        entry = coordinator.register_field("f1", "a", _flags(True, True, False))
        assert entry.fields["a"] == _flags(True, True, False)
        assert entry.is_valid is True

    def test_dirty_left_alone_by_default(self, coordinator: ValidityCoordinator) -> None:
        coordinator.register_form("f1")
        coordinator.register_field("f1", "a", _flags(True), is_dirty=True)
        entry = coordinator.register_field("f1", "b", _flags(True))
        assert entry.is_dirty is True

    def test_dirty_can_be_overwritten(self, coordinator: ValidityCoordinator) -> None:
        coordinator.register_form("f1")
        coordinator.register_field("f1", "a", _flags(True), is_dirty=True)
        entry = coordinator.register_field("f1", "a", _flags(True), is_dirty=False)
        assert entry.is_dirty is False

    def test_other_forms_untouched(self, coordinator: ValidityCoordinator) -> None:
        coordinator.register_form("f1")
        coordinator.register_form("f2")
        coordinator.register_field("f1", "a", _flags(True))
        assert coordinator.get("f2") == FormValidity()

    def test_unregistered_form_created_with_warning(
        self, coordinator: ValidityCoordinator, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="formstate.coordinator"):
            entry = coordinator.register_field("ghost", "a", _flags(True))
        assert entry.is_valid is True
        assert "ghost" in caplog.text

    def test_snapshots_are_not_mutated(self, coordinator: ValidityCoordinator) -> None:
        coordinator.register_form("f1")
        before = coordinator.snapshot()
        coordinator.register_field("f1", "a", _flags(True))
        assert dict(before["f1"].fields) == {}

    def test_subscribers_notified(self, coordinator: ValidityCoordinator) -> None:
        seen: list[object] = []
        coordinator.subscribe(seen.append)
        coordinator.register_form("f1")
        coordinator.register_field("f1", "a", _flags(False))
        assert len(seen) == 3
        assert seen[-1]["f1"].fields["a"].is_valid is False


class TestAggregateInvariant:
    def test_random_sequences(self, coordinator: ValidityCoordinator) -> None:
        rng = random.Random(1234)
        coordinator.register_form("f1")
        field_ids = [f"field{i}" for i in range(6)]
        for _ in range(300):
            field_id = rng.choice(field_ids)
            entry = coordinator.register_field("f1", field_id, _flags(rng.random() < 0.7))
            assert entry.is_valid == all(f.is_valid for f in entry.fields.values())
            assert coordinator.get("f1") == entry


# ---------------------------------------------------------------------------
# Bulk recompute
# ---------------------------------------------------------------------------


class TestRecomputeFormValidity:
    def test_revalidates_current_values(self, coordinator: ValidityCoordinator) -> None:
        form = Form(
            "f1",
            {
                "username": {"value": "ab", "validation": {"minLength": 3}},
                "email": {"value": "a@b.com", "validation": {"email": True}},
            },
            coordinator=coordinator,
        )
        entry = coordinator.recompute_form_validity(form)
        assert entry.fields["username"].is_valid is False
        assert entry.fields["email"].is_valid is True
        assert entry.is_valid is False

        form.set_value("username", "alice")
        entry = coordinator.recompute_form_validity(form)
        assert entry.is_valid is True

    def test_keeps_dirty_and_show_error(self, coordinator: ValidityCoordinator) -> None:
        form = Form("f1", {"a": {"value": "abc", "validation": {"length": 3}}}, coordinator=coordinator)
        coordinator.register_field("f1", "a", _flags(False, True, True), is_dirty=True)
        entry = coordinator.recompute_form_validity(form)
        assert entry.fields["a"] == _flags(True, True, True)
        assert entry.is_dirty is True

    def test_group_field_valid_when_all_rows_pass(self, coordinator: ValidityCoordinator) -> None:
        form = Form("f1", coordinator=coordinator)
        form.append_group("rows", [{"name": {"value": "abc", "validation": {"minLength": 2}}}])
        assert coordinator.recompute_form_validity(form).fields["rows"].is_valid is True

        form.append_group("rows", [{"name": {"value": "a", "validation": {"minLength": 2}}}])
        entry = coordinator.recompute_form_validity(form)
        assert entry.fields["rows"].is_valid is False
        assert entry.is_valid is False

    def test_prunes_removed_fields(self, coordinator: ValidityCoordinator) -> None:
        form = Form("f1", {"a": {"value": "x"}, "b": {"value": "y"}}, coordinator=coordinator)
        coordinator.register_field("f1", "b", _flags(False))
        form.remove_field("b")
        entry = coordinator.recompute_form_validity(form)
        assert "b" not in entry.fields
        assert entry.is_valid is True

    def test_sub_field_entries_survive(self, coordinator: ValidityCoordinator) -> None:
        form = Form("f1", coordinator=coordinator)
        form.append_group("rows", [{"name": {"value": "x"}}])
        coordinator.register_field("f1", "name", _flags(True))
        entry = coordinator.recompute_form_validity(form)
        assert "name" in entry.fields

    def test_sub_field_entries_revalidated(self, coordinator: ValidityCoordinator) -> None:
        form = Form("f1", coordinator=coordinator)
        form.append_group("rows", [{"code": {"value": "", "validation": {"length": 2}}}])
        coordinator.register_field("f1", "code", _flags(False, is_dirty=True, show_error=True))

        sub = form["rows"].groups[0][0]
        assert form.replace(sub, sub.with_value("ab")) is True
        entry = coordinator.recompute_form_validity(form)
        assert entry.fields["code"] == _flags(True, is_dirty=True, show_error=True)
        assert entry.fields["rows"].is_valid is True
        assert entry.is_valid is True

    def test_sub_field_entry_fails_if_any_row_fails(self, coordinator: ValidityCoordinator) -> None:
        form = Form("f1", coordinator=coordinator)
        form.append_group("rows", [{"code": {"value": "ab", "validation": {"length": 2}}}])
        form.append_group("rows", [{"code": {"value": "abc", "validation": {"length": 2}}}])
        coordinator.register_field("f1", "code", _flags(True))
        entry = coordinator.recompute_form_validity(form)
        assert entry.fields["code"].is_valid is False
        assert entry.is_valid is False

    def test_pruning_can_be_disabled(self) -> None:
        coordinator = ValidityCoordinator(config=FormConfig(prune_stale_fields=False))
        form = Form("f1", {"a": {"value": "x"}}, coordinator=coordinator)
        coordinator.register_field("f1", "gone", _flags(False))
        entry = coordinator.recompute_form_validity(form)
        assert "gone" in entry.fields
        assert entry.is_valid is False
