"""
Inventory status state machine.

Every ordered pair of statuses is either an edge of STATUS_TRANSITIONS, a
self-loop, or rejected with InvalidTransitionError.  Also covers the
description trail written for a status change with a reason, and the
edit-lock / delete-block status sets.
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from jewelry_kernel.domain.status import (
    DELETE_BLOCKED_STATUSES,
    EDIT_LOCKED_STATUSES,
    INITIAL_STATUS,
    STATUS_TRANSITIONS,
    InventoryStatus,
    allowed_targets,
    apply_transition,
    can_transition,
    is_delete_blocked,
    is_edit_locked,
    transition_table,
)
from jewelry_kernel.exceptions import InvalidTransitionError

statuses = st.sampled_from(list(InventoryStatus))

EXPECTED_EDGES = {
    ("available", "reserved"),
    ("available", "sold"),
    ("available", "workshop"),
    ("available", "transferred"),
    ("available", "damaged"),
    ("reserved", "available"),
    ("reserved", "sold"),
    ("sold", "returned"),
    ("workshop", "available"),
    ("workshop", "damaged"),
    ("transferred", "available"),
    ("damaged", "available"),
    ("damaged", "returned"),
    ("returned", "available"),
    ("returned", "damaged"),
}


class TestTransitionGraph:

    def test_every_status_has_an_entry(self):
        assert set(STATUS_TRANSITIONS) == set(InventoryStatus)

    def test_edges_match_lifecycle(self):
        edges = {
            (source.value, target.value)
            for source, targets in STATUS_TRANSITIONS.items()
            for target in targets
        }
        assert edges == EXPECTED_EDGES

    def test_initial_status_is_available(self):
        assert INITIAL_STATUS is InventoryStatus.AVAILABLE

    def test_sold_only_reaches_returned(self):
        assert allowed_targets("sold") == frozenset({InventoryStatus.RETURNED})

    def test_transition_table_is_serializable(self):
        table = transition_table()
        assert table["reserved"] == ["available", "sold"]
        assert table["sold"] == ["returned"]

    @given(current=statuses, requested=statuses)
    def test_closure(self, current, requested):
        """A pair is accepted iff it is a self-loop or a listed edge."""
        legal = current == requested or (current.value, requested.value) in EXPECTED_EDGES
        assert can_transition(current, requested) is legal
        if legal:
            change = apply_transition(current, requested)
            assert change.to_status == requested
        else:
            with pytest.raises(InvalidTransitionError) as exc_info:
                apply_transition(current, requested)
            assert exc_info.value.from_status == current.value
            assert exc_info.value.to_status == requested.value
            assert exc_info.value.code == "invalid_transition"

    @given(status=statuses)
    def test_self_loop_always_allowed(self, status):
        change = apply_transition(status, status, "Platinum band", "no-op")
        assert change.is_noop
        assert change.description == "Platinum band"

    def test_raw_strings_accepted(self):
        change = apply_transition("available", "reserved")
        assert change.from_status is InventoryStatus.AVAILABLE
        assert change.to_status is InventoryStatus.RESERVED

    def test_unknown_status_rejected(self):
        with pytest.raises(ValueError):
            can_transition("available", "lost")


class TestDescriptionTrail:

    def test_reason_appended_on_new_line(self):
        change = apply_transition("available", "sold", "18K band", "Sold to walk-in")
        assert change.description == "18K band\navailable -> sold: Sold to walk-in"

    def test_reason_becomes_description_when_empty(self):
        change = apply_transition("available", "workshop", None, "Resize to 6.5")
        assert change.description == "available -> workshop: Resize to 6.5"

    def test_no_reason_leaves_description(self):
        change = apply_transition("available", "sold", "18K band")
        assert change.description == "18K band"

    def test_blank_reason_ignored(self):
        change = apply_transition("available", "sold", "18K band", "   ")
        assert change.description == "18K band"

    def test_reason_is_trimmed(self):
        change = apply_transition("reserved", "available", None, "  deposit refunded ")
        assert change.description == "reserved -> available: deposit refunded"

    def test_messages(self):
        assert apply_transition("available", "sold").message == (
            "Item status changed from 'available' to 'sold'"
        )
        assert apply_transition("sold", "sold").message == "Item status unchanged ('sold')"


class TestStatusGates:

    @pytest.mark.parametrize("status", ["sold", "transferred"])
    def test_edit_locked(self, status):
        assert is_edit_locked(status)

    @pytest.mark.parametrize("status", ["available", "reserved", "workshop", "damaged", "returned"])
    def test_editable(self, status):
        assert not is_edit_locked(status)

    @pytest.mark.parametrize("status", ["sold", "reserved", "workshop", "transferred"])
    def test_delete_blocked(self, status):
        assert is_delete_blocked(status)

    @pytest.mark.parametrize("status", ["available", "damaged", "returned"])
    def test_deletable(self, status):
        assert not is_delete_blocked(status)

    def test_edit_lock_is_subset_of_delete_block(self):
        assert EDIT_LOCKED_STATUSES <= DELETE_BLOCKED_STATUSES
