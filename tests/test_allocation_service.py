from datetime import date

import pytest

from conftest import make_entries
from weekly_tracker.services.allocation_service import (
    DUPLICATE_PROJECTS_MESSAGE,
    TOTAL_EXCEEDED_MESSAGE,
    AllocationForm,
    calculate_total,
    has_duplicate_projects,
    parse_percentage,
    redistribute_percentages,
    validate_entries,
)


def percentages(entries):
    return [e["percentage"] for e in entries]


@pytest.mark.parametrize("value,expected", [
    ("40", 40),
    (" 12", 12),
    ("3.7", 3),
    ("40abc", 40),
    ("x", 0),
    ("", 0),
    (None, 0),
    (25, 25),
    (7.9, 7),
    (float("nan"), 0),
])
def test_parse_percentage(value, expected):
    assert parse_percentage(value) == expected


def test_calculate_total_treats_non_numeric_as_zero():
    assert calculate_total([{"percentage": "40"}, {"percentage": "x"}]) == 40
    assert calculate_total([{"percentage": "40"}, {}]) == 40
    assert calculate_total([]) == 0


def test_has_duplicate_projects():
    assert has_duplicate_projects([{"projectId": "A"}, {"projectId": "A"}]) is True
    assert has_duplicate_projects([{"projectId": "A"}, {"projectId": "B"}]) is False


def test_empty_projects_can_coexist():
    assert has_duplicate_projects([{"projectId": ""}, {"projectId": ""}]) is False
    assert has_duplicate_projects([{"projectId": ""}, {}, {"projectId": "A"}]) is False


def test_validate_entries_valid():
    assert validate_entries(make_entries(("A", "60"), ("B", "40"))) == ""


def test_validate_entries_total_exceeded():
    assert validate_entries(make_entries(("A", "60"), ("B", "41"))) == TOTAL_EXCEEDED_MESSAGE


def test_validate_entries_duplicates():
    assert validate_entries(make_entries(("A", "50"), ("A", "50"))) == DUPLICATE_PROJECTS_MESSAGE


def test_validate_entries_total_checked_before_duplicates():
    entries = make_entries(("A", "70"), ("A", "70"))
    assert validate_entries(entries) == TOTAL_EXCEEDED_MESSAGE


def test_redistribute_single_non_manual_gets_remaining():
    entries = make_entries(("A", "30"), ("B", "0"))
    result = redistribute_percentages(entries, 1, set())
    assert percentages(result) == ["30", "70"]


def test_redistribute_clamps_at_zero():
    entries = make_entries(("A", "80"), ("B", "40"), ("C", "10"))
    result = redistribute_percentages(entries, 2, {1})
    assert percentages(result) == ["80", "40", "0"]


def test_redistribute_remainder_goes_to_last_non_manual():
    # remaining = 10 over three entries -> 3, 3, 4
    entries = make_entries(("A", "90"), ("B", "0"), ("C", "0"), ("D", "0"))
    result = redistribute_percentages(entries, 1, set())
    assert percentages(result) == ["90", "3", "3", "4"]


def test_redistribute_last_non_manual_in_list_order():
    entries = make_entries(("A", "0"), ("B", "0"), ("C", "20"))
    result = redistribute_percentages(entries, 3, set())
    # 80 split over A and B; C is manual and sits last
    assert percentages(result) == ["40", "40", "20"]

    entries = make_entries(("A", "0"), ("B", "0"), ("C", "0"), ("D", "1"))
    result = redistribute_percentages(entries, 4, set())
    assert percentages(result) == ["33", "33", "33", "1"]

    entries = make_entries(("A", "0"), ("B", "0"), ("C", "0"), ("D", "2"))
    result = redistribute_percentages(entries, 4, set())
    assert percentages(result) == ["32", "32", "34", "2"]


@pytest.mark.parametrize("manual_value", range(0, 101, 7))
@pytest.mark.parametrize("count", [2, 3, 4, 6, 7])
def test_redistributed_group_sums_to_remaining(manual_value, count):
    entries = make_entries(("M", str(manual_value)), *[(f"P{i}", "0") for i in range(count)])
    result = redistribute_percentages(entries, 1, set())
    assert calculate_total(result[1:]) == 100 - manual_value
    shares = [int(p) for p in percentages(result[1:])]
    assert max(shares) - min(shares) < count


def test_redistribute_never_touches_manual_entries():
    entries = make_entries(("A", "25"), ("B", "abc"), ("C", "0"), ("D", "0"))
    result = redistribute_percentages(entries, 1, {2})
    assert result[0] is entries[0]
    assert result[1] is entries[1]
    assert percentages(result[2:]) == ["37", "38"]


def test_redistribute_all_manual_returns_entries_unchanged():
    entries = make_entries(("A", "10"), ("B", "20"))
    result = redistribute_percentages(entries, 1, {2})
    assert result == entries


def test_redistribute_preserves_fields_and_order():
    entries = [
        {"id": "x", "projectId": "P1", "percentage": "50", "note": "keep"},
        {"id": "y", "projectId": "", "percentage": "7"},
        {"id": "z", "projectId": "P3", "percentage": "9"},
    ]
    result = redistribute_percentages(entries, "x", [])
    assert [e["id"] for e in result] == ["x", "y", "z"]
    assert result[1] == {"id": "y", "projectId": "", "percentage": "25"}
    assert result[2]["projectId"] == "P3"
    assert entries[1]["percentage"] == "7"


def test_redistribute_is_idempotent():
    entries = make_entries(("A", "45"), ("B", "10"), ("C", "0"), ("D", "0"))
    once = redistribute_percentages(entries, 1, {2})
    twice = redistribute_percentages(once, 1, {2})
    assert once == twice


def test_form_for_week_uses_monday_key():
    form = AllocationForm.for_week(date(2025, 1, 8))
    assert form.week_key == "1/6/2025 - 1/12/2025"
    assert form.entries == []


def test_form_add_entries_splits_evenly():
    form = AllocationForm("1/6/2025 - 1/12/2025")
    form.add_entry("A")
    assert percentages(form.entries) == ["100"]
    form.add_entry("B")
    form.add_entry("C")
    assert percentages(form.entries) == ["33", "33", "34"]
    assert form.total == 100
    assert form.is_valid


def test_form_set_percentage_rebalances_others():
    form = AllocationForm("w")
    a = form.add_entry("A")
    b = form.add_entry("B")
    c = form.add_entry("C")

    form.set_percentage(a["id"], 50)
    assert percentages(form.entries) == ["50", "25", "25"]

    form.set_percentage(b["id"], "30")
    assert percentages(form.entries) == ["50", "30", "20"]
    assert form.manually_edited_ids == {a["id"], b["id"]}

    form.remove_entry(b["id"])
    assert b["id"] not in form.manually_edited_ids
    assert [e["id"] for e in form.entries] == [a["id"], c["id"]]


def test_form_reports_validation_errors():
    form = AllocationForm("w")
    a = form.add_entry("A")
    b = form.add_entry("B")
    form.set_percentage(a["id"], 70)
    form.set_percentage(b["id"], 40)
    assert form.total == 110
    assert form.error == TOTAL_EXCEEDED_MESSAGE

    form.set_percentage(b["id"], 30)
    form.set_project(b["id"], "A")
    assert form.error == DUPLICATE_PROJECTS_MESSAGE
    assert not form.is_valid


def test_form_load_resets_manual_edits():
    form = AllocationForm("w")
    a = form.add_entry("A")
    form.set_percentage(a["id"], 10)
    form.load(make_entries(("X", "60"), ("Y", "40")))
    assert form.manually_edited_ids == set()
    assert form.to_payload() == {
        "weekKey": "w",
        "entries": make_entries(("X", "60"), ("Y", "40")),
    }


def test_form_unknown_entry_raises_key_error():
    form = AllocationForm("w")
    with pytest.raises(KeyError):
        form.set_percentage("missing", 10)
