"""
Allocation engine.

Entries are plain dicts shaped like the JSON the browser form sends:
{"id": ..., "projectId": "...", "percentage": "40"}. Percentages travel as
strings and are coerced leniently, so half-typed input never raises.
"""
import logging
import math
import re
import uuid
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from weekly_tracker.utils.dates import get_utc_now, week_key_for

logger = logging.getLogger(__name__)

TOTAL_EXCEEDED_MESSAGE = "Total percentage exceeds 100%"
DUPLICATE_PROJECTS_MESSAGE = "Duplicate projects are not allowed"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

Entry = Dict[str, Any]


def parse_percentage(value: Any) -> int:
    """Leading integer of value, or 0 when there is none."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return 0
        return int(value)
    match = _LEADING_INT.match(str(value))
    if not match:
        return 0
    return int(match.group(1))


def calculate_total(entries: Iterable[Entry]) -> int:
    return sum(parse_percentage(entry.get("percentage")) for entry in entries)


def has_duplicate_projects(entries: Iterable[Entry]) -> bool:
    # Entries without a project can coexist
    project_ids = [entry.get("projectId") for entry in entries if entry.get("projectId")]
    return len(set(project_ids)) != len(project_ids)


def validate_entries(entries: List[Entry]) -> str:
    """
    Return an error message for the first violated rule, or "" when valid.
    The total is checked before duplicates.
    """
    if calculate_total(entries) > 100:
        return TOTAL_EXCEEDED_MESSAGE
    if has_duplicate_projects(entries):
        return DUPLICATE_PROJECTS_MESSAGE
    return ""


def redistribute_percentages(
    entries: List[Entry],
    changed_id: Any,
    manually_edited_ids: Iterable[Any],
) -> List[Entry]:
    """
    Spread whatever the manual entries leave of 100% over the other entries.

    Manual entries are the one just changed plus every id in
    manually_edited_ids; they keep their values. The rest get an equal
    integer share, and the truncation remainder goes to the last of them in
    list order, so their sum is exactly max(0, 100 - manual sum).

    Returns a new list; the input entries are not modified.
    """
    manual_ids = set(manually_edited_ids)
    if changed_id is not None:
        manual_ids.add(changed_id)

    def is_manual(entry: Entry) -> bool:
        return entry.get("id") in manual_ids

    manual_sum = sum(parse_percentage(e.get("percentage")) for e in entries if is_manual(e))
    non_manual_positions = [i for i, e in enumerate(entries) if not is_manual(e)]

    if not non_manual_positions:
        return list(entries)

    remaining = max(0, 100 - manual_sum)
    count = len(non_manual_positions)
    equal_share = remaining // count
    remainder = remaining - equal_share * count
    last_position = non_manual_positions[-1]

    updated = []
    for i, entry in enumerate(entries):
        if is_manual(entry):
            updated.append(entry)
            continue
        share = equal_share + remainder if i == last_position else equal_share
        updated.append({**entry, "percentage": str(share)})
    return updated


class AllocationForm:
    """
    Editing state for one week's allocation.

    Each edit event is a method call; percentages the user types are
    remembered as manual and every other row is rebalanced around them.
    """

    def __init__(self, week_key: str, entries: Optional[List[Entry]] = None):
        self.week_key = week_key
        self.entries: List[Entry] = [dict(e) for e in entries or []]
        self.manually_edited_ids = set()

    @classmethod
    def for_week(cls, day: Optional[date] = None) -> "AllocationForm":
        if day is None:
            day = get_utc_now().date()
        return cls(week_key_for(day))

    def load(self, entries: List[Entry]) -> None:
        self.entries = [dict(e) for e in entries]
        self.manually_edited_ids.clear()

    def _find(self, entry_id: Any) -> Entry:
        for entry in self.entries:
            if entry.get("id") == entry_id:
                return entry
        raise KeyError(entry_id)

    def add_entry(self, project_id: str = "") -> Entry:
        entry = {"id": uuid.uuid4().hex, "projectId": project_id, "percentage": "0"}
        self.entries.append(entry)
        self.entries = redistribute_percentages(self.entries, None, self.manually_edited_ids)
        return self._find(entry["id"])

    def remove_entry(self, entry_id: Any) -> None:
        self.entries = [e for e in self.entries if e.get("id") != entry_id]
        self.manually_edited_ids.discard(entry_id)

    def set_project(self, entry_id: Any, project_id: str) -> None:
        self._find(entry_id)["projectId"] = project_id

    def set_percentage(self, entry_id: Any, value: Any) -> None:
        self._find(entry_id)["percentage"] = str(value)
        self.manually_edited_ids.add(entry_id)
        self.entries = redistribute_percentages(self.entries, entry_id, self.manually_edited_ids)
        logger.debug(f"Rebalanced {self.week_key} after editing {entry_id}: total={self.total}")

    @property
    def total(self) -> int:
        return calculate_total(self.entries)

    @property
    def error(self) -> str:
        return validate_entries(self.entries)

    @property
    def is_valid(self) -> bool:
        return not self.error

    def to_payload(self) -> Dict[str, Any]:
        return {"weekKey": self.week_key, "entries": [dict(e) for e in self.entries]}
