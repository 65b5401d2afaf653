"""
Tests for the pure task, project and priority rules
"""
from datetime import datetime

import pytest

from app.domain.errors import (
    DuplicateProjectNameError,
    InvalidPriorityError,
    InvalidProjectNameError,
    InvalidRecurrenceError,
    InvalidSubtaskDeadlineError,
    InvalidTitleError,
    MaxAssigneesReachedError,
    MinAssigneesError,
    UnauthorizedError,
    ValidationError,
)
from app.domain.priority import PriorityBucket
from app.domain.project_rules import normalize_description, normalize_project_name, validate_project_priority
from app.domain.task_rules import (
    can_add_assignee,
    can_remove_assignee,
    next_recurrence_dates,
    normalize_title,
    resolve_recurring_update,
    validate_assignee_count,
    validate_recurrence,
    validate_subtask_deadline,
)


class TestPriorityBucket:
    @pytest.mark.parametrize("level,label", [(1, "Low"), (3, "Low"), (4, "Medium"), (6, "Medium"),
                                             (7, "High"), (8, "High"), (9, "Critical"), (10, "Critical")])
    def test_labels(self, level, label):
        assert PriorityBucket(level).label == label

    @pytest.mark.parametrize("level", [0, 11, -1, True, 5.0, "5", None])
    def test_rejects_invalid_levels(self, level):
        with pytest.raises(InvalidPriorityError):
            PriorityBucket(level)

    def test_colors(self):
        assert PriorityBucket(2).color == "#6B7280"
        assert PriorityBucket(5).color == "#2563EB"
        assert PriorityBucket(8).color == "#EA580C"
        assert PriorityBucket(10).color == "#DC2626"

    def test_high_medium_low_checks_overlap_at_seven(self):
        seven = PriorityBucket(7)
        assert seven.is_medium()
        assert not seven.is_high()
        assert seven.label == "High"
        assert PriorityBucket(8).is_high()
        assert PriorityBucket(3).is_low()

    def test_ordering_and_equality(self):
        assert PriorityBucket(3) < PriorityBucket(8)
        assert PriorityBucket(9) >= PriorityBucket(9)
        assert PriorityBucket(4) == PriorityBucket(4)
        assert len({PriorityBucket(4), PriorityBucket(4)}) == 1

    def test_all_priorities(self):
        levels = [p.level for p in PriorityBucket.all_priorities()]
        assert levels == list(range(1, 11))

    def test_to_dict(self):
        info = PriorityBucket(10).to_dict()
        assert info == {
            "level": 10,
            "label": "Critical",
            "color": "#DC2626",
            "description": "Highest priority - Drop everything else",
        }


class TestTaskRules:
    def test_normalize_title_trims(self):
        assert normalize_title("  Write report  ") == "Write report"

    @pytest.mark.parametrize("title", ["", "   ", None, "x" * 256])
    def test_normalize_title_rejects(self, title):
        with pytest.raises(InvalidTitleError):
            normalize_title(title)

    def test_title_at_max_length(self):
        assert len(normalize_title("x" * 255)) == 255

    def test_assignee_count_deduplicates(self):
        assert validate_assignee_count([3, 1, 3, 2]) == [3, 1, 2]

    def test_assignee_count_bounds(self):
        with pytest.raises(MinAssigneesError):
            validate_assignee_count([])
        with pytest.raises(MaxAssigneesReachedError):
            validate_assignee_count([1, 2, 3, 4, 5, 6])
        assert validate_assignee_count([1, 2, 3, 4, 5, 5]) == [1, 2, 3, 4, 5]

    def test_recurrence(self):
        assert validate_recurrence(None) is None
        assert validate_recurrence(7) == 7
        with pytest.raises(InvalidRecurrenceError):
            validate_recurrence(0)

    def test_resolve_recurring_update(self):
        assert resolve_recurring_update(True, 3) == 3
        assert resolve_recurring_update(False, 3) is None
        with pytest.raises(InvalidRecurrenceError):
            resolve_recurring_update(True, None)
        with pytest.raises(InvalidRecurrenceError):
            resolve_recurring_update(True, -2)

    def test_subtask_deadline(self):
        parent_due = datetime(2030, 1, 10)
        validate_subtask_deadline(datetime(2030, 1, 10), parent_due)
        validate_subtask_deadline(datetime(2030, 1, 9), None)
        with pytest.raises(InvalidSubtaskDeadlineError):
            validate_subtask_deadline(datetime(2030, 1, 11), parent_due)

    def test_can_add_assignee(self):
        assert can_add_assignee([1, 2], 3, actor_id=1, actor_is_manager=False) is True
        assert can_add_assignee([1, 2], 2, actor_id=1, actor_is_manager=False) is False
        assert can_add_assignee([1, 2], 3, actor_id=9, actor_is_manager=True) is True

    def test_can_add_assignee_staff_not_on_task(self):
        with pytest.raises(UnauthorizedError):
            can_add_assignee([1, 2], 3, actor_id=9, actor_is_manager=False)

    def test_can_add_assignee_full_task(self):
        with pytest.raises(MaxAssigneesReachedError):
            can_add_assignee([1, 2, 3, 4, 5], 6, actor_id=1, actor_is_manager=True)

    def test_can_remove_assignee(self):
        can_remove_assignee([1, 2], 2, actor_is_manager=True)
        with pytest.raises(UnauthorizedError):
            can_remove_assignee([1, 2], 2, actor_is_manager=False)
        with pytest.raises(ValidationError, match="not assigned"):
            can_remove_assignee([1, 2], 3, actor_is_manager=True)
        with pytest.raises(MinAssigneesError):
            can_remove_assignee([1], 1, actor_is_manager=True)

    def test_next_recurrence_dates(self):
        created, due = next_recurrence_dates(datetime(2030, 1, 1, 9), datetime(2030, 1, 5, 17), 7)
        assert created == datetime(2030, 1, 8, 9)
        assert due == datetime(2030, 1, 12, 17)


class TestProjectRules:
    def test_normalize_name(self):
        assert normalize_project_name("  Apollo ") == "Apollo"

    def test_name_errors(self):
        with pytest.raises(InvalidProjectNameError, match="required"):
            normalize_project_name("")
        with pytest.raises(InvalidProjectNameError, match="whitespace"):
            normalize_project_name("   ")
        with pytest.raises(InvalidProjectNameError, match="100 characters"):
            normalize_project_name("p" * 101)

    def test_description(self):
        assert normalize_description("  notes ") == "notes"
        assert normalize_description("   ") is None
        assert normalize_description(None) is None

    def test_priority(self):
        assert validate_project_priority(None) == 5
        assert validate_project_priority(1) == 1
        with pytest.raises(InvalidPriorityError):
            validate_project_priority(11)

    def test_duplicate_name_message(self):
        error = DuplicateProjectNameError("Apollo")
        assert error.status_code == 409
        assert error.message == 'A project named "Apollo" already exists. Please choose a different name.'
