"""
Unit Tests for the project process lifecycle and progress tracking.
"""
import pytest
from datetime import date, datetime

from budget_planner.domain.entities import ApprovalStatus, ProjectProcess, validate_wbs
from budget_planner.domain.exceptions import InvalidTransitionError, ValidationError


def make_process(**kwargs):
    defaults = dict(
        id="proc-1",
        project_id="p1",
        wbs="1",
        name="Design",
        start_date=date(2025, 1, 1),
        end_date=date(2025, 1, 31),
    )
    defaults.update(kwargs)
    return ProjectProcess(**defaults)


class TestProcessValidation:

    def test_validate_strips_wbs(self):
        process = make_process(wbs=" 1.2 ")
        process.validate()
        assert process.wbs == "1.2"

    @pytest.mark.parametrize("wbs", ["", "  ", "1.", "a", "1..2", "0.1"])
    def test_invalid_wbs(self, wbs):
        with pytest.raises(ValidationError):
            validate_wbs(wbs)

    def test_wbs_length_limit(self):
        assert validate_wbs("1." * 24 + "11") == "1." * 24 + "11"
        with pytest.raises(ValidationError, match="longer than 50"):
            validate_wbs("1." * 25 + "1")

    def test_name_required(self):
        with pytest.raises(ValidationError):
            make_process(name="").validate()

    def test_end_before_start(self):
        with pytest.raises(ValidationError):
            make_process(start_date=date(2025, 2, 1), end_date=date(2025, 1, 1)).validate()

    def test_duration_inclusive(self):
        assert make_process().duration_days == 31


class TestProcessApproval:

    def test_revise_snapshots_dates(self):
        process = make_process()
        process.submit_for_approval()
        process.approve()

        entry = process.revise("Bob", "Delay")

        assert process.status == ApprovalStatus.DRAFT
        assert process.current_revision == 1
        assert process.previous_start_date == date(2025, 1, 1)
        assert process.previous_end_date == date(2025, 1, 31)
        assert entry.revision_number == 0
        assert entry.start_date == date(2025, 1, 1)
        assert entry.editor_name == "Bob"

    def test_reschedule_then_revert(self):
        process = make_process()
        process.submit_for_approval()
        process.approve()
        process.revise("Bob")
        process.reschedule(date(2025, 2, 1), date(2025, 2, 28))

        assert process.revert() is True
        assert process.status == ApprovalStatus.APPROVED
        assert process.start_date == date(2025, 1, 1)
        assert process.end_date == date(2025, 1, 31)
        assert process.current_revision == 0
        assert process.previous_start_date is None

    def test_reject_with_snapshot(self):
        process = make_process()
        process.submit_for_approval()
        process.approve()
        process.revise("Bob")
        process.reschedule(date(2025, 3, 1), date(2025, 3, 2))
        process.submit_for_approval()

        assert process.reject() is True
        assert process.status == ApprovalStatus.APPROVED
        assert process.start_date == date(2025, 1, 1)

    def test_reschedule_requires_editable(self):
        process = make_process()
        process.submit_for_approval()
        with pytest.raises(InvalidTransitionError):
            process.reschedule(date(2025, 2, 1), date(2025, 2, 2))
        assert process.start_date == date(2025, 1, 1)

    def test_rename_allowed_when_approved(self):
        process = make_process()
        process.submit_for_approval()
        process.approve()
        process.rename("  Detailed design ")
        assert process.name == "Detailed design"

    def test_invalid_transition_message(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            make_process().approve()
        assert exc_info.value.code == "INVALID_TRANSITION"
        assert "Process" in exc_info.value.message


class TestProgressTracking:

    def test_start_then_finish(self):
        process = make_process()
        process.start(datetime(2025, 1, 2, 8, 0))
        process.finish(datetime(2025, 1, 30, 17, 0))
        assert process.is_started and process.is_finished
        assert process.actual_end_date == datetime(2025, 1, 30, 17, 0)

    def test_start_twice(self):
        process = make_process()
        process.start()
        with pytest.raises(InvalidTransitionError):
            process.start()

    def test_finish_before_start(self):
        with pytest.raises(InvalidTransitionError):
            make_process().finish()

    def test_finish_twice(self):
        process = make_process()
        process.start()
        process.finish()
        with pytest.raises(InvalidTransitionError):
            process.finish()

    def test_progress_independent_of_approval(self):
        process = make_process()
        process.submit_for_approval()
        process.start()
        assert process.status == ApprovalStatus.PENDING
        assert process.is_started
