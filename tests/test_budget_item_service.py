"""
Integration tests for BudgetItemService against SQLite.

Tests:
- Persistence of transitions and history
- No-op reject/revert
- Optimistic concurrency
- Scope validation
"""
import pytest

from budget_planner.models import BudgetItemEntity, BudgetRevisionEntity
from budget_planner.domain.entities import ApprovalStatus
from budget_planner.domain.services import BudgetItemService
from budget_planner.domain.exceptions import (
    BudgetItemNotFoundError,
    ConcurrencyError,
    InvalidTransitionError,
    ScopeNotFoundError,
    ValidationError,
)


@pytest.fixture
def service(session):
    return BudgetItemService(session)


@pytest.fixture
def item(service, scope):
    return service.create(
        name="Rent",
        year=2025,
        cost_group_id=scope.cost_group.id,
        monthly_values={0: 100, 1: 200},
    )


class TestCreate:

    def test_create_department_item(self, item, scope):
        assert item.id is not None
        assert item.status == ApprovalStatus.DRAFT
        assert item.current_revision == 0
        assert item.cost_group_id == scope.cost_group.id
        assert item.monthly_values == {0: 100, 1: 200}
        assert item.version_id == 1

    def test_create_project_item(self, service, scope):
        item = service.create(
            name="Consulting",
            year=2025,
            item_type="revenue",
            project_phase_id=scope.phase.id,
        )
        assert item.item_type == "revenue"
        assert item.monthly_values == {}

    def test_create_requires_existing_scope(self, service, scope):
        with pytest.raises(ScopeNotFoundError):
            service.create(name="Rent", year=2025, cost_group_id="missing")

    def test_create_validates(self, service, scope):
        with pytest.raises(ValidationError):
            service.create(name="", year=2025, cost_group_id=scope.cost_group.id)
        with pytest.raises(ValidationError):
            service.create(
                name="Both", year=2025,
                cost_group_id=scope.cost_group.id, project_phase_id=scope.phase.id,
            )

    def test_create_uses_default_year(self, service, scope, config):
        item = service.create(name="Travel", cost_group_id=scope.cost_group.id)
        assert item.year == config.default_year

    def test_values_stored_with_string_keys(self, item, session):
        row = session.get(BudgetItemEntity, item.id)
        assert row.monthly_values == {"0": 100, "1": 200}


class TestTransitions:

    def test_scenario_persists(self, service, item):
        """Approve, revise, edit, submit, reject round-trip through the database."""
        service.submit_for_approval(item.id)
        service.approve(item.id)
        service.revise(item.id, editor_name="Alice", revision_reason="Q2 change")
        service.save(item.id, {0: 150, 1: 200})
        service.submit_for_approval(item.id)
        result = service.reject(item.id)

        assert result.status == ApprovalStatus.APPROVED
        assert result.monthly_values == {0: 100, 1: 200}
        assert result.current_revision == 0
        assert result.previous_approved_values is None

        reloaded = service.get(item.id)
        assert len(reloaded.history) == 1
        entry = reloaded.history[0]
        assert entry.revision_number == 0
        assert entry.monthly_values == {0: 100, 1: 200}
        assert entry.editor_name == "Alice"
        assert entry.revision_reason == "Q2 change"
        assert entry.id is not None

    def test_revise_then_revert(self, service, item):
        service.submit_for_approval(item.id)
        service.approve(item.id)
        service.revise(item.id, editor_name="Alice")
        service.save(item.id, {0: 1})

        result = service.revert(item.id)

        assert result.status == ApprovalStatus.APPROVED
        assert result.monthly_values == {0: 100, 1: 200}
        assert result.previous_approved_values is None
        assert result.current_revision == 0

    def test_revise_default_editor(self, service, item, config):
        service.submit_for_approval(item.id)
        service.approve(item.id)
        result = service.revise(item.id, editor_name="  ", revision_reason="")

        assert result.history[0].editor_name == config.default_editor_name
        assert result.history[0].revision_reason is None

    def test_each_revise_adds_one_history_row(self, service, item, session):
        for _ in range(2):
            service.submit_for_approval(item.id)
            service.approve(item.id)
            service.revise(item.id, editor_name="Alice")

        rows = session.query(BudgetRevisionEntity).filter_by(budget_item_id=item.id).all()
        assert sorted(row.revision_number for row in rows) == [0, 1]

    def test_reject_noop_returns_none(self, service, item):
        assert service.reject(item.id) is None
        assert service.get(item.id).status == ApprovalStatus.DRAFT

    def test_revert_noop_returns_none(self, service, item):
        assert service.revert(item.id) is None

    def test_invalid_transition_leaves_row_unchanged(self, service, item):
        with pytest.raises(InvalidTransitionError):
            service.approve(item.id)

        reloaded = service.get(item.id)
        assert reloaded.status == ApprovalStatus.DRAFT
        assert reloaded.version_id == 1

    def test_save_rejects_bad_values(self, service, item):
        with pytest.raises(ValidationError):
            service.save(item.id, {0: -1})
        assert service.get(item.id).monthly_values == {0: 100, 1: 200}

    def test_large_amounts_persist_exactly(self, service, item):
        big = 2 ** 53 + 1
        service.save(item.id, {0: big})
        assert service.get(item.id).monthly_values == {0: big}

    def test_save_allowed_while_rejected(self, service, item, session):
        session.get(BudgetItemEntity, item.id).status = ApprovalStatus.REJECTED.value
        session.commit()

        saved = service.save(item.id, {0: 7})

        assert saved.status == ApprovalStatus.REJECTED
        assert saved.monthly_values == {0: 7}

    def test_save_requires_draft(self, service, item):
        service.submit_for_approval(item.id)
        with pytest.raises(InvalidTransitionError):
            service.save(item.id, {0: 1})

    def test_unknown_item(self, service):
        with pytest.raises(BudgetItemNotFoundError):
            service.submit_for_approval("missing")


class TestConcurrency:

    def test_version_increments(self, service, item):
        updated = service.submit_for_approval(item.id)
        assert updated.version_id == 2

    def test_stale_version_rejected(self, service, item):
        service.save(item.id, {0: 1}, expected_version=1)
        with pytest.raises(ConcurrencyError):
            service.save(item.id, {0: 2}, expected_version=1)
        assert service.get(item.id).monthly_values == {0: 1}

    def test_matching_version_accepted(self, service, item):
        result = service.submit_for_approval(item.id, expected_version=item.version_id)
        assert result.status == ApprovalStatus.PENDING


class TestListAndDelete:

    def test_list_by_scope_and_year(self, service, item, scope):
        service.create(name="Other year", year=2024, cost_group_id=scope.cost_group.id)
        service.create(name="Phase item", year=2025, project_phase_id=scope.phase.id)

        items = service.list_budget_items(scope.cost_group.id, 2025)
        assert [i.name for i in items] == ["Rent"]

        phase_items = service.list_budget_items(scope.phase.id, 2025)
        assert [i.name for i in phase_items] == ["Phase item"]

    def test_delete_removes_history(self, service, item, session):
        service.submit_for_approval(item.id)
        service.approve(item.id)
        service.revise(item.id, editor_name="Alice")

        service.delete(item.id)

        assert session.get(BudgetItemEntity, item.id) is None
        assert session.query(BudgetRevisionEntity).count() == 0
        with pytest.raises(BudgetItemNotFoundError):
            service.get(item.id)
