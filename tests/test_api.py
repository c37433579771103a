"""
Tests for the v1 REST endpoints and the domain error -> HTTP mapping.
"""
import pytest

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from budget_planner.main import app
from budget_planner.models import (
    Base, get_db, Company, Department, CostGroup, Project, ProjectPhase,
)


engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    """Override database dependency for testing."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client():
    """Test client on a fresh schema."""
    Base.metadata.create_all(bind=engine)
    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def ids(client):
    """Seed one cost group and one project phase."""
    db = TestingSessionLocal()
    try:
        company = Company(name="Acme", code="ACME")
        db.add(company)
        db.flush()
        department = Department(name="Finance", company_id=company.id)
        db.add(department)
        db.flush()
        cost_group = CostGroup(name="Office", department_id=department.id)
        project = Project(code="P-001", name="Tower", company_id=company.id)
        db.add_all([cost_group, project])
        db.flush()
        phase = ProjectPhase(name="Design", project_id=project.id)
        db.add(phase)
        db.commit()
        return {
            'cost_group': cost_group.id,
            'project': project.id,
            'phase': phase.id,
        }
    finally:
        db.close()


def create_item(client, ids, **overrides):
    payload = {
        'name': "Rent",
        'year': 2025,
        'cost_group_id': ids['cost_group'],
        'monthly_values': {"0": 100, "1": 200},
    }
    payload.update(overrides)
    response = client.post("/api/v1/budget-items", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def create_process(client, ids, wbs, start="2025-01-01", end="2025-01-10"):
    response = client.post(
        f"/api/v1/projects/{ids['project']}/processes",
        json={'wbs': wbs, 'name': f"Process {wbs}", 'start_date': start, 'end_date': end},
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()['status'] == "healthy"


class TestBudgetItemEndpoints:

    def test_create(self, client, ids):
        data = create_item(client, ids)
        assert data['status'] == "draft"
        assert data['total'] == 300
        assert data['monthly_values'] == {"0": 100, "1": 200}
        assert data['history'] == []

    def test_create_unknown_scope(self, client, ids):
        response = client.post("/api/v1/budget-items", json={
            'name': "Rent", 'year': 2025, 'cost_group_id': "missing",
        })
        assert response.status_code == 404

    def test_create_invalid_values(self, client, ids):
        response = client.post("/api/v1/budget-items", json={
            'name': "Rent", 'year': 2025, 'cost_group_id': ids['cost_group'],
            'monthly_values': {"12": 5},
        })
        assert response.status_code == 422

    def test_get_missing(self, client, ids):
        assert client.get("/api/v1/budget-items/missing").status_code == 404

    def test_list_with_totals(self, client, ids):
        create_item(client, ids)
        create_item(client, ids, name="Licences", monthly_values={"0": 50})

        response = client.get(
            "/api/v1/budget-items", params={'scope_id': ids['cost_group'], 'year': 2025}
        )

        assert response.status_code == 200
        data = response.json()
        assert data['total'] == 2
        assert data['monthly_totals'][0] == 150
        assert data['grand_total'] == 350

    def test_lifecycle(self, client, ids):
        item = create_item(client, ids)
        base = f"/api/v1/budget-items/{item['id']}"

        assert client.post(f"{base}/submit").json()['status'] == "pending"
        assert client.post(f"{base}/approve").json()['status'] == "approved"

        revised = client.post(f"{base}/revise", json={'editor_name': "Alice", 'revision_reason': "Q2"})
        assert revised.status_code == 200
        assert revised.json()['status'] == "draft"
        assert revised.json()['history'][0]['editor_name'] == "Alice"

        saved = client.patch(base, json={'monthly_values': {"0": 150}})
        assert saved.json()['monthly_values']["0"] == 150

        client.post(f"{base}/submit")
        rejected = client.post(f"{base}/reject").json()
        assert rejected['status'] == "approved"
        assert rejected['monthly_values'] == {"0": 100, "1": 200}
        assert rejected['current_revision'] == 0

    def test_invalid_transition_is_conflict(self, client, ids):
        item = create_item(client, ids)
        response = client.post(f"/api/v1/budget-items/{item['id']}/approve")
        assert response.status_code == 409

    def test_noop_reject_and_revert(self, client, ids):
        item = create_item(client, ids)
        assert client.post(f"/api/v1/budget-items/{item['id']}/reject").status_code == 400
        assert client.post(f"/api/v1/budget-items/{item['id']}/revert").status_code == 400

    def test_stale_version(self, client, ids):
        item = create_item(client, ids)
        base = f"/api/v1/budget-items/{item['id']}"

        first = client.patch(base, json={'monthly_values': {"0": 1}, 'expected_version': 1})
        assert first.status_code == 200
        second = client.patch(base, json={'monthly_values': {"0": 2}, 'expected_version': 1})
        assert second.status_code == 409

    def test_delete(self, client, ids):
        item = create_item(client, ids)
        assert client.delete(f"/api/v1/budget-items/{item['id']}").status_code == 204
        assert client.get(f"/api/v1/budget-items/{item['id']}").status_code == 404


class TestProcessEndpoints:

    def test_duplicate_wbs(self, client, ids):
        create_process(client, ids, "1")
        response = client.post(
            f"/api/v1/projects/{ids['project']}/processes",
            json={'wbs': "1", 'name': "Again", 'start_date': "2025-01-01", 'end_date': "2025-01-02"},
        )
        assert response.status_code == 409

    def test_invalid_wbs(self, client, ids):
        response = client.post(
            f"/api/v1/projects/{ids['project']}/processes",
            json={'wbs': "1..2", 'name': "Bad", 'start_date': "2025-01-01", 'end_date': "2025-01-02"},
        )
        assert response.status_code == 422

    def test_rename_cascade(self, client, ids):
        root = create_process(client, ids, "1")
        create_process(client, ids, "1.1")
        create_process(client, ids, "1.1.1")

        response = client.patch(f"/api/v1/processes/{root['id']}", json={'wbs': "2"})

        assert response.status_code == 200
        listed = client.get(f"/api/v1/projects/{ids['project']}/processes").json()
        assert [p['wbs'] for p in listed] == ["2", "2.1", "2.1.1"]

    def test_tree(self, client, ids):
        create_process(client, ids, "1", "2025-06-01", "2025-06-01")
        create_process(client, ids, "1.1", "2025-01-01", "2025-01-05")
        create_process(client, ids, "1.2", "2025-01-06", "2025-01-20")

        rows = client.get(f"/api/v1/projects/{ids['project']}/processes/tree").json()

        assert [(row['wbs'], row['level'], row['is_group']) for row in rows] == [
            ("1", 0, True), ("1.1", 1, False), ("1.2", 1, False),
        ]
        assert rows[0]['calculated_start_date'] == "2025-01-01"
        assert rows[0]['calculated_end_date'] == "2025-01-20"
        assert rows[0]['calculated_days'] == 20

    def test_start_and_finish(self, client, ids):
        process = create_process(client, ids, "1")
        base = f"/api/v1/processes/{process['id']}"

        assert client.post(f"{base}/finish").status_code == 409
        assert client.post(f"{base}/start").json()['actual_start_date'] is not None
        assert client.post(f"{base}/finish").json()['actual_end_date'] is not None

    def test_dates_locked_while_pending(self, client, ids):
        process = create_process(client, ids, "1")
        client.post(f"/api/v1/processes/{process['id']}/submit")

        response = client.patch(f"/api/v1/processes/{process['id']}", json={'end_date': "2025-02-01"})

        assert response.status_code == 409


class TestTransactionEndpoints:

    def test_create_and_list(self, client, ids):
        response = client.post("/api/v1/transactions", json={
            'type': "expense", 'amount': 4050, 'description': "January rent", 'date': "2025-01-03",
        })
        assert response.status_code == 201, response.text
        assert response.json()['amount'] == 4050

        client.post("/api/v1/transactions", json={
            'type': "revenue", 'amount': 100, 'description': "Refund", 'date': "2025-02-01",
        })

        listed = client.get("/api/v1/transactions", params={'year': 2025, 'type': "expense"}).json()
        assert [t['description'] for t in listed] == ["January rent"]
        assert listed[0]['date'] == "2025-01-03"
        assert len(client.get("/api/v1/transactions", params={'year': 2025}).json()) == 2
        assert client.get("/api/v1/transactions", params={'year': 2024}).json() == []

    def test_negative_amount(self, client, ids):
        response = client.post("/api/v1/transactions", json={
            'type': "expense", 'amount': -1, 'description': "Bad", 'date': "2025-01-03",
        })
        assert response.status_code == 422

    def test_unknown_type(self, client, ids):
        response = client.post("/api/v1/transactions", json={
            'type': "refund", 'amount': 1, 'description': "Bad", 'date': "2025-01-03",
        })
        assert response.status_code == 422

    def test_unknown_budget_item(self, client, ids):
        response = client.post("/api/v1/transactions", json={
            'type': "expense", 'amount': 1, 'description': "Rent", 'date': "2025-01-03",
            'budget_item_id': "missing",
        })
        assert response.status_code == 404

class TestReportEndpoints:

    def test_department_report(self, client, ids):
        create_item(client, ids)
        data = client.get("/api/v1/reports/departments", params={'year': 2025}).json()

        assert data['cost_total'] == 300
        assert data['groups'][0]['departments'][0]['name'] == "Finance"

    def test_project_report(self, client, ids):
        create_item(client, ids, cost_group_id=None, project_phase_id=ids['phase'],
                    item_type="revenue", monthly_values={"4": 900})

        data = client.get(f"/api/v1/reports/projects/{ids['project']}", params={'year': 2025}).json()

        assert data['revenue_total'] == 900
        assert data['phases'][0]['monthly_revenues'][4] == 900

    def test_project_report_missing(self, client, ids):
        assert client.get("/api/v1/reports/projects/missing").status_code == 404

    def test_dashboard(self, client, ids):
        create_item(client, ids)
        data = client.get("/api/v1/reports/dashboard", params={'year': 2025}).json()

        assert data['planned_cost_total'] == 300
        assert data['actual_expense_total'] == 0
        assert len(data['monthly']) == 12

    def test_plan_vs_actual(self, client, ids):
        item = create_item(client, ids)
        client.post("/api/v1/transactions", json={
            'type': "expense", 'amount': 4050, 'description': "January rent", 'date': "2025-01-03",
            'budget_item_id': item['id'],
        })

        response = client.get(f"/api/v1/reports/budget-items/{item['id']}/plan-vs-actual")

        assert response.status_code == 200
        data = response.json()
        assert data['planned'] == 300
        assert data['actual'] == pytest.approx(40.5)
        assert data['remaining'] == pytest.approx(259.5)

    def test_plan_vs_actual_missing(self, client, ids):
        response = client.get("/api/v1/reports/budget-items/missing/plan-vs-actual")
        assert response.status_code == 404

    def test_gantt(self, client, ids):
        create_process(client, ids, "1", "2025-01-01", "2025-01-31")

        response = client.get(
            f"/api/v1/reports/projects/{ids['project']}/gantt", params={'today': "2025-01-15"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data['window'] == {'start': "2025-01-01", 'end': "2025-01-31", 'total_days': 31}
        assert data['rows'][0]['bar']['width_percent'] == pytest.approx(100.0)
        assert data['rows'][0]['actual_bar'] is None
