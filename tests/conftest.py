"""
Shared fixtures: in-memory SQLite sessions and a minimal company layout.
"""
import os

# The app engine is built at import time; keep it off the working directory.
os.environ.setdefault("BUDGET_PLANNER_DATABASE_URL", "sqlite:///:memory:")

import pytest
from types import SimpleNamespace

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from budget_planner.config import get_config
from budget_planner.models import (
    Base, Company, DepartmentGroup, Department, CostGroup, Project, ProjectPhase,
)


@pytest.fixture(scope="function")
def engine():
    """Fresh in-memory database per test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def session(engine):
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = Session()
    yield session
    session.close()


@pytest.fixture
def config():
    return get_config()


@pytest.fixture
def scope(session):
    """One department with a cost group and one project with a phase."""
    company = Company(name="Acme", code="ACME")
    session.add(company)
    session.flush()

    dept_group = DepartmentGroup(name="Operations", company_id=company.id, sort_order=1)
    session.add(dept_group)
    session.flush()

    department = Department(name="Finance", group_id=dept_group.id, company_id=company.id)
    session.add(department)
    session.flush()

    cost_group = CostGroup(name="Office", department_id=department.id)
    session.add(cost_group)

    project = Project(code="P-001", name="Tower", company_id=company.id)
    session.add(project)
    session.flush()

    phase = ProjectPhase(name="Design", project_id=project.id)
    session.add(phase)
    session.commit()

    return SimpleNamespace(
        company=company,
        department_group=dept_group,
        department=department,
        cost_group=cost_group,
        project=project,
        phase=phase,
    )
