"""
Database models and SQLAlchemy setup for the Budget Planner.

Budget item values are whole currency units; transaction amounts are stored
as integer cents.
"""
import uuid
from datetime import datetime
from sqlalchemy import (
    create_engine, Column, Integer, String, Date, DateTime, Text, JSON,
    ForeignKey, UniqueConstraint, CheckConstraint
)
from sqlalchemy.orm import declarative_base, sessionmaker, relationship

from budget_planner.config import get_config

DATABASE_URL = get_config().database_url
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {},
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def new_uuid() -> str:
    return str(uuid.uuid4())


# =============================================================================
# Scoping Entities
# =============================================================================

class Company(Base):
    """Top-level tenant; owns departments and projects."""
    __tablename__ = "companies"

    id = Column(String(36), primary_key=True, default=new_uuid)
    name = Column(String(200), nullable=False)
    code = Column(String(50), nullable=True)  # Short code like "ABC"
    created_at = Column(DateTime, default=datetime.utcnow)


class DepartmentGroup(Base):
    """Optional grouping of departments for subtotal rows."""
    __tablename__ = "department_groups"

    id = Column(String(36), primary_key=True, default=new_uuid)
    name = Column(String(200), nullable=False)
    company_id = Column(String(36), ForeignKey('companies.id', ondelete='CASCADE'), nullable=True, index=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)

    departments = relationship("Department", back_populates="group")


class Department(Base):
    __tablename__ = "departments"

    id = Column(String(36), primary_key=True, default=new_uuid)
    name = Column(String(200), nullable=False)
    group_id = Column(String(36), ForeignKey('department_groups.id', ondelete='SET NULL'), nullable=True, index=True)
    company_id = Column(String(36), ForeignKey('companies.id', ondelete='CASCADE'), nullable=True, index=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)

    group = relationship("DepartmentGroup", back_populates="departments")
    cost_groups = relationship("CostGroup", back_populates="department", cascade="all, delete-orphan")


class CostGroup(Base):
    """Department-level container of budget items."""
    __tablename__ = "cost_groups"

    id = Column(String(36), primary_key=True, default=new_uuid)
    name = Column(String(200), nullable=False)
    department_id = Column(String(36), ForeignKey('departments.id', ondelete='CASCADE'), nullable=False, index=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)

    department = relationship("Department", back_populates="cost_groups")
    budget_items = relationship("BudgetItemEntity", back_populates="cost_group", cascade="all, delete-orphan")


class ProjectType(Base):
    """Classification used to group projects in reports."""
    __tablename__ = "project_types"

    id = Column(String(36), primary_key=True, default=new_uuid)
    name = Column(String(200), nullable=False)
    company_id = Column(String(36), ForeignKey('companies.id', ondelete='CASCADE'), nullable=True, index=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)

    projects = relationship("Project", back_populates="project_type")


class Project(Base):
    __tablename__ = "projects"

    id = Column(String(36), primary_key=True, default=new_uuid)
    code = Column(String(50), nullable=True)
    name = Column(String(200), nullable=False)
    project_type_id = Column(String(36), ForeignKey('project_types.id', ondelete='SET NULL'), nullable=True, index=True)
    company_id = Column(String(36), ForeignKey('companies.id', ondelete='CASCADE'), nullable=True, index=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)

    project_type = relationship("ProjectType", back_populates="projects")
    phases = relationship("ProjectPhase", back_populates="project", cascade="all, delete-orphan")
    processes = relationship("ProjectProcessEntity", back_populates="project", cascade="all, delete-orphan")


class ProjectPhase(Base):
    """Project-level container of budget items."""
    __tablename__ = "project_phases"

    id = Column(String(36), primary_key=True, default=new_uuid)
    name = Column(String(200), nullable=False)
    project_id = Column(String(36), ForeignKey('projects.id', ondelete='CASCADE'), nullable=False, index=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)

    project = relationship("Project", back_populates="phases")
    budget_items = relationship("BudgetItemEntity", back_populates="project_phase", cascade="all, delete-orphan")


# =============================================================================
# Budget Items (The Plan)
# =============================================================================

class BudgetItemEntity(Base):
    """
    Cost or revenue line with twelve monthly values.
    INVARIANT: previous_approved_values IS NULL when status = 'approved'
    """
    __tablename__ = "budget_items"

    id = Column(String(36), primary_key=True, default=new_uuid)
    name = Column(String(500), nullable=False)
    type = Column(String(20), nullable=False, default='cost')  # cost, revenue

    # Exactly one parent reference is set
    cost_group_id = Column(String(36), ForeignKey('cost_groups.id', ondelete='CASCADE'), nullable=True, index=True)
    project_phase_id = Column(String(36), ForeignKey('project_phases.id', ondelete='CASCADE'), nullable=True, index=True)

    monthly_values = Column(JSON, nullable=False, default=dict)  # {"0": 1000, "1": 1200, ...}
    previous_approved_values = Column(JSON, nullable=True)  # Cleared on approval
    status = Column(String(20), nullable=False, default='draft', index=True)  # draft, pending, approved, rejected
    current_revision = Column(Integer, nullable=False, default=0)

    year = Column(Integer, nullable=False, default=2025, index=True)
    sort_order = Column(Integer, nullable=False, default=0)
    version_id = Column(Integer, nullable=False, default=1)  # Optimistic locking
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    cost_group = relationship("CostGroup", back_populates="budget_items")
    project_phase = relationship("ProjectPhase", back_populates="budget_items")
    revisions = relationship(
        "BudgetRevisionEntity",
        back_populates="budget_item",
        cascade="all, delete-orphan",
        order_by="BudgetRevisionEntity.revision_number",
    )
    transactions = relationship("TransactionEntity", back_populates="budget_item")

    __table_args__ = (
        CheckConstraint('current_revision >= 0', name='ck_budget_item_revision_non_negative'),
    )


class BudgetRevisionEntity(Base):
    """Append-only audit log of revised budget items."""
    __tablename__ = "budget_revisions"

    id = Column(String(36), primary_key=True, default=new_uuid)
    budget_item_id = Column(String(36), ForeignKey('budget_items.id', ondelete='CASCADE'), nullable=False, index=True)
    revision_number = Column(Integer, nullable=False)
    monthly_values = Column(JSON, nullable=False)
    revision_reason = Column(Text, nullable=True)
    editor_name = Column(String(200), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    budget_item = relationship("BudgetItemEntity", back_populates="revisions")


# =============================================================================
# Project Processes (The Schedule)
# =============================================================================

class ProjectProcessEntity(Base):
    """
    Schedule activity addressed by WBS key.
    Hierarchy is derived from WBS: "1.1" is a child of "1".
    """
    __tablename__ = "project_processes"

    id = Column(String(36), primary_key=True, default=new_uuid)
    name = Column(String(500), nullable=False)
    project_id = Column(String(36), ForeignKey('projects.id', ondelete='CASCADE'), nullable=False, index=True)
    wbs = Column(String(50), nullable=False, index=True)

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    actual_start_date = Column(DateTime, nullable=True)  # Set by start
    actual_end_date = Column(DateTime, nullable=True)  # Set by finish

    status = Column(String(20), nullable=False, default='draft', index=True)
    current_revision = Column(Integer, nullable=False, default=0)
    previous_start_date = Column(Date, nullable=True)
    previous_end_date = Column(Date, nullable=True)

    version_id = Column(Integer, nullable=False, default=1)  # Optimistic locking
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    project = relationship("Project", back_populates="processes")
    revisions = relationship(
        "ProcessRevisionEntity",
        back_populates="process",
        cascade="all, delete-orphan",
        order_by="ProcessRevisionEntity.revision_number",
    )

    __table_args__ = (
        UniqueConstraint('project_id', 'wbs', name='uq_project_process_wbs'),
        CheckConstraint('current_revision >= 0', name='ck_process_revision_non_negative'),
    )


class ProcessRevisionEntity(Base):
    """Append-only audit log of revised process dates."""
    __tablename__ = "process_revisions"

    id = Column(String(36), primary_key=True, default=new_uuid)
    process_id = Column(String(36), ForeignKey('project_processes.id', ondelete='CASCADE'), nullable=False, index=True)
    revision_number = Column(Integer, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    revision_reason = Column(Text, nullable=True)
    editor_name = Column(String(200), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    process = relationship("ProjectProcessEntity", back_populates="revisions")


# =============================================================================
# Transactions (The Actuals)
# =============================================================================

class TransactionEntity(Base):
    """
    Actual expense or revenue booked against a budget item.
    Amount is stored in cents.
    """
    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=new_uuid)
    type = Column(String(20), nullable=False)  # expense, revenue
    amount = Column(Integer, nullable=False)  # cents
    description = Column(Text, nullable=False)
    date = Column(Date, nullable=False, index=True)
    budget_item_id = Column(String(36), ForeignKey('budget_items.id', ondelete='SET NULL'), nullable=True, index=True)

    # CSV import tracking
    csv_file_name = Column(String(255), nullable=True)
    csv_row_number = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    budget_item = relationship("BudgetItemEntity", back_populates="transactions")


def init_db():
    """Initialize the database and create all tables."""
    Base.metadata.create_all(bind=engine)


def get_db():
    """Database session dependency for FastAPI."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
