"""Initial budget planner schema

Creates:
- companies, department_groups, departments, cost_groups
- project_types, projects, project_phases
- budget_items, budget_revisions
- project_processes, process_revisions
- transactions

Revision ID: 20250101_initial
Revises:
Create Date: 2025-01-01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20250101_initial'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id():
    return sa.Column('id', sa.String(36), nullable=False)


def _created_at():
    return sa.Column('created_at', sa.DateTime(), nullable=True, server_default=sa.func.now())


def upgrade() -> None:
    """Create all budget planner tables."""

    # =========================================================================
    # 1. SCOPING - Companies, departments, projects
    # =========================================================================
    op.create_table(
        'companies',
        _id(),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('code', sa.String(50), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'department_groups',
        _id(),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('company_id', sa.String(36), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_department_groups_company_id', 'department_groups', ['company_id'])

    op.create_table(
        'departments',
        _id(),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('group_id', sa.String(36), nullable=True),
        sa.Column('company_id', sa.String(36), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['group_id'], ['department_groups.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_departments_group_id', 'departments', ['group_id'])
    op.create_index('ix_departments_company_id', 'departments', ['company_id'])

    op.create_table(
        'cost_groups',
        _id(),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('department_id', sa.String(36), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['department_id'], ['departments.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_cost_groups_department_id', 'cost_groups', ['department_id'])

    op.create_table(
        'project_types',
        _id(),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('company_id', sa.String(36), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_project_types_company_id', 'project_types', ['company_id'])

    op.create_table(
        'projects',
        _id(),
        sa.Column('code', sa.String(50), nullable=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('project_type_id', sa.String(36), nullable=True),
        sa.Column('company_id', sa.String(36), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['project_type_id'], ['project_types.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_projects_project_type_id', 'projects', ['project_type_id'])
    op.create_index('ix_projects_company_id', 'projects', ['company_id'])

    op.create_table(
        'project_phases',
        _id(),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('project_id', sa.String(36), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_project_phases_project_id', 'project_phases', ['project_id'])

    # =========================================================================
    # 2. BUDGET ITEMS - Plan lines and their revision log
    # =========================================================================
    op.create_table(
        'budget_items',
        _id(),
        sa.Column('name', sa.String(500), nullable=False),
        sa.Column('type', sa.String(20), nullable=False, server_default='cost'),
        sa.Column('cost_group_id', sa.String(36), nullable=True),
        sa.Column('project_phase_id', sa.String(36), nullable=True),
        sa.Column('monthly_values', sa.JSON(), nullable=False),
        sa.Column('previous_approved_values', sa.JSON(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='draft'),
        sa.Column('current_revision', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        _created_at(),
        sa.Column('updated_at', sa.DateTime(), nullable=True, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['cost_group_id'], ['cost_groups.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['project_phase_id'], ['project_phases.id'], ondelete='CASCADE'),
        sa.CheckConstraint('current_revision >= 0', name='ck_budget_item_revision_non_negative'),
    )
    op.create_index('ix_budget_items_cost_group_id', 'budget_items', ['cost_group_id'])
    op.create_index('ix_budget_items_project_phase_id', 'budget_items', ['project_phase_id'])
    op.create_index('ix_budget_items_status', 'budget_items', ['status'])
    op.create_index('ix_budget_items_year', 'budget_items', ['year'])

    op.create_table(
        'budget_revisions',
        _id(),
        sa.Column('budget_item_id', sa.String(36), nullable=False),
        sa.Column('revision_number', sa.Integer(), nullable=False),
        sa.Column('monthly_values', sa.JSON(), nullable=False),
        sa.Column('revision_reason', sa.Text(), nullable=True),
        sa.Column('editor_name', sa.String(200), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['budget_item_id'], ['budget_items.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_budget_revisions_budget_item_id', 'budget_revisions', ['budget_item_id'])

    # =========================================================================
    # 3. PROJECT PROCESSES - WBS schedule and its revision log
    # =========================================================================
    op.create_table(
        'project_processes',
        _id(),
        sa.Column('name', sa.String(500), nullable=False),
        sa.Column('project_id', sa.String(36), nullable=False),
        sa.Column('wbs', sa.String(50), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('actual_start_date', sa.DateTime(), nullable=True),
        sa.Column('actual_end_date', sa.DateTime(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='draft'),
        sa.Column('current_revision', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('previous_start_date', sa.Date(), nullable=True),
        sa.Column('previous_end_date', sa.Date(), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        _created_at(),
        sa.Column('updated_at', sa.DateTime(), nullable=True, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('project_id', 'wbs', name='uq_project_process_wbs'),
        sa.CheckConstraint('current_revision >= 0', name='ck_process_revision_non_negative'),
    )
    op.create_index('ix_project_processes_project_id', 'project_processes', ['project_id'])
    op.create_index('ix_project_processes_wbs', 'project_processes', ['wbs'])
    op.create_index('ix_project_processes_status', 'project_processes', ['status'])

    op.create_table(
        'process_revisions',
        _id(),
        sa.Column('process_id', sa.String(36), nullable=False),
        sa.Column('revision_number', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('revision_reason', sa.Text(), nullable=True),
        sa.Column('editor_name', sa.String(200), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['process_id'], ['project_processes.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_process_revisions_process_id', 'process_revisions', ['process_id'])

    # =========================================================================
    # 4. TRANSACTIONS - Actuals in cents
    # =========================================================================
    op.create_table(
        'transactions',
        _id(),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('budget_item_id', sa.String(36), nullable=True),
        sa.Column('csv_file_name', sa.String(255), nullable=True),
        sa.Column('csv_row_number', sa.Integer(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['budget_item_id'], ['budget_items.id'], ondelete='SET NULL'),
    )
    op.create_index('ix_transactions_date', 'transactions', ['date'])
    op.create_index('ix_transactions_budget_item_id', 'transactions', ['budget_item_id'])


def downgrade() -> None:
    """Drop all budget planner tables."""
    for table in (
        'transactions',
        'process_revisions',
        'project_processes',
        'budget_revisions',
        'budget_items',
        'project_phases',
        'projects',
        'project_types',
        'cost_groups',
        'departments',
        'department_groups',
        'companies',
    ):
        op.drop_table(table)
