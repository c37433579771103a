"""
Data CLI Commands - CSV batches for budget items and project processes.

Provides command-line interface for:
- Importing and exporting department budget items
- Importing and exporting project processes
"""
import click
import logging
from typing import Optional

from budget_planner.config import get_config
from budget_planner.models import SessionLocal
from budget_planner.domain.services import CsvImportService, ImportResult
from budget_planner.domain.exceptions import DomainError

logger = logging.getLogger(__name__)


def _report(result: ImportResult) -> None:
    click.echo(f"  Applied: {result.success_count} "
               f"(created {result.created_count}, updated {result.updated_count})")
    if result.error_count:
        click.echo(click.style(f"  Errors:  {result.error_count}", fg='red'))
        for error in result.errors:
            click.echo(f"    - {error}")
    else:
        click.echo(click.style("  No errors", fg='green'))


@click.command('import-budget')
@click.argument('csv_path', type=click.Path(exists=True, dir_okay=False))
@click.option('--year', type=int, default=None, help='Year for new items (default: config budget.default_year)')
def import_budget(csv_path: str, year: Optional[int]):
    """Import department budget items from CSV.

    Rows with an ItemId update that draft item; rows without one create a
    new cost item under the matching department and group.
    """
    year = year or get_config().default_year
    click.echo(f"Importing budget items for {year} from {csv_path}...")

    db = SessionLocal()
    try:
        result = CsvImportService(db).import_budget_items(csv_path, year=year)
    except DomainError as e:
        raise click.ClickException(e.message)
    finally:
        db.close()

    _report(result)


@click.command('export-budget')
@click.argument('csv_path', type=click.Path(dir_okay=False, writable=True))
@click.option('--year', type=int, default=None, help='Budget year (default: config budget.default_year)')
def export_budget(csv_path: str, year: Optional[int]):
    """Export department budget items to CSV in import layout."""
    year = year or get_config().default_year

    db = SessionLocal()
    try:
        df = CsvImportService(db).export_budget_items(year, csv_path)
    finally:
        db.close()

    click.echo(f"Exported {len(df)} budget items for {year} to {csv_path}")


@click.command('import-processes')
@click.argument('csv_path', type=click.Path(exists=True, dir_okay=False))
@click.option('--project-id', required=True, help='Target project id')
def import_processes(csv_path: str, project_id: str):
    """Import project processes (WBS, Name, Start, End) from CSV."""
    click.echo(f"Importing processes for project {project_id} from {csv_path}...")

    db = SessionLocal()
    try:
        result = CsvImportService(db).import_processes(csv_path, project_id)
    except DomainError as e:
        raise click.ClickException(e.message)
    finally:
        db.close()

    _report(result)


@click.command('export-processes')
@click.argument('csv_path', type=click.Path(dir_okay=False, writable=True))
@click.option('--project-id', required=True, help='Project id')
def export_processes(csv_path: str, project_id: str):
    """Export project processes in WBS order with rolled-up group dates."""
    db = SessionLocal()
    try:
        df = CsvImportService(db).export_processes(project_id, csv_path)
    finally:
        db.close()

    click.echo(f"Exported {len(df)} processes to {csv_path}")


def register_commands(cli):
    """Register data commands with main CLI."""
    for command in (import_budget, export_budget, import_processes, export_processes):
        cli.add_command(command)
